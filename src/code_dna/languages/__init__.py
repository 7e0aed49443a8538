# Code DNA - Structural fingerprinting for duplicate code detection
# Copyright (C) 2025  Jonathan Louis
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Grammar-specific feature extraction.

Each supported dialect maps to a tree-sitter grammar. Dialects that share
node kinds (JavaScript, TypeScript, TSX) belong to one grammar family;
only files of the same family are ever compared.
"""

import threading
from pathlib import PurePath
from typing import Dict, Optional

from .base import BaseExtractor


# Extension to dialect mapping
EXTENSION_MAP = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".py": "python",
    ".pyw": "python",
}

# Dialect to grammar family
FAMILY_MAP = {
    "javascript": "javascript",
    "typescript": "javascript",
    "tsx": "javascript",
    "python": "python",
}

SUPPORTED_LANGUAGES = set(FAMILY_MAP)

# Extensions scanned by default (the JavaScript family)
DEFAULT_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx")

# Parsers are not safe to share between threads
_local = threading.local()


def detect_language(path: str) -> Optional[str]:
    """Detect dialect from file extension."""
    return EXTENSION_MAP.get(PurePath(path).suffix.lower())


def language_family(language: str) -> str:
    """Grammar family of a dialect."""
    try:
        return FAMILY_MAP[language.lower()]
    except KeyError:
        raise ValueError(f"Unsupported language: {language}") from None


def get_extractor(language: str) -> BaseExtractor:
    """
    Get a feature extractor for the given dialect.

    Extractors hold a tree-sitter parser, so one instance is kept per
    thread and reused.
    """
    language = language.lower()
    if language not in SUPPORTED_LANGUAGES:
        raise ValueError(f"Unsupported language: {language}")

    cache: Dict[str, BaseExtractor] = getattr(_local, "extractors", None)
    if cache is None:
        cache = _local.extractors = {}

    extractor = cache.get(language)
    if extractor is None:
        extractor = _create_extractor(language)
        cache[language] = extractor
    return extractor


def _create_extractor(language: str) -> BaseExtractor:
    if language == "python":
        from .python import PythonExtractor
        return PythonExtractor()

    from .javascript import JavaScriptExtractor
    return JavaScriptExtractor(dialect=language)
