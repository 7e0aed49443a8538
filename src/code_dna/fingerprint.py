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
Structural fingerprints - parse, canonicalize, hash.

A fingerprint captures the shape of a file's syntax tree with identifiers
and literal values stripped, so renaming variables or changing constants
leaves it unchanged.
"""

import hashlib
import json
from typing import Any, Dict, Optional

from .config import EngineConfig
from .errors import ParseError
from .languages import detect_language, get_extractor, language_family
from .minhash import compute_signature
from .models import FeatureSet, Fingerprint, FingerprintFeatures


def parse(source_text: str, file_id: str, language: Optional[str] = None) -> FeatureSet:
    """
    Parse source text into a structural feature set.

    Args:
        source_text: Full file content
        file_id: Identifier used in error messages (usually the path)
        language: Dialect to parse as; detected from file_id when omitted

    Raises:
        ParseError: on syntax errors or when no grammar matches the file
    """
    language = language or detect_language(file_id)
    if not language:
        raise ParseError(file_id, "no grammar for this file type")

    try:
        extractor = get_extractor(language)
    except ValueError as e:
        raise ParseError(file_id, str(e)) from e

    return extractor.extract(source_text, file_id)


def canonicalize(features: FeatureSet) -> Dict[str, Any]:
    """Identifier- and literal-free summary of a feature set."""
    return {
        "node_seq": ",".join(features.node_types),
        "control_flow_seq": ",".join(features.control_flow),
        "function_count": features.function_count,
        "complexity": features.complexity,
        "depth": features.depth,
        "dependency_count": len(features.dependencies),
    }


def structural_hash(features: FeatureSet) -> str:
    """SHA-256 hex digest of the canonical form of *features*."""
    canonical = json.dumps(canonicalize(features), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    return len(content.split("\n"))


def generate_fingerprint(
    path: str,
    content: str,
    config: Optional[EngineConfig] = None,
    language: Optional[str] = None,
) -> Fingerprint:
    """
    Generate the complete fingerprint for one source file.

    Raises:
        ParseError: if the file cannot be parsed
    """
    config = config or EngineConfig()
    language = language or detect_language(path)

    features = parse(content, path, language)
    signature = compute_signature(
        features.node_types,
        num_hashes=config.num_hashes,
        shingle_size=config.shingle_size,
        seed=config.minhash_seed,
    )

    return Fingerprint(
        path=path,
        structural_hash=structural_hash(features),
        min_hash_signature=signature,
        features=FingerprintFeatures.from_feature_set(features),
        functions=features.functions,
        language=language_family(language),
        lines_of_code=count_lines(content),
    )
