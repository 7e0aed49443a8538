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
Source scanner - collects (path, content) pairs from a directory tree.
"""

import fnmatch
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .languages import DEFAULT_EXTENSIONS
from .models import SourceFile


logger = logging.getLogger(__name__)

# Directories never descended into
DEFAULT_IGNORE_DIRS = frozenset({
    "node_modules",
    ".git",
    "dist",
    "build",
    "coverage",
    "__pycache__",
    ".venv",
    "venv",
    ".tox",
    ".mypy_cache",
    ".pytest_cache",
})


def scan_directory(
    root_path: Path,
    extensions: Optional[Iterable[str]] = None,
    ignore_dirs: Optional[Iterable[str]] = None,
    exclude_patterns: Optional[Sequence[str]] = None,
    focus_patterns: Optional[Sequence[str]] = None,
) -> List[SourceFile]:
    """
    Read every matching source file under *root_path*.

    Args:
        root_path: Root directory to scan
        extensions: File extensions to include (default: .js .jsx .ts .tsx)
        ignore_dirs: Directory names to skip (added to defaults)
        exclude_patterns: Glob patterns (relative paths) to exclude
        focus_patterns: Only include files matching at least one of these

    Returns:
        SourceFiles with root-relative POSIX paths, sorted by path
    """
    root_path = Path(root_path)
    source_files = find_source_files(root_path, extensions, ignore_dirs, exclude_patterns, focus_patterns)

    with ThreadPoolExecutor(max_workers=os.cpu_count()) as executor:
        read = list(executor.map(lambda p: _read_file(p, root_path), source_files))

    return [source for source in read if source is not None]


def find_source_files(
    root_path: Path,
    extensions: Optional[Iterable[str]] = None,
    ignore_dirs: Optional[Iterable[str]] = None,
    exclude_patterns: Optional[Sequence[str]] = None,
    focus_patterns: Optional[Sequence[str]] = None,
) -> List[Path]:
    """Find matching files without reading them."""
    wanted = {_normalize_extension(e) for e in (extensions or DEFAULT_EXTENSIONS)}
    skipped_dirs = DEFAULT_IGNORE_DIRS | set(ignore_dirs or ())
    exclude_patterns = list(exclude_patterns or ())
    focus_patterns = list(focus_patterns or ())

    found = []
    for dirpath, dirnames, filenames in os.walk(root_path):
        dirnames[:] = sorted(d for d in dirnames if d not in skipped_dirs)

        for filename in filenames:
            file_path = Path(dirpath) / filename
            if file_path.suffix.lower() not in wanted:
                continue

            rel_path = file_path.relative_to(root_path).as_posix()

            if any(fnmatch.fnmatch(rel_path, pat) or fnmatch.fnmatch(filename, pat)
                   for pat in exclude_patterns):
                continue

            # Focus patterns: if given, a file must match at least one
            if focus_patterns and not any(
                fnmatch.fnmatch(rel_path, pat) or fnmatch.fnmatch(filename, pat)
                for pat in focus_patterns
            ):
                continue

            found.append(file_path)

    found.sort(key=lambda p: p.relative_to(root_path).as_posix())
    return found


def _normalize_extension(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


def _read_file(file_path: Path, root_path: Path) -> Optional[SourceFile]:
    try:
        content = file_path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning("Could not read %s: %s", file_path, e)
        return None

    return SourceFile(path=file_path.relative_to(root_path).as_posix(), content=content)
