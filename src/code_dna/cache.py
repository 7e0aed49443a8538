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
Fingerprint cache for repeated analysis runs.

Fingerprints depend only on file content, dialect and the MinHash settings,
so unchanged files can skip parsing entirely. The cache is owned by the
caller and passed into the pipeline; the engine itself keeps no state
between calls. Entries are keyed by a SHA-256 hash of the content and
evicted least-recently-used once capacity is reached.
"""

import dataclasses
import hashlib
import threading
from collections import OrderedDict
from typing import Any, Dict, Optional

from .config import EngineConfig
from .models import Fingerprint


DEFAULT_CAPACITY = 10000


def get_content_hash(content: str, language: str = "", config: Optional[EngineConfig] = None) -> str:
    """
    Compute the cache key for one file.

    Args:
        content: File content
        language: Dialect the content is parsed as
        config: Engine settings (only the fingerprint-relevant ones are used)

    Returns:
        Hex-encoded SHA-256 hash
    """
    config = config or EngineConfig()
    hasher = hashlib.sha256()
    hasher.update(language.encode("utf-8"))
    hasher.update(b"\0")
    hasher.update(config.cache_key.encode("utf-8"))
    hasher.update(b"\0")
    hasher.update(content.encode("utf-8", errors="surrogatepass"))
    return hasher.hexdigest()


class FingerprintCache:
    """Bounded LRU cache of fingerprints keyed by content hash."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._entries: "OrderedDict[str, Fingerprint]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str, path: Optional[str] = None) -> Optional[Fingerprint]:
        """
        Look up a fingerprint.

        The same content may live under several paths, so the cached
        fingerprint is returned re-labelled with *path* when one is given.
        """
        with self._lock:
            fingerprint = self._entries.get(key)
            if fingerprint is None:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1

        if path is not None and path != fingerprint.path:
            return dataclasses.replace(fingerprint, path=path)
        return fingerprint

    def put(self, key: str, fingerprint: Fingerprint) -> None:
        with self._lock:
            self._entries[key] = fingerprint
            self._entries.move_to_end(key)
            while len(self._entries) > self.capacity:
                self._entries.popitem(last=False)
                self.evictions += 1

    def clear(self) -> int:
        """
        Remove every entry.

        Returns:
            Number of entries removed
        """
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        return count

    def stats(self) -> Dict[str, Any]:
        lookups = self.hits + self.misses
        return {
            "entries": len(self._entries),
            "capacity": self.capacity,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "hit_rate": round(self.hits / lookups, 4) if lookups else 0.0,
        }
