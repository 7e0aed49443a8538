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
Locality-sensitive hashing over MinHash signatures.

A signature of num_bands * rows_per_band values is cut into num_bands
contiguous slices. Two signatures that agree on every value of at least one
slice land in the same bucket and become a candidate pair. For Jaccard
similarity s the chance of that is 1 - (1 - s**rows)**bands, so similar
files are found without comparing every pair, at the cost of occasional
false negatives.
"""

import hashlib
from typing import Dict, List, Sequence, Set, Tuple

from .errors import ConfigurationError
from .models import LSHBand


def bucket_id(values: Sequence[int]) -> str:
    """Hash one band slice into a bucket id."""
    return hashlib.md5(",".join(str(v) for v in values).encode("ascii")).hexdigest()


def generate_bands(signature: Sequence[int], num_bands: int, rows_per_band: int) -> List[LSHBand]:
    """Split a signature into bands and hash each one."""
    if num_bands * rows_per_band != len(signature):
        raise ConfigurationError(
            f"num_bands ({num_bands}) * rows_per_band ({rows_per_band}) "
            f"!= signature length ({len(signature)})"
        )

    bands = []
    for band in range(num_bands):
        start = band * rows_per_band
        band_slice = tuple(signature[start:start + rows_per_band])
        bands.append(LSHBand(
            band_index=band,
            bucket_id=bucket_id(band_slice),
            band_signature_slice=band_slice,
        ))
    return bands


def collision_probability(similarity: float, num_bands: int, rows_per_band: int) -> float:
    """Probability that two signatures with Jaccard *similarity* share a bucket."""
    return 1.0 - (1.0 - similarity ** rows_per_band) ** num_bands


class LSHIndex:
    """Bucket index from (band, bucket id) to the items hashed there."""

    def __init__(self, num_bands: int = 16, rows_per_band: int = 8) -> None:
        self.num_bands = num_bands
        self.rows_per_band = rows_per_band
        self._buckets: Dict[Tuple[int, str], List[int]] = {}
        self._size = 0

    def __len__(self) -> int:
        return self._size

    # --------------------------------------------------
    # Mutation
    # --------------------------------------------------

    def add(self, item: int, signature: Sequence[int]) -> List[LSHBand]:
        """Index *signature* under the integer key *item*."""
        bands = generate_bands(signature, self.num_bands, self.rows_per_band)
        for band in bands:
            self._buckets.setdefault((band.band_index, band.bucket_id), []).append(item)
        self._size += 1
        return bands

    # --------------------------------------------------
    # Queries
    # --------------------------------------------------

    @property
    def bucket_count(self) -> int:
        return len(self._buckets)

    def query(self, signature: Sequence[int]) -> Set[int]:
        """Items sharing at least one bucket with *signature*."""
        found: Set[int] = set()
        for band in generate_bands(signature, self.num_bands, self.rows_per_band):
            found.update(self._buckets.get((band.band_index, band.bucket_id), ()))
        return found

    def candidate_pairs(self) -> List[Tuple[int, int]]:
        """
        Every unordered pair of items sharing a bucket, deduplicated
        across bands and sorted.
        """
        pairs: Set[Tuple[int, int]] = set()
        for items in self._buckets.values():
            if len(items) < 2:
                continue
            for i in range(len(items)):
                for j in range(i + 1, len(items)):
                    a, b = items[i], items[j]
                    if a == b:
                        continue
                    pairs.add((a, b) if a < b else (b, a))
        return sorted(pairs)
