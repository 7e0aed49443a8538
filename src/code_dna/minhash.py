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
MinHash signatures over node-type shingles.

The signature of a file is the vector of per-permutation minima over the
set of its node-type n-grams. The fraction of positions on which two
signatures agree estimates the Jaccard index of the two shingle sets.

All permutations are derived from a single 32-bit base hash (xxHash32)
through datasketch's universal hash family (a*x + b mod p), so they are a
practical approximation of independent hash functions, not a pairwise
independent family.
"""

from typing import Sequence, Set, Tuple

import numpy as np
import xxhash
from datasketch import MinHash


# Value of every signature position when the shingle set is empty
SENTINEL = 0xFFFFFFFF

DEFAULT_NUM_HASHES = 128
DEFAULT_SHINGLE_SIZE = 3
DEFAULT_SEED = 1

SHINGLE_SEPARATOR = "|"


def create_shingles(sequence: Sequence[str], size: int = DEFAULT_SHINGLE_SIZE) -> Set[str]:
    """All contiguous n-grams of *sequence*, deduplicated."""
    if size < 1:
        raise ValueError(f"shingle size must be positive, got {size}")
    return {
        SHINGLE_SEPARATOR.join(sequence[i:i + size])
        for i in range(len(sequence) - size + 1)
    }


def _hash_shingle(data: bytes) -> int:
    return xxhash.xxh32_intdigest(data)


def compute_minhash(shingles: Set[str], num_hashes: int = DEFAULT_NUM_HASHES, seed: int = DEFAULT_SEED) -> MinHash:
    """Build a datasketch MinHash from a shingle set."""
    mh = MinHash(
        num_perm=num_hashes,
        seed=seed,
        hashfunc=_hash_shingle,
    )
    if shingles:
        mh.update_batch([s.encode("utf-8") for s in shingles])
    return mh


def compute_signature(
    node_types: Sequence[str],
    num_hashes: int = DEFAULT_NUM_HASHES,
    shingle_size: int = DEFAULT_SHINGLE_SIZE,
    seed: int = DEFAULT_SEED,
) -> Tuple[int, ...]:
    """
    MinHash signature of a node-type sequence.

    Sequences shorter than *shingle_size* have no shingles; their signature
    is SENTINEL in every position.
    """
    shingles = create_shingles(node_types, shingle_size)
    mh = compute_minhash(shingles, num_hashes=num_hashes, seed=seed)
    return tuple(int(v) for v in mh.hashvalues)


def is_empty_signature(signature: Sequence[int]) -> bool:
    """True if the signature was computed over an empty shingle set."""
    return len(signature) > 0 and all(v == SENTINEL for v in signature)


def signature_similarity(sig_a: Sequence[int], sig_b: Sequence[int]) -> float:
    """
    Fraction of positions on which two signatures agree (0.0-1.0).

    Signatures of different lengths are not comparable and score 0. Two
    signatures of empty shingle sets also score 0.
    """
    if len(sig_a) != len(sig_b) or len(sig_a) == 0:
        return 0.0
    if is_empty_signature(sig_a) and is_empty_signature(sig_b):
        return 0.0

    a = np.asarray(sig_a, dtype=np.uint64)
    b = np.asarray(sig_b, dtype=np.uint64)
    return float(np.count_nonzero(a == b)) / len(a)


def exact_jaccard(a: Set[str], b: Set[str]) -> float:
    """Exact Jaccard index of two shingle sets."""
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)
