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
Similarity scorer - finds similar fingerprint pairs via LSH candidates.

Only pairs that share at least one LSH bucket are compared; each candidate
is scored by the exact fraction of agreeing signature positions. Pairs that
never share a bucket are never reported, even if their true similarity is
above the threshold. That miss rate is governed by the band/row split (see
lsh.collision_probability) and is a recall property, not a guarantee.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Sequence, Tuple

from .errors import ConfigurationError
from .lsh import LSHIndex
from .minhash import is_empty_signature, signature_similarity
from .models import Fingerprint, SimilarPair, to_percent


logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.70
DEFAULT_NUM_BANDS = 16

DUPLICATE_PERCENT = 90
SIMILAR_PERCENT = 70


@dataclass
class ScoringStats:
    """Counters describing how much work a scoring run did."""

    fingerprints: int = 0
    indexed: int = 0              # fingerprints placed in the LSH index
    empty_signatures: int = 0     # fingerprints with no shingles
    buckets: int = 0
    candidate_pairs: int = 0
    comparisons: int = 0          # signature comparisons actually performed
    exact_matches: int = 0        # compared pairs with equal structural hashes
    pairs_found: int = 0

    @property
    def max_pairs(self) -> int:
        """Comparisons an all-pairs scan would need."""
        return self.fingerprints * (self.fingerprints - 1) // 2

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["max_pairs"] = self.max_pairs
        return data


def pair_similarity(fp_a: Fingerprint, fp_b: Fingerprint) -> float:
    """
    Similarity of two fingerprints (0.0-1.0).

    Files too small to have any shingles only match each other when their
    structural hashes are equal.
    """
    sig_a, sig_b = fp_a.min_hash_signature, fp_b.min_hash_signature
    if is_empty_signature(sig_a) or is_empty_signature(sig_b):
        if is_empty_signature(sig_a) and is_empty_signature(sig_b):
            return 1.0 if fp_a.structural_hash == fp_b.structural_hash else 0.0
        return 0.0
    return signature_similarity(sig_a, sig_b)


def find_similar(
    fingerprints: Sequence[Fingerprint],
    threshold: float = DEFAULT_THRESHOLD,
    num_bands: int = DEFAULT_NUM_BANDS,
) -> List[SimilarPair]:
    """
    Find fingerprint pairs with similarity at or above *threshold*.

    Args:
        fingerprints: Fingerprints to compare (all with the same signature length)
        threshold: Minimum similarity, 0.0-1.0, inclusive
        num_bands: LSH bands; must divide the signature length

    Returns:
        SimilarPairs sorted by similarity (highest first), ties in input order
    """
    pairs, _ = find_similar_with_stats(fingerprints, threshold, num_bands)
    return pairs


def find_similar_with_stats(
    fingerprints: Sequence[Fingerprint],
    threshold: float = DEFAULT_THRESHOLD,
    num_bands: int = DEFAULT_NUM_BANDS,
) -> Tuple[List[SimilarPair], ScoringStats]:
    """Same as find_similar, also returning the work counters."""
    if isinstance(threshold, bool) or not 0.0 <= threshold <= 1.0:
        raise ConfigurationError(f"threshold must be within [0, 1], got {threshold!r}")

    stats = ScoringStats(fingerprints=len(fingerprints))
    if len(fingerprints) < 2:
        return [], stats

    length = len(fingerprints[0].min_hash_signature)
    if num_bands < 1 or length % num_bands != 0:
        raise ConfigurationError(
            f"num_bands ({num_bands}) must evenly divide the signature length ({length})"
        )

    index = LSHIndex(num_bands=num_bands, rows_per_band=length // num_bands)
    empty_groups: Dict[Tuple[str, str], List[int]] = {}

    # Fan-in: build the bucket index single-threaded
    for idx, fp in enumerate(fingerprints):
        signature = fp.min_hash_signature
        if len(signature) != length:
            raise ConfigurationError(
                f"{fp.path}: signature length {len(signature)} differs from {length}"
            )
        if is_empty_signature(signature):
            stats.empty_signatures += 1
            empty_groups.setdefault((fp.language, fp.structural_hash), []).append(idx)
            continue
        index.add(idx, signature)
        stats.indexed += 1

    candidates = set(index.candidate_pairs())
    for members in empty_groups.values():
        for i in range(len(members)):
            for j in range(i + 1, len(members)):
                candidates.add((members[i], members[j]))

    stats.buckets = index.bucket_count
    stats.candidate_pairs = len(candidates)

    pairs: List[SimilarPair] = []
    for a, b in sorted(candidates):
        fp_a, fp_b = fingerprints[a], fingerprints[b]
        if fp_a.path == fp_b.path or fp_a.language != fp_b.language:
            continue

        stats.comparisons += 1
        if fp_a.structural_hash == fp_b.structural_hash:
            stats.exact_matches += 1

        similarity = pair_similarity(fp_a, fp_b)
        if similarity >= threshold:
            pairs.append(SimilarPair(
                path_a=fp_a.path,
                path_b=fp_b.path,
                similarity_percent=to_percent(similarity),
                hash_a=fp_a.structural_hash,
                hash_b=fp_b.structural_hash,
            ))

    pairs.sort(key=lambda p: p.similarity_percent, reverse=True)
    stats.pairs_found = len(pairs)

    logger.debug(
        "Scored %d of %d possible pairs (%d buckets), %d above %.2f",
        stats.comparisons, stats.max_pairs, stats.buckets, len(pairs), threshold,
    )
    return pairs, stats


def generate_statistics(
    fingerprints: Sequence[Fingerprint],
    pairs: Sequence[SimilarPair],
) -> Dict[str, Any]:
    """Corpus-level summary of fingerprints and similar pairs."""
    total_files = len(fingerprints)
    duplicates = [p for p in pairs if p.similarity_percent >= DUPLICATE_PERCENT]
    similar_count = sum(
        1 for p in pairs if SIMILAR_PERCENT <= p.similarity_percent < DUPLICATE_PERCENT
    )

    if total_files:
        avg_complexity = sum(fp.features.complexity for fp in fingerprints) / total_files
        avg_depth = sum(fp.features.depth for fp in fingerprints) / total_files
    else:
        avg_complexity = avg_depth = 0.0

    lines_by_path = {fp.path: fp.lines_of_code for fp in fingerprints}
    duplicate_lines = sum(lines_by_path.get(p.path_a, 0) for p in duplicates)

    return {
        "total_files": total_files,
        "total_functions": sum(fp.features.function_count for fp in fingerprints),
        "duplicate_pairs": len(duplicates),
        "similar_pairs": similar_count,
        "avg_complexity": round(avg_complexity, 2),
        "avg_depth": round(avg_depth, 2),
        "potential_savings": {
            "duplicate_lines": duplicate_lines,
            "estimated_reduction_percent": round(len(duplicates) / (total_files or 1) * 100, 1),
        },
    }
