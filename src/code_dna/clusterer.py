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
Pair clusterer - groups files connected by similar-pair edges.

Two strategies:

greedy      Seed a cluster from each pair whose files are both unclaimed,
            then keep absorbing pairs that join one member to one unclaimed
            file until nothing changes. A file belongs to the first cluster
            that claims it, so the result depends on pair order and is not
            always the maximal connected component.

components  Union-find over all qualifying pairs; every connected
            component becomes one cluster.
"""

import logging
import re
from collections import Counter
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Mapping, Sequence, Union

from .config import CLUSTER_METHODS
from .models import Cluster, Fingerprint, SimilarPair, to_percent


logger = logging.getLogger(__name__)

FingerprintLookup = Union[Mapping[str, Fingerprint], Sequence[Fingerprint]]

# Keyword (substring of a file-name token) -> functionality tags
FUNCTIONALITY_CATEGORIES = {
    "data": ["data-processing", "transformation"],
    "api": ["api-client", "http-utils"],
    "util": ["utility-functions", "helpers"],
    "validat": ["validation", "sanitization"],
    "auth": ["authentication", "authorization"],
    "format": ["formatting", "parsing"],
    "pars": ["formatting", "parsing"],
    "cache": ["caching", "storage"],
    "log": ["logging", "monitoring"],
}
DEFAULT_FUNCTIONALITY = ["common-utilities", "shared-logic"]

_TOKEN_SPLIT = re.compile(r"[-_.\s]+")
_CAMEL_SPLIT = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def cluster_pairs(
    pairs: Sequence[SimilarPair],
    fingerprints: FingerprintLookup,
    min_similarity: float = 0.70,
    method: str = "greedy",
) -> List[Cluster]:
    """
    Group similar pairs into clusters.

    Args:
        pairs: SimilarPairs, usually sorted by similarity (highest first)
        fingerprints: Fingerprints of the paired files (list or path mapping)
        min_similarity: Pairs below this (0.0-1.0) are ignored
        method: "greedy" or "components"

    Returns:
        Clusters of two or more files, in order of their first pair
    """
    if method not in CLUSTER_METHODS:
        raise ValueError(f"Unknown cluster method: {method}")

    min_percent = to_percent(min_similarity)
    eligible = [p for p in pairs if p.similarity_percent >= min_percent]
    if not eligible:
        return []

    if method == "greedy":
        groups = _greedy_groups(eligible)
    else:
        groups = _component_groups(eligible)

    lookup = _as_lookup(fingerprints)

    clusters = []
    for members in groups:
        if len(members) < 2:
            continue
        member_set = set(members)
        internal = [p for p in eligible if p.path_a in member_set and p.path_b in member_set]
        clusters.append(_build_cluster(len(clusters) + 1, members, internal, lookup))

    logger.debug("Grouped %d pairs into %d clusters (%s)", len(eligible), len(clusters), method)
    return clusters


def _greedy_groups(pairs: List[SimilarPair]) -> List[List[str]]:
    claimed = set()
    groups = []

    for seed in pairs:
        if seed.path_a in claimed or seed.path_b in claimed:
            continue

        members = [seed.path_a, seed.path_b]
        member_set = set(members)
        claimed.update(members)

        grew = True
        while grew:
            grew = False
            for pair in pairs:
                has_a = pair.path_a in member_set
                has_b = pair.path_b in member_set
                if has_a == has_b:
                    continue
                newcomer = pair.path_b if has_a else pair.path_a
                if newcomer in claimed:
                    continue
                members.append(newcomer)
                member_set.add(newcomer)
                claimed.add(newcomer)
                grew = True

        groups.append(members)

    return groups


def _component_groups(pairs: List[SimilarPair]) -> List[List[str]]:
    parent: Dict[str, str] = {}

    def find(x: str) -> str:
        root = x
        while parent[root] != root:
            root = parent[root]
        while parent[x] != root:
            parent[x], x = root, parent[x]
        return root

    order: List[str] = []
    for pair in pairs:
        for path in (pair.path_a, pair.path_b):
            if path not in parent:
                parent[path] = path
                order.append(path)
        root_a, root_b = find(pair.path_a), find(pair.path_b)
        if root_a != root_b:
            parent[root_b] = root_a

    groups: Dict[str, List[str]] = {}
    for path in order:
        groups.setdefault(find(path), []).append(path)
    return list(groups.values())


def _as_lookup(fingerprints: FingerprintLookup) -> Mapping[str, Fingerprint]:
    if isinstance(fingerprints, Mapping):
        return fingerprints
    return {fp.path: fp for fp in fingerprints}


def _build_cluster(
    cluster_id: int,
    members: List[str],
    internal: List[SimilarPair],
    lookup: Mapping[str, Fingerprint],
) -> Cluster:
    """Aggregate member metrics into a Cluster."""
    found = [lookup[path] for path in members if path in lookup]
    count = len(found) or 1

    avg_similarity = sum(p.similarity_percent for p in internal) / (len(internal) or 1)

    return Cluster(
        cluster_id=cluster_id,
        member_paths=list(members),
        avg_similarity=avg_similarity,
        avg_complexity=sum(fp.features.complexity for fp in found) / count,
        avg_lines_of_code=sum(fp.lines_of_code for fp in found) / count,
        total_functions=sum(fp.features.function_count for fp in found),
        common_dependencies=find_common_dependencies(found),
        common_functionality_tags=infer_functionality(members),
        pairs=internal,
        language=found[0].language if found else None,
    )


def find_common_dependencies(fingerprints: Sequence[Fingerprint]) -> List[str]:
    """Dependencies imported by at least half of the fingerprints."""
    counts: Counter = Counter()
    for fp in fingerprints:
        counts.update(fp.features.dependencies)

    threshold = len(fingerprints) * 0.5
    return [dep for dep, count in counts.items() if count >= threshold]


def extract_keywords(paths: Iterable[str], limit: int = 3) -> List[str]:
    """Most frequent file-name tokens (longer than two characters)."""
    counts: Counter = Counter()
    for path in paths:
        stem = PurePosixPath(path.replace("\\", "/")).stem
        for part in _TOKEN_SPLIT.split(stem):
            for token in _CAMEL_SPLIT.split(part):
                if len(token) > 2:
                    counts[token.lower()] += 1

    # Counter.most_common keeps first-seen order among equal counts
    return [keyword for keyword, _ in counts.most_common(limit)]


def categorize_functionality(keywords: Sequence[str]) -> List[str]:
    """Map keywords to functionality tags."""
    for keyword in keywords:
        for key, tags in FUNCTIONALITY_CATEGORIES.items():
            if key in keyword:
                return list(tags)
    return list(DEFAULT_FUNCTIONALITY)


def infer_functionality(paths: Iterable[str]) -> List[str]:
    """Human-readable functionality tags for a group of files."""
    return categorize_functionality(extract_keywords(paths))
