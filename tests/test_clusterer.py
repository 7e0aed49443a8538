"""Tests for grouping similar pairs into clusters."""

import pytest

from code_dna.clusterer import (
    categorize_functionality,
    cluster_pairs,
    extract_keywords,
    find_common_dependencies,
    infer_functionality,
)
from code_dna.models import SimilarPair
from code_dna.scorer import find_similar


def _pair(a: str, b: str, percent: float) -> SimilarPair:
    return SimilarPair(path_a=a, path_b=b, similarity_percent=percent, hash_a=f"h-{a}", hash_b=f"h-{b}")


@pytest.fixture
def fingerprints(make_fingerprint):
    return [
        make_fingerprint("src/a.js", range(128), complexity=4, lines_of_code=20, dependencies=["lodash", "axios"]),
        make_fingerprint("src/b.js", range(128), complexity=6, lines_of_code=40, dependencies=["lodash"]),
        make_fingerprint("src/c.js", range(128), complexity=8, lines_of_code=60, dependencies=["react"]),
        make_fingerprint("src/d.js", range(128), complexity=2, lines_of_code=10),
        make_fingerprint("src/e.js", range(128)),
    ]


def test_cluster_members_and_aggregates(fingerprints):
    """Test a connected group becomes one cluster with averaged metrics."""
    pairs = [_pair("src/a.js", "src/b.js", 90.0), _pair("src/b.js", "src/c.js", 80.0)]

    clusters = cluster_pairs(pairs, fingerprints)

    assert len(clusters) == 1
    cluster = clusters[0]
    assert cluster.cluster_id == 1
    assert cluster.member_paths == ["src/a.js", "src/b.js", "src/c.js"]
    assert cluster.avg_similarity == pytest.approx(85.0)
    assert cluster.avg_complexity == pytest.approx(6.0)
    assert cluster.avg_lines_of_code == pytest.approx(40.0)
    assert cluster.common_dependencies == ["lodash"]
    assert cluster.language == "javascript"


def test_clusters_always_have_two_members(fingerprints):
    pairs = [_pair("src/a.js", "src/b.js", 90.0), _pair("src/d.js", "src/e.js", 75.0)]

    clusters = cluster_pairs(pairs, fingerprints)
    assert [c.size for c in clusters] == [2, 2]
    assert all(c.size >= 2 for c in clusters)


def test_pairs_below_threshold_ignored(fingerprints):
    """Test pairs under the clustering threshold form no cluster."""
    pairs = [_pair("src/a.js", "src/b.js", 65.0)]
    assert cluster_pairs(pairs, fingerprints, min_similarity=0.70) == []
    assert len(cluster_pairs(pairs, fingerprints, min_similarity=0.60)) == 1


def test_greedy_first_cluster_wins(fingerprints):
    """Test a file claimed by one cluster is not placed in another."""
    pairs = [
        _pair("src/a.js", "src/b.js", 95.0),
        _pair("src/c.js", "src/d.js", 92.0),
        _pair("src/b.js", "src/c.js", 71.0),
    ]

    clusters = cluster_pairs(pairs, fingerprints, method="greedy")

    seen = [path for c in clusters for path in c.member_paths]
    assert len(seen) == len(set(seen))
    assert clusters[0].member_paths[:2] == ["src/a.js", "src/b.js"]


def test_components_method(fingerprints):
    """Test union-find clustering groups connected components."""
    pairs = [
        _pair("src/a.js", "src/b.js", 95.0),
        _pair("src/d.js", "src/e.js", 92.0),
        _pair("src/b.js", "src/c.js", 71.0),
    ]

    clusters = cluster_pairs(pairs, fingerprints, method="components")

    assert [sorted(c.member_paths) for c in clusters] == [
        ["src/a.js", "src/b.js", "src/c.js"],
        ["src/d.js", "src/e.js"],
    ]
    assert clusters[0].avg_similarity == pytest.approx(83.0)


def test_methods_agree_on_membership(fingerprints):
    pairs = [
        _pair("src/a.js", "src/b.js", 95.0),
        _pair("src/c.js", "src/d.js", 92.0),
        _pair("src/b.js", "src/c.js", 71.0),
    ]
    greedy = cluster_pairs(pairs, fingerprints, method="greedy")
    components = cluster_pairs(pairs, fingerprints, method="components")

    assert sorted(sorted(c.member_paths) for c in greedy) == sorted(sorted(c.member_paths) for c in components)


def test_unknown_method_rejected(fingerprints):
    with pytest.raises(ValueError):
        cluster_pairs([_pair("src/a.js", "src/b.js", 90.0)], fingerprints, method="kmeans")


def test_cluster_accepts_fingerprint_mapping(fingerprints):
    lookup = {fp.path: fp for fp in fingerprints}
    clusters = cluster_pairs([_pair("src/a.js", "src/b.js", 90.0)], lookup)
    assert clusters[0].total_functions == 0


def test_find_common_dependencies(fingerprints):
    """Test dependencies shared by at least half the files."""
    assert find_common_dependencies(fingerprints[:2]) == ["lodash", "axios"]
    assert find_common_dependencies(fingerprints[:3]) == ["lodash"]


def test_extract_keywords():
    """Test file-name tokens are split and counted."""
    paths = ["src/userService.js", "lib/user-service.js", "app/user_validator.ts"]
    assert extract_keywords(paths) == ["user", "service", "validator"]


def test_categorize_functionality():
    assert categorize_functionality(["api", "client"]) == ["api-client", "http-utils"]
    assert categorize_functionality(["validator"]) == ["validation", "sanitization"]
    assert categorize_functionality(["zebra"]) == ["common-utilities", "shared-logic"]


def test_infer_functionality():
    assert infer_functionality(["a/dataLoader.js", "b/data_loader.js"]) == ["data-processing", "transformation"]


def test_threshold_matches_scorer_scale(make_fingerprint):
    """Test a pair scored exactly at the cluster threshold is kept."""
    base = list(range(100, 120))
    other = base[:11] + list(range(9))   # 11 of 20 positions agree
    fps = [make_fingerprint("src/a.js", base), make_fingerprint("src/b.js", other)]

    pairs = find_similar(fps, threshold=0.55, num_bands=5)
    assert [p.similarity_percent for p in pairs] == [55.0]

    clusters = cluster_pairs(pairs, fps, min_similarity=0.55)
    assert len(clusters) == 1
    assert clusters[0].member_paths == ["src/a.js", "src/b.js"]

    assert cluster_pairs([_pair("src/a.js", "src/b.js", 54.99)], fps, min_similarity=0.55) == []
