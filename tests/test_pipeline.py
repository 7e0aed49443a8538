"""End-to-end tests for the batch engine."""

import pytest

from code_dna.cache import FingerprintCache
from code_dna.config import EngineConfig
from code_dna.errors import EmptyInputWarning
from code_dna.models import SourceFile
from code_dna.pipeline import analyze_files, fingerprint_files


def test_renamed_copies_form_one_cluster(duplicate_sources):
    """Test three renamed copies pair up and cluster together."""
    result = analyze_files(duplicate_sources, workers=1)

    assert len(result.fingerprints) == 3
    assert len(result.pairs) == 3
    assert all(p.similarity_percent >= 95 for p in result.pairs)

    assert len(result.clusters) == 1
    assert sorted(result.clusters[0].member_paths) == sorted(path for path, _ in duplicate_sources)

    assert len(result.suggestions) == 1
    assert result.suggestions[0].metrics.occurrences == 3


def test_parse_failures_are_isolated(duplicate_sources, broken_js):
    """Test one broken file does not stop the others."""
    files = duplicate_sources + [("src/broken.js", broken_js)]

    result = analyze_files(files, workers=1)

    assert len(result.fingerprints) == 3
    assert [f.path for f in result.failures] == ["src/broken.js"]
    assert result.statistics["parse_failures"] == 1
    assert len(result.clusters) == 1


def test_unsupported_files_become_failures(duplicate_sources):
    files = duplicate_sources + [("notes.txt", "plain text")]
    fingerprints, failures = fingerprint_files(files, workers=1)

    assert len(fingerprints) == 3
    assert failures[0].path == "notes.txt"


def test_empty_input_warns():
    """Test an empty run warns and returns an empty result."""
    with pytest.warns(EmptyInputWarning):
        result = analyze_files([])

    assert result.fingerprints == []
    assert result.pairs == []
    assert result.statistics["total_files"] == 0


def test_all_failures_warn(broken_js):
    with pytest.warns(EmptyInputWarning):
        result = analyze_files([("a.js", broken_js)], workers=1)
    assert len(result.failures) == 1


def test_results_keep_input_order(duplicate_sources, array_js):
    files = [SourceFile(path, content) for path, content in duplicate_sources]
    files.insert(1, SourceFile("src/values.js", array_js))

    fingerprints, _ = fingerprint_files(files, workers=1)
    assert [fp.path for fp in fingerprints] == [f.path for f in files]


def test_process_pool_matches_in_process(duplicate_sources, array_js, loop_js):
    """Test parallel fingerprinting gives the same result as sequential."""
    files = duplicate_sources + [("values.js", array_js), ("loop.js", loop_js)]

    sequential, _ = fingerprint_files(files, workers=1)
    parallel, _ = fingerprint_files(files, workers=2)

    assert parallel == sequential


def test_progress_callback(duplicate_sources):
    calls = []
    fingerprint_files(duplicate_sources, workers=1, on_progress=lambda c, t, m: calls.append((c, t)))
    assert calls == [(1, 3), (2, 3), (3, 3)]


def test_cache_reuses_fingerprints(duplicate_sources):
    """Test a second run is served from the cache."""
    cache = FingerprintCache()

    first, _ = fingerprint_files(duplicate_sources, workers=1, cache=cache)
    assert cache.misses == 3

    second, _ = fingerprint_files(duplicate_sources, workers=1, cache=cache)
    assert cache.hits == 3
    assert second == first


def test_cache_relabels_moved_files(duplicate_sources):
    cache = FingerprintCache()
    path, content = duplicate_sources[0]
    fingerprint_files([(path, content)], workers=1, cache=cache)

    moved, _ = fingerprint_files([("lib/moved.js", content)], workers=1, cache=cache)
    assert cache.hits == 1
    assert moved[0].path == "lib/moved.js"


def test_config_controls_thresholds(duplicate_sources):
    """Test clustering and planning follow the engine config."""
    config = EngineConfig(extraction_min_occurrences=4)
    result = analyze_files(duplicate_sources, config=config, workers=1)

    assert len(result.clusters) == 1
    assert result.suggestions == []


def test_components_clustering(duplicate_sources):
    result = analyze_files(duplicate_sources, config=EngineConfig(cluster_method="components"), workers=1)
    assert len(result.clusters) == 1


def test_result_to_dict(duplicate_sources):
    data = analyze_files(duplicate_sources, workers=1).to_dict()

    assert data["statistics"]["total_files"] == 3
    assert data["scoring"]["pairs_found"] == 3
    assert len(data["clusters"]) == 1
    assert data["summary"]["total_suggestions"] == 1


def test_unencodable_source_is_isolated(duplicate_sources):
    """Test text with a lone surrogate fails alone instead of aborting the run."""
    files = duplicate_sources + [("src/bad.js", "const x = '\ud800';\n")]

    result = analyze_files(files, workers=1)

    assert len(result.fingerprints) == 3
    assert [f.path for f in result.failures] == ["src/bad.js"]
    assert "UTF-8" in result.failures[0].message
    assert len(result.clusters) == 1


def test_unencodable_source_with_cache(duplicate_sources):
    cache = FingerprintCache()
    files = duplicate_sources + [("src/bad.js", "const x = '\ud800';\n")]

    fingerprints, failures = fingerprint_files(files, workers=1, cache=cache)

    assert len(fingerprints) == 3
    assert failures[0].path == "src/bad.js"


def test_analysis_is_deterministic(duplicate_sources, array_js, loop_js):
    """Test repeated runs give the same pairs and clusters in the same order."""
    files = duplicate_sources + [("values.js", array_js), ("loop.js", loop_js)]

    first = analyze_files(files, workers=1)
    second = analyze_files(files, workers=1)
    parallel = analyze_files(files, workers=2)

    for other in (second, parallel):
        assert other.pairs == first.pairs
        assert [c.member_paths for c in other.clusters] == [c.member_paths for c in first.clusters]
        assert other.clusters == first.clusters
        assert other.suggestions == first.suggestions
