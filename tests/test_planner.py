"""Tests for extraction planning."""

import pytest

from code_dna.config import EngineConfig
from code_dna.models import Cluster, FunctionInfo, RecommendationLevel
from code_dna.planner import (
    calculate_impact,
    calculate_priority,
    generate_library_name,
    recommend,
    suggest_extractions,
    summarize_suggestions,
)


def _cluster(paths, similarity=90.0, complexity=6.0, loc=40.0, language="javascript", cluster_id=1):
    return Cluster(
        cluster_id=cluster_id,
        member_paths=list(paths),
        avg_similarity=similarity,
        avg_complexity=complexity,
        avg_lines_of_code=loc,
        total_functions=len(paths),
        common_dependencies=["axios"],
        common_functionality_tags=["api-client", "http-utils"],
        language=language,
    )


@pytest.fixture
def api_fingerprints(make_fingerprint):
    paths = ["src/users/apiClient.js", "src/orders/apiClient.js", "src/billing/apiClient.js", "src/admin/apiClient.js"]
    return [
        make_fingerprint(
            path,
            range(128),
            dependencies=["axios"],
            functions=[FunctionInfo(name="fetchJson", kind="function", param_count=2, start_line=1, end_line=12)],
        )
        for path in paths
    ]


def test_priority_formula():
    """Test priority combines occurrences, complexity, size and similarity."""
    assert calculate_priority(4, 6, 40, 90) == 74
    assert calculate_priority(10, 50, 1000, 100) == 100
    assert calculate_priority(2, 0, 0, 0) == 20


def test_priority_rounds_half_up():
    # 30 + 10 + 2.5 + 0 = 42.5
    assert calculate_priority(3, 5, 25, 0) == 43


def test_recommendation_bands():
    """Test each priority band maps to one recommendation."""
    assert recommend(80, 5).level == RecommendationLevel.EXTRACT_IMMEDIATELY
    assert recommend(80, 5).severity == "CRITICAL"
    assert recommend(79, 5).level == RecommendationLevel.PLAN_NEXT_ITERATION
    assert recommend(60, 5).level == RecommendationLevel.PLAN_NEXT_ITERATION
    assert recommend(59, 5).level == RecommendationLevel.WATCH
    assert recommend(40, 5).level == RecommendationLevel.WATCH
    assert recommend(39, 5).level == RecommendationLevel.NO_ACTION
    assert recommend(39, 5).severity == "LOW"


def test_calculate_impact():
    """Test impact estimates for four 40-line copies."""
    impact = calculate_impact(4, 40)

    assert impact.duplicate_lines == 120
    assert impact.reduction_percent == 75.0
    assert impact.maintenance_before == 4
    assert impact.maintenance_after == 1
    assert impact.maintenance_reduction_percent == 75.0
    assert impact.risk_level == "Medium"
    assert impact.estimated_refactoring_hours == 2


def test_risk_levels():
    assert calculate_impact(3, 10).risk_level == "Low"
    assert calculate_impact(6, 10).risk_level == "High"


def test_generate_library_name():
    assert generate_library_name(["api-client"], "javascript") == "@internal/api-client-lib"
    assert generate_library_name(["data-processing"], "python") == "data_processing_lib"
    assert generate_library_name([], None) == "@internal/shared-lib"


def test_suggest_extraction_for_qualifying_cluster(api_fingerprints):
    """Test a four-file cluster is planned for the next iteration."""
    cluster = _cluster([fp.path for fp in api_fingerprints])

    suggestions = suggest_extractions([cluster], api_fingerprints)

    assert len(suggestions) == 1
    suggestion = suggestions[0]
    assert suggestion.priority_score == 74
    assert suggestion.recommendation_level == RecommendationLevel.PLAN_NEXT_ITERATION
    assert suggestion.suggested_name == "@internal/api-client-lib"
    assert suggestion.metrics.occurrences == 4
    assert suggestion.metrics.avg_lines_of_code == 40
    assert [f.basename for f in suggestion.affected_files] == ["apiClient.js"] * 4
    assert suggestion.affected_files[0].directory == "src/users"


def test_extraction_plan(api_fingerprints):
    """Test the plan lists steps, functions, scaffold and migration."""
    cluster = _cluster([fp.path for fp in api_fingerprints])
    plan = suggest_extractions([cluster], api_fingerprints)[0].extraction_plan

    assert [s.step for s in plan.steps] == [1, 2, 3, 4, 5]
    assert plan.steps[0].action == "Create library package"
    assert plan.steps[-1].action == "Test and validate"
    assert len(plan.functions) == 4
    assert plan.functions[0]["lines"] == 12
    assert "function with 2 parameter(s), 12 lines" in plan.scaffold["README.md"]
    assert plan.dependencies == ["axios"]
    assert set(plan.scaffold) == {"package.json", "index.js", "README.md"}
    assert "fetchJson" in plan.scaffold["index.js"]
    assert len(plan.migration_guide["steps"]) == 4
    assert "@internal/api-client-lib" in plan.migration_guide["steps"][0]["add_import"]


def test_python_cluster_gets_python_scaffold(make_fingerprint):
    fps = [make_fingerprint(f"pkg/m{i}/loader.py", range(128), language="python") for i in range(3)]
    cluster = _cluster([fp.path for fp in fps], language="python")

    plan = suggest_extractions([cluster], fps)[0].extraction_plan
    assert "pyproject.toml" in plan.scaffold
    assert plan.migration_guide["steps"][0]["add_import"].startswith("from api_client_lib import")


def test_gate_rejects_small_clusters(api_fingerprints):
    """Test clusters below the occurrence minimum are not suggested."""
    cluster = _cluster([fp.path for fp in api_fingerprints[:2]])
    assert suggest_extractions([cluster], api_fingerprints) == []


@pytest.mark.parametrize("overrides", [
    {"similarity": 84.0},
    {"complexity": 4.0},
    {"loc": 9.0},
])
def test_gate_rejects_weak_clusters(api_fingerprints, overrides):
    cluster = _cluster([fp.path for fp in api_fingerprints], **overrides)
    assert suggest_extractions([cluster], api_fingerprints) == []


def test_gate_follows_config(api_fingerprints):
    cluster = _cluster([fp.path for fp in api_fingerprints[:2]])
    config = EngineConfig(extraction_min_occurrences=2)
    assert len(suggest_extractions([cluster], api_fingerprints, config)) == 1


def test_suggestions_sorted_by_priority(api_fingerprints):
    paths = [fp.path for fp in api_fingerprints]
    low = _cluster(paths[:3], loc=20.0, cluster_id=1)
    high = _cluster(paths, loc=80.0, cluster_id=2)

    suggestions = suggest_extractions([low, high], api_fingerprints)
    assert [s.priority_score for s in suggestions] == sorted((s.priority_score for s in suggestions), reverse=True)
    assert suggestions[0].suggestion_id == "extraction-2"


def test_summarize_suggestions(api_fingerprints):
    cluster = _cluster([fp.path for fp in api_fingerprints])
    summary = summarize_suggestions(suggest_extractions([cluster], api_fingerprints))

    assert summary["total_suggestions"] == 1
    assert summary["by_level"]["plan next iteration"] == 1
    assert summary["total_lines_reduced"] == 120
    assert summary["top_suggestions"][0]["priority"] == 74


def test_suggestion_to_dict(api_fingerprints):
    cluster = _cluster([fp.path for fp in api_fingerprints])
    data = suggest_extractions([cluster], api_fingerprints)[0].to_dict()

    assert data["recommendation_level"] == "plan next iteration"
    assert data["recommendation"]["level"] == "plan next iteration"
    assert data["impact"]["duplicate_lines"] == 120


def test_similarity_gate_is_inclusive(api_fingerprints):
    """Test a cluster averaging exactly the minimum similarity is kept."""
    config = EngineConfig(extraction_min_similarity=0.55)
    paths = [fp.path for fp in api_fingerprints]

    assert len(suggest_extractions([_cluster(paths, similarity=55.0)], api_fingerprints, config)) == 1
    assert suggest_extractions([_cluster(paths, similarity=54.99)], api_fingerprints, config) == []
