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
Extraction planner - turns clusters into shared-library proposals.

A cluster qualifies for extraction only when it is large, similar, complex
and long enough; trivial boilerplate that happens to look alike is never
proposed. Qualifying clusters get a priority score, an impact estimate and
a step-by-step extraction plan.
"""

import json
import logging
import math
import posixpath
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .clusterer import FingerprintLookup, extract_keywords
from .config import EngineConfig
from .models import (
    AffectedFile,
    Cluster,
    ExtractionImpact,
    ExtractionMetrics,
    ExtractionPlan,
    ExtractionStep,
    ExtractionSuggestion,
    Fingerprint,
    Recommendation,
    RecommendationLevel,
    to_percent,
)


logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_priority(occurrences: int, complexity: float, loc: float, similarity: float) -> int:
    """
    Priority score 0-100.

    occurrences  10 per file, at most 40
    complexity   2 per point, at most 20
    loc          1 per 10 lines, at most 20
    similarity   percent / 5, at most 20
    """
    occurrence_score = min(occurrences * 10, 40)
    complexity_score = min(complexity * 2, 20)
    loc_score = min(loc / 10, 20)
    similarity_score = min(similarity / 100 * 20, 20)
    return round_half_up(occurrence_score + complexity_score + loc_score + similarity_score)


def calculate_impact(occurrences: int, avg_loc: float) -> ExtractionImpact:
    """Lines saved, maintenance reduction and effort of one extraction."""
    duplicate_lines = round_half_up((occurrences - 1) * avg_loc)
    total_lines = occurrences * avg_loc

    if occurrences > 5:
        risk = "High"
    elif occurrences > 3:
        risk = "Medium"
    else:
        risk = "Low"

    return ExtractionImpact(
        duplicate_lines=duplicate_lines,
        reduction_percent=round(duplicate_lines / total_lines * 100, 1) if total_lines else 0.0,
        maintenance_before=occurrences,
        maintenance_after=1,
        maintenance_reduction_percent=round((1 - 1 / occurrences) * 100, 1) if occurrences else 0.0,
        risk_level=risk,
        estimated_refactoring_hours=math.ceil(occurrences * avg_loc / 100),
    )


def recommend(priority: int, occurrences: int) -> Recommendation:
    """Band a priority score into a recommendation."""
    if priority >= 80:
        return Recommendation(
            level=RecommendationLevel.EXTRACT_IMMEDIATELY,
            severity="CRITICAL",
            reasoning=f"{occurrences} duplicates with significant maintenance burden.",
        )
    if priority >= 60:
        return Recommendation(
            level=RecommendationLevel.PLAN_NEXT_ITERATION,
            severity="HIGH",
            reasoning="Moderate duplication. Extracting it reduces technical debt.",
        )
    if priority >= 40:
        return Recommendation(
            level=RecommendationLevel.WATCH,
            severity="MEDIUM",
            reasoning="Some duplication present. Monitor for growth.",
        )
    return Recommendation(
        level=RecommendationLevel.NO_ACTION,
        severity="LOW",
        reasoning="Current duplication level is acceptable.",
    )


def is_worth_extracting(metrics: ExtractionMetrics, config: EngineConfig) -> bool:
    return (
        metrics.occurrences >= config.extraction_min_occurrences
        and metrics.avg_similarity >= to_percent(config.extraction_min_similarity)
        and metrics.avg_complexity >= config.extraction_min_complexity
        and metrics.avg_lines_of_code >= config.extraction_min_loc
    )


def generate_library_name(functionality: Sequence[str], language: Optional[str]) -> str:
    base = functionality[0] if functionality else "shared"
    base = re.sub(r"-+", "-", re.sub(r"[^a-z0-9-]", "-", base.lower())).strip("-") or "shared"

    if language == "python":
        return f"{base.replace('-', '_')}_lib"
    return f"@internal/{base}-lib"


def suggest_extractions(
    clusters: Sequence[Cluster],
    fingerprints: FingerprintLookup,
    config: Optional[EngineConfig] = None,
) -> List[ExtractionSuggestion]:
    """
    Extraction suggestions for the clusters that pass the worthiness gate.

    Returns:
        Suggestions sorted by priority (highest first); empty when no
        cluster qualifies
    """
    config = config or EngineConfig()
    if isinstance(fingerprints, Mapping):
        lookup = fingerprints
    else:
        lookup = {fp.path: fp for fp in fingerprints}

    suggestions = []
    for idx, cluster in enumerate(clusters):
        suggestion = analyze_cluster(cluster, lookup, idx)
        if is_worth_extracting(suggestion.metrics, config):
            suggestions.append(suggestion)

    suggestions.sort(key=lambda s: s.priority_score, reverse=True)
    logger.debug("%d of %d clusters qualify for extraction", len(suggestions), len(clusters))
    return suggestions


def analyze_cluster(
    cluster: Cluster,
    lookup: Mapping[str, Fingerprint],
    index: int = 0,
) -> ExtractionSuggestion:
    """Build the extraction suggestion for one cluster, without gating it."""
    members = [lookup[path] for path in cluster.member_paths if path in lookup]
    occurrences = cluster.size

    functionality = cluster.common_functionality_tags or ["common-utilities"]
    name = generate_library_name(functionality, cluster.language)

    priority = calculate_priority(
        occurrences,
        cluster.avg_complexity,
        cluster.avg_lines_of_code,
        cluster.avg_similarity,
    )

    metrics = ExtractionMetrics(
        occurrences=occurrences,
        avg_similarity=round(cluster.avg_similarity, 2),
        avg_complexity=round(cluster.avg_complexity, 2),
        avg_lines_of_code=round_half_up(cluster.avg_lines_of_code),
        total_functions=cluster.total_functions,
    )

    return ExtractionSuggestion(
        suggestion_id=f"extraction-{index + 1}",
        suggested_name=name,
        description=(
            f"Shared library for {functionality[0]} extracted from "
            f"{occurrences} duplicate implementations"
        ),
        affected_files=[
            AffectedFile(
                path=path,
                basename=posixpath.basename(path.replace("\\", "/")),
                directory=posixpath.dirname(path.replace("\\", "/")),
            )
            for path in cluster.member_paths
        ],
        metrics=metrics,
        priority_score=priority,
        extraction_plan=build_extraction_plan(members, name, cluster.language),
        impact=calculate_impact(occurrences, cluster.avg_lines_of_code),
        recommendation=recommend(priority, occurrences),
        patterns={
            "functionality": list(functionality),
            "keywords": extract_keywords(cluster.member_paths),
            "dependencies": list(cluster.common_dependencies),
            "avg_complexity": round(cluster.avg_complexity, 2),
        },
    )


def build_extraction_plan(
    fingerprints: Sequence[Fingerprint],
    library_name: str,
    language: Optional[str] = None,
) -> ExtractionPlan:
    """Ordered steps, library scaffold and migration guide for one cluster."""
    functions: List[Dict[str, Any]] = []
    dependencies: Dict[str, None] = {}

    for fp in fingerprints:
        for func in fp.functions:
            functions.append({
                "name": func.name,
                "kind": func.kind,
                "param_count": func.param_count,
                "lines": func.line_count,
                "file": fp.path,
            })
        for dep in fp.features.dependencies:
            dependencies.setdefault(dep, None)

    dependency_list = list(dependencies)
    is_python = language == "python"

    steps = [
        ExtractionStep(
            step=1,
            action="Create library package",
            description=f"Initialize a new package for {library_name}",
            details={"package": library_name},
        ),
        ExtractionStep(
            step=2,
            action="Extract common functions",
            description=f"Extract {len(functions)} functions into library exports",
            details={"affected_functions": len(functions)},
        ),
        ExtractionStep(
            step=3,
            action="Install dependencies",
            description="Add the shared dependencies to the library manifest",
            details={"dependencies": dependency_list},
        ),
        ExtractionStep(
            step=4,
            action="Update imports",
            description=f"Update {len(fingerprints)} files to import from {library_name}",
            details={"affected_files": len(fingerprints)},
        ),
        ExtractionStep(
            step=5,
            action="Test and validate",
            description="Run tests to ensure functionality is preserved",
        ),
    ]

    unique = _deduplicate_functions(functions)
    if is_python:
        scaffold = _python_scaffold(library_name, unique)
    else:
        scaffold = _javascript_scaffold(library_name, unique)

    return ExtractionPlan(
        steps=steps,
        functions=functions,
        dependencies=dependency_list,
        scaffold=scaffold,
        migration_guide=_migration_guide(functions, library_name, fingerprints, is_python),
    )


def _deduplicate_functions(functions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    seen: Dict[str, Dict[str, Any]] = {}
    for func in functions:
        seen.setdefault(func["name"], func)
    return list(seen.values())


def _function_list(functions: List[Dict[str, Any]]) -> str:
    return "\n".join(
        f"- `{f['name']}` - {f['kind']} with {f['param_count']} parameter(s), {f['lines']} lines" for f in functions
    )


def _javascript_scaffold(library_name: str, functions: List[Dict[str, Any]]) -> Dict[str, str]:
    names = [f["name"] for f in functions]
    first = names[0] if names else "functionName"

    package_json = json.dumps({
        "name": library_name,
        "version": "1.0.0",
        "description": "Shared utility library",
        "main": "index.js",
        "type": "module",
    }, indent=2)

    exports = "\n".join(f"export {{ {name} }} from './{name}.js';" for name in names)
    index_js = f"// {library_name}: extracted from duplicate code analysis\n\n{exports}\n"

    readme = (
        f"# {library_name}\n\n"
        "Shared library extracted from duplicate code analysis.\n\n"
        "## Usage\n\n"
        f"```javascript\nimport {{ {first} }} from '{library_name}';\n```\n\n"
        "## Available Functions\n\n"
        f"{_function_list(functions)}\n"
    )

    return {"package.json": package_json, "index.js": index_js, "README.md": readme}


def _python_scaffold(library_name: str, functions: List[Dict[str, Any]]) -> Dict[str, str]:
    names = [f["name"] for f in functions]
    first = names[0] if names else "function_name"

    pyproject = (
        "[project]\n"
        f'name = "{library_name.replace("_", "-")}"\n'
        'version = "1.0.0"\n'
        'description = "Shared utility library"\n'
    )

    all_names = ", ".join(f'"{name}"' for name in names)
    init_py = f'"""{library_name}: extracted from duplicate code analysis."""\n\n__all__ = [{all_names}]\n'

    readme = (
        f"# {library_name}\n\n"
        "Shared library extracted from duplicate code analysis.\n\n"
        "## Usage\n\n"
        f"```python\nfrom {library_name} import {first}\n```\n\n"
        "## Available Functions\n\n"
        f"{_function_list(functions)}\n"
    )

    return {"pyproject.toml": pyproject, f"{library_name}/__init__.py": init_py, "README.md": readme}


def _migration_guide(
    functions: List[Dict[str, Any]],
    library_name: str,
    fingerprints: Sequence[Fingerprint],
    is_python: bool,
) -> Dict[str, Any]:
    steps = []
    for fp in fingerprints:
        names = ", ".join(f["name"] for f in functions if f["file"] == fp.path)
        if is_python:
            statement = f"from {library_name} import {names}"
        else:
            statement = f"import {{ {names} }} from '{library_name}';"
        steps.append({
            "file": fp.path,
            "add_import": statement,
            "remove": f"Remove duplicate definitions: {names}",
        })

    return {
        "overview": f"Migrate {len(fingerprints)} files to use {library_name}",
        "steps": steps,
        "validation": "Run existing tests to ensure no regression",
    }


def summarize_suggestions(suggestions: Sequence[ExtractionSuggestion]) -> Dict[str, Any]:
    """Totals across all suggestions, by recommendation level."""
    by_level = {level.value: 0 for level in RecommendationLevel}
    for s in suggestions:
        by_level[s.recommendation_level.value] += 1

    total_lines = sum(s.impact.duplicate_lines for s in suggestions)
    total_hours = sum(s.impact.estimated_refactoring_hours for s in suggestions)

    return {
        "total_suggestions": len(suggestions),
        "by_level": by_level,
        "total_lines_reduced": total_lines,
        "estimated_hours": total_hours,
        "lines_per_hour": round(total_lines / total_hours) if total_hours else None,
        "top_suggestions": [
            {
                "library": s.suggested_name,
                "priority": s.priority_score,
                "occurrences": s.metrics.occurrences,
                "lines_reduced": s.impact.duplicate_lines,
            }
            for s in suggestions[:5]
        ],
    }
