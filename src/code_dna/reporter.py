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
Report generator - formats analysis results for output.

Supports text, markdown, and json output formats.
"""

import json
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, List

from . import __version__

if TYPE_CHECKING:
    from .pipeline import AnalysisResult


class OutputFormat(Enum):
    TEXT = "text"
    MARKDOWN = "markdown"
    JSON = "json"


# Pairs listed per report; the JSON report always has all of them
MAX_LISTED_PAIRS = 25


def report_analysis(
    result: "AnalysisResult",
    root_path: Path,
    threshold: float,
    output_format: OutputFormat = OutputFormat.TEXT,
) -> str:
    """
    Generate a report of an analysis run.

    Args:
        result: AnalysisResult from analyze_files
        root_path: Root path (for display)
        threshold: Similarity threshold used
        output_format: Desired output format

    Returns:
        Formatted report string
    """
    if output_format == OutputFormat.TEXT:
        return _format_text(result, root_path, threshold)
    elif output_format == OutputFormat.MARKDOWN:
        return _format_markdown(result, root_path, threshold)
    elif output_format == OutputFormat.JSON:
        return _format_json(result, root_path, threshold)
    else:
        raise ValueError(f"Unknown format: {output_format}")


def _format_text(result: "AnalysisResult", root_path: Path, threshold: float) -> str:
    """Plain text format with unicode decorations."""
    stats = result.statistics
    lines = []

    lines.append(f"🧬 Analyzed {stats.get('total_files', 0)} files in {root_path}")
    lines.append(
        f"   Threshold: {threshold:.0%} | Similar pairs: {len(result.pairs)} "
        f"| Clusters: {len(result.clusters)} | Suggestions: {len(result.suggestions)}"
    )
    if result.failures:
        lines.append(f"   Parse failures: {len(result.failures)}")
    lines.append("")

    if result.pairs:
        lines.append("━" * 70)
        lines.append("Similar Pairs")
        lines.append("━" * 70)
        for pair in result.pairs[:MAX_LISTED_PAIRS]:
            lines.append(f"   • {pair.similarity_percent:6.2f}%  {pair.path_a} ↔ {pair.path_b}")
        if len(result.pairs) > MAX_LISTED_PAIRS:
            lines.append(f"   ... and {len(result.pairs) - MAX_LISTED_PAIRS} more")
        lines.append("")

    for cluster in result.clusters:
        lines.append("━" * 70)
        lines.append(f"Cluster #{cluster.cluster_id}: Similarity {cluster.avg_similarity:.1f}%")
        lines.append(
            f"Files: {cluster.size} | Avg complexity: {cluster.avg_complexity:.1f} "
            f"| Avg lines: {cluster.avg_lines_of_code:.0f}"
        )
        lines.append("━" * 70)
        lines.append("")
        lines.append("📍 Members:")
        for path in cluster.member_paths:
            lines.append(f"   • {path}")
        if cluster.common_functionality_tags:
            lines.append(f"   🏷️  {', '.join(cluster.common_functionality_tags)}")
        lines.append("")

    for suggestion in result.suggestions:
        lines.append("━" * 70)
        lines.append(f"💡 {suggestion.suggested_name} (priority {suggestion.priority_score})")
        lines.append("━" * 70)
        lines.append(f"   {suggestion.description}")
        lines.append(
            f"   Recommendation: {suggestion.recommendation.severity} - "
            f"{suggestion.recommendation_level.value}"
        )
        lines.append(f"   {suggestion.recommendation.reasoning}")
        lines.append(
            f"   Impact: ~{suggestion.impact.duplicate_lines} lines, "
            f"{suggestion.impact.risk_level} risk, ~{suggestion.impact.estimated_refactoring_hours}h"
        )
        for step in suggestion.extraction_plan.steps:
            lines.append(f"     {step.step}. {step.action}: {step.description}")
        lines.append("")

    for failure in result.failures:
        lines.append(f"⚠️  {failure.path}: {failure.message}")

    return "\n".join(lines)


def _format_markdown(result: "AnalysisResult", root_path: Path, threshold: float) -> str:
    """Markdown format for documentation."""
    stats = result.statistics
    savings = stats.get("potential_savings", {})
    lines = []

    lines.append("# Code DNA Report")
    lines.append("")
    lines.append(f"**Path:** `{root_path}`  ")
    lines.append(f"**Threshold:** {threshold:.0%}  ")
    lines.append(f"**Files Analyzed:** {stats.get('total_files', 0)}  ")
    lines.append(f"**Functions:** {stats.get('total_functions', 0)}  ")
    lines.append(f"**Duplicate Pairs (≥90%):** {stats.get('duplicate_pairs', 0)}  ")
    lines.append(f"**Similar Pairs (70-90%):** {stats.get('similar_pairs', 0)}  ")
    lines.append(f"**Potential Savings:** ~{savings.get('duplicate_lines', 0)} lines")
    lines.append("")

    if result.suggestions:
        lines.append("## Extraction Opportunities")
        lines.append("")
        lines.append("| Library | Priority | Files | Similarity | Lines Saved | Recommendation |")
        lines.append("|---------|----------|-------|------------|-------------|----------------|")
        for s in result.suggestions:
            lines.append(
                f"| `{s.suggested_name}` | {s.priority_score} | {s.metrics.occurrences} "
                f"| {s.metrics.avg_similarity:.1f}% | {s.impact.duplicate_lines} "
                f"| {s.recommendation_level.value} |"
            )
        lines.append("")

        for s in result.suggestions:
            lines.append(f"### {s.suggested_name}")
            lines.append("")
            lines.append(s.description)
            lines.append("")
            lines.append(f"**{s.recommendation.severity}:** {s.recommendation.reasoning}")
            lines.append("")
            for step in s.extraction_plan.steps:
                lines.append(f"{step.step}. **{step.action}** - {step.description}")
            lines.append("")
            lines.append("Affected files:")
            lines.append("")
            for affected in s.affected_files:
                lines.append(f"- `{affected.path}`")
            lines.append("")

    if result.clusters:
        lines.append("## Clusters")
        lines.append("")
        for cluster in result.clusters:
            lines.append(f"### Cluster {cluster.cluster_id}: {cluster.avg_similarity:.1f}% Similarity")
            lines.append("")
            lines.append(
                f"**{cluster.size} files**, avg complexity {cluster.avg_complexity:.1f}, "
                f"avg {cluster.avg_lines_of_code:.0f} lines"
            )
            lines.append("")
            for path in cluster.member_paths:
                lines.append(f"- `{path}`")
            lines.append("")

    if result.pairs:
        lines.append("## Similar Pairs")
        lines.append("")
        lines.append("| File A | File B | Similarity | Category |")
        lines.append("|--------|--------|------------|----------|")
        for pair in result.pairs[:MAX_LISTED_PAIRS]:
            lines.append(
                f"| `{pair.path_a}` | `{pair.path_b}` | {pair.similarity_percent:.2f}% | {pair.category} |"
            )
        lines.append("")

    if result.failures:
        lines.append("## Parse Failures")
        lines.append("")
        for failure in result.failures:
            lines.append(f"- `{failure.path}`: {failure.message}")
        lines.append("")

    return "\n".join(lines)


def _format_json(result: "AnalysisResult", root_path: Path, threshold: float) -> str:
    """JSON format for programmatic use."""
    data = {
        "meta": {
            "path": str(root_path),
            "threshold": threshold,
            "version": __version__,
            "timestamp": datetime.now().isoformat(),
        },
    }
    data.update(result.to_dict())
    return json.dumps(data, indent=2)


def format_summary(result: "AnalysisResult") -> List[str]:
    """Short terminal summary lines."""
    stats = result.statistics
    lines = [
        f"   Files: {stats.get('total_files', 0)} | Functions: {stats.get('total_functions', 0)}",
        f"   Similar pairs: {len(result.pairs)} | Clusters: {len(result.clusters)}",
    ]
    for s in result.suggestions[:3]:
        lines.append(
            f"   💡 {s.suggested_name}: {s.metrics.occurrences} files, "
            f"priority {s.priority_score} ({s.recommendation_level.value})"
        )
    return lines
