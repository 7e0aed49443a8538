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
Data models for code-dna.

Everything the engine returns is plain data: frozen dataclasses for the
per-file records, regular dataclasses for the derived cluster/plan records.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from pathlib import PurePosixPath
from typing import Any, Dict, FrozenSet, List, Optional, Tuple


def to_percent(fraction: float) -> float:
    """Fraction (0.0-1.0) as a percentage rounded to 2 decimals."""
    return round(fraction * 100, 2)


@dataclass(frozen=True)
class SourceFile:
    """A file handed to the engine by the caller."""

    path: str
    content: str


@dataclass(frozen=True)
class FunctionInfo:
    """A function, method or lambda found in a source file."""

    name: str
    kind: str                # "function", "arrow", "method", "lambda", ...
    param_count: int
    is_async: bool = False
    is_generator: bool = False
    start_line: int = 0      # 1-indexed
    end_line: int = 0        # inclusive

    @property
    def source_span(self) -> Tuple[int, int]:
        return (self.start_line, self.end_line)

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["source_span"] = list(self.source_span)
        return data


@dataclass(frozen=True)
class FeatureSet:
    """Raw structural features extracted from one syntax tree."""

    node_types: Tuple[str, ...]
    control_flow: Tuple[str, ...]
    complexity: int
    depth: int
    functions: Tuple[FunctionInfo, ...]
    dependencies: Tuple[str, ...]   # deduplicated, first-seen order

    @property
    def node_count(self) -> int:
        return len(self.node_types)

    @property
    def function_count(self) -> int:
        return len(self.functions)


@dataclass(frozen=True)
class FingerprintFeatures:
    """Summary features kept on a Fingerprint."""

    complexity: int
    depth: int
    function_count: int
    node_count: int
    dependencies: Tuple[str, ...] = ()

    @property
    def dependency_set(self) -> FrozenSet[str]:
        return frozenset(self.dependencies)

    @classmethod
    def from_feature_set(cls, features: FeatureSet) -> "FingerprintFeatures":
        return cls(
            complexity=features.complexity,
            depth=features.depth,
            function_count=features.function_count,
            node_count=features.node_count,
            dependencies=features.dependencies,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "complexity": self.complexity,
            "depth": self.depth,
            "function_count": self.function_count,
            "node_count": self.node_count,
            "dependencies": list(self.dependencies),
        }


@dataclass(frozen=True)
class Fingerprint:
    """Structural fingerprint of one successfully parsed file."""

    path: str
    structural_hash: str
    min_hash_signature: Tuple[int, ...]
    features: FingerprintFeatures
    functions: Tuple[FunctionInfo, ...] = ()
    language: str = "javascript"
    lines_of_code: int = 0

    @property
    def basename(self) -> str:
        return PurePosixPath(self.path.replace("\\", "/")).name

    def to_dict(self, include_signature: bool = False) -> Dict[str, Any]:
        data = {
            "path": self.path,
            "language": self.language,
            "structural_hash": self.structural_hash,
            "features": self.features.to_dict(),
            "functions": [f.to_dict() for f in self.functions],
            "lines_of_code": self.lines_of_code,
        }
        if include_signature:
            data["min_hash_signature"] = list(self.min_hash_signature)
        return data


@dataclass(frozen=True)
class ParseFailure:
    """A file that could not be fingerprinted."""

    path: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LSHBand:
    """One band of a MinHash signature and the bucket it hashes to."""

    band_index: int
    bucket_id: str
    band_signature_slice: Tuple[int, ...]


@dataclass(frozen=True)
class SimilarPair:
    """Two files whose signatures agree above the similarity threshold."""

    path_a: str
    path_b: str
    similarity_percent: float   # 0-100, two decimals
    hash_a: str
    hash_b: str

    @property
    def similarity(self) -> float:
        """Similarity as a 0.0-1.0 fraction."""
        return self.similarity_percent / 100.0

    @property
    def is_exact_structural_match(self) -> bool:
        return self.hash_a == self.hash_b

    @property
    def category(self) -> str:
        if self.similarity_percent >= 95:
            return "exact-duplicate"
        if self.similarity_percent >= 85:
            return "near-duplicate"
        return "similar"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["category"] = self.category
        data["exact_structural_match"] = self.is_exact_structural_match
        return data


@dataclass
class Cluster:
    """A group of files connected by similar-pair edges."""

    cluster_id: int
    member_paths: List[str]
    avg_similarity: float                # percent
    avg_complexity: float = 0.0
    avg_lines_of_code: float = 0.0
    total_functions: int = 0
    common_dependencies: List[str] = field(default_factory=list)
    common_functionality_tags: List[str] = field(default_factory=list)
    pairs: List[SimilarPair] = field(default_factory=list)
    language: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.member_paths)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cluster_id": self.cluster_id,
            "member_paths": list(self.member_paths),
            "size": self.size,
            "language": self.language,
            "avg_similarity": round(self.avg_similarity, 2),
            "avg_complexity": round(self.avg_complexity, 2),
            "avg_lines_of_code": round(self.avg_lines_of_code, 2),
            "total_functions": self.total_functions,
            "common_dependencies": list(self.common_dependencies),
            "common_functionality_tags": list(self.common_functionality_tags),
        }


class RecommendationLevel(str, Enum):
    EXTRACT_IMMEDIATELY = "extract immediately"
    PLAN_NEXT_ITERATION = "plan next iteration"
    WATCH = "watch"
    NO_ACTION = "no action"


@dataclass
class Recommendation:
    level: RecommendationLevel
    severity: str            # CRITICAL / HIGH / MEDIUM / LOW
    reasoning: str


@dataclass
class AffectedFile:
    path: str
    basename: str
    directory: str


@dataclass
class ExtractionMetrics:
    occurrences: int
    avg_similarity: float        # percent, two decimals
    avg_complexity: float        # two decimals
    avg_lines_of_code: int       # rounded
    total_functions: int


@dataclass
class ExtractionStep:
    step: int
    action: str
    description: str
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ExtractionPlan:
    """Concrete steps for moving a cluster into a shared library."""

    steps: List[ExtractionStep]
    functions: List[Dict[str, Any]]
    dependencies: List[str]
    scaffold: Dict[str, str] = field(default_factory=dict)
    migration_guide: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ExtractionImpact:
    duplicate_lines: int
    reduction_percent: float
    maintenance_before: int      # locations to maintain
    maintenance_after: int
    maintenance_reduction_percent: float
    risk_level: str
    estimated_refactoring_hours: int


@dataclass
class ExtractionSuggestion:
    """A recommendation to extract a cluster into a shared library."""

    suggestion_id: str
    suggested_name: str
    description: str
    affected_files: List[AffectedFile]
    metrics: ExtractionMetrics
    priority_score: int
    extraction_plan: ExtractionPlan
    impact: ExtractionImpact
    recommendation: Recommendation
    patterns: Dict[str, Any] = field(default_factory=dict)

    @property
    def recommendation_level(self) -> RecommendationLevel:
        return self.recommendation.level

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["recommendation"]["level"] = self.recommendation.level.value
        data["recommendation_level"] = self.recommendation.level.value
        return data
