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
Batch engine - fingerprint a set of files and run the full analysis.

Fingerprinting is embarrassingly parallel and fans out over a process pool.
Everything after it (bucket index, scoring, clustering, planning) runs in
the calling thread on the collected fingerprints, which are kept in input
order so the result never depends on worker scheduling.
"""

import logging
import os
import warnings
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from itertools import repeat
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .cache import FingerprintCache, get_content_hash
from .clusterer import cluster_pairs
from .config import EngineConfig
from .errors import EmptyInputWarning, ParseError
from .fingerprint import generate_fingerprint
from .languages import detect_language
from .models import Cluster, ExtractionSuggestion, Fingerprint, ParseFailure, SimilarPair, SourceFile
from .planner import suggest_extractions, summarize_suggestions
from .scorer import ScoringStats, find_similar_with_stats, generate_statistics


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]
FileInput = Union[SourceFile, Tuple[str, str]]


@dataclass
class AnalysisResult:
    """Everything one analysis run produced."""

    fingerprints: List[Fingerprint] = field(default_factory=list)
    failures: List[ParseFailure] = field(default_factory=list)
    pairs: List[SimilarPair] = field(default_factory=list)
    clusters: List[Cluster] = field(default_factory=list)
    suggestions: List[ExtractionSuggestion] = field(default_factory=list)
    statistics: Dict[str, Any] = field(default_factory=dict)
    scoring: ScoringStats = field(default_factory=ScoringStats)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "statistics": self.statistics,
            "scoring": self.scoring.to_dict(),
            "fingerprints": [fp.to_dict() for fp in self.fingerprints],
            "failures": [f.to_dict() for f in self.failures],
            "pairs": [p.to_dict() for p in self.pairs],
            "clusters": [c.to_dict() for c in self.clusters],
            "suggestions": [s.to_dict() for s in self.suggestions],
            "summary": summarize_suggestions(self.suggestions),
        }


def _as_source(item: FileInput) -> SourceFile:
    if isinstance(item, SourceFile):
        return item
    path, content = item
    return SourceFile(path=str(path), content=content)


def _fingerprint_one(path: str, content: str, config: EngineConfig) -> Union[Fingerprint, ParseFailure]:
    """Worker entry point; must stay importable at module level for pickling."""
    try:
        return generate_fingerprint(path, content, config)
    except ParseError as e:
        return ParseFailure(path=path, message=e.message)


def fingerprint_files(
    files: Iterable[FileInput],
    config: Optional[EngineConfig] = None,
    workers: int = 0,
    cache: Optional[FingerprintCache] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> Tuple[List[Fingerprint], List[ParseFailure]]:
    """
    Fingerprint many files, in parallel when it pays off.

    Args:
        files: SourceFiles or (path, content) pairs
        config: Engine settings
        workers: Worker processes; 0 uses every CPU, 1 runs in-process
        cache: Optional caller-owned fingerprint cache
        on_progress: Optional callback(current, total, message)

    Returns:
        (fingerprints, failures), each in input order
    """
    config = config or EngineConfig()
    sources = [_as_source(f) for f in files]
    total = len(sources)

    results: List[Optional[Union[Fingerprint, ParseFailure]]] = [None] * total
    keys: List[Optional[str]] = [None] * total
    pending: List[int] = []

    for idx, source in enumerate(sources):
        if cache is not None:
            keys[idx] = get_content_hash(source.content, detect_language(source.path) or "", config)
            cached = cache.get(keys[idx], path=source.path)
            if cached is not None:
                results[idx] = cached
                continue
        pending.append(idx)

    if cache is not None and total:
        logger.debug("Fingerprint cache: %d of %d files reused", total - len(pending), total)

    max_workers = workers if workers > 0 else (os.cpu_count() or 1)
    paths = [sources[i].path for i in pending]
    contents = [sources[i].content for i in pending]

    if max_workers == 1 or len(pending) < 2:
        computed = map(_fingerprint_one, paths, contents, repeat(config))
        _collect(computed, pending, results, total, on_progress)
    else:
        chunksize = max(1, len(pending) // (max_workers * 4))
        with ProcessPoolExecutor(max_workers=min(max_workers, len(pending))) as executor:
            computed = executor.map(_fingerprint_one, paths, contents, repeat(config), chunksize=chunksize)
            _collect(computed, pending, results, total, on_progress)

    computed_set = set(pending)
    fingerprints: List[Fingerprint] = []
    failures: List[ParseFailure] = []
    for idx, result in enumerate(results):
        if isinstance(result, ParseFailure):
            logger.warning("Skipping %s: %s", result.path, result.message)
            failures.append(result)
            continue
        fingerprints.append(result)
        if cache is not None and idx in computed_set:
            cache.put(keys[idx], result)

    return fingerprints, failures


def _collect(computed, pending, results, total, on_progress) -> None:
    done = total - len(pending)
    for idx, result in zip(pending, computed):
        results[idx] = result
        done += 1
        if on_progress:
            on_progress(done, total, "files")


def analyze_files(
    files: Iterable[FileInput],
    config: Optional[EngineConfig] = None,
    workers: int = 0,
    cache: Optional[FingerprintCache] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> AnalysisResult:
    """
    Run the full analysis: fingerprint, score, cluster and plan.

    Emits EmptyInputWarning (and returns an empty result) when no file
    could be fingerprinted.
    """
    config = config or EngineConfig()
    sources: Sequence[SourceFile] = [_as_source(f) for f in files]

    fingerprints, failures = fingerprint_files(sources, config, workers, cache, on_progress)
    if not fingerprints:
        warnings.warn(
            f"No fingerprints produced from {len(sources)} input files",
            EmptyInputWarning,
            stacklevel=2,
        )
        return AnalysisResult(
            failures=failures,
            statistics=_statistics([], [], failures),
            scoring=ScoringStats(),
        )

    pairs, scoring = find_similar_with_stats(
        fingerprints,
        threshold=config.similarity_threshold,
        num_bands=config.num_bands,
    )
    clusters = cluster_pairs(
        pairs,
        fingerprints,
        min_similarity=config.cluster_threshold,
        method=config.cluster_method,
    )
    suggestions = suggest_extractions(clusters, fingerprints, config)

    logger.debug(
        "Analysis: %d fingerprints, %d failures, %d pairs, %d clusters, %d suggestions",
        len(fingerprints), len(failures), len(pairs), len(clusters), len(suggestions),
    )

    return AnalysisResult(
        fingerprints=fingerprints,
        failures=failures,
        pairs=pairs,
        clusters=clusters,
        suggestions=suggestions,
        statistics=_statistics(fingerprints, pairs, failures),
        scoring=scoring,
    )


def _statistics(fingerprints, pairs, failures) -> Dict[str, Any]:
    stats = generate_statistics(fingerprints, pairs)
    stats["parse_failures"] = len(failures)
    return stats
