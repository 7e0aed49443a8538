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
Code DNA - Structural fingerprinting for duplicate code detection.

Parses source files into syntax trees, reduces each to an identifier-free
structural fingerprint, and finds near-duplicate files with MinHash and
locality-sensitive hashing. Similar files are clustered and turned into
shared-library extraction suggestions.
"""

__version__ = "0.1.0"

from .config import EngineConfig, load_config, find_config_file
from .errors import CodeDnaError, ConfigurationError, EmptyInputWarning, ParseError
from .fingerprint import generate_fingerprint, parse, structural_hash
from .minhash import compute_signature, create_shingles, signature_similarity
from .lsh import LSHIndex, generate_bands
from .scorer import find_similar, find_similar_with_stats, generate_statistics
from .clusterer import cluster_pairs
from .planner import suggest_extractions
from .pipeline import AnalysisResult, analyze_files, fingerprint_files
from .cache import FingerprintCache
from .indexer import scan_directory
from .reporter import report_analysis, OutputFormat
from .models import Cluster, ExtractionSuggestion, Fingerprint, SimilarPair, SourceFile

__all__ = [
    "__version__",
    "EngineConfig",
    "load_config",
    "find_config_file",
    "CodeDnaError",
    "ConfigurationError",
    "EmptyInputWarning",
    "ParseError",
    "generate_fingerprint",
    "parse",
    "structural_hash",
    "compute_signature",
    "create_shingles",
    "signature_similarity",
    "LSHIndex",
    "generate_bands",
    "find_similar",
    "find_similar_with_stats",
    "generate_statistics",
    "cluster_pairs",
    "suggest_extractions",
    "AnalysisResult",
    "analyze_files",
    "fingerprint_files",
    "FingerprintCache",
    "scan_directory",
    "report_analysis",
    "OutputFormat",
    "Cluster",
    "ExtractionSuggestion",
    "Fingerprint",
    "SimilarPair",
    "SourceFile",
]
