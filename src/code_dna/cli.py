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
CLI entry point for code-dna.

Usage:
    codedna <path> [options]
    codedna --help
"""

import logging
import sys
import warnings
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .config import EngineConfig, load_config
from .errors import ConfigurationError, EmptyInputWarning
from .indexer import scan_directory
from .languages import DEFAULT_EXTENSIONS
from .pipeline import analyze_files
from .reporter import OutputFormat, format_summary, report_analysis


# Extension to output format mapping for -o FILE.EXT
EXTENSION_FORMAT_MAP = {
    '.md': 'markdown',
    '.json': 'json',
    '.txt': 'text',
}

DEFAULTS = EngineConfig()


def merge_config_with_cli(
    config: dict,
    cli_value,
    config_key: str,
    default_value,
):
    """
    Merge config file value with CLI value.

    If CLI value differs from default, use CLI (user explicitly set it).
    Otherwise, use config value if present, else use default.
    """
    if cli_value != default_value:
        return cli_value
    return config.get(config_key, default_value)


def print_progress(current: int, total: int, message: str, width: int = 30):
    """Print a progress bar with message."""
    filled = int(width * current / max(total, 1))
    bar = "=" * filled + ">" + " " * (width - filled - 1) if filled < width else "=" * width
    click.echo(f"\r   [{bar}] {current}/{total} {message}\033[K", nl=False)
    if current >= total:
        click.echo()


def _as_tuple(value) -> tuple:
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return ()


@click.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, dir_okay=True))
@click.option(
    "-t", "--threshold",
    type=float,
    default=DEFAULTS.similarity_threshold,
    help="Similarity threshold 0.0-1.0 (default: 0.70)"
)
@click.option(
    "--num-hashes",
    type=int,
    default=DEFAULTS.num_hashes,
    help="MinHash signature length (default: 128)"
)
@click.option(
    "--num-bands",
    type=int,
    default=DEFAULTS.num_bands,
    help="LSH bands; must divide --num-hashes (default: 16)"
)
@click.option(
    "--shingle-size",
    type=int,
    default=DEFAULTS.shingle_size,
    help="Node-type shingle length (default: 3)"
)
@click.option(
    "--cluster-threshold",
    type=float,
    default=DEFAULTS.cluster_threshold,
    help="Minimum pair similarity used for clustering (default: 0.70)"
)
@click.option(
    "--cluster-method",
    type=click.Choice(["greedy", "components"]),
    default=DEFAULTS.cluster_method,
    help="greedy (first cluster wins) or components (connected components)"
)
@click.option(
    "--min-occurrences",
    type=int,
    default=DEFAULTS.extraction_min_occurrences,
    help="Minimum files in a cluster to suggest an extraction (default: 3)"
)
@click.option(
    "--min-similarity",
    type=float,
    default=DEFAULTS.extraction_min_similarity,
    help="Minimum average cluster similarity 0.0-1.0 to suggest an extraction (default: 0.85)"
)
@click.option(
    "--min-complexity",
    type=float,
    default=DEFAULTS.extraction_min_complexity,
    help="Minimum average cluster complexity to suggest an extraction (default: 5)"
)
@click.option(
    "--min-loc",
    type=float,
    default=DEFAULTS.extraction_min_loc,
    help="Minimum average lines of code to suggest an extraction (default: 10)"
)
@click.option(
    "--seed",
    type=int,
    default=DEFAULTS.minhash_seed,
    help="Seed of the MinHash permutations (default: 1)"
)
@click.option(
    "--ext",
    multiple=True,
    help="File extensions to scan (repeatable, default: .js .jsx .ts .tsx)"
)
@click.option(
    "-e", "--exclude",
    multiple=True,
    help="Glob patterns to exclude (repeatable)"
)
@click.option(
    "-f", "--focus",
    multiple=True,
    help="Only analyze matching paths (repeatable)"
)
@click.option(
    "--workers",
    type=int,
    default=0,
    help="Worker processes for fingerprinting (0=all CPUs, 1=in-process)"
)
@click.option(
    "-o", "--output",
    type=str,
    default=None,
    help="Output file path (e.g., report.md, data.json, report.txt)"
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Show debug logging for all stages"
)
@click.version_option(version=__version__)
def main(
    path: str,
    threshold: float,
    num_hashes: int,
    num_bands: int,
    shingle_size: int,
    cluster_threshold: float,
    cluster_method: str,
    min_occurrences: int,
    min_similarity: float,
    min_complexity: float,
    min_loc: float,
    seed: int,
    ext: tuple,
    exclude: tuple,
    focus: tuple,
    workers: int,
    output: Optional[str],
    verbose: bool,
):
    """
    Find structurally duplicated files and suggest shared libraries.

    PATH is the root directory to analyze.

    Examples:

      # Analyze a JavaScript/TypeScript project
      codedna ./src

      # Stricter matching, markdown report
      codedna ./src --threshold 0.85 -o report.md

      # Python sources, connected-component clusters
      codedna ./pkg --ext .py --cluster-method components
    """
    root_path = Path(path).resolve()

    # Load config file and merge with CLI args
    config = load_config(root_path)

    verbose = merge_config_with_cli(config, verbose, "verbose", False)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    threshold = merge_config_with_cli(config, threshold, "similarity_threshold", DEFAULTS.similarity_threshold)
    num_hashes = merge_config_with_cli(config, num_hashes, "num_hashes", DEFAULTS.num_hashes)
    num_bands = merge_config_with_cli(config, num_bands, "num_bands", DEFAULTS.num_bands)
    shingle_size = merge_config_with_cli(config, shingle_size, "shingle_size", DEFAULTS.shingle_size)
    cluster_threshold = merge_config_with_cli(config, cluster_threshold, "cluster_threshold", DEFAULTS.cluster_threshold)
    cluster_method = merge_config_with_cli(config, cluster_method, "cluster_method", DEFAULTS.cluster_method)
    min_occurrences = merge_config_with_cli(
        config, min_occurrences, "extraction_min_occurrences", DEFAULTS.extraction_min_occurrences
    )
    min_similarity = merge_config_with_cli(
        config, min_similarity, "extraction_min_similarity", DEFAULTS.extraction_min_similarity
    )
    min_complexity = merge_config_with_cli(
        config, min_complexity, "extraction_min_complexity", DEFAULTS.extraction_min_complexity
    )
    min_loc = merge_config_with_cli(config, min_loc, "extraction_min_loc", DEFAULTS.extraction_min_loc)
    seed = merge_config_with_cli(config, seed, "minhash_seed", DEFAULTS.minhash_seed)
    workers = merge_config_with_cli(config, workers, "workers", 0)

    # These are lists in config, tuples from CLI
    if not ext and "extensions" in config:
        ext = _as_tuple(config["extensions"])
    if not exclude and "exclude" in config:
        exclude = _as_tuple(config["exclude"])
    if not focus and "focus" in config:
        focus = _as_tuple(config["focus"])

    try:
        engine_config = EngineConfig.from_mapping({
            **config,
            "similarity_threshold": threshold,
            "num_hashes": num_hashes,
            "num_bands": num_bands,
            "shingle_size": shingle_size,
            "cluster_threshold": cluster_threshold,
            "cluster_method": cluster_method,
            "extraction_min_occurrences": min_occurrences,
            "extraction_min_similarity": min_similarity,
            "extraction_min_complexity": min_complexity,
            "extraction_min_loc": min_loc,
            "minhash_seed": seed,
        })
    except (ConfigurationError, TypeError) as e:
        click.echo(f"❌ Invalid configuration: {e}", err=True)
        sys.exit(2)

    output_format = None
    if output:
        suffix = Path(output).suffix.lower()
        if suffix not in EXTENSION_FORMAT_MAP:
            valid_exts = ', '.join(EXTENSION_FORMAT_MAP.keys())
            click.echo(f"❌ Invalid output extension '{suffix}'. Valid: {valid_exts}", err=True)
            sys.exit(2)
        output_format = OutputFormat(EXTENSION_FORMAT_MAP[suffix])

    if verbose:
        click.echo(f"🔍 Analyzing: {root_path}")
        click.echo(f"   Threshold: {engine_config.similarity_threshold}")
        click.echo(
            f"   Signature: {engine_config.num_hashes} hashes, "
            f"{engine_config.num_bands} bands x {engine_config.rows_per_band} rows"
        )

    # Stage 1: Scan
    click.echo("📂 Stage 1: Scanning source files...")
    files = scan_directory(
        root_path,
        extensions=ext or DEFAULT_EXTENSIONS,
        exclude_patterns=list(exclude),
        focus_patterns=list(focus),
    )

    if not files:
        click.echo("❌ No source files found. Check your path and filters.", err=True)
        sys.exit(1)

    click.echo(f"   Found {len(files)} files")

    # Stage 2: Fingerprint, score, cluster, plan
    click.echo("\n🧬 Stage 2: Fingerprinting and comparing...")
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", EmptyInputWarning)
        result = analyze_files(
            files,
            config=engine_config,
            workers=workers,
            on_progress=print_progress,
        )

    if result.failures:
        click.echo(f"   ⚠️  {len(result.failures)} files could not be parsed")

    if not result.fingerprints:
        click.echo("❌ No files could be parsed.", err=True)
        sys.exit(1)

    click.echo(f"   Found {len(result.pairs)} similar pairs, {len(result.clusters)} clusters")

    # Stage 3: Report
    if output:
        click.echo("\n📝 Stage 3: Generating report...")
        report = report_analysis(
            result,
            root_path=root_path,
            threshold=engine_config.similarity_threshold,
            output_format=output_format,
        )
        output_path = Path(output)
        output_path.write_text(report, encoding="utf-8")
        click.echo(f"   ✅ Report written to: {output_path}")
        for line in format_summary(result):
            click.echo(line)
    else:
        click.echo("")
        click.echo(report_analysis(
            result,
            root_path=root_path,
            threshold=engine_config.similarity_threshold,
            output_format=OutputFormat.TEXT,
        ))


# Entry point alias for pyproject.toml
cli = main


if __name__ == "__main__":
    main()
