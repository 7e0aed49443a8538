"""Tests for the directory scanner."""

from pathlib import Path

from code_dna.indexer import find_source_files, scan_directory


def test_scan_directory_defaults(project_dir: Path):
    """Test default extensions and ignored directories."""
    files = scan_directory(project_dir)

    assert [f.path for f in files] == [
        "src/billing/handleRecords.js",
        "src/limits.ts",
        "src/orders/processItems.js",
        "src/shipping/mapOrders.js",
        "src/values.js",
    ]
    assert "processItems" in files[2].content


def test_scan_directory_extensions(project_dir: Path):
    files = scan_directory(project_dir, extensions=["ts"])
    assert [f.path for f in files] == ["src/limits.ts"]


def test_scan_directory_extra_ignore_dirs(project_dir: Path):
    files = scan_directory(project_dir, ignore_dirs=["billing"])
    assert "src/billing/handleRecords.js" not in [f.path for f in files]


def test_exclude_patterns(project_dir: Path):
    files = scan_directory(project_dir, exclude_patterns=["src/shipping/*", "values.js"])
    assert [f.path for f in files] == [
        "src/billing/handleRecords.js",
        "src/limits.ts",
        "src/orders/processItems.js",
    ]


def test_focus_patterns(project_dir: Path):
    """Test focus keeps only matching files."""
    files = scan_directory(project_dir, focus_patterns=["*Orders*"])
    assert [f.path for f in files] == ["src/shipping/mapOrders.js"]


def test_find_source_files_returns_paths(project_dir: Path):
    paths = find_source_files(project_dir)
    assert all(isinstance(p, Path) for p in paths)
    assert all("node_modules" not in p.parts for p in paths)


def test_scan_empty_directory(tmp_path: Path):
    assert scan_directory(tmp_path) == []
