"""Pytest configuration and fixtures for Code DNA tests."""

from pathlib import Path
from typing import Callable, Sequence

import pytest

from code_dna.models import Fingerprint, FingerprintFeatures, FunctionInfo


SAMPLE_JS = '''import { readFile } from "fs";
const path = require("path");

export function processItems(items, options) {
  const results = [];
  for (const item of items) {
    if (item.active) {
      results.push(transform(item, options));
    }
  }
  return results;
}

const transform = (item, opts) => ({ ...item, scale: opts.scale * 2 });

class Cache {
  constructor(limit) { this.limit = limit; }
  get size() { return 0; }
  lookup(key) { return key ? this.limit : null; }
}
'''

# Same structure as SAMPLE_JS: identifiers and literal values changed
RENAMED_JS = '''import { writeFile } from "node:fs";
const resolver = require("node:path");

export function handleRecords(records, settings) {
  const output = [];
  for (const record of records) {
    if (record.enabled) {
      output.push(convert(record, settings));
    }
  }
  return output;
}

const convert = (record, cfg) => ({ ...record, factor: cfg.factor * 10 });

class Store {
  constructor(capacity) { this.capacity = capacity; }
  get count() { return 42; }
  find(id) { return id ? this.capacity : null; }
}
'''

OTHER_RENAMED_JS = '''import { stat } from "fs/promises";
const util = require("util");

export function mapOrders(orders, flags) {
  const mapped = [];
  for (const order of orders) {
    if (order.paid) {
      mapped.push(normalize(order, flags));
    }
  }
  return mapped;
}

const normalize = (order, f) => ({ ...order, weight: f.weight * 3 });

class Registry {
  constructor(size) { this.size = size; }
  get total() { return 7; }
  fetch(name) { return name ? this.size : null; }
}
'''

ARRAY_JS = "let values = [1, 2, 3, 4, 5, 6, 7, 8, 9, 10];\n"

LOOP_JS = '''while (running) {
  if (ready) {
    tick();
  }
}
'''

TYPED_TS = "export const limit: number = 5;\n"

BROKEN_JS = "function broken( {\n  return ;\n"

SAMPLE_PY = '''import os
from collections import OrderedDict
import numpy as np


def load(path, *, strict=False):
    for line in open(path):
        yield line


class Store:
    def __init__(self, items):
        self.items = items

    def get(self, key):
        if key in self.items:
            return self.items[key]
        return None


handler = lambda event: event
'''


@pytest.fixture
def sample_js() -> str:
    return SAMPLE_JS


@pytest.fixture
def renamed_js() -> str:
    return RENAMED_JS


@pytest.fixture
def duplicate_sources():
    """Three structurally identical files with different names and values."""
    return [
        ("src/orders/processItems.js", SAMPLE_JS),
        ("src/billing/handleRecords.js", RENAMED_JS),
        ("src/shipping/mapOrders.js", OTHER_RENAMED_JS),
    ]


@pytest.fixture
def broken_js() -> str:
    return BROKEN_JS


@pytest.fixture
def array_js() -> str:
    return ARRAY_JS


@pytest.fixture
def loop_js() -> str:
    return LOOP_JS


@pytest.fixture
def sample_py() -> str:
    return SAMPLE_PY


@pytest.fixture
def make_fingerprint() -> Callable[..., Fingerprint]:
    """Build a Fingerprint directly from a signature, skipping parsing."""

    def _make(
        path: str,
        signature: Sequence[int],
        structural_hash: str = None,
        language: str = "javascript",
        complexity: int = 6,
        lines_of_code: int = 40,
        dependencies: Sequence[str] = (),
        functions: Sequence[FunctionInfo] = (),
    ) -> Fingerprint:
        return Fingerprint(
            path=path,
            structural_hash=structural_hash or f"hash-{path}",
            min_hash_signature=tuple(int(v) for v in signature),
            features=FingerprintFeatures(
                complexity=complexity,
                depth=5,
                function_count=len(functions),
                node_count=100,
                dependencies=tuple(dependencies),
            ),
            functions=tuple(functions),
            language=language,
            lines_of_code=lines_of_code,
        )

    return _make


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A small project tree with duplicated modules and ignorable directories."""
    (tmp_path / "src" / "orders").mkdir(parents=True)
    (tmp_path / "src" / "billing").mkdir(parents=True)
    (tmp_path / "src" / "shipping").mkdir(parents=True)
    (tmp_path / "node_modules" / "lib").mkdir(parents=True)

    (tmp_path / "src" / "orders" / "processItems.js").write_text(SAMPLE_JS)
    (tmp_path / "src" / "billing" / "handleRecords.js").write_text(RENAMED_JS)
    (tmp_path / "src" / "shipping" / "mapOrders.js").write_text(OTHER_RENAMED_JS)
    (tmp_path / "src" / "values.js").write_text(ARRAY_JS)
    (tmp_path / "src" / "limits.ts").write_text(TYPED_TS)
    (tmp_path / "node_modules" / "lib" / "index.js").write_text(SAMPLE_JS)
    (tmp_path / "README.md").write_text("# sample\n")
    return tmp_path
