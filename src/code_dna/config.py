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
Engine tunables and configuration file support.

Tunables live on EngineConfig and are validated at construction time.
Project defaults can be kept in .dnarc or .codedna.toml in the analyzed
directory or any of its parents.
"""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional, Dict, Any

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # type: ignore

from .errors import ConfigurationError


logger = logging.getLogger(__name__)

CONFIG_NAMES = [".dnarc", ".codedna.toml"]
CONFIG_SECTION = "codedna"

CLUSTER_METHODS = ("greedy", "components")


@dataclass(frozen=True)
class EngineConfig:
    """
    Tunables for fingerprinting, bucketing, scoring and extraction planning.

    rows_per_band is derived as num_hashes / num_bands; num_hashes must
    divide evenly into the bands.
    """

    num_hashes: int = 128
    shingle_size: int = 3
    num_bands: int = 16
    similarity_threshold: float = 0.70
    cluster_threshold: float = 0.70
    cluster_method: str = "greedy"
    extraction_min_occurrences: int = 3
    extraction_min_similarity: float = 0.85
    extraction_min_complexity: float = 5
    extraction_min_loc: float = 10
    minhash_seed: int = 1

    def __post_init__(self):
        self.validate()

    @property
    def rows_per_band(self) -> int:
        return self.num_hashes // self.num_bands

    @property
    def cache_key(self) -> str:
        """Identifies the settings a fingerprint depends on."""
        return f"h{self.num_hashes}:s{self.shingle_size}:r{self.minhash_seed}"

    def validate(self) -> None:
        for name in ("num_hashes", "shingle_size", "num_bands", "extraction_min_occurrences", "minhash_seed"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")

        if self.num_hashes < 1:
            raise ConfigurationError(f"num_hashes must be positive, got {self.num_hashes}")
        if self.shingle_size < 1:
            raise ConfigurationError(f"shingle_size must be positive, got {self.shingle_size}")
        if self.num_bands < 1 or self.num_bands > self.num_hashes:
            raise ConfigurationError(
                f"num_bands must be between 1 and num_hashes ({self.num_hashes}), got {self.num_bands}"
            )
        if self.num_bands * self.rows_per_band != self.num_hashes:
            raise ConfigurationError(
                f"num_bands ({self.num_bands}) * rows_per_band ({self.rows_per_band}) "
                f"!= num_hashes ({self.num_hashes})"
            )
        if self.minhash_seed < 0:
            raise ConfigurationError(f"minhash_seed must be non-negative, got {self.minhash_seed}")

        for name in ("similarity_threshold", "cluster_threshold", "extraction_min_similarity"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be within [0, 1], got {value!r}")

        if self.cluster_method not in CLUSTER_METHODS:
            raise ConfigurationError(
                f"cluster_method must be one of {', '.join(CLUSTER_METHODS)}, got {self.cluster_method!r}"
            )
        if self.extraction_min_occurrences < 2:
            raise ConfigurationError(
                f"extraction_min_occurrences must be at least 2, got {self.extraction_min_occurrences}"
            )
        for name in ("extraction_min_complexity", "extraction_min_loc"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                raise ConfigurationError(f"{name} must be a non-negative number, got {value!r}")

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Build a config from a dict, ignoring keys that are not tunables."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


def find_config_file(start_path: Path) -> Optional[Path]:
    """
    Search for .dnarc or .codedna.toml in start_path and parent directories.

    Args:
        start_path: Directory to start searching from

    Returns:
        Path to config file if found, None otherwise
    """
    current = start_path.resolve()

    while True:
        for name in CONFIG_NAMES:
            config_path = current / name
            if config_path.is_file():
                return config_path

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_config(path: Path) -> Dict[str, Any]:
    """
    Load the [codedna] table from the nearest config file.

    Returns an empty dict when no config file is found or it cannot be read.

    Example config file (.dnarc or .codedna.toml):
        [codedna]
        similarity_threshold = 0.75
        num_hashes = 128
        num_bands = 16
        cluster_method = "greedy"
        extensions = [".js", ".ts"]
        exclude = ["**/fixtures/**"]
    """
    config_path = find_config_file(path)

    if config_path is None:
        return {}

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring unreadable config file %s: %s", config_path, e)
        return {}

    logger.debug("Loaded config from %s", config_path)
    return data.get(CONFIG_SECTION, {})
