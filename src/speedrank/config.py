# Copyright (c) Syntropy Systems
"""Configuration management for speedrank."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import cast

import yaml

DEFAULT_PROBE_PATH = "/test-img"
DEFAULT_TIMEOUT_MS = 30000.0
DEFAULT_STORAGE_KEY = "speed_test_results"

PROJECT_DIR_NAME = ".speedrank"
CONFIG_FILE_NAME = "config.yaml"
DB_FILE_NAME = "speedrank.db"


@dataclass
class SpeedTestConfig:
    """Configuration for a speed test manager."""

    # Path requested on every domain, e.g. https://{domain}/test-img
    probe_path: str = DEFAULT_PROBE_PATH

    # Total time budget per probe (milliseconds), also the failure sentinel
    timeout_ms: float = DEFAULT_TIMEOUT_MS

    # Key the ranked snapshot is stored under
    storage_key: str = DEFAULT_STORAGE_KEY

    # Maximum number of probes in flight at once
    concurrency: int = 1

    # Default domain list used by the CLI when none is given
    domains: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.timeout_ms <= 0:
            msg = f"timeout_ms must be positive, got {self.timeout_ms}"
            raise ValueError(msg)
        if self.concurrency < 1:
            msg = f"concurrency must be at least 1, got {self.concurrency}"
            raise ValueError(msg)
        self.timeout_ms = float(self.timeout_ms)

    @property
    def sentinel_ms(self) -> float:
        """Latency recorded for a domain that could not be measured."""
        return self.timeout_ms

    def to_dict(self) -> dict[str, object]:
        """Convert to a YAML-friendly dictionary."""
        return {
            "probe_path": self.probe_path,
            "timeout_ms": self.timeout_ms,
            "storage_key": self.storage_key,
            "concurrency": self.concurrency,
            "domains": list(self.domains),
        }


def find_speedrank_dir(start_path: Path | None = None) -> Path | None:
    """Find the nearest .speedrank directory by walking up from start_path.

    Returns None if no .speedrank directory is found.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while current != current.parent:
        project_dir = current / PROJECT_DIR_NAME
        if project_dir.is_dir():
            return project_dir
        current = current.parent

    # Check root
    project_dir = current / PROJECT_DIR_NAME
    if project_dir.is_dir():
        return project_dir

    return None


def get_global_config_dir() -> Path:
    """Get the global speedrank config directory (~/.speedrank)."""
    return Path.home() / PROJECT_DIR_NAME


def load_config(speedrank_dir: Path | None = None) -> SpeedTestConfig:
    """Load configuration from .speedrank/config.yaml or defaults.

    Looks for config in:
    1. Provided speedrank_dir
    2. Nearest .speedrank directory walking up
    3. ~/.speedrank/config.yaml
    4. Defaults
    """
    config = SpeedTestConfig()

    config_path = None

    if speedrank_dir is not None:
        config_path = speedrank_dir / CONFIG_FILE_NAME
    else:
        found_dir = find_speedrank_dir()
        if found_dir is not None:
            config_path = found_dir / CONFIG_FILE_NAME
        else:
            global_config = get_global_config_dir() / CONFIG_FILE_NAME
            if global_config.exists():
                config_path = global_config

    if config_path is None or not config_path.exists():
        return config

    with config_path.open() as f:
        loaded = cast("object", yaml.safe_load(f))
    if not isinstance(loaded, dict):
        return config
    data = cast("dict[str, object]", loaded)

    probe_path = data.get("probe_path")
    if isinstance(probe_path, str) and probe_path:
        config.probe_path = probe_path
    timeout_ms = data.get("timeout_ms")
    if isinstance(timeout_ms, (int, float)) and not isinstance(timeout_ms, bool) and timeout_ms > 0:
        config.timeout_ms = float(timeout_ms)
    storage_key = data.get("storage_key")
    if isinstance(storage_key, str) and storage_key:
        config.storage_key = storage_key
    concurrency = data.get("concurrency")
    if isinstance(concurrency, int) and not isinstance(concurrency, bool) and concurrency >= 1:
        config.concurrency = concurrency
    domains = data.get("domains")
    if isinstance(domains, list):
        config.domains = [str(d) for d in cast("list[object]", domains) if d]

    return config


def get_db_path(speedrank_dir: Path | None = None) -> Path:
    """Get the path to the SQLite database."""
    if speedrank_dir is None:
        speedrank_dir = find_speedrank_dir()

    if speedrank_dir is None:
        msg = "No .speedrank directory found. Run 'speedrank init' first."
        raise RuntimeError(
            msg
        )

    return speedrank_dir / DB_FILE_NAME


def require_speedrank_dir() -> Path:
    """Get speedrank directory or raise an error if not found."""
    speedrank_dir = find_speedrank_dir()
    if speedrank_dir is None:
        msg = "No .speedrank directory found. Run 'speedrank init' first."
        raise RuntimeError(
            msg
        )
    return speedrank_dir
