# Copyright (c) Syntropy Systems
"""Pytest fixtures for speedrank tests."""

from __future__ import annotations

import os
import tempfile
import threading
import time
from collections.abc import Generator, Mapping
from pathlib import Path

import pytest

from speedrank.errors import StorageError
from speedrank.models.result import ProbeOutcome, ProbeStatus
from speedrank.prober import Prober

# Store original cwd at module load time
_original_cwd = Path.cwd()


class FakeProber(Prober):
    """Prober returning canned outcomes instead of touching the network.

    ``latencies`` maps a domain to its latency in ms; None means the probe
    timed out. Unknown domains fail with a transport error.
    """

    def __init__(
        self,
        latencies: Mapping[str, float | None],
        timeout_ms: float = 30000.0,
        delay: float = 0.0,
    ) -> None:
        super().__init__(timeout_ms=timeout_ms)
        self.latencies = dict(latencies)
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def measure(self, domain: str) -> ProbeOutcome:
        with self._lock:
            self.calls.append(domain)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            if domain not in self.latencies:
                return ProbeOutcome(
                    domain=domain,
                    status=ProbeStatus.TRANSPORT_ERROR,
                    elapsed_ms=1.0,
                    detail="ConnectError: unknown host",
                )
            latency = self.latencies[domain]
            if latency is None:
                return ProbeOutcome(
                    domain=domain,
                    status=ProbeStatus.TIMEOUT,
                    elapsed_ms=self.timeout_ms,
                )
            return ProbeOutcome(
                domain=domain,
                status=ProbeStatus.SUCCESS,
                elapsed_ms=latency,
                status_code=200,
            )
        finally:
            with self._lock:
                self.in_flight -= 1


class BrokenStore:
    """KeyValueStore whose every operation fails."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def read(self, key: str) -> str | None:
        self.calls.append(f"read:{key}")
        msg = "backend down"
        raise StorageError(msg)

    def write(self, key: str, value: str) -> None:
        self.calls.append(f"write:{key}")
        msg = "backend down"
        raise StorageError(msg)

    def delete(self, key: str) -> None:
        self.calls.append(f"delete:{key}")
        msg = "backend down"
        raise StorageError(msg)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def speedrank_project(temp_dir: Path) -> Generator[Path, None, None]:
    """Create a temporary speedrank project directory."""
    from speedrank.db import init_db

    speedrank_dir = temp_dir / ".speedrank"
    speedrank_dir.mkdir()
    init_db(speedrank_dir / "speedrank.db")

    # Change to temp directory
    os.chdir(temp_dir)

    yield temp_dir

    # Always return to original cwd
    os.chdir(_original_cwd)


@pytest.fixture
def sqlite_store(temp_dir: Path):
    """SQLite-backed key-value store in a temporary database."""
    from speedrank.db import SQLiteKeyValueStore

    return SQLiteKeyValueStore(temp_dir / "speedrank.db")


@pytest.fixture
def broken_store() -> BrokenStore:
    """Key-value store that raises StorageError on every call."""
    return BrokenStore()


@pytest.fixture
def make_prober() -> type[FakeProber]:
    """Factory for probers with canned latencies."""
    return FakeProber
