# Copyright (c) Syntropy Systems
"""Speed test orchestration: probe, rank, persist."""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from threading import Lock
from typing import TYPE_CHECKING

from typing_extensions import Self

from speedrank.config import (
    SpeedTestConfig,
    get_db_path,
    load_config,
    require_speedrank_dir,
)
from speedrank.db import SQLiteKeyValueStore
from speedrank.models.result import ProbeOutcome, ProbeResult, rank_results
from speedrank.prober import Prober
from speedrank.store import ResultStore, serialize_results

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path
    from types import TracebackType

    import httpx

    from speedrank.db import KeyValueStore

logger = logging.getLogger(__name__)


class SpeedTestManager:
    """Runs speed tests over a domain list and keeps the latest ranking.

    Probes run on a worker pool bounded by ``config.concurrency``. With the
    default bound of 1 they run one after another, off the caller's thread.
    The ranking is the same for any bound: ascending latency, input order on
    ties, failed domains at the sentinel latency.
    """

    config: SpeedTestConfig
    prober: Prober
    store: ResultStore
    _executor: ThreadPoolExecutor | None
    _executor_lock: Lock

    def __init__(
        self,
        backend: KeyValueStore,
        config: SpeedTestConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        prober: Prober | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            backend: Key-value store the ranked snapshot is persisted to
            config: Probe path, timeout, storage key and concurrency bound
            transport: Optional httpx transport handed to the default prober
            prober: Prober to use instead of one built from config

        """
        self.config = config or SpeedTestConfig()
        self.prober = prober or Prober(
            probe_path=self.config.probe_path,
            timeout_ms=self.config.timeout_ms,
            transport=transport,
        )
        self.store = ResultStore(backend, key=self.config.storage_key)
        self._executor = None
        self._executor_lock = Lock()

    @classmethod
    def for_project(
        cls,
        speedrank_dir: Path | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> SpeedTestManager:
        """Build a manager from a .speedrank directory's config and database.

        Raises RuntimeError if no .speedrank directory can be found, and
        yaml.YAMLError if its config.yaml cannot be parsed.
        """
        if speedrank_dir is None:
            speedrank_dir = require_speedrank_dir()
        config = load_config(speedrank_dir)
        backend = SQLiteKeyValueStore(get_db_path(speedrank_dir))
        return cls(backend, config=config, transport=transport)

    def close(self) -> None:
        """Shut down the background worker used by submit()."""
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=True)
                self._executor = None

    def __enter__(self) -> Self:
        """Enter the manager context and return self."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the manager context and stop the background worker."""
        self.close()

    # --- Probing ---

    def measure_all(self, domains: Sequence[str]) -> list[ProbeOutcome]:
        """Probe every domain and return outcomes in input order."""
        if not domains:
            return []

        workers = min(self.config.concurrency, len(domains))
        with ThreadPoolExecutor(
            max_workers=workers,
            thread_name_prefix="speedrank-probe",
        ) as pool:
            outcomes = list(pool.map(self.prober.measure, domains))

        for outcome in outcomes:
            if outcome.ok:
                logger.debug("Probe ok %s", outcome.describe())
            else:
                logger.warning("Probe failed %s", outcome.describe())
        return outcomes

    def run_speed_test(self, domains: Sequence[str]) -> list[ProbeResult]:
        """Probe all domains, persist the ranking and return it.

        The previous snapshot is cleared first. An empty domain list
        returns an empty list and writes nothing.
        """
        if not self.store.clear():
            logger.warning("Could not clear previous results, continuing")

        sentinel = self.config.sentinel_ms
        results = rank_results(
            outcome.to_result(sentinel) for outcome in self.measure_all(domains)
        )

        if logger.isEnabledFor(logging.INFO):
            logger.info("Test results: %s", serialize_results(results))

        if results and not self.store.set(results):
            logger.warning("Results for %d domains were not persisted", len(results))

        return results

    def submit(self, domains: Sequence[str]) -> Future[list[ProbeResult]]:
        """Run run_speed_test on the background worker.

        Runs submitted before an earlier one finishes are queued behind it.
        """
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1,
                    thread_name_prefix="speedrank-run",
                )
            return self._executor.submit(self.run_speed_test, list(domains))

    # --- Snapshot ---

    def get(self) -> list[ProbeResult]:
        """Return the last persisted ranking, or an empty list."""
        return self.store.get()

    def fastest(self) -> ProbeResult | None:
        """Return the fastest known domain without probing."""
        results = self.get()
        return results[0] if results else None

    def clear_results(self) -> None:
        """Erase the persisted ranking (best effort)."""
        _ = self.store.clear()
