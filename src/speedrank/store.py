# Copyright (c) Syntropy Systems
"""Persistence of the ranked result list under a single key."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from speedrank.config import DEFAULT_STORAGE_KEY
from speedrank.errors import StorageError
from speedrank.models.result import RESULT_LIST_ADAPTER, ProbeResult, rank_results

if TYPE_CHECKING:
    from collections.abc import Iterable

    from speedrank.db import KeyValueStore

logger = logging.getLogger(__name__)


def serialize_results(results: Iterable[ProbeResult]) -> str:
    """Encode results as a JSON array of {"domain", "time"} objects, ranked."""
    ranked = rank_results(results)
    return RESULT_LIST_ADAPTER.dump_json(ranked, by_alias=True).decode()


def parse_results(raw: str | None) -> list[ProbeResult]:
    """Decode a stored snapshot. Empty input yields an empty list.

    Raises:
        pydantic.ValidationError: if raw is not a valid snapshot

    """
    if raw is None or not raw.strip():
        return []
    return RESULT_LIST_ADAPTER.validate_json(raw)


class ResultStore:
    """Reads and writes the latest ranked snapshot.

    None of the public operations raise: failures are logged and reported
    as False (set/clear) or an empty list (get).
    """

    backend: KeyValueStore
    key: str

    def __init__(self, backend: KeyValueStore, key: str = DEFAULT_STORAGE_KEY) -> None:
        self.backend = backend
        self.key = key

    def set(self, results: Iterable[ProbeResult]) -> bool:
        """Persist results, ranked ascending by latency."""
        try:
            payload = serialize_results(results)
            self.backend.write(self.key, payload)
        except (StorageError, ValueError) as e:
            logger.warning("Save results error: %s", e)
            return False

        logger.info("Test results saved: %s", payload)
        return True

    def get(self) -> list[ProbeResult]:
        """Return the persisted snapshot, or an empty list."""
        try:
            return parse_results(self.backend.read(self.key))
        except ValidationError as e:
            logger.warning(
                "Get results error: stored snapshot under %r is invalid (%d errors)",
                self.key,
                e.error_count(),
            )
        except StorageError as e:
            logger.warning("Get results error: %s", e)
        return []

    def clear(self) -> bool:
        """Erase the persisted snapshot. A missing snapshot is not an error."""
        try:
            self.backend.delete(self.key)
        except StorageError as e:
            logger.warning("Clear results error: %s", e)
            return False
        return True
