# Copyright (c) Syntropy Systems
"""Models for probe outcomes and ranked results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from operator import attrgetter
from typing import TYPE_CHECKING

from pydantic import Field, TypeAdapter
from typing_extensions import override

from .base import SpeedRankBaseModel

if TYPE_CHECKING:
    from collections.abc import Iterable


class ProbeResult(SpeedRankBaseModel):
    """Latency observed for one domain, stored as {"domain", "time"}."""

    domain: str
    latency_ms: float = Field(alias="time", ge=0)

    @override
    def __str__(self) -> str:
        return f"{{domain: {self.domain}, time: {self.latency_ms}}}"


RESULT_LIST_ADAPTER: TypeAdapter[list[ProbeResult]] = TypeAdapter(list[ProbeResult])


def rank_results(results: Iterable[ProbeResult]) -> list[ProbeResult]:
    """Return results ascending by latency; equal latencies keep their order."""
    return sorted(results, key=attrgetter("latency_ms"))


class ProbeStatus(str, Enum):
    """How a single probe ended."""

    SUCCESS = "success"
    TIMEOUT = "timeout"
    TRANSPORT_ERROR = "transport_error"
    BAD_STATUS = "bad_status"


@dataclass(frozen=True)
class ProbeOutcome:
    """Outcome of one probe, before it is folded into a ProbeResult.

    Only SUCCESS carries a usable latency. Every other status is reported
    with the sentinel latency once converted by ``latency_ms``.
    """

    domain: str
    status: ProbeStatus
    elapsed_ms: float
    status_code: int | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        """Whether the probe produced a real measurement."""
        return self.status is ProbeStatus.SUCCESS

    def latency_ms(self, sentinel_ms: float) -> float:
        """Measured latency, or sentinel_ms when the probe did not succeed."""
        if self.ok:
            return self.elapsed_ms
        return sentinel_ms

    def to_result(self, sentinel_ms: float) -> ProbeResult:
        """Convert to the persisted result form."""
        return ProbeResult(domain=self.domain, latency_ms=self.latency_ms(sentinel_ms))

    def describe(self) -> str:
        """Short human readable description for logs."""
        if self.ok:
            return f"{self.domain}: {self.elapsed_ms:.1f} ms"
        if self.status is ProbeStatus.BAD_STATUS:
            return f"{self.domain}: HTTP {self.status_code}"
        if self.detail:
            return f"{self.domain}: {self.status.value} ({self.detail})"
        return f"{self.domain}: {self.status.value}"
