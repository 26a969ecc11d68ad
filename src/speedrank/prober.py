# Copyright (c) Syntropy Systems
"""Timed HTTPS probe against a single domain."""
from __future__ import annotations

import asyncio
import logging
import time

import httpx

from speedrank.config import DEFAULT_PROBE_PATH, DEFAULT_TIMEOUT_MS
from speedrank.models.result import ProbeOutcome, ProbeStatus

logger = logging.getLogger(__name__)

HTTP_OK = 200


class Prober:
    """Measures how long a domain takes to serve the probe path.

    Every probe runs on its own event loop with its own client and closes
    both before returning, so probes can run from several threads at once.
    The whole request (connect, headers and body) shares one deadline of
    ``timeout_ms``; when it passes, the request is cancelled and the
    connection closed.
    """

    probe_path: str
    timeout_ms: float
    _transport: httpx.AsyncBaseTransport | None

    def __init__(
        self,
        probe_path: str = DEFAULT_PROBE_PATH,
        timeout_ms: float = DEFAULT_TIMEOUT_MS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the prober.

        Args:
            probe_path: Path requested on each domain (e.g., "/test-img")
            timeout_ms: Total time budget per probe in milliseconds
            transport: Optional async httpx transport, used instead of the network

        """
        self.probe_path = probe_path
        self.timeout_ms = float(timeout_ms)
        self._transport = transport

    def url_for(self, domain: str) -> str:
        """Build the probe URL for a domain."""
        return f"https://{domain}/{self.probe_path.lstrip('/')}"

    def probe(self, domain: str) -> float:
        """Return the latency in ms, or timeout_ms if the probe failed."""
        return self.measure(domain).latency_ms(self.timeout_ms)

    def measure(self, domain: str) -> ProbeOutcome:
        """Fetch the probe URL and classify the result. Never raises.

        Must be called from a thread without a running event loop.
        """
        start = time.perf_counter()
        try:
            outcome = asyncio.run(
                asyncio.wait_for(
                    self._fetch(domain, start),
                    timeout=self.timeout_ms / 1000.0,
                )
            )
        except asyncio.TimeoutError:
            return self._timed_out(domain, _since(start), "deadline exceeded")

        if outcome.ok and outcome.elapsed_ms >= self.timeout_ms:
            return self._timed_out(domain, outcome.elapsed_ms, "deadline exceeded")
        if outcome.ok:
            logger.debug("Probe %s finished in %.1f ms", domain, outcome.elapsed_ms)
        return outcome

    async def _fetch(self, domain: str, start: float) -> ProbeOutcome:
        url = self.url_for(domain)
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self.timeout_ms / 1000.0,
                follow_redirects=True,
            ) as client, client.stream("GET", url) as response:
                if response.status_code != HTTP_OK:
                    return ProbeOutcome(
                        domain=domain,
                        status=ProbeStatus.BAD_STATUS,
                        elapsed_ms=_since(start),
                        status_code=response.status_code,
                        detail=response.reason_phrase or None,
                    )
                async for _ in response.aiter_bytes():
                    pass
        except httpx.TimeoutException as e:
            return self._timed_out(domain, _since(start), type(e).__name__)
        # ValueError covers hosts that fail IDNA encoding (idna.IDNAError)
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError, ValueError) as e:
            return ProbeOutcome(
                domain=domain,
                status=ProbeStatus.TRANSPORT_ERROR,
                elapsed_ms=_since(start),
                detail=f"{type(e).__name__}: {e}",
            )

        return ProbeOutcome(
            domain=domain,
            status=ProbeStatus.SUCCESS,
            elapsed_ms=_since(start),
            status_code=HTTP_OK,
        )

    def _timed_out(self, domain: str, elapsed: float, detail: str) -> ProbeOutcome:
        return ProbeOutcome(
            domain=domain,
            status=ProbeStatus.TIMEOUT,
            elapsed_ms=elapsed,
            detail=detail,
        )


def _since(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0
