"""
HTTP round-trip latency measurement against ``empty.php``.

Flow::

    1. POST an empty body, time until the response is fully read.
    2. Repeat for ``count`` samples, one at a time.
    3. A failed round trip is counted and skipped; once more than half of
       the planned round trips have failed the whole probe is abandoned.
    4. Latency is the mean of the successful samples, jitter the mean
       absolute difference between consecutive successful samples.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, List

import aiohttp

from .constants import DEFAULT_PING_COUNT, DEFAULT_PING_TIMEOUT, RESULT_PRECISION
from .exceptions import ProbeError
from .models import PingOutcome
from .stats import calculate_jitter, calculate_mean

LOGGER = logging.getLogger(__name__)


class LatencyTester:
    """Sequential ping/jitter tester for one server."""

    def __init__(
        self,
        count: int = DEFAULT_PING_COUNT,
        timeout: float = DEFAULT_PING_TIMEOUT,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        if count < 1:
            raise ValueError("ping count must be at least 1")
        self.count = count
        self.timeout = timeout
        self.clock = clock

    @property
    def max_failures(self) -> int:
        """Failures tolerated before the probe is abandoned."""
        return self.count // 2

    async def test(self, client) -> PingOutcome:  # noqa: ANN001 (ProbeClient)
        samples: List[float] = []
        failures = 0

        for i in range(self.count):
            start = self.clock()
            try:
                await asyncio.wait_for(client.ping(self.timeout), timeout=self.timeout)
            except (asyncio.TimeoutError, aiohttp.ClientError, OSError) as exc:
                failures += 1
                LOGGER.warning(
                    "Ping %d/%d failed: %s",
                    i + 1,
                    self.count,
                    str(exc) or exc.__class__.__name__,
                )
                if failures > self.max_failures:
                    raise ProbeError(
                        f"more than half of the ping requests failed "
                        f"({failures}/{self.count})"
                    ) from None
                continue
            samples.append((self.clock() - start) * 1000)

        if not samples:
            raise ProbeError("all ping requests failed")

        latency = round(calculate_mean(samples), RESULT_PRECISION)
        jitter = round(calculate_jitter(samples), RESULT_PRECISION)

        if len(samples) < self.count:
            return PingOutcome(
                value=latency,
                partial=True,
                note=f"some ping requests failed ({failures}/{self.count})",
                jitter=jitter,
                samples=tuple(samples),
            )
        return PingOutcome(value=latency, jitter=jitter, samples=tuple(samples))
