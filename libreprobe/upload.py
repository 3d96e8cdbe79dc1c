"""
Upload speed test module.

POSTs a pseudo-random payload to ``empty.php`` and times the full round
trip.  The fallback policy is an explicit list of attempts: the full-size
payload first, then a reduced one.  A later attempt only runs when every
earlier one failed, and when all of them fail the first attempt's error is
the one reported.
"""
from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import aiohttp

from .constants import MEGABYTE
from .exceptions import ProbeError, ProbeTimeoutError
from .models import ProbeOutcome
from .stats import calculate_speed_mbps

LOGGER = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Strategy
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UploadAttempt:
    """One upload try: payload size and its timeout."""

    size_mb: float
    timeout: float

    @property
    def size_bytes(self) -> int:
        return int(self.size_mb * MEGABYTE)


@dataclass(frozen=True)
class UploadStrategy:
    """Ordered upload attempts; the first one is the primary measurement."""

    attempts: Tuple[UploadAttempt, ...]

    def __post_init__(self) -> None:
        if not self.attempts:
            raise ValueError("UploadStrategy needs at least one attempt")

    @classmethod
    def with_fallback(
        cls,
        size_mb: float,
        small_size_mb: float,
        timeout: float,
    ) -> UploadStrategy:
        return cls(
            attempts=(
                UploadAttempt(size_mb=size_mb, timeout=timeout),
                UploadAttempt(size_mb=small_size_mb, timeout=timeout),
            )
        )

    @classmethod
    def single(cls, size_mb: float, timeout: float) -> UploadStrategy:
        return cls(attempts=(UploadAttempt(size_mb=size_mb, timeout=timeout),))


# ---------------------------------------------------------------------------
# Tester
# ---------------------------------------------------------------------------

class UploadTester:
    """Upload speed tester driven by an ``UploadStrategy``."""

    def __init__(
        self,
        strategy: UploadStrategy,
        clock: Callable[[], float] = time.perf_counter,
        payload_factory: Callable[[int], bytes] = os.urandom,
    ) -> None:
        self.strategy = strategy
        self.clock = clock
        self.payload_factory = payload_factory

    async def test(self, client) -> ProbeOutcome:  # noqa: ANN001 (ProbeClient)
        first_error: Optional[ProbeError] = None

        for index, attempt in enumerate(self.strategy.attempts):
            if index > 0:
                LOGGER.info(
                    "Retrying upload with a smaller payload (%g MB)", attempt.size_mb
                )
            try:
                speed = await self._attempt(client, attempt)
            except ProbeError as exc:
                LOGGER.warning("Upload of %g MB failed: %s", attempt.size_mb, exc)
                if first_error is None:
                    first_error = exc
                continue

            if index == 0:
                return ProbeOutcome.complete(speed)
            return ProbeOutcome.degraded(
                speed,
                f"used a reduced {attempt.size_mb:g} MB payload, "
                f"result may be less accurate",
            )

        if first_error is None:
            raise RuntimeError("upload strategy produced no attempts")
        raise first_error

    async def _attempt(self, client, attempt: UploadAttempt) -> float:  # noqa: ANN001
        payload = self.payload_factory(attempt.size_bytes)

        start = self.clock()
        try:
            await asyncio.wait_for(
                client.upload(payload, attempt.timeout),
                timeout=attempt.timeout,
            )
        except asyncio.TimeoutError:
            raise ProbeTimeoutError(
                f"upload of {attempt.size_mb:g} MB timed out after {attempt.timeout:g}s"
            ) from None
        except (aiohttp.ClientError, OSError) as exc:
            raise ProbeError(str(exc) or exc.__class__.__name__) from exc
        elapsed = self.clock() - start

        LOGGER.debug("Uploaded %d bytes in %.3fs", len(payload), elapsed)
        return calculate_speed_mbps(len(payload), elapsed)
