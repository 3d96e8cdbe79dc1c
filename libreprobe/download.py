"""
Download speed test module.

Streams ``garbage.php`` from a single server, counting bytes as chunks
arrive.  The whole stream runs under one deadline; when the deadline fires
or the stream breaks, whatever was received so far is turned into a
partial measurement instead of being thrown away.
"""
from __future__ import annotations

import asyncio
import logging
import time
from contextlib import aclosing
from typing import Callable

import aiohttp

from .constants import DEFAULT_DOWNLOAD_SIZE_MB, DEFAULT_DOWNLOAD_TIMEOUT
from .exceptions import ProbeError, ProbeTimeoutError
from .models import ProbeOutcome
from .stats import calculate_speed_mbps

LOGGER = logging.getLogger(__name__)


class DownloadTester:
    """
    Single-stream download speed tester.

    ``test()`` always resolves within ``timeout`` seconds: with a complete
    measurement, with a partial one, or by raising ``ProbeError``.
    """

    def __init__(
        self,
        size_mb: int = DEFAULT_DOWNLOAD_SIZE_MB,
        timeout: float = DEFAULT_DOWNLOAD_TIMEOUT,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.size_mb = size_mb
        self.timeout = timeout
        self.clock = clock

    async def test(self, client) -> ProbeOutcome:  # noqa: ANN001 (ProbeClient)
        received = 0
        start = self.clock()

        async def _consume() -> None:
            nonlocal received
            async with aclosing(client.stream_download(self.size_mb)) as stream:
                async for chunk in stream:
                    received += len(chunk)

        try:
            await asyncio.wait_for(_consume(), timeout=self.timeout)
        except asyncio.TimeoutError:
            elapsed = self.clock() - start
            if received == 0:
                raise ProbeTimeoutError(
                    f"download timed out after {self.timeout:g}s with no data"
                ) from None
            LOGGER.warning(
                "Download timed out after %.1fs, using %d bytes received so far",
                elapsed,
                received,
            )
            return ProbeOutcome.degraded(
                calculate_speed_mbps(received, elapsed),
                f"download timed out after {self.timeout:g}s, partial result",
            )
        except (aiohttp.ClientError, OSError) as exc:
            elapsed = self.clock() - start
            message = str(exc) or exc.__class__.__name__
            if received == 0:
                raise ProbeError(message) from exc
            LOGGER.warning(
                "Download stream failed after %d bytes: %s", received, message
            )
            return ProbeOutcome.degraded(
                calculate_speed_mbps(received, elapsed),
                f"download interrupted, partial result: {message}",
            )

        elapsed = self.clock() - start
        LOGGER.debug("Downloaded %d bytes in %.3fs", received, elapsed)
        return ProbeOutcome.complete(calculate_speed_mbps(received, elapsed))
