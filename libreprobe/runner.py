"""
Per-server test orchestration.

Runs the four steps against one server, strictly in order::

    info fetch -> download -> upload -> ping

Every step is isolated: its failure is logged, recorded in ``errors`` and
the next step still runs.  Only when all four fail does the run raise
``TotalFailureError``, and even then the (empty) result travels with it.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

import aiohttp

from .api import create_client
from .download import DownloadTester
from .exceptions import ProbeError, TotalFailureError
from .latency import LatencyTester
from .models import ServerConfig, SpeedTestResult, TestSettings
from .upload import UploadStrategy, UploadTester

LOGGER = logging.getLogger(__name__)

# Transport and decoding errors a single step may raise.
STEP_ERRORS = (ProbeError, aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError)

STEP_COUNT = 4


def _describe(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


class SpeedTestRunner:
    """Drive info, download, upload and ping probes against one server."""

    def __init__(
        self,
        settings: TestSettings,
        client_factory: Callable[[ServerConfig], Any] = create_client,
        download_tester: Optional[DownloadTester] = None,
        upload_tester: Optional[UploadTester] = None,
        latency_tester: Optional[LatencyTester] = None,
    ) -> None:
        self.settings = settings
        self.client_factory = client_factory
        self.download_tester = download_tester or DownloadTester(
            size_mb=settings.download_size_mb,
            timeout=settings.download_timeout,
        )
        self.upload_tester = upload_tester or UploadTester(
            UploadStrategy.with_fallback(
                size_mb=settings.upload_size_mb,
                small_size_mb=settings.small_upload_size_mb,
                timeout=settings.upload_timeout,
            )
        )
        self.latency_tester = latency_tester or LatencyTester(
            count=settings.ping_count,
            timeout=settings.ping_timeout,
        )

    async def run(self, server: ServerConfig) -> SpeedTestResult:
        fields: Dict[str, Any] = {}
        server_info: Dict[str, Any] = {}
        errors: List[str] = []
        notes: List[str] = []
        failed = 0

        def _failed(label: str, exc: BaseException) -> None:
            nonlocal failed
            failed += 1
            LOGGER.error("%s for %s: %s", label, server.url, _describe(exc))
            errors.append(f"{label}: {_describe(exc)}")

        def _note(outcome) -> None:  # noqa: ANN001 (ProbeOutcome)
            if outcome.partial and outcome.note:
                LOGGER.warning("Partial result from %s: %s", server.url, outcome.note)
                notes.append(outcome.note)

        async with self.client_factory(server) as client:
            # -- Server info ------------------------------------------------
            LOGGER.info("Fetching server info: %s", server.url)
            try:
                server_info = await client.fetch_server_info()
            except STEP_ERRORS as exc:
                _failed("server info fetch failed", exc)

            # -- Download ---------------------------------------------------
            LOGGER.info("Running download test: %s", server.url)
            try:
                outcome = await self.download_tester.test(client)
                fields["download_speed"] = outcome.value
                _note(outcome)
            except STEP_ERRORS as exc:
                _failed("download test failed", exc)

            # -- Upload -----------------------------------------------------
            LOGGER.info("Running upload test: %s", server.url)
            try:
                outcome = await self.upload_tester.test(client)
                fields["upload_speed"] = outcome.value
                _note(outcome)
            except STEP_ERRORS as exc:
                _failed("upload test failed", exc)

            # -- Ping -------------------------------------------------------
            LOGGER.info("Running ping test: %s", server.url)
            try:
                ping = await self.latency_tester.test(client)
                fields["ping"] = ping.value
                fields["jitter"] = ping.jitter
                _note(ping)
            except STEP_ERRORS as exc:
                _failed("ping test failed", exc)

        result = SpeedTestResult(
            server_name=server.name,
            server_url=server.url,
            server_info=server_info,
            errors=tuple(errors),
            notes=tuple(notes),
            **fields,
        )

        if failed == STEP_COUNT:
            raise TotalFailureError(f"all tests failed: {', '.join(errors)}", result)

        LOGGER.info(
            "Finished %s - download: %s Mbps, upload: %s Mbps, ping: %s ms",
            server.name,
            result.download_speed,
            result.upload_speed,
            result.ping,
        )
        return result
