"""
LibreSpeed backend client.

One ``ProbeClient`` is bound to one server: its base URL, optional Basic
credentials and the libreprobe user-agent.  All HTTP work goes through a
single ``aiohttp.ClientSession`` managed via the async-context-manager
protocol (``async with ProbeClient(server) as client: ...``).  Nothing
touches the network until the context is entered.
"""
from __future__ import annotations

import json
from typing import Any, AsyncIterator, Dict, Optional

import aiohttp

from .constants import (
    CHUNK_SIZE,
    DOWNLOAD_PATH,
    PING_PATH,
    REQUEST_TIMEOUT,
    SERVER_INFO_PATH,
    UPLOAD_PATH,
    USER_AGENT,
)
from .models import ServerConfig


def build_headers(server: ServerConfig) -> Dict[str, str]:
    """Headers sent with every request to *server*."""
    headers = {"User-Agent": USER_AGENT}
    if server.has_auth:
        headers["Authorization"] = aiohttp.BasicAuth(
            server.username, server.password
        ).encode()
    return headers


def join_url(base: str, path: str) -> str:
    """Join *base* and *path* with exactly one slash between them."""
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


class ProbeClient:
    """Async context-manager wrapping the three LibreSpeed endpoints."""

    def __init__(
        self,
        server: ServerConfig,
        request_timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self.server = server
        self.request_timeout = request_timeout
        self.headers = build_headers(server)
        self._session: Optional[aiohttp.ClientSession] = None

    # -- Context manager ----------------------------------------------------

    async def __aenter__(self) -> ProbeClient:
        self._session = aiohttp.ClientSession(
            headers=self.headers,
            timeout=aiohttp.ClientTimeout(total=self.request_timeout),
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._session:
            await self._session.close()
            self._session = None

    # -- Internal helpers ---------------------------------------------------

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError(
                "ProbeClient must be used as an async context manager "
                "(async with ProbeClient(server) as client: ...)"
            )
        return self._session

    def url(self, path: str) -> str:
        return join_url(self.server.url, path)

    # -- Endpoints ----------------------------------------------------------

    async def fetch_server_info(self) -> Dict[str, Any]:
        """GET getIP.php and return its JSON body as a mapping."""
        session = self._ensure_session()

        async with session.get(self.url(SERVER_INFO_PATH)) as resp:
            resp.raise_for_status()
            text = await resp.text()

        try:
            data = json.loads(text)
        except ValueError:
            return {"raw": text}
        if not isinstance(data, dict):
            return {"value": data}
        return data

    async def stream_download(self, ck_size: int) -> AsyncIterator[bytes]:
        """
        Yield the garbage.php payload chunk by chunk.

        The request has no total timeout; the caller owns the deadline.
        """
        session = self._ensure_session()
        timeout = aiohttp.ClientTimeout(
            total=None,
            sock_connect=self.request_timeout,
            sock_read=self.request_timeout,
        )
        headers = {"Accept-Encoding": "identity"}

        async with session.get(
            self.url(DOWNLOAD_PATH),
            params={"ckSize": str(ck_size)},
            headers=headers,
            timeout=timeout,
        ) as resp:
            resp.raise_for_status()
            async for chunk in resp.content.iter_chunked(CHUNK_SIZE):
                yield chunk

    async def upload(self, payload: bytes, timeout: float) -> None:
        """POST *payload* to empty.php and wait for the full response."""
        session = self._ensure_session()

        async with session.post(
            self.url(UPLOAD_PATH),
            data=payload,
            headers={"Content-Type": "application/octet-stream"},
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as resp:
            resp.raise_for_status()
            await resp.read()

    async def ping(self, timeout: float) -> None:
        """One empty round trip to empty.php."""
        session = self._ensure_session()

        async with session.post(
            self.url(PING_PATH),
            data=b"",
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as resp:
            resp.raise_for_status()
            await resp.read()


def create_client(server: ServerConfig) -> ProbeClient:
    """Factory used by the orchestrator; performs no network I/O."""
    return ProbeClient(server)
