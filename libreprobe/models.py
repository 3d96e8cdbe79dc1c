"""
Data models shared by the probers, the orchestrator and the result store.

Everything here is a plain dataclass.  Inputs (servers, settings) and
outputs (outcomes, results) are frozen; nullable measurements are modelled
as ``Optional`` fields, never as sentinel values.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from .constants import (
    DEFAULT_DOWNLOAD_SIZE_MB,
    DEFAULT_DOWNLOAD_TIMEOUT,
    DEFAULT_PING_COUNT,
    DEFAULT_PING_TIMEOUT,
    DEFAULT_SMALL_UPLOAD_SIZE_MB,
    DEFAULT_UPLOAD_SIZE_MB,
    DEFAULT_UPLOAD_TIMEOUT,
)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ServerConfig:
    """A LibreSpeed-compatible server to test against."""

    url: str
    name: str = ""
    username: Optional[str] = None
    password: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", self.url)

    @classmethod
    def from_dict(cls, data: dict) -> ServerConfig:
        return cls(
            url=data.get("url", ""),
            name=data.get("name") or "",
            username=data.get("username") or None,
            password=data.get("password") or None,
        )

    @property
    def has_auth(self) -> bool:
        return bool(self.username) and bool(self.password)

    def to_dict(self) -> Dict[str, Any]:
        # Credentials are never serialised.
        return {"name": self.name, "url": self.url}


@dataclass(frozen=True)
class TestSettings:
    """Process-wide probe parameters."""

    __test__ = False  # not a pytest test class

    download_size_mb: int = DEFAULT_DOWNLOAD_SIZE_MB
    upload_size_mb: float = DEFAULT_UPLOAD_SIZE_MB
    small_upload_size_mb: float = DEFAULT_SMALL_UPLOAD_SIZE_MB
    ping_count: int = DEFAULT_PING_COUNT
    download_timeout: float = DEFAULT_DOWNLOAD_TIMEOUT
    upload_timeout: float = DEFAULT_UPLOAD_TIMEOUT
    ping_timeout: float = DEFAULT_PING_TIMEOUT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "download_size_mb": self.download_size_mb,
            "upload_size_mb": self.upload_size_mb,
            "small_upload_size_mb": self.small_upload_size_mb,
            "ping_count": self.ping_count,
            "download_timeout": self.download_timeout,
            "upload_timeout": self.upload_timeout,
            "ping_timeout": self.ping_timeout,
        }


# ---------------------------------------------------------------------------
# Per-probe outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProbeOutcome:
    """Result of one sub-test: complete, degraded (partial) or failed."""

    value: Optional[float]
    partial: bool = False
    note: Optional[str] = None

    @classmethod
    def complete(cls, value: float) -> ProbeOutcome:
        return cls(value=value)

    @classmethod
    def degraded(cls, value: float, note: str) -> ProbeOutcome:
        return cls(value=value, partial=True, note=note)

    @classmethod
    def failure(cls, note: str) -> ProbeOutcome:
        return cls(value=None, partial=False, note=note)

    @property
    def status(self) -> str:
        if self.value is None:
            return "failed"
        return "partial" if self.partial else "ok"


@dataclass(frozen=True)
class PingOutcome(ProbeOutcome):
    """Latency outcome; ``value`` is the mean round-trip time in ms."""

    jitter: float = 0.0
    samples: Tuple[float, ...] = ()


# ---------------------------------------------------------------------------
# Aggregate result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SpeedTestResult:
    """Normalized result of one orchestrator run against one server."""

    server_name: str
    server_url: str
    download_speed: Optional[float] = None   # Mbps
    upload_speed: Optional[float] = None     # Mbps
    ping: Optional[float] = None             # ms
    jitter: Optional[float] = None           # ms
    server_info: Dict[str, Any] = field(default_factory=dict)
    errors: Tuple[str, ...] = ()
    notes: Tuple[str, ...] = ()

    @property
    def has_measurements(self) -> bool:
        return any(
            v is not None
            for v in (self.download_speed, self.upload_speed, self.ping, self.jitter)
        )

    @property
    def failed_steps(self) -> int:
        return len(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "server_name": self.server_name,
            "server_url": self.server_url,
            "download_speed": self.download_speed,
            "upload_speed": self.upload_speed,
            "ping": self.ping,
            "jitter": self.jitter,
            "server_info": dict(self.server_info),
            "errors": list(self.errors),
            "notes": list(self.notes),
        }


# ---------------------------------------------------------------------------
# Persistence views
# ---------------------------------------------------------------------------

@dataclass
class HistoryRecord:
    """A stored result, as returned by the result store."""

    id: int
    test_timestamp: datetime
    server_name: str
    server_url: str
    download_speed: Optional[float] = None
    upload_speed: Optional[float] = None
    ping: Optional[float] = None
    jitter: Optional[float] = None
    server_info: Dict[str, Any] = field(default_factory=dict)
    errors: Tuple[str, ...] = ()
    notes: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "test_timestamp": self.test_timestamp.isoformat(),
            "server_name": self.server_name,
            "server_url": self.server_url,
            "download_speed": self.download_speed,
            "upload_speed": self.upload_speed,
            "ping": self.ping,
            "jitter": self.jitter,
            "server_info": dict(self.server_info),
            "errors": list(self.errors),
            "notes": list(self.notes),
        }


@dataclass
class ServerStats:
    """Historical averages for one server URL."""

    server_url: str
    avg_download: Optional[float] = None
    avg_upload: Optional[float] = None
    avg_ping: Optional[float] = None
    avg_jitter: Optional[float] = None
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "server_url": self.server_url,
            "avg_download": self.avg_download,
            "avg_upload": self.avg_upload,
            "avg_ping": self.avg_ping,
            "avg_jitter": self.avg_jitter,
            "count": self.count,
        }
