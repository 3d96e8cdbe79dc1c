"""LibreSpeed measurement client -- probing, orchestration, and history."""

from .api import ProbeClient, create_client
from .campaign import run_campaign
from .constants import __version__
from .download import DownloadTester
from .exceptions import (
    LibreprobeError,
    ProbeError,
    ProbeTimeoutError,
    ResultValidationError,
    TotalFailureError,
)
from .history import ResultStore, validate_result
from .latency import LatencyTester
from .models import (
    HistoryRecord,
    PingOutcome,
    ProbeOutcome,
    ServerConfig,
    ServerStats,
    SpeedTestResult,
    TestSettings,
)
from .runner import SpeedTestRunner
from .stats import calculate_jitter, calculate_speed_mbps, format_latency, format_speed
from .upload import UploadAttempt, UploadStrategy, UploadTester

__all__ = [
    "DownloadTester",
    "HistoryRecord",
    "LatencyTester",
    "LibreprobeError",
    "PingOutcome",
    "ProbeClient",
    "ProbeError",
    "ProbeOutcome",
    "ProbeTimeoutError",
    "ResultStore",
    "ResultValidationError",
    "ServerConfig",
    "ServerStats",
    "SpeedTestResult",
    "SpeedTestRunner",
    "TestSettings",
    "TotalFailureError",
    "UploadAttempt",
    "UploadStrategy",
    "UploadTester",
    "__version__",
    "calculate_jitter",
    "calculate_speed_mbps",
    "create_client",
    "format_latency",
    "format_speed",
    "run_campaign",
    "validate_result",
]
