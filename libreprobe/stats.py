"""
Network measurement statistics.

Pure functions -- no I/O, no side effects.
Everything here is deterministic and easy to unit-test.
"""
from __future__ import annotations

import math
import statistics
from typing import Sequence

from .constants import RESULT_PRECISION


# ---------------------------------------------------------------------------
# Pure helper functions
# ---------------------------------------------------------------------------

def calculate_speed_mbps(bytes_total: int, seconds: float) -> float:
    """Throughput in Mbps, rounded; 0.0 when no time has elapsed."""
    if seconds <= 0 or bytes_total <= 0:
        return 0.0
    speed = (bytes_total * 8) / (seconds * 1_000_000)
    if not math.isfinite(speed):
        return 0.0
    return round(speed, RESULT_PRECISION)


def calculate_jitter(samples: Sequence[float]) -> float:
    """Mean absolute difference between consecutive samples."""
    if len(samples) < 2:
        return 0.0
    diffs = [abs(samples[i] - samples[i - 1]) for i in range(1, len(samples))]
    return statistics.mean(diffs)


def calculate_mean(samples: Sequence[float]) -> float:
    if not samples:
        return 0.0
    return statistics.mean(samples)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def format_speed(speed_mbps: float | None) -> str:
    """Human-readable speed string."""
    if speed_mbps is None:
        return "N/A"
    if speed_mbps >= 1000:
        return f"{speed_mbps / 1000:.2f} Gbps"
    return f"{speed_mbps:.2f} Mbps"


def format_latency(latency_ms: float | None) -> str:
    """Human-readable latency string."""
    if latency_ms is None:
        return "N/A"
    if latency_ms >= 1000:
        return f"{latency_ms / 1000:.2f} s"
    return f"{latency_ms:.1f} ms"
