"""
Comparison helpers.

Computes the change between a fresh result and the previous stored result
for the same server, and formats it for the terminal.
"""
from __future__ import annotations

from typing import Dict, Optional, Union

from .models import HistoryRecord, SpeedTestResult

Comparable = Union[SpeedTestResult, HistoryRecord]

_METRICS = ("download_speed", "upload_speed", "ping", "jitter")


# ---------------------------------------------------------------------------
# Delta comparison
# ---------------------------------------------------------------------------

def compare_with_previous(
    current: Comparable,
    previous: Optional[Comparable],
) -> Optional[Dict[str, Optional[float]]]:
    """
    Compare *current* with *previous*.

    Returns ``{metric: delta}`` for download_speed, upload_speed, ping and
    jitter, or None if there's nothing to compare with.  A delta is None
    when either side lacks that measurement.
    """
    if previous is None:
        return None

    deltas: Dict[str, Optional[float]] = {}
    for metric in _METRICS:
        now = getattr(current, metric)
        before = getattr(previous, metric)
        deltas[metric] = None if now is None or before is None else now - before
    return deltas


def format_delta(value: Optional[float], unit: str, invert: bool = False) -> str:
    """
    Format a delta value with a +/- prefix and color hint.

    *invert*: True for metrics where lower is better (ping, jitter).
    """
    if value is None:
        return "[dim](n/a)[/dim]"
    if abs(value) < 0.01:
        return "[dim](same)[/dim]"

    sign = "+" if value > 0 else ""
    # For ping, negative is good; for speed, positive is good
    is_good = (value < 0) if invert else (value > 0)
    color = "green" if is_good else "red"

    return f"[{color}]{sign}{value:.1f} {unit}[/{color}]"
