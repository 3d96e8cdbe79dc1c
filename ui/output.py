"""
Output formatting -- JSON export, plain text, and CSV.
"""
from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

from libreprobe.models import SpeedTestResult


def create_result_json(
    results: Sequence[SpeedTestResult],
    settings: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Build a JSON-serialisable document for one campaign run."""
    document: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "results": [r.to_dict() for r in results],
    }
    if settings:
        document["settings"] = settings
    return document


def save_json(result: Dict[str, Any], filepath: str) -> None:
    """Write *result* to *filepath* atomically (write-tmp then rename)."""
    dir_path = os.path.dirname(filepath) or "."
    tmp = os.path.join(dir_path, f".tmp_{os.path.basename(filepath)}")

    try:
        with open(tmp, "w", encoding="utf-8") as fh:
            json.dump(result, fh, indent=2, ensure_ascii=False)
        os.replace(tmp, filepath)
    except (IOError, OSError) as exc:
        # Clean up partial temp file
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise IOError(f"Failed to save JSON to {filepath}: {exc}") from exc


# ---------------------------------------------------------------------------
# Plain-text / CSV helpers
# ---------------------------------------------------------------------------

def _num(value: Optional[float], fmt: str) -> str:
    return "" if value is None else format(value, fmt)


def format_text_result(result: SpeedTestResult) -> str:
    sep = "=" * 50
    mid = "-" * 50

    def _show(value: Optional[float], unit: str, fmt: str = ".2f") -> str:
        return "N/A" if value is None else f"{value:{fmt}} {unit}"

    lines = [
        sep,
        "LibreSpeed Results",
        sep,
        f"Server: {result.server_name}",
        f"URL: {result.server_url}",
        mid,
        f"Ping: {_show(result.ping, 'ms', '.1f')} (jitter: {_show(result.jitter, 'ms')})",
        f"Download: {_show(result.download_speed, 'Mbps')}",
        f"Upload: {_show(result.upload_speed, 'Mbps')}",
    ]
    for note in result.notes:
        lines.append(f"Note: {note}")
    for error in result.errors:
        lines.append(f"Error: {error}")
    lines.append(sep)
    return "\n".join(lines)


def _csv_escape(value: str) -> str:
    """Quote a CSV field if it contains a comma, quote, or newline."""
    if any(c in value for c in (",", '"', "\n", "\r")):
        return '"' + value.replace('"', '""') + '"'
    return value


def format_csv_header() -> str:
    return "timestamp,server,url,ping_ms,jitter_ms,download_mbps,upload_mbps,errors"


def format_csv_row(result: SpeedTestResult) -> str:
    ts = datetime.now(timezone.utc).isoformat()
    fields = [
        ts,
        _csv_escape(result.server_name),
        _csv_escape(result.server_url),
        _num(result.ping, ".1f"),
        _num(result.jitter, ".2f"),
        _num(result.download_speed, ".2f"),
        _num(result.upload_speed, ".2f"),
        _csv_escape("; ".join(result.errors)),
    ]
    return ",".join(fields)


def append_csv(path: str, result: SpeedTestResult) -> None:
    """Append a single CSV row, writing the header if the file is new."""
    write_header = not os.path.isfile(path) or os.path.getsize(path) == 0
    with open(path, "a", encoding="utf-8") as fh:
        if write_header:
            fh.write(format_csv_header() + "\n")
        fh.write(format_csv_row(result) + "\n")
