"""Exception hierarchy for probe, orchestration and storage failures."""
from __future__ import annotations

from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from .models import SpeedTestResult


class LibreprobeError(Exception):
    """Base class for all libreprobe errors."""


class ProbeError(LibreprobeError):
    """A sub-test produced no usable measurement at all."""


class ProbeTimeoutError(ProbeError):
    """A sub-test timed out before any usable data arrived."""


class TotalFailureError(LibreprobeError):
    """Every step of a server test failed.

    The partially populated result is still attached so the caller can
    decide whether to persist it as a diagnostic row.
    """

    def __init__(self, message: str, result: "SpeedTestResult") -> None:
        super().__init__(message)
        self.result = result


class ResultValidationError(LibreprobeError, ValueError):
    """A result was rejected by the store before any write happened."""

    def __init__(self, errors: List[str]) -> None:
        self.errors = list(errors)
        super().__init__(f"Result validation failed: {', '.join(self.errors)}")
