"""Metrics port definition (interface and DTO)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

__all__ = ["TickOutcome", "TickAttemptDto", "MetricsPort"]


class TickOutcome(str, Enum):
    """How a single tick ended."""

    EMITTED = "emitted"
    RAW_ONLY = "raw_only"
    UNSUPPORTED_CONTENT = "unsupported_content"
    EXTRACTION_FAILED = "extraction_failed"
    REQUEST_FAILED = "request_failed"


@dataclass(slots=True, frozen=True)
class TickAttemptDto:
    """Immutable snapshot of a single tick.

    Attributes:
        scheduled_at_sec: Monotonic seconds when the tick was due.
        fired_at_sec: Monotonic seconds when the request was started.
        outcome: What the tick produced.
        status_code: HTTP status code when a response arrived; None otherwise.
    """

    scheduled_at_sec: float
    fired_at_sec: float
    outcome: TickOutcome
    status_code: int | None = None


class MetricsPort(Protocol):
    """Interface for recording tick metrics."""

    def update(self, attempt: TickAttemptDto, /) -> None:
        ...

    def __str__(self) -> str:
        ...
