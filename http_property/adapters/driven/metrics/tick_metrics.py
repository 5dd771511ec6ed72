"""In-memory tick outcome counters with a jitter window."""

from __future__ import annotations

import statistics
from collections import Counter, deque

from http_property.ports.metrics import MetricsPort, TickAttemptDto, TickOutcome

__all__ = ["Metrics"]


class Metrics(MetricsPort):
    """Per-outcome tick counters for the node.

    Outcome counts cover the whole run; jitter (how late a tick started
    relative to its boundary) is averaged over the last ``window_size``
    ticks. Not thread-safe; create one instance per event loop.
    """

    def __init__(self, *, window_size: int = 100) -> None:
        self._jitter_ms: deque[float] = deque(maxlen=window_size)
        self._outcomes: Counter[TickOutcome] = Counter()
        self._last_status: int | None = None

    def update(self, attempt: TickAttemptDto) -> None:
        """Record a finished tick."""
        self._jitter_ms.append((attempt.fired_at_sec - attempt.scheduled_at_sec) * 1_000.0)
        self._outcomes[attempt.outcome] += 1
        if attempt.status_code is not None:
            self._last_status = attempt.status_code

    def count(self, outcome: TickOutcome) -> int:
        return self._outcomes[outcome]

    @property
    def total_seen(self) -> int:
        return sum(self._outcomes.values())

    def __str__(self) -> str:
        if not self._jitter_ms:
            return "Metrics: waiting for data …"

        avg_jitter = statistics.fmean(self._jitter_ms)
        status = "---" if self._last_status is None else f"{self._last_status:3d}"
        return (
            f"ticks={self.total_seen} | "
            f"emitted={self.count(TickOutcome.EMITTED)} | "
            f"extract_fail={self.count(TickOutcome.EXTRACTION_FAILED)} | "
            f"unsupported={self.count(TickOutcome.UNSUPPORTED_CONTENT)} | "
            f"request_fail={self.count(TickOutcome.REQUEST_FAILED)} | "
            f"status={status} | "
            f"jitter={avg_jitter:5.1f} ms"
        )
