"""Tests for tick metrics."""

from http_property.adapters.driven.metrics.tick_metrics import Metrics
from http_property.ports.metrics import TickAttemptDto, TickOutcome

__all__ = []


def tick(outcome: TickOutcome, status: int | None = 200, late_sec: float = 0.0, at: float = 100.0) -> TickAttemptDto:
    return TickAttemptDto(scheduled_at_sec=at, fired_at_sec=at + late_sec, outcome=outcome, status_code=status)


def test_metrics_initialization() -> None:
    """Metrics should initialize with empty window."""
    metrics = Metrics()
    assert str(metrics) == "Metrics: waiting for data …"
    assert metrics.total_seen == 0


def test_metrics_counts_outcomes() -> None:
    """Each outcome should be counted separately."""
    metrics = Metrics(window_size=10)

    metrics.update(tick(TickOutcome.EMITTED))
    metrics.update(tick(TickOutcome.EMITTED))
    metrics.update(tick(TickOutcome.EXTRACTION_FAILED))
    metrics.update(tick(TickOutcome.REQUEST_FAILED, status=None))

    assert metrics.count(TickOutcome.EMITTED) == 2
    assert metrics.count(TickOutcome.EXTRACTION_FAILED) == 1
    assert metrics.count(TickOutcome.UNSUPPORTED_CONTENT) == 0
    assert metrics.total_seen == 4
    output = str(metrics)
    assert "emitted=2" in output
    assert "extract_fail=1" in output
    assert "request_fail=1" in output


def test_metrics_keeps_last_known_status() -> None:
    """Ticks without a response should not erase the last status."""
    metrics = Metrics()
    metrics.update(tick(TickOutcome.REQUEST_FAILED, status=None))
    assert "status=---" in str(metrics)

    metrics.update(tick(TickOutcome.EMITTED, status=503))
    metrics.update(tick(TickOutcome.REQUEST_FAILED, status=None))
    assert "status=503" in str(metrics)


def test_metrics_calculates_jitter() -> None:
    """Metrics should report jitter in milliseconds."""
    metrics = Metrics(window_size=10)
    metrics.update(tick(TickOutcome.EMITTED, late_sec=0.1))

    assert "jitter=100.0 ms" in str(metrics)


def test_metrics_jitter_uses_window_counts_use_all_ticks() -> None:
    """Jitter is averaged over the window; outcome counts are cumulative."""
    metrics = Metrics(window_size=5)

    for i in range(5):
        metrics.update(tick(TickOutcome.EMITTED, late_sec=1.0, at=100.0 + i))
    for i in range(5):
        metrics.update(tick(TickOutcome.EMITTED, late_sec=0.0, at=200.0 + i))

    output = str(metrics)
    assert "jitter=  0.0 ms" in output
    assert "ticks=10" in output
