"""Unit tests for /lobbychess/core/metrics.py"""

from lobbychess.core.metrics import RelayMetrics


def test_counters() -> None:
    metrics = RelayMetrics()
    metrics.increment("moves_relayed")
    metrics.increment("moves_relayed")
    metrics.increment("errors", 3)
    assert metrics.snapshot()["counters"] == {"moves_relayed": 2, "errors": 3}


def test_timings_are_summarised() -> None:
    metrics = RelayMetrics()
    metrics.record_time("move_validation", 0.002)
    metrics.record_time("move_validation", 0.004)
    with metrics.timer("move_validation"):
        pass

    summary = metrics.snapshot()["timings"]["move_validation"]
    assert summary["count"] == 3
    assert summary["max_ms"] == 4.0
    assert summary["mean_ms"] >= 2.0


def test_timer_records_on_error() -> None:
    metrics = RelayMetrics()
    try:
        with metrics.timer("move_validation"):
            raise ValueError("rejected")
    except ValueError:
        pass
    assert len(metrics.timings["move_validation"]) == 1
