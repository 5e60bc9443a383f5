"""Counters and timers for the relay (connections, sessions, moves, errors)."""

import time
from collections import Counter
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator


@dataclass
class RelayMetrics:
    counters: Counter[str] = field(default_factory=Counter)
    timings: dict[str, list[float]] = field(default_factory=dict)
    started_at: float = field(default_factory=time.monotonic)

    def increment(self, name: str, amount: int = 1) -> None:
        self.counters[name] += amount

    def record_time(self, name: str, seconds: float) -> None:
        self.timings.setdefault(name, []).append(seconds)

    @contextmanager
    def timer(self, name: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record_time(name, time.perf_counter() - start)

    def snapshot(self) -> dict:
        """Plain dict for the /metrics route. Timings are summarised, not dumped."""
        return {
            "uptime_seconds": round(time.monotonic() - self.started_at, 3),
            "counters": dict(self.counters),
            "timings": {
                name: {
                    "count": len(values),
                    "mean_ms": round(1000 * sum(values) / len(values), 3),
                    "max_ms": round(1000 * max(values), 3),
                }
                for name, values in self.timings.items()
                if values
            },
        }
