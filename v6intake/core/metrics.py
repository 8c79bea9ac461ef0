# v6intake/core/metrics.py
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional


class Timer:
    """Accumulates durations (in seconds) for one named operation."""

    def __init__(self) -> None:
        self.count = 0
        self.total = 0.0
        self.min: Optional[float] = None
        self.max: Optional[float] = None

    def update(self, elapsed: float) -> None:
        self.count += 1
        self.total += elapsed
        self.min = elapsed if self.min is None else min(self.min, elapsed)
        self.max = elapsed if self.max is None else max(self.max, elapsed)

    @property
    def mean(self) -> float:
        return self.total / self.count if self.count else 0.0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "total": self.total,
            "min": self.min,
            "max": self.max,
            "mean": self.mean,
        }


class MetricsCollector:
    """
    Named timers and counters for one run.

    Passed explicitly to whatever needs to record something; there is no
    module-level registry.
    """

    def __init__(self) -> None:
        self._timers: Dict[str, Timer] = {}
        self._counters: Dict[str, int] = {}

    def get_timer(self, name: str) -> Timer:
        if name not in self._timers:
            self._timers[name] = Timer()
        return self._timers[name]

    @contextmanager
    def timer(self, name: str) -> Iterator[Timer]:
        """Times the body of the `with` block, recording it even if the body raises."""
        t = self.get_timer(name)
        start = time.perf_counter()
        try:
            yield t
        finally:
            t.update(time.perf_counter() - start)

    def increment(self, name: str, amount: int = 1) -> int:
        self._counters[name] = self._counters.get(name, 0) + amount
        return self._counters[name]

    def counter(self, name: str) -> int:
        return self._counters.get(name, 0)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "timers": {name: t.as_dict() for name, t in self._timers.items()},
            "counters": dict(self._counters),
        }
