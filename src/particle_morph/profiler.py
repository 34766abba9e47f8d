"""Stage timing for the per-frame morph pipeline.

Wraps each phase of a frame (gesture mapping, template switch, integration)
in a high-resolution timer and keeps a rolling window per stage.
"""

from __future__ import annotations

import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

import numpy as np


@dataclass
class StageStats:
    """Timing statistics for one stage, in milliseconds."""
    name: str
    avg_ms: float
    min_ms: float
    max_ms: float
    p95_ms: float
    call_count: int

    def to_dict(self) -> dict:
        return {
            "avg_ms": round(self.avg_ms, 3),
            "min_ms": round(self.min_ms, 3),
            "max_ms": round(self.max_ms, 3),
            "p95_ms": round(self.p95_ms, 3),
            "calls": self.call_count,
        }


class PipelineProfiler:
    """Rolling-window timer keyed by stage name.

    Usage:
        profiler = PipelineProfiler()
        with profiler.stage("integration"):
            sim.tick(dt, directives)
        print(profiler.summary())
    """

    STAGES = ["mapping", "template_switch", "integration", "total"]

    def __init__(self, window_size: int = 120):
        self._window_size = window_size
        self._timings: dict[str, deque[float]] = {}
        self._counts: dict[str, int] = {}
        for name in self.STAGES:
            self._ensure(name)
        self._enabled = True

    def _ensure(self, name: str):
        if name not in self._timings:
            self._timings[name] = deque(maxlen=self._window_size)
            self._counts[name] = 0

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        """Time the body of the ``with`` block under ``name``."""
        if not self._enabled:
            yield
            return

        self._ensure(name)
        t0 = time.perf_counter()
        try:
            yield
        finally:
            self.record(name, (time.perf_counter() - t0) * 1000.0)

    def record(self, name: str, elapsed_ms: float):
        """Add a timing measured elsewhere."""
        if not self._enabled:
            return
        self._ensure(name)
        self._timings[name].append(elapsed_ms)
        self._counts[name] += 1

    def get_stage_stats(self, name: str) -> StageStats | None:
        timings = self._timings.get(name)
        if not timings:
            return None

        samples = np.fromiter(timings, dtype=np.float64)
        return StageStats(
            name=name,
            avg_ms=float(samples.mean()),
            min_ms=float(samples.min()),
            max_ms=float(samples.max()),
            p95_ms=float(np.percentile(samples, 95)),
            call_count=self._counts.get(name, 0),
        )

    def summary(self) -> dict[str, dict]:
        """Stats for every stage that has recorded at least one call."""
        result = {}
        for name in self._timings:
            stats = self.get_stage_stats(name)
            if stats and stats.call_count > 0:
                result[name] = stats.to_dict()
        return result

    def reset(self):
        for d in self._timings.values():
            d.clear()
        for k in self._counts:
            self._counts[k] = 0

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool):
        self._enabled = value
