"""Prometheus text-format metrics for a running morph simulation.

No client library; the exposition format is generated directly.

Tracked metrics:
- particle_morph_ticks_total (counter)
- particle_morph_template_switches_total (counter, by template)
- particle_morph_palette_cycles_total (counter)
- particle_morph_tick_latency_seconds (histogram)
- particle_morph_hand_detection_rate (gauge)
- particle_morph_particles (gauge)
- particle_morph_expansion_factor (gauge)
"""

from __future__ import annotations

import threading
import time
from collections import Counter


class _Histogram:
    """Cumulative-bucket histogram."""

    def __init__(self, buckets: list[float]):
        self.buckets = sorted(buckets)
        self.bucket_counts = [0] * len(self.buckets)
        self.count = 0
        self.sum = 0.0
        self._lock = threading.Lock()

    def observe(self, value: float):
        with self._lock:
            self.count += 1
            self.sum += value
            for i, b in enumerate(self.buckets):
                if value <= b:
                    self.bucket_counts[i] += 1
                    break

    def render(self, name: str, help_text: str) -> list[str]:
        lines = [
            f"# HELP {name} {help_text}",
            f"# TYPE {name} histogram",
        ]
        with self._lock:
            cumulative = 0
            for b, n in zip(self.buckets, self.bucket_counts):
                cumulative += n
                lines.append(f'{name}_bucket{{le="{b}"}} {cumulative}')
            lines.append(f'{name}_bucket{{le="+Inf"}} {self.count}')
            lines.append(f"{name}_sum {self.sum:.6f}")
            lines.append(f"{name}_count {self.count}")
        return lines


def _block(name: str, kind: str, help_text: str, samples: list[str]) -> list[str]:
    return [f"# HELP {name} {help_text}", f"# TYPE {name} {kind}", *samples]


class MetricsCollector:
    """Collects simulation counters and renders them for scraping."""

    PREFIX = "particle_morph"

    def __init__(self):
        self._template_switches: Counter = Counter()
        self._ticks_total = 0
        self._palette_cycles = 0
        self._hand_detection_rate = 0.0
        self._particles = 0
        self._expansion_factor = 1.0
        self._lock = threading.Lock()

        # Tick latency: 0.5 ms to 50 ms (a frame budget at 20 fps)
        self._latency = _Histogram([0.0005, 0.001, 0.002, 0.005, 0.010, 0.016, 0.033, 0.050])
        self._start_time = time.time()

    def record_tick(self, latency_seconds: float, hand_detected: bool, expansion_factor: float):
        with self._lock:
            self._ticks_total += 1
            rate = 1.0 if hand_detected else 0.0
            self._hand_detection_rate = 0.95 * self._hand_detection_rate + 0.05 * rate
            self._expansion_factor = expansion_factor
        self._latency.observe(latency_seconds)

    def record_template_switch(self, template: str):
        with self._lock:
            self._template_switches[template] += 1

    def record_palette_cycle(self):
        with self._lock:
            self._palette_cycles += 1

    def set_particle_count(self, count: int):
        self._particles = count

    def render(self) -> str:
        p = self.PREFIX
        lines: list[str] = []

        lines += _block(
            f"{p}_uptime_seconds", "gauge", "Time since collector start",
            [f"{p}_uptime_seconds {time.time() - self._start_time:.1f}"],
        )
        lines.append("")

        with self._lock:
            lines += _block(
                f"{p}_ticks_total", "counter", "Simulation ticks processed",
                [f"{p}_ticks_total {self._ticks_total}"],
            )
            lines.append("")
            lines += _block(
                f"{p}_template_switches_total", "counter", "Template switches by template",
                [
                    f'{p}_template_switches_total{{template="{name}"}} {count}'
                    for name, count in sorted(self._template_switches.items())
                ],
            )
            lines.append("")
            lines += _block(
                f"{p}_palette_cycles_total", "counter", "Palette cycle requests",
                [f"{p}_palette_cycles_total {self._palette_cycles}"],
            )
            lines.append("")
            lines += _block(
                f"{p}_hand_detection_rate", "gauge",
                "Exponential moving average of hand presence per tick",
                [f"{p}_hand_detection_rate {self._hand_detection_rate:.4f}"],
            )
            lines.append("")
            lines += _block(
                f"{p}_expansion_factor", "gauge", "Current smoothed expansion factor",
                [f"{p}_expansion_factor {self._expansion_factor:.4f}"],
            )
            lines.append("")

        lines += _block(
            f"{p}_particles", "gauge", "Particles in the simulation",
            [f"{p}_particles {self._particles}"],
        )
        lines.append("")
        lines += self._latency.render(f"{p}_tick_latency_seconds", "Tick processing latency in seconds")
        lines.append("")

        return "\n".join(lines) + "\n"

    @property
    def template_switches(self) -> dict[str, int]:
        with self._lock:
            return dict(self._template_switches)

    @property
    def ticks_total(self) -> int:
        return self._ticks_total
