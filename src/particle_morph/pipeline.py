"""Per-frame pipeline: gesture snapshot → directives → simulation tick → frame buffers."""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Optional

from particle_morph.events import SimulationEvent, SimulationListener
from particle_morph.gestures import GestureMapper, GestureSnapshot
from particle_morph.metrics import MetricsCollector
from particle_morph.profiler import PipelineProfiler
from particle_morph.shapes import ShapeId
from particle_morph.simulation import FrameBuffers, ParticleSimulation


@dataclass
class PipelineStats:
    """Runtime statistics."""
    fps: float
    avg_latency_ms: float
    total_frames: int
    template_switches: int
    palette_cycles: int
    active_template: Optional[str]
    expansion_factor: float
    profiler_summary: dict = field(default_factory=dict)


class _StatsListener(SimulationListener):
    """Feeds simulation events into the pipeline counters and metrics."""

    name = "pipeline_stats"

    def __init__(self, pipeline: MorphPipeline):
        super().__init__()
        self._pipeline = pipeline

    def on_template_changed(self, event: SimulationEvent):
        self._pipeline._template_switches += 1
        self._pipeline.metrics.record_template_switch(event.name)

    def on_palette_cycled(self, event: SimulationEvent):
        self._pipeline._palette_cycles += 1
        self._pipeline.metrics.record_palette_cycle()


class MorphPipeline:
    """Drives one ParticleSimulation from a stream of gesture snapshots.

    Features:
    - dt clamping to keep explicit Euler stable
    - Stage profiling (mapping, template switch, integration)
    - Prometheus metrics

    Usage:
        pipeline = MorphPipeline()
        frame = pipeline.step(dt, snapshot)
    """

    def __init__(
        self,
        simulation: Optional[ParticleSimulation] = None,
        mapper: Optional[GestureMapper] = None,
        metrics: Optional[MetricsCollector] = None,
        enable_profiling: bool = True,
    ):
        self.simulation = simulation or ParticleSimulation()
        self.mapper = mapper or GestureMapper()
        self.metrics = metrics or MetricsCollector()
        self.profiler = PipelineProfiler()
        self.profiler.enabled = enable_profiling

        self._frame_times: deque = deque(maxlen=60)
        self._total_frames = 0
        self._template_switches = 0
        self._palette_cycles = 0

        self.metrics.set_particle_count(self.simulation.count)
        self.simulation.events.register(_StatsListener(self))

    def clamp_dt(self, dt: float) -> float:
        return min(max(dt, 0.0), self.simulation.config.max_dt)

    def step(self, dt: float, snapshot: Optional[GestureSnapshot] = None) -> FrameBuffers:
        """Advance one frame and return the buffers for the renderer."""
        t_start = time.perf_counter()
        self._total_frames += 1
        dt = self.clamp_dt(dt)

        with self.profiler.stage("mapping"):
            directives = self.mapper.map(snapshot)

        # Time the switch separately so integration timings stay comparable.
        # The event carries the clock value tick() is about to advance to.
        requested = directives.template
        if requested is not None and requested != self.simulation.active_template:
            with self.profiler.stage("template_switch"):
                self.simulation.switch_template(
                    requested, timestamp=self.simulation.state.elapsed_time + dt
                )

        with self.profiler.stage("integration"):
            self.simulation.tick(dt, directives)

        frame = self.simulation.frame_buffers()

        elapsed = time.perf_counter() - t_start
        self._frame_times.append(elapsed)
        self.profiler.record("total", elapsed * 1000.0)
        self.metrics.record_tick(
            elapsed,
            hand_detected=bool(snapshot and snapshot.hand_detected),
            expansion_factor=self.simulation.state.expansion_factor,
        )
        return frame

    def switch_template(self, name: ShapeId | str) -> bool:
        with self.profiler.stage("template_switch"):
            return self.simulation.switch_template(name)

    def cycle_palette(self) -> int:
        return self.simulation.cycle_palette()

    @property
    def stats(self) -> PipelineStats:
        if self._frame_times:
            avg_latency = sum(self._frame_times) / len(self._frame_times)
            fps = 1.0 / avg_latency if avg_latency > 0 else 0.0
        else:
            avg_latency = 0.0
            fps = 0.0

        template = self.simulation.active_template
        return PipelineStats(
            fps=fps,
            avg_latency_ms=avg_latency * 1000,
            total_frames=self._total_frames,
            template_switches=self._template_switches,
            palette_cycles=self._palette_cycles,
            active_template=template.value if template else None,
            expansion_factor=self.simulation.state.expansion_factor,
            profiler_summary=self.profiler.summary(),
        )

    def reset_stats(self):
        self._frame_times.clear()
        self._total_frames = 0
        self._template_switches = 0
        self._palette_cycles = 0
        self.profiler.reset()

    def close(self):
        self.simulation.events.shutdown()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
