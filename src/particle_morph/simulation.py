"""Particle simulation: fixed-size buffers, template seeding and the per-tick integrator.

Particles are stored struct-of-arrays: positions, velocities, colours and
targets are (N, 3) float64 arrays, sizes and phases are (N,). Every tick is a
handful of whole-array numpy operations; no particle reads another particle's
state, so ordering never matters.

Usage:
    sim = ParticleSimulation(SimulationConfig(particle_count=5000, seed=1))
    sim.switch_template("heart")
    for _ in range(60):
        sim.tick(1 / 60)
    frame = sim.frame_buffers()
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from particle_morph.config import SimulationConfig
from particle_morph.events import (
    PALETTE_CYCLED,
    TEMPLATE_CHANGED,
    EventDispatcher,
    SimulationEvent,
    SimulationListener,
)
from particle_morph.gestures import Directives
from particle_morph.palettes import PaletteManager
from particle_morph.shapes import SHAPE_META, ShapeId, generate_batch

logger = logging.getLogger("particle_morph.simulation")

# Stand-in repulsion point when there is no pointer: far outside any interaction radius.
NO_REPULSION = (9999.0, 9999.0)

INITIAL_COLOR = (0.2, 0.5, 1.0)
INITIAL_SIZE_RANGE = (0.2, 1.0)


@dataclass
class SimulationState:
    """Mutable per-simulation state. Owned by one ParticleSimulation."""
    active_template: Optional[ShapeId] = None
    expansion_factor: float = 1.0
    elapsed_time: float = 0.0
    palette_cycle_index: int = 0


@dataclass(frozen=True)
class FrameBuffers:
    """Read-only flat buffers handed to the renderer once per tick."""
    positions: np.ndarray  # (3N,) float32, xyz interleaved
    colors: np.ndarray  # (3N,) float32, rgb interleaved
    sizes: np.ndarray  # (N,) float32
    phases: np.ndarray  # (N,) float32
    elapsed_time: float
    expansion_factor: float
    template: Optional[str]

    @property
    def count(self) -> int:
        return len(self.sizes)


def _frozen(array: np.ndarray) -> np.ndarray:
    out = np.ascontiguousarray(array, dtype=np.float32).reshape(-1).copy()
    out.setflags(write=False)
    return out


class ParticleSimulation:
    """Owns N particles and morphs them toward the active template."""

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        rng: Optional[np.random.Generator] = None,
        events: Optional[EventDispatcher] = None,
        palettes: Optional[PaletteManager] = None,
    ):
        self.config = (config or SimulationConfig()).validate()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self.events = events or EventDispatcher()
        self.palettes = palettes or PaletteManager(
            variation=self.config.color_variation,
            hue_step=self.config.hue_step,
        )
        self.state = SimulationState()

        n = self.config.particle_count
        extent = self.config.spawn_extent
        self._count = n
        self._positions = (self.rng.random((n, 3)) - 0.5) * extent
        self._velocities = np.zeros((n, 3))
        self._colors = np.tile(np.asarray(INITIAL_COLOR, dtype=np.float64), (n, 1))
        lo, hi = INITIAL_SIZE_RANGE
        self._sizes = self.rng.random(n) * (hi - lo) + lo
        self._phases = self.rng.random(n)
        self._index_phase = np.arange(n) * self.config.size_index_phase

        # Targets stay NaN until the first template switch; the integrator skips them.
        self._target_positions = np.full((n, 3), np.nan)
        self._target_colors = self._colors.copy()
        self._color_jitter = np.zeros((n, 3))

        self._callback_listener: Optional[SimulationListener] = None

        if self.config.initial_template is not None:
            self.switch_template(self.config.initial_template)

    # ─── Control surface ───

    def switch_template(self, shape: ShapeId | str, timestamp: Optional[float] = None) -> bool:
        """Regenerate every target for ``shape`` and make it the active template.

        Unknown names leave the simulation untouched and return False.
        ``timestamp`` stamps the emitted event and defaults to the simulation clock.
        """
        shape_id = ShapeId.parse(shape)
        if shape_id is None:
            logger.warning("Ignoring unknown template %r", shape)
            return False

        n = self._count
        u = self.rng.random(n)
        v = self.rng.random(n)
        targets = generate_batch(shape_id, u, v, self.rng)
        targets += (self.rng.random((n, 3)) - 0.5) * self.config.target_jitter

        color_jitter = self.palettes.sample_jitter(n, self.rng)
        colors = self.palettes.target_colors(
            shape_id, n, self.state.palette_cycle_index, color_jitter
        )

        # Swap complete buffers in one step so no partial switch is ever visible.
        self._target_positions = targets
        self._target_colors = colors
        self._color_jitter = color_jitter

        previous = self.state.active_template
        self.state.active_template = shape_id
        logger.info(
            "Template switched: %s -> %s",
            previous.value if previous else None,
            shape_id.value,
        )

        meta = SHAPE_META[shape_id]
        self.events.dispatch(SimulationEvent(
            type=TEMPLATE_CHANGED,
            name=shape_id.value,
            data={
                "display_name": meta.display_name,
                "emoji": meta.emoji,
                "previous": previous.value if previous else None,
            },
            timestamp=self.state.elapsed_time if timestamp is None else timestamp,
        ))
        return True

    def cycle_palette(self) -> int:
        """Advance the palette cycle and recompute all target colours. Returns the new index."""
        self.state.palette_cycle_index += 1
        shape_id = self.state.active_template
        if shape_id is not None:
            self._target_colors = self.palettes.target_colors(
                shape_id, self._count, self.state.palette_cycle_index, self._color_jitter
            )

        self.events.dispatch(SimulationEvent(
            type=PALETTE_CYCLED,
            name=shape_id.value if shape_id else "",
            data={
                "cycle_index": self.state.palette_cycle_index,
                "angle": self.palettes.rotation_angle(self.state.palette_cycle_index),
            },
            timestamp=self.state.elapsed_time,
        ))
        return self.state.palette_cycle_index

    def on_template_changed(self, callback: Callable[[SimulationEvent], None]):
        """Register a plain callback for template-changed events."""
        if self._callback_listener is None:
            self._callback_listener = SimulationListener(name="callbacks")
            self.events.register(self._callback_listener)
        self._callback_listener.handler("*")(callback)

    # ─── Integrator ───

    def tick(self, dt: float, directives: Optional[Directives] = None):
        """Advance the simulation by ``dt`` seconds.

        ``dt`` is expected to be small (the pipeline caps it at ``max_dt``).
        """
        cfg = self.config
        state = self.state
        directives = directives or Directives()

        state.elapsed_time += dt

        requested = ShapeId.parse(directives.template)
        if requested is not None and requested != state.active_template:
            self.switch_template(requested)

        # A non-finite target would stick in the smoothed factor forever
        if math.isfinite(directives.expansion_target):
            state.expansion_factor += (
                (directives.expansion_target - state.expansion_factor) * cfg.expansion_smoothing
            )

        pos = self._positions
        vel = self._velocities
        col = self._colors

        # Seek toward the scaled target
        valid = np.isfinite(self._target_positions).all(axis=1)
        if valid.all():
            vel += (self._target_positions * state.expansion_factor - pos) * (cfg.seek_gain * dt)
        elif valid.any():
            vel[valid] += (
                (self._target_positions[valid] * state.expansion_factor - pos[valid])
                * (cfg.seek_gain * dt)
            )

        # Repulsion around the pointer (z = 0 plane) with a highlight
        bx, by = directives.repulsion_point or NO_REPULSION
        delta = np.array([bx, by, 0.0]) - pos
        dist_sq = np.einsum("ij,ij->i", delta, delta)
        near = (dist_sq > cfg.repulsion_min_dist_sq) & (dist_sq < cfg.repulsion_max_dist_sq)

        if near.any():
            dist = np.sqrt(dist_sq[near])
            force = (cfg.repulsion_radius - dist) * cfg.repulsion_strength
            normal = delta[near] / dist[:, None]
            vel[near] -= normal * (force * dt * cfg.repulsion_gain)[:, None]
            col[near] = np.minimum(col[near] + cfg.highlight_boost, 1.0)

            far = ~near
            col[far] += (self._target_colors[far] - col[far]) * cfg.color_lerp
        else:
            col += (self._target_colors - col) * cfg.color_lerp

        np.clip(col, 0.0, 1.0, out=col)

        vel *= cfg.damping
        pos += vel * dt

        self._sizes = cfg.size_base + cfg.size_amplitude * np.sin(
            state.elapsed_time * cfg.size_frequency + self._index_phase
        )

    # ─── Buffers ───

    def frame_buffers(self) -> FrameBuffers:
        """Snapshot of the renderable state. The arrays are read-only copies."""
        template = self.state.active_template
        return FrameBuffers(
            positions=_frozen(self._positions),
            colors=_frozen(self._colors),
            sizes=_frozen(self._sizes),
            phases=_frozen(self._phases),
            elapsed_time=self.state.elapsed_time,
            expansion_factor=self.state.expansion_factor,
            template=template.value if template else None,
        )

    @property
    def count(self) -> int:
        return self._count

    @property
    def active_template(self) -> Optional[ShapeId]:
        return self.state.active_template

    @property
    def positions(self) -> np.ndarray:
        return self._positions.copy()

    @property
    def velocities(self) -> np.ndarray:
        return self._velocities.copy()

    @property
    def colors(self) -> np.ndarray:
        return self._colors.copy()

    @property
    def sizes(self) -> np.ndarray:
        return self._sizes.copy()

    @property
    def phases(self) -> np.ndarray:
        return self._phases.copy()

    @property
    def target_positions(self) -> np.ndarray:
        return self._target_positions.copy()

    @property
    def target_colors(self) -> np.ndarray:
        return self._target_colors.copy()
