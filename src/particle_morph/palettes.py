"""Per-shape colour palettes and palette cycling.

Each template owns a short ordered palette. Particle i takes
``palette[i % len(palette)]`` plus a small per-channel perturbation. Cycling
rotates the red/blue channels in the (r, b) plane by an angle proportional to
the cycle index. This approximates a hue shift and leaves green untouched.
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from particle_morph.shapes import ShapeId

Color = tuple[float, float, float]

SHAPE_PALETTES: dict[ShapeId, list[Color]] = {
    ShapeId.HEART: [(1.0, 0.15, 0.35), (1.0, 0.35, 0.55), (0.85, 0.05, 0.25), (1.0, 0.55, 0.65)],
    ShapeId.FLOWER: [(1.0, 0.75, 0.15), (0.2, 0.85, 0.35), (1.0, 0.45, 0.65), (0.95, 0.55, 0.1)],
    ShapeId.SATURN: [(0.55, 0.25, 0.9), (0.9, 0.7, 0.2), (0.75, 0.45, 1.0), (0.3, 0.15, 0.7)],
    ShapeId.FIREWORKS: [(1.0, 0.85, 0.1), (1.0, 0.25, 0.1), (0.15, 1.0, 0.35), (0.25, 0.6, 1.0)],
    ShapeId.GALAXY: [(0.1, 0.7, 1.0), (0.85, 0.3, 1.0), (0.2, 0.4, 1.0), (0.95, 0.9, 0.75)],
    ShapeId.DNA: [(0.0, 0.9, 0.8), (0.0, 0.6, 1.0), (0.3, 1.0, 0.5), (0.1, 0.8, 0.9)],
    ShapeId.STAR: [(1.0, 0.95, 0.5), (1.0, 0.8, 0.2), (1.0, 0.65, 0.0), (1.0, 1.0, 0.85)],
    ShapeId.TORNADO: [(0.6, 0.6, 0.7), (0.4, 0.45, 0.55), (0.8, 0.85, 0.9), (0.35, 0.4, 0.5)],
    ShapeId.SPHERE: [(0.3, 0.5, 1.0), (0.4, 0.65, 1.0), (0.5, 0.75, 1.0), (0.2, 0.4, 0.9)],
}

DEFAULT_PALETTE = ShapeId.SPHERE


class PaletteManager:
    """Produces target colours for a template, with optional hue cycling.

    Usage:
        palettes = PaletteManager()
        jitter = palettes.sample_jitter(count, rng)
        colors = palettes.target_colors(ShapeId.HEART, count, cycle_index=0, jitter=jitter)
    """

    def __init__(
        self,
        palettes: Optional[dict[ShapeId, list[Color]]] = None,
        variation: float = 0.1,
        hue_step: float = 0.25,
    ):
        self._palettes: dict[ShapeId, np.ndarray] = {
            shape: np.asarray(colors, dtype=np.float64)
            for shape, colors in (palettes or SHAPE_PALETTES).items()
        }
        self.variation = variation
        self.hue_step = hue_step

    def palette(self, shape: ShapeId | str) -> np.ndarray:
        """Base palette for a shape as an (k, 3) array; unknown palettes fall back to sphere."""
        shape_id = ShapeId.require(shape)
        base = self._palettes.get(shape_id)
        if base is None:
            base = self._palettes.get(DEFAULT_PALETTE, np.asarray(SHAPE_PALETTES[DEFAULT_PALETTE]))
        return base.copy()

    def palette_length(self, shape: ShapeId | str) -> int:
        return len(self.palette(shape))

    def rotation_angle(self, cycle_index: int) -> float:
        return cycle_index * self.hue_step

    def sample_jitter(self, count: int, rng: np.random.Generator) -> np.ndarray:
        """Per-particle colour perturbation, uniform in ±variation/2 per channel."""
        return (rng.random((count, 3)) - 0.5) * self.variation

    def target_colors(
        self,
        shape: ShapeId | str,
        count: int,
        cycle_index: int = 0,
        jitter: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """Target colours for particles 0..count-1.

        Args:
            shape: Template whose palette is used.
            count: Number of particles.
            cycle_index: Palette cycle counter; 0 means no rotation.
            jitter: Optional (count, 3) perturbation from ``sample_jitter``.
                Reusing the same jitter makes the result a pure function of
                ``cycle_index``.

        Returns:
            (count, 3) float64 array with every channel in [0, 1].
        """
        base = self.palette(shape)
        colors = base[np.arange(count) % len(base)]
        if jitter is not None:
            colors = colors + jitter
        if cycle_index:
            colors = self._rotate_rb(colors, self.rotation_angle(cycle_index))
        return np.clip(colors, 0.0, 1.0)

    def target_color_for(
        self,
        shape: ShapeId | str,
        particle_index: int,
        cycle_index: int = 0,
        rng: Optional[np.random.Generator] = None,
    ) -> Color:
        """Target colour for a single particle."""
        base = self.palette(shape)
        color = base[particle_index % len(base)]
        if rng is not None:
            color = color + self.sample_jitter(1, rng)[0]
        if cycle_index:
            color = self._rotate_rb(color[None, :], self.rotation_angle(cycle_index))[0]
        r, g, b = np.clip(color, 0.0, 1.0)
        return float(r), float(g), float(b)

    @staticmethod
    def _rotate_rb(colors: np.ndarray, angle: float) -> np.ndarray:
        cos_a, sin_a = math.cos(angle), math.sin(angle)
        rotated = colors.copy()
        rotated[:, 0] = colors[:, 0] * cos_a + colors[:, 2] * sin_a
        rotated[:, 2] = colors[:, 2] * cos_a - colors[:, 0] * sin_a
        return rotated
