"""Parametric shape templates: map (u, v) samples to 3D target points.

Every template takes two independent uniform samples in [0, 1) and returns a
point in simulation space. Some shapes fill their interior with extra
randomness drawn from the supplied numpy Generator (documented per shape).

Usage:
    rng = np.random.default_rng(7)
    points = generate_batch(ShapeId.HEART, rng.random(1000), rng.random(1000), rng)
    x, y, z = generate("sphere", 0.25, 0.5, rng)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import numpy as np

TWO_PI = 2.0 * math.pi


class UnknownTemplateError(ValueError):
    """Raised when a shape name is not one of the known templates."""

    def __init__(self, name: object):
        super().__init__(f"Unknown template: {name!r}")
        self.name = name


class ShapeId(Enum):
    """The closed set of target templates."""
    HEART = "heart"
    FLOWER = "flower"
    SATURN = "saturn"
    FIREWORKS = "fireworks"
    GALAXY = "galaxy"
    DNA = "dna"
    STAR = "star"
    TORNADO = "tornado"
    SPHERE = "sphere"

    @classmethod
    def parse(cls, value: ShapeId | str | None) -> Optional[ShapeId]:
        """Return the matching ShapeId, or None if the value is not a template."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None

    @classmethod
    def require(cls, value: ShapeId | str) -> ShapeId:
        shape = cls.parse(value)
        if shape is None:
            raise UnknownTemplateError(value)
        return shape


@dataclass(frozen=True)
class ShapeMeta:
    """Display metadata for the UI template indicator."""
    display_name: str
    emoji: str


SHAPE_META: dict[ShapeId, ShapeMeta] = {
    ShapeId.HEART: ShapeMeta("Heart", "❤️"),
    ShapeId.FLOWER: ShapeMeta("Flower", "🌸"),
    ShapeId.SATURN: ShapeMeta("Saturn", "🪐"),
    ShapeId.FIREWORKS: ShapeMeta("Fireworks", "🎆"),
    ShapeId.GALAXY: ShapeMeta("Galaxy", "🌀"),
    ShapeId.DNA: ShapeMeta("DNA", "🧬"),
    ShapeId.STAR: ShapeMeta("Star", "⭐"),
    ShapeId.TORNADO: ShapeMeta("Tornado", "🌪️"),
    ShapeId.SPHERE: ShapeMeta("Sphere", "🔮"),
}

# Generators operate on 1-D arrays of u and v and return an (n, 3) array.
ShapeGenerator = Callable[[np.ndarray, np.ndarray, np.random.Generator], np.ndarray]

_GENERATORS: dict[ShapeId, ShapeGenerator] = {}


def template(shape: ShapeId):
    """Decorator registering a vectorised generator for a shape."""
    def decorator(fn: ShapeGenerator) -> ShapeGenerator:
        _GENERATORS[shape] = fn
        return fn
    return decorator


def _stack(x, y, z) -> np.ndarray:
    return np.stack([x, y, z], axis=-1)


def _centered(rng: np.random.Generator, n: int) -> np.ndarray:
    """Uniform samples in [-0.5, 0.5)."""
    return rng.random(n) - 0.5


@template(ShapeId.HEART)
def heart(u: np.ndarray, v: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Filled heart curve; cbrt(v) spreads points over the interior."""
    phi = u * TWO_PI
    scale = np.cbrt(v)
    x = 16.0 * np.sin(phi) ** 3 * scale
    y = (
        13.0 * np.cos(phi)
        - 5.0 * np.cos(2.0 * phi)
        - 2.0 * np.cos(3.0 * phi)
        - np.cos(4.0 * phi)
    ) * scale
    z = _centered(rng, len(u)) * 4.0 * scale
    return _stack(x * 0.45, y * 0.45 + 2.0, z)


@template(ShapeId.FLOWER)
def flower(u: np.ndarray, v: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Five-petal spherical rose."""
    phi = u * TWO_PI
    theta = v * math.pi
    r = 10.0 * (1.0 + 0.6 * np.sin(5.0 * phi) * np.sin(theta))
    return _stack(
        r * np.sin(theta) * np.cos(phi),
        r * np.sin(theta) * np.sin(phi),
        r * np.cos(theta),
    )


@template(ShapeId.SATURN)
def saturn(u: np.ndarray, v: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Flattened planet body for v < 0.35, tilted ring of radius 13 to 31.2 otherwise."""
    n = len(u)
    phi = u * TWO_PI

    # Planet body
    theta = (v / 0.35) * math.pi
    r = 8.0 * np.cbrt(rng.random(n))
    body = _stack(
        r * np.sin(theta) * np.cos(phi),
        r * np.sin(theta) * np.sin(phi) * 0.85,
        r * np.cos(phi) * 0.4,
    )

    # Rings, tilted ~25 degrees about the x axis
    ring_r = 13.0 + (v - 0.35) * 28.0
    ring_y = _centered(rng, n) * 0.4
    ring_x = np.cos(phi) * ring_r
    ring_z = np.sin(phi) * ring_r
    tilt = 0.44
    ring = _stack(
        ring_x,
        ring_y + ring_z * math.sin(tilt),
        ring_z * math.cos(tilt),
    )

    return np.where((v < 0.35)[:, None], body, ring)


@template(ShapeId.FIREWORKS)
def fireworks(u: np.ndarray, v: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Five small filled bursts placed from the burst index floor(5u)."""
    burst = np.floor(u * 5.0)
    cx = (burst - 2.0) * 10.0 + np.sin(burst * 7.3) * 4.0
    cy = np.cos(burst * 3.1) * 6.0 + 4.0
    cz = np.sin(burst * 5.7) * 3.0

    polar = np.arccos(np.clip(2.0 * v - 1.0, -1.0, 1.0))
    azimuth = u * TWO_PI * 12.5
    r = rng.random(len(u)) * 6.0

    return _stack(
        cx + r * np.sin(polar) * np.cos(azimuth),
        cy + r * np.sin(polar) * np.sin(azimuth),
        cz + r * np.cos(polar),
    )


@template(ShapeId.GALAXY)
def galaxy(u: np.ndarray, v: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Three spiral arms with spread growing along the arm."""
    n = len(u)
    arms = 3
    arm = np.floor(u * arms * 100) % arms
    arm_angle = (arm / arms) * TWO_PI
    t = v * 30.0
    angle = arm_angle + t * 0.4
    spread = 0.5 + t * 0.12

    return _stack(
        t * np.cos(angle) + _centered(rng, n) * spread * 3.0,
        _centered(rng, n) * (1.5 + t * 0.05),
        t * np.sin(angle) + _centered(rng, n) * spread * 3.0,
    )


@template(ShapeId.DNA)
def dna(u: np.ndarray, v: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Double helix of radius 6 with cross-bar rungs for u >= 0.8."""
    n = len(u)
    h = v * 50.0 - 25.0
    angle = h * 0.5

    strand_a = _stack(np.cos(angle) * 6.0, h, np.sin(angle) * 6.0)
    strand_b = _stack(np.cos(angle + math.pi) * 6.0, h, np.sin(angle + math.pi) * 6.0)

    lerp = rng.random(n)[:, None]
    rung = strand_a * (1.0 - lerp) + strand_b * lerp
    rung[:, 1] = h + _centered(rng, n) * 0.3

    return np.where(
        (u < 0.4)[:, None],
        strand_a,
        np.where((u < 0.8)[:, None], strand_b, rung),
    )


@template(ShapeId.STAR)
def star(u: np.ndarray, v: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Filled planar five-point star."""
    points = 5
    outer_r, inner_r = 15.0, 6.0
    angle = u * TWO_PI
    segment = angle / (math.pi / points)
    seg_floor = np.floor(segment)
    seg_frac = segment - seg_floor

    even = (seg_floor % 2) == 0
    r1 = np.where(even, outer_r, inner_r)
    r2 = np.where(even, inner_r, outer_r)
    max_r = r1 + (r2 - r1) * seg_frac
    r = np.sqrt(v) * max_r

    return _stack(
        r * np.cos(angle),
        r * np.sin(angle),
        _centered(rng, len(u)) * 2.0,
    )


@template(ShapeId.TORNADO)
def tornado(u: np.ndarray, v: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Spiral funnel, r = 2 + 18v², twisted with height."""
    angle = u * TWO_PI * 10.0
    h = v * 40.0 - 20.0
    r = 2.0 + (v * v) * 18.0
    twist = angle + h * 0.2
    return _stack(np.cos(twist) * r, h, np.sin(twist) * r)


@template(ShapeId.SPHERE)
def sphere(u: np.ndarray, v: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    phi = u * TWO_PI
    theta = v * math.pi
    r = 15.0 * np.cbrt(rng.random(len(u)))
    return _stack(
        r * np.sin(theta) * np.cos(phi),
        r * np.sin(theta) * np.sin(phi),
        r * np.cos(theta),
    )


def generate_batch(
    shape: ShapeId | str,
    u: np.ndarray,
    v: np.ndarray,
    rng: np.random.Generator,
) -> np.ndarray:
    """Generate target points for many (u, v) pairs at once.

    Args:
        shape: Template id or name.
        u, v: 1-D arrays of equal length with values in [0, 1).
        rng: Source for the shape's interior-fill randomness.

    Returns:
        Array of shape (n, 3), float64.

    Raises:
        UnknownTemplateError: if ``shape`` is not a known template.
    """
    shape_id = ShapeId.require(shape)
    u = np.asarray(u, dtype=np.float64).reshape(-1)
    v = np.asarray(v, dtype=np.float64).reshape(-1)
    if u.shape != v.shape:
        raise ValueError(f"u and v must have the same length ({len(u)} != {len(v)})")
    return _GENERATORS[shape_id](u, v, rng)


def generate(
    shape: ShapeId | str,
    u: float,
    v: float,
    rng: Optional[np.random.Generator] = None,
) -> tuple[float, float, float]:
    """Generate a single target point."""
    rng = rng if rng is not None else np.random.default_rng()
    point = generate_batch(shape, np.array([u]), np.array([v]), rng)[0]
    return float(point[0]), float(point[1]), float(point[2])


def available_shapes() -> list[ShapeId]:
    return [s for s in ShapeId if s in _GENERATORS]
