"""Tests for the parametric shape templates."""

import math

import numpy as np
import pytest

from particle_morph.shapes import (
    SHAPE_META,
    ShapeId,
    UnknownTemplateError,
    available_shapes,
    generate,
    generate_batch,
)


def _sample(shape, n=5000, seed=42):
    rng = np.random.default_rng(seed)
    return generate_batch(shape, rng.random(n), rng.random(n), rng)


class TestShapeId:
    def test_parse_name(self):
        assert ShapeId.parse("heart") is ShapeId.HEART
        assert ShapeId.parse(" DNA ") is ShapeId.DNA

    def test_parse_passthrough(self):
        assert ShapeId.parse(ShapeId.STAR) is ShapeId.STAR

    def test_parse_unknown(self):
        assert ShapeId.parse("cube") is None
        assert ShapeId.parse(None) is None
        assert ShapeId.parse(3) is None

    def test_require_raises(self):
        with pytest.raises(UnknownTemplateError):
            ShapeId.require("cube")

    def test_nine_templates(self):
        assert len(ShapeId) == 9
        assert set(available_shapes()) == set(ShapeId)

    def test_every_shape_has_meta(self):
        for shape in ShapeId:
            assert SHAPE_META[shape].display_name
            assert SHAPE_META[shape].emoji


class TestExactGeometry:
    def test_heart_center_at_zero_fill(self):
        # cbrt(0) collapses every heart point onto the offset centre
        assert generate("heart", 0.3, 0.0) == pytest.approx((0.0, 2.0, 0.0))

    def test_heart_top(self):
        # phi = 0: x = 0, y = (13 - 5 - 2 - 1) * 0.45 + 2
        x, y, z = generate("heart", 0.0, 1.0)
        assert x == pytest.approx(0.0, abs=1e-9)
        assert y == pytest.approx(5 * 0.45 + 2.0)
        assert abs(z) <= 2.0

    def test_flower_equator(self):
        x, y, z = generate("flower", 0.0, 0.5)
        assert (x, y, z) == pytest.approx((10.0, 0.0, 0.0), abs=1e-9)

    def test_flower_petal(self):
        # phi = pi/10 puts sin(5 phi) = 1, so r = 16 on the equator
        x, y, z = generate("flower", 0.05, 0.5)
        assert math.hypot(x, y) == pytest.approx(16.0)

    def test_tornado(self):
        x, y, z = generate("tornado", 0.0, 0.5)
        assert (x, y, z) == pytest.approx((6.5, 0.0, 0.0), abs=1e-9)

    def test_tornado_top_radius(self):
        x, y, z = generate("tornado", 0.37, 1.0)
        assert y == pytest.approx(20.0)
        assert math.hypot(x, z) == pytest.approx(20.0)

    def test_dna_strands(self):
        assert generate("dna", 0.1, 0.5) == pytest.approx((6.0, 0.0, 0.0), abs=1e-9)
        assert generate("dna", 0.5, 0.5) == pytest.approx((-6.0, 0.0, 0.0), abs=1e-9)

    def test_dna_rung_between_strands(self):
        rng = np.random.default_rng(0)
        x, y, z = generate("dna", 0.9, 0.5, rng)
        assert -6.0 <= x <= 6.0
        assert abs(z) < 1e-9
        assert abs(y) <= 0.15

    def test_star_outer_tip(self):
        x, y, z = generate("star", 0.0, 1.0)
        assert (x, y) == pytest.approx((15.0, 0.0), abs=1e-9)
        assert abs(z) <= 1.0

    def test_star_inner_notch(self):
        # angle = pi/5 is the first inner vertex
        x, y, _ = generate("star", 0.1, 1.0)
        assert math.hypot(x, y) == pytest.approx(6.0)

    def test_fireworks_burst_center(self):
        rng = np.random.default_rng(3)
        pts = generate_batch("fireworks", np.full(500, 0.5), rng.random(500), rng)
        center = np.array([math.sin(14.6) * 4.0, math.cos(6.2) * 6.0 + 4.0, math.sin(11.4) * 3.0])
        assert np.all(np.linalg.norm(pts - center, axis=1) <= 6.0 + 1e-9)

    def test_saturn_ring_radius(self):
        rng = np.random.default_rng(1)
        v = np.full(1000, 0.35)
        pts = generate_batch("saturn", rng.random(1000), v, rng)
        # Untilting preserves the ring radius up to the thin y jitter
        tilt = 0.44
        ring_z = pts[:, 2] / math.cos(tilt)
        radius = np.hypot(pts[:, 0], ring_z)
        assert np.allclose(radius, 13.0)


class TestBounds:
    @pytest.mark.parametrize("shape", list(ShapeId))
    def test_finite(self, shape):
        pts = _sample(shape)
        assert pts.shape == (5000, 3)
        assert np.isfinite(pts).all()

    def test_sphere_radius(self):
        assert np.linalg.norm(_sample("sphere"), axis=1).max() <= 15.0

    def test_star_planar(self):
        pts = _sample("star")
        assert np.abs(pts[:, 2]).max() <= 1.0
        assert np.hypot(pts[:, 0], pts[:, 1]).max() <= 15.0 + 1e-9

    def test_heart_extent(self):
        pts = _sample("heart")
        assert np.abs(pts[:, 0]).max() <= 16 * 0.45 + 1e-9
        assert np.abs(pts[:, 2]).max() <= 2.0

    def test_flower_radius(self):
        assert np.linalg.norm(_sample("flower"), axis=1).max() <= 16.0 + 1e-9

    def test_saturn_parts(self):
        rng = np.random.default_rng(5)
        n = 5000
        u, v = rng.random(n), rng.random(n)
        pts = generate_batch("saturn", u, v, rng)
        norms = np.linalg.norm(pts, axis=1)
        # z follows cos(phi), so the body bulges to 8 * sqrt(1.16) along x
        assert norms[v < 0.35].max() <= 8.0 * math.sqrt(1.16) + 1e-9
        assert norms[v >= 0.35].min() >= 13.0 - 0.2
        assert norms[v >= 0.35].max() <= 13.0 + 0.65 * 28.0 + 0.2

    def test_dna_radius(self):
        pts = _sample("dna")
        assert np.hypot(pts[:, 0], pts[:, 2]).max() <= 6.0 + 1e-9
        assert np.abs(pts[:, 1]).max() <= 25.0 + 0.15

    def test_tornado_radius(self):
        pts = _sample("tornado")
        assert np.hypot(pts[:, 0], pts[:, 2]).max() <= 20.0 + 1e-9
        assert np.abs(pts[:, 1]).max() <= 20.0

    def test_galaxy_uses_three_arms(self):
        rng = np.random.default_rng(9)
        u = rng.random(3000)
        arms = np.floor(u * 300) % 3
        assert set(np.unique(arms)) == {0.0, 1.0, 2.0}
        pts = generate_batch("galaxy", u, rng.random(3000), rng)
        assert np.hypot(pts[:, 0], pts[:, 2]).max() <= 30.0 + 3 * 4.1


class TestGenerateApi:
    def test_unknown_shape_raises(self):
        with pytest.raises(UnknownTemplateError):
            generate("cube", 0.1, 0.2)

    def test_mismatched_lengths(self):
        rng = np.random.default_rng(0)
        with pytest.raises(ValueError):
            generate_batch("sphere", np.zeros(3), np.zeros(4), rng)

    def test_deterministic_with_seed(self):
        a = _sample("galaxy", n=100, seed=7)
        b = _sample("galaxy", n=100, seed=7)
        assert np.array_equal(a, b)

    def test_returns_floats(self):
        point = generate(ShapeId.SPHERE, 0.5, 0.5, np.random.default_rng(1))
        assert len(point) == 3
        assert all(isinstance(c, float) for c in point)
