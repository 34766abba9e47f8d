"""Tests for gesture snapshot mapping."""

import pytest

from particle_morph.gestures import Directives, GestureMapper, GestureSnapshot
from particle_morph.shapes import ShapeId


class TestTemplateSelection:
    @pytest.mark.parametrize("flag,shape", [
        ("fist", ShapeId.HEART),
        ("pinching", ShapeId.DNA),
        ("open", ShapeId.GALAXY),
        ("rock", ShapeId.SATURN),
        ("peace", ShapeId.FLOWER),
        ("pointing", ShapeId.FIREWORKS),
    ])
    def test_single_flag(self, flag, shape):
        snapshot = GestureSnapshot(hand_detected=True, **{flag: True})
        assert GestureMapper().map(snapshot).template is shape

    def test_priority_order(self):
        mapper = GestureMapper()
        assert mapper.map(GestureSnapshot(fist=True, pinching=True)).template is ShapeId.HEART
        assert mapper.map(GestureSnapshot(open=True, pinching=True)).template is ShapeId.DNA
        assert mapper.map(GestureSnapshot(rock=True, peace=True, pointing=True)).template is ShapeId.SATURN
        assert mapper.map(GestureSnapshot(peace=True, pointing=True)).template is ShapeId.FLOWER

    def test_no_flags(self):
        assert GestureMapper().map(GestureSnapshot(hand_detected=True)).template is None

    def test_custom_priority(self):
        mapper = GestureMapper(priority=[("peace", ShapeId.STAR)])
        assert mapper.map(GestureSnapshot(peace=True)).template is ShapeId.STAR
        assert mapper.map(GestureSnapshot(fist=True)).template is None


class TestExpansion:
    def test_no_hand(self):
        assert GestureMapper().map(GestureSnapshot(hand_spread=1.0)).expansion_target == 1.0

    @pytest.mark.parametrize("spread,expected", [(0.0, 0.7), (0.5, 1.1), (1.0, 1.5)])
    def test_spread(self, spread, expected):
        snapshot = GestureSnapshot(hand_detected=True, hand_spread=spread)
        assert GestureMapper().map(snapshot).expansion_target == pytest.approx(expected)

    def test_spread_clamped(self):
        snapshot = GestureSnapshot(hand_detected=True, hand_spread=3.0)
        assert GestureMapper().map(snapshot).expansion_target == pytest.approx(1.5)


class TestRepulsion:
    def test_pointer_scaled(self):
        snapshot = GestureSnapshot(hand_detected=True, pointer=(0.5, -0.5))
        assert GestureMapper().map(snapshot).repulsion_point == pytest.approx((20.0, -10.0))

    def test_pointer_without_hand(self):
        snapshot = GestureSnapshot(hand_detected=False, pointer=(0.5, 0.5))
        assert GestureMapper().map(snapshot).repulsion_point is None

    def test_hand_without_pointer(self):
        snapshot = GestureSnapshot(hand_detected=True)
        assert GestureMapper().map(snapshot).repulsion_point is None


class TestAbsentSnapshot:
    def test_none(self):
        directives = GestureMapper().map(None)
        assert directives == Directives(template=None, expansion_target=1.0, repulsion_point=None)


class TestSnapshotDict:
    def test_roundtrip(self):
        snapshot = GestureSnapshot(fist=True, hand_detected=True, hand_spread=0.4, pointer=(0.1, 0.2))
        assert GestureSnapshot.from_dict(snapshot.to_dict()) == snapshot

    def test_empty(self):
        assert GestureSnapshot.from_dict({}) == GestureSnapshot()
        assert GestureSnapshot.from_dict(None) == GestureSnapshot()

    def test_pointer_object(self):
        snapshot = GestureSnapshot.from_dict(
            {"hand_detected": True, "pointer": {"x": 0.25, "y": -1.0, "z": 0.0}}
        )
        assert snapshot.pointer == (0.25, -1.0)

    @pytest.mark.parametrize("pointer", ["abc", [1.0], 5, {"x": None}])
    def test_bad_pointer_dropped(self, pointer):
        assert GestureSnapshot.from_dict({"pointer": pointer}).pointer is None

    def test_bad_spread(self):
        assert GestureSnapshot.from_dict({"hand_spread": "wide"}).hand_spread == 0.0

    @pytest.mark.parametrize("spread", ["nan", float("nan"), "inf", float("-inf")])
    def test_non_finite_spread(self, spread):
        snapshot = GestureSnapshot.from_dict({"hand_detected": True, "hand_spread": spread})
        assert snapshot.hand_spread == 0.0

    @pytest.mark.parametrize("pointer", [["nan", 0.0], [0.0, float("inf")], {"x": 0.1, "y": "nan"}, "12"])
    def test_non_finite_pointer_dropped(self, pointer):
        assert GestureSnapshot.from_dict({"pointer": pointer}).pointer is None

    @pytest.mark.parametrize("value,expected", [
        ("false", False), ("0", False), ("", False), ("no", False),
        ("true", True), ("True", True), ("1", True), (1, True), (0, False), (None, False),
    ])
    def test_string_flags(self, value, expected):
        snapshot = GestureSnapshot.from_dict({"fist": value, "hand_detected": value})
        assert snapshot.fist is expected
        assert snapshot.hand_detected is expected


class TestNonFiniteInput:
    def test_nan_spread_is_no_hand(self):
        snapshot = GestureSnapshot(hand_detected=True, hand_spread=float("nan"))
        assert GestureMapper().map(snapshot).expansion_target == 1.0

    def test_inf_spread_is_no_hand(self):
        snapshot = GestureSnapshot(hand_detected=True, hand_spread=float("inf"))
        assert GestureMapper().map(snapshot).expansion_target == 1.0

    def test_nan_pointer_has_no_repulsion(self):
        snapshot = GestureSnapshot(hand_detected=True, pointer=(float("nan"), 0.0))
        assert GestureMapper().map(snapshot).repulsion_point is None
