"""Gesture snapshot → simulation directives.

The hand tracker is an external collaborator. It hands us a GestureSnapshot
(booleans plus a few normalised floats) once per frame, and GestureMapper turns
that into the three things the simulation cares about: which template should
be active, how far the cloud should expand, and where the repulsion point is.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional

from particle_morph.shapes import ShapeId

_TRUE_STRINGS = {"1", "true", "yes", "on"}

# Scale from normalised pointer coordinates into simulation space.
POINTER_SCALE = (40.0, 20.0)


@dataclass
class GestureSnapshot:
    """Abstracted per-frame hand-tracking state."""
    fist: bool = False
    open: bool = False
    pinching: bool = False
    pointing: bool = False
    rock: bool = False
    peace: bool = False
    hand_detected: bool = False
    hand_spread: float = 0.0  # [0, 1]
    pointer: Optional[tuple[float, float]] = None  # roughly [-1, 1]²

    def flag(self, name: str) -> bool:
        return bool(getattr(self, name, False))

    def to_dict(self) -> dict:
        return {
            "fist": self.fist,
            "open": self.open,
            "pinching": self.pinching,
            "pointing": self.pointing,
            "rock": self.rock,
            "peace": self.peace,
            "hand_detected": self.hand_detected,
            "hand_spread": self.hand_spread,
            "pointer": list(self.pointer) if self.pointer is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> GestureSnapshot:
        """Build a snapshot from possibly partial data; missing or bad values mean "no gesture"."""
        data = data or {}

        pointer = data.get("pointer")
        if isinstance(pointer, str):
            pointer = None
        elif isinstance(pointer, dict):
            pointer = (pointer.get("x"), pointer.get("y"))
        if pointer is not None:
            try:
                x, y = _finite(pointer[0]), _finite(pointer[1])
            except (TypeError, IndexError, KeyError):
                x = y = None
            pointer = (x, y) if x is not None and y is not None else None

        spread = _finite(data.get("hand_spread", 0.0))

        return cls(
            fist=_flag(data.get("fist")),
            open=_flag(data.get("open")),
            pinching=_flag(data.get("pinching")),
            pointing=_flag(data.get("pointing")),
            rock=_flag(data.get("rock")),
            peace=_flag(data.get("peace")),
            hand_detected=_flag(data.get("hand_detected")),
            hand_spread=spread if spread is not None else 0.0,
            pointer=pointer,
        )


def _finite(value) -> Optional[float]:
    """``value`` as a finite float, or None."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _flag(value) -> bool:
    # Recordings written by other tools may carry "false"/"0" strings.
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)




@dataclass
class Directives:
    """What the simulation should do this tick."""
    template: Optional[ShapeId] = None
    expansion_target: float = 1.0
    repulsion_point: Optional[tuple[float, float]] = None


# Gesture flag → template, highest priority first.
DEFAULT_PRIORITY: list[tuple[str, ShapeId]] = [
    ("fist", ShapeId.HEART),
    ("pinching", ShapeId.DNA),
    ("open", ShapeId.GALAXY),
    ("rock", ShapeId.SATURN),
    ("peace", ShapeId.FLOWER),
    ("pointing", ShapeId.FIREWORKS),
]


@dataclass
class GestureMapper:
    """Maps GestureSnapshots to Directives.

    Template selection walks ``priority`` in order and takes the first flag
    that is set, so a classifier reporting two flags at once resolves to the
    higher-priority one.
    """

    priority: list[tuple[str, ShapeId]] = field(
        default_factory=lambda: list(DEFAULT_PRIORITY)
    )
    idle_expansion: float = 1.0
    min_expansion: float = 0.7
    expansion_range: float = 0.8
    pointer_scale: tuple[float, float] = POINTER_SCALE

    def map(self, snapshot: Optional[GestureSnapshot]) -> Directives:
        if snapshot is None:
            return Directives(expansion_target=self.idle_expansion)

        return Directives(
            template=self.select_template(snapshot),
            expansion_target=self.expansion_target(snapshot),
            repulsion_point=self.repulsion_point(snapshot),
        )

    def select_template(self, snapshot: GestureSnapshot) -> Optional[ShapeId]:
        for flag, shape in self.priority:
            if snapshot.flag(flag):
                return shape
        return None

    def expansion_target(self, snapshot: GestureSnapshot) -> float:
        if not snapshot.hand_detected or not math.isfinite(snapshot.hand_spread):
            return self.idle_expansion
        spread = min(max(snapshot.hand_spread, 0.0), 1.0)
        return self.min_expansion + spread * self.expansion_range

    def repulsion_point(self, snapshot: GestureSnapshot) -> Optional[tuple[float, float]]:
        if not snapshot.hand_detected or snapshot.pointer is None:
            return None
        x, y = snapshot.pointer
        if not (math.isfinite(x) and math.isfinite(y)):
            return None
        return x * self.pointer_scale[0], y * self.pointer_scale[1]
