"""Simulation configuration: every tunable constant in one dataclass.

Load from YAML:
    config = SimulationConfig.from_yaml("morph.yml")

Unknown keys are ignored so older config files keep working.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from particle_morph.shapes import ShapeId

logger = logging.getLogger("particle_morph.config")


class ConfigError(ValueError):
    """Raised for invalid configuration values."""


@dataclass
class SimulationConfig:
    particle_count: int = 20000
    initial_template: Optional[str] = "galaxy"
    seed: Optional[int] = None

    # Integrator
    seek_gain: float = 2.5
    damping: float = 0.88
    color_lerp: float = 0.025
    expansion_smoothing: float = 0.03
    max_dt: float = 0.05

    # Template seeding
    target_jitter: float = 0.3
    color_variation: float = 0.1
    hue_step: float = 0.25
    spawn_extent: float = 80.0

    # Repulsion around the pointer
    repulsion_min_dist_sq: float = 0.01
    repulsion_max_dist_sq: float = 50.0
    repulsion_radius: float = 7.0
    repulsion_strength: float = 3.0
    repulsion_gain: float = 6.0
    highlight_boost: float = 0.15

    # Size pulse
    size_base: float = 0.3
    size_amplitude: float = 0.4
    size_frequency: float = 1.5
    size_index_phase: float = 0.01

    def validate(self) -> SimulationConfig:
        """Check value ranges. Returns self so it can be chained."""
        if self.particle_count <= 0:
            raise ConfigError(f"particle_count must be positive, got {self.particle_count}")
        if self.initial_template is not None and ShapeId.parse(self.initial_template) is None:
            raise ConfigError(f"Unknown initial_template: {self.initial_template!r}")
        if not 0.0 <= self.damping <= 1.0:
            raise ConfigError(f"damping must be in [0, 1], got {self.damping}")
        for name in ("color_lerp", "expansion_smoothing"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigError(f"{name} must be in [0, 1], got {value}")
        if self.max_dt <= 0:
            raise ConfigError(f"max_dt must be positive, got {self.max_dt}")
        if self.repulsion_min_dist_sq >= self.repulsion_max_dist_sq:
            raise ConfigError("repulsion_min_dist_sq must be below repulsion_max_dist_sq")
        return self

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> SimulationConfig:
        known = {f.name for f in fields(cls)}
        data = data or {}
        ignored = sorted(k for k in data if k not in known)
        if ignored:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(ignored))
        return cls(**{k: v for k, v in data.items() if k in known}).validate()

    @classmethod
    def from_yaml(cls, path: str | Path) -> SimulationConfig:
        """Load a config from a YAML file. A top-level ``simulation`` key is optional."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a mapping at the top level")
        if "simulation" in data:
            data = data["simulation"] or {}

        return cls.from_dict(data)

    def to_yaml(self, path: str | Path):
        """Save config to YAML."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump({"simulation": self.to_dict()}, f, default_flow_style=False, sort_keys=False)
