"""Example particle-morph listener: console shape indicator.

Stands in for the on-screen "current shape" badge: every template switch is
logged with its emoji and display name, and a running count of how long each
template stayed active (in simulation seconds) is reported on shutdown.

Load it with:
    particle-morph run --plugins plugins/
"""

from __future__ import annotations

import logging
from collections import Counter

from particle_morph.events import SimulationEvent, SimulationListener

logger = logging.getLogger("particle_morph.plugins.shape_indicator")


class ShapeIndicatorListener(SimulationListener):
    """Logs template changes and tracks time spent in each template."""

    name = "shape_indicator"
    version = "1.0.0"
    description = "Logs the active template like the UI indicator would show it"

    def __init__(self):
        super().__init__()
        self._switches: Counter = Counter()
        self._time_in: Counter = Counter()
        self._current: str | None = None
        self._since = 0.0

        @self.handler("heart")
        def on_heart(event: SimulationEvent):
            logger.info("💘 Heart #%d", self._switches["heart"])

    def on_template_changed(self, event: SimulationEvent):
        if self._current is not None:
            self._time_in[self._current] += event.timestamp - self._since
        self._current = event.name
        self._since = event.timestamp
        self._switches[event.name] += 1

        logger.info(
            "%s %s (was %s)",
            event.data.get("emoji", ""),
            event.data.get("display_name", event.name),
            event.data.get("previous"),
        )
        super().on_template_changed(event)  # decorator handlers

    def on_palette_cycled(self, event: SimulationEvent):
        logger.info("🎨 Palette cycle %s", event.data.get("cycle_index"))

    def on_shutdown(self):
        if self._switches:
            logger.info("Shape indicator summary: %s", dict(self._switches))
        if self._time_in:
            logger.info(
                "Seconds per template: %s",
                {k: round(v, 2) for k, v in self._time_in.items()},
            )

    @property
    def switches(self) -> dict[str, int]:
        return dict(self._switches)
