"""Simulation events and listener plugins.

The simulation emits events synchronously; the UI collaborator (template
indicator, overlays) subscribes and owns any timing or debounce.

Listener interface:
    class Indicator(SimulationListener):
        name = "indicator"

        def on_template_changed(self, event):
            print(event.data["emoji"], event.data["display_name"])

Or use the decorator API:
    listener = SimulationListener(name="simple")

    @listener.handler("heart")
    def on_heart(event):
        print("Heart!")

Drop a .py file defining a SimulationListener subclass (or a module-level
``listener`` instance) in a directory and load it with
``EventDispatcher.load_directory``.
"""

from __future__ import annotations

import importlib.util
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger("particle_morph.events")

TEMPLATE_CHANGED = "template_changed"
PALETTE_CYCLED = "palette_cycled"


@dataclass
class SimulationEvent:
    """Event passed to listeners."""
    type: str  # "template_changed", "palette_cycled"
    name: str  # template name
    data: dict = field(default_factory=dict)
    timestamp: float = 0.0  # simulation clock


class SimulationListener:
    """Base class for simulation listeners.

    Subclass and override the hooks you need.
    """

    name: str = "unnamed"
    version: str = "1.0.0"
    description: str = ""

    def __init__(self, name: Optional[str] = None, **kwargs):
        if name:
            self.name = name
        self._handlers: dict[str, list[Callable]] = {}

    def on_template_changed(self, event: SimulationEvent):
        """Called after a template switch. Dispatches to registered handlers."""
        handlers = self._handlers.get(event.name, []) + self._handlers.get("*", [])
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error("Listener %s handler error: %s", self.name, e)

    def on_palette_cycled(self, event: SimulationEvent):
        pass

    def on_startup(self, context: dict):
        pass

    def on_shutdown(self):
        pass

    def handler(self, template: str = "*"):
        """Decorator to register a template-changed handler for one template."""
        def decorator(fn: Callable):
            self._handlers.setdefault(template, []).append(fn)
            return fn
        return decorator


class EventDispatcher:
    """Holds listeners and fans events out to them.

    A failing listener is logged and skipped; it never interrupts the
    simulation or the other listeners.
    """

    def __init__(self):
        self._listeners: dict[str, SimulationListener] = {}

    def register(self, listener: SimulationListener):
        replaced = self._listeners.get(listener.name)
        if replaced is not None and replaced is not listener:
            logger.warning("Listener '%s' already registered, replacing", listener.name)
            self._call(replaced, "on_shutdown")
        self._listeners[listener.name] = listener
        logger.info("Registered listener: %s v%s", listener.name, listener.version)

    def unregister(self, name: str):
        listener = self._listeners.pop(name, None)
        if listener is not None:
            self._call(listener, "on_shutdown")

    def load_directory(self, path: str | Path) -> int:
        """Register the listeners found in every .py file of a directory.

        Files starting with ``_`` are skipped. Returns the number registered.
        """
        path = Path(path)
        if not path.is_dir():
            logger.debug("Listener directory %s does not exist", path)
            return 0

        loaded = 0
        for py_file in sorted(path.glob("*.py")):
            if py_file.name.startswith("_"):
                continue
            for listener in self.load_file(py_file):
                self.register(listener)
                loaded += 1
        return loaded

    @staticmethod
    def load_file(path: str | Path) -> list[SimulationListener]:
        """Listeners a plugin file provides.

        A module-level ``listener`` instance wins; otherwise every
        SimulationListener subclass defined in the file (not imported into it)
        is instantiated with no arguments. Broken files yield nothing.
        """
        path = Path(path)
        module_name = f"particle_morph_listener_{path.stem}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            return []

        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            logger.error("Failed to load listener %s: %s", path.name, e)
            return []

        instance = getattr(module, "listener", None)
        if isinstance(instance, SimulationListener):
            return [instance]

        listeners = []
        for attr in vars(module).values():
            if (
                isinstance(attr, type)
                and issubclass(attr, SimulationListener)
                and attr.__module__ == module_name
            ):
                try:
                    listeners.append(attr())
                except Exception as e:
                    logger.error("Failed to create listener %s from %s: %s", attr.__name__, path.name, e)

        if not listeners:
            logger.warning("No SimulationListener found in %s", path.name)
        return listeners

    def startup(self, context: dict):
        for listener in list(self._listeners.values()):
            self._call(listener, "on_startup", context)

    def shutdown(self):
        for listener in list(self._listeners.values()):
            self._call(listener, "on_shutdown")

    def dispatch(self, event: SimulationEvent):
        """Send an event to every listener's ``on_<event.type>`` hook."""
        for listener in list(self._listeners.values()):
            self._call(listener, f"on_{event.type}", event)

    @staticmethod
    def _call(listener: SimulationListener, hook_name: str, *args):
        hook = getattr(listener, hook_name, None)
        if hook is None:
            return
        try:
            hook(*args)
        except Exception as e:
            logger.error("Listener %s %s error: %s", listener.name, hook_name, e)

    @property
    def listeners(self) -> dict[str, SimulationListener]:
        return dict(self._listeners)

    @property
    def listener_names(self) -> list[str]:
        return list(self._listeners.keys())
