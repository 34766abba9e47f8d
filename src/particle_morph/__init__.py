"""particle-morph - Gesture-driven particle cloud morphing between parametric shapes."""

__version__ = "0.1.0"

from particle_morph.shapes import ShapeId, ShapeMeta, SHAPE_META, UnknownTemplateError, generate, generate_batch
from particle_morph.palettes import PaletteManager, SHAPE_PALETTES
from particle_morph.gestures import GestureSnapshot, GestureMapper, Directives
from particle_morph.config import SimulationConfig, ConfigError
from particle_morph.events import SimulationEvent, SimulationListener, EventDispatcher
from particle_morph.simulation import ParticleSimulation, SimulationState, FrameBuffers
from particle_morph.pipeline import MorphPipeline, PipelineStats
from particle_morph.profiler import PipelineProfiler
from particle_morph.metrics import MetricsCollector
from particle_morph.recorder import SnapshotRecorder, SnapshotPlayer
