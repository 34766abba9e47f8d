"""particle-morph CLI.

Usage:
    particle-morph shapes      List the available templates
    particle-morph run         Run the simulation headless
    particle-morph benchmark   Measure tick throughput
    particle-morph config      Write the default YAML config
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

try:
    import typer
except ImportError:
    raise ImportError("typer is required for CLI. Install with: pip install typer")

app = typer.Typer(
    name="particle-morph",
    help="✨ Gesture-driven particle cloud that morphs between parametric shapes.",
    add_completion=False,
)


def _setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_config(path: Optional[str], count: Optional[int], seed: Optional[int]):
    from particle_morph.config import ConfigError, SimulationConfig

    try:
        config = SimulationConfig.from_yaml(path) if path else SimulationConfig()
        if count is not None:
            config.particle_count = count
        if seed is not None:
            config.seed = seed
        return config.validate()
    except (OSError, ConfigError) as e:
        typer.echo(f"❌ Invalid config: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def shapes():
    """List the available shape templates."""
    from particle_morph.palettes import PaletteManager
    from particle_morph.shapes import SHAPE_META, available_shapes

    palettes = PaletteManager()
    for shape in available_shapes():
        meta = SHAPE_META[shape]
        typer.echo(
            f"  {meta.emoji}  {shape.value:10s} {meta.display_name:10s} "
            f"({palettes.palette_length(shape)} colours)"
        )


@app.command()
def run(
    frames: int = typer.Option(600, help="Number of frames to simulate"),
    dt: float = typer.Option(1 / 60, help="Frame time in seconds"),
    template: Optional[str] = typer.Option(None, help="Template to switch to before running"),
    count: Optional[int] = typer.Option(None, help="Particle count (overrides config)"),
    seed: Optional[int] = typer.Option(None, help="Random seed (overrides config)"),
    config: Optional[str] = typer.Option(None, "--config", help="Path to YAML config"),
    gestures: Optional[str] = typer.Option(None, "--gestures", help="Recorded gesture session (.json) to replay"),
    plugins: Optional[str] = typer.Option(None, "--plugins", help="Directory of listener plugins"),
    cycle_every: int = typer.Option(0, help="Cycle the palette every N frames (0 = never)"),
    metrics: bool = typer.Option(False, help="Print Prometheus metrics at the end"),
    log_level: str = typer.Option("info", help="Log level"),
):
    """Run the simulation headless and report statistics."""
    from particle_morph.pipeline import MorphPipeline
    from particle_morph.recorder import SnapshotPlayer
    from particle_morph.simulation import ParticleSimulation

    _setup_logging(log_level)
    sim_config = _load_config(config, count, seed)

    simulation = ParticleSimulation(sim_config)
    if plugins:
        loaded = simulation.events.load_directory(plugins)
        typer.echo(f"🔌 Loaded {loaded} listener plugin(s) from {plugins}")

    pipeline = MorphPipeline(simulation)
    simulation.events.startup({"simulation": simulation, "pipeline": pipeline})

    if template and not pipeline.switch_template(template):
        typer.echo(f"❌ Unknown template: {template}", err=True)
        raise typer.Exit(1)

    if gestures:
        path = Path(gestures)
        if not path.exists():
            typer.echo(f"❌ Gesture recording not found: {gestures}", err=True)
            raise typer.Exit(1)
        player = SnapshotPlayer.load(path)
        typer.echo(f"▶️  Replaying {path.name} ({player.frame_count} frames, {player.duration:.1f}s)")
        steps = list(player.steps())[:frames]
    else:
        steps = [(dt, None)] * frames

    typer.echo(f"🚀 Simulating {simulation.count} particles for {len(steps)} frames")
    with pipeline:
        for i, (step_dt, snapshot) in enumerate(steps, start=1):
            pipeline.step(step_dt, snapshot)
            if cycle_every and i % cycle_every == 0:
                pipeline.cycle_palette()

        stats = pipeline.stats
        typer.echo("\n📊 Results:")
        typer.echo(f"   Frames:            {stats.total_frames}")
        typer.echo(f"   Active template:   {stats.active_template}")
        typer.echo(f"   Template switches: {stats.template_switches}")
        typer.echo(f"   Palette cycles:    {stats.palette_cycles}")
        typer.echo(f"   Expansion factor:  {stats.expansion_factor:.3f}")
        typer.echo(f"   Average latency:   {stats.avg_latency_ms:.2f} ms ({stats.fps:.0f} FPS)")

        if metrics:
            typer.echo("")
            typer.echo(pipeline.metrics.render())


@app.command()
def benchmark(
    count: int = typer.Option(20000, help="Particle count"),
    iterations: int = typer.Option(300, help="Number of ticks"),
    seed: int = typer.Option(42, help="Random seed"),
):
    """Measure tick and template-switch throughput."""
    import numpy as np

    from particle_morph.config import SimulationConfig
    from particle_morph.gestures import GestureSnapshot
    from particle_morph.pipeline import MorphPipeline
    from particle_morph.shapes import available_shapes
    from particle_morph.simulation import ParticleSimulation

    typer.echo(f"⚡ Running benchmark: {count} particles, {iterations} ticks")

    pipeline = MorphPipeline(ParticleSimulation(SimulationConfig(particle_count=count, seed=seed)))
    rng = np.random.default_rng(seed)
    shape_cycle = available_shapes()

    times = []
    for i in range(iterations):
        # Sweep the pointer through the cloud so the repulsion path is exercised.
        snapshot = GestureSnapshot(
            hand_detected=True,
            hand_spread=float(rng.random()),
            pointer=(float(rng.random() * 2 - 1), float(rng.random() * 2 - 1)),
        )
        if i % 60 == 0:
            pipeline.switch_template(shape_cycle[(i // 60) % len(shape_cycle)])

        t0 = time.perf_counter()
        pipeline.step(1 / 60, snapshot)
        times.append(time.perf_counter() - t0)

    avg_ms = sum(times) / len(times) * 1000
    p95_ms = sorted(times)[int(len(times) * 0.95)] * 1000
    fps = 1000 / avg_ms if avg_ms > 0 else 0

    typer.echo("\n📊 Results:")
    typer.echo(f"   Average tick:  {avg_ms:.2f} ms")
    typer.echo(f"   P95 tick:      {p95_ms:.2f} ms")
    typer.echo(f"   Throughput:    {fps:.0f} FPS")

    typer.echo("\n📈 Stage breakdown:")
    for name, stats in pipeline.profiler.summary().items():
        typer.echo(f"   {name:20s} avg={stats['avg_ms']:.3f}ms  p95={stats['p95_ms']:.3f}ms")


@app.command("config")
def write_config(
    output: str = typer.Argument("particle_morph.yml", help="Where to write the config"),
    force: bool = typer.Option(False, help="Overwrite an existing file"),
):
    """Write the default configuration as YAML."""
    from particle_morph.config import SimulationConfig

    path = Path(output)
    if path.exists() and not force:
        typer.echo(f"❌ {output} exists (use --force to overwrite)", err=True)
        raise typer.Exit(1)

    SimulationConfig().to_yaml(path)
    typer.echo(f"💾 Saved default config to {output}")


def main():
    app()


if __name__ == "__main__":
    main()
