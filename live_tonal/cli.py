"""Command-line interface for Live Tonal.

Provides commands for:
- listen: Live analysis of the microphone
- analyze: Offline analysis of an audio file on a simulated clock
- scales: List the scale-template catalog
"""

import logging
import math
from contextlib import nullcontext
from dataclasses import replace
from pathlib import Path
from typing import Optional

import librosa
import typer
from rich.console import Console
from rich.live import Live
from rich.logging import RichHandler
from rich.table import Table

from .core import PITCH_NAMES, SCALE_CATALOG, AcquisitionError, EngineConfig
from .engine import AnalysisEngine, Snapshot

app = typer.Typer(
    name="live-tonal",
    help="Real-time pitch, key and scale analysis",
    rich_markup_mode="markdown",
)
console = Console()
logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_path: Optional[Path], root: Optional[str]) -> EngineConfig:
    """Load the engine config, exiting with a message on invalid input."""
    try:
        config = EngineConfig.from_file(config_path) if config_path else EngineConfig()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: Invalid config: {e}[/red]")
        raise typer.Exit(1)

    if root is not None:
        try:
            pitch_class = int(librosa.note_to_midi(root.strip())) % 12
        except librosa.ParameterError:
            console.print(f"[red]Error: Unknown root '{root}'. Use a note name such as C, F# or Bb[/red]")
            raise typer.Exit(1)
        config = replace(config, scale_root=pitch_class)
    return config


@app.command()
def listen(
    device: Optional[str] = typer.Option(
        None, "--device", "-d", help="Input device id or name (default: system default)"
    ),
    duration: Optional[float] = typer.Option(
        None, "--duration", "-t", help="Stop after this many seconds (default: until Ctrl+C)"
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="JSON engine config file"
    ),
    root: Optional[str] = typer.Option(
        None, "--root", help="Only rank scales on this root (e.g. 'D')"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show engine log output"
    ),
):
    """Analyze the microphone live."""
    from .input import MicrophoneSource

    _configure_logging(verbose)
    config = _load_config(config_path, root)

    if device is not None and device.isdigit():
        device = int(device)
    source = MicrophoneSource(
        device=device,
        sample_rate=config.sample_rate,
        fft_size=config.fft_size,
        smoothing=config.smoothing,
    )
    engine = AnalysisEngine(source, config)

    try:
        engine.start()
    except AcquisitionError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[bold]Listening on:[/bold] {source.description}  (Ctrl+C to stop)")
    last = engine.snapshot
    try:
        with Live(_live_table(last), console=console, refresh_per_second=10) as live:
            def render(snapshot: Snapshot) -> None:
                if snapshot.is_listening:
                    live.update(_live_table(snapshot))

            unsubscribe = engine.subscribe(render)
            try:
                engine.run(duration=duration)
            finally:
                unsubscribe()
    except KeyboardInterrupt:
        pass
    finally:
        last = engine.snapshot
        histogram = engine.key_histogram
        engine.stop()

    _show_summary(last, histogram)


@app.command()
def analyze(
    input_file: Path = typer.Argument(..., help="Input audio file"),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="JSON engine config file"
    ),
    root: Optional[str] = typer.Option(
        None, "--root", help="Only rank scales on this root (e.g. 'D')"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show engine log output"
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Output the final snapshot as JSON (for scripting)"
    ),
):
    """Run the live engine over an audio file, one tick per tick interval of audio."""
    from .input import FileSource

    _configure_logging(verbose)
    config = _load_config(config_path, root)

    hop = max(1, int(round(config.tick_interval * config.sample_rate)))
    source = FileSource(
        input_file,
        sample_rate=config.sample_rate,
        fft_size=config.fft_size,
        hop=hop,
        smoothing=config.smoothing,
    )
    engine = AnalysisEngine(source, config)

    try:
        engine.start()
    except AcquisitionError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    # Trailing ticks let the window run past the end so held notes are closed
    ticks = math.ceil(len(source.signal) / hop) + math.ceil(config.fft_size / hop) + 1
    status = nullcontext() if json_output else console.status(f"Analyzing {input_file.name}...")
    with status:
        final = engine.replay(ticks)
    histogram = engine.key_histogram
    engine.stop()

    if json_output:
        console.print_json(data=final.to_dict())
        return

    console.print(f"\n[bold]File:[/bold] {input_file.name} ({source.duration:.2f}s, {ticks} ticks)")
    _show_summary(final, histogram)


@app.command()
def scales():
    """List the scale-template catalog."""
    table = Table(title=f"Scale Templates ({len(SCALE_CATALOG)})")
    table.add_column("Scale", style="cyan")
    table.add_column("Degrees", style="green")
    table.add_column("Intervals", style="yellow")
    table.add_column("On C", style="magenta")

    for template in SCALE_CATALOG:
        table.add_row(
            template.name,
            str(template.size),
            " ".join(str(i) for i in template.intervals),
            " ".join(PITCH_NAMES[i] for i in template.intervals),
        )

    console.print(table)


def _live_table(snapshot: Snapshot) -> Table:
    """Single-table view of one snapshot."""
    table = Table(title="Live Tonal", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")

    key = snapshot.detected_key
    level_bar = "#" * int(round(min(1.0, snapshot.input_level * 5) * 20))
    table.add_row("Note", snapshot.current_note or "-")
    table.add_row(
        "Frequency",
        f"{snapshot.current_note_frequency_hz:.1f} Hz" if snapshot.current_note_frequency_hz else "-",
    )
    table.add_row("Key", f"{key.name} ({snapshot.key_confidence:.2f})" if key else "-")
    table.add_row("Level", f"{level_bar:<20} {snapshot.input_level:.3f}")
    table.add_row("Chroma", _chroma_bars(snapshot.chroma_vector))
    table.add_row("Recent", " ".join(snapshot.recent_notes[-12:]) or "-")
    table.add_row(
        "Scales",
        "\n".join(f"{c.name} ({c.confidence:.2f})" for c in snapshot.scale_candidates[:3]) or "-",
    )
    table.add_row("Notes", str(snapshot.total_notes_observed))
    return table


def _chroma_bars(chroma) -> str:
    blocks = " .:-=+*#"
    return " ".join(
        f"{name}{blocks[min(len(blocks) - 1, int(value * (len(blocks) - 1)))]}"
        for name, value in zip(PITCH_NAMES, chroma)
    )


def _show_summary(snapshot: Snapshot, histogram) -> None:
    """Display key, note evidence and scale candidates."""
    key = snapshot.detected_key
    if key is not None:
        console.print(f"\n[bold]Key:[/bold] {key.name} (confidence: {key.confidence:.2f})")
        console.print(f"  Relative: {key.relative_key}  Parallel: {key.parallel_key}")
    else:
        console.print("\n[bold]Key:[/bold] [yellow]not enough evidence[/yellow]")
    console.print(f"[bold]Notes observed:[/bold] {snapshot.total_notes_observed}")

    if histogram:
        table = Table(title="Key Histogram")
        table.add_column("Key", style="cyan")
        table.add_column("Ticks", style="green")
        for name, count in histogram.most_common(8):
            table.add_row(name, str(count))
        console.print(table)

    if snapshot.pitch_class_counts:
        table = Table(title="Pitch Classes")
        table.add_column("Pitch", style="cyan")
        table.add_column("Notes", style="green")
        table.add_column("Competence", style="magenta")
        for name in PITCH_NAMES:
            if name in snapshot.pitch_class_counts:
                table.add_row(
                    name,
                    str(snapshot.pitch_class_counts[name]),
                    f"{snapshot.pitch_class_competence.get(name, 0.0):.2f}",
                )
        console.print(table)

    if snapshot.scale_candidates:
        table = Table(title="Scale Candidates")
        table.add_column("Scale", style="cyan")
        table.add_column("Confidence", style="magenta")
        table.add_column("Purity", style="green")
        table.add_column("Coverage", style="green")
        table.add_column("Missing", style="yellow")
        for candidate in snapshot.scale_candidates:
            evidence = candidate.evidence
            table.add_row(
                candidate.name,
                f"{candidate.confidence:.2f}",
                f"{evidence.purity:.2f}" if evidence else "-",
                f"{evidence.coverage:.2f}" if evidence else "-",
                " ".join(candidate.missing_names) or "-",
            )
        console.print(table)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
