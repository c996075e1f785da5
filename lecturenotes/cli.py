"""
lecturenotes.cli - Typer CLI entry point.

Provides subcommands to set up a working directory, process a lecture video,
render existing notes to PDF and run the upload server.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from lecturenotes import __version__
from lecturenotes.config import CONFIG_FILENAME, create_default_config, load_config, write_config
from lecturenotes.exceptions import ConfigError, DependencyError, LectureNotesError
from lecturenotes.logging import configure_logging
from lecturenotes.utils import expected_frame_count, format_duration, format_size

app = typer.Typer(
    name="lecturenotes",
    help="Turn recorded lectures into study-notes PDFs.\n\n"
    "Extracts speech and slide text from a video, asks a language model for "
    "structured notes and publishes them as a PDF.",
    add_completion=False,
)
console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"lecturenotes {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """lecturenotes - lecture video to study notes."""
    configure_logging(verbose)


def _load(config_path: Path | None):
    try:
        return load_config(config_path)
    except ConfigError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)


@app.command("init")
def init_config(
    path: str = typer.Option(".", "--path", "-d", help="Directory to write the config in"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing config"),
) -> None:
    """Write a default lecturenotes.yaml."""
    config_path = Path(path) / CONFIG_FILENAME
    if config_path.exists() and not force:
        console.print(f"[red]Error: '{config_path}' already exists[/red]")
        raise typer.Exit(1)

    write_config(create_default_config(), config_path)
    console.print(f"[green]✓[/green] Wrote {config_path}")
    console.print("\nNext steps:")
    console.print("  Set s3_bucket (or AWS_S3_BUCKET) and your AWS credentials")
    console.print("  lecturenotes process <video>")


@app.command("process")
def process_video(
    video: Path = typer.Argument(..., help="Lecture video file"),
    email: str | None = typer.Option(None, "--email", "-e", help="Email the PDF link here"),
    config_path: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Run the full pipeline on a local video.

    The video itself is left in place; intermediate audio and frames are removed.
    """
    if not video.exists():
        console.print(f"[red]Error: Video not found: {video}[/red]")
        raise typer.Exit(1)

    config = _load(config_path)

    from lecturenotes.extract.media import check_ffmpeg, probe_duration
    from lecturenotes.pipeline import build_orchestrator

    try:
        check_ffmpeg()
    except DependencyError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if e.install_hint:
            console.print(f"[dim]{e.install_hint}[/dim]")
        raise typer.Exit(1)

    table = Table(title="Lecture")
    table.add_column("File", style="cyan")
    table.add_column("Size", style="green")
    table.add_column("Duration", style="green")
    table.add_column("Frames", style="yellow")
    try:
        duration = probe_duration(video)
        frames = expected_frame_count(duration, config.frames.interval_seconds)
        table.add_row(video.name, format_size(video), format_duration(duration), str(frames))
    except LectureNotesError:
        table.add_row(video.name, format_size(video), "?", "?")
    console.print(table)

    try:
        orchestrator = build_orchestrator(config)
    except LectureNotesError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    with console.status("[cyan]Processing lecture...[/cyan]"):
        result = orchestrator.run(video, email=email, delete_source=False)

    if not result.success:
        console.print(f"[red]✗ {result.error_message}[/red]")
        console.print("[dim]Run with --verbose for details[/dim]")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Notes ready: {result.artifact_url}")
    if result.provider:
        console.print(f"[dim]  Generated by {result.provider}[/dim]")
    if result.local_pdf:
        console.print(f"[dim]  Local copy: {result.local_pdf}[/dim]")


@app.command("render")
def render_notes(
    notes: Path = typer.Argument(..., help="Markdown notes file"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output PDF path"),
    plain: bool = typer.Option(False, "--plain", help="Disable the sectioned layout"),
    config_path: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Render a markdown notes file to PDF without running the pipeline."""
    from lecturenotes.io import read_text
    from lecturenotes.render.pdf import PDFRenderer

    if not notes.exists():
        console.print(f"[red]Error: Notes file not found: {notes}[/red]")
        raise typer.Exit(1)

    config = _load(config_path)
    renderer = PDFRenderer.from_config(config)
    if plain:
        renderer.section_aware = False

    destination = output or notes.with_suffix(".pdf")
    try:
        renderer.render(read_text(notes), destination)
    except LectureNotesError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Wrote {destination} ({format_size(destination)})")


@app.command("serve")
def serve_app(
    host: str = typer.Option("0.0.0.0", "--host", help="Bind address"),
    port: int = typer.Option(5000, "--port", "-p", help="Bind port"),
    upload_dir: Path = typer.Option(Path("uploads"), "--uploads", help="Upload directory"),
    config_path: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Run the HTTP upload server."""
    from lecturenotes.server import create_app, serve

    config = _load(config_path)
    console.print(f"[cyan]Serving on http://{host}:{port}[/cyan]")
    serve(create_app(config=config, upload_dir=upload_dir), host=host, port=port)


if __name__ == "__main__":
    app()
