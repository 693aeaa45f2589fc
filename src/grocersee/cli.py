"""Grocersee CLI - run the detection pipeline from the command line."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import NoReturn, Optional

import numpy as np
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from grocersee import __version__
from grocersee.common.logging import setup_logging_from_config
from grocersee.config import Config, load_config
from grocersee.errors import GrocerseeError
from grocersee.labels import CategoryMap
from grocersee.models import frame_result_to_dict
from grocersee.pipeline import DetectionPipeline, PipelineResult
from grocersee.runner import FrameRunner, mock_frames
from grocersee.speech import MockSpeechBackend
from grocersee.vision.inference import create_inference_backend

app = typer.Typer(
    name="grocersee",
    help="Grocersee - spoken grocery descriptions",
    no_args_is_help=True,
)
console = Console()


def get_config() -> Config:
    """Get configuration and set up logging from it."""
    try:
        config = load_config()
    except (ValueError, GrocerseeError) as e:
        fail(e)
    setup_logging_from_config(config)
    return config


def fail(error: Exception) -> NoReturn:
    console.print(f"[red]Error:[/] {error}")
    sys.exit(1)


def print_result(result: PipelineResult, json_output: bool) -> None:
    """Print a pipeline result as JSON or as tables."""
    if json_output:
        print(json.dumps(result.to_dict(), indent=2))
        return

    if result.detections:
        table = Table(title="Detections")
        table.add_column("#", style="dim")
        table.add_column("Label", style="cyan")
        table.add_column("Score")
        table.add_column("Box (x1, y1, x2, y2)")
        table.add_column("Cluster")

        for i, (det, cluster) in enumerate(zip(result.detections, result.clusters.labels)):
            box = ", ".join(f"{v:.1f}" for v in det.box)
            table.add_row(str(i), det.label, f"{det.score:.2f}", box, str(int(cluster)))

        console.print(table)
    else:
        console.print("[dim]No detections[/]")

    summary = frame_result_to_dict(result.result)
    console.print(f"[bold]Result:[/] {summary.pop('kind')} {summary or ''}")
    console.print(Panel(result.utterance, title="Utterance"))


@app.command()
def describe(
    path: Path = typer.Argument(..., help="JSON file with boxes, labels and scores"),
    seed: Optional[int] = typer.Option(None, help="K-means seed"),
    json_output: bool = typer.Option(False, "--json", help="Print JSON"),
):
    """Describe already-suppressed detections."""
    cfg = get_config()

    try:
        data = json.loads(path.read_text())
        pipeline = DetectionPipeline.from_config(cfg, seed=seed)
        result = pipeline.process_detections(
            data.get("boxes", []),
            data.get("labels", []),
            data.get("scores", []),
        )
    except (OSError, json.JSONDecodeError, ValueError, GrocerseeError) as e:
        fail(e)

    print_result(result, json_output)


@app.command()
def decode(
    path: Path = typer.Argument(..., help="Raw detector output saved with numpy.save"),
    profile: Optional[str] = typer.Option(None, help="Suppression profile name"),
    seed: Optional[int] = typer.Option(None, help="K-means seed"),
    json_output: bool = typer.Option(False, "--json", help="Print JSON"),
):
    """Run the full pipeline on a raw detector tensor."""
    cfg = get_config()

    try:
        raw = np.load(path)
        pipeline = DetectionPipeline.from_config(cfg, seed=seed, profile=profile)
        result = pipeline.process_tensor(raw)
    except (OSError, ValueError, GrocerseeError) as e:
        fail(e)

    print_result(result, json_output)


@app.command()
def labels():
    """List detector labels and their categories."""
    cfg = get_config()
    categories = CategoryMap(cfg.categories, other=cfg.other_category)

    table = Table(title="Labels")
    table.add_column("Class", style="dim")
    table.add_column("Label", style="cyan")
    table.add_column("Category")

    for class_id, label in enumerate(cfg.model.labels):
        table.add_row(str(class_id), label, categories.category_of(label))

    console.print(table)


@app.command()
def run(
    frames: int = typer.Option(6, help="Number of mock camera frames"),
    fps: Optional[int] = typer.Option(None, help="Frame rate (defaults to config)"),
    mock: bool = typer.Option(True, help="Use the mock inference backend"),
    seed: Optional[int] = typer.Option(None, help="K-means seed"),
):
    """Feed mock camera frames through the frame runner."""
    cfg = get_config()
    interval = 1.0 / (fps or cfg.runner.fps)

    async def _run():
        pipeline = DetectionPipeline.from_config(cfg, seed=seed)
        speech = MockSpeechBackend()
        runner = FrameRunner(
            pipeline,
            create_inference_backend(cfg, mock_mode=mock),
            speech,
            cfg,
        )

        async with runner:
            stats = await runner.run_frames(
                mock_frames(frames, cfg.frame.width, cfg.frame.height),
                interval_s=interval,
            )

        table = Table(title="Spoken")
        table.add_column("#", style="dim")
        table.add_column("Utterance")
        for i, spoken in enumerate(speech.spoken):
            table.add_row(str(i), spoken.text)
        console.print(table)

        console.print(
            f"Processed: {stats.processed}  Dropped: {stats.dropped}  Failed: {stats.failed}"
        )

    try:
        asyncio.run(_run())
    except GrocerseeError as e:
        fail(e)


@app.command()
def config(json_output: bool = typer.Option(False, "--json", help="Print JSON")):
    """Show configuration."""
    cfg = get_config()

    if json_output:
        print(json.dumps(cfg.model_dump(mode="json"), indent=2, default=str))
        return

    profile = cfg.suppression.get_profile()
    console.print("[bold]Configuration[/]")
    console.print(f"  Device: {cfg.device.name}")
    console.print(f"  Mode: {cfg.device.mode}")
    console.print(f"  Mock Mode: {cfg.mock_mode}")
    console.print(f"  Frame: {cfg.frame.width}x{cfg.frame.height}")
    console.print(f"\n[bold]Suppression[/] ({cfg.suppression.active_profile})")
    console.print(f"  Max output: {profile.max_output}")
    console.print(f"  IoU threshold: {profile.iou_threshold}")
    console.print(f"  Score threshold: {profile.score_threshold}")
    console.print(f"\n[bold]Clustering[/]")
    console.print(f"  Max k: {cfg.clustering.max_k}")
    console.print(f"  Fixed k: {cfg.clustering.fixed_k}")
    console.print(f"  Seed: {cfg.clustering.seed}")
    console.print(f"\n[bold]Focus[/]")
    console.print(f"  Focus threshold: {cfg.focus.focus_threshold}")
    console.print(f"  Confidence threshold: {cfg.focus.confidence_threshold}")
    console.print(f"  Locale: {cfg.messages.locale}")


@app.command()
def version():
    """Show version information."""
    console.print(f"[bold]Grocersee[/] v{__version__}")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
