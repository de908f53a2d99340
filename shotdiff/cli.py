"""CLI entry point for shotdiff."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from shotdiff.baselines.registry import VisualBaselineRegistryManager, baseline_key
from shotdiff.capture.codec import load_image
from shotdiff.capture.normalizer import normalize_capture
from shotdiff.engine import compare as compare_images
from shotdiff.errors import ShotdiffError
from shotdiff.models.capture import ViewportMetadata
from shotdiff.models.comparison import ComparisonResult
from shotdiff.models.config import ShotdiffConfig
from shotdiff.reporter.json_report import generate_json_report

console = Console()

DEFAULT_CONFIG = "shotdiff.json"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(path: str) -> ShotdiffConfig:
    """Load the config file if present, otherwise fall back to defaults."""
    if Path(path).exists():
        return ShotdiffConfig.load(path)
    return ShotdiffConfig()


def _fail(message: str) -> None:
    console.print(f"[red]{escape(message)}[/red]")
    sys.exit(2)


def _print_result(result: ComparisonResult) -> None:
    table = Table(title="Comparison Result")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    verdict = "[green]equal[/green]" if result.equal else "[red]different[/red]"
    table.add_row("Verdict", verdict)
    table.add_row("Total pixels", str(result.total_pixels))
    table.add_row("Differing pixels", str(result.differing_pixels))
    table.add_row("Allowed differences", str(result.max_allowed_diff))
    table.add_row("Content pixels", str(result.non_background_pixels))
    table.add_row("Spots", str(result.spot_count))
    table.add_row("Deviation", f"{result.deviation_percent:.3f}%")
    console.print(table)

    if result.heatmap_path:
        console.print(f"  Heatmap: [blue]{result.heatmap_path}[/blue]")
    if result.render_error:
        console.print(f"  [yellow]Heatmap not written: {escape(result.render_error)}[/yellow]")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Visual regression image comparison"""
    setup_logging(verbose)


@cli.command()
def init() -> None:
    """Create a default configuration file."""
    config_path = Path(DEFAULT_CONFIG)
    if config_path.exists():
        if not click.confirm(f"{DEFAULT_CONFIG} already exists. Overwrite?"):
            return

    ShotdiffConfig().save(config_path)
    console.print(f"[green]Created {config_path}[/green]")


@cli.command()
@click.argument("baseline", type=click.Path())
@click.argument("candidate", type=click.Path())
@click.option("--heatmap", "heatmap_path", default=None, help="Heatmap output path")
@click.option("--accuracy", type=click.IntRange(0, 1000), default=None, help="Per-mille accuracy")
@click.option("--no-heatmap", is_flag=True, help="Do not render a heatmap on mismatch")
@click.option("--report", "report_path", default=None, help="Write a JSON report to this path")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def compare(
    baseline: str,
    candidate: str,
    heatmap_path: str | None,
    accuracy: int | None,
    no_heatmap: bool,
    report_path: str | None,
    config: str,
) -> None:
    """Compare CANDIDATE against BASELINE. Exits 1 when they differ."""
    cfg = _load_config(config)
    overrides: dict = {}
    if heatmap_path:
        overrides["heatmap_path"] = heatmap_path
    if accuracy is not None:
        overrides["accuracy"] = accuracy
    if no_heatmap:
        overrides["render_heatmap"] = False
    comparison = cfg.comparison.model_copy(update=overrides)

    try:
        result = compare_images(load_image(baseline), load_image(candidate), comparison)
    except (ShotdiffError, FileNotFoundError) as e:
        _fail(str(e))
        return

    _print_result(result)
    if report_path:
        generate_json_report(result, Path(report_path), baseline, candidate)
        console.print(f"  JSON report: [blue]{report_path}[/blue]")

    sys.exit(0 if result.equal else 1)


@cli.command()
@click.argument("raw", type=click.Path())
@click.argument("output", type=click.Path())
@click.option("--dpr", type=float, required=True, help="Device pixel ratio of the capture")
@click.option("--inner-height", type=int, required=True, help="Inner viewport height in logical pixels")
@click.option("--offset", type=int, default=0, help="Vertical offset of the viewport in the capture")
def normalize(raw: str, output: str, dpr: float, inner_height: int, offset: int) -> None:
    """Rescale and crop a raw capture to its logical viewport."""
    try:
        metadata = ViewportMetadata.from_values({
            "device_pixel_ratio": dpr,
            "vertical_offset": offset,
            "inner_viewport_height": inner_height,
        })
        image = normalize_capture(load_image(raw), metadata)
    except (ShotdiffError, FileNotFoundError) as e:
        _fail(str(e))
        return

    Path(output).parent.mkdir(parents=True, exist_ok=True)
    image.save(output)
    console.print(f"[green]Normalized {image.width}x{image.height}:[/green] {output}")


@cli.command()
@click.argument("name")
@click.argument("image_path", type=click.Path())
@click.option("--viewport", default="desktop", help="Viewport name")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def check(name: str, image_path: str, viewport: str, config: str) -> None:
    """Compare IMAGE_PATH against the stored baseline NAME.

    Stores the image as the baseline when none exists yet.
    """
    cfg = _load_config(config)
    manager = VisualBaselineRegistryManager(Path(cfg.baselines_dir))
    registry = manager.load()

    try:
        candidate = load_image(image_path)
        entry = manager.get_baseline(registry, name, viewport)
        if entry is None:
            manager.store_baseline(registry, name, viewport, candidate)
            manager.save(registry)
            console.print(f"[yellow]No baseline for {name} ({viewport}); stored as first run[/yellow]")
            return

        baseline = manager.load_baseline_image(entry)
        heatmap = Path(cfg.report_output_dir) / f"{baseline_key(name, viewport)}_heatmap.jpg"
        comparison = cfg.comparison.model_copy(update={"heatmap_path": str(heatmap)})
        result = compare_images(baseline, candidate, comparison)
    except (ShotdiffError, FileNotFoundError) as e:
        _fail(str(e))
        return

    _print_result(result)
    sys.exit(0 if result.equal else 1)


@cli.group()
def baseline() -> None:
    """Manage approved baseline images."""
    pass


@baseline.command("add")
@click.argument("name")
@click.argument("image_path", type=click.Path())
@click.option("--viewport", default="desktop", help="Viewport name")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def baseline_add(name: str, image_path: str, viewport: str, config: str) -> None:
    """Approve IMAGE_PATH as the baseline for NAME, replacing any existing one."""
    cfg = _load_config(config)
    manager = VisualBaselineRegistryManager(Path(cfg.baselines_dir))
    registry = manager.load()
    try:
        image = load_image(image_path)
    except (ShotdiffError, FileNotFoundError) as e:
        _fail(str(e))
        return

    entry = manager.store_baseline(registry, name, viewport, image)
    manager.save(registry)
    console.print(f"[green]Stored baseline:[/green] {entry.image_path}")


@baseline.command("list")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def baseline_list(config: str) -> None:
    """List all registered baselines."""
    cfg = _load_config(config)
    registry = VisualBaselineRegistryManager(Path(cfg.baselines_dir)).load()
    if not registry.baselines:
        console.print("[yellow]No baselines registered[/yellow]")
        return

    table = Table(title="Baselines")
    table.add_column("Name", style="bold")
    table.add_column("Viewport")
    table.add_column("Size")
    table.add_column("Captured")
    for entry in registry.baselines.values():
        table.add_row(entry.name, entry.viewport_name, f"{entry.width}x{entry.height}", entry.captured_at)
    console.print(table)


if __name__ == "__main__":
    cli()
