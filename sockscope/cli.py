"""
sockscope command-line interface.
"""

import json
import sys
from pathlib import Path
from typing import List, Optional

import click
import numpy as np
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .correlate import STAGE_KEYSETS, STAGE_THREADS
from .lookup import ArchiveLookup, ArchiveNotFoundError, extract_thread_key
from .params import CorrelationConfig, SockscopeConfig, create_default_config, load_config
from .pipeline import ClusterResult, cluster_ids, run_correlation
from .utils import configure_logging

console = Console()

DEFAULT_CONFIG = "sockscope.config.yaml"

STAGE_LABELS = {
    STAGE_THREADS: "Collecting IDs from other threads",
    STAGE_KEYSETS: "Fetching thread keys per ID",
}


def print_banner():
    """Print sockscope banner."""
    console.print(f"""
[bold blue]sockscope[/bold blue] [dim]v{__version__}[/dim]
[italic]Cross-thread poster ID correlation[/italic]
""")


def _load_config_or_default(config: Optional[str]) -> SockscopeConfig:
    if config is None:
        default = Path(DEFAULT_CONFIG)
        return load_config(default) if default.exists() else SockscopeConfig()
    return load_config(config)


def _groups_table(title: str, groups: List[List[str]]) -> Table:
    table = Table(title=title)
    table.add_column("Group", style="cyan", justify="right")
    table.add_column("Size", style="white", justify="right")
    table.add_column("IDs", style="green")
    for index, group in enumerate(groups, 1):
        table.add_row(str(index), str(len(group)), escape(", ".join(group)))
    return table


def _print_result(result: ClusterResult) -> None:
    console.print(_groups_table("HAC (Ward)", result.hac))
    console.print(_groups_table("DBSCAN", result.dbscan))
    if not result.hac and not result.dbscan:
        console.print("[yellow]No clusters produced.[/yellow]")


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version and exit")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx, version, verbose):
    """sockscope: surface suspected sockpuppet IDs across discussion threads."""
    if version:
        click.echo(f"sockscope v{__version__}")
        sys.exit(0)

    configure_logging(verbose)

    if ctx.invoked_subcommand is None:
        print_banner()
        click.echo(ctx.get_help())


@main.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG,
              help="Configuration file path", type=click.Path())
@click.option("--force", is_flag=True, help="Overwrite existing files")
def init(config: str, force: bool):
    """Write a default configuration file."""
    config_path = Path(config)

    if config_path.exists() and not force:
        console.print(f"[red]Configuration file already exists: {config_path}[/red]")
        console.print("Use --force to overwrite")
        sys.exit(1)

    create_default_config(config_path)
    console.print(f"✓ Created configuration: [green]{config_path}[/green]")


@main.command()
@click.argument("seed")
@click.option("--config", "-c", default=None,
              help="Configuration file", type=click.Path(exists=True))
@click.option("--archive", "-a", type=click.Path(file_okay=False),
              help="Directory of <key>.dat thread files")
@click.option("--posts", "-p", type=click.Path(dir_okay=False),
              help="JSON/YAML index of ID -> thread keys")
@click.option("--metric", type=click.Choice(["jaccard", "uniform"]),
              help="Distance metric (overrides config)")
@click.option("--pace", type=float, help="Seconds between lookups (overrides config)")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write results as JSON")
def correlate(seed: str, config: Optional[str], archive: Optional[str], posts: Optional[str],
              metric: Optional[str], pace: Optional[float], output: Optional[str]):
    """Correlate IDs of SEED (a thread key or thread URL) with their poster's other threads."""
    seed_key = extract_thread_key(seed)
    if seed_key is None:
        console.print(f"[red]Invalid thread URL, could not extract a key: {escape(seed)}[/red]")
        sys.exit(1)

    try:
        config_obj = _load_config_or_default(config)
        overrides = {}
        if metric:
            overrides["metric"] = metric
        if pace is not None:
            overrides["pace_seconds"] = pace
        if overrides:
            config_obj.correlation = CorrelationConfig(
                **{**config_obj.correlation.model_dump(), **overrides}
            )
    except (FileNotFoundError, ValidationError) as e:
        console.print(f"[red]Error loading config: {e}[/red]")
        sys.exit(1)

    dat_dir = archive or config_obj.archive.dat_dir
    posts_index = posts or config_obj.archive.posts_index
    if not dat_dir:
        console.print("[red]Provide --archive or set archive.dat_dir in the config[/red]")
        sys.exit(1)

    try:
        lookup = ArchiveLookup(dat_dir, posts_index)
    except ArchiveNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    console.print(f"[bold]Correlating IDs from thread [green]{seed_key}[/green][/bold]")
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
    ) as progress:
        tasks = {}

        def on_progress(stage: str, done: int, total: int) -> None:
            if stage not in tasks:
                tasks[stage] = progress.add_task(STAGE_LABELS.get(stage, stage), total=total)
            progress.update(tasks[stage], completed=done, total=total)

        result = run_correlation(seed_key, lookup, config_obj, progress=on_progress)
    report = result.report

    console.print(f"Seed IDs: {len(report.seed_ids)}")
    if report.anchor_id:
        console.print(f"Anchor ID: [cyan]{escape(report.anchor_id)}[/cyan] "
                      f"({len(report.other_keys)} other threads)")
    if report.unregistered:
        console.print(f"[yellow]{report.unregistered}[/yellow]")
    console.print(f"Suspected IDs: {escape(', '.join(report.suspected_ids)) or '-'}")

    if report.errors:
        errors = Table(title="Lookup failures")
        errors.add_column("Stage", style="cyan")
        errors.add_column("Target", style="white")
        errors.add_column("Message", style="red")
        for failure in report.errors:
            errors.add_row(failure.stage, escape(failure.target), escape(failure.message))
        console.print(errors)

    _print_result(result)

    if output:
        output_path = Path(output)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)
        console.print(f"\n✓ Results saved to: {output_path}")


@main.command()
@click.argument("matrix_file", type=click.Path(exists=True, dir_okay=False))
def cluster(matrix_file: str):
    """Cluster a JSON document {"ids": [...], "matrix": [[...]]} with HAC and DBSCAN."""
    try:
        with open(matrix_file, "r", encoding="utf-8") as f:
            payload = json.load(f)
        ids = [str(identifier) for identifier in payload["ids"]]
        matrix = np.asarray(payload["matrix"], dtype=np.float64)
    except (ValueError, KeyError, TypeError) as e:
        console.print(f"[red]Invalid matrix file {matrix_file}: {e}[/red]")
        sys.exit(1)

    _print_result(cluster_ids(ids, matrix))


if __name__ == "__main__":
    main()
