#!/usr/bin/env python3
"""
salmon_results CLI

Command-line interface for reading Salmon quantification results.
Reads single samples or whole batches and writes aligned count, TPM and
log-expression tables.
"""

import typer
import sys
from pathlib import Path
from typing import Optional, List
from rich.console import Console
import logging

from . import __version__
from .utils import setup_logging, DotProgress
from .config import SalmonLayout, load_config
from .batch_log import load_salmon_log
from .readers import read_salmon_results_one_sample
from .aggregate import SalmonBatch, read_salmon_results

app = typer.Typer(
    name="salmon-results",
    help="Read Salmon quantification results into count and expression tables",
    add_completion=False,
)

console = Console()

# Global options
def version_callback(value: bool):
    if value:
        console.print(f"salmon_results v{__version__}")
        raise typer.Exit()

def verbose_callback(value: bool):
    if value:
        setup_logging(level=logging.DEBUG)
    else:
        setup_logging(level=logging.INFO)

@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None, "--version", "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    ),
    verbose: bool = typer.Option(
        False, "--verbose",
        callback=verbose_callback,
        help="Enable verbose logging"
    ),
):
    """salmon_results CLI"""
    pass

def _load_layout(config: Optional[Path]) -> SalmonLayout:
    return load_config(config) if config is not None else SalmonLayout()

def default_sample_names(directories: List[Path]) -> List[str]:
    """
    Name samples after their directories.

    Salmon output is often written to S1/quant, S2/quant, ...; when directory
    names repeat, the parent directory names are used instead.

    Raises:
        ValueError: If neither the directory nor the parent names are unique
    """
    names = [directory.name for directory in directories]
    if len(set(names)) == len(names):
        return names

    parents = [directory.resolve().parent.name for directory in directories]
    if len(set(parents)) == len(parents):
        return parents

    raise ValueError(
        "Cannot derive unique sample names from directories "
        f"{', '.join(str(d) for d in directories)}; pass --sample for each directory"
    )

def _report_batch(batch: SalmonBatch, output_dir: Path) -> None:
    written = batch.write(output_dir)
    n_features, n_samples = batch.shape
    console.print(f"[bold green]Read {n_samples} samples x {n_features} features[/bold green]")
    if batch.failed_samples:
        console.print(f"[yellow]Excluded failed runs: {', '.join(batch.failed_samples)}[/yellow]")
    if batch.mismatched_samples:
        console.print(f"[yellow]Samples with mismatched features: {', '.join(batch.mismatched_samples)}[/yellow]")
    for name, path in written.items():
        console.print(f"  {name}: {path}")

@app.command()
def read(
    directories: List[Path] = typer.Argument(..., help="Salmon output directories, one per sample"),
    samples: Optional[List[str]] = typer.Option(
        None, "--sample", "-s",
        help="Sample name for each directory, in order (default: directory or parent directory names)"
    ),
    output_dir: Path = typer.Option("./salmon_results", help="Output directory"),
    offset: Optional[float] = typer.Option(None, help="Offset for log2(TPM + offset)"),
    config: Optional[Path] = typer.Option(None, help="YAML file describing the Salmon output layout"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Do not print progress markers"),
):
    """Read Salmon results from a list of directories."""
    console.print(f"[bold blue]Reading Salmon results from {len(directories)} directories[/bold blue]")

    try:
        layout = _load_layout(config)
        if not samples:
            samples = default_sample_names(directories)
        progress = None if quiet else DotProgress(console=console, width=layout.progress_width)

        batch = read_salmon_results(
            samples=samples,
            directories=directories,
            log_exprs_offset=offset,
            progress=progress,
            layout=layout
        )
        _report_batch(batch, output_dir)

    except Exception as e:
        console.print(f"[bold red]Error reading Salmon results: {e}[/bold red]")
        sys.exit(1)

@app.command()
def read_log(
    salmon_log: Path = typer.Argument(..., help="JSON batch-run log keyed by sample name"),
    output_dir: Path = typer.Option("./salmon_results", help="Output directory"),
    offset: Optional[float] = typer.Option(None, help="Offset for log2(TPM + offset)"),
    config: Optional[Path] = typer.Option(None, help="YAML file describing the Salmon output layout"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Do not print progress markers"),
):
    """Read Salmon results for the samples in a batch-run log, skipping failed runs."""
    console.print(f"[bold blue]Reading Salmon results listed in {salmon_log}[/bold blue]")

    try:
        layout = _load_layout(config)
        records = load_salmon_log(salmon_log)
        progress = None if quiet else DotProgress(console=console, width=layout.progress_width)

        batch = read_salmon_results(
            salmon_log=records,
            log_exprs_offset=offset,
            progress=progress,
            layout=layout
        )
        _report_batch(batch, output_dir)

    except Exception as e:
        console.print(f"[bold red]Error reading Salmon results: {e}[/bold red]")
        sys.exit(1)

@app.command()
def inspect(
    directory: Path = typer.Argument(..., help="Salmon output directory for one sample"),
    config: Optional[Path] = typer.Option(None, help="YAML file describing the Salmon output layout"),
):
    """Summarise the Salmon results of a single sample."""
    try:
        layout = _load_layout(config)
        result = read_salmon_results_one_sample(directory, layout)

        abundance = result.abundance
        console.print(f"[bold blue]{directory}[/bold blue]")
        console.print(f"Features: {len(abundance)}")
        console.print(f"Total estimated counts: {abundance['est_counts'].sum():.2f}")
        console.print(f"Features with counts > 0: {(abundance['est_counts'] > 0).sum()}")
        for name, value in result.run_info.iloc[0].items():
            console.print(f"  {name}: {value}", markup=False, highlight=False)

    except Exception as e:
        console.print(f"[bold red]Error reading Salmon results: {e}[/bold red]")
        sys.exit(1)

if __name__ == "__main__":
    app()
