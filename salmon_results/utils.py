"""
Utility functions for salmon_results.

This module provides common utility functions used across the package,
including logging setup, file validation, progress reporting and table output.
"""

import logging
from pathlib import Path
from typing import Optional, Dict, Union
import pandas as pd
from rich.logging import RichHandler
from rich.console import Console

def setup_logging(level: int = logging.INFO) -> None:
    """
    Set up logging with Rich handler for colored output.

    Args:
        level: Logging level (default: INFO)
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
        force=True
    )

def validate_file_exists(file_path: Union[str, Path]) -> Path:
    """
    Validate that a file exists and return Path object.

    Args:
        file_path: Path to file

    Returns:
        Path object if file exists

    Raises:
        FileNotFoundError: If file doesn't exist
    """
    path = Path(file_path)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    return path

def validate_directory_exists(dir_path: Union[str, Path], create: bool = False) -> Path:
    """
    Validate that a directory exists, optionally create it.

    Args:
        dir_path: Path to directory
        create: Whether to create directory if it doesn't exist

    Returns:
        Path object

    Raises:
        FileNotFoundError: If directory doesn't exist and create=False
    """
    path = Path(dir_path)
    if not path.exists():
        if create:
            path.mkdir(parents=True, exist_ok=True)
        else:
            raise FileNotFoundError(f"Directory not found: {path}")
    return path

def write_tables(tables: Dict[str, pd.DataFrame], output_dir: Union[str, Path]) -> Dict[str, Path]:
    """
    Write named DataFrames as tab-separated files.

    Args:
        tables: Mapping of file stem to DataFrame
        output_dir: Output directory (created if missing)

    Returns:
        Dictionary mapping table names to written paths
    """
    output_dir = validate_directory_exists(output_dir, create=True)
    written = {}

    for name, df in tables.items():
        out_file = output_dir / f"{name}.tsv"
        df.to_csv(out_file, sep='\t', na_rep='NA')
        written[name] = out_file

    return written

class DotProgress:
    """Print one marker per processed item, wrapping lines every `width` markers."""

    def __init__(self, console: Optional[Console] = None, width: int = 80, marker: str = "."):
        if width < 1:
            raise ValueError("width must be a positive integer")
        self.console = console if console is not None else Console()
        self.width = width
        self.marker = marker
        self.current = 0

    def update(self) -> None:
        """Record one processed item."""
        self.current += 1
        self.console.print(self.marker, end="", highlight=False)
        if self.current % self.width == 0:
            self.console.print()

    def finish(self) -> None:
        """Terminate the current line of markers."""
        if self.current % self.width != 0:
            self.console.print()
