"""
Configuration for reading Salmon output.

Salmon writes its results with fixed file names, but those names and the
location of the run metadata have moved between Salmon releases. The layout
is therefore configurable, either directly or from a YAML file such as::

    quant_file: quant.sf
    meta_info_file: aux_info/meta_info.json
    log_exprs_offset: 1
"""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from .utils import validate_file_exists

logger = logging.getLogger(__name__)

DEFAULT_QUANT_FILE = "quant.sf"
DEFAULT_META_INFO_FILE = "aux/meta_info.json"
DEFAULT_FAILURE_PATTERN = r"warning|error"

# On-disk column order of quant.sf, then the order used in memory
QUANT_COLUMNS = ["target_id", "length", "eff_length", "tpm", "est_counts"]
ABUNDANCE_COLUMNS = ["target_id", "length", "eff_length", "est_counts", "tpm"]


@dataclass(frozen=True)
class SalmonLayout:
    """Where Salmon puts its outputs and how batches are assembled."""

    quant_file: str = DEFAULT_QUANT_FILE
    meta_info_file: str = DEFAULT_META_INFO_FILE
    log_exprs_offset: float = 1.0
    failure_pattern: str = DEFAULT_FAILURE_PATTERN
    progress_width: int = 80

    def __post_init__(self):
        if self.log_exprs_offset < 0:
            raise ValueError(f"log_exprs_offset must be non-negative, got {self.log_exprs_offset}")
        if self.progress_width < 1:
            raise ValueError(f"progress_width must be a positive integer, got {self.progress_width}")

    def quant_path(self, directory: Union[str, Path]) -> Path:
        return Path(directory) / self.quant_file

    def meta_info_path(self, directory: Union[str, Path]) -> Path:
        return Path(directory) / self.meta_info_file

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "SalmonLayout":
        """
        Build a layout from a mapping of option names.

        Args:
            values: Option names and values; missing options keep defaults

        Returns:
            SalmonLayout instance

        Raises:
            ValueError: If an option name is not recognised
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown configuration options: {unknown}")
        return cls(**values)


def load_config(config_file: Union[str, Path]) -> SalmonLayout:
    """
    Load a SalmonLayout from a YAML file.

    Args:
        config_file: Path to YAML configuration

    Returns:
        SalmonLayout with values from the file

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not a YAML mapping or has unknown options
    """
    config_file = validate_file_exists(config_file)

    with open(config_file, 'r') as f:
        values = yaml.safe_load(f)

    if values is None:
        values = {}
    if not isinstance(values, dict):
        raise ValueError(f"Configuration file {config_file} must contain a mapping")

    logger.debug(f"Loaded configuration from {config_file}: {values}")
    return SalmonLayout.from_dict(values)
