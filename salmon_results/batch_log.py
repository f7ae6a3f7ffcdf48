"""
Batch-run logs for Salmon jobs.

A batch-run log maps each sample name to the outcome of its Salmon run: the
directory the results were written to and the text Salmon printed. Failed
runs are detected with a heuristic, any mention of "warning" or "error" in
the captured text, unless the record also carries the process return code.
"""

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import pandas as pd

from .config import DEFAULT_FAILURE_PATTERN
from .utils import validate_file_exists

logger = logging.getLogger(__name__)


@dataclass
class SalmonRunRecord:
    """Outcome of one Salmon run."""

    output_dir: Path
    salmon_log: Optional[Union[str, Sequence[str]]] = ""
    returncode: Optional[int] = None

    def __post_init__(self):
        self.output_dir = Path(self.output_dir)

    @property
    def log_text(self) -> str:
        if self.salmon_log is None:
            return ""
        if isinstance(self.salmon_log, str):
            return self.salmon_log
        return "\n".join(str(line) for line in self.salmon_log)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "SalmonRunRecord":
        if "output_dir" not in values:
            raise ValueError("Salmon run record is missing 'output_dir'")
        return cls(
            output_dir=values["output_dir"],
            salmon_log=values.get("salmon_log", ""),
            returncode=values.get("returncode"),
        )


SalmonLog = Mapping[str, Union[SalmonRunRecord, Mapping[str, Any]]]


def as_run_records(salmon_log: SalmonLog) -> Dict[str, SalmonRunRecord]:
    """
    Normalise a batch-run log to SalmonRunRecord values, keeping sample order.

    Raises:
        TypeError: If the log is not a mapping of sample name to run record
    """
    if not isinstance(salmon_log, Mapping):
        raise TypeError(
            "The salmon_log argument should be a mapping of sample name to Salmon run record"
        )

    records = {}
    for sample, record in salmon_log.items():
        if isinstance(record, SalmonRunRecord):
            records[str(sample)] = record
        elif isinstance(record, Mapping):
            records[str(sample)] = SalmonRunRecord.from_mapping(record)
        else:
            raise TypeError(f"Run record for sample {sample} is a {type(record).__name__}, not a mapping")
    return records


def run_failed(record: SalmonRunRecord, pattern: str = DEFAULT_FAILURE_PATTERN) -> bool:
    """Return True if the run's return code or captured log indicates failure."""
    if record.returncode is not None and record.returncode != 0:
        return True
    return re.search(pattern, record.log_text, flags=re.IGNORECASE) is not None


def flag_failed_runs(salmon_log: SalmonLog, pattern: str = DEFAULT_FAILURE_PATTERN) -> pd.Series:
    """
    Flag failed runs in a batch-run log.

    Args:
        salmon_log: Mapping of sample name to run record
        pattern: Regular expression searched case-insensitively in each log

    Returns:
        Boolean Series indexed by sample name, True for failed runs
    """
    records = as_run_records(salmon_log)
    return pd.Series(
        [run_failed(record, pattern) for record in records.values()],
        index=pd.Index(list(records), name="sample"),
        dtype=bool,
        name="failed",
    )


def load_salmon_log(log_file: Union[str, Path]) -> Dict[str, SalmonRunRecord]:
    """
    Load a batch-run log written as JSON.

    The file holds an object keyed by sample name, each value an object with
    `output_dir`, `salmon_log` (string or list of lines) and optionally
    `returncode`. Relative output directories are resolved against the
    directory holding the log file.

    Args:
        log_file: Path to the JSON batch-run log

    Returns:
        Dictionary mapping sample names to SalmonRunRecord

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If a record lacks an output directory
    """
    log_file = validate_file_exists(log_file)

    with open(log_file, 'r') as f:
        raw = json.load(f)

    if not isinstance(raw, dict):
        raise ValueError(f"Batch-run log {log_file} must contain a JSON object keyed by sample name")

    records = as_run_records(raw)
    for record in records.values():
        if not record.output_dir.is_absolute():
            record.output_dir = log_file.parent / record.output_dir

    logger.info(f"Loaded Salmon batch-run log for {len(records)} samples from {log_file}")
    return records


def failed_sample_names(failed: pd.Series) -> List[str]:
    return failed.index[failed].tolist()
