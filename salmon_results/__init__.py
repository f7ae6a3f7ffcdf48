"""
salmon_results

Read Salmon RNA-seq quantification results for single samples and batches of
samples into aligned pandas tables.
"""

__version__ = "1.0.0"

from .aggregate import SalmonBatch, log_expression, read_salmon_results
from .batch_log import SalmonRunRecord, flag_failed_runs, load_salmon_log
from .config import SalmonLayout, load_config
from .readers import SampleResults, read_salmon_results_one_sample

__all__ = [
    "SalmonBatch",
    "SalmonLayout",
    "SalmonRunRecord",
    "SampleResults",
    "flag_failed_runs",
    "load_config",
    "load_salmon_log",
    "log_expression",
    "read_salmon_results",
    "read_salmon_results_one_sample",
]
