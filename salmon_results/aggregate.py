"""
Assembly of Salmon results from a batch of samples.

This module reads per-sample Salmon results and aligns them into
features x samples matrices of estimated counts, TPM and log2(TPM + offset),
together with per-sample run metadata and per-feature attributes.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence, Union

import numpy as np
import pandas as pd

from .batch_log import SalmonLog, as_run_records, failed_sample_names, flag_failed_runs
from .config import SalmonLayout
from .readers import read_salmon_results_one_sample
from .utils import write_tables

logger = logging.getLogger(__name__)


class ProgressCallback(Protocol):
    def update(self) -> None: ...

    def finish(self) -> None: ...


@dataclass
class SalmonBatch:
    """
    Salmon results for a batch of samples.

    Attributes:
        pdata: samples x run info fields
        fdata: features x feature attributes (feature_id, feature_length)
        counts: features x samples estimated counts
        tpm: features x samples transcripts per million
        exprs: features x samples log2(TPM + log_exprs_offset)
        log_exprs_offset: Offset added to TPM before the log transform
        failed_samples: Samples excluded because their Salmon run failed
        mismatched_samples: Samples whose features did not match the batch
    """

    pdata: pd.DataFrame
    fdata: pd.DataFrame
    counts: pd.DataFrame
    tpm: pd.DataFrame
    exprs: pd.DataFrame
    log_exprs_offset: float = 1.0
    failed_samples: List[str] = field(default_factory=list)
    mismatched_samples: List[str] = field(default_factory=list)

    def __post_init__(self):
        for name in ("counts", "tpm", "exprs"):
            matrix = getattr(self, name)
            if not matrix.index.equals(self.fdata.index):
                raise ValueError(f"Rows of {name} are not aligned with the feature data")
            if not matrix.columns.equals(self.pdata.index):
                raise ValueError(f"Columns of {name} are not aligned with the sample data")

    @property
    def samples(self) -> List[str]:
        return self.pdata.index.tolist()

    @property
    def features(self) -> List[str]:
        return self.fdata.index.tolist()

    @property
    def shape(self):
        """(n_features, n_samples)"""
        return self.counts.shape

    def write(self, output_dir: Union[str, Path]) -> Dict[str, Path]:
        """
        Write every table of the batch as TSV.

        Args:
            output_dir: Output directory (created if missing)

        Returns:
            Dictionary mapping table names to written paths
        """
        logger.info(f"Writing Salmon batch tables to {output_dir}")
        return write_tables(
            {
                "sample_info": self.pdata,
                "feature_info": self.fdata,
                "est_counts": self.counts,
                "tpm": self.tpm,
                "log2_tpm": self.exprs,
            },
            output_dir,
        )


def log_expression(tpm: pd.DataFrame, offset: float = 1.0) -> pd.DataFrame:
    """
    Compute log2(TPM + offset).

    Args:
        tpm: TPM matrix; missing values stay missing
        offset: Non-negative offset added before taking logs

    Returns:
        DataFrame with the same labels as tpm
    """
    if offset < 0:
        raise ValueError(f"log_exprs_offset must be non-negative, got {offset}")

    # offset=0 gives -inf for zero TPM
    with np.errstate(divide='ignore'):
        return np.log2(tpm + offset)


def _resolve_samples(
    salmon_log: Optional[SalmonLog],
    samples: Optional[Sequence[str]],
    directories: Optional[Sequence[Union[str, Path]]],
    failure_pattern: str
):
    """Return (samples, directories, failed_samples) for the runs to read."""
    if salmon_log is not None:
        logger.info("Using salmon_log argument to define samples and results directories")
        if samples is not None or directories is not None:
            logger.info("Ignoring samples and directories arguments because salmon_log was provided")

        records = as_run_records(salmon_log)
        failed = flag_failed_runs(records, failure_pattern)
        failed_samples = failed_sample_names(failed)
        if failed_samples:
            logger.warning(
                "The Salmon job failed for the following samples:\n "
                + "\n ".join(failed_samples)
                + "\nIt is recommended that you inspect salmon_log for these samples."
            )

        kept = [sample for sample in records if not failed[sample]]
        return kept, [records[sample].output_dir for sample in kept], failed_samples

    logger.info("Salmon log not provided - assuming all runs successful")
    if samples is None or directories is None:
        raise ValueError(
            "If salmon_log argument is not used, then both samples and directories must be provided."
        )
    samples = [str(sample) for sample in samples]
    directories = [Path(directory) for directory in directories]
    if len(samples) != len(directories):
        raise ValueError("samples and directories arguments must be the same length")
    if len(set(samples)) != len(samples):
        raise ValueError("sample names must be unique")

    return samples, directories, []


def _set_run_info(pdata: pd.DataFrame, row: int, run_info: pd.DataFrame, directory: Path) -> None:
    """Copy a one-row run info table into row `row` of pdata."""
    if run_info.shape[0] != 1 or set(run_info.columns) != set(pdata.columns):
        raise ValueError(
            f"Run info for directory {directory} has fields {list(run_info.columns)}, "
            f"expected {list(pdata.columns)}"
        )

    values = run_info.iloc[0]
    for col, name in enumerate(pdata.columns):
        pdata.iat[row, col] = values[name]


def read_salmon_results(
    salmon_log: Optional[SalmonLog] = None,
    samples: Optional[Sequence[str]] = None,
    directories: Optional[Sequence[Union[str, Path]]] = None,
    log_exprs_offset: Optional[float] = None,
    progress: Optional[ProgressCallback] = None,
    layout: Optional[SalmonLayout] = None,
    failure_pattern: Optional[str] = None
) -> SalmonBatch:
    """
    Read Salmon results from a batch of jobs.

    Either a batch-run log or both `samples` and `directories` must be given.
    With a log, samples whose captured output mentions a warning or error are
    left out of the batch; explicit lists are then ignored. Without a log all
    runs are assumed successful.

    The first sample read defines the feature set. A later sample whose
    abundance table does not match it keeps NaN counts and TPM, and a warning
    is logged.

    Args:
        salmon_log: Mapping of sample name to run record
        samples: Sample names, in output column order
        directories: Salmon output directories, parallel to `samples`
        log_exprs_offset: Offset for log2(TPM + offset) (default from layout, 1)
        progress: Object with update()/finish(), called once per sample
        layout: Salmon output layout and defaults
        failure_pattern: Regular expression marking a failed run in its log
            (default from layout, "warning|error", case-insensitive)

    Returns:
        SalmonBatch

    Raises:
        ValueError: On missing or mismatched arguments, an empty batch, or
            run info that doesn't match the first sample's fields
        FileNotFoundError: If a sample's results are missing
    """
    layout = layout or SalmonLayout()
    if log_exprs_offset is None:
        log_exprs_offset = layout.log_exprs_offset
    if log_exprs_offset < 0:
        raise ValueError(f"log_exprs_offset must be non-negative, got {log_exprs_offset}")
    if failure_pattern is None:
        failure_pattern = layout.failure_pattern

    samples, directories, failed_samples = _resolve_samples(
        salmon_log, samples, directories, failure_pattern
    )
    if not samples:
        raise ValueError("No Salmon results to read")

    # Read first sample to get size of feature set
    first = read_salmon_results_one_sample(directories[0], layout)
    nsamples = len(samples)
    feature_ids = pd.Index(first.abundance["target_id"], name="feature_id")
    nfeatures = len(feature_ids)
    sample_index = pd.Index(samples, name="sample")

    pdata = pd.DataFrame(index=sample_index, columns=first.run_info.columns, dtype=object)
    fdata = pd.DataFrame(
        {
            "feature_id": feature_ids.to_numpy(),
            "feature_length": first.abundance["length"].to_numpy(),
        },
        index=feature_ids.rename(None),
    )
    est_counts = np.full((nfeatures, nsamples), np.nan)
    tpm = np.full((nfeatures, nsamples), np.nan)
    mismatched_samples = []

    logger.info(f"Reading results for {nsamples} samples")
    for i, (sample, directory) in enumerate(zip(samples, directories)):
        result = first if i == 0 else read_salmon_results_one_sample(directory, layout)
        abundance = result.abundance

        if len(abundance) != nfeatures:
            logger.warning(f"Results for directory {directory} do not match dimensions of other samples.")
            mismatched_samples.append(sample)
        elif not feature_ids.equals(pd.Index(abundance["target_id"])):
            logger.warning(f"Results for directory {directory} do not match features of other samples.")
            mismatched_samples.append(sample)
        else:
            est_counts[:, i] = abundance["est_counts"].to_numpy(dtype=float)
            tpm[:, i] = abundance["tpm"].to_numpy(dtype=float)

        _set_run_info(pdata, i, result.run_info, directory)

        if progress is not None:
            progress.update()

    if progress is not None:
        progress.finish()

    counts_df = pd.DataFrame(est_counts, index=feature_ids, columns=sample_index)
    tpm_df = pd.DataFrame(tpm, index=feature_ids, columns=sample_index)
    exprs_df = log_expression(tpm_df, log_exprs_offset)
    logger.info(f"Using log2(TPM + {log_exprs_offset:g}) as 'exprs' values in output")

    return SalmonBatch(
        pdata=pdata.infer_objects(),
        fdata=fdata,
        counts=counts_df,
        tpm=tpm_df,
        exprs=exprs_df,
        log_exprs_offset=log_exprs_offset,
        failed_samples=failed_samples,
        mismatched_samples=mismatched_samples,
    )
