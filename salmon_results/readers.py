"""
Reader for the results of a single Salmon quantification run.

A Salmon output directory holds a tab-separated abundance table (`quant.sf`)
and a JSON file describing the run. Each directory is expected to contain
the results of exactly one sample; putting more than one sample's results
in a directory gives unpredictable results, and is not detected here.
"""

import json
import logging
from pathlib import Path
from typing import NamedTuple, Optional, Union

import pandas as pd

from .config import ABUNDANCE_COLUMNS, QUANT_COLUMNS, SalmonLayout
from .utils import validate_file_exists

logger = logging.getLogger(__name__)


class SampleResults(NamedTuple):
    abundance: pd.DataFrame
    run_info: pd.DataFrame


def read_abundance(quant_file: Union[str, Path]) -> pd.DataFrame:
    """
    Read a Salmon quant.sf table.

    The on-disk column order is Name, Length, EffectiveLength, TPM, NumReads.
    The returned table renames these and swaps the last two so that counts
    precede TPM.

    Args:
        quant_file: Path to quant.sf

    Returns:
        DataFrame with columns target_id, length, eff_length, est_counts, tpm

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the table doesn't have five columns
    """
    quant_file = validate_file_exists(quant_file)

    header = pd.read_csv(quant_file, sep='\t', nrows=0).columns
    if len(header) != len(QUANT_COLUMNS):
        raise ValueError(
            f"Expected {len(QUANT_COLUMNS)} columns in {quant_file}, found {len(header)}"
        )

    # Identifiers such as "0001" or "NA" must survive as written
    abundance = pd.read_csv(
        quant_file,
        sep='\t',
        dtype={header[0]: str},
        keep_default_na=False,
        na_values={name: [''] for name in header[1:]},
    )

    abundance.columns = QUANT_COLUMNS
    return abundance[ABUNDANCE_COLUMNS]


def read_run_info(json_file: Union[str, Path]) -> pd.DataFrame:
    """
    Read Salmon run metadata into a one-row DataFrame.

    Nested objects are flattened into dotted column names; list values are
    kept as single cells.
    """
    json_file = validate_file_exists(json_file)

    with open(json_file, 'r') as f:
        meta_info = json.load(f)

    if not isinstance(meta_info, dict):
        raise ValueError(f"Run info in {json_file} must be a JSON object")

    return pd.json_normalize(meta_info)


def read_salmon_results_one_sample(
    directory: Union[str, Path],
    layout: Optional[SalmonLayout] = None
) -> SampleResults:
    """
    Read Salmon results for a single sample.

    Args:
        directory: Directory containing the Salmon results for the sample
        layout: File names to look for (default: Salmon's own defaults)

    Returns:
        SampleResults with the abundance table and the one-row run info table

    Raises:
        FileNotFoundError: If the abundance or run info file is missing
    """
    layout = layout or SalmonLayout()
    directory = Path(directory)

    quant_file = layout.quant_path(directory)
    if not quant_file.is_file():
        raise FileNotFoundError(
            f"File {quant_file} not found or does not exist. Please check directory is correct."
        )

    json_file = layout.meta_info_path(directory)
    if not json_file.is_file():
        raise FileNotFoundError(f"{json_file} not found or does not exist.")

    abundance = read_abundance(quant_file)
    run_info = read_run_info(json_file)

    logger.debug(f"Read {len(abundance)} features and {run_info.shape[1]} run info fields from {directory}")
    return SampleResults(abundance=abundance, run_info=run_info)
