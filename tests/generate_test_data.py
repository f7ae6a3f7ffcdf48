#!/usr/bin/env python3
"""
salmon_results - Test Data Generator

Writes synthetic Salmon output directories (quant.sf and run metadata) and
batch-run logs for testing.
"""

import argparse
import json
import random
from pathlib import Path
from typing import Dict, List, Optional


class SalmonOutputGenerator:
    """Generate synthetic Salmon quantification results."""

    def __init__(self, n_features: int = 20, seed: int = 42, meta_info_file: str = "aux/meta_info.json"):
        """
        Initialize Salmon output generator.

        Args:
            n_features: Number of transcripts per sample
            seed: Random seed for reproducibility
            meta_info_file: Location of the run metadata within a sample directory
        """
        self.n_features = n_features
        self.meta_info_file = meta_info_file
        self.rng = random.Random(seed)

    def feature_ids(self, n_features: Optional[int] = None) -> List[str]:
        n = self.n_features if n_features is None else n_features
        return [f"ENST{i:011d}.1" for i in range(1, n + 1)]

    def make_quant_rows(self, n_features: Optional[int] = None) -> List[Dict]:
        """Simulate a quant.sf table; TPM is derived from counts and effective length."""
        rows = []
        for feature_id in self.feature_ids(n_features):
            length = self.rng.randint(300, 5000)
            eff_length = max(1.0, length - self.rng.uniform(150, 250))
            # roughly a third of transcripts unexpressed
            counts = 0.0 if self.rng.random() < 0.3 else round(self.rng.expovariate(1 / 200), 3)
            rows.append({
                'Name': feature_id,
                'Length': length,
                'EffectiveLength': round(eff_length, 3),
                'NumReads': counts,
            })

        rate_total = sum(r['NumReads'] / r['EffectiveLength'] for r in rows)
        for r in rows:
            rate = r['NumReads'] / r['EffectiveLength']
            r['TPM'] = round(rate / rate_total * 1e6, 6) if rate_total > 0 else 0.0
        return rows

    def make_meta_info(self, sample: str, num_processed: int = 100000) -> Dict:
        num_mapped = self.rng.randint(num_processed // 2, num_processed)
        return {
            'salmon_version': '1.10.1',
            'samp_type': 'none',
            'opt_type': 'vb',
            'num_processed': num_processed,
            'num_mapped': num_mapped,
            'percent_mapped': round(100 * num_mapped / num_processed, 4),
            'library_types': ['IU'],
            'start_time': f'Mon Oct 19 10:00:00 2026 ({sample})',
        }

    def write_sample(
        self,
        directory: Path,
        sample: str,
        n_features: Optional[int] = None,
        meta_info: Optional[Dict] = None,
        write_meta_info: bool = True,
    ) -> Path:
        """Write quant.sf and the run metadata for one sample."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)

        rows = self.make_quant_rows(n_features)
        with open(directory / 'quant.sf', 'w') as f:
            f.write("Name\tLength\tEffectiveLength\tTPM\tNumReads\n")
            for r in rows:
                f.write(f"{r['Name']}\t{r['Length']}\t{r['EffectiveLength']}\t{r['TPM']}\t{r['NumReads']}\n")

        if write_meta_info:
            json_file = directory / self.meta_info_file
            json_file.parent.mkdir(parents=True, exist_ok=True)
            with open(json_file, 'w') as f:
                json.dump(meta_info if meta_info is not None else self.make_meta_info(sample), f, indent=2)

        return directory


def create_batch(output_dir: Path, samples: List[str], n_features: int = 20, seed: int = 42) -> List[Path]:
    """Create one Salmon output directory per sample under output_dir."""
    generator = SalmonOutputGenerator(n_features=n_features, seed=seed)
    return [generator.write_sample(Path(output_dir) / sample, sample) for sample in samples]


def create_salmon_log(
    output_dir: Path,
    directories: Dict[str, Path],
    logs: Optional[Dict[str, str]] = None,
    relative: bool = False,
) -> Path:
    """Write a JSON batch-run log next to the sample directories."""
    logs = logs or {}
    content = {}
    for sample, directory in directories.items():
        out = Path(directory).relative_to(output_dir) if relative else Path(directory)
        content[sample] = {
            'output_dir': str(out),
            'salmon_log': logs.get(sample, "[info] Mapping rate = 85.2%\n[info] done\n"),
        }

    log_file = Path(output_dir) / 'salmon_log.json'
    with open(log_file, 'w') as f:
        json.dump(content, f, indent=2)
    return log_file


def main():
    parser = argparse.ArgumentParser(description="Generate synthetic Salmon results")
    parser.add_argument('--output-dir', type=Path, default=Path('test_data'))
    parser.add_argument('--samples', nargs='+', default=['S1', 'S2', 'S3'])
    parser.add_argument('--n-features', type=int, default=20)
    args = parser.parse_args()

    directories = create_batch(args.output_dir, args.samples, args.n_features)
    create_salmon_log(args.output_dir, dict(zip(args.samples, directories)), relative=True)
    print(f"Wrote {len(directories)} Salmon output directories to {args.output_dir}")


if __name__ == '__main__':
    main()
