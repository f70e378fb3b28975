"""Command-line entry point: categorize every unit of a dataset file."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from wavecat.config import CategorizationConfiguration, DataFormat
from wavecat.core import WaveformCategorizer

logger = logging.getLogger("wavecat")


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Categorize multi-site extracellular waveforms into B/P/N spikes.'
    )

    # Input data arguments
    parser.add_argument('--data', type=str, required=True,
                        help='Path to the unit dataset (.mat, .npz or .pkl)')
    parser.add_argument('--data-format', type=str, choices=['mat', 'npz', 'pickle', 'auto'],
                        default='auto', help='Dataset format (default: auto)')
    parser.add_argument('--samples-first', action='store_true',
                        help='Stored matrices are samples x channels (default: channels x samples)')

    # Classification settings
    parser.add_argument('--thresholds', type=float, nargs=4, default=None,
                        metavar=('B_POS', 'B_NEG', 'P', 'N'),
                        help='z-score thresholds (default: 1.25 -1 1.75 -1.75)')

    # Processing settings
    parser.add_argument('--jobs', type=int, default=1,
                        help='Number of worker processes (0: number of CPU cores - 1)')

    # Output settings
    parser.add_argument('--output', type=str, default='categorization_results.pkl',
                        help='Where to save results: .pkl, .mat or .csv '
                             '(default: categorization_results.pkl)')
    parser.add_argument('--verbose', action='store_true', help='Log progress')

    args = parser.parse_args(argv)

    if not os.path.exists(args.data):
        parser.error(f"Data file not found: {args.data}")

    return args


def create_config_from_args(args: argparse.Namespace) -> CategorizationConfiguration:
    """Create CategorizationConfiguration from command line arguments."""
    n_jobs = args.jobs if args.jobs > 0 else max(1, (os.cpu_count() or 1) - 1)
    config = CategorizationConfiguration(
        data_format=DataFormat(args.data_format),
        channels_first=not args.samples_first,
        n_jobs=n_jobs,
    )
    return config.with_thresholds(args.thresholds)


def save_results(results, output_path: str) -> None:
    """Save results in the format implied by the file extension."""
    suffix = Path(output_path).suffix.lower()
    if suffix == '.mat':
        results.to_mat(output_path)
    elif suffix == '.csv':
        results.to_dataframe().to_csv(output_path, index=False)
    else:
        results.save(output_path)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format='%(asctime)s %(name)s %(levelname)s: %(message)s',
    )

    config = create_config_from_args(args)
    categorizer = WaveformCategorizer(config)

    try:
        results = categorizer.run(args.data)
    except (OSError, ValueError) as e:
        logger.error(f"Error during categorization: {e}")
        return 1

    summary = results.summary()
    print("\nWaveform Categorization Summary:")
    print(f"Total units: {summary['total_units']}")
    print(f"BIP: {summary['bip']}")
    print(f"P-units: {summary['punit']}")
    print(f"Other: {summary['other']}")
    print(f"Unclassified: {summary['unclassified']}")
    print(f"Execution time: {summary['execution_time']:.2f} seconds")

    print(f"\nSaving results to {args.output}")
    save_results(results, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
