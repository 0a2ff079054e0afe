"""
CLI script to summarise a metrics CSV in the terminal.

Usage:
    python run_summary.py path/to/Metrics.csv [--location L] [--metric M]
"""

import sys
import argparse
from pathlib import Path
import logging

import pandas as pd

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from modules.aggregator import MetricsAggregator
from modules.loader import EMPTY, ERROR, load_metrics

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Summarise a location metrics CSV')
    parser.add_argument('input_file', help='Path to metrics CSV')
    parser.add_argument('--location', help='Location to show (default: first in file)')
    parser.add_argument('--metric', help='Metric to show (default: first for the location)')
    parser.add_argument(
        '--expand',
        action='store_true',
        help='Include product rows under every category'
    )
    parser.add_argument('--export', help='Write tidy long-format data to this CSV path')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    return parser


def main(argv=None) -> int:
    """Main summary pipeline."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    result = load_metrics(args.input_file)

    if result.status == ERROR:
        logger.error(result.message)
        return 1

    if result.status == EMPTY:
        print("No metrics data found in the CSV file")
        return 0

    data = result.data
    summary = data.summary()

    print("=" * 60)
    print(f"  Locations:   {summary['locations']}")
    print(f"  Metrics:     {summary['metrics']}")
    print(f"  Categories:  {summary['categories']}")
    print(f"  Products:    {summary['products']}")
    print("=" * 60)

    location = args.location or data.locations[0]
    if location not in data:
        logger.error(f"Unknown location: {location}")
        return 1

    aggregator = MetricsAggregator(data[location])
    metric = args.metric or aggregator.metrics[0]
    if metric not in data[location]:
        logger.error(f"Unknown metric for {location}: {metric}")
        return 1

    expanded = aggregator.categories(metric) if args.expand else []
    table = aggregator.format_table(metric, expanded)

    print(f"\n{location} - {metric}\n")
    with pd.option_context('display.max_columns', None, 'display.width', 250):
        print(table.to_string())

    if args.export:
        export_path = Path(args.export)
        export_path.parent.mkdir(parents=True, exist_ok=True)
        tidy = data.to_frame()
        tidy.to_csv(export_path, index=False)
        logger.info(f"Saved {len(tidy)} tidy records to {export_path}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
