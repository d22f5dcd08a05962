"""
Command-line entry point for the sales report.

Usage:
    grocery-report
    grocery-report --store1 data/raw/store1.csv --store2 data/raw/store2.csv --output reports
"""

import argparse
import sys
from typing import List, Optional

import structlog
from pydantic import ValidationError

from grocery_analytics.config import get_settings
from grocery_analytics.config.logging import configure_logging
from grocery_analytics.exceptions import GroceryAnalyticsError
from grocery_analytics.ingestion import sources_from_settings
from grocery_analytics.pipeline import AnalysisPipeline
from grocery_analytics.quality import AnomalyPolicy

logger = structlog.get_logger(__name__)


def positive_int(value: str) -> int:
    """argparse type for ranking sizes"""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def describe_error(error: Exception) -> str:
    """One-line description of a failure for stderr"""
    if isinstance(error, ValidationError):
        first = error.errors()[0]
        setting = ".".join(str(part) for part in first["loc"])
        return f"invalid setting {setting}: {first['msg']}"
    return str(error)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Grocery sales analytics report")
    parser.add_argument("--store1", help="Store 1 export (month/day/year dates)")
    parser.add_argument("--store2", help="Store 2 export (day/month/year dates)")
    parser.add_argument("--output", help="Report output directory")
    parser.add_argument("--top-n", type=positive_int, help="Products in the top/bottom rankings")
    parser.add_argument(
        "--anomaly-policy",
        choices=[p.value for p in AnomalyPolicy],
        help="Keep and flag, or exclude, rows with negative price or non-positive quantity",
    )
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument("--no-charts", action="store_true", help="Skip chart rendering")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
        configure_logging(args.log_level, settings)

        pipeline = AnalysisPipeline(
            sources=sources_from_settings(settings, store1_path=args.store1, store2_path=args.store2),
            output_dir=args.output,
            top_n=args.top_n,
            anomaly_policy=args.anomaly_policy,
            render_charts=False if args.no_charts else None,
        )
        result = pipeline.run()
    except (GroceryAnalyticsError, FileNotFoundError, ValidationError) as e:
        message = describe_error(e)
        logger.error("Analysis aborted", error=message)
        print(f"Analysis aborted: {message}", file=sys.stderr)
        return 1

    print(f"Report written to {result.report_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
