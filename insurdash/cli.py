# insurdash/cli.py
"""
Command line access to the insurance performance engine.

Usage:
    python -m insurdash.cli --data data/insurance_data.json --period 2025-W20
    python -m insurdash.cli --period 2025-W20 --mode periodOverPeriod --types 非营业客车,营业货车 --format csv

Without --data the configured DATA_SOURCE is used.
"""

import argparse
import logging
import sys
from typing import List, Optional

import pandas as pd

from . import __version__
from .config import config, DATA_SOURCE_POSTGRES
from .db import check_db_connection, reset_db_engine
from .performance.data_loader import load_periods, load_periods_from_json
from .performance.data_processor import PeriodProcessor
from .performance.exceptions import InvalidComparisonSelectionError
from .performance.export import serialize, to_prompt_json
from .performance.kpi_builder import build_kpis
from .performance.models import AnalysisMode

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID_SELECTION = 2

KPI_TABLE_COLUMNS = [
    'title', 'value', 'primary_comparison_label', 'primary_change', 'primary_change_absolute',
    'secondary_comparison_label', 'secondary_change', 'secondary_change_absolute', 'is_risk',
]


def _default_log_level() -> str:
    if config.is_feature_enabled("DEBUG_MODE"):
        return "DEBUG"
    return config.get_app_setting("LOG_LEVEL", "INFO")


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="python -m insurdash.cli",
        description="Insurance business performance: KPIs, comparisons and CSV export for one period.",
    )
    ap.add_argument("--version", action="version", version=f"insurdash {__version__}")
    ap.add_argument(
        "--data",
        dest="data_path",
        metavar="JSON_PATH",
        help="JSON file with the period array. Defaults to the configured DATA_SOURCE.",
    )
    ap.add_argument("--period", required=True, help="period_id to analyse.")
    ap.add_argument(
        "--compare",
        dest="compare_period",
        help="Explicit comparison period_id. Omit to use the MoM/YoY links.",
    )
    ap.add_argument(
        "--mode",
        choices=[m.value for m in AnalysisMode],
        default=AnalysisMode.CUMULATIVE.value,
        help="cumulative (YTD) or periodOverPeriod (current increment).",
    )
    ap.add_argument(
        "--types",
        default="",
        help="Comma-separated business types. Empty means all lines.",
    )
    ap.add_argument(
        "--format",
        dest="output_format",
        choices=["kpi", "csv", "json"],
        default="kpi",
        help="kpi table, the CSV export row, or the narrative JSON payload.",
    )
    ap.add_argument(
        "--log-level",
        default=_default_log_level(),
        help="Logging level (default from LOG_LEVEL, DEBUG when ENABLE_DEBUG_MODE is on).",
    )
    return ap


def _parse_types(raw: str) -> List[str]:
    return [t.strip() for t in raw.split(",") if t.strip()]


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    from_db = not args.data_path and config.data_source == DATA_SOURCE_POSTGRES
    if from_db:
        ok, message = check_db_connection()
        if not ok:
            print(f"Error: {message}", file=sys.stderr)
            return 1

    try:
        periods = load_periods_from_json(args.data_path) if args.data_path else load_periods()
    except (OSError, ValueError) as e:
        # DataValidationError and json decode errors are ValueErrors
        logger.error(f"Could not load periods: {e}")
        print(f"Error: could not load periods: {e}", file=sys.stderr)
        return 1
    finally:
        if from_db:
            # Release pooled connections before exit
            reset_db_engine()

    processor = PeriodProcessor(periods)
    selected_types = _parse_types(args.types)

    try:
        result = processor.process(args.period, args.compare_period, args.mode, selected_types)
    except InvalidComparisonSelectionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_SELECTION

    if result is None:
        print(f"Error: period '{args.period}' not found", file=sys.stderr)
        return EXIT_INVALID_SELECTION

    period_labels = {p.period_id: p.period_label for p in periods}

    if args.output_format == "csv":
        sys.stdout.write(serialize(result, result.analysis_mode, period_labels))
    elif args.output_format == "json":
        print(to_prompt_json(result, period_labels))
    else:
        kpis = build_kpis(result, period_labels)
        df = pd.DataFrame([k.to_dict() for k in kpis])[KPI_TABLE_COLUMNS]
        print(f"{period_labels.get(result.period_id, result.period_id)} | "
              f"{result.business_line_name} | {result.analysis_mode.value}")
        print(df.fillna("").to_string(index=False))

    return EXIT_OK


__all__ = ['main']


if __name__ == "__main__":
    sys.exit(main())
