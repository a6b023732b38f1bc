# insurdash/performance/formatters.py
"""
Formatting utilities for KPI values and period-over-period changes.

Format kinds come from METRIC_FORMAT_RULES in constants.
"""

import logging
import math
from typing import Optional

from .constants import (
    METRIC_FORMAT_RULES, FORMAT_UNITS, RATE_METRICS, NOT_APPLICABLE,
    FORMAT_PERCENTAGE, FORMAT_CURRENCY_10K, FORMAT_CURRENCY_UNIT, FORMAT_COUNT, FORMAT_INDEX,
)
from .helpers import is_missing

logger = logging.getLogger(__name__)


def get_format_kind(metric: str) -> str:
    """Format kind for a metric id; unknown ids fall back to count."""
    kind = METRIC_FORMAT_RULES.get(metric)
    if kind is None:
        logger.debug(f"No format rule for '{metric}', using count")
        return FORMAT_COUNT
    return kind


def get_unit(metric: str) -> str:
    return FORMAT_UNITS[get_format_kind(metric)]


def format_metric_value(metric: str, value: Optional[float]) -> str:
    """
    Format a metric value for display

    Examples:
        loss_ratio 46.153 -> '46.2%'
        premium_written 1234.6 -> '1,235 万元'
        avg_commercial_index 0.8731 -> '0.873'
    """
    if is_missing(value):
        return NOT_APPLICABLE

    kind = get_format_kind(metric)
    if kind == FORMAT_PERCENTAGE:
        return f"{value:.1f}%"
    if kind == FORMAT_INDEX:
        return f"{value:.3f}"
    if kind in (FORMAT_CURRENCY_10K, FORMAT_CURRENCY_UNIT, FORMAT_COUNT):
        return f"{value:,.0f} {FORMAT_UNITS[kind]}"
    return str(value)


def format_percent_change(percent: Optional[float]) -> Optional[str]:
    """'+12.3%', '-4.0%', '+∞%' / '-∞%' for a change from a zero baseline."""
    if percent is None or (isinstance(percent, float) and math.isnan(percent)):
        return None
    if math.isinf(percent):
        return "+∞%" if percent > 0 else "-∞%"
    return f"{percent:+.1f}%"


def format_absolute_change(metric: str, change: Optional[float]) -> Optional[str]:
    """
    Absolute change in the metric's unit; rate metrics use percentage points.
    """
    if is_missing(change):
        return None

    if metric in RATE_METRICS:
        return f"{change:+.2f} pp"

    kind = get_format_kind(metric)
    if kind == FORMAT_CURRENCY_10K:
        return f"{change:+,.2f} {FORMAT_UNITS[kind]}"
    if kind == FORMAT_INDEX:
        return f"{change:+.3f}"
    return f"{change:+,.0f} {FORMAT_UNITS[kind]}"
