# insurdash/performance/kpi_builder.py
"""
KPI Builder for Insurance Performance

Converts a ProcessedPeriodResult into the flat list of KPI cards shown on
the dashboard: formatted value, raw value, changes against up to two
baselines and risk flags.

Pure transformation, no I/O.
"""

import logging
import math
from typing import Dict, List, Mapping, Optional

from .constants import (
    KPI_DEFINITIONS, RATE_METRICS, NOT_APPLICABLE, EMPTY_CELL,
    CHANGE_POSITIVE, CHANGE_NEGATIVE, CHANGE_NEUTRAL,
    NEUTRAL_EPSILON, RATE_NEUTRAL_BAND_PP,
    VCR_RISK_THRESHOLD, VCR_WARNING_THRESHOLD,
    MCR_RISK_THRESHOLD, MCR_WARNING_THRESHOLD,
    LOSS_RATIO_RISK_THRESHOLD, EXPENSE_RATIO_RISK_THRESHOLD,
    EXPLICIT_COMPARISON_PREFIX, MOM_COMPARISON_PREFIX, YOY_COMPARISON_PREFIX,
)
from .formatters import format_metric_value, format_percent_change, format_absolute_change, get_unit
from .helpers import is_missing
from .models import AggregatedMetrics, AnalysisMode, ChangeResult, KpiViewModel, ProcessedPeriodResult

logger = logging.getLogger(__name__)


# =============================================================================
# CHANGE CALCULATION
# =============================================================================

def change_and_type(
    current: float,
    previous: float,
    higher_is_better: bool,
    neutral_band: float = NEUTRAL_EPSILON,
) -> ChangeResult:
    """
    Absolute and percent change plus a directional classification.

    Percent change from a zero baseline is +/-inf (rendered '+∞%' / '-∞%');
    0 -> 0 is 0%.

    Examples:
        change_and_type(700, 500, True) -> (200, 40.0, 'positive')
        change_and_type(95, 90, False)  -> (5, 5.56, 'negative')
    """
    current = current or 0.0
    previous = previous or 0.0
    absolute_change = current - previous

    if previous == 0:
        if current == 0:
            percent_change = 0.0
        else:
            percent_change = math.inf if absolute_change > 0 else -math.inf
    else:
        percent_change = absolute_change / abs(previous) * 100

    if abs(absolute_change) <= neutral_band:
        change_type = CHANGE_NEUTRAL
    elif (absolute_change > 0) == higher_is_better:
        change_type = CHANGE_POSITIVE
    else:
        change_type = CHANGE_NEGATIVE

    return ChangeResult(
        absolute_change=absolute_change,
        percent_change=percent_change,
        change_type=change_type,
    )


def neutral_band_for(metric: str) -> float:
    return RATE_NEUTRAL_BAND_PP if metric in RATE_METRICS else NEUTRAL_EPSILON


# =============================================================================
# COMPARISON LABELS
# =============================================================================

def comparison_labels(
    result: ProcessedPeriodResult,
    period_labels: Mapping[str, str],
) -> Dict[str, Optional[str]]:
    """Human labels for the primary/secondary baselines."""
    def _label(period_id: Optional[str]) -> Optional[str]:
        if not period_id:
            return None
        return period_labels.get(period_id, period_id)

    primary_prefix = EXPLICIT_COMPARISON_PREFIX if result.is_explicit_comparison else MOM_COMPARISON_PREFIX
    primary = _label(result.primary_period_id) if result.primary_metrics is not None else None
    secondary = _label(result.secondary_period_id) if result.secondary_metrics is not None else None

    return {
        'primary': f"{primary_prefix} {primary}" if primary else None,
        'secondary': f"{YOY_COMPARISON_PREFIX} {secondary}" if secondary else None,
    }


# =============================================================================
# KPI BUILDER
# =============================================================================

def _metric_value(result: ProcessedPeriodResult, metrics: AggregatedMetrics, metric: str) -> Optional[float]:
    if metric == 'premium_share':
        return result.premium_share
    return metrics.get(metric)


def _commercial_index_applicable(result: ProcessedPeriodResult) -> bool:
    return (
        result.analysis_mode == AnalysisMode.CUMULATIVE
        and result.single_line_entry is not None
    )


def _risk_flags(metric: str, value: Optional[float], vcr: float) -> Dict[str, bool]:
    flags = {'is_risk': False, 'is_border_risk': False, 'is_orange_risk': False}
    if is_missing(value):
        return flags

    if metric == 'variable_cost_ratio':
        flags['is_risk'] = value >= VCR_RISK_THRESHOLD
        flags['is_orange_risk'] = VCR_WARNING_THRESHOLD <= value < VCR_RISK_THRESHOLD
    elif metric == 'marginal_contribution_ratio':
        flags['is_risk'] = value <= MCR_RISK_THRESHOLD
        flags['is_orange_risk'] = MCR_RISK_THRESHOLD < value <= MCR_WARNING_THRESHOLD
    elif metric == 'loss_ratio':
        flags['is_risk'] = value > LOSS_RATIO_RISK_THRESHOLD
    elif metric == 'expense_ratio':
        flags['is_risk'] = value > EXPENSE_RATIO_RISK_THRESHOLD
    elif metric == 'premium_written':
        # Growth in an unprofitable segment
        flags['is_border_risk'] = vcr >= VCR_RISK_THRESHOLD
    return flags


def build_kpis(
    result: Optional[ProcessedPeriodResult],
    period_labels: Mapping[str, str],
) -> List[KpiViewModel]:
    """
    Build the KPI cards for one processed period.

    Args:
        result: Output of PeriodProcessor.process (None gives no cards)
        period_labels: period_id -> display label

    Returns:
        List of KpiViewModel in display order
    """
    if result is None:
        return []

    current = result.current_metrics
    vcr = current.variable_cost_ratio
    labels = comparison_labels(result, period_labels)
    baselines = [
        ('primary', result.primary_metrics, labels['primary']),
        ('secondary', result.secondary_metrics, labels['secondary']),
    ]

    kpis = []
    for definition in KPI_DEFINITIONS:
        metric = definition['id']
        comparable = definition.get('comparable', True)

        kpi = KpiViewModel(
            id=metric,
            title=definition['title'],
            value=NOT_APPLICABLE,
            unit=get_unit(metric),
        )

        if definition.get('single_line_only') and not _commercial_index_applicable(result):
            kpi.description = '仅单一业务类型的累计数据可用'
            for slot, _, label in baselines:
                setattr(kpi, f'{slot}_comparison_label', label)
                setattr(kpi, f'{slot}_change', EMPTY_CELL)
                setattr(kpi, f'{slot}_change_absolute', EMPTY_CELL)
            kpis.append(kpi)
            continue

        if metric == 'avg_commercial_index':
            raw_value = result.single_line_entry.avg_commercial_index
        else:
            raw_value = _metric_value(result, current, metric)

        kpi.raw_value = None if is_missing(raw_value) else raw_value
        kpi.value = format_metric_value(metric, raw_value)

        higher_is_better = definition['higher_is_better']
        if metric == 'premium_written' and vcr >= VCR_RISK_THRESHOLD:
            higher_is_better = False

        for slot, baseline, label in baselines:
            setattr(kpi, f'{slot}_comparison_label', label)
            if not comparable:
                setattr(kpi, f'{slot}_change', EMPTY_CELL)
                setattr(kpi, f'{slot}_change_absolute', EMPTY_CELL)
                continue
            if baseline is None or is_missing(raw_value):
                continue

            previous = _metric_value(result, baseline, metric)
            if is_missing(previous):
                continue

            change = change_and_type(raw_value, previous, higher_is_better, neutral_band_for(metric))
            setattr(kpi, f'{slot}_change', format_percent_change(change.percent_change))
            setattr(kpi, f'{slot}_change_absolute', format_absolute_change(metric, change.absolute_change))
            setattr(kpi, f'{slot}_change_type', change.change_type)

        flags = _risk_flags(metric, kpi.raw_value, vcr)
        kpi.is_risk = flags['is_risk']
        kpi.is_border_risk = flags['is_border_risk']
        kpi.is_orange_risk = flags['is_orange_risk']

        kpis.append(kpi)

    logger.debug(f"Built {len(kpis)} KPIs for {result.period_id} / {result.business_line_name}")
    return kpis


__all__ = [
    'build_kpis',
    'change_and_type',
    'comparison_labels',
    'neutral_band_for',
]
