# insurdash/performance/series.py
"""
Chart series preparation for Insurance Performance

VERSION: 1.0.0
Reshapes engine output into pandas DataFrames ready for any chart layer:
- Trend (up to 12 periods ending at the current one)
- Ranking (one bar per business line)
- Share (per-line percentage of the grand total)
- Pareto (sorted values with cumulative percentage)
- Bubble (three metrics per business line)

Every row carries `vcr` and `color` (CSS hsl string from the VCR scale).
Rendering itself is left to the caller.
"""

import logging
import math
from typing import List, Optional, Sequence, Union

import pandas as pd

from .color_scale import get_dynamic_color_by_vcr
from .constants import TREND_MAX_PERIODS, TOTAL_LABEL
from .data_processor import PeriodProcessor
from .helpers import is_number
from .models import AnalysisMode, PeriodRecord

logger = logging.getLogger(__name__)


TREND_COLUMNS = ['period_id', 'period_label', 'line_name', 'value', 'vcr', 'color']
RANKING_COLUMNS = ['business_type', 'name', 'value', 'vcr', 'color']
SHARE_COLUMNS = ['name', 'value', 'percentage', 'vcr', 'color']
PARETO_COLUMNS = ['name', 'value', 'cumulative_percentage', 'vcr', 'color']
BUBBLE_COLUMNS = ['id', 'name', 'x', 'y', 'z', 'vcr', 'color']


def _color(vcr: Optional[float]) -> str:
    return get_dynamic_color_by_vcr(vcr).css


def _numeric(value) -> float:
    return float(value) if is_number(value) else 0.0


class SeriesBuilder:
    """
    Chart series over one loaded period list.

    Usage:
        builder = SeriesBuilder(periods)
        trend_df = builder.trend('premium_written', '2025-W20', 'cumulative', [])
    """

    def __init__(self, periods: Union[Sequence[PeriodRecord], PeriodProcessor]):
        if isinstance(periods, PeriodProcessor):
            self.processor = periods
        else:
            self.processor = PeriodProcessor(periods)

    # =========================================================================
    # SHARED
    # =========================================================================

    def _types_in_scope(self, period: PeriodRecord, selected_types: Sequence[str]) -> List[str]:
        available = period.individual_types()
        if not selected_types:
            return available
        return [t for t in selected_types if t in available]

    def _line_result(self, period_id: str, mode: AnalysisMode, business_type: str):
        return self.processor.process(period_id, None, mode, [business_type])

    def _ytd_vcr(self, period_id: str, business_type: str) -> Optional[float]:
        result = self._line_result(period_id, AnalysisMode.CUMULATIVE, business_type)
        return result.current_metrics.variable_cost_ratio if result else None

    def _line_values(self, metric: str, period_id: str, mode: AnalysisMode, selected_types: Sequence[str]):
        """(business_type, name, value, ytd_vcr) per line in scope."""
        period = self.processor.get_period(period_id)
        if period is None:
            return []

        rows = []
        for business_type in self._types_in_scope(period, selected_types):
            result = self._line_result(period_id, mode, business_type)
            if result is None:
                continue
            rows.append((
                business_type,
                result.business_line_name,
                _numeric(result.current_metrics.get(metric)),
                self._ytd_vcr(period_id, business_type),
            ))
        return rows

    # =========================================================================
    # TREND
    # =========================================================================

    def trend(
        self,
        metric: str,
        current_period_id: str,
        mode: Union[AnalysisMode, str],
        selected_types: Sequence[str] = (),
    ) -> pd.DataFrame:
        """
        One row per period up to the current one (sorted by period_id).

        Cumulative: the YTD value of each period.
        PeriodOverPeriod: YTD(P) - YTD(MoM of P); periods without a MoM
        link are skipped.
        """
        mode = AnalysisMode.coerce(mode)
        ordered = sorted(self.processor.periods, key=lambda p: p.period_id)
        ids = [p.period_id for p in ordered]
        if current_period_id not in ids:
            return pd.DataFrame(columns=TREND_COLUMNS)

        end = ids.index(current_period_id)
        window = ordered[max(0, end - TREND_MAX_PERIODS + 1):end + 1]

        rows = []
        for period in window:
            ytd = self.processor.process(period.period_id, None, AnalysisMode.CUMULATIVE, selected_types)
            if ytd is None:
                continue
            vcr = ytd.current_metrics.variable_cost_ratio
            value = _numeric(ytd.current_metrics.get(metric))

            if mode == AnalysisMode.PERIOD_OVER_PERIOD:
                prior = self.processor.get_period(period.comparison_period_id_mom)
                if prior is None:
                    continue
                prior_ytd = self.processor.process(
                    prior.period_id, None, AnalysisMode.CUMULATIVE, selected_types
                )
                if prior_ytd is None:
                    continue
                value -= _numeric(prior_ytd.current_metrics.get(metric))

            rows.append({
                'period_id': period.period_id,
                'period_label': period.period_label,
                'line_name': ytd.business_line_name or TOTAL_LABEL,
                'value': value,
                'vcr': vcr,
                'color': _color(vcr),
            })

        logger.debug(f"Trend '{metric}' [{mode.value}]: {len(rows)} points")
        return pd.DataFrame(rows, columns=TREND_COLUMNS)

    # =========================================================================
    # RANKING
    # =========================================================================

    def ranking(
        self,
        metric: str,
        current_period_id: str,
        mode: Union[AnalysisMode, str],
        selected_types: Sequence[str] = (),
    ) -> pd.DataFrame:
        """Per-line values in the requested mode, largest first."""
        mode = AnalysisMode.coerce(mode)
        rows = [
            {'business_type': bt, 'name': name, 'value': value, 'vcr': vcr, 'color': _color(vcr)}
            for bt, name, value, vcr in self._line_values(metric, current_period_id, mode, selected_types)
        ]
        df = pd.DataFrame(rows, columns=RANKING_COLUMNS)
        return df.sort_values('value', ascending=False, kind='stable').reset_index(drop=True)

    # =========================================================================
    # SHARE
    # =========================================================================

    def share(
        self,
        metric: str,
        current_period_id: str,
        mode: Union[AnalysisMode, str],
        selected_types: Sequence[str] = (),
    ) -> pd.DataFrame:
        """
        Per-line share of the grand total (all lines, same mode).

        Cumulative drops non-positive slices; PoP keeps any non-zero slice.
        """
        mode = AnalysisMode.coerce(mode)
        total_result = self.processor.process(current_period_id, None, mode, [])
        if total_result is None:
            return pd.DataFrame(columns=SHARE_COLUMNS)

        grand_total = _numeric(total_result.current_metrics.get(metric))
        if grand_total == 0 and mode == AnalysisMode.CUMULATIVE:
            return pd.DataFrame(columns=SHARE_COLUMNS)

        rows = []
        for _, name, value, vcr in self._line_values(metric, current_period_id, mode, selected_types):
            if grand_total != 0:
                percentage = value / grand_total * 100
            elif value == 0:
                percentage = 0.0
            else:
                percentage = math.inf if value > 0 else -math.inf

            keep = value > 0 if mode == AnalysisMode.CUMULATIVE else (value != 0 or percentage != 0)
            if keep:
                rows.append({
                    'name': name, 'value': value, 'percentage': percentage,
                    'vcr': vcr, 'color': _color(vcr),
                })

        df = pd.DataFrame(rows, columns=SHARE_COLUMNS)
        return df.sort_values('value', ascending=False, kind='stable').reset_index(drop=True)

    # =========================================================================
    # PARETO
    # =========================================================================

    def pareto(
        self,
        metric: str,
        current_period_id: str,
        mode: Union[AnalysisMode, str],
        selected_types: Sequence[str] = (),
    ) -> pd.DataFrame:
        """
        Lines sorted by value (by magnitude in PoP) with running percentage
        of the total.
        """
        mode = AnalysisMode.coerce(mode)
        rows = []
        for _, name, value, vcr in self._line_values(metric, current_period_id, mode, selected_types):
            if value > 0 or (mode == AnalysisMode.PERIOD_OVER_PERIOD and value != 0):
                rows.append({'name': name, 'value': value, 'vcr': vcr, 'color': _color(vcr)})

        if not rows:
            return pd.DataFrame(columns=PARETO_COLUMNS)

        df = pd.DataFrame(rows)
        if mode == AnalysisMode.PERIOD_OVER_PERIOD:
            df = (
                df.assign(_magnitude=df['value'].abs())
                .sort_values('_magnitude', ascending=False, kind='stable')
                .drop(columns='_magnitude')
            )
        else:
            df = df.sort_values('value', ascending=False, kind='stable')
        df = df.reset_index(drop=True)

        grand_total = df['value'].sum()
        running = df['value'].cumsum()
        if grand_total > 0:
            df['cumulative_percentage'] = running / grand_total * 100
        else:
            df['cumulative_percentage'] = [
                0.0 if v == 0 else (math.inf if v > 0 else -math.inf) for v in df['value']
            ]

        return df[PARETO_COLUMNS]

    # =========================================================================
    # BUBBLE
    # =========================================================================

    def bubble(
        self,
        x_metric: str,
        y_metric: str,
        z_metric: str,
        current_period_id: str,
        selected_types: Sequence[str] = (),
    ) -> pd.DataFrame:
        """Three cumulative metrics per line for a bubble chart."""
        period = self.processor.get_period(current_period_id)
        if period is None:
            return pd.DataFrame(columns=BUBBLE_COLUMNS)

        rows = []
        for business_type in self._types_in_scope(period, selected_types):
            result = self._line_result(current_period_id, AnalysisMode.CUMULATIVE, business_type)
            if result is None:
                continue
            metrics = result.current_metrics
            vcr = metrics.variable_cost_ratio
            rows.append({
                'id': result.business_line_id,
                'name': result.business_line_name,
                'x': _numeric(metrics.get(x_metric)),
                'y': _numeric(metrics.get(y_metric)),
                'z': _numeric(metrics.get(z_metric)),
                'vcr': vcr,
                'color': _color(vcr),
            })
        return pd.DataFrame(rows, columns=BUBBLE_COLUMNS)


# =============================================================================
# FUNCTIONAL WRAPPERS
# =============================================================================

def prepare_trend_data(periods, metric, current_period_id, mode, selected_types=()) -> pd.DataFrame:
    return SeriesBuilder(periods).trend(metric, current_period_id, mode, selected_types)


def prepare_ranking_data(periods, metric, current_period_id, mode, selected_types=()) -> pd.DataFrame:
    return SeriesBuilder(periods).ranking(metric, current_period_id, mode, selected_types)


def prepare_share_data(periods, metric, current_period_id, mode, selected_types=()) -> pd.DataFrame:
    return SeriesBuilder(periods).share(metric, current_period_id, mode, selected_types)


def prepare_pareto_data(periods, metric, current_period_id, mode, selected_types=()) -> pd.DataFrame:
    return SeriesBuilder(periods).pareto(metric, current_period_id, mode, selected_types)


def prepare_bubble_data(periods, x_metric, y_metric, z_metric, current_period_id, selected_types=()) -> pd.DataFrame:
    return SeriesBuilder(periods).bubble(x_metric, y_metric, z_metric, current_period_id, selected_types)


__all__ = [
    'SeriesBuilder',
    'prepare_trend_data',
    'prepare_ranking_data',
    'prepare_share_data',
    'prepare_pareto_data',
    'prepare_bubble_data',
]
