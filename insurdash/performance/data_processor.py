# insurdash/performance/data_processor.py
"""
Period Resolver for Insurance Performance

VERSION: 1.0.0

Resolves which comparison periods apply to a selected period, filters
business lines to the user's selection and runs the Metric Aggregator
for the current period and each comparison baseline.

"Load Once, Filter Many": PeriodProcessor indexes the period list once;
process() is a pure function of its arguments and can be called
concurrently for many periods/selections.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Union

from .color_scale import get_dynamic_color_by_vcr
from .constants import TOTAL_LABEL, CUSTOM_TOTAL_LABEL
from .exceptions import InvalidComparisonSelectionError
from .helpers import safe_divide
from .metrics import aggregate_metrics
from .models import (
    AggregatedMetrics, AnalysisMode, BusinessLineEntry, PeriodRecord, ProcessedPeriodResult,
)

logger = logging.getLogger(__name__)


class PeriodProcessor:
    """
    Compute current and comparison metrics for a period selection.

    Usage:
        processor = PeriodProcessor(periods)
        result = processor.process('2025-W20', None, 'cumulative', ['非营业客车'])
    """

    def __init__(self, periods: Iterable[PeriodRecord]):
        """
        Args:
            periods: All loaded PeriodRecords (immutable for the session)
        """
        self.periods = list(periods)
        self._by_id: Dict[str, PeriodRecord] = {p.period_id: p for p in self.periods}

    def get_period(self, period_id: Optional[str]) -> Optional[PeriodRecord]:
        if not period_id:
            return None
        return self._by_id.get(period_id)

    # =========================================================================
    # MAIN ENTRY POINT
    # =========================================================================

    def process(
        self,
        selected_period_id: str,
        explicit_comparison_period_id: Optional[str],
        mode: Union[AnalysisMode, str],
        selected_business_types: Optional[Sequence[str]] = None,
    ) -> Optional[ProcessedPeriodResult]:
        """
        Aggregate the current period and its comparison baselines.

        Args:
            selected_period_id: Period being analysed
            explicit_comparison_period_id: User-chosen baseline, or None for
                the default MoM/YoY links on the period record
            mode: cumulative or periodOverPeriod
            selected_business_types: Selected lines; empty means all lines

        Returns:
            ProcessedPeriodResult, or None when the period does not exist

        Raises:
            InvalidComparisonSelectionError: comparison equals current period
        """
        mode = AnalysisMode.coerce(mode)
        selected_types = list(selected_business_types or [])

        if explicit_comparison_period_id and explicit_comparison_period_id == selected_period_id:
            raise InvalidComparisonSelectionError(selected_period_id)

        current_period = self.get_period(selected_period_id)
        if current_period is None:
            logger.warning(f"Period '{selected_period_id}' not found; returning empty result")
            return None

        # === Comparison periods ===
        if explicit_comparison_period_id:
            primary_id = explicit_comparison_period_id
            secondary_id = None
        else:
            primary_id = current_period.comparison_period_id_mom
            secondary_id = current_period.comparison_period_id_yoy

        primary_period = self._resolve_reference(primary_id, selected_period_id)
        secondary_period = self._resolve_reference(secondary_id, selected_period_id)

        # === Current period ===
        current_entries = filter_entries(current_period, selected_types)
        prior_entries = None
        if mode == AnalysisMode.PERIOD_OVER_PERIOD:
            prior_period = self._resolve_reference(
                current_period.comparison_period_id_mom, selected_period_id
            )
            # No prior period: the full YTD value is the increment
            prior_entries = filter_entries(prior_period, selected_types) if prior_period else []

        current_metrics = aggregate_metrics(
            current_entries, mode, current_period.business_data, prior_entries
        )

        # === Baselines are always cumulative ===
        primary_metrics = self._cumulative_metrics(primary_period, selected_types)
        secondary_metrics = self._cumulative_metrics(secondary_period, selected_types)

        business_line_name = resolve_display_name(current_period, selected_types)

        single_line_entry = None
        if len(current_entries) == 1 and mode == AnalysisMode.CUMULATIVE:
            single_line_entry = current_entries[0]

        overall_premium = current_period.totals_for_period.total_premium_written_overall
        premium_share = safe_divide(current_metrics.premium_written * 100, overall_premium)

        logger.info(
            f"Processed {selected_period_id} [{mode.value}] for {business_line_name}: "
            f"primary={primary_period.period_id if primary_period else None}, "
            f"secondary={secondary_period.period_id if secondary_period else None}"
        )

        return ProcessedPeriodResult(
            business_line_id=business_line_name,
            business_line_name=business_line_name,
            period_id=selected_period_id,
            analysis_mode=mode,
            current_metrics=current_metrics,
            primary_metrics=primary_metrics,
            secondary_metrics=secondary_metrics,
            primary_period_id=primary_period.period_id if primary_period else None,
            secondary_period_id=secondary_period.period_id if secondary_period else None,
            is_explicit_comparison=bool(explicit_comparison_period_id),
            premium_share=premium_share,
            vcr_color=get_dynamic_color_by_vcr(current_metrics.variable_cost_ratio),
            single_line_entry=single_line_entry,
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _resolve_reference(self, period_id: Optional[str], current_id: str) -> Optional[PeriodRecord]:
        """Missing references mean 'no comparison available'."""
        if not period_id:
            return None
        period = self.get_period(period_id)
        if period is None:
            logger.warning(f"Comparison period '{period_id}' referenced by '{current_id}' not found")
        return period

    @staticmethod
    def _cumulative_metrics(
        period: Optional[PeriodRecord],
        selected_types: Sequence[str],
    ) -> Optional[AggregatedMetrics]:
        if period is None:
            return None
        entries = filter_entries(period, selected_types)
        return aggregate_metrics(entries, AnalysisMode.CUMULATIVE, period.business_data)


# =============================================================================
# SELECTION HELPERS
# =============================================================================

def filter_entries(period: PeriodRecord, selected_types: Sequence[str]) -> List[BusinessLineEntry]:
    """
    Entries of a period matching the selection.

    An empty selection means every individual line (total rows excluded).
    """
    individual = period.individual_entries()
    if not selected_types:
        return individual
    wanted = set(selected_types)
    return [entry for entry in individual if entry.business_type in wanted]


def resolve_display_name(period: PeriodRecord, selected_types: Sequence[str]) -> str:
    """
    Name shown for the selection.

    - one selected type present in the period -> that type
    - empty selection or the full set -> '合计'
    - any other subset -> '自定义合计'
    """
    all_types = set(period.individual_types())
    selected = set(selected_types)

    if len(selected_types) == 1 and selected_types[0] in all_types:
        return selected_types[0]
    if not selected or selected == all_types:
        return TOTAL_LABEL
    return CUSTOM_TOTAL_LABEL


def process_period(
    all_periods: Iterable[PeriodRecord],
    selected_period_id: str,
    explicit_comparison_period_id: Optional[str],
    mode: Union[AnalysisMode, str],
    selected_business_types: Optional[Sequence[str]] = None,
) -> Optional[ProcessedPeriodResult]:
    """Functional entry point; see PeriodProcessor.process."""
    return PeriodProcessor(all_periods).process(
        selected_period_id, explicit_comparison_period_id, mode, selected_business_types
    )


__all__ = [
    'PeriodProcessor',
    'process_period',
    'filter_entries',
    'resolve_display_name',
]
