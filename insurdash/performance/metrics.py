# insurdash/performance/metrics.py
"""
Metric Aggregator for Insurance Performance

Turns business-line entries for one period into a single
AggregatedMetrics record.

Two calculation paths, chosen once per call:
- SINGLE_LINE_DIRECT: exactly one line, cumulative mode. Precomputed
  values from the source entry are used as-is where present.
- RECOMPUTED: everything else. Only the six base fields are summed and
  every ratio is derived from the sums.

Invariant for every output: variable_cost_ratio == loss_ratio + expense_ratio.
"""

import logging
from typing import Dict, Iterable, Optional, Sequence, Union

from .constants import BASE_SUMMABLE_FIELDS, TEN_THOUSAND, VCR_CONSISTENCY_TOLERANCE
from .helpers import safe_divide, is_number, round_half_up
from .models import AggregatedMetrics, AnalysisMode, BusinessLineEntry, CalculationPath

logger = logging.getLogger(__name__)


# =============================================================================
# PATH SELECTION
# =============================================================================

def choose_calculation_path(
    selected_entries: Sequence[BusinessLineEntry],
    mode: Union[AnalysisMode, str],
) -> CalculationPath:
    """Single-line direct only for one entry in cumulative mode."""
    mode = AnalysisMode.coerce(mode)
    if len(selected_entries) == 1 and mode == AnalysisMode.CUMULATIVE:
        return CalculationPath.SINGLE_LINE_DIRECT
    return CalculationPath.RECOMPUTED


def aggregate_metrics(
    selected_entries: Sequence[BusinessLineEntry],
    mode: Union[AnalysisMode, str],
    all_current_period_entries: Sequence[BusinessLineEntry],
    prior_period_entries: Optional[Sequence[BusinessLineEntry]] = None,
) -> AggregatedMetrics:
    """
    Consolidate the selected entries into one metrics record.

    Args:
        selected_entries: Business lines in the selection for this period
        mode: cumulative or periodOverPeriod
        all_current_period_entries: Every entry of the period (for the
            single-line lookup)
        prior_period_entries: Prior period's entries, used only in
            periodOverPeriod mode

    Returns:
        AggregatedMetrics
    """
    mode = AnalysisMode.coerce(mode)
    path = choose_calculation_path(selected_entries, mode)

    logger.debug(
        f"Aggregating {len(selected_entries)} line(s), mode={mode.value}, path={path.value}"
    )

    if path == CalculationPath.SINGLE_LINE_DIRECT:
        business_type = selected_entries[0].business_type
        raw_entry = _find_entry(all_current_period_entries, business_type)
        if raw_entry is None:
            logger.warning(f"Business line '{business_type}' not found in current period entries")
            return AggregatedMetrics.empty()
        return _single_line_metrics(raw_entry)

    return _recomputed_metrics(selected_entries, mode, prior_period_entries or [])


# =============================================================================
# SINGLE-LINE DIRECT PATH
# =============================================================================

def _pick(value: Optional[float], fallback: float) -> float:
    return value if is_number(value) else fallback


def _single_line_metrics(entry: BusinessLineEntry) -> AggregatedMetrics:
    premium_written = entry.premium_written
    premium_earned = entry.premium_earned
    total_loss_amount = entry.total_loss_amount
    claim_count = round_half_up(entry.claim_count)
    policy_count_earned = round_half_up(entry.policy_count_earned)

    loss_ratio = _pick(entry.loss_ratio, safe_divide(total_loss_amount * 100, premium_earned))
    if premium_written == 0:
        # No written premium: expense ratio and average premium are zero, whatever the source says
        expense_ratio = 0.0
    elif is_number(entry.expense_ratio):
        expense_ratio = entry.expense_ratio
    elif is_number(entry.variable_cost_ratio) and is_number(entry.loss_ratio):
        # Keep the sourced VCR intact when only the expense component is absent
        expense_ratio = entry.variable_cost_ratio - entry.loss_ratio
    else:
        expense_ratio = safe_divide(entry.expense_amount_raw * 100, premium_written)

    variable_cost_ratio = loss_ratio + expense_ratio
    if is_number(entry.variable_cost_ratio) and \
            abs(entry.variable_cost_ratio - variable_cost_ratio) > VCR_CONSISTENCY_TOLERANCE:
        logger.warning(
            f"Source VCR {entry.variable_cost_ratio} for '{entry.business_type}' differs from "
            f"loss + expense ratio {variable_cost_ratio:.4f}; using the sum"
        )

    avg_premium_per_policy = 0.0 if premium_written == 0 else _pick(entry.avg_premium_per_policy, 0.0)
    policy_count = round_half_up(
        safe_divide(premium_written * TEN_THOUSAND, avg_premium_per_policy)
    )

    avg_loss_per_case = _pick(
        entry.avg_loss_per_case,
        safe_divide(total_loss_amount * TEN_THOUSAND, claim_count),
    )

    marginal_contribution_ratio = 100 - variable_cost_ratio

    return AggregatedMetrics(
        premium_written=premium_written,
        premium_earned=premium_earned,
        total_loss_amount=total_loss_amount,
        expense_amount_raw=entry.expense_amount_raw,
        policy_count=policy_count,
        claim_count=claim_count,
        policy_count_earned=policy_count_earned,
        avg_commercial_index=entry.avg_commercial_index if is_number(entry.avg_commercial_index) else None,
        loss_ratio=loss_ratio,
        expense_ratio=expense_ratio,
        variable_cost_ratio=variable_cost_ratio,
        premium_earned_ratio=safe_divide(premium_earned * 100, premium_written),
        claim_frequency=safe_divide(claim_count * 100, policy_count_earned),
        avg_premium_per_policy=avg_premium_per_policy,
        avg_loss_per_case=avg_loss_per_case,
        expense_amount=premium_written * expense_ratio / 100,
        marginal_contribution_ratio=marginal_contribution_ratio,
        marginal_contribution_amount=premium_earned * marginal_contribution_ratio / 100,
        calculation_path=CalculationPath.SINGLE_LINE_DIRECT,
    )


# =============================================================================
# RECOMPUTED (AGGREGATE) PATH
# =============================================================================

def _recomputed_metrics(
    selected_entries: Sequence[BusinessLineEntry],
    mode: AnalysisMode,
    prior_period_entries: Sequence[BusinessLineEntry],
) -> AggregatedMetrics:
    if mode == AnalysisMode.PERIOD_OVER_PERIOD:
        prior_by_type = _index_by_type(prior_period_entries)
        working = [
            entry.minus(prior_by_type.get(entry.business_type))
            for entry in selected_entries
        ]
    else:
        working = list(selected_entries)

    totals = sum_base_fields(working)
    claim_count = round_half_up(totals['claim_count'])
    policy_count_earned = round_half_up(totals['policy_count_earned'])

    # Per-line reconstruction against each line's own YTD average premium.
    # In PoP mode the premium is the delta; the average stays current YTD.
    policy_count_raw = 0.0
    for current_entry, working_entry in zip(selected_entries, working):
        avg_premium = current_entry.avg_premium_per_policy
        if is_number(avg_premium) and avg_premium != 0:
            policy_count_raw += working_entry.premium_written * TEN_THOUSAND / avg_premium
    policy_count = round_half_up(policy_count_raw)

    return derive_metrics(
        premium_written=totals['premium_written'],
        premium_earned=totals['premium_earned'],
        total_loss_amount=totals['total_loss_amount'],
        expense_amount_raw=totals['expense_amount_raw'],
        claim_count=claim_count,
        policy_count_earned=policy_count_earned,
        policy_count=policy_count,
    )


def sum_base_fields(entries: Iterable[BusinessLineEntry]) -> Dict[str, float]:
    """Sum the six base fields; zeros when there is nothing to sum."""
    totals = {name: 0.0 for name in BASE_SUMMABLE_FIELDS}
    for entry in entries:
        for name in BASE_SUMMABLE_FIELDS:
            totals[name] += getattr(entry, name) or 0.0
    return totals


def derive_metrics(
    premium_written: float,
    premium_earned: float,
    total_loss_amount: float,
    expense_amount_raw: float,
    claim_count: int,
    policy_count_earned: int,
    policy_count: int,
) -> AggregatedMetrics:
    """Apply the ratio/amount formulas to summed base fields."""
    expense_ratio = safe_divide(expense_amount_raw * 100, premium_written)
    loss_ratio = safe_divide(total_loss_amount * 100, premium_earned)
    variable_cost_ratio = expense_ratio + loss_ratio
    marginal_contribution_ratio = 100 - variable_cost_ratio

    return AggregatedMetrics(
        premium_written=premium_written,
        premium_earned=premium_earned,
        total_loss_amount=total_loss_amount,
        expense_amount_raw=expense_amount_raw,
        policy_count=policy_count,
        claim_count=claim_count,
        policy_count_earned=policy_count_earned,
        avg_commercial_index=None,
        loss_ratio=loss_ratio,
        expense_ratio=expense_ratio,
        variable_cost_ratio=variable_cost_ratio,
        premium_earned_ratio=safe_divide(premium_earned * 100, premium_written),
        claim_frequency=safe_divide(claim_count * 100, policy_count_earned),
        avg_premium_per_policy=safe_divide(premium_written * TEN_THOUSAND, policy_count),
        avg_loss_per_case=safe_divide(total_loss_amount * TEN_THOUSAND, claim_count),
        expense_amount=premium_written * expense_ratio / 100,
        marginal_contribution_ratio=marginal_contribution_ratio,
        marginal_contribution_amount=premium_earned * marginal_contribution_ratio / 100,
        calculation_path=CalculationPath.RECOMPUTED,
    )


# =============================================================================
# LOOKUPS
# =============================================================================

def _index_by_type(entries: Sequence[BusinessLineEntry]) -> Dict[str, BusinessLineEntry]:
    return {entry.business_type: entry for entry in entries}


def _find_entry(entries: Sequence[BusinessLineEntry], business_type: str) -> Optional[BusinessLineEntry]:
    for entry in entries:
        if entry.business_type == business_type:
            return entry
    return None


__all__ = [
    'aggregate_metrics',
    'choose_calculation_path',
    'derive_metrics',
    'sum_base_fields',
]
