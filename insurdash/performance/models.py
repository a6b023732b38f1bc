# insurdash/performance/models.py
"""
Data containers for the insurance performance engine.

Raw inputs (PeriodRecord / BusinessLineEntry) mirror the JSON data source.
Outputs (AggregatedMetrics / ProcessedPeriodResult / KpiViewModel) are
built fresh per call and must not be mutated by callers.
"""

import logging
from dataclasses import dataclass, field, asdict, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .constants import RESERVED_TOTAL_LABELS, BASE_SUMMABLE_FIELDS, PRECOMPUTED_FIELDS
from .helpers import to_number

logger = logging.getLogger(__name__)


class AnalysisMode(str, Enum):
    """累计数据 (YTD) vs 当周发生额 (current period increment)."""
    CUMULATIVE = 'cumulative'
    PERIOD_OVER_PERIOD = 'periodOverPeriod'

    @classmethod
    def coerce(cls, value: Union['AnalysisMode', str]) -> 'AnalysisMode':
        if isinstance(value, cls):
            return value
        return cls(value)


class CalculationPath(Enum):
    """How an AggregatedMetrics record was produced."""
    SINGLE_LINE_DIRECT = 'single_line_direct'
    RECOMPUTED = 'recomputed'


def is_reserved_total(business_type: Optional[str]) -> bool:
    """True for the aggregate rows ('合计' / 'total') some sources ship."""
    if not business_type:
        return True
    return business_type.strip().lower() in RESERVED_TOTAL_LABELS


# =============================================================================
# RAW INPUT
# =============================================================================

@dataclass
class BusinessLineEntry:
    """One business line's cumulative-to-date facts for a period."""
    business_type: str

    # Base summable fields (万元 for amounts)
    premium_written: float = 0.0
    premium_earned: float = 0.0
    total_loss_amount: float = 0.0
    expense_amount_raw: float = 0.0
    claim_count: float = 0.0
    policy_count_earned: float = 0.0

    # Precomputed single-line values, advisory only
    avg_premium_per_policy: Optional[float] = None
    avg_loss_per_case: Optional[float] = None
    avg_commercial_index: Optional[float] = None
    loss_ratio: Optional[float] = None
    expense_ratio: Optional[float] = None
    variable_cost_ratio: Optional[float] = None
    premium_earned_ratio: Optional[float] = None
    claim_frequency: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BusinessLineEntry':
        kwargs = {'business_type': str(data.get('business_type') or '').strip()}
        for name in BASE_SUMMABLE_FIELDS:
            kwargs[name] = to_number(data.get(name)) or 0.0
        for name in PRECOMPUTED_FIELDS:
            kwargs[name] = to_number(data.get(name))
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def base_values(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in BASE_SUMMABLE_FIELDS}

    def minus(self, prior: Optional['BusinessLineEntry']) -> 'BusinessLineEntry':
        """
        Period-over-period delta: base fields differenced, ratio fields nulled.

        A missing prior entry is a zero baseline.
        """
        deltas = {}
        for name in BASE_SUMMABLE_FIELDS:
            prior_value = getattr(prior, name) if prior is not None else 0.0
            deltas[name] = getattr(self, name) - prior_value
        nulls = {name: None for name in PRECOMPUTED_FIELDS}
        return replace(self, **deltas, **nulls)


@dataclass
class PeriodTotals:
    total_premium_written_overall: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'PeriodTotals':
        data = data or {}
        return cls(total_premium_written_overall=to_number(data.get('total_premium_written_overall')))


@dataclass
class PeriodRecord:
    """One reporting period's raw facts."""
    period_id: str
    period_label: str
    comparison_period_id_mom: Optional[str] = None
    comparison_period_id_yoy: Optional[str] = None
    business_data: List[BusinessLineEntry] = field(default_factory=list)
    totals_for_period: PeriodTotals = field(default_factory=PeriodTotals)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PeriodRecord':
        period_id = str(data.get('period_id') or '').strip()
        return cls(
            period_id=period_id,
            period_label=str(data.get('period_label') or period_id),
            comparison_period_id_mom=data.get('comparison_period_id_mom') or None,
            comparison_period_id_yoy=data.get('comparison_period_id_yoy') or None,
            business_data=[
                BusinessLineEntry.from_dict(entry)
                for entry in (data.get('business_data') or [])
                if isinstance(entry, dict)
            ],
            totals_for_period=PeriodTotals.from_dict(data.get('totals_for_period')),
        )

    def individual_entries(self) -> List[BusinessLineEntry]:
        """Business lines without the reserved total rows."""
        return [e for e in self.business_data if not is_reserved_total(e.business_type)]

    def individual_types(self) -> List[str]:
        seen = []
        for entry in self.individual_entries():
            if entry.business_type not in seen:
                seen.append(entry.business_type)
        return seen

    def find_entry(self, business_type: str) -> Optional[BusinessLineEntry]:
        for entry in self.individual_entries():
            if entry.business_type == business_type:
                return entry
        return None


# =============================================================================
# ENGINE OUTPUT
# =============================================================================

@dataclass
class AggregatedMetrics:
    """All metrics for one (period, selection, mode) combination."""
    premium_written: float = 0.0
    premium_earned: float = 0.0
    total_loss_amount: float = 0.0
    expense_amount_raw: float = 0.0
    policy_count: int = 0
    claim_count: int = 0
    policy_count_earned: int = 0
    avg_commercial_index: Optional[float] = None

    loss_ratio: float = 0.0
    expense_ratio: float = 0.0
    variable_cost_ratio: float = 0.0
    premium_earned_ratio: float = 0.0
    claim_frequency: float = 0.0
    avg_premium_per_policy: float = 0.0
    avg_loss_per_case: float = 0.0
    expense_amount: float = 0.0

    marginal_contribution_ratio: float = 100.0
    marginal_contribution_amount: float = 0.0

    calculation_path: CalculationPath = CalculationPath.RECOMPUTED

    @classmethod
    def empty(cls) -> 'AggregatedMetrics':
        return cls()

    def get(self, metric: str, default: Any = None) -> Any:
        return getattr(self, metric, default)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['calculation_path'] = self.calculation_path.value
        return data


@dataclass
class ColorDescriptor:
    hue: float
    saturation: float
    lightness: float

    @property
    def css(self) -> str:
        return f"hsl({self.hue:.0f}, {self.saturation:.0f}%, {self.lightness:.0f}%)"


@dataclass
class ProcessedPeriodResult:
    """Current metrics plus up to two comparison baselines for one selection."""
    business_line_id: str
    business_line_name: str
    period_id: str
    analysis_mode: AnalysisMode
    current_metrics: AggregatedMetrics
    primary_metrics: Optional[AggregatedMetrics] = None
    secondary_metrics: Optional[AggregatedMetrics] = None
    primary_period_id: Optional[str] = None
    secondary_period_id: Optional[str] = None
    is_explicit_comparison: bool = False
    premium_share: float = 0.0
    vcr_color: Optional[ColorDescriptor] = None
    # Raw entry when exactly one line is viewed cumulatively
    single_line_entry: Optional[BusinessLineEntry] = None

    @property
    def has_secondary(self) -> bool:
        return self.secondary_metrics is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'business_line_id': self.business_line_id,
            'business_line_name': self.business_line_name,
            'period_id': self.period_id,
            'analysis_mode': self.analysis_mode.value,
            'current_metrics': self.current_metrics.to_dict(),
            'primary_metrics': self.primary_metrics.to_dict() if self.primary_metrics else None,
            'secondary_metrics': self.secondary_metrics.to_dict() if self.secondary_metrics else None,
            'primary_period_id': self.primary_period_id,
            'secondary_period_id': self.secondary_period_id,
            'is_explicit_comparison': self.is_explicit_comparison,
            'premium_share': self.premium_share,
            'vcr_color': self.vcr_color.css if self.vcr_color else None,
        }


@dataclass
class ChangeResult:
    absolute_change: float
    percent_change: float
    change_type: str


@dataclass
class KpiViewModel:
    id: str
    title: str
    value: str
    raw_value: Optional[float] = None
    unit: str = ''
    primary_comparison_label: Optional[str] = None
    primary_change: Optional[str] = None
    primary_change_absolute: Optional[str] = None
    primary_change_type: str = 'neutral'
    secondary_comparison_label: Optional[str] = None
    secondary_change: Optional[str] = None
    secondary_change_absolute: Optional[str] = None
    secondary_change_type: str = 'neutral'
    description: Optional[str] = None
    is_risk: bool = False
    is_border_risk: bool = False
    is_orange_risk: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
