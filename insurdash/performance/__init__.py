# insurdash/performance/__init__.py
"""
Insurance Performance Module

VERSION: 1.0.0
- Metric aggregation with single-line direct and recomputed paths
- MoM / YoY / explicit comparison resolution
- KPI cards, CSV/Excel/JSON export, chart series
- "Load Once, Filter Many": load periods once, process any selection in memory
"""

# Core classes
from .data_processor import PeriodProcessor, process_period, filter_entries, resolve_display_name
from .series import (
    SeriesBuilder,
    prepare_trend_data,
    prepare_ranking_data,
    prepare_share_data,
    prepare_pareto_data,
    prepare_bubble_data,
)

# Engine
from .metrics import aggregate_metrics, choose_calculation_path, derive_metrics
from .kpi_builder import build_kpis, change_and_type, comparison_labels
from .color_scale import get_dynamic_color_by_vcr
from .formatters import format_metric_value, format_percent_change, format_absolute_change

# Data
from .data_loader import (
    parse_periods,
    load_periods,
    load_periods_from_json,
    load_periods_from_db,
    list_business_types,
    get_period_options,
    default_period_id,
    sanitize_comparison_selection,
)
from .export import serialize, to_csv_bytes, to_excel_bytes, to_prompt_json, build_export_filename

# Models
from .models import (
    AnalysisMode,
    CalculationPath,
    BusinessLineEntry,
    PeriodRecord,
    PeriodTotals,
    AggregatedMetrics,
    ColorDescriptor,
    ProcessedPeriodResult,
    ChangeResult,
    KpiViewModel,
)

# Errors
from .exceptions import InvalidComparisonSelectionError, DataValidationError

# Helpers
from .helpers import safe_divide, round_half_up

# Constants
from .constants import KPI_DEFINITIONS, TOTAL_LABEL, CUSTOM_TOTAL_LABEL

__all__ = [
    # Core
    'PeriodProcessor',
    'process_period',
    'filter_entries',
    'resolve_display_name',
    'SeriesBuilder',
    'prepare_trend_data',
    'prepare_ranking_data',
    'prepare_share_data',
    'prepare_pareto_data',
    'prepare_bubble_data',

    # Engine
    'aggregate_metrics',
    'choose_calculation_path',
    'derive_metrics',
    'build_kpis',
    'change_and_type',
    'comparison_labels',
    'get_dynamic_color_by_vcr',
    'format_metric_value',
    'format_percent_change',
    'format_absolute_change',

    # Data
    'parse_periods',
    'load_periods',
    'load_periods_from_json',
    'load_periods_from_db',
    'list_business_types',
    'get_period_options',
    'default_period_id',
    'sanitize_comparison_selection',
    'serialize',
    'to_csv_bytes',
    'to_excel_bytes',
    'to_prompt_json',
    'build_export_filename',

    # Models
    'AnalysisMode',
    'CalculationPath',
    'BusinessLineEntry',
    'PeriodRecord',
    'PeriodTotals',
    'AggregatedMetrics',
    'ColorDescriptor',
    'ProcessedPeriodResult',
    'ChangeResult',
    'KpiViewModel',

    # Errors
    'InvalidComparisonSelectionError',
    'DataValidationError',

    # Helpers
    'safe_divide',
    'round_half_up',

    # Constants
    'KPI_DEFINITIONS',
    'TOTAL_LABEL',
    'CUSTOM_TOTAL_LABEL',
]

__version__ = '1.0.0'
