# insurdash/performance/constants.py
"""
Constants for Insurance Performance Module

VERSION: 1.0.0
"""

# =====================================================================
# RESERVED LABELS
# =====================================================================

# Aggregate rows shipped inside business_data; never treated as a line
RESERVED_TOTAL_LABELS = ('合计', 'total')

# Display names for an aggregated selection
TOTAL_LABEL = '合计'
CUSTOM_TOTAL_LABEL = '自定义合计'

# =====================================================================
# ANALYSIS MODES
# =====================================================================

MODE_LABELS = {
    'cumulative': '累计数据',
    'periodOverPeriod': '当周发生额',
}

# =====================================================================
# BASE FIELDS
# =====================================================================

# Additive across business lines
BASE_SUMMABLE_FIELDS = (
    'premium_written',
    'premium_earned',
    'total_loss_amount',
    'expense_amount_raw',
    'claim_count',
    'policy_count_earned',
)

# Advisory per-line values, never summed or diffed
PRECOMPUTED_FIELDS = (
    'avg_premium_per_policy',
    'avg_loss_per_case',
    'avg_commercial_index',
    'loss_ratio',
    'expense_ratio',
    'variable_cost_ratio',
    'premium_earned_ratio',
    'claim_frequency',
)

# Amounts are stored in 10k units (万元)
TEN_THOUSAND = 10000

# =====================================================================
# FORMATTING RULES TABLE
# =====================================================================

FORMAT_PERCENTAGE = 'percentage'
FORMAT_CURRENCY_10K = 'currency_10k'
FORMAT_CURRENCY_UNIT = 'currency_unit'
FORMAT_COUNT = 'count'
FORMAT_INDEX = 'index_3dp'

METRIC_FORMAT_RULES = {
    'premium_written': FORMAT_CURRENCY_10K,
    'premium_earned': FORMAT_CURRENCY_10K,
    'total_loss_amount': FORMAT_CURRENCY_10K,
    'expense_amount': FORMAT_CURRENCY_10K,
    'expense_amount_raw': FORMAT_CURRENCY_10K,
    'marginal_contribution_amount': FORMAT_CURRENCY_10K,
    'avg_premium_per_policy': FORMAT_CURRENCY_UNIT,
    'avg_loss_per_case': FORMAT_CURRENCY_UNIT,
    'policy_count': FORMAT_COUNT,
    'claim_count': FORMAT_COUNT,
    'policy_count_earned': FORMAT_COUNT,
    'loss_ratio': FORMAT_PERCENTAGE,
    'expense_ratio': FORMAT_PERCENTAGE,
    'variable_cost_ratio': FORMAT_PERCENTAGE,
    'marginal_contribution_ratio': FORMAT_PERCENTAGE,
    'premium_earned_ratio': FORMAT_PERCENTAGE,
    'claim_frequency': FORMAT_PERCENTAGE,
    'premium_share': FORMAT_PERCENTAGE,
    'avg_commercial_index': FORMAT_INDEX,
}

RATE_METRICS = frozenset(
    key for key, kind in METRIC_FORMAT_RULES.items() if kind == FORMAT_PERCENTAGE
)

FORMAT_UNITS = {
    FORMAT_PERCENTAGE: '%',
    FORMAT_CURRENCY_10K: '万元',
    FORMAT_CURRENCY_UNIT: '元',
    FORMAT_COUNT: '件',
    FORMAT_INDEX: '',
}

NOT_APPLICABLE = 'N/A'
EMPTY_CELL = '-'

# =====================================================================
# CHANGE CLASSIFICATION
# =====================================================================

CHANGE_POSITIVE = 'positive'
CHANGE_NEGATIVE = 'negative'
CHANGE_NEUTRAL = 'neutral'

NEUTRAL_EPSILON = 1e-5
# Rate metrics: changes within 0.05 percentage points are neutral
RATE_NEUTRAL_BAND_PP = 0.05

# =====================================================================
# RISK THRESHOLDS
# =====================================================================

VCR_RISK_THRESHOLD = 92.0
VCR_WARNING_THRESHOLD = 88.0
MCR_RISK_THRESHOLD = 8.0
MCR_WARNING_THRESHOLD = 12.0
LOSS_RATIO_RISK_THRESHOLD = 70.0
EXPENSE_RATIO_RISK_THRESHOLD = 14.5

# Source VCR further than this from loss + expense ratio gets logged
VCR_CONSISTENCY_TOLERANCE = 0.01

# =====================================================================
# KPI CONFIGURATIONS
# =====================================================================

# Display order matters: the dashboard lays cards out in this sequence
KPI_DEFINITIONS = [
    {'id': 'marginal_contribution_ratio', 'title': '边际贡献率', 'higher_is_better': True},
    {'id': 'variable_cost_ratio', 'title': '变动成本率', 'higher_is_better': False},
    {'id': 'expense_ratio', 'title': '费用率', 'higher_is_better': False},
    {'id': 'loss_ratio', 'title': '满期赔付率', 'higher_is_better': False},
    {'id': 'marginal_contribution_amount', 'title': '边贡额', 'higher_is_better': True},
    {'id': 'premium_written', 'title': '保费', 'higher_is_better': True},
    {'id': 'expense_amount', 'title': '费用', 'higher_is_better': False},
    {'id': 'total_loss_amount', 'title': '赔款', 'higher_is_better': False},
    {'id': 'premium_earned', 'title': '满期保费', 'higher_is_better': True},
    {'id': 'premium_earned_ratio', 'title': '保费满期率', 'higher_is_better': True},
    {'id': 'avg_premium_per_policy', 'title': '单均保费', 'higher_is_better': True},
    {'id': 'policy_count', 'title': '保单件数', 'higher_is_better': True},
    {'id': 'premium_share', 'title': '保费占比', 'higher_is_better': True, 'comparable': False},
    {'id': 'avg_commercial_index', 'title': '自主系数', 'higher_is_better': True, 'comparable': False,
     'single_line_only': True},
    {'id': 'claim_frequency', 'title': '满期出险率', 'higher_is_better': False},
    {'id': 'avg_loss_per_case', 'title': '案均赔款', 'higher_is_better': False},
    {'id': 'claim_count', 'title': '已报件数', 'higher_is_better': False},
]

KPI_TITLES = {kpi['id']: kpi['title'] for kpi in KPI_DEFINITIONS}

# =====================================================================
# COMPARISON LABELS
# =====================================================================

EXPLICIT_COMPARISON_PREFIX = '对比'
MOM_COMPARISON_PREFIX = '环比'
YOY_COMPARISON_PREFIX = '同比'

# =====================================================================
# CSV EXPORT
# =====================================================================

CSV_IDENTITY_COLUMNS = ['业务线ID', '业务线名称', '分析模式', '当前周期']

CSV_CORE_METRICS = [
    'premium_written',
    'premium_earned',
    'total_loss_amount',
    'expense_amount',
    'policy_count',
    'claim_count',
    'loss_ratio',
    'expense_ratio',
    'variable_cost_ratio',
    'avg_premium_per_policy',
    'avg_commercial_index',
]

CSV_DELTA_METRICS = [m for m in CSV_CORE_METRICS if m != 'avg_commercial_index']

# Decimal places per format kind
CSV_PRECISION = {
    FORMAT_COUNT: 0,
    FORMAT_PERCENTAGE: 4,
    FORMAT_CURRENCY_UNIT: 2,
    FORMAT_CURRENCY_10K: 4,
    FORMAT_INDEX: 4,
}
CSV_PERCENT_CHANGE_PRECISION = 4

EXCEL_STYLES = {
    "header_fill_color": "1f77b4",
    "header_font_color": "FFFFFF",
}

# =====================================================================
# CHART SERIES
# =====================================================================

TREND_MAX_PERIODS = 12

# =====================================================================
# VCR COLOR SCALE
# =====================================================================

VCR_COLOR_NEUTRAL = (0, 0, 70)
VCR_GREEN_HUE = 120
VCR_BLUE_HUE = 210
VCR_RED_HUE = 0
