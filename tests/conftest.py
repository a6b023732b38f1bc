"""Shared fixtures: a small set of weekly periods with three business lines."""

import pytest

from insurdash.performance.data_loader import parse_periods
from insurdash.performance.data_processor import PeriodProcessor


LINE_A = '非营业客车'
LINE_B = '营业货车'
LINE_C = '摩托车'


def make_entry(business_type, premium_written=0.0, premium_earned=0.0, total_loss_amount=0.0,
               expense_amount_raw=0.0, claim_count=0, policy_count_earned=0, **extra):
    entry = {
        'business_type': business_type,
        'premium_written': premium_written,
        'premium_earned': premium_earned,
        'total_loss_amount': total_loss_amount,
        'expense_amount_raw': expense_amount_raw,
        'claim_count': claim_count,
        'policy_count_earned': policy_count_earned,
    }
    entry.update(extra)
    return entry


@pytest.fixture
def raw_periods():
    return [
        {
            'period_id': '2024-W03',
            'period_label': '2024年第3周',
            'comparison_period_id_mom': None,
            'comparison_period_id_yoy': None,
            'business_data': [
                make_entry(LINE_A, 600, 250, 200, 60, 25, 500, avg_premium_per_policy=2000),
                make_entry(LINE_B, 180, 70, 35, 25, 9, 90, avg_premium_per_policy=4000),
                make_entry(LINE_C, 90, 40, 10, 9, 4, 40, avg_premium_per_policy=1000),
            ],
            'totals_for_period': {'total_premium_written_overall': 870},
        },
        {
            'period_id': '2025-W01',
            'period_label': '2025年第1周',
            'comparison_period_id_mom': None,
            'comparison_period_id_yoy': None,
            'business_data': [
                make_entry(LINE_A, 200, 80, 40, 20, 8, 160, avg_premium_per_policy=2000),
                make_entry(LINE_B, 100, 40, 20, 10, 4, 50, avg_premium_per_policy=4000),
            ],
            'totals_for_period': {'total_premium_written_overall': 300},
        },
        {
            'period_id': '2025-W02',
            'period_label': '2025年第2周',
            'comparison_period_id_mom': '2025-W01',
            'comparison_period_id_yoy': None,
            'business_data': [
                make_entry(LINE_A, 500, 200, 100, 50, 20, 400, avg_premium_per_policy=2000),
                make_entry(LINE_B, 150, 60, 30, 20, 8, 80, avg_premium_per_policy=4000),
            ],
            'totals_for_period': {'total_premium_written_overall': 650},
        },
        {
            'period_id': '2025-W03',
            'period_label': '2025年第3周',
            'comparison_period_id_mom': '2025-W02',
            'comparison_period_id_yoy': '2024-W03',
            'business_data': [
                make_entry(
                    LINE_A, 700, 300, 150, 70, 30, 600,
                    avg_premium_per_policy=2000, avg_loss_per_case=50000, avg_commercial_index=0.85,
                    loss_ratio=50.0, expense_ratio=10.0, variable_cost_ratio=60.0,
                ),
                make_entry(LINE_B, 200, 80, 40, 30, 10, 100, avg_premium_per_policy=4000),
                make_entry(LINE_C, 100, 50, 20, 10, 5, 50, avg_premium_per_policy=1000),
                make_entry('合计', 1000, 430, 210, 110, 45, 750),
            ],
            'totals_for_period': {'total_premium_written_overall': 1000},
        },
    ]


@pytest.fixture
def periods(raw_periods):
    return parse_periods(raw_periods)


@pytest.fixture
def processor(periods):
    return PeriodProcessor(periods)


@pytest.fixture
def period_labels(periods):
    return {p.period_id: p.period_label for p in periods}


@pytest.fixture
def current_period(processor):
    return processor.get_period('2025-W03')


@pytest.fixture
def entry_factory():
    return make_entry
