import math

import pytest

from insurdash.performance.formatters import (
    format_absolute_change, format_metric_value, format_percent_change, get_format_kind, get_unit,
)


@pytest.mark.parametrize('metric, value, expected', [
    ('loss_ratio', 46.153, '46.2%'),
    ('premium_share', 70, '70.0%'),
    ('premium_written', 1234.6, '1,235 万元'),
    ('marginal_contribution_amount', 98765.4, '98,765 万元'),
    ('avg_premium_per_policy', 2020.9, '2,021 元'),
    ('policy_count', 3463, '3,463 件'),
    ('avg_commercial_index', 0.8731, '0.873'),
])
def test_format_metric_value(metric, value, expected):
    assert format_metric_value(metric, value) == expected


@pytest.mark.parametrize('value', [None, float('nan'), math.inf])
def test_missing_values_not_applicable(value):
    assert format_metric_value('loss_ratio', value) == 'N/A'


def test_unknown_metric_formats_as_count():
    assert get_format_kind('mystery') == 'count'
    assert get_unit('mystery') == '件'


@pytest.mark.parametrize('percent, expected', [
    (40.0, '+40.0%'),
    (-4.04, '-4.0%'),
    (0, '+0.0%'),
    (math.inf, '+∞%'),
    (-math.inf, '-∞%'),
    (None, None),
    (float('nan'), None),
])
def test_format_percent_change(percent, expected):
    assert format_percent_change(percent) == expected


@pytest.mark.parametrize('metric, change, expected', [
    ('loss_ratio', 1.234, '+1.23 pp'),
    ('variable_cost_ratio', -0.5, '-0.50 pp'),
    ('premium_written', 200, '+200.00 万元'),
    ('premium_written', -1234.5, '-1,234.50 万元'),
    ('policy_count', -3, '-3 件'),
    ('avg_premium_per_policy', 12.4, '+12 元'),
    ('avg_commercial_index', 0.0123, '+0.012'),
])
def test_format_absolute_change(metric, change, expected):
    assert format_absolute_change(metric, change) == expected


def test_absolute_change_missing():
    assert format_absolute_change('loss_ratio', None) is None
