import io
import json

import pandas as pd
import pytest
from openpyxl import load_workbook

from insurdash.performance.export import (
    build_export_filename, build_export_row, format_csv_number, serialize,
    to_csv_bytes, to_excel_bytes, to_prompt_json,
)

from conftest import LINE_A, LINE_B, LINE_C


CORE_HEADERS = [
    '保费(万元)', '满期保费(万元)', '赔款(万元)', '费用(万元)', '保单件数(件)', '已报件数(件)',
    '满期赔付率(%)', '费用率(%)', '变动成本率(%)', '单均保费(元)', '自主系数',
]


def _read(text):
    return pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)


@pytest.fixture
def two_lines(processor):
    return processor.process('2025-W03', None, 'cumulative', [LINE_A, LINE_B])


class TestCsvNumber:

    @pytest.mark.parametrize('value, decimals, expected', [
        (3463, 0, '3463'),
        (46.153846, 4, '46.1538'),
        (2250, 2, '2250.00'),
        (None, 4, '-'),
        (float('nan'), 4, '-'),
        (float('inf'), 4, '-'),
    ])
    def test_precision(self, value, decimals, expected):
        assert format_csv_number(value, decimals) == expected


class TestSerialize:

    def test_header_order(self, two_lines, period_labels):
        columns = list(_read(serialize(two_lines, 'cumulative', period_labels)).columns)

        assert columns[:4] == ['业务线ID', '业务线名称', '分析模式', '当前周期']
        assert columns[4:15] == CORE_HEADERS
        assert columns[15:17] == ['保费环比变化(%)', '保费环比变化(万元)']
        assert '满期赔付率环比变化(pp)' in columns
        assert '保单件数同比变化(件)' in columns
        # 4 identity + 11 core + 2 x 10 x 2 deltas
        assert len(columns) == 55

    def test_single_data_row(self, two_lines, period_labels):
        df = _read(serialize(two_lines, 'cumulative', period_labels))
        assert len(df) == 1

        row = df.iloc[0]
        assert row['业务线名称'] == '自定义合计'
        assert row['分析模式'] == '累计数据'
        assert row['当前周期'] == '2025年第3周'
        assert row['保费(万元)'] == '900.0000'
        assert row['保单件数(件)'] == '4000'
        assert row['满期赔付率(%)'] == '50.0000'
        assert row['费用率(%)'] == '11.1111'
        assert row['单均保费(元)'] == '2250.00'
        assert row['自主系数'] == '-'

    def test_primary_deltas(self, two_lines, period_labels):
        row = _read(serialize(two_lines, 'cumulative', period_labels)).iloc[0]
        # 900 vs 650
        assert row['保费环比变化(%)'] == '38.4615'
        assert row['保费环比变化(万元)'] == '250.0000'

    def test_zero_baseline_percent_is_dash(self, processor, period_labels):
        result = processor.process('2025-W03', None, 'cumulative', [LINE_C])
        row = _read(serialize(result, 'cumulative', period_labels)).iloc[0]

        assert row['保费环比变化(%)'] == '-'
        assert row['保费环比变化(万元)'] == '100.0000'

    def test_explicit_comparison_has_no_secondary_columns(self, processor, period_labels):
        result = processor.process('2025-W03', '2025-W01', 'cumulative', [])
        columns = list(_read(serialize(result, 'cumulative', period_labels)).columns)

        assert '保费对比变化(%)' in columns
        assert not any('同比' in c for c in columns)
        assert len(columns) == 35

    def test_missing_primary_baseline(self, processor, period_labels):
        result = processor.process('2025-W01', None, 'cumulative', [])
        row = build_export_row(result, None, period_labels)
        assert row['保费环比变化(%)'] == '-'
        assert row['保费环比变化(万元)'] == '-'

    def test_pop_mode_label(self, processor, period_labels):
        result = processor.process('2025-W03', None, 'periodOverPeriod', [])
        row = build_export_row(result, 'periodOverPeriod', period_labels)
        assert row['分析模式'] == '当周发生额'
        assert row['保费(万元)'] == '350.0000'


def test_csv_bytes_have_bom(two_lines, period_labels):
    data = to_csv_bytes(two_lines, 'cumulative', period_labels)
    assert data.startswith(b'\xef\xbb\xbf')
    assert '业务线ID' in data.decode('utf-8-sig')


def test_excel_export(two_lines, period_labels):
    wb = load_workbook(io.BytesIO(to_excel_bytes(two_lines, 'cumulative', period_labels)))
    ws = wb.active

    assert ws.title == '经营数据'
    assert ws.cell(row=1, column=1).value == '业务线ID'
    assert ws.cell(row=1, column=5).value == '保费(万元)'
    assert ws.cell(row=2, column=5).value == pytest.approx(900.0)
    assert ws.cell(row=2, column=15).value == '-'
    assert ws.max_row == 2


def test_excel_identity_cells_stay_text(processor):
    result = processor.process('2025-W03', None, 'cumulative', [LINE_A])
    wb = load_workbook(io.BytesIO(to_excel_bytes(result, 'cumulative', {'2025-W03': '2025'})))
    ws = wb.active

    assert ws.cell(row=2, column=4).value == '2025'
    assert isinstance(ws.cell(row=2, column=5).value, float)


def test_prompt_json(processor, period_labels):
    result = processor.process('2025-W03', None, 'cumulative', [LINE_A])
    payload = json.loads(to_prompt_json(result, period_labels))

    assert payload['business_line_name'] == LINE_A
    assert payload['period_label'] == '2025年第3周'
    assert payload['primary_period_label'] == '2025年第2周'
    assert payload['current_metrics']['premium_written'] == 700
    assert payload['current_metrics']['calculation_path'] == 'single_line_direct'
    assert payload['vcr_color'].startswith('hsl(')


def test_export_filename():
    assert build_export_filename('2025年第3周', 'cumulative', []) == '2025年第3周_cumulative_合计_车险数据.csv'
    assert build_export_filename('W3', 'periodOverPeriod', ['A', 'B']) == 'W3_periodOverPeriod_A_B_车险数据.csv'
