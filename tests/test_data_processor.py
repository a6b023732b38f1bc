import pytest

from insurdash.performance.constants import TOTAL_LABEL, CUSTOM_TOTAL_LABEL
from insurdash.performance.data_loader import parse_periods
from insurdash.performance.data_processor import (
    PeriodProcessor, filter_entries, process_period, resolve_display_name,
)
from insurdash.performance.exceptions import InvalidComparisonSelectionError
from insurdash.performance.models import AnalysisMode, CalculationPath, ColorDescriptor

from conftest import LINE_A, LINE_B, LINE_C


class TestComparisonResolution:

    def test_default_links(self, processor):
        result = processor.process('2025-W03', None, 'cumulative', [])

        assert result.primary_period_id == '2025-W02'
        assert result.secondary_period_id == '2024-W03'
        assert result.is_explicit_comparison is False
        assert result.has_secondary

    def test_explicit_comparison_replaces_both_links(self, processor):
        result = processor.process('2025-W03', '2025-W01', 'cumulative', [])

        assert result.primary_period_id == '2025-W01'
        assert result.primary_metrics.premium_written == 300
        assert result.secondary_period_id is None
        assert result.secondary_metrics is None
        assert result.is_explicit_comparison is True

    def test_comparison_equal_to_current_is_rejected(self, processor):
        with pytest.raises(InvalidComparisonSelectionError) as excinfo:
            processor.process('2025-W03', '2025-W03', 'cumulative', [])
        assert excinfo.value.period_id == '2025-W03'

    def test_unknown_period_returns_none(self, processor):
        assert processor.process('1999-W01', None, 'cumulative', []) is None

    def test_missing_reference_means_no_comparison(self, raw_periods, caplog):
        raw_periods[3]['comparison_period_id_yoy'] = '2024-W99'
        processor = PeriodProcessor(parse_periods(raw_periods))

        with caplog.at_level('WARNING'):
            result = processor.process('2025-W03', None, 'cumulative', [])

        assert result.secondary_metrics is None
        assert result.secondary_period_id is None
        assert result.primary_metrics is not None
        assert '2024-W99' in caplog.text

    def test_period_without_links(self, processor):
        result = processor.process('2025-W01', None, 'cumulative', [])
        assert result.primary_metrics is None
        assert result.secondary_metrics is None

    def test_baselines_always_cumulative(self, processor):
        result = processor.process('2025-W03', None, 'periodOverPeriod', [LINE_A])

        assert result.current_metrics.premium_written == 200
        # W02 YTD, not W02 minus W01
        assert result.primary_metrics.premium_written == 500
        assert result.primary_metrics.calculation_path == CalculationPath.SINGLE_LINE_DIRECT
        assert result.secondary_metrics.premium_written == 600

    def test_line_absent_from_baseline_is_zero(self, processor):
        result = processor.process('2025-W03', None, 'cumulative', [LINE_C])
        assert result.primary_metrics.premium_written == 0
        assert result.secondary_metrics.premium_written == 90


class TestPeriodOverPeriod:

    def test_all_lines_delta(self, processor):
        result = processor.process('2025-W03', None, AnalysisMode.PERIOD_OVER_PERIOD, [])

        # A 200, B 50, C 100 (no prior entry)
        assert result.current_metrics.premium_written == 350
        assert result.current_metrics.calculation_path == CalculationPath.RECOMPUTED
        # 200*10000/2000 + 50*10000/4000 + 100*10000/1000
        assert result.current_metrics.policy_count == 2125

    def test_no_prior_period_uses_full_value(self, processor):
        result = processor.process('2025-W01', None, 'periodOverPeriod', [LINE_A])
        assert result.current_metrics.premium_written == 200

    def test_single_line_entry_only_in_cumulative(self, processor):
        cumulative = processor.process('2025-W03', None, 'cumulative', [LINE_A])
        pop = processor.process('2025-W03', None, 'periodOverPeriod', [LINE_A])

        assert cumulative.single_line_entry.business_type == LINE_A
        assert pop.single_line_entry is None


class TestSelection:

    def test_empty_selection_equals_full_selection(self, processor):
        implicit = processor.process('2025-W03', None, 'cumulative', [])
        explicit = processor.process('2025-W03', None, 'cumulative', [LINE_A, LINE_B, LINE_C])

        assert implicit.current_metrics.to_dict() == explicit.current_metrics.to_dict()
        assert implicit.primary_metrics.to_dict() == explicit.primary_metrics.to_dict()
        assert implicit.secondary_metrics.to_dict() == explicit.secondary_metrics.to_dict()

    def test_total_rows_excluded(self, current_period):
        types = [e.business_type for e in filter_entries(current_period, [])]
        assert types == [LINE_A, LINE_B, LINE_C]

    def test_filter_to_subset(self, current_period):
        entries = filter_entries(current_period, [LINE_C, LINE_A])
        assert {e.business_type for e in entries} == {LINE_A, LINE_C}

    @pytest.mark.parametrize('selected, expected', [
        ([], TOTAL_LABEL),
        ([LINE_A], LINE_A),
        ([LINE_A, LINE_B], CUSTOM_TOTAL_LABEL),
        ([LINE_A, LINE_B, LINE_C], TOTAL_LABEL),
        (['不存在'], CUSTOM_TOTAL_LABEL),
    ])
    def test_display_name(self, current_period, selected, expected):
        assert resolve_display_name(current_period, selected) == expected

    def test_result_identity(self, processor):
        result = processor.process('2025-W03', None, 'cumulative', [LINE_A, LINE_B])
        assert result.business_line_id == CUSTOM_TOTAL_LABEL
        assert result.business_line_name == CUSTOM_TOTAL_LABEL
        assert result.period_id == '2025-W03'
        assert result.analysis_mode == AnalysisMode.CUMULATIVE


class TestPremiumShareAndColor:

    def test_premium_share(self, processor):
        result = processor.process('2025-W03', None, 'cumulative', [LINE_A])
        assert result.premium_share == pytest.approx(70.0)

    def test_premium_share_without_overall_total(self, raw_periods):
        raw_periods[3]['totals_for_period'] = {}
        result = process_period(parse_periods(raw_periods), '2025-W03', None, 'cumulative', [LINE_A])
        assert result.premium_share == 0

    def test_vcr_color_attached(self, processor):
        result = processor.process('2025-W03', None, 'cumulative', [LINE_A])
        assert isinstance(result.vcr_color, ColorDescriptor)
        # VCR 60 is deep in the profitable band
        assert result.vcr_color.hue == 120


def test_results_are_fresh_objects(processor):
    first = processor.process('2025-W03', None, 'cumulative', [])
    second = processor.process('2025-W03', None, 'cumulative', [])
    assert first is not second
    assert first.current_metrics is not second.current_metrics
    assert first.to_dict() == second.to_dict()
