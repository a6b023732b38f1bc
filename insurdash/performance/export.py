# insurdash/performance/export.py
"""
Export Utilities for Insurance Performance

VERSION: 1.0.0
- CSV row for one aggregated selection (fixed column order)
- openpyxl formatted Excel export of the same table
- JSON payload for the narrative (LLM) collaborator
"""

import io
import json
import logging
import math
from typing import Any, Dict, Mapping, Optional, Union

import pandas as pd

from .constants import (
    CSV_IDENTITY_COLUMNS, CSV_CORE_METRICS, CSV_DELTA_METRICS, CSV_PRECISION,
    CSV_PERCENT_CHANGE_PRECISION, EMPTY_CELL, EXCEL_STYLES, KPI_TITLES, MODE_LABELS,
    RATE_METRICS, FORMAT_UNITS, FORMAT_INDEX,
    EXPLICIT_COMPARISON_PREFIX, MOM_COMPARISON_PREFIX, YOY_COMPARISON_PREFIX,
)
from .formatters import get_format_kind
from .helpers import is_missing
from .kpi_builder import change_and_type
from .models import AggregatedMetrics, AnalysisMode, ProcessedPeriodResult

logger = logging.getLogger(__name__)


# =============================================================================
# COLUMN NAMES
# =============================================================================

def _metric_header(metric: str) -> str:
    kind = get_format_kind(metric)
    unit = FORMAT_UNITS[kind]
    title = KPI_TITLES.get(metric, metric)
    return f"{title}({unit})" if unit and kind != FORMAT_INDEX else title


def _delta_headers(metric: str, prefix: str):
    title = KPI_TITLES.get(metric, metric)
    unit = 'pp' if metric in RATE_METRICS else FORMAT_UNITS[get_format_kind(metric)]
    return f"{title}{prefix}变化(%)", f"{title}{prefix}变化({unit})"


# =============================================================================
# VALUE FORMATTING
# =============================================================================

def format_csv_number(value: Any, decimals: int) -> str:
    """Fixed-precision number; '-' for None, NaN and +/-inf."""
    if is_missing(value):
        return EMPTY_CELL
    try:
        return f"{float(value):.{decimals}f}"
    except (TypeError, ValueError):
        return EMPTY_CELL


def _metric_precision(metric: str) -> int:
    return CSV_PRECISION[get_format_kind(metric)]


# =============================================================================
# CSV SERIALIZER
# =============================================================================

def build_export_row(
    result: ProcessedPeriodResult,
    mode: Optional[Union[AnalysisMode, str]] = None,
    period_labels: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """
    One ordered row: identity, core metrics, primary deltas, secondary deltas.

    Args:
        result: Processed period result
        mode: Analysis mode label source (defaults to the result's mode)
        period_labels: period_id -> display label

    Returns:
        Ordered dict of column -> cell text
    """
    mode = AnalysisMode.coerce(mode) if mode is not None else result.analysis_mode
    period_labels = period_labels or {}
    current = result.current_metrics

    identity = [
        result.business_line_id,
        result.business_line_name,
        MODE_LABELS[mode.value],
        period_labels.get(result.period_id, result.period_id),
    ]
    row = dict(zip(CSV_IDENTITY_COLUMNS, identity))

    for metric in CSV_CORE_METRICS:
        row[_metric_header(metric)] = format_csv_number(current.get(metric), _metric_precision(metric))

    primary_prefix = EXPLICIT_COMPARISON_PREFIX if result.is_explicit_comparison else MOM_COMPARISON_PREFIX
    row.update(_delta_cells(current, result.primary_metrics, primary_prefix))

    if result.has_secondary:
        row.update(_delta_cells(current, result.secondary_metrics, YOY_COMPARISON_PREFIX))

    return row


def _delta_cells(
    current: AggregatedMetrics,
    baseline: Optional[AggregatedMetrics],
    prefix: str,
) -> Dict[str, str]:
    cells = {}
    for metric in CSV_DELTA_METRICS:
        percent_col, absolute_col = _delta_headers(metric, prefix)
        if baseline is None:
            cells[percent_col] = EMPTY_CELL
            cells[absolute_col] = EMPTY_CELL
            continue

        change = change_and_type(current.get(metric), baseline.get(metric), True)
        cells[percent_col] = format_csv_number(change.percent_change, CSV_PERCENT_CHANGE_PRECISION)
        cells[absolute_col] = format_csv_number(change.absolute_change, _metric_precision(metric))
    return cells


def to_dataframe(
    result: ProcessedPeriodResult,
    mode: Optional[Union[AnalysisMode, str]] = None,
    period_labels: Optional[Mapping[str, str]] = None,
) -> pd.DataFrame:
    row = build_export_row(result, mode, period_labels)
    return pd.DataFrame([row], columns=list(row.keys()))


def serialize(
    result: ProcessedPeriodResult,
    mode: Optional[Union[AnalysisMode, str]] = None,
    period_labels: Optional[Mapping[str, str]] = None,
) -> str:
    """CSV text (header + one data row) for a processed period."""
    df = to_dataframe(result, mode, period_labels)
    return df.to_csv(index=False, lineterminator='\n')


def to_csv_bytes(
    result: ProcessedPeriodResult,
    mode: Optional[Union[AnalysisMode, str]] = None,
    period_labels: Optional[Mapping[str, str]] = None,
) -> bytes:
    """CSV encoded with a BOM so spreadsheet tools read the Chinese headers."""
    return serialize(result, mode, period_labels).encode('utf-8-sig')


def build_export_filename(
    period_label: str,
    mode: Union[AnalysisMode, str],
    selected_business_types,
) -> str:
    mode = AnalysisMode.coerce(mode)
    selection = '_'.join(selected_business_types) if selected_business_types else '合计'
    return f"{period_label}_{mode.value}_{selection}_车险数据.csv"


# =============================================================================
# EXCEL
# =============================================================================

def to_excel_bytes(
    result: ProcessedPeriodResult,
    mode: Optional[Union[AnalysisMode, str]] = None,
    period_labels: Optional[Mapping[str, str]] = None,
    sheet_name: str = '经营数据',
) -> bytes:
    """Same table as the CSV, written through openpyxl with header styling."""
    from openpyxl import Workbook
    from openpyxl.styles import Font, Alignment, Border, Side, PatternFill
    from openpyxl.utils import get_column_letter

    df = to_dataframe(result, mode, period_labels)

    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name

    header_fill = PatternFill(
        start_color=EXCEL_STYLES['header_fill_color'],
        end_color=EXCEL_STYLES['header_fill_color'],
        fill_type='solid'
    )
    header_font = Font(bold=True, color=EXCEL_STYLES['header_font_color'], size=11)
    thin_border = Side(style='thin', color='000000')
    cell_border = Border(left=thin_border, right=thin_border, top=thin_border, bottom=thin_border)

    for col_idx, col_name in enumerate(df.columns, 1):
        cell = ws.cell(row=1, column=col_idx, value=col_name)
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal='center', vertical='center')
        cell.border = cell_border
        ws.column_dimensions[get_column_letter(col_idx)].width = max(len(str(col_name)) * 2, 12)

    for row_idx, row in enumerate(df.itertuples(index=False), 2):
        for col_idx, value in enumerate(row, 1):
            is_metric = col_idx > len(CSV_IDENTITY_COLUMNS)
            cell = ws.cell(row=row_idx, column=col_idx, value=_excel_value(value) if is_metric else value)
            cell.border = cell_border
            if is_metric:
                cell.alignment = Alignment(horizontal='right')

    ws.freeze_panes = 'A2'

    buffer = io.BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    logger.info(f"Excel export created for {result.period_id} / {result.business_line_name}")
    return buffer.getvalue()


def _excel_value(value: str):
    """Metric cells go in as numbers; '-' stays text."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return value


# =============================================================================
# NARRATIVE PAYLOAD
# =============================================================================

def _json_safe(value):
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_json_safe(v) for v in value]
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return None
    return value


def to_prompt_json(
    result: ProcessedPeriodResult,
    period_labels: Optional[Mapping[str, str]] = None,
) -> str:
    """JSON text handed to the narrative generator as prompt context."""
    payload = result.to_dict()
    if period_labels:
        payload['period_label'] = period_labels.get(result.period_id, result.period_id)
        payload['primary_period_label'] = period_labels.get(result.primary_period_id) \
            if result.primary_period_id else None
        payload['secondary_period_label'] = period_labels.get(result.secondary_period_id) \
            if result.secondary_period_id else None
    return json.dumps(_json_safe(payload), ensure_ascii=False, indent=2)


__all__ = [
    'build_export_row',
    'build_export_filename',
    'format_csv_number',
    'serialize',
    'to_csv_bytes',
    'to_dataframe',
    'to_excel_bytes',
    'to_prompt_json',
]
