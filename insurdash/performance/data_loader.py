# insurdash/performance/data_loader.py
"""
Data Loader for Insurance Performance

VERSION: 1.0.0
- JSON file source (array of period objects)
- PostgreSQL source (insurance_period + insurance_business_data)
- st.cache_data with TTL from config

"Load Once, Filter Many": periods are loaded once per TTL window and
every selection afterwards is computed in memory by PeriodProcessor.
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

import pandas as pd
import streamlit as st

from ..config import config, DATA_SOURCE_JSON, DATA_SOURCE_POSTGRES
from .constants import BASE_SUMMABLE_FIELDS, PRECOMPUTED_FIELDS
from .exceptions import DataValidationError
from .models import PeriodRecord, is_reserved_total

logger = logging.getLogger(__name__)


# =============================================================================
# SQL
# =============================================================================

PERIODS_QUERY = """
    SELECT
        period_id,
        period_label,
        comparison_period_id_mom,
        comparison_period_id_yoy,
        total_premium_written_overall
    FROM insurance_period
    ORDER BY period_id
"""

BUSINESS_DATA_QUERY = f"""
    SELECT
        period_id,
        business_type,
        {', '.join(BASE_SUMMABLE_FIELDS)},
        {', '.join(PRECOMPUTED_FIELDS)}
    FROM insurance_business_data
    ORDER BY period_id, business_type
"""


# =============================================================================
# PARSING
# =============================================================================

def parse_periods(raw: Any) -> List[PeriodRecord]:
    """
    Validate and convert the raw period payload.

    Args:
        raw: List of period dicts as found in the JSON source

    Returns:
        List of PeriodRecord in source order

    Raises:
        DataValidationError: payload is not a list, or a period_id repeats
    """
    if not isinstance(raw, list):
        raise DataValidationError(
            f"Expected a list of periods, got {type(raw).__name__}"
        )

    periods = []
    seen = set()
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            logger.warning(f"Skipping period #{index}: not an object")
            continue
        period = PeriodRecord.from_dict(item)
        if not period.period_id:
            logger.warning(f"Skipping period #{index}: missing period_id")
            continue
        if period.period_id in seen:
            raise DataValidationError(f"Duplicate period_id '{period.period_id}'")
        seen.add(period.period_id)
        periods.append(period)

    logger.info(f"Parsed {len(periods)} periods")
    return periods


def load_periods_from_json(path: Union[str, Path]) -> List[PeriodRecord]:
    """Read and parse a JSON file holding an array of periods."""
    path = Path(path)
    logger.info(f"📂 Loading periods from {path}")
    with path.open('r', encoding='utf-8') as handle:
        raw = json.load(handle)
    return parse_periods(raw)


# =============================================================================
# DATABASE
# =============================================================================

def frames_to_periods(periods_df: pd.DataFrame, business_df: pd.DataFrame) -> List[PeriodRecord]:
    """
    Rebuild nested period records from the two flat tables.

    NULLs become None so precomputed fields stay optional.
    """
    periods_df = periods_df.astype(object).where(pd.notna(periods_df), None)
    business_df = business_df.astype(object).where(pd.notna(business_df), None)

    entries_by_period = {
        period_id: group.drop(columns=['period_id']).to_dict('records')
        for period_id, group in business_df.groupby('period_id', sort=False)
    }

    raw = []
    for row in periods_df.to_dict('records'):
        raw.append({
            'period_id': row['period_id'],
            'period_label': row.get('period_label'),
            'comparison_period_id_mom': row.get('comparison_period_id_mom'),
            'comparison_period_id_yoy': row.get('comparison_period_id_yoy'),
            'business_data': entries_by_period.get(row['period_id'], []),
            'totals_for_period': {
                'total_premium_written_overall': row.get('total_premium_written_overall'),
            },
        })
    return parse_periods(raw)


def load_periods_from_db() -> List[PeriodRecord]:
    """Query both tables through the shared engine and rebuild the periods."""
    from ..db import read_sql_frames

    start = time.perf_counter()
    frames = read_sql_frames({'periods': PERIODS_QUERY, 'business_data': BUSINESS_DATA_QUERY})
    periods_df, business_df = frames['periods'], frames['business_data']
    logger.info(
        f"🗄️ Loaded {len(periods_df)} periods / {len(business_df)} business rows "
        f"in {time.perf_counter() - start:.3f}s"
    )
    return frames_to_periods(periods_df, business_df)


# =============================================================================
# CACHED ENTRY POINT
# =============================================================================

@st.cache_data(ttl=config.get_app_setting('CACHE_TTL_SECONDS', 300), show_spinner=False)
def load_periods(data_source: Optional[str] = None, data_file_path: Optional[str] = None) -> List[PeriodRecord]:
    """
    Load all periods from the configured source.

    Args:
        data_source: 'json' or 'postgres' (defaults to DATA_SOURCE)
        data_file_path: JSON file (defaults to DATA_FILE_PATH)

    Raises:
        ValueError: unknown data source
    """
    data_source = (data_source or config.data_source).lower()

    if data_source == DATA_SOURCE_JSON:
        return load_periods_from_json(data_file_path or config.get_app_setting('DATA_FILE_PATH'))
    if data_source == DATA_SOURCE_POSTGRES:
        return load_periods_from_db()

    raise ValueError(f"Unknown DATA_SOURCE '{data_source}'")


# =============================================================================
# FILTER OPTIONS
# =============================================================================

def list_business_types(periods: Iterable[PeriodRecord]) -> List[str]:
    """All individual business types across periods, sorted."""
    types = set()
    for period in periods:
        for entry in period.business_data:
            if not is_reserved_total(entry.business_type):
                types.add(entry.business_type)
    return sorted(types)


def get_period_options(periods: Iterable[PeriodRecord]) -> List[Tuple[str, str]]:
    """(period_id, label) pairs, latest label first."""
    options = [(p.period_id, p.period_label) for p in periods]
    return sorted(options, key=lambda option: option[1], reverse=True)


def default_period_id(periods: Iterable[PeriodRecord]) -> Optional[str]:
    options = get_period_options(periods)
    return options[0][0] if options else None


def sanitize_comparison_selection(
    selected_period_id: Optional[str],
    comparison_period_id: Optional[str],
    periods: Sequence[PeriodRecord],
) -> Optional[str]:
    """
    Reset a comparison choice that became invalid after the period changed.

    Returns None when the comparison equals the selected period or is not
    among the loaded periods; otherwise the comparison unchanged.
    """
    if not comparison_period_id:
        return None
    if comparison_period_id == selected_period_id:
        logger.info(f"Comparison '{comparison_period_id}' equals selected period; resetting")
        return None
    if comparison_period_id not in {p.period_id for p in periods}:
        logger.info(f"Comparison '{comparison_period_id}' no longer available; resetting")
        return None
    return comparison_period_id


__all__ = [
    'parse_periods',
    'load_periods',
    'load_periods_from_json',
    'load_periods_from_db',
    'frames_to_periods',
    'list_business_types',
    'get_period_options',
    'default_period_id',
    'sanitize_comparison_selection',
]
