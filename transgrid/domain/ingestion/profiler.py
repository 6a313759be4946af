"""
Column profiling over a bounded sample of a decoded Grid.

Only the header row plus the first ``max_sample_rows`` data rows are read, so
profiling cost does not grow with the file.
"""
import logging
import re
import warnings
from typing import List, Optional, Sequence

import pandas as pd

from transgrid.domain.ingestion.models import ColumnProfile, DataType, Grid

logger = logging.getLogger(__name__)

SAMPLE_VALUE_LIMIT = 5
BOOLEAN_TOKENS = {"true", "false", "yes", "no", "1", "0"}
NUMBER_PATTERN = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")

PATTERN_RULES = (
    ("numeric", lambda value: re.match(r"^\d+$", value) is not None),
    ("uppercase", lambda value: re.match(r"^[A-Z_]+$", value) is not None),
    ("lowercase", lambda value: re.match(r"^[a-z_]+$", value) is not None),
    ("long_text", lambda value: len(value) > 10),
    ("short_text", lambda value: len(value) < 5),
)


def is_number(value: str) -> bool:
    # Plain decimal or exponent notation; float() alone also takes "1_000" and "nan".
    return NUMBER_PATTERN.match(value.strip()) is not None


def is_boolean(value: str) -> bool:
    return value.strip().lower() in BOOLEAN_TOKENS


def is_date(value: str) -> bool:
    value = value.strip()
    # Require at least one digit so words like "today" or "now" stay text.
    if not any(ch.isdigit() for ch in value):
        return False
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            parsed = pd.to_datetime(value, errors="raise")
    except (ValueError, TypeError, OverflowError):
        return False
    return not pd.isna(parsed)


def infer_data_type(values: Sequence[str]) -> DataType:
    """
    Infer a column type from its non-empty values.

    Checks run in a fixed order and the first match wins: number, boolean,
    date, text. ``["1", "0", "1"]`` is therefore a number column.
    """
    non_empty = [value for value in values if value and value.strip()]
    if not non_empty:
        return DataType.EMPTY
    if all(is_number(value) for value in non_empty):
        return DataType.NUMBER
    if all(is_boolean(value) for value in non_empty):
        return DataType.BOOLEAN
    if all(is_date(value) for value in non_empty):
        return DataType.DATE
    return DataType.TEXT


def extract_patterns(values: Sequence[str]) -> List[str]:
    """Return the pattern tags every sample value satisfies."""
    if not values:
        return []
    return [name for name, rule in PATTERN_RULES if all(rule(value) for value in values)]


def column_display_name(index: int, header_value: Optional[str]) -> str:
    if header_value and header_value.strip():
        return header_value.strip()
    return f"Column {index + 1}"


def profile_grid(grid: Grid, max_sample_rows: int = 10) -> List[ColumnProfile]:
    """
    Profile every column of ``grid``.

    The sample is row 0 plus up to ``max_sample_rows`` rows after it. The
    column count is the longest sampled row; missing cells count as empty.
    """
    if not grid:
        return []

    sample = grid[: max(0, max_sample_rows) + 1]
    column_count = max((len(row) for row in sample), default=0)
    header = sample[0]

    profiles: List[ColumnProfile] = []
    for index in range(column_count):
        present = [row[index] for row in sample if index < len(row)]
        cleaned = [str(value).strip() if value is not None else "" for value in present]
        non_empty = [value for value in cleaned if value]

        data_type = infer_data_type(non_empty)
        sample_values = non_empty[:SAMPLE_VALUE_LIMIT]

        profiles.append(ColumnProfile(
            index=index,
            inferred_name=column_display_name(index, header[index] if index < len(header) else None),
            data_type=data_type,
            is_empty=data_type == DataType.EMPTY,
            distinct_value_count=len(set(non_empty)),
            total_value_count=len(present),
            sample_values=sample_values,
            patterns=extract_patterns(sample_values),
        ))

    logger.debug("Profiled %d columns over %d sampled rows", len(profiles), len(sample))
    return profiles
