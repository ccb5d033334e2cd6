# engines/cell_normalizer.py
"""
Cell normalization for spreadsheet imports
Turns raw cell values (date serials, strings, emails) into canonical values
"""

from datetime import date, datetime, timedelta
from typing import Any
import logging

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

# Spreadsheet serial day 0. Using 1899-12-30 instead of 1900-01-01 absorbs the
# phantom 1900-02-29, so serial 25569 lands on 1970-01-01.
SPREADSHEET_EPOCH = datetime(1899, 12, 30)
ISO_DATE_FORMAT = '%Y-%m-%d'


def is_blank(value: Any) -> bool:
    """True for None, NaN/NaT and whitespace-only strings"""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ''
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _is_number(value: Any) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return False
    return isinstance(value, (int, float, np.integer, np.floating))


def serial_to_date(serial: float) -> date:
    """Convert a spreadsheet date serial into a calendar date"""
    return (SPREADSHEET_EPOCH + timedelta(days=int(np.floor(serial)))).date()


def normalize_date(value: Any) -> str:
    """
    Normalize a cell value to a YYYY-MM-DD string.

    Accepts spreadsheet serial numbers, datetime/date/Timestamp values and
    any string pandas can parse. Returns an empty string when the value is
    missing or cannot be read as a date.
    """
    if is_blank(value):
        return ''

    try:
        if isinstance(value, (datetime, pd.Timestamp)):
            return value.strftime(ISO_DATE_FORMAT)
        if isinstance(value, date):
            return value.isoformat()
        if _is_number(value):
            if not np.isfinite(value):
                return ''
            return serial_to_date(float(value)).strftime(ISO_DATE_FORMAT)
        if isinstance(value, str):
            parsed = pd.to_datetime(value.strip(), errors='coerce')
            if pd.isna(parsed):
                return ''
            return parsed.strftime(ISO_DATE_FORMAT)
    except (ValueError, OverflowError, TypeError) as e:
        logger.debug(f"Could not normalize date {value!r}: {e}")
        return ''

    return ''


def normalize_email(value: Any) -> str:
    """Lowercase and trim an email address; non-text input becomes empty"""
    if not isinstance(value, str):
        return ''
    return value.strip().lower()


def normalize_text(value: Any) -> str:
    """Trim a text cell, stringifying anything that is not already a string"""
    if is_blank(value):
        return ''
    if isinstance(value, str):
        return value.strip()
    if _is_number(value) and float(value).is_integer():
        return str(int(value))
    return str(value).strip()
