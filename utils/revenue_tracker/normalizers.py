# utils/revenue_tracker/normalizers.py
"""
Normalizers for loosely formatted CSV cell values.

Each function returns a canonical value or None; none of them raise.
"""

import logging
import math
import re
import warnings
from datetime import date, datetime
from typing import Any, Optional

import pandas as pd

from .constants import FALSE_TOKENS, TRUE_TOKENS

logger = logging.getLogger(__name__)

_DD_MM_YYYY = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")
_YYYY_MM = re.compile(r"^\d{4}-\d{2}$")
_NUMBER_NOISE = re.compile(r"[,\s]")


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def normalize_text(value: Any) -> Optional[str]:
    """Trimmed string, or None when empty"""
    if _is_missing(value):
        return None
    text = str(value).strip()
    return text or None


def normalize_date(value: Any) -> Optional[str]:
    """
    Coerce a date-like cell to ``YYYY-MM-DD``.

    Shapes tried in order:
    - ``dd-mm-yyyy`` is rearranged to ``yyyy-mm-dd`` (digits are not range-checked)
    - ``yyyy-mm`` gets day ``01``
    - anything else goes through pandas date parsing

    Returns None for empty or unparseable input.
    """
    if _is_missing(value):
        return None
    if isinstance(value, (datetime, pd.Timestamp)):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, date):
        return value.isoformat()

    text = str(value).strip()
    if not text:
        return None

    match = _DD_MM_YYYY.match(text)
    if match:
        day, month, year = match.groups()
        return f"{year}-{month}-{day}"

    if _YYYY_MM.match(text):
        return f"{text}-01"

    try:
        # pandas warns when it has to guess day-first order
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError) as e:
        logger.debug(f"Unparseable date {text!r}: {e}")
        return None
    if pd.isna(parsed):
        return None
    return parsed.strftime("%Y-%m-%d")


def to_number(value: Any) -> Optional[float]:
    """
    Parse a number, ignoring thousands separators and whitespace.

    >>> to_number("1,200")
    1200.0
    """
    if _is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = _NUMBER_NOISE.sub("", str(value))
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def to_boolean(value: Any) -> Optional[bool]:
    """Tri-state boolean: true/1/yes/approved, false/0/no/rejected, else None"""
    if isinstance(value, bool):
        return value
    if _is_missing(value):
        return None
    token = str(value).strip().lower()
    if token in TRUE_TOKENS:
        return True
    if token in FALSE_TOKENS:
        return False
    return None


__all__ = [
    "normalize_text",
    "normalize_date",
    "to_number",
    "to_boolean",
]
