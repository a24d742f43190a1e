# utils/revenue_tracker/formatters.py
"""
Display formatters for the Revenue Tracker

Pure functions turning raw field values (months, amounts, dates, approval
states) into display strings. Missing values render as an em dash.
"""

import re
import logging
from datetime import date, datetime
from typing import Any, NamedTuple, Optional, Union

import pandas as pd

from .constants import (
    CRORE,
    DEFAULT_BADGE,
    EMPTY_DISPLAY,
    LAKH,
    STATUS_APPROVED,
    STATUS_BADGES,
    STATUS_PENDING,
    STATUS_REJECTED,
)
from .normalizers import normalize_date, to_boolean, to_number

logger = logging.getLogger(__name__)

_YEAR_MONTH = re.compile(r"^(\d{4})-(\d{2})")

# Streamlit markdown color per badge variant
_BADGE_MARKDOWN_COLORS = {
    "success": "green",
    "warning": "orange",
    "error": "red",
    "default": "gray",
}


class StatusBadge(NamedTuple):
    label: str
    variant: str
    color: str


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def format_indian_number(value: Union[int, float], max_decimals: int = 3) -> str:
    """
    Group digits the en-IN way (last three, then pairs).

    >>> format_indian_number(1234567)
    '12,34,567'
    """
    number = float(value)
    rounded = round(abs(number), max_decimals)
    text = f"{rounded:.{max_decimals}f}".rstrip("0").rstrip(".")
    whole, _, fraction = text.partition(".")

    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])

    sign = "-" if number < 0 and rounded != 0 else ""
    return f"{sign}{whole}.{fraction}" if fraction else f"{sign}{whole}"


def format_revenue_month(value: Any) -> str:
    """
    Format a revenue month as "Feb 2025"

    Accepts "YYYY-MM", ISO dates/timestamps and date objects.
    """
    if _is_blank(value):
        return EMPTY_DISPLAY

    if isinstance(value, (date, datetime, pd.Timestamp)):
        return value.strftime("%b %Y")

    text = str(value).strip()
    match = _YEAR_MONTH.match(text)
    if match:
        year, month = int(match.group(1)), int(match.group(2))
        if 1 <= month <= 12:
            return date(year, month, 1).strftime("%b %Y")
        return EMPTY_DISPLAY

    parsed = normalize_date(text)
    if parsed is None:
        return EMPTY_DISPLAY
    return datetime.strptime(parsed, "%Y-%m-%d").strftime("%b %Y")


def format_currency(amount: Any) -> str:
    """Rupee amount with Indian digit grouping; zero or missing renders as a dash"""
    number = to_number(amount)
    if not number:
        return EMPTY_DISPLAY
    return f"₹{format_indian_number(number)}"


def format_date(value: Any) -> str:
    """Format a date as dd/mm/yyyy (dd-mm-yyyy input is understood)"""
    if _is_blank(value):
        return EMPTY_DISPLAY
    parsed = normalize_date(value)
    if parsed is None:
        logger.debug(f"Unformattable date: {value!r}")
        return EMPTY_DISPLAY
    return datetime.strptime(parsed, "%Y-%m-%d").strftime("%d/%m/%Y")


def format_approval(value: Any) -> str:
    """Render a tri-state approval as Approved / Rejected / Pending"""
    flag = to_boolean(value)
    if flag is True:
        return STATUS_APPROVED
    if flag is False:
        return STATUS_REJECTED
    return STATUS_PENDING


def get_status_badge(status: Optional[str]) -> StatusBadge:
    if _is_blank(status):
        variant, color = DEFAULT_BADGE
        return StatusBadge(EMPTY_DISPLAY, variant, color)
    label = str(status).strip()
    variant, color = STATUS_BADGES.get(label.lower(), DEFAULT_BADGE)
    return StatusBadge(label, variant, color)


def status_badge_markdown(status: Optional[str]) -> str:
    """Streamlit markdown for a colored status badge"""
    badge = get_status_badge(status)
    return f":{_BADGE_MARKDOWN_COLORS[badge.variant]}-background[{badge.label}]"


def format_lakhs(amount: Any, decimals: int = 2) -> str:
    number = to_number(amount) or 0.0
    return f"₹{number / LAKH:,.{decimals}f} L"


def format_crores(amount: Any, decimals: int = 2) -> str:
    number = to_number(amount) or 0.0
    return f"₹{number / CRORE:,.{decimals}f} Cr"


__all__ = [
    "StatusBadge",
    "format_indian_number",
    "format_revenue_month",
    "format_currency",
    "format_date",
    "format_approval",
    "get_status_badge",
    "status_badge_markdown",
    "format_lakhs",
    "format_crores",
]
