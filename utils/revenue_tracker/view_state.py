# utils/revenue_tracker/view_state.py
"""
View-state controllers for dashboard tables

Holds filter / sort / pagination / selection state for one table and derives
the visible page from the full in-memory frame on every call:

    filter -> sort -> slice

Components:
- compare_values: locale-aware strings, numeric subtraction, equal otherwise
- visible_page_window: at most N page buttons around the current page
- DateFilterMenu: year -> month menu as an explicit state machine
- TableViewState: per-table state plus derive(df) -> TableView
"""

import locale
import logging
import math
import numbers
import re
from dataclasses import dataclass, field
from enum import Enum
from functools import cmp_to_key
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Set, Tuple

import pandas as pd

from .constants import MONTH_ORDER, PAGE_WINDOW

logger = logging.getLogger(__name__)

_YEAR_MONTH = re.compile(r"^(\d{4})-(\d{2})")


# =============================================================================
# COMPARISON / PAGINATION
# =============================================================================

def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return not math.isnan(float(value))


def compare_values(a: Any, b: Any) -> int:
    """
    Three-way compare for sorting.

    Strings use the current locale's collation, numbers their difference.
    Mixed or missing values compare equal.
    """
    if isinstance(a, str) and isinstance(b, str):
        result = locale.strcoll(a, b)
    elif _is_number(a) and _is_number(b):
        result = a - b
    else:
        return 0
    return (result > 0) - (result < 0)


def visible_page_window(total_pages: int, current_page: int, window: int = PAGE_WINDOW) -> List[int]:
    """
    Page numbers to show as buttons.

    All pages when there are at most `window`, otherwise `window` pages
    centred on the current one and clamped to [1, total_pages].
    """
    if total_pages <= 0:
        return []
    if total_pages <= window:
        return list(range(1, total_pages + 1))

    current = min(max(current_page, 1), total_pages)
    start = current - window // 2
    start = max(1, min(start, total_pages - window + 1))
    return list(range(start, start + window))


def year_month_of(value: Any) -> Optional[Tuple[int, int]]:
    """(year, month) of an ISO date string or date object, else None"""
    if value is None:
        return None
    if hasattr(value, "year") and hasattr(value, "month"):
        try:
            return int(value.year), int(value.month)
        except (TypeError, ValueError):
            return None
    match = _YEAR_MONTH.match(str(value).strip())
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    return (year, month) if 1 <= month <= 12 else None


# =============================================================================
# DATE FILTER MENU
# =============================================================================

class MenuStage(Enum):
    CLOSED = "closed"
    YEAR_MENU = "year_menu"
    MONTH_MENU = "month_menu"


class DateOption(NamedTuple):
    label: str
    action: str  # "all" | "year" | "whole_year" | "month" | "back"
    value: Optional[int] = None


@dataclass
class DateFilterMenu:
    """
    Two-stage year -> month filter.

    States: CLOSED, YEAR_MENU, MONTH_MENU(menu_year).
    Picking a year moves to that year's months without closing; the menu
    only closes once a month or the whole year is chosen. Dismissing the
    month menu is refused, so `back` is the only way out of it besides a
    choice or `reset`.
    """
    stage: MenuStage = MenuStage.CLOSED
    menu_year: Optional[int] = None
    selected_year: Optional[int] = None
    selected_month: Optional[int] = None

    def _require(self, *stages: MenuStage):
        if self.stage not in stages:
            raise ValueError(f"Invalid date menu transition from {self.stage.value}")

    # ==================== TRANSITIONS ====================

    def open(self):
        self._require(MenuStage.CLOSED)
        self.stage = MenuStage.YEAR_MENU

    def select_all(self):
        self._require(MenuStage.YEAR_MENU)
        self.selected_year = None
        self.selected_month = None
        self.stage = MenuStage.CLOSED

    def select_year(self, year: int):
        self._require(MenuStage.YEAR_MENU)
        self.menu_year = int(year)
        self.stage = MenuStage.MONTH_MENU

    def select_whole_year(self):
        self._require(MenuStage.MONTH_MENU)
        self.selected_year = self.menu_year
        self.selected_month = None
        self.stage = MenuStage.CLOSED

    def select_month(self, month: int):
        self._require(MenuStage.MONTH_MENU)
        if not 1 <= int(month) <= 12:
            raise ValueError(f"Invalid month: {month}")
        self.selected_year = self.menu_year
        self.selected_month = int(month)
        self.stage = MenuStage.CLOSED

    def back(self):
        self._require(MenuStage.MONTH_MENU)
        self.stage = MenuStage.YEAR_MENU

    def dismiss(self) -> bool:
        """Close without choosing; refused (returns False) in the month menu"""
        if self.stage is MenuStage.MONTH_MENU:
            return False
        self.stage = MenuStage.CLOSED
        return True

    def reset(self):
        self.stage = MenuStage.CLOSED
        self.menu_year = None
        self.selected_year = None
        self.selected_month = None

    def apply(self, option: DateOption):
        """Run the transition an option stands for"""
        if option.action == "all":
            self.select_all()
        elif option.action == "year":
            self.select_year(option.value)
        elif option.action == "whole_year":
            self.select_whole_year()
        elif option.action == "month":
            self.select_month(option.value)
        elif option.action == "back":
            self.back()
        else:
            raise ValueError(f"Unknown date option: {option.action}")

    # ==================== VIEW ====================

    @property
    def is_active(self) -> bool:
        return self.selected_year is not None

    @property
    def label(self) -> str:
        if self.selected_year is None:
            return "All dates"
        if self.selected_month is None:
            return str(self.selected_year)
        return f"{MONTH_ORDER[self.selected_month - 1]} {self.selected_year}"

    def options(self, dates: Iterable[Any]) -> List[DateOption]:
        """Options for the current stage, built from the dates present in the data"""
        parsed = {ym for ym in (year_month_of(d) for d in dates) if ym is not None}

        if self.stage is MenuStage.YEAR_MENU:
            years = sorted({y for y, _ in parsed}, reverse=True)
            return [DateOption("All", "all")] + [DateOption(str(y), "year", y) for y in years]

        if self.stage is MenuStage.MONTH_MENU:
            months = sorted({m for y, m in parsed if y == self.menu_year})
            return (
                [DateOption("← Back", "back"), DateOption(f"All of {self.menu_year}", "whole_year")]
                + [DateOption(f"{MONTH_ORDER[m - 1]} {self.menu_year}", "month", m) for m in months]
            )

        return []

    def matches(self, value: Any) -> bool:
        if self.selected_year is None:
            return True
        ym = year_month_of(value)
        if ym is None:
            return False
        year, month = ym
        if year != self.selected_year:
            return False
        return self.selected_month is None or month == self.selected_month


# =============================================================================
# TABLE VIEW STATE
# =============================================================================

class TableView(NamedTuple):
    rows: pd.DataFrame          # current page
    filtered: pd.DataFrame      # every row passing the filters, sorted
    total_rows: int
    total_pages: int
    current_page: int
    visible_pages: List[int]


@dataclass
class TableViewState:
    """
    Filter / sort / page / selection state for one table.

    Usage:
        state = TableViewState(page_size=10, text_columns=["customer_name"],
                               date_column="rev_month", id_column="sl_no")
        state.set_text_filter("customer_name", "acme")
        state.toggle_sort("revenue")
        view = state.derive(df)
    """
    page_size: int = 10
    text_columns: List[str] = field(default_factory=list)
    status_column: Optional[str] = None
    date_column: Optional[str] = None
    id_column: Optional[str] = None
    status_formatter: Optional[Callable[[Any], str]] = None

    text_filters: Dict[str, str] = field(default_factory=dict)
    status_filter: str = "All"
    date_menu: DateFilterMenu = field(default_factory=DateFilterMenu)
    sort_field: Optional[str] = None
    sort_order: str = "asc"
    current_page: int = 1
    selected: Set[Any] = field(default_factory=set)

    # ==================== FILTERS ====================

    def set_text_filter(self, column: str, value: str):
        value = (value or "").strip()
        if value:
            self.text_filters[column] = value
        else:
            self.text_filters.pop(column, None)
        self.current_page = 1

    def set_status_filter(self, status: str):
        self.status_filter = status or "All"
        self.current_page = 1

    def apply_date_option(self, option: DateOption):
        before = (self.date_menu.selected_year, self.date_menu.selected_month)
        self.date_menu.apply(option)
        if (self.date_menu.selected_year, self.date_menu.selected_month) != before:
            self.current_page = 1

    def clear_filters(self):
        self.text_filters = {}
        self.status_filter = "All"
        self.date_menu.reset()
        self.current_page = 1

    @property
    def has_filters(self) -> bool:
        return bool(self.text_filters) or self.status_filter != "All" or self.date_menu.is_active

    # ==================== SORT / PAGE ====================

    def toggle_sort(self, field_name: str):
        """Same column flips asc/desc; a new column starts ascending"""
        if self.sort_field == field_name:
            self.sort_order = "desc" if self.sort_order == "asc" else "asc"
        else:
            self.sort_field = field_name
            self.sort_order = "asc"

    def sort_indicator(self, field_name: str) -> str:
        if self.sort_field != field_name:
            return ""
        return " ▲" if self.sort_order == "asc" else " ▼"

    def set_page(self, page: int):
        self.current_page = max(1, int(page))

    # ==================== SELECTION ====================

    def toggle_row(self, row_id: Any):
        if row_id in self.selected:
            self.selected.discard(row_id)
        else:
            self.selected.add(row_id)

    def select_all(self, row_ids: Iterable[Any]):
        self.selected = set(row_ids)

    def clear_selection(self):
        self.selected = set()

    def selected_ids(self, df: pd.DataFrame) -> List[Any]:
        """Selected ids that are still present in df, in frame order"""
        if self.id_column is None or df.empty:
            return []
        return [v for v in df[self.id_column].tolist() if v in self.selected]

    # ==================== DERIVE ====================

    def filter(self, df: pd.DataFrame) -> pd.DataFrame:
        if df.empty:
            return df

        mask = pd.Series(True, index=df.index)

        for column, needle in self.text_filters.items():
            if column in df.columns and needle:
                haystack = df[column].map(lambda v: "" if v is None or (isinstance(v, float) and math.isnan(v)) else str(v))
                mask &= haystack.str.lower().str.contains(needle.lower(), regex=False)

        if self.status_column and self.status_filter != "All" and self.status_column in df.columns:
            formatter = self.status_formatter or (lambda v: "" if v is None else str(v))
            wanted = self.status_filter.lower()
            mask &= df[self.status_column].map(lambda v: formatter(v).lower() == wanted)

        if self.date_column and self.date_menu.is_active and self.date_column in df.columns:
            mask &= df[self.date_column].map(self.date_menu.matches)

        return df[mask.astype(bool)]

    def sort(self, df: pd.DataFrame) -> pd.DataFrame:
        if not self.sort_field or self.sort_field not in df.columns or df.empty:
            return df

        values = df[self.sort_field].tolist()
        if self.sort_order == "desc":
            cmp = lambda i, j: compare_values(values[j], values[i])
        else:
            cmp = lambda i, j: compare_values(values[i], values[j])
        order = sorted(range(len(values)), key=cmp_to_key(cmp))
        return df.iloc[order]

    def derive(self, df: pd.DataFrame) -> TableView:
        filtered = self.sort(self.filter(df))
        total_rows = len(filtered)
        total_pages = max(1, math.ceil(total_rows / self.page_size))
        self.current_page = min(max(self.current_page, 1), total_pages)

        start = (self.current_page - 1) * self.page_size
        rows = filtered.iloc[start:start + self.page_size]

        return TableView(
            rows=rows,
            filtered=filtered,
            total_rows=total_rows,
            total_pages=total_pages,
            current_page=self.current_page,
            visible_pages=visible_page_window(total_pages, self.current_page),
        )


__all__ = [
    "compare_values",
    "visible_page_window",
    "year_month_of",
    "MenuStage",
    "DateOption",
    "DateFilterMenu",
    "TableView",
    "TableViewState",
]
