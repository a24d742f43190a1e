import pandas as pd
import pytest

from utils.revenue_tracker.formatters import format_approval
from utils.revenue_tracker.view_state import (
    DateFilterMenu,
    DateOption,
    MenuStage,
    TableViewState,
    compare_values,
    visible_page_window,
    year_month_of,
)


@pytest.fixture()
def mis_df():
    return pd.DataFrame([
        {"sl_no": 1, "customer_name": "Acme", "project_name": "Alpha", "rev_month": "2025-02-01", "revenue": 300.0},
        {"sl_no": 2, "customer_name": "Globex", "project_name": "Beta", "rev_month": "2025-03-01", "revenue": 100.0},
        {"sl_no": 3, "customer_name": "acme labs", "project_name": "Gamma", "rev_month": "2024-12-01", "revenue": 200.0},
        {"sl_no": 4, "customer_name": "Initech", "project_name": None, "rev_month": "2025-02-01", "revenue": None},
    ])


# =============================================================================
# PAGINATION WINDOW
# =============================================================================

@pytest.mark.parametrize("total,current,expected", [
    (10, 1, [1, 2, 3]),
    (10, 10, [8, 9, 10]),
    (10, 5, [4, 5, 6]),
    (2, 2, [1, 2]),
    (3, 3, [1, 2, 3]),
    (0, 1, []),
])
def test_visible_page_window(total, current, expected):
    assert visible_page_window(total, current) == expected


# =============================================================================
# COMPARISON
# =============================================================================

def test_compare_values():
    assert compare_values(1, 2) == -1
    assert compare_values(2.5, 1) == 1
    assert compare_values("b", "a") == 1
    assert compare_values("a", "a") == 0
    assert compare_values("a", 1) == 0
    assert compare_values(None, 5) == 0
    assert compare_values(float("nan"), 5) == 0


@pytest.mark.parametrize("value,expected", [
    ("2025-02-01", (2025, 2)),
    ("2025-02", (2025, 2)),
    (pd.Timestamp("2024-11-30"), (2024, 11)),
    ("2025-13-01", None),
    ("soon", None),
    (None, None),
])
def test_year_month_of(value, expected):
    assert year_month_of(value) == expected


# =============================================================================
# DATE FILTER MENU
# =============================================================================

class TestDateFilterMenu:
    def test_year_then_month(self):
        menu = DateFilterMenu()
        menu.open()
        menu.select_year(2025)

        assert menu.stage is MenuStage.MONTH_MENU
        assert not menu.is_active

        menu.select_month(2)
        assert menu.stage is MenuStage.CLOSED
        assert menu.label == "Feb 2025"
        assert menu.matches("2025-02-14")
        assert not menu.matches("2025-03-01")
        assert not menu.matches(None)

    def test_whole_year(self):
        menu = DateFilterMenu()
        menu.open()
        menu.select_year(2024)
        menu.select_whole_year()
        assert menu.label == "2024"
        assert menu.matches("2024-07-01")
        assert not menu.matches("2025-07-01")

    def test_dismiss_is_refused_in_month_menu(self):
        menu = DateFilterMenu()
        menu.open()
        menu.select_year(2025)

        assert menu.dismiss() is False
        assert menu.stage is MenuStage.MONTH_MENU

        menu.back()
        assert menu.dismiss() is True
        assert menu.stage is MenuStage.CLOSED

    def test_select_all_clears_choice(self):
        menu = DateFilterMenu(selected_year=2025, selected_month=2)
        menu.open()
        menu.select_all()
        assert not menu.is_active
        assert menu.label == "All dates"

    @pytest.mark.parametrize("action", ["select_all", "select_whole_year", "back"])
    def test_invalid_transitions_from_closed(self, action):
        with pytest.raises(ValueError):
            getattr(DateFilterMenu(), action)()

    def test_invalid_month_and_option(self):
        menu = DateFilterMenu()
        menu.open()
        menu.select_year(2025)
        with pytest.raises(ValueError):
            menu.select_month(13)
        with pytest.raises(ValueError):
            menu.apply(DateOption("?", "decade"))
        with pytest.raises(ValueError):
            menu.open()

    def test_options_follow_the_data(self):
        dates = ["2025-02-01", "2024-12-01", "2025-03-01", "bad", None]
        menu = DateFilterMenu()
        assert menu.options(dates) == []

        menu.open()
        assert [o.label for o in menu.options(dates)] == ["All", "2025", "2024"]

        menu.apply(DateOption("2025", "year", 2025))
        assert [o.label for o in menu.options(dates)] == ["← Back", "All of 2025", "Feb 2025", "Mar 2025"]


# =============================================================================
# TABLE VIEW STATE
# =============================================================================

class TestTableViewState:
    def test_text_filter_is_case_insensitive_substring(self, mis_df):
        state = TableViewState(text_columns=["customer_name"])
        state.set_text_filter("customer_name", " ACME ")
        view = state.derive(mis_df)
        assert view.filtered["sl_no"].tolist() == [1, 3]
        assert state.has_filters

    def test_text_filter_skips_missing_values(self, mis_df):
        state = TableViewState()
        state.set_text_filter("project_name", "a")
        assert state.derive(mis_df).filtered["sl_no"].tolist() == [1, 2, 3]

    def test_date_filter(self, mis_df):
        state = TableViewState(date_column="rev_month")
        state.date_menu.open()
        state.apply_date_option(DateOption("2025", "year", 2025))
        state.apply_date_option(DateOption("Feb 2025", "month", 2))
        assert state.derive(mis_df).filtered["sl_no"].tolist() == [1, 4]

    def test_status_filter_uses_formatter(self):
        df = pd.DataFrame({"lead_id": ["L1", "L2", "L3"], "approval": [True, None, False]})
        state = TableViewState(status_column="approval", status_formatter=format_approval)
        state.set_status_filter("Pending")
        assert state.derive(df).filtered["lead_id"].tolist() == ["L2"]

    def test_sort_toggles_direction_and_keeps_membership(self, mis_df):
        state = TableViewState()
        state.toggle_sort("revenue")
        ascending = state.derive(mis_df).filtered["sl_no"].tolist()
        assert state.sort_indicator("revenue") == " ▲"

        state.toggle_sort("revenue")
        descending = state.derive(mis_df).filtered["sl_no"].tolist()
        assert state.sort_order == "desc"

        assert sorted(ascending) == sorted(descending) == [1, 2, 3, 4]
        assert ascending[:3] == [2, 3, 1]
        assert descending[:3] == [1, 3, 2]

    def test_new_sort_column_starts_ascending(self):
        state = TableViewState(sort_field="revenue", sort_order="desc")
        state.toggle_sort("rev_month")
        assert (state.sort_field, state.sort_order) == ("rev_month", "asc")
        assert state.sort_indicator("revenue") == ""

    def test_pagination(self, mis_df):
        state = TableViewState(page_size=3)
        state.set_page(2)
        view = state.derive(mis_df)

        assert view.total_pages == 2
        assert view.rows["sl_no"].tolist() == [4]
        assert view.visible_pages == [1, 2]

    def test_filter_change_resets_page(self, mis_df):
        state = TableViewState(page_size=1)
        state.set_page(3)
        state.set_text_filter("customer_name", "globex")
        assert state.current_page == 1

    def test_page_is_clamped(self, mis_df):
        state = TableViewState(page_size=10)
        state.set_page(9)
        assert state.derive(mis_df).current_page == 1
        assert state.derive(mis_df.iloc[0:0]).total_pages == 1

    def test_clear_filters(self, mis_df):
        state = TableViewState(date_column="rev_month")
        state.set_text_filter("customer_name", "acme")
        state.set_status_filter("Approved")
        state.date_menu.selected_year = 2025
        state.clear_filters()
        assert not state.has_filters
        assert len(state.derive(mis_df).filtered) == 4

    def test_selection(self, mis_df):
        state = TableViewState(id_column="sl_no")
        state.toggle_row(3)
        state.toggle_row(1)
        state.toggle_row(99)
        state.toggle_row(99)
        assert state.selected_ids(mis_df) == [1, 3]

        state.select_all(mis_df["sl_no"].tolist())
        assert state.selected_ids(mis_df.iloc[:2]) == [1, 2]

        state.clear_selection()
        assert state.selected_ids(mis_df) == []
