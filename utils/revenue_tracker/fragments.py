# utils/revenue_tracker/fragments.py
"""
Streamlit components for the Revenue Tracker pages

Shared widgets that drive a TableViewState:
- text / status / year->month date filters
- sortable column buttons and the page window
- plain and selectable tables
And the dialogs:
- Add MIS CSV / Add Leads CSV (validate, then chunked import)
- Source CSV downloads for an MIS row (S3 bucket)
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional

import pandas as pd
import streamlit as st

from utils.config import config
from utils.s3_utils import get_s3_manager
from .constants import STATE_PREFIX, STATUS_OPTIONS
from .csv_import import (
    BaseCsvImporter,
    LeadsCsvImporter,
    MisCsvImporter,
    SEQUENCE_CONFLICT_HELP,
    read_uploaded_text,
)
from .export import ExportColumn, to_display_frame
from .formatters import format_crores, format_currency, format_lakhs, format_revenue_month
from .queries import QueryResult, RemoteError, RevenueQueries
from .view_state import MenuStage, TableView, TableViewState

logger = logging.getLogger(__name__)


# =============================================================================
# SESSION HELPERS
# =============================================================================

def state_key(name: str) -> str:
    """Session-state key for page data (dropped on logout)"""
    return f"{STATE_PREFIX}{name}"


def get_view_state(name: str, **kwargs) -> TableViewState:
    key = state_key(f"view_{name}")
    if key not in st.session_state:
        st.session_state[key] = TableViewState(**kwargs)
    return st.session_state[key]


def _bump_editor(name: str):
    key = state_key(f"editor_nonce_{name}")
    st.session_state[key] = st.session_state.get(key, 0) + 1


def _editor_nonce(name: str) -> int:
    return st.session_state.get(state_key(f"editor_nonce_{name}"), 0)


def request_refresh(page: str):
    """Mark a page's cached frames stale; the page refetches on next run"""
    st.session_state[state_key(f"refresh_{page}")] = True


def pop_refresh(page: str) -> bool:
    return bool(st.session_state.pop(state_key(f"refresh_{page}"), False))


def show_remote_error(error: RemoteError, what: str = "data"):
    if error.is_table_missing:
        st.warning(f"⚠️ Could not load {what}: table does not exist yet. ({error.message})")
        return
    st.error(f"❌ Could not load {what}: {error.describe()}")
    if error.hint:
        st.caption(f"Hint: {error.hint}")


def load_frame(name: str, loader: Callable[[], QueryResult], force: bool = False, what: str = "data") -> pd.DataFrame:
    """
    Fetch once per session and keep the result in session state.

    The loader runs again only when forced (refresh button, after an
    import or a bulk update).
    """
    key = state_key(f"data_{name}")
    if force or key not in st.session_state:
        with st.spinner(f"Loading {what}..."):
            st.session_state[key] = loader()

    result = st.session_state[key]
    if result.error is not None:
        show_remote_error(result.error, what)
    return result.data


# =============================================================================
# KPI CARDS
# =============================================================================

def render_finance_kpis(summary: Dict):
    col1, col2, col3, col4, col5 = st.columns(5)
    with col1:
        st.metric(
            "💰 Revenue",
            format_crores(summary["total_revenue"]),
            delta=format_lakhs(summary["total_revenue"]),
            delta_color="off",
            help="Total revenue across the loaded MIS records"
        )
    with col2:
        st.metric(
            "✅ Approved Cost",
            format_crores(summary["total_approved_cost"]),
            delta=format_lakhs(summary["total_approved_cost"]),
            delta_color="off"
        )
    with col3:
        st.metric(
            "⏳ Unapproved Leads",
            f"{summary['unapproved_lead_count']:,}",
            delta=format_currency(summary["total_unapproved_lead_cost"]),
            delta_color="off",
            help="Unapproved lead count and their cost"
        )
    with col4:
        st.metric("📈 Margin", format_crores(summary["total_margin"]), delta_color="off")
    with col5:
        st.metric(
            "📁 Projects",
            f"{summary['project_count']:,}",
            delta=f"{summary['customer_count']:,} customers",
            delta_color="off"
        )


def render_client_cards(summary: Dict):
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("📁 Total Projects", f"{summary['total_projects']:,}")
    with col2:
        st.metric("💰 Total Revenue", format_currency(summary["total_revenue"]))
    with col3:
        st.metric("✅ Approved", f"{summary['approved']:,}")
    with col4:
        st.metric("⏳ Pending", f"{summary['pending']:,}", delta=f"{summary['rejected']:,} rejected", delta_color="off")


# =============================================================================
# FILTER WIDGETS
# =============================================================================

def render_text_filters(state: TableViewState, labels: Dict[str, str], name: str):
    """One substring search box per column; changes land in state before the rerun"""
    cols = st.columns(len(labels))
    for col, (column, label) in zip(cols, labels.items()):
        key = state_key(f"{name}_text_{column}")
        if key not in st.session_state:
            st.session_state[key] = state.text_filters.get(column, "")
        with col:
            st.text_input(
                label,
                key=key,
                placeholder="Search...",
                on_change=lambda c=column, k=key: state.set_text_filter(c, st.session_state[k])
            )


def render_status_filter(state: TableViewState, name: str, label: str = "Status"):
    key = state_key(f"{name}_status")
    if key not in st.session_state:
        st.session_state[key] = state.status_filter if state.status_filter in STATUS_OPTIONS else "All"
    st.selectbox(
        label,
        STATUS_OPTIONS,
        key=key,
        on_change=lambda: state.set_status_filter(st.session_state[key])
    )


def clear_table_filters(state: TableViewState, name: str):
    """Reset the view state and the widgets bound to it"""
    state.clear_filters()
    prefixes = (state_key(f"{name}_text_"), state_key(f"{name}_status"))
    for key in [k for k in list(st.session_state.keys()) if str(k).startswith(prefixes)]:
        del st.session_state[key]


def render_date_filter(state: TableViewState, dates: Iterable, name: str):
    """
    Year -> month menu.

    The menu stays open after a year is picked and only closes on a month,
    the whole year, "All", or Close from the year list.
    """
    menu = state.date_menu
    dates = list(dates)

    if menu.stage is MenuStage.CLOSED:
        if st.button(f"📅 {menu.label}", key=f"{name}_date_open", use_container_width=True):
            menu.open()
            st.rerun()
        return

    with st.container(border=True):
        st.caption("Select year" if menu.stage is MenuStage.YEAR_MENU else f"Select month of {menu.menu_year}")
        options = menu.options(dates)
        per_row = 4
        for start in range(0, len(options), per_row):
            cols = st.columns(per_row)
            for col, option in zip(cols, options[start:start + per_row]):
                with col:
                    if st.button(option.label, key=f"{name}_date_{option.action}_{option.value}", use_container_width=True):
                        state.apply_date_option(option)
                        st.rerun()

        if st.button("Close", key=f"{name}_date_close"):
            if menu.dismiss():
                st.rerun()
            else:
                st.caption("Pick a month, the whole year, or go back")


def render_sort_buttons(state: TableViewState, sortable: Dict[str, str], name: str):
    cols = st.columns(len(sortable))
    for col, (column, label) in zip(cols, sortable.items()):
        with col:
            if st.button(f"{label}{state.sort_indicator(column)}", key=f"{name}_sort_{column}", use_container_width=True):
                state.toggle_sort(column)
                st.rerun()


def render_pagination(state: TableViewState, view: TableView, name: str):
    if view.total_pages <= 1:
        st.caption(f"{view.total_rows} record(s)")
        return

    cols = st.columns([1] + [1] * len(view.visible_pages) + [1, 3])
    with cols[0]:
        if st.button("◀", key=f"{name}_prev", disabled=view.current_page <= 1):
            state.set_page(view.current_page - 1)
            st.rerun()
    for col, page in zip(cols[1:], view.visible_pages):
        with col:
            if st.button(
                str(page),
                key=f"{name}_page_{page}",
                type="primary" if page == view.current_page else "secondary"
            ):
                state.set_page(page)
                st.rerun()
    with cols[len(view.visible_pages) + 1]:
        if st.button("▶", key=f"{name}_next", disabled=view.current_page >= view.total_pages):
            state.set_page(view.current_page + 1)
            st.rerun()
    with cols[-1]:
        st.caption(f"Page {view.current_page} of {view.total_pages} • {view.total_rows} record(s)")


# =============================================================================
# TABLES
# =============================================================================

def render_table(view: TableView, columns: List[ExportColumn], empty_message: str = "No records found"):
    if view.rows.empty:
        st.info(empty_message)
        return
    st.dataframe(to_display_frame(view.rows, columns), hide_index=True, use_container_width=True)


def render_selectable_table(
    view: TableView,
    state: TableViewState,
    columns: List[ExportColumn],
    name: str,
    empty_message: str = "No records found"
):
    """Table with a Select checkbox column bound to state.selected"""
    if view.rows.empty:
        st.info(empty_message)
        return

    ids = view.rows[state.id_column].tolist()
    display = to_display_frame(view.rows, columns)
    display.insert(0, "Select", [row_id in state.selected for row_id in ids])

    edited = st.data_editor(
        display,
        key=f"{name}_editor_{_editor_nonce(name)}_{view.current_page}_{abs(hash(tuple(ids)))}",
        hide_index=True,
        use_container_width=True,
        disabled=[c.title for c in columns],
        column_config={"Select": st.column_config.CheckboxColumn("Select", default=False)},
    )

    for row_id, checked in zip(ids, edited["Select"].tolist()):
        if checked:
            state.selected.add(row_id)
        else:
            state.selected.discard(row_id)


def render_selection_bar(state: TableViewState, view: TableView, name: str) -> List:
    """Select-all / clear buttons; returns the selected ids still in view"""
    selected = state.selected_ids(view.filtered)
    col1, col2, col3 = st.columns([1, 1, 4])
    with col1:
        if st.button("☑️ Select all", key=f"{name}_select_all", disabled=view.filtered.empty):
            state.select_all(view.filtered[state.id_column].tolist())
            _bump_editor(name)
            st.rerun()
    with col2:
        if st.button("✖️ Clear", key=f"{name}_clear_selection", disabled=not selected):
            state.clear_selection()
            _bump_editor(name)
            st.rerun()
    with col3:
        st.caption(f"{len(selected)} selected")
    return selected


def after_bulk_action(state: TableViewState, name: str, page: str):
    state.clear_selection()
    _bump_editor(name)
    request_refresh(page)


# =============================================================================
# CSV IMPORT DIALOGS
# =============================================================================

def _render_import(importer: BaseCsvImporter, name: str, refresh_page: str, notes: List[str]):
    rows_key = state_key(f"import_rows_{name}")
    summary_key = state_key(f"import_summary_{name}")

    st.markdown(f"**Headers:** `{importer.sample_header}`")
    st.markdown(f"**Sample row:** `{importer.sample_row}`")
    for note in notes:
        st.caption(f"• {note}")
    st.caption("• Values are split on commas; quoted fields containing commas are not supported.")

    uploaded = st.file_uploader("Upload CSV file", type=["csv"], key=f"{name}_file")
    pasted = st.text_area("...or paste CSV text", key=f"{name}_paste", height=120)

    col1, col2, col3 = st.columns(3)
    validate = col1.button("Validate", key=f"{name}_validate", use_container_width=True)
    submit = col2.button(
        "Add CSV",
        key=f"{name}_submit",
        type="primary",
        use_container_width=True,
        disabled=not st.session_state.get(rows_key)
    )
    close = col3.button("Close", key=f"{name}_close", use_container_width=True)

    if validate:
        st.session_state.pop(summary_key, None)
        text = read_uploaded_text(uploaded, pasted)
        if not text.strip():
            st.error("No CSV provided. Upload a file or paste text.")
            st.session_state[rows_key] = []
        else:
            parsed = importer.parse(text)
            if parsed.error is not None:
                st.error(f"{parsed.error.title}: {parsed.error}")
                st.session_state[rows_key] = []
            else:
                st.session_state[rows_key] = parsed.rows
                message = f"CSV validated: {len(parsed.rows)} valid row(s) ready."
                if parsed.dropped_rows:
                    message += f" {parsed.dropped_rows} row(s) without a primary key were dropped."
                st.toast(message, icon="✅")
                st.rerun(scope="fragment")

    if submit:
        rows = st.session_state.get(rows_key) or []
        with st.spinner(f"Importing {len(rows)} row(s)..."):
            summary = importer.submit(rows)
        st.session_state[summary_key] = summary
        st.session_state[rows_key] = []
        if summary.inserted > 0:
            request_refresh(refresh_page)

    summary = st.session_state.get(summary_key)
    if summary is not None:
        st.info(summary.describe())
        if summary.conflict:
            st.error(
                "Insert conflict on mis_records. The sl_no sequence is probably out of sync. "
                "Run this in the database SQL editor, then retry:"
            )
            st.code(SEQUENCE_CONFLICT_HELP, language="sql")
        elif summary.failed:
            st.warning("Some chunks failed: " + "; ".join(dict.fromkeys(summary.errors)))

    if close:
        st.session_state.pop(rows_key, None)
        st.session_state.pop(summary_key, None)
        st.rerun()


@st.dialog("Add MIS CSV", width="large")
def import_mis_dialog(refresh_page: str = "finance"):
    importer = MisCsvImporter(RevenueQueries())
    _render_import(importer, "mis_import", refresh_page, [
        "sl_no is assigned by the database; do not include it.",
        "Dates: YYYY-MM-DD; YYYY-MM fills day 01; dd-mm-yyyy is accepted.",
        "Rows already stored for the same rev_month, customer_id and project_id are skipped.",
    ])


@st.dialog("Add Leads CSV", width="large")
def import_leads_dialog(refresh_page: str = "finance"):
    importer = LeadsCsvImporter(RevenueQueries())
    _render_import(importer, "leads_import", refresh_page, [
        "id is assigned by the database; do not include it.",
        "Dates: YYYY-MM-DD; YYYY-MM fills day 01; dd-mm-yyyy is accepted.",
        "Approvals take boolean-like values (true/false/approved/rejected).",
        "Duplicates are skipped by lead_id.",
    ])


# =============================================================================
# SOURCE CSV DOWNLOADS
# =============================================================================

@st.dialog("Validation CSV files", width="medium")
def csv_files_dialog(project_id: str, rev_month: Optional[str] = None):
    st.markdown(f"**Project:** {project_id} • **Month:** {format_revenue_month(rev_month)}")

    if not config.is_feature_enabled("CSV_BUCKET") or not config.is_aws_configured():
        st.warning("CSV storage is not configured.")
        return

    try:
        s3 = get_s3_manager()
        files = s3.list_csv_files_for_project(project_id, rev_month)
    except Exception as e:
        logger.error(f"❌ Could not list CSV files for {project_id}: {e}")
        st.error(f"Could not list CSV files: {e}")
        return

    if not files:
        st.info("No CSV files found for this project and month.")
        return

    for file_info in files:
        col1, col2 = st.columns([3, 1])
        with col1:
            st.markdown(f"📄 `{file_info['filename']}`")
            st.caption(f"{file_info['size']:,} bytes • {file_info['last_modified'][:19].replace('T', ' ')}")
        with col2:
            url = s3.generate_presigned_url(file_info['key'])
            if url:
                st.link_button("Download", url, use_container_width=True)
            else:
                st.caption("Link unavailable")


__all__ = [
    "state_key",
    "get_view_state",
    "request_refresh",
    "pop_refresh",
    "show_remote_error",
    "load_frame",
    "render_finance_kpis",
    "render_client_cards",
    "render_text_filters",
    "render_status_filter",
    "clear_table_filters",
    "render_date_filter",
    "render_sort_buttons",
    "render_pagination",
    "render_table",
    "render_selectable_table",
    "render_selection_bar",
    "after_bulk_action",
    "import_mis_dialog",
    "import_leads_dialog",
    "csv_files_dialog",
]
