# utils/revenue_tracker/__init__.py
"""
Revenue Tracker Module

Utilities for the finance and client revenue pages.
All components are self-contained within this module.

Components:
- tables: SQLAlchemy table definitions
- normalizers: Date / number / boolean coercion for CSV cells
- formatters: Display strings and status badges
- queries: Data access returning (data, error) results
- csv_import: MIS / leads CSV import pipeline
- view_state: Filter / sort / pagination / selection state per table
- metrics: KPI calculations and aggregations
- charts: Altair visualizations
- export: CSV text and Excel report generation
- fragments: Streamlit widgets and dialogs shared by the pages

Usage:
    from utils.revenue_tracker import (
        RevenueQueries,
        MisFilters,
        RevenueMetrics,
        RevenueCharts,
        TableViewState,
    )
"""

from .queries import RevenueQueries, MisFilters, LeadFilters, QueryResult, RemoteError
from .csv_import import MisCsvImporter, LeadsCsvImporter, ImportSummary, ParseResult
from .view_state import TableViewState, DateFilterMenu, visible_page_window
from .metrics import RevenueMetrics
from .charts import RevenueCharts
from .export import RevenueExport, records_to_csv, timestamped_filename

# Constants
from .constants import (
    COLORS,
    MONTH_ORDER,
    FINANCE_PAGE_ROLES,
    CLIENT_PAGE_ROLES,
    FINANCE_PAGE_SIZE,
    LEADS_PAGE_SIZE,
    CLIENT_PAGE_SIZE,
    STATUS_OPTIONS,
)

__all__ = [
    # Classes
    'RevenueQueries',
    'MisFilters',
    'LeadFilters',
    'QueryResult',
    'RemoteError',
    'MisCsvImporter',
    'LeadsCsvImporter',
    'ImportSummary',
    'ParseResult',
    'TableViewState',
    'DateFilterMenu',
    'RevenueMetrics',
    'RevenueCharts',
    'RevenueExport',

    # Functions
    'visible_page_window',
    'records_to_csv',
    'timestamped_filename',

    # Constants
    'COLORS',
    'MONTH_ORDER',
    'FINANCE_PAGE_ROLES',
    'CLIENT_PAGE_ROLES',
    'FINANCE_PAGE_SIZE',
    'LEADS_PAGE_SIZE',
    'CLIENT_PAGE_SIZE',
    'STATUS_OPTIONS',
]

__version__ = '1.0.0'
