# utils/revenue_tracker/constants.py
"""
Constants for the Revenue Tracker Module

Centralized configuration for:
- Role groups per page
- CSV import headers and sample rows
- Approval / status vocabularies
- Color schemes and chart settings
- Table page sizes
- Export settings
"""

# =====================================================================
# ROLE DEFINITIONS
# =====================================================================

# Finance dashboard, leads drill-down, imports
FINANCE_PAGE_ROLES = ['finance', 'admin']

# Client dashboard, validations, client leads
CLIENT_PAGE_ROLES = ['client']

# =====================================================================
# CSV IMPORT
# =====================================================================

MIS_REQUIRED_HEADERS = [
    "rev_month",
    "customer_name",
    "customer_id",
    "project_id",
    "project_name",
    "revenue",
    "approved_cost",
    "unapproved_lead_count",
    "unapproved_lead_cost",
    "lob",
    "margin",
]

MIS_NUMERIC_FIELDS = [
    "revenue",
    "approved_cost",
    "unapproved_lead_count",
    "unapproved_lead_cost",
    "margin",
]

LEADS_REQUIRED_HEADERS = [
    "lead_id",
    "project_id",
    "project_name",
    "work_completion_date",
    "unit_basis_commercial",
    "project_incharge_approval",
    "project_incharge_approval_date",
    "client_incharge_approval",
    "client_incharge_approval_date",
    "user_id",
    "cost",
    "zone",
    "state",
    "city",
    "tc_code",
    "role",
    "shift",
]

LEADS_TEXT_FIELDS = [
    "lead_id", "user_id", "project_id", "projectid", "project_name", "lead_type",
    "zone", "state", "city", "tc_code", "role", "shift",
]
LEADS_NUMERIC_FIELDS = ["cost", "unit_basis_commercial"]
LEADS_BOOLEAN_FIELDS = ["project_incharge_approval", "client_incharge_approval"]
LEADS_DATE_FIELDS = ["project_incharge_approval_date", "client_incharge_approval_date"]

MIS_SAMPLE_ROW = "2025-02-01,ACME INC,C001,P001,Project Alpha,100000,40000,0,0,Security,60000"
LEADS_SAMPLE_ROW = (
    "L123,P001,Project Alpha,2025-02-01,250,true,2025-02-05,true,2025-02-10,"
    "U001,250,North,StateX,CityY,TC123,Guard,Day"
)

DEFAULT_IMPORT_CHUNK_SIZE = 500
DEFAULT_LOOKUP_CHUNK_SIZE = 1000
DEFAULT_FETCH_PAGE_SIZE = 1000

# Postgres unique_violation
UNIQUE_VIOLATION_CODE = "23505"
CONFLICT_MARKERS = ("duplicate key value", "conflict")

SEQUENCE_CONFLICT_HELP = (
    "select setval(pg_get_serial_sequence('mis_records','sl_no'), "
    "coalesce((select max(sl_no) from mis_records), 0) + 1, false);"
)

# =====================================================================
# BOOLEAN TOKENS
# =====================================================================

TRUE_TOKENS = {"true", "1", "yes", "approved"}
FALSE_TOKENS = {"false", "0", "no", "rejected"}

# Approval filter tokens (leads)
APPROVED_FILTER_TOKENS = {"true", "approved", "approve"}
REJECTED_FILTER_TOKENS = {"false", "rejected", "reject"}

# =====================================================================
# STATUS / APPROVAL VOCABULARY
# =====================================================================

STATUS_APPROVED = "Approved"
STATUS_PENDING = "Pending"
STATUS_REJECTED = "Rejected"

STATUS_OPTIONS = ["All", STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED]

APPROVAL_TYPES = {
    "client": "client_incharge_approval",
    "project": "project_incharge_approval",
}

# Badge variant and hex color per lower-cased status
STATUS_BADGES = {
    "approved": ("success", "#10b981"),
    "pending": ("warning", "#f59e0b"),
    "rejected": ("error", "#ef4444"),
}
DEFAULT_BADGE = ("default", "#6b7280")

EMPTY_DISPLAY = "—"

# =====================================================================
# COLOR SCHEME
# =====================================================================

CHART_PALETTE = [
    "#3b82f6",  # Blue
    "#8b5cf6",  # Violet
    "#ec4899",  # Pink
    "#f59e0b",  # Amber
    "#10b981",  # Emerald
    "#06b6d4",  # Cyan
    "#6366f1",  # Indigo
    "#f43f5e",  # Rose
]

COLORS = {
    "revenue": "#3b82f6",
    "projects": "#8b5cf6",
    "approved_cost": "#10b981",
    "unapproved_cost": "#f43f5e",
    "workers": "#06b6d4",
    "text_dark": "#333333",
    "grid": "#e0e0e0",
}

# =====================================================================
# MONTH ORDER
# =====================================================================

MONTH_ORDER = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"
]

# =====================================================================
# CHART DIMENSIONS
# =====================================================================

CHART_HEIGHT = 320
PIE_CHART_HEIGHT = 300
TREND_MONTHS = 5
TOP_N_SHARE = 8

# =====================================================================
# TABLES
# =====================================================================

FINANCE_PAGE_SIZE = 10
LEADS_PAGE_SIZE = 10
CLIENT_PAGE_SIZE = 5
PAGE_WINDOW = 3

# Session-state key prefix for page data (cleared on logout)
STATE_PREFIX = "rt_"

# =====================================================================
# UNITS
# =====================================================================

LAKH = 100_000
CRORE = 10_000_000

# =====================================================================
# EXPORT SETTINGS
# =====================================================================

EXCEL_STYLES = {
    "header_fill_color": "3b82f6",
    "header_font_color": "FFFFFF",
    "currency_format": '"₹"#,##,##0',
    "number_format": '#,##0',
    "date_format": 'YYYY-MM-DD',
}
