# utils/revenue_tracker/queries.py
"""
Remote data access for the Revenue Tracker

Handles all database interactions:
- MIS records and validations (batched fetch ordered by sl_no)
- Leads (paged fetch, approval / date / location filters)
- Active workers (chart data)
- Import collaborators (existing-key reads, chunk inserts)
- Approval, status and revised-date updates

Every public method returns a QueryResult(data, error) and never raises.
Remote failures are captured as RemoteError values. A missing table
degrades a fetch to an empty result flagged with is_table_missing.
"""

import calendar
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Set, Tuple, Union

import pandas as pd
from sqlalchemy import Date, DateTime, Table, func, select, update

from utils.config import config
from utils.db import get_db_engine, is_missing_table_error
from .constants import (
    APPROVAL_TYPES,
    APPROVED_FILTER_TOKENS,
    DEFAULT_FETCH_PAGE_SIZE,
    REJECTED_FILTER_TOKENS,
)
from .normalizers import normalize_date
from .tables import active_workers, leads, mis_records, validations

logger = logging.getLogger(__name__)

TABLES = {
    "mis_records": mis_records,
    "validations": validations,
    "leads": leads,
    "active_workers": active_workers,
}


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass
class RemoteError:
    """Structured remote-store error (message / details / code / hint)"""
    message: str
    details: Optional[str] = None
    code: Optional[str] = None
    hint: Optional[str] = None
    is_table_missing: bool = False

    @classmethod
    def from_exception(cls, exc: Exception) -> "RemoteError":
        orig = getattr(exc, "orig", None)
        code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
        diag = getattr(orig, "diag", None)

        text = str(orig) if orig is not None else ""
        if not text.strip():
            text = str(exc) or exc.__class__.__name__
        lines = [line.strip() for line in text.strip().splitlines() if line.strip()]

        details = getattr(diag, "message_detail", None) if diag is not None else None
        if details is None and len(lines) > 1:
            details = " ".join(lines[1:])

        return cls(
            message=lines[0] if lines else exc.__class__.__name__,
            details=details,
            code=str(code) if code else None,
            hint=getattr(diag, "message_hint", None) if diag is not None else None,
            is_table_missing=is_missing_table_error(exc),
        )

    def describe(self) -> str:
        parts = [self.message]
        if self.details:
            parts.append(self.details)
        if self.code:
            parts.append(f"(code {self.code})")
        return " ".join(parts)


class QueryResult(NamedTuple):
    data: Any
    error: Optional[RemoteError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# =============================================================================
# FILTERS
# =============================================================================

@dataclass
class MisFilters:
    """
    Filter options for MIS records and validations.

    customer_name / project_name are case-insensitive substrings,
    the rest are equality filters. status only applies to validations.
    """
    customer_name: Optional[str] = None
    project_name: Optional[str] = None
    status: Optional[str] = None
    rev_month: Optional[str] = None
    customer_id: Optional[str] = None

    @classmethod
    def for_client(cls, client, **kwargs) -> "MisFilters":
        """Scope to a client: customer id when known, else customer name"""
        if client is not None and client.customer_id:
            return cls(customer_id=client.customer_id, **kwargs)
        if client is not None and client.customer_name:
            return cls(customer_name=client.customer_name, **kwargs)
        return cls(**kwargs)


@dataclass
class LeadFilters:
    project_incharge_approval: Optional[str] = None
    client_incharge_approval: Optional[str] = None
    work_date_from: Optional[str] = None
    work_date_to: Optional[str] = None
    client_date_from: Optional[str] = None
    client_date_to: Optional[str] = None
    rev_month: Optional[str] = None
    zone: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    role: Optional[str] = None
    shift: Optional[str] = None
    # Client sessions only see leads of their own projects
    project_ids: Optional[List[str]] = None


def normalize_approval_filter(value: Optional[str]) -> Optional[str]:
    """Map boolean-like filter tokens onto Approved / Rejected / Pending"""
    if value is None:
        return None
    token = str(value).strip().lower()
    if not token or token == "all":
        return None
    if token in APPROVED_FILTER_TOKENS:
        return "Approved"
    if token in REJECTED_FILTER_TOKENS:
        return "Rejected"
    if token == "pending":
        return "Pending"
    return str(value).strip()


def month_bounds(rev_month: str) -> Optional[Tuple[date, date]]:
    """First and last day of the month a "YYYY-MM[-DD]" value falls in"""
    try:
        year, month = int(str(rev_month)[0:4]), int(str(rev_month)[5:7])
        last_day = calendar.monthrange(year, month)[1]
        return date(year, month, 1), date(year, month, last_day)
    except (ValueError, TypeError):
        return None


# =============================================================================
# VALUE COERCION
# =============================================================================

def _to_iso(value: Any) -> Optional[str]:
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    # Timestamp is a datetime subclass
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _parse_date(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return value
    return value


def _parse_datetime(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            parsed = _parse_date(value)
            if isinstance(parsed, date):
                return datetime(parsed.year, parsed.month, parsed.day)
            return value
    return value


def coerce_row(table: Table, row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Keep only the table's columns and turn ISO strings into date objects.

    Strings that are not valid dates are passed through untouched so the
    database rejects them (failing the chunk).
    """
    prepared = {}
    for key, value in row.items():
        if key not in table.c:
            continue
        column_type = table.c[key].type
        if isinstance(column_type, DateTime):
            value = _parse_datetime(value)
        elif isinstance(column_type, Date):
            value = _parse_date(value)
        prepared[key] = value
    return prepared


def _frame(table: Table, rows: List[Dict[str, Any]]) -> pd.DataFrame:
    """Build a DataFrame with the table's columns and ISO strings for dates"""
    df = pd.DataFrame(rows, columns=[c.name for c in table.columns])
    for column in table.columns:
        if isinstance(column.type, (Date, DateTime)) and not df.empty:
            df[column.name] = df[column.name].map(_to_iso).astype(object)
    return df


# =============================================================================
# QUERIES
# =============================================================================

class RevenueQueries:
    """
    Data access for the revenue tracker.

    Usage:
        queries = RevenueQueries()

        result = queries.fetch_mis_records(MisFilters(customer_name="acme"))
        if result.error:
            ...
        df = result.data
    """

    def __init__(self, engine=None, page_size: Optional[int] = None):
        self._engine = engine
        self.page_size = page_size or config.get_app_setting("FETCH_PAGE_SIZE", DEFAULT_FETCH_PAGE_SIZE)

    @property
    def engine(self):
        """Lazy load database engine."""
        if self._engine is None:
            self._engine = get_db_engine()
        return self._engine

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _failure(self, name: str, exc: Exception) -> RemoteError:
        error = RemoteError.from_exception(exc)
        if error.is_table_missing:
            logger.warning(f"⚠️ {name}: table does not exist ({error.message})")
        else:
            logger.error(f"Error executing {name}: {error.describe()}")
        return error

    def _fetch_batched(self, table: Table, stmt, name: str) -> QueryResult:
        """Page through stmt in FETCH_PAGE_SIZE batches until a short batch"""
        rows: List[Dict[str, Any]] = []
        offset = 0
        try:
            with self.engine.connect() as conn:
                while True:
                    batch = conn.execute(stmt.limit(self.page_size).offset(offset)).mappings().all()
                    rows.extend(dict(r) for r in batch)
                    logger.debug(f"{name}: fetched batch at {offset}, total so far {len(rows)}")
                    if len(batch) < self.page_size:
                        break
                    offset += self.page_size
        except Exception as e:
            error = self._failure(name, e)
            if error.is_table_missing:
                return QueryResult(_frame(table, []), error)
            return QueryResult(_frame(table, rows), error)

        logger.info(f"{name} returned {len(rows)} rows")
        return QueryResult(_frame(table, rows), None)

    def _apply_record_filters(self, table: Table, stmt, filters: Optional[MisFilters], with_status: bool):
        if filters is None:
            return stmt
        if filters.customer_name:
            stmt = stmt.where(table.c.customer_name.ilike(f"%{filters.customer_name}%"))
        if filters.project_name:
            stmt = stmt.where(table.c.project_name.ilike(f"%{filters.project_name}%"))
        if with_status and filters.status and filters.status.lower() != "all":
            stmt = stmt.where(table.c.validation_status == filters.status)
        if filters.rev_month:
            month = normalize_date(filters.rev_month)
            if month:
                stmt = stmt.where(table.c.rev_month == _parse_date(month))
        if filters.customer_id:
            stmt = stmt.where(table.c.customer_id == filters.customer_id)
        return stmt

    def _approval_clause(self, column, value: Optional[str]):
        status = normalize_approval_filter(value)
        if status == "Approved":
            return column.is_(True)
        if status == "Rejected":
            return column.is_(False)
        if status == "Pending":
            return column.is_(None)
        if status is not None:
            logger.warning(f"Ignoring unknown approval filter value: {value!r}")
        return None

    def _apply_lead_filters(self, stmt, project_id: Optional[str], filters: Optional[LeadFilters]):
        if project_id:
            stmt = stmt.where(leads.c.project_id == project_id)
        if filters is None:
            return stmt

        if filters.project_ids is not None:
            stmt = stmt.where(leads.c.project_id.in_(list(filters.project_ids)))

        for column, value in (
            (leads.c.project_incharge_approval, filters.project_incharge_approval),
            (leads.c.client_incharge_approval, filters.client_incharge_approval),
        ):
            clause = self._approval_clause(column, value)
            if clause is not None:
                stmt = stmt.where(clause)

        for name in ("zone", "city", "state", "role", "shift"):
            value = getattr(filters, name)
            if value:
                stmt = stmt.where(leads.c[name] == value)

        work_date = leads.c.original_work_completion_date
        client_date = leads.c.client_incharge_approval_date
        if filters.work_date_from:
            stmt = stmt.where(work_date >= _parse_date(filters.work_date_from))
        if filters.work_date_to:
            stmt = stmt.where(work_date <= _parse_date(filters.work_date_to))
        if filters.client_date_from:
            stmt = stmt.where(client_date >= _parse_datetime(filters.client_date_from))
        if filters.client_date_to:
            # Inclusive of the whole end day
            end = _parse_date(filters.client_date_to)
            if isinstance(end, date):
                end = datetime(end.year, end.month, end.day, 23, 59, 59, 999999)
            stmt = stmt.where(client_date <= end)

        if filters.rev_month:
            bounds = month_bounds(filters.rev_month)
            if bounds:
                stmt = stmt.where(work_date >= bounds[0]).where(work_date <= bounds[1])
        return stmt

    # =========================================================================
    # FETCHES
    # =========================================================================

    def fetch_mis_records(self, filters: Optional[MisFilters] = None) -> QueryResult:
        """
        All MIS records matching filters, ordered by sl_no.

        MIS rows carry no status, so filters.status is ignored.
        """
        stmt = select(mis_records).order_by(mis_records.c.sl_no)
        stmt = self._apply_record_filters(mis_records, stmt, filters, with_status=False)
        return self._fetch_batched(mis_records, stmt, "fetch_mis_records")

    def fetch_validations(self, filters: Optional[MisFilters] = None) -> QueryResult:
        stmt = select(validations).order_by(validations.c.sl_no, validations.c.validation_file_id)
        stmt = self._apply_record_filters(validations, stmt, filters, with_status=True)
        return self._fetch_batched(validations, stmt, "fetch_validations")

    def fetch_leads(
        self,
        project_id: Optional[str] = None,
        filters: Optional[LeadFilters] = None,
        page: int = 0,
        page_size: int = 1000
    ) -> QueryResult:
        """
        One page of leads ordered by lead_id.

        Args:
            project_id: Restrict to one project
            filters: LeadFilters
            page: Zero-based page number
            page_size: Rows per page
        """
        stmt = select(leads).order_by(leads.c.lead_id)
        stmt = self._apply_lead_filters(stmt, project_id, filters)
        stmt = stmt.limit(page_size).offset(page * page_size)
        try:
            with self.engine.connect() as conn:
                rows = [dict(r) for r in conn.execute(stmt).mappings().all()]
        except Exception as e:
            error = self._failure("fetch_leads", e)
            return QueryResult(_frame(leads, []), error)

        logger.info(f"fetch_leads page {page} returned {len(rows)} rows (project_id={project_id})")
        return QueryResult(_frame(leads, rows), None)

    def fetch_all_leads(
        self,
        project_id: Optional[str] = None,
        filters: Optional[LeadFilters] = None
    ) -> QueryResult:
        """Every matching lead, fetched in batches (used for downloads)"""
        stmt = select(leads).order_by(leads.c.lead_id)
        stmt = self._apply_lead_filters(stmt, project_id, filters)
        return self._fetch_batched(leads, stmt, "fetch_all_leads")

    def fetch_active_workers(self) -> QueryResult:
        stmt = select(active_workers).order_by(active_workers.c.record_date)
        result = self._fetch_batched(active_workers, stmt, "fetch_active_workers")
        # Charts treat a missing table as "no data yet"
        if result.error is not None and result.error.is_table_missing:
            return QueryResult(result.data, None)
        return result

    # =========================================================================
    # IMPORT COLLABORATORS
    # =========================================================================

    def get_existing_mis_keys(self, rev_month: str) -> QueryResult:
        """(rev_month, customer_id, project_id) triples already stored for a month"""
        stmt = (
            select(mis_records.c.rev_month, mis_records.c.customer_id, mis_records.c.project_id)
            .where(mis_records.c.rev_month == _parse_date(rev_month))
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).all()
        except Exception as e:
            return QueryResult([], self._failure("get_existing_mis_keys", e))

        return QueryResult([(_to_iso(r[0]) or "", r[1] or "", r[2] or "") for r in rows], None)

    def get_existing_lead_ids(self, lead_ids: Sequence[str]) -> QueryResult:
        """Subset of lead_ids already stored (one IN query; callers chunk)"""
        if not lead_ids:
            return QueryResult(set(), None)
        stmt = select(leads.c.lead_id).where(leads.c.lead_id.in_(list(lead_ids)))
        try:
            with self.engine.connect() as conn:
                found: Set[str] = {r[0] for r in conn.execute(stmt).all()}
        except Exception as e:
            return QueryResult(set(), self._failure("get_existing_lead_ids", e))
        return QueryResult(found, None)

    def insert_records(self, table: Union[str, Table], rows: List[Dict[str, Any]]) -> QueryResult:
        """Insert rows in a single transaction; data is the number of rows written"""
        if isinstance(table, str):
            table = TABLES[table]
        if not rows:
            return QueryResult(0, None)

        prepared = [coerce_row(table, row) for row in rows]
        try:
            with self.engine.begin() as conn:
                conn.execute(table.insert(), prepared)
        except Exception as e:
            return QueryResult(0, self._failure(f"insert_records({table.name})", e))

        logger.info(f"✅ Inserted {len(prepared)} rows into {table.name}")
        return QueryResult(len(prepared), None)

    # =========================================================================
    # UPDATES
    # =========================================================================

    def _execute_update(self, stmt, name: str) -> QueryResult:
        try:
            with self.engine.begin() as conn:
                result = conn.execute(stmt)
        except Exception as e:
            return QueryResult(0, self._failure(name, e))
        logger.info(f"{name}: {result.rowcount} row(s) updated")
        return QueryResult(result.rowcount, None)

    @staticmethod
    def _approval_columns(approval_type: str) -> Optional[Tuple[str, str]]:
        column = APPROVAL_TYPES.get(approval_type, approval_type)
        if column not in APPROVAL_TYPES.values():
            logger.error(f"Unknown approval type: {approval_type}")
            return None
        return column, f"{column}_date"

    def update_lead_approval(
        self,
        lead_id: str,
        approval: Optional[bool],
        approval_type: str = "client"
    ) -> QueryResult:
        """
        Set one lead's approval (True / False / None for pending).

        The approval date is stamped with the server time when approved
        and cleared otherwise.
        """
        columns = self._approval_columns(approval_type)
        if columns is None:
            return QueryResult(0, RemoteError(f"Unknown approval type: {approval_type}"))
        column, date_column = columns
        stmt = (
            update(leads)
            .where(leads.c.lead_id == lead_id)
            .values({column: approval, date_column: func.now() if approval is True else None})
        )
        return self._execute_update(stmt, f"update_lead_approval({lead_id})")

    def bulk_update_lead_approval(
        self,
        lead_ids: Sequence[str],
        approved: bool,
        approval_type: str = "client"
    ) -> QueryResult:
        """Approve or reject many leads with one UPDATE ... WHERE lead_id IN (...)"""
        if not lead_ids:
            return QueryResult(0, None)
        columns = self._approval_columns(approval_type)
        if columns is None:
            return QueryResult(0, RemoteError(f"Unknown approval type: {approval_type}"))
        column, date_column = columns
        stmt = (
            update(leads)
            .where(leads.c.lead_id.in_(list(lead_ids)))
            .values({column: approved, date_column: func.now() if approved else None})
        )
        action = "approve" if approved else "reject"
        return self._execute_update(stmt, f"bulk {action} {len(lead_ids)} lead(s)")

    def bulk_update_validation_status(self, ids: Sequence[str], status: str) -> QueryResult:
        """Set validation_status and stamp validation_approval_at = now() in one request"""
        if not ids:
            return QueryResult(0, None)
        stmt = (
            update(validations)
            .where(validations.c.validation_file_id.in_(list(ids)))
            .values(validation_status=status, validation_approval_at=func.now())
        )
        return self._execute_update(stmt, f"set {len(ids)} validation(s) to {status}")

    def update_lead_revised_date(self, lead_id: str, revised_date: Optional[str]) -> QueryResult:
        """Set or clear the revised work completion date of the lead with this lead_id"""
        key = str(lead_id or "").strip()
        value = _parse_date(normalize_date(revised_date)) if revised_date else None
        stmt = update(leads).where(leads.c.lead_id == key).values(revised_work_completion_date=value)
        return self._execute_update(stmt, f"update_lead_revised_date({key})")


__all__ = [
    "RemoteError",
    "QueryResult",
    "MisFilters",
    "LeadFilters",
    "RevenueQueries",
    "TABLES",
    "coerce_row",
    "month_bounds",
    "normalize_approval_filter",
]
