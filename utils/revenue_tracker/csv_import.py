# utils/revenue_tracker/csv_import.py
"""
CSV import pipeline for MIS records and leads.

Two phases:
- parse(text): split lines, check required headers, normalize each row and
  drop rows without a primary key. Input errors come back on
  ParseResult.error; nothing is raised to the caller.
- submit(rows): read existing keys from the store, drop stored and in-batch
  duplicates, insert survivors in fixed-size chunks one after another.
  A failed chunk counts all its rows as failed; earlier chunks stay written.

Lines are split naively on commas, so quoted fields containing commas or
newlines are not supported.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set

from utils.config import config
from .constants import (
    CONFLICT_MARKERS,
    DEFAULT_IMPORT_CHUNK_SIZE,
    DEFAULT_LOOKUP_CHUNK_SIZE,
    LEADS_BOOLEAN_FIELDS,
    LEADS_DATE_FIELDS,
    LEADS_NUMERIC_FIELDS,
    LEADS_REQUIRED_HEADERS,
    LEADS_SAMPLE_ROW,
    LEADS_TEXT_FIELDS,
    MIS_NUMERIC_FIELDS,
    MIS_REQUIRED_HEADERS,
    MIS_SAMPLE_ROW,
    SEQUENCE_CONFLICT_HELP,
    UNIQUE_VIOLATION_CODE,
)
from .normalizers import normalize_date, normalize_text, to_boolean, to_number

logger = logging.getLogger(__name__)


# =============================================================================
# ERRORS AND RESULTS
# =============================================================================

class CsvImportError(Exception):
    """Base class for CSV input errors"""
    title = "Import failed"


class MissingDataError(CsvImportError):
    title = "Invalid CSV"

    def __init__(self, message: str = "CSV must include a header and at least one row."):
        super().__init__(message)


class MissingHeadersError(CsvImportError):
    title = "Missing headers"

    def __init__(self, missing: Sequence[str]):
        self.missing = list(missing)
        super().__init__(f"Add: {', '.join(self.missing)}")


@dataclass
class ParseResult:
    rows: List[Dict[str, Any]] = field(default_factory=list)
    dropped_rows: int = 0
    error: Optional[CsvImportError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ImportSummary:
    processed: int = 0
    inserted: int = 0
    skipped: int = 0
    failed: int = 0
    conflict: bool = False
    errors: List[str] = field(default_factory=list)

    def describe(self) -> str:
        return (
            f"Processed: {self.processed} • Inserted: {self.inserted} • "
            f"Skipped: {self.skipped} • Failed: {self.failed}"
        )


def read_uploaded_text(uploaded_file=None, pasted_text: Optional[str] = None) -> str:
    """
    Raw CSV text from pasted text or an uploaded file.

    Pasted text wins when both are given. Files are decoded as UTF-8 with
    any byte-order mark stripped.
    """
    if pasted_text and pasted_text.strip():
        return pasted_text
    if uploaded_file is None:
        return ""
    data = uploaded_file.getvalue() if hasattr(uploaded_file, "getvalue") else uploaded_file.read()
    if isinstance(data, str):
        return data.lstrip("\ufeff")
    return data.decode("utf-8-sig", errors="replace")


def _chunks(items: Sequence, size: int):
    for start in range(0, len(items), size):
        yield items[start:start + size]


# =============================================================================
# BASE IMPORTER
# =============================================================================

class BaseCsvImporter:
    """
    Shared parse / dedup / chunked-insert logic.

    Subclasses define the target table, required headers, row mapping and
    the dedup key, plus how existing keys are read from the store.
    """

    table_name: str = ""
    required_headers: List[str] = []
    sample_row: str = ""
    label: str = "records"

    def __init__(self, queries, chunk_size: Optional[int] = None, lookup_chunk_size: Optional[int] = None):
        self.queries = queries
        self.chunk_size = chunk_size or config.get_app_setting("IMPORT_CHUNK_SIZE", DEFAULT_IMPORT_CHUNK_SIZE)
        self.lookup_chunk_size = lookup_chunk_size or config.get_app_setting(
            "LEAD_LOOKUP_CHUNK_SIZE", DEFAULT_LOOKUP_CHUNK_SIZE
        )

    @property
    def sample_header(self) -> str:
        return ",".join(self.required_headers)

    # ==================== PARSE ====================

    def parse(self, text: str) -> ParseResult:
        try:
            rows, dropped = self._parse(text or "")
        except CsvImportError as e:
            logger.warning(f"{self.label} CSV rejected: {e}")
            return ParseResult(error=e)

        if dropped:
            logger.info(f"{self.label} CSV: dropped {dropped} row(s) without a primary key")
        logger.info(f"{self.label} CSV validated: {len(rows)} valid row(s)")
        return ParseResult(rows=rows, dropped_rows=dropped)

    def _parse(self, text: str):
        lines = [line for line in text.splitlines() if line.strip()]
        if len(lines) < 2:
            raise MissingDataError()

        headers = [h.strip() for h in lines[0].split(",")]
        header_set = {h.lower() for h in headers}
        missing = [h for h in self.required_headers if h not in header_set]
        if missing:
            raise MissingHeadersError(missing)

        rows = []
        dropped = 0
        for line in lines[1:]:
            cols = line.split(",")
            record = {}
            for idx, header in enumerate(headers):
                record[header.lower()] = cols[idx].strip() if idx < len(cols) else ""
            row = self.map_row(record)
            if self.has_primary_key(row):
                rows.append(row)
            else:
                dropped += 1
        return rows, dropped

    def map_row(self, record: Dict[str, str]) -> Dict[str, Any]:
        raise NotImplementedError

    def has_primary_key(self, row: Dict[str, Any]) -> bool:
        raise NotImplementedError

    # ==================== SUBMIT ====================

    def dedup_key(self, row: Dict[str, Any]) -> str:
        raise NotImplementedError

    def existing_keys(self, rows: List[Dict[str, Any]]) -> Set[str]:
        raise NotImplementedError

    def is_conflict(self, error) -> bool:
        return False

    def submit(self, rows: List[Dict[str, Any]]) -> ImportSummary:
        summary = ImportSummary(processed=len(rows))
        if not rows:
            return summary

        existing = self.existing_keys(rows)

        seen: Set[str] = set()
        to_insert = []
        for row in rows:
            key = self.dedup_key(row)
            if key in existing or key in seen:
                continue
            seen.add(key)
            to_insert.append(row)

        for chunk in _chunks(to_insert, self.chunk_size):
            result = self.queries.insert_records(self.table_name, list(chunk))
            if result.error is not None:
                summary.failed += len(chunk)
                summary.errors.append(result.error.message)
                if self.is_conflict(result.error):
                    summary.conflict = True
            else:
                summary.inserted += len(chunk)

        summary.skipped = summary.processed - summary.inserted - summary.failed
        logger.info(f"{self.label} import complete: {summary.describe()}")
        if summary.conflict:
            logger.warning(f"⚠️ {self.table_name}: sequence conflict detected on insert")
        return summary


# =============================================================================
# MIS RECORDS
# =============================================================================

class MisCsvImporter(BaseCsvImporter):
    """
    MIS rows keyed by (rev_month, customer_id, project_id).

    Usage:
        importer = MisCsvImporter(RevenueQueries())
        parsed = importer.parse(text)
        if parsed.ok:
            summary = importer.submit(parsed.rows)
    """

    table_name = "mis_records"
    required_headers = MIS_REQUIRED_HEADERS
    sample_row = MIS_SAMPLE_ROW
    label = "MIS"

    def map_row(self, record: Dict[str, str]) -> Dict[str, Any]:
        row = {
            "rev_month": normalize_date(record.get("rev_month")),
            "customer_name": record.get("customer_name", "").strip(),
            "customer_id": record.get("customer_id", "").strip(),
            "project_id": record.get("project_id", "").strip(),
            "project_name": record.get("project_name", "").strip(),
            "lob": record.get("lob", "").strip(),
        }
        for name in MIS_NUMERIC_FIELDS:
            row[name] = to_number(record.get(name))
        return row

    def has_primary_key(self, row: Dict[str, Any]) -> bool:
        return bool(row.get("rev_month") and row.get("customer_id") and row.get("project_id"))

    def dedup_key(self, row: Dict[str, Any]) -> str:
        rev_month = str(row.get("rev_month") or "")[:10]
        return f"{rev_month}|{row.get('customer_id') or ''}|{row.get('project_id') or ''}"

    def existing_keys(self, rows: List[Dict[str, Any]]) -> Set[str]:
        existing: Set[str] = set()
        months = sorted({row["rev_month"] for row in rows if row.get("rev_month")})
        for month in months:
            result = self.queries.get_existing_mis_keys(month)
            if result.error is not None:
                logger.warning(f"Existing-key read for {month} failed, continuing without it: {result.error.message}")
                continue
            for rev_month, customer_id, project_id in result.data:
                existing.add(f"{str(rev_month)[:10]}|{customer_id}|{project_id}")
        return existing

    def is_conflict(self, error) -> bool:
        text = f"{error.message or ''} {error.details or ''}".lower()
        return any(marker in text for marker in CONFLICT_MARKERS) or error.code == UNIQUE_VIOLATION_CODE


# =============================================================================
# LEADS
# =============================================================================

class LeadsCsvImporter(BaseCsvImporter):
    """Lead rows keyed by lead_id; existing ids are read in IN-list chunks"""

    table_name = "leads"
    required_headers = LEADS_REQUIRED_HEADERS
    sample_row = LEADS_SAMPLE_ROW
    label = "Leads"

    def map_row(self, record: Dict[str, str]) -> Dict[str, Any]:
        row: Dict[str, Any] = {name: normalize_text(record.get(name)) for name in LEADS_TEXT_FIELDS}
        for name in LEADS_NUMERIC_FIELDS:
            row[name] = to_number(record.get(name))
        for name in LEADS_BOOLEAN_FIELDS:
            row[name] = to_boolean(record.get(name))
        for name in LEADS_DATE_FIELDS:
            row[name] = normalize_date(record.get(name))
        row["original_work_completion_date"] = normalize_date(record.get("work_completion_date"))
        return row

    def has_primary_key(self, row: Dict[str, Any]) -> bool:
        return bool(row.get("lead_id"))

    def dedup_key(self, row: Dict[str, Any]) -> str:
        return row.get("lead_id") or ""

    def existing_keys(self, rows: List[Dict[str, Any]]) -> Set[str]:
        existing: Set[str] = set()
        lead_ids = list(dict.fromkeys(row["lead_id"] for row in rows if row.get("lead_id")))
        for chunk in _chunks(lead_ids, self.lookup_chunk_size):
            result = self.queries.get_existing_lead_ids(list(chunk))
            if result.error is not None:
                logger.warning(f"Existing lead_id read failed, continuing without it: {result.error.message}")
                continue
            existing.update(result.data)
        return existing


__all__ = [
    "CsvImportError",
    "MissingDataError",
    "MissingHeadersError",
    "ParseResult",
    "ImportSummary",
    "BaseCsvImporter",
    "MisCsvImporter",
    "LeadsCsvImporter",
    "SEQUENCE_CONFLICT_HELP",
    "read_uploaded_text",
]
