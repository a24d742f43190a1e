# utils/revenue_tracker/tables.py
"""
SQLAlchemy Core table definitions for the revenue tracker store.

Approvals are nullable booleans (NULL = pending). Serial columns (`sl_no`, `id`)
are owned by the database and never sent on insert.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    func,
)

metadata = MetaData()

mis_records = Table(
    "mis_records",
    metadata,
    Column("sl_no", Integer, primary_key=True, autoincrement=True),
    Column("rev_month", Date, nullable=False, index=True),
    Column("customer_name", String),
    Column("customer_id", String, nullable=False),
    Column("project_id", String, nullable=False),
    Column("project_name", String),
    Column("revenue", Numeric(asdecimal=False)),
    Column("approved_cost", Numeric(asdecimal=False)),
    Column("unapproved_lead_count", Numeric(asdecimal=False)),
    Column("unapproved_lead_cost", Numeric(asdecimal=False)),
    Column("lob", String),
    Column("margin", Numeric(asdecimal=False)),
    Column("created_at", DateTime, server_default=func.now()),
)

validations = Table(
    "validations",
    metadata,
    Column("validation_file_id", String, primary_key=True),
    Column("sl_no", Integer),
    Column("customer_id", String),
    Column("customer_name", String),
    Column("project_id", String),
    Column("project_name", String),
    Column("rev_month", Date),
    Column("revenue", Numeric(asdecimal=False)),
    Column("validation_status", String, server_default="Pending"),
    Column("validation_approval_at", DateTime),
)

leads = Table(
    "leads",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("lead_id", String, nullable=False, index=True),
    Column("user_id", String),
    Column("cost", Numeric(asdecimal=False)),
    Column("lead_type", String),
    Column("project_id", String, index=True),
    Column("projectid", String),
    Column("project_name", String),
    Column("original_work_completion_date", Date),
    Column("revised_work_completion_date", Date),
    Column("final_work_completion_date", Date),
    Column("unit_basis_commercial", Numeric(asdecimal=False)),
    Column("project_incharge_approval", Boolean),
    Column("project_incharge_approval_date", DateTime),
    Column("client_incharge_approval", Boolean),
    Column("client_incharge_approval_date", DateTime),
    Column("zone", String),
    Column("state", String),
    Column("city", String),
    Column("tc_code", String),
    Column("role", String),
    Column("shift", String),
    Column("created_at", DateTime, server_default=func.now()),
)

active_workers = Table(
    "active_workers",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("record_date", Date, nullable=False),
    Column("project_id", String),
    Column("worker_count", Integer),
)

__all__ = [
    "metadata",
    "mis_records",
    "validations",
    "leads",
    "active_workers",
]
