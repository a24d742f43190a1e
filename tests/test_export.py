from datetime import datetime
from io import BytesIO

import pandas as pd
from openpyxl import load_workbook

from utils.revenue_tracker.export import (
    LEAD_EXPORT_COLUMNS,
    MIS_EXPORT_COLUMNS,
    ExportColumn,
    RevenueExport,
    records_to_csv,
    timestamped_filename,
    to_display_frame,
)


def mis_frame():
    return pd.DataFrame([
        {"sl_no": 1, "rev_month": "2025-02-01", "customer_name": "ACME, INC", "project_id": "P001",
         "project_name": "Alpha", "revenue": 100000.0, "approved_cost": 40000.5, "unapproved_lead_count": 2.0,
         "unapproved_lead_cost": None, "lob": "Security", "margin": 59999.5},
    ])


def test_csv_header_and_values_are_quoted():
    lines = records_to_csv(mis_frame(), MIS_EXPORT_COLUMNS).splitlines()

    assert lines[0].startswith('"SL No","Rev Month","Customer Name"')
    assert lines[1] == (
        '"1","Feb 2025","ACME, INC","P001","Alpha","100000","40000.5","2","","Security","59999.5"'
    )


def test_lead_csv_formats_approvals():
    leads_df = pd.DataFrame([
        {"lead_id": "L1", "client_incharge_approval": True, "project_incharge_approval": None},
    ])
    frame = to_display_frame(leads_df, LEAD_EXPORT_COLUMNS)

    assert frame.loc[0, "Client Incharge Approval"] == "Approved"
    assert frame.loc[0, "Project Incharge Approval"] == "Pending"
    # Columns missing from the frame export as empty cells
    assert frame.loc[0, "Zone"] == ""


def test_empty_frame_exports_header_only():
    text = records_to_csv(pd.DataFrame(), [ExportColumn("Lead ID", "lead_id")])
    assert text == '"Lead ID"\n'


def test_timestamped_filename():
    now = datetime(2025, 2, 14, 9, 5, 7)
    assert timestamped_filename("mis_records", now=now) == "mis_records_20250214_090507.csv"
    assert timestamped_filename("mis_records", "xlsx", now=now).endswith(".xlsx")


def test_mis_workbook():
    output = RevenueExport().create_mis_workbook(mis_frame(), {"Filter: customer_name": "acme"})
    wb = load_workbook(BytesIO(output.getvalue()))

    assert wb.sheetnames == ["Summary", "MIS Records"]

    summary = wb["Summary"]
    assert summary["A1"].value == "MIS Records Export"
    assert summary["A4"].value == "Filter: customer_name"
    assert summary["B4"].value == "acme"

    records = wb["MIS Records"]
    assert records["A1"].value == "SL No"
    assert records["B2"].value == "Feb 2025"
    assert records["F2"].value == 100000
    assert records["I2"].value is None
    assert records.freeze_panes == "A2"
