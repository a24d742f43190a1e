# utils/revenue_tracker/export.py
"""
CSV and Excel export for the Revenue Tracker

- CSV: every field quoted, header row = displayed column titles
- Excel: MIS records workbook with styled header and currency formats

Uses pandas for CSV text and openpyxl for workbook formatting.
"""

import csv
import logging
from datetime import datetime
from io import BytesIO
from typing import Any, Callable, Dict, List, NamedTuple, Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from .constants import EXCEL_STYLES
from .formatters import format_approval, format_revenue_month
from .metrics import RevenueMetrics

logger = logging.getLogger(__name__)


class ExportColumn(NamedTuple):
    title: str
    field: str
    formatter: Optional[Callable[[Any], str]] = None


def _plain(value: Any) -> str:
    """Raw cell text: missing -> "", whole floats without the trailing .0"""
    if value is None:
        return ""
    if isinstance(value, float):
        if pd.isna(value):
            return ""
        return str(int(value)) if value.is_integer() else str(value)
    if value is pd.NaT:
        return ""
    return str(value)


MIS_EXPORT_COLUMNS = [
    ExportColumn("SL No", "sl_no"),
    ExportColumn("Rev Month", "rev_month", format_revenue_month),
    ExportColumn("Customer Name", "customer_name"),
    ExportColumn("Project ID", "project_id"),
    ExportColumn("Project Name", "project_name"),
    ExportColumn("Revenue", "revenue"),
    ExportColumn("Approved Cost", "approved_cost"),
    ExportColumn("Unapproved Lead Count", "unapproved_lead_count"),
    ExportColumn("Unapproved Lead Cost", "unapproved_lead_cost"),
    ExportColumn("LOB", "lob"),
    ExportColumn("Margin", "margin"),
]

LEAD_EXPORT_COLUMNS = [
    ExportColumn("User ID", "user_id"),
    ExportColumn("Cost", "cost"),
    ExportColumn("Lead Type", "lead_type"),
    ExportColumn("Lead ID", "lead_id"),
    ExportColumn("Project ID", "project_id"),
    ExportColumn("Project ID (Alt)", "projectid"),
    ExportColumn("Project Name", "project_name"),
    ExportColumn("Original Work Completion Date", "original_work_completion_date"),
    ExportColumn("Revised Work Completion Date", "revised_work_completion_date"),
    ExportColumn("Final Work Completion Date", "final_work_completion_date"),
    ExportColumn("Unit Basis Commercial", "unit_basis_commercial"),
    ExportColumn("Project Incharge Approval", "project_incharge_approval", format_approval),
    ExportColumn("Project Incharge Approval Date", "project_incharge_approval_date"),
    ExportColumn("Client Incharge Approval", "client_incharge_approval", format_approval),
    ExportColumn("Client Incharge Approval Date", "client_incharge_approval_date"),
    ExportColumn("Zone", "zone"),
    ExportColumn("City", "city"),
    ExportColumn("State", "state"),
    ExportColumn("TC Code", "tc_code"),
    ExportColumn("Role", "role"),
    ExportColumn("Shift", "shift"),
]

VALIDATION_EXPORT_COLUMNS = [
    ExportColumn("Validation ID", "validation_file_id"),
    ExportColumn("SL No", "sl_no"),
    ExportColumn("Customer Name", "customer_name"),
    ExportColumn("Project ID", "project_id"),
    ExportColumn("Project Name", "project_name"),
    ExportColumn("Rev Month", "rev_month", format_revenue_month),
    ExportColumn("Revenue", "revenue"),
    ExportColumn("Status", "validation_status"),
    ExportColumn("Approved At", "validation_approval_at"),
]

MONEY_FIELDS = {"revenue", "approved_cost", "unapproved_lead_cost", "margin"}


def to_display_frame(df: pd.DataFrame, columns: List[ExportColumn]) -> pd.DataFrame:
    """Frame with one string column per export column, titled for display"""
    data = {}
    for column in columns:
        values = df[column.field] if column.field in df.columns else pd.Series([None] * len(df), index=df.index)
        formatter = column.formatter or _plain
        data[column.title] = [formatter(v) for v in values.tolist()]
    return pd.DataFrame(data, columns=[c.title for c in columns])


def records_to_csv(df: pd.DataFrame, columns: List[ExportColumn]) -> str:
    """Quoted CSV text (header row included) for a download button"""
    frame = to_display_frame(df, columns)
    return frame.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def timestamped_filename(stem: str, ext: str = "csv", now: Optional[datetime] = None) -> str:
    """stem_YYYYmmdd_HHMMSS.ext"""
    now = now or datetime.now()
    return f"{stem}_{now.strftime('%Y%m%d_%H%M%S')}.{ext}"


class RevenueExport:
    """
    Excel report generator for MIS records.

    Usage:
        exporter = RevenueExport()
        excel_bytes = exporter.create_mis_workbook(filtered_df, filters)

        st.download_button(
            label="Download Excel",
            data=excel_bytes,
            file_name=timestamped_filename("mis_records", "xlsx"),
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
    """

    def __init__(self):
        self.wb = None
        self._init_styles()

    def _init_styles(self):
        self.header_fill = PatternFill(
            start_color=EXCEL_STYLES['header_fill_color'],
            end_color=EXCEL_STYLES['header_fill_color'],
            fill_type='solid'
        )
        self.header_font = Font(bold=True, color=EXCEL_STYLES['header_font_color'], size=11)
        self.title_font = Font(bold=True, size=14)

        thin_border = Side(style='thin', color='D0D0D0')
        self.cell_border = Border(left=thin_border, right=thin_border, top=thin_border, bottom=thin_border)

        self.center_align = Alignment(horizontal='center', vertical='center')
        self.currency_format = EXCEL_STYLES['currency_format']
        self.number_format = EXCEL_STYLES['number_format']

    # =========================================================================
    # MAIN EXPORT METHOD
    # =========================================================================

    def create_mis_workbook(self, df: pd.DataFrame, filters: Optional[Dict] = None) -> BytesIO:
        """
        Create a workbook with a summary sheet and the MIS records.

        Args:
            df: MIS records (already filtered / sorted as displayed)
            filters: Active filter labels, shown on the summary sheet

        Returns:
            BytesIO containing Excel file
        """
        self.wb = Workbook()
        self._create_summary_sheet(df, filters or {})
        self._create_records_sheet(df)

        if 'Sheet' in self.wb.sheetnames:
            del self.wb['Sheet']

        output = BytesIO()
        self.wb.save(output)
        output.seek(0)
        logger.info(f"📥 Excel export built: {len(df)} MIS rows")
        return output

    # =========================================================================
    # SHEETS
    # =========================================================================

    def _create_summary_sheet(self, df: pd.DataFrame, filters: Dict):
        ws = self.wb.create_sheet("Summary")
        ws['A1'] = "MIS Records Export"
        ws['A1'].font = self.title_font
        ws['A2'] = f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}"

        row = 4
        for key, value in filters.items():
            ws.cell(row=row, column=1, value=str(key))
            ws.cell(row=row, column=2, value=str(value))
            row += 1

        totals = RevenueMetrics(df).summary()
        row += 1
        for label, key, fmt in (
            ("Records", "record_count", self.number_format),
            ("Projects", "project_count", self.number_format),
            ("Total Revenue", "total_revenue", self.currency_format),
            ("Approved Cost", "total_approved_cost", self.currency_format),
            ("Unapproved Lead Cost", "total_unapproved_lead_cost", self.currency_format),
            ("Margin", "total_margin", self.currency_format),
        ):
            ws.cell(row=row, column=1, value=label).font = Font(bold=True)
            cell = ws.cell(row=row, column=2, value=totals[key])
            cell.number_format = fmt
            row += 1

        ws.column_dimensions['A'].width = 24
        ws.column_dimensions['B'].width = 24

    def _create_records_sheet(self, df: pd.DataFrame):
        ws = self.wb.create_sheet("MIS Records")

        for col_idx, column in enumerate(MIS_EXPORT_COLUMNS, start=1):
            cell = ws.cell(row=1, column=col_idx, value=column.title)
            cell.fill = self.header_fill
            cell.font = self.header_font
            cell.alignment = self.center_align
            cell.border = self.cell_border

        for row_idx, record in enumerate(df.to_dict("records"), start=2):
            for col_idx, column in enumerate(MIS_EXPORT_COLUMNS, start=1):
                value = record.get(column.field)
                if column.formatter is not None:
                    value = column.formatter(value)
                elif value is not None and not isinstance(value, str) and pd.isna(value):
                    value = None
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.border = self.cell_border
                if column.field in MONEY_FIELDS:
                    cell.number_format = self.currency_format

        for col_idx, column in enumerate(MIS_EXPORT_COLUMNS, start=1):
            ws.column_dimensions[get_column_letter(col_idx)].width = max(12, len(column.title) + 4)

        ws.freeze_panes = 'A2'


__all__ = [
    "ExportColumn",
    "MIS_EXPORT_COLUMNS",
    "LEAD_EXPORT_COLUMNS",
    "VALIDATION_EXPORT_COLUMNS",
    "to_display_frame",
    "records_to_csv",
    "timestamped_filename",
    "RevenueExport",
]
