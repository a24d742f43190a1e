# utils/revenue_tracker/metrics.py
"""
Aggregations for the Revenue Tracker dashboards

Handles all summary calculations over fetched frames:
- KPI totals (revenue, costs, margin, counts)
- Monthly project / revenue trend
- Revenue share by project or customer (top N + Others)
- LOB revenue vs approved cost
- Validation and lead approval counts
"""

import logging
from typing import Dict, Optional

import pandas as pd

from .constants import STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED, TOP_N_SHARE, TREND_MONTHS
from .formatters import format_approval, format_revenue_month

logger = logging.getLogger(__name__)


def _numeric(df: pd.DataFrame, column: str) -> pd.Series:
    if column not in df.columns:
        return pd.Series(0.0, index=df.index)
    return pd.to_numeric(df[column], errors="coerce").fillna(0.0)


class RevenueMetrics:
    """
    Summary calculations for MIS records / validations.

    Usage:
        metrics = RevenueMetrics(records_df)

        kpis = metrics.summary()
        monthly = metrics.monthly_summary(months=5)
        share = metrics.revenue_share(by="project_name")
    """

    def __init__(self, records_df: pd.DataFrame):
        self.records_df = records_df if records_df is not None else pd.DataFrame()

    # =========================================================================
    # KPI TOTALS
    # =========================================================================

    def summary(self) -> Dict:
        df = self.records_df
        if df.empty:
            return {
                "total_revenue": 0.0,
                "total_approved_cost": 0.0,
                "total_unapproved_lead_cost": 0.0,
                "unapproved_lead_count": 0,
                "total_margin": 0.0,
                "project_count": 0,
                "customer_count": 0,
                "record_count": 0,
            }

        return {
            "total_revenue": float(_numeric(df, "revenue").sum()),
            "total_approved_cost": float(_numeric(df, "approved_cost").sum()),
            "total_unapproved_lead_cost": float(_numeric(df, "unapproved_lead_cost").sum()),
            "unapproved_lead_count": int(_numeric(df, "unapproved_lead_count").sum()),
            "total_margin": float(_numeric(df, "margin").sum()),
            "project_count": int(df["project_id"].nunique()) if "project_id" in df.columns else 0,
            "customer_count": int(df["customer_id"].nunique()) if "customer_id" in df.columns else 0,
            "record_count": len(df),
        }

    # =========================================================================
    # MONTHLY TREND
    # =========================================================================

    def monthly_summary(self, months: int = TREND_MONTHS) -> pd.DataFrame:
        """
        Distinct projects and total revenue per month, last `months` months.

        Returns:
            DataFrame with month (YYYY-MM), month_label, projects, revenue
        """
        columns = ["month", "month_label", "projects", "revenue"]
        df = self.records_df
        if df.empty or "rev_month" not in df.columns:
            return pd.DataFrame(columns=columns)

        work = df.assign(
            month=df["rev_month"].map(lambda v: str(v)[:7] if pd.notna(v) else None),
            revenue_value=_numeric(df, "revenue"),
        ).dropna(subset=["month"])

        if work.empty:
            return pd.DataFrame(columns=columns)

        monthly = (
            work.groupby("month")
            .agg(projects=("project_id", "nunique"), revenue=("revenue_value", "sum"))
            .reset_index()
            .sort_values("month")
            .tail(months)
        )
        monthly["month_label"] = monthly["month"].map(format_revenue_month)
        return monthly[columns].reset_index(drop=True)

    # =========================================================================
    # SHARES
    # =========================================================================

    def revenue_share(self, by: str = "project_name", top_n: int = TOP_N_SHARE) -> pd.DataFrame:
        """
        Revenue per group, largest first; groups past top_n fold into "Others".

        Returns:
            DataFrame with columns [by, revenue, share]
        """
        df = self.records_df
        if df.empty or by not in df.columns:
            return pd.DataFrame(columns=[by, "revenue", "share"])

        grouped = (
            df.assign(revenue_value=_numeric(df, "revenue"), group=df[by].fillna("Unknown"))
            .groupby("group")["revenue_value"].sum()
            .sort_values(ascending=False)
        )
        grouped = grouped[grouped > 0]

        if len(grouped) > top_n:
            others = grouped.iloc[top_n:].sum()
            grouped = pd.concat([grouped.iloc[:top_n], pd.Series({"Others": others})])

        total = grouped.sum()
        result = grouped.rename_axis(by).reset_index(name="revenue")
        result["share"] = result["revenue"] / total if total else 0.0
        return result

    def lob_share(self) -> pd.DataFrame:
        """Revenue and approved cost per line of business"""
        columns = ["lob", "revenue", "approved_cost"]
        df = self.records_df
        if df.empty or "lob" not in df.columns:
            return pd.DataFrame(columns=columns)

        lob = df["lob"].fillna("").astype(str).str.strip().replace("", "Unassigned")
        grouped = (
            df.assign(lob=lob, revenue=_numeric(df, "revenue"), approved_cost=_numeric(df, "approved_cost"))
            .groupby("lob")[["revenue", "approved_cost"]].sum()
            .reset_index()
            .sort_values("revenue", ascending=False)
        )
        return grouped[columns].reset_index(drop=True)

    # =========================================================================
    # STATUS COUNTS
    # =========================================================================

    def validation_summary(self) -> Dict:
        """Client summary cards: projects, revenue and status counts"""
        df = self.records_df
        counts = {STATUS_APPROVED: 0, STATUS_PENDING: 0, STATUS_REJECTED: 0}
        if not df.empty and "validation_status" in df.columns:
            statuses = df["validation_status"].fillna(STATUS_PENDING).astype(str).str.strip().str.capitalize()
            for status, count in statuses.value_counts().items():
                if status in counts:
                    counts[status] = int(count)

        return {
            "total_projects": int(df["project_id"].nunique()) if "project_id" in df.columns else 0,
            "total_revenue": float(_numeric(df, "revenue").sum()) if not df.empty else 0.0,
            "approved": counts[STATUS_APPROVED],
            "pending": counts[STATUS_PENDING],
            "rejected": counts[STATUS_REJECTED],
        }

    @staticmethod
    def lead_approval_summary(leads_df: Optional[pd.DataFrame], approval_column: str = "client_incharge_approval") -> Dict:
        counts = {"total": 0, "approved": 0, "pending": 0, "rejected": 0, "cost": 0.0}
        if leads_df is None or leads_df.empty:
            return counts

        statuses = (
            leads_df[approval_column].map(format_approval)
            if approval_column in leads_df.columns
            else pd.Series(STATUS_PENDING, index=leads_df.index)
        )
        counts["total"] = len(leads_df)
        counts["approved"] = int((statuses == STATUS_APPROVED).sum())
        counts["pending"] = int((statuses == STATUS_PENDING).sum())
        counts["rejected"] = int((statuses == STATUS_REJECTED).sum())
        counts["cost"] = float(_numeric(leads_df, "cost").sum())
        return counts


__all__ = ["RevenueMetrics"]
