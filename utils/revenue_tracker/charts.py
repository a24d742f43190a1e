# utils/revenue_tracker/charts.py
"""
Altair Chart Builders for the Revenue Tracker

All visualization components using Altair:
- Monthly projects / revenue trend (line)
- Projects per month (bar)
- Revenue share (pie)
- LOB revenue vs approved cost (grouped bar)
- Active workers trend (line)
"""

import logging

import altair as alt
import pandas as pd

from .constants import CHART_HEIGHT, CHART_PALETTE, COLORS, PIE_CHART_HEIGHT

logger = logging.getLogger(__name__)


class RevenueCharts:
    """
    Chart builders for the finance and client dashboards.

    All methods are static - can be called without instantiation.

    Usage:
        chart = RevenueCharts.build_monthly_trend_chart(metrics.monthly_summary())
        st.altair_chart(chart, use_container_width=True)
    """

    # =========================================================================
    # MONTHLY TREND
    # =========================================================================

    @staticmethod
    def build_monthly_trend_chart(
        monthly_df: pd.DataFrame,
        title: str = "📈 Projects & Revenue (last 5 months)"
    ) -> alt.Chart:
        """
        Line chart of distinct projects (left axis) and revenue (right axis).

        Args:
            monthly_df: Output of RevenueMetrics.monthly_summary()
            title: Chart title
        """
        if monthly_df.empty:
            return RevenueCharts._empty_chart("No monthly data available")

        order = monthly_df["month_label"].tolist()
        base = alt.Chart(monthly_df).encode(
            x=alt.X("month_label:N", sort=order, title="Month")
        )

        projects = base.mark_line(point=True, color=COLORS["projects"], strokeWidth=2).encode(
            y=alt.Y("projects:Q", title="Projects"),
            tooltip=[
                alt.Tooltip("month_label:N", title="Month"),
                alt.Tooltip("projects:Q", title="Projects"),
            ]
        )

        revenue = base.mark_line(point=True, color=COLORS["revenue"], strokeWidth=2, strokeDash=[4, 3]).encode(
            y=alt.Y("revenue:Q", title="Revenue (₹)", axis=alt.Axis(format="~s")),
            tooltip=[
                alt.Tooltip("month_label:N", title="Month"),
                alt.Tooltip("revenue:Q", title="Revenue", format=",.0f"),
            ]
        )

        return alt.layer(projects, revenue).resolve_scale(
            y="independent"
        ).properties(
            height=CHART_HEIGHT,
            title=title
        )

    @staticmethod
    def build_projects_bar_chart(
        monthly_df: pd.DataFrame,
        title: str = "📊 Projects per Month"
    ) -> alt.Chart:
        if monthly_df.empty:
            return RevenueCharts._empty_chart("No monthly data available")

        order = monthly_df["month_label"].tolist()
        bars = alt.Chart(monthly_df).mark_bar(color=COLORS["projects"]).encode(
            x=alt.X("month_label:N", sort=order, title="Month"),
            y=alt.Y("projects:Q", title="Projects"),
            tooltip=[
                alt.Tooltip("month_label:N", title="Month"),
                alt.Tooltip("projects:Q", title="Projects"),
                alt.Tooltip("revenue:Q", title="Revenue", format=",.0f"),
            ]
        )

        text = alt.Chart(monthly_df).mark_text(
            align="center", baseline="bottom", dy=-5, fontSize=11
        ).encode(
            x=alt.X("month_label:N", sort=order),
            y=alt.Y("projects:Q"),
            text=alt.Text("projects:Q"),
            color=alt.value(COLORS["text_dark"])
        )

        return alt.layer(bars, text).properties(height=CHART_HEIGHT, title=title)

    # =========================================================================
    # SHARES
    # =========================================================================

    @staticmethod
    def build_revenue_share_chart(
        share_df: pd.DataFrame,
        by: str = "project_name",
        title: str = "🥧 Revenue Share"
    ) -> alt.Chart:
        """Pie of RevenueMetrics.revenue_share() output"""
        if share_df.empty:
            return RevenueCharts._empty_chart("No revenue to show")

        domain = share_df[by].tolist()
        palette = [CHART_PALETTE[i % len(CHART_PALETTE)] for i in range(len(domain))]

        return alt.Chart(share_df).mark_arc(innerRadius=40).encode(
            theta=alt.Theta("revenue:Q"),
            color=alt.Color(
                f"{by}:N",
                scale=alt.Scale(domain=domain, range=palette),
                legend=alt.Legend(orient="right", title=None)
            ),
            tooltip=[
                alt.Tooltip(f"{by}:N", title="Name"),
                alt.Tooltip("revenue:Q", title="Revenue", format=",.0f"),
                alt.Tooltip("share:Q", title="Share", format=".1%"),
            ]
        ).properties(height=PIE_CHART_HEIGHT, title=title)

    @staticmethod
    def build_lob_chart(
        lob_df: pd.DataFrame,
        title: str = "🏷️ Revenue vs Approved Cost by LOB"
    ) -> alt.Chart:
        if lob_df.empty:
            return RevenueCharts._empty_chart("No LOB data available")

        data = lob_df.melt(
            id_vars=["lob"],
            value_vars=["revenue", "approved_cost"],
            var_name="Metric",
            value_name="Amount"
        )
        data["Metric"] = data["Metric"].map({"revenue": "Revenue", "approved_cost": "Approved Cost"})

        color_scale = alt.Scale(
            domain=["Revenue", "Approved Cost"],
            range=[COLORS["revenue"], COLORS["approved_cost"]]
        )

        return alt.Chart(data).mark_bar().encode(
            x=alt.X("lob:N", sort=lob_df["lob"].tolist(), title="LOB"),
            y=alt.Y("Amount:Q", title="Amount (₹)", axis=alt.Axis(format="~s")),
            color=alt.Color("Metric:N", scale=color_scale, legend=alt.Legend(orient="bottom")),
            xOffset="Metric:N",
            tooltip=[
                alt.Tooltip("lob:N", title="LOB"),
                alt.Tooltip("Metric:N", title="Metric"),
                alt.Tooltip("Amount:Q", title="Amount", format=",.0f"),
            ]
        ).properties(height=CHART_HEIGHT, title=title)

    # =========================================================================
    # ACTIVE WORKERS
    # =========================================================================

    @staticmethod
    def build_active_workers_chart(
        workers_df: pd.DataFrame,
        title: str = "👷 Active Workers"
    ) -> alt.Chart:
        if workers_df.empty or "record_date" not in workers_df.columns:
            return RevenueCharts._empty_chart("No active worker data")

        daily = (
            workers_df.assign(worker_count=pd.to_numeric(workers_df["worker_count"], errors="coerce").fillna(0))
            .groupby("record_date")["worker_count"].sum()
            .reset_index()
        )

        return alt.Chart(daily).mark_line(point=True, color=COLORS["workers"], strokeWidth=2).encode(
            x=alt.X("record_date:T", title="Date"),
            y=alt.Y("worker_count:Q", title="Workers"),
            tooltip=[
                alt.Tooltip("record_date:T", title="Date"),
                alt.Tooltip("worker_count:Q", title="Workers", format=",.0f"),
            ]
        ).properties(height=CHART_HEIGHT, title=title)

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _empty_chart(message: str = "No data available") -> alt.Chart:
        """Create an empty chart with a message."""
        return alt.Chart(pd.DataFrame({"note": [message]})).mark_text(
            text=message,
            fontSize=16,
            color=COLORS["text_dark"]
        ).properties(height=200)


__all__ = ["RevenueCharts"]
