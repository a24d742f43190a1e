import pandas as pd
import pytest

from utils.revenue_tracker.metrics import RevenueMetrics


@pytest.fixture()
def records():
    rows = []
    for month in ["2024-10-01", "2024-11-01", "2024-12-01", "2025-01-01", "2025-02-01", "2025-03-01"]:
        rows.append({"rev_month": month, "customer_id": "C001", "project_id": "P001", "project_name": "Alpha",
                     "revenue": 100.0, "approved_cost": 40.0, "unapproved_lead_count": 1,
                     "unapproved_lead_cost": 5.0, "margin": 60.0, "lob": "Security"})
    rows.append({"rev_month": "2025-03-01", "customer_id": "C002", "project_id": "P002", "project_name": "Beta",
                 "revenue": "250", "approved_cost": None, "unapproved_lead_count": None,
                 "unapproved_lead_cost": None, "margin": None, "lob": " "})
    return pd.DataFrame(rows)


def test_summary(records):
    summary = RevenueMetrics(records).summary()

    assert summary["total_revenue"] == 850.0
    assert summary["total_approved_cost"] == 240.0
    assert summary["unapproved_lead_count"] == 6
    assert summary["project_count"] == 2
    assert summary["customer_count"] == 2
    assert summary["record_count"] == 7


def test_summary_of_nothing():
    summary = RevenueMetrics(pd.DataFrame()).summary()
    assert summary["total_revenue"] == 0.0
    assert summary["record_count"] == 0


def test_monthly_summary_keeps_last_five_months(records):
    monthly = RevenueMetrics(records).monthly_summary()

    assert monthly["month"].tolist() == ["2024-11", "2024-12", "2025-01", "2025-02", "2025-03"]
    assert monthly["month_label"].iloc[-1] == "Mar 2025"
    assert monthly["projects"].iloc[-1] == 2
    assert monthly["revenue"].iloc[-1] == 350.0


def test_revenue_share_folds_tail_into_others():
    df = pd.DataFrame({
        "project_name": ["A", "B", "C", "D", None],
        "revenue": [50.0, 30.0, 10.0, 10.0, 0.0],
    })

    share = RevenueMetrics(df).revenue_share(by="project_name", top_n=2)

    assert share["project_name"].tolist() == ["A", "B", "Others"]
    assert share["revenue"].tolist() == [50.0, 30.0, 20.0]
    assert share["share"].sum() == pytest.approx(1.0)


def test_lob_share_names_blank_lob(records):
    lob = RevenueMetrics(records).lob_share()
    assert lob["lob"].tolist() == ["Security", "Unassigned"]
    assert lob["revenue"].tolist() == [600.0, 250.0]


def test_validation_summary():
    df = pd.DataFrame({
        "project_id": ["P1", "P1", "P2", "P3"],
        "revenue": [10, 20, 30, 40],
        "validation_status": ["approved", "Pending", None, "Rejected"],
    })

    summary = RevenueMetrics(df).validation_summary()

    assert summary == {
        "total_projects": 3,
        "total_revenue": 100.0,
        "approved": 1,
        "pending": 2,
        "rejected": 1,
    }


def test_lead_approval_summary():
    leads_df = pd.DataFrame({
        "client_incharge_approval": [True, None, False, None],
        "cost": [100, 50, None, "25"],
    })

    counts = RevenueMetrics.lead_approval_summary(leads_df)

    assert counts == {"total": 4, "approved": 1, "pending": 2, "rejected": 1, "cost": 175.0}
    assert RevenueMetrics.lead_approval_summary(None)["total"] == 0
