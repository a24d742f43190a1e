import pytest

from utils.revenue_tracker.queries import (
    LeadFilters,
    MisFilters,
    RemoteError,
    coerce_row,
    month_bounds,
    normalize_approval_filter,
)
from utils.revenue_tracker.tables import leads, mis_records


def mis_row(project_id, month="2025-02-01", customer="ACME INC", revenue=1000):
    return {
        "rev_month": month,
        "customer_name": customer,
        "customer_id": "C001",
        "project_id": project_id,
        "project_name": f"Project {project_id}",
        "revenue": revenue,
        "margin": revenue / 2,
        "lob": "Security",
    }


def lead_row(lead_id, project_id="P001", client=None, work_date="2025-02-10", **extra):
    row = {
        "lead_id": lead_id,
        "project_id": project_id,
        "project_name": f"Project {project_id}",
        "original_work_completion_date": work_date,
        "client_incharge_approval": client,
        "cost": 100,
        "city": "Pune",
    }
    row.update(extra)
    return row


@pytest.fixture()
def seeded(queries):
    queries.insert_records("mis_records", [
        mis_row("P001"),
        mis_row("P002", customer="Globex"),
        mis_row("P003", month="2025-03-01"),
        mis_row("P004", customer="acme labs"),
        mis_row("P005", month="2025-03-01", customer="Initech"),
    ])
    queries.insert_records("validations", [
        {"validation_file_id": "V1", "sl_no": 1, "customer_id": "C001", "project_id": "P001",
         "rev_month": "2025-02-01", "revenue": 10, "validation_status": "Pending"},
        {"validation_file_id": "V2", "sl_no": 2, "customer_id": "C001", "project_id": "P002",
         "rev_month": "2025-02-01", "revenue": 20, "validation_status": "Pending"},
        {"validation_file_id": "V3", "sl_no": 3, "customer_id": "C002", "project_id": "P009",
         "rev_month": "2025-03-01", "revenue": 30, "validation_status": "Approved"},
    ])
    queries.insert_records("leads", [
        lead_row("L1", client=True),
        lead_row("L2", client=False),
        lead_row("L3"),
        lead_row("L4", project_id="P002", work_date="2025-03-05"),
    ])
    return queries


# =============================================================================
# FETCHES
# =============================================================================

class TestFetch:
    def test_mis_records_come_back_in_sl_no_order_across_batches(self, seeded):
        result = seeded.fetch_mis_records()

        assert result.ok
        df = result.data
        assert df["sl_no"].tolist() == [1, 2, 3, 4, 5]
        assert df["project_id"].tolist() == ["P001", "P002", "P003", "P004", "P005"]
        assert df.loc[0, "rev_month"] == "2025-02-01"

    def test_customer_name_filter_is_case_insensitive_substring(self, seeded):
        df = seeded.fetch_mis_records(MisFilters(customer_name="ACME")).data
        assert df["project_id"].tolist() == ["P001", "P003", "P004"]

    def test_rev_month_filter(self, seeded):
        df = seeded.fetch_mis_records(MisFilters(rev_month="2025-03")).data
        assert df["project_id"].tolist() == ["P003", "P005"]

    def test_validations_for_client(self, seeded):
        class Client:
            customer_id = "C001"
            customer_name = "ACME INC"

        df = seeded.fetch_validations(MisFilters.for_client(Client())).data
        assert df["validation_file_id"].tolist() == ["V1", "V2"]

    def test_validation_status_filter(self, seeded):
        df = seeded.fetch_validations(MisFilters(status="Approved")).data
        assert df["validation_file_id"].tolist() == ["V3"]
        assert len(seeded.fetch_validations(MisFilters(status="All")).data) == 3

    def test_missing_table_gives_empty_frame(self, empty_queries):
        result = empty_queries.fetch_mis_records()

        assert result.data.empty
        assert "sl_no" in result.data.columns
        assert result.error is not None
        assert result.error.is_table_missing

    def test_missing_workers_table_is_not_an_error(self, empty_queries):
        result = empty_queries.fetch_active_workers()
        assert result.error is None
        assert result.data.empty

    def test_active_workers(self, queries):
        queries.insert_records("active_workers", [
            {"record_date": "2025-02-02", "project_id": "P001", "worker_count": 4},
            {"record_date": "2025-02-01", "project_id": "P001", "worker_count": 3},
        ])
        df = queries.fetch_active_workers().data
        assert df["record_date"].tolist() == ["2025-02-01", "2025-02-02"]


class TestLeadFetch:
    def test_pending_means_null_approval(self, seeded):
        df = seeded.fetch_all_leads(filters=LeadFilters(client_incharge_approval="Pending")).data
        assert df["lead_id"].tolist() == ["L3", "L4"]

    @pytest.mark.parametrize("token,expected", [
        ("Approved", ["L1"]),
        ("true", ["L1"]),
        ("Rejected", ["L2"]),
        ("All", ["L1", "L2", "L3", "L4"]),
    ])
    def test_approval_tokens(self, seeded, token, expected):
        df = seeded.fetch_all_leads(filters=LeadFilters(client_incharge_approval=token)).data
        assert df["lead_id"].tolist() == expected

    def test_project_and_month(self, seeded):
        assert seeded.fetch_all_leads("P002").data["lead_id"].tolist() == ["L4"]
        df = seeded.fetch_all_leads(filters=LeadFilters(rev_month="2025-02-01")).data
        assert df["lead_id"].tolist() == ["L1", "L2", "L3"]

    def test_project_ids_scope(self, seeded):
        df = seeded.fetch_all_leads(filters=LeadFilters(project_ids=["P002", "P404"])).data
        assert df["lead_id"].tolist() == ["L4"]
        assert seeded.fetch_all_leads(filters=LeadFilters(project_ids=[])).data.empty

    def test_paged_fetch(self, seeded):
        first = seeded.fetch_leads(page=0, page_size=3).data
        second = seeded.fetch_leads(page=1, page_size=3).data
        assert first["lead_id"].tolist() == ["L1", "L2", "L3"]
        assert second["lead_id"].tolist() == ["L4"]


# =============================================================================
# IMPORT COLLABORATORS
# =============================================================================

def test_existing_mis_keys(seeded):
    result = seeded.get_existing_mis_keys("2025-03-01")
    assert sorted(result.data) == [("2025-03-01", "C001", "P003"), ("2025-03-01", "C001", "P005")]


def test_existing_lead_ids(seeded):
    assert seeded.get_existing_lead_ids(["L1", "L4", "L99"]).data == {"L1", "L4"}
    assert seeded.get_existing_lead_ids([]).data == set()


def test_insert_failure_is_returned_not_raised(empty_queries):
    result = empty_queries.insert_records("leads", [lead_row("L1")])
    assert result.data == 0
    assert isinstance(result.error, RemoteError)


# =============================================================================
# UPDATES
# =============================================================================

class TestUpdates:
    def test_bulk_validation_status_stamps_approval_time(self, seeded):
        result = seeded.bulk_update_validation_status(["V1", "V2"], "Approved")
        assert result.data == 2

        df = seeded.fetch_validations().data.set_index("validation_file_id")
        assert df.loc["V1", "validation_status"] == "Approved"
        assert df.loc["V1", "validation_approval_at"] is not None
        assert df.loc["V3", "validation_approval_at"] is None

    def test_empty_bulk_update_does_nothing(self, seeded):
        assert seeded.bulk_update_validation_status([], "Approved").data == 0
        assert seeded.bulk_update_lead_approval([], True).data == 0

    def test_lead_approval_and_back_to_pending(self, seeded):
        seeded.update_lead_approval("L3", True)
        df = seeded.fetch_all_leads().data.set_index("lead_id")
        assert df.loc["L3", "client_incharge_approval"] == True  # noqa: E712
        assert df.loc["L3", "client_incharge_approval_date"] is not None

        seeded.update_lead_approval("L3", None)
        df = seeded.fetch_all_leads().data.set_index("lead_id")
        assert df.loc["L3", "client_incharge_approval"] is None
        assert df.loc["L3", "client_incharge_approval_date"] is None

    def test_bulk_project_approval(self, seeded):
        result = seeded.bulk_update_lead_approval(["L1", "L2"], False, "project")
        assert result.data == 2
        df = seeded.fetch_all_leads(filters=LeadFilters(project_incharge_approval="Rejected")).data
        assert df["lead_id"].tolist() == ["L1", "L2"]

    def test_unknown_approval_type(self, seeded):
        result = seeded.update_lead_approval("L1", True, "manager")
        assert result.data == 0
        assert "manager" in result.error.message

    def test_revised_date(self, seeded):
        seeded.update_lead_revised_date("L2", "15-03-2025")
        df = seeded.fetch_all_leads().data.set_index("lead_id")
        assert df.loc["L2", "revised_work_completion_date"] == "2025-03-15"

        seeded.update_lead_revised_date("L2", None)
        assert seeded.fetch_all_leads().data.set_index("lead_id").loc["L2", "revised_work_completion_date"] is None

    def test_revised_date_with_all_digit_lead_ids(self, queries):
        # Serial ids run opposite to the lead ids: lead "2" is id 1, lead "1" is id 2
        queries.insert_records("leads", [lead_row("2"), lead_row("1")])

        result = queries.update_lead_revised_date("2", "2025-04-01")

        assert result.data == 1
        df = queries.fetch_all_leads().data.set_index("lead_id")
        assert df.loc["2", "revised_work_completion_date"] == "2025-04-01"
        assert df.loc["1", "revised_work_completion_date"] is None


# =============================================================================
# HELPERS
# =============================================================================

@pytest.mark.parametrize("value,expected", [
    (None, None),
    ("all", None),
    ("approve", "Approved"),
    ("FALSE", "Rejected"),
    ("pending", "Pending"),
])
def test_normalize_approval_filter(value, expected):
    assert normalize_approval_filter(value) == expected


def test_month_bounds():
    start, end = month_bounds("2024-02-01")
    assert (start.isoformat(), end.isoformat()) == ("2024-02-01", "2024-02-29")
    assert month_bounds("soon") is None


def test_coerce_row_drops_unknown_columns_and_parses_dates():
    row = coerce_row(mis_records, {"rev_month": "2025-02-01", "sl_no_extra": 1, "revenue": 5})
    assert set(row) == {"rev_month", "revenue"}
    assert row["rev_month"].isoformat() == "2025-02-01"

    lead = coerce_row(leads, {"client_incharge_approval_date": "2025-02-10", "revised_work_completion_date": "x"})
    assert lead["client_incharge_approval_date"].hour == 0
    assert lead["revised_work_completion_date"] == "x"
