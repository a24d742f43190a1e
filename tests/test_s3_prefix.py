from datetime import date

import pytest

from utils.s3_utils import build_csv_prefix, convert_rev_month_to_mmyy, match_csv_files


@pytest.mark.parametrize("value,expected", [
    ("2025-04-01", "0425"),
    ("2025-04", "0425"),
    (date(2024, 12, 1), "1224"),
    ("April", None),
    (None, None),
])
def test_convert_rev_month_to_mmyy(value, expected):
    assert convert_rev_month_to_mmyy(value) == expected


def test_build_csv_prefix():
    assert build_csv_prefix(" p001 ", "2025-04-01") == "P001 M0425"
    assert build_csv_prefix("P001") == "P001"


def test_match_csv_files_newest_first():
    files = [
        {"filename": "P001 M0425 batch1.csv", "last_modified": "2025-04-02T10:00:00"},
        {"filename": "p001 m0425 batch2.csv", "last_modified": "2025-04-05T10:00:00"},
        {"filename": "P001 M0325 batch1.csv", "last_modified": "2025-03-02T10:00:00"},
        {"filename": "P0011 M0425.csv", "last_modified": "2025-04-09T10:00:00"},
    ]

    matched = match_csv_files(files, build_csv_prefix("P001", "2025-04"))

    assert [f["filename"] for f in matched] == ["p001 m0425 batch2.csv", "P001 M0425 batch1.csv"]
