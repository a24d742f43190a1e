import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError, ProgrammingError

import utils
from utils.config import Config, config
from utils.db import is_missing_table_error
from utils.revenue_tracker.queries import RemoteError


def test_config_is_a_singleton():
    assert Config() is config


def test_app_settings_are_typed():
    assert isinstance(config.get_app_setting("IMPORT_CHUNK_SIZE"), int)
    assert isinstance(config.get_app_setting("FETCH_PAGE_SIZE"), int)
    assert config.get_app_setting("NOT_A_SETTING", "fallback") == "fallback"


def test_unknown_feature_defaults_to_enabled():
    assert config.is_feature_enabled("something_new") is True


def test_app_config_is_a_copy():
    snapshot = config.app_config
    snapshot["IMPORT_CHUNK_SIZE"] = -1
    assert config.get_app_setting("IMPORT_CHUNK_SIZE") != -1


def test_feature_flags_are_the_ones_pages_check():
    flags = {key for key in config.app_config if key.startswith("ENABLE_")}
    assert flags == {"ENABLE_EXCEL_EXPORT", "ENABLE_CSV_BUCKET"}


def test_package_exports_resolve():
    for name in utils.__all__:
        assert hasattr(utils, name), name
    assert "get_transaction" not in utils.__all__
    assert "require_roles" not in utils.__all__


@pytest.fixture()
def sqlite_error(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'x.db'}")
    try:
        with engine.connect() as conn:
            conn.execute(text("select * from leads"))
    except OperationalError as e:
        return e
    finally:
        engine.dispose()
    pytest.fail("query against a missing table did not fail")


def test_missing_table_is_detected(sqlite_error):
    assert is_missing_table_error(sqlite_error)
    assert not is_missing_table_error(ValueError("no such table"))


def test_remote_error_from_exception(sqlite_error):
    error = RemoteError.from_exception(sqlite_error)
    assert error.is_table_missing
    assert "no such table" in error.message
    assert error.code is None


def test_remote_error_describe():
    error = RemoteError("insert failed", details="Key (sl_no)=(1) already exists.", code="23505")
    assert error.describe() == "insert failed Key (sl_no)=(1) already exists. (code 23505)"


class _DriverError(Exception):
    def __init__(self, message, pgcode):
        super().__init__(message)
        self.pgcode = pgcode


def test_undefined_table_sqlstate_is_missing():
    error = ProgrammingError("select * from leads", {}, _DriverError("undefined table", "42P01"))
    assert is_missing_table_error(error)


def test_no_rows_code_is_not_a_missing_table():
    error = ProgrammingError(
        "select * from leads", {}, _DriverError("JSON object requested, multiple (or no) rows returned", "PGRST116")
    )
    assert not is_missing_table_error(error)
