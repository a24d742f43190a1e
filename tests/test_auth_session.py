from datetime import datetime, timedelta

import pytest

from utils.auth import AuthManager, ClientIdentity, Role, SessionContext
from utils.config import config

PASSWORD = config.get_app_setting("DEMO_PASSWORD", "demo123")


@pytest.fixture()
def store():
    return {}


@pytest.fixture()
def auth(store):
    return AuthManager(store=store, session_timeout=timedelta(hours=8))


def login_as(auth, email):
    ok, info = auth.authenticate(email, PASSWORD)
    assert ok
    auth.login(info)
    return info


class TestAuthenticate:
    @pytest.mark.parametrize("email,role", [
        ("finance@demo.com", Role.FINANCE),
        (" Admin@Demo.com ", Role.ADMIN),
        ("client@demo.com", Role.CLIENT),
    ])
    def test_demo_accounts(self, auth, email, role):
        ok, info = auth.authenticate(email, PASSWORD)
        assert ok
        assert info["role"] is role

    def test_client_gets_a_customer(self, auth):
        _, info = auth.authenticate("client@demo.com", PASSWORD)
        assert info["client"].is_set
        _, info = auth.authenticate("finance@demo.com", PASSWORD)
        assert info["client"] is None

    @pytest.mark.parametrize("email,password", [
        ("finance@demo.com", PASSWORD + "x"),
        ("nobody@demo.com", PASSWORD),
        ("", ""),
    ])
    def test_rejected(self, auth, email, password):
        ok, info = auth.authenticate(email, password)
        assert not ok
        assert info == {"error": "Invalid credentials"}


class TestSession:
    def test_login_stores_context(self, auth, store):
        login_as(auth, "finance@demo.com")

        assert store["auth_role"] == "finance"
        assert store["client_identity"] == ""
        assert auth.check_session()
        assert auth.get_user_display_name() == "Finance User"
        assert auth.landing_page() == "pages/1_📊_Finance_Dashboard.py"

    def test_client_identity_round_trips_through_the_store(self, auth, store):
        auth.login({
            "username": "client@demo.com",
            "role": "client",
            "full_name": "Client User",
            "client": ClientIdentity("", "ROX"),
        })

        assert store["client_identity"] == "|ROX"
        assert auth.get_client_identity() == ClientIdentity("", "ROX")
        assert auth.landing_page() == "pages/3_🏢_Client_Dashboard.py"

    def test_expired_session_is_logged_out(self, auth, store):
        login_as(auth, "admin@demo.com")
        later = datetime.now() + timedelta(hours=9)

        assert not auth.check_session(now=later)
        assert "auth_role" not in store

    def test_validator_can_reject(self, store):
        auth = AuthManager(store=store, validator=lambda session: session.role is not Role.ADMIN)
        login_as(auth, "admin@demo.com")
        assert not auth.check_session()
        assert auth.get_session().role is Role.NONE

    def test_logout_drops_page_data(self, auth, store):
        login_as(auth, "finance@demo.com")
        store["rt_data_finance_mis"] = object()
        store["rt_view_finance_mis"] = object()
        store["theme"] = "dark"

        auth.logout()

        assert store == {"theme": "dark"}
        assert not auth.check_session()
        assert auth.landing_page() is None

    def test_unknown_stored_role_is_not_authenticated(self, auth, store):
        store["auth_role"] = "superuser"
        assert not auth.check_session()

    def test_string_login_time(self, auth, store):
        login_as(auth, "finance@demo.com")
        store["login_time"] = (datetime.now() - timedelta(hours=1)).isoformat()
        assert auth.check_session()


class TestRoles:
    def test_has_role(self, auth):
        login_as(auth, "admin@demo.com")
        assert auth.has_role("finance", "admin")
        assert auth.is_admin()
        assert not auth.has_role(Role.CLIENT)

    @pytest.mark.parametrize("value,expected", [
        ("Finance", Role.FINANCE),
        (Role.CLIENT, Role.CLIENT),
        (None, Role.NONE),
        ("root", Role.NONE),
    ])
    def test_parse(self, value, expected):
        assert Role.parse(value) is expected


@pytest.mark.parametrize("raw,expected", [
    ("C001|ACME INC", ClientIdentity("C001", "ACME INC")),
    ("|ROX", ClientIdentity("", "ROX")),
    ("|", None),
    ("", None),
    (None, None),
])
def test_client_identity_deserialize(raw, expected):
    assert ClientIdentity.deserialize(raw) == expected


def test_session_without_login_time_never_expires():
    session = SessionContext(role=Role.FINANCE)
    assert not session.is_expired(datetime.now(), timedelta(seconds=1))
