# utils/auth.py
"""
Authentication Manager for Streamlit Apps

Version: 1.0.0
Features:
- Demo-account login (finance / admin / client)
- Typed roles and an explicit session context
- Session expiry hook plus optional injected validator
- Page guards by role
"""

import streamlit as st
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, Iterable, MutableMapping, Optional, Tuple
import logging

from .config import config

logger = logging.getLogger(__name__)


class Role(str, Enum):
    FINANCE = "finance"
    ADMIN = "admin"
    CLIENT = "client"
    NONE = "none"

    @classmethod
    def parse(cls, value: Any) -> "Role":
        """Map a stored role string to a Role; anything unknown is NONE"""
        if isinstance(value, Role):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.NONE


FINANCE_ROLES = (Role.FINANCE, Role.ADMIN)


@dataclass(frozen=True)
class ClientIdentity:
    """Customer a client session is scoped to"""
    customer_id: str = ""
    customer_name: str = ""

    def serialize(self) -> str:
        return f"{self.customer_id}|{self.customer_name}"

    @classmethod
    def deserialize(cls, value: Optional[str]) -> Optional["ClientIdentity"]:
        if not value:
            return None
        customer_id, _, customer_name = str(value).partition("|")
        identity = cls(customer_id.strip(), customer_name.strip())
        return identity if identity.is_set else None

    @property
    def is_set(self) -> bool:
        return bool(self.customer_id or self.customer_name)


@dataclass(frozen=True)
class SessionContext:
    role: Role = Role.NONE
    client: Optional[ClientIdentity] = None
    username: Optional[str] = None
    full_name: Optional[str] = None
    login_time: Optional[datetime] = None

    @property
    def is_authenticated(self) -> bool:
        return self.role is not Role.NONE

    def is_expired(self, now: datetime, timeout: timedelta) -> bool:
        if self.login_time is None:
            return False
        return now - self.login_time > timeout


# Demo accounts: email -> (role, display name)
DEMO_ACCOUNTS = {
    "finance@demo.com": (Role.FINANCE, "Finance User"),
    "admin@demo.com": (Role.ADMIN, "Admin User"),
    "client@demo.com": (Role.CLIENT, "Client User"),
}

# Session state keys
ROLE_KEY = "auth_role"
CLIENT_KEY = "client_identity"
USER_KEY = "auth_user"
FULL_NAME_KEY = "auth_full_name"
LOGIN_TIME_KEY = "login_time"
AUTH_KEYS = (ROLE_KEY, CLIENT_KEY, USER_KEY, FULL_NAME_KEY, LOGIN_TIME_KEY)

# Page data held in session state and dropped on logout
PAGE_DATA_PREFIX = "rt_"


class AuthManager:
    """Authentication manager for Streamlit apps"""

    def __init__(
        self,
        store: Optional[MutableMapping] = None,
        session_timeout: Optional[timedelta] = None,
        validator: Optional[Callable[[SessionContext], bool]] = None,
    ):
        self._store = store
        self.session_timeout = session_timeout or timedelta(
            hours=config.get_app_setting("SESSION_TIMEOUT_HOURS", 8)
        )
        self.validator = validator

    @property
    def store(self) -> MutableMapping:
        return self._store if self._store is not None else st.session_state

    # ==================== AUTHENTICATION ====================

    def authenticate(self, email: str, password: str) -> Tuple[bool, Dict]:
        """
        Authenticate against the demo accounts

        Returns:
            Tuple of (success: bool, user_info: dict or error: dict)
        """
        email = (email or "").strip().lower()
        account = DEMO_ACCOUNTS.get(email)

        if account is None or password != config.get_app_setting("DEMO_PASSWORD", "demo123"):
            logger.warning(f"Failed login attempt for: {email or '<empty>'}")
            return False, {"error": "Invalid credentials"}

        role, full_name = account
        client = None
        if role is Role.CLIENT:
            client = ClientIdentity(
                customer_id=config.get_app_setting("DEMO_CLIENT_CUSTOMER_ID", ""),
                customer_name=config.get_app_setting("DEMO_CLIENT_CUSTOMER_NAME", "ROX"),
            )

        logger.info(f"User {email} authenticated as {role.value}")

        return True, {
            "username": email,
            "role": role,
            "full_name": full_name,
            "client": client,
            "login_time": datetime.now(),
        }

    # ==================== SESSION MANAGEMENT ====================

    def login(self, user_info: Dict):
        """Initialize user session after successful authentication"""
        role = Role.parse(user_info.get("role"))
        client = user_info.get("client")

        self.store[ROLE_KEY] = role.value
        self.store[CLIENT_KEY] = client.serialize() if client else ""
        self.store[USER_KEY] = user_info.get("username")
        self.store[FULL_NAME_KEY] = user_info.get("full_name")
        self.store[LOGIN_TIME_KEY] = user_info.get("login_time") or datetime.now()

        logger.info(f"User {user_info.get('username')} logged in as {role.value}")

    def get_session(self) -> SessionContext:
        """Rebuild the typed session context from the store"""
        login_time = self.store.get(LOGIN_TIME_KEY)
        if isinstance(login_time, str):
            try:
                login_time = datetime.fromisoformat(login_time)
            except ValueError:
                login_time = None

        return SessionContext(
            role=Role.parse(self.store.get(ROLE_KEY)),
            client=ClientIdentity.deserialize(self.store.get(CLIENT_KEY)),
            username=self.store.get(USER_KEY),
            full_name=self.store.get(FULL_NAME_KEY),
            login_time=login_time,
        )

    def check_session(self, now: Optional[datetime] = None) -> bool:
        """Check if user session is valid and not expired"""
        session = self.get_session()
        if not session.is_authenticated:
            return False

        if session.is_expired(now or datetime.now(), self.session_timeout):
            logger.info(f"Session expired for user: {session.username}")
            self.logout()
            return False

        if self.validator is not None and not self.validator(session):
            logger.warning(f"Session rejected by validator for user: {session.username}")
            self.logout()
            return False

        return True

    def logout(self):
        """Clear user session and page data"""
        username = self.store.get(USER_KEY, "Unknown")

        for key in AUTH_KEYS:
            if key in self.store:
                del self.store[key]

        for key in [k for k in list(self.store.keys()) if str(k).startswith(PAGE_DATA_PREFIX)]:
            del self.store[key]

        logger.info(f"User {username} logged out")

    # ==================== ACCESS CONTROL ====================

    def require_auth(self) -> bool:
        """
        Require authentication to access a page
        Use at the beginning of each protected page
        """
        if not self.check_session():
            st.warning("⚠️ Please login to access this page")
            st.stop()
            return False
        return True

    def require_role(self, allowed_roles: Iterable) -> bool:
        """
        Require specific role(s) to access a page

        Usage:
            auth.require_role([Role.FINANCE, Role.ADMIN])
        """
        if not self.require_auth():
            return False

        allowed = [Role.parse(r) for r in allowed_roles]
        if not self.has_role(*allowed):
            st.error(f"🚫 Access denied. Required role: {', '.join(r.value for r in allowed)}")
            st.stop()
            return False

        return True

    def has_role(self, *roles) -> bool:
        """Check if current user has any of the given roles"""
        current = self.get_session().role
        return any(current is Role.parse(r) for r in roles)

    def is_admin(self) -> bool:
        return self.has_role(Role.ADMIN)

    # ==================== USER INFO HELPERS ====================

    def get_user_display_name(self) -> str:
        """Get user's display name for UI"""
        session = self.get_session()
        return session.full_name or session.username or "User"

    def get_client_identity(self) -> Optional[ClientIdentity]:
        return self.get_session().client

    def landing_page(self) -> Optional[str]:
        """Page a freshly logged-in user is sent to"""
        role = self.get_session().role
        if role in FINANCE_ROLES:
            return "pages/1_📊_Finance_Dashboard.py"
        if role is Role.CLIENT:
            return "pages/3_🏢_Client_Dashboard.py"
        return None


# ==================== MODULE EXPORTS ====================

__all__ = [
    'AuthManager',
    'Role',
    'ClientIdentity',
    'SessionContext',
    'FINANCE_ROLES',
    'DEMO_ACCOUNTS',
]
