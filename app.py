# app.py
"""
Revenue Tracker - Main Entry Point

Login page plus a role-aware landing page.

Version: 1.0.0
"""

import streamlit as st
from utils.auth import AuthManager, Role, FINANCE_ROLES
from utils.config import config
from utils.db import check_db_connection
from utils.s3_utils import validate_s3_connection, reset_s3_manager
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ==================== PAGE CONFIGURATION ====================

APP_NAME = "Revenue Tracker"
APP_ICON = "💹"
APP_VERSION = "1.0.0"

st.set_page_config(
    page_title=APP_NAME,
    page_icon=APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

# ==================== CUSTOM CSS ====================

st.markdown("""
<style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        margin-bottom: 0.5rem;
        color: #3b82f6;
    }

    .sub-header {
        font-size: 1.1rem;
        color: #666;
        margin-bottom: 2rem;
    }

    .welcome-box {
        background: linear-gradient(135deg, #3b82f6 0%, #8b5cf6 100%);
        color: white;
        padding: 2rem;
        border-radius: 0.75rem;
        margin-bottom: 2rem;
    }

    .welcome-title {
        font-size: 1.75rem;
        font-weight: 600;
        margin-bottom: 0.5rem;
    }

    .footer {
        text-align: center;
        color: #888;
        padding: 1rem;
        margin-top: 3rem;
        border-top: 1px solid #eee;
        font-size: 0.9rem;
    }
</style>
""", unsafe_allow_html=True)

# ==================== INITIALIZATION ====================

auth = AuthManager()

# Pages per role: (path, label, icon, description)
FINANCE_LINKS = [
    ("pages/1_📊_Finance_Dashboard.py", "Finance Dashboard", "📊",
     "Revenue KPIs, charts, MIS records, CSV imports and exports."),
    ("pages/2_📋_Leads.py", "Leads", "📋",
     "Lead drill-down with project / client approvals and revised dates."),
]
CLIENT_LINKS = [
    ("pages/3_🏢_Client_Dashboard.py", "Client Dashboard", "🏢",
     "Summary of your projects, revenue and validation status."),
    ("pages/4_✅_Client_Validations.py", "Validations", "✅",
     "Review and approve or reject monthly validations."),
    ("pages/5_📝_Client_Leads.py", "Leads", "📝",
     "Approve the leads behind your validations."),
]

# ==================== HELPER FUNCTIONS ====================

def show_login_page():
    """Display the login page"""
    st.markdown(f'<p class="main-header">{APP_ICON} {APP_NAME}</p>', unsafe_allow_html=True)
    st.markdown('<p class="sub-header">Revenue validation and lead approval</p>', unsafe_allow_html=True)

    # Check database connection
    db_ok, db_error = check_db_connection()
    if not db_ok:
        st.error(f"⚠️ {db_error}")
        st.info("Please check the database settings in .env or Streamlit secrets.")
        return

    col1, col2, col3 = st.columns([1, 2, 1])

    with col2:
        with st.form("login_form", clear_on_submit=False):
            st.markdown("#### 🔐 Login")

            email = st.text_input(
                "Email",
                placeholder="you@company.com",
                key="login_email"
            )
            password = st.text_input(
                "Password",
                type="password",
                placeholder="Enter your password",
                key="login_password"
            )

            submit = st.form_submit_button(
                "🔑 Login",
                type="primary",
                use_container_width=True
            )

            if submit:
                if not email or not password:
                    st.warning("Please enter both email and password")
                else:
                    success, result = auth.authenticate(email, password)

                    if success:
                        auth.login(result)
                        st.success("✅ Login successful!")
                        landing = auth.landing_page()
                        if landing:
                            st.switch_page(landing)
                        st.rerun()
                    else:
                        st.error(result.get("error", "Authentication failed"))

        with st.expander("ℹ️ Demo accounts"):
            st.info("""
            - finance@demo.com - finance dashboard and leads
            - admin@demo.com - same pages as finance
            - client@demo.com - client dashboard, validations and leads
            - Password: demo123 (unless DEMO_PASSWORD is set)
            """)


def show_main_app():
    """Landing page with links to the dashboards the role can open"""
    session = auth.get_session()

    with st.sidebar:
        st.markdown(f"### 👤 {auth.get_user_display_name()}")

        if session.role is Role.ADMIN:
            st.success("🔓 Admin")
        elif session.role is Role.FINANCE:
            st.info("💼 Finance")
        else:
            st.warning("🏢 Client")

        if session.client is not None:
            st.caption(f"Customer: {session.client.customer_name or session.client.customer_id}")
        if session.login_time is not None:
            st.caption(f"Logged in: {session.login_time.strftime('%d/%m/%Y %H:%M')}")
        st.markdown("---")

        if st.button("🚪 Logout", use_container_width=True):
            auth.logout()
            st.rerun()

    st.markdown(f"""
    <div class="welcome-box">
        <div class="welcome-title">Welcome, {auth.get_user_display_name()}! 👋</div>
        <div>Pick a page below or from the sidebar menu.</div>
    </div>
    """, unsafe_allow_html=True)

    links = FINANCE_LINKS if session.role in FINANCE_ROLES else CLIENT_LINKS
    st.markdown("### 📂 Your pages")
    for path, label, icon, description in links:
        with st.container(border=True):
            st.page_link(path, label=label, icon=icon)
            st.caption(description)

    if auth.is_admin():
        st.markdown("---")
        with st.expander("🔧 System Status (Admin Only)"):
            from utils.db import get_connection_pool_status
            pool_status = get_connection_pool_status()

            col1, col2, col3 = st.columns(3)
            with col1:
                st.metric("DB Status", pool_status.get("status", "OK"))
            with col2:
                st.metric("Connections Used", pool_status.get("checked_out", 0))
            with col3:
                st.metric("Available", pool_status.get("checked_in", 0))

            if config.is_aws_configured():
                col_s3, col_reset = st.columns([3, 1])
                with col_s3:
                    if validate_s3_connection():
                        st.success("✅ CSV bucket reachable")
                    else:
                        st.warning("⚠️ CSV bucket not reachable")
                with col_reset:
                    if st.button("🔄 Reconnect", use_container_width=True):
                        reset_s3_manager()
                        st.rerun()
            else:
                st.caption("CSV bucket: not configured")

    st.markdown(f"""
    <div class="footer">
        <strong>{APP_NAME}</strong> v{APP_VERSION}
    </div>
    """, unsafe_allow_html=True)


# ==================== MAIN ====================

def main():
    """Main application entry point"""
    if not auth.check_session():
        show_login_page()
    else:
        show_main_app()


if __name__ == "__main__":
    main()
