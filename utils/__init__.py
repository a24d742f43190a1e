# utils/__init__.py
"""
Shared Utilities Package for the Revenue Tracker

This package contains common utilities shared across all pages:
- auth: Roles, session context and route guards
- config: Configuration management (local + Streamlit Cloud)
- db: Database connection management with pooling
- s3_utils: Validation CSV bucket (AWS S3)
- revenue_tracker: Feature package (tables, queries, CSV import, views, charts, export)

Usage:
    # Import specific modules
    from utils.auth import AuthManager, Role
    from utils.db import get_db_engine, check_db_connection
    from utils.config import config
    from utils.s3_utils import get_s3_manager

    # Or import commonly used items directly
    from utils import AuthManager, get_db_engine, config
"""

# Authentication
from .auth import (
    AuthManager,
    Role,
    ClientIdentity,
    SessionContext,
)

# Configuration
from .config import (
    config,
    Config,
    IS_RUNNING_ON_CLOUD,
    APP_CONFIG,
)

# Database
from .db import (
    get_db_engine,
    check_db_connection,
    get_connection_pool_status,
    is_missing_table_error,
)

# S3
from .s3_utils import (
    S3Manager,
    get_s3_manager,
    reset_s3_manager,
    validate_s3_connection,
)

__all__ = [
    # Auth
    'AuthManager',
    'Role',
    'ClientIdentity',
    'SessionContext',

    # Config
    'config',
    'Config',
    'IS_RUNNING_ON_CLOUD',
    'APP_CONFIG',

    # Database
    'get_db_engine',
    'check_db_connection',
    'get_connection_pool_status',
    'is_missing_table_error',

    # S3
    'S3Manager',
    'get_s3_manager',
    'reset_s3_manager',
    'validate_s3_connection',
]

__version__ = '1.0.0'
