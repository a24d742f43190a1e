# utils/config.py
"""
Centralized Configuration Management

Version: 1.0.0
Features:
- Support both local (.env) and Streamlit Cloud (secrets.toml)
- Singleton pattern for efficiency
- Type-safe getters with defaults
- Environment detection
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import Dict, Any, Optional
from dataclasses import dataclass

# Initialize logger
logger = logging.getLogger(__name__)


def is_running_on_streamlit_cloud() -> bool:
    """Detect if running on Streamlit Cloud"""
    try:
        import streamlit as st
        return hasattr(st, 'secrets') and len(st.secrets) > 0
    except Exception:
        return False


def _as_bool(value: Any) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class DatabaseConfig:
    """Database configuration container"""
    host: str
    port: int
    user: str
    password: str
    database: str
    sslmode: str = "require"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'host': self.host,
            'port': self.port,
            'user': self.user,
            'password': self.password,
            'database': self.database,
            'sslmode': self.sslmode,
        }

    def is_configured(self) -> bool:
        return bool(self.host and self.user and self.password)


@dataclass
class AWSConfig:
    """AWS configuration container (bucket holding validation CSV files)"""
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    region: str = "ap-south-1"
    bucket_name: str = "csvs"
    app_prefix: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'access_key_id': self.access_key_id,
            'secret_access_key': self.secret_access_key,
            'region': self.region,
            'bucket_name': self.bucket_name,
            'app_prefix': self.app_prefix
        }

    def is_configured(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key)


class Config:
    """
    Centralized configuration management

    Usage:
        from utils.config import config

        # Get database config
        db_config = config.get_db_config()

        # Get app settings
        chunk_size = config.get_app_setting("IMPORT_CHUNK_SIZE", 500)

        # Check feature flags
        if config.is_feature_enabled("EXCEL_EXPORT"):
            ...
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.is_cloud = is_running_on_streamlit_cloud()
        self._load_config()
        self._initialized = True

    def _load_config(self):
        """Load configuration based on environment"""
        if self.is_cloud:
            self._load_cloud_config()
        else:
            self._load_local_config()

        self._load_app_config()
        self._log_config_status()

    def _load_cloud_config(self):
        """Load configuration from Streamlit Cloud secrets"""
        import streamlit as st

        # Database
        db_secrets = st.secrets.get("DB_CONFIG", {})
        self._db_config = DatabaseConfig(
            host=db_secrets.get("host", ""),
            port=int(db_secrets.get("port", 5432)),
            user=db_secrets.get("user", ""),
            password=db_secrets.get("password", ""),
            database=db_secrets.get("database", "postgres"),
            sslmode=db_secrets.get("sslmode", "require")
        )

        # AWS
        aws_secrets = st.secrets.get("AWS", {})
        self._aws_config = AWSConfig(
            access_key_id=aws_secrets.get("ACCESS_KEY_ID"),
            secret_access_key=aws_secrets.get("SECRET_ACCESS_KEY"),
            region=aws_secrets.get("REGION", "ap-south-1"),
            bucket_name=aws_secrets.get("BUCKET_NAME", "csvs"),
            app_prefix=aws_secrets.get("APP_PREFIX", "")
        )

        self._app_secrets = dict(st.secrets.get("APP", {}))

        logger.info("☁️ Running in STREAMLIT CLOUD")

    def _load_local_config(self):
        """Load configuration from local .env file"""
        # Find and load .env file
        env_paths = [
            Path.cwd() / ".env",
            Path(__file__).parent.parent / ".env",
        ]

        for env_path in env_paths:
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded .env from: {env_path}")
                break

        # Database
        self._db_config = DatabaseConfig(
            host=os.getenv("DB_HOST", ""),
            port=int(os.getenv("DB_PORT", "5432")),
            user=os.getenv("DB_USER", ""),
            password=os.getenv("DB_PASSWORD", ""),
            database=os.getenv("DB_NAME", os.getenv("DB_DATABASE", "postgres")),
            sslmode=os.getenv("DB_SSLMODE", "require")
        )

        # Engine creation fails later if this stays unset
        if not self._db_config.is_configured():
            logger.error("Missing required database configuration. Please check .env file.")

        # AWS
        self._aws_config = AWSConfig(
            access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
            secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
            region=os.getenv("AWS_REGION", "ap-south-1"),
            bucket_name=os.getenv("S3_BUCKET_NAME", "csvs"),
            app_prefix=os.getenv("S3_APP_PREFIX", "")
        )

        self._app_secrets = {}

        logger.info("💻 Running in LOCAL environment")

    def _setting(self, key: str, default: str) -> str:
        """Read a raw app setting: cloud [APP] secrets first, then environment"""
        if key in self._app_secrets:
            return str(self._app_secrets[key])
        return os.getenv(key, default)

    def _load_app_config(self):
        """Load application-specific settings"""
        self._app_config = {
            # Session
            "SESSION_TIMEOUT_HOURS": int(self._setting("SESSION_TIMEOUT_HOURS", "8")),

            # Demo login
            "DEMO_PASSWORD": self._setting("DEMO_PASSWORD", "demo123"),
            "DEMO_CLIENT_CUSTOMER_ID": self._setting("DEMO_CLIENT_CUSTOMER_ID", ""),
            "DEMO_CLIENT_CUSTOMER_NAME": self._setting("DEMO_CLIENT_CUSTOMER_NAME", "ROX"),

            # CSV import
            "IMPORT_CHUNK_SIZE": int(self._setting("IMPORT_CHUNK_SIZE", "500")),
            "LEAD_LOOKUP_CHUNK_SIZE": int(self._setting("LEAD_LOOKUP_CHUNK_SIZE", "1000")),

            # Remote reads
            "FETCH_PAGE_SIZE": int(self._setting("FETCH_PAGE_SIZE", "1000")),

            # Database pool
            "DB_POOL_SIZE": int(self._setting("DB_POOL_SIZE", "5")),
            "DB_POOL_RECYCLE": int(self._setting("DB_POOL_RECYCLE", "3600")),

            # Feature flags
            "ENABLE_EXCEL_EXPORT": _as_bool(self._setting("ENABLE_EXCEL_EXPORT", "true")),
            "ENABLE_CSV_BUCKET": _as_bool(self._setting("ENABLE_CSV_BUCKET", "true")),
        }

    def _log_config_status(self):
        """Log configuration status"""
        if self._db_config.is_configured():
            logger.info(f"✅ Database: {self._db_config.host}/{self._db_config.database}")
        else:
            logger.info("⚠️ Database: Not configured")
        logger.info(f"✅ AWS S3: {'Configured' if self._aws_config.is_configured() else 'Not configured'}")

    # ==================== PUBLIC GETTERS ====================

    def get_db_config(self) -> Dict[str, Any]:
        """Get database configuration as dictionary"""
        return self._db_config.to_dict()

    def is_db_configured(self) -> bool:
        """Check whether database credentials are present"""
        return self._db_config.is_configured()

    def get_aws_config(self) -> Dict[str, Any]:
        """Get AWS configuration as dictionary"""
        return self._aws_config.to_dict()

    def is_aws_configured(self) -> bool:
        return self._aws_config.is_configured()

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        """Get application setting with default"""
        return self._app_config.get(key, default)

    def is_feature_enabled(self, feature: str) -> bool:
        """Check if feature is enabled"""
        key = f"ENABLE_{feature.upper()}"
        return self._app_config.get(key, True)

    # ==================== PROPERTIES ====================

    @property
    def app_config(self) -> Dict[str, Any]:
        return self._app_config.copy()


# ==================== SINGLETON INSTANCE ====================

config = Config()

IS_RUNNING_ON_CLOUD = config.is_cloud
APP_CONFIG = config.app_config

__all__ = [
    'config',
    'Config',
    'IS_RUNNING_ON_CLOUD',
    'APP_CONFIG',
]
