# utils/s3_utils.py
"""
S3 Utilities for validation CSV files

Version: 1.0.0
Features:
- Thread-safe singleton pattern
- Retry decorator with exponential backoff
- Per-project / per-month CSV lookup and presigned download links
"""

import boto3
from botocore.exceptions import ClientError, NoCredentialsError
import logging
from datetime import date, datetime
from typing import Optional, Dict, Any, List, Union
from functools import wraps
import os
import re
import threading
import time

from .config import config

logger = logging.getLogger(__name__)


# ==================== RETRY DECORATOR ====================

def with_retry(max_retries: int = 3, delay: float = 1.0, backoff: float = 2.0):
    """
    Decorator for automatic retry with exponential backoff

    Args:
        max_retries: Maximum number of retry attempts
        delay: Initial delay between retries (seconds)
        backoff: Multiplier for delay after each retry
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            last_exception = None
            current_delay = delay

            for attempt in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except ClientError as e:
                    last_exception = e
                    if attempt < max_retries - 1:
                        logger.warning(f"{func.__name__} attempt {attempt + 1} failed, retrying in {current_delay}s...")
                        time.sleep(current_delay)
                        current_delay *= backoff
                    else:
                        logger.error(f"{func.__name__} failed after {max_retries} attempts: {e}")

            raise last_exception
        return wrapper
    return decorator


# ==================== FILE NAMING ====================

def convert_rev_month_to_mmyy(rev_month: Union[str, date, None]) -> Optional[str]:
    """
    Convert a revenue month to the MMYY tag used in CSV file names

    "2025-04-01" -> "0425", "2025-04" -> "0425"
    """
    if rev_month is None:
        return None
    if isinstance(rev_month, (date, datetime)):
        return rev_month.strftime("%m%y")

    match = re.match(r"^(\d{4})-(\d{2})", str(rev_month).strip())
    if not match:
        return None
    year, month = match.groups()
    return f"{month}{year[2:]}"


def build_csv_prefix(project_id: str, rev_month: Union[str, date, None] = None) -> str:
    """Object-name prefix of a project's CSV files: "P001 M0425" or just "P001" """
    project = str(project_id or "").strip().upper()
    mmyy = convert_rev_month_to_mmyy(rev_month)
    return f"{project} M{mmyy}" if mmyy else project


def match_csv_files(files: List[Dict], prefix: str) -> List[Dict]:
    """Keep files whose name starts with prefix (case-insensitive), newest first"""
    prefix = prefix.upper()
    matches = [f for f in files if f['filename'].upper().startswith(prefix)]
    return sorted(matches, key=lambda f: f.get('last_modified') or "", reverse=True)


# ==================== S3 MANAGER CLASS ====================

class S3Manager:
    """
    Manager for the validation CSV bucket with thread-safe singleton

    Usage:
        s3 = get_s3_manager()
        files = s3.list_csv_files_for_project("P001", "2025-04-01")
        url = s3.generate_presigned_url(files[0]['key'])
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        aws_config = config.get_aws_config()

        self.bucket_name = aws_config.get('bucket_name', 'csvs')
        self.app_prefix = aws_config.get('app_prefix', '')
        self.region = aws_config.get('region', 'ap-south-1')

        try:
            self.s3_client = boto3.client(
                's3',
                region_name=self.region,
                aws_access_key_id=aws_config.get('access_key_id'),
                aws_secret_access_key=aws_config.get('secret_access_key')
            )

            self._test_connection()
            logger.info(f"✅ S3 client initialized: {self.bucket_name}")
            self._initialized = True

        except NoCredentialsError:
            logger.error("❌ AWS credentials not found")
            raise ValueError("AWS credentials not configured")
        except Exception as e:
            logger.error(f"❌ Failed to initialize S3: {e}")
            raise

    def _test_connection(self):
        """Verify bucket exists and is accessible"""
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            error_code = str(e.response.get('Error', {}).get('Code', ''))
            if error_code in ('404', 'NoSuchBucket'):
                raise ValueError(f"Bucket '{self.bucket_name}' not found")
            elif error_code in ('403', 'AccessDenied'):
                raise ValueError(f"Access denied to bucket '{self.bucket_name}'")
            raise

    # ==================== CORE OPERATIONS ====================

    def generate_presigned_url(self, s3_key: str, expiry_seconds: int = 3600) -> Optional[str]:
        """
        Generate presigned download URL for S3 object

        Args:
            s3_key: S3 object key
            expiry_seconds: Seconds until URL expires

        Returns:
            Presigned URL string
        """
        try:
            filename = os.path.basename(s3_key)
            return self.s3_client.generate_presigned_url(
                'get_object',
                Params={
                    'Bucket': self.bucket_name,
                    'Key': s3_key,
                    'ResponseContentDisposition': f'attachment; filename="{filename}"',
                },
                ExpiresIn=expiry_seconds
            )
        except ClientError as e:
            logger.error(f"Failed to generate presigned URL: {e}")
            return None

    # ==================== QUERY OPERATIONS ====================

    @with_retry(max_retries=3)
    def list_files(self, prefix: str = None, file_extension: str = '.csv') -> List[Dict]:
        """
        List objects under prefix (defaults to the app prefix), following pagination

        Raises ClientError once retries are exhausted.
        """
        if prefix is None:
            prefix = f"{self.app_prefix}/" if self.app_prefix else ""

        files = []
        paginator = self.s3_client.get_paginator('list_objects_v2')
        for page in paginator.paginate(Bucket=self.bucket_name, Prefix=prefix):
            for obj in page.get('Contents', []):
                if file_extension and not obj['Key'].lower().endswith(file_extension):
                    continue
                files.append({
                    'key': obj['Key'],
                    'filename': os.path.basename(obj['Key']),
                    'size': obj['Size'],
                    'last_modified': obj['LastModified'].isoformat(),
                })

        logger.debug(f"Listed {len(files)} file(s) under '{prefix}'")
        return files

    def list_csv_files_for_project(
        self,
        project_id: str,
        rev_month: Union[str, date, None] = None
    ) -> List[Dict]:
        """
        CSV files whose name starts with "<PROJECT_ID> M<MMYY>", newest first

        Matching is case-insensitive, so the whole listing is filtered here
        rather than through the S3 prefix.
        """
        prefix = build_csv_prefix(project_id, rev_month)
        if not prefix:
            return []

        matches = match_csv_files(self.list_files(), prefix)
        logger.info(f"📁 {len(matches)} CSV file(s) for prefix '{prefix}'")
        return matches


# ==================== SINGLETON ACCESS ====================

_s3_manager = None
_s3_lock = threading.Lock()


def get_s3_manager() -> S3Manager:
    """Get S3Manager singleton instance (thread-safe)"""
    global _s3_manager

    if _s3_manager is None:
        with _s3_lock:
            if _s3_manager is None:
                _s3_manager = S3Manager()

    return _s3_manager


def reset_s3_manager():
    """Reset S3Manager singleton (for reconnection)"""
    global _s3_manager

    with _s3_lock:
        _s3_manager = None
        S3Manager._instance = None

    logger.info("🔄 S3 manager reset")


def validate_s3_connection() -> bool:
    """Validate S3 connection"""
    try:
        s3 = get_s3_manager()
        s3._test_connection()
        return True
    except Exception as e:
        logger.error(f"S3 validation failed: {e}")
        return False


# ==================== EXPORTS ====================

__all__ = [
    'S3Manager',
    'get_s3_manager',
    'reset_s3_manager',
    'validate_s3_connection',
    'with_retry',
    'convert_rev_month_to_mmyy',
    'build_csv_prefix',
    'match_csv_files',
]
