"""Database models for the DebtRescue.AI API."""

from src.models.base import DebtRescueBase, UTCDateTime, utc_now
from src.models.user import User
from src.models.session import Session
from src.models.auth import BackupCode
from src.models.audit_log import AuditLog

__all__ = [
    "DebtRescueBase",
    "UTCDateTime",
    "utc_now",
    "User",
    "Session",
    "BackupCode",
    "AuditLog",
]
