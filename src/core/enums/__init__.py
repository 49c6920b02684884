"""Core enums package.

Exports all core-level enums for convenient importing.

Usage:
    from src.core.enums import AuditAction, Environment, ErrorCode, OAuthProvider
"""

from src.core.enums.audit_action import AuditAction
from src.core.enums.environment import Environment
from src.core.enums.error_code import ErrorCode
from src.core.enums.oauth_provider import OAuthProvider

__all__ = ["AuditAction", "Environment", "ErrorCode", "OAuthProvider"]
