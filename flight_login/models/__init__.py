from __future__ import annotations

"""
Data Models Package.

Re-exports all Pydantic models for convenient imports:
    from flight_login.models import LoginState, LockoutRecord, AuthResult
"""

from flight_login.models.auth_models import (
    AuthErrorCode,
    AuthResult,
    ValidationResult,
)
from flight_login.models.login_state import (
    MIN_PASSWORD_LENGTH,
    LockoutRecord,
    LoginState,
    StoredCredentials,
    is_login_allowed,
)

__all__ = [
    "AuthErrorCode",
    "AuthResult",
    "ValidationResult",
    "MIN_PASSWORD_LENGTH",
    "LockoutRecord",
    "LoginState",
    "StoredCredentials",
    "is_login_allowed",
]
