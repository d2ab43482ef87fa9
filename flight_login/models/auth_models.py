"""
Authentication Pipeline Models.

Pydantic models and enumerations for the contracts between the
``Authenticator``, the login state machine, and the UI layer.

Every authentication attempt returns a structured, inspectable
``AuthResult`` rather than raw strings or exception side-channels.
Anything an authenticator *raises* is, by definition, unexpected.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------

class AuthErrorCode(StrEnum):
    """Exhaustive enumeration of login error categories.

    Used by the login state machine to classify every user-visible
    error, and by the UI layer to decide which feedback to display.
    """

    VALIDATION_ERROR = "validation_error"
    NETWORK_ERROR = "network_error"
    LOCKED_OUT = "locked_out"
    INVALID_CREDENTIALS = "invalid_credentials"
    UNKNOWN_ERROR = "unknown_error"


# ---------------------------------------------------------------------------
# Validation result
# ---------------------------------------------------------------------------

class ValidationResult(BaseModel):
    """Result of a client-side credential validation check.

    Attributes
    ----------
    is_valid:
        ``True`` when the value passes the validation rule.
    error_message:
        Human-readable description of the failure, or ``None`` on success.
    """

    is_valid: bool
    error_message: Optional[str] = None

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Authenticator response
# ---------------------------------------------------------------------------

class AuthResult(BaseModel):
    """Declared outcome of a single authentication call.

    Attributes
    ----------
    success:
        ``True`` when the credentials were accepted.
    token:
        Opaque session token (``None`` on failure).
    error_code:
        Structured error category (``None`` on success).
    error_message:
        Human-readable failure reason, e.g. ``"Invalid username or
        password"`` (``None`` on success).
    """

    success: bool
    token: Optional[str] = None
    error_code: Optional[AuthErrorCode] = None
    error_message: Optional[str] = None

    model_config = {"from_attributes": True}
