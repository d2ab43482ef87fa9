"""
Login Screen State Models.

``LoginState`` is the single observable snapshot the state machine
publishes to the UI.  It is frozen: every transition produces a new
instance via ``model_copy(update=...)``, so listeners can keep a
reference without it changing underneath them.

``is_button_enabled`` is a computed field and cannot be assigned.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, computed_field

from flight_login.models.auth_models import AuthErrorCode

MIN_PASSWORD_LENGTH: int = 6


def is_login_allowed(
    username: str,
    password: str,
    is_offline: bool,
    is_locked_out: bool,
    is_loading: bool,
) -> bool:
    """The login button predicate."""
    return (
        bool(username)
        and bool(password)
        and len(password) >= MIN_PASSWORD_LENGTH
        and not is_offline
        and not is_locked_out
        and not is_loading
    )


class LoginState(BaseModel):
    """Immutable snapshot of everything the login screen renders."""

    username: str = ""
    password: str = Field(default="", repr=False)
    remember_me: bool = False
    is_locked_out: bool = False
    lockout_message: str = ""
    is_offline: bool = False
    error_message: str = ""
    error_code: Optional[AuthErrorCode] = None
    login_success: bool = False
    failure_count: int = Field(default=0, ge=0)
    is_loading: bool = False

    model_config = {"frozen": True}

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_button_enabled(self) -> bool:
        return is_login_allowed(
            self.username,
            self.password,
            self.is_offline,
            self.is_locked_out,
            self.is_loading,
        )


class LockoutRecord(BaseModel):
    """Persisted failure bookkeeping.

    Attributes
    ----------
    failure_count:
        Consecutive failed attempts since the last success or expiry.
    lockout_timestamp_ms:
        Epoch milliseconds at which the lockout engaged, or ``None``
        while below the threshold.
    """

    failure_count: int = Field(default=0, ge=0)
    lockout_timestamp_ms: Optional[int] = None


class StoredCredentials(BaseModel):
    """Remember-me payload read back from the secret store.

    Any field may be ``None`` when it was never written or has been
    cleared.
    """

    username: Optional[str] = None
    password: Optional[str] = Field(default=None, repr=False)
    token: Optional[str] = Field(default=None, repr=False)

    @property
    def is_complete(self) -> bool:
        """``True`` when both username and password are present."""
        return self.username is not None and self.password is not None
