"""
Authentication Bookkeeping Repository.

The single data-access seam used by the login state machine.  It maps
login concepts (failure count, lockout, remember-me, session token)
onto the two backing stores and keeps their sensitivity split intact:

============================  =======================
Concept                       Store
============================  =======================
remember-me flag              ``AppSettingsService``
failure count                 ``AppSettingsService``
lockout timestamp (epoch ms)  ``AppSettingsService``
saved username / password     ``SecretStore``
session token                 ``SecretStore``
============================  =======================

Time comes from an injectable millisecond clock so lockout expiry can be
exercised without waiting.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Callable, Optional

from flight_login.logger import StructuredLogger
from flight_login.models.login_state import LockoutRecord, StoredCredentials

if TYPE_CHECKING:
    from flight_login.services.app_settings_service import AppSettingsService
    from flight_login.services.secret_store import SecretStore

# app_settings keys
KEY_REMEMBER_ME: str = "remember_me"
KEY_FAILURE_COUNT: str = "failure_count"
KEY_LOCKOUT_TIMESTAMP: str = "lockout_timestamp"

# secret_items keys
KEY_SAVED_USERNAME: str = "saved_username"
KEY_SAVED_PASSWORD: str = "saved_password"
KEY_AUTH_TOKEN: str = "auth_token"

Clock = Callable[[], int]


def current_time_ms() -> int:
    """Wall-clock epoch milliseconds."""
    return int(time.time() * 1000)


class AuthRepository:
    """Persists failure counters, lockout, remember-me and token state.

    Parameters
    ----------
    settings:
        Plain key-value store for non-secret flags and counters.
    secrets:
        Encrypted key-value store for credentials and the token.
    logger:
        Structured logger instance.
    max_failed_attempts:
        Failure count at which the lockout timestamp is written.
    lockout_duration_ms:
        Length of a lockout measured from its timestamp.
    clock:
        Zero-argument callable returning epoch milliseconds.
    """

    def __init__(
        self,
        settings: AppSettingsService,
        secrets: SecretStore,
        logger: StructuredLogger,
        max_failed_attempts: int = 3,
        lockout_duration_ms: int = 60_000,
        clock: Clock = current_time_ms,
    ) -> None:
        self._settings = settings
        self._secrets = secrets
        self._logger = logger
        self._max_failed_attempts = max_failed_attempts
        self._lockout_duration_ms = lockout_duration_ms
        self._clock = clock

    @property
    def max_failed_attempts(self) -> int:
        return self._max_failed_attempts

    @property
    def lockout_duration_ms(self) -> int:
        return self._lockout_duration_ms

    # ==================================================================
    # Failure count / lockout
    # ==================================================================

    def get_lockout_record(self) -> LockoutRecord:
        """Return the persisted failure bookkeeping (zeroed when absent)."""
        return LockoutRecord(
            failure_count=max(self._settings.get_int(KEY_FAILURE_COUNT) or 0, 0),
            lockout_timestamp_ms=self._settings.get_int(KEY_LOCKOUT_TIMESTAMP),
        )

    def get_failure_count(self) -> int:
        return self.get_lockout_record().failure_count

    def increment_failure_count(self) -> int:
        """Record one failed attempt and return the new count.

        Writes the lockout timestamp when the count reaches the threshold.
        The count never exceeds ``max_failed_attempts``.
        """
        new_count = min(self.get_failure_count() + 1, self._max_failed_attempts)
        self._settings.set_int(KEY_FAILURE_COUNT, new_count)

        if new_count >= self._max_failed_attempts:
            self._settings.set_int(KEY_LOCKOUT_TIMESTAMP, self._clock())
            self._logger.warning(
                "Lockout engaged: %d failed attempts. Locked for %d ms.",
                new_count,
                self._lockout_duration_ms,
                extra={"event": "LOCKOUT_ENGAGED"},
            )
        return new_count

    def reset_failure_count(self) -> None:
        """Clear the failure counter and any lockout timestamp."""
        self._settings.delete(KEY_FAILURE_COUNT)
        self._settings.delete(KEY_LOCKOUT_TIMESTAMP)

    def is_locked_out(self) -> bool:
        """``True`` while ``now - lockout_timestamp < lockout_duration``."""
        return self.get_remaining_lockout_ms() > 0

    def get_remaining_lockout_ms(self) -> int:
        """Milliseconds left in the current lockout; ``0`` when not locked."""
        timestamp = self._settings.get_int(KEY_LOCKOUT_TIMESTAMP)
        if timestamp is None:
            return 0
        remaining = self._lockout_duration_ms - (self._clock() - timestamp)
        return remaining if remaining > 0 else 0

    def has_expired_lockout(self) -> bool:
        """``True`` when a lockout timestamp is stored but no longer active."""
        timestamp = self._settings.get_int(KEY_LOCKOUT_TIMESTAMP)
        return timestamp is not None and not self.is_locked_out()

    # ==================================================================
    # Remember me & credentials
    # ==================================================================

    def save_remember_me(self, username: str, password: str, remember: bool) -> None:
        """Persist the remember-me flag, and the credentials when set.

        Turning the flag off clears any stored credentials.
        """
        self._settings.set_bool(KEY_REMEMBER_ME, remember)
        if remember:
            self._secrets.set(KEY_SAVED_USERNAME, username)
            self._secrets.set(KEY_SAVED_PASSWORD, password)
        else:
            self.clear_credentials()

    def get_remember_me_flag(self) -> bool:
        return self._settings.get_bool(KEY_REMEMBER_ME)

    def get_saved_credentials(self) -> StoredCredentials:
        return StoredCredentials(
            username=self._secrets.get(KEY_SAVED_USERNAME),
            password=self._secrets.get(KEY_SAVED_PASSWORD),
            token=self._secrets.get(KEY_AUTH_TOKEN),
        )

    def clear_credentials(self) -> None:
        self._secrets.delete(KEY_SAVED_USERNAME)
        self._secrets.delete(KEY_SAVED_PASSWORD)

    def forget(self) -> None:
        """Drop every remembered secret and the remember-me flag."""
        self._settings.delete(KEY_REMEMBER_ME)
        self.clear_credentials()
        self.clear_auth_token()

    # ==================================================================
    # Session token
    # ==================================================================

    def save_auth_token(self, token: str) -> None:
        self._secrets.set(KEY_AUTH_TOKEN, token)

    def get_auth_token(self) -> Optional[str]:
        return self._secrets.get(KEY_AUTH_TOKEN)

    def clear_auth_token(self) -> None:
        self._secrets.delete(KEY_AUTH_TOKEN)
