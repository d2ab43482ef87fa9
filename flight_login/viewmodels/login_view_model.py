"""
Login View Model — the login screen state machine.

Owns every piece of login-screen state and is the only writer of it.
The UI reads immutable ``LoginState`` snapshots delivered to listeners
and feeds field edits and button presses back in.

States::

    Idle ──login()──▶ Loading ──▶ Success
                          │
                          └──▶ Failed ──(threshold)──▶ LockedOut ──countdown──▶ Idle

Concurrency
-----------
All mutation happens on one asyncio event loop.  The authenticator call
and the lockout countdown are the only suspension points.  Connectivity
changes arrive on the monitor's thread and are re-posted onto the loop
with ``call_soon_threadsafe`` before ``is_offline`` is touched.  At most
one countdown task exists at a time; starting one cancels the previous.
"""

from __future__ import annotations

import asyncio
import sqlite3
from typing import Callable, Optional

from flight_login.logger import StructuredLogger
from flight_login.models.auth_models import (
    AuthErrorCode,
    ValidationResult,
)
from flight_login.models.login_state import MIN_PASSWORD_LENGTH, LoginState
from flight_login.repositories.auth_repository import AuthRepository
from flight_login.services.authenticator import (
    INVALID_CREDENTIALS_MESSAGE,
    Authenticator,
)
from flight_login.services.connectivity import ConnectivityMonitor
from flight_login.utils.audit import DetailValue, log_audit_event

StateListener = Callable[[LoginState], None]

OFFLINE_MESSAGE: str = "No internet connection. Please check your network."

_AUDIT_ENTITY: str = "LoginSession"


def format_remaining(remaining_ms: int) -> str:
    """Render milliseconds as ``M:SS``."""
    minutes = remaining_ms // 60_000
    seconds = (remaining_ms % 60_000) // 1000
    return f"{minutes}:{seconds:02d}"


class LoginViewModel:
    """Login state machine.

    Must be constructed on (or given) the event loop it will run on,
    because construction may already start a lockout countdown.

    Parameters
    ----------
    repository:
        Persistence for failure counts, lockout, remember-me and token.
    authenticator:
        Asynchronous credential check.
    connectivity:
        Online/offline signal; subscribed to exactly once.
    logger:
        Structured JSON logger.
    lockout_tick_s:
        Seconds between countdown refreshes.
    audit_conn:
        Optional SQLite connection mirroring audit events to ``audit_log``.
    loop:
        Event loop owning this instance; defaults to the running loop.
    """

    def __init__(
        self,
        repository: AuthRepository,
        authenticator: Authenticator,
        connectivity: ConnectivityMonitor,
        logger: StructuredLogger,
        lockout_tick_s: float = 1.0,
        audit_conn: Optional[sqlite3.Connection] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self._repo = repository
        self._authenticator = authenticator
        self._logger = logger
        self._lockout_tick_s = lockout_tick_s
        self._audit_conn = audit_conn
        self._loop: asyncio.AbstractEventLoop = loop or asyncio.get_running_loop()

        self._listeners: list[StateListener] = []
        self._lockout_task: Optional[asyncio.Task[None]] = None
        self._state: LoginState = LoginState(is_offline=not connectivity.is_online)

        self._unsubscribe_connectivity: Optional[Callable[[], None]] = (
            connectivity.subscribe(self._on_connectivity_changed)
        )
        self._load_initial_state()

    # ==================================================================
    # Observable state
    # ==================================================================

    @property
    def state(self) -> LoginState:
        return self._state

    @property
    def max_failed_attempts(self) -> int:
        return self._repo.max_failed_attempts

    @property
    def is_countdown_running(self) -> bool:
        return self._lockout_task is not None and not self._lockout_task.done()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call *listener* with every new state; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _update(self, **changes: object) -> None:
        new_state = self._state.model_copy(update=changes)
        if new_state == self._state:
            return
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                self._logger.error("Login state listener raised.", exc_info=True)

    # ==================================================================
    # Field edits
    # ==================================================================

    def set_username(self, username: str) -> None:
        self._update(username=username)

    def set_password(self, password: str) -> None:
        self._update(password=password)

    def set_remember_me(self, remember_me: bool) -> None:
        self._update(remember_me=remember_me)

    # ==================================================================
    # Validation
    # ==================================================================

    @staticmethod
    def validate_input(username: str, password: str) -> ValidationResult:
        """Check the credential fields before any authenticator call."""
        if not username:
            return ValidationResult(
                is_valid=False, error_message="Username cannot be empty",
            )
        if not password:
            return ValidationResult(
                is_valid=False, error_message="Password cannot be empty",
            )
        if len(password) < MIN_PASSWORD_LENGTH:
            return ValidationResult(
                is_valid=False,
                error_message=(
                    f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
                ),
            )
        return ValidationResult(is_valid=True)

    # ==================================================================
    # Login
    # ==================================================================

    async def login(self) -> None:
        """Run one login attempt.  A no-op while the button is disabled."""
        if not self._state.is_button_enabled:
            return

        # A stale countdown must not race this attempt on the lockout fields.
        self._cancel_lockout_countdown()

        username = self._state.username
        password = self._state.password

        validation = self.validate_input(username, password)
        if not validation.is_valid:
            self._update(
                error_message=validation.error_message or "",
                error_code=AuthErrorCode.VALIDATION_ERROR,
            )
            return

        if self._state.is_offline:
            self._update(
                error_message=OFFLINE_MESSAGE,
                error_code=AuthErrorCode.NETWORK_ERROR,
            )
            return

        if self._repo.is_locked_out():
            self._enter_lockout()
            return
        if self._repo.has_expired_lockout():
            self._expire_lockout()

        self._update(is_loading=True, error_message="", error_code=None)
        self._logger.info(
            "Login attempt for %s.", username,
            extra={"event": "LOGIN_ATTEMPT"},
        )

        try:
            result = await self._authenticator.authenticate(username, password)
        except Exception as exc:
            self._logger.warning(
                "Unexpected authenticator error for %s: %s", username, exc,
                exc_info=True,
                extra={"event": "LOGIN_ERROR"},
            )
            self._handle_failure(
                username, f"An error occurred: {exc}", AuthErrorCode.UNKNOWN_ERROR,
            )
            return

        if result.success and result.token:
            self._handle_success(username, password, result.token)
        elif result.success:
            self._handle_failure(
                username,
                "An error occurred: authenticator returned no session token",
                AuthErrorCode.UNKNOWN_ERROR,
            )
        else:
            self._handle_failure(
                username,
                result.error_message or INVALID_CREDENTIALS_MESSAGE,
                result.error_code or AuthErrorCode.INVALID_CREDENTIALS,
            )

    def _handle_success(self, username: str, password: str, token: str) -> None:
        remember_me = self._state.remember_me

        self._repo.reset_failure_count()
        self._repo.save_remember_me(username, password, remember_me)
        self._repo.save_auth_token(token)

        self._update(
            login_success=True,
            error_message="",
            error_code=None,
            failure_count=0,
            password="",
            is_locked_out=False,
            lockout_message="",
            is_loading=False,
        )
        self._audit("LOGIN", username, {"remember_me": remember_me})

    def _handle_failure(
        self,
        username: str,
        message: str,
        error_code: AuthErrorCode,
    ) -> None:
        """Count the failure, then either engage the lockout or report
        the remaining attempts.

        Every declared failure counts, whatever its error code.
        """
        max_failures = self._repo.max_failed_attempts
        new_count = self._repo.increment_failure_count()
        self._audit(
            "LOGIN_FAILED",
            username,
            {"failure_count": new_count, "error_code": str(error_code)},
        )

        if new_count >= max_failures:
            remaining = self._repo.get_remaining_lockout_ms()
            self._update(
                is_locked_out=True,
                lockout_message=(
                    f"Account locked after {max_failures} failed attempts. "
                    f"Please try again in {format_remaining(remaining)}"
                ),
                failure_count=new_count,
                error_message=(
                    message if error_code == AuthErrorCode.UNKNOWN_ERROR else ""
                ),
                error_code=AuthErrorCode.LOCKED_OUT,
                is_loading=False,
            )
            self._audit("LOCKOUT_ENGAGED", username, {"remaining_ms": remaining})
            self._start_lockout_countdown()
            return

        if error_code == AuthErrorCode.UNKNOWN_ERROR:
            error_message = message
        else:
            attempts_left = max_failures - new_count
            error_message = f"{message}. {attempts_left} attempt(s) remaining."

        self._update(
            error_message=error_message,
            error_code=error_code,
            failure_count=new_count,
            is_loading=False,
        )

    # ==================================================================
    # Lockout
    # ==================================================================

    def check_lockout_status(self) -> None:
        """Re-evaluate the persisted lockout.

        Active → enter LockedOut and (re)start the countdown.
        Expired → clear the persisted record and the in-memory lockout.
        Otherwise → adopt the persisted failure count.
        """
        if self._repo.is_locked_out():
            self._enter_lockout()
        elif self._repo.has_expired_lockout():
            self._expire_lockout()
        else:
            self._update(failure_count=self._repo.get_failure_count())

    def _enter_lockout(self) -> None:
        remaining = self._repo.get_remaining_lockout_ms()
        self._update(
            is_locked_out=True,
            lockout_message=self._countdown_message(remaining),
            failure_count=self._repo.get_failure_count(),
            error_code=AuthErrorCode.LOCKED_OUT,
        )
        self._start_lockout_countdown()

    def _expire_lockout(self) -> None:
        self._repo.reset_failure_count()
        was_locked = self._state.is_locked_out
        changes: dict[str, object] = {
            "is_locked_out": False,
            "lockout_message": "",
            "failure_count": 0,
        }
        if self._state.error_code == AuthErrorCode.LOCKED_OUT:
            changes["error_code"] = None
        self._update(**changes)
        if was_locked:
            self._audit("LOCKOUT_EXPIRED", self._state.username or "unknown")

    @staticmethod
    def _countdown_message(remaining_ms: int) -> str:
        return f"Account locked. Please try again in {format_remaining(remaining_ms)}"

    def _start_lockout_countdown(self) -> None:
        self._cancel_lockout_countdown()
        self._lockout_task = self._loop.create_task(self._run_lockout_countdown())

    def _cancel_lockout_countdown(self) -> None:
        task, self._lockout_task = self._lockout_task, None
        if task is not None and not task.done():
            task.cancel()

    async def _run_lockout_countdown(self) -> None:
        while True:
            await asyncio.sleep(self._lockout_tick_s)
            remaining = self._repo.get_remaining_lockout_ms()
            if remaining > 0:
                self._update(lockout_message=self._countdown_message(remaining))
            else:
                self._expire_lockout()
                return

    # ==================================================================
    # Connectivity
    # ==================================================================

    def _on_connectivity_changed(self, online: bool) -> None:
        # Monitor thread; hop onto the owning loop.
        try:
            self._loop.call_soon_threadsafe(self._set_offline, not online)
        except RuntimeError:
            self._logger.debug("Event loop closed; dropping connectivity update.")

    def _set_offline(self, offline: bool) -> None:
        self._update(is_offline=offline)

    # ==================================================================
    # Initial load / logout / forget me
    # ==================================================================

    def _load_initial_state(self) -> None:
        if self._repo.get_remember_me_flag():
            credentials = self._repo.get_saved_credentials()
            if credentials.is_complete:
                self._update(
                    username=credentials.username,
                    password=credentials.password,
                    remember_me=True,
                )
        self.check_lockout_status()

    def reset_login_state(self) -> None:
        """Log out.

        The session token is always cleared.  With remember-me persisted
        the stored credentials are reloaded into the fields; without it
        they are deleted and the fields emptied.
        """
        username = self._state.username or "unknown"
        self._repo.clear_auth_token()

        if not self._repo.get_remember_me_flag():
            self._repo.clear_credentials()
            self._update(
                username="",
                password="",
                remember_me=False,
                login_success=False,
                error_message="",
                error_code=None,
            )
        else:
            credentials = self._repo.get_saved_credentials()
            if credentials.is_complete:
                self._update(
                    username=credentials.username,
                    password=credentials.password,
                    remember_me=True,
                    login_success=False,
                    error_message="",
                    error_code=None,
                )
            else:
                self._update(
                    password="",
                    login_success=False,
                    error_message="",
                    error_code=None,
                )

        self._audit("LOGOUT", username)

    def forget_me(self) -> None:
        """Delete remembered credentials, token and the remember-me flag."""
        self._repo.forget()
        self._update(remember_me=False)
        self._audit("FORGET_ME", self._state.username or "unknown")

    def close(self) -> None:
        """Cancel the countdown and drop the connectivity subscription."""
        self._cancel_lockout_countdown()
        if self._unsubscribe_connectivity is not None:
            self._unsubscribe_connectivity()
            self._unsubscribe_connectivity = None
        self._listeners.clear()

    # ==================================================================
    # Helpers
    # ==================================================================

    def _audit(
        self,
        action: str,
        username: str,
        details: Optional[dict[str, DetailValue]] = None,
    ) -> None:
        log_audit_event(
            self._logger,
            action=action,
            entity_type=_AUDIT_ENTITY,
            entity_id=username,
            details=details,
            conn=self._audit_conn,
        )
