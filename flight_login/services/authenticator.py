"""
Authenticator Service.

Defines the ``Authenticator`` contract consumed by the login state
machine and ships the mock remote authenticator used by the app.

Contract
--------
``await authenticate(username, password)`` returns an ``AuthResult``:

- ``success=True`` with an opaque ``token``, or
- ``success=False`` with ``error_code=INVALID_CREDENTIALS`` and a
  human-readable ``error_message``.

Any exception raised instead is treated by the caller as an
unexpected error, distinct from a declared failure.
"""

from __future__ import annotations

import asyncio
import hmac
from typing import Callable, Protocol

from flight_login.logger import StructuredLogger
from flight_login.models.auth_models import AuthErrorCode, AuthResult
from flight_login.repositories.auth_repository import current_time_ms
from flight_login.services.base_service import BaseService

INVALID_CREDENTIALS_MESSAGE: str = "Invalid username or password"


class Authenticator(Protocol):
    """Asynchronous credential check."""

    async def authenticate(self, username: str, password: str) -> AuthResult: ...


class MockAuthenticator(BaseService):
    """Simulated remote authenticator.

    Waits ``delay_s`` to mimic a network round-trip, then accepts exactly
    one username/password pair.  Tokens have the form
    ``auth_token_<epoch_ms>_<username>``.

    Parameters
    ----------
    valid_username:
        The only username accepted.
    valid_password:
        The only password accepted.
    logger:
        Structured logger instance.
    delay_s:
        Simulated latency in seconds.
    clock:
        Epoch-millisecond clock used to stamp tokens.
    """

    def __init__(
        self,
        valid_username: str,
        valid_password: str,
        logger: StructuredLogger,
        delay_s: float = 1.0,
        clock: Callable[[], int] = current_time_ms,
    ) -> None:
        super().__init__(logger)
        self._valid_username = valid_username
        self._valid_password = valid_password
        self._delay_s = delay_s
        self._clock = clock

    async def authenticate(self, username: str, password: str) -> AuthResult:
        if self._delay_s > 0:
            await asyncio.sleep(self._delay_s)

        username_ok = hmac.compare_digest(
            username.encode("utf-8"), self._valid_username.encode("utf-8"),
        )
        password_ok = hmac.compare_digest(
            password.encode("utf-8"), self._valid_password.encode("utf-8"),
        )
        if username_ok and password_ok:
            self._logger.debug("Mock authentication accepted for %s.", username)
            return AuthResult(
                success=True,
                token=f"auth_token_{self._clock()}_{username}",
            )

        self._logger.debug("Mock authentication rejected for %s.", username)
        return AuthResult(
            success=False,
            error_code=AuthErrorCode.INVALID_CREDENTIALS,
            error_message=INVALID_CREDENTIALS_MESSAGE,
        )
