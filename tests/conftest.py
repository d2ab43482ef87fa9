"""Shared fixtures for the Flight Login test suite.

Everything runs against a throw-away SQLite file under ``tmp_path``, a
low-iteration secret store, and a fake millisecond clock so lockout
expiry never requires real waiting.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import AsyncIterator, Callable, Iterator
from io import StringIO
from pathlib import Path
from typing import Optional

# No rotating log file during tests; must be set before AppConfig loads.
os.environ.setdefault("LOG_FILE", "")

import pytest
import pytest_asyncio

from flight_login.database import DatabaseManager
from flight_login.logger import StructuredLogger
from flight_login.models.auth_models import AuthErrorCode, AuthResult
from flight_login.repositories.auth_repository import AuthRepository
from flight_login.schema import initialize_schema
from flight_login.services.app_settings_service import AppSettingsService
from flight_login.services.authenticator import INVALID_CREDENTIALS_MESSAGE
from flight_login.services.connectivity import ObservableConnectivity
from flight_login.services.secret_store import SecretStoreService
from flight_login.viewmodels.login_view_model import LoginViewModel

VALID_USERNAME = "admin"
VALID_PASSWORD = "password123"
START_MS = 1_700_000_000_000


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------

class FakeClock:
    """Settable epoch-millisecond clock."""

    def __init__(self, now_ms: int = START_MS) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


class ScriptedAuthenticator:
    """Accepts one username/password pair, with optional failure injection.

    ``error`` makes the next calls raise and ``failure`` makes them return
    that declared result. ``gate`` holds every call until the event is set,
    so tests can observe the loading state.
    """

    def __init__(
        self,
        valid_username: str = VALID_USERNAME,
        valid_password: str = VALID_PASSWORD,
    ) -> None:
        self.valid_username = valid_username
        self.valid_password = valid_password
        self.error: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None
        self.return_empty_token: bool = False
        self.failure: Optional[AuthResult] = None
        self.calls: list[tuple[str, str]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def authenticate(self, username: str, password: str) -> AuthResult:
        self.calls.append((username, password))
        if self.gate is not None:
            await self.gate.wait()
        await asyncio.sleep(0)

        if self.error is not None:
            raise self.error
        if self.failure is not None:
            return self.failure
        if username == self.valid_username and password == self.valid_password:
            token = None if self.return_empty_token else f"token_{username}"
            return AuthResult(success=True, token=token)
        return AuthResult(
            success=False,
            error_code=AuthErrorCode.INVALID_CREDENTIALS,
            error_message=INVALID_CREDENTIALS_MESSAGE,
        )


class ManualConnectivity(ObservableConnectivity):
    """Connectivity signal driven directly by the test."""

    def set_online(self, online: bool) -> None:
        self._publish(online)


async def settle(turns: int = 5) -> None:
    """Give the loop a few iterations to run posted callbacks."""
    for _ in range(turns):
        await asyncio.sleep(0)


# ---------------------------------------------------------------------------
# Infrastructure fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def log_stream() -> StringIO:
    return StringIO()


@pytest.fixture
def logger(request: pytest.FixtureRequest, log_stream: StringIO) -> StructuredLogger:
    # Unique name per test: StructuredLogger never re-attaches handlers.
    return StructuredLogger(
        name=f"tests.{request.node.nodeid}",
        stream=log_stream,
        log_file="",
    )


@pytest.fixture
def db(tmp_path: Path, logger: StructuredLogger) -> Iterator[DatabaseManager]:
    manager = DatabaseManager(sqlite_path=tmp_path / "test.db", logger=logger)
    initialize_schema(manager.sqlite, logger)
    yield manager
    manager.close()


@pytest.fixture
def settings(db: DatabaseManager, logger: StructuredLogger) -> AppSettingsService:
    return AppSettingsService(db=db, logger=logger)


@pytest.fixture
def salt_path(tmp_path: Path) -> Path:
    return tmp_path / "salt"


@pytest.fixture
def secrets(
    db: DatabaseManager,
    logger: StructuredLogger,
    salt_path: Path,
) -> SecretStoreService:
    return SecretStoreService(
        db=db, logger=logger, salt_path=salt_path, kdf_iterations=1000,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository(
    settings: AppSettingsService,
    secrets: SecretStoreService,
    logger: StructuredLogger,
    clock: FakeClock,
) -> AuthRepository:
    return AuthRepository(
        settings=settings,
        secrets=secrets,
        logger=logger,
        max_failed_attempts=3,
        lockout_duration_ms=60_000,
        clock=clock,
    )


@pytest.fixture
def authenticator() -> ScriptedAuthenticator:
    return ScriptedAuthenticator()


@pytest.fixture
def connectivity(logger: StructuredLogger) -> ManualConnectivity:
    return ManualConnectivity(logger, initial_online=True)


@pytest_asyncio.fixture
async def make_view_model(
    repository: AuthRepository,
    authenticator: ScriptedAuthenticator,
    connectivity: ManualConnectivity,
    logger: StructuredLogger,
    db: DatabaseManager,
) -> AsyncIterator[Callable[[], LoginViewModel]]:
    """Factory so each test decides when construction (initial load) happens."""
    created: list[LoginViewModel] = []

    def _make() -> LoginViewModel:
        view_model = LoginViewModel(
            repository=repository,
            authenticator=authenticator,
            connectivity=connectivity,
            logger=logger,
            lockout_tick_s=0.01,
            audit_conn=db.sqlite,
        )
        created.append(view_model)
        return view_model

    yield _make

    for view_model in created:
        view_model.close()
    await settle()
