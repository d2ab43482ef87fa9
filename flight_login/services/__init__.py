"""
Business Logic Services Package.

Local stores, the authenticator and the connectivity monitor behind the
login screen.

The ``create_services()`` factory wires every store, repository and
service together, returning a typed dict that the application layer
(view model / views) can consume without knowing the internal
dependency graph.
"""

from __future__ import annotations

from typing import TypedDict

from flight_login.config import AppConfig
from flight_login.database import DatabaseManager
from flight_login.logger import get_logger
from flight_login.repositories.auth_repository import (
    AuthRepository,
    Clock,
    current_time_ms,
)
from flight_login.services.app_settings_service import AppSettingsService
from flight_login.services.authenticator import MockAuthenticator
from flight_login.services.connectivity import SocketConnectivityMonitor
from flight_login.services.secret_store import SecretStoreService


class ServiceContainer(TypedDict):
    """Typed container for all application services."""

    # --- Stores ---
    app_settings_service: AppSettingsService
    secret_store_service: SecretStoreService

    # --- Login bookkeeping ---
    auth_repository: AuthRepository

    # --- Collaborators of the login state machine ---
    authenticator: MockAuthenticator
    connectivity_monitor: SocketConnectivityMonitor


def create_services(
    db: DatabaseManager,
    config: AppConfig,
    clock: Clock = current_time_ms,
) -> ServiceContainer:
    """
    Wire all stores, repositories and services together.

    This is the single composition root for the service layer.  The
    application entry-point calls this once at startup.  Background
    threads are *not* started here; the caller owns that lifecycle.

    Args:
        db: Initialised DatabaseManager with the schema applied.
        config: Application configuration.
        clock: Epoch-millisecond clock shared by lockout and token stamps.

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
    """
    logger = get_logger("services")

    # ------------------------------------------------------------------
    # 1. Stores (data-access layer)
    # ------------------------------------------------------------------
    app_settings_service = AppSettingsService(db=db, logger=logger)
    secret_store_service = SecretStoreService(
        db=db,
        logger=logger,
        salt_path=config.salt_path,
        kdf_iterations=config.SECRET_KDF_ITERATIONS,
    )

    # ------------------------------------------------------------------
    # 2. Repository
    # ------------------------------------------------------------------
    auth_repository = AuthRepository(
        settings=app_settings_service,
        secrets=secret_store_service,
        logger=get_logger("auth_repository"),
        max_failed_attempts=config.MAX_FAILED_ATTEMPTS,
        lockout_duration_ms=config.LOCKOUT_DURATION_MS,
        clock=clock,
    )

    # ------------------------------------------------------------------
    # 3. External collaborators
    # ------------------------------------------------------------------
    authenticator = MockAuthenticator(
        valid_username=config.MOCK_AUTH_USERNAME,
        valid_password=config.MOCK_AUTH_PASSWORD.get_secret_value(),
        logger=get_logger("authenticator"),
        delay_s=config.MOCK_AUTH_DELAY_S,
        clock=clock,
    )
    connectivity_monitor = SocketConnectivityMonitor(
        host=config.CONNECTIVITY_PROBE_HOST,
        port=config.CONNECTIVITY_PROBE_PORT,
        logger=get_logger("connectivity"),
        poll_interval_s=config.CONNECTIVITY_POLL_INTERVAL_S,
        timeout_s=config.CONNECTIVITY_PROBE_TIMEOUT_S,
    )

    return ServiceContainer(
        app_settings_service=app_settings_service,
        secret_store_service=secret_store_service,
        auth_repository=auth_repository,
        authenticator=authenticator,
        connectivity_monitor=connectivity_monitor,
    )
