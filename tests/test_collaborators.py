"""Tests for the mock authenticator and the connectivity monitors."""

from __future__ import annotations

import socket
import threading

import pytest

from flight_login.models.auth_models import AuthErrorCode
from flight_login.services.authenticator import (
    INVALID_CREDENTIALS_MESSAGE,
    MockAuthenticator,
)
from flight_login.services.connectivity import (
    ObservableConnectivity,
    SocketConnectivityMonitor,
)


@pytest.fixture
def mock_authenticator(logger, clock):
    return MockAuthenticator(
        valid_username="admin",
        valid_password="password123",
        logger=logger,
        delay_s=0,
        clock=clock,
    )


class TestMockAuthenticator:
    @pytest.mark.asyncio
    async def test_valid_credentials_return_token(self, mock_authenticator, clock):
        result = await mock_authenticator.authenticate("admin", "password123")

        assert result.success is True
        assert result.token == f"auth_token_{clock.now_ms}_admin"
        assert result.error_code is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("username", "password"),
        [("admin", "wrongpass"), ("pilot", "password123"), ("Admin", "password123")],
    )
    async def test_invalid_credentials(self, mock_authenticator, username, password):
        result = await mock_authenticator.authenticate(username, password)

        assert result.success is False
        assert result.token is None
        assert result.error_code == AuthErrorCode.INVALID_CREDENTIALS
        assert result.error_message == INVALID_CREDENTIALS_MESSAGE

    @pytest.mark.asyncio
    async def test_delay_is_awaited(self, logger):
        authenticator = MockAuthenticator(
            valid_username="admin",
            valid_password="password123",
            logger=logger,
            delay_s=0.05,
        )

        result = await authenticator.authenticate("admin", "password123")

        assert result.token.startswith("auth_token_")
        assert result.token.endswith("_admin")


class TestObservableConnectivity:
    def test_notifies_only_on_change(self, logger):
        monitor = ObservableConnectivity(logger, initial_online=True)
        seen = []
        monitor.subscribe(seen.append)

        monitor._publish(True)
        monitor._publish(False)
        monitor._publish(False)
        monitor._publish(True)

        assert seen == [False, True]
        assert monitor.is_online is True

    def test_unsubscribe(self, logger):
        monitor = ObservableConnectivity(logger)
        seen = []
        unsubscribe = monitor.subscribe(seen.append)

        unsubscribe()
        unsubscribe()
        monitor._publish(False)

        assert seen == []

    def test_failing_subscriber_does_not_block_others(self, logger):
        monitor = ObservableConnectivity(logger)
        seen = []

        def broken(_online):
            raise RuntimeError("subscriber bug")

        monitor.subscribe(broken)
        monitor.subscribe(seen.append)
        monitor._publish(False)

        assert seen == [False]


@pytest.fixture
def listening_port():
    """A local TCP port that accepts connections."""
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen()
    yield server.getsockname()[1]
    server.close()


@pytest.fixture
def closed_port():
    """A local TCP port with nothing listening on it."""
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    return port


class TestSocketConnectivityMonitor:
    def test_starts_optimistic(self, logger, closed_port):
        monitor = SocketConnectivityMonitor("127.0.0.1", closed_port, logger)
        assert monitor.is_online is True
        assert monitor.is_running is False

    def test_probe_reports_reachable_endpoint(self, logger, listening_port):
        monitor = SocketConnectivityMonitor(
            "127.0.0.1", listening_port, logger, timeout_s=1.0,
        )
        assert monitor.check_now() is True
        assert monitor.is_online is True

    def test_probe_reports_unreachable_endpoint(self, logger, closed_port):
        monitor = SocketConnectivityMonitor(
            "127.0.0.1", closed_port, logger, timeout_s=1.0,
        )
        seen = []
        monitor.subscribe(seen.append)

        assert monitor.check_now() is False
        assert monitor.is_online is False
        assert seen == [False]

    def test_start_stop_lifecycle(self, logger, closed_port):
        monitor = SocketConnectivityMonitor(
            "127.0.0.1", closed_port, logger, poll_interval_s=0.05, timeout_s=0.5,
        )
        went_offline = threading.Event()
        monitor.subscribe(lambda online: online or went_offline.set())

        monitor.start()
        monitor.start()
        try:
            assert monitor.is_running is True
            assert went_offline.wait(timeout=2.0)
        finally:
            monitor.stop()

        assert monitor.is_running is False
        monitor.stop()
