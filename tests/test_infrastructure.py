"""Tests for schema, logging, audit, the loop thread, config and wiring."""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3

import pytest
from pydantic import ValidationError

from flight_login import config as config_module
from flight_login import schema
from flight_login.config import AppConfig
from flight_login.logger import StructuredLogger
from flight_login.repositories.auth_repository import AuthRepository
from flight_login.schema import CURRENT_SCHEMA_VERSION, initialize_schema
from flight_login.services import create_services
from flight_login.services.authenticator import MockAuthenticator
from flight_login.services.connectivity import SocketConnectivityMonitor
from flight_login.utils.async_loop import AsyncLoopThread
from flight_login.utils.audit import log_audit_event


def _log_lines(stream) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


class TestSchema:
    def test_tables_exist(self, db):
        names = {
            row["name"]
            for row in db.sqlite.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table'",
            )
        }
        assert {"app_settings", "secret_items", "audit_log", "schema_version"} <= names

    def test_version_recorded(self, db):
        row = db.sqlite.execute("SELECT version FROM schema_version").fetchone()
        assert row["version"] == CURRENT_SCHEMA_VERSION

    def test_initialize_is_idempotent(self, db, logger, settings):
        settings.set("remember_me", "1")

        initialize_schema(db.sqlite, logger)

        assert settings.get("remember_me") == "1"

    def test_failed_bootstrap_leaves_version_unset(
        self, tmp_path, logger, log_stream, monkeypatch,
    ):
        monkeypatch.setattr(schema, "_TABLE_DEFINITIONS", ["CREATE TABLE broken ("])
        conn = sqlite3.connect(tmp_path / "broken.db")
        try:
            with pytest.raises(sqlite3.OperationalError):
                initialize_schema(conn, logger)

            assert schema._get_schema_version(conn) == 0
        finally:
            conn.close()

        assert any(
            "Schema upgrade failed" in line["message"]
            for line in _log_lines(log_stream)
        )


class TestStructuredLogger:
    def test_emits_json_with_extra_fields(self, logger, log_stream):
        logger.info("Lockout engaged for %s.", "admin", extra={"event": "LOCKOUT_ENGAGED"})

        entry = _log_lines(log_stream)[-1]
        assert entry["level"] == "INFO"
        assert entry["message"] == "Lockout engaged for admin."
        assert entry["extra"] == {"event": "LOCKOUT_ENGAGED"}
        assert "timestamp" in entry

    def test_exception_is_included(self, logger, log_stream):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            logger.error("Failed.", exc_info=True)

        entry = _log_lines(log_stream)[-1]
        assert "RuntimeError: boom" in entry["exception"]

    def test_empty_log_file_disables_file_handler(self, tmp_path, log_stream):
        structured = StructuredLogger(
            name="tests.no_file_handler", stream=log_stream, log_file="",
        )
        assert len(structured.logger.handlers) == 1

    def test_extra_scalars_keep_json_types(self, logger, log_stream):
        logger.info(
            "Failure recorded.",
            extra={"failure_count": 2, "remember_me": False, "clock": object},
        )

        extra = _log_lines(log_stream)[-1]["extra"]
        assert extra["failure_count"] == 2
        assert extra["remember_me"] is False
        assert extra["clock"] == str(object)

    def test_level_comes_from_config(self, monkeypatch, log_stream):
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        monkeypatch.setattr(config_module, "_config_instance", AppConfig(_env_file=None))

        structured = StructuredLogger(
            name="tests.config_level", stream=log_stream, log_file="",
        )

        assert structured.logger.level == logging.WARNING

    def test_unwritable_log_file_falls_back_to_console(self, tmp_path, log_stream):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("x")

        structured = StructuredLogger(
            name="tests.bad_log_file",
            stream=log_stream,
            log_file=str(blocker / "app.log"),
        )

        assert len(structured.logger.handlers) == 1
        assert "logging to console only" in _log_lines(log_stream)[-1]["message"]


class TestAudit:
    def test_event_is_logged_and_persisted(self, logger, log_stream, db):
        event = log_audit_event(
            logger,
            action="LOGIN",
            entity_type="LoginSession",
            entity_id="admin",
            details={"remember_me": True},
            conn=db.sqlite,
        )

        entry = _log_lines(log_stream)[-1]
        assert entry["message"].startswith("AUDIT: ")
        assert json.loads(entry["message"][len("AUDIT: "):])["action"] == "LOGIN"

        row = db.sqlite.execute("SELECT * FROM audit_log").fetchone()
        assert row["action"] == "LOGIN"
        assert row["entity_id"] == "admin"
        assert json.loads(row["details"]) == {"remember_me": True}
        assert row["timestamp"] == event.timestamp

    def test_persistence_failure_is_logged_not_raised(self, logger, log_stream, db):
        db.sqlite.execute("DROP TABLE audit_log")

        event = log_audit_event(
            logger, action="LOGOUT", entity_type="LoginSession",
            entity_id="admin", conn=db.sqlite,
        )

        assert event.action == "LOGOUT"
        assert any(
            "Failed to persist audit event" in line["message"]
            for line in _log_lines(log_stream)
        )


class TestAsyncLoopThread:
    def test_submit_runs_coroutine_on_loop_thread(self, logger):
        loop_thread = AsyncLoopThread(logger)
        loop_thread.start()
        try:
            async def answer():
                await asyncio.sleep(0)
                return 42

            assert loop_thread.submit(answer()).result(timeout=2.0) == 42
        finally:
            loop_thread.stop()

        assert loop_thread.is_running is False

    def test_call_runs_callable(self, logger):
        loop_thread = AsyncLoopThread(logger)
        loop_thread.start()
        seen = []
        try:
            loop_thread.call(seen.append, "x")

            async def flush():
                return None

            loop_thread.submit(flush()).result(timeout=2.0)
        finally:
            loop_thread.stop()

        assert seen == ["x"]

    def test_failed_coroutine_is_logged(self, logger, log_stream):
        loop_thread = AsyncLoopThread(logger)
        loop_thread.start()
        try:
            async def explode():
                raise ValueError("bad")

            future = loop_thread.submit(explode())
            with pytest.raises(ValueError):
                future.result(timeout=2.0)
        finally:
            loop_thread.stop()

        assert any(
            "Background coroutine failed" in line["message"]
            for line in _log_lines(log_stream)
        )


class TestConfig:
    def test_defaults(self):
        config = AppConfig(_env_file=None)

        assert config.MAX_FAILED_ATTEMPTS == 3
        assert config.LOCKOUT_DURATION_MS == 60_000
        assert config.MOCK_AUTH_USERNAME == "admin"
        assert config.MOCK_AUTH_PASSWORD.get_secret_value() == "password123"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("MAX_FAILED_ATTEMPTS", "5")

        assert AppConfig(_env_file=None).MAX_FAILED_ATTEMPTS == 5

    @pytest.mark.parametrize(
        "field",
        ["MAX_FAILED_ATTEMPTS", "LOCKOUT_DURATION_MS", "LOCKOUT_TICK_S"],
    )
    def test_policy_must_be_positive(self, monkeypatch, field):
        monkeypatch.setenv(field, "0")

        with pytest.raises(ValidationError):
            AppConfig(_env_file=None)

    def test_salt_path_expands_user(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setenv("SECRET_SALT_PATH", "~/salt")

        assert AppConfig(_env_file=None).salt_path == tmp_path / "salt"


class TestCreateServices:
    def test_wires_every_service(self, db, tmp_path, monkeypatch, clock):
        monkeypatch.setenv("SECRET_SALT_PATH", str(tmp_path / "salt"))
        monkeypatch.setenv("SECRET_KDF_ITERATIONS", "1000")
        config = AppConfig(_env_file=None)

        services = create_services(db=db, config=config, clock=clock)

        assert isinstance(services["auth_repository"], AuthRepository)
        assert isinstance(services["authenticator"], MockAuthenticator)
        assert isinstance(services["connectivity_monitor"], SocketConnectivityMonitor)
        assert services["connectivity_monitor"].is_running is False

        repository = services["auth_repository"]
        repository.save_remember_me("admin", "password123", True)
        assert services["secret_store_service"].get("saved_password") == "password123"
        assert services["app_settings_service"].get_bool("remember_me") is True
