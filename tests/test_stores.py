"""Tests for the plain settings store and the encrypted secret store."""

from __future__ import annotations

import stat
import sys

import pytest

from flight_login.services.app_settings_service import AppSettingsService
from flight_login.services.secret_store import SecretStoreService


class TestAppSettingsService:
    def test_missing_key_returns_none(self, settings):
        assert settings.get("nope") is None

    def test_set_then_get(self, settings):
        assert settings.set("theme", "dark") is True
        assert settings.get("theme") == "dark"

    def test_set_overwrites(self, settings):
        settings.set("theme", "dark")
        settings.set("theme", "light")
        assert settings.get("theme") == "light"

    def test_delete_missing_key_is_ok(self, settings):
        assert settings.delete("nope") is True

    def test_bool_helpers(self, settings):
        assert settings.get_bool("flag") is False
        settings.set_bool("flag", True)
        assert settings.get_bool("flag") is True
        settings.set_bool("flag", False)
        assert settings.get_bool("flag") is False

    def test_int_helpers(self, settings):
        settings.set_int("count", 2)
        assert settings.get_int("count") == 2

    def test_malformed_int_is_ignored(self, settings):
        settings.set("count", "two")
        assert settings.get_int("count") is None

    def test_values_are_plaintext_in_table(self, settings, db):
        settings.set("remember_me", "1")
        row = db.sqlite.execute(
            "SELECT value FROM app_settings WHERE key = ?", ("remember_me",),
        ).fetchone()
        assert row["value"] == "1"


class TestSecretStoreService:
    def test_roundtrip(self, secrets):
        assert secrets.set("saved_password", "password123") is True
        assert secrets.get("saved_password") == "password123"

    def test_missing_key_returns_none(self, secrets):
        assert secrets.get("saved_username") is None

    def test_ciphertext_does_not_contain_plaintext(self, secrets, db):
        secrets.set("saved_password", "password123")
        row = db.sqlite.execute(
            "SELECT ciphertext FROM secret_items WHERE key = ?",
            ("saved_password",),
        ).fetchone()
        assert b"password123" not in bytes(row["ciphertext"])

    def test_delete_removes_only_that_key(self, secrets):
        secrets.set("saved_username", "admin")
        secrets.set("saved_password", "password123")

        secrets.delete("saved_password")

        assert secrets.get("saved_password") is None
        assert secrets.get("saved_username") == "admin"

    def test_tampered_row_reads_as_none(self, secrets, db):
        secrets.set("auth_token", "token")
        db.sqlite.execute(
            "UPDATE secret_items SET tag = ? WHERE key = ?",
            (b"\x00" * 16, "auth_token"),
        )
        db.sqlite.commit()

        assert secrets.get("auth_token") is None

    def test_second_instance_reuses_salt(self, db, logger, salt_path, secrets):
        secrets.set("saved_username", "admin")

        reopened = SecretStoreService(
            db=db, logger=logger, salt_path=salt_path, kdf_iterations=1000,
        )
        assert reopened.get("saved_username") == "admin"

    def test_replaced_salt_makes_secrets_unreadable(self, db, logger, tmp_path, secrets):
        secrets.set("saved_username", "admin")

        other = SecretStoreService(
            db=db,
            logger=logger,
            salt_path=tmp_path / "other_salt",
            kdf_iterations=1000,
        )
        assert other.get("saved_username") is None

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions only")
    def test_salt_file_is_owner_only(self, secrets, salt_path):
        secrets.set("saved_username", "admin")

        mode = stat.S_IMODE(salt_path.stat().st_mode)
        assert mode == stat.S_IRUSR | stat.S_IWUSR

    def test_settings_and_secrets_do_not_share_keys(self, settings, secrets):
        assert isinstance(settings, AppSettingsService)
        secrets.set("remember_me", "secret")
        assert settings.get("remember_me") is None
