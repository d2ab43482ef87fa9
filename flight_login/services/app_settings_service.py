"""
Application Settings Service.

Read/write access to the ``app_settings`` key-value table in the local
SQLite database.  Holds the *non-secret* half of the login bookkeeping:
the remember-me flag, the failure counter and the lockout timestamp.
Credentials and tokens never land here; see ``SecretStoreService``.

The table is created by ``schema.initialize_schema``::

    CREATE TABLE IF NOT EXISTS app_settings (
        key   TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""

from __future__ import annotations

from typing import Optional

from flight_login.database import DatabaseManager
from flight_login.logger import StructuredLogger
from flight_login.services.base_service import BaseService


class AppSettingsService(BaseService):
    """Manages persistent non-secret preferences in local SQLite.

    Parameters
    ----------
    db:
        Initialised ``DatabaseManager`` with active SQLite connection.
    logger:
        Structured logger instance.
    """

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        super().__init__(logger)
        self._db = db

    # ------------------------------------------------------------------
    # Generic key-value access
    # ------------------------------------------------------------------

    def get(self, key: str) -> Optional[str]:
        """Read a setting value by key.  Returns ``None`` if not found."""
        try:
            row = self._db.sqlite.execute(
                "SELECT value FROM app_settings WHERE key = ?",
                (key,),
            ).fetchone()
            return row["value"] if row is not None else None
        except Exception as exc:
            self._logger.warning("Failed to read app_settings[%s]: %s", key, exc)
            return None

    def set(self, key: str, value: str) -> bool:
        """Upsert a setting value.  Returns ``True`` on success."""
        try:
            with self._db.write_lock:
                self._db.sqlite.execute(
                    """
                    INSERT INTO app_settings (key, value)
                    VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value      = excluded.value,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    (key, value),
                )
                self._db.sqlite.commit()
            self._logger.debug("app_settings[%s] updated.", key)
            return True
        except Exception as exc:
            self._logger.error("Failed to write app_settings[%s]: %s", key, exc)
            return False

    def delete(self, key: str) -> bool:
        """Remove a setting.  Deleting a missing key is not an error."""
        try:
            with self._db.write_lock:
                self._db.sqlite.execute(
                    "DELETE FROM app_settings WHERE key = ?", (key,),
                )
                self._db.sqlite.commit()
            return True
        except Exception as exc:
            self._logger.error("Failed to delete app_settings[%s]: %s", key, exc)
            return False

    # ------------------------------------------------------------------
    # Typed convenience
    # ------------------------------------------------------------------

    def get_bool(self, key: str) -> bool:
        """Return a stored flag; missing or unreadable values are ``False``."""
        return self.get(key) == "1"

    def set_bool(self, key: str, value: bool) -> bool:
        return self.set(key, "1" if value else "0")

    def get_int(self, key: str) -> Optional[int]:
        """Return a stored integer, or ``None`` if absent or malformed."""
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            self._logger.warning(
                "app_settings[%s] is not an integer (%r); ignoring.", key, raw,
            )
            return None

    def set_int(self, key: str, value: int) -> bool:
        return self.set(key, str(value))
