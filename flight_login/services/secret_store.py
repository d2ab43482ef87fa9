"""
Encrypted Secret Store Service.

Key-value storage for the *secret* half of the login bookkeeping: the
remembered username and password and the session token.  Each value is
encrypted individually and stored in the SQLite ``secret_items`` table,
so a delete removes exactly one secret.

Security model
--------------
- The encryption key is derived at runtime from machine identity
  (hostname + OS username) via PBKDF2-HMAC-SHA256 with a per-machine
  random salt file.  The key is **never** persisted to disk; it is
  derived once per service instance and held in memory.
- Values are encrypted with AES-256-GCM, providing confidentiality and
  integrity.  A value that fails authentication (corrupted row, salt
  file replaced, different OS user) reads back as ``None``.

Storage layout::

    secret_items
    ├── key        TEXT PRIMARY KEY
    ├── ciphertext BLOB
    ├── nonce      BLOB
    └── tag        BLOB
"""

from __future__ import annotations

import getpass
import os
import platform
import socket
import stat
import subprocess
from pathlib import Path
from typing import Optional, Protocol

from Crypto.Cipher import AES
from Crypto.Hash import SHA256
from Crypto.Protocol.KDF import PBKDF2

from flight_login.database import DatabaseManager
from flight_login.logger import StructuredLogger
from flight_login.services.base_service import BaseService


class SecretStore(Protocol):
    """Opaque key-value secret store contract."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> bool: ...

    def delete(self, key: str) -> bool: ...


class SecretStoreService(BaseService):
    """AES-256-GCM encrypted key-value store backed by local SQLite.

    Parameters
    ----------
    db:
        An initialised ``DatabaseManager``.
    logger:
        A ``StructuredLogger`` instance.
    salt_path:
        Location of the per-machine random salt.  Created with owner-only
        permissions on first use.
    kdf_iterations:
        PBKDF2 iteration count.  Changing it makes existing secrets
        undecryptable.
    """

    _KEY_LENGTH: int = 32  # 256 bits
    _SALT_LENGTH: int = 32

    def __init__(
        self,
        db: DatabaseManager,
        logger: StructuredLogger,
        salt_path: Path,
        kdf_iterations: int = 600_000,
    ) -> None:
        super().__init__(logger)
        self._db: DatabaseManager = db
        self._salt_path: Path = salt_path
        self._kdf_iterations: int = kdf_iterations
        self._key: Optional[bytes] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, key: str) -> Optional[str]:
        """Decrypt and return the secret stored under *key*.

        Returns ``None`` when the key is absent, the row cannot be read,
        or the ciphertext fails authentication.
        """
        try:
            row = self._db.sqlite.execute(
                "SELECT ciphertext, nonce, tag FROM secret_items WHERE key = ?",
                (key,),
            ).fetchone()
        except Exception as exc:
            self._logger.warning("Failed to read secret '%s': %s", key, exc)
            return None

        if row is None:
            return None

        try:
            cipher = AES.new(self._derive_key(), AES.MODE_GCM, nonce=row["nonce"])
            plaintext: bytes = cipher.decrypt_and_verify(row["ciphertext"], row["tag"])
        except (ValueError, KeyError) as exc:
            self._logger.warning(
                "Decryption of secret '%s' failed (corrupted data or "
                "machine identity changed): %s",
                key,
                exc,
            )
            return None
        except OSError as exc:
            self._logger.warning("Secret key unavailable: %s", exc)
            return None

        return plaintext.decode("utf-8")

    def set(self, key: str, value: str) -> bool:
        """Encrypt *value* and upsert it under *key*.  Returns ``True`` on success."""
        try:
            cipher = AES.new(self._derive_key(), AES.MODE_GCM)
            ciphertext, tag = cipher.encrypt_and_digest(value.encode("utf-8"))
            nonce: bytes = cipher.nonce
        except Exception as exc:
            self._logger.warning("Failed to encrypt secret '%s': %s", key, exc)
            return False

        try:
            with self._db.write_lock:
                self._db.sqlite.execute(
                    """
                    INSERT INTO secret_items (key, ciphertext, nonce, tag)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        ciphertext = excluded.ciphertext,
                        nonce      = excluded.nonce,
                        tag        = excluded.tag,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    (key, ciphertext, nonce, tag),
                )
                self._db.sqlite.commit()
            return True
        except Exception as exc:
            self._logger.error("Failed to write secret '%s': %s", key, exc)
            return False

    def delete(self, key: str) -> bool:
        """Remove the secret stored under *key*.  Safe when absent."""
        try:
            with self._db.write_lock:
                self._db.sqlite.execute(
                    "DELETE FROM secret_items WHERE key = ?", (key,),
                )
                self._db.sqlite.commit()
            return True
        except Exception as exc:
            self._logger.error("Failed to delete secret '%s': %s", key, exc)
            return False

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _derive_key(self) -> bytes:
        """Return the 256-bit AES key, deriving it on first use.

        The key is deterministic for a given (hostname, OS username,
        salt) triple.  A database file copied to another machine or
        account is therefore unreadable there.

        Raises
        ------
        OSError
            If the salt file cannot be created or read.
        """
        if self._key is None:
            identity: str = self._machine_identity()
            self._key = PBKDF2(
                password=identity,
                salt=self._get_or_create_salt(),
                dkLen=self._KEY_LENGTH,
                count=self._kdf_iterations,
                hmac_hash_module=SHA256,
            )
        return self._key

    @staticmethod
    def _machine_identity() -> str:
        """``hostname:user``; falls back to the numeric uid without a login name."""
        try:
            user = getpass.getuser()
        except (KeyError, OSError):
            user = str(os.getuid()) if hasattr(os, "getuid") else "unknown"
        return f"{socket.gethostname()}:{user}"

    def _get_or_create_salt(self) -> bytes:
        """Return the per-machine salt, creating it on first run."""
        if self._salt_path.exists():
            data: bytes = self._salt_path.read_bytes()
            if len(data) == self._SALT_LENGTH:
                return data
            self._logger.warning(
                "Salt file has unexpected length (%d); regenerating.", len(data),
            )

        salt: bytes = os.urandom(self._SALT_LENGTH)
        self._salt_path.parent.mkdir(parents=True, exist_ok=True)
        self._salt_path.write_bytes(salt)

        if platform.system() == "Windows":
            self._restrict_windows_acl(self._salt_path)
        else:
            self._salt_path.chmod(stat.S_IRUSR | stat.S_IWUSR)  # 0o600

        self._logger.info("Per-machine secret salt created at %s.", self._salt_path)
        return salt

    def _restrict_windows_acl(self, file_path: Path) -> None:
        """Restrict *file_path* to the current user with ``icacls``.

        Failure is logged; the salt stays usable without the ACL.
        """
        try:
            result = subprocess.run(
                [
                    "icacls",
                    str(file_path),
                    "/inheritance:r",
                    "/grant:r",
                    f"{getpass.getuser()}:F",
                ],
                capture_output=True,
                check=False,
                timeout=10,
            )
            if result.returncode != 0:
                self._logger.warning(
                    "icacls returned exit code %d for '%s': %s",
                    result.returncode,
                    file_path,
                    result.stderr.decode("utf-8", errors="replace").strip(),
                )
        except Exception as exc:
            self._logger.warning(
                "Failed to set Windows ACLs on '%s': %s", file_path, exc,
            )
