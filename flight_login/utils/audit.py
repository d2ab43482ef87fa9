"""
Structured Audit Logging Utility.

Every login state change worth reconstructing later (attempt outcome,
lockout engaged or expired, logout, forget-me) is emitted as one
structured JSON object, optionally mirrored into the ``audit_log`` table.

Secrets never appear in audit details; callers pass usernames and
counters only.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel, Field

from flight_login.logger import StructuredLogger

__all__ = ["AuditEvent", "log_audit_event", "persist_audit_event"]

# Flat scalar values only inside ``details``.
DetailValue = Union[str, int, float, bool, None]


class AuditEvent(BaseModel):
    """Schema-validated representation of a single audit trail entry."""

    timestamp: str
    action: str
    entity_type: str
    entity_id: str
    details: dict[str, DetailValue] = Field(default_factory=dict)


def _build_event(
    action: str,
    entity_type: str,
    entity_id: str,
    details: Optional[dict[str, DetailValue]],
) -> AuditEvent:
    return AuditEvent(
        timestamp=datetime.now(timezone.utc).isoformat(),
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details or {},
    )


def log_audit_event(
    logger: StructuredLogger,
    action: str,
    entity_type: str,
    entity_id: str,
    details: Optional[dict[str, DetailValue]] = None,
    conn: Optional[sqlite3.Connection] = None,
) -> AuditEvent:
    """Log a structured JSON audit event, with optional SQLite persistence.

    Args:
        logger: The logger instance to write to.
        action: What happened (e.g. ``"LOGIN"``, ``"LOCKOUT_ENGAGED"``).
        entity_type: Type of entity affected (e.g. ``"LoginSession"``).
        entity_id: Identifier of the affected entity (the username).
        details: Optional additional context (counters, error codes).
        conn: Optional SQLite connection.  When provided, the event is
            also written to ``audit_log``; persistence errors are logged
            and never propagated.

    Returns:
        The validated event that was logged.
    """
    event = _build_event(action, entity_type, entity_id, details)
    logger.info(
        "AUDIT: %s",
        json.dumps(event.model_dump(), default=str),
        extra={"event": action},
    )

    if conn is not None:
        try:
            persist_audit_event(conn, event)
        except Exception as db_err:
            logger.warning("Failed to persist audit event to SQLite: %s", db_err)
    return event


def persist_audit_event(conn: sqlite3.Connection, event: AuditEvent) -> None:
    """Write a validated audit event to the ``audit_log`` table."""
    conn.execute(
        """
        INSERT INTO audit_log (timestamp, action, entity_type, entity_id, details)
        VALUES (?, ?, ?, ?, ?)
        """,
        (
            event.timestamp,
            event.action,
            event.entity_type,
            event.entity_id,
            json.dumps(event.details, default=str),
        ),
    )
    conn.commit()
