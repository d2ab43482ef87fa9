"""Shared utilities for the Flight Login application.

Convenience re-exports so consumers can import directly from
``flight_login.utils`` while full module paths remain supported.
"""

from flight_login.utils.async_loop import AsyncLoopThread
from flight_login.utils.audit import AuditEvent, log_audit_event, persist_audit_event

__all__ = [
    "AsyncLoopThread",
    "AuditEvent",
    "log_audit_event",
    "persist_audit_event",
]
