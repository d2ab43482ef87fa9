"""
Repository Layer Package.

Data-access abstractions over the local settings and secret stores.
The login state machine never touches ``app_settings`` or
``secret_items`` directly.

Usage:
    from flight_login.repositories.auth_repository import AuthRepository
"""

from flight_login.repositories.auth_repository import (
    AuthRepository,
    current_time_ms,
)

__all__ = [
    "AuthRepository",
    "current_time_ms",
]
