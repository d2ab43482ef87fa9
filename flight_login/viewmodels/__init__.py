"""View Model Package.

Usage:
    from flight_login.viewmodels import LoginViewModel
"""

from flight_login.viewmodels.login_view_model import (
    OFFLINE_MESSAGE,
    LoginViewModel,
    StateListener,
    format_remaining,
)

__all__ = [
    "OFFLINE_MESSAGE",
    "LoginViewModel",
    "StateListener",
    "format_remaining",
]
