"""Tests for the login state snapshot and the button predicate."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from flight_login.models import (
    MIN_PASSWORD_LENGTH,
    AuthErrorCode,
    LoginState,
    StoredCredentials,
    is_login_allowed,
)


class TestButtonPredicate:
    """``is_button_enabled`` gates every login attempt."""

    def test_default_state_is_disabled(self):
        assert LoginState().is_button_enabled is False

    def test_enabled_with_valid_fields(self):
        state = LoginState(username="admin", password="password123")
        assert state.is_button_enabled is True

    def test_password_length_boundary(self):
        short = "x" * (MIN_PASSWORD_LENGTH - 1)
        exact = "x" * MIN_PASSWORD_LENGTH

        assert LoginState(username="a", password=short).is_button_enabled is False
        assert LoginState(username="a", password=exact).is_button_enabled is True

    @pytest.mark.parametrize(
        "field",
        ["is_offline", "is_locked_out", "is_loading"],
    )
    def test_blocking_flags_disable_button(self, field):
        state = LoginState(username="admin", password="password123", **{field: True})
        assert state.is_button_enabled is False

    def test_empty_username_disables_button(self):
        assert is_login_allowed("", "password123", False, False, False) is False

    def test_predicate_matches_computed_field(self):
        state = LoginState(username="pilot", password="secret1", is_offline=True)
        assert state.is_button_enabled == is_login_allowed(
            state.username,
            state.password,
            state.is_offline,
            state.is_locked_out,
            state.is_loading,
        )


class TestLoginStateModel:
    def test_state_is_frozen(self):
        state = LoginState(username="admin")
        with pytest.raises(ValidationError):
            state.username = "other"

    def test_model_copy_produces_new_snapshot(self):
        state = LoginState(username="admin", password="password123")
        loading = state.model_copy(update={"is_loading": True})

        assert state.is_loading is False
        assert loading.is_loading is True
        assert loading.is_button_enabled is False

    def test_negative_failure_count_rejected(self):
        with pytest.raises(ValidationError):
            LoginState(failure_count=-1)

    def test_password_hidden_from_repr(self):
        state = LoginState(username="admin", password="password123")
        assert "password123" not in repr(state)

    def test_error_code_accepts_enum_value(self):
        state = LoginState(error_code="network_error")
        assert state.error_code is AuthErrorCode.NETWORK_ERROR

    def test_button_flag_in_dump(self):
        dumped = LoginState(username="admin", password="password123").model_dump()
        assert dumped["is_button_enabled"] is True


class TestStoredCredentials:
    def test_complete_requires_both_fields(self):
        assert StoredCredentials(username="admin", password="pw").is_complete
        assert not StoredCredentials(username="admin").is_complete
        assert not StoredCredentials(password="pw").is_complete
