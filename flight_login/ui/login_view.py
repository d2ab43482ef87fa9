"""Login View — Authentication Screen.

Presents the username / password form with a remember-me checkbox,
an offline banner and a lockout banner.  Every decision (validation,
lockout, remember-me persistence) lives in ``LoginViewModel``.

**Thin UI Rule**: This module contains ZERO business logic.  It
forwards field edits and button presses to the view model and renders
the ``LoginState`` snapshots it publishes.

Threading
---------
The view model lives on the ``AsyncLoopThread`` event loop.  Edits and
clicks are handed over with ``AsyncLoopThread.call`` / ``submit``;
state snapshots arrive on the loop thread and are re-dispatched to the
Tk main thread with ``self.after(0, ...)`` before any widget is touched.
"""

from __future__ import annotations

import tkinter as tk
from typing import Callable, Optional

import customtkinter as ctk

from flight_login.logger import StructuredLogger
from flight_login.models.login_state import LoginState
from flight_login.ui.theme import (
    ACCENT_DISABLED,
    ACCENT_HOVER,
    ACCENT_PRIMARY,
    BRAND_ICON_SIZE,
    BUTTON_HEIGHT,
    CARD_BORDER,
    CARD_WIDTH,
    CONTENT_BG,
    CONTENT_CARD_BG,
    CORNER_RADIUS,
    ERROR_TEXT,
    FONT_BODY,
    FONT_BRAND,
    FONT_BUTTON,
    FONT_ICON_LG,
    FONT_LABEL,
    FONT_SMALL,
    FONT_SUBTITLE,
    INPUT_BG,
    INPUT_BORDER,
    INPUT_HEIGHT,
    LINK_HOVER,
    LOCKOUT_BG,
    LOCKOUT_TEXT,
    OFFLINE_BG,
    PADDING_LG,
    PADDING_MD,
    PADDING_SM,
    TEXT_LIGHT,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)
from flight_login.utils.async_loop import AsyncLoopThread
from flight_login.viewmodels.login_view_model import OFFLINE_MESSAGE, LoginViewModel

_SIGN_IN_TEXT: str = "Sign In  \u2192"
_LOADING_TEXT: str = "Signing in..."


class LoginView(ctk.CTkFrame):
    """Full-screen login frame bound to a ``LoginViewModel``.

    Entry contents are seeded from the current state once, at
    construction; afterwards the entries are the source of the field
    values and the view model only receives them.  Logging out builds a
    fresh ``LoginView`` so reloaded credentials show up.

    Parameters
    ----------
    parent:
        The root ``CTk`` window this frame belongs to.
    view_model:
        The login state machine.
    loop_thread:
        Event loop thread the view model runs on.
    on_login_success:
        Callback invoked (on the main thread) with the username after a
        successful login.
    logger:
        Structured JSON logger.
    """

    def __init__(
        self,
        parent: ctk.CTk,
        view_model: LoginViewModel,
        loop_thread: AsyncLoopThread,
        on_login_success: Callable[[str], None],
        logger: StructuredLogger,
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)

        self._parent: ctk.CTk = parent
        self._view_model: LoginViewModel = view_model
        self._loop_thread: AsyncLoopThread = loop_thread
        self._on_login_success: Callable[[str], None] = on_login_success
        self._logger: StructuredLogger = logger

        initial = view_model.state
        self._username_var: tk.StringVar = tk.StringVar(self, value=initial.username)
        self._password_var: tk.StringVar = tk.StringVar(self, value=initial.password)
        self._remember_var: tk.BooleanVar = tk.BooleanVar(self, value=initial.remember_me)

        self._username_entry: Optional[ctk.CTkEntry] = None
        self._password_entry: Optional[ctk.CTkEntry] = None
        self._remember_checkbox: Optional[ctk.CTkCheckBox] = None
        self._forget_button: Optional[ctk.CTkButton] = None
        self._login_button: Optional[ctk.CTkButton] = None
        self._offline_banner: Optional[ctk.CTkLabel] = None
        self._lockout_banner: Optional[ctk.CTkLabel] = None
        self._error_label: Optional[ctk.CTkLabel] = None

        self._success_dispatched: bool = False
        self._closed: bool = False

        self._build_ui()

        self._username_var.trace_add("write", self._on_username_changed)
        self._password_var.trace_add("write", self._on_password_changed)

        self._unsubscribe: Optional[Callable[[], None]] = view_model.subscribe(
            self._on_state_changed,
        )
        self._render(initial)

    # ------------------------------------------------------------------
    # UI Construction
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        """Create the centred login card."""
        self.grid_rowconfigure(0, weight=1)      # top spacer
        self.grid_rowconfigure(1, weight=0)      # card row (natural size)
        self.grid_rowconfigure(2, weight=1)      # bottom spacer
        self.grid_columnconfigure(0, weight=1)   # centre horizontally

        card = ctk.CTkFrame(
            self,
            width=CARD_WIDTH,
            fg_color=CONTENT_CARD_BG,
            corner_radius=16,
            border_width=1,
            border_color=CARD_BORDER,
        )
        card.grid(row=1, column=0, pady=(0, PADDING_SM))

        inner = ctk.CTkFrame(card, fg_color="transparent")
        inner.pack(fill="both", expand=True, padx=36, pady=28)

        # -- Brand icon (plane) --
        icon_frame = ctk.CTkFrame(
            inner,
            width=BRAND_ICON_SIZE,
            height=BRAND_ICON_SIZE,
            corner_radius=14,
            fg_color=ACCENT_PRIMARY,
        )
        icon_frame.pack(pady=(0, 12))
        icon_frame.pack_propagate(False)

        ctk.CTkLabel(
            icon_frame,
            text="\u2708",  # Airplane
            font=FONT_ICON_LG,
            text_color=TEXT_LIGHT,
        ).place(relx=0.5, rely=0.5, anchor="center")

        ctk.CTkLabel(
            inner,
            text="Flight Login",
            font=FONT_BRAND,
            text_color=TEXT_PRIMARY,
        ).pack(pady=(0, 2))

        ctk.CTkLabel(
            inner,
            text="Sign in to continue",
            font=FONT_SUBTITLE,
            text_color=TEXT_SECONDARY,
        ).pack(pady=(0, PADDING_MD))

        # -- Banners (hidden by default) --
        self._offline_banner = ctk.CTkLabel(
            inner,
            text=OFFLINE_MESSAGE,
            font=FONT_SMALL,
            fg_color=OFFLINE_BG,
            text_color=ERROR_TEXT,
            corner_radius=CORNER_RADIUS,
            wraplength=CARD_WIDTH - 100,
        )
        self._lockout_banner = ctk.CTkLabel(
            inner,
            text="",
            font=FONT_SMALL,
            fg_color=LOCKOUT_BG,
            text_color=LOCKOUT_TEXT,
            corner_radius=CORNER_RADIUS,
            wraplength=CARD_WIDTH - 100,
        )
        self._banner_anchor = ctk.CTkFrame(inner, fg_color="transparent", height=0)
        self._banner_anchor.pack(fill="x")

        # -- Username --
        ctk.CTkLabel(
            inner,
            text="USERNAME",
            font=FONT_LABEL,
            text_color=TEXT_PRIMARY,
            anchor="w",
        ).pack(fill="x", pady=(PADDING_SM, 4))

        self._username_entry = ctk.CTkEntry(
            inner,
            textvariable=self._username_var,
            placeholder_text="username",
            font=FONT_BODY,
            fg_color=INPUT_BG,
            border_color=INPUT_BORDER,
            text_color=TEXT_PRIMARY,
            height=INPUT_HEIGHT,
            corner_radius=CORNER_RADIUS,
        )
        self._username_entry.pack(fill="x", pady=(0, PADDING_MD))

        # -- Password --
        ctk.CTkLabel(
            inner,
            text="PASSWORD",
            font=FONT_LABEL,
            text_color=TEXT_PRIMARY,
            anchor="w",
        ).pack(fill="x", pady=(0, 4))

        self._password_entry = ctk.CTkEntry(
            inner,
            textvariable=self._password_var,
            font=FONT_BODY,
            fg_color=INPUT_BG,
            border_color=INPUT_BORDER,
            text_color=TEXT_PRIMARY,
            show="*",
            height=INPUT_HEIGHT,
            corner_radius=CORNER_RADIUS,
        )
        self._password_entry.pack(fill="x", pady=(0, PADDING_MD))

        # -- Remember me / Forget me --
        remember_row = ctk.CTkFrame(inner, fg_color="transparent")
        remember_row.pack(fill="x", pady=(0, PADDING_LG))

        self._remember_checkbox = ctk.CTkCheckBox(
            remember_row,
            text="Remember me",
            font=FONT_SMALL,
            text_color=TEXT_PRIMARY,
            variable=self._remember_var,
            onvalue=True,
            offvalue=False,
            fg_color=ACCENT_PRIMARY,
            hover_color=ACCENT_HOVER,
            command=self._on_remember_toggled,
        )
        self._remember_checkbox.pack(side="left")

        self._forget_button = ctk.CTkButton(
            remember_row,
            text="Forget me",
            font=FONT_SMALL,
            fg_color="transparent",
            hover_color=LINK_HOVER,
            text_color=ACCENT_PRIMARY,
            width=80,
            height=28,
            corner_radius=CORNER_RADIUS,
            command=self._handle_forget_me,
        )
        self._forget_button.pack(side="right")

        # -- Sign In button --
        self._login_button = ctk.CTkButton(
            inner,
            text=_SIGN_IN_TEXT,
            font=FONT_BUTTON,
            fg_color=ACCENT_PRIMARY,
            hover_color=ACCENT_HOVER,
            text_color=TEXT_LIGHT,
            text_color_disabled=TEXT_LIGHT,
            height=BUTTON_HEIGHT,
            corner_radius=CORNER_RADIUS,
            command=self._handle_login,
        )
        self._login_button.pack(fill="x", pady=(0, PADDING_SM))

        # -- Error label (hidden by default) --
        self._error_label = ctk.CTkLabel(
            inner,
            text="",
            font=FONT_SMALL,
            text_color=ERROR_TEXT,
            wraplength=CARD_WIDTH - 100,
        )

        # Key bindings
        self._username_entry.bind("<Return>", self._on_enter_key)
        self._password_entry.bind("<Return>", self._on_enter_key)

    # ------------------------------------------------------------------
    # Event Handlers
    # ------------------------------------------------------------------

    def _on_username_changed(self, *_: object) -> None:
        self._loop_thread.call(self._view_model.set_username, self._username_var.get())

    def _on_password_changed(self, *_: object) -> None:
        self._loop_thread.call(self._view_model.set_password, self._password_var.get())

    def _on_remember_toggled(self) -> None:
        self._loop_thread.call(
            self._view_model.set_remember_me, bool(self._remember_var.get()),
        )

    def _on_enter_key(self, event: tk.Event[tk.Misc]) -> None:
        """Trigger the login flow when the user presses Enter."""
        self._handle_login()

    def _handle_login(self) -> None:
        """Submit one login attempt; the view model ignores it while disabled."""
        self._loop_thread.submit(self._view_model.login())

    def _handle_forget_me(self) -> None:
        self._remember_var.set(False)
        self._loop_thread.call(self._view_model.forget_me)
        self._logger.info("Remembered credentials cleared by user.")

    # ------------------------------------------------------------------
    # State rendering
    # ------------------------------------------------------------------

    def _on_state_changed(self, state: LoginState) -> None:
        """View-model listener: runs on the loop thread."""
        if self._closed:
            return
        self.after(0, self._render, state)

    def _render(self, state: LoginState) -> None:
        """Apply one state snapshot to the widgets (main thread only)."""
        if self._closed:
            return

        self._toggle_banner(self._offline_banner, state.is_offline)
        if self._lockout_banner is not None:
            self._lockout_banner.configure(text=state.lockout_message)
        self._toggle_banner(
            self._lockout_banner, state.is_locked_out and bool(state.lockout_message),
        )

        if state.error_message:
            self._show_error(state.error_message)
        else:
            self._clear_error()

        self._set_loading(state.is_loading, state.is_button_enabled)

        fields_state = "disabled" if state.is_loading else "normal"
        for widget in (self._username_entry, self._password_entry, self._remember_checkbox):
            if widget is not None:
                widget.configure(state=fields_state)

        if state.login_success and not self._success_dispatched:
            self._success_dispatched = True
            self._on_login_success(state.username)

    def _toggle_banner(self, banner: Optional[ctk.CTkLabel], visible: bool) -> None:
        if banner is None:
            return
        if visible and not banner.winfo_manager():
            banner.pack(fill="x", pady=(0, PADDING_SM), ipady=6, after=self._banner_anchor)
        elif not visible and banner.winfo_manager():
            banner.pack_forget()

    # ------------------------------------------------------------------
    # UI Helper Methods
    # ------------------------------------------------------------------

    def _show_error(self, message: str) -> None:
        """Display a red error message below the login button."""
        if self._error_label is not None:
            self._error_label.configure(text=message)
            self._error_label.pack(fill="x")

    def _clear_error(self) -> None:
        """Hide the error label."""
        if self._error_label is not None:
            self._error_label.configure(text="")
            self._error_label.pack_forget()

    def _set_loading(self, loading: bool, enabled: bool) -> None:
        """Mirror ``is_loading`` / ``is_button_enabled`` onto the button."""
        if self._login_button is None:
            return
        self._login_button.configure(
            text=_LOADING_TEXT if loading else _SIGN_IN_TEXT,
            state="normal" if enabled else "disabled",
            fg_color=ACCENT_PRIMARY if enabled else ACCENT_DISABLED,
        )

    def destroy(self) -> None:
        """Detach from the view model before tearing down widgets."""
        self._closed = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        super().destroy()
