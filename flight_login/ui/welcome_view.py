"""Welcome View — shown after a successful login."""

from __future__ import annotations

from typing import Callable

import customtkinter as ctk

from flight_login.ui.theme import (
    CARD_BORDER,
    CARD_WIDTH,
    CONTENT_BG,
    CONTENT_CARD_BG,
    CORNER_RADIUS,
    FONT_BODY,
    FONT_BUTTON,
    FONT_HEADING,
    FONT_SUBTITLE,
    LOGOUT_HOVER,
    LOGOUT_PRIMARY,
    PADDING_LG,
    PADDING_SM,
    SUCCESS_TEXT,
    TEXT_LIGHT,
    TEXT_PRIMARY,
    TEXT_SECONDARY,
)


class WelcomeView(ctk.CTkFrame):
    """Greets the signed-in user and offers a Logout button.

    Parameters
    ----------
    parent:
        The root ``CTk`` window.
    username:
        Name to greet.
    on_logout:
        Callback invoked (on the main thread) when Logout is pressed.
    """

    def __init__(
        self,
        parent: ctk.CTk,
        username: str,
        on_logout: Callable[[], None],
    ) -> None:
        super().__init__(parent, fg_color=CONTENT_BG)
        self._on_logout = on_logout
        self._logout_button: ctk.CTkButton

        self.grid_rowconfigure(0, weight=1)
        self.grid_rowconfigure(2, weight=1)
        self.grid_columnconfigure(0, weight=1)

        card = ctk.CTkFrame(
            self,
            width=CARD_WIDTH,
            fg_color=CONTENT_CARD_BG,
            corner_radius=16,
            border_width=1,
            border_color=CARD_BORDER,
        )
        card.grid(row=1, column=0)

        inner = ctk.CTkFrame(card, fg_color="transparent")
        inner.pack(fill="both", expand=True, padx=48, pady=36)

        ctk.CTkLabel(
            inner,
            text="Login successful",
            font=FONT_SUBTITLE,
            text_color=SUCCESS_TEXT,
        ).pack(pady=(0, PADDING_SM))

        ctk.CTkLabel(
            inner,
            text="Welcome,",
            font=FONT_BODY,
            text_color=TEXT_SECONDARY,
        ).pack()

        ctk.CTkLabel(
            inner,
            text=username,
            font=FONT_HEADING,
            text_color=TEXT_PRIMARY,
        ).pack(pady=(0, PADDING_LG))

        self._logout_button = ctk.CTkButton(
            inner,
            text="Logout",
            font=FONT_BUTTON,
            fg_color=LOGOUT_PRIMARY,
            hover_color=LOGOUT_HOVER,
            text_color=TEXT_LIGHT,
            height=40,
            corner_radius=CORNER_RADIUS,
            command=self._handle_logout,
        )
        self._logout_button.pack(fill="x")

    def _handle_logout(self) -> None:
        # Guard against a double click while the shell swaps views.
        self._logout_button.configure(state="disabled")
        self._on_logout()
