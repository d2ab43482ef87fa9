"""Application Host Shell.

The top-level ``CTk`` window that orchestrates the application
lifecycle: login → welcome → logout → login.

All dependencies are injected via the constructor.  The shell contains
no business logic — it delegates every login decision to the
``LoginViewModel`` and only swaps the visible view.
"""

from __future__ import annotations

from concurrent.futures import Future
from typing import Optional

import customtkinter as ctk

from flight_login import __version__ as _APP_VERSION
from flight_login.logger import StructuredLogger
from flight_login.services.connectivity import SocketConnectivityMonitor
from flight_login.ui.login_view import LoginView
from flight_login.ui.theme import WINDOW_HEIGHT, WINDOW_WIDTH
from flight_login.ui.welcome_view import WelcomeView
from flight_login.utils.async_loop import AsyncLoopThread
from flight_login.viewmodels.login_view_model import LoginViewModel


class AppShell(ctk.CTk):
    """Host Shell — the main application window.

    Lifecycle
    ---------
    1. On boot: starts the connectivity monitor and shows ``LoginView``.
    2. On ``login_success``: replaces it with ``WelcomeView``.
    3. Logout: runs ``reset_login_state`` on the loop thread, then
       rebuilds ``LoginView`` from the reset state.
    4. Close: releases the view model and stops the monitor.

    Parameters
    ----------
    view_model:
        The login state machine (already bound to *loop_thread*'s loop).
    loop_thread:
        Running event loop thread.
    connectivity_monitor:
        Background online/offline probe; started and stopped here.
    logger:
        Structured logger instance.
    """

    def __init__(
        self,
        view_model: LoginViewModel,
        loop_thread: AsyncLoopThread,
        connectivity_monitor: SocketConnectivityMonitor,
        logger: StructuredLogger,
    ) -> None:
        super().__init__()

        self._view_model = view_model
        self._loop_thread = loop_thread
        self._connectivity_monitor = connectivity_monitor
        self._logger = logger

        self._login_view: Optional[LoginView] = None
        self._welcome_view: Optional[WelcomeView] = None

        # Window defaults
        self.title(f"Flight Login {_APP_VERSION}")
        ctk.set_appearance_mode("light")
        ctk.set_default_color_theme("blue")
        self.geometry(f"{WINDOW_WIDTH}x{WINDOW_HEIGHT}")
        self.minsize(WINDOW_WIDTH, WINDOW_HEIGHT)

        # Graceful shutdown on window close
        self.protocol("WM_DELETE_WINDOW", self._on_close)

        self._connectivity_monitor.start()
        self._show_login()

    # ==================================================================
    # View transitions
    # ==================================================================

    def _show_login(self) -> None:
        """Display a fresh login view seeded from the current state."""
        self._clear_views()
        self._login_view = LoginView(
            parent=self,
            view_model=self._view_model,
            loop_thread=self._loop_thread,
            on_login_success=self._handle_login_success,
            logger=self._logger,
        )
        self._login_view.pack(fill="both", expand=True)

    def _show_welcome(self, username: str) -> None:
        self._clear_views()
        self._welcome_view = WelcomeView(
            parent=self,
            username=username,
            on_logout=self._handle_logout,
        )
        self._welcome_view.pack(fill="both", expand=True)

    def _clear_views(self) -> None:
        if self._login_view is not None:
            self._login_view.destroy()
            self._login_view = None
        if self._welcome_view is not None:
            self._welcome_view.destroy()
            self._welcome_view = None

    # ==================================================================
    # Auth lifecycle
    # ==================================================================

    def _handle_login_success(self, username: str) -> None:
        """Called by ``LoginView`` once ``login_success`` is observed."""
        self._logger.info("Login successful: %s", username)
        self._show_welcome(username)

    def _handle_logout(self) -> None:
        """Reset the state machine, then return to the login screen."""
        future = self._loop_thread.submit(self._reset_login_state())
        future.add_done_callback(self._on_logout_done)

    async def _reset_login_state(self) -> None:
        self._view_model.reset_login_state()

    def _on_logout_done(self, future: Future[None]) -> None:
        # Loop thread; hop back to Tk.
        if future.cancelled() or future.exception() is not None:
            self._logger.error("Logout did not complete; staying on the welcome screen.")
            return
        self.after(0, self._show_login)

    # ==================================================================
    # Window close
    # ==================================================================

    def _on_close(self) -> None:
        """Release background resources before destroying the window."""
        self._clear_views()
        if self._loop_thread.is_running:
            self._loop_thread.call(self._view_model.close)
        self._connectivity_monitor.stop()
        self.destroy()
