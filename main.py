"""
Flight Login Desktop Application Entry Point.

Bootstraps the entire dependency graph via constructor injection,
initialises the local SQLite schema, starts the asyncio loop thread the
login state machine lives on, and launches the CustomTkinter GUI.
Every subsystem is wired here — no module-level globals.

Usage::

    python main.py
"""

from __future__ import annotations

import atexit
import sys
import traceback
from pathlib import Path

from flight_login.config import get_config
from flight_login.database import DatabaseManager
from flight_login.logger import StructuredLogger, get_logger
from flight_login.schema import initialize_schema
from flight_login.services import create_services
from flight_login.ui.app_shell import AppShell
from flight_login.utils.async_loop import AsyncLoopThread
from flight_login.viewmodels.login_view_model import LoginViewModel


def main() -> None:
    """Application entry point — wire dependencies and launch the GUI."""
    logger: StructuredLogger = get_logger("main")
    logger.info("Starting Flight Login...")

    # ------------------------------------------------------------------
    # 1. Configuration (from .env / environment variables)
    # ------------------------------------------------------------------
    config = get_config()

    # ------------------------------------------------------------------
    # 2. Database Manager (local SQLite)
    # ------------------------------------------------------------------
    db = DatabaseManager(
        sqlite_path=Path(config.LOCAL_DB_PATH),
        logger=StructuredLogger(name="database"),
    )

    # DatabaseManager.close() is idempotent; this covers unclean exits.
    atexit.register(db.close)

    # ------------------------------------------------------------------
    # 3. SQLite Schema Initialization (idempotent)
    # ------------------------------------------------------------------
    initialize_schema(db.sqlite, StructuredLogger(name="schema"))

    # ------------------------------------------------------------------
    # 4. Service Container (stores + repository + collaborators)
    # ------------------------------------------------------------------
    services = create_services(db=db, config=config)

    # ------------------------------------------------------------------
    # 5. Event loop thread + login state machine
    # ------------------------------------------------------------------
    loop_thread = AsyncLoopThread(logger=get_logger("async_loop"))
    loop_thread.start()

    async def build_view_model() -> LoginViewModel:
        # Constructed on the loop so a restored lockout countdown binds to it.
        return LoginViewModel(
            repository=services["auth_repository"],
            authenticator=services["authenticator"],
            connectivity=services["connectivity_monitor"],
            logger=get_logger("login"),
            lockout_tick_s=config.LOCKOUT_TICK_S,
            audit_conn=db.sqlite,
        )

    view_model = loop_thread.submit(build_view_model()).result(timeout=10.0)

    # ------------------------------------------------------------------
    # 6. Launch the GUI (blocks until window closes)
    # ------------------------------------------------------------------
    logger.info("Launching GUI...")
    app = AppShell(
        view_model=view_model,
        loop_thread=loop_thread,
        connectivity_monitor=services["connectivity_monitor"],
        logger=get_logger("ui"),
    )
    try:
        app.mainloop()
    finally:
        services["connectivity_monitor"].stop()
        loop_thread.stop()
        db.close()
        logger.info("Flight Login shut down.")


def _show_fatal_error(exc: BaseException) -> None:
    """Display a fatal-error dialog so double-click users get feedback.

    Uses ``tkinter.messagebox`` (stdlib) rather than CustomTkinter so
    the dialog works even when CTk initialisation itself is the thing
    that failed.
    """
    detail = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    try:
        import tkinter
        from tkinter import messagebox

        root = tkinter.Tk()
        root.withdraw()
        messagebox.showerror(
            title="Flight Login — Fatal Error",
            message=(
                "The application encountered an unexpected error and "
                "cannot continue.\n\n"
                f"{type(exc).__name__}: {exc}"
            ),
            detail=detail,
        )
        root.destroy()
    except Exception:
        # Headless or missing Tcl/Tk: stderr is all that is left.
        sys.stderr.write(
            f"FATAL: {type(exc).__name__}: {exc}\n{detail}"
        )


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        pass
    except Exception as exc:
        _show_fatal_error(exc)
        sys.exit(1)
