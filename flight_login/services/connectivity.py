"""
Connectivity Monitor Service.

Publishes a boolean online/offline signal.  The current value is always
readable synchronously through ``is_online``; changes are pushed to
subscribers registered with ``subscribe()``.

``SocketConnectivityMonitor`` follows the same daemon-thread lifecycle
as the other background services: the caller invokes :meth:`start` /
:meth:`stop`, and the worker thread probes a TCP endpoint at a fixed
interval.

Thread Safety
-------------
Subscriber callbacks run on the monitor's own thread.  Consumers that
own single-threaded state (the login state machine, Tk widgets) must
marshal the value onto their own thread before using it.
"""

from __future__ import annotations

import socket
import threading
from typing import Callable, Optional, Protocol

from flight_login.logger import StructuredLogger
from flight_login.services.base_service import BaseService

ConnectivityCallback = Callable[[bool], None]
Unsubscribe = Callable[[], None]


class ConnectivityMonitor(Protocol):
    """Online/offline signal contract."""

    @property
    def is_online(self) -> bool: ...

    def subscribe(self, callback: ConnectivityCallback) -> Unsubscribe: ...


class ObservableConnectivity(BaseService):
    """Holds the current online value and fans changes out to subscribers.

    Subclasses call :meth:`_publish` whenever they observe a new value;
    subscribers are only notified when the value actually changes.
    """

    def __init__(self, logger: StructuredLogger, initial_online: bool = True) -> None:
        super().__init__(logger)
        self._online: bool = initial_online
        self._lock: threading.Lock = threading.Lock()
        self._subscribers: list[ConnectivityCallback] = []

    @property
    def is_online(self) -> bool:
        with self._lock:
            return self._online

    def subscribe(self, callback: ConnectivityCallback) -> Unsubscribe:
        """Register *callback*; the returned function removes it again."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, online: bool) -> None:
        with self._lock:
            if online == self._online:
                return
            self._online = online
            subscribers = list(self._subscribers)

        self._logger.info(
            "Connectivity changed: %s", "online" if online else "offline",
            extra={"event": "CONNECTIVITY_CHANGED", "online": online},
        )
        for callback in subscribers:
            try:
                callback(online)
            except Exception:
                self._logger.error(
                    "Connectivity subscriber raised.", exc_info=True,
                )


class SocketConnectivityMonitor(ObservableConnectivity):
    """Daemon thread that probes a TCP endpoint to decide online/offline.

    Starts optimistic (online) so the login button is not disabled
    before the first probe completes.

    Parameters
    ----------
    host, port:
        Endpoint that should accept a TCP connection when online.
    logger:
        Structured JSON logger.
    poll_interval_s:
        Seconds between probes.
    timeout_s:
        Connect timeout for a single probe.
    """

    def __init__(
        self,
        host: str,
        port: int,
        logger: StructuredLogger,
        poll_interval_s: float = 5.0,
        timeout_s: float = 3.0,
    ) -> None:
        super().__init__(logger, initial_online=True)
        self._host = host
        self._port = port
        self._poll_interval_s = poll_interval_s
        self._timeout_s = timeout_s
        self._thread: Optional[threading.Thread] = None
        self._stop_event: threading.Event = threading.Event()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start probing on a daemon thread.  Idempotent."""
        if self._thread is not None and self._thread.is_alive():
            self._logger.debug("Connectivity monitor already running.")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="ConnectivityMonitor",
            daemon=True,
        )
        self._thread.start()
        self._logger.info(
            "Connectivity monitor started (%s:%d).", self._host, self._port,
        )

    def stop(self) -> None:
        """Signal the worker to stop and wait briefly for it to exit."""
        if self._thread is None:
            return

        self._stop_event.set()
        self._thread.join(timeout=self._timeout_s + 1.0)
        if self._thread.is_alive():
            self._logger.warning("Connectivity monitor thread did not terminate.")
        else:
            self._logger.info("Connectivity monitor stopped.")
        self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ------------------------------------------------------------------
    # Probing
    # ------------------------------------------------------------------

    def probe(self) -> bool:
        """Attempt one TCP connection; ``True`` when it succeeds."""
        try:
            with socket.create_connection(
                (self._host, self._port), timeout=self._timeout_s,
            ):
                return True
        except OSError:
            return False

    def check_now(self) -> bool:
        """Probe immediately, publish the result, and return it."""
        online = self.probe()
        self._publish(online)
        return online

    def _run_loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                self.check_now()
                if self._stop_event.wait(timeout=self._poll_interval_s):
                    break
        except Exception:
            self._logger.error(
                "Connectivity monitor terminated due to unhandled exception.",
                exc_info=True,
            )
