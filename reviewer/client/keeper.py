# ==============================================================================
# reviewer/client/keeper.py
# ------------------------------------------------------------------------------
# Background loops that keep a client's session alive: a liveness poll that
# notices expiry and a shorter keep-alive that slides the expiry forward.
# ==============================================================================

import logging
import threading

from reviewer.client.api import ApiError

logger = logging.getLogger(__name__)

STATUS_INTERVAL_SECONDS = 30
KEEPALIVE_INTERVAL_SECONDS = 20


class SessionKeeper:
    """
    Runs the two loops on daemon threads. Neither loop stops the other, and
    a failed tick is only logged; the next tick tries again.

    on_change(authenticated, user) is called whenever the liveness poll sees
    the authentication state change.
    """

    def __init__(self, client, status_interval=STATUS_INTERVAL_SECONDS,
                 keepalive_interval=KEEPALIVE_INTERVAL_SECONDS, on_change=None):
        self.client = client
        self.status_interval = status_interval
        self.keepalive_interval = keepalive_interval
        self.on_change = on_change
        self.authenticated = None
        self.user = None
        self._stopped = threading.Event()
        self._threads = []

    def check_status(self):
        """One liveness poll. Returns the last known authentication state."""
        try:
            data = self.client.status() or {}
        except ApiError as e:
            logger.debug(f"Status check failed, will retry: {e}")
            return self.authenticated

        authenticated = bool(data.get('authenticated'))
        user = data.get('user') if authenticated else None
        if authenticated != self.authenticated:
            self.authenticated = authenticated
            self.user = user
            if self.on_change is not None:
                self.on_change(authenticated, user)
        return authenticated

    def keep_alive(self):
        """One keep-alive call. Failures are not reported to the user."""
        try:
            self.client.refresh()
        except ApiError as e:
            logger.debug(f"Keep-alive failed, will retry on the next tick: {e}")
            return False
        return True

    def _run_tick(self, tick):
        # A failing tick, including one raised by on_change, must not end its loop.
        try:
            tick()
        except Exception as e:
            logger.debug(f"{tick.__name__} failed, will retry on the next tick: {e}", exc_info=True)

    def _loop(self, interval, tick):
        while not self._stopped.wait(interval):
            self._run_tick(tick)

    def start(self):
        if self._threads:
            return
        self._stopped.clear()
        self._run_tick(self.check_status)
        for name, interval, tick in (
            ('session-status', self.status_interval, self.check_status),
            ('session-keepalive', self.keepalive_interval, self.keep_alive),
        ):
            thread = threading.Thread(target=self._loop, args=(interval, tick), name=name, daemon=True)
            thread.start()
            self._threads.append(thread)

    def stop(self, timeout=None):
        self._stopped.set()
        for thread in self._threads:
            thread.join(timeout)
        self._threads = []
