"""
=============================================================================
SERVICE STATE
=============================================================================

The only mutable state the service has, owned by one server instance and
injected into the handlers that read it:

    ServiceState
    ├── counter: RequestCounter     total requests received
    └── started_at                  monotonic instant the socket started listening

Requests are served by a pool of worker threads, so `count += 1` on a
plain int could lose updates (it is a read, an add and a write). The
counter serializes increments with a lock; its value always equals the
number of requests received so far.

=============================================================================
"""

import threading
import time
from typing import Optional


class RequestCounter:
    """
    Thread-safe, monotonically increasing request tally.

    Starts at zero and is never reset; a new count needs a new process
    (or a new instance, in tests).
    """

    def __init__(self):
        self._value = 0
        self._lock = threading.Lock()

    def increment(self) -> int:
        """Add one and return the new total."""
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def __int__(self) -> int:
        return self.value

    def __repr__(self) -> str:
        return f"RequestCounter(value={self.value})"


class ServiceState:
    """
    Per-instance state shared by the server and its handlers.

    Uptime is measured with time.monotonic(), so it never goes backwards
    when the wall clock is adjusted. Until mark_started() is called, uptime
    is measured from construction.
    """

    def __init__(self, counter: Optional[RequestCounter] = None):
        self.counter = counter or RequestCounter()
        self.started_at = time.monotonic()
        self._listening = False

    def mark_started(self) -> None:
        """Record the moment the server began listening."""
        self.started_at = time.monotonic()
        self._listening = True

    @property
    def is_listening(self) -> bool:
        return self._listening

    @property
    def uptime(self) -> float:
        """Seconds since the server began listening, never negative."""
        return max(0.0, time.monotonic() - self.started_at)

    @property
    def request_count(self) -> int:
        return self.counter.value
