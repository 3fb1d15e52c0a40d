"""
Unit tests for the shared service state.
"""

import threading
import time

from demoserver.state import RequestCounter, ServiceState


class TestRequestCounter:
    """Tests for RequestCounter."""

    def test_starts_at_zero(self):
        assert RequestCounter().value == 0

    def test_increment_returns_new_total(self):
        counter = RequestCounter()

        assert counter.increment() == 1
        assert counter.increment() == 2
        assert counter.value == 2
        assert int(counter) == 2

    def test_repr(self):
        counter = RequestCounter()
        counter.increment()

        assert repr(counter) == "RequestCounter(value=1)"

    def test_concurrent_increments_are_not_lost(self):
        counter = RequestCounter()
        threads_count, per_thread = 8, 1000
        barrier = threading.Barrier(threads_count)

        def work():
            barrier.wait()
            for _ in range(per_thread):
                counter.increment()

        threads = [threading.Thread(target=work) for _ in range(threads_count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10.0)

        assert counter.value == threads_count * per_thread


class TestServiceState:
    """Tests for ServiceState."""

    def test_fresh_state(self):
        state = ServiceState()

        assert state.request_count == 0
        assert state.is_listening is False
        assert state.uptime >= 0.0

    def test_shared_counter(self):
        counter = RequestCounter()
        state = ServiceState(counter)
        counter.increment()

        assert state.counter is counter
        assert state.request_count == 1

    def test_uptime_never_decreases(self):
        state = ServiceState()
        state.mark_started()

        readings = []
        for _ in range(5):
            readings.append(state.uptime)
            time.sleep(0.01)

        assert readings == sorted(readings)
        assert readings[-1] > readings[0]

    def test_mark_started_resets_clock(self):
        state = ServiceState()
        time.sleep(0.05)
        before = state.uptime
        state.mark_started()

        assert state.is_listening is True
        assert state.uptime < before
