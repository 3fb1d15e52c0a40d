"""
=============================================================================
THREAD POOL
=============================================================================

Connections are served by a small set of worker threads fed from a bounded
queue. The accept loop never blocks on a slow client:

    accept loop ──submit()──► [ bounded queue ] ──► Worker-0
                                                 ──► Worker-1
                                                 ──► ... up to max_workers

Sizing rules:

    start()      min_workers threads
    submit()     grows by one worker when all are busy and work is queued
    queue full   submit() returns False and the caller answers 503

shutdown() gives queued connections a bounded grace period, then stops the
workers with one None sentinel each. Anything still queued after that is
discarded, and discarding a task closes any connection it was holding.

Handlers run on several threads at once, so state they share must be
synchronized (see state.RequestCounter).

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Callable, NamedTuple, Optional
from enum import Enum


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


class Task(NamedTuple):
    """A queued call, normally the keep-alive loop for one Connection."""

    func: Callable[..., None]
    args: tuple = ()

    def run(self):
        self.func(*self.args)

    def discard(self):
        """Release what a never-run task holds: close its connection."""
        for arg in self.args:
            close = getattr(arg, "close", None)
            if callable(close):
                try:
                    close()
                except OSError as e:
                    logger.debug(f"Error closing discarded task argument: {e}")


class Worker(threading.Thread):
    """Runs tasks from the shared queue until it gets None or is stopped."""

    def __init__(self, tasks: "queue.Queue[Optional[Task]]", worker_id: int, poll_interval: float):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)
        self.tasks = tasks
        self.worker_id = worker_id
        self.poll_interval = poll_interval
        self.state = WorkerState.IDLE
        self._stopping = threading.Event()

    def run(self):
        while not self._stopping.is_set():
            try:
                task = self.tasks.get(timeout=self.poll_interval)
            except queue.Empty:
                continue

            if task is None:
                self.tasks.task_done()
                break

            self.state = WorkerState.BUSY
            try:
                task.run()
            except Exception:
                logger.exception(f"{self.name}: task raised")
            finally:
                self.state = WorkerState.IDLE
                self.tasks.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"{self.name} exited")

    def stop(self):
        self._stopping.set()


class ThreadPool:
    """
    Growable pool of Worker threads over one bounded queue.

    Args:
        min_workers: Threads started by start().
        max_workers: Ceiling for growth under load.
        max_queue: Queue capacity; submit() refuses work beyond it.
        idle_timeout: How often an idle worker wakes to notice stop().
    """

    def __init__(
        self,
        min_workers: int = 4,
        max_workers: int = 8,
        max_queue: int = 100,
        idle_timeout: float = 1.0
    ):
        self.min_workers = min_workers
        self.max_workers = max_workers
        self.max_queue = max_queue
        self.idle_timeout = idle_timeout

        self._tasks: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=max_queue)
        self._workers: list[Worker] = []
        self._workers_lock = threading.Lock()
        self._spawned = 0
        self._accepting = False

    @property
    def is_running(self) -> bool:
        return self._accepting

    @property
    def worker_count(self) -> int:
        with self._workers_lock:
            return len(self._workers)

    def start(self):
        if self._accepting:
            return
        with self._workers_lock:
            while len(self._workers) < self.min_workers:
                self._spawn()
        self._accepting = True
        logger.info(f"Thread pool started with {self.min_workers} workers (max {self.max_workers})")

    def _spawn(self):
        # Caller holds _workers_lock
        worker = Worker(self._tasks, self._spawned, self.idle_timeout)
        self._spawned += 1
        self._workers.append(worker)
        worker.start()

    def submit(self, func: Callable[..., None], args: tuple = ()) -> bool:
        """
        Queue func(*args) without blocking.

        Returns:
            False when the queue is full; the task was not queued.

        Raises:
            RuntimeError: The pool is not running.
        """
        if not self._accepting:
            raise RuntimeError("Thread pool is not running")

        try:
            self._tasks.put_nowait(Task(func, args))
        except queue.Full:
            return False

        with self._workers_lock:
            all_busy = all(w.state == WorkerState.BUSY for w in self._workers)
            if all_busy and len(self._workers) < self.max_workers and not self._tasks.empty():
                logger.debug(f"All {len(self._workers)} workers busy, adding one")
                self._spawn()
        return True

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop accepting work and stop the workers.

        Args:
            wait: Give queued tasks a chance to run before stopping.
            timeout: Seconds to wait for the queue to empty (None = forever).
        """
        if not self._accepting:
            return
        self._accepting = False
        logger.info("Stopping thread pool")

        if wait:
            deadline = None if timeout is None else time.monotonic() + timeout
            while not self._tasks.empty():
                if deadline is not None and time.monotonic() >= deadline:
                    logger.warning(f"Gave up waiting on {self._tasks.qsize()} queued tasks")
                    break
                time.sleep(0.05)

        with self._workers_lock:
            workers, self._workers = self._workers, []

        for worker in workers:
            worker.stop()
            try:
                self._tasks.put_nowait(None)
            except queue.Full:
                pass  # the stop flag ends it at the next poll
        for worker in workers:
            worker.join(timeout=2.0)

        discarded = self._drain()
        if discarded:
            logger.warning(f"Discarded {discarded} queued tasks that never ran")
        logger.info("Thread pool stopped")

    def _drain(self) -> int:
        """Empty the queue so a restart starts clean; returns tasks discarded."""
        discarded = 0
        while True:
            try:
                task = self._tasks.get_nowait()
            except queue.Empty:
                return discarded
            self._tasks.task_done()
            if task is not None:
                task.discard()
                discarded += 1
