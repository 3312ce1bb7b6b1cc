"""Hand notifications from worker threads back to the control thread."""

import logging
import queue
import time
from typing import Any, Callable

log = logging.getLogger(__name__)


class EventQueue:
    """Callbacks posted from any thread, run on whichever thread drains the queue.

    The thread that owns user-visible state (the CLI's main thread, a UI loop)
    calls process_pending() so every observer method runs there.
    """

    def __init__(self) -> None:
        self._queue: queue.Queue[tuple[Callable[..., Any], tuple[Any, ...]]] = queue.Queue()

    def post(self, callback: Callable[..., Any], *args: Any) -> None:
        self._queue.put((callback, args))

    def process_pending(self, timeout: float | None = None) -> int:
        """Run queued callbacks on the calling thread.

        Waits up to timeout seconds for the first callback, then runs
        everything already queued without blocking again.

        Returns:
            Number of callbacks run
        """
        count = 0
        block = timeout is not None and timeout > 0
        while True:
            try:
                callback, args = self._queue.get(block=block, timeout=timeout if block else None)
            except queue.Empty:
                return count
            block = False
            try:
                callback(*args)
            except Exception:
                log.exception("Notification callback %r failed", callback)
            count += 1

    def run_until(self, done: Callable[[], bool], timeout: float | None = None, poll: float = 0.05) -> bool:
        """Process callbacks until done() is true or timeout expires."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while not done():
            if deadline is not None and time.monotonic() >= deadline:
                return False
            self.process_pending(timeout=poll)
        return True
