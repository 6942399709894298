"""Hand completed background work back to the control thread."""

from __future__ import annotations

import queue
from collections.abc import Callable

Callback = Callable[[], None]
Scheduler = Callable[[Callback], None]


class CompletionQueue:
    """Thread-safe mailbox: workers ``post``, the control thread ``drain``s."""

    def __init__(self) -> None:
        self._queue: queue.SimpleQueue[Callback] = queue.SimpleQueue()

    def post(self, callback: Callback) -> None:
        self._queue.put(callback)

    def drain(self) -> int:
        """Run every queued callback in arrival order; returns how many ran."""
        count = 0
        while True:
            try:
                callback = self._queue.get_nowait()
            except queue.Empty:
                return count
            callback()
            count += 1


def run_immediately(callback: Callback) -> None:
    callback()
