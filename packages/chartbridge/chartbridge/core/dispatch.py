"""chartbridge: Control-context dispatchers
-----------------------------------------
The chart pipeline runs on a single host control context. Signals from the
rendering surface may arrive on other threads and must be posted through a
``Dispatcher`` before they touch readiness state.

Public API
----------
``Dispatcher`` : Protocol with ``post`` and ``assert_control_context``
``QueueDispatcher`` : Thread-safe queue drained by the control loop
``InlineDispatcher`` : Runs callbacks immediately (host already marshals)
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from .errors import ProtocolError

__all__ = ["Dispatcher", "QueueDispatcher", "InlineDispatcher"]


@runtime_checkable
class Dispatcher(Protocol):
    """Posts callbacks onto the host control context."""

    def post(self, fn: Callable[[], None]) -> None:
        """Schedule ``fn`` on the control context. Safe from any thread."""
        ...

    def assert_control_context(self) -> None:
        """Raise ``ProtocolError`` when called off the control context."""
        ...


class QueueDispatcher:
    """Queue-backed dispatcher for hosts that run their own control loop.

    ``post`` may be called from any thread; the owning thread runs the queued
    callbacks in FIFO order with ``run_pending``.

    Examples
    --------
    >>> d = QueueDispatcher()
    >>> d.post(lambda: print("ran"))
    >>> d.run_pending()
    ran
    1
    """

    def __init__(self, owner: threading.Thread | None = None) -> None:
        self._queue: queue.SimpleQueue[Callable[[], None]] = queue.SimpleQueue()
        self._owner = owner or threading.current_thread()

    @property
    def owner(self) -> threading.Thread:
        return self._owner

    def post(self, fn: Callable[[], None]) -> None:
        self._queue.put(fn)

    def pending(self) -> int:
        return self._queue.qsize()

    def run_pending(self) -> int:
        """Run every queued callback; return how many ran.

        A callback that raises stops the drain; later callbacks stay queued.
        """
        self.assert_control_context()
        count = 0
        while True:
            try:
                fn = self._queue.get_nowait()
            except queue.Empty:
                return count
            fn()
            count += 1

    def assert_control_context(self) -> None:
        current = threading.current_thread()
        if current is not self._owner:
            raise ProtocolError(
                f"[410] Control-context state touched from thread {current.name!r}; "
                f"post through the dispatcher owned by {self._owner.name!r}"
            )


class InlineDispatcher:
    """Run callbacks immediately on the calling thread.

    Only correct when the host already delivers surface callbacks on its
    control context.
    """

    def post(self, fn: Callable[[], None]) -> None:
        fn()

    def assert_control_context(self) -> None:
        return None
