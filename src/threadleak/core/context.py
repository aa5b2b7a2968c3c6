"""Cancellation handles for the waiter.

A :class:`Deadline` is the Python counterpart of a cancellable context: it is
"done" once it has been cancelled or its optional timeout has elapsed. The
waiter only ever calls :meth:`Deadline.done` and :meth:`Deadline.wait`, so any
object with those two methods can stand in for it.

Shortcuts
---------
- :func:`timeout` builds a deadline and cancels the one it built previously.
  It keeps a single process-wide "last deadline" and is therefore meant for
  one leak check at a time; it is not safe to share across concurrent checks.
  Build :class:`Deadline` objects directly when checks may overlap.
- :func:`on_signal` returns a deadline cancelled by the first delivery of the
  given signals (SIGINT by default). Python only allows installing signal
  handlers from the main thread.
"""

from __future__ import annotations

import signal
import threading
import time
from collections.abc import Callable
from types import FrameType, TracebackType
from typing import Any


class Deadline:
    """Cancellation signal with an optional timeout, in seconds."""

    __slots__ = ("_clock", "_expires_at", "_cancelled")

    def __init__(
        self,
        timeout: float | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._expires_at: float | None = None if timeout is None else clock() + max(0.0, timeout)
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """Signal cancellation; wakes up any pending :meth:`wait`."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        """Return True if :meth:`cancel` has been called."""
        return self._cancelled.is_set()

    def remaining(self) -> float | None:
        """Seconds left before expiry (never negative), or None without a timeout."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    def done(self) -> bool:
        """Return True once cancelled or expired."""
        if self._cancelled.is_set():
            return True
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``, racing the deadline.

        Returns
        -------
        bool
            True if cancellation or expiry happened first, False if the full
            ``seconds`` elapsed.
        """
        remaining = self.remaining()
        if remaining is not None and remaining < seconds:
            self._cancelled.wait(remaining)
            return True
        return self._cancelled.wait(seconds)

    def __enter__(self) -> Deadline:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cancel()

    def __repr__(self) -> str:
        return f"Deadline(remaining={self.remaining()!r}, cancelled={self.cancelled})"


_last_deadline: Deadline | None = None


def timeout(seconds: float) -> Deadline:
    """Return a new deadline of ``seconds`` and cancel the previous one.

    Single-use-at-a-time: do not call concurrently from several checks.
    """
    global _last_deadline
    deadline = Deadline(seconds)
    if _last_deadline is not None:
        _last_deadline.cancel()
    _last_deadline = deadline
    return deadline


def on_signal(*signals: signal.Signals) -> Deadline:
    """Return a deadline cancelled when one of ``signals`` arrives.

    The previous handlers are restored after the first delivery.
    """
    deadline = Deadline()
    wanted = signals or (signal.SIGINT,)
    previous: dict[signal.Signals, Any] = {}

    def _handler(signum: int, frame: FrameType | None) -> None:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        deadline.cancel()

    for sig in wanted:
        previous[sig] = signal.signal(sig, _handler)
    return deadline


__all__ = ["Deadline", "on_signal", "timeout"]
