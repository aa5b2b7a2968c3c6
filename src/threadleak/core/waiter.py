"""
Backoff polling engine: wait until only expected threads remain.

Algorithm
---------
::

    sleep  = backoff(0)
    ignore = combine_ignores(*ignores)
    loop:
        remaining = capture(all=True)[1:].filter(ignore)   # [0] is the caller
        if not remaining:            return remaining      # settled
        if deadline.done():          return remaining      # leak report
        sleep = backoff(sleep)
        if deadline.wait(sleep):     return remaining      # cancelled mid-sleep

The loop runs on the caller's thread and spawns nothing. Cancellation latency
is at most one backoff step (``max_backoff``, 300 ms by default).

A non-empty return value is *not* an error here: deciding that a leak fails a
test is the integration layer's job (see :mod:`threadleak.testing`).
:func:`check` is the shortcut that raises :class:`LeakError` instead.
"""

from __future__ import annotations

from collections.abc import Callable

from threadleak.core.capture import get as get_traces
from threadleak.core.context import Deadline
from threadleak.core.contracts.trace import Ignore, Traces
from threadleak.core.errors import LeakError
from threadleak.core.ignore import combine_ignores
from threadleak.core.settings import get_logger, load_settings

logger = get_logger(__name__)

Backoff = Callable[[float], float]
Capture = Callable[[bool], Traces]

MICROSECOND = 1e-6


def backoff(previous: float) -> float:
    """Default backoff: 1 µs first, then doubling, capped at ``max_backoff``."""
    if previous <= 0:
        return MICROSECOND
    return min(previous * 2, load_settings().max_backoff)


def wait_with_backoff(
    deadline: Deadline,
    backoff: Backoff,
    *ignores: Ignore,
    capture: Capture = get_traces,
) -> Traces:
    """Wait for every non-ignored thread to exit; return those still running.

    Parameters
    ----------
    deadline : Deadline
        Cancellation/timeout handle checked once per iteration.
    backoff : Callable[[float], float]
        Maps the previous sleep (0 at start) to the next one, in seconds.
        Must be non-decreasing and capped.
    *ignores : Ignore
        Predicates for threads that are expected to keep running.
    capture : Callable[[bool], Traces]
        Snapshot source; the caller's own thread must come first.

    Returns
    -------
    Traces
        Empty when every watched thread exited; otherwise the leftovers at the
        moment the deadline fired.
    """
    sleep = backoff(0)
    ignore = combine_ignores(*ignores)
    attempt = 0

    while True:
        attempt += 1
        remaining = capture(True)[1:].filter(ignore)

        if not remaining:
            logger.debug("settled after %d poll(s)", attempt)
            return remaining

        if deadline.done():
            break

        sleep = backoff(sleep)
        logger.debug("%d thread(s) remaining, sleeping %.6fs", len(remaining), sleep)
        if deadline.wait(sleep):
            break

    logger.warning("gave up after %d poll(s) with %d thread(s) remaining", attempt, len(remaining))
    return remaining


def wait(deadline: Deadline, *ignores: Ignore, capture: Capture = get_traces) -> Traces:
    """:func:`wait_with_backoff` using the default :func:`backoff`."""
    return wait_with_backoff(deadline, backoff, *ignores, capture=capture)


def default_max_wait(max_wait: float) -> float:
    """Return ``max_wait``, or the configured default when it is ``<= 0``."""
    if max_wait <= 0:
        return load_settings().default_max_wait
    return max_wait


def check(max_wait: float = 0, *ignores: Ignore, capture: Capture = get_traces) -> None:
    """Raise :class:`LeakError` if threads are still running after ``max_wait`` seconds.

    ``max_wait <= 0`` means the configured ``default_max_wait`` (3 s).
    """
    with Deadline(default_max_wait(max_wait)) as deadline:
        traces = wait(deadline, *ignores, capture=capture)
    if traces.any():
        raise LeakError(traces)


__all__ = ["backoff", "check", "default_max_wait", "wait", "wait_with_backoff"]
