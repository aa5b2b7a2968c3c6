"""
Test-framework integration: fail a test, or a whole run, that leaks threads.

These are thin adapters over :func:`threadleak.core.waiter.check`.

- :func:`check_test` registers a cleanup on any object implementing
  :class:`SupportsCleanup` and fails it when threads are still running at cleanup.
- :class:`UnitTestAdapter` makes a :class:`unittest.TestCase` a ``SupportsCleanup``.
- :func:`check_main` runs a whole suite (or program) and calls an exit hook
  when the run failed or leaked. The exit hook is an explicit parameter so
  tests can observe it without patching :func:`sys.exit`.

The pytest flavour lives in :mod:`threadleak.pytest_plugin`.

Notes
-----
Per-test checks cannot tell tests apart when they run concurrently. Use
``check_main`` in that case: it runs after every test has settled.
"""

from __future__ import annotations

import sys
import unittest
from collections.abc import Callable
from typing import Protocol

from threadleak.core.capture import get as get_traces
from threadleak.core.contracts.trace import Ignore, Traces
from threadleak.core.errors import LeakError
from threadleak.core.ignore import ignore_current, ignore_non_children
from threadleak.core.settings import get_logger, load_settings
from threadleak.core.waiter import check

logger = get_logger(__name__)

Capture = Callable[[bool], Traces]


class SupportsCleanup(Protocol):
    """The slice of a test object the leak check needs."""

    def cleanup(self, fn: Callable[[], None]) -> None: ...

    def failed(self) -> bool: ...

    def fail(self, message: str) -> None: ...


class UnitTestAdapter:
    """Expose a :class:`unittest.TestCase` through the :class:`SupportsCleanup` protocol."""

    def __init__(self, case: unittest.TestCase) -> None:
        self._case = case

    def cleanup(self, fn: Callable[[], None]) -> None:
        self._case.addCleanup(fn)

    def failed(self) -> bool:
        # unittest keeps the running outcome on a private attribute
        outcome = getattr(self._case, "_outcome", None)
        return outcome is not None and not getattr(outcome, "success", True)

    def fail(self, message: str) -> None:
        self._case.fail(message)


def _default_ignores(capture: Capture) -> tuple[Ignore, ...]:
    if load_settings().ancestry_enabled:
        return (ignore_non_children(capture=capture),)
    return (ignore_current(capture),)


def check_test(
    t: SupportsCleanup,
    max_wait: float = 0,
    *ignores: Ignore,
    capture: Capture = get_traces,
) -> None:
    """Fail ``t`` at cleanup time if it leaks threads.

    Without explicit ``ignores``, threads that are not children of the caller
    are ignored when ancestry tracking is on; otherwise every thread alive at
    the time of this call is ignored.
    """
    chosen = ignores or _default_ignores(capture)

    def _verify() -> None:
        if t.failed():
            return
        try:
            check(max_wait, *chosen, capture=capture)
        except LeakError as exc:
            t.fail(str(exc))

    t.cleanup(_verify)


def check_main(
    run: Callable[[], int],
    max_wait: float = 0,
    *ignores: Ignore,
    exit_hook: Callable[[int], object] = sys.exit,
    capture: Capture = get_traces,
) -> None:
    """Run the suite via ``run()``, then check the whole process for leaks.

    A non-zero ``run()`` result is passed straight to ``exit_hook``. A leak is
    logged and reported as ``exit_hook(1)``.
    """
    code = run()
    if code != 0:
        exit_hook(code)
        return

    try:
        check(max_wait, *ignores, capture=capture)
    except LeakError as exc:
        logger.error("%s", exc)
        exit_hook(1)


__all__ = ["SupportsCleanup", "UnitTestAdapter", "check_main", "check_test"]
