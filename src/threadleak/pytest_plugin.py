"""pytest plugin: the ``thread_leak_check`` fixture.

Registered through the ``pytest11`` entry point, so installing threadleak is
enough::

    def test_worker_shuts_down(thread_leak_check):
        pool = WorkerPool()
        pool.start()
        pool.stop()   # the test fails if any worker thread outlives it

The check runs at fixture teardown, waits up to ``--threadleak-max-wait``
seconds (default: ``THREADLEAK_DEFAULT_MAX_WAIT``) and is skipped for tests that
already failed.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any

import pytest

from threadleak.testing import check_test

_REPORT_KEY = pytest.StashKey[dict[str, pytest.TestReport]]()


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("threadleak")
    group.addoption(
        "--threadleak-max-wait",
        type=float,
        default=0.0,
        help="Seconds to wait for leaked threads (<= 0 uses the configured default).",
    )


@pytest.hookimpl(hookwrapper=True)  # type: ignore[misc]
def pytest_runtest_makereport(
    item: pytest.Item, call: pytest.CallInfo[None]
) -> Generator[None, Any, None]:
    outcome = yield
    report: pytest.TestReport = outcome.get_result()
    item.stash.setdefault(_REPORT_KEY, {})[report.when] = report


class PytestAdapter:
    """Expose a pytest ``request`` through the ``SupportsCleanup`` protocol."""

    def __init__(self, request: pytest.FixtureRequest) -> None:
        self._request = request

    def cleanup(self, fn: Callable[[], None]) -> None:
        self._request.addfinalizer(fn)

    def failed(self) -> bool:
        reports = self._request.node.stash.get(_REPORT_KEY, {})
        return any(r.failed for r in reports.values())

    def fail(self, message: str) -> None:
        pytest.fail(message, pytrace=False)


@pytest.fixture  # type: ignore[misc]
def thread_leak_check(request: pytest.FixtureRequest) -> None:
    """Fail the test if threads it started are still running after it."""
    max_wait = float(request.config.getoption("--threadleak-max-wait", default=0.0))
    check_test(PytestAdapter(request), max_wait)
