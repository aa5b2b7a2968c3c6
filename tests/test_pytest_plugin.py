"""Tests for the pytest integration (`thread_leak_check` fixture)."""

from __future__ import annotations

import threading
from types import SimpleNamespace
from typing import Any

import pytest

from threadleak.pytest_plugin import _REPORT_KEY, PytestAdapter


def _fake_request() -> Any:
    finalizers: list[Any] = []
    return SimpleNamespace(
        node=SimpleNamespace(stash=pytest.Stash()),
        addfinalizer=finalizers.append,
        finalizers=finalizers,
    )


def test_adapter_registers_finalizer() -> None:
    """`cleanup` maps onto `request.addfinalizer`."""
    request = _fake_request()
    adapter = PytestAdapter(request)

    def fn() -> None:
        return None

    adapter.cleanup(fn)
    assert request.finalizers == [fn]


def test_adapter_reads_failed_reports() -> None:
    """A failed phase report marks the test as failed."""
    request = _fake_request()
    adapter = PytestAdapter(request)
    assert adapter.failed() is False

    request.node.stash[_REPORT_KEY] = {
        "setup": SimpleNamespace(failed=False),
        "call": SimpleNamespace(failed=True),
    }
    assert adapter.failed() is True


def test_adapter_fail_uses_pytest_fail() -> None:
    """`fail` raises pytest's own failure outcome."""
    adapter = PytestAdapter(_fake_request())
    with pytest.raises(pytest.fail.Exception, match="leaking threads"):
        adapter.fail("leaking threads: ...")


def test_fixture_accepts_test_that_joins_its_threads(thread_leak_check: None) -> None:
    """Threads joined before the test ends do not trip the fixture."""
    workers = [threading.Thread(target=lambda: None) for _ in range(3)]
    for w in workers:
        w.start()
    for w in workers:
        w.join()
