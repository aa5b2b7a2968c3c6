"""Unit tests for the ignore predicate combinators."""

from __future__ import annotations

import pytest

from threadleak.core.contracts.trace import Trace, Traces
from threadleak.core.errors import ConfigurationError
from threadleak.core.ignore import (
    IgnoreIDs,
    combine_ignores,
    ignore_current,
    ignore_funcs,
    ignore_ids,
    ignore_list,
    ignore_non_children,
    ignore_non_descendants,
)
from threadleak.core.parser import parse, parse_block
from threadleak.core.settings import Settings

WORKER = parse_block(
    "goroutine 7 [semacquire]:\n"
    "[originating from goroutine 1]:\n"
    "threading.Condition.wait(...)\n"
    "\t/usr/lib/python3/threading.py:355 +0x8c\n"
    "app.worker(...)\n"
    "\t/app/worker.py:12 +0x20"
)
IDLE = parse_block("goroutine 8 [running]:")


def _never(_: Trace) -> bool:
    return False


def _always(_: Trace) -> bool:
    return True


def test_ignore_ids_is_a_frozen_snapshot() -> None:
    """The id set is copied at construction; later mutation of the source is invisible."""
    ids = {7}
    pred = ignore_ids(ids)
    ids.add(8)

    assert isinstance(pred, IgnoreIDs)
    assert pred(WORKER) is True
    assert pred(IDLE) is False


def test_ignore_list_and_current_use_thread_ids() -> None:
    """Snapshot predicates match on thread id only."""
    snapshot = parse("goroutine 1 [running]:\n\ngoroutine 7 [select]:")
    assert ignore_list(snapshot)(WORKER) is True

    calls: list[bool] = []

    def fake_capture(include_all: bool) -> Traces:
        calls.append(include_all)
        return snapshot

    pred = ignore_current(fake_capture)
    assert calls == [True]
    assert pred(WORKER) is True and pred(IDLE) is False


def test_ignore_funcs_matches_first_frame_only() -> None:
    """Only the most recent frame's function name is compared, exactly."""
    assert ignore_funcs("threading.Condition.wait")(WORKER) is True
    assert ignore_funcs("app.worker")(WORKER) is False
    assert ignore_funcs("threading.Condition")(WORKER) is False
    assert ignore_funcs("anything")(IDLE) is False


@pytest.mark.parametrize(  # type: ignore[misc]
    ("a", "b", "expected"),
    [
        (_never, _never, False),
        (_never, _always, True),
        (_always, _never, True),
        (_always, _always, True),
    ],
)
def test_combine_is_logical_or(a: object, b: object, expected: bool) -> None:
    """`combine(A, B)` ignores iff A or B ignores."""
    assert combine_ignores(a, b)(WORKER) is expected  # type: ignore[arg-type]


def test_combine_nothing_ignores_nothing() -> None:
    """An empty combination keeps every trace."""
    assert combine_ignores()(WORKER) is False
    assert Traces([WORKER, IDLE]).filter(combine_ignores()) == (WORKER, IDLE)


def test_custom_predicates_compose() -> None:
    """Plain lambdas mix with the built-in predicates."""
    pred = combine_ignores(ignore_ids([99]), lambda t: "app.worker" in t.raw)
    assert Traces([WORKER, IDLE]).filter(pred) == (IDLE,)


def test_non_children_requires_ancestry_switch() -> None:
    """Without the switch, construction fails right away."""
    disabled = Settings(THREADLEAK_TRACEBACK_ANCESTORS=0)
    with pytest.raises(ConfigurationError, match="THREADLEAK_TRACEBACK_ANCESTORS"):
        ignore_non_children(settings=disabled)
    with pytest.raises(ConfigurationError):
        ignore_non_descendants(1, settings=disabled)


def test_non_children_keeps_descendants(ancestry_tracking: None) -> None:
    """With the switch on, only threads descending from the caller are kept."""
    enabled = Settings(THREADLEAK_TRACEBACK_ANCESTORS=10)

    pred = ignore_non_children(
        settings=enabled, capture=lambda _: parse("goroutine 1 [running]:")
    )
    assert pred.root_id == 1
    assert pred(WORKER) is False
    assert pred(IDLE) is True

    assert ignore_non_descendants(7, settings=enabled)(WORKER) is True
