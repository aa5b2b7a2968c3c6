"""Unit tests for the grouped trace report."""

from __future__ import annotations

from threadleak.core.contracts.trace import Traces
from threadleak.core.formatter import format_traces, group_traces
from threadleak.core.parser import parse


def _worker(thread_id: int) -> str:
    return f"goroutine {thread_id} [chan receive]:\npool.worker(...)\n\t/src/pool.py:40 +0x12"


def _dump() -> Traces:
    blocks = [
        _worker(10),
        "goroutine 11 [running]:\nmain.main(...)\n\t/src/main.py:3 +0x1",
        _worker(12),
        "goroutine 13 [IO wait]:\nnet.accept(...)\n\t/src/net.py:9 +0x2",
        _worker(14),
    ]
    return parse("\n\n".join(blocks))


def test_groups_keep_first_seen_order_and_counts() -> None:
    """Three identical stacks collapse into one group led by the first of them."""
    groups = group_traces(_dump())
    assert [(rep.thread_id, count) for rep, count in groups] == [(10, 3), (11, 1), (13, 1)]


def test_report_annotates_only_repeated_stacks() -> None:
    """Exactly one `[3] ` group plus two plain entries, each followed by a blank line."""
    report = format_traces(_dump())

    entries = [e for e in report.split("\n\n") if e]
    assert len(entries) == 3
    assert entries[0] == "[3] " + _worker(10)
    assert entries[1].startswith("goroutine 11 [running]:")
    assert entries[2].startswith("goroutine 13 [IO wait]:")
    assert report.count("[3] ") == 1
    assert report.endswith("\n\n")


def test_str_of_traces_is_the_report() -> None:
    """`str(Traces)` delegates to the formatter."""
    traces = _dump()
    assert str(traces) == format_traces(traces)


def test_empty_report() -> None:
    """No traces, no text."""
    assert format_traces(Traces()) == ""
