"""Render a trace collection as a deduplicated, count-annotated report.

Traces are grouped by fingerprint. Groups are emitted in first-seen order, each
as the raw text of its first member, prefixed with ``[<count>] `` when more than
one thread shares the stack, and followed by a blank line.

Example
-------
Three workers blocked on the same queue plus the main thread render as::

    [3] goroutine 140 [chan receive]:
    queue.Queue.get(...)
        /usr/lib/python3.12/queue.py:171 +0x5e

    goroutine 1 [running]:
    ...
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from threadleak.core.contracts.trace import Trace


def group_traces(traces: Iterable[Trace]) -> list[tuple[Trace, int]]:
    """Return ``(representative, count)`` pairs in first-seen fingerprint order."""
    representatives: dict[str, Trace] = {}
    counts: Counter[str] = Counter()
    for t in traces:
        representatives.setdefault(t.fingerprint, t)
        counts[t.fingerprint] += 1
    return [(rep, counts[fp]) for fp, rep in representatives.items()]


def format_traces(traces: Iterable[Trace]) -> str:
    """Format ``traces`` into the grouped text report."""
    out: list[str] = []
    for trace, count in group_traces(traces):
        prefix = f"[{count}] " if count > 1 else ""
        out.append(prefix + trace.raw + "\n\n")
    return "".join(out)


__all__ = ["format_traces", "group_traces"]
