"""
Trace contracts: one parsed thread stack and the collection of them.

These models are produced by :mod:`threadleak.core.parser` and consumed by the
ignore predicates, the waiter, the formatter and the CLI JSON export.

Design Notes
------------
- **Immutability**: ``Frame`` and ``Trace`` are frozen Pydantic models and use
  tuples for their sequences, so a capture can be shared freely between
  predicates without copying.
- **Fingerprint**: ``Trace.fingerprint`` is computed by the parser over the
  wait reason and the ordered frames. It ignores the thread id, so many threads
  parked in the same place share one fingerprint.
- ``Traces`` is a ``tuple`` subclass; ``str(traces)`` is the grouped report.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from pydantic import BaseModel, ConfigDict, Field

from threadleak.core.formatter import format_traces


class Frame(BaseModel):
    """One call frame: function description and source location."""

    model_config = ConfigDict(frozen=True)

    func: str = Field(..., description="Function name, arguments stripped.")
    loc: str = Field(..., description="Source location 'file:line', offset stripped.")


class Trace(BaseModel):
    """Immutable snapshot of one thread at capture time."""

    model_config = ConfigDict(frozen=True)

    raw: str = Field(..., description="Original text block of this thread.")
    thread_id: int = Field(..., description="Unique within a single capture only.")
    wait_reason: str = Field(..., description="State the thread was parked in.")
    ancestor_ids: tuple[int, ...] = Field(
        default=(), description="Creator ids, nearest first (ancestry tracking only)."
    )
    frames: tuple[Frame, ...] = Field(default=(), description="Most recent call first.")
    fingerprint: str = Field(..., description="Digest of wait reason and frames.")

    def has_ancestor(self, thread_id: int) -> bool:
        """Return True if ``thread_id`` (transitively) created this thread."""
        return thread_id in self.ancestor_ids

    def __str__(self) -> str:
        return self.raw


Ignore = Callable[[Trace], bool]


class Traces(tuple[Trace, ...]):
    """Ordered, immutable collection of traces from one capture."""

    def __new__(cls, items: Iterable[Trace] = ()) -> Traces:
        return super().__new__(cls, items)

    def __getitem__(self, key):  # type: ignore[no-untyped-def, override]
        if isinstance(key, slice):
            return Traces(super().__getitem__(key))
        return super().__getitem__(key)

    def any(self) -> bool:
        """Return True if at least one trace is present."""
        return len(self) > 0

    def filter(self, ignore: Ignore) -> Traces:
        """Return the traces that ``ignore`` does *not* ignore, in order."""
        return Traces(t for t in self if not ignore(t))

    def __str__(self) -> str:
        return format_traces(self)

    def __repr__(self) -> str:
        return f"Traces({list(self)!r})"


__all__ = ["Frame", "Ignore", "Trace", "Traces"]
