"""Composable ignore predicates.

An ignore predicate is any ``Callable[[Trace], bool]`` returning True when the
thread is *expected* to still be running. The waiter combines all predicates it
receives with :func:`combine_ignores` (logical OR).

Snapshot predicates (``ignore_current``, ``ignore_list``, ``ignore_ids``) are
modelled as an explicit frozen id set plus a stateless ``__call__``: the set is
taken once, when the predicate is built, and never re-read from live state.

Examples
--------
>>> ignore = combine_ignores(
...     ignore_current(),
...     ignore_funcs("selectors.EpollSelector.select"),
...     lambda t: "heartbeat" in t.raw,
... )
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from threadleak.core import ancestry
from threadleak.core.capture import get as get_traces
from threadleak.core.contracts.trace import Ignore, Trace, Traces
from threadleak.core.errors import ConfigurationError
from threadleak.core.settings import Settings, load_settings

Capture = Callable[[bool], Traces]

ANCESTRY_HINT = (
    "You must set THREADLEAK_TRACEBACK_ANCESTORS=N, N should be a big enough "
    "integer, such as 1000"
)


@dataclass(frozen=True, slots=True)
class IgnoreIDs:
    """Ignore threads whose id is in a fixed snapshot set."""

    ids: frozenset[int]

    def __call__(self, trace: Trace) -> bool:
        return trace.thread_id in self.ids


@dataclass(frozen=True, slots=True)
class IgnoreFuncs:
    """Ignore threads whose most recent frame is one of ``names``."""

    names: frozenset[str]

    def __call__(self, trace: Trace) -> bool:
        return bool(trace.frames) and trace.frames[0].func in self.names


@dataclass(frozen=True, slots=True)
class IgnoreNonDescendants:
    """Ignore threads that were not (transitively) started by ``root_id``."""

    root_id: int

    def __call__(self, trace: Trace) -> bool:
        return not trace.has_ancestor(self.root_id)


@dataclass(frozen=True, slots=True)
class CombinedIgnore:
    """Logical OR of several predicates; empty means "ignore nothing"."""

    ignores: tuple[Ignore, ...]

    def __call__(self, trace: Trace) -> bool:
        return any(ignore(trace) for ignore in self.ignores)


def ignore_ids(ids: Iterable[int]) -> IgnoreIDs:
    """Freeze ``ids`` into an :class:`IgnoreIDs` predicate."""
    return IgnoreIDs(frozenset(ids))


def ignore_list(traces: Iterable[Trace]) -> IgnoreIDs:
    """Ignore every thread present in ``traces`` (matched by id)."""
    return ignore_ids(t.thread_id for t in traces)


def ignore_current(capture: Capture = get_traces) -> IgnoreIDs:
    """Ignore every thread alive right now, including the caller."""
    return ignore_list(capture(True))


def ignore_funcs(*names: str) -> IgnoreFuncs:
    """Ignore a trace if its first frame's function equals one of ``names``."""
    return IgnoreFuncs(frozenset(names))


def _require_ancestry(settings: Settings | None) -> Settings:
    s = settings if settings is not None else load_settings()
    if not s.ancestry_enabled:
        raise ConfigurationError(ANCESTRY_HINT)
    # Settings may have been switched on after import; make sure the hook is live.
    ancestry.enable(s.traceback_ancestors)
    return s


def ignore_non_descendants(
    root_id: int, *, settings: Settings | None = None
) -> IgnoreNonDescendants:
    """Ignore every thread not descended from ``root_id``.

    Raises
    ------
    ConfigurationError
        Immediately, if ancestry tracking is not enabled.
    """
    _require_ancestry(settings)
    return IgnoreNonDescendants(root_id)


def ignore_non_children(
    *, settings: Settings | None = None, capture: Capture = get_traces
) -> IgnoreNonDescendants:
    """Ignore every thread not descended from the calling thread.

    Raises
    ------
    ConfigurationError
        Immediately, if ancestry tracking is not enabled.
    """
    _require_ancestry(settings)
    return IgnoreNonDescendants(capture(False)[0].thread_id)


def combine_ignores(*ignores: Ignore) -> CombinedIgnore:
    """Combine predicates with logical OR."""
    return CombinedIgnore(tuple(ignores))


__all__ = [
    "CombinedIgnore",
    "IgnoreFuncs",
    "IgnoreIDs",
    "IgnoreNonDescendants",
    "combine_ignores",
    "ignore_current",
    "ignore_funcs",
    "ignore_ids",
    "ignore_list",
    "ignore_non_children",
    "ignore_non_descendants",
]
