"""Optional thread ancestry tracking.

CPython does not remember which thread started which. When ancestry tracking
is enabled, :meth:`threading.Thread.start` is wrapped so every new thread
records the chain of its creators (nearest first, at most ``limit`` links).
The capture layer renders that chain as ``[originating from goroutine <id>]:``
lines, and :func:`threadleak.core.ignore.ignore_non_children` filters on it.

Each link keeps the creator's ident together with a weak reference to its
``Thread`` object. CPython hands out the ident of an exited thread to the next
one it starts, so an ident alone does not name a creator for long: a link is
reported only while the ident still belongs to that same, live thread.

Only threads started *after* :func:`enable` carry ancestry, so the switch
(``THREADLEAK_TRACEBACK_ANCESTORS``) should be set before the code under test
spawns anything.
"""

from __future__ import annotations

import functools
import threading
import weakref
from collections.abc import Callable
from typing import Any

_ATTR = "_threadleak_ancestors"

Link = tuple[int, "weakref.ReferenceType[threading.Thread]"]

_lock = threading.Lock()
_original_start: Callable[[threading.Thread], None] | None = None
_limit = 0


def _links_of(thread: threading.Thread) -> tuple[Link, ...]:
    return tuple(getattr(thread, _ATTR, ()))


def enable(limit: int) -> None:
    """Start recording ancestry for newly started threads (idempotent)."""
    global _original_start, _limit
    if limit <= 0:
        raise ValueError("ancestry limit must be a positive integer")

    with _lock:
        _limit = limit
        if _original_start is not None:
            return

        original = threading.Thread.start

        @functools.wraps(original)
        def start(self: threading.Thread, *args: Any, **kwargs: Any) -> None:
            parent = threading.current_thread()
            link: Link = (threading.get_ident(), weakref.ref(parent))
            setattr(self, _ATTR, (link, *_links_of(parent))[:_limit])
            original(self, *args, **kwargs)

        threading.Thread.start = start  # type: ignore[method-assign]
        _original_start = original


def disable() -> None:
    """Restore the original :meth:`threading.Thread.start`."""
    global _original_start
    with _lock:
        if _original_start is not None:
            threading.Thread.start = _original_start  # type: ignore[method-assign]
            _original_start = None


def is_enabled() -> bool:
    """Return True while :meth:`threading.Thread.start` is being wrapped."""
    return _original_start is not None


def _still_owns(ident: int, ref: weakref.ReferenceType[threading.Thread]) -> bool:
    creator = ref()
    return creator is not None and creator.ident == ident and creator.is_alive()


def ancestors_of(thread: threading.Thread | None) -> tuple[int, ...]:
    """Return the idents of the live creators of ``thread``, nearest first.

    Creators that have exited are skipped: their idents may already belong
    to unrelated threads.
    """
    if thread is None:
        return ()
    return tuple(ident for ident, ref in _links_of(thread) if _still_owns(ident, ref))


__all__ = ["ancestors_of", "disable", "enable", "is_enabled"]
