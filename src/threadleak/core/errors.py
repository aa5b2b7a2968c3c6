"""Exception types raised by threadleak.

A leak is *not* an error for the core: :func:`threadleak.core.waiter.wait`
simply returns the remaining traces. Only :func:`threadleak.core.waiter.check`
turns a leak into :class:`LeakError`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from threadleak.core.contracts.trace import Traces


class ParseError(ValueError):
    """The stack dump does not follow the expected text format."""


class ConfigurationError(RuntimeError):
    """A feature was requested that the current settings do not enable."""


class LeakError(AssertionError):
    """Threads were still running when the leak check gave up waiting."""

    def __init__(self, traces: Traces) -> None:
        self.traces = traces
        super().__init__(f"leaking threads: {traces}")


__all__ = ["ConfigurationError", "LeakError", "ParseError"]
