"""threadleak: detect threads that outlive the test or program that started them.

Quick start
-----------
>>> from threadleak import Deadline, ignore_current, wait
>>> ignore = ignore_current()
>>> # ... start and stop some workers ...
>>> leaked = wait(Deadline(2.0), ignore)
>>> leaked.any()
False

Ancestry switch
---------------
With ``THREADLEAK_TRACEBACK_ANCESTORS=N`` (N > 0) set, importing this package
wraps ``threading.Thread.start`` for the whole process, so every thread started
afterwards records its live creators (see :mod:`threadleak.core.ancestry`).
Building ``ignore_non_children`` or ``ignore_non_descendants`` installs the
same wrapper if it is not in place yet. With the switch unset (the default)
importing threadleak patches nothing.
"""

from __future__ import annotations

from threadleak.core.capture import capture, get
from threadleak.core.context import Deadline, on_signal, timeout
from threadleak.core.contracts.trace import Frame, Ignore, Trace, Traces
from threadleak.core.errors import ConfigurationError, LeakError, ParseError
from threadleak.core.formatter import format_traces
from threadleak.core.ignore import (
    combine_ignores,
    ignore_current,
    ignore_funcs,
    ignore_ids,
    ignore_list,
    ignore_non_children,
    ignore_non_descendants,
)
from threadleak.core.parser import parse
from threadleak.core.waiter import backoff, check, wait, wait_with_backoff

__all__ = [
    "ConfigurationError",
    "Deadline",
    "Frame",
    "Ignore",
    "LeakError",
    "ParseError",
    "Trace",
    "Traces",
    "__version__",
    "backoff",
    "capture",
    "check",
    "combine_ignores",
    "format_traces",
    "get",
    "ignore_current",
    "ignore_funcs",
    "ignore_ids",
    "ignore_list",
    "ignore_non_children",
    "ignore_non_descendants",
    "on_signal",
    "parse",
    "timeout",
    "wait",
    "wait_with_backoff",
]
__version__ = "0.1.0"
