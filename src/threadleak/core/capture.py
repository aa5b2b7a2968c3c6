"""
Stack capture: dump the call stacks of live Python threads as text.

The dump follows the goroutine text format understood by
:mod:`threadleak.core.parser`, one block per thread::

    goroutine 140230812395072 [semacquire]:
    [originating from goroutine 140230830163776]:
    threading.Condition.wait(...)
        /usr/lib/python3.12/threading.py:355 +0x8c
    tests.test_waiter.worker(...)
        /repo/tests/test_waiter.py:21 +0x2a
    ...

The calling thread is always the first block, which is what lets the waiter
drop it with a plain ``[1:]``.

Buffer discipline
-----------------
:func:`capture` never returns a truncated dump: it writes into a buffer of
``capture_buffer_floor`` bytes and, while the dump fills the buffer, doubles
the size and captures again. A dump strictly shorter than its buffer is
complete.
"""

from __future__ import annotations

import sys
import threading
from types import FrameType

from threadleak.core import ancestry
from threadleak.core.contracts.trace import Traces
from threadleak.core.parser import ELISION_MARKER, parse
from threadleak.core.settings import load_settings

# Innermost-frame module -> wait reason, mirroring the runtime's vocabulary.
_WAIT_REASONS: dict[str, str] = {
    "threading": "semacquire",
    "queue": "chan receive",
    "selectors": "IO wait",
    "socket": "IO wait",
    "ssl": "IO wait",
    "asyncio": "IO wait",
    "select": "select",
}


def _module_of(frame: FrameType) -> str:
    return str(frame.f_globals.get("__name__", "?"))


def _wait_reason(frame: FrameType | None, *, current: bool) -> str:
    if current or frame is None:
        return "running"
    root = _module_of(frame).split(".", 1)[0]
    return _WAIT_REASONS.get(root, "running")


def _render_frame(frame: FrameType) -> str:
    code = frame.f_code
    lineno = frame.f_lineno or code.co_firstlineno
    return (
        f"{_module_of(frame)}.{code.co_qualname}(...)\n"
        f"\t{code.co_filename}:{lineno} +0x{max(frame.f_lasti, 0):x}\n"
    )


def _render_thread(
    ident: int,
    frame: FrameType | None,
    *,
    current: bool,
    ancestors: tuple[int, ...],
    max_frames: int,
) -> str:
    """Render one thread block, frames most recent first."""
    stack: list[FrameType] = []
    f = frame
    while f is not None:
        stack.append(f)
        f = f.f_back

    out = [f"goroutine {ident} [{_wait_reason(frame, current=current)}]:\n"]
    out.extend(f"[originating from goroutine {a}]:\n" for a in ancestors)

    if len(stack) > max_frames:
        out.extend(_render_frame(f) for f in stack[: max_frames - 1])
        out.append(ELISION_MARKER + "\n")
        out.append(_render_frame(stack[-1]))
    else:
        out.extend(_render_frame(f) for f in stack)
    return "".join(out)


def render_stack(include_all: bool) -> str:
    """Render the dump text: the calling thread first, then (optionally) all others.

    Each block ends with a newline and blocks are separated by a blank line,
    so the returned text ends with ``"\\n"``.
    """
    max_frames = load_settings().max_frames
    me = threading.get_ident()
    frames = sys._current_frames()
    threads = {t.ident: t for t in threading.enumerate()}

    idents = [me]
    if include_all:
        idents.extend(ident for ident in frames if ident != me)

    blocks = [
        _render_thread(
            ident,
            frames.get(ident),
            current=ident == me,
            ancestors=ancestry.ancestors_of(threads.get(ident)),
            max_frames=max_frames,
        )
        for ident in idents
    ]
    return "\n".join(blocks)


def _write_stack(buf: bytearray, include_all: bool) -> int:
    """Write the dump into ``buf`` and return the number of bytes written.

    Like the runtime facility it stands in for, the write stops when ``buf``
    is full, so a return value equal to ``len(buf)`` may mean truncation.
    """
    data = render_stack(include_all).encode("utf-8")
    n = min(len(data), len(buf))
    buf[:n] = data[:n]
    return n


def capture(include_all: bool, *, floor: int | None = None) -> str:
    """Return the complete dump text, without its trailing newline.

    Parameters
    ----------
    include_all : bool
        If False, only the calling thread is dumped.
    floor : int | None
        Initial buffer size in bytes; defaults to ``capture_buffer_floor``.
    """
    size = floor if floor is not None else load_settings().capture_buffer_floor
    while True:
        buf = bytearray(size)
        n = _write_stack(buf, include_all)
        if n < size:
            return buf[:n].decode("utf-8").removesuffix("\n")
        size *= 2


def get(include_all: bool = False) -> Traces:
    """Capture and parse: the calling thread's trace, plus all others if asked."""
    return parse(capture(include_all))


def _enable_ancestry_from_settings() -> None:
    s = load_settings()
    if s.ancestry_enabled:
        ancestry.enable(s.traceback_ancestors)


_enable_ancestry_from_settings()


__all__ = ["capture", "get", "render_stack"]
