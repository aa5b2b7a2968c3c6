"""Stack-dump parser: turn a raw dump into structured :class:`Traces`.

Input format
------------
One block per thread, blocks separated by a blank line::

    goroutine <id> [<wait reason>]:
    [originating from goroutine <id>]:      (zero or more, ancestry only)
    <call description>
    <TAB><file:line>[ +0x<hex>]
    ...more call/location pairs...
    ...additional frames elided...          (optional, right before the last pair)

The same text is produced by :mod:`threadleak.core.capture` for Python threads
and by the Go runtime for goroutines, so real Go dumps parse too.

Parsing is a small explicit state machine per block (header, ancestor run,
frame pairs). Anything unexpected raises :class:`ParseError`: a malformed dump
means the producer and the parser disagree on the format, which callers cannot
meaningfully recover from.

Examples
--------
>>> traces = parse("goroutine 7 [running]:\\nmain.main()\\n\\t/app/main.go:9 +0x1d")
>>> traces[0].thread_id, traces[0].frames[0].func, traces[0].frames[0].loc
(7, 'main.main', '/app/main.go:9')
"""

from __future__ import annotations

import enum
import hashlib
import re

from threadleak.core.contracts.trace import Frame, Trace, Traces
from threadleak.core.errors import ParseError

ELISION_MARKER = "...additional frames elided..."
ANCESTOR_PREFIX = "[originating from goroutine "

_BLANKS = re.compile(r"\n(?:[ \t]*\n)+")
_HEADER = re.compile(r"^goroutine (\d+) \[(.+)\]:$")
_ANCESTOR = re.compile(r"^\[originating from goroutine (\d+)\]:$")
_CALL = re.compile(r"^(?:created by )?(.*?)(?:\([^()]*\))?(?: in goroutine \d+)?$")
_LOCATION = re.compile(r"^[ \t]+(.*?)(?: \+0x[0-9a-fA-F]+)?$")

# Field separator for the fingerprint, so ("ab", "c") and ("a", "bc") differ.
_SEP = b"\x00"


class _State(enum.Enum):
    ANCESTORS = "ancestors"
    FRAMES = "frames"


def _split_blocks(text: str) -> list[str]:
    """Split a dump into per-thread blocks on blank lines."""
    text = text.replace("\r\n", "\n").strip("\n")
    if not text.strip():
        return []
    return _BLANKS.split(text)


def _drop_elision_marker(lines: list[str]) -> list[str]:
    """Remove the elision marker when it sits right before the final pair."""
    idx = len(lines) - 3
    if idx > 0 and lines[idx] == ELISION_MARKER:
        return lines[:idx] + lines[idx + 1 :]
    return lines


def _call_name(line: str) -> str:
    m = _CALL.match(line)
    name = m.group(1).strip() if m else ""
    if not name:
        raise ParseError(f"malformed call line: {line!r}")
    return name


def _location(line: str) -> str:
    m = _LOCATION.match(line)
    if m is None or not m.group(1):
        raise ParseError(f"malformed location line: {line!r}")
    return m.group(1)


def parse_block(raw: str) -> Trace:
    """Parse a single thread block into a :class:`Trace`.

    Raises
    ------
    ParseError
        If the header is malformed, an ancestor line follows a frame, or a
        call line has no matching location line.
    """
    lines = _drop_elision_marker(raw.split("\n"))

    header = _HEADER.match(lines[0])
    if header is None:
        raise ParseError(f"malformed thread header: {lines[0]!r}")
    thread_id = int(header.group(1))
    wait_reason = header.group(2)

    digest = hashlib.md5(wait_reason.encode("utf-8"))
    ancestors: list[int] = []
    frames: list[Frame] = []

    state = _State.ANCESTORS
    i = 1
    while i < len(lines):
        line = lines[i]

        if line.startswith(ANCESTOR_PREFIX):
            if state is not _State.ANCESTORS:
                raise ParseError(
                    f"ancestor line after frames in thread {thread_id}: {line!r}"
                )
            m = _ANCESTOR.match(line)
            if m is None:
                raise ParseError(f"malformed ancestor line: {line!r}")
            ancestors.append(int(m.group(1)))
            i += 1
            continue

        state = _State.FRAMES
        if line == ELISION_MARKER:
            raise ParseError(f"misplaced elision marker in thread {thread_id}")
        if i + 1 >= len(lines):
            raise ParseError(f"call line without location in thread {thread_id}: {line!r}")

        frame = Frame(func=_call_name(line), loc=_location(lines[i + 1]))
        frames.append(frame)
        digest.update(_SEP + frame.func.encode("utf-8"))
        digest.update(_SEP + frame.loc.encode("utf-8"))
        i += 2

    return Trace(
        raw=raw,
        thread_id=thread_id,
        wait_reason=wait_reason,
        ancestor_ids=tuple(ancestors),
        frames=tuple(frames),
        fingerprint=digest.hexdigest(),
    )


def parse(text: str) -> Traces:
    """Parse a full dump into :class:`Traces`, one per block, in dump order."""
    return Traces(parse_block(block) for block in _split_blocks(text))


__all__ = ["ELISION_MARKER", "parse", "parse_block"]
