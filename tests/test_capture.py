"""Tests for live stack capture against real Python threads."""

from __future__ import annotations

import threading
from typing import Any

from threadleak.core.capture import capture, get
from threadleak.core.ignore import ignore_funcs, ignore_list
from threadleak.core.parser import ELISION_MARKER, parse
from threadleak.core.settings import load_settings


def _park(event: threading.Event) -> None:
    event.wait()


def _spawn_parked() -> tuple[threading.Thread, threading.Event]:
    release = threading.Event()
    thread = threading.Thread(target=_park, args=(release,), name="parked")
    thread.start()
    return thread, release


def test_current_thread_only() -> None:
    """`capture(False)` dumps exactly the calling thread, marked running."""
    text = capture(False)
    assert text.startswith(f"goroutine {threading.get_ident()} [running]:\n")
    assert "\n\n" not in text
    assert not text.endswith("\n")

    traces = parse(text)
    assert len(traces) == 1
    assert any(f.func.endswith("test_current_thread_only") for f in traces[0].frames)


def test_caller_comes_first() -> None:
    """The calling thread is always the first trace of a full capture."""
    assert get(True)[0].thread_id == threading.get_ident()


def test_tiny_buffer_grows_until_complete() -> None:
    """A floor far below the dump size still yields a complete, parseable dump."""
    thread, release = _spawn_parked()
    try:
        text = capture(True, floor=16)
        traces = parse(text)
        assert text.split("\n")[-1].startswith("\t")
        assert thread.ident in {t.thread_id for t in traces}
    finally:
        release.set()
        thread.join()


def test_parked_thread_is_described() -> None:
    """A thread blocked on an Event reports its innermost frame and wait reason."""
    thread, release = _spawn_parked()
    try:
        # give the thread a moment to reach Event.wait
        for _ in range(100):
            trace = next(t for t in get(True) if t.thread_id == thread.ident)
            if trace.wait_reason == "semacquire":
                break
            release.wait(0.01)

        assert trace.wait_reason == "semacquire"
        assert trace.frames[0].func == "threading.Condition.wait"
        assert any(f.func.endswith("._park") for f in trace.frames)
        assert ignore_funcs("threading.Condition.wait")(trace)
    finally:
        release.set()
        thread.join()


def test_capture_filter_end_to_end() -> None:
    """One idle thread adds one trace; once it exits, nothing is left."""
    baseline = get(True)
    thread, release = _spawn_parked()
    try:
        during = get(True)
        new = [t for t in during if t.thread_id not in {b.thread_id for b in baseline}]
        assert len(during) == len(baseline) + 1
        assert [t.thread_id for t in new] == [thread.ident]
    finally:
        release.set()
        thread.join()

    assert not get(True)[1:].filter(ignore_list(baseline)).any()


def test_deep_stacks_are_elided(monkeypatch: Any) -> None:
    """Past `max_frames`, frames are elided but the outermost one is kept."""
    monkeypatch.setenv("THREADLEAK_MAX_FRAMES", "3")
    load_settings.cache_clear()

    def recurse(n: int) -> str:
        return capture(False) if n == 0 else recurse(n - 1)

    text = recurse(5)
    lines = text.split("\n")
    assert lines[-3] == ELISION_MARKER
    assert lines[-2].endswith("(...)") and lines[-1].startswith("\t")

    trace = parse(text)[0]
    assert len(trace.frames) == 3
