"""Immutable data contracts shared by every threadleak component."""

from __future__ import annotations

from .trace import Frame, Ignore, Trace, Traces

__all__ = ["Frame", "Ignore", "Trace", "Traces"]
