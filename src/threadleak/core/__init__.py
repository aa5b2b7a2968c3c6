"""Core package for threadleak: capture, parse, filter, wait, format.

Settings conveniences live in :mod:`threadleak.core.settings`:
    from threadleak.core.settings import settings, load_settings, Settings, get_logger
"""

from __future__ import annotations

__all__ = ["__doc__"]
