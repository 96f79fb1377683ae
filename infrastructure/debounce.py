"""Cancellable debounce timer on the asyncio event loop."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

DEFAULT_DELAY = 0.3


class Debouncer:
    """Fires `callback` once after `delay` seconds of quiet.

    Each `trigger` restarts the timer and replaces the pending arguments, so
    only the last call within the window fires (last writer wins). Must be
    triggered from code running on an event loop.
    """

    def __init__(self, callback: Callable[..., Any], delay: float = DEFAULT_DELAY) -> None:
        self._callback = callback
        self.delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self._args: tuple[Any, ...] = ()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self, *args: Any) -> None:
        """Start or restart the timer with `args` for the eventual call."""
        self.cancel()
        self._args = args
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def flush(self) -> bool:
        """Fire a pending call now; return whether one was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._fire()
        return True

    def _fire(self) -> None:
        self._handle = None
        args, self._args = self._args, ()
        self._callback(*args)
