"""Coalesce bursts of redraw requests into at most one pending frame."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

FRAME_INTERVAL_MS = 16


class FrameScheduler:
    """
    Depth-1 queue on top of a host timer: a new request replaces the one
    still waiting, so a slider drag only ever renders the latest value.

    `schedule(callback) -> handle` and `cancel(handle)` are the host hooks,
    e.g. ``lambda cb: root.after(16, cb)`` and ``root.after_cancel``.
    """

    def __init__(self, schedule: Callable[[Callable[[], None]], Any], cancel: Callable[[Any], None]):
        self._schedule = schedule
        self._cancel = cancel
        self._handle: Optional[Any] = None
        self._callback: Optional[Callable[[], None]] = None
        self.superseded = 0

    @classmethod
    def for_tk(cls, widget, interval_ms: int = FRAME_INTERVAL_MS) -> "FrameScheduler":
        return cls(lambda cb: widget.after(interval_ms, cb), widget.after_cancel)

    @property
    def pending(self) -> bool:
        return self._callback is not None

    def request(self, callback: Callable[[], None]) -> None:
        if self.pending:
            self.superseded += 1
            self.cancel()
        self._callback = callback
        self._handle = self._schedule(self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._cancel(self._handle)
        self._handle = None
        self._callback = None

    def flush(self) -> None:
        """Run the pending request now instead of waiting for the frame."""
        if self.pending:
            callback = self._callback
            self.cancel()
            callback()

    def _fire(self) -> None:
        callback, self._callback, self._handle = self._callback, None, None
        if callback is None:
            logger.debug("Frame fired with nothing pending")
            return
        callback()
