"""
Debounced progress notifications.

Embed jobs publish progress after every batch. Listeners receive 0% and
100% immediately; updates in between are coalesced so that at most one
notification per key leaves each debounce window, carrying the latest value.

Dependencies: asyncio (stdlib), pagewise.models.progress
System role: Progress fan-out to UI/API listeners
"""

import asyncio
import logging
import time
from typing import Callable

from pagewise.models.progress import ProgressEvent

logger = logging.getLogger(__name__)

ProgressListener = Callable[[ProgressEvent], None]
_Key = tuple[int, int | None, str]


class ProgressNotifier:
    """Fan out progress events to listeners with per-key debouncing."""

    def __init__(self, debounce_ms: int = 100, clock: Callable[[], float] = time.monotonic) -> None:
        """
        Initialize notifier.

        Args:
            debounce_ms: Coalescing window in milliseconds
            clock: Monotonic clock in seconds
        """
        self._window = debounce_ms / 1000
        self._clock = clock
        self._listeners: list[ProgressListener] = []
        self._last_emit: dict[_Key, float] = {}
        self._pending: dict[_Key, ProgressEvent] = {}
        self._timers: dict[_Key, asyncio.TimerHandle] = {}
        self._latest: dict[_Key, ProgressEvent] = {}

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """
        Register a listener.

        Returns:
            Callable that unsubscribes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: ProgressEvent) -> None:
        """Publish a progress update, emitting now or coalescing it."""
        key = (event.document_id, event.chapter_id, event.stage)
        now = self._clock()

        if event.percent in (0, 100):
            self._cancel_timer(key)
            self._pending.pop(key, None)
            self._emit(key, event, now)
            if event.percent == 100:
                self._last_emit.pop(key, None)
            return

        last = self._last_emit.get(key)
        if last is None or now - last >= self._window:
            self._cancel_timer(key)
            self._pending.pop(key, None)
            self._emit(key, event, now)
            return

        self._pending[key] = event
        if key not in self._timers:
            delay = max(0.0, self._window - (now - last))
            self._timers[key] = asyncio.get_running_loop().call_later(delay, self._flush_key, key)

    def flush(self) -> None:
        """Emit every coalesced update immediately."""
        for key in list(self._pending):
            self._cancel_timer(key)
            self._flush_key(key)

    def _flush_key(self, key: _Key) -> None:
        self._timers.pop(key, None)
        event = self._pending.pop(key, None)
        if event is not None:
            self._emit(key, event, self._clock())

    def _cancel_timer(self, key: _Key) -> None:
        timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()

    def latest(self, document_id: int) -> list[ProgressEvent]:
        """Most recently emitted event per chapter and stage of a document."""
        return [event for key, event in self._latest.items() if key[0] == document_id]

    def forget(self, document_id: int) -> None:
        """Drop all state kept for a document."""
        for key in [key for key in self._latest if key[0] == document_id]:
            self._cancel_timer(key)
            self._pending.pop(key, None)
            self._last_emit.pop(key, None)
            self._latest.pop(key, None)

    def _emit(self, key: _Key, event: ProgressEvent, now: float) -> None:
        self._last_emit[key] = now
        self._latest[key] = event
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                # A faulty listener must not fail the job that reports progress.
                logger.error(f"{__name__}:_emit - Listener {listener!r} failed: {type(e).__name__}: {e}", exc_info=True)
