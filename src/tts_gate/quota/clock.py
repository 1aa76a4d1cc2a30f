"""
Heartbeat Ticker.

Calls registered callbacks once per interval from a daemon thread. The
minute tracker's tick() is the only production callback.

    ticker = Ticker(1.0, [tracker.tick])
    ticker.start()
    ...
    ticker.stop()

A callback that raises is logged and the loop keeps running, so a single
bad tick never freezes the minute window.
"""
from __future__ import annotations

import threading
from typing import Callable, Iterable, List, Optional

from tts_gate.core.config import Defaults
from tts_gate.core.logging import debug, error, get_logger

_LOG = get_logger("tts-gate.clock")


class Ticker:
    """Fixed-interval callback loop on a background thread."""

    def __init__(
        self,
        interval_s: float = Defaults.QUOTA_TICK_SECONDS,
        callbacks: Optional[Iterable[Callable[[], object]]] = None,
    ):
        if interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {interval_s}")
        self._interval = float(interval_s)
        self._callbacks: List[Callable[[], object]] = list(callbacks or [])
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def interval_s(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def add_callback(self, callback: Callable[[], object]) -> None:
        with self._lock:
            self._callbacks.append(callback)

    def fire(self) -> None:
        """Run every callback once, in registration order."""
        with self._lock:
            callbacks = list(self._callbacks)
        for cb in callbacks:
            try:
                cb()
            except Exception as e:
                error(_LOG, "tick_callback_failed", callback=getattr(cb, "__qualname__", repr(cb)), error=str(e))

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            self.fire()

    def start(self) -> None:
        """Start the loop. Starting a running ticker does nothing."""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._stop.clear()
            self._thread = threading.Thread(target=self._run, name="tts-gate-ticker", daemon=True)
            self._thread.start()
        debug(_LOG, "ticker_started", interval_s=self._interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the loop and wait for the thread to exit."""
        self._stop.set()
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread is not None:
            thread.join(timeout if timeout is not None else self._interval * 2)
            debug(_LOG, "ticker_stopped")

    def __enter__(self) -> "Ticker":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
