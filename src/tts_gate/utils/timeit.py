"""
Timing helper for measuring code blocks.

Used to time the provider synthesis call so its latency can be logged
and fed to the synthesis duration histogram.

Example:
    with timeit("synth") as t:
        artifact = synthesizer.synthesize(text, voice)
    print(f"Took {t.seconds:.3f}s")
"""
from __future__ import annotations

from dataclasses import dataclass
from time import perf_counter
from typing import Any, Dict, Optional


@dataclass
class Timing:
    """A finished measurement."""
    name: str
    seconds: float
    meta: Optional[Dict[str, Any]] = None


class timeit:
    """
    Context manager that records wall-clock time with perf_counter().

    The timing is recorded even if the block raises, so a failed
    provider call still reports how long it took to fail.
    """

    def __init__(self, name: str, meta: Optional[Dict[str, Any]] = None):
        self.name = name
        self.meta = meta
        self._t0: float | None = None
        self.timing: Timing | None = None

    def __enter__(self) -> "timeit":
        self._t0 = perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        t1 = perf_counter()
        assert self._t0 is not None
        self.timing = Timing(name=self.name, seconds=(t1 - self._t0), meta=self.meta)

    @property
    def seconds(self) -> float:
        """Elapsed seconds, or -1.0 while the block is still running."""
        return self.timing.seconds if self.timing else -1.0
