"""Named-section wall-clock profiler with periodic reporting."""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, TextIO


@dataclass
class _Section:
    start_time: float = 0.0
    total_ms: float = 0.0
    call_count: int = 0
    running: bool = False


class Profiler:
    """Accumulates time spent in named sections between reports.

    ``clock`` returns seconds; it defaults to :func:`time.perf_counter`.
    """

    def __init__(self, clock: Callable[[], float] = time.perf_counter) -> None:
        self._clock = clock
        self._sections: dict[str, _Section] = {}

    def start(self, name: str) -> None:
        section = self._sections.setdefault(name, _Section())
        section.start_time = self._clock()
        section.running = True

    def stop(self, name: str) -> None:
        """Close a running section; stopping one that is not running does nothing."""
        section = self._sections.get(name)
        if section is None or not section.running:
            return
        elapsed_ms = (self._clock() - section.start_time) * 1000.0
        section.total_ms += elapsed_ms
        section.call_count += 1
        section.running = False

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        self.start(name)
        try:
            yield
        finally:
            self.stop(name)

    def report(self, out: TextIO) -> None:
        """Write one line per section that was hit, then reset the counters."""
        for name, section in self._sections.items():
            if section.call_count == 0:
                continue
            avg_ms = section.total_ms / section.call_count
            out.write(
                f"[Profiler] {name} count={section.call_count} "
                f"total_ms={section.total_ms:.3f} avg_ms={avg_ms:.3f}\n"
            )
            section.total_ms = 0.0
            section.call_count = 0
            section.running = False