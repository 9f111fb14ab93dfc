"""Per-opcode timing statistics for the interpreter."""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, TextIO, TypeVar, Union

T = TypeVar("T")

CSV_HEADER = (
    "opcode, call_count, avg_time_microseconds, "
    "min_time_microseconds, max_time_microseconds\n"
)


def _fmt(value: float) -> str:
    return f"{value:g}"


@dataclass
class OpcodeStats:
    """Accumulated timings, in microseconds, for one opcode label."""

    call_count: int = 0
    total_time: float = 0.0
    min_time: float = sys.float_info.max
    max_time: float = 0.0

    def record(self, elapsed: float) -> None:
        """Add one measured call lasting ``elapsed`` microseconds."""
        self.call_count += 1
        self.total_time += elapsed
        if elapsed < self.min_time:
            self.min_time = elapsed
        if elapsed > self.max_time:
            self.max_time = elapsed

    def average(self) -> float:
        """Mean call time, or 0.0 when nothing has been recorded."""
        return self.total_time / self.call_count if self.call_count else 0.0


class Profiler:
    """Times callables by label and reports the results as CSV and text.

    When ``filename`` is given the file is created at once; on ``close`` the
    statistics are appended to it and a summary is printed to stdout.
    """

    def __init__(
        self, enabled: bool, filename: Optional[Union[str, Path]] = None
    ) -> None:
        self.enabled = enabled
        self._stats: Dict[str, OpcodeStats] = {}
        self._file: Optional[TextIO] = (
            open(filename, "w", encoding="utf-8") if filename is not None else None
        )
        self._closed = False
        if enabled and self._file is not None:
            self._file.write(CSV_HEADER)

    def profile_opcode(self, name: str, func: Callable[[], T]) -> T:
        """Run ``func``, recording its duration under ``name`` when enabled."""
        if not self.enabled:
            return func()
        start = time.perf_counter()
        result = func()
        elapsed = (time.perf_counter() - start) * 1_000_000.0
        self._stats.setdefault(name, OpcodeStats()).record(elapsed)
        return result

    def stats(self) -> Dict[str, OpcodeStats]:
        """Statistics gathered so far, keyed by label in first-seen order."""
        return dict(self._stats)

    def write_csv(self, stream: TextIO) -> None:
        """Write one CSV row per label to ``stream``."""
        for name, entry in self._stats.items():
            stream.write(
                f"{name},{entry.call_count},{_fmt(entry.average())},"
                f"{_fmt(entry.min_time)},{_fmt(entry.max_time)}\n"
            )

    def summary(self) -> str:
        """Human-readable table of the statistics."""
        lines = ["", "Opcode profiling summary: ", "Opcode \tCalls\tAvg(us)\tMin(us)"]
        for name, entry in self._stats.items():
            lines.append(
                f"{name}\t{entry.call_count}\t{_fmt(entry.average())}\t"
                f"{_fmt(entry.min_time)}\t{_fmt(entry.max_time)}"
            )
        return "\n".join(lines) + "\n"

    def close(self) -> None:
        """Flush statistics to the file, close it and print the summary."""
        if self._closed:
            return
        self._closed = True
        if self._file is not None:
            self.write_csv(self._file)
            self._file.close()
        print(self.summary(), end="")

    def __enter__(self) -> "Profiler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()