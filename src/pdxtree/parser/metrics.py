"""
Per-parse performance counters.

Each parser owns one ParsingMetrics instance and resets it at the start of
every parse call, so numbers never leak between documents.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Dict


@dataclass
class ParsingMetrics:
    """Timings (seconds) and counts for the most recent parse call."""
    tokenization_time: float = 0.0
    parsing_time: float = 0.0
    file_io_time: float = 0.0
    tokens_processed: int = 0
    lines_processed: int = 0
    input_size_bytes: int = 0
    error_count: int = 0
    warning_count: int = 0
    custom_timings: Dict[str, float] = field(default_factory=dict)
    counters: Dict[str, int] = field(default_factory=dict)

    @property
    def total_parsing_time(self) -> float:
        return self.tokenization_time + self.parsing_time

    @property
    def total_time(self) -> float:
        return self.tokenization_time + self.parsing_time + self.file_io_time

    @property
    def tokens_per_second(self) -> float:
        return self.tokens_processed / max(self.total_parsing_time, 0.001)

    @property
    def bytes_per_second(self) -> float:
        return self.input_size_bytes / max(self.total_time, 0.001)

    def reset(self) -> None:
        self.tokenization_time = 0.0
        self.parsing_time = 0.0
        self.file_io_time = 0.0
        self.tokens_processed = 0
        self.lines_processed = 0
        self.input_size_bytes = 0
        self.error_count = 0
        self.warning_count = 0
        self.custom_timings.clear()
        self.counters.clear()

    def increment(self, name: str, amount: int = 1) -> None:
        self.counters[name] = self.counters.get(name, 0) + amount

    def summary(self) -> str:
        return (
            f"Parsing Metrics: Total Time: {self.total_time * 1000:.1f}ms, "
            f"Tokens: {self.tokens_processed}, "
            f"Throughput: {self.tokens_per_second:.0f} tokens/sec, "
            f"Errors: {self.error_count}, Warnings: {self.warning_count}"
        )

    def detailed_report(self) -> str:
        lines = [
            "=== Parsing Performance Metrics ===",
            f"Total Time: {self.total_time * 1000:.1f}ms",
            f"  - File I/O: {self.file_io_time * 1000:.1f}ms",
            f"  - Tokenization: {self.tokenization_time * 1000:.1f}ms",
            f"  - Parsing: {self.parsing_time * 1000:.1f}ms",
            f"Input Size: {self.input_size_bytes:,} bytes",
            f"Tokens Processed: {self.tokens_processed:,}",
            f"Lines Processed: {self.lines_processed:,}",
            f"Throughput: {self.tokens_per_second:.0f} tokens/sec, "
            f"{self.bytes_per_second / 1024:.1f} KB/sec",
            f"Errors: {self.error_count}, Warnings: {self.warning_count}",
        ]
        if self.custom_timings:
            lines.append("Custom Timings:")
            for name, elapsed in self.custom_timings.items():
                lines.append(f"  - {name}: {elapsed * 1000:.1f}ms")
        if self.counters:
            lines.append("Counters:")
            for name, count in self.counters.items():
                lines.append(f"  - {name}: {count:,}")
        return "\n".join(lines)

    def __str__(self):
        return self.summary()


class PerformanceTimer:
    """
    Context manager that reports elapsed seconds to a callback on exit.

    Usage:
        with PerformanceTimer(lambda s: setattr(metrics, "parsing_time", s)):
            ...
    """

    def __init__(self, on_complete: Callable[[float], None]):
        if on_complete is None:
            raise ValueError("on_complete callback is required")
        self._on_complete = on_complete
        self._start = 0.0
        self.elapsed = 0.0

    def __enter__(self) -> "PerformanceTimer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.elapsed = time.perf_counter() - self._start
        self._on_complete(self.elapsed)
