"""Per-run stream metrics.

The driver counts every line it reads, delivers or drops. These numbers never
reach the stage (the hook contract has no place for them), but they're on the
driver for whoever launched the run, and they go into the end-of-run log line.
"""

import random
import time
from dataclasses import dataclass, field
from typing import Any

from .errors import SkipReason


@dataclass
class LatencyHistogram:
    """Simple streaming histogram using reservoir sampling (Algorithm R).

    Just enough to report p50/p95/p99 of the entry hook without keeping every
    observation in memory.
    """

    _values: list[float] = field(default_factory=list)
    _max_size: int = 1000
    _total_seen: int = 0

    def record(self, value: float) -> None:
        self._total_seen += 1
        if len(self._values) < self._max_size:
            self._values.append(value)
        else:
            # Algorithm R: include Nth item with probability k/N
            idx = random.randint(0, self._total_seen - 1)
            if idx < self._max_size:
                self._values[idx] = value

    def percentile(self, p: float) -> float | None:
        """Return the p-th percentile (0-100). None if no observations."""
        if not self._values:
            return None
        sorted_vals = sorted(self._values)
        idx = int(len(sorted_vals) * p / 100)
        idx = min(idx, len(sorted_vals) - 1)
        return sorted_vals[idx]

    @property
    def count(self) -> int:
        return self._total_seen


@dataclass
class StreamMetrics:
    """Counters for a single driver run.

    Collected by the driver. A fresh instance is created for every run.
    """

    job_name: str
    lines_read: int = 0
    lines_delivered: int = 0
    read_errors: int = 0
    decode_errors: int = 0
    entry_latency: LatencyHistogram = field(default_factory=LatencyHistogram)
    _started_at: float = field(default_factory=time.monotonic)

    def record_delivered(self, duration: float) -> None:
        self.lines_read += 1
        self.lines_delivered += 1
        self.entry_latency.record(duration)

    def record_skipped(self, reason: SkipReason) -> None:
        self.lines_read += 1
        if reason is SkipReason.READ_ERROR:
            self.read_errors += 1
        else:
            self.decode_errors += 1

    @property
    def lines_skipped(self) -> int:
        return self.read_errors + self.decode_errors

    @property
    def skip_rate(self) -> float:
        if self.lines_read == 0:
            return 0.0
        return self.lines_skipped / self.lines_read

    @property
    def throughput(self) -> float:
        """Delivered lines per second since the run started."""
        elapsed = time.monotonic() - self._started_at
        if elapsed == 0:
            return 0.0
        return self.lines_delivered / elapsed

    def snapshot(self) -> dict[str, Any]:
        """Return a JSON-serializable snapshot of current metrics."""
        return {
            "job": self.job_name,
            "lines_read": self.lines_read,
            "lines_delivered": self.lines_delivered,
            "lines_skipped": self.lines_skipped,
            "read_errors": self.read_errors,
            "decode_errors": self.decode_errors,
            "skip_rate": round(self.skip_rate, 4),
            "throughput_per_sec": round(self.throughput, 2),
            "entry_latency_p50": self.entry_latency.percentile(50),
            "entry_latency_p95": self.entry_latency.percentile(95),
            "entry_latency_p99": self.entry_latency.percentile(99),
        }

    def summary(self) -> str:
        """One-line human-readable summary of the run."""
        p50 = self.entry_latency.percentile(50)
        lat = f"{p50 * 1000:.2f}ms" if p50 is not None else "n/a"
        return (
            f"{self.lines_delivered}/{self.lines_read} lines delivered, "
            f"{self.read_errors} read errors, "
            f"{self.decode_errors} decode errors, "
            f"entry p50={lat}, "
            f"{self.throughput:.1f}/s"
        )

    def __repr__(self) -> str:
        return f"<StreamMetrics {self.job_name}: {self.summary()}>"
