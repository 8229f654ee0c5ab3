"""Stream driver: binds a lifecycle to a byte stream and runs it to the end.

The driver owns the transport: buffered reads, line splitting, decoding. The
stage only ever sees decoded lines, in order, between one on_start and one
on_end.

A run goes like this:
1. Bind the input (standard input unless a source was given), buffered.
2. Create a fresh Context.
3. Fire on_start.
4. Read line after line until the input is exhausted. Each line is split on
   the newline byte, then decoded. Lines that fail to read or fail to decode
   are dropped and the run moves on. Everything else goes to on_entry.
5. Fire on_end.

There is no fatal path inside the loop. The only ways out are end of input,
an exception raised by the stage itself, or an input that stops answering
altogether (InputUnavailableError).

Everything is synchronous and single-threaded. A hook call finishes before
the next line is read, so the context is only ever touched by one hook at a
time.
"""

import io
import sys
import time
from collections.abc import Callable, Iterator
from typing import Any, BinaryIO

from .config import DriverConfig
from .context import Context
from .errors import DriverBusyError, InputUnavailableError, SkippedLine, SkipReason
from .lifecycle import LifecycleHooks, lifecycle_name
from .logging import JobLoggerAdapter, get_logger
from .metrics import StreamMetrics


class StreamDriver:
    """Runs lifecycles against a line-oriented byte stream.

    Usage:
        driver = StreamDriver(job_name="wordcount-map")
        driver.run(WordCountMapper())
        print(driver.metrics.summary())

    A driver can run several lifecycles one after another (each run gets a
    new Context and new metrics), but never two at once.
    """

    def __init__(
        self,
        source: BinaryIO | None = None,
        config: DriverConfig | None = None,
        job_name: str = "job",
    ) -> None:
        """Initialize a driver.

        Args:
            source: Binary stream to read. Defaults to the process's standard
                input, bound when the run starts. The driver never closes it.
            config: Driver configuration. Defaults to DriverConfig().
            job_name: Name used in log lines and metrics.
        """
        self._source = source
        self._config = config or DriverConfig()
        self._job_name = job_name
        self._metrics: StreamMetrics | None = None
        self._running = False

    @property
    def config(self) -> DriverConfig:
        return self._config

    @property
    def job_name(self) -> str:
        return self._job_name

    @property
    def metrics(self) -> StreamMetrics | None:
        """Metrics of the current or most recent run. None before the first run."""
        return self._metrics

    def run(self, lifecycle: LifecycleHooks | object) -> None:
        """Run a lifecycle to the end of the input.

        Exceptions raised by the lifecycle's hooks propagate unchanged.
        """
        if self._running:
            raise DriverBusyError(f"Driver for job '{self._job_name}' is already running")
        self._running = True
        try:
            self._run(lifecycle)
        finally:
            self._running = False

    def _run(self, lifecycle: LifecycleHooks | object) -> None:
        reader, wrapped = self._bind_input()
        try:
            self._drive(lifecycle, reader)
        finally:
            # The raw source stays open for its owner
            if wrapped:
                reader.detach()  # type: ignore[attr-defined]

    def _drive(self, lifecycle: LifecycleHooks | object, reader: BinaryIO) -> None:
        # Resolve hooks once, absent ones are simply never called
        on_start: Callable[[Context], Any] | None = getattr(lifecycle, "on_start", None)
        on_entry: Callable[[str, Context], Any] | None = getattr(lifecycle, "on_entry", None)
        on_end: Callable[[Context], Any] | None = getattr(lifecycle, "on_end", None)

        log = get_logger(self._job_name, lifecycle_name(lifecycle))
        metrics = StreamMetrics(job_name=self._job_name)
        self._metrics = metrics

        context = Context()
        log.info("Starting run of '%s'", lifecycle_name(lifecycle))

        if on_start is not None:
            on_start(context)

        for line in self._lines(reader, metrics, log):
            t0 = time.monotonic()
            if on_entry is not None:
                on_entry(line, context)
            metrics.record_delivered(time.monotonic() - t0)

        if on_end is not None:
            on_end(context)

        log.info(
            "Input exhausted: %s",
            metrics.summary(),
            extra={"metrics": metrics.snapshot()},
        )

    def _bind_input(self) -> tuple[BinaryIO, bool]:
        """Resolve the source to a buffered binary reader.

        Returns the reader and whether it wraps a raw source.
        """
        source: Any = self._source
        if source is None:
            stdin = sys.stdin
            if stdin is None:
                raise InputUnavailableError("Standard input is not available")
            # Read bytes underneath the text layer, decoding is ours to do
            source = getattr(stdin, "buffer", stdin)

        if isinstance(source, io.TextIOBase):
            raise TypeError(
                f"Expected a binary stream, got text stream {type(source).__name__}. "
                f"Pass its .buffer instead."
            )
        if isinstance(source, io.RawIOBase):
            reader = io.BufferedReader(source, buffer_size=self._config.buffer_size)
            return reader, True  # type: ignore[return-value]
        return source, False

    def _lines(
        self,
        reader: BinaryIO,
        metrics: StreamMetrics,
        log: JobLoggerAdapter,
    ) -> Iterator[str]:
        """Yield decoded lines, dropping the ones that can't be read or decoded.

        Lazy on purpose: the next line is not read until the caller is done
        with the previous one.
        """
        config = self._config
        consecutive_failures = 0

        while True:
            line_number = metrics.lines_read + 1
            try:
                raw = reader.readline()
            except OSError as e:
                consecutive_failures += 1
                self._skip(SkippedLine(line_number, SkipReason.READ_ERROR, e), metrics, log)
                if consecutive_failures >= config.max_consecutive_read_errors:
                    raise InputUnavailableError(
                        f"Input failed {consecutive_failures} reads in a row",
                        consecutive_failures=consecutive_failures,
                    ) from e
                continue
            consecutive_failures = 0

            if not raw:
                return

            if raw.endswith(b"\n"):
                raw = raw[:-1]
                if config.strip_carriage_return and raw.endswith(b"\r"):
                    raw = raw[:-1]

            try:
                line = raw.decode(config.encoding)
            except UnicodeDecodeError as e:
                self._skip(SkippedLine(line_number, SkipReason.DECODE_ERROR, e), metrics, log)
                continue

            yield line

    @staticmethod
    def _skip(skipped: SkippedLine, metrics: StreamMetrics, log: JobLoggerAdapter) -> None:
        metrics.record_skipped(skipped.reason)
        log.debug(
            "Skipping line %d (%s): %s",
            skipped.line_number,
            skipped.reason,
            skipped.error,
            extra={"line": skipped.line_number, "reason": str(skipped.reason)},
        )


def run_lifecycle(
    lifecycle: LifecycleHooks | object,
    source: BinaryIO | None = None,
    config: DriverConfig | None = None,
    job_name: str = "job",
) -> None:
    """Run a lifecycle against standard input (or the given source)."""
    StreamDriver(source=source, config=config, job_name=job_name).run(lifecycle)
