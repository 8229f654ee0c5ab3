"""Errors: what the driver tolerates, and what it doesn't.

The driver has two kinds of per-line failure, and both are recovered locally:

1. **Read errors**: the transport failed while reading one line. The line is
   skipped and the next one is read.

2. **Decode errors**: the bytes arrived but aren't valid text. The line is
   skipped, it never reaches the stage half-decoded.

Neither is ever surfaced to the stage. A single corrupt record in a large
streaming job must not take the whole job down. The skips are counted and
logged at DEBUG so an operator can still find them in the task logs.

An input that can't be read at all is a process-level fault, raised as one of
the exceptions below. Exceptions from the stage itself are not ours to handle.
"""

from dataclasses import dataclass
from enum import StrEnum


class SkipReason(StrEnum):
    """Why a line was dropped."""

    READ_ERROR = "read_error"
    DECODE_ERROR = "decode_error"


@dataclass(frozen=True, slots=True)
class SkippedLine:
    """A line the driver dropped instead of delivering.

    line_number is 1-based and counts every line the driver attempted to read,
    delivered or not.
    """

    line_number: int
    reason: SkipReason
    error: Exception

    def __repr__(self) -> str:
        return (
            f"<SkippedLine line={self.line_number} "
            f"reason={self.reason} "
            f"error={type(self.error).__name__}>"
        )


class SluiceError(Exception):
    """Base class for sluice errors."""


class InputUnavailableError(SluiceError):
    """Raised when the input source can't be read at all.

    Either there is no standard input to bind to, or reads kept failing
    back to back until the configured limit was hit.
    """

    def __init__(self, message: str, consecutive_failures: int = 0) -> None:
        self.consecutive_failures = consecutive_failures
        super().__init__(message)


class DriverBusyError(SluiceError):
    """Raised when a driver is asked to run while a run is already active."""
