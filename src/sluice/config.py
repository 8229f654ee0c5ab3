"""Driver configuration.

The driver has very few knobs. Everything here has a sensible default, and the
defaults match what Hadoop Streaming hands a worker: UTF-8 text, newline
terminated, on a buffered standard input.
"""

import codecs
import io
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DriverConfig:
    """Configuration for a StreamDriver run.

    Args:
        encoding: Text encoding used to decode each line. Decoding is strict;
            lines that don't decode are dropped. Must be ASCII-compatible
            (UTF-16 and UTF-32 are rejected).
        buffer_size: Read buffer size for unbuffered sources.
        strip_carriage_return: Also strip a ``\\r`` preceding the ``\\n``.
        max_consecutive_read_errors: Consecutive failed reads after which the
            input is considered gone and the run is aborted.
    """

    encoding: str = "utf-8"
    buffer_size: int = io.DEFAULT_BUFFER_SIZE
    strip_carriage_return: bool = True
    max_consecutive_read_errors: int = 64

    def __post_init__(self) -> None:
        if self.buffer_size <= 0:
            raise ValueError(f"buffer_size must be positive, got {self.buffer_size}")
        if self.max_consecutive_read_errors < 1:
            raise ValueError(
                f"max_consecutive_read_errors must be >= 1, got {self.max_consecutive_read_errors}"
            )
        try:
            codecs.lookup(self.encoding)
            terminators = "\r\n".encode(self.encoding)
        except LookupError:
            # Also raised for bytes-to-bytes codecs such as "hex"
            raise ValueError(f"Unknown text encoding: {self.encoding!r}") from None
        # Lines are split on the newline byte before decoding
        if terminators != b"\r\n":
            raise ValueError(
                f"Encoding {self.encoding!r} is not ASCII-compatible, "
                f"lines can't be split on the newline byte"
            )
