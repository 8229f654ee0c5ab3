"""Lifecycle: the hook contract every processing stage implements.

A stage reacts to three events of a streaming run:

    on_start(context)         once, before the first line
    on_entry(line, context)   once per decoded line, in input order
    on_end(context)           once, after the input is exhausted

All three are optional. Subclass Lifecycle and override only what you need,
or hand the driver any object with some subset of these methods. The driver
checks once, before the run, which of them exist.

on_entry has no return value and no error channel. A line that is logically
invalid for the stage is the stage's problem: skip it, count it in the
context, whatever fits. The driver doesn't look at the outcome.
"""

from typing import Protocol, runtime_checkable

from .context import Context


@runtime_checkable
class LifecycleHooks(Protocol):
    """Protocol for duck-typed stages.

    All methods are optional. Implement only the ones you need.

    Methods:
        on_start: Called once before any line is delivered.
        on_entry: Called for each successfully decoded line.
        on_end: Called once after the input is exhausted.
    """

    def on_start(self, context: Context) -> None: ...
    def on_entry(self, line: str, context: Context) -> None: ...
    def on_end(self, context: Context) -> None: ...


class Lifecycle:
    """Base class for processing stages. Every hook defaults to a no-op."""

    def on_start(self, context: Context) -> None:
        """Startup hook for the stream."""

    def on_entry(self, line: str, context: Context) -> None:
        """Entry hook, receives one decoded line without its terminator."""

    def on_end(self, context: Context) -> None:
        """Finalization hook for the stream."""

    @property
    def name(self) -> str:
        """Name used in log lines."""
        return type(self).__name__


def lifecycle_name(lifecycle: object) -> str:
    """Best-effort display name for any stage object."""
    name = getattr(lifecycle, "name", None)
    if isinstance(name, str) and name:
        return name
    return type(lifecycle).__name__
