"""Mapper and reducer stages for Hadoop Streaming jobs.

Both are ordinary lifecycles: the driver knows nothing about them. They exist
so that a worker script only has to say what happens to one record (map) or
one group of records (reduce), and not how those arrive.

Writing output is up to the stage. Nothing here prints.

Mappers:

    class Tokenize(Mapper):
        def map(self, key, value, context):
            for word in value.split():
                print(f"{word}\\t1")

    run_mapper(Tokenize())

Reducers get their input sorted by key (Hadoop's shuffle guarantees this), so
grouping only has to compare each key with the previous one:

    def total(key, values, context):
        print(f"{key}\\t{sum(int(v) for v in values)}")

    run_reducer(total)
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, BinaryIO, TypeAlias

from .config import DriverConfig
from .context import Context
from .driver import run_lifecycle
from .lifecycle import Lifecycle

MapFunction: TypeAlias = Callable[[int, str, Context], Any]
ReduceFunction: TypeAlias = Callable[[str, list[str], Context], Any]


class Mapper(ABC):
    """A map stage. Only map() is required."""

    def setup(self, context: Context) -> None:
        """Called once before the first record."""

    @abstractmethod
    def map(self, key: int, value: str, context: Context) -> None:
        """Handle one record.

        Args:
            key: Byte offset of the record among the delivered records. Each
                record counts one terminator byte, so on CRLF input (where
                the \\r is stripped) the key runs one byte per line behind the
                offset in the raw input. Dropped lines don't count.
            value: The record text, without line terminator.
            context: The run's context.
        """

    def cleanup(self, context: Context) -> None:
        """Called once after the last record."""


class Reducer(ABC):
    """A reduce stage. Only reduce() is required."""

    def setup(self, context: Context) -> None:
        """Called once before the first group."""

    @abstractmethod
    def reduce(self, key: str, values: list[str], context: Context) -> None:
        """Handle all values of one key, in input order."""

    def cleanup(self, context: Context) -> None:
        """Called once after the last group."""


class FunctionMapper(Mapper):
    """Mapper backed by a plain function."""

    def __init__(self, func: MapFunction) -> None:
        self.func = func

    def map(self, key: int, value: str, context: Context) -> None:
        self.func(key, value, context)

    def __repr__(self) -> str:
        return f"<FunctionMapper '{getattr(self.func, '__name__', self.func)}'>"


class FunctionReducer(Reducer):
    """Reducer backed by a plain function."""

    def __init__(self, func: ReduceFunction) -> None:
        self.func = func

    def reduce(self, key: str, values: list[str], context: Context) -> None:
        self.func(key, values, context)

    def __repr__(self) -> str:
        return f"<FunctionReducer '{getattr(self.func, '__name__', self.func)}'>"


class MapperLifecycle(Lifecycle):
    """Adapts a Mapper to the hook contract.

    The key handed to map() is the byte offset of the record, counting only
    the records that reached the stage: each one advances it by its encoded
    length plus one byte for the terminator. Dropped lines don't count.
    """

    def __init__(self, mapper: Mapper, encoding: str = "utf-8") -> None:
        self.mapper = mapper
        self.encoding = encoding
        self._offset = 0

    @property
    def name(self) -> str:
        return type(self.mapper).__name__

    def on_start(self, context: Context) -> None:
        self._offset = 0
        self.mapper.setup(context)

    def on_entry(self, line: str, context: Context) -> None:
        offset = self._offset
        self._offset += len(line.encode(self.encoding)) + 1
        self.mapper.map(offset, line, context)

    def on_end(self, context: Context) -> None:
        self.mapper.cleanup(context)


class ReducerLifecycle(Lifecycle):
    """Adapts a Reducer to the hook contract.

    Each line is split on the first separator into key and value. A line with
    no separator is a key with an empty value. Consecutive lines sharing a key
    form one group; reduce() is called when the key changes, and once more in
    on_end for the last group, before cleanup().
    """

    def __init__(self, reducer: Reducer, separator: str = "\t") -> None:
        if not separator:
            raise ValueError("separator must not be empty")
        self.reducer = reducer
        self.separator = separator
        self._key: str | None = None
        self._values: list[str] = []

    @property
    def name(self) -> str:
        return type(self.reducer).__name__

    def on_start(self, context: Context) -> None:
        self._key = None
        self._values = []
        self.reducer.setup(context)

    def on_entry(self, line: str, context: Context) -> None:
        key, _, value = line.partition(self.separator)
        if self._key is not None and key != self._key:
            self._flush(context)
        self._key = key
        self._values.append(value)

    def on_end(self, context: Context) -> None:
        if self._key is not None:
            self._flush(context)
        self.reducer.cleanup(context)

    def _flush(self, context: Context) -> None:
        assert self._key is not None
        key, values = self._key, self._values
        self._key = None
        self._values = []
        self.reducer.reduce(key, values, context)


def run_mapper(
    mapper: Mapper | MapFunction,
    source: BinaryIO | None = None,
    config: DriverConfig | None = None,
    job_name: str = "map",
) -> None:
    """Run a mapper (or a plain map function) against standard input."""
    if not isinstance(mapper, Mapper):
        if not callable(mapper):
            raise TypeError(f"Expected a Mapper or a callable, got {type(mapper).__name__}")
        mapper = FunctionMapper(mapper)
    config = config or DriverConfig()
    run_lifecycle(
        MapperLifecycle(mapper, encoding=config.encoding),
        source=source,
        config=config,
        job_name=job_name,
    )


def run_reducer(
    reducer: Reducer | ReduceFunction,
    source: BinaryIO | None = None,
    config: DriverConfig | None = None,
    job_name: str = "reduce",
    separator: str = "\t",
) -> None:
    """Run a reducer (or a plain reduce function) against standard input."""
    if not isinstance(reducer, Reducer):
        if not callable(reducer):
            raise TypeError(f"Expected a Reducer or a callable, got {type(reducer).__name__}")
        reducer = FunctionReducer(reducer)
    run_lifecycle(
        ReducerLifecycle(reducer, separator=separator),
        source=source,
        config=config,
        job_name=job_name,
    )
