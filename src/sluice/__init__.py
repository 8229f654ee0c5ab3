"""sluice: lifecycle hooks for line-oriented streaming jobs.

The public API is intentionally small:

    from sluice import Lifecycle, run_lifecycle

Subclass Lifecycle, override the hooks you need, hand it to run_lifecycle.
The driver reads standard input line by line and calls on_start once,
on_entry for every decoded line, and on_end once.

For Hadoop Streaming mappers and reducers there is run_mapper/run_reducer.
"""

from .config import DriverConfig
from .context import Context
from .driver import StreamDriver, run_lifecycle
from .errors import (
    DriverBusyError,
    InputUnavailableError,
    SkippedLine,
    SkipReason,
    SluiceError,
)
from .lifecycle import Lifecycle, LifecycleHooks
from .logging import configure_logging
from .metrics import StreamMetrics
from .stages import (
    FunctionMapper,
    FunctionReducer,
    Mapper,
    MapperLifecycle,
    Reducer,
    ReducerLifecycle,
    run_mapper,
    run_reducer,
)

__all__ = [
    "Context",
    "DriverBusyError",
    "DriverConfig",
    "FunctionMapper",
    "FunctionReducer",
    "InputUnavailableError",
    "Lifecycle",
    "LifecycleHooks",
    "Mapper",
    "MapperLifecycle",
    "Reducer",
    "ReducerLifecycle",
    "SkipReason",
    "SkippedLine",
    "SluiceError",
    "StreamDriver",
    "StreamMetrics",
    "configure_logging",
    "run_lifecycle",
    "run_mapper",
    "run_reducer",
]

__version__ = "0.1.0"
