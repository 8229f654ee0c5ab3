"""Job context: the state that outlives a single record.

One Context is created per run, right before on_start fires, and the same
instance is handed to every hook call of that run. Whatever a stage puts in it
during on_start or an earlier on_entry is there on the next call.

Two things live here:

1. **Job configuration**, read once from the environment. Hadoop Streaming
   exports the job conf to the worker as environment variables, with the dots
   in property names replaced by underscores (``mapreduce.job.id`` becomes
   ``mapreduce_job_id``). get_config() takes either spelling.

2. **Run data**, a plain key/value store for stage state.

Access is single-writer and sequential: only the driver's thread, one hook
call at a time. There is no locking because there is nothing to race with.
"""

import os
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

_MISSING = object()


class Context:
    """Per-run mutable state container shared by every hook call."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        """Initialize a context.

        Args:
            environ: Source of job configuration. Defaults to a snapshot of
                os.environ taken now; later changes to the environment are
                not seen by the run.
        """
        source = os.environ if environ is None else environ
        self._config: Mapping[str, str] = MappingProxyType(dict(source))
        self._data: dict[str, Any] = {}

    @property
    def config(self) -> Mapping[str, str]:
        """Read-only job configuration."""
        return self._config

    def get_config(self, key: str, default: str | None = None) -> str | None:
        """Look up a job configuration value by property or variable name."""
        if key in self._config:
            return self._config[key]
        return self._config.get(key.replace(".", "_"), default)

    # ── Run data ──

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def take(self, key: str, default: Any = _MISSING) -> Any:
        """Remove and return a value.

        Raises KeyError if the key is absent and no default was given.
        """
        if default is _MISSING:
            return self._data.pop(key)
        return self._data.pop(key, default)

    def __repr__(self) -> str:
        return f"<Context {len(self._data)} values, {len(self._config)} config keys>"
