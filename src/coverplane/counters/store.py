"""Read-only counter snapshot.

The instrumented program increments one counter slot per tracker. Once it has
exited, the slots are dumped as a mapping of tracker id to hit count. Trackers
that never fired may be absent from the dump; they read as zero.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

import yaml

from coverplane.core.errors import CountError


class CounterStore(Mapping[str, int]):
    """Tracker id → hit count, with missing ids reading as 0."""

    def __init__(self, values: Mapping[str, int] | None = None) -> None:
        self._values: dict[str, int] = {}
        for tracker, hits in (values or {}).items():
            if not isinstance(hits, int) or isinstance(hits, bool) or hits < 0:
                raise CountError.invalid_value(str(tracker), hits)
            self._values[str(tracker)] = hits

    @classmethod
    def from_mapping(cls, data: Mapping[Any, Any]) -> "CounterStore":
        if not isinstance(data, Mapping):
            raise CountError.invalid_snapshot("<mapping>", "top level must be a mapping")
        return cls({str(k): v for k, v in data.items()})

    def hits(self, tracker: str | None) -> int:
        if tracker is None:
            return 0
        return self._values.get(tracker, 0)

    def __getitem__(self, tracker: str) -> int:
        return self._values[tracker]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"CounterStore({len(self._values)} trackers)"


def load_counters(path: Path) -> CounterStore:
    """Read a counter snapshot from a `.json` or YAML file."""
    try:
        raw = path.read_text(encoding="utf-8")
        data = json.loads(raw) if path.suffix == ".json" else yaml.safe_load(raw)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise CountError.invalid_snapshot(str(path), str(e)) from e
    if data is None:
        return CounterStore()
    if not isinstance(data, Mapping):
        raise CountError.invalid_snapshot(str(path), "top level must be a mapping")
    return CounterStore.from_mapping(data)
