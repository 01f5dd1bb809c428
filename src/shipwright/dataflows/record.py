"""
Records and record events.

A :class:`Record` is one logical input row travelling through a dataflow.
Its ``data`` is a mutable field map whose name comparison follows the
dataflow's setting (case-insensitive by default); ``origin`` is a read-only
snapshot of the values as the source produced them; ``events`` is an
append-only log of :class:`LogEvent` entries that transformations add when a
value is missing, cannot be converted, and so on.

Architecture:
    ::

        Record
          ├── position   ordinal within its source (1-based)
          ├── data       FieldMap (mutable, name-normalised)
          ├── origin     read-only FieldMap snapshot
          ├── dataflow   the run that produced it
          ├── source     the source that produced it
          └── events     list[LogEvent]; any fatal event stops later
                         transformations for this record

Tags:
    dataflows, record, events, shipwright-core

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, MutableMapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from shipwright.core.errors import InvalidArgumentError

if TYPE_CHECKING:
    from shipwright.dataflows.dataflow import Dataflow
    from shipwright.dataflows.sources.base import Source


FieldKey = Callable[[str], str]


def case_insensitive(name: str) -> str:
    return name.casefold()


def case_sensitive(name: str) -> str:
    return name


class FieldMap(MutableMapping[str, Any]):
    """Field name → value mapping with configurable name comparison.

    Keys are compared through ``key`` (``str.casefold`` by default) but
    iteration yields the spelling used when the field was first set.
    """

    __slots__ = ("_key", "_items")

    def __init__(self, data: Mapping[str, Any] | None = None, *, key: FieldKey = case_insensitive):
        self._key = key
        self._items: dict[str, tuple[str, Any]] = {}
        if data:
            self.update(data)

    @property
    def key(self) -> FieldKey:
        return self._key

    def __getitem__(self, name: str) -> Any:
        return self._items[self._key(name)][1]

    def __setitem__(self, name: str, value: Any) -> None:
        normalized = self._key(name)
        existing = self._items.get(normalized)
        self._items[normalized] = (existing[0] if existing else name, value)

    def __delitem__(self, name: str) -> None:
        del self._items[self._key(name)]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._key(name) in self._items

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def copy(self) -> FieldMap:
        return FieldMap(self, key=self._key)

    def __repr__(self) -> str:
        return f"FieldMap({dict(self.items())!r})"


class LogLevel(str, Enum):
    """Severity of a record or dataflow event."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass(frozen=True)
class LogEvent:
    """Something noteworthy that happened while processing a record.

    A fatal event stops every subsequent transformation from processing the
    record it is attached to.
    """

    description: str = ""
    level: LogLevel = LogLevel.ERROR
    is_fatal: bool = False
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "level": self.level.value,
            "is_fatal": self.is_fatal,
            "value": self.value,
        }


class Record:
    """A data record within a dataflow."""

    __slots__ = ("dataflow", "source", "position", "data", "origin", "events")

    def __init__(
        self,
        dataflow: Dataflow,
        source: Source,
        data: Mapping[str, Any],
        position: int,
    ):
        if dataflow is None:
            raise InvalidArgumentError("dataflow")
        if source is None:
            raise InvalidArgumentError("source")
        if data is None:
            raise InvalidArgumentError("data")

        key = dataflow.field_name_key
        self.dataflow = dataflow
        self.source = source
        self.position = position
        self.data = FieldMap(data, key=key)
        self.origin: Mapping[str, Any] = MappingProxyType(FieldMap(data, key=key))
        self.events: list[LogEvent] = []

    @property
    def has_fatal_event(self) -> bool:
        return any(event.is_fatal for event in self.events)

    def __repr__(self) -> str:
        return (
            f"Record(position={self.position}, source={type(self.source).__name__}, "
            f"data={dict(self.data.items())!r}, events={len(self.events)})"
        )


__all__ = [
    "FieldMap",
    "LogEvent",
    "LogLevel",
    "Record",
    "case_insensitive",
    "case_sensitive",
]
