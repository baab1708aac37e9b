"""Dynamically-typed runtime values used by stories."""
from __future__ import annotations

import copy
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Sequence, Tuple

from lift.data.errors import ExpressionError


class ValueKind(str, Enum):
    NONE = "none"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    LIST = "list"
    MAP = "map"


@dataclass(slots=True)
class Value:
    """Tagged runtime value.

    Lists hold ``Value`` items and maps hold ``str`` keys mapped to ``Value``.
    Containers are mutable so indexed writes can replace a nested slot.
    """

    kind: ValueKind
    data: Any = None

    @classmethod
    def none(cls) -> "Value":
        return cls(ValueKind.NONE)

    @classmethod
    def boolean(cls, flag: bool) -> "Value":
        return cls(ValueKind.BOOL, bool(flag))

    @classmethod
    def number(cls, number: int | float) -> "Value":
        return cls(ValueKind.NUMBER, number)

    @classmethod
    def string(cls, text: str) -> "Value":
        return cls(ValueKind.STRING, text)

    @classmethod
    def list_of(cls, items: Sequence["Value"]) -> "Value":
        return cls(ValueKind.LIST, list(items))

    @classmethod
    def map_of(cls, entries: dict[str, "Value"]) -> "Value":
        return cls(ValueKind.MAP, dict(entries))

    @classmethod
    def coerce(cls, raw: object) -> "Value":
        """Wrap a plain Python value (or pass a Value through unchanged)."""
        if isinstance(raw, Value):
            return raw
        if raw is None:
            return cls.none()
        if isinstance(raw, bool):
            return cls.boolean(raw)
        if isinstance(raw, (int, float)):
            return cls.number(raw)
        if isinstance(raw, str):
            return cls.string(raw)
        if isinstance(raw, (list, tuple)):
            return cls.list_of([cls.coerce(item) for item in raw])
        if isinstance(raw, dict):
            return cls.map_of({str(key): cls.coerce(item) for key, item in raw.items()})
        raise TypeError(f"Cannot convert {type(raw).__name__} to a story value.")

    @classmethod
    def from_json(cls, raw: object) -> "Value":
        """Rebuild a value from its JSON form, rejecting anything else."""
        if isinstance(raw, dict):
            entries: dict[str, Value] = {}
            for key, item in raw.items():
                if not isinstance(key, str):
                    raise ValueError("Map keys must be strings.")
                entries[key] = cls.from_json(item)
            return cls.map_of(entries)
        if isinstance(raw, list):
            return cls.list_of([cls.from_json(item) for item in raw])
        if isinstance(raw, float) and raw != raw:
            raise ValueError("NaN is not a valid story number.")
        if raw is None or isinstance(raw, (bool, int, float, str)):
            return cls.coerce(raw)
        raise ValueError(f"Unsupported JSON value of type {type(raw).__name__}.")

    def to_json(self) -> object:
        if self.kind is ValueKind.LIST:
            return [item.to_json() for item in self.data]
        if self.kind is ValueKind.MAP:
            return {key: item.to_json() for key, item in self.data.items()}
        return self.data

    def copy(self) -> "Value":
        return copy.deepcopy(self)

    def is_true(self) -> bool:
        if self.kind is ValueKind.NONE:
            return False
        return bool(self.data)

    def to_text(self) -> str:
        """Render the value the way templates display it."""
        if self.kind is ValueKind.NONE:
            return ""
        if self.kind is ValueKind.BOOL:
            return "true" if self.data else "false"
        if self.kind is ValueKind.NUMBER:
            if isinstance(self.data, float) and self.data.is_integer():
                return str(int(self.data))
            try:
                return str(self.data)
            except ValueError as exc:
                raise ExpressionError("Number is too large to display.") from exc
        if self.kind is ValueKind.STRING:
            return self.data
        if self.kind is ValueKind.LIST:
            return "[" + ", ".join(item.to_repr() for item in self.data) + "]"
        entries = ", ".join(f'"{key}": {item.to_repr()}' for key, item in self.data.items())
        return "{" + entries + "}"

    def to_repr(self) -> str:
        if self.kind is ValueKind.STRING:
            return f'"{self.data}"'
        if self.kind is ValueKind.NONE:
            return "none"
        return self.to_text()

    def iter(self) -> Iterator[Tuple["Value", "Value"]]:
        """Yield ``(key, value)`` pairs in a deterministic order."""
        if self.kind is ValueKind.LIST:
            for index, item in enumerate(list(self.data)):
                yield Value.number(index), item
        elif self.kind is ValueKind.MAP:
            for key, item in list(self.data.items()):
                yield Value.string(key), item
        elif self.kind is ValueKind.STRING:
            for index, char in enumerate(self.data):
                yield Value.number(index), Value.string(char)
        elif self.kind is ValueKind.NUMBER and _is_finite(self.data):
            for index in range(int(self.data)):
                yield Value.number(index), Value.number(index)

    def child(self, index: "Value") -> "Value | None":
        """Return the nested value at ``index`` or None when it does not exist."""
        if self.kind is ValueKind.LIST:
            position = _list_position(index, len(self.data))
            return None if position is None else self.data[position]
        if self.kind is ValueKind.MAP and index.kind is ValueKind.STRING:
            return self.data.get(index.data)
        return None

    def resolve_path(self, path: Sequence["Value"]) -> "ValueSlot | None":
        """Walk ``path`` and return a writable slot for its last step."""
        if not path:
            return None
        container: Value | None = self
        for index in path[:-1]:
            container = container.child(index)
            if container is None:
                return None
        last = path[-1]
        if container.kind is ValueKind.LIST:
            position = _list_position(last, len(container.data))
            if position is None:
                return None
            return ValueSlot(container, position)
        if container.kind is ValueKind.MAP and last.kind is ValueKind.STRING:
            return ValueSlot(container, last.data)
        return None


@dataclass(slots=True)
class ValueSlot:
    """Mutable reference into a list position or map key."""

    container: Value
    key: int | str

    def get(self) -> Value | None:
        if self.container.kind is ValueKind.MAP:
            return self.container.data.get(self.key)
        return self.container.data[self.key]

    def set(self, value: Value) -> None:
        self.container.data[self.key] = value


def _is_finite(number: int | float) -> bool:
    return isinstance(number, int) or math.isfinite(number)


def _list_position(index: Value, length: int) -> int | None:
    if index.kind is not ValueKind.NUMBER:
        return None
    number = index.data
    if isinstance(number, float):
        if not number.is_integer():
            return None
        number = int(number)
    if 0 <= number < length:
        return number
    return None


def values_to_json(values: dict[str, Value]) -> dict[str, object]:
    return {name: value.to_json() for name, value in values.items()}


__all__ = ["Value", "ValueKind", "ValueSlot", "values_to_json"]
