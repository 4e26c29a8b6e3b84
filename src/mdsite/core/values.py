"""Typed values for front matter, properties and query literals"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated, Any, Mapping

from pydantic import PlainSerializer, PlainValidator


class ValueKind(str, Enum):
    null      = "null"
    bool      = "bool"
    int       = "int"
    double    = "double"
    string    = "string"
    timestamp = "timestamp"
    array     = "array"
    object    = "object"


SCALAR_KINDS = (ValueKind.int, ValueKind.double, ValueKind.string)


def to_timestamp(value: date | datetime) -> float:
    """Seconds since epoch; naive datetimes and plain dates are taken as UTC."""
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


@dataclass(frozen=True)
class Value:
    """Immutable tagged value.

    `raw` holds the payload for the kind: a Python scalar, a float for
    timestamps, a tuple of Values for arrays, or a dict of Values for objects.
    Build instances with `Value.of` rather than the constructor.
    """
    kind: ValueKind
    raw:  Any = None

    @classmethod
    def of(cls, obj: Any) -> "Value":
        if isinstance(obj, Value):
            return obj
        if obj is None:
            return NULL
        if isinstance(obj, bool):
            return cls(ValueKind.bool, obj)
        if isinstance(obj, int):
            return cls(ValueKind.int, obj)
        if isinstance(obj, float):
            return cls(ValueKind.double, obj)
        if isinstance(obj, str):
            return cls(ValueKind.string, obj)
        if isinstance(obj, (datetime, date)):
            return cls(ValueKind.timestamp, to_timestamp(obj))
        if isinstance(obj, Mapping):
            return cls(ValueKind.object, {str(k): cls.of(v) for k, v in obj.items()})
        if isinstance(obj, (list, tuple)):
            return cls(ValueKind.array, tuple(cls.of(v) for v in obj))
        raise TypeError(f"Unsupported value type: {type(obj).__name__}")

    @classmethod
    def timestamp(cls, seconds: float) -> "Value":
        return cls(ValueKind.timestamp, float(seconds))

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.null

    @property
    def scalar_kind(self) -> ValueKind:
        """Kind used for comparisons; timestamps compare as doubles."""
        return ValueKind.double if self.kind is ValueKind.timestamp else self.kind

    def as_string(self) -> str | None:
        return self.raw if self.kind is ValueKind.string else None

    def items_of(self, kind: ValueKind) -> list | None:
        """Raw items when this is an array whose items all compare as `kind`."""
        if self.kind is not ValueKind.array:
            return None
        if any(item.scalar_kind is not kind for item in self.raw):
            return None
        return [item.raw for item in self.raw]

    def string_items(self) -> list[str] | None:
        return self.items_of(ValueKind.string)

    def to_python(self) -> Any:
        if self.kind is ValueKind.array:
            return [v.to_python() for v in self.raw]
        if self.kind is ValueKind.object:
            return {k: v.to_python() for k, v in self.raw.items()}
        return self.raw


NULL = Value(ValueKind.null, None)


def _validate(obj: Any) -> Value:
    try:
        return Value.of(obj)
    except TypeError as e:
        raise ValueError(str(e)) from e


def _serialize(value: Value) -> Any:
    """Plain data that `_validate` decodes back to the same kind; timestamps dump as UTC datetimes."""
    if value.kind is ValueKind.timestamp:
        return datetime.fromtimestamp(value.raw, tz=timezone.utc)
    if value.kind is ValueKind.array:
        return [_serialize(v) for v in value.raw]
    if value.kind is ValueKind.object:
        return {k: _serialize(v) for k, v in value.raw.items()}
    return value.raw


# Pydantic field type: raw YAML/JSON data in, Value out, plain data when dumped.
ValueField = Annotated[Value, PlainValidator(_validate), PlainSerializer(_serialize)]
