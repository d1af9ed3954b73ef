"""Type definitions for attribute trees and native values."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Union

from .errors import NilInputError, TypeMismatchError

# Constants
MASKED_VALUE = "<masked>"
INT32_MIN, INT32_MAX = -(2**31), 2**31 - 1
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1

# Type aliases
NativeValue = Union[None, bool, int, float, str, list, dict]
EnvMap = dict[str, str]
StringMap = dict[str, str]
Errors = list[str]


class AttrType:
    """Base class of every attribute type."""

    def __str__(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class BoolType(AttrType):
    pass


@dataclass(frozen=True)
class DynamicType(AttrType):
    pass


@dataclass(frozen=True)
class Float32Type(AttrType):
    pass


@dataclass(frozen=True)
class Float64Type(AttrType):
    pass


@dataclass(frozen=True)
class Int32Type(AttrType):
    pass


@dataclass(frozen=True)
class Int64Type(AttrType):
    pass


@dataclass(frozen=True)
class NumberType(AttrType):
    pass


@dataclass(frozen=True)
class StringType(AttrType):
    pass


@dataclass(frozen=True)
class ListType(AttrType):
    elem_type: AttrType

    def __str__(self) -> str:
        return f"ListType[{self.elem_type}]"


@dataclass(frozen=True)
class SetType(AttrType):
    elem_type: AttrType

    def __str__(self) -> str:
        return f"SetType[{self.elem_type}]"


@dataclass(frozen=True)
class MapType(AttrType):
    elem_type: AttrType

    def __str__(self) -> str:
        return f"MapType[{self.elem_type}]"


@dataclass(frozen=True)
class TupleType(AttrType):
    elem_types: tuple[AttrType, ...]

    def __str__(self) -> str:
        return f"TupleType[{', '.join(str(t) for t in self.elem_types)}]"


@dataclass(frozen=True)
class ObjectType(AttrType):
    """Object with a fixed, ordered set of named attributes."""

    attr_types: dict[str, AttrType] = field(default_factory=dict, hash=False)

    def __str__(self) -> str:
        inner = ", ".join(f'"{k}":{v}' for k, v in self.attr_types.items())
        return f"ObjectType[{inner}]"


class TypableObjectType(AttrType, ABC):
    """Custom object type that round-trips through the generic ObjectType.

    Subclasses describe their attributes with `to_object_type` and may
    override `value_from_object` to build their own value representation.
    """

    @abstractmethod
    def to_object_type(self) -> ObjectType:
        """Return the generic object type backing this custom type."""

    def value_from_object(self, value: AttrValue) -> AttrValue:
        """Re-wrap a generic object value as a value of this type."""
        if value.type != self.to_object_type():
            raise TypeMismatchError(str(self.to_object_type()), str(value.type))
        return AttrValue(self, value.state, value.payload)

    def to_object_value(self, value: AttrValue) -> AttrValue:
        """Return the generic object value behind a value of this type."""
        if value.type != self:
            raise TypeMismatchError(str(self), str(value.type))
        return AttrValue(self.to_object_type(), value.state, value.payload)

    def null(self) -> AttrValue:
        return self.value_from_object(AttrValue.null(self.to_object_type()))


@dataclass(frozen=True)
class CustomObjectType(TypableObjectType):
    """Named object type, e.g. the metadata or spec block of a resource."""

    name: str
    attr_types: dict[str, AttrType] = field(default_factory=dict, hash=False)

    def to_object_type(self) -> ObjectType:
        return ObjectType(dict(self.attr_types))

    def __str__(self) -> str:
        return self.name


BOOL = BoolType()
DYNAMIC = DynamicType()
FLOAT32 = Float32Type()
FLOAT64 = Float64Type()
INT32 = Int32Type()
INT64 = Int64Type()
NUMBER = NumberType()
STRING = StringType()


def object_attr_types(attr_type: AttrType) -> dict[str, AttrType]:
    """Return the attribute types of an ObjectType or a typable object type."""
    if isinstance(attr_type, ObjectType):
        return attr_type.attr_types
    if isinstance(attr_type, TypableObjectType):
        return attr_type.to_object_type().attr_types
    raise TypeMismatchError("object type", str(attr_type))


def is_object_type(attr_type: AttrType) -> bool:
    return isinstance(attr_type, (ObjectType, TypableObjectType))


class ValueState(str, Enum):
    """Tri-state of an attribute value."""

    KNOWN = "known"
    NULL = "null"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class AttrValue:
    """A value conforming to an attribute type.

    Payload shapes per type:
        Bool -> bool; Float32/Float64 -> float; Int32/Int64 -> int;
        Number -> int | float | Decimal; String -> str;
        Dynamic -> AttrValue (the underlying value);
        List/Set/Tuple -> tuple of AttrValue;
        Map/Object/typable objects -> dict of name to AttrValue.
    Null and Unknown values carry no payload.
    """

    type: AttrType
    state: ValueState = ValueState.NULL
    payload: Any = None

    def __post_init__(self) -> None:
        if not isinstance(self.type, AttrType):
            raise NilInputError(f"attribute type is {self.type!r}")
        if self.state is not ValueState.KNOWN:
            if self.payload is not None:
                raise TypeMismatchError("no payload", f"{self.state.value} value with payload")
            return
        object.__setattr__(self, "payload", _check_payload(self.type, self.payload))

    @classmethod
    def known(cls, attr_type: AttrType, payload: Any) -> AttrValue:
        return cls(attr_type, ValueState.KNOWN, payload)

    @classmethod
    def null(cls, attr_type: AttrType) -> AttrValue:
        return cls(attr_type, ValueState.NULL)

    @classmethod
    def unknown(cls, attr_type: AttrType) -> AttrValue:
        return cls(attr_type, ValueState.UNKNOWN)

    @property
    def is_known(self) -> bool:
        return self.state is ValueState.KNOWN

    @property
    def is_null(self) -> bool:
        return self.state is ValueState.NULL

    @property
    def is_unknown(self) -> bool:
        return self.state is ValueState.UNKNOWN

    @property
    def attributes(self) -> dict[str, AttrValue]:
        """Attributes of a known object value."""
        if not is_object_type(self.type):
            raise TypeMismatchError("object value", str(self.type))
        return dict(self.payload or {})

    @property
    def elements(self) -> Any:
        """Elements of a known list, set, tuple or map value."""
        if not isinstance(self.type, (ListType, SetType, TupleType, MapType)):
            raise TypeMismatchError("collection value", str(self.type))
        if self.payload is None:
            return {} if isinstance(self.type, MapType) else ()
        if isinstance(self.payload, dict):
            return dict(self.payload)
        return self.payload

    def __str__(self) -> str:
        if self.is_null:
            return "<null>"
        if self.is_unknown:
            return "<unknown>"
        if isinstance(self.payload, dict):
            return "{" + ", ".join(f'"{k}":{v}' for k, v in self.payload.items()) + "}"
        if isinstance(self.payload, tuple):
            return "[" + ", ".join(str(v) for v in self.payload) + "]"
        if isinstance(self.payload, str):
            return f'"{self.payload}"'
        return str(self.payload)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _check_children(elem_type: AttrType, values: Sequence[Any]) -> tuple[AttrValue, ...]:
    for v in values:
        if not isinstance(v, AttrValue):
            raise TypeMismatchError("AttrValue", v)
        if v.type != elem_type:
            raise TypeMismatchError(str(elem_type), str(v.type))
    return tuple(values)


def _check_payload(attr_type: AttrType, payload: Any) -> Any:
    if payload is None:
        raise NilInputError(f"known {attr_type} value without payload")

    if isinstance(attr_type, BoolType):
        if not isinstance(payload, bool):
            raise TypeMismatchError("bool", payload)
        return payload

    if isinstance(attr_type, (Float32Type, Float64Type)):
        if not _is_number(payload):
            raise TypeMismatchError("float", payload)
        return float(payload)

    if isinstance(attr_type, (Int32Type, Int64Type)):
        if not isinstance(payload, int) or isinstance(payload, bool):
            raise TypeMismatchError("int", payload)
        low, high = (INT32_MIN, INT32_MAX) if isinstance(attr_type, Int32Type) else (INT64_MIN, INT64_MAX)
        if not low <= payload <= high:
            raise TypeMismatchError(str(attr_type), f"out of range integer {payload}")
        return payload

    if isinstance(attr_type, NumberType):
        if not _is_number(payload):
            raise TypeMismatchError("number", payload)
        return payload

    if isinstance(attr_type, StringType):
        if not isinstance(payload, str):
            raise TypeMismatchError("str", payload)
        return payload

    if isinstance(attr_type, DynamicType):
        if not isinstance(payload, AttrValue):
            raise TypeMismatchError("AttrValue", payload)
        return payload

    if isinstance(attr_type, (ListType, SetType)):
        if isinstance(payload, (str, bytes, Mapping)) or not isinstance(payload, Sequence):
            raise TypeMismatchError("sequence", payload)
        return _check_children(attr_type.elem_type, payload)

    if isinstance(attr_type, TupleType):
        if isinstance(payload, (str, bytes, Mapping)) or not isinstance(payload, Sequence):
            raise TypeMismatchError("sequence", payload)
        if len(payload) != len(attr_type.elem_types):
            raise TypeMismatchError(f"{len(attr_type.elem_types)} elements", f"{len(payload)} elements")
        for elem_type, v in zip(attr_type.elem_types, payload):
            _check_children(elem_type, [v])
        return tuple(payload)

    if isinstance(attr_type, MapType):
        if not isinstance(payload, Mapping):
            raise TypeMismatchError("mapping", payload)
        _check_children(attr_type.elem_type, list(payload.values()))
        return dict(payload)

    if is_object_type(attr_type):
        if not isinstance(payload, Mapping):
            raise TypeMismatchError("mapping", payload)
        attr_types = object_attr_types(attr_type)
        if set(payload) != set(attr_types):
            missing = sorted(set(attr_types) - set(payload))
            extra = sorted(set(payload) - set(attr_types))
            raise TypeMismatchError(
                f"attributes {sorted(attr_types)}", f"missing {missing}, unexpected {extra}"
            )
        for name, t in attr_types.items():
            _check_children(t, [payload[name]])
        return {name: payload[name] for name in attr_types}

    raise TypeMismatchError("supported attribute type", str(attr_type))
