"""Conversion between attribute trees and native (JSON-like) data.

`to_native` turns an attribute value into the dicts, lists and scalars the EDA
API expects, converting snake_case attribute names to the API's camelCase keys.
`from_native` does the reverse against an attribute type. Keys below a
case-preserving field (``labels``, ``annotations``) are passed through
verbatim in both directions.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from .casing import DEFAULT_CONVERTER, CaseConverter
from .errors import (
    ConversionError,
    NilInputError,
    TypeMismatchError,
    UnsupportedTypeError,
)
from .log import get_logger
from .scope import ROOT_SCOPE, VisitScope
from .types import (
    BOOL,
    DYNAMIC,
    INT32_MAX,
    INT32_MIN,
    INT64_MAX,
    INT64_MIN,
    NUMBER,
    STRING,
    AttrType,
    AttrValue,
    BoolType,
    DynamicType,
    Float32Type,
    Float64Type,
    Int32Type,
    Int64Type,
    ListType,
    MapType,
    NativeValue,
    NumberType,
    ObjectType,
    SetType,
    StringType,
    TupleType,
    TypableObjectType,
    is_object_type,
)

_logger = get_logger("marshal")

DEFAULT_PRESERVE_CASE_NAMES = frozenset({"annotations", "labels"})

_DECIMAL_INT = re.compile(r"^[+-]?[0-9]+$")


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def num_to_int64(value: Any, path: str = "") -> int:
    """Convert any numeric representation to a 64-bit integer.

    JSON decoders hand numbers back as int or float, and some API fields carry
    numbers as strings. Conversion must be lossless: 3.0 becomes 3, 3.5 fails.
    """
    if isinstance(value, bool):
        raise TypeMismatchError("number", value, path)
    if isinstance(value, int):
        n = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ConversionError(f"cannot convert {value!r} to int64 without loss", path)
        n = int(value)
    elif isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            raise ConversionError(f"cannot convert {value} to int64 without loss", path)
        n = int(value)
    elif isinstance(value, str):
        if not _DECIMAL_INT.match(value.strip()):
            raise ConversionError(f"cannot parse {value!r} as int64", path)
        n = int(value.strip())
    else:
        raise TypeMismatchError("number", value, path)

    if not INT64_MIN <= n <= INT64_MAX:
        raise ConversionError(f"{n} overflows int64", path)
    return n


def _number_to_native(value: int | float | Decimal) -> int | float:
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else value
    if value.is_finite() and value == value.to_integral_value():
        return int(value)
    return float(value)


def has_native_value(value: AttrValue) -> bool:
    """Whether a value is known, looking through known dynamic wrappers."""
    while value.is_known and isinstance(value.type, DynamicType):
        value = value.payload
    return value.is_known


def new_null_value(attr: AttrType | AttrValue | None) -> AttrValue:
    """Return the null value of a type (or of the type of a value)."""
    if attr is None:
        raise NilInputError("value is nil")
    attr_type = attr.type if isinstance(attr, AttrValue) else attr
    if isinstance(attr_type, TypableObjectType):
        return attr_type.null()
    if not isinstance(attr_type, AttrType):
        raise UnsupportedTypeError(f"unsupported type {type(attr_type).__name__}")
    return AttrValue.null(attr_type)


def string_value(value: AttrValue | None) -> str:
    """Render a scalar value as a string, e.g. for query parameters."""
    if value is None or value.is_null:
        return "null"
    if value.is_unknown:
        return ""
    t, p = value.type, value.payload
    if isinstance(t, BoolType):
        return "true" if p else "false"
    if isinstance(t, DynamicType):
        return string_value(p)
    if isinstance(t, (Float32Type, Float64Type)):
        return f"{p:f}"
    if isinstance(t, (Int32Type, Int64Type)):
        return str(p)
    if isinstance(t, NumberType):
        n = _number_to_native(p)
        return str(n) if isinstance(n, int) else f"{n:f}"
    if isinstance(t, StringType):
        return p
    return ""


class ValueMarshaller:
    """Recursive converter between attribute values and native data.

    Args:
        converter: Name converter, the package default when omitted
        preserve_case_names: Field names whose subtrees keep their key casing
    """

    def __init__(
        self,
        converter: CaseConverter | None = None,
        preserve_case_names: Iterable[str] = DEFAULT_PRESERVE_CASE_NAMES,
    ) -> None:
        self.converter = converter or DEFAULT_CONVERTER
        self.preserve_case_names = frozenset(preserve_case_names)

    # attribute tree -> native

    def to_native(self, value: AttrValue | None, scope: VisitScope = ROOT_SCOPE, path: str = "") -> NativeValue:
        """Convert an attribute value to native data.

        Null and unknown members of collections and objects are omitted. An
        unknown value at the top of the call cannot be represented and fails.
        """
        if value is None:
            raise NilInputError("value is nil", path)
        if not isinstance(value, AttrValue):
            raise UnsupportedTypeError(f"unsupported value {type(value).__name__}", path)
        if value.is_null:
            return None
        if value.is_unknown:
            raise ConversionError(f"unknown {value.type} value has no native representation", path)

        t, p = value.type, value.payload
        if isinstance(t, (BoolType, StringType, Float32Type, Float64Type, Int32Type, Int64Type)):
            return p
        if isinstance(t, DynamicType):
            return self.to_native(p, scope, path)
        if isinstance(t, NumberType):
            return _number_to_native(p)
        if isinstance(t, (ListType, SetType, TupleType)):
            return [
                self.to_native(v, scope, f"{path}[{i}]")
                for i, v in enumerate(p)
                if has_native_value(v)
            ]
        if isinstance(t, (MapType, ObjectType)):
            return self._mapping_to_native(p, scope, path)
        if isinstance(t, TypableObjectType):
            return self.to_native(t.to_object_value(value), scope, path)
        raise UnsupportedTypeError(f"unsupported type {t}", path)

    def _mapping_to_native(self, items: Mapping[str, AttrValue], scope: VisitScope, path: str) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key, child in items.items():
            if not has_native_value(child):
                continue
            child_scope = scope.enter(key, self.preserve_case_names)
            native = self.to_native(child, child_scope, _join(path, key))
            if child_scope.preserving:
                result[key] = native
            else:
                result[self.converter.to_lower_camel(key)] = native
            if child_scope is not scope:
                _logger.debug("leaving case preserving scope %s at %s", child_scope.visit_id, _join(path, key))
        return result

    # native -> attribute tree

    def from_native(
        self,
        attr_type: AttrType | None,
        data: Any,
        scope: VisitScope = ROOT_SCOPE,
        path: str = "",
    ) -> AttrValue:
        """Build a value of ``attr_type`` from native data.

        ``None`` becomes the typed null; object attributes missing from the
        data become typed nulls as well.
        """
        if attr_type is None:
            raise NilInputError("attr type is nil", path)

        if isinstance(attr_type, TypableObjectType):
            if data is None:
                return attr_type.null()
            generic = self.from_native(attr_type.to_object_type(), data, scope, path)
            return attr_type.value_from_object(generic)

        if data is None:
            return AttrValue.null(attr_type)

        if isinstance(attr_type, BoolType):
            if not isinstance(data, bool):
                raise TypeMismatchError("bool", data, path)
            return AttrValue.known(attr_type, data)

        if isinstance(attr_type, DynamicType):
            return AttrValue.known(attr_type, self._infer_dynamic(data, scope, path))

        if isinstance(attr_type, (Float32Type, Float64Type)):
            if not _is_number(data):
                raise TypeMismatchError("float", data, path)
            return AttrValue.known(attr_type, float(data))

        if isinstance(attr_type, Int32Type):
            n = num_to_int64(data, path)
            if not INT32_MIN <= n <= INT32_MAX:
                raise ConversionError(f"{n} overflows int32", path)
            return AttrValue.known(attr_type, n)

        if isinstance(attr_type, Int64Type):
            return AttrValue.known(attr_type, num_to_int64(data, path))

        if isinstance(attr_type, NumberType):
            return AttrValue.known(attr_type, self._parse_number(data, path))

        if isinstance(attr_type, StringType):
            if not isinstance(data, str):
                raise TypeMismatchError("str", data, path)
            return AttrValue.known(attr_type, data)

        if isinstance(attr_type, (ListType, SetType)):
            if not isinstance(data, (list, tuple)):
                raise TypeMismatchError("list", data, path)
            return AttrValue.known(
                attr_type,
                [self.from_native(attr_type.elem_type, v, scope, f"{path}[{i}]") for i, v in enumerate(data)],
            )

        if isinstance(attr_type, TupleType):
            if not isinstance(data, (list, tuple)):
                raise TypeMismatchError("list", data, path)
            if len(data) != len(attr_type.elem_types):
                raise TypeMismatchError(f"{len(attr_type.elem_types)} elements", f"{len(data)} elements", path)
            return AttrValue.known(
                attr_type,
                [
                    self.from_native(t, v, scope, f"{path}[{i}]")
                    for i, (t, v) in enumerate(zip(attr_type.elem_types, data))
                ],
            )

        if isinstance(attr_type, MapType):
            if not isinstance(data, Mapping):
                raise TypeMismatchError("dict", data, path)
            return AttrValue.known(attr_type, self._map_from_native(attr_type.elem_type, data, scope, path))

        if isinstance(attr_type, ObjectType):
            if not isinstance(data, Mapping):
                raise TypeMismatchError("dict", data, path)
            return AttrValue.known(attr_type, self._object_from_native(attr_type, data, scope, path))

        raise UnsupportedTypeError(f"unsupported type {attr_type}", path)

    def _map_from_native(
        self, elem_type: AttrType, data: Mapping[str, Any], scope: VisitScope, path: str
    ) -> dict[str, AttrValue]:
        result: dict[str, AttrValue] = {}
        for key, raw in data.items():
            child_scope = scope.enter(key, self.preserve_case_names)
            name = key if child_scope.preserving else self.converter.to_separated(key)
            if name in result:
                raise ConversionError(f"keys collide on {name!r} after case conversion", path)
            result[name] = self.from_native(elem_type, raw, child_scope, _join(path, key))
            if child_scope is not scope:
                _logger.debug("leaving case preserving scope %s at %s", child_scope.visit_id, _join(path, key))
        return result

    def _object_from_native(
        self, attr_type: ObjectType, data: Mapping[str, Any], scope: VisitScope, path: str
    ) -> dict[str, AttrValue]:
        result: dict[str, AttrValue] = {}
        for name, field_type in attr_type.attr_types.items():
            child_scope = scope.enter(name, self.preserve_case_names)
            key = name if child_scope.preserving else self.converter.to_lower_camel(name)
            result[name] = self.from_native(field_type, data.get(key), child_scope, _join(path, name))
            if child_scope is not scope:
                _logger.debug("leaving case preserving scope %s at %s", child_scope.visit_id, _join(path, name))
        return result

    def _infer_dynamic(self, data: Any, scope: VisitScope, path: str) -> AttrValue:
        if isinstance(data, AttrValue):
            return data
        if isinstance(data, bool):
            return AttrValue.known(BOOL, data)
        if _is_number(data):
            return AttrValue.known(NUMBER, data)
        if isinstance(data, str):
            return AttrValue.known(STRING, data)
        if isinstance(data, (list, tuple)):
            return self.from_native(ListType(DYNAMIC), data, scope, path)
        if isinstance(data, Mapping):
            return self.from_native(MapType(DYNAMIC), data, scope, path)
        raise TypeMismatchError("native value", data, path)

    @staticmethod
    def _parse_number(data: Any, path: str) -> int | float | Decimal:
        if _is_number(data):
            return data
        if isinstance(data, str):
            try:
                number = Decimal(data.strip())
            except InvalidOperation:
                raise ConversionError(f"cannot parse {data!r} as number", path) from None
            if not number.is_finite():
                raise ConversionError(f"cannot parse {data!r} as number", path)
            return number
        raise TypeMismatchError("number", data, path)

    # null completion

    def fill_unknowns(self, value: AttrValue | None) -> AttrValue:
        """Replace unknown leaves of an object with typed nulls.

        Object-typed attributes are completed recursively; known values are
        never touched. Non-object values are returned as they are unless they
        are unknown themselves.
        """
        if value is None:
            raise NilInputError("value is nil")
        if not value.is_known:
            return new_null_value(value)
        if not is_object_type(value.type):
            return value

        typable = value.type if isinstance(value.type, TypableObjectType) else None
        generic = typable.to_object_value(value) if typable else value

        attrs: dict[str, AttrValue] = {}
        for name, child in generic.payload.items():
            if not child.is_known:
                attrs[name] = new_null_value(child)
            elif is_object_type(child.type):
                attrs[name] = self.fill_unknowns(child)
            else:
                attrs[name] = child

        filled = AttrValue.known(generic.type, attrs)
        return typable.value_from_object(filled) if typable else filled


DEFAULT_MARSHALLER = ValueMarshaller()


def to_native(value: AttrValue | None, scope: VisitScope = ROOT_SCOPE) -> NativeValue:
    return DEFAULT_MARSHALLER.to_native(value, scope)


def from_native(attr_type: AttrType | None, data: Any, scope: VisitScope = ROOT_SCOPE) -> AttrValue:
    return DEFAULT_MARSHALLER.from_native(attr_type, data, scope)


def fill_unknowns(value: AttrValue | None) -> AttrValue:
    return DEFAULT_MARSHALLER.fill_unknowns(value)
