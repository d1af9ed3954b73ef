"""Schema-bound models and their conversion to and from API payloads.

Each model kind registers its fields once in a `ModelSchema`: the attribute
name, its type and the API key it maps to. Models are read and written only
through that table.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .casing import DEFAULT_CONVERTER, CaseConverter
from .errors import NilInputError, TypeMismatchError
from .log import get_logger
from .marshal import DEFAULT_MARSHALLER, ValueMarshaller, has_native_value, new_null_value
from .scope import ROOT_SCOPE
from .types import AttrType, AttrValue, ObjectType, StringMap, StringType, is_object_type

_logger = get_logger("schema")


@dataclass(frozen=True)
class FieldBinding:
    """One registered model field.

    Attributes:
        name: Attribute name as the configuration engine knows it
        attr_type: Type of the field
        native_key: API key, derived from ``name`` when omitted
    """

    name: str
    attr_type: AttrType
    native_key: str | None = None


class ModelSchema:
    """Ordered registration table of the fields of one model kind."""

    def __init__(
        self,
        name: str,
        fields: Sequence[FieldBinding],
        converter: CaseConverter | None = None,
    ) -> None:
        self.name = name
        self.converter = converter or DEFAULT_CONVERTER
        self._fields: dict[str, FieldBinding] = {}
        for f in fields:
            if f.name in self._fields:
                raise ValueError(f"Duplicate field '{f.name}' in schema '{name}'")
            self._fields[f.name] = f

    def __iter__(self) -> Iterator[FieldBinding]:
        return iter(self._fields.values())

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def field(self, name: str) -> FieldBinding:
        try:
            return self._fields[name]
        except KeyError:
            raise KeyError(f"schema '{self.name}' has no field '{name}'") from None

    def native_key(self, name: str) -> str:
        f = self.field(name)
        return f.native_key or self.converter.to_lower_camel(f.name)

    @property
    def object_type(self) -> ObjectType:
        return ObjectType({f.name: f.attr_type for f in self})

    def new_model(self, **values: AttrValue) -> Model:
        return Model(self, values)


class Model:
    """Field values of one model instance, one AttrValue per registered field.

    Fields not given at construction start out null.
    """

    def __init__(self, schema: ModelSchema, values: Mapping[str, AttrValue] | None = None) -> None:
        self.schema = schema
        self._values: dict[str, AttrValue] = {f.name: AttrValue.null(f.attr_type) for f in schema}
        for name, value in (values or {}).items():
            self.set(name, value)

    def get(self, name: str) -> AttrValue:
        self.schema.field(name)
        return self._values[name]

    def set(self, name: str, value: AttrValue) -> None:
        binding = self.schema.field(name)
        if not isinstance(value, AttrValue):
            raise TypeMismatchError("AttrValue", value, name)
        if value.type != binding.attr_type:
            raise TypeMismatchError(str(binding.attr_type), str(value.type), name)
        self._values[name] = value

    def items(self) -> Iterator[tuple[FieldBinding, AttrValue]]:
        for f in self.schema:
            yield f, self._values[f.name]

    def to_object(self) -> AttrValue:
        return AttrValue.known(self.schema.object_type, dict(self._values))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Model):
            return NotImplemented
        return self.schema is other.schema and self._values == other._values

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v}" for k, v in self._values.items())
        return f"{self.schema.name}({inner})"


def _check_model(model: Any) -> Model:
    if model is None:
        raise NilInputError("model is nil")
    if not isinstance(model, Model):
        raise TypeMismatchError("Model", model)
    return model


def model_to_native_map(model: Model, marshaller: ValueMarshaller | None = None) -> dict[str, Any]:
    """Build a request body from the known, non-null fields of a model."""
    m = marshaller or DEFAULT_MARSHALLER
    model = _check_model(model)
    body: dict[str, Any] = {}
    for binding, value in model.items():
        if not has_native_value(value):
            continue
        scope = ROOT_SCOPE.enter(binding.name, m.preserve_case_names)
        body[model.schema.native_key(binding.name)] = m.to_native(value, scope, binding.name)
    _logger.debug("model_to_native_map(%s) keys=%s", model.schema.name, list(body))
    return body


def model_to_string_map(model: Model, marshaller: ValueMarshaller | None = None) -> StringMap:
    """Project the known, non-null string fields of a model, e.g. as query parameters."""
    m = marshaller or DEFAULT_MARSHALLER
    model = _check_model(model)
    params: StringMap = {}
    for binding, value in model.items():
        if not value.is_known or not isinstance(value.type, StringType):
            continue
        native = m.to_native(value, path=binding.name)
        if isinstance(native, str):
            params[model.schema.native_key(binding.name)] = native
    _logger.debug("model_to_string_map(%s) keys=%s", model.schema.name, list(params))
    return params


def native_map_to_model(data: Mapping[str, Any], model: Model, marshaller: ValueMarshaller | None = None) -> Model:
    """Rebuild every field of ``model`` from an API response.

    The model is only updated once all fields converted; fields absent from
    the response become typed nulls.
    """
    m = marshaller or DEFAULT_MARSHALLER
    model = _check_model(model)
    if data is None:
        raise NilInputError("response is nil")
    if not isinstance(data, Mapping):
        raise TypeMismatchError("dict", data)

    updated: dict[str, AttrValue] = {}
    for binding in model.schema:
        raw = data.get(model.schema.native_key(binding.name))
        scope = ROOT_SCOPE.enter(binding.name, m.preserve_case_names)
        updated[binding.name] = m.from_native(binding.attr_type, raw, scope, binding.name)
    for name, value in updated.items():
        model.set(name, value)
    return model


def fill_missing_values(model: Model, marshaller: ValueMarshaller | None = None) -> Model:
    """Turn unknown fields into nulls and null-complete object fields in place."""
    m = marshaller or DEFAULT_MARSHALLER
    model = _check_model(model)
    for binding, value in list(model.items()):
        if value.is_unknown:
            model.set(binding.name, new_null_value(value))
        elif value.is_known and is_object_type(value.type):
            model.set(binding.name, m.fill_unknowns(value))
    return model
