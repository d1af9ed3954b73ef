"""Tests for attribute types and tri-state values."""

import pytest

from eda_bridge.errors import NilInputError, TypeMismatchError
from eda_bridge.types import (
    BOOL,
    FLOAT64,
    INT32,
    INT64,
    NUMBER,
    STRING,
    AttrValue,
    CustomObjectType,
    ListType,
    MapType,
    ObjectType,
    TupleType,
    ValueState,
)

METADATA = CustomObjectType("Metadata", {"name": STRING, "labels": MapType(STRING)})


class TestAttrValue:
    """Construction and validation of attribute values."""

    def test_default_state_is_null(self):
        value = AttrValue(STRING)
        assert value.state is ValueState.NULL
        assert value.is_null
        assert not value.is_known

    def test_known_scalars(self):
        assert AttrValue.known(BOOL, True).payload is True
        assert AttrValue.known(STRING, "x").payload == "x"
        assert AttrValue.known(INT64, 7).payload == 7

    def test_float_payload_is_coerced(self):
        value = AttrValue.known(FLOAT64, 3)
        assert value.payload == 3.0
        assert isinstance(value.payload, float)

    def test_type_mismatch(self):
        with pytest.raises(TypeMismatchError, match="expected str got int"):
            AttrValue.known(STRING, 1)
        with pytest.raises(TypeMismatchError):
            AttrValue.known(INT64, True)
        with pytest.raises(TypeMismatchError):
            AttrValue.known(NUMBER, "1")

    def test_int32_range(self):
        AttrValue.known(INT32, 2**31 - 1)
        with pytest.raises(TypeMismatchError):
            AttrValue.known(INT32, 2**31)

    def test_known_without_payload(self):
        with pytest.raises(NilInputError):
            AttrValue.known(STRING, None)

    def test_null_with_payload_rejected(self):
        with pytest.raises(TypeMismatchError):
            AttrValue(STRING, ValueState.NULL, "x")

    def test_list_elements_must_match(self):
        items = [AttrValue.known(STRING, "a"), AttrValue.null(STRING)]
        value = AttrValue.known(ListType(STRING), items)
        assert value.elements == tuple(items)

        with pytest.raises(TypeMismatchError):
            AttrValue.known(ListType(STRING), [AttrValue.known(INT64, 1)])

    def test_map_elements_are_a_copy(self):
        value = AttrValue.known(MapType(STRING), {"a": AttrValue.known(STRING, "b")})

        elements = value.elements
        elements["c"] = AttrValue.known(STRING, "d")
        del elements["a"]

        assert value.elements == {"a": AttrValue.known(STRING, "b")}
        assert str(value) == '{"a":"b"}'

    def test_tuple_length(self):
        t = TupleType((STRING, INT64))
        AttrValue.known(t, [AttrValue.known(STRING, "a"), AttrValue.known(INT64, 1)])
        with pytest.raises(TypeMismatchError):
            AttrValue.known(t, [AttrValue.known(STRING, "a")])

    def test_object_requires_every_attribute(self):
        t = ObjectType({"name": STRING, "count": INT64})
        with pytest.raises(TypeMismatchError, match="missing"):
            AttrValue.known(t, {"name": AttrValue.known(STRING, "x")})

    def test_str(self):
        value = AttrValue.known(MapType(STRING), {"a": AttrValue.known(STRING, "b")})
        assert str(value) == '{"a":"b"}'
        assert str(AttrValue.unknown(STRING)) == "<unknown>"


class TestCustomObjectType:
    """Typable object types wrap the generic object representation."""

    def test_round_trip_through_object(self):
        payload = {"name": AttrValue.known(STRING, "x"), "labels": AttrValue.null(MapType(STRING))}
        value = AttrValue.known(METADATA, payload)

        generic = METADATA.to_object_value(value)
        assert generic.type == ObjectType({"name": STRING, "labels": MapType(STRING)})
        assert METADATA.value_from_object(generic) == value

    def test_null(self):
        null = METADATA.null()
        assert null.type == METADATA
        assert null.is_null

    def test_wrong_object_rejected(self):
        other = AttrValue.null(ObjectType({"name": STRING}))
        with pytest.raises(TypeMismatchError):
            METADATA.value_from_object(other)

    def test_str(self):
        assert str(METADATA) == "Metadata"
        assert str(ListType(STRING)) == "ListType[StringType]"
