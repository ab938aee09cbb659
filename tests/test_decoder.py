"""Tests for the generic decoder and target types."""

from dataclasses import dataclass

import pytest
from avro_envelope import (
    ContentType,
    DecodeError,
    Envelope,
    GenericDecoder,
    GenericRecord,
    TargetInstantiationError,
    TargetKind,
    TargetType,
    TargetTypeRegistry,
    parse_schema,
)


@dataclass
class Order:
    id: int
    customer: str
    amount: float


def _reader(schema_dict):
    schema = parse_schema(schema_dict)
    return TargetType.self_describing("Order", lambda: GenericRecord(schema))


def test_plain_record_uses_writer_schema(order_schema, order, encode_record):
    writer = parse_schema(order_schema)
    decoded = GenericDecoder().read(Envelope(encode_record(order_schema, order)), writer)

    assert decoded.value == order
    assert decoded.reader_schema is writer
    assert decoded.writer_schema is writer


def test_plain_record_builder(order_schema, order, encode_record):
    target = TargetType.plain("Order", builder=lambda datum: Order(**datum))
    value = GenericDecoder().decode(
        Envelope(encode_record(order_schema, order)), parse_schema(order_schema), target
    )
    assert value == Order(42, "ada", 12.5)


def test_target_mime_type_hint_comes_from_reader_schema(
    order_schema, order_schema_v2, order, encode_record
):
    payload = encode_record(order_schema_v2, {**order, "note": "x"})
    writer = parse_schema(order_schema_v2)

    plain = GenericDecoder().read(Envelope(payload), writer)
    self_describing = GenericDecoder().read(Envelope(payload), writer, _reader(order_schema))

    assert plain.target_mime_type is None
    assert self_describing.target_mime_type == ContentType("application", "vnd.orders.v1+avro")


def test_extra_writer_field_is_dropped(order_schema, order_schema_v2, order, encode_record):
    payload = encode_record(order_schema_v2, {**order, "note": "gift wrap"})

    value = GenericDecoder().decode(Envelope(payload), parse_schema(order_schema_v2), _reader(order_schema))

    assert isinstance(value, GenericRecord)
    assert value.to_dict() == order
    assert "note" not in value.to_dict()


def test_reader_default_is_applied(order_schema, order, encode_record):
    reader_schema = {
        **order_schema,
        "fields": [*order_schema["fields"], {"name": "currency", "type": "string", "default": "EUR"}],
    }
    payload = encode_record(order_schema, order)

    value = GenericDecoder().decode(Envelope(payload), parse_schema(order_schema), _reader(reader_schema))

    assert value["currency"] == "EUR"
    assert value["id"] == 42


def test_reader_schema_as_raw_definition(order_schema, order, encode_record):
    class RawSchemaRecord:
        schema = order_schema

        def __init__(self) -> None:
            self.datum = None

        def put(self, datum):
            self.datum = datum

    target = TargetType.self_describing("raw", RawSchemaRecord)
    value = GenericDecoder().decode(
        Envelope(encode_record(order_schema, order)), parse_schema(order_schema), target
    )
    assert value.datum == order


def test_irreconcilable_schemas_fail(order_schema, order, encode_record):
    reader_schema = {
        "type": "record",
        "name": "Order",
        "namespace": "com.example",
        "fields": [{"name": "sku", "type": "string"}],
    }
    payload = encode_record(order_schema, order)

    with pytest.raises(DecodeError):
        GenericDecoder().decode(Envelope(payload), parse_schema(order_schema), _reader(reader_schema))


def test_record_name_mismatch_fails(order_schema, order, encode_record):
    reader_schema = {**order_schema, "name": "Invoice"}
    payload = encode_record(order_schema, order)

    with pytest.raises(DecodeError):
        GenericDecoder().decode(Envelope(payload), parse_schema(order_schema), _reader(reader_schema))


def test_truncated_payload_fails(order_schema):
    with pytest.raises(DecodeError):
        GenericDecoder().decode(Envelope(b""), parse_schema(order_schema))


def test_factory_failure(order_schema, order, encode_record):
    def broken() -> GenericRecord:
        raise RuntimeError("no default constructor")

    target = TargetType.self_describing("Order", broken)
    with pytest.raises(TargetInstantiationError, match="no default constructor"):
        GenericDecoder().decode(
            Envelope(encode_record(order_schema, order)), parse_schema(order_schema), target
        )


def test_factory_returning_object_without_schema(order_schema, order, encode_record):
    target = TargetType.self_describing("Order", object)
    with pytest.raises(TargetInstantiationError, match="does not report its own schema"):
        GenericDecoder().decode(
            Envelope(encode_record(order_schema, order)), parse_schema(order_schema), target
        )


def test_put_failure(order_schema, order, encode_record):
    class FrozenRecord:
        schema = parse_schema(order_schema)

        def put(self, datum):
            raise RuntimeError("frozen")

    target = TargetType.self_describing("Order", FrozenRecord)
    with pytest.raises(DecodeError, match="frozen"):
        GenericDecoder().decode(
            Envelope(encode_record(order_schema, order)), parse_schema(order_schema), target
        )


def test_builder_failure(order_schema, order, encode_record):
    target = TargetType.plain("Order", builder=lambda datum: Order(datum["missing"], "", 0.0))
    with pytest.raises(TargetInstantiationError):
        GenericDecoder().decode(
            Envelope(encode_record(order_schema, order)), parse_schema(order_schema), target
        )


def test_generic_record():
    fields = [{"name": "x", "type": "int"}, {"name": "y", "type": "int"}]
    schema = parse_schema({"type": "record", "name": "Point", "fields": fields})
    record = GenericRecord(schema)
    assert record.field_names == ["x", "y"]
    assert record.to_dict() == {"x": None, "y": None}

    record.put({"x": 1, "y": 2})
    assert record["x"] == 1
    assert record.get("z", "missing") == "missing"
    assert list(record) == ["x", "y"]

    other = GenericRecord(schema)
    other.put({"x": 1, "y": 2})
    assert record == other

    with pytest.raises(KeyError):
        record.put({"z": 3})


def test_target_type_registry():
    registry = TargetTypeRegistry([TargetType.plain("dict")])
    registry.register(TargetType.self_describing("Order", lambda: None))

    assert "dict" in registry
    assert registry.get("Order").kind is TargetKind.SELF_DESCRIBING
    assert [t.name for t in registry] == ["dict", "Order"]
    with pytest.raises(KeyError, match="unknown"):
        registry.get("unknown")


def test_target_type_registry_requires_factory():
    with pytest.raises(ValueError, match="needs a factory"):
        TargetTypeRegistry().register(TargetType("Order", TargetKind.SELF_DESCRIBING))
