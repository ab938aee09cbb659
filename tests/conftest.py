"""Shared pytest fixtures for avro-envelope tests."""

import io
from collections.abc import Callable
from typing import Any

import pytest
from avro_envelope import InMemorySchemaRegistry
from fastavro import parse_schema, schemaless_writer

ORDER_FIELDS = [
    {"name": "id", "type": "long"},
    {"name": "customer", "type": "string"},
    {"name": "amount", "type": "double"},
]


@pytest.fixture
def order_schema() -> dict[str, Any]:
    """Order record, version 1."""
    return {
        "type": "record",
        "name": "Order",
        "namespace": "com.example",
        "fields": list(ORDER_FIELDS),
        "version": 1,
        "mimeType": "application/vnd.orders.v1+avro",
    }


@pytest.fixture
def order_schema_v2() -> dict[str, Any]:
    """Order record, version 2, adds a ``note`` field."""
    return {
        "type": "record",
        "name": "Order",
        "namespace": "com.example",
        "fields": [*ORDER_FIELDS, {"name": "note", "type": "string"}],
        "version": 2,
    }


@pytest.fixture
def order() -> dict[str, Any]:
    return {"id": 42, "customer": "ada", "amount": 12.5}


@pytest.fixture
def encode_record() -> Callable[[dict[str, Any], dict[str, Any]], bytes]:
    """Encode a record as schemaless Avro binary."""

    def encode(schema: dict[str, Any], record: dict[str, Any]) -> bytes:
        buffer = io.BytesIO()
        schemaless_writer(buffer, parse_schema(schema), record)
        return buffer.getvalue()

    return encode


@pytest.fixture
def registry(order_schema, order_schema_v2) -> InMemorySchemaRegistry:
    """Registry with orders v1 as id 7 and orders v2 as id 8."""
    registry = InMemorySchemaRegistry()
    registry.register("orders", order_schema, version=1, schema_id=7)
    registry.register("orders", order_schema_v2, version=2, schema_id=8)
    return registry


class SpyRegistry:
    """Registry stub recording every call."""

    def __init__(self, by_id: dict[int, str] | None = None, by_subject: dict | None = None) -> None:
        self.by_id = by_id or {}
        self.by_subject = by_subject or {}
        self.calls: list[tuple[str, Any]] = []

    def fetch_by_id(self, schema_id: int) -> str:
        self.calls.append(("fetch_by_id", schema_id))
        return self.by_id[schema_id]

    def fetch_by_subject_version(self, subject: str, version: int) -> str:
        self.calls.append(("fetch_by_subject_version", (subject, version)))
        return self.by_subject[(subject, version)]


@pytest.fixture
def spy_registry_factory() -> type[SpyRegistry]:
    return SpyRegistry
