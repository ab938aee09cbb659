"""Parsed Avro schemas and the custom properties carried inside them."""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from fastavro import parse_schema as _fastavro_parse_schema
from fastavro.schema import SchemaParseException, UnknownType

from avro_envelope.content_type import ContentType
from avro_envelope.exceptions import InvalidContentTypeError, SchemaParseError

SCHEMA_PROP_VERSION = "version"
SCHEMA_PROP_MIME_TYPE = "mimeType"

# Attributes defined by the Avro specification, everything else is a custom property
RESERVED_ATTRIBUTES = frozenset(
    {
        "type",
        "name",
        "namespace",
        "aliases",
        "doc",
        "fields",
        "symbols",
        "items",
        "values",
        "size",
        "default",
        "order",
        "logicalType",
        "precision",
        "scale",
    }
)

RawSchema = str | bytes | Mapping[str, Any] | list[Any]


@dataclass(frozen=True)
class SchemaDescriptor:
    """An Avro schema as written by the producer, parsed for fastavro."""

    definition: Any
    parsed: Any = field(repr=False, compare=False)
    properties: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @property
    def name(self) -> str | None:
        if isinstance(self.parsed, dict):
            return self.parsed.get("name")
        return None

    def get_prop(self, name: str) -> Any:
        return self.properties.get(name)

    def to_json(self) -> str:
        return json.dumps(self.definition, sort_keys=True)


def parse_schema(raw: RawSchema) -> SchemaDescriptor:
    """Parse a schema definition as returned by a registry.

    Raises:
        SchemaParseError: If the definition is not JSON or not a valid Avro schema
    """
    if isinstance(raw, (str, bytes)):
        try:
            definition = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SchemaParseError(f"schema definition is not valid JSON: {e}") from e
    else:
        definition = raw

    try:
        parsed = _fastavro_parse_schema(definition)
    except (SchemaParseException, UnknownType, ValueError, TypeError, KeyError, AttributeError) as e:
        raise SchemaParseError(f"invalid Avro schema: {e}") from e

    properties = {}
    if isinstance(definition, Mapping):
        properties = {k: v for k, v in definition.items() if k not in RESERVED_ATTRIBUTES}
    return SchemaDescriptor(definition, parsed, properties)


def get_version(schema: SchemaDescriptor | None) -> int | None:
    """Read the ``version`` property; anything but an integer counts as absent."""
    if schema is None:
        return None
    version = schema.get_prop(SCHEMA_PROP_VERSION)
    # bool is an int subclass, but not a version
    if isinstance(version, int) and not isinstance(version, bool):
        return version
    return None


def get_mime_type(schema: SchemaDescriptor | None) -> ContentType | None:
    """Read the ``mimeType`` property as a content type; non-string values count as absent.

    Raises:
        SchemaParseError: If the property is set but cannot be parsed
    """
    if schema is None:
        return None
    mime_type = schema.get_prop(SCHEMA_PROP_MIME_TYPE)
    if not isinstance(mime_type, str) or not mime_type.strip():
        return None
    try:
        return ContentType.parse(mime_type)
    except InvalidContentTypeError as e:
        raise SchemaParseError(f"schema property '{SCHEMA_PROP_MIME_TYPE}': {e}") from e
