"""Schema evolution aware decoding of Avro payloads into target representations."""

import io
import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from fastavro import schemaless_reader

from avro_envelope.content_type import ContentType
from avro_envelope.envelope import Envelope
from avro_envelope.exceptions import DecodeError, TargetInstantiationError
from avro_envelope.schema import SchemaDescriptor, get_mime_type, parse_schema

logger = logging.getLogger(__name__)


class TargetKind(Enum):
    PLAIN_RECORD = "plain_record"
    """Decoded with the writer schema as reader schema."""
    SELF_DESCRIBING = "self_describing"
    """A default instance reports the reader schema and is populated in place."""


class SelfDescribingRecord(Protocol):
    @property
    def schema(self) -> SchemaDescriptor: ...

    def put(self, datum: Mapping[str, Any]) -> None: ...


class GenericRecord:
    """Record whose fields are defined by an Avro record schema."""

    __slots__ = ("_schema", "_values")

    def __init__(self, schema: SchemaDescriptor) -> None:
        self._schema = schema
        self._values: dict[str, Any] = dict.fromkeys(self.field_names)

    @property
    def schema(self) -> SchemaDescriptor:
        return self._schema

    @property
    def field_names(self) -> list[str]:
        parsed = self._schema.parsed
        if not isinstance(parsed, dict) or parsed.get("type") != "record":
            return []
        return [f["name"] for f in parsed["fields"]]

    def put(self, datum: Mapping[str, Any]) -> None:
        unknown = set(datum) - set(self._values)
        if unknown:
            raise KeyError(f"fields {sorted(unknown)} not in schema {self._schema.name}")
        self._values.update(datum)

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(name, default)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._values)

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GenericRecord):
            return NotImplemented
        return self._schema.name == other._schema.name and self._values == other._values

    def __repr__(self) -> str:
        return f"GenericRecord({self._schema.name}, {self._values!r})"


@dataclass(frozen=True, slots=True)
class TargetType:
    """The representation a message is decoded into.

    ``factory`` creates a default instance of a self-describing target,
    ``builder`` converts the decoded dict of a plain record target.
    """

    name: str
    kind: TargetKind
    factory: Callable[[], SelfDescribingRecord] | None = None
    builder: Callable[[dict[str, Any]], Any] | None = None

    @classmethod
    def plain(cls, name: str, builder: Callable[[dict[str, Any]], Any] | None = None) -> "TargetType":
        return cls(name, TargetKind.PLAIN_RECORD, builder=builder)

    @classmethod
    def self_describing(cls, name: str, factory: Callable[[], SelfDescribingRecord]) -> "TargetType":
        return cls(name, TargetKind.SELF_DESCRIBING, factory=factory)


class TargetTypeRegistry:
    """Target types registered at setup time, looked up by name."""

    def __init__(self, targets: list[TargetType] | None = None) -> None:
        self._targets: dict[str, TargetType] = {}
        for target in targets or ():
            self.register(target)

    def register(self, target: TargetType) -> None:
        if target.kind is TargetKind.SELF_DESCRIBING and target.factory is None:
            raise ValueError(f"self-describing target '{target.name}' needs a factory")
        self._targets[target.name] = target
        logger.debug(f"Registered target type {target.name} ({target.kind.value})")

    def get(self, name: str) -> TargetType:
        try:
            return self._targets[name]
        except KeyError:
            raise KeyError(f"no target type registered as '{name}'") from None

    def __contains__(self, name: object) -> bool:
        return name in self._targets

    def __iter__(self) -> Iterator[TargetType]:
        return iter(self._targets.values())


PLAIN_RECORD = TargetType.plain("dict")


@dataclass(frozen=True, slots=True)
class DecodedMessage:
    envelope: Envelope
    writer_schema: SchemaDescriptor
    reader_schema: SchemaDescriptor
    target_mime_type: ContentType | None
    value: Any


class GenericDecoder:
    def _instantiate(self, target: TargetType) -> tuple[SelfDescribingRecord, SchemaDescriptor]:
        if target.factory is None:
            raise TargetInstantiationError(target.name, "no factory registered")
        try:
            instance = target.factory()
        except Exception as e:
            raise TargetInstantiationError(target.name, f"factory failed: {e}") from e

        schema = getattr(instance, "schema", None)
        if schema is None or not callable(getattr(instance, "put", None)):
            raise TargetInstantiationError(
                target.name, f"{type(instance).__name__} does not report its own schema"
            )
        if not isinstance(schema, SchemaDescriptor):
            schema = parse_schema(schema)
        return instance, schema

    def read(
        self,
        envelope: Envelope,
        writer_schema: SchemaDescriptor,
        target: TargetType = PLAIN_RECORD,
    ) -> DecodedMessage:
        """Decode the envelope payload and keep the schemas that were used.

        Raises:
            TargetInstantiationError: If the target representation cannot be built
            SchemaParseError: If the reader schema carries a malformed ``mimeType``
            DecodeError: If the payload does not decode with the writer/reader schema pair
        """
        instance: SelfDescribingRecord | None = None
        reader_schema = writer_schema
        if target.kind is TargetKind.SELF_DESCRIBING:
            instance, reader_schema = self._instantiate(target)

        target_mime_type = get_mime_type(reader_schema)

        reader_parsed = None if reader_schema is writer_schema else reader_schema.parsed
        try:
            datum = schemaless_reader(io.BytesIO(envelope.payload), writer_schema.parsed, reader_parsed)
        except Exception as e:
            raise DecodeError(
                f"cannot decode {len(envelope.payload)} bytes written with "
                f"{writer_schema.name or writer_schema.to_json()} as {target.name}: {e}"
            ) from e

        if instance is not None:
            try:
                instance.put(datum)
            except Exception as e:
                raise DecodeError(f"cannot populate {target.name}: {e}") from e
            value: Any = instance
        elif target.builder is not None:
            try:
                value = target.builder(datum)
            except Exception as e:
                raise TargetInstantiationError(target.name, f"builder failed: {e}") from e
        else:
            value = datum

        logger.debug(
            f"Decoded {target.name} (schema id {envelope.schema_id}, version {envelope.schema_version})"
        )
        return DecodedMessage(envelope, writer_schema, reader_schema, target_mime_type, value)

    def decode(
        self,
        envelope: Envelope,
        writer_schema: SchemaDescriptor,
        target: TargetType = PLAIN_RECORD,
    ) -> Any:
        return self.read(envelope, writer_schema, target).value
