"""Message converter for Avro payloads resolved against a schema registry.

The converter handles both messages produced with a versioned content type
(``application/vnd.<subject>.v<version>+avro``) and messages produced by
serializers that prefix the payload with a schema id and announce a wildcard
content type (``application/vnd.<subject>.*+avro``).

The transport integration owns the message lifecycle and calls
:meth:`MessageConverter.from_message` for every message it receives.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from avro_envelope.config import CONTENT_TYPE_HEADER, ConverterConfig
from avro_envelope.content_type import (
    ContentType,
    is_supported,
    versioned_content_type,
    wildcard_content_type,
)
from avro_envelope.decoder import (
    PLAIN_RECORD,
    DecodedMessage,
    GenericDecoder,
    TargetType,
    TargetTypeRegistry,
)
from avro_envelope.envelope import EnvelopeCodec
from avro_envelope.exceptions import (
    ConversionFailure,
    DecodeError,
    InvalidContentTypeError,
    MessageConversionError,
)
from avro_envelope.registry import SchemaRegistry
from avro_envelope.resolver import SchemaResolver, SubjectVersionResolver
from avro_envelope.schema import SchemaDescriptor, get_mime_type, get_version

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Message:
    payload: bytes
    headers: Mapping[str, Any] = field(default_factory=dict)


class ContentTypeResolver:
    """Read the content type of a message from its headers."""

    def __init__(self, header: str = CONTENT_TYPE_HEADER) -> None:
        self.header = header

    def resolve(self, headers: Mapping[str, Any]) -> ContentType | None:
        value = headers.get(self.header)
        if value is None or isinstance(value, ContentType):
            return value
        if isinstance(value, bytes):
            try:
                value = value.decode("utf-8")
            except UnicodeDecodeError as e:
                raise InvalidContentTypeError(value, f"header is not valid UTF-8: {e}") from e
        if isinstance(value, str):
            return ContentType.parse(value)
        raise InvalidContentTypeError(value, f"unknown header value type {type(value).__name__}")


class MessageConverter:
    def __init__(
        self,
        registry: SchemaRegistry,
        *,
        subject_resolver: SubjectVersionResolver | None = None,
        targets: TargetTypeRegistry | None = None,
        config: ConverterConfig | None = None,
    ) -> None:
        self.config = config or ConverterConfig()
        self.targets = targets or TargetTypeRegistry()
        self.codec = EnvelopeCodec(self.config.format_suffix)
        self.resolver = SchemaResolver(registry, subject_resolver)
        self.decoder = GenericDecoder()
        self.content_type_resolver = ContentTypeResolver(self.config.content_type_header)

    def supports(self, headers: Mapping[str, Any]) -> bool:
        """Check whether the headers announce an ``application/*+avro`` payload."""
        try:
            content_type = self.content_type_resolver.resolve(headers)
        except InvalidContentTypeError:
            return False
        return content_type is not None and is_supported(content_type, self.config.format_suffix)

    def _target(self, target: TargetType | str | None) -> TargetType:
        if target is None:
            return PLAIN_RECORD
        if isinstance(target, str):
            return self.targets.get(target)
        return target

    def read_message(
        self,
        message: Message,
        target: TargetType | str | None = None,
        conversion_hint: Any = None,
    ) -> DecodedMessage | None:
        """Decode a message and return it with the envelope and schemas used.

        Returns ``None`` if neither the headers nor ``conversion_hint`` provide a
        content type.

        Raises:
            MessageConversionError: For every failure while unwrapping, resolving
                or decoding; the failure kind and cause are attached
        """
        target_type = self._target(target)
        try:
            content_type = self.content_type_resolver.resolve(message.headers)
            if content_type is None:
                if not isinstance(conversion_hint, ContentType):
                    logger.debug("Message has no content type, skipping conversion")
                    return None
                content_type = conversion_hint

            if not isinstance(message.payload, (bytes, bytearray, memoryview)):
                raise DecodeError(f"payload must be bytes, not {type(message.payload).__name__}")

            envelope = self.codec.unwrap(message.payload, content_type)
            writer_schema = self.resolver.resolve_writer_schema(
                envelope, content_type, message.headers
            )
            return self.decoder.read(envelope, writer_schema, target_type)
        except ConversionFailure as e:
            logger.warning(f"Failed to convert message ({e.kind.value}): {e}")
            raise MessageConversionError(message, e) from e

    def from_message(
        self,
        message: Message,
        target: TargetType | str | None = None,
        conversion_hint: Any = None,
    ) -> Any:
        decoded = self.read_message(message, target, conversion_hint)
        return None if decoded is None else decoded.value

    def content_type_for(self, schema: SchemaDescriptor, subject: str) -> ContentType:
        """Select the content type to announce for messages written with ``schema``.

        An explicit ``mimeType`` property wins, then a versioned content type if the
        schema declares its ``version``, otherwise the wildcard form used together
        with a schema id prefix.
        """
        mime_type = get_mime_type(schema)
        if mime_type is not None:
            return mime_type
        version = get_version(schema)
        if version is not None:
            return versioned_content_type(
                subject, version, self.config.prefix, self.config.format_suffix
            )
        return wildcard_content_type(subject, format_suffix=self.config.format_suffix)
