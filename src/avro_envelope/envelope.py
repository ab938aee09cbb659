"""Removal of the schema id prefix used by the wrapped wire convention.

A wrapped message is the 4 byte big-endian signed schema id followed by the
Avro binary payload. It is recognised by its wildcard content type, never by
sniffing the payload bytes.
"""

import logging
import struct
from dataclasses import dataclass

from avro_envelope.content_type import DEFAULT_FORMAT_SUFFIX, ContentType, is_wildcard
from avro_envelope.exceptions import MalformedEnvelopeError

logger = logging.getLogger(__name__)

SCHEMA_ID_STRUCT = struct.Struct(">i")
SCHEMA_ID_SIZE = SCHEMA_ID_STRUCT.size


@dataclass(slots=True)
class Envelope:
    payload: bytes
    schema_id: int | None = None
    # filled in from the writer schema's "version" property once it is resolved
    schema_version: int | None = None


def unwrap(
    payload: bytes | bytearray | memoryview,
    content_type: ContentType,
    format_suffix: str = DEFAULT_FORMAT_SUFFIX,
) -> Envelope:
    """Split a message payload into the Avro payload and the optional schema id.

    Args:
        payload: The raw message payload
        content_type: The content type of the message
        format_suffix: Structured syntax suffix expected on wildcard content types

    Returns:
        An envelope with ``schema_id`` set iff the content type is a wildcard

    Raises:
        MalformedEnvelopeError: If a wrapped payload is shorter than the id prefix
    """
    data = bytes(payload)
    if not is_wildcard(content_type, format_suffix):
        return Envelope(data)

    if len(data) < SCHEMA_ID_SIZE:
        raise MalformedEnvelopeError(len(data))

    (schema_id,) = SCHEMA_ID_STRUCT.unpack_from(data, 0)
    logger.debug(f"Unwrapped schema id {schema_id} from {content_type}")
    return Envelope(data[SCHEMA_ID_SIZE:], schema_id)


def wrap(payload: bytes | bytearray | memoryview, schema_id: int) -> bytes:
    """Prefix an Avro payload with its schema id."""
    try:
        prefix = SCHEMA_ID_STRUCT.pack(schema_id)
    except struct.error as e:
        raise MalformedEnvelopeError(
            len(payload), reason=f"schema id {schema_id} does not fit a signed 32 bit integer"
        ) from e
    return prefix + bytes(payload)


class EnvelopeCodec:
    """Envelope strategy bound to one format suffix."""

    def __init__(self, format_suffix: str = DEFAULT_FORMAT_SUFFIX) -> None:
        self.format_suffix = format_suffix

    def is_wrapped(self, content_type: ContentType) -> bool:
        return is_wildcard(content_type, self.format_suffix)

    def unwrap(self, payload: bytes | bytearray | memoryview, content_type: ContentType) -> Envelope:
        return unwrap(payload, content_type, self.format_suffix)

    def wrap(self, payload: bytes | bytearray | memoryview, schema_id: int) -> bytes:
        return wrap(payload, schema_id)
