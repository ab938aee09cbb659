"""avro-envelope: decode Avro messages against the schema they were written with.

Supports versioned content types (``application/vnd.<subject>.v<version>+avro``)
and payloads wrapped with a 4 byte schema id (``application/vnd.<subject>.*+avro``).
"""

__version__ = "0.1.0"

from avro_envelope.config import ConverterConfig
from avro_envelope.content_type import (
    ContentType,
    VersionedSubject,
    is_supported,
    is_wildcard,
    parse_versioned,
    versioned_content_type,
    wildcard_content_type,
)
from avro_envelope.converter import ContentTypeResolver, Message, MessageConverter
from avro_envelope.decoder import (
    DecodedMessage,
    GenericDecoder,
    GenericRecord,
    SelfDescribingRecord,
    TargetKind,
    TargetType,
    TargetTypeRegistry,
)
from avro_envelope.envelope import Envelope, EnvelopeCodec, unwrap, wrap
from avro_envelope.exceptions import (
    AvroEnvelopeError,
    ConversionFailure,
    DecodeError,
    ErrorKind,
    InvalidContentTypeError,
    MalformedEnvelopeError,
    MessageConversionError,
    SchemaNotFoundError,
    SchemaParseError,
    TargetInstantiationError,
)
from avro_envelope.registry import (
    CachingSchemaRegistry,
    DirectorySchemaRegistry,
    InMemorySchemaRegistry,
    SchemaRegistry,
)
from avro_envelope.resolver import ContentTypeSubjectResolver, SchemaResolver, SubjectVersionResolver
from avro_envelope.schema import SchemaDescriptor, get_mime_type, get_version, parse_schema

__all__ = [
    "AvroEnvelopeError",
    "CachingSchemaRegistry",
    "ContentType",
    "ContentTypeResolver",
    "ContentTypeSubjectResolver",
    "ConversionFailure",
    "ConverterConfig",
    "DecodeError",
    "DecodedMessage",
    "DirectorySchemaRegistry",
    "Envelope",
    "EnvelopeCodec",
    "ErrorKind",
    "GenericDecoder",
    "GenericRecord",
    "InMemorySchemaRegistry",
    "InvalidContentTypeError",
    "MalformedEnvelopeError",
    "Message",
    "MessageConversionError",
    "MessageConverter",
    "SchemaDescriptor",
    "SchemaNotFoundError",
    "SchemaParseError",
    "SchemaRegistry",
    "SchemaResolver",
    "SelfDescribingRecord",
    "SubjectVersionResolver",
    "TargetInstantiationError",
    "TargetKind",
    "TargetType",
    "TargetTypeRegistry",
    "VersionedSubject",
    "__version__",
    "get_mime_type",
    "get_version",
    "is_supported",
    "is_wildcard",
    "parse_schema",
    "parse_versioned",
    "unwrap",
    "versioned_content_type",
    "wildcard_content_type",
    "wrap",
]
