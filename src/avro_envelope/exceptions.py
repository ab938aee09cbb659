from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from avro_envelope.converter import Message


class ErrorKind(str, Enum):
    """Classification of a failed message conversion."""

    MALFORMED_ENVELOPE = "malformed_envelope"
    SCHEMA_NOT_FOUND = "schema_not_found"
    SCHEMA_PARSE = "schema_parse"
    TARGET_INSTANTIATION = "target_instantiation"
    DECODE = "decode"
    INVALID_CONTENT_TYPE = "invalid_content_type"


class AvroEnvelopeError(Exception):
    pass


class ConversionFailure(AvroEnvelopeError):
    """A failure inside one conversion stage, tagged with its kind."""

    kind: ClassVar[ErrorKind]


class MalformedEnvelopeError(ConversionFailure):
    kind = ErrorKind.MALFORMED_ENVELOPE

    def __init__(self, length: int, *, reason: str | None = None) -> None:
        super().__init__(
            reason
            or f"wrapped payload needs a 4 byte schema id prefix, got {length} bytes"
        )
        self.length = length


class SchemaNotFoundError(ConversionFailure):
    kind = ErrorKind.SCHEMA_NOT_FOUND

    def __init__(
        self,
        schema_id: int | None = None,
        *,
        subject: str | None = None,
        version: int | None = None,
        reason: str | None = None,
    ) -> None:
        if reason is not None:
            msg = reason
        elif schema_id is not None:
            msg = f"no schema registered with id {schema_id}"
        elif subject is not None and version is not None:
            msg = f"no schema registered for subject '{subject}' version {version}"
        else:
            msg = "no schema could be resolved"
        super().__init__(msg)
        self.schema_id = schema_id
        self.subject = subject
        self.version = version


class SchemaParseError(ConversionFailure):
    kind = ErrorKind.SCHEMA_PARSE


class TargetInstantiationError(ConversionFailure):
    kind = ErrorKind.TARGET_INSTANTIATION

    def __init__(self, target: str, reason: str) -> None:
        super().__init__(f"cannot instantiate target '{target}': {reason}")
        self.target = target


class DecodeError(ConversionFailure):
    kind = ErrorKind.DECODE


class InvalidContentTypeError(ConversionFailure):
    kind = ErrorKind.INVALID_CONTENT_TYPE

    def __init__(self, value: Any, reason: str) -> None:
        super().__init__(f"invalid content type {value!r}: {reason}")
        self.value = value


class MessageConversionError(AvroEnvelopeError):
    """Raised by the converter for every failed conversion.

    Carries the failure kind, the message that could not be converted and the
    underlying cause (also available as ``__cause__``).
    """

    def __init__(self, failed_message: "Message", cause: ConversionFailure) -> None:
        super().__init__(f"failed to read payload ({cause.kind.value}): {cause}")
        self.kind = cause.kind
        self.failed_message = failed_message
        self.cause = cause
