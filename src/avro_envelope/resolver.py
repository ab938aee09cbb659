"""Writer schema resolution.

A schema id found in the envelope always wins. Only messages without one are
resolved through their content type (subject and version).
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any, Protocol

from avro_envelope.content_type import ContentType, parse_versioned
from avro_envelope.envelope import Envelope
from avro_envelope.exceptions import ConversionFailure, SchemaNotFoundError
from avro_envelope.registry import SchemaRegistry
from avro_envelope.schema import SchemaDescriptor, get_version, parse_schema

logger = logging.getLogger(__name__)


class SubjectVersionResolver(Protocol):
    def resolve(self, content_type: ContentType, headers: Mapping[str, Any]) -> SchemaDescriptor:
        """Return the writer schema named by the message metadata.

        Raises:
            SchemaNotFoundError: If no schema is registered for the subject and version
        """
        ...


class ContentTypeSubjectResolver:
    """Resolve ``application/<prefix>.<subject>.v<version>+<format>`` content types."""

    def __init__(self, registry: SchemaRegistry) -> None:
        self._registry = registry

    def resolve(
        self,
        content_type: ContentType,
        headers: Mapping[str, Any],  # noqa: ARG002
    ) -> SchemaDescriptor:
        versioned = parse_versioned(content_type)
        if versioned is None:
            raise SchemaNotFoundError(
                reason=f"content type {content_type} names neither a subject version nor a schema id"
            )
        logger.debug(f"Fetching schema for subject {versioned.subject} v{versioned.version}")
        raw = _fetch(
            lambda: self._registry.fetch_by_subject_version(versioned.subject, versioned.version),
            SchemaNotFoundError(subject=versioned.subject, version=versioned.version),
        )
        return parse_schema(raw)


def _fetch(fetch: Callable[[], str], not_found: SchemaNotFoundError) -> str:
    """Run a registry call, reporting any registry failure as ``not_found``."""
    try:
        return fetch()
    except ConversionFailure:
        raise
    except Exception as e:
        raise not_found from e


class SchemaResolver:
    def __init__(
        self,
        registry: SchemaRegistry,
        subject_resolver: SubjectVersionResolver | None = None,
    ) -> None:
        self._registry = registry
        self._subject_resolver = subject_resolver or ContentTypeSubjectResolver(registry)

    def resolve_writer_schema(
        self,
        envelope: Envelope,
        content_type: ContentType,
        headers: Mapping[str, Any],
    ) -> SchemaDescriptor:
        """Find the schema the payload was written with.

        Sets ``envelope.schema_version`` from the resolved schema's ``version``
        property. That value is informational and never affects the selection.

        Raises:
            SchemaNotFoundError: If the registry has no matching schema
            SchemaParseError: If the registry returned an invalid definition
        """
        if envelope.schema_id is not None:
            schema_id = envelope.schema_id
            logger.debug(f"Fetching writer schema by id {schema_id}")
            raw = _fetch(lambda: self._registry.fetch_by_id(schema_id), SchemaNotFoundError(schema_id))
            writer_schema = parse_schema(raw)
        else:
            writer_schema = self._subject_resolver.resolve(content_type, headers)
            if writer_schema is None:
                raise SchemaNotFoundError(reason=f"no writer schema resolved for {content_type}")

        envelope.schema_version = get_version(writer_schema)
        return writer_schema
