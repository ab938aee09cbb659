import os
from dataclasses import dataclass
from pathlib import Path

from avro_envelope.content_type import DEFAULT_FORMAT_SUFFIX, DEFAULT_PREFIX

REGISTRY_ENV_VAR = "AVRO_ENVELOPE_REGISTRY"
CONTENT_TYPE_HEADER = "contentType"


@dataclass(frozen=True, slots=True)
class ConverterConfig:
    content_type_header: str = CONTENT_TYPE_HEADER
    format_suffix: str = DEFAULT_FORMAT_SUFFIX
    # vendor tree prefix used for outgoing content types
    prefix: str = DEFAULT_PREFIX


def registry_dir_from_env() -> Path | None:
    """Directory registry configured through ``AVRO_ENVELOPE_REGISTRY``, if any."""
    value = os.environ.get(REGISTRY_ENV_VAR, "")
    return Path(value) if value else None
