"""Content type values and classification of the two Avro wire conventions.

Producers announce the writer schema in the content type of a message:

* versioned: ``application/vnd.<subject>.v<version>+avro``, payload is raw Avro
* wrapped: ``application/vnd.<subject>.*+avro``, payload starts with a 4 byte
  big-endian schema id
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import lru_cache

from avro_envelope.exceptions import InvalidContentTypeError

DEFAULT_FORMAT_SUFFIX = "avro"
DEFAULT_PREFIX = "vnd"
WILDCARD = "*"

# RFC 2045 token: any CHAR except SPACE, CTLs and tspecials
_TOKEN = r"[^\s()<>@,;:\\\"/\[\]?=]+"
_TOKEN_RE = re.compile(_TOKEN)
_CONTENT_TYPE_RE = re.compile(rf"\s*(?P<type>{_TOKEN})/(?P<subtype>{_TOKEN})\s*(?P<params>;.*)?")
_PARAM_RE = re.compile(rf"\s*(?P<name>{_TOKEN})\s*=\s*(?P<value>\"(?:[^\"\\]|\\.)*\"|{_TOKEN})\s*")
_VERSIONED_RE = re.compile(
    r"(?P<prefix>[^.]+)\.(?P<subject>[\w$.]+)\.v(?P<version>\d+)\+(?P<format>.+)",
    re.ASCII,
)


@dataclass(frozen=True)
class ContentType:
    """A parsed ``type/subtype;name=value`` content type."""

    type: str
    subtype: str
    parameters: Mapping[str, str] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def parse(cls, text: str) -> "ContentType":
        if not isinstance(text, str) or not text.strip():
            raise InvalidContentTypeError(text, "must be a non-empty string")

        match = _CONTENT_TYPE_RE.fullmatch(text)
        if match is None:
            raise InvalidContentTypeError(text, "expected 'type/subtype'")

        type_, subtype = match["type"].lower(), match["subtype"].lower()
        if type_ == WILDCARD and subtype != WILDCARD:
            raise InvalidContentTypeError(text, "wildcard type is legal only in '*/*'")

        parameters: dict[str, str] = {}
        for chunk in (match["params"] or "").split(";")[1:]:
            if not chunk.strip():
                continue
            param = _PARAM_RE.fullmatch(chunk)
            if param is None:
                raise InvalidContentTypeError(text, f"malformed parameter {chunk.strip()!r}")
            value = param["value"]
            if value.startswith('"'):
                value = re.sub(r"\\(.)", r"\1", value[1:-1])
            parameters[param["name"].lower()] = value

        return cls(type_, subtype, parameters)

    @property
    def suffix(self) -> str | None:
        """Structured syntax suffix, e.g. ``avro`` for ``vnd.orders.v1+avro``."""
        _, plus, suffix = self.subtype.rpartition("+")
        return suffix if plus else None

    def __str__(self) -> str:
        rendered = f"{self.type}/{self.subtype}"
        for name, value in self.parameters.items():
            if not _TOKEN_RE.fullmatch(value):
                escaped = value.replace("\\", "\\\\").replace('"', '\\"')
                value = f'"{escaped}"'
            rendered += f";{name}={value}"
        return rendered


@dataclass(frozen=True, slots=True)
class VersionedSubject:
    prefix: str
    subject: str
    version: int
    format: str


@lru_cache
def _wildcard_pattern(format_suffix: str) -> re.Pattern[str]:
    return re.compile(rf"vnd\.\w+\.\*\+{re.escape(format_suffix)}", re.ASCII)


def is_wildcard(content_type: ContentType, format_suffix: str = DEFAULT_FORMAT_SUFFIX) -> bool:
    """Check whether the content type leaves the schema version unspecified.

    A wildcard content type (``application/vnd.<subject>.*+avro``) means the schema
    id is embedded in the payload instead.
    """
    return _wildcard_pattern(format_suffix).fullmatch(content_type.subtype) is not None


def parse_versioned(content_type: ContentType) -> VersionedSubject | None:
    """Extract prefix, subject and version from a versioned content type."""
    match = _VERSIONED_RE.fullmatch(content_type.subtype)
    if match is None:
        return None
    return VersionedSubject(
        prefix=match["prefix"],
        subject=match["subject"],
        version=int(match["version"]),
        format=match["format"],
    )


def is_supported(content_type: ContentType, format_suffix: str = DEFAULT_FORMAT_SUFFIX) -> bool:
    """Match ``application/*+<format_suffix>``."""
    return content_type.type == "application" and content_type.suffix == format_suffix


def versioned_content_type(
    subject: str,
    version: int,
    prefix: str = DEFAULT_PREFIX,
    format_suffix: str = DEFAULT_FORMAT_SUFFIX,
) -> ContentType:
    return ContentType("application", f"{prefix}.{subject}.v{version}+{format_suffix}".lower())


def wildcard_content_type(
    subject: str,
    prefix: str = DEFAULT_PREFIX,
    format_suffix: str = DEFAULT_FORMAT_SUFFIX,
) -> ContentType:
    return ContentType("application", f"{prefix}.{subject}.{WILDCARD}+{format_suffix}".lower())
