"""Schema registry clients.

The converter only depends on :class:`SchemaRegistry`. The implementations here
cover embedding (in memory), local tooling (a directory of ``.avsc`` files) and
caching of any other registry.
"""

import json
import logging
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from avro_envelope.exceptions import SchemaNotFoundError

logger = logging.getLogger(__name__)

SCHEMA_FILE_SUFFIX = ".avsc"


class SchemaRegistry(Protocol):
    def fetch_by_id(self, schema_id: int) -> str:
        """Return the raw schema definition registered under ``schema_id``."""
        ...

    def fetch_by_subject_version(self, subject: str, version: int) -> str:
        """Return the raw schema definition of ``subject`` at ``version``."""
        ...


def _to_text(definition: str | Mapping[str, Any] | list[Any]) -> str:
    return definition if isinstance(definition, str) else json.dumps(definition)


class InMemorySchemaRegistry:
    """Registry backed by dictionaries.

    Ids are assigned globally, versions per subject, both starting at 1.
    """

    def __init__(self) -> None:
        self._by_id: dict[int, str] = {}
        self._by_subject: dict[str, dict[int, int]] = {}
        self._lock = threading.Lock()

    def register(
        self,
        subject: str,
        definition: str | Mapping[str, Any] | list[Any],
        version: int | None = None,
        schema_id: int | None = None,
    ) -> int:
        """Register a definition and return its schema id."""
        text = _to_text(definition)
        with self._lock:
            if schema_id is None:
                schema_id = max(self._by_id, default=0) + 1
            versions = self._by_subject.setdefault(subject, {})
            if version is None:
                version = max(versions, default=0) + 1
            self._by_id[schema_id] = text
            versions[version] = schema_id
        logger.debug(f"Registered {subject} v{version} as schema id {schema_id}")
        return schema_id

    def fetch_by_id(self, schema_id: int) -> str:
        try:
            return self._by_id[schema_id]
        except KeyError:
            raise SchemaNotFoundError(schema_id) from None

    def fetch_by_subject_version(self, subject: str, version: int) -> str:
        schema_id = self._by_subject.get(subject, {}).get(version)
        if schema_id is None:
            raise SchemaNotFoundError(subject=subject, version=version)
        return self._by_id[schema_id]


class DirectorySchemaRegistry:
    """Read-only registry laid out on disk.

    Layout::

        <root>/ids/<schema_id>.avsc
        <root>/subjects/<subject>/<version>.avsc
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def _read(self, path: Path) -> str | None:
        if not path.is_file():
            return None
        logger.debug(f"Reading schema from {path}")
        return path.read_text(encoding="utf-8")

    def fetch_by_id(self, schema_id: int) -> str:
        text = self._read(self.root / "ids" / f"{schema_id}{SCHEMA_FILE_SUFFIX}")
        if text is None:
            raise SchemaNotFoundError(schema_id)
        return text

    def fetch_by_subject_version(self, subject: str, version: int) -> str:
        # subjects are names, not paths
        if "/" in subject or "\\" in subject or subject in {".", ".."}:
            raise SchemaNotFoundError(subject=subject, version=version)
        path = self.root / "subjects" / subject / f"{version}{SCHEMA_FILE_SUFFIX}"
        text = self._read(path)
        if text is None:
            raise SchemaNotFoundError(subject=subject, version=version)
        return text


class CachingSchemaRegistry:
    """Cache definitions fetched from another registry.

    Only successful lookups are cached. Safe to share between threads.
    """

    def __init__(self, inner: SchemaRegistry) -> None:
        self._inner = inner
        self._by_id: dict[int, str] = {}
        self._by_subject_version: dict[tuple[str, int], str] = {}
        self._lock = threading.Lock()

    def fetch_by_id(self, schema_id: int) -> str:
        with self._lock:
            cached = self._by_id.get(schema_id)
        if cached is not None:
            return cached
        definition = self._inner.fetch_by_id(schema_id)
        with self._lock:
            return self._by_id.setdefault(schema_id, definition)

    def fetch_by_subject_version(self, subject: str, version: int) -> str:
        key = (subject, version)
        with self._lock:
            cached = self._by_subject_version.get(key)
        if cached is not None:
            return cached
        definition = self._inner.fetch_by_subject_version(subject, version)
        with self._lock:
            return self._by_subject_version.setdefault(key, definition)

    def clear(self) -> None:
        with self._lock:
            self._by_id.clear()
            self._by_subject_version.clear()
