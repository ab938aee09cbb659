"""Decode command - decode a single message against a directory registry."""

import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Any

from cyclopts import Group, Parameter
from rich.console import Console
from rich.json import JSON
from rich.logging import RichHandler
from rich.panel import Panel
from rich.text import Text

from avro_envelope.config import CONTENT_TYPE_HEADER, REGISTRY_ENV_VAR, registry_dir_from_env
from avro_envelope.content_type import ContentType
from avro_envelope.converter import Message, MessageConverter
from avro_envelope.decoder import GenericRecord, TargetType
from avro_envelope.exceptions import ConversionFailure, MessageConversionError
from avro_envelope.registry import CachingSchemaRegistry, DirectorySchemaRegistry
from avro_envelope.schema import SchemaDescriptor, parse_schema

console_err = Console(stderr=True)
console_out = Console()

SCHEMA_GROUP = Group("Schema")
OUTPUT_GROUP = Group("Output")


def to_json_compatible(obj: Any) -> Any:
    """Recursively convert a decoded Avro value to something ``json.dumps`` accepts.

    Handles:
    - GenericRecord → dict
    - dicts, lists and tuples → recursively converted
    - bytes → list of ints
    - other non JSON types (Decimal, UUID, datetime) → str
    """
    if isinstance(obj, GenericRecord):
        obj = obj.to_dict()
    if isinstance(obj, dict):
        return {key: to_json_compatible(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_json_compatible(item) for item in obj]
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return list(obj)
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)


def _reader_target(reader_schema: SchemaDescriptor) -> TargetType:
    name = reader_schema.name or "reader"
    return TargetType.self_describing(name, lambda: GenericRecord(reader_schema))


def decode(
    file: Path,
    *,
    content_type: Annotated[str, Parameter(name=["-c", "--content-type"])],
    registry: Annotated[
        Path | None,
        Parameter(name=["-r", "--registry"], group=SCHEMA_GROUP),
    ] = None,
    reader_schema: Annotated[
        Path | None,
        Parameter(name=["--reader-schema"], group=SCHEMA_GROUP),
    ] = None,
    json_output: Annotated[bool, Parameter(name=["--json"], group=OUTPUT_GROUP)] = False,
    verbose: Annotated[bool, Parameter(name=["-v", "--verbose"], group=OUTPUT_GROUP)] = False,
) -> None:
    """Decode one Avro message file and print it as JSON.

    The writer schema is looked up in a directory registry
    (``ids/<id>.avsc`` and ``subjects/<subject>/<version>.avsc``).

    Examples:
      # Wrapped payload
      avro-envelope decode order.bin -c 'application/vnd.orders.*+avro' -r ./registry

      # Versioned payload, read with a newer reader schema
      avro-envelope decode order.bin -c 'application/vnd.orders.v1+avro' \\
          -r ./registry --reader-schema order_v2.avsc
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console_err, rich_tracebacks=True)],
    )

    registry_dir = registry or registry_dir_from_env()
    if registry_dir is None:
        console_err.print(f"[red]No registry given, use --registry or set {REGISTRY_ENV_VAR}[/red]")
        sys.exit(1)

    try:
        headers = {CONTENT_TYPE_HEADER: ContentType.parse(content_type)}
        target = None
        if reader_schema is not None:
            target = _reader_target(parse_schema(reader_schema.read_text(encoding="utf-8")))
        converter = MessageConverter(CachingSchemaRegistry(DirectorySchemaRegistry(registry_dir)))
        decoded = converter.read_message(Message(file.read_bytes(), headers), target)
    except (ConversionFailure, MessageConversionError) as e:
        console_err.print(f"[red]Error ({e.kind.value}): {e}[/red]")
        sys.exit(1)
    except OSError as e:
        console_err.print(f"[red]Error reading input: {e}[/red]")
        sys.exit(1)

    if decoded is None:
        console_err.print(f"[red]No content type for {file}[/red]")
        sys.exit(1)

    output = {
        "schema": decoded.writer_schema.name,
        "schema_id": decoded.envelope.schema_id,
        "schema_version": decoded.envelope.schema_version,
        "message": to_json_compatible(decoded.value),
    }

    if json_output or not sys.stdout.isatty():
        print(json.dumps(output, separators=(",", ":")), file=sys.stdout)  # noqa: T201
        return

    header = Text()
    header.append(str(file), style="bold cyan")
    header.append(" [", style="dim")
    header.append(output["schema"] or "unknown", style="yellow")
    if output["schema_version"] is not None:
        header.append(f" v{output['schema_version']}", style="green")
    header.append("]", style="dim")
    panel = Panel(
        JSON(json.dumps(output["message"], indent=2)),
        title=header,
        border_style="blue",
        expand=False,
    )
    console_out.print(panel)
