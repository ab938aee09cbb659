"""Inspect command - show how a message payload would be unwrapped."""

import json
import sys
from pathlib import Path
from typing import Annotated

from cyclopts import Parameter
from rich.console import Console
from rich.table import Table

from avro_envelope.content_type import ContentType, is_supported, parse_versioned
from avro_envelope.envelope import EnvelopeCodec
from avro_envelope.exceptions import ConversionFailure

console_err = Console(stderr=True)
console_out = Console()


def inspect(
    file: Path,
    *,
    content_type: Annotated[str, Parameter(name=["-c", "--content-type"])],
    json_output: Annotated[bool, Parameter(name=["--json"])] = False,
) -> None:
    """Classify a message by its content type and strip the schema id prefix.

    Examples:
      # Wrapped payload, the schema id is read from the first 4 bytes
      avro-envelope inspect order.bin -c 'application/vnd.orders.*+avro'
    """
    codec = EnvelopeCodec()
    try:
        parsed = ContentType.parse(content_type)
        envelope = codec.unwrap(file.read_bytes(), parsed)
    except ConversionFailure as e:
        console_err.print(f"[red]Error ({e.kind.value}): {e}[/red]")
        sys.exit(1)
    except OSError as e:
        console_err.print(f"[red]Error reading {file}: {e}[/red]")
        sys.exit(1)

    versioned = parse_versioned(parsed)
    if codec.is_wrapped(parsed):
        convention = "wrapped"
    elif versioned is not None:
        convention = "versioned"
    else:
        convention = "unknown"

    info = {
        "content_type": str(parsed),
        "supported": is_supported(parsed),
        "convention": convention,
        "subject": versioned.subject if versioned else None,
        "version": versioned.version if versioned else None,
        "schema_id": envelope.schema_id,
        "payload_size": len(envelope.payload),
    }

    if json_output or not sys.stdout.isatty():
        print(json.dumps(info, separators=(",", ":")), file=sys.stdout)  # noqa: T201
        return

    table = Table(title=str(file), show_header=False)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    for key, value in info.items():
        table.add_row(key, "-" if value is None else str(value))
    console_out.print(table)
