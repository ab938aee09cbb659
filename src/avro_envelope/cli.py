"""Main CLI entry point for avro-envelope using Cyclopts."""

from cyclopts import App

from avro_envelope.cmd import decode_cmd, inspect_cmd

app = App(
    name="avro-envelope",
    help="Inspect and decode Avro messages resolved against a schema registry.",
    help_format="rich",
)

app.command(name="decode")(decode_cmd.decode)
app.command(name="inspect")(inspect_cmd.inspect)


if __name__ == "__main__":
    app()
