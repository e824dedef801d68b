#!/usr/bin/env python3
"""
office-addin-telemetry: send telemetry event and exception data
for Office Add-in tooling, gated by a per-tool opt-in.
"""
import typer

from office_addin_telemetry.error_handler import handle_errors
from office_addin_telemetry.ui import console, description_panel

DESCRIPTION = (
    "This package allows for sending telemetry event and exception data to the "
    "selected telemetry infrastructure (e.g. ApplicationInsights)."
)

app = typer.Typer(
    name="office-addin-telemetry",
    help="Send telemetry event and exception data.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool):
    if value:
        from office_addin_telemetry.sink import get_version

        console.print(get_version())
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show the version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """Send telemetry event and exception data."""


@app.command("help")
@handle_errors
def help_command():
    """Describe what this package does."""
    description_panel("office-addin-telemetry", DESCRIPTION)


def main():
    app()


if __name__ == "__main__":
    main()
