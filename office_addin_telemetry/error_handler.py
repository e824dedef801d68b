"""Unified CLI error handler for office-addin-telemetry commands."""

from __future__ import annotations

import functools
import logging
import traceback

import typer

from office_addin_telemetry.config import ENV_DEBUG, debug_mode
from office_addin_telemetry.errors import TelemetryError
from office_addin_telemetry.ui import console

logger = logging.getLogger("office_addin_telemetry.error_handler")


def _render_telemetry_error(e: TelemetryError) -> None:
    """Render a TelemetryError with Rich formatting and context."""
    console.print(f"\n[error]Error:[/error] {e}")

    # Context details (only in debug mode)
    if e.context and debug_mode():
        context_parts = [
            f"  [dim]{key}:[/dim] {value}" for key, value in e.context.items() if value
        ]
        if context_parts:
            console.print("[dim]Context:[/dim]")
            for part in context_parts:
                console.print(part)


def handle_errors(func):
    """Decorator that catches TelemetryError and renders formatted CLI output.

    Usage::

        @app.command()
        @handle_errors
        def my_command(...):
            ...
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except TelemetryError as e:
            _render_telemetry_error(e)
            if debug_mode():
                console.print(f"\n[dim]{traceback.format_exc()}[/dim]")
            raise typer.Exit(e.exit_code)
        except KeyboardInterrupt:
            console.print("\n[dim]Interrupted.[/dim]")
            raise typer.Exit(130)
        except (typer.Exit, typer.Abort, SystemExit):
            raise
        except Exception as e:
            logger.debug("Unexpected error in %s", func.__name__, exc_info=True)
            console.print(f"\n[error]Unexpected error:[/error] {e}")
            if debug_mode():
                console.print(f"\n[dim]{traceback.format_exc()}[/dim]")
            else:
                console.print(f"[dim]Set {ENV_DEBUG}=1 for full traceback.[/dim]")
            raise typer.Exit(1)

    return wrapper
