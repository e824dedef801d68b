"""Shared UI theme, console, and prompt helpers for office-addin-telemetry."""

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.theme import Theme

# ── Theme ──
TELEMETRY_THEME = Theme({
    "info": "cyan",
    "success": "bold green",
    "warning": "yellow",
    "error": "bold red",
    "question": "bold blue",
    "muted": "dim",
})

console = Console(theme=TELEMETRY_THEME)


def ask_question(question: str) -> str:
    """Ask the opt-in question and block until the user answers."""
    return Prompt.ask(f"[question]{question}[/question]\n", console=console, default="")


def opt_in_message(enabled: bool) -> None:
    """Confirm the recorded opt-in answer to the user."""
    if enabled:
        console.print("[success]Telemetry will be sent![/success]")
    else:
        console.print("[success]You will not be sending telemetry[/success]")


def description_panel(title: str, content: str) -> None:
    """Display a short description in a bordered panel."""
    console.print(Panel(
        content,
        title=f"[bold cyan]{title}[/bold cyan]",
        border_style="cyan",
        padding=(0, 2),
    ))
