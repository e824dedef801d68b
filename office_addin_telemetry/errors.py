"""Custom exception hierarchy for office-addin-telemetry.

All package exceptions derive from TelemetryError. Each exception
carries an optional ``context`` dict with structured metadata
(group name, config path, event key, etc.) that callers and the CLI
error handler can inspect.

Exception hierarchy::

    TelemetryError
    ├── ConstructionError
    ├── ConfigIOError
    │   └── MalformedConfigError
    ├── SendError
    └── PromptError
"""
from __future__ import annotations

from typing import Optional


class TelemetryError(Exception):
    """Base class for all office-addin-telemetry exceptions.

    Args:
        message: Human-readable error description.
        context: Optional dict of structured metadata.
    """

    exit_code: int = 1

    def __init__(self, message: str, context: Optional[dict] = None):
        self.context = context or {}
        super().__init__(message)


# ── Client Setup ───────────────────────────────────────────────────

class ConstructionError(TelemetryError):
    """Raised when a telemetry client cannot be created."""

    def __init__(self, message: str, group_name: str = ""):
        super().__init__(message, context={"group": group_name})


# ── Config File ────────────────────────────────────────────────────

class ConfigIOError(TelemetryError):
    """Raised when the telemetry config file cannot be read or written."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message, context={"path": path})


class MalformedConfigError(ConfigIOError):
    """Raised when the telemetry config file exists but is not valid JSON."""

    def __init__(self, path: str, detail: str = ""):
        msg = f"Telemetry config file {path} is not valid JSON"
        if detail:
            msg += f": {detail}"
        super().__init__(msg, path=path)


# ── Operation Errors ───────────────────────────────────────────────

class SendError(TelemetryError):
    """Raised when a single record could not be handed to the sink."""

    def __init__(self, message: str, event_name: str = "", key: str = ""):
        super().__init__(
            message,
            context={"event": event_name, "key": key},
        )


class PromptError(TelemetryError):
    """Raised when the opt-in prompt fails."""

    def __init__(self, message: str, group_name: str = ""):
        super().__init__(message, context={"group": group_name})
