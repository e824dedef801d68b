"""Data models for office-addin-telemetry."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from office_addin_telemetry.errors import TelemetryError

DEFAULT_PROMPT = (
    "Help improve {project} by allowing the collection of usage data. "
    "Would you like to participate? Y/N"
)


class TelemetryType(str, Enum):
    """Telemetry infrastructure that receives the data."""

    APPLICATION_INSIGHTS = "applicationInsights"


@dataclass
class TelemetryOptions:
    """Settings for one telemetry client.

    Only ``telemetry_enabled`` is ever persisted, under ``group_name`` in
    the config file. After the client resolves the opt-in decision it
    holds the effective answer for the rest of the process.
    """

    group_name: str
    instrumentation_key: Optional[str]
    project_name: str = ""
    prompt_question: Optional[str] = None
    raise_prompt: bool = True
    telemetry_enabled: bool = False
    telemetry_json_file_path: Optional[Union[str, Path]] = None
    telemetry_type: TelemetryType = TelemetryType.APPLICATION_INSIGHTS
    test_data: bool = False

    def default_prompt(self) -> str:
        return DEFAULT_PROMPT.format(project=self.project_name or "this tool")


@dataclass
class MaskedError:
    """An exception reduced to text, with user file paths removed."""

    name: str
    message: str
    stack: str


@dataclass
class ReportResult:
    """Outcome of a report_event / report_error call."""

    sent: int = 0
    skipped: bool = False
    errors: list[TelemetryError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def add_telemetry(data: dict, key: str, value: Any, elapsed_time: float = 0) -> dict:
    """Add ``key`` with its value and optional duration to event data."""
    data[key] = {"value": value, "elapsed_time": elapsed_time}
    return data


def delete_telemetry(data: dict, key: str) -> dict:
    """Remove ``key`` from event data. Missing keys are ignored."""
    data.pop(key, None)
    return data
