"""Telemetry helper for Office Add-in tooling - opt-in per tool group."""

from office_addin_telemetry.client import AddinTelemetry
from office_addin_telemetry.consent import OptInDecision, OptInPolicy, OptInState
from office_addin_telemetry.models import (
    ReportResult,
    TelemetryOptions,
    TelemetryType,
    add_telemetry,
    delete_telemetry,
)
from office_addin_telemetry.sink import get_default_sink, reset_default_sink

__all__ = [
    "AddinTelemetry",
    "OptInDecision",
    "OptInPolicy",
    "OptInState",
    "ReportResult",
    "TelemetryOptions",
    "TelemetryType",
    "add_telemetry",
    "delete_telemetry",
    "get_default_sink",
    "reset_default_sink",
]
