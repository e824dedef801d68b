"""Environment-driven settings for office-addin-telemetry.

Priority for the config file path (highest to lowest):
1. ``TelemetryOptions.telemetry_json_file_path``
2. OFFICE_ADDIN_TELEMETRY_JSON_PATH environment variable
3. ~/officeAddinTelemetry.json
"""
from __future__ import annotations

import os
from pathlib import Path

TELEMETRY_JSON_FILENAME = "officeAddinTelemetry.json"

ENV_JSON_PATH = "OFFICE_ADDIN_TELEMETRY_JSON_PATH"
ENV_DEBUG = "OFFICE_ADDIN_TELEMETRY_DEBUG"
ENV_DISABLE_EXPORT = "OFFICE_ADDIN_TELEMETRY_DISABLE_EXPORT"

_TRUTHY = ("1", "true", "yes", "on")


def default_telemetry_json_path() -> Path:
    """Return the config file path used when the caller supplies none."""
    override = os.environ.get(ENV_JSON_PATH, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / TELEMETRY_JSON_FILENAME


def debug_mode() -> bool:
    """Check if debug output is enabled via OFFICE_ADDIN_TELEMETRY_DEBUG."""
    return os.environ.get(ENV_DEBUG, "").lower() in _TRUTHY


def export_disabled() -> bool:
    """Check if the default sink should skip exporter setup."""
    return os.environ.get(ENV_DISABLE_EXPORT, "").lower() in _TRUTHY
