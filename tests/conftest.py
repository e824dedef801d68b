"""Shared fixtures for office-addin-telemetry tests."""
import json

import pytest

from office_addin_telemetry.models import TelemetryOptions
from office_addin_telemetry.sink import TelemetrySink, reset_default_sink


class RecordingSink(TelemetrySink):
    """Sink that keeps every record instead of sending it."""

    def __init__(self):
        super().__init__()
        self.events = []
        self.exceptions = []

    def track_event(self, name, properties=None, measurements=None):
        self.events.append((name, properties, measurements))

    def track_exception(self, error, properties=None):
        self.exceptions.append(error)


@pytest.fixture(autouse=True)
def telemetry_home(tmp_path, monkeypatch):
    """Point HOME and the config path at a temporary directory for every test.

    This ensures tests never touch the real ~/officeAddinTelemetry.json
    and never export anything.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.delenv("OFFICE_ADDIN_TELEMETRY_JSON_PATH", raising=False)
    monkeypatch.delenv("OFFICE_ADDIN_TELEMETRY_DEBUG", raising=False)
    monkeypatch.setenv("OFFICE_ADDIN_TELEMETRY_DISABLE_EXPORT", "1")
    yield home
    reset_default_sink()


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "officeAddinTelemetry.json"


@pytest.fixture
def write_config(config_path):
    """Write a raw document to the config path."""

    def _write(document):
        config_path.write_text(json.dumps(document, indent=2))
        return config_path

    return _write


@pytest.fixture
def read_config(config_path):
    def _read():
        return json.loads(config_path.read_text())

    return _read


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def make_options(config_path):
    """Build TelemetryOptions that write to the temporary config path."""

    def _make(**overrides):
        values = {
            "group_name": "my-tool",
            "project_name": "My Tool",
            "instrumentation_key": "00000000-0000-0000-0000-000000000000",
            "raise_prompt": False,
            "telemetry_enabled": True,
            "telemetry_json_file_path": config_path,
        }
        values.update(overrides)
        return TelemetryOptions(**values)

    return _make
