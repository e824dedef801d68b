"""Telemetry config file: whole-file JSON read / merge / write.

The document maps group names to opt-in records::

    {"telemetryInstances": {"<groupName>": {"telemetryEnabled": true}}}

Many unrelated groups can share one file. Every write goes through
read-merge-write so that records of other groups survive.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from office_addin_telemetry.errors import ConfigIOError, MalformedConfigError

logger = logging.getLogger("office_addin_telemetry.store")

INSTANCES_KEY = "telemetryInstances"
ENABLED_KEY = "telemetryEnabled"

PathLike = Union[str, Path]


def read_telemetry_json(path: PathLike) -> Optional[dict]:
    """Read the telemetry config document.

    Returns:
        The parsed document, or None if the file does not exist.

    Raises:
        MalformedConfigError: The file exists but is not a JSON object.
        ConfigIOError: The file exists but cannot be read.
    """
    path = Path(path)
    if not path.is_file():
        return None
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise ConfigIOError(f"Failed to read {path}: {e}", path=str(path)) from e
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedConfigError(str(path), detail=str(e)) from e
    if not isinstance(data, dict):
        raise MalformedConfigError(str(path), detail="top-level value is not an object")
    return data


def write_telemetry_json(document: dict, path: PathLike) -> None:
    """Write the full document, pretty-printed, replacing the file.

    The content goes to a temporary sibling first and is renamed into
    place. There is no protection against concurrent writers.
    """
    path = Path(path)
    payload = json.dumps(document, indent=2) + "\n"
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(payload)
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise ConfigIOError(f"Failed to write {path}: {e}", path=str(path)) from e
    logger.debug("Wrote telemetry config %s", path)


def group_name_exists(document: Optional[dict], group_name: str) -> bool:
    """Check whether ``group_name`` has a record in the document."""
    if not document:
        return False
    instances = document.get(INSTANCES_KEY)
    if not isinstance(instances, dict):
        return False
    return group_name in instances


def read_group_enabled(document: Optional[dict], group_name: str) -> Optional[bool]:
    """Return the stored opt-in value for a group, or None if absent.

    Older files store a bare boolean instead of a record; both are accepted.
    """
    if not group_name_exists(document, group_name):
        return None
    record = document[INSTANCES_KEY][group_name]
    if isinstance(record, dict):
        return bool(record.get(ENABLED_KEY, False))
    return bool(record)


def set_group_enabled(document: dict, group_name: str, enabled: bool) -> dict:
    """Insert or replace one group's record, leaving every other key alone."""
    instances = document.get(INSTANCES_KEY)
    if not isinstance(instances, dict):
        instances = {}
        document[INSTANCES_KEY] = instances
    instances[group_name] = {ENABLED_KEY: bool(enabled)}
    return document


def new_telemetry_document(group_name: str, enabled: bool) -> dict:
    """Build a document holding exactly one group."""
    return set_group_enabled({}, group_name, enabled)


def write_new_telemetry_json_file(group_name: str, enabled: bool, path: PathLike) -> dict:
    """Create a fresh config file containing only ``group_name``."""
    document = new_telemetry_document(group_name, enabled)
    write_telemetry_json(document, path)
    return document


def record_group_enabled(group_name: str, enabled: bool, path: PathLike) -> dict:
    """Read-merge-write a single group's opt-in value.

    A missing file is created. An unreadable or malformed file raises
    ConfigIOError rather than being replaced.
    """
    document = read_telemetry_json(path)
    if document is None:
        return write_new_telemetry_json_file(group_name, enabled, path)
    set_group_enabled(document, group_name, enabled)
    write_telemetry_json(document, path)
    return document


def prompt_for_telemetry(group_name: str, path: PathLike) -> bool:
    """Return True when ``group_name`` has no recorded answer yet."""
    try:
        document = read_telemetry_json(path)
    except ConfigIOError as e:
        logger.warning("%s", e)
        return True
    return not group_name_exists(document, group_name)
