"""Telemetry opt-in policy: decide whether to prompt and record the answer.

A group moves through three states during one process::

    UNKNOWN ──(raise_prompt, no record)──▶ PENDING_PROMPT ──(answer)──▶ RECORDED
       └──────────(record exists / default written)───────────────────────┘

Once RECORDED, the answer lives on the TelemetryOptions object and the
config file is not read again.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from office_addin_telemetry.config import default_telemetry_json_path
from office_addin_telemetry.errors import ConfigIOError, PromptError, TelemetryError
from office_addin_telemetry.models import TelemetryOptions
from office_addin_telemetry.store import (
    group_name_exists,
    read_group_enabled,
    read_telemetry_json,
    set_group_enabled,
    write_new_telemetry_json_file,
    write_telemetry_json,
)

logger = logging.getLogger("office_addin_telemetry.consent")

Prompter = Callable[[str], str]


class OptInState(str, Enum):
    UNKNOWN = "unknown"
    PENDING_PROMPT = "pending_prompt"
    RECORDED = "recorded"


@dataclass
class OptInDecision:
    """Result of resolving a group's opt-in state."""

    state: OptInState
    enabled: bool
    prompted: bool = False
    written: bool = False
    error: Optional[TelemetryError] = None


def normalize_answer(response: str) -> bool:
    """'y' or 'Y' opts in; anything else opts out."""
    return (response or "").lower() == "y"


def _ask_with_console(question: str) -> str:
    from office_addin_telemetry.ui import ask_question

    return ask_question(question)


class OptInPolicy:
    """Resolves and records the opt-in answer for one telemetry group."""

    def __init__(self, options: TelemetryOptions, prompt: Optional[Prompter] = None):
        self.options = options
        self._prompt = prompt or _ask_with_console
        self.state = OptInState.UNKNOWN

    @property
    def path(self) -> Path:
        if self.options.telemetry_json_file_path is None:
            self.options.telemetry_json_file_path = default_telemetry_json_path()
        return Path(self.options.telemetry_json_file_path)

    @property
    def question(self) -> str:
        return self.options.prompt_question or self.options.default_prompt()

    def resolve(self) -> OptInDecision:
        """Consult the config file, prompting on first use when requested.

        Raises:
            PromptError: The interactive prompt failed. State stays
                PENDING_PROMPT and nothing is written.
        """
        opts = self.options
        document = self._read()

        if not opts.test_data and opts.raise_prompt and not group_name_exists(document, opts.group_name):
            self.state = OptInState.PENDING_PROMPT
            return self.record_answer(self.ask())

        stored = read_group_enabled(document, opts.group_name)
        if stored is not None:
            opts.telemetry_enabled = stored
            self.state = OptInState.RECORDED
            logger.debug("Using recorded opt-in for %s: %s", opts.group_name, stored)
            return OptInDecision(OptInState.RECORDED, stored)

        return self._record(opts.telemetry_enabled, document=document, prompted=False)

    def ask(self) -> str:
        """Block until the user answers the opt-in question."""
        try:
            return self._prompt(self.question)
        except (KeyboardInterrupt, EOFError) as e:
            raise PromptError("Opt-in prompt was interrupted", group_name=self.options.group_name) from e
        except Exception as e:
            raise PromptError(f"Opt-in prompt failed: {e}", group_name=self.options.group_name) from e

    def record_answer(self, response: str) -> OptInDecision:
        """Normalize a prompt answer and persist it for this group."""
        return self._record(normalize_answer(response), document=self._read(), prompted=True)

    def _read(self) -> Optional[dict]:
        try:
            return read_telemetry_json(self.path)
        except ConfigIOError as e:
            logger.warning("%s; treating as no existing telemetry config", e)
            return None

    def _record(self, enabled: bool, document: Optional[dict], prompted: bool) -> OptInDecision:
        group = self.options.group_name
        self.options.telemetry_enabled = enabled
        self.state = OptInState.RECORDED
        try:
            if document is None:
                write_new_telemetry_json_file(group, enabled, self.path)
            else:
                set_group_enabled(document, group, enabled)
                write_telemetry_json(document, self.path)
        except ConfigIOError as e:
            logger.warning("Could not record telemetry opt-in for %s: %s", group, e)
            return OptInDecision(self.state, enabled, prompted=prompted, error=e)

        logger.info("Telemetry %s for %s", "enabled" if enabled else "disabled", group)
        return OptInDecision(self.state, enabled, prompted=prompted, written=True)
