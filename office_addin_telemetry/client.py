"""Telemetry client: opt-in gating, file path masking, and sink pass-through."""
from __future__ import annotations

import logging
import re
import traceback
from typing import Any, Optional

from office_addin_telemetry.config import default_telemetry_json_path
from office_addin_telemetry.consent import OptInDecision, OptInPolicy, Prompter
from office_addin_telemetry.errors import (
    ConstructionError,
    PromptError,
    SendError,
    TelemetryError,
)
from office_addin_telemetry.models import (
    MaskedError,
    ReportResult,
    TelemetryOptions,
    TelemetryType,
    add_telemetry,
    delete_telemetry,
)
from office_addin_telemetry.sink import (
    ACCOUNT_ID_TAG,
    DEVICE_ID_TAG,
    ROLE_INSTANCE_TAG,
    TelemetrySink,
    get_default_sink,
)

logger = logging.getLogger("office_addin_telemetry.client")

# Machine name, device id and account id never leave the process
SENSITIVE_TAGS = (ROLE_INSTANCE_TAG, DEVICE_ID_TAG, ACCOUNT_ID_TAG)

DURATION_MEASUREMENT = "DurationElapsed"

# Everything from the first to the last slash on a line, plus the file name
_POSIX_PATH = re.compile(r"/(?:.*/)?[^/\s'\"]*")
_WINDOWS_PATH = re.compile(r"\w:\\(?:[^\\\n]+\\)+")


class AddinTelemetry:
    """Sends events and errors for one telemetry group.

    Construction resolves the group's opt-in answer (prompting on first
    use when ``raise_prompt`` is set), configures the sink, and strips
    identifying context tags before anything is sent. Failures are
    logged and kept on ``init_error``; the client then stays silent.
    """

    add_telemetry = staticmethod(add_telemetry)
    delete_telemetry = staticmethod(delete_telemetry)

    def __init__(
        self,
        options: TelemetryOptions,
        sink: Optional[TelemetrySink] = None,
        prompt: Optional[Prompter] = None,
    ):
        self.options = options
        self.policy = OptInPolicy(options, prompt=prompt)
        self.decision: Optional[OptInDecision] = None
        self.init_error: Optional[TelemetryError] = None
        self._sink = sink or get_default_sink()
        self._events_sent = 0
        self._exceptions_sent = 0

        try:
            self._initialize()
        except TelemetryError as e:
            self.init_error = e
            self.options.telemetry_enabled = False
            logger.error("Failed to create telemetry object: %s", e)

    def _initialize(self) -> None:
        opts = self.options
        if not opts.instrumentation_key:
            raise ConstructionError(
                "Instrumentation key not defined - cannot create telemetry object",
                group_name=opts.group_name,
            )
        if opts.telemetry_type != TelemetryType.APPLICATION_INSIGHTS:
            raise ConstructionError(
                f"Unsupported telemetry type: {opts.telemetry_type}",
                group_name=opts.group_name,
            )

        if opts.prompt_question is None:
            opts.prompt_question = opts.default_prompt()
        if opts.telemetry_json_file_path is None:
            opts.telemetry_json_file_path = default_telemetry_json_path()

        self._sink.setup(opts.instrumentation_key)
        self._remove_sensitive_information()
        self._sink.start()

        try:
            self.decision = self.policy.resolve()
        except PromptError as e:
            opts.telemetry_enabled = False
            self.report_error("TelemetryOptIn", e)
            return

        if self.decision.prompted and not opts.test_data:
            from office_addin_telemetry.ui import opt_in_message

            opt_in_message(self.decision.enabled)

    def _remove_sensitive_information(self) -> None:
        for tag in SENSITIVE_TAGS:
            self._sink.context_tags.pop(tag, None)

    # ── Reporting ──

    def report_event(self, event_name: str, data: dict[str, Any]) -> ReportResult:
        """Send one event per key in ``data`` if the user opted in.

        Each value is a ``{"value": ..., "elapsed_time": ...}`` record as
        built by ``add_telemetry``. A failing key is reported through
        ``report_error`` and does not stop the remaining keys.
        """
        result = ReportResult()
        if not self.telemetry_opted_in():
            result.skipped = True
            return result

        for key, item in data.items():
            value, elapsed_time = _unpack(item)
            try:
                if not self.options.test_data:
                    self._sink.track_event(
                        event_name,
                        properties={key: value},
                        measurements={DURATION_MEASUREMENT: elapsed_time},
                    )
                self._events_sent += 1
                result.sent += 1
            except Exception as e:
                error = SendError(f"Failed to send '{key}': {e}", event_name=event_name, key=key)
                error.__cause__ = e
                logger.debug("Event %s failed for key %s", event_name, key, exc_info=True)
                result.errors.append(error)
                self.report_error("sendTelemetryEvents", error)
        return result

    def report_error(self, error_name: str, err: BaseException) -> ReportResult:
        """Send an exception with file paths masked.

        Not gated by the opt-in answer.
        """
        result = ReportResult()
        if self.init_error is not None:
            result.skipped = True
            return result

        try:
            masked = self.mask_file_paths(err, name=error_name)
            if not self.options.test_data:
                self._sink.track_exception(masked)
            self._exceptions_sent += 1
            result.sent = 1
        except Exception as e:
            logger.warning("Failed to report error %s: %s", error_name, e)
            error = SendError(f"Failed to report error '{error_name}': {e}", event_name=error_name)
            error.__cause__ = e
            result.errors.append(error)
        return result

    def mask_file_paths(self, err: BaseException, name: Optional[str] = None) -> MaskedError:
        """Reduce an exception to text with user file paths removed."""
        message = str(err)
        stack = "".join(traceback.format_exception(type(err), err, err.__traceback__))
        message = _POSIX_PATH.sub("", message)
        stack = _POSIX_PATH.sub("", stack)
        stack = _WINDOWS_PATH.sub("", stack)
        return MaskedError(name=name or type(err).__name__, message=message, stack=stack)

    # ── Opt-in ──

    def telemetry_opt_in(self, test_data: Optional[bool] = None, test_response: str = "") -> OptInDecision:
        """Ask the opt-in question once and record the answer.

        With ``test_data`` the prompt is skipped and ``test_response`` is
        used as the answer.
        """
        if test_data is None:
            test_data = self.options.test_data
        try:
            response = test_response if test_data else self.policy.ask()
        except PromptError as e:
            self.options.telemetry_enabled = False
            self.report_error("TelemetryOptIn", e)
            return OptInDecision(self.policy.state, False, error=e)

        self.decision = self.policy.record_answer(response)
        if not self.options.test_data:
            from office_addin_telemetry.ui import opt_in_message

            opt_in_message(self.decision.enabled)
        return self.decision

    def telemetry_opted_in(self) -> bool:
        return bool(self.options.telemetry_enabled)

    # ── Sampling switch ──

    def set_telemetry_off(self) -> None:
        """Stop sending at the sink. Independent of the recorded opt-in."""
        self._sink.sampling_percentage = 0

    def set_telemetry_on(self) -> None:
        """Resume sending at the sink. On by default."""
        self._sink.sampling_percentage = 100

    def is_telemetry_on(self) -> bool:
        return self._sink.sampling_percentage == 100

    # ── Accessors ──

    def get_telemetry_key(self) -> Optional[str]:
        return self.options.instrumentation_key

    def get_events_sent(self) -> int:
        return self._events_sent

    def get_exceptions_sent(self) -> int:
        return self._exceptions_sent

    def flush(self) -> None:
        self._sink.flush()


def _unpack(item: Any) -> tuple[Any, float]:
    if isinstance(item, dict):
        return item.get("value"), item.get("elapsed_time", 0) or 0
    return item, 0
