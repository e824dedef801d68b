"""Analytics sink - OpenTelemetry export to Application Insights.

One sink handle serves the whole process. Clients receive it at
construction (``get_default_sink()`` unless one is passed explicitly),
configure it with their instrumentation key, and leave teardown to the
bounded shutdown registered at process exit.
"""

import atexit
import logging
import os
import platform
import uuid
from typing import Any, Optional

from office_addin_telemetry.config import export_disabled
from office_addin_telemetry.models import MaskedError

logger = logging.getLogger("office_addin_telemetry.sink")

# Singleton instance
_default_sink: "TelemetrySink | None" = None

ROLE_TAG = "ai.cloud.role"
ROLE_INSTANCE_TAG = "ai.cloud.roleInstance"
DEVICE_ID_TAG = "ai.device.id"
ACCOUNT_ID_TAG = "ai.user.accountId"
APP_VERSION_TAG = "ai.application.ver"

# Context tag -> OpenTelemetry resource attribute
TAG_ATTRIBUTES = {
    ROLE_TAG: "service.name",
    ROLE_INSTANCE_TAG: "service.instance.id",
    DEVICE_ID_TAG: "host.id",
    ACCOUNT_ID_TAG: "enduser.id",
    APP_VERSION_TAG: "service.version",
}


def _default_context_tags() -> dict[str, str]:
    return {
        ROLE_INSTANCE_TAG: platform.node(),
        DEVICE_ID_TAG: f"{uuid.getnode():012x}",
        ACCOUNT_ID_TAG: os.environ.get("USER") or os.environ.get("USERNAME", ""),
    }


class TelemetrySink:
    """Sink that accepts records and drops them.

    Base class for real backends, and the sink used when no backend is
    available. ``sampling_percentage`` is 100 (send everything) or 0
    (send nothing).
    """

    def __init__(self):
        self.instrumentation_key: Optional[str] = None
        self.sampling_percentage: float = 100
        self.context_tags: dict[str, str] = _default_context_tags()
        self.started = False

    def setup(self, instrumentation_key: str) -> "TelemetrySink":
        self.instrumentation_key = instrumentation_key
        return self

    def start(self) -> None:
        self.started = True

    def track_event(
        self,
        name: str,
        properties: Optional[dict[str, Any]] = None,
        measurements: Optional[dict[str, float]] = None,
    ) -> None:
        pass

    def track_exception(self, error: MaskedError, properties: Optional[dict[str, Any]] = None) -> None:
        pass

    def flush(self) -> None:
        pass

    def shutdown(self) -> None:
        pass


def _attribute_value(value: Any) -> Any:
    if isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


def _percentage_sampler(sink: TelemetrySink):
    """Build a sampler that follows ``sink.sampling_percentage`` at send time."""
    from opentelemetry.sdk.trace.sampling import Sampler, TraceIdRatioBased

    class PercentageSampler(Sampler):
        def should_sample(
            self,
            parent_context,
            trace_id,
            name,
            kind=None,
            attributes=None,
            links=None,
            trace_state=None,
        ):
            ratio = max(0.0, min(100.0, float(sink.sampling_percentage))) / 100
            return TraceIdRatioBased(ratio).should_sample(
                parent_context, trace_id, name, kind, attributes, links, trace_state
            )

        def get_description(self) -> str:
            return f"PercentageSampler{{{sink.sampling_percentage}}}"

    return PercentageSampler()


class OpenTelemetrySink(TelemetrySink):
    """Application Insights sink built on OpenTelemetry, for short-lived processes.

    Key constraints:
    - Strict 2-second flush timeout (a CLI must never hang)
    - Spans are exported in the background, never awaited by callers
    - Resource attributes are taken from ``context_tags`` at ``start()``,
      so tags removed before that are never sent
    """

    def __init__(self, service_name: str = "office-addin-telemetry"):
        super().__init__()
        self.context_tags[ROLE_TAG] = service_name
        self.context_tags[APP_VERSION_TAG] = get_version()
        self._provider = None
        self._tracer = None

    def start(self) -> None:
        """Initialize OpenTelemetry with the Azure Monitor exporter."""
        if self.started:
            return
        self.started = True

        if export_disabled():
            logger.debug("Telemetry export disabled by environment")
            return

        try:
            from opentelemetry.sdk.resources import Resource
            from opentelemetry.sdk.trace import TracerProvider
            from opentelemetry.sdk.trace.export import BatchSpanProcessor

            resource = Resource.create(self._resource_attributes())
            provider = TracerProvider(resource=resource, sampler=_percentage_sampler(self))

            exporter = self._create_exporter()
            if exporter:
                processor = BatchSpanProcessor(
                    exporter,
                    max_queue_size=100,
                    max_export_batch_size=50,
                    schedule_delay_millis=1000,
                )
                provider.add_span_processor(processor)

            self._provider = provider
            self._tracer = provider.get_tracer("office_addin_telemetry")

            # Register bounded shutdown
            atexit.register(self.shutdown)

            logger.debug("OpenTelemetry sink initialized")

        except ImportError:
            logger.debug("OpenTelemetry SDK not installed, telemetry will be dropped")
        except Exception:
            logger.debug("Failed to initialize OpenTelemetry", exc_info=True)

    def _create_exporter(self):
        try:
            from azure.monitor.opentelemetry.exporter import AzureMonitorTraceExporter
        except ImportError:
            logger.debug("Azure Monitor exporter not available, telemetry spans will not be exported")
            return None
        try:
            return AzureMonitorTraceExporter(
                connection_string=f"InstrumentationKey={self.instrumentation_key}"
            )
        except ValueError as e:
            logger.warning("Invalid instrumentation key, telemetry will not be exported: %s", e)
            return None

    def _resource_attributes(self) -> dict[str, str]:
        return {
            TAG_ATTRIBUTES.get(tag, tag): value
            for tag, value in self.context_tags.items()
            if value
        }

    def track_event(self, name, properties=None, measurements=None) -> None:
        if self._tracer is None:
            return
        span = self._tracer.start_span(name)
        try:
            for key, value in (properties or {}).items():
                span.set_attribute(key, _attribute_value(value))
            for key, value in (measurements or {}).items():
                span.set_attribute(key, float(value))
        finally:
            span.end()

    def track_exception(self, error, properties=None) -> None:
        if self._tracer is None:
            return
        from opentelemetry.trace import Status, StatusCode

        span = self._tracer.start_span(error.name)
        try:
            for key, value in (properties or {}).items():
                span.set_attribute(key, _attribute_value(value))
            span.add_event(
                "exception",
                {
                    "exception.type": error.name,
                    "exception.message": error.message,
                    "exception.stacktrace": error.stack,
                },
            )
            span.set_status(Status(StatusCode.ERROR, error.message))
        finally:
            span.end()

    def flush(self) -> None:
        if self._provider:
            self._provider.force_flush(timeout_millis=2000)

    def shutdown(self) -> None:
        """Flush pending spans and stop the exporter."""
        if self._provider:
            provider, self._provider = self._provider, None
            self._tracer = None
            try:
                provider.shutdown()
            except Exception:
                logger.debug("Telemetry sink shutdown failed", exc_info=True)


def get_version() -> str:
    """Get package version safely."""
    try:
        from importlib.metadata import version

        return version("office-addin-telemetry")
    except Exception:
        return "0.0.0"


def get_default_sink() -> TelemetrySink:
    """Get the process-wide sink, creating it on first use."""
    global _default_sink
    if _default_sink is None:
        _default_sink = OpenTelemetrySink()
    return _default_sink


def set_default_sink(sink: TelemetrySink) -> None:
    """Replace the process-wide sink."""
    global _default_sink
    _default_sink = sink


def reset_default_sink() -> None:
    """Shut down and forget the process-wide sink."""
    global _default_sink
    if _default_sink is not None:
        _default_sink.shutdown()
    _default_sink = None
