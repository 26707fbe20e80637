"""Tracing for build runs.

Modules take a tracer once at import time and open spans around lifecycle
events, tasks and conversions::

    _tracer = get_tracer(__name__)

    with _tracer.start_as_current_span("uim.convert") as span:
        span.set_attribute(ATTR_LOCALE, "en-US")

Only ``opentelemetry-api`` is required; its tracers record nothing until
:func:`configure_telemetry` installs an SDK provider (``pip install uim[otel]``).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from opentelemetry import trace

if TYPE_CHECKING:
    from uim.config import TelemetrySettings

logger = logging.getLogger(__name__)

ATTR_EVENT = "uim.event"
ATTR_PLUGIN_ID = "uim.plugin.id"
ATTR_TASK_TITLE = "uim.task.title"
ATTR_TASK_STATUS = "uim.task.status"
ATTR_LOCALE = "uim.locale"
ATTR_FILE_COUNT = "uim.files.count"
ATTR_COMMAND = "uim.command"


def get_tracer(name: str) -> trace.Tracer:
    """Return the tracer of module *name* from the global provider."""
    return trace.get_tracer(name)


def configure_telemetry(settings: TelemetrySettings) -> bool:
    """Install an SDK tracer provider described by *settings*.

    Returns ``False`` without touching the global provider when telemetry
    is disabled.

    Raises:
        ImportError: If the ``otel`` extra is not installed.
    """
    if not settings.enabled:
        return False

    sdk = _import_sdk()
    provider = sdk["TracerProvider"](
        resource=sdk["Resource"].create({"service.name": settings.service_name})
    )
    if settings.console:
        provider.add_span_processor(sdk["SimpleSpanProcessor"](sdk["ConsoleSpanExporter"]()))
    if settings.otlp_endpoint:
        exporter = _otlp_exporter(settings.otlp_endpoint)
        provider.add_span_processor(sdk["BatchSpanProcessor"](exporter))

    trace.set_tracer_provider(provider)
    logger.debug("Telemetry enabled for %s", settings.service_name)
    return True


def _import_sdk() -> dict[str, Any]:
    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace.export import (  # pyright: ignore[reportMissingImports]
            BatchSpanProcessor,
            ConsoleSpanExporter,
            SimpleSpanProcessor,
        )
    except ImportError as exc:
        raise ImportError(
            "opentelemetry-sdk is required for tracing. Install it with: pip install uim[otel]"
        ) from exc
    return {
        "Resource": Resource,
        "TracerProvider": TracerProvider,
        "BatchSpanProcessor": BatchSpanProcessor,
        "ConsoleSpanExporter": ConsoleSpanExporter,
        "SimpleSpanProcessor": SimpleSpanProcessor,
    }


def _otlp_exporter(endpoint: str) -> Any:
    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (  # pyright: ignore[reportMissingImports]
            OTLPSpanExporter,
        )
    except ImportError as exc:
        raise ImportError(
            "opentelemetry-exporter-otlp is required for OTLP export. "
            "Install it with: pip install uim[otel]"
        ) from exc
    return OTLPSpanExporter(endpoint=endpoint)
