"""OpenTelemetry tracing helpers for bondlint.

Every validation stage runs inside a span.  Without a configured SDK the
OpenTelemetry API hands out no-op tracers, so instrumentation costs nothing
unless a user opts in with ``bondlint --telemetry``.

Usage::

    from bondlint.utils.telemetry import stage_span

    with stage_span("bondlint.graph", **{ATTR_NODE_COUNT: 12}) as span:
        span.set_attribute(ATTR_EDGE_COUNT, 20)
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace

ATTR_ROOT = "bondlint.root"
ATTR_FILE_COUNT = "bondlint.files"
ATTR_MANIFEST_COUNT = "bondlint.manifests"
ATTR_NODE_COUNT = "bondlint.graph.nodes"
ATTR_EDGE_COUNT = "bondlint.graph.edges"
ATTR_FINDING_COUNT = "bondlint.findings"
ATTR_EXIT_CODE = "bondlint.exit_code"

_INSTRUMENTATION_NAME = "bondlint"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return a tracer; a no-op one unless :func:`configure_telemetry` ran."""
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


@contextmanager
def stage_span(name: str, **attributes: Any) -> Iterator[trace.Span]:
    """Open a span for one validation stage with initial attributes."""
    with get_tracer().start_as_current_span(name) as span:
        for key, value in attributes.items():
            span.set_attribute(key, value)
        yield span


def configure_telemetry(
    *,
    service_name: str = "bondlint",
    otlp_endpoint: str | None = None,
) -> None:
    """Install a tracer provider that exports spans (needs ``bondlint[otel]``).

    Spans go to the console, or to an OTLP/gRPC collector when
    *otlp_endpoint* is set.

    Raises
    ------
    ImportError
        If ``opentelemetry-sdk`` (or the OTLP exporter, when requested) is
        not installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace.export import (  # pyright: ignore[reportMissingImports]
            BatchSpanProcessor,
            ConsoleSpanExporter,
            SimpleSpanProcessor,
        )
    except ImportError as exc:
        msg = (
            "opentelemetry-sdk is required for configure_telemetry(). "
            "Install it with: pip install bondlint[otel]"
        )
        raise ImportError(msg) from exc

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))

    if otlp_endpoint is None:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    else:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (  # pyright: ignore[reportMissingImports]
                OTLPSpanExporter,
            )
        except ImportError as exc:
            msg = (
                "opentelemetry-exporter-otlp is required for OTLP export. "
                "Install it with: pip install bondlint[otel]"
            )
            raise ImportError(msg) from exc
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))

    trace.set_tracer_provider(provider)
