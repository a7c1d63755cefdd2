"""OpenTelemetry instrumentation of typo corrections.

Annotates the active server span of corrected requests and records how many
requests were corrected and how far off they were.

Install with: uv add "typoroute[otel]"
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from typoroute.rsgi import HTTPProtocol, HTTPScope, RSGIHTTPHandler

try:
    from opentelemetry import metrics, trace
    from opentelemetry.trace import TracerProvider
except ImportError as e:
    msg = (
        "OpenTelemetry middleware requires the 'otel' extra. "
        "Install with: uv add 'typoroute[otel]'"
    )
    raise ImportError(msg) from e

from typoroute.correction import typo_correction
from typoroute.tree import http_route

_DISTANCE_BUCKETS = (0.0, 1.0, 2.0, 3.0, 4.0, 5.0, 8.0, 13.0)


def otel(
    *,
    tracer_provider: TracerProvider | None = None,
    meter_provider: metrics.MeterProvider | None = None,
) -> Callable[[RSGIHTTPHandler], RSGIHTTPHandler]:
    """Create typo correction tracing and metrics middleware.

    Requests that reached their handler without correction pass straight
    through. For corrected ones, the current span (usually the server span
    started by the HTTP instrumentation in front of the router) gets:

        - ``typoroute.original_path``
        - ``typoroute.corrected_path``
        - ``typoroute.route``
        - ``typoroute.distance``

    If there is no recording span, a ``typo correction`` span is started
    around the handler to carry them.

    Metrics emitted:
        - ``typoroute.corrections`` (counter)
        - ``typoroute.correction.distance`` (histogram, edit distance)

    Args:
        tracer_provider: Optional TracerProvider. If None, uses the global provider.
        meter_provider: Optional MeterProvider. If None, uses the global provider.

    Example:
        router.use(otel())
    """
    tracer = trace.get_tracer("typoroute", tracer_provider=tracer_provider)
    meter = metrics.get_meter("typoroute", meter_provider=meter_provider)
    corrections_counter = meter.create_counter(
        "typoroute.corrections",
        unit="{request}",
        description="Number of requests routed to a corrected path.",
    )
    distance_histogram = meter.create_histogram(
        "typoroute.correction.distance",
        unit="{edit}",
        description="Edit distance between requested and corrected paths.",
        explicit_bucket_boundaries_advisory=_DISTANCE_BUCKETS,
    )

    def middleware(handler: RSGIHTTPHandler) -> RSGIHTTPHandler:
        async def corrected_handler(scope: HTTPScope, proto: HTTPProtocol) -> None:
            outcome = typo_correction.get()
            if outcome is None:
                await handler(scope, proto)
                return

            route = http_route.get("") or outcome.path
            attributes: dict[str, str | int] = {
                "typoroute.original_path": outcome.requested_path,
                "typoroute.corrected_path": outcome.rewritten_path,
                "typoroute.route": route,
                "typoroute.distance": outcome.distance,
            }
            metric_attrs: dict[str, str | int] = {
                "http.request.method": scope.method,
                "http.route": route,
            }
            corrections_counter.add(1, metric_attrs)
            distance_histogram.record(outcome.distance, metric_attrs)

            span = trace.get_current_span()
            if span.is_recording():
                span.set_attributes(attributes)
                await handler(scope, proto)
                return
            with tracer.start_as_current_span("typo correction", attributes=attributes):
                await handler(scope, proto)

        return corrected_handler

    return middleware
