"""
OpenTelemetry metrics for the export pipeline.

Instruments are created on an OpenTelemetry meter. When metrics export is
enabled, init_metrics() installs an SDK MeterProvider that pushes to an
OTLP-compatible collector (e.g., SigNoz, Prometheus via OTLP receiver);
otherwise the instruments bind to the global meter, which is a no-op
unless the host application configured one.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from opentelemetry import metrics as otel_metrics

from autodoc.config import AutodocSettings, get_settings

if TYPE_CHECKING:
    from opentelemetry.metrics import Meter
    from opentelemetry.sdk.metrics import MeterProvider as SdkMeterProvider

logger = logging.getLogger(__name__)

METER_NAME = "autodoc"

# Global metrics instance
_metrics: ExportMetrics | None = None
_meter_provider: SdkMeterProvider | None = None


class ExportMetrics:
    """Counters and histograms recorded by the export coordinator and expander."""

    def __init__(self, meter: Meter | None = None) -> None:
        self._meter = meter or otel_metrics.get_meter(METER_NAME)
        self._exports = self._meter.create_counter(
            name="autodoc.exports",
            description="Schema exports by renderer and outcome",
            unit="exports",
        )
        self._render_duration = self._meter.create_histogram(
            name="autodoc.render.duration",
            description="Time spent in the external renderer",
            unit="ms",
        )
        self._dereferences = self._meter.create_counter(
            name="autodoc.dereferences",
            description="Schema dereference requests by outcome",
            unit="requests",
        )

    def record_export(self, renderer: str, outcome: str) -> None:
        self._exports.add(1, {"renderer": renderer, "outcome": outcome})

    def record_render_duration(self, renderer: str, duration_ms: float) -> None:
        self._render_duration.record(duration_ms, {"renderer": renderer})

    def record_dereference(self, outcome: str) -> None:
        self._dereferences.add(1, {"outcome": outcome})


def _setup_otel(settings: AutodocSettings) -> SdkMeterProvider:
    """Set up an OpenTelemetry meter provider with a periodic OTLP exporter."""
    from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
    from opentelemetry.sdk.metrics import MeterProvider
    from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
    from opentelemetry.sdk.resources import Resource

    resource = Resource.create(
        {
            "service.name": settings.service_name,
            "deployment.environment": settings.service_environment,
        }
    )
    exporter = OTLPMetricExporter(
        endpoint=settings.otlp_endpoint,
        insecure=settings.is_otlp_insecure,
    )
    reader = PeriodicExportingMetricReader(exporter)
    return MeterProvider(resource=resource, metric_readers=[reader])


def init_metrics(settings: AutodocSettings | None = None) -> ExportMetrics:
    """
    Initialize the global export metrics.

    Installs the OTLP exporter when ``metrics_enabled`` is set.

    Args:
        settings: Optional custom AutodocSettings instance (uses global if not provided)

    Returns:
        The global ExportMetrics instance
    """
    global _metrics, _meter_provider

    if _metrics is not None:
        logger.warning("Metrics already initialized, returning existing instance")
        return _metrics

    s = settings or get_settings()
    if s.metrics_enabled:
        _meter_provider = _setup_otel(s)
        _metrics = ExportMetrics(_meter_provider.get_meter(METER_NAME))
        logger.info("OTLP metrics export enabled (endpoint=%s)", s.otlp_endpoint)
    else:
        _metrics = ExportMetrics()
    return _metrics


def get_metrics() -> ExportMetrics:
    """Get the global metrics instance, creating a global-meter one on first use."""
    global _metrics
    if _metrics is None:
        _metrics = ExportMetrics()
    return _metrics


def shutdown_metrics() -> None:
    """Flush pending metrics and release the meter provider."""
    global _metrics, _meter_provider

    if _meter_provider is not None:
        _meter_provider.force_flush()
        _meter_provider.shutdown()
        _meter_provider = None
    _metrics = None
