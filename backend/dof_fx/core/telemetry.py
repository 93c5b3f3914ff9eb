"""OpenTelemetry wiring and the pipeline's own instruments.

Instruments are created against the global meter, so they are no-ops until
``setup_telemetry`` installs a real provider. Code that records resolution
outcomes never has to check whether telemetry is on.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, NamedTuple

from fastapi import FastAPI
from opentelemetry import metrics, trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.metrics import Counter, Histogram
from opentelemetry.sdk._logs import LoggerProvider
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from opentelemetry.semconv.resource import ResourceAttributes
from sqlalchemy.ext.asyncio import AsyncEngine

from dof_fx import __version__
from dof_fx.config import AppSettings

logger = logging.getLogger(__name__)

METER_NAME = "dof_fx"
EXPORT_INTERVAL_MS = 10000

_state = {"active": False}


class PipelineInstruments(NamedTuple):
    resolutions: Counter
    attempts: Histogram
    divergences: Counter


@lru_cache(maxsize=1)
def pipeline_instruments() -> PipelineInstruments:
    """Counters and histograms shared by the resolver and the cross-validator."""

    meter = metrics.get_meter(METER_NAME, __version__)
    return PipelineInstruments(
        resolutions=meter.create_counter(
            "dof_fx.resolutions",
            unit="1",
            description="DOF rate resolutions by outcome",
        ),
        attempts=meter.create_histogram(
            "dof_fx.resolution.attempts",
            unit="1",
            description="Candidate dates tried before a DOF rate was found",
        ),
        divergences=meter.create_counter(
            "dof_fx.divergences",
            unit="1",
            description="DOF vs FIX comparisons above the configured threshold",
        ),
    )


def setup_telemetry(app: FastAPI, settings: AppSettings, engine: AsyncEngine | None = None) -> bool:
    """Export traces, metrics and logs over OTLP when ``telemetry_enabled``.

    FastAPI requests, the DOF and Banxico httpx calls and the SQLAlchemy
    engine are instrumented. Returns whether telemetry is active.
    """

    if _state["active"]:
        return True
    if not settings.telemetry_enabled:
        logger.info("Telemetry disabled via configuration")
        return False

    resource = Resource.create(
        {
            ResourceAttributes.SERVICE_NAME: settings.telemetry_service_name or settings.app_name,
            ResourceAttributes.SERVICE_NAMESPACE: "dof-fx",
            ResourceAttributes.SERVICE_VERSION: __version__,
        }
    )
    exporter_options: dict[str, Any] = {"insecure": settings.telemetry_otlp_insecure}
    if settings.telemetry_otlp_endpoint:
        exporter_options["endpoint"] = settings.telemetry_otlp_endpoint

    tracer_provider = TracerProvider(
        resource=resource,
        sampler=ParentBased(TraceIdRatioBased(settings.telemetry_sample_ratio)),
    )
    tracer_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(**exporter_options)))
    trace.set_tracer_provider(tracer_provider)

    meter_provider = MeterProvider(
        resource=resource,
        metric_readers=[
            PeriodicExportingMetricReader(
                OTLPMetricExporter(**exporter_options),
                export_interval_millis=EXPORT_INTERVAL_MS,
            )
        ],
    )
    metrics.set_meter_provider(meter_provider)

    logger_provider = LoggerProvider(resource=resource)
    logger_provider.add_log_record_processor(BatchLogRecordProcessor(OTLPLogExporter(**exporter_options)))
    set_logger_provider(logger_provider)
    LoggingInstrumentor().instrument(set_logging_format=False)

    FastAPIInstrumentor.instrument_app(app, tracer_provider=tracer_provider, meter_provider=meter_provider)
    HTTPXClientInstrumentor().instrument(tracer_provider=tracer_provider)
    if engine is not None:
        SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine, tracer_provider=tracer_provider)

    _state["active"] = True
    logger.info(
        "Telemetry exporting to %s as %s",
        settings.telemetry_otlp_endpoint or "the default OTLP endpoint",
        settings.telemetry_service_name,
    )
    return True


__all__ = ["PipelineInstruments", "pipeline_instruments", "setup_telemetry"]
