"""OpenTelemetry metrics and logging configuration for the LGTM stack.

Services record metrics through the OpenTelemetry API (`metrics.get_meter`),
which is a no-op until `setup_telemetry` installs a provider. Workers call
`setup_telemetry` only when an OTLP endpoint is configured.
"""

import logging
import os
from typing import Optional

from opentelemetry import metrics
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource


def _resource(service_name: str) -> Resource:
    return Resource.create(
        {
            "service.name": service_name,
            "service.namespace": "adlibrary",
            "deployment.environment": os.getenv("ENVIRONMENT", "production"),
        }
    )


def setup_metrics(
    service_name: str,
    otlp_endpoint: str,
    export_interval_millis: int = 60000,
) -> metrics.Meter:
    """Configure OpenTelemetry metrics export.

    Args:
        service_name: Name of the service (e.g., "metadata-worker")
        otlp_endpoint: OTLP HTTP endpoint
        export_interval_millis: Metric export interval in milliseconds

    Returns:
        Meter instance
    """
    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=f"{otlp_endpoint}/v1/metrics"),
        export_interval_millis=export_interval_millis,
    )

    provider = MeterProvider(
        resource=_resource(service_name),
        metric_readers=[metric_reader],
    )
    metrics.set_meter_provider(provider)

    return metrics.get_meter(__name__)


def setup_logging_export(
    service_name: str,
    otlp_endpoint: str,
    log_level: int = logging.INFO,
) -> LoggerProvider:
    """Configure OpenTelemetry log export.

    Args:
        service_name: Name of the service
        otlp_endpoint: OTLP HTTP endpoint
        log_level: Minimum log level to export

    Returns:
        LoggerProvider instance
    """
    logger_provider = LoggerProvider(resource=_resource(service_name))
    logger_provider.add_log_record_processor(
        BatchLogRecordProcessor(OTLPLogExporter(endpoint=f"{otlp_endpoint}/v1/logs"))
    )
    set_logger_provider(logger_provider)

    handler = LoggingHandler(level=log_level, logger_provider=logger_provider)
    logging.getLogger().addHandler(handler)

    return logger_provider


def setup_telemetry(
    service_name: str,
    otlp_endpoint: Optional[str] = None,
    enable_logs: bool = True,
) -> Optional[metrics.Meter]:
    """Configure metrics and log export if an endpoint is available.

    Args:
        service_name: Name of the service
        otlp_endpoint: OTLP HTTP endpoint (default: from OTLP_ENDPOINT env var)
        enable_logs: Whether to export logs via OTLP

    Returns:
        Meter instance, or None when no endpoint is configured
    """
    if otlp_endpoint is None:
        otlp_endpoint = os.getenv("OTLP_ENDPOINT", "")
    if not otlp_endpoint:
        return None

    meter = setup_metrics(service_name, otlp_endpoint)
    if enable_logs:
        setup_logging_export(service_name, otlp_endpoint)
    return meter
