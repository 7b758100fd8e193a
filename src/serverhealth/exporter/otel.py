"""OpenTelemetry exporter - pushes snapshot gauges via OTLP/HTTP."""

from __future__ import annotations

import logging
from typing import Any

from opentelemetry import metrics
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource, SERVICE_NAME

from ..config import OtelExporterConfig
from ..snapshot import Snapshot
from .base import BaseExporter

logger = logging.getLogger(__name__)

# name -> (unit, description)
GAUGES: dict[str, tuple[str, str]] = {
    "system.cpu.usage_percent": ("%", "Overall CPU usage percentage"),
    "system.memory.usage_percent": ("%", "Memory usage percentage"),
    "system.disk.usage_percent": ("%", "Filesystem space usage percentage"),
    "system.thermal.temperature_celsius": ("Cel", "Thermal zone temperature"),
    "system.internet.download_mbps": ("Mbit/s", "Last measured download throughput"),
    "system.internet.upload_mbps": ("Mbit/s", "Last measured upload throughput"),
}


def snapshot_observations(snapshot: Snapshot) -> list[tuple[str, float, dict[str, str]]]:
    """Flatten a snapshot into ``(gauge name, value, attributes)`` triples."""
    points: list[tuple[str, float, dict[str, str]]] = [
        ("system.cpu.usage_percent", snapshot.cpu.usage_percent, {}),
        ("system.memory.usage_percent", snapshot.memory.usage_percent, {}),
    ]
    for disk in snapshot.disks:
        points.append(("system.disk.usage_percent", disk.usage_percent, {"path": disk.path}))
    for zone in snapshot.temperature:
        points.append(("system.thermal.temperature_celsius", zone.temperature_celsius, {"zone": zone.name}))
    if snapshot.internet_speed.available:
        points.append(("system.internet.download_mbps", snapshot.internet_speed.download_mbps, {}))
        points.append(("system.internet.upload_mbps", snapshot.internet_speed.upload_mbps, {}))
    return points


class OtelExporter(BaseExporter):
    """Exports snapshot values to an OpenTelemetry endpoint.

    Each call to :meth:`export` records gauge observations via the OTel SDK;
    the SDK's ``PeriodicExportingMetricReader`` flushes them to the configured
    OTLP/HTTP endpoint. Tests may pass their own *reader*.
    """

    def __init__(self, config: OtelExporterConfig, reader: MetricReader | None = None) -> None:
        self._config = config
        resource = Resource.create({SERVICE_NAME: config.service_name})

        own_reader = reader is None
        if reader is None:
            exporter_kwargs: dict[str, Any] = {
                "endpoint": f"{config.endpoint.rstrip('/')}/v1/metrics",
            }
            if config.headers:
                exporter_kwargs["headers"] = config.headers
            reader = PeriodicExportingMetricReader(
                OTLPMetricExporter(**exporter_kwargs),
                export_interval_millis=config.export_interval_ms,
            )

        self._provider = MeterProvider(resource=resource, metric_readers=[reader])
        if own_reader:
            metrics.set_meter_provider(self._provider)
        self._meter = self._provider.get_meter("serverhealth")
        self._gauges: dict[str, Any] = {}

        logger.info(
            "OtelExporter initialized → %s (service=%s)",
            config.endpoint,
            config.service_name,
        )

    def _get_gauge(self, name: str) -> Any:
        if name not in self._gauges:
            unit, description = GAUGES[name]
            self._gauges[name] = self._meter.create_gauge(
                name=name,
                unit=unit,
                description=description,
            )
        return self._gauges[name]

    def export(self, snapshot: Snapshot) -> None:
        for name, value, attributes in snapshot_observations(snapshot):
            self._get_gauge(name).set(value, attributes=attributes)

    def shutdown(self) -> None:
        self._provider.shutdown()
        logger.info("OtelExporter shut down")

