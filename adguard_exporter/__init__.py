"""AdGuard Home statistics exporter for Prometheus."""

from .models import ExporterConfig, MetricSample, StatsResponse
from .client import (
    AdGuardClient,
    UpstreamError,
    UpstreamParseError,
    UpstreamStatusError,
    UpstreamTimeoutError,
    UpstreamTransportError,
    fetch_stats,
)
from .exporter import AdGuardCollector, map_stats

__all__ = [
    'ExporterConfig',
    'MetricSample',
    'StatsResponse',
    'AdGuardClient',
    'UpstreamError',
    'UpstreamParseError',
    'UpstreamStatusError',
    'UpstreamTimeoutError',
    'UpstreamTransportError',
    'fetch_stats',
    'AdGuardCollector',
    'map_stats',
]
