"""Data models for AdGuard Home statistics."""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple


class PayloadError(ValueError):
    """Raised when a statistics payload does not have the expected shape."""


def _int_field(payload: Mapping[str, Any], key: str) -> int:
    value = payload.get(key)
    if value is None:
        return 0
    # bool is an int subclass but never a valid count
    if isinstance(value, bool) or not isinstance(value, int):
        raise PayloadError(f"field '{key}' must be an integer, got {value!r}")
    return value


def _float_field(payload: Mapping[str, Any], key: str) -> float:
    value = payload.get(key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PayloadError(f"field '{key}' must be a number, got {value!r}")
    return float(value)


def _upstream_times(payload: Mapping[str, Any]) -> Tuple[Tuple[str, float], ...]:
    entries = payload.get('top_upstreams_avg_time')
    if entries is None:
        return ()
    if not isinstance(entries, list):
        raise PayloadError(f"field 'top_upstreams_avg_time' must be a list, got {entries!r}")

    times = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise PayloadError(f"upstream entry must be an object, got {entry!r}")
        # Each entry is normally {"<address>": <seconds>}
        for address, seconds in entry.items():
            if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
                raise PayloadError(f"average time for upstream '{address}' must be a number, got {seconds!r}")
            times.append((address, float(seconds)))
    return tuple(times)


@dataclass(frozen=True)
class StatsResponse:
    """Statistics reported by AdGuard Home at /control/stats."""
    upstream_average_times: Tuple[Tuple[str, float], ...] = ()  # (address, seconds) in payload order
    total_queries: int = 0
    blocked_queries: int = 0
    average_processing_time: float = 0.0  # seconds
    safe_browsing_blocked: int = 0
    safe_search_blocked: int = 0

    @classmethod
    def from_payload(cls, payload: Any) -> 'StatsResponse':
        """Build a response from decoded JSON.

        Missing fields default to zero values, since AdGuard Home may omit
        empty sections. Fields that are present with the wrong type raise
        PayloadError.
        """
        if not isinstance(payload, dict):
            raise PayloadError(f"statistics payload must be a JSON object, got {type(payload).__name__}")

        return cls(
            upstream_average_times=_upstream_times(payload),
            total_queries=_int_field(payload, 'num_dns_queries'),
            blocked_queries=_int_field(payload, 'num_blocked_filtering'),
            average_processing_time=_float_field(payload, 'avg_processing_time'),
            safe_browsing_blocked=_int_field(payload, 'num_replaced_safebrowsing'),
            safe_search_blocked=_int_field(payload, 'num_replaced_safesearch'),
        )


@dataclass(frozen=True)
class MetricSample:
    """A single metric observation, named without the exporter namespace."""
    name: str
    value: float
    labels: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ExporterConfig:
    """Exporter settings, resolved once at startup."""
    endpoint: str = ''
    username: str = ''
    password: str = ''
    address: str = ':8000'
    path: str = '/metrics'
    timeout: Optional[float] = 10.0
    verbose: bool = False
