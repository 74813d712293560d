"""Export AdGuard Home statistics as Prometheus metrics."""

import sys
from dataclasses import dataclass
from typing import Dict, Iterator, List, Tuple

from prometheus_client.core import GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from .client import AdGuardClient, UpstreamError
from .models import MetricSample, StatsResponse
from .utils import NAMESPACE, format_sample


@dataclass(frozen=True)
class MetricDescriptor:
    """Static metadata for one exported metric."""
    name: str
    documentation: str
    labels: Tuple[str, ...] = ()

    @property
    def full_name(self) -> str:
        return f"{NAMESPACE}_{self.name}"

    def family(self) -> GaugeMetricFamily:
        return GaugeMetricFamily(self.full_name, self.documentation, labels=list(self.labels))


UP = MetricDescriptor('up', 'Exporter status.')
UPSTREAM_RESPONSES = MetricDescriptor(
    'upstream_responses',
    'Upstreams average response time (in seconds).',
    ('address',),
)
DNS_QUERIES = MetricDescriptor('dns_queries', 'Total number of DNS queries.')
BLOCKED_DNS_QUERIES = MetricDescriptor('blocked_dns_queries', 'Total number of blocked DNS queries.')
PROCESSING_TIME = MetricDescriptor('processing_time', 'Average DNS query processing time (in seconds).')
BLOCKED_SAFE_BROWSING = MetricDescriptor('blocked_safe_browsing', 'Blocked requests via Safe Browsing.')
BLOCKED_SAFE_SEARCH = MetricDescriptor('blocked_safe_search', 'Blocked requests via Safe Search.')

# Everything the stats payload maps to, in output order
STATS_DESCRIPTORS = (
    UPSTREAM_RESPONSES,
    DNS_QUERIES,
    BLOCKED_DNS_QUERIES,
    PROCESSING_TIME,
    BLOCKED_SAFE_BROWSING,
    BLOCKED_SAFE_SEARCH,
)
DESCRIPTORS = (UP,) + STATS_DESCRIPTORS


def map_stats(stats: StatsResponse) -> List[MetricSample]:
    """Map a statistics response to metric samples.

    Values are passed through unchanged: no unit conversion, rounding or
    range checks.
    """
    samples = [
        MetricSample(UPSTREAM_RESPONSES.name, seconds, {'address': address})
        for address, seconds in stats.upstream_average_times
    ]
    samples.extend([
        MetricSample(DNS_QUERIES.name, float(stats.total_queries)),
        MetricSample(BLOCKED_DNS_QUERIES.name, float(stats.blocked_queries)),
        MetricSample(PROCESSING_TIME.name, stats.average_processing_time),
        MetricSample(BLOCKED_SAFE_BROWSING.name, float(stats.safe_browsing_blocked)),
        MetricSample(BLOCKED_SAFE_SEARCH.name, float(stats.safe_search_blocked)),
    ])
    return samples


def build_families(samples: List[MetricSample]) -> List[GaugeMetricFamily]:
    """Group samples into one gauge family per stats descriptor."""
    families: Dict[str, GaugeMetricFamily] = {
        descriptor.name: descriptor.family() for descriptor in STATS_DESCRIPTORS
    }
    descriptors = {descriptor.name: descriptor for descriptor in STATS_DESCRIPTORS}

    for sample in samples:
        descriptor = descriptors[sample.name]
        label_values = [sample.labels[label] for label in descriptor.labels]
        families[sample.name].add_metric(label_values, sample.value)

    return [families[descriptor.name] for descriptor in STATS_DESCRIPTORS]


def up_family(value: float) -> GaugeMetricFamily:
    family = UP.family()
    family.add_metric([], value)
    return family


class AdGuardCollector(Collector):
    """Collect AdGuard Home statistics on every scrape.

    Each call to collect() makes exactly one upstream request. A failed
    request yields only adguardhome_up 0; nothing is cached between scrapes.
    """

    def __init__(self, client: AdGuardClient, verbose: bool = False):
        self.client = client
        self.verbose = verbose

    def describe(self) -> Iterator[Metric]:
        # Keeps registration from triggering an upstream request
        for descriptor in DESCRIPTORS:
            yield descriptor.family()

    def collect(self) -> Iterator[Metric]:
        try:
            stats = self.client.fetch()
        except UpstreamError as e:
            print(f"Error: {e}", file=sys.stderr)
            yield up_family(0)
            return

        samples = map_stats(stats)
        if self.verbose:
            print(f"Collected {len(samples)} sample(s) from {self.client.endpoint}")
            for sample in samples:
                print(f"  {format_sample(sample)}")

        yield from build_families(samples)
        yield up_family(1)
