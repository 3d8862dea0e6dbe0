from typing import Iterable, Optional, Tuple

from prometheus_client import CollectorRegistry
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.exposition import choose_encoder
from prometheus_client.registry import Collector

from statusprobe.services.metrics_state import MetricsState

METRIC_NAME = "http_status_code"
METRIC_HELP = "HTTP status code"
LABELS = ["url", "tag"]


class StatusCodeCollector(Collector):
    """Expose MetricsState as a single labelled gauge, read fresh on every scrape."""

    def __init__(self, state: MetricsState):
        self.state = state

    def collect(self) -> Iterable[GaugeMetricFamily]:
        gauge = GaugeMetricFamily(METRIC_NAME, METRIC_HELP, labels=LABELS)
        for (url, tag), signal in self.state.read_all():
            gauge.add_metric([url, tag], float(signal))
        yield gauge

    def describe(self) -> Iterable[GaugeMetricFamily]:
        # lets the registry check names at register time without reading state
        return [GaugeMetricFamily(METRIC_NAME, METRIC_HELP, labels=LABELS)]


def build_registry(state: MetricsState) -> CollectorRegistry:
    """Dedicated registry: no process or platform collectors, only the status gauge."""
    registry = CollectorRegistry(auto_describe=True)
    registry.register(StatusCodeCollector(state))
    return registry


def render(registry: CollectorRegistry, accept_header: Optional[str] = None) -> Tuple[bytes, str]:
    """Encode the registry for the format the scraper asked for. Returns (body, content type)."""
    encoder, content_type = choose_encoder(accept_header or "")
    return encoder(registry), content_type
