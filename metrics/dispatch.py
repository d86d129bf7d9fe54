"""Metric type dispatch table shared by the single-metric and batch endpoints"""
from typing import Callable, Dict, Union
from logging_config import get_logger
from metrics.client import BaseMetricsClient
from metrics.models import MetricData, MetricRequest, MetricType


logger = get_logger(__name__)

MetricFields = Union[MetricData, MetricRequest]


def _send_count(client: BaseMetricsClient, key: str, data: MetricFields) -> bool:
    client.count(key, data.value, data.sample_rate)
    return True


def _send_gauge(client: BaseMetricsClient, key: str, data: MetricFields) -> bool:
    # shift takes precedence over an absolute value
    if data.shift is not None:
        client.gauge_shift(key, data.shift)
    else:
        client.gauge(key, data.value)
    return True


def _send_timing(client: BaseMetricsClient, key: str, data: MetricFields) -> bool:
    if data.time is None:
        return False
    client.timing(key, data.time, data.sample_rate)
    return True


def _send_set(client: BaseMetricsClient, key: str, data: MetricFields) -> bool:
    client.set(key, data.value)
    return True


DISPATCH_TABLE: Dict[MetricType, Callable[[BaseMetricsClient, str, MetricFields], bool]] = {
    MetricType.COUNT: _send_count,
    MetricType.GAUGE: _send_gauge,
    MetricType.TIMING: _send_timing,
    MetricType.SET: _send_set,
}


def dispatch_metric(client: BaseMetricsClient, metric_type: MetricType, key: str, data: MetricFields) -> bool:
    """Forward one metric to the transport.

    Returns False when the metric was skipped (a timing without a time).
    """
    sent = DISPATCH_TABLE[metric_type](client, key, data)
    logger.debug(
        "Metric dispatched" if sent else "Metric skipped",
        metric_type=metric_type.value,
        key=key,
        event_type="metric_dispatch"
    )
    return sent
