"""Metric models, dispatch and StatsD transport"""
from .client import BaseMetricsClient, BufferedStatsDClient
from .models import MetricType

__all__ = [
    'BaseMetricsClient',
    'BufferedStatsDClient',
    'MetricType'
]
