"""Batch request decoding and dispatch"""
import json
from typing import Callable
from pydantic import ValidationError
from logging_config import get_logger
from metrics.client import BaseMetricsClient
from metrics.dispatch import dispatch_metric
from metrics.models import (
    BatchEnvelope,
    MetricEntry,
    MetricType,
    RawBatchEnvelope,
    RawMetricData,
    is_valid_key,
    materialize,
)


logger = get_logger(__name__)


class BatchDecodeError(ValueError):
    """Raised when a batch body cannot be decoded into an envelope"""


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def decode_batch(body: bytes) -> BatchEnvelope:
    """Decode a JSON batch body.

    The envelope structure must be valid. Entries whose data block fails
    validation are dropped, every other entry is defaulted.
    """
    # RecursionError covers bodies nested deeper than the decoder can follow
    try:
        payload = json.loads(body, parse_constant=_reject_constant)
        raw = RawBatchEnvelope.model_validate(payload)
    except (ValueError, ValidationError, RecursionError) as e:
        raise BatchDecodeError(str(e)) from e

    entries = []
    for position, raw_entry in enumerate(raw.metrics or []):
        try:
            raw_data = RawMetricData.model_validate(raw_entry.data or {})
        except ValidationError as e:
            logger.warning(
                "Skipping batch entry with invalid data",
                position=position,
                metric_type=raw_entry.type,
                key=raw_entry.key,
                error_count=e.error_count(),
                event_type="batch_entry_invalid"
            )
            continue
        entries.append(MetricEntry(type=raw_entry.type, key=raw_entry.key, data=materialize(raw_data)))

    return BatchEnvelope(metrics=tuple(entries))


def dispatch_batch(envelope: BatchEnvelope, client: BaseMetricsClient, build_key: Callable[[str], str]) -> int:
    """Forward every entry in order, returns how many reached the transport"""
    forwarded = 0
    for entry in envelope.metrics:
        metric_type = MetricType.lookup(entry.type)
        if metric_type is None:
            logger.debug("Ignoring unknown metric type", metric_type=entry.type, event_type="batch_entry_ignored")
            continue
        if not is_valid_key(entry.key):
            logger.warning(
                "Skipping batch entry with invalid key",
                metric_type=entry.type,
                key=entry.key,
                event_type="batch_entry_invalid"
            )
            continue
        if dispatch_metric(client, metric_type, build_key(entry.key), entry.data):
            forwarded += 1
    return forwarded
