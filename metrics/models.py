"""Metric request and batch payload models"""
from dataclasses import dataclass, field
from enum import Enum
import re
from typing import Any, List, Optional, Tuple, Union
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, model_validator


DEFAULT_VALUE = 1
DEFAULT_SAMPLE_RATE = 1.0

# Characters that delimit fields or lines in the StatsD wire format
_KEY_RESERVED = re.compile(r"[:|@\s]")


def is_valid_key(key: str) -> bool:
    """A key must be non-empty and free of StatsD delimiters"""
    return bool(key) and _KEY_RESERVED.search(key) is None


class MetricType(str, Enum):
    """StatsD metric operations exposed over HTTP"""
    COUNT = "count"
    GAUGE = "gauge"
    TIMING = "timing"
    SET = "set"

    @classmethod
    def lookup(cls, name: str) -> Optional["MetricType"]:
        """Resolve a type name, None for unknown types"""
        try:
            return cls(name)
        except ValueError:
            return None


@dataclass(frozen=True)
class MetricData:
    """Fully defaulted metric payload"""
    value: int = DEFAULT_VALUE
    sample_rate: float = DEFAULT_SAMPLE_RATE
    shift: Optional[int] = None
    time: Optional[int] = None


@dataclass(frozen=True)
class MetricRequest:
    """Metric submitted to a single-metric endpoint"""
    key: str
    value: int = DEFAULT_VALUE
    sample_rate: float = DEFAULT_SAMPLE_RATE
    shift: Optional[int] = None
    time: Optional[int] = None


@dataclass(frozen=True)
class MetricEntry:
    """One decoded entry of a batch request"""
    type: str
    key: str
    data: MetricData = field(default_factory=MetricData)


@dataclass(frozen=True)
class BatchEnvelope:
    """Decoded batch request, entries kept in submission order"""
    metrics: Tuple[MetricEntry, ...] = ()


class _PayloadModel(BaseModel):
    """Wire model with case-insensitive field names"""

    model_config = ConfigDict(extra="ignore", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def fold_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k.lower() if isinstance(k, str) else k: v for k, v in data.items()}
        return data


class RawMetricData(_PayloadModel):
    """Metric payload as sent, every field optional"""
    value: Optional[StrictInt] = None
    sample_rate: Optional[Union[StrictInt, StrictFloat]] = Field(
        default=None,
        validation_alias=AliasChoices("sample_rate", "samplerate")
    )
    shift: Optional[StrictInt] = None
    time: Optional[StrictInt] = None


class RawMetricEntry(_PayloadModel):
    type: StrictStr = ""
    key: StrictStr = ""
    # Validated per entry so one bad payload does not reject the batch
    data: Any = None


class RawBatchEnvelope(_PayloadModel):
    metrics: Optional[List[RawMetricEntry]] = None


def materialize(raw: RawMetricData) -> MetricData:
    """Substitute defaults for every field missing from the payload"""
    return MetricData(
        value=raw.value if raw.value is not None else DEFAULT_VALUE,
        sample_rate=float(raw.sample_rate) if raw.sample_rate is not None else DEFAULT_SAMPLE_RATE,
        shift=raw.shift,
        time=raw.time,
    )
