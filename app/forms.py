"""Form field parsing for single-metric endpoints"""
import re
from typing import Callable, Optional, TypeVar
from fastapi import HTTPException
from starlette.datastructures import FormData
from metrics.models import DEFAULT_SAMPLE_RATE, DEFAULT_VALUE, MetricRequest


T = TypeVar("T")

_INTEGER = re.compile(r"[+-]?[0-9]+")
# Finite decimal numbers only, no nan, inf, underscores or padding
_DECIMAL = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")


def parse_int(raw: str) -> int:
    if _INTEGER.fullmatch(raw) is None:
        raise ValueError(f"invalid integer: {raw!r}")
    return int(raw)


def parse_float(raw: str) -> float:
    if _DECIMAL.fullmatch(raw) is None:
        raise ValueError(f"invalid number: {raw!r}")
    return float(raw)


def _parse_field(form: FormData, name: str, parse: Callable[[str], T], error_message: str) -> Optional[T]:
    """Parse an optional form field, an empty value counts as missing"""
    raw = form.get(name)
    if raw is None or raw == "":
        return None
    if not isinstance(raw, str):
        raise HTTPException(status_code=400, detail=error_message)
    try:
        return parse(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail=error_message)


def _sample_rate(form: FormData) -> float:
    rate = _parse_field(form, "sampleRate", parse_float, "Invalid sample rate specified")
    return DEFAULT_SAMPLE_RATE if rate is None else rate


def count_request(key: str, form: FormData) -> MetricRequest:
    value = _parse_field(form, "value", parse_int, "Invalid value specified")
    return MetricRequest(
        key=key,
        value=DEFAULT_VALUE if value is None else value,
        sample_rate=_sample_rate(form)
    )


def gauge_request(key: str, form: FormData) -> MetricRequest:
    # value is not looked at when a shift is given
    shift = _parse_field(form, "shift", parse_int, "Invalid gauge shift specified")
    if shift is not None:
        return MetricRequest(key=key, shift=shift)

    value = _parse_field(form, "value", parse_int, "Invalid gauge value specified")
    return MetricRequest(key=key, value=DEFAULT_VALUE if value is None else value)


def timing_request(key: str, form: FormData) -> MetricRequest:
    time = _parse_field(form, "time", parse_int, "Invalid time specified")
    if time is None:
        raise HTTPException(status_code=400, detail="Invalid time specified")
    return MetricRequest(key=key, time=time, sample_rate=_sample_rate(form))


def set_request(key: str, form: FormData) -> MetricRequest:
    value = _parse_field(form, "value", parse_int, "Invalid set value specified")
    return MetricRequest(key=key, value=DEFAULT_VALUE if value is None else value)
