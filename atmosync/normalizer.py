"""Convert time-bucketed measure payloads into measurement points."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
import logging
from typing import Any

from .models import MeasurementPoint

_LOGGER = logging.getLogger(__name__)


def normalize(
    raw_buckets: Any, requested_metrics: Sequence[str]
) -> list[MeasurementPoint]:
    """Flatten getmeasure buckets into an ordered list of points.

    Each bucket is ``{"beg_time": int, "step_time": int, "value": [[...], ...]}``.
    The n-th value of a tuple belongs to the n-th requested metric, so the
    caller must pass the metrics in the order they were requested. Buckets
    are concatenated in input order.

    Malformed input yields no points instead of raising.
    """
    if not isinstance(raw_buckets, Iterable) or isinstance(
        raw_buckets, (str, bytes, Mapping)
    ):
        _LOGGER.debug("Ignoring non-list measure payload: %s", raw_buckets)
        return []

    metrics = list(requested_metrics)
    points: list[MeasurementPoint] = []
    for bucket in raw_buckets:
        points.extend(_normalize_bucket(bucket, metrics))
    return points


def _normalize_bucket(bucket: Any, metrics: list[str]) -> list[MeasurementPoint]:
    """Expand one bucket; anything malformed contributes nothing."""
    if not isinstance(bucket, Mapping):
        return []

    beg_time = bucket.get("beg_time")
    values = bucket.get("value")
    step_time = bucket.get("step_time", 0)
    if not _is_int(beg_time) or not _is_int(step_time):
        _LOGGER.debug("Skipping bucket with invalid times: %s", bucket)
        return []
    if not isinstance(values, Iterable) or isinstance(values, (str, bytes, Mapping)):
        _LOGGER.debug("Skipping bucket without value list: %s", bucket)
        return []

    points = []
    for index, sample in enumerate(values):
        if not isinstance(sample, Sequence) or isinstance(sample, (str, bytes)):
            sample = ()
        metric_values = {
            metric: value
            for metric, value in zip(metrics, sample)
            if value is not None
        }
        points.append(
            MeasurementPoint(
                timestamp=beg_time + index * step_time,
                metric_values=metric_values,
            )
        )
    return points


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
