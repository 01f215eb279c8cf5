"""Test the measure normalizer."""

import pytest

from atmosync.models import MeasurementPoint
from atmosync.normalizer import normalize


def test_single_sample() -> None:
    """Test a single sample lands on the bucket start."""
    buckets = [{"beg_time": 1000, "step_time": 1800, "value": [[21.5, 60]]}]

    assert normalize(buckets, ["temperature", "humidity"]) == [
        MeasurementPoint(
            timestamp=1000, metric_values={"temperature": 21.5, "humidity": 60}
        )
    ]


def test_mapping_is_positional() -> None:
    """Test reordering the metrics relabels values without changing them."""
    buckets = [{"beg_time": 0, "step_time": 60, "value": [[1, 2, 3], [4, 5, 6]]}]

    forward = normalize(buckets, ["temperature", "humidity", "co2"])
    backward = normalize(buckets, ["co2", "humidity", "temperature"])

    assert [p.timestamp for p in forward] == [0, 60]
    assert forward[1].metric_values == {"temperature": 4, "humidity": 5, "co2": 6}
    assert backward[1].metric_values == {"co2": 4, "humidity": 5, "temperature": 6}
    assert sorted(forward[0].metric_values.values()) == sorted(
        backward[0].metric_values.values()
    )


def test_buckets_concatenated_in_input_order() -> None:
    """Test buckets are not sorted across each other."""
    buckets = [
        {"beg_time": 5000, "step_time": 1800, "value": [[1], [2]]},
        {"beg_time": 1000, "step_time": 1800, "value": [[3]]},
    ]

    points = normalize(buckets, ["rain"])

    assert [(p.timestamp, p.metric_values["rain"]) for p in points] == [
        (5000, 1),
        (6800, 2),
        (1000, 3),
    ]


def test_missing_values_are_absent() -> None:
    """Test short tuples and nulls leave the metric out instead of zero."""
    buckets = [{"beg_time": 0, "step_time": 10, "value": [[20.1], [None, 55]]}]

    points = normalize(buckets, ["temperature", "humidity"])

    assert points[0].metric_values == {"temperature": 20.1}
    assert points[1].metric_values == {"humidity": 55}


def test_extra_values_are_dropped() -> None:
    """Test values beyond the requested metrics are ignored."""
    buckets = [{"beg_time": 0, "step_time": 10, "value": [[1, 2, 3]]}]

    assert normalize(buckets, ["temperature"])[0].metric_values == {"temperature": 1}


@pytest.mark.parametrize(
    "raw",
    [
        None,
        42,
        "not a list",
        {"beg_time": 0, "value": [[1]]},
        [],
        [None, "bucket"],
        [{"beg_time": 0, "step_time": 1800, "value": None}],
        [{"beg_time": 0, "step_time": 1800, "value": 7}],
        [{"beg_time": "0", "step_time": 1800, "value": [[1]]}],
        [{"step_time": 1800, "value": [[1]]}],
    ],
)
def test_malformed_input_yields_no_points(raw) -> None:
    """Test malformed payloads never raise."""
    assert normalize(raw, ["temperature"]) == []


def test_malformed_bucket_does_not_drop_valid_ones() -> None:
    """Test a broken bucket only removes its own points."""
    buckets = [
        {"beg_time": 0, "step_time": 60, "value": None},
        {"beg_time": 120, "step_time": 60, "value": [[7]]},
    ]

    assert normalize(buckets, ["noise"]) == [
        MeasurementPoint(timestamp=120, metric_values={"noise": 7})
    ]
