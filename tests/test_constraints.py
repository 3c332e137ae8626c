from __future__ import annotations

from datetime import time, timedelta

import pytest

from wellness_engine.constraints import (
    CONSTRAINT_TYPES,
    ActiveTimeWindow,
    CustomConstraint,
    MaxCountPerPeriod,
    MaxCumulativeAmountPerPeriod,
    MinTimeBetweenDoses,
)
from wellness_engine.errors import InvalidConstraintConfiguration, WellnessEngineError


@pytest.mark.parametrize(
    "build",
    [
        lambda: MinTimeBetweenDoses(timedelta(0)),
        lambda: MinTimeBetweenDoses(timedelta(hours=-1)),
        lambda: MaxCountPerPeriod(0, timedelta(hours=24)),
        lambda: MaxCountPerPeriod(-2, timedelta(hours=24)),
        lambda: MaxCountPerPeriod(3, timedelta(hours=-24)),
        lambda: MaxCountPerPeriod(2.5, timedelta(hours=24)),
        lambda: MaxCumulativeAmountPerPeriod(0, "mg", timedelta(hours=24)),
        lambda: MaxCumulativeAmountPerPeriod(-5, "mg", timedelta(hours=24)),
        lambda: MaxCumulativeAmountPerPeriod(100, " ", timedelta(hours=24)),
        lambda: MaxCumulativeAmountPerPeriod(100, "mg", timedelta(0)),
        lambda: ActiveTimeWindow(time(8, 0), time(8, 0)),
        lambda: CustomConstraint(["not", "a", "mapping"]),
    ],
)
def test_invalid_configuration_rejected_at_construction(build) -> None:
    with pytest.raises(InvalidConstraintConfiguration):
        build()


def test_invalid_configuration_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        MaxCountPerPeriod(0, timedelta(hours=1))
    assert issubclass(InvalidConstraintConfiguration, WellnessEngineError)


def test_default_descriptions() -> None:
    assert (
        MinTimeBetweenDoses(timedelta(hours=8)).description
        == "Wait at least 8h between doses"
    )
    assert (
        MaxCountPerPeriod(3, timedelta(days=1)).description
        == "At most 3 doses per 1d"
    )
    assert (
        MaxCumulativeAmountPerPeriod(1000, "mg", timedelta(hours=24)).description
        == "At most 1000 mg per 1d"
    )
    assert (
        ActiveTimeWindow(time(22, 0), time(6, 0)).description
        == "Only between 22:00 and 06:00"
    )
    assert CustomConstraint().description == "Custom rule"


def test_explicit_description_is_kept() -> None:
    rule = MinTimeBetweenDoses(timedelta(hours=4), "No more often than every 4h")
    assert rule.description == "No more often than every 4h"


def test_constraints_are_hashable_values() -> None:
    a = MaxCountPerPeriod(3, timedelta(hours=24))
    b = MaxCountPerPeriod(3, timedelta(hours=24))
    assert a == b
    assert len({a, b, CustomConstraint({"x": 1}), CustomConstraint({"x": 1})}) == 2


def test_custom_parameters_are_read_only() -> None:
    params = {"withFood": True}
    rule = CustomConstraint(params)
    params["withFood"] = False
    assert rule.parameters["withFood"] is True
    with pytest.raises(TypeError):
        rule.parameters["withFood"] = False  # type: ignore[index]


def test_type_tags() -> None:
    assert set(CONSTRAINT_TYPES) == {
        "minTimeBetween",
        "maxPerPeriod",
        "maxCumulativeAmount",
        "timeWindow",
        "custom",
    }
