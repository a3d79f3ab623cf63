from __future__ import annotations

import math

import pytest

from carmatch.recommendations.models import UserFilter
from carmatch.recommendations.sanitize import as_list, sanitize_filter, to_number


@pytest.mark.parametrize(
    "raw, expected",
    [
        (42, 42.0),
        ("30000", 30000.0),
        (" $32,500 ", 32500.0),
        ("1e3", 1000.0),
        ("", None),
        ("abc", None),
        (None, None),
        (True, None),
        (float("nan"), None),
        (float("inf"), None),
        ([1], None),
    ],
)
def test_to_number(raw, expected):
    assert to_number(raw) == expected


def test_as_list_dedupes_and_drops_blanks():
    assert as_list(["SUV", "", "SUV", None, "Truck"]) == ["SUV", "Truck"]
    assert as_list("Hybrid") == ["Hybrid"]
    assert as_list(None) == []


class TestSanitizeFilter:
    def test_none_gives_empty_filter(self):
        f = sanitize_filter(None)
        assert f.budget is None
        assert f.budget_max is None

    def test_strings_become_numbers(self):
        f = sanitize_filter({"priceMin": "30000", "priceMax": "50,000", "yearMin": "2019"})
        assert f.price_min == 30000
        assert f.price_max == 50000
        assert f.year_min == 2019

    def test_budget_bounds_fall_back_to_price_bounds(self):
        f = sanitize_filter({"price_min": 20000, "price_max": 30000})
        assert f.budget_min == 20000
        assert f.budget_max == 30000

    def test_explicit_budget_bounds_win(self):
        f = sanitize_filter({"budget_max": 25000, "price_max": 30000})
        assert f.budget_max == 25000

    def test_garbage_numbers_become_no_constraint(self):
        f = sanitize_filter({"budget": "lots", "mileageMax": "NaN", "doors": {"x": 1}})
        assert f.budget is None
        assert f.mileage_max is None
        assert f.doors is None

    def test_categoricals_untouched(self):
        f = sanitize_filter({"vehicleCategory": ["SUVs", "Trucks"], "drivetrain": "AWD", "notes": "awd"})
        assert f.vehicle_category == ["SUVs", "Trucks"]
        assert f.drivetrain == "AWD"
        assert f.notes == "awd"

    def test_accepts_model_instance(self):
        original = UserFilter(price_max=40000)
        f = sanitize_filter(original)
        assert f.budget_max == 40000
        assert original.budget_max is None

    def test_never_raises_on_wrong_shapes(self):
        f = sanitize_filter({"vehicleCategory": {"nested": True}, "notes": 12})
        assert f.vehicle_category is None
        assert f.notes is None

    def test_results_are_finite(self):
        f = sanitize_filter({"budget": "inf", "yearMax": "-inf"})
        for value in (f.budget, f.year_max):
            assert value is None or math.isfinite(value)
