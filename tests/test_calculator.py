"""
Material quantity calculator tests.

Tests:
1.  test_worked_example_gaf_moderate     — 2500 sq ft, moderate, GAF -> 85 bundles, 3 rolls, 28.0 squares
2.  test_drip_edge_ignores_tier          — eave 180 + rake 60 -> 24 pieces for every tier
3.  test_ceiling_never_under_orders      — packaged quantity always covers the amount, never by a spare package
4.  test_float_noise_does_not_round_up   — 99.9 sq ft / 33.3 -> 3 bundles
5.  test_waste_monotonic                 — simple <= moderate <= complex for area products
6.  test_accessory_pass_through          — Pipe Boot x6 appears verbatim for every tier
7.  test_category_order                  — fixed emission order, accessories last in entry order
8.  test_color_only_on_colored_products  — shingles/starter/hip & ridge carry the color
9.  test_missing_area_refused            — None / 0 / no measurement -> MissingMeasurement
10. test_estimated_lengths_used          — no edges measured -> lengths estimated from area
11. test_deterministic                   — same inputs, same output
12. test_non_finite_area_rejected        — NaN / inf / 1e308 sq ft -> ValidationError, not a crash
13. test_overflowing_lengths_rejected    — edge lengths that overflow the sum -> ValidationError
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from roofcrm.calculators.base import BaseCalculator
from roofcrm.calculators.catalog import (
    ACCESSORY, CATEGORY_ORDER, COLORED_CATEGORIES, DRIP_EDGE, HIP_RIDGE, NAILS, SHINGLES, STARTER,
    UNDERLAYMENT, ProductCatalog,
)
from roofcrm.calculators.shingle_roof import ShingleRoofCalculator
from roofcrm.errors import MissingMeasurement, ValidationError
from roofcrm.schemas import ManualAccessory, RoofMeasurement

TIERS = ["simple", "moderate", "complex"]
AREA_CATEGORIES = [SHINGLES, STARTER, UNDERLAYMENT]


@pytest.fixture
def calculator():
    """Calculator on the built-in catalog only."""
    return ShingleRoofCalculator(ProductCatalog(overrides={}))


def _items(material_list):
    return {item["category"]: item for item in material_list["line_items"] if item["category"] != ACCESSORY}


# ============================================================
# Worked examples
# ============================================================

def test_worked_example_gaf_moderate(calculator, measurement):
    result = calculator.compute(measurement, "moderate", "GAF", shingle_color="Charcoal")
    items = _items(result)

    assert result["waste_percent"] == 12
    assert result["total_squares"] == pytest.approx(28.0)
    assert items[SHINGLES]["quantity"] == 85
    assert items[SHINGLES]["unit"] == "bundles"
    assert items[UNDERLAYMENT]["quantity"] == 3
    assert items[UNDERLAYMENT]["unit"] == "rolls"
    assert items[STARTER]["quantity"] == 24       # 2800 / 120
    assert items[HIP_RIDGE]["quantity"] == 2      # (40 ridge + 10 valley) / 25
    assert items[NAILS]["quantity"] == 19         # 28 squares / 1.5
    assert items[NAILS]["unit"] == "lbs"
    assert items[DRIP_EDGE]["quantity"] == 24
    assert all(item["manufacturer"] == "GAF" for item in items.values())


def test_drip_edge_ignores_tier(calculator, measurement):
    """Linear products come from measured lengths — no waste."""
    for tier in TIERS:
        items = _items(calculator.compute(measurement, tier, "GAF", shingle_color="Charcoal"))
        assert items[DRIP_EDGE]["quantity"] == 24
        assert items[HIP_RIDGE]["quantity"] == 2


def test_other_manufacturer_coverage(calculator, measurement):
    items = _items(calculator.compute(measurement, "moderate", "Owens Corning", shingle_color="Onyx Black"))
    assert items[SHINGLES]["quantity"] == 86      # 2800 / 32.8
    assert items[SHINGLES]["product_name"] == "Owens Corning Duration"
    assert items[HIP_RIDGE]["quantity"] == 2      # 50 / 33
    assert items[SHINGLES]["manufacturer"] == "Owens Corning"


def test_unknown_manufacturer_uses_generic(calculator, measurement):
    items = _items(calculator.compute(measurement, "moderate", "Atlas", shingle_color="Pewter"))
    assert items[SHINGLES]["quantity"] == 85
    assert items[STARTER]["quantity"] == 27       # 2800 / 105
    assert items[SHINGLES]["manufacturer"] == "Atlas"
    assert items[SHINGLES]["sku"] is None


# ============================================================
# Rounding
# ============================================================

def test_ceiling_never_under_orders(calculator):
    """For every packaged category: enough packages, and never a whole spare one."""
    catalog = calculator.catalog
    for area in range(150, 6000, 113):
        for tier in TIERS:
            m = RoofMeasurement(total_area_sqft=area, eave_length_ft=area / 20.0,
                                rake_length_ft=area / 45.0, ridge_length_ft=area / 70.0,
                                valley_length_ft=3.5)
            result = calculator.compute(m, tier, "CertainTeed", shingle_color="Weathered Wood")
            adjusted = area * (100 + result["waste_percent"]) / 100.0
            amounts = {
                SHINGLES: adjusted,
                STARTER: adjusted,
                UNDERLAYMENT: adjusted,
                NAILS: result["total_squares"],
                HIP_RIDGE: m.ridge_length_ft + m.valley_length_ft,
                DRIP_EDGE: m.eave_length_ft + m.rake_length_ft,
            }
            for category, item in _items(result).items():
                per = catalog.coverage_for("CertainTeed", category)["units_per_package"]
                assert isinstance(item["quantity"], int)
                assert item["quantity"] * per >= amounts[category] - 1e-6, (area, tier, category)
                assert (item["quantity"] - 1) * per < amounts[category], (area, tier, category)


NON_FINITE_AREAS = [float("nan"), float("inf"), 1e308]


def test_non_finite_area_rejected(calculator):
    """NaN, infinite and overflowing areas are refused as bad input, never crash the math."""
    for area in NON_FINITE_AREAS:
        with pytest.raises(ValidationError) as exc:
            calculator.compute({"total_area_sqft": area}, "moderate", "GAF", shingle_color="Charcoal")
        assert exc.value.status_code == 400, area


def test_non_finite_area_unvalidated_model_rejected(calculator):
    """A measurement built without validation still can't reach the rounding step."""
    for area in NON_FINITE_AREAS:
        m = RoofMeasurement.model_construct(
            total_area_sqft=area, predominant_pitch_rise=None, eave_length_ft=10.0,
            rake_length_ft=10.0, ridge_length_ft=10.0, valley_length_ft=0.0, source_quality="high",
        )
        with pytest.raises(ValidationError):
            calculator.compute(m, "moderate", "GAF", shingle_color="Charcoal")


def test_overflowing_lengths_rejected(calculator):
    m = RoofMeasurement(total_area_sqft=2500, eave_length_ft=1e308, rake_length_ft=1e308)
    with pytest.raises(ValidationError):
        calculator.compute(m, "moderate", "GAF", shingle_color="Charcoal")


def test_non_finite_lengths_rejected_by_schema():
    for field in ["eave_length_ft", "rake_length_ft", "ridge_length_ft", "valley_length_ft"]:
        with pytest.raises(PydanticValidationError):
            RoofMeasurement(total_area_sqft=2500, **{field: float("inf")})


def test_float_noise_does_not_round_up():
    class _Calc(BaseCalculator):
        def compute(self, *args, **kwargs):
            return {}

    calc = _Calc()
    assert calc.packages_needed(99.9, 33.3) == 3
    assert calc.packages_needed(100.0, 33.3) == 4
    assert calc.packages_needed(0, 33.3) == 0
    assert calc.packages_needed(0.01, 1000) == 1


def test_waste_monotonic(calculator):
    for area in [800, 1575, 2500, 3333, 4800]:
        m = RoofMeasurement(total_area_sqft=area)
        results = [_items(calculator.compute(m, tier, "GAF", shingle_color="Charcoal")) for tier in TIERS]
        for category in AREA_CATEGORIES + [NAILS]:
            quantities = [r[category]["quantity"] for r in results]
            assert quantities == sorted(quantities), (area, category, quantities)


# ============================================================
# Line items
# ============================================================

def test_accessory_pass_through(calculator, measurement):
    for tier in TIERS:
        result = calculator.compute(
            measurement, tier, "GAF",
            accessories=[{"name": "Pipe Boot", "quantity": 6}],
            shingle_color="Charcoal",
        )
        accessory = result["line_items"][-1]
        assert accessory["category"] == ACCESSORY
        assert accessory["product_name"] == "Pipe Boot"
        assert accessory["quantity"] == 6
        assert accessory["unit"] == "ea"
        assert accessory["manufacturer"] is None
        assert accessory["color"] is None


def test_category_order(calculator, measurement):
    result = calculator.compute(
        measurement, "complex", "GAF",
        accessories=[ManualAccessory(name="Ridge Vent", quantity=4), {"name": "Pipe Boot", "quantity": 6}],
        shingle_color="Charcoal",
    )
    categories = [item["category"] for item in result["line_items"]]
    assert categories == CATEGORY_ORDER + [ACCESSORY, ACCESSORY]
    assert [item["product_name"] for item in result["line_items"][-2:]] == ["Ridge Vent", "Pipe Boot"]


def test_color_only_on_colored_products(calculator, measurement):
    result = calculator.compute(measurement, "moderate", "GAF", shingle_color="  Charcoal ")
    for category, item in _items(result).items():
        if category in COLORED_CATEGORIES:
            assert item["color"] == "Charcoal"
        else:
            assert item["color"] is None


# ============================================================
# Errors
# ============================================================

def test_missing_area_refused(calculator):
    for m in [None, RoofMeasurement(), RoofMeasurement(total_area_sqft=0), {"eave_length_ft": 100}]:
        with pytest.raises(MissingMeasurement) as exc:
            calculator.compute(m, "moderate", "GAF", shingle_color="Charcoal")
        assert exc.value.status_code == 422


def test_negative_area_rejected(calculator):
    with pytest.raises(ValidationError):
        calculator.compute({"total_area_sqft": -100}, "moderate", "GAF", shingle_color="Charcoal")


def test_invalid_measurement_dict_rejected(calculator):
    with pytest.raises(ValidationError):
        calculator.compute({"total_area_sqft": 1000, "eave_length_ft": -5}, "moderate", "GAF")


def test_blank_inputs_rejected(calculator, measurement):
    with pytest.raises(ValidationError):
        calculator.compute(measurement, "moderate", "  ", shingle_color="Charcoal")
    with pytest.raises(ValidationError):
        calculator.compute(measurement, "moderate", "GAF", shingle_color="   ")
    with pytest.raises(ValidationError):
        calculator.compute(measurement, "steep", "GAF", shingle_color="Charcoal")


@pytest.mark.parametrize("accessory", [
    {"name": "Pipe Boot", "quantity": 0},
    {"name": "Pipe Boot", "quantity": -2},
    {"name": "Pipe Boot", "quantity": 2.5},
    {"name": "Pipe Boot", "quantity": True},
    {"name": "", "quantity": 3},
])
def test_bad_accessory_rejected(calculator, measurement, accessory):
    with pytest.raises(ValidationError):
        calculator.compute(measurement, "moderate", "GAF", accessories=[accessory], shingle_color="Charcoal")


# ============================================================
# Measurement handling
# ============================================================

def test_estimated_lengths_used(calculator):
    """2500 sq ft -> perimeter 200 ft -> eave 100, rake 60, ridge 40, valley 0."""
    result = calculator.compute({"total_area_sqft": 2500}, "moderate", "GAF", shingle_color="Charcoal")
    items = _items(result)
    assert items[DRIP_EDGE]["quantity"] == 16
    assert items[HIP_RIDGE]["quantity"] == 2
    assert result["measurement"]["eave_length_ft"] == 100.0
    assert result["measurement"]["valley_length_ft"] == 0.0
    assert result["measurement"]["source_quality"] == "estimated"


def test_deterministic(calculator, measurement):
    args = (measurement, "moderate", "GAF", [{"name": "Pipe Boot", "quantity": 6}], "Charcoal")
    assert calculator.compute(*args) == calculator.compute(*args)
