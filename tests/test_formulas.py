"""
Campaign Calc — Pure Calculation Library Test Suite
Covers campaign_calc/calculations/formulas.py and operations.py
"""

from __future__ import annotations

import inspect
from decimal import Decimal

import pytest

from campaign_calc.calculations.formulas import MediaPlan, PricingDisplay, StandardFormulas
from campaign_calc.calculations.operations import (
    OPERATIONS,
    ActualUnitCost,
    AggregatePlanCost,
    CompareAmounts,
    MarginPercentage,
    build_operation,
)
from campaign_calc.core.exceptions import (
    CalculationMethodNotFoundError,
    ConversionError,
    NotFoundError,
)


@pytest.fixture
def formulas() -> StandardFormulas:
    return StandardFormulas()


# ═══════════════════════════════════════════════════════════════════════════════
# Margin / unit cost / markup
# ═══════════════════════════════════════════════════════════════════════════════


class TestMarginPercentage:
    def test_full_precision(self, formulas):
        result = formulas.margin_percentage("1000", "333.33")
        assert result == Decimal("66.667")
        assert str(result) == "66.667"

    @pytest.mark.parametrize(
        "revenue, cost",
        [("1000", "250"), ("3", "1"), ("1234.56", "999.99"), ("0.07", "0.11"), ("500", "-20")],
    )
    def test_matches_formula(self, formulas, revenue, cost):
        r, c = Decimal(revenue), Decimal(cost)
        assert formulas.margin_percentage(revenue, cost) == (r - c) / r * 100

    @pytest.mark.parametrize("cost", ["100", "0", "-5"])
    def test_zero_revenue_is_zero(self, formulas, cost):
        assert formulas.margin_percentage("0", cost) == Decimal("0")

    def test_rejects_bad_input(self, formulas):
        with pytest.raises(ConversionError):
            formulas.margin_percentage("abc", "1")


class TestActualUnitCost:
    def test_repeating_division_keeps_precision(self, formulas):
        result = formulas.actual_unit_cost("100", "3")
        assert str(result).startswith("33.333333333")

    def test_matches_formula(self, formulas):
        assert formulas.actual_unit_cost("100", "4321") == Decimal("100") / Decimal("4321")

    def test_zero_units_is_zero(self, formulas):
        assert formulas.actual_unit_cost("100", "0") == Decimal("0")
        assert formulas.actual_unit_cost("100", Decimal("0.000")) == Decimal("0")


class TestAmounts:
    def test_margin_amount(self, formulas):
        assert formulas.margin_amount("1000", "750") == Decimal("250")

    def test_profit_amount(self, formulas):
        assert formulas.profit_amount("100.10", "200.25") == Decimal("-100.15")

    def test_markup_amount(self, formulas):
        assert formulas.markup_amount("200", "15") == Decimal("30")
        assert formulas.markup_amount("99.99", "12.5") == Decimal("12.49875")


# ═══════════════════════════════════════════════════════════════════════════════
# Plan aggregation
# ═══════════════════════════════════════════════════════════════════════════════


class TestAggregation:
    def test_cost_without_intermediate_rounding(self, formulas):
        plans = [{"budget": "100.123456"}, {"budget": "200.234567"}, {"budget": "300.345678"}]
        result = formulas.aggregate_plan_cost(plans)
        assert str(result) == "600.703701"

    def test_cost_empty(self, formulas):
        assert formulas.aggregate_plan_cost([]) == Decimal("0")

    def test_cost_accepts_media_plans(self, formulas):
        plans = [MediaPlan(budget=Decimal("10.5")), MediaPlan(budget=4, platform="youtube")]
        assert formulas.aggregate_plan_cost(plans) == Decimal("14.5")

    def test_cost_invalid_budget(self, formulas):
        with pytest.raises(ConversionError):
            formulas.aggregate_plan_cost([{"budget": "n/a"}])

    def test_cost_missing_budget(self, formulas):
        with pytest.raises(ConversionError) as exc:
            formulas.aggregate_plan_cost([{"budget": "10"}, {"plannedUnits": "5"}])
        assert "no budget" in str(exc.value)

    def test_units_do_not_need_budget(self, formulas):
        assert formulas.aggregate_plan_units([{"plannedUnits": "5"}]) == Decimal("5")

    def test_units_skip_absent(self, formulas):
        plans = [
            {"budget": "1", "plannedUnits": "1000"},
            {"budget": "1"},
            {"budget": "1", "planned_units": 500},
            MediaPlan(budget="1", planned_units=None),
            {"budget": "1", "plannedUnits": ""},
        ]
        assert formulas.aggregate_plan_units(plans) == Decimal("1500")

    def test_units_all_absent(self, formulas):
        assert formulas.aggregate_plan_units([{"budget": "1"}, {"budget": "2"}]) == Decimal("0")
        assert formulas.aggregate_plan_units([]) == Decimal("0")


# ═══════════════════════════════════════════════════════════════════════════════
# Unit price display / comparison
# ═══════════════════════════════════════════════════════════════════════════════


class TestFormatUnitPrice:
    def test_cpm_multiplies_by_thousand(self, formulas):
        pricing = formulas.format_unit_price(Decimal("50") / Decimal("10000"), "impressions")
        assert pricing == PricingDisplay(
            unit_price="0.005000",
            display_price="5.00",
            display_format="$5.00 CPM",
            display_unit="CPM",
        )

    @pytest.mark.parametrize(
        "unit_type, label",
        [
            ("clicks", "CPC"),
            ("Click", "CPC"),
            ("views", "CPV"),
            ("video_views", "CPV"),
            ("conversion", "CPA"),
            ("ENGAGEMENTS", "CPE"),
        ],
    )
    def test_unit_labels(self, formulas, unit_type, label):
        pricing = formulas.format_unit_price("1.255", unit_type)
        assert pricing.display_unit == label
        assert pricing.display_price == "1.26"
        assert pricing.display_format == f"$1.26 {label}"
        assert pricing.unit_price == "1.255000"

    def test_unknown_unit_is_generic_cost(self, formulas):
        pricing = formulas.format_unit_price("2.5", "podcast_listens")
        assert pricing.display_unit == "Cost"
        assert pricing.display_price == "2.50"
        assert pricing.display_format == "$2.50"


class TestCompareAmounts:
    def test_default_tolerance_inclusive(self, formulas):
        assert formulas.compare_amounts("100.00", "100.01") is True
        assert formulas.compare_amounts("100.01", "100.00") is True

    def test_outside_default_tolerance(self, formulas):
        assert formulas.compare_amounts("100", "100.02") is False

    def test_custom_tolerance(self, formulas):
        assert formulas.compare_amounts("100", "100.05", "0.05") is True
        assert formulas.compare_amounts("100", "100.001", Decimal("0")) is False


# ═══════════════════════════════════════════════════════════════════════════════
# Operations
# ═══════════════════════════════════════════════════════════════════════════════


class TestOperations:
    def test_every_formula_has_an_operation(self):
        methods = {
            name
            for name, _ in inspect.getmembers(StandardFormulas, inspect.isfunction)
            if not name.startswith("_")
        }
        assert set(OPERATIONS) == methods

    def test_build_operation(self):
        op = build_operation("margin_percentage", "1000", "250")
        assert op == MarginPercentage("1000", "250")

    def test_build_operation_unknown_method(self):
        with pytest.raises(CalculationMethodNotFoundError) as exc:
            build_operation("doesNotExist", 1, 2)
        assert isinstance(exc.value, NotFoundError)
        assert "doesNotExist" in str(exc.value)
        assert "margin_percentage" in exc.value.detail["available"]

    def test_apply_dispatches_to_formula(self, formulas):
        assert ActualUnitCost("10", "4").apply(formulas) == Decimal("2.5")
        assert CompareAmounts("1", "1.5", "1").apply(formulas) is True

    def test_plan_list_frozen_as_tuple(self):
        op = AggregatePlanCost([{"budget": "1"}])
        assert isinstance(op.plans, tuple)
