"""
Campaign Calc — Pure Calculation Library
Side-effect-free formulas on Decimal inputs. Nothing here rounds: every result
keeps full precision until the engine applies a rounding policy.
Zero denominators resolve to 0 by business rule, they are not errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Protocol, Union

from campaign_calc.core.decimal_utils import (
    DecimalLike,
    apply_rounding,
    is_zero,
    monetary,
    to_display_string,
    to_storage_form,
)
from campaign_calc.core.exceptions import ConversionError

DEFAULT_TOLERANCE = Decimal("0.01")

# ─── Inputs / outputs ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class MediaPlan:
    budget: Optional[DecimalLike]
    planned_units: Optional[DecimalLike] = None
    platform: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "MediaPlan":
        """Accepts ETL/document records using either camelCase or snake_case keys."""
        planned = data.get("plannedUnits", data.get("planned_units"))
        return cls(
            budget=data.get("budget"),
            planned_units=planned,
            platform=data.get("platform"),
        )


PlanLike = Union[MediaPlan, Mapping[str, Any]]


def _as_plan(plan: PlanLike) -> MediaPlan:
    if isinstance(plan, MediaPlan):
        return plan
    return MediaPlan.from_mapping(plan)


@dataclass(frozen=True)
class PricingDisplay:
    unit_price: str
    display_price: str
    display_format: str
    display_unit: str


# (display unit, multiplier exponent) keyed by lower-cased unit type
_UNIT_LABELS = {
    "impressions": ("CPM", 3),
    "impression": ("CPM", 3),
    "clicks": ("CPC", 0),
    "click": ("CPC", 0),
    "views": ("CPV", 0),
    "view": ("CPV", 0),
    "video_views": ("CPV", 0),
    "conversions": ("CPA", 0),
    "conversion": ("CPA", 0),
    "engagements": ("CPE", 0),
    "engagement": ("CPE", 0),
}


# ─── Formula set contract ─────────────────────────────────────────────────────


class PureCalculations(Protocol):
    def margin_percentage(self, revenue: DecimalLike, cost: DecimalLike) -> Decimal: ...

    def margin_amount(self, revenue: DecimalLike, cost: DecimalLike) -> Decimal: ...

    def actual_unit_cost(self, spend: DecimalLike, units: DecimalLike) -> Decimal: ...

    def profit_amount(self, revenue: DecimalLike, cost: DecimalLike) -> Decimal: ...

    def markup_amount(self, cost: DecimalLike, markup_rate: DecimalLike) -> Decimal: ...

    def aggregate_plan_cost(self, plans: Iterable[PlanLike]) -> Decimal: ...

    def aggregate_plan_units(self, plans: Iterable[PlanLike]) -> Decimal: ...

    def format_unit_price(self, price: DecimalLike, unit_type: str) -> PricingDisplay: ...

    def compare_amounts(
        self,
        expected: DecimalLike,
        actual: DecimalLike,
        tolerance: Optional[DecimalLike] = None,
    ) -> bool: ...


# ─── Version 1 formulas ───────────────────────────────────────────────────────


class StandardFormulas:
    """
    Formula set registered as calculation version 1.0.0.

    Powers of ten are applied with scaleb() so that scaling shifts the exponent
    instead of padding the coefficient: (1000 - 333.33) / 1000 * 100 == 66.667.
    """

    def margin_percentage(self, revenue: DecimalLike, cost: DecimalLike) -> Decimal:
        revenue, cost = monetary(revenue), monetary(cost)
        if is_zero(revenue):
            return Decimal(0)
        return ((revenue - cost) / revenue).scaleb(2)

    def margin_amount(self, revenue: DecimalLike, cost: DecimalLike) -> Decimal:
        return monetary(revenue) - monetary(cost)

    def actual_unit_cost(self, spend: DecimalLike, units: DecimalLike) -> Decimal:
        spend, units = monetary(spend), monetary(units)
        if is_zero(units):
            return Decimal(0)
        return spend / units

    def profit_amount(self, revenue: DecimalLike, cost: DecimalLike) -> Decimal:
        return monetary(revenue) - monetary(cost)

    def markup_amount(self, cost: DecimalLike, markup_rate: DecimalLike) -> Decimal:
        return monetary(cost) * monetary(markup_rate).scaleb(-2)

    def aggregate_plan_cost(self, plans: Iterable[PlanLike]) -> Decimal:
        total = Decimal(0)
        for plan in plans:
            budget = _as_plan(plan).budget
            if budget is None:
                raise ConversionError(plan, "plan has no budget")
            total += monetary(budget)
        return total

    def aggregate_plan_units(self, plans: Iterable[PlanLike]) -> Decimal:
        total = Decimal(0)
        for plan in plans:
            units = _as_plan(plan).planned_units
            if units is None or units == "":
                continue
            total += monetary(units)
        return total

    def format_unit_price(self, price: DecimalLike, unit_type: str) -> PricingDisplay:
        price = monetary(price)
        unit_price = to_display_string(to_storage_form(price))
        label, exponent = _UNIT_LABELS.get((unit_type or "").lower(), ("Cost", 0))
        policy = "CPM" if label == "CPM" else "DISPLAY_DOLLARS"
        shown = to_display_string(apply_rounding(price.scaleb(exponent), policy))
        suffix = "" if label == "Cost" else f" {label}"
        return PricingDisplay(
            unit_price=unit_price,
            display_price=shown,
            display_format=f"${shown}{suffix}",
            display_unit=label,
        )

    def compare_amounts(
        self,
        expected: DecimalLike,
        actual: DecimalLike,
        tolerance: Optional[DecimalLike] = None,
    ) -> bool:
        tol = DEFAULT_TOLERANCE if tolerance is None else monetary(tolerance)
        return abs(monetary(expected) - monetary(actual)) <= tol
