"""
Campaign Calc — Calculation operations.
One frozen dataclass per formula; each knows which formula it runs, so the
engine never dispatches on free-form strings except through build_operation().
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional, Tuple, Type

from campaign_calc.calculations.formulas import PlanLike, PureCalculations
from campaign_calc.core.decimal_utils import DecimalLike
from campaign_calc.core.exceptions import CalculationMethodNotFoundError


@dataclass(frozen=True)
class CalculationOperation:
    method: ClassVar[str] = ""

    def apply(self, calculations: PureCalculations) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class MarginPercentage(CalculationOperation):
    method: ClassVar[str] = "margin_percentage"
    revenue: DecimalLike
    cost: DecimalLike

    def apply(self, calculations: PureCalculations) -> Any:
        return calculations.margin_percentage(self.revenue, self.cost)


@dataclass(frozen=True)
class MarginAmount(CalculationOperation):
    method: ClassVar[str] = "margin_amount"
    revenue: DecimalLike
    cost: DecimalLike

    def apply(self, calculations: PureCalculations) -> Any:
        return calculations.margin_amount(self.revenue, self.cost)


@dataclass(frozen=True)
class ActualUnitCost(CalculationOperation):
    method: ClassVar[str] = "actual_unit_cost"
    spend: DecimalLike
    units: DecimalLike

    def apply(self, calculations: PureCalculations) -> Any:
        return calculations.actual_unit_cost(self.spend, self.units)


@dataclass(frozen=True)
class ProfitAmount(CalculationOperation):
    method: ClassVar[str] = "profit_amount"
    revenue: DecimalLike
    cost: DecimalLike

    def apply(self, calculations: PureCalculations) -> Any:
        return calculations.profit_amount(self.revenue, self.cost)


@dataclass(frozen=True)
class MarkupAmount(CalculationOperation):
    method: ClassVar[str] = "markup_amount"
    cost: DecimalLike
    markup_rate: DecimalLike

    def apply(self, calculations: PureCalculations) -> Any:
        return calculations.markup_amount(self.cost, self.markup_rate)


@dataclass(frozen=True)
class AggregatePlanCost(CalculationOperation):
    method: ClassVar[str] = "aggregate_plan_cost"
    plans: Tuple[PlanLike, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "plans", tuple(self.plans))

    def apply(self, calculations: PureCalculations) -> Any:
        return calculations.aggregate_plan_cost(self.plans)


@dataclass(frozen=True)
class AggregatePlanUnits(CalculationOperation):
    method: ClassVar[str] = "aggregate_plan_units"
    plans: Tuple[PlanLike, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "plans", tuple(self.plans))

    def apply(self, calculations: PureCalculations) -> Any:
        return calculations.aggregate_plan_units(self.plans)


@dataclass(frozen=True)
class FormatUnitPrice(CalculationOperation):
    method: ClassVar[str] = "format_unit_price"
    price: DecimalLike
    unit_type: str

    def apply(self, calculations: PureCalculations) -> Any:
        return calculations.format_unit_price(self.price, self.unit_type)


@dataclass(frozen=True)
class CompareAmounts(CalculationOperation):
    method: ClassVar[str] = "compare_amounts"
    expected: DecimalLike
    actual: DecimalLike
    tolerance: Optional[DecimalLike] = None

    def apply(self, calculations: PureCalculations) -> Any:
        return calculations.compare_amounts(self.expected, self.actual, self.tolerance)


OPERATIONS: Dict[str, Type[CalculationOperation]] = {
    op.method: op
    for op in (
        MarginPercentage,
        MarginAmount,
        ActualUnitCost,
        ProfitAmount,
        MarkupAmount,
        AggregatePlanCost,
        AggregatePlanUnits,
        FormatUnitPrice,
        CompareAmounts,
    )
}


def build_operation(method: str, *args: Any) -> CalculationOperation:
    """Build an operation from a method name, e.g. build_operation("margin_percentage", 1000, 250)."""
    try:
        operation_cls = OPERATIONS[method]
    except KeyError:
        raise CalculationMethodNotFoundError(method, OPERATIONS) from None
    return operation_cls(*args)
