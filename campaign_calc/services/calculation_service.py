"""
Campaign Calc — Calculation Service
Ready-to-display and ready-to-store values for route handlers and import jobs.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional, Union

from pydantic import BaseModel

from campaign_calc.calculations.operations import ActualUnitCost, CalculationOperation
from campaign_calc.calculations.versions import CalculationContext, IntendedUse
from campaign_calc.core.decimal_utils import (
    DecimalLike,
    STORAGE_PLACES,
    to_display_string,
    to_storage_form,
)

if TYPE_CHECKING:
    from campaign_calc.services.calculation_engine import CalculationEngine

_PRODUCT_TYPES = {
    "views": "cpv",
    "view": "cpv",
    "clicks": "cpc",
    "click": "cpc",
    "impressions": "cpm",
    "impression": "cpm",
}


class DisplayMetadata(BaseModel):
    calculation_version: str
    precision: int


class DisplayValue(BaseModel):
    value: str
    display_text: str
    metadata: DisplayMetadata


class StorageMetadata(BaseModel):
    calculation_version: str
    calculated_at: datetime


class StorageValue(BaseModel):
    storage_value: Decimal
    string_value: str
    metadata: StorageMetadata


def infer_product_type(unit_type: Optional[str]) -> str:
    return _PRODUCT_TYPES.get((unit_type or "").lower(), "unknown")


def _fixed(value: Decimal, places: int) -> str:
    return to_display_string(value.quantize(Decimal(1).scaleb(-places)))


class CalculationService:
    def __init__(self, engine: "CalculationEngine") -> None:
        self.engine = engine

    def format_unit_cost(
        self,
        spend: DecimalLike,
        units: DecimalLike,
        platform: Optional[str] = None,
        unit_type: Optional[str] = None,
    ) -> DisplayValue:
        context = CalculationContext(
            platform=platform,
            unit_type=unit_type,
            product_type=infer_product_type(unit_type),
        )
        result = self.engine.calculate(ActualUnitCost(spend, units), context=context)
        formatted = self.engine.with_precision(result, IntendedUse.DISPLAY)

        if platform == "youtube" and unit_type == "views":
            shown = _fixed(formatted.formatted_value, 3)
            return DisplayValue(
                value=shown,
                display_text=f"${shown} CPV",
                metadata=DisplayMetadata(
                    calculation_version=result.calculation_version, precision=3
                ),
            )

        shown = _fixed(formatted.formatted_value, formatted.precision)
        return DisplayValue(
            value=shown,
            display_text=f"${shown}",
            metadata=DisplayMetadata(
                calculation_version=result.calculation_version,
                precision=formatted.precision,
            ),
        )

    def calculate_for_storage(
        self, operation: Union[CalculationOperation, str], *args: Any
    ) -> StorageValue:
        result = self.engine.calculate(operation, *args)
        formatted = self.engine.with_precision(result, IntendedUse.STORAGE)
        stored = to_storage_form(formatted.formatted_value)

        return StorageValue(
            storage_value=stored,
            string_value=_fixed(stored, STORAGE_PLACES),
            metadata=StorageMetadata(
                calculation_version=result.calculation_version,
                calculated_at=result.calculated_at,
            ),
        )
