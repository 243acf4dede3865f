"""
Campaign Calc — Storage column type for calculated amounts.
Values are written as fixed point with 6 fractional digits and read back as Decimal.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import Numeric, String
from sqlalchemy.types import TypeDecorator

from campaign_calc.core.decimal_utils import (
    STORAGE_PLACES,
    to_arbitrary_precision,
    to_display_string,
    to_storage_form,
)


class StorageDecimal(TypeDecorator):
    """NUMERIC(28, 6) column; SQLite keeps the 6-place string so nothing passes through float."""

    impl = Numeric(precision=28, scale=STORAGE_PLACES)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(40))
        return dialect.type_descriptor(
            Numeric(precision=28, scale=STORAGE_PLACES, asdecimal=True)
        )

    def process_bind_param(self, value: Any, dialect) -> Any:
        stored = to_storage_form(value)
        if stored is None:
            return None
        if dialect.name == "sqlite":
            return to_display_string(stored)
        return stored

    def process_result_value(self, value: Any, dialect) -> Optional[Decimal]:
        return to_arbitrary_precision(value)
