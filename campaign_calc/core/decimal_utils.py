"""
Campaign Calc — Decimal Utilities
Conversions between storage form (fixed point, 6 places) and in-memory Decimal,
plus the named rounding policies. Never use float near monetary values.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation, getcontext
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from campaign_calc.config import get_settings
from campaign_calc.core.exceptions import ConversionError, RoundingPolicyNotFoundError

DecimalLike = Union[str, int, float, Decimal]

STORAGE_PLACES = 6
STORAGE_QUANTUM = Decimal("0.000001")

# Set high-precision context for the importing thread
getcontext().prec = get_settings().DECIMAL_PRECISION


def decimal_context() -> Context:
    """Fresh arithmetic context for calculations; safe to use from any thread."""
    return Context(prec=get_settings().DECIMAL_PRECISION, rounding=ROUND_HALF_UP)


# ─── Rounding policies ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RoundingPolicy:
    places: int
    mode: str = ROUND_HALF_UP

    @property
    def quantum(self) -> Decimal:
        return Decimal(1).scaleb(-self.places)


ROUNDING_POLICIES: Mapping[str, RoundingPolicy] = MappingProxyType(
    {
        # microdollar precision
        "STORAGE": RoundingPolicy(places=6),
        "DISPLAY_DOLLARS": RoundingPolicy(places=2),
        "DISPLAY_SUBCENT": RoundingPolicy(places=3),
        "UNIT_COST": RoundingPolicy(places=4),
        "PERCENTAGE": RoundingPolicy(places=2),
        "CPM": RoundingPolicy(places=2),
    }
)

PolicyRef = Union[str, RoundingPolicy]


def get_rounding_policy(policy: PolicyRef) -> RoundingPolicy:
    if isinstance(policy, RoundingPolicy):
        return policy
    try:
        return ROUNDING_POLICIES[policy]
    except KeyError:
        raise RoundingPolicyNotFoundError(str(policy), ROUNDING_POLICIES) from None


# ─── Conversions ──────────────────────────────────────────────────────────────


def monetary(value: DecimalLike) -> Decimal:
    """
    Convert any numeric value to a Decimal suitable for monetary calculations.
    Raises ConversionError on malformed, non-finite or non-numeric input.
    """
    if isinstance(value, bool):
        raise ConversionError(value, "booleans are not amounts")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        # Force via string to avoid float imprecision
        result = Decimal(str(value))
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, str):
        # Decimal() tolerates digit-group underscores, amounts must not
        if "_" in value:
            raise ConversionError(value, "malformed decimal string")
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ConversionError(value, "malformed decimal string") from None
    else:
        raise ConversionError(value, f"unsupported type {type(value).__name__}")

    if not result.is_finite():
        raise ConversionError(value, "NaN and infinite values are not allowed")
    return result


def _trim(value: Decimal) -> Decimal:
    """Drop trailing fractional zeros without rounding any significant digit."""
    if value.is_zero():
        return Decimal(0)
    sign, digits, exponent = value.as_tuple()
    if exponent >= 0:
        return value
    trimmed = value.normalize(Context(prec=len(digits)))
    if trimmed.as_tuple().exponent > 0:
        trimmed = trimmed.quantize(Decimal(1), context=Context(prec=len(digits)))
    return trimmed


def to_storage_form(value: Optional[DecimalLike]) -> Optional[Decimal]:
    """Fixed-point storage value with exactly 6 fractional digits (half-up)."""
    if value is None:
        return None
    amount = monetary(value)
    try:
        stored = amount.quantize(STORAGE_QUANTUM, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ConversionError(value, "exceeds storage precision") from None
    if stored.is_zero():
        stored = stored.copy_abs()
    return stored


def to_arbitrary_precision(value: Optional[DecimalLike]) -> Optional[Decimal]:
    """Inverse of to_storage_form: storage padding is dropped, digits are kept."""
    if value is None:
        return None
    return _trim(monetary(value))


def to_display_string(value: Optional[DecimalLike]) -> Optional[str]:
    """Plain decimal string; never exponent notation, never a float repr."""
    if value is None:
        return None
    return format(monetary(value), "f")


def apply_rounding(value: DecimalLike, policy: PolicyRef) -> Decimal:
    resolved = get_rounding_policy(policy)
    try:
        return monetary(value).quantize(resolved.quantum, rounding=resolved.mode)
    except InvalidOperation:
        raise ConversionError(value, "exceeds precision") from None


def is_zero(amount: Decimal) -> bool:
    return amount == Decimal("0")


# ─── Record helpers (dot-path fields) ─────────────────────────────────────────

_MISSING = object()


def _get_path(record: Mapping[str, Any], path: str) -> Any:
    current: Any = record
    for key in path.split("."):
        if not isinstance(current, Mapping) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _set_path(record: Dict[str, Any], path: str, value: Any) -> None:
    *parents, last = path.split(".")
    target = record
    for key in parents:
        target = target.setdefault(key, {})
    target[last] = value


def _convert_fields(record: Mapping[str, Any], fields: Iterable[str], convert) -> Dict[str, Any]:
    result = copy.deepcopy(dict(record))
    for path in fields:
        value = _get_path(record, path)
        if value is _MISSING or value is None:
            continue
        _set_path(result, path, convert(value))
    return result


def convert_fields_to_storage(record: Mapping[str, Any], fields: Iterable[str]) -> Dict[str, Any]:
    """Return a copy of `record` with each present field in storage form."""
    return _convert_fields(record, fields, to_storage_form)


def convert_fields_to_string(record: Mapping[str, Any], fields: Iterable[str]) -> Dict[str, Any]:
    """Return a copy of `record` with each present field as a decimal string."""
    return _convert_fields(record, fields, to_display_string)
