"""
Campaign Calc — Unified Custom Exceptions.
Each exception carries: message, error_code, http_status_code, optional detail dict.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

# ─────────────────────────────────────────────────────────────────────────────
# BASE
# ─────────────────────────────────────────────────────────────────────────────


class CampaignCalcError(Exception):
    """Root exception for all calculation-engine errors."""

    http_status_code: int = 400
    error_code: str = "CAMPAIGN_CALC_ERROR"

    def __init__(self, message: str, detail: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.detail = detail or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "detail": self.detail,
        }


# ─────────────────────────────────────────────────────────────────────────────
# DECIMAL CONVERSION
# ─────────────────────────────────────────────────────────────────────────────


class ConversionError(CampaignCalcError):
    """Raised when a value cannot be read as a finite decimal. Never coerced to zero."""

    http_status_code = 422
    error_code = "CONVERSION_ERROR"

    def __init__(self, value: Any, reason: str = "not a valid finite decimal") -> None:
        self.value = value
        self.reason = reason
        super().__init__(
            message=f"Cannot convert {value!r} to a decimal value: {reason}",
            detail={
                "value": repr(value),
                "value_type": type(value).__name__,
                "reason": reason,
            },
        )


# ─────────────────────────────────────────────────────────────────────────────
# LOOKUPS
# ─────────────────────────────────────────────────────────────────────────────


class NotFoundError(CampaignCalcError):
    """A calculation method, version or rounding policy is not registered."""

    http_status_code = 404
    error_code = "NOT_FOUND"
    kind: str = "key"

    def __init__(self, key: str, available: Iterable[str] = ()) -> None:
        self.key = key
        self.available = sorted(available)
        super().__init__(
            message=f'{self.kind} "{key}" not found',
            detail={"key": key, "kind": self.kind, "available": self.available},
        )


class CalculationMethodNotFoundError(NotFoundError):
    error_code = "CALCULATION_METHOD_NOT_FOUND"
    kind = "Calculation method"


class CalculationVersionNotFoundError(NotFoundError):
    error_code = "CALCULATION_VERSION_NOT_FOUND"
    kind = "Calculation version"


class RoundingPolicyNotFoundError(NotFoundError):
    error_code = "ROUNDING_POLICY_NOT_FOUND"
    kind = "Rounding policy"


# ─────────────────────────────────────────────────────────────────────────────
# REGISTRY / ENGINE USAGE
# ─────────────────────────────────────────────────────────────────────────────


class VersionConflictError(CampaignCalcError):
    """Registered versions are immutable: a new version is added, never replaced."""

    http_status_code = 409
    error_code = "VERSION_CONFLICT"

    def __init__(self, version: str) -> None:
        self.version = version
        super().__init__(
            message=f'Calculation version "{version}" is already registered',
            detail={"version": version},
        )


class InvalidIntendedUseError(CampaignCalcError):
    http_status_code = 422
    error_code = "INVALID_INTENDED_USE"

    def __init__(self, intended_use: Any, allowed: Iterable[str]) -> None:
        self.intended_use = intended_use
        self.allowed = sorted(allowed)
        super().__init__(
            message=f"Unknown intended use {intended_use!r}; expected one of {self.allowed}",
            detail={"intended_use": repr(intended_use), "allowed": self.allowed},
        )
