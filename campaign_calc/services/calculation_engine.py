"""
Campaign Calc — Calculation Engine
Runs a calculation under the current (or a pinned) version, stamps the result
with version/timestamp/formula metadata, and applies precision for a target use.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal, localcontext
from typing import TYPE_CHECKING, Any, Optional, Union

from campaign_calc.calculations.formulas import PureCalculations
from campaign_calc.calculations.operations import CalculationOperation, build_operation
from campaign_calc.calculations.versions import (
    CalculationContext,
    CalculationVersion,
    IntendedUse,
    VersionRegistry,
    build_default_registry,
)
from campaign_calc.config import Settings, get_settings
from campaign_calc.core.decimal_utils import (
    apply_rounding,
    decimal_context,
    get_rounding_policy,
)
from campaign_calc.core.exceptions import InvalidIntendedUseError

if TYPE_CHECKING:
    from campaign_calc.services.calculation_service import CalculationService

logger = logging.getLogger(__name__)


# ─── Result types ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CalculationResult:
    value: Any
    calculation_version: str
    calculated_at: datetime
    formula: Optional[str] = None
    context: Optional[CalculationContext] = None

    def with_context(self, context: Optional[CalculationContext]) -> "CalculationResult":
        return replace(self, context=context)


@dataclass(frozen=True)
class FormattedResult:
    value: Decimal
    calculation_version: str
    calculated_at: datetime
    formatted_value: Decimal
    precision: int
    context: IntendedUse
    applied_rule: str
    formula: Optional[str] = None
    override_policy: Optional[str] = None
    original_context: Optional[CalculationContext] = None


def _intended_use(value: Union[IntendedUse, str]) -> IntendedUse:
    try:
        return IntendedUse(value)
    except ValueError:
        raise InvalidIntendedUseError(value, [u.value for u in IntendedUse]) from None


# ─── Engine ───────────────────────────────────────────────────────────────────


class CalculationEngine:
    """Stateless facade over an injected VersionRegistry."""

    def __init__(self, registry: VersionRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> VersionRegistry:
        return self._registry

    @property
    def calculations(self) -> PureCalculations:
        """Raw formula set of the current version (no rounding, no metadata)."""
        return self.get_version().calculations

    def get_version(self, version: Optional[str] = None) -> CalculationVersion:
        return self._registry.get(version)

    def calculate(
        self,
        operation: Union[CalculationOperation, str],
        *args: Any,
        version: Optional[str] = None,
        context: Optional[CalculationContext] = None,
    ) -> CalculationResult:
        """
        Evaluate `operation` and wrap the full-precision value with metadata.

        `operation` is either an operation object (MarginPercentage(...)) or a
        method name followed by its arguments ("margin_percentage", 1000, 250).
        """
        calc_version = self.get_version(version)
        if isinstance(operation, str):
            operation = build_operation(operation, *args)
        elif args:
            raise TypeError("positional arguments are only accepted with a method name")

        with localcontext(decimal_context()):
            value = operation.apply(calc_version.calculations)

        logger.debug(
            "calculated %s under version %s -> %s",
            operation.method,
            calc_version.version,
            value,
        )
        return CalculationResult(
            value=value,
            calculation_version=calc_version.version,
            calculated_at=datetime.now(timezone.utc),
            formula=calc_version.formulas.get(operation.method),
            context=context,
        )

    def with_precision(
        self,
        result: CalculationResult,
        intended_use: Union[IntendedUse, str],
        override_policy: Optional[str] = None,
    ) -> FormattedResult:
        """
        Round `result.value` for `intended_use`.

        Precedence: explicit override, then the first contextual rule of the
        result's own version that matches `result.context`, then the version's
        default policy for the intended use.
        """
        use = _intended_use(intended_use)
        calc_version = self.get_version(result.calculation_version)

        if override_policy:
            policy = get_rounding_policy(override_policy)
            applied_rule = "override"
        else:
            rule = None
            if result.context is not None:
                rule = calc_version.rounding_rules.first_match(result.context)
            if rule is not None:
                policy = get_rounding_policy(rule.policy)
                applied_rule = rule.name
            else:
                policy = get_rounding_policy(calc_version.rounding_rules.default_for(use))
                applied_rule = "default"

        logger.debug(
            "precision for %s: rule=%s places=%d", use.value, applied_rule, policy.places
        )
        with localcontext(decimal_context()):
            formatted_value = apply_rounding(result.value, policy)
        return FormattedResult(
            value=result.value,
            calculation_version=result.calculation_version,
            calculated_at=result.calculated_at,
            formula=result.formula,
            formatted_value=formatted_value,
            precision=policy.places,
            context=use,
            applied_rule=applied_rule,
            override_policy=override_policy or None,
            original_context=result.context,
        )

    def get_calculation_service(self) -> "CalculationService":
        from campaign_calc.services.calculation_service import CalculationService

        return CalculationService(self)


def build_calculation_engine(settings: Optional[Settings] = None) -> CalculationEngine:
    """Startup wiring: one registry per engine, handed to callers explicitly."""
    settings = settings or get_settings()
    registry = build_default_registry(current_version=settings.CALCULATION_VERSION)
    return CalculationEngine(registry)
