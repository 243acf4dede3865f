"""
Campaign Calc — Calculation Version Registry
Binds a version string to its formula set, formula text and rounding rules.
Versions are added, never edited, so stored results stay reproducible under
the version recorded when they were calculated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP
from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from campaign_calc.calculations.formulas import PureCalculations, StandardFormulas
from campaign_calc.core.decimal_utils import PolicyRef, RoundingPolicy
from campaign_calc.core.exceptions import (
    CalculationVersionNotFoundError,
    VersionConflictError,
)

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "1.0.0"


class IntendedUse(str, Enum):
    STORAGE = "storage"
    DISPLAY = "display"
    API = "api"


@dataclass(frozen=True)
class CalculationContext:
    platform: Optional[str] = None
    unit_type: Optional[str] = None
    product_type: Optional[str] = None


@dataclass(frozen=True)
class ContextualRoundingRule:
    name: str
    condition: Callable[[CalculationContext], bool]
    policy: PolicyRef

    def matches(self, context: CalculationContext) -> bool:
        return bool(self.condition(context))


@dataclass(frozen=True)
class RoundingRules:
    contextual: Tuple[ContextualRoundingRule, ...] = ()
    defaults: Mapping[IntendedUse, str] = field(
        default_factory=lambda: MappingProxyType(
            {
                IntendedUse.STORAGE: "STORAGE",
                IntendedUse.DISPLAY: "DISPLAY_DOLLARS",
                IntendedUse.API: "DISPLAY_DOLLARS",
            }
        )
    )

    def first_match(self, context: CalculationContext) -> Optional[ContextualRoundingRule]:
        """Rules are tried in order; the first matching rule wins."""
        for rule in self.contextual:
            if rule.matches(context):
                return rule
        return None

    def default_for(self, intended_use: IntendedUse) -> str:
        return self.defaults.get(intended_use, "STORAGE")


@dataclass(frozen=True)
class CalculationVersion:
    version: str
    effective_date: date
    description: str
    calculations: PureCalculations
    formulas: Mapping[str, str] = field(default_factory=dict)
    rounding_rules: RoundingRules = field(default_factory=RoundingRules)
    deprecated: Optional[date] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "formulas", MappingProxyType(dict(self.formulas)))
        object.__setattr__(
            self,
            "rounding_rules",
            RoundingRules(
                contextual=tuple(self.rounding_rules.contextual),
                defaults=MappingProxyType(dict(self.rounding_rules.defaults)),
            ),
        )

    def is_deprecated(self, on: Optional[date] = None) -> bool:
        if self.deprecated is None:
            return False
        return (on or date.today()) >= self.deprecated


class VersionRegistry:
    """Version string -> CalculationVersion. Built once at startup, then read-only."""

    def __init__(self, current_version: str = DEFAULT_VERSION) -> None:
        self._versions: Dict[str, CalculationVersion] = {}
        self._current = current_version

    @property
    def current_version(self) -> str:
        return self._current

    def register(self, version: CalculationVersion, make_current: bool = False) -> None:
        if version.version in self._versions:
            raise VersionConflictError(version.version)
        self._versions[version.version] = version
        if make_current:
            self._current = version.version
        logger.info(
            "Registered calculation version %s (effective %s)%s",
            version.version,
            version.effective_date.isoformat(),
            " as current" if make_current else "",
        )

    def get(self, version: Optional[str] = None) -> CalculationVersion:
        key = version or self._current
        try:
            return self._versions[key]
        except KeyError:
            raise CalculationVersionNotFoundError(key, self._versions) from None

    def versions(self) -> List[str]:
        return sorted(self._versions)

    def __contains__(self, version: object) -> bool:
        return version in self._versions

    def __len__(self) -> int:
        return len(self._versions)


# ─── Version 1.0.0 ────────────────────────────────────────────────────────────

V1_FORMULAS: Dict[str, str] = {
    "margin_percentage": "((revenue - cost) / revenue) * 100",
    "margin_amount": "revenue - cost",
    "actual_unit_cost": "spend / units",
    "profit_amount": "revenue - cost",
    "markup_amount": "cost * (markup_rate / 100)",
    "aggregate_plan_cost": "sum(plan.budget)",
    "aggregate_plan_units": "sum(plan.planned_units)",
}


def _youtube_views(ctx: CalculationContext) -> bool:
    return ctx.platform == "youtube" and ctx.unit_type == "views"


def _facebook_video(ctx: CalculationContext) -> bool:
    return ctx.platform == "facebook" and ctx.product_type == "video"


def build_version_1() -> CalculationVersion:
    return CalculationVersion(
        version="1.0.0",
        effective_date=date(2025, 1, 1),
        description="Calculation engine with separated calculation logic and rounding policies",
        calculations=StandardFormulas(),
        formulas=V1_FORMULAS,
        rounding_rules=RoundingRules(
            contextual=(
                ContextualRoundingRule(
                    name="youtube_cpv_subcent",
                    condition=_youtube_views,
                    policy="DISPLAY_SUBCENT",
                ),
                ContextualRoundingRule(
                    name="facebook_video_custom",
                    condition=_facebook_video,
                    policy=RoundingPolicy(places=4, mode=ROUND_HALF_UP),
                ),
            ),
        ),
    )


def build_default_registry(current_version: str = DEFAULT_VERSION) -> VersionRegistry:
    registry = VersionRegistry(current_version=current_version)
    registry.register(build_version_1())
    # fail at startup rather than on the first calculation
    registry.get()
    return registry
