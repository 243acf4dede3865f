#!/usr/bin/env python3
"""
Walk through the calculation engine: raw results, precision contexts,
contextual rounding rules, overrides and the service helpers.
"""

import sys
from pathlib import Path

# Allow running from project root
sys.path.insert(0, str(Path(__file__).parent.parent))

from campaign_calc.calculations.operations import (
    ActualUnitCost,
    AggregatePlanCost,
    MarginPercentage,
)
from campaign_calc.calculations.versions import CalculationContext
from campaign_calc.config import get_settings
from campaign_calc.logging_config import configure_logging
from campaign_calc.services.calculation_engine import build_calculation_engine


def main():
    configure_logging()
    engine = build_calculation_engine()
    settings = get_settings()
    print(f"Calculation engine - current version {settings.CALCULATION_VERSION}")
    print(f"  Environment: {settings.ENVIRONMENT}")

    print("\n1. Pure calculation - full precision")
    margin = engine.calculate(MarginPercentage("1000", "333.33"))
    print(f"  Raw value: {margin.value}")
    print(f"  Version:   {margin.calculation_version}")
    print(f"  Formula:   {margin.formula}")

    print("\n2. Precision contexts")
    print(f"  Storage: {engine.with_precision(margin, 'storage').formatted_value}")
    print(f"  Display: {engine.with_precision(margin, 'display').formatted_value}")

    print("\n3. Contextual rounding")
    youtube = engine.calculate(
        ActualUnitCost("100", "4321"),
        context=CalculationContext(platform="youtube", unit_type="views", product_type="cpv"),
    )
    formatted = engine.with_precision(youtube, "display")
    print(f"  YouTube CPV: ${formatted.formatted_value} ({formatted.applied_rule})")

    facebook = youtube.with_context(
        CalculationContext(platform="facebook", unit_type="views", product_type="video")
    )
    formatted = engine.with_precision(facebook, "display")
    print(f"  Facebook video: ${formatted.formatted_value} ({formatted.applied_rule})")

    print("\n4. Override")
    formatted = engine.with_precision(youtube, "display", "UNIT_COST")
    print(f"  Overridden CPV: ${formatted.formatted_value} ({formatted.override_policy})")

    print("\n5. Service helpers")
    service = engine.get_calculation_service()
    print(f"  Display: {service.format_unit_cost('100', '4321', 'youtube', 'views').display_text}")
    stored = service.calculate_for_storage("margin_percentage", "1000", "750")
    print(f"  Storage: {stored.string_value} (version {stored.metadata.calculation_version})")

    print("\n6. Aggregation")
    total = engine.calculate(
        AggregatePlanCost([{"budget": "100.123456"}, {"budget": "200.234567"}])
    )
    print(f"  Sum: {total.value} at {total.calculated_at.isoformat()}")


if __name__ == "__main__":
    main()
