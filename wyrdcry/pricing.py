"""
Pricing engine for fighter statlines.

A fighter costs the profile's base cost plus a signed term per characteristic,
measured as the difference from the baseline fighter times the rate.
Bravery is reversed (a lower threshold is better and costs more), power level
is priced from zero. The total never goes below zero.
"""

from .models import BASIC_FIGHTER, CostBreakdown, CostProfile, FighterProfile
from .parsing import finite_or_zero

# Characteristics priced as (fighter - baseline) * rate
_LINEAR_CHARACTERISTICS = ("move", "fight", "shoot", "defense", "health")


def calculate_cost(
    fighter: FighterProfile,
    profile: CostProfile,
    baseline: FighterProfile = BASIC_FIGHTER,
) -> CostBreakdown:
    """
    Price a fighter against a cost-rate profile.

    Non-finite values count as zero, so this always returns a result.

    Args:
        fighter: The fighter to price.
        profile: Active cost-rate profile (supplies rates and base cost).
        baseline: Reference fighter the differences are measured from.

    Returns:
        Per-characteristic breakdown and clamped total.
    """
    rates = profile.costs
    terms = {}

    for key in _LINEAR_CHARACTERISTICS:
        diff = finite_or_zero(getattr(fighter, key)) - finite_or_zero(getattr(baseline, key))
        terms[f"{key}_cost"] = diff * finite_or_zero(getattr(rates, key))

    bravery_diff = finite_or_zero(baseline.bravery) - finite_or_zero(fighter.bravery)
    terms["bravery_cost"] = bravery_diff * finite_or_zero(rates.bravery)
    terms["power_level_cost"] = finite_or_zero(fighter.power_level) * finite_or_zero(rates.powerlevel)

    base_cost = finite_or_zero(profile.base_cost)
    total = base_cost + sum(terms.values())

    return CostBreakdown(base_cost=base_cost, total=max(0.0, total), **terms)


def fighter_total(fighter: FighterProfile, profile: CostProfile) -> float:
    """Shortcut for the clamped total cost."""
    return calculate_cost(fighter, profile).total
