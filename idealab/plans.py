"""
Plan access rules and per-feature credit costs.

The authoritative balance lives server-side; these checks only decide whether
the dashboard should attempt a paid action at all.
"""

from typing import Optional

from idealab.config import FEATURE_COSTS, FEATURE_PLAN_REQUIREMENTS, PLAN_CREDITS, PLANS
from idealab.models import Profile


def get_feature_cost(profile: Optional[Profile], feature: str) -> int:
    """Credits the given user would be charged for a feature."""
    if feature not in FEATURE_COSTS:
        raise KeyError(f"Unknown feature: {feature}")

    # First analysis is free
    if feature == "basic-analysis" and (profile is None or not profile.first_analysis_done):
        return 0

    # PDF export is free for the business plan
    if feature == "pdf-export" and profile is not None and profile.plan == "business":
        return 0

    return FEATURE_COSTS[feature]


def has_credits(profile: Optional[Profile], feature: str) -> bool:
    if profile is None:
        return False
    return profile.credits >= get_feature_cost(profile, feature)


def has_feature_access(profile: Optional[Profile], feature: str) -> bool:
    if profile is None:
        return False
    return profile.plan in FEATURE_PLAN_REQUIREMENTS.get(feature, PLANS)


def can_access_feature(profile: Optional[Profile], feature: str) -> bool:
    """Plan access and enough credits."""
    return has_feature_access(profile, feature) and has_credits(profile, feature)


def get_required_plan(feature: str) -> str:
    """Cheapest plan that unlocks a feature."""
    return FEATURE_PLAN_REQUIREMENTS.get(feature, PLANS)[0]


def get_plan_credits(plan: str) -> dict:
    return PLAN_CREDITS.get(plan, PLAN_CREDITS["free"])
