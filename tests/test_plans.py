import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from idealab.config import FEATURE_COSTS
from idealab.models import Profile
from idealab.plans import (
    can_access_feature,
    get_feature_cost,
    get_plan_credits,
    get_required_plan,
    has_credits,
    has_feature_access,
)


def _profile(**kwargs):
    data = {"uid": "user-1", "plan": "free", "credits": 10, "first_analysis_done": True}
    data.update(kwargs)
    return Profile(**data)


def test_tool_costs_match_the_price_table():
    profile = _profile()
    assert get_feature_cost(profile, "pitch-deck") == 10
    assert get_feature_cost(profile, "landing-page-generator") == 18
    assert get_feature_cost(profile, "prd-mvp") == 5
    assert get_feature_cost(profile, "social-posts") == 3


def test_first_basic_analysis_is_free():
    assert get_feature_cost(_profile(first_analysis_done=False), "basic-analysis") == 0
    assert get_feature_cost(None, "basic-analysis") == 0
    assert get_feature_cost(_profile(first_analysis_done=True), "basic-analysis") == FEATURE_COSTS["basic-analysis"]


def test_pdf_export_is_free_on_business_plan():
    assert get_feature_cost(_profile(plan="business"), "pdf-export") == 0
    assert get_feature_cost(_profile(plan="entrepreneur"), "pdf-export") == 1


def test_unknown_feature_raises():
    with pytest.raises(KeyError):
        get_feature_cost(_profile(), "teleporter")


def test_has_credits():
    assert has_credits(_profile(credits=10), "pitch-deck")
    assert not has_credits(_profile(credits=9), "pitch-deck")
    assert not has_credits(None, "pitch-deck")


def test_plan_requirements():
    assert not has_feature_access(_profile(plan="free"), "simulator")
    assert has_feature_access(_profile(plan="entrepreneur"), "simulator")
    assert not has_feature_access(_profile(plan="entrepreneur"), "benchmarks")
    assert has_feature_access(_profile(plan="free"), "market-analysis")

    assert get_required_plan("benchmarks") == "business"
    assert get_required_plan("marketplace") == "entrepreneur"
    assert get_required_plan("pitch-deck") == "free"


def test_can_access_feature_needs_plan_and_credits():
    assert can_access_feature(_profile(plan="business", credits=5), "benchmarks")
    assert not can_access_feature(_profile(plan="business", credits=1), "benchmarks")
    assert not can_access_feature(_profile(plan="free", credits=100), "benchmarks")


def test_plan_credits():
    assert get_plan_credits("entrepreneur") == {"initial": 50, "monthly": 50}
    assert get_plan_credits("unknown") == get_plan_credits("free")
