"""
Tests for plan name aliasing and validity windows.
"""
import pytest

from paperify.models.plan import (
    PlanName,
    canonical_plan,
    display_plan,
    parse_plan,
    validity_days,
)


@pytest.mark.parametrize("display,canonical", [
    ("short_term", "weekly_unlimited"),
    ("monthly", "monthly_specific"),
    ("ultimate", "monthly_unlimited"),
])
def test_display_names_map_to_canonical(display, canonical):
    assert canonical_plan(display) == canonical
    assert display_plan(canonical) == display
    # Already canonical names are stable
    assert canonical_plan(canonical) == canonical
    assert display_plan(display) == display


def test_unknown_plan_passes_through():
    assert parse_plan("platinum") is None
    assert canonical_plan("platinum") == "platinum"
    assert display_plan("platinum") == "platinum"
    assert parse_plan(None) is None
    assert parse_plan("") is None


def test_validity_windows():
    assert validity_days("short_term") == 14
    assert validity_days(PlanName.WEEKLY_UNLIMITED.value) == 14
    assert validity_days("monthly") == 30
    assert validity_days("ultimate") == 30
    assert validity_days("platinum") == 30
