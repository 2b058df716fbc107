"""
paperify/models/plan.py

Subscription plans and the canonical <-> display name table.

The ledger stores canonical names; the pricing page and the subscription
endpoint speak display names. Every boundary crossing goes through this
module.
"""

from enum import Enum
from typing import Optional


class PlanName(str, Enum):
    WEEKLY_UNLIMITED = "weekly_unlimited"
    MONTHLY_SPECIFIC = "monthly_specific"
    MONTHLY_UNLIMITED = "monthly_unlimited"


PLAN_DISPLAY_NAMES = {
    PlanName.WEEKLY_UNLIMITED: "short_term",
    PlanName.MONTHLY_SPECIFIC: "monthly",
    PlanName.MONTHLY_UNLIMITED: "ultimate",
}

DISPLAY_TO_PLAN = {display: plan for plan, display in PLAN_DISPLAY_NAMES.items()}

PLAN_VALIDITY_DAYS = {
    PlanName.WEEKLY_UNLIMITED: 14,
    PlanName.MONTHLY_SPECIFIC: 30,
    PlanName.MONTHLY_UNLIMITED: 30,
}
DEFAULT_VALIDITY_DAYS = 30

UNLIMITED_PLANS = frozenset({PlanName.WEEKLY_UNLIMITED, PlanName.MONTHLY_UNLIMITED})

DEMO_LIMIT = 3
SUBJECT_LIMIT = 30


def parse_plan(name: Optional[str]) -> Optional[PlanName]:
    """Resolve a canonical or display name to a PlanName (None if unknown)."""
    if not name:
        return None
    if name in DISPLAY_TO_PLAN:
        return DISPLAY_TO_PLAN[name]
    try:
        return PlanName(name)
    except ValueError:
        return None


def canonical_plan(name: str) -> str:
    """Canonical name for storage; unrecognized plans pass through verbatim."""
    plan = parse_plan(name)
    return plan.value if plan else name


def display_plan(name: str) -> str:
    """Display name for clients; unrecognized plans pass through verbatim."""
    plan = parse_plan(name)
    return PLAN_DISPLAY_NAMES[plan] if plan else name


def validity_days(name: str) -> int:
    plan = parse_plan(name)
    return PLAN_VALIDITY_DAYS.get(plan, DEFAULT_VALIDITY_DAYS) if plan else DEFAULT_VALIDITY_DAYS
