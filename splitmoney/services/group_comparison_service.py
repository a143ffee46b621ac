"""
Group Comparison Service

Side-by-side spending figures for several groups, and a summary across them.
"""

import logging
from decimal import Decimal
from typing import List, Sequence
from sqlalchemy.orm import Session
from splitmoney.models.groups import Group
from splitmoney.schemas.analytics_schema import ComparisonSummary, GroupAmount, GroupComparison, TopSpender
from splitmoney.services.expense_analytics_service import get_category_breakdown, get_member_spending
from splitmoney.services.group_service import get_group_members, get_group_or_404
from splitmoney.utils.min_cash_flow import round_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
TOP_SPENDERS = 5


def build_group_comparison(db: Session, group: Group) -> GroupComparison:
    breakdown = get_category_breakdown(db, group.id)
    member_count = len(get_group_members(db, group.id))
    total_amount = sum((item.total_amount for item in breakdown), ZERO)
    expense_count = sum(item.expense_count for item in breakdown)

    top_spenders = [
        TopSpender(member_name=spending.member_name, total_paid=spending.total_paid)
        for spending in get_member_spending(db, group.id)[:TOP_SPENDERS]
    ]

    return GroupComparison(
        group_id=group.id,
        group_name=group.name,
        group_slug=group.slug,
        total_amount=total_amount,
        expense_count=expense_count,
        member_count=member_count,
        average_per_member=round_decimal(total_amount / member_count) if member_count else ZERO,
        average_per_expense=round_decimal(total_amount / expense_count) if expense_count else ZERO,
        category_breakdown=breakdown,
        top_spenders=top_spenders
    )


def compare_groups(db: Session, group_slugs: Sequence[str]) -> List[GroupComparison]:
    """Comparison rows in the order the slugs were given; an unknown slug is a 404"""
    groups = [get_group_or_404(db, slug) for slug in group_slugs]
    logger.info(f"Comparing {len(groups)} groups")
    return [build_group_comparison(db, group) for group in groups]


def summarize_comparisons(comparisons: Sequence[GroupComparison]) -> ComparisonSummary:
    if not comparisons:
        return ComparisonSummary(
            total_groups=0,
            total_amount=ZERO,
            total_expenses=0,
            total_members=0,
            average_per_group=ZERO,
            average_per_expense=ZERO,
            highest_spending_group=GroupAmount(name="", amount=ZERO),
            lowest_spending_group=GroupAmount(name="", amount=ZERO)
        )

    total_amount = sum((c.total_amount for c in comparisons), ZERO)
    total_expenses = sum(c.expense_count for c in comparisons)
    highest = max(comparisons, key=lambda c: c.total_amount)
    lowest = min(comparisons, key=lambda c: c.total_amount)

    return ComparisonSummary(
        total_groups=len(comparisons),
        total_amount=total_amount,
        total_expenses=total_expenses,
        total_members=sum(c.member_count for c in comparisons),
        average_per_group=round_decimal(total_amount / len(comparisons)),
        average_per_expense=round_decimal(total_amount / total_expenses) if total_expenses else ZERO,
        highest_spending_group=GroupAmount(name=highest.group_name, amount=highest.total_amount),
        lowest_spending_group=GroupAmount(name=lowest.group_name, amount=lowest.total_amount)
    )


def get_comparison_summary(db: Session, group_slugs: Sequence[str]) -> ComparisonSummary:
    return summarize_comparisons(compare_groups(db, group_slugs))
