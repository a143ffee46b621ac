"""
Balance Analytics Service

Trend, distribution and summary views over a group's balances. Trends use
balances with settlements applied; distribution and summary use the raw
balances computed from expenses.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence
from sqlalchemy.orm import Session
from splitmoney.schemas.balance_schema import (
    Balance, BalanceTrend, BalanceDistribution, BalanceAnalyticsSummary,
    MemberBalanceTrend, MemberTrendPoint
)
from splitmoney.services.balance_service import calculate_group_balances, calculate_settled_group_balances
from splitmoney.services.group_service import get_group_members
from splitmoney.utils.min_cash_flow import TOLERANCE, round_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# (lower bound inclusive, upper bound exclusive, label); None means unbounded
DISTRIBUTION_RANGES = [
    (None, Decimal("-100"), "< -$100"),
    (Decimal("-100"), Decimal("-50"), "-$100 to -$50"),
    (Decimal("-50"), Decimal("-10"), "-$50 to -$10"),
    (Decimal("-10"), ZERO, "-$10 to $0"),
    (ZERO, Decimal("10"), "$0 to $10"),
    (Decimal("10"), Decimal("50"), "$10 to $50"),
    (Decimal("50"), Decimal("100"), "$50 to $100"),
    (Decimal("100"), None, "> $100"),
]


def _owed_totals(balances: Sequence[Balance]):
    total_owed = sum((b.total_owed for b in balances if b.total_owed > 0), ZERO)
    total_owed_to = abs(sum((b.total_owed for b in balances if b.total_owed < 0), ZERO))
    return total_owed, total_owed_to


def _today(today: Optional[date]) -> str:
    return (today or date.today()).isoformat()


def summarize_trend(balances: Sequence[Balance], today: Optional[date] = None) -> BalanceTrend:
    total_owed, total_owed_to = _owed_totals(balances)
    return BalanceTrend(
        date=_today(today),
        total_owed=total_owed,
        total_owed_to=total_owed_to,
        net_balance=total_owed - total_owed_to,
        member_count=sum(1 for b in balances if abs(b.total_owed) > TOLERANCE)
    )


def get_balance_trends(db: Session, group_id: str, today: Optional[date] = None) -> List[BalanceTrend]:
    """
    Balance trend for a group.

    Only the current state is tracked, so this is a single data point for
    today computed from the settled balances.
    """
    return [summarize_trend(calculate_settled_group_balances(db, group_id), today)]


def get_member_balance_trends(db: Session, group_id: str, today: Optional[date] = None) -> List[MemberBalanceTrend]:
    """Current settled balance of every member as a one-point trend"""
    members = get_group_members(db, group_id)
    balances = {b.member_id: b.total_owed for b in calculate_settled_group_balances(db, group_id)}

    return [
        MemberBalanceTrend(
            member_id=member.id,
            member_name=member.name,
            trends=[MemberTrendPoint(date=_today(today), balance=balances.get(member.id, ZERO))]
        )
        for member in members
    ]


def distribute_balances(balances: Sequence[Balance]) -> List[BalanceDistribution]:
    """Bucket balances by amount; empty buckets are omitted"""
    buckets = [
        BalanceDistribution(range=label, member_count=0, total_amount=ZERO)
        for _, _, label in DISTRIBUTION_RANGES
    ]

    for balance in balances:
        amount = balance.total_owed
        for index, (low, high, _) in enumerate(DISTRIBUTION_RANGES):
            if (low is None or amount >= low) and (high is None or amount < high):
                buckets[index].member_count += 1
                buckets[index].total_amount += abs(amount)
                break

    return [bucket for bucket in buckets if bucket.member_count > 0]


def get_balance_distribution(db: Session, group_id: str) -> List[BalanceDistribution]:
    """How many members owe or are owed in each amount range"""
    return distribute_balances(calculate_group_balances(db, group_id))


def summarize_analytics(balances: Sequence[Balance]) -> BalanceAnalyticsSummary:
    total_owed, total_owed_to = _owed_totals(balances)
    members_owing = sum(1 for b in balances if b.total_owed > TOLERANCE)
    members_owed = sum(1 for b in balances if b.total_owed < -TOLERANCE)

    return BalanceAnalyticsSummary(
        total_owed=total_owed,
        total_owed_to=total_owed_to,
        net_balance=total_owed - total_owed_to,
        member_count=len(balances),
        members_owing=members_owing,
        members_owed=members_owed,
        average_owed=round_decimal(total_owed / members_owing) if members_owing else ZERO,
        average_owed_to=round_decimal(total_owed_to / members_owed) if members_owed else ZERO
    )


def get_balance_analytics_summary(db: Session, group_id: str) -> BalanceAnalyticsSummary:
    """Totals, counts and averages over a group's balances"""
    return summarize_analytics(calculate_group_balances(db, group_id))
