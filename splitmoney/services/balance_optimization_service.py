import logging
from datetime import datetime, timezone
from typing import List, Sequence
from sqlalchemy.orm import Session
from splitmoney.schemas.balance_schema import Balance, Debt, GroupBalanceOverview
from splitmoney.services.balance_service import (
    UNKNOWN_MEMBER, calculate_group_balances, summarize_balances
)
from splitmoney.services.group_service import get_group_members
from splitmoney.utils.balance_cache import BalanceCache, CachedGroupBalances
from splitmoney.utils.min_cash_flow import simplify_debts

logger = logging.getLogger(__name__)


def optimize_debts(balances: Sequence[Balance], members: Sequence) -> List[Debt]:
    """
    Turn member balances into "who pays whom" debts using the Min-Cash-Flow algorithm.

    Args:
        balances: Balances in member order (ties in the greedy matching keep this order)
        members: Member directory used to resolve display names

    Returns:
        List of Debt objects, each amount above one cent and rounded to cents
    """
    names = {member.id: member.name for member in members}
    balance_map = {balance.member_id: balance.total_owed for balance in balances}

    return [
        Debt(
            from_member_id=debt["from"],
            from_member_name=names.get(debt["from"], UNKNOWN_MEMBER),
            to_member_id=debt["to"],
            to_member_name=names.get(debt["to"], UNKNOWN_MEMBER),
            amount=debt["amount"]
        )
        for debt in simplify_debts(balance_map)
    ]


def calculate_simplified_debts(db: Session, group_id: str, members: Sequence) -> List[Debt]:
    """Calculate simplified debts (who owes whom) for a group"""
    balances = calculate_group_balances(db, group_id)
    return optimize_debts(balances, members)


def get_cached_group_balances(db: Session, group_id: str, cache: BalanceCache) -> GroupBalanceOverview:
    """Get balances, summary and debts for a group, from the cache when fresh"""
    cached = cache.get(group_id)
    if cached is not None:
        logger.debug(f"Balance cache hit for group {group_id}")
    else:
        logger.debug(f"Balance cache miss for group {group_id}")
        members = get_group_members(db, group_id)
        balances = calculate_group_balances(db, group_id)
        cached = CachedGroupBalances(
            balances=balances,
            summary=summarize_balances(balances, {m.id: m.name for m in members}),
            debts=optimize_debts(balances, members),
            calculated_at=datetime.now(timezone.utc)
        )
        cache.put(group_id, cached)

    return GroupBalanceOverview(
        balances=cached.balances,
        summary=cached.summary,
        debts=cached.debts,
        calculated_at=cached.calculated_at
    )
