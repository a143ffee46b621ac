from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from splitmoney.api.v1.dependencies import get_balance_cache
from splitmoney.config import Settings, get_settings
from splitmoney.db.database import get_db
from splitmoney.schemas.balance_schema import (
    Balance, BalanceSummary, Debt, GroupBalanceOverview, BalanceTrend,
    MemberBalanceTrend, BalanceDistribution, BalanceAnalyticsSummary, BalanceAlert, BalanceAlertPreferences
)
from splitmoney.services.balance_alerts_service import check_balance_alerts, default_alert_preferences
from splitmoney.services.balance_analytics_service import (
    get_balance_trends, get_member_balance_trends, get_balance_distribution, get_balance_analytics_summary
)
from splitmoney.services.balance_optimization_service import calculate_simplified_debts, get_cached_group_balances
from splitmoney.services.balance_service import (
    calculate_group_balances, calculate_member_balance, calculate_settled_group_balances, get_balance_summary
)
from splitmoney.services.group_service import get_group_or_404, get_group_members, is_group_member
from splitmoney.utils.balance_cache import BalanceCache

router = APIRouter(prefix="/balances", tags=["balances"])


@router.get("/groups/{group_slug}", response_model=List[Balance])
def get_group_balances(group_slug: str, db: Session = Depends(get_db)):
    """Raw balances computed from expenses and splits"""
    group = get_group_or_404(db, group_slug)
    return calculate_group_balances(db, group.id)


@router.get("/groups/{group_slug}/members/{member_id}", response_model=Balance)
def get_member_balance(group_slug: str, member_id: str, db: Session = Depends(get_db)):
    """Raw balance of one member"""
    group = get_group_or_404(db, group_slug)
    if not is_group_member(db, group.id, member_id):
        raise HTTPException(status_code=404, detail="Member not found")
    return calculate_member_balance(db, member_id, group.id)


@router.get("/groups/{group_slug}/summary", response_model=List[BalanceSummary])
def get_group_balance_summary(group_slug: str, db: Session = Depends(get_db)):
    """Member names with their net balance"""
    group = get_group_or_404(db, group_slug)
    return get_balance_summary(db, group.id)


@router.get("/groups/{group_slug}/settled", response_model=List[Balance])
def get_group_settled_balances(group_slug: str, db: Session = Depends(get_db)):
    """Balances with recorded settlements applied"""
    group = get_group_or_404(db, group_slug)
    return calculate_settled_group_balances(db, group.id)


@router.get("/groups/{group_slug}/debts", response_model=List[Debt])
def get_group_debts(group_slug: str, db: Session = Depends(get_db)):
    """Simplified "who owes whom" debts"""
    group = get_group_or_404(db, group_slug)
    return calculate_simplified_debts(db, group.id, get_group_members(db, group.id))


@router.get("/groups/{group_slug}/overview", response_model=GroupBalanceOverview)
def get_group_balance_overview(
    group_slug: str,
    db: Session = Depends(get_db),
    cache: BalanceCache = Depends(get_balance_cache)
):
    """Balances, summary and debts, served from the balance cache when fresh"""
    group = get_group_or_404(db, group_slug)
    return get_cached_group_balances(db, group.id, cache)


@router.get("/groups/{group_slug}/analytics/summary", response_model=BalanceAnalyticsSummary)
def get_group_analytics_summary(group_slug: str, db: Session = Depends(get_db)):
    group = get_group_or_404(db, group_slug)
    return get_balance_analytics_summary(db, group.id)


@router.get("/groups/{group_slug}/analytics/trends", response_model=List[BalanceTrend])
def get_group_balance_trends(group_slug: str, db: Session = Depends(get_db)):
    group = get_group_or_404(db, group_slug)
    return get_balance_trends(db, group.id)


@router.get("/groups/{group_slug}/analytics/members", response_model=List[MemberBalanceTrend])
def get_group_member_trends(group_slug: str, db: Session = Depends(get_db)):
    group = get_group_or_404(db, group_slug)
    return get_member_balance_trends(db, group.id)


@router.get("/groups/{group_slug}/analytics/distribution", response_model=List[BalanceDistribution])
def get_group_balance_distribution(group_slug: str, db: Session = Depends(get_db)):
    group = get_group_or_404(db, group_slug)
    return get_balance_distribution(db, group.id)


@router.get("/groups/{group_slug}/alerts", response_model=List[BalanceAlert])
def get_group_balance_alerts(
    group_slug: str,
    current_member_id: Optional[str] = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """Balance alerts for a group, using the configured thresholds"""
    group = get_group_or_404(db, group_slug)
    return check_balance_alerts(db, group, default_alert_preferences(settings), current_member_id)


@router.post("/groups/{group_slug}/alerts", response_model=List[BalanceAlert])
def check_group_balance_alerts(
    group_slug: str,
    preferences: BalanceAlertPreferences,
    current_member_id: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Balance alerts for a group, using the caller's own thresholds"""
    group = get_group_or_404(db, group_slug)
    return check_balance_alerts(db, group, preferences, current_member_id)
