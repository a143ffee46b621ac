import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence
from sqlalchemy.orm import Session
from splitmoney.config import Settings
from splitmoney.models.groups import Group
from splitmoney.schemas.balance_schema import Balance, BalanceAlert, BalanceAlertPreferences
from splitmoney.services.balance_service import UNKNOWN_MEMBER, calculate_group_balances
from splitmoney.services.group_service import get_group_members

logger = logging.getLogger(__name__)

SEVERITY_ORDER = {"error": 3, "warning": 2, "info": 1}


def default_alert_preferences(settings: Settings) -> BalanceAlertPreferences:
    return BalanceAlertPreferences(
        enabled=settings.alerts_enabled,
        high_balance_threshold=settings.high_balance_threshold,
        owed_to_you_threshold=settings.owed_to_you_threshold,
        you_owe_threshold=settings.you_owe_threshold
    )


def build_balance_alerts(
    group: Group,
    balances: Sequence[Balance],
    member_names: dict,
    preferences: BalanceAlertPreferences,
    current_member_id: Optional[str] = None,
    now: Optional[datetime] = None
) -> List[BalanceAlert]:
    """
    Derive alerts from a group's balances.

    - high_balance: any member whose balance magnitude reaches the threshold
      (error at twice the threshold, warning otherwise)
    - owed_to_you: another member is owed at least the threshold
    - you_owe: the current member owes at least the threshold
    """
    if not preferences.enabled:
        return []

    now = now or datetime.now(timezone.utc)
    stamp = int(now.timestamp() * 1000)
    alerts = []

    for balance in balances:
        member_name = member_names.get(balance.member_id, UNKNOWN_MEMBER)
        amount = abs(balance.total_owed)

        if preferences.show_high_balance_alerts and amount >= preferences.high_balance_threshold:
            alerts.append(BalanceAlert(
                id=f"alert-{group.id}-{balance.member_id}-high-{stamp}",
                group_id=group.id,
                group_name=group.name,
                member_id=balance.member_id,
                member_name=member_name,
                type="high_balance",
                amount=amount,
                threshold=preferences.high_balance_threshold,
                message=f"{member_name} has a balance of ${amount:.2f} in {group.name}",
                severity="error" if amount >= preferences.high_balance_threshold * 2 else "warning",
                created_at=now
            ))

        if (
            current_member_id
            and preferences.show_owed_to_you_alerts
            and balance.member_id != current_member_id
            and balance.total_owed < 0
            and amount >= preferences.owed_to_you_threshold
        ):
            alerts.append(BalanceAlert(
                id=f"alert-{group.id}-{balance.member_id}-owed-{stamp}",
                group_id=group.id,
                group_name=group.name,
                member_id=balance.member_id,
                member_name=member_name,
                type="owed_to_you",
                amount=amount,
                threshold=preferences.owed_to_you_threshold,
                message=f"{member_name} is owed ${amount:.2f} in {group.name}",
                severity="info",
                created_at=now
            ))

        if (
            current_member_id
            and preferences.show_you_owe_alerts
            and balance.member_id == current_member_id
            and balance.total_owed > 0
            and balance.total_owed >= preferences.you_owe_threshold
        ):
            alerts.append(BalanceAlert(
                id=f"alert-{group.id}-{balance.member_id}-owe-{stamp}",
                group_id=group.id,
                group_name=group.name,
                member_id=balance.member_id,
                member_name=member_name,
                type="you_owe",
                amount=balance.total_owed,
                threshold=preferences.you_owe_threshold,
                message=f"You owe ${balance.total_owed:.2f} in {group.name}",
                severity="warning",
                created_at=now
            ))

    return alerts


def sort_alerts(alerts: Sequence[BalanceAlert]) -> List[BalanceAlert]:
    """Most important first: by severity, then by amount"""
    return sorted(alerts, key=lambda a: (SEVERITY_ORDER[a.severity], a.amount), reverse=True)


def check_balance_alerts(
    db: Session,
    group: Group,
    preferences: BalanceAlertPreferences,
    current_member_id: Optional[str] = None
) -> List[BalanceAlert]:
    """Check a group's balances against the alert thresholds"""
    if not preferences.enabled:
        return []

    members = get_group_members(db, group.id)
    balances = calculate_group_balances(db, group.id)
    alerts = build_balance_alerts(
        group, balances, {m.id: m.name for m in members}, preferences, current_member_id
    )
    logger.debug(f"{len(alerts)} balance alerts for group {group.id}")
    return sort_alerts(alerts)
