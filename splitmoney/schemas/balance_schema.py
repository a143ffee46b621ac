from pydantic import BaseModel, ConfigDict
from typing import Optional, List, Literal
from datetime import datetime
from decimal import Decimal
from splitmoney.schemas.expense_schema import ExpenseOut


class Balance(BaseModel):
    """Positive total_owed: member owes the group. Negative: member is owed."""
    model_config = ConfigDict(from_attributes=True)

    member_id: str
    group_id: str
    total_owed: Decimal
    expenses: List[ExpenseOut] = []


class BalanceSummary(BaseModel):
    member_id: str
    member_name: str
    total_owed: Decimal


class Debt(BaseModel):
    from_member_id: str
    from_member_name: str
    to_member_id: str
    to_member_name: str
    amount: Decimal


class GroupBalanceOverview(BaseModel):
    balances: List[Balance]
    summary: List[BalanceSummary]
    debts: List[Debt]
    calculated_at: datetime


class BalanceTrend(BaseModel):
    date: str
    total_owed: Decimal
    total_owed_to: Decimal
    net_balance: Decimal
    member_count: int


class MemberTrendPoint(BaseModel):
    date: str
    balance: Decimal


class MemberBalanceTrend(BaseModel):
    member_id: str
    member_name: str
    trends: List[MemberTrendPoint]


class BalanceDistribution(BaseModel):
    range: str
    member_count: int
    total_amount: Decimal


class BalanceAnalyticsSummary(BaseModel):
    total_owed: Decimal
    total_owed_to: Decimal
    net_balance: Decimal
    member_count: int
    members_owing: int
    members_owed: int
    average_owed: Decimal
    average_owed_to: Decimal


class BalanceAlertPreferences(BaseModel):
    enabled: bool = True
    high_balance_threshold: Decimal = Decimal("100")
    owed_to_you_threshold: Decimal = Decimal("50")
    you_owe_threshold: Decimal = Decimal("50")
    show_high_balance_alerts: bool = True
    show_owed_to_you_alerts: bool = True
    show_you_owe_alerts: bool = True


class BalanceAlert(BaseModel):
    id: str
    group_id: str
    group_name: str
    member_id: str
    member_name: str
    type: Literal["high_balance", "owed_to_you", "you_owe"]
    amount: Decimal
    threshold: Optional[Decimal] = None
    message: str
    severity: Literal["info", "warning", "error"]
    created_at: datetime
    acknowledged: bool = False
