from pydantic import BaseModel
from typing import List, Literal
from decimal import Decimal


class CategoryBreakdown(BaseModel):
    category: str
    total_amount: Decimal
    expense_count: int
    percentage: Decimal


class SpendingTrend(BaseModel):
    date: str
    amount: Decimal


class MemberSpending(BaseModel):
    member_id: str
    member_name: str
    total_paid: Decimal
    total_owed: Decimal
    # total_paid - total_owed; positive means the member fronted more than their share
    net_amount: Decimal
    expense_count: int


class TimeBasedAnalysis(BaseModel):
    period: str
    total_amount: Decimal
    expense_count: int
    average_amount: Decimal


class TopSpender(BaseModel):
    member_name: str
    total_paid: Decimal


class GroupComparison(BaseModel):
    group_id: str
    group_name: str
    group_slug: str
    total_amount: Decimal
    expense_count: int
    member_count: int
    average_per_member: Decimal
    average_per_expense: Decimal
    category_breakdown: List[CategoryBreakdown]
    top_spenders: List[TopSpender]


class GroupAmount(BaseModel):
    name: str
    amount: Decimal


class ComparisonSummary(BaseModel):
    total_groups: int
    total_amount: Decimal
    total_expenses: int
    total_members: int
    average_per_group: Decimal
    average_per_expense: Decimal
    highest_spending_group: GroupAmount
    lowest_spending_group: GroupAmount


class DayOfWeekPattern(BaseModel):
    day: Literal["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
    count: int
    total_amount: Decimal
    average_amount: Decimal


class CategoryPattern(BaseModel):
    category: str
    frequency: int
    average_amount: Decimal
    total_amount: Decimal


class AmountRangePattern(BaseModel):
    range: str
    count: int
    total_amount: Decimal
