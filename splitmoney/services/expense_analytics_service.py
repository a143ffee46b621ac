"""
Expense Analytics Service

Spending views over a group's unsettled expenses:
- Category breakdown and category patterns
- Daily spending trends and monthly or weekly period totals
- What each member paid against what they owe
- Day-of-week and amount-range patterns

The pure functions take expenses (and splits) already loaded, the db
wrappers below them load a group's unsettled expenses first.
"""

import logging
from collections import OrderedDict
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Literal, Optional, Sequence
from sqlalchemy.orm import Session
from splitmoney.models.expenses import Expense, ExpenseSplit
from splitmoney.models.groups import Member
from splitmoney.schemas.analytics_schema import (
    AmountRangePattern, CategoryBreakdown, CategoryPattern, DayOfWeekPattern,
    MemberSpending, SpendingTrend, TimeBasedAnalysis
)
from splitmoney.services.expense_service import get_splits_for_expenses, get_unsettled_expenses
from splitmoney.services.group_service import get_group_members
from splitmoney.utils.min_cash_flow import round_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
UNCATEGORIZED = "Uncategorized"

DAYS_OF_WEEK = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

# (lower bound inclusive, upper bound exclusive, label); None means unbounded
AMOUNT_RANGES = [
    (ZERO, Decimal("10"), "$0 - $10"),
    (Decimal("10"), Decimal("50"), "$10 - $50"),
    (Decimal("50"), Decimal("100"), "$50 - $100"),
    (Decimal("100"), Decimal("500"), "$100 - $500"),
    (Decimal("500"), None, "$500+"),
]

Period = Literal["monthly", "weekly"]


def _expense_day(expense: Expense) -> date:
    value = expense.date
    return value.date() if isinstance(value, datetime) else value


def _category(expense: Expense) -> str:
    return expense.category or UNCATEGORIZED


def _average(total: Decimal, count: int) -> Decimal:
    return round_decimal(total / count) if count else ZERO


def breakdown_by_category(expenses: Sequence[Expense]) -> List[CategoryBreakdown]:
    """Total and share of spending per category, largest first"""
    totals: Dict[str, Decimal] = OrderedDict()
    counts: Dict[str, int] = {}
    for expense in expenses:
        category = _category(expense)
        totals[category] = totals.get(category, ZERO) + expense.amount
        counts[category] = counts.get(category, 0) + 1

    grand_total = sum(totals.values(), ZERO)
    breakdown = [
        CategoryBreakdown(
            category=category,
            total_amount=total,
            expense_count=counts[category],
            percentage=round_decimal(total / grand_total * HUNDRED) if grand_total else ZERO
        )
        for category, total in totals.items()
    ]
    return sorted(breakdown, key=lambda item: item.total_amount, reverse=True)


def spending_trends(expenses: Sequence[Expense], days: int = 30, today: Optional[date] = None) -> List[SpendingTrend]:
    """Daily spending totals for expenses dated within the last `days` days, oldest first"""
    cutoff = (today or date.today()) - timedelta(days=days)
    totals: Dict[str, Decimal] = {}
    for expense in expenses:
        day = _expense_day(expense)
        if day >= cutoff:
            key = day.isoformat()
            totals[key] = totals.get(key, ZERO) + expense.amount

    return [SpendingTrend(date=key, amount=totals[key]) for key in sorted(totals)]


def spending_by_member(
    expenses: Sequence[Expense],
    splits: Sequence[ExpenseSplit],
    members: Sequence[Member]
) -> List[MemberSpending]:
    """
    What each member paid and what they owe across the given expenses.

    Every member gets a row, even without expenses. Payers and split members
    outside `members` are ignored. Rows are sorted by total paid, largest
    first.
    """
    stats = OrderedDict(
        (member.id, {"name": member.name or "Unknown", "paid": ZERO, "owed": ZERO, "count": 0})
        for member in members
    )

    expense_ids = set()
    for expense in expenses:
        expense_ids.add(expense.id)
        payer = stats.get(expense.paid_by)
        if payer is not None:
            payer["paid"] += expense.amount
            payer["count"] += 1

    for split in splits:
        member = stats.get(split.member_id)
        if member is not None and split.expense_id in expense_ids:
            member["owed"] += split.amount

    spending = [
        MemberSpending(
            member_id=member_id,
            member_name=row["name"],
            total_paid=row["paid"],
            total_owed=row["owed"],
            net_amount=row["paid"] - row["owed"],
            expense_count=row["count"]
        )
        for member_id, row in stats.items()
    ]
    return sorted(spending, key=lambda item: item.total_paid, reverse=True)


def period_key(day: date, period: Period) -> str:
    """'YYYY-MM' for monthly, ISO 'YYYY-Www' for weekly"""
    if period == "weekly":
        year, week, _ = day.isocalendar()
        return f"{year}-W{week:02d}"
    return f"{day.year}-{day.month:02d}"


def analyze_by_period(expenses: Sequence[Expense], period: Period = "monthly") -> List[TimeBasedAnalysis]:
    totals: Dict[str, Decimal] = {}
    counts: Dict[str, int] = {}
    for expense in expenses:
        key = period_key(_expense_day(expense), period)
        totals[key] = totals.get(key, ZERO) + expense.amount
        counts[key] = counts.get(key, 0) + 1

    return [
        TimeBasedAnalysis(
            period=key,
            total_amount=totals[key],
            expense_count=counts[key],
            average_amount=_average(totals[key], counts[key])
        )
        for key in sorted(totals)
    ]


def day_of_week_patterns(expenses: Sequence[Expense]) -> List[DayOfWeekPattern]:
    """Spending per weekday, Sunday first; days without expenses are omitted"""
    totals = [ZERO] * 7
    counts = [0] * 7
    for expense in expenses:
        # date.weekday() counts from Monday
        index = (_expense_day(expense).weekday() + 1) % 7
        totals[index] += expense.amount
        counts[index] += 1

    return [
        DayOfWeekPattern(
            day=day,
            count=counts[index],
            total_amount=totals[index],
            average_amount=_average(totals[index], counts[index])
        )
        for index, day in enumerate(DAYS_OF_WEEK)
        if counts[index] > 0
    ]


def category_patterns(expenses: Sequence[Expense]) -> List[CategoryPattern]:
    """How often each category occurs, most frequent first"""
    patterns = [
        CategoryPattern(
            category=item.category,
            frequency=item.expense_count,
            average_amount=_average(item.total_amount, item.expense_count),
            total_amount=item.total_amount
        )
        for item in breakdown_by_category(expenses)
    ]
    return sorted(patterns, key=lambda item: item.frequency, reverse=True)


def amount_range_patterns(expenses: Sequence[Expense]) -> List[AmountRangePattern]:
    """Bucket expenses by amount; empty buckets are omitted"""
    buckets = [AmountRangePattern(range=label, count=0, total_amount=ZERO) for _, _, label in AMOUNT_RANGES]

    for expense in expenses:
        for index, (low, high, _) in enumerate(AMOUNT_RANGES):
            if expense.amount >= low and (high is None or expense.amount < high):
                buckets[index].count += 1
                buckets[index].total_amount += expense.amount
                break

    return [bucket for bucket in buckets if bucket.count > 0]


def get_category_breakdown(db: Session, group_id: str) -> List[CategoryBreakdown]:
    return breakdown_by_category(get_unsettled_expenses(db, group_id))


def get_spending_trends(db: Session, group_id: str, days: int = 30, today: Optional[date] = None) -> List[SpendingTrend]:
    return spending_trends(get_unsettled_expenses(db, group_id), days, today)


def get_member_spending(db: Session, group_id: str) -> List[MemberSpending]:
    expenses = get_unsettled_expenses(db, group_id)
    splits = get_splits_for_expenses(db, [e.id for e in expenses])
    members = get_group_members(db, group_id)
    logger.debug(f"Member spending for group {group_id}: {len(expenses)} expenses, {len(members)} members")
    return spending_by_member(expenses, splits, members)


def get_time_based_analysis(db: Session, group_id: str, period: Period = "monthly") -> List[TimeBasedAnalysis]:
    return analyze_by_period(get_unsettled_expenses(db, group_id), period)


def get_day_of_week_patterns(db: Session, group_id: str) -> List[DayOfWeekPattern]:
    return day_of_week_patterns(get_unsettled_expenses(db, group_id))


def get_category_patterns(db: Session, group_id: str) -> List[CategoryPattern]:
    return category_patterns(get_unsettled_expenses(db, group_id))


def get_amount_range_patterns(db: Session, group_id: str) -> List[AmountRangePattern]:
    return amount_range_patterns(get_unsettled_expenses(db, group_id))
