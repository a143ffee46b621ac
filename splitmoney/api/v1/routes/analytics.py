from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List
from splitmoney.db.database import get_db
from splitmoney.schemas.analytics_schema import (
    AmountRangePattern, CategoryBreakdown, CategoryPattern, ComparisonSummary, DayOfWeekPattern,
    GroupComparison, MemberSpending, SpendingTrend, TimeBasedAnalysis
)
from splitmoney.services.expense_analytics_service import (
    Period, get_amount_range_patterns, get_category_breakdown, get_category_patterns,
    get_day_of_week_patterns, get_member_spending, get_spending_trends, get_time_based_analysis
)
from splitmoney.services.group_comparison_service import compare_groups, get_comparison_summary
from splitmoney.services.group_service import get_group_or_404

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/groups/{group_slug}/categories", response_model=List[CategoryBreakdown])
def get_group_category_breakdown(group_slug: str, db: Session = Depends(get_db)):
    """Unsettled spending per category, largest first"""
    group = get_group_or_404(db, group_slug)
    return get_category_breakdown(db, group.id)


@router.get("/groups/{group_slug}/spending-trends", response_model=List[SpendingTrend])
def get_group_spending_trends(group_slug: str, days: int = Query(30, ge=1), db: Session = Depends(get_db)):
    """Daily unsettled spending over the last `days` days"""
    group = get_group_or_404(db, group_slug)
    return get_spending_trends(db, group.id, days)


@router.get("/groups/{group_slug}/members", response_model=List[MemberSpending])
def get_group_member_spending(group_slug: str, db: Session = Depends(get_db)):
    """What each member paid against what they owe"""
    group = get_group_or_404(db, group_slug)
    return get_member_spending(db, group.id)


@router.get("/groups/{group_slug}/periods", response_model=List[TimeBasedAnalysis])
def get_group_time_based_analysis(group_slug: str, period: Period = "monthly", db: Session = Depends(get_db)):
    group = get_group_or_404(db, group_slug)
    return get_time_based_analysis(db, group.id, period)


@router.get("/groups/{group_slug}/patterns/days", response_model=List[DayOfWeekPattern])
def get_group_day_patterns(group_slug: str, db: Session = Depends(get_db)):
    group = get_group_or_404(db, group_slug)
    return get_day_of_week_patterns(db, group.id)


@router.get("/groups/{group_slug}/patterns/categories", response_model=List[CategoryPattern])
def get_group_category_patterns(group_slug: str, db: Session = Depends(get_db)):
    group = get_group_or_404(db, group_slug)
    return get_category_patterns(db, group.id)


@router.get("/groups/{group_slug}/patterns/amounts", response_model=List[AmountRangePattern])
def get_group_amount_patterns(group_slug: str, db: Session = Depends(get_db)):
    group = get_group_or_404(db, group_slug)
    return get_amount_range_patterns(db, group.id)


@router.get("/comparison", response_model=List[GroupComparison])
def compare_group_spending(slugs: List[str] = Query(...), db: Session = Depends(get_db)):
    """Compare spending across the given groups"""
    return compare_groups(db, slugs)


@router.get("/comparison/summary", response_model=ComparisonSummary)
def summarize_group_comparison(slugs: List[str] = Query(...), db: Session = Depends(get_db)):
    """Totals, averages and the highest and lowest spending of the given groups"""
    return get_comparison_summary(db, slugs)
