from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from splitmoney.api.v1.dependencies import get_balance_cache
from splitmoney.db.database import get_db
from splitmoney.schemas.expense_schema import (
    ExpenseCreate, ExpenseUpdate, ExpenseWithSplits, ExpenseSplitOut
)
from splitmoney.schemas.split_schema import SplitPreviewRequest, SplitResult
from splitmoney.services.expense_service import (
    create_expense, get_expense_or_404, get_group_expenses, get_unsettled_expenses,
    get_expenses_by_date_range, get_expense_splits, get_splits_for_expenses,
    build_expense_with_splits, update_expense, delete_expense, settle_expense_split,
    preview_splits, get_member_splits
)
from splitmoney.services.group_service import get_group_or_404
from splitmoney.utils.balance_cache import BalanceCache

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.post("/splits/preview", response_model=SplitResult)
def preview_expense_splits(request: SplitPreviewRequest):
    """Compute splits for an amount without creating an expense"""
    return preview_splits(request.amount, request.split)


@router.post("/groups/{group_slug}", response_model=ExpenseWithSplits, status_code=201)
def create_new_expense(
    group_slug: str,
    expense_data: ExpenseCreate,
    db: Session = Depends(get_db),
    cache: BalanceCache = Depends(get_balance_cache)
):
    """Create a new expense with its splits"""
    group = get_group_or_404(db, group_slug)
    expense = create_expense(db, group.id, expense_data, cache)
    return build_expense_with_splits(expense, get_expense_splits(db, expense.id))


@router.get("/groups/{group_slug}", response_model=List[ExpenseWithSplits])
def get_group_expenses_list(
    group_slug: str,
    unsettled_only: bool = False,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    db: Session = Depends(get_db)
):
    """Get expenses for a group, optionally unsettled only or within a date range"""
    group = get_group_or_404(db, group_slug)

    if (start_date is None) != (end_date is None):
        raise HTTPException(status_code=400, detail="start_date and end_date must be given together")

    if start_date is not None:
        expenses = get_expenses_by_date_range(db, group.id, start_date, end_date)
        if unsettled_only:
            expenses = [e for e in expenses if not e.settled]
    elif unsettled_only:
        expenses = get_unsettled_expenses(db, group.id)
    else:
        expenses = get_group_expenses(db, group.id)

    splits = get_splits_for_expenses(db, [e.id for e in expenses])
    return [
        build_expense_with_splits(expense, [s for s in splits if s.expense_id == expense.id])
        for expense in expenses
    ]


@router.get("/members/{member_id}/splits", response_model=List[ExpenseSplitOut])
def get_member_splits_list(member_id: str, db: Session = Depends(get_db)):
    """Get every split assigned to a member"""
    return get_member_splits(db, member_id)


@router.get("/{expense_id}", response_model=ExpenseWithSplits)
def get_expense_details(expense_id: str, db: Session = Depends(get_db)):
    """Get expense details with splits"""
    expense = get_expense_or_404(db, expense_id)
    return build_expense_with_splits(expense, get_expense_splits(db, expense_id))


@router.patch("/{expense_id}", response_model=ExpenseWithSplits)
def update_existing_expense(
    expense_id: str,
    update_data: ExpenseUpdate,
    db: Session = Depends(get_db),
    cache: BalanceCache = Depends(get_balance_cache)
):
    """Update an expense, regenerating its splits when a split strategy is given"""
    expense = update_expense(db, expense_id, update_data, cache)
    return build_expense_with_splits(expense, get_expense_splits(db, expense.id))


@router.delete("/{expense_id}")
def delete_existing_expense(
    expense_id: str,
    db: Session = Depends(get_db),
    cache: BalanceCache = Depends(get_balance_cache)
):
    """Delete an expense and its splits"""
    delete_expense(db, expense_id, cache)
    return {"message": "Expense deleted successfully"}


@router.patch("/splits/{split_id}/settle", response_model=ExpenseSplitOut)
def settle_expense_split_endpoint(
    split_id: str,
    db: Session = Depends(get_db),
    cache: BalanceCache = Depends(get_balance_cache)
):
    """Mark an expense split as settled"""
    return settle_expense_split(db, split_id, cache)
