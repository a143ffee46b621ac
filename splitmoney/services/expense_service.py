import logging
import uuid
from datetime import datetime
from sqlalchemy.orm import Session
from fastapi import HTTPException
from typing import List, Optional
from splitmoney.models.expenses import Expense, ExpenseSplit
from splitmoney.schemas.expense_schema import ExpenseCreate, ExpenseUpdate, ExpenseWithSplits, ExpenseSplitOut
from splitmoney.schemas.split_schema import SplitResult
from splitmoney.services.group_service import get_group_members
from splitmoney.utils.balance_cache import BalanceCache
from splitmoney.utils.split_calculator import compute_splits, strategy_member_ids, validate_splits

logger = logging.getLogger(__name__)


def _check_members(db: Session, group_id: str, paid_by: str, split_member_ids: List[str]):
    """Payer and every split member must belong to the group"""
    group_members = {member.id for member in get_group_members(db, group_id)}

    if paid_by not in group_members:
        raise HTTPException(status_code=400, detail=f"Payer {paid_by} is not a member of this group")

    outsiders = [member_id for member_id in split_member_ids if member_id not in group_members]
    if outsiders:
        raise HTTPException(
            status_code=400,
            detail=[f"Member {member_id} is not a member of this group" for member_id in outsiders]
        )


def _build_splits(strategy, amount, expense_id: str) -> List[ExpenseSplit]:
    """Compute splits for an expense, raising 400 with every validation message"""
    result = compute_splits(strategy, amount, expense_id)
    if not result.is_valid:
        raise HTTPException(status_code=400, detail=result.errors)

    validation = validate_splits(amount, result.splits)
    if not validation.valid:
        raise HTTPException(status_code=400, detail=validation.errors)

    return [
        ExpenseSplit(
            id=line.id,
            expense_id=line.expense_id,
            member_id=line.member_id,
            amount=line.amount,
            percentage=line.percentage,
            settled=False
        )
        for line in result.splits
    ]


def create_expense(db: Session, group_id: str, expense_data: ExpenseCreate, cache: BalanceCache) -> Expense:
    """Create a new expense together with its splits in one transaction"""
    _check_members(db, group_id, expense_data.paid_by, strategy_member_ids(expense_data.split))

    expense_id = str(uuid.uuid4())
    splits = _build_splits(expense_data.split, expense_data.amount, expense_id)

    expense = Expense(
        id=expense_id,
        group_id=group_id,
        paid_by=expense_data.paid_by,
        amount=expense_data.amount,
        description=expense_data.description,
        category=expense_data.category,
        date=expense_data.date,
        notes=expense_data.notes,
        receipt_url=expense_data.receipt_url,
        settled=False
    )
    expense.splits = splits
    db.add(expense)
    db.commit()
    db.refresh(expense)

    cache.invalidate(group_id)
    logger.info(f"Created expense {expense.id} in group {group_id} with {len(splits)} splits")
    return expense


def get_expense(db: Session, expense_id: str) -> Optional[Expense]:
    """Get an expense by ID"""
    return db.query(Expense).filter(Expense.id == expense_id).first()


def get_expense_or_404(db: Session, expense_id: str) -> Expense:
    expense = get_expense(db, expense_id)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense


def get_group_expenses(db: Session, group_id: str) -> List[Expense]:
    """Get all expenses for a group, oldest first"""
    return db.query(Expense).filter(Expense.group_id == group_id)\
        .order_by(Expense.date, Expense.created_at).all()


def get_unsettled_expenses(db: Session, group_id: str) -> List[Expense]:
    """Get expenses of a group that are not yet settled"""
    return [expense for expense in get_group_expenses(db, group_id) if not expense.settled]


def get_expenses_by_date_range(db: Session, group_id: str, start_date: datetime, end_date: datetime) -> List[Expense]:
    """Get expenses of a group dated within [start_date, end_date]"""
    return db.query(Expense).filter(
        Expense.group_id == group_id,
        Expense.date >= start_date,
        Expense.date <= end_date
    ).order_by(Expense.date).all()


def get_expense_splits(db: Session, expense_id: str) -> List[ExpenseSplit]:
    """Get all splits for an expense"""
    return db.query(ExpenseSplit).filter(ExpenseSplit.expense_id == expense_id).all()


def get_splits_for_expenses(db: Session, expense_ids: List[str]) -> List[ExpenseSplit]:
    """Get the splits of several expenses at once"""
    if not expense_ids:
        return []
    return db.query(ExpenseSplit).filter(ExpenseSplit.expense_id.in_(expense_ids)).all()


def get_member_splits(db: Session, member_id: str) -> List[ExpenseSplit]:
    """Get all splits assigned to a member"""
    return db.query(ExpenseSplit).filter(ExpenseSplit.member_id == member_id).all()


def build_expense_with_splits(expense: Expense, splits: List[ExpenseSplit]) -> ExpenseWithSplits:
    """Attach splits to an expense, re-validating them against the expense amount"""
    validation = validate_splits(expense.amount, splits)
    if not validation.valid:
        logger.warning(f"Expense {expense.id} has inconsistent splits: {validation.errors}")

    return ExpenseWithSplits(
        id=expense.id,
        group_id=expense.group_id,
        paid_by=expense.paid_by,
        amount=expense.amount,
        description=expense.description,
        category=expense.category,
        date=expense.date,
        notes=expense.notes,
        receipt_url=expense.receipt_url,
        settled=expense.settled,
        created_at=expense.created_at,
        splits=[ExpenseSplitOut.model_validate(split) for split in splits],
        splits_valid=validation.valid,
        split_errors=validation.errors
    )


def update_expense(db: Session, expense_id: str, update_data: ExpenseUpdate, cache: BalanceCache) -> Expense:
    """
    Update an expense.

    A split strategy in the update regenerates the splits: the old ones are
    deleted and the new ones inserted in the same transaction. The amount can
    only change together with a split strategy.
    """
    expense = get_expense_or_404(db, expense_id)
    changes = {
        field: value
        for field, value in update_data.model_dump(exclude_unset=True, exclude={"split"}).items()
        if value is not None
    }

    amount = changes.get("amount", expense.amount)
    paid_by = changes.get("paid_by", expense.paid_by)

    if update_data.split is None and amount != expense.amount:
        raise HTTPException(status_code=400, detail="Changing the amount requires a split strategy")

    if update_data.split is not None:
        _check_members(db, expense.group_id, paid_by, strategy_member_ids(update_data.split))
        new_splits = _build_splits(update_data.split, amount, expense.id)
    else:
        _check_members(db, expense.group_id, paid_by, [])
        new_splits = None

    for field, value in changes.items():
        setattr(expense, field, value)

    if new_splits is not None:
        # Flush the orphaned splits first, new ones may reuse their ids
        expense.splits.clear()
        db.flush()
        expense.splits.extend(new_splits)
        expense.settled = False

    db.commit()
    db.refresh(expense)

    cache.invalidate(expense.group_id)
    logger.info(f"Updated expense {expense.id}")
    return expense


def delete_expense(db: Session, expense_id: str, cache: BalanceCache):
    """Delete an expense and its splits"""
    expense = get_expense_or_404(db, expense_id)
    group_id = expense.group_id

    db.delete(expense)
    db.commit()

    cache.invalidate(group_id)
    logger.info(f"Deleted expense {expense_id}")


def settle_expense_split(db: Session, split_id: str, cache: BalanceCache) -> ExpenseSplit:
    """Mark a split as settled; the expense is settled once all its splits are"""
    split = db.query(ExpenseSplit).filter(ExpenseSplit.id == split_id).first()
    if not split:
        raise HTTPException(status_code=404, detail="Expense split not found")

    split.settled = True
    expense = get_expense(db, split.expense_id)
    if expense and all(s.settled for s in expense.splits):
        expense.settled = True

    db.commit()
    db.refresh(split)

    if expense:
        cache.invalidate(expense.group_id)
    return split


def preview_splits(amount, strategy) -> SplitResult:
    """Compute splits for an amount without storing anything"""
    return compute_splits(strategy, amount, "preview")
