"""
Balance Aggregation Service

Computes each member's net signed position within a group from its expenses
and splits.

Sign convention:
- Positive total_owed: member owes the group
- Negative total_owed: member is owed by the group

For every expense, the payer is credited the full amount of every split on it
(their own included) and each member with a split is debited their share, so a
group's balances always sum to zero. Expenses paid by, and splits belonging to,
members outside the group's current member set are skipped.

Settlements never touch expenses or splits. They are applied on read by
apply_settlements() for the summary and trend views.
"""

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable, List, Sequence
from sqlalchemy.orm import Session
from splitmoney.models.expenses import Expense, ExpenseSplit
from splitmoney.models.settlements import Settlement
from splitmoney.schemas.balance_schema import Balance, BalanceSummary
from splitmoney.schemas.expense_schema import ExpenseOut
from splitmoney.services.expense_service import get_group_expenses, get_splits_for_expenses
from splitmoney.services.group_service import get_group_members
from splitmoney.services.settlement_service import get_group_settlements

logger = logging.getLogger(__name__)

UNKNOWN_MEMBER = "Unknown"


def _splits_by_expense(splits: Iterable[ExpenseSplit], member_ids: set) -> Dict[str, List[ExpenseSplit]]:
    grouped: Dict[str, List[ExpenseSplit]] = defaultdict(list)
    for split in splits:
        if split.member_id in member_ids:
            grouped[split.expense_id].append(split)
    return grouped


def _member_total(member_id: str, expenses: Sequence[Expense], splits_by_expense: Dict[str, List[ExpenseSplit]],
                  member_ids: set) -> Decimal:
    total_owed = Decimal("0")

    for expense in expenses:
        if expense.paid_by not in member_ids:
            continue
        expense_splits = splits_by_expense.get(expense.id, [])

        if expense.paid_by == member_id:
            # Payer fronted the money and is owed back every share
            total_owed -= sum((s.amount for s in expense_splits), Decimal("0"))

        for split in expense_splits:
            if split.member_id == member_id:
                total_owed += split.amount

    return total_owed


def compute_member_balance(
    member_id: str,
    group_id: str,
    expenses: Sequence[Expense],
    splits: Iterable[ExpenseSplit],
    member_ids: Iterable[str]
) -> Balance:
    """
    Compute one member's balance from already loaded group data.

    Args:
        member_id: Member to compute
        group_id: Group the expenses belong to
        expenses: All expenses of the group
        splits: Splits of those expenses (splits of other expenses are ignored)
        member_ids: The group's current member set

    Returns:
        Balance with total_owed and the expenses paid by the member
    """
    member_set = set(member_ids)
    expense_ids = {e.id for e in expenses}
    relevant = (s for s in splits if s.expense_id in expense_ids)
    grouped = _splits_by_expense(relevant, member_set)

    return Balance(
        member_id=member_id,
        group_id=group_id,
        total_owed=_member_total(member_id, expenses, grouped, member_set),
        expenses=[ExpenseOut.model_validate(e) for e in expenses if e.paid_by == member_id]
    )


def compute_group_balances(group_id: str, member_ids: Sequence[str], expenses: Sequence[Expense],
                           splits: Iterable[ExpenseSplit]) -> List[Balance]:
    """Compute every member's balance, in member order"""
    splits = list(splits)
    return [compute_member_balance(member_id, group_id, expenses, splits, member_ids) for member_id in member_ids]


def apply_settlements(balances: Sequence[Balance], settlements: Iterable[Settlement]) -> List[Balance]:
    """
    Offset balances by recorded settlements.

    The payer (from_member_id) has the amount subtracted, the receiver
    (to_member_id) has it added. Returns new Balance objects.
    """
    adjustments: Dict[str, Decimal] = defaultdict(Decimal)
    for settlement in settlements:
        adjustments[settlement.from_member_id] -= settlement.amount
        adjustments[settlement.to_member_id] += settlement.amount

    return [
        balance.model_copy(update={"total_owed": balance.total_owed + adjustments.get(balance.member_id, Decimal("0"))})
        for balance in balances
    ]


def summarize_balances(balances: Sequence[Balance], member_names: Dict[str, str]) -> List[BalanceSummary]:
    return [
        BalanceSummary(
            member_id=balance.member_id,
            member_name=member_names.get(balance.member_id, UNKNOWN_MEMBER),
            total_owed=balance.total_owed
        )
        for balance in balances
    ]


def _load_group(db: Session, group_id: str):
    members = get_group_members(db, group_id)
    expenses = get_group_expenses(db, group_id)
    splits = get_splits_for_expenses(db, [e.id for e in expenses])
    return members, expenses, splits


def calculate_member_balance(db: Session, member_id: str, group_id: str) -> Balance:
    """Calculate balance for a member in a group"""
    members, expenses, splits = _load_group(db, group_id)
    return compute_member_balance(member_id, group_id, expenses, splits, [m.id for m in members])


def calculate_group_balances(db: Session, group_id: str) -> List[Balance]:
    """Calculate balances for all members in a group"""
    members, expenses, splits = _load_group(db, group_id)
    balances = compute_group_balances(group_id, [m.id for m in members], expenses, splits)
    logger.debug(f"Calculated {len(balances)} balances for group {group_id} from {len(expenses)} expenses")
    return balances


def calculate_settled_group_balances(db: Session, group_id: str) -> List[Balance]:
    """Group balances with all recorded settlements applied"""
    return apply_settlements(calculate_group_balances(db, group_id), get_group_settlements(db, group_id))


def get_balance_summary(db: Session, group_id: str) -> List[BalanceSummary]:
    """Get balance summary (member name and net amount) for a group"""
    members, expenses, splits = _load_group(db, group_id)
    balances = compute_group_balances(group_id, [m.id for m in members], expenses, splits)
    return summarize_balances(balances, {m.id: m.name for m in members})
