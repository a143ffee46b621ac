"""
Split Calculator Module

Turns one expense amount into per-member owed amounts under a split strategy:

- Equal split: amount / n per member truncated to cents, residual on the first member
- Custom split: exact amounts given per member, must sum to the expense amount
- Percentage split: amount * percentage / 100, residual on the first member

Every calculation returns a SplitResult instead of raising. Invalid input is
reported with is_valid=False and one message per violated rule.

Example Usage:
    from splitmoney.utils.split_calculator import calculate_equal_split

    result = calculate_equal_split(Decimal("100"), ["a", "b", "c"], "e1")
    # a: 33.34, b: 33.33, c: 33.33
"""

import logging
from decimal import ROUND_DOWN, Decimal
from typing import Dict, List, Sequence

from splitmoney.schemas.split_schema import (
    SplitErrorCode, SplitLine, SplitResult, SplitValidation,
    EqualSplit, CustomSplit, PercentageSplit
)
from splitmoney.utils.min_cash_flow import round_decimal

logger = logging.getLogger(__name__)

TOLERANCE = Decimal("0.01")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def _to_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _floor_cents(value: Decimal) -> Decimal:
    """Truncate to cents; truncated shares never add up to more than the amount"""
    return value.quantize(CENT, rounding=ROUND_DOWN)


def split_id(expense_id: str, member_id: str) -> str:
    return f"{expense_id}-{member_id}"


def _assign_residual(splits: List[SplitLine], amount: Decimal) -> None:
    """
    Add amount - sum(splits) to the first split so the splits sum to amount.

    Shares are truncated, so the residual is normally zero or positive. It is
    only negative when percentages overshoot 100 within tolerance; then it is
    taken from the splits in order, never pushing one below zero.
    """
    residual = amount - sum((s.amount for s in splits), Decimal("0"))
    if residual >= 0:
        splits[0].amount += residual
        return

    for split in splits:
        taken = min(split.amount, -residual)
        split.amount -= taken
        residual += taken
        if not residual:
            break


def _duplicate_members(member_ids: Sequence[str]) -> List[str]:
    seen = set()
    duplicates = []
    for member_id in member_ids:
        if member_id in seen and member_id not in duplicates:
            duplicates.append(member_id)
        seen.add(member_id)
    return duplicates


def calculate_equal_split(amount, member_ids: Sequence[str], expense_id: str) -> SplitResult:
    """
    Split an expense equally among the given members.

    Each share is truncated to cents and whatever is left over goes to the
    first member, so the shares always add up to the amount and none is
    negative.

    Args:
        amount: Total expense amount
        member_ids: Participating members, in display order
        expense_id: Expense the splits belong to

    Returns:
        SplitResult; invalid when member_ids is empty or names a member twice
    """
    if not member_ids:
        return SplitResult(
            is_valid=False,
            errors=["At least one member must be selected"],
            error_codes=[SplitErrorCode.empty_member_set],
        )

    duplicates = _duplicate_members(member_ids)
    if duplicates:
        return SplitResult(
            is_valid=False,
            errors=[f"Member {member_id} is selected more than once" for member_id in duplicates],
            error_codes=[SplitErrorCode.duplicate_member] * len(duplicates),
        )

    amount = _to_decimal(amount)
    share = _floor_cents(amount / len(member_ids))
    splits = [
        SplitLine(id=split_id(expense_id, member_id), expense_id=expense_id, member_id=member_id, amount=share)
        for member_id in member_ids
    ]
    _assign_residual(splits, amount)

    return SplitResult(splits=splits, total=amount, is_valid=True)


def calculate_custom_split(amount, custom_amounts: Dict[str, Decimal], expense_id: str) -> SplitResult:
    """
    Split an expense using explicit per-member amounts.

    Negative amounts are reported for every offending member and left out of
    the splits. The accepted amounts must add up to the expense amount within
    one cent. No rounding is applied to the given amounts.
    """
    amount = _to_decimal(amount)
    errors: List[str] = []
    codes: List[SplitErrorCode] = []
    splits: List[SplitLine] = []
    total = Decimal("0")

    for member_id, member_amount in custom_amounts.items():
        member_amount = _to_decimal(member_amount)
        if member_amount < 0:
            errors.append(f"Amount for member {member_id} cannot be negative")
            codes.append(SplitErrorCode.negative_amount)
            continue
        splits.append(SplitLine(
            id=split_id(expense_id, member_id),
            expense_id=expense_id,
            member_id=member_id,
            amount=member_amount
        ))
        total += member_amount

    if abs(amount - total) > TOLERANCE:
        errors.append(
            f"Custom amounts total ({round_decimal(total)}) does not match "
            f"expense amount ({round_decimal(amount)})"
        )
        codes.append(SplitErrorCode.amount_mismatch)

    return SplitResult(splits=splits, total=total, is_valid=not errors, errors=errors, error_codes=codes)


def calculate_percentage_split(amount, percentages: Dict[str, Decimal], expense_id: str) -> SplitResult:
    """
    Split an expense by percentage.

    Every percentage outside [0, 100] is reported, and the in-range ones must
    sum to 100 within 0.01. On success each split keeps its percentage and the
    rounding residual goes to the first member.
    """
    amount = _to_decimal(amount)
    errors: List[str] = []
    codes: List[SplitErrorCode] = []
    total_percentage = Decimal("0")

    for member_id, percentage in percentages.items():
        percentage = _to_decimal(percentage)
        if percentage < 0 or percentage > HUNDRED:
            errors.append(f"Percentage for member {member_id} must be between 0 and 100")
            codes.append(SplitErrorCode.percentage_out_of_range)
            continue
        total_percentage += percentage

    if abs(total_percentage - HUNDRED) > TOLERANCE:
        errors.append(f"Percentages must sum to 100% (current: {round_decimal(total_percentage)}%)")
        codes.append(SplitErrorCode.percentage_sum_mismatch)

    if errors:
        return SplitResult(is_valid=False, errors=errors, error_codes=codes)

    splits = []
    for member_id, percentage in percentages.items():
        percentage = _to_decimal(percentage)
        splits.append(SplitLine(
            id=split_id(expense_id, member_id),
            expense_id=expense_id,
            member_id=member_id,
            amount=_floor_cents(amount * percentage / HUNDRED),
            percentage=percentage
        ))
    _assign_residual(splits, amount)

    return SplitResult(splits=splits, total=amount, is_valid=True)


def compute_splits(strategy, amount, expense_id: str) -> SplitResult:
    """Dispatch a tagged split strategy to its calculator."""
    if isinstance(strategy, EqualSplit):
        return calculate_equal_split(amount, strategy.member_ids, expense_id)
    if isinstance(strategy, CustomSplit):
        return calculate_custom_split(amount, strategy.amounts, expense_id)
    if isinstance(strategy, PercentageSplit):
        return calculate_percentage_split(amount, strategy.percentages, expense_id)
    raise TypeError(f"Unsupported split strategy: {type(strategy).__name__}")


def strategy_member_ids(strategy) -> List[str]:
    """Members referenced by a split strategy, in strategy order."""
    if isinstance(strategy, EqualSplit):
        return list(strategy.member_ids)
    if isinstance(strategy, CustomSplit):
        return list(strategy.amounts)
    if isinstance(strategy, PercentageSplit):
        return list(strategy.percentages)
    raise TypeError(f"Unsupported split strategy: {type(strategy).__name__}")


def validate_splits(amount, splits) -> SplitValidation:
    """
    Re-check a stored or edited split set against its expense amount.

    Accepts anything with member_id, amount and percentage attributes
    (SplitLine or the ExpenseSplit model).

    Returns:
        SplitValidation with every violated rule listed
    """
    amount = _to_decimal(amount)
    errors: List[str] = []
    total = sum((_to_decimal(s.amount) for s in splits), Decimal("0"))

    if abs(total - amount) > TOLERANCE:
        errors.append(
            f"Splits total ({round_decimal(total)}) does not match "
            f"expense amount ({round_decimal(amount)})"
        )

    for split in splits:
        if _to_decimal(split.amount) < 0:
            errors.append(f"Split amount for member {split.member_id} cannot be negative")
        percentage = split.percentage
        if percentage is not None and (_to_decimal(percentage) < 0 or _to_decimal(percentage) > HUNDRED):
            errors.append(f"Split percentage for member {split.member_id} must be between 0 and 100")

    if errors:
        logger.debug(f"Split validation failed: {errors}")

    return SplitValidation(valid=not errors, errors=errors)
