"""
Min-Cash-Flow Algorithm Module

This module reduces per-member net balances to a short list of "who pays whom"
transfers.

Balances follow the group sign convention:
- Positive balance: member owes the group (debtor)
- Negative balance: member is owed by the group (creditor)

The algorithm works by:
1. Separating members into creditors (negative balance) and debtors (positive balance)
2. Sorting both lists by amount, largest first
3. Matching the largest creditor with the largest debtor, transferring the smaller amount
4. Advancing past anyone whose remaining amount drops below one cent

This is the standard greedy approximation, not an optimal minimum-transaction
solver. Every step settles at least one party, so it emits at most
#creditors + #debtors - 1 transfers, i.e. never more than n - 1 for n members
with a non-zero balance.

Time Complexity: O(n log n) for sorting + O(n) for matching = O(n log n)
Space Complexity: O(n)

Example Usage:
    from splitmoney.utils.min_cash_flow import simplify_debts

    balances = {"A": Decimal("-60"), "B": Decimal("30"), "C": Decimal("30")}
    debts = simplify_debts(balances)

    # Result: [{"from": "B", "to": "A", "amount": Decimal("30.00")},
    #          {"from": "C", "to": "A", "amount": Decimal("30.00")}]
"""

import logging
from decimal import Decimal
from typing import Dict, List

# Configure logger
logger = logging.getLogger(__name__)

TOLERANCE = Decimal('0.01')


def round_decimal(value: Decimal, precision: Decimal = Decimal('0.01')) -> Decimal:
    """
    Round a Decimal value to the specified precision.

    Args:
        value: The Decimal value to round
        precision: The precision to round to (default: 0.01 for cents)

    Returns:
        Rounded Decimal value

    Example:
        >>> round_decimal(Decimal("43.333333"), Decimal("0.01"))
        Decimal('43.33')
    """
    return value.quantize(precision)


def validate_balance_sum(balances: Dict[str, Decimal], tolerance: Decimal = TOLERANCE) -> bool:
    """
    Check that the sum of all balances is approximately zero.

    In a consistent group, net balances always sum to zero. A non-zero sum
    points at splits that do not add up to their expense and is logged as a
    warning.

    Returns:
        True when the sum is within tolerance
    """
    total = sum(balances.values(), Decimal('0'))
    if abs(total) > tolerance:
        logger.warning(
            f"Balances not zero-sum: total={total}, tolerance={tolerance}. "
            f"This indicates unbalanced expense data."
        )
        return False
    return True


def simplify_debts(
    balances: Dict[str, Decimal],
    tolerance: Decimal = TOLERANCE
) -> List[Dict]:
    """
    Minimize the number of transfers needed to settle all balances.

    Uses a greedy algorithm that:
    1. Separates members into creditors (negative) and debtors (positive)
    2. Sorts both lists by amount (largest first, ties keep input order)
    3. Iteratively matches the largest creditor with the largest debtor
    4. Transfers the minimum of their amounts
    5. Continues until either list is exhausted

    Edge Cases Handled:
    - Empty input or only one member: returns []
    - All balances zero: returns []
    - Transfers of one cent or less are never emitted

    Args:
        balances: Dictionary mapping member_id -> total_owed
        tolerance: Amounts at or below this are treated as settled (default: 0.01)

    Returns:
        List of transfers, each with format:
        [{"from": str, "to": str, "amount": Decimal}, ...]

    Example:
        >>> balances = {"A": Decimal("-80"), "B": Decimal("10"), "C": Decimal("70")}
        >>> simplify_debts(balances)
        [{"from": "C", "to": "A", "amount": Decimal("70.00")},
         {"from": "B", "to": "A", "amount": Decimal("10.00")}]
    """
    if len(balances) < 2:
        return []

    validate_balance_sum(balances, tolerance)

    # Creditors are stored as positive amounts for easier matching
    creditors = [[member_id, -balance] for member_id, balance in balances.items() if balance < 0]
    debtors = [[member_id, balance] for member_id, balance in balances.items() if balance > 0]

    if not creditors or not debtors:
        return []

    # list.sort is stable, so equal amounts keep the input order
    creditors.sort(key=lambda x: x[1], reverse=True)
    debtors.sort(key=lambda x: x[1], reverse=True)

    debts = []

    # Greedy matching algorithm
    i, j = 0, 0
    while i < len(creditors) and j < len(debtors):
        creditor = creditors[i]
        debtor = debtors[j]

        settle_amount = min(creditor[1], debtor[1])

        # Only create transaction if amount is significant
        if settle_amount > tolerance:
            debts.append({
                "from": debtor[0],
                "to": creditor[0],
                "amount": round_decimal(settle_amount)
            })
            logger.debug(f"{debtor[0]} pays {creditor[0]} {round_decimal(settle_amount)}")

        creditor[1] -= settle_amount
        debtor[1] -= settle_amount

        # Advance pointer once a party is settled (below one cent)
        if creditor[1] < tolerance:
            i += 1
        if debtor[1] < tolerance:
            j += 1

    return debts
