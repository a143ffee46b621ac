"""
Pytest configuration and fixtures for split money tests.
"""
import os

# Keep the application's own engine off the filesystem during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from splitmoney.db.database import Base, get_db
from splitmoney.main import app
from splitmoney.models.expenses import Expense, ExpenseSplit
from splitmoney.models.groups import Group, Member
from splitmoney.models.settlements import Settlement
from splitmoney.utils.balance_cache import BalanceCache


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """Database session bound to a fresh in-memory SQLite database."""
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return BalanceCache(ttl_seconds=60, clock=clock)


@pytest.fixture
def client(engine):
    """HTTP client with get_db pointed at the test database and a fresh cache."""
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = Session()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.balance_cache = BalanceCache(ttl_seconds=60)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def group_abc(db_session):
    """Group with members A, B and C, joined in that order."""
    group = Group(id="g1", name="Trip", slug="trip")
    db_session.add(group)
    for index, member_id in enumerate(["A", "B", "C"]):
        db_session.add(Member(
            id=member_id,
            group_id="g1",
            name=f"Member {member_id}",
            joined_at=datetime(2024, 1, 1, 12, 0, index, tzinfo=timezone.utc)
        ))
    db_session.commit()
    return group


def make_expense(expense_id: str, paid_by: str, amount, group_id: str = "g1") -> Expense:
    """Detached Expense with every field ExpenseOut needs."""
    return Expense(
        id=expense_id,
        group_id=group_id,
        paid_by=paid_by,
        amount=Decimal(str(amount)),
        description=f"Expense {expense_id}",
        category="food",
        date=datetime(2024, 3, 1, tzinfo=timezone.utc),
        settled=False,
        created_at=datetime(2024, 3, 1, tzinfo=timezone.utc)
    )


def make_splits(expense_id: str, shares: Dict[str, str]) -> List[ExpenseSplit]:
    return [
        ExpenseSplit(
            id=f"{expense_id}-{member_id}",
            expense_id=expense_id,
            member_id=member_id,
            amount=Decimal(amount),
            settled=False
        )
        for member_id, amount in shares.items()
    ]


def make_settlement(from_member: str, to_member: str, amount, group_id: str = "g1") -> Settlement:
    return Settlement(
        group_id=group_id,
        from_member_id=from_member,
        to_member_id=to_member,
        amount=Decimal(str(amount))
    )


def verify_debts_settle_balances(balances: Dict[str, Decimal], debts: List[Dict]) -> None:
    """
    Helper to verify debts settle all balances.

    A debt moves money from a debtor (positive balance) to a creditor
    (negative balance): the payer's balance goes down by the amount and the
    receiver's goes up by it. Every member must end within one cent of zero.
    """
    remaining = dict(balances)

    for debt in debts:
        remaining[debt["from"]] -= debt["amount"]
        remaining[debt["to"]] += debt["amount"]

    for member_id, final_balance in remaining.items():
        assert abs(final_balance) <= Decimal("0.01"), \
            f"Member {member_id} not settled: initial={balances[member_id]}, final={final_balance}"
