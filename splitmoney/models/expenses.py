import uuid
from sqlalchemy.sql import func
from sqlalchemy import Column, String, DateTime, DECIMAL, Text, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from splitmoney.db.database import Base


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    group_id = Column(String, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    paid_by = Column(String, nullable=False, index=True)  # Reference to members (no FK constraint)
    amount = Column(DECIMAL(10, 2), nullable=False)
    description = Column(String(200), nullable=False)
    category = Column(String(50), nullable=False, default="other")
    date = Column(DateTime(timezone=True), nullable=False)
    settled = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    receipt_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    splits = relationship("ExpenseSplit", cascade="all, delete-orphan")


class ExpenseSplit(Base):
    __tablename__ = "expense_splits"

    id = Column(String, primary_key=True, unique=True, nullable=False)  # "{expense_id}-{member_id}"
    expense_id = Column(String, ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id = Column(String, nullable=False, index=True)  # Reference to members
    amount = Column(DECIMAL(10, 2), nullable=False)
    percentage = Column(DECIMAL(7, 4), nullable=True)
    settled = Column(Boolean, nullable=False, default=False)
