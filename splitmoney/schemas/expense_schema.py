from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from splitmoney.schemas.split_schema import SplitStrategy


class ExpenseBase(BaseModel):
    paid_by: str
    amount: Decimal = Field(..., gt=0)
    description: str = Field(..., min_length=1, max_length=200)
    category: str = Field("other", max_length=50)
    date: datetime
    notes: Optional[str] = Field(None, max_length=1000)
    receipt_url: Optional[str] = None


class ExpenseCreate(ExpenseBase):
    split: SplitStrategy


class ExpenseUpdate(BaseModel):
    paid_by: Optional[str] = None
    amount: Optional[Decimal] = Field(None, gt=0)
    description: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[str] = Field(None, max_length=50)
    date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=1000)
    receipt_url: Optional[str] = None
    # Regenerates the expense's splits when present
    split: Optional[SplitStrategy] = None


class ExpenseOut(ExpenseBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    group_id: str
    settled: bool
    created_at: datetime


class ExpenseSplitOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    expense_id: str
    member_id: str
    amount: Decimal
    percentage: Optional[Decimal] = None
    settled: bool


class ExpenseWithSplits(ExpenseOut):
    splits: List[ExpenseSplitOut] = []
    splits_valid: bool = True
    split_errors: List[str] = []
