import enum
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Literal, Union, Annotated
from decimal import Decimal


class SplitErrorCode(str, enum.Enum):
    empty_member_set = "EMPTY_MEMBER_SET"
    negative_amount = "NEGATIVE_AMOUNT"
    amount_mismatch = "AMOUNT_MISMATCH"
    percentage_out_of_range = "PERCENTAGE_OUT_OF_RANGE"
    percentage_sum_mismatch = "PERCENTAGE_SUM_MISMATCH"
    duplicate_member = "DUPLICATE_MEMBER"


class EqualSplit(BaseModel):
    type: Literal["equal"] = "equal"
    member_ids: List[str]


class CustomSplit(BaseModel):
    type: Literal["custom"] = "custom"
    # Negative values are reported by the calculator, not rejected here
    amounts: Dict[str, Decimal]


class PercentageSplit(BaseModel):
    type: Literal["percentage"] = "percentage"
    percentages: Dict[str, Decimal]


SplitStrategy = Annotated[Union[EqualSplit, CustomSplit, PercentageSplit], Field(discriminator="type")]


class SplitLine(BaseModel):
    """One member's share of an expense, before it is persisted"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    expense_id: str
    member_id: str
    amount: Decimal
    percentage: Optional[Decimal] = None
    settled: bool = False


class SplitResult(BaseModel):
    splits: List[SplitLine] = []
    total: Decimal = Decimal("0")
    is_valid: bool
    errors: List[str] = []
    error_codes: List[SplitErrorCode] = []


class SplitValidation(BaseModel):
    valid: bool
    errors: List[str] = []


class SplitPreviewRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)
    split: SplitStrategy
