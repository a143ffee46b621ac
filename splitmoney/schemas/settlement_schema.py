from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime
from decimal import Decimal


class SettlementBase(BaseModel):
    from_member_id: str
    to_member_id: str
    amount: Decimal = Field(..., gt=0)
    description: Optional[str] = Field(None, max_length=500)


class SettlementCreate(SettlementBase):
    settled_at: Optional[datetime] = None


class SettlementOut(SettlementBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    group_id: str
    settled_at: datetime
    created_at: datetime
