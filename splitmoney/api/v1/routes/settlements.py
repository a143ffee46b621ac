from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from splitmoney.api.v1.dependencies import get_balance_cache
from splitmoney.db.database import get_db
from splitmoney.schemas.settlement_schema import SettlementCreate, SettlementOut
from splitmoney.services.group_service import get_group_or_404
from splitmoney.services.settlement_service import (
    create_settlement, get_group_settlements, get_settlements_between, get_member_settlements,
    delete_settlement
)
from splitmoney.utils.balance_cache import BalanceCache

router = APIRouter(prefix="/settlements", tags=["settlements"])


@router.post("/groups/{group_slug}", response_model=SettlementOut, status_code=201)
def create_new_settlement(
    group_slug: str,
    settlement_data: SettlementCreate,
    db: Session = Depends(get_db),
    cache: BalanceCache = Depends(get_balance_cache)
):
    """Record a settlement between two members"""
    group = get_group_or_404(db, group_slug)
    return create_settlement(db, group.id, settlement_data, cache)


@router.get("/groups/{group_slug}", response_model=List[SettlementOut])
def get_group_settlements_list(group_slug: str, db: Session = Depends(get_db)):
    """Get all settlements for a group"""
    group = get_group_or_404(db, group_slug)
    return get_group_settlements(db, group.id)


@router.get("/groups/{group_slug}/between", response_model=List[SettlementOut])
def get_settlements_between_members(
    group_slug: str,
    member_id_1: str,
    member_id_2: str,
    db: Session = Depends(get_db)
):
    """Get settlements between two members, in either direction"""
    group = get_group_or_404(db, group_slug)
    return get_settlements_between(db, member_id_1, member_id_2, group.id)


@router.get("/members/{member_id}", response_model=List[SettlementOut])
def get_member_settlements_list(member_id: str, db: Session = Depends(get_db)):
    """Get settlements a member paid or received, oldest first"""
    return get_member_settlements(db, member_id)


@router.delete("/{settlement_id}")
def delete_existing_settlement(
    settlement_id: str,
    db: Session = Depends(get_db),
    cache: BalanceCache = Depends(get_balance_cache)
):
    """Delete a recorded settlement"""
    delete_settlement(db, settlement_id, cache)
    return {"message": "Settlement deleted successfully"}
