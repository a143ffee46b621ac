import logging
from sqlalchemy.orm import Session
from sqlalchemy import and_, or_
from fastapi import HTTPException
from typing import List, Optional
from splitmoney.models.settlements import Settlement
from splitmoney.schemas.settlement_schema import SettlementCreate
from splitmoney.services.group_service import is_group_member
from splitmoney.utils.balance_cache import BalanceCache

logger = logging.getLogger(__name__)


def create_settlement(db: Session, group_id: str, settlement_data: SettlementCreate, cache: BalanceCache) -> Settlement:
    """Record a payment from one member to another"""
    if settlement_data.from_member_id == settlement_data.to_member_id:
        raise HTTPException(status_code=400, detail="A member cannot settle with themselves")

    # Validate both members belong to the group
    if not is_group_member(db, group_id, settlement_data.from_member_id):
        raise HTTPException(status_code=400, detail="From member is not a member of this group")

    if not is_group_member(db, group_id, settlement_data.to_member_id):
        raise HTTPException(status_code=400, detail="To member is not a member of this group")

    settlement = Settlement(
        group_id=group_id,
        from_member_id=settlement_data.from_member_id,
        to_member_id=settlement_data.to_member_id,
        amount=settlement_data.amount,
        description=settlement_data.description
    )
    if settlement_data.settled_at is not None:
        settlement.settled_at = settlement_data.settled_at

    db.add(settlement)
    db.commit()
    db.refresh(settlement)

    cache.invalidate(group_id)
    logger.info(
        f"Recorded settlement {settlement.id}: {settlement.from_member_id} paid "
        f"{settlement.to_member_id} {settlement.amount} in group {group_id}"
    )
    return settlement


def get_group_settlements(db: Session, group_id: str) -> List[Settlement]:
    """Get all settlements for a group"""
    return db.query(Settlement).filter(Settlement.group_id == group_id)\
        .order_by(Settlement.settled_at).all()


def get_member_settlements(db: Session, member_id: str) -> List[Settlement]:
    """Get settlements a member paid or received"""
    return db.query(Settlement).filter(
        or_(Settlement.from_member_id == member_id, Settlement.to_member_id == member_id)
    ).order_by(Settlement.settled_at).all()


def get_settlements_between(db: Session, member_id_1: str, member_id_2: str, group_id: str) -> List[Settlement]:
    """Get settlements between two members of a group, in either direction"""
    return db.query(Settlement).filter(
        Settlement.group_id == group_id,
        or_(
            and_(Settlement.from_member_id == member_id_1, Settlement.to_member_id == member_id_2),
            and_(Settlement.from_member_id == member_id_2, Settlement.to_member_id == member_id_1)
        )
    ).order_by(Settlement.settled_at).all()


def get_settlement(db: Session, settlement_id: str) -> Optional[Settlement]:
    """Get a settlement by ID"""
    return db.query(Settlement).filter(Settlement.id == settlement_id).first()


def delete_settlement(db: Session, settlement_id: str, cache: BalanceCache):
    """Delete a recorded settlement"""
    settlement = get_settlement(db, settlement_id)
    if not settlement:
        raise HTTPException(status_code=404, detail="Settlement not found")

    group_id = settlement.group_id
    db.delete(settlement)
    db.commit()

    cache.invalidate(group_id)
    logger.info(f"Deleted settlement {settlement_id}")
