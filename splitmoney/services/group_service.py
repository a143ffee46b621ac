import logging
from sqlalchemy.orm import Session
from sqlalchemy import and_
from fastapi import HTTPException
from typing import List, Optional
from splitmoney.models.groups import Group, Member
from splitmoney.models.expenses import Expense
from splitmoney.models.settlements import Settlement
from splitmoney.schemas.group_schema import GroupCreate, GroupUpdate, MemberCreate, MemberUpdate
from splitmoney.utils.balance_cache import BalanceCache
from splitmoney.utils.slug_utils import create_group_slug

logger = logging.getLogger(__name__)


def create_group(db: Session, group_data: GroupCreate) -> Group:
    """Create a new group with auto-generated unique slug"""
    slug = create_group_slug(group_data.name, db)

    group = Group(
        name=group_data.name,
        slug=slug,
        description=group_data.description
    )
    db.add(group)
    db.commit()
    db.refresh(group)
    logger.info(f"Created group {group.id} ({group.slug})")
    return group


def get_group(db: Session, group_id: str) -> Optional[Group]:
    """Get a group by ID"""
    return db.query(Group).filter(Group.id == group_id).first()


def get_group_by_slug(db: Session, slug: str) -> Optional[Group]:
    """Get a group by slug"""
    return db.query(Group).filter(Group.slug == slug).first()


def get_group_or_404(db: Session, slug: str) -> Group:
    group = get_group_by_slug(db, slug)
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")
    return group


def get_groups(db: Session) -> List[Group]:
    """Get all groups, newest first"""
    return db.query(Group).order_by(Group.created_at.desc()).all()


def update_group(db: Session, group_id: str, update_data: GroupUpdate) -> Group:
    """Update a group"""
    group = get_group(db, group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")

    # If name is being updated, regenerate slug from new name
    if update_data.name and update_data.name != group.name:
        group.slug = create_group_slug(update_data.name, db, group_id)

    for field, value in update_data.model_dump(exclude_unset=True).items():
        setattr(group, field, value)

    db.commit()
    db.refresh(group)
    return group


def delete_group(db: Session, group_id: str, cache: BalanceCache):
    """Delete a group with its members, expenses, splits and settlements"""
    group = get_group(db, group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")

    # Expense deletes cascade to their splits through the ORM relationship
    for expense in db.query(Expense).filter(Expense.group_id == group_id).all():
        db.delete(expense)
    db.query(Settlement).filter(Settlement.group_id == group_id).delete(synchronize_session=False)
    db.delete(group)
    db.commit()

    cache.invalidate(group_id)
    logger.info(f"Deleted group {group_id}")


def _ensure_unique_email(db: Session, group_id: str, email: Optional[str], exclude_member_id: Optional[str] = None):
    if not email:
        return
    query = db.query(Member).filter(and_(Member.group_id == group_id, Member.email == email))
    if exclude_member_id:
        query = query.filter(Member.id != exclude_member_id)
    if query.first():
        raise HTTPException(status_code=409, detail=f"A member with email {email} already exists in this group")


def add_member_to_group(db: Session, group_id: str, member_data: MemberCreate, cache: BalanceCache) -> Member:
    """Add a member to a group"""
    _ensure_unique_email(db, group_id, member_data.email)

    member = Member(
        group_id=group_id,
        name=member_data.name,
        email=member_data.email,
        avatar=member_data.avatar
    )
    db.add(member)
    db.commit()
    db.refresh(member)

    cache.invalidate(group_id)
    return member


def get_member(db: Session, group_id: str, member_id: str) -> Optional[Member]:
    """Get a member of a group by ID"""
    return db.query(Member).filter(
        and_(Member.group_id == group_id, Member.id == member_id)
    ).first()


def update_member(db: Session, group_id: str, member_id: str, update_data: MemberUpdate, cache: BalanceCache) -> Member:
    """Update a member's name, email or avatar"""
    member = get_member(db, group_id, member_id)
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")

    changes = update_data.model_dump(exclude_unset=True)
    if "name" in changes and (changes["name"] is None or not changes["name"].strip()):
        raise HTTPException(status_code=400, detail="Member name is required and must be a non-empty string")
    _ensure_unique_email(db, group_id, changes.get("email"), exclude_member_id=member_id)

    for field, value in changes.items():
        setattr(member, field, value.strip() if field == "name" else value)

    db.commit()
    db.refresh(member)

    # Names appear in cached summaries and debts
    cache.invalidate(group_id)
    return member


def remove_member_from_group(db: Session, group_id: str, member_id: str, cache: BalanceCache):
    """Remove a member from a group.

    Expenses and splits referencing the member are kept; balance computation
    skips them once the member is gone.
    """
    member = get_member(db, group_id, member_id)
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")

    db.delete(member)
    db.commit()

    cache.invalidate(group_id)
    logger.info(f"Removed member {member_id} from group {group_id}")


def is_group_member(db: Session, group_id: str, member_id: str) -> bool:
    """Check if the member belongs to the group"""
    return get_member(db, group_id, member_id) is not None


def get_group_members(db: Session, group_id: str) -> List[Member]:
    """Get all members of a group in join order"""
    return db.query(Member).filter(Member.group_id == group_id).order_by(Member.joined_at, Member.id).all()
