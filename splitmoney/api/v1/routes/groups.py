from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from splitmoney.api.v1.dependencies import get_balance_cache
from splitmoney.db.database import get_db
from splitmoney.schemas.group_schema import (
    GroupCreate, GroupUpdate, GroupOut, GroupWithMembers,
    MemberCreate, MemberUpdate, MemberOut
)
from splitmoney.services.group_service import (
    create_group, get_groups, get_group_or_404, update_group, delete_group,
    add_member_to_group, get_group_members, update_member, remove_member_from_group
)
from splitmoney.utils.balance_cache import BalanceCache

router = APIRouter(prefix="/groups", tags=["groups"])


@router.post("/", response_model=GroupOut, status_code=201)
def create_new_group(group_data: GroupCreate, db: Session = Depends(get_db)):
    """Create a new group"""
    return create_group(db, group_data)


@router.get("/", response_model=List[GroupOut])
def list_groups(db: Session = Depends(get_db)):
    """Get all groups"""
    return get_groups(db)


@router.get("/{group_slug}", response_model=GroupWithMembers)
def get_group_details(group_slug: str, db: Session = Depends(get_db)):
    """Get group details with members"""
    group = get_group_or_404(db, group_slug)
    return GroupWithMembers(
        id=group.id,
        slug=group.slug,
        name=group.name,
        description=group.description,
        created_at=group.created_at,
        updated_at=group.updated_at,
        members=[MemberOut.model_validate(m) for m in get_group_members(db, group.id)]
    )


@router.patch("/{group_slug}", response_model=GroupOut)
def update_existing_group(group_slug: str, update_data: GroupUpdate, db: Session = Depends(get_db)):
    """Update a group's name or description"""
    group = get_group_or_404(db, group_slug)
    return update_group(db, group.id, update_data)


@router.delete("/{group_slug}")
def delete_existing_group(
    group_slug: str,
    db: Session = Depends(get_db),
    cache: BalanceCache = Depends(get_balance_cache)
):
    """Delete a group and everything recorded in it"""
    group = get_group_or_404(db, group_slug)
    delete_group(db, group.id, cache)
    return {"message": "Group deleted successfully"}


@router.post("/{group_slug}/members", response_model=MemberOut, status_code=201)
def add_group_member(
    group_slug: str,
    member_data: MemberCreate,
    db: Session = Depends(get_db),
    cache: BalanceCache = Depends(get_balance_cache)
):
    """Add a member to a group"""
    group = get_group_or_404(db, group_slug)
    return add_member_to_group(db, group.id, member_data, cache)


@router.get("/{group_slug}/members", response_model=List[MemberOut])
def list_group_members(group_slug: str, db: Session = Depends(get_db)):
    """Get all members of a group"""
    group = get_group_or_404(db, group_slug)
    return get_group_members(db, group.id)


@router.patch("/{group_slug}/members/{member_id}", response_model=MemberOut)
def update_group_member(
    group_slug: str,
    member_id: str,
    update_data: MemberUpdate,
    db: Session = Depends(get_db),
    cache: BalanceCache = Depends(get_balance_cache)
):
    """Update a member"""
    group = get_group_or_404(db, group_slug)
    return update_member(db, group.id, member_id, update_data, cache)


@router.delete("/{group_slug}/members/{member_id}")
def remove_group_member(
    group_slug: str,
    member_id: str,
    db: Session = Depends(get_db),
    cache: BalanceCache = Depends(get_balance_cache)
):
    """Remove a member from a group"""
    group = get_group_or_404(db, group_slug)
    remove_member_from_group(db, group.id, member_id, cache)
    return {"message": "Member removed successfully"}
