import re
import uuid
from typing import Optional
from sqlalchemy.orm import Session
from splitmoney.models.groups import Group

MAX_SLUG_LENGTH = 100


def _fallback_slug() -> str:
    return f"group-{uuid.uuid4().hex[:8]}"


def generate_slug(name: str) -> str:
    """
    Generate a URL-friendly slug from a group name.
    "Trip to Lisbon 2024!" -> "trip-to-lisbon-2024"
    """
    slug = (name or "").lower().strip()
    slug = re.sub(r'[\s_]+', '-', slug)
    slug = re.sub(r'[^\w\-]', '', slug)
    slug = re.sub(r'-+', '-', slug).strip('-')

    if not slug:
        return _fallback_slug()

    if len(slug) > MAX_SLUG_LENGTH:
        slug = slug[:MAX_SLUG_LENGTH].rstrip('-')

    return slug


def make_slug_unique(slug: str, db: Session, exclude_group_id: Optional[str] = None) -> str:
    """Append -1, -2, ... until no other group uses the slug"""
    candidate = slug
    counter = 1

    while True:
        query = db.query(Group.id).filter(Group.slug == candidate)
        if exclude_group_id:
            query = query.filter(Group.id != exclude_group_id)
        if query.first() is None:
            return candidate

        candidate = f"{slug}-{counter}"
        counter += 1


def create_group_slug(name: str, db: Session, exclude_group_id: Optional[str] = None) -> str:
    """Create a unique slug for a group name"""
    return make_slug_unique(generate_slug(name), db, exclude_group_id)
