"""
Tags service for KnowledgeHub.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from knowledgehub.db.models import Tag
from knowledgehub.services.errors import integrity_guard
from knowledgehub.services.text import slugify

logger = logging.getLogger(__name__)

def get_tag(db: Session, tag_id: str) -> Optional[Tag]:
    """Get a tag by ID."""
    return db.query(Tag).filter(Tag.id == tag_id).first()

def get_tag_by_slug(db: Session, slug: str) -> Optional[Tag]:
    """Get a tag by slug."""
    return db.query(Tag).filter(Tag.slug == slug).first()

def list_tags(db: Session) -> list[Tag]:
    """All tags, ordered by name."""
    return db.query(Tag).order_by(Tag.name).all()

def create_tag(db: Session, name: str) -> Tag:
    """Create a tag. The slug is derived from the name."""
    tag = Tag(name=name, slug=slugify(name))

    with integrity_guard(db):
        db.add(tag)
        db.commit()
    db.refresh(tag)

    logger.info(f"Created tag {tag.slug}")
    return tag

def delete_tag(db: Session, tag_id: str) -> bool:
    """Delete a tag. Posts keep existing; only their association rows go."""
    deleted = db.query(Tag).filter(Tag.id == tag_id).delete(synchronize_session=False)
    db.commit()
    return bool(deleted)
