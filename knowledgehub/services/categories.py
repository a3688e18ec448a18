"""
Categories service for KnowledgeHub.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from knowledgehub.db.models import Category
from knowledgehub.services.errors import integrity_guard
from knowledgehub.services.text import slugify

logger = logging.getLogger(__name__)

def get_category(db: Session, category_id: str) -> Optional[Category]:
    """Get a category by ID."""
    return db.query(Category).filter(Category.id == category_id).first()

def get_category_by_slug(db: Session, slug: str) -> Optional[Category]:
    """Get a category by slug."""
    return db.query(Category).filter(Category.slug == slug).first()

def list_categories(db: Session) -> list[Category]:
    """All categories, ordered by name."""
    return db.query(Category).order_by(Category.name).all()

def create_category(
    db: Session,
    name: str,
    description: Optional[str] = None,
    color: Optional[str] = None
) -> Category:
    """Create a category. The slug is derived from the name."""
    category = Category(
        name=name,
        slug=slugify(name),
        description=description or None,
        color=color or None
    )

    with integrity_guard(db):
        db.add(category)
        db.commit()
    db.refresh(category)

    logger.info(f"Created category {category.slug}")
    return category

def delete_category(db: Session, category_id: str) -> bool:
    """Delete a category. Posts keep existing; only their association rows go."""
    deleted = db.query(Category).filter(Category.id == category_id).delete(synchronize_session=False)
    db.commit()
    return bool(deleted)
