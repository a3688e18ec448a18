"""
Posts service for KnowledgeHub.
CRUD operations, category/tag associations, filtering and search.
"""

import logging
import os
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy import delete, insert, or_, select, update
from sqlalchemy.orm import Query, Session, joinedload, selectinload

from knowledgehub.db.models import Post, post_categories, post_tags
from knowledgehub.services.errors import InvalidFieldError, integrity_guard
from knowledgehub.services.text import reading_time as estimate_reading_time
from knowledgehub.services.text import slugify

logger = logging.getLogger(__name__)

# Whether publishing an already-published post moves its publish date forward
RESTAMP_ON_REPUBLISH = os.getenv("KH_RESTAMP_ON_REPUBLISH", "false").lower() in ("1", "true", "yes")

# Columns a partial update may set; None is ignored for the first group and
# clears the value for the second
REQUIRED_FIELDS = ("title", "slug", "content", "featured")
CLEARABLE_FIELDS = ("excerpt", "cover_image")


def _unique(ids: Optional[Iterable[str]]) -> list[str]:
    """Drop duplicates while keeping the caller's order."""
    return list(dict.fromkeys(ids or []))


def _with_relations(query: Query) -> Query:
    """Attach the author, categories and tags with explicit eager loads."""
    return query.options(
        joinedload(Post.author),
        selectinload(Post.categories),
        selectinload(Post.tags),
    )


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _require_slug(text: str) -> str:
    slug = slugify(text or "")
    if not slug:
        raise InvalidFieldError("Slug must contain at least one letter or digit")
    return slug


def _replace_associations(db: Session, table, column: str, post_id: str, ids: list[str]) -> None:
    """Delete every association row for the post, then insert the new set."""
    db.execute(delete(table).where(table.c.post_id == post_id))
    if ids:
        db.execute(insert(table), [{"post_id": post_id, column: value} for value in ids])


# =============================================================================
# READ OPERATIONS
# =============================================================================

def get_post(db: Session, post_id: str) -> Optional[Post]:
    """Get a post by ID, with author, categories and tags."""
    return _with_relations(db.query(Post)).filter(Post.id == post_id).first()


def get_post_by_slug(db: Session, slug: str) -> Optional[Post]:
    """Get a post by slug, with author, categories and tags."""
    return _with_relations(db.query(Post)).filter(Post.slug == slug).first()


def _filtered(
    db: Session,
    published: Optional[bool] = None,
    featured: Optional[bool] = None
) -> Query:
    query = db.query(Post)

    if published is not None:
        query = query.filter(Post.published == published)
    if featured is not None:
        query = query.filter(Post.featured == featured)

    return query


def list_posts(
    db: Session,
    published: Optional[bool] = None,
    featured: Optional[bool] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None
) -> list[Post]:
    """List posts, newest first. Filters left as None are not applied."""
    query = _with_relations(_filtered(db, published, featured))
    query = query.order_by(Post.created_at.desc())

    if limit:
        query = query.limit(limit)
    if offset:
        query = query.offset(offset)

    return query.all()


def count_posts(
    db: Session,
    published: Optional[bool] = None,
    featured: Optional[bool] = None
) -> int:
    return _filtered(db, published, featured).count()


def search_posts(
    db: Session,
    query_text: str,
    limit: Optional[int] = None,
    offset: Optional[int] = None
) -> list[Post]:
    """Search published posts by title, content and excerpt.

    Plain case-insensitive substring match, newest first; no ranking.
    """
    search_pattern = f"%{_escape_like(query_text)}%"

    query = _with_relations(db.query(Post)).filter(
        Post.published.is_(True),
        or_(
            Post.title.ilike(search_pattern, escape="\\"),
            Post.content.ilike(search_pattern, escape="\\"),
            Post.excerpt.ilike(search_pattern, escape="\\")
        )
    ).order_by(Post.created_at.desc())

    if limit:
        query = query.limit(limit)
    if offset:
        query = query.offset(offset)

    return query.all()


def list_posts_in_category(db: Session, category_id: str, limit: Optional[int] = None) -> list[Post]:
    """Published posts filed under one category, newest first."""
    query = _with_relations(db.query(Post)).join(
        post_categories, post_categories.c.post_id == Post.id
    ).filter(
        post_categories.c.category_id == category_id,
        Post.published.is_(True)
    ).order_by(Post.created_at.desc())

    if limit:
        query = query.limit(limit)
    return query.all()


def list_posts_with_tag(db: Session, tag_id: str, limit: Optional[int] = None) -> list[Post]:
    """Published posts carrying one tag, newest first."""
    query = _with_relations(db.query(Post)).join(
        post_tags, post_tags.c.post_id == Post.id
    ).filter(
        post_tags.c.tag_id == tag_id,
        Post.published.is_(True)
    ).order_by(Post.created_at.desc())

    if limit:
        query = query.limit(limit)
    return query.all()


def get_related_posts(db: Session, post: Post, limit: int = 3) -> list[Post]:
    """Published posts sharing a category or tag with the given post."""
    category_ids = [category.id for category in post.categories]
    tag_ids = [tag.id for tag in post.tags]
    if not category_ids and not tag_ids:
        return []

    in_category = select(post_categories.c.post_id).where(
        post_categories.c.category_id.in_(category_ids)
    )
    with_tag = select(post_tags.c.post_id).where(post_tags.c.tag_id.in_(tag_ids))

    return _with_relations(db.query(Post)).filter(
        Post.id != post.id,
        Post.published.is_(True),
        or_(Post.id.in_(in_category), Post.id.in_(with_tag))
    ).order_by(Post.created_at.desc()).limit(limit).all()


# =============================================================================
# WRITE OPERATIONS
# =============================================================================

def create_post(
    db: Session,
    title: str,
    content: str,
    author_id: str,
    slug: Optional[str] = None,
    excerpt: Optional[str] = None,
    cover_image: Optional[str] = None,
    published: bool = False,
    featured: bool = False,
    reading_time: Optional[int] = None,
    categories: Optional[Iterable[str]] = None,
    tags: Optional[Iterable[str]] = None
) -> Post:
    """Create a new post with its category and tag associations.

    Raises ConflictError when the slug is taken, InvalidReferenceError when
    the author, a category or a tag does not exist, and InvalidFieldError when
    no slug can be made from the slug or title.
    """
    post = Post(
        title=title,
        slug=_require_slug(slug or title),
        content=content,
        excerpt=excerpt or None,
        cover_image=cover_image or None,
        published=bool(published),
        featured=bool(featured),
        reading_time=max(1, reading_time or estimate_reading_time(content)),
        author_id=author_id,
        published_at=datetime.utcnow() if published else None
    )

    with integrity_guard(db):
        db.add(post)
        db.flush()
        _replace_associations(db, post_categories, "category_id", post.id, _unique(categories))
        _replace_associations(db, post_tags, "tag_id", post.id, _unique(tags))
        db.commit()

    logger.info(f"Created post {post.slug}")
    return get_post(db, post.id)


def update_post(
    db: Session,
    post_id: str,
    changes: Mapping[str, Any],
    restamp_on_republish: Optional[bool] = None
) -> Optional[Post]:
    """Apply a partial update and return the resolved post, or None if absent.

    Only keys present in ``changes`` are applied. ``categories``/``tags`` given
    as a list (even empty) replace the whole association set; absent or None
    leaves them alone.
    """
    if restamp_on_republish is None:
        restamp_on_republish = RESTAMP_ON_REPUBLISH

    post = db.query(Post).filter(Post.id == post_id).first()
    if not post:
        return None

    changes = dict(changes)
    if changes.get("slug") is not None:
        changes["slug"] = _require_slug(changes["slug"])
    if changes.get("title") is not None and not changes["title"].strip():
        raise InvalidFieldError("Title must not be blank")

    for field in REQUIRED_FIELDS:
        if changes.get(field) is not None:
            setattr(post, field, changes[field])
    for field in CLEARABLE_FIELDS:
        if field in changes:
            setattr(post, field, changes[field] or None)
    if changes.get("content") is not None:
        post.reading_time = estimate_reading_time(changes["content"])

    if changes.get("published") is not None:
        publishing = bool(changes["published"])
        if publishing and (not post.published or post.published_at is None or restamp_on_republish):
            post.published_at = datetime.utcnow()
        post.published = publishing

    post.updated_at = datetime.utcnow()

    with integrity_guard(db):
        db.flush()
        if changes.get("categories") is not None:
            _replace_associations(db, post_categories, "category_id", post.id, _unique(changes["categories"]))
        if changes.get("tags") is not None:
            _replace_associations(db, post_tags, "tag_id", post.id, _unique(changes["tags"]))
        db.commit()

    return get_post(db, post_id)


def set_published(db: Session, post_id: str, published: bool) -> Optional[Post]:
    """Publish or unpublish a post."""
    return update_post(db, post_id, {"published": published})


def delete_post(db: Session, post_id: str) -> bool:
    """Delete a post. Its association rows are removed by the cascade."""
    deleted = db.query(Post).filter(Post.id == post_id).delete(synchronize_session=False)
    db.commit()
    if deleted:
        logger.info(f"Deleted post {post_id}")
    return bool(deleted)


def increment_views(db: Session, post_id: str) -> None:
    """Count one read. Every call counts; there is no per-reader deduplication."""
    db.execute(update(Post).where(Post.id == post_id).values(views=Post.views + 1))
    db.commit()
