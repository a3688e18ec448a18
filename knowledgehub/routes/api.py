"""
JSON API for KnowledgeHub.

Reads are public; writes need a signed-in author. Service errors
(ConflictError, InvalidReferenceError) are mapped to responses in main.py.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from knowledgehub.db.database import get_db
from knowledgehub.db.models import User
from knowledgehub.routes.auth import require_author
from knowledgehub.schemas import (
    CategoryCreate,
    CategoryResponse,
    PostCreate,
    PostResponse,
    PostUpdate,
    TagCreate,
    TagResponse,
)
from knowledgehub.services import categories as categories_service
from knowledgehub.services import posts as posts_service
from knowledgehub.services import tags as tags_service

router = APIRouter(prefix="/api", tags=["api"])


# =============================================================================
# POSTS
# =============================================================================

@router.get("/posts", response_model=List[PostResponse])
def list_posts(
    published: Optional[bool] = None,
    featured: Optional[bool] = None,
    search: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1),
    offset: Optional[int] = Query(None, ge=0),
    db: Session = Depends(get_db)
):
    """List posts. A search term switches to published-only search."""
    if search:
        return posts_service.search_posts(db, search)

    return posts_service.list_posts(
        db,
        published=published,
        featured=featured,
        limit=limit,
        offset=offset
    )


@router.get("/posts/{slug}", response_model=PostResponse)
def get_post(slug: str, db: Session = Depends(get_db)):
    """Get a single post by slug and count the view."""
    post = posts_service.get_post_by_slug(db, slug)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")

    posts_service.increment_views(db, post.id)
    return posts_service.get_post(db, post.id)


@router.post("/posts", response_model=PostResponse, status_code=201)
def create_post(
    body: PostCreate,
    db: Session = Depends(get_db),
    author: User = Depends(require_author)
):
    """Create a post. The slug is derived from the title."""
    return posts_service.create_post(
        db,
        title=body.title,
        content=body.content,
        author_id=body.author_id,
        excerpt=body.excerpt,
        cover_image=body.cover_image,
        published=body.published,
        featured=body.featured,
        categories=body.categories,
        tags=body.tags
    )


@router.put("/posts/{slug}", response_model=PostResponse)
def update_post(
    slug: str,
    body: PostUpdate,
    db: Session = Depends(get_db),
    author: User = Depends(require_author)
):
    """Partially update a post; fields missing from the body are left unchanged."""
    post = posts_service.get_post_by_slug(db, slug)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")

    updated = posts_service.update_post(db, post.id, body.model_dump(exclude_unset=True))
    if not updated:
        raise HTTPException(status_code=404, detail="Post not found")
    return updated


@router.delete("/posts/{slug}")
def delete_post(
    slug: str,
    db: Session = Depends(get_db),
    author: User = Depends(require_author)
):
    """Delete a post by slug."""
    post = posts_service.get_post_by_slug(db, slug)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")

    posts_service.delete_post(db, post.id)
    return {"message": "Post deleted successfully"}


# =============================================================================
# CATEGORIES & TAGS
# =============================================================================

@router.get("/categories", response_model=List[CategoryResponse])
def list_categories(db: Session = Depends(get_db)):
    return categories_service.list_categories(db)


@router.post("/categories", response_model=CategoryResponse, status_code=201)
def create_category(
    body: CategoryCreate,
    db: Session = Depends(get_db),
    author: User = Depends(require_author)
):
    return categories_service.create_category(
        db, body.name, description=body.description, color=body.color
    )


@router.get("/tags", response_model=List[TagResponse])
def list_tags(db: Session = Depends(get_db)):
    return tags_service.list_tags(db)


@router.post("/tags", response_model=TagResponse, status_code=201)
def create_tag(
    body: TagCreate,
    db: Session = Depends(get_db),
    author: User = Depends(require_author)
):
    return tags_service.create_tag(db, body.name)
