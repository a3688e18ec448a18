"""
Admin routes for KnowledgeHub post management.
Protected by session-based authentication.
"""

from typing import List

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from knowledgehub.db.database import get_db
from knowledgehub.db.models import User
from knowledgehub.routes.auth import get_current_user
from knowledgehub.routes.pages import templates
from knowledgehub.services import categories as categories_service
from knowledgehub.services import posts as posts_service
from knowledgehub.services import tags as tags_service
from knowledgehub.services.errors import ServiceError
from knowledgehub.services.text import slugify

router = APIRouter(prefix="/admin", tags=["admin"])


def require_admin(request: Request, db: Session = Depends(get_db)) -> User:
    """Check if the request carries a signed-in author; redirect to login if not."""
    user = get_current_user(request, db)
    if not user:
        raise HTTPException(
            status_code=302,
            headers={"Location": f"/admin/login?next={request.url.path}"}
        )
    return user


def _get_post_or_404(db: Session, slug: str):
    post = posts_service.get_post_by_slug(db, slug)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


def _edit_form(request: Request, db: Session, post=None, **extra):
    return templates.TemplateResponse(
        request,
        "admin/edit.html",
        {
            "post": post,
            "categories": categories_service.list_categories(db),
            "tags": tags_service.list_tags(db),
            **extra
        },
        status_code=400 if extra.get("error") else 200
    )


@router.get("")
async def admin_home():
    return RedirectResponse(url="/admin/posts", status_code=302)


@router.get("/posts")
async def admin_posts(
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin)
):
    """List all posts, drafts included."""
    posts = posts_service.list_posts(db)
    return templates.TemplateResponse(
        request,
        "admin/posts.html",
        {"posts": posts, "user": user}
    )


@router.get("/posts/new")
async def admin_new_post(
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin)
):
    """New post form."""
    return _edit_form(request, db)


@router.post("/posts/new")
async def admin_create_post(
    request: Request,
    title: str = Form(...),
    content: str = Form(...),
    excerpt: str = Form(""),
    cover_image: str = Form(""),
    published: bool = Form(False),
    featured: bool = Form(False),
    categories: List[str] = Form([]),
    tags: List[str] = Form([]),
    db: Session = Depends(get_db),
    user: User = Depends(require_admin)
):
    """Create a new post."""
    if not slugify(title):
        return _edit_form(request, db, error="Title must contain at least one letter or digit")

    try:
        post = posts_service.create_post(
            db,
            title=title,
            content=content,
            author_id=user.id,
            excerpt=excerpt or None,
            cover_image=cover_image or None,
            published=published,
            featured=featured,
            categories=categories,
            tags=tags
        )
    except ServiceError as e:
        return _edit_form(request, db, error=str(e))

    return RedirectResponse(url=f"/admin/posts/{post.slug}/edit", status_code=303)


@router.get("/posts/{slug}/edit")
async def admin_edit_post(
    request: Request,
    slug: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin)
):
    """Edit post form."""
    return _edit_form(request, db, post=_get_post_or_404(db, slug))


@router.post("/posts/{slug}/edit")
async def admin_update_post(
    request: Request,
    slug: str,
    title: str = Form(...),
    new_slug: str = Form(""),
    content: str = Form(...),
    excerpt: str = Form(""),
    cover_image: str = Form(""),
    featured: bool = Form(False),
    categories: List[str] = Form([]),
    tags: List[str] = Form([]),
    db: Session = Depends(get_db),
    user: User = Depends(require_admin)
):
    """Save the edit form. The form always carries the full category and tag selection."""
    post = _get_post_or_404(db, slug)

    changes = {
        "title": title,
        "slug": slugify(new_slug) or post.slug,
        "content": content,
        "excerpt": excerpt,
        "cover_image": cover_image,
        "featured": featured,
        "categories": categories,
        "tags": tags,
    }

    try:
        post = posts_service.update_post(db, post.id, changes)
    except ServiceError as e:
        return _edit_form(request, db, post=_get_post_or_404(db, slug), error=str(e))

    return _edit_form(request, db, post=post, success="Post updated successfully")


@router.post("/posts/{slug}/publish")
async def admin_publish_post(
    slug: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin)
):
    """Publish a post."""
    post = _get_post_or_404(db, slug)
    posts_service.set_published(db, post.id, True)
    return RedirectResponse(url=f"/admin/posts/{slug}/edit", status_code=303)


@router.post("/posts/{slug}/unpublish")
async def admin_unpublish_post(
    slug: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin)
):
    """Revert a post to draft."""
    post = _get_post_or_404(db, slug)
    posts_service.set_published(db, post.id, False)
    return RedirectResponse(url=f"/admin/posts/{slug}/edit", status_code=303)


@router.post("/posts/{slug}/delete")
async def admin_delete_post(
    slug: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin)
):
    """Delete a post."""
    post = _get_post_or_404(db, slug)
    posts_service.delete_post(db, post.id)
    return RedirectResponse(url="/admin/posts", status_code=303)
