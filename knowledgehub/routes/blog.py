"""
Public blog routes for KnowledgeHub.
"""

from typing import Optional
from xml.sax.saxutils import escape

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from knowledgehub.db.database import get_db
from knowledgehub.routes.pages import SITE_NAME, templates
from knowledgehub.routes.seo import SITE_URL
from knowledgehub.services import categories as categories_service
from knowledgehub.services import posts as posts_service
from knowledgehub.services import tags as tags_service
from knowledgehub.services.text import render_markdown

router = APIRouter(prefix="/blog", tags=["blog"])

POSTS_PER_PAGE = 12


@router.get("")
async def blog_index(
    request: Request,
    page: int = 1,
    q: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Blog index - list published posts with pagination and search."""
    if page < 1:
        page = 1

    offset = (page - 1) * POSTS_PER_PAGE

    if q and q.strip():
        matches = posts_service.search_posts(db, q.strip())
        total = len(matches)
        posts = matches[offset:offset + POSTS_PER_PAGE]
    else:
        total = posts_service.count_posts(db, published=True)
        posts = posts_service.list_posts(
            db, published=True, limit=POSTS_PER_PAGE, offset=offset
        )

    total_pages = (total + POSTS_PER_PAGE - 1) // POSTS_PER_PAGE

    response = templates.TemplateResponse(
        request,
        "blog/list.html",
        {
            "posts": posts,
            "page": page,
            "per_page": POSTS_PER_PAGE,
            "total_pages": total_pages,
            "total": total,
            "search_query": q or "",
            "categories": categories_service.list_categories(db),
            "tags": tags_service.list_tags(db),
        }
    )
    response.headers["Cache-Control"] = "public, max-age=300"
    return response


@router.get("/feed.xml")
async def blog_rss_feed(db: Session = Depends(get_db)):
    """RSS 2.0 feed of published blog posts."""
    posts = posts_service.list_posts(db, published=True, limit=20)

    items = []
    for post in posts:
        stamp = post.published_at or post.created_at
        pub_date = stamp.strftime("%a, %d %b %Y %H:%M:%S +0000") if stamp else ""
        items.append(f"""
        <item>
            <title><![CDATA[{post.title}]]></title>
            <link>{SITE_URL}/blog/{post.slug}</link>
            <guid isPermaLink="true">{SITE_URL}/blog/{post.slug}</guid>
            <description><![CDATA[{post.excerpt or ''}]]></description>
            <pubDate>{pub_date}</pubDate>
        </item>""")

    rss = f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom">
    <channel>
        <title>{escape(SITE_NAME)}</title>
        <link>{SITE_URL}/blog</link>
        <description>Articles from {escape(SITE_NAME)}.</description>
        <language>en-us</language>
        <atom:link href="{SITE_URL}/blog/feed.xml" rel="self" type="application/rss+xml"/>
        {"".join(items)}
    </channel>
</rss>"""

    response = Response(content=rss.strip(), media_type="application/rss+xml")
    response.headers["Cache-Control"] = "public, max-age=3600"
    return response


@router.get("/category/{slug}")
async def blog_category(request: Request, slug: str, db: Session = Depends(get_db)):
    """Published posts in one category."""
    category = categories_service.get_category_by_slug(db, slug)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    return templates.TemplateResponse(
        request,
        "blog/filtered.html",
        {
            "heading": category.name,
            "description": category.description,
            "color": category.color,
            "posts": posts_service.list_posts_in_category(db, category.id),
        }
    )


@router.get("/tag/{slug}")
async def blog_tag(request: Request, slug: str, db: Session = Depends(get_db)):
    """Published posts with one tag."""
    tag = tags_service.get_tag_by_slug(db, slug)
    if not tag:
        raise HTTPException(status_code=404, detail="Tag not found")

    return templates.TemplateResponse(
        request,
        "blog/filtered.html",
        {
            "heading": f"#{tag.name}",
            "description": None,
            "color": None,
            "posts": posts_service.list_posts_with_tag(db, tag.id),
        }
    )


@router.get("/{slug}")
async def blog_post(request: Request, slug: str, db: Session = Depends(get_db)):
    """Single blog post view. Every successful view is counted."""
    post = posts_service.get_post_by_slug(db, slug)

    if not post or not post.published:
        raise HTTPException(status_code=404, detail="Post not found")

    posts_service.increment_views(db, post.id)
    post = posts_service.get_post(db, post.id)

    return templates.TemplateResponse(
        request,
        "blog/post.html",
        {
            "post": post,
            "content_html": render_markdown(post.content),
            "related_posts": posts_service.get_related_posts(db, post, limit=3),
        }
    )
