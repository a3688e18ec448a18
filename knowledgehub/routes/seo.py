"""
SEO routes for KnowledgeHub.
Handles sitemap.xml and robots.txt.
"""

import os
from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from knowledgehub.db.database import get_db
from knowledgehub.services import posts as posts_service

router = APIRouter(tags=["seo"])

SITE_URL = os.getenv("KH_SITE_URL", "http://localhost:8000").rstrip("/")

STATIC_PAGES = [
    {"loc": "/", "priority": "1.0", "changefreq": "weekly"},
    {"loc": "/blog", "priority": "0.9", "changefreq": "daily"},
    {"loc": "/about", "priority": "0.5", "changefreq": "monthly"},
]


@router.get("/sitemap.xml")
async def sitemap(db: Session = Depends(get_db)):
    """
    Dynamic XML sitemap including all pages and published posts.
    """
    posts = posts_service.list_posts(db, published=True)

    urls = []
    today = datetime.utcnow().strftime("%Y-%m-%d")

    for page in STATIC_PAGES:
        urls.append(f"""
    <url>
        <loc>{SITE_URL}{page['loc']}</loc>
        <lastmod>{today}</lastmod>
        <changefreq>{page['changefreq']}</changefreq>
        <priority>{page['priority']}</priority>
    </url>""")

    for post in posts:
        stamp = post.updated_at or post.published_at or post.created_at
        lastmod = stamp.strftime("%Y-%m-%d") if stamp else today
        urls.append(f"""
    <url>
        <loc>{SITE_URL}/blog/{post.slug}</loc>
        <lastmod>{lastmod}</lastmod>
        <changefreq>monthly</changefreq>
        <priority>0.7</priority>
    </url>""")

    sitemap_xml = f"""<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{"".join(urls)}
</urlset>"""

    response = Response(content=sitemap_xml.strip(), media_type="application/xml")
    response.headers["Cache-Control"] = "public, max-age=3600"
    return response


@router.get("/robots.txt")
async def robots():
    """
    Robots.txt file for search engine crawlers.
    """
    robots_txt = f"""User-agent: *
Allow: /
Disallow: /admin/
Disallow: /api/

Sitemap: {SITE_URL}/sitemap.xml
"""

    response = Response(content=robots_txt, media_type="text/plain")
    response.headers["Cache-Control"] = "public, max-age=86400"
    return response
