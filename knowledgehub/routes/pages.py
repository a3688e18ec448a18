import os
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from knowledgehub.db.database import get_db
from knowledgehub.services import posts as posts_service
from knowledgehub.services.text import excerpt_from

SITE_NAME = os.getenv("KH_SITE_NAME", "KnowledgeHub")

router = APIRouter()
templates = Jinja2Templates(directory=Path(__file__).parent.parent / "templates")
templates.env.globals["site_name"] = SITE_NAME
templates.env.filters["preview"] = excerpt_from


@router.get("/")
async def index(request: Request, db: Session = Depends(get_db)):
    featured = posts_service.list_posts(db, published=True, featured=True, limit=3)
    recent = posts_service.list_posts(db, published=True, limit=6)
    return templates.TemplateResponse(
        request,
        "index.html",
        {"featured_posts": featured, "recent_posts": recent}
    )


@router.get("/about")
async def about(request: Request):
    return templates.TemplateResponse(request, "about.html")
