"""Database package for KnowledgeHub."""

from knowledgehub.db.database import get_db, init_db, create_db_engine, Base, SessionLocal
from knowledgehub.db.models import Post, User, Category, Tag, post_categories, post_tags

__all__ = [
    "get_db",
    "init_db",
    "create_db_engine",
    "Base",
    "SessionLocal",
    "Post",
    "User",
    "Category",
    "Tag",
    "post_categories",
    "post_tags",
]
