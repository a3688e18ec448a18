"""
SQLAlchemy models for KnowledgeHub.

Relationships are declared with lazy="raise": every read that needs the author,
categories or tags must ask for them with explicit loader options.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import relationship

from knowledgehub.db.database import Base


def new_id() -> str:
    """Random, globally unique identifier."""
    return str(uuid.uuid4())


post_categories = Table(
    "post_categories",
    Base.metadata,
    Column("post_id", String(36), ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", String(36), ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)

post_tags = Table(
    "post_tags",
    Base.metadata,
    Column("post_id", String(36), ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", String(36), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    """Author account. Password holds a werkzeug hash, never plain text."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(320), unique=True, nullable=False)
    name = Column(String(200))
    password = Column(String(255), nullable=False)
    role = Column(String(20), default="admin", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<User {self.email}>"


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(200), unique=True, nullable=False)
    slug = Column(String(200), unique=True, nullable=False)
    description = Column(Text)
    color = Column(String(20))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Category {self.slug}>"


class Tag(Base):
    __tablename__ = "tags"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(200), unique=True, nullable=False)
    slug = Column(String(200), unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Tag {self.slug}>"


class Post(Base):
    """
    Blog post model.
    Owned by exactly one author; removed together with that author.
    """
    __tablename__ = "posts"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(500), nullable=False)
    slug = Column(String(200), unique=True, nullable=False, index=True)
    content = Column(Text, nullable=False)
    excerpt = Column(Text)
    cover_image = Column(String(500))
    published = Column(Boolean, default=False, nullable=False)
    featured = Column(Boolean, default=False, nullable=False)
    reading_time = Column(Integer, default=1, nullable=False)
    views = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    published_at = Column(DateTime)
    author_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    author = relationship("User", lazy="raise")
    categories = relationship(
        "Category",
        secondary=post_categories,
        order_by=Category.name,
        lazy="raise",
        viewonly=True,
    )
    tags = relationship(
        "Tag",
        secondary=post_tags,
        order_by=Tag.name,
        lazy="raise",
        viewonly=True,
    )

    __table_args__ = (
        Index('idx_posts_published', 'published'),
        Index('idx_posts_featured', 'featured'),
        Index('idx_posts_created_at', 'created_at'),
        Index('idx_posts_author_id', 'author_id'),
    )

    def __repr__(self):
        return f"<Post {self.slug}>"
