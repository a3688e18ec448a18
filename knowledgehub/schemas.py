"""
Request and response schemas for the JSON API.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from knowledgehub.services.text import slugify


class AuthorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: Optional[str] = None
    role: str


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
    description: Optional[str] = None
    color: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TagResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PostResponse(BaseModel):
    """A post with its author, categories and tags resolved."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    slug: str
    content: str
    excerpt: Optional[str] = None
    cover_image: Optional[str] = None
    published: bool
    featured: bool
    reading_time: int
    views: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    author_id: str
    author: Optional[AuthorResponse] = None
    categories: List[CategoryResponse] = []
    tags: List[TagResponse] = []


def _sluggable(value: str) -> str:
    value = value.strip()
    if not slugify(value):
        raise ValueError("must contain at least one letter or digit")
    return value


class PostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1)
    author_id: str = Field(..., min_length=1)
    excerpt: Optional[str] = None
    cover_image: Optional[str] = None
    published: bool = False
    featured: bool = False
    categories: List[str] = []
    tags: List[str] = []

    check_title = field_validator("title")(_sluggable)


class PostUpdate(BaseModel):
    """Partial update. Only fields present in the request body are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    slug: Optional[str] = None
    content: Optional[str] = Field(None, min_length=1)
    excerpt: Optional[str] = None
    cover_image: Optional[str] = None
    published: Optional[bool] = None
    featured: Optional[bool] = None
    categories: Optional[List[str]] = None
    tags: Optional[List[str]] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _sluggable(value)

    @field_validator("slug")
    @classmethod
    def normalize_slug(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        slug = slugify(value)
        if not slug:
            raise ValueError("must contain at least one letter or digit")
        return slug


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    color: Optional[str] = Field(None, max_length=20)

    check_name = field_validator("name")(_sluggable)


class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)

    check_name = field_validator("name")(_sluggable)
