"""
Pydantic schemas for legal-information articles.

Articles form a small knowledgebase grouped by category.  Tags are a
list of short strings stored as JSON; ``read_time`` is an estimate in
minutes.  Unpublished articles are hidden from every listing but can
still be fetched by id.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _clean_tags(v: Optional[List[str]]) -> Optional[List[str]]:
    if v is None:
        return None
    tags = [tag.strip() for tag in v if tag and tag.strip()]
    return list(dict.fromkeys(tags))


class ArticleCreate(BaseModel):
    """Schema for creating a new article."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    category: str
    summary: Optional[str] = None
    content: str
    tags: Optional[List[str]] = None
    read_time: Optional[int] = Field(None, ge=0, alias="readTime")
    is_published: bool = Field(True, alias="isPublished")

    @field_validator("title", "category", "content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be empty")
        return v

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_tags(v)


class ArticleUpdate(BaseModel):
    """Partial update; only provided fields change."""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    category: Optional[str] = None
    summary: Optional[str] = None
    content: Optional[str] = None
    tags: Optional[List[str]] = None
    read_time: Optional[int] = Field(None, ge=0, alias="readTime")
    is_published: Optional[bool] = Field(None, alias="isPublished")

    @field_validator("title", "category", "content")
    @classmethod
    def not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be empty")
        return v

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_tags(v)


class ArticleRead(BaseModel):
    """Schema for reading an article."""

    id: int
    title: str
    category: str
    summary: Optional[str] = None
    content: str
    tags: List[str] = []
    read_time: Optional[int] = None
    author_id: Optional[int] = None
    views: int = 0
    is_published: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
