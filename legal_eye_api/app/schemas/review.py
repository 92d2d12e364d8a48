"""
Pydantic schemas for lawyer reviews.

A client may review a booking once it is completed.  The lawyer being
reviewed is always taken from the booking; a ``lawyerId`` sent by the
client is accepted for compatibility and ignored.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_COMMENT_LENGTH = 20
MAX_COMMENT_LENGTH = 2000


def _clean_title(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    if not v:
        raise ValueError("Title is required")
    return v


def _clean_comment(v: Optional[str]) -> Optional[str]:
    """Trim whitespace from the comment and enforce its length bounds."""
    if v is None:
        return None
    v = v.strip()
    if len(v) < MIN_COMMENT_LENGTH:
        raise ValueError(f"Comment must be at least {MIN_COMMENT_LENGTH} characters")
    if len(v) > MAX_COMMENT_LENGTH:
        raise ValueError(f"Comment must be {MAX_COMMENT_LENGTH} characters or fewer")
    return v


class ReviewCreate(BaseModel):
    """Schema for creating a new review."""

    model_config = ConfigDict(populate_by_name=True)

    booking_id: int = Field(..., alias="bookingId", description="Completed booking being reviewed")
    lawyer_id: Optional[int] = Field(None, alias="lawyerId")
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5")
    title: str
    comment: str

    @field_validator("title")
    @classmethod
    def title_required(cls, v: str) -> str:
        return _clean_title(v)

    @field_validator("comment")
    @classmethod
    def comment_length(cls, v: str) -> str:
        return _clean_comment(v)


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    title: Optional[str] = None
    comment: Optional[str] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return _clean_title(v)

    @field_validator("comment")
    @classmethod
    def comment_length(cls, v: Optional[str]) -> Optional[str]:
        return _clean_comment(v)


class ReviewRead(BaseModel):
    """Schema for reading a review from the API."""

    id: int
    booking_id: int
    client_id: int
    lawyer_id: int
    rating: int
    title: Optional[str] = None
    comment: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    client_name: Optional[str] = None
    lawyer_name: Optional[str] = None
    specialization: Optional[str] = None


class ReviewPage(BaseModel):
    reviews: List[ReviewRead]
    page: int
    limit: int
    total: int
    has_more: bool = Field(..., serialization_alias="hasMore")


class LawyerRating(BaseModel):
    lawyer_id: int
    rating: float
    total_reviews: int
