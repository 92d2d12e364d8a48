"""
API endpoints for lawyer reviews.

A lawyer's reviews and rating are public.  Writing, editing and
deleting reviews requires authentication; only the client of a
completed booking may review it.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, status

from legal_eye_api.app.core.db import Database, get_db
from legal_eye_api.app.core.responses import success_response
from legal_eye_api.app.core.security import get_current_user
from legal_eye_api.app.schemas.review import ReviewCreate, ReviewUpdate
from legal_eye_api.app.services.review_service import ReviewService

router = APIRouter()


@router.get("/lawyer/{lawyer_id}", summary="Reviews of a lawyer")
async def lawyer_reviews(
    lawyer_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Database = Depends(get_db),
):
    """Paginated, newest first; ``hasMore`` tells whether another page exists."""
    return success_response(await ReviewService.list_lawyer_reviews(db, lawyer_id, page, limit))


@router.get("/lawyer/{lawyer_id}/rating", summary="Rating of a lawyer")
async def lawyer_rating(lawyer_id: int, db: Database = Depends(get_db)):
    return success_response(await ReviewService.get_lawyer_rating(db, lawyer_id))


@router.post("", status_code=status.HTTP_201_CREATED, summary="Review a completed booking")
async def create_review(
    data: ReviewCreate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    review = await ReviewService.create_review(db, current_user, data)
    return success_response(review, "Review created successfully", status.HTTP_201_CREATED)


@router.get("/my-reviews", summary="Reviews written by the current user")
async def my_reviews(
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    reviews = await ReviewService.list_client_reviews(db, current_user["id"])
    return success_response(reviews, count=len(reviews))


@router.put("/{review_id}", summary="Edit own review")
async def update_review(
    review_id: int,
    data: ReviewUpdate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    review = await ReviewService.update_review(db, review_id, current_user, data)
    return success_response(review, "Review updated successfully")


@router.delete("/{review_id}", summary="Delete a review")
async def delete_review(
    review_id: int,
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    await ReviewService.delete_review(db, review_id, current_user)
    return success_response(message="Review deleted successfully")
