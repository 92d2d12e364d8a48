"""
Business logic for reviews.

Clients review lawyers after a consultation.  A review is tied to one
completed booking, written by that booking's client, and at most one
review exists per booking.  Whenever a review is created, changed or
removed the lawyer's ``rating`` and ``total_reviews`` are recomputed
from all of the lawyer's reviews so they never drift.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from ..core.db import Database
from ..core.errors import ConflictError, NotFoundError, PermissionDenied, ValidationFailed
from ..schemas.review import LawyerRating, ReviewCreate, ReviewPage, ReviewRead, ReviewUpdate

logger = logging.getLogger(__name__)

REVIEW_SELECT = """
    SELECT r.*, cu.name AS client_name, lu.name AS lawyer_name, l.specialization
    FROM reviews r
    JOIN users cu ON r.client_id = cu.id
    JOIN lawyers l ON r.lawyer_id = l.id
    JOIN users lu ON l.user_id = lu.id
"""

ALREADY_REVIEWED = "You have already reviewed this booking"


class ReviewService:
    """Service for lawyer reviews."""

    @staticmethod
    def recompute_lawyer_rating(cursor: sqlite3.Cursor, lawyer_id: int) -> None:
        """Store the mean rating and review count of ``lawyer_id``.

        A lawyer without reviews gets rating 0 and a count of 0.
        """
        stats = cursor.execute(
            "SELECT AVG(rating) AS average, COUNT(*) AS total FROM reviews WHERE lawyer_id = ?",
            (lawyer_id,),
        ).fetchone()
        average = stats["average"] if stats["average"] is not None else 0
        cursor.execute(
            "UPDATE lawyers SET rating = ?, total_reviews = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (average, stats["total"], lawyer_id),
        )

    @classmethod
    async def create_review(
        cls, db: Database, current_user: Dict[str, Any], data: ReviewCreate
    ) -> ReviewRead:
        """Review a completed booking of the calling client.

        The reviewed lawyer is the booking's lawyer.  The booking must
        exist, belong to the caller, be completed and not yet reviewed.
        """
        client_id = current_user["id"]
        with db.cursor() as cursor:
            booking = cursor.execute(
                "SELECT id, client_id, lawyer_id, status FROM bookings WHERE id = ?",
                (data.booking_id,),
            ).fetchone()
            if not booking:
                raise NotFoundError("Booking not found")
            if booking["client_id"] != client_id:
                raise PermissionDenied("You can only review your own bookings")
            if booking["status"] != "completed":
                raise ConflictError("You can only review completed bookings")
            existing = cursor.execute(
                "SELECT id FROM reviews WHERE booking_id = ?", (data.booking_id,)
            ).fetchone()
            if existing:
                raise ConflictError(ALREADY_REVIEWED)
            try:
                cursor.execute(
                    """
                    INSERT INTO reviews (booking_id, client_id, lawyer_id, rating, title, comment)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        data.booking_id,
                        client_id,
                        booking["lawyer_id"],
                        data.rating,
                        data.title,
                        data.comment,
                    ),
                )
            except sqlite3.IntegrityError:
                raise ConflictError(ALREADY_REVIEWED)
            review_id = cursor.lastrowid
            cls.recompute_lawyer_rating(cursor, booking["lawyer_id"])
            row = cursor.execute(f"{REVIEW_SELECT} WHERE r.id = ?", (review_id,)).fetchone()
        logger.info(
            "User %s reviewed lawyer %s (booking %s, rating %s)",
            client_id, booking["lawyer_id"], data.booking_id, data.rating,
        )
        return cls._row_to_review(row)

    @classmethod
    async def list_lawyer_reviews(
        cls, db: Database, lawyer_id: int, page: int = 1, limit: int = 10
    ) -> ReviewPage:
        """One page of a lawyer's reviews, newest first."""
        if page < 1 or limit < 1:
            raise ValidationFailed("page and limit must be positive")
        offset = (page - 1) * limit
        with db.cursor() as cursor:
            lawyer = cursor.execute("SELECT id FROM lawyers WHERE id = ?", (lawyer_id,)).fetchone()
            if not lawyer:
                raise NotFoundError("Lawyer not found")
            total = cursor.execute(
                "SELECT COUNT(*) AS total FROM reviews WHERE lawyer_id = ?", (lawyer_id,)
            ).fetchone()["total"]
            rows = cursor.execute(
                f"{REVIEW_SELECT} WHERE r.lawyer_id = ? ORDER BY r.created_at DESC, r.id DESC "
                "LIMIT ? OFFSET ?",
                (lawyer_id, limit, offset),
            ).fetchall()
        reviews = [cls._row_to_review(row) for row in rows]
        return ReviewPage(
            reviews=reviews,
            page=page,
            limit=limit,
            total=total,
            has_more=offset + len(reviews) < total,
        )

    @classmethod
    async def get_lawyer_rating(cls, db: Database, lawyer_id: int) -> LawyerRating:
        with db.cursor() as cursor:
            row = cursor.execute(
                "SELECT id, rating, total_reviews FROM lawyers WHERE id = ?", (lawyer_id,)
            ).fetchone()
        if not row:
            raise NotFoundError("Lawyer not found")
        return LawyerRating(lawyer_id=row["id"], rating=row["rating"] or 0, total_reviews=row["total_reviews"] or 0)

    @classmethod
    async def list_client_reviews(cls, db: Database, client_id: int) -> List[ReviewRead]:
        """Reviews written by ``client_id``, newest first."""
        with db.cursor() as cursor:
            rows = cursor.execute(
                f"{REVIEW_SELECT} WHERE r.client_id = ? ORDER BY r.created_at DESC, r.id DESC",
                (client_id,),
            ).fetchall()
        return [cls._row_to_review(row) for row in rows]

    @classmethod
    async def update_review(
        cls,
        db: Database,
        review_id: int,
        current_user: Dict[str, Any],
        data: ReviewUpdate,
    ) -> ReviewRead:
        """Change rating, title or comment of the caller's own review."""
        updates = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        with db.cursor() as cursor:
            row = cursor.execute(
                "SELECT client_id, lawyer_id FROM reviews WHERE id = ?", (review_id,)
            ).fetchone()
            if not row:
                raise NotFoundError("Review not found")
            if row["client_id"] != current_user.get("id"):
                raise PermissionDenied("Not authorized to update this review")
            if updates:
                fields = ", ".join(f"{key} = ?" for key in updates)
                cursor.execute(
                    f"UPDATE reviews SET {fields}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (*updates.values(), review_id),
                )
                if "rating" in updates:
                    cls.recompute_lawyer_rating(cursor, row["lawyer_id"])
            updated = cursor.execute(f"{REVIEW_SELECT} WHERE r.id = ?", (review_id,)).fetchone()
        logger.info("Review %s updated: %s", review_id, sorted(updates))
        return cls._row_to_review(updated)

    @classmethod
    async def delete_review(
        cls, db: Database, review_id: int, current_user: Dict[str, Any]
    ) -> None:
        """Remove a review (its author or an administrator)."""
        with db.cursor() as cursor:
            row = cursor.execute(
                "SELECT client_id, lawyer_id FROM reviews WHERE id = ?", (review_id,)
            ).fetchone()
            if not row:
                raise NotFoundError("Review not found")
            if current_user.get("role") != "admin" and row["client_id"] != current_user.get("id"):
                raise PermissionDenied("Not authorized to delete this review")
            cursor.execute("DELETE FROM reviews WHERE id = ?", (review_id,))
            cls.recompute_lawyer_rating(cursor, row["lawyer_id"])
        logger.info("Review %s deleted by user %s", review_id, current_user.get("id"))

    @staticmethod
    def _row_to_review(row: Optional[sqlite3.Row]) -> ReviewRead:
        return ReviewRead(
            id=row["id"],
            booking_id=row["booking_id"],
            client_id=row["client_id"],
            lawyer_id=row["lawyer_id"],
            rating=row["rating"],
            title=row["title"],
            comment=row["comment"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            client_name=row["client_name"],
            lawyer_name=row["lawyer_name"],
            specialization=row["specialization"],
        )
