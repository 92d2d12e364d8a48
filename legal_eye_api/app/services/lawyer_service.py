"""
Business logic for lawyer profiles, search and availability.

Profiles are joined with their owning user for display.  Only active
users appear in listings and search results.  Weekly availability is
replaced wholesale on every update: all rows of the lawyer are deleted
and the new set inserted.
"""

import json
import logging
import sqlite3
from typing import Any, Dict, List

from ..core.db import Database
from ..core.errors import ConflictError, NotFoundError, PermissionDenied
from ..schemas.lawyer import (
    DAYS_OF_WEEK,
    AvailabilityRead,
    AvailabilitySlot,
    AvailabilityUpdate,
    LawyerCreate,
    LawyerRead,
    LawyerSearch,
    LawyerStats,
    LawyerUpdate,
)

logger = logging.getLogger(__name__)

LAWYER_SELECT = (
    "SELECT l.*, u.name, u.email, u.phone, u.profile_image "
    "FROM lawyers l JOIN users u ON l.user_id = u.id"
)

SORT_ORDERS = {
    "rating": "l.rating DESC, l.total_reviews DESC",
    "fee-low": "l.consultation_fee ASC",
    "fee-high": "l.consultation_fee DESC",
    "experience": "l.experience DESC",
}


def ensure_lawyer_owner(lawyer_user_id: int, current_user: Dict[str, Any]) -> None:
    """Allow the owning user or an administrator, raise otherwise."""
    if current_user.get("role") != "admin" and current_user.get("id") != lawyer_user_id:
        raise PermissionDenied("Not authorized to modify this lawyer profile")


class LawyerService:
    """Service for lawyer profiles."""

    @classmethod
    async def list_lawyers(cls, db: Database) -> List[LawyerRead]:
        """Return all lawyers with an active account, best rated first."""
        with db.cursor() as cursor:
            rows = cursor.execute(
                f"{LAWYER_SELECT} WHERE u.is_active = 1 ORDER BY {SORT_ORDERS['rating']}"
            ).fetchall()
        return [cls._row_to_lawyer(row) for row in rows]

    @classmethod
    async def search_lawyers(cls, db: Database, params: LawyerSearch) -> List[LawyerRead]:
        """Filter lawyers by free text, specialization, location, rating and fee."""
        where_clauses = ["u.is_active = 1"]
        values: list = []
        if params.search:
            where_clauses.append("(u.name LIKE ? OR l.specialization LIKE ?)")
            values.extend([f"%{params.search}%", f"%{params.search}%"])
        if params.specialization:
            where_clauses.append("l.specialization = ?")
            values.append(params.specialization)
        if params.location:
            where_clauses.append("l.location LIKE ?")
            values.append(f"%{params.location}%")
        if params.min_rating is not None:
            where_clauses.append("l.rating >= ?")
            values.append(params.min_rating)
        if params.max_fee is not None:
            where_clauses.append("l.consultation_fee <= ?")
            values.append(params.max_fee)
        query = (
            f"{LAWYER_SELECT} WHERE {' AND '.join(where_clauses)} "
            f"ORDER BY {SORT_ORDERS[params.sort_by]}"
        )
        with db.cursor() as cursor:
            rows = cursor.execute(query, tuple(values)).fetchall()
        return [cls._row_to_lawyer(row) for row in rows]

    @classmethod
    async def get_lawyer(cls, db: Database, lawyer_id: int) -> LawyerRead:
        with db.cursor() as cursor:
            row = cursor.execute(f"{LAWYER_SELECT} WHERE l.id = ?", (lawyer_id,)).fetchone()
        if not row:
            raise NotFoundError("Lawyer not found")
        return cls._row_to_lawyer(row)

    @classmethod
    async def create_lawyer(
        cls, db: Database, current_user: Dict[str, Any], data: LawyerCreate
    ) -> LawyerRead:
        """Create the lawyer profile of the calling user (one per user)."""
        user_id = current_user["id"]
        with db.cursor() as cursor:
            existing = cursor.execute(
                "SELECT id FROM lawyers WHERE user_id = ?", (user_id,)
            ).fetchone()
            if existing:
                raise ConflictError("Lawyer profile already exists")
            try:
                cursor.execute(
                    """
                    INSERT INTO lawyers (
                        user_id, specialization, bar_council_number, experience,
                        education, about, consultation_fee, languages, location, practice_areas
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        data.specialization,
                        data.bar_council_number,
                        data.experience or 0,
                        data.education,
                        data.about,
                        data.consultation_fee,
                        data.languages,
                        data.location,
                        json.dumps(data.practice_areas) if data.practice_areas is not None else None,
                    ),
                )
            except sqlite3.IntegrityError:
                raise ConflictError("Lawyer profile already exists")
            lawyer_id = cursor.lastrowid
            row = cursor.execute(f"{LAWYER_SELECT} WHERE l.id = ?", (lawyer_id,)).fetchone()
        logger.info("User %s created lawyer profile %s", user_id, lawyer_id)
        return cls._row_to_lawyer(row)

    @classmethod
    async def update_lawyer(
        cls,
        db: Database,
        lawyer_id: int,
        current_user: Dict[str, Any],
        data: LawyerUpdate,
    ) -> LawyerRead:
        """Update profile fields; derived counters cannot be changed here."""
        updates = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        if "practice_areas" in updates:
            updates["practice_areas"] = json.dumps(updates["practice_areas"])
        with db.cursor() as cursor:
            row = cursor.execute("SELECT user_id FROM lawyers WHERE id = ?", (lawyer_id,)).fetchone()
            if not row:
                raise NotFoundError("Lawyer not found")
            ensure_lawyer_owner(row["user_id"], current_user)
            if updates:
                fields = ", ".join(f"{key} = ?" for key in updates)
                cursor.execute(
                    f"UPDATE lawyers SET {fields}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (*updates.values(), lawyer_id),
                )
            updated = cursor.execute(f"{LAWYER_SELECT} WHERE l.id = ?", (lawyer_id,)).fetchone()
        logger.info("Lawyer profile %s updated: %s", lawyer_id, sorted(updates))
        return cls._row_to_lawyer(updated)

    @classmethod
    async def set_availability(
        cls,
        db: Database,
        lawyer_id: int,
        current_user: Dict[str, Any],
        data: AvailabilityUpdate,
    ) -> AvailabilityRead:
        """Replace the lawyer's weekly availability with ``data``."""
        with db.cursor() as cursor:
            row = cursor.execute("SELECT user_id FROM lawyers WHERE id = ?", (lawyer_id,)).fetchone()
            if not row:
                raise NotFoundError("Lawyer not found")
            ensure_lawyer_owner(row["user_id"], current_user)
            cursor.execute("DELETE FROM availability WHERE lawyer_id = ?", (lawyer_id,))
            cursor.executemany(
                "INSERT INTO availability (lawyer_id, day_of_week, time_slot) VALUES (?, ?, ?)",
                [
                    (lawyer_id, day, slot)
                    for day, slots in data.availability.items()
                    for slot in slots
                ],
            )
        logger.info("Availability of lawyer %s replaced", lawyer_id)
        return await cls.get_availability(db, lawyer_id)

    @classmethod
    async def get_availability(cls, db: Database, lawyer_id: int) -> AvailabilityRead:
        """Return open slots grouped by day of week."""
        with db.cursor() as cursor:
            lawyer = cursor.execute("SELECT id FROM lawyers WHERE id = ?", (lawyer_id,)).fetchone()
            if not lawyer:
                raise NotFoundError("Lawyer not found")
            rows = cursor.execute(
                "SELECT day_of_week, time_slot FROM availability "
                "WHERE lawyer_id = ? AND is_available = 1 ORDER BY id",
                (lawyer_id,),
            ).fetchall()
        slots = [AvailabilitySlot(day_of_week=r["day_of_week"], time_slot=r["time_slot"]) for r in rows]
        grouped: Dict[str, List[str]] = {}
        for slot in sorted(slots, key=lambda s: DAYS_OF_WEEK.index(s.day_of_week)):
            grouped.setdefault(slot.day_of_week, []).append(slot.time_slot)
        return AvailabilityRead(availability=grouped, slots=slots)

    @classmethod
    async def get_stats(cls, db: Database, lawyer_id: int) -> LawyerStats:
        """Booking counts by status, distinct clients, rating and this month's earnings."""
        with db.cursor() as cursor:
            lawyer = cursor.execute(
                "SELECT rating, total_reviews FROM lawyers WHERE id = ?", (lawyer_id,)
            ).fetchone()
            if not lawyer:
                raise NotFoundError("Lawyer not found")
            by_status = cursor.execute(
                "SELECT status, COUNT(*) AS total FROM bookings WHERE lawyer_id = ? GROUP BY status",
                (lawyer_id,),
            ).fetchall()
            clients = cursor.execute(
                "SELECT COUNT(DISTINCT client_id) AS total FROM bookings WHERE lawyer_id = ?",
                (lawyer_id,),
            ).fetchone()
            earnings = cursor.execute(
                """
                SELECT COALESCE(SUM(consultation_fee), 0) AS total FROM bookings
                WHERE lawyer_id = ? AND status = 'completed'
                  AND strftime('%Y-%m', booking_date) = strftime('%Y-%m', 'now')
                """,
                (lawyer_id,),
            ).fetchone()
        stats = LawyerStats(
            total_clients=clients["total"],
            average_rating=lawyer["rating"] or 0,
            total_reviews=lawyer["total_reviews"] or 0,
            monthly_earnings=earnings["total"],
        )
        for row in by_status:
            stats.total_bookings += row["total"]
            setattr(stats, f"{row['status']}_bookings", row["total"])
        return stats

    @staticmethod
    def _row_to_lawyer(row: sqlite3.Row) -> LawyerRead:
        practice_areas = None
        if row["practice_areas"]:
            try:
                practice_areas = json.loads(row["practice_areas"])
            except (TypeError, json.JSONDecodeError):
                practice_areas = None
        return LawyerRead(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            email=row["email"],
            phone=row["phone"],
            profile_image=row["profile_image"],
            specialization=row["specialization"],
            bar_council_number=row["bar_council_number"],
            experience=row["experience"],
            education=row["education"],
            about=row["about"],
            consultation_fee=row["consultation_fee"] or 0,
            languages=row["languages"],
            location=row["location"],
            practice_areas=practice_areas,
            rating=row["rating"] or 0,
            total_reviews=row["total_reviews"] or 0,
            total_bookings=row["total_bookings"] or 0,
            created_at=row["created_at"],
        )
