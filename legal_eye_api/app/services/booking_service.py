"""
Business logic for consultation bookings.

A booking holds one (lawyer, date, time slot).  At most one *active*
booking (status other than ``cancelled``) may exist for the same
triple.  The service checks for a collision before writing so callers
get a clear message, and the partial unique index
``uq_bookings_active_slot`` enforces the rule inside SQLite so two
concurrent requests cannot both succeed; the loser's
``IntegrityError`` is reported as the same conflict.

The collision check deliberately ignores the lawyer's declared weekly
availability and whether the date lies in the future.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from ..core.db import Database
from ..core.errors import ConflictError, NotFoundError, PermissionDenied
from ..schemas.booking import BookingCreate, BookingRead, BookingReschedule

logger = logging.getLogger(__name__)

SLOT_TAKEN = "This time slot is already booked"

BOOKING_SELECT = """
    SELECT b.*, l.user_id AS lawyer_user_id, l.specialization,
           cu.name AS client_name, cu.email AS client_email, cu.phone AS client_phone,
           lu.name AS lawyer_name, lu.email AS lawyer_email, lu.phone AS lawyer_phone
    FROM bookings b
    JOIN lawyers l ON b.lawyer_id = l.id
    JOIN users cu ON b.client_id = cu.id
    JOIN users lu ON l.user_id = lu.id
"""


def _is_admin(current_user: Dict[str, Any]) -> bool:
    return current_user.get("role") == "admin"


class BookingService:
    """Service for creating and managing bookings."""

    @staticmethod
    def _slot_taken(
        cursor: sqlite3.Cursor,
        lawyer_id: int,
        booking_date: str,
        time_slot: str,
        exclude_booking_id: Optional[int] = None,
    ) -> bool:
        query = (
            "SELECT id FROM bookings WHERE lawyer_id = ? AND booking_date = ? "
            "AND time_slot = ? AND status != 'cancelled'"
        )
        params: list = [lawyer_id, booking_date, time_slot]
        if exclude_booking_id is not None:
            query += " AND id != ?"
            params.append(exclude_booking_id)
        return cursor.execute(query, tuple(params)).fetchone() is not None

    @classmethod
    async def is_slot_taken(
        cls,
        db: Database,
        lawyer_id: int,
        booking_date: str,
        time_slot: str,
        exclude_booking_id: Optional[int] = None,
    ) -> bool:
        """Return whether an active booking already occupies the slot.

        ``exclude_booking_id`` leaves one booking out of the check; it is
        used when rescheduling so a booking never collides with itself.
        """
        with db.cursor() as cursor:
            return cls._slot_taken(cursor, lawyer_id, booking_date, time_slot, exclude_booking_id)

    @classmethod
    async def create_booking(
        cls, db: Database, current_user: Dict[str, Any], data: BookingCreate
    ) -> BookingRead:
        """Book a slot for the calling user.

        The lawyer's current consultation fee is stored on the booking
        and the lawyer's ``total_bookings`` counter is incremented.
        """
        booking_date = data.date.isoformat()
        date_time = data.date_time or f"{booking_date}T{data.time_slot}"
        with db.cursor() as cursor:
            lawyer = cursor.execute(
                "SELECT consultation_fee FROM lawyers WHERE id = ?", (data.lawyer_id,)
            ).fetchone()
            if not lawyer:
                raise NotFoundError("Lawyer not found")
            if cls._slot_taken(cursor, data.lawyer_id, booking_date, data.time_slot):
                raise ConflictError(SLOT_TAKEN)
            try:
                cursor.execute(
                    """
                    INSERT INTO bookings (
                        client_id, lawyer_id, booking_date, time_slot, date_time,
                        case_type, description, urgency, consultation_fee
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        current_user["id"],
                        data.lawyer_id,
                        booking_date,
                        data.time_slot,
                        date_time,
                        data.case_type,
                        data.description,
                        data.urgency,
                        lawyer["consultation_fee"],
                    ),
                )
            except sqlite3.IntegrityError:
                raise ConflictError(SLOT_TAKEN)
            booking_id = cursor.lastrowid
            cursor.execute(
                "UPDATE lawyers SET total_bookings = total_bookings + 1 WHERE id = ?",
                (data.lawyer_id,),
            )
            row = cursor.execute(f"{BOOKING_SELECT} WHERE b.id = ?", (booking_id,)).fetchone()
        logger.info(
            "User %s booked lawyer %s for %s %s (booking %s)",
            current_user["id"], data.lawyer_id, booking_date, data.time_slot, booking_id,
        )
        return cls._row_to_booking(row)

    @classmethod
    async def list_client_bookings(cls, db: Database, client_id: int) -> List[BookingRead]:
        """Bookings made by ``client_id``, newest appointment first."""
        with db.cursor() as cursor:
            rows = cursor.execute(
                f"{BOOKING_SELECT} WHERE b.client_id = ? ORDER BY b.date_time DESC, b.id DESC",
                (client_id,),
            ).fetchall()
        return [cls._row_to_booking(row) for row in rows]

    @classmethod
    async def list_lawyer_bookings(
        cls, db: Database, lawyer_id: int, current_user: Dict[str, Any]
    ) -> List[BookingRead]:
        """Bookings of one lawyer; visible to that lawyer and administrators."""
        with db.cursor() as cursor:
            lawyer = cursor.execute("SELECT user_id FROM lawyers WHERE id = ?", (lawyer_id,)).fetchone()
            if not lawyer:
                raise NotFoundError("Lawyer not found")
            if not _is_admin(current_user) and lawyer["user_id"] != current_user.get("id"):
                raise PermissionDenied("Not authorized to view these bookings")
            rows = cursor.execute(
                f"{BOOKING_SELECT} WHERE b.lawyer_id = ? ORDER BY b.date_time DESC, b.id DESC",
                (lawyer_id,),
            ).fetchall()
        return [cls._row_to_booking(row) for row in rows]

    @classmethod
    async def get_booking(
        cls, db: Database, booking_id: int, current_user: Dict[str, Any]
    ) -> BookingRead:
        """Return a booking to its client, its lawyer or an administrator."""
        with db.cursor() as cursor:
            row = cls._load(cursor, booking_id)
        cls._ensure_participant(row, current_user, lawyer_only=False)
        return cls._row_to_booking(row)

    @classmethod
    async def update_status(
        cls,
        db: Database,
        booking_id: int,
        current_user: Dict[str, Any],
        new_status: str,
    ) -> BookingRead:
        """Set an arbitrary status (lawyer or administrator).

        Re-activating a cancelled booking is subject to the same slot
        collision check as a new booking.
        """
        with db.cursor() as cursor:
            row = cls._load(cursor, booking_id)
            cls._ensure_participant(row, current_user, lawyer_only=True)
            if row["status"] == "completed" and new_status == "cancelled":
                raise ConflictError("Completed bookings cannot be cancelled")
            if row["status"] == "cancelled" and new_status != "cancelled":
                if cls._slot_taken(cursor, row["lawyer_id"], row["booking_date"], row["time_slot"], booking_id):
                    raise ConflictError(SLOT_TAKEN)
            try:
                cursor.execute(
                    "UPDATE bookings SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (new_status, booking_id),
                )
            except sqlite3.IntegrityError:
                raise ConflictError(SLOT_TAKEN)
            updated = cls._load(cursor, booking_id)
        logger.info("Booking %s status %s -> %s", booking_id, row["status"], new_status)
        return cls._row_to_booking(updated)

    @classmethod
    async def cancel_booking(
        cls,
        db: Database,
        booking_id: int,
        current_user: Dict[str, Any],
        reason: Optional[str] = None,
    ) -> BookingRead:
        """Cancel a pending or confirmed booking, freeing its slot."""
        with db.cursor() as cursor:
            row = cls._load(cursor, booking_id)
            cls._ensure_participant(row, current_user, lawyer_only=False)
            if row["status"] == "cancelled":
                raise ConflictError("Booking is already cancelled")
            if row["status"] == "completed":
                raise ConflictError("Completed bookings cannot be cancelled")
            cursor.execute(
                "UPDATE bookings SET status = 'cancelled', cancellation_reason = ?, "
                "updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (reason, booking_id),
            )
            updated = cls._load(cursor, booking_id)
        logger.info("Booking %s cancelled by user %s", booking_id, current_user.get("id"))
        return cls._row_to_booking(updated)

    @classmethod
    async def complete_booking(
        cls, db: Database, booking_id: int, current_user: Dict[str, Any]
    ) -> BookingRead:
        """Mark a booking as completed (lawyer or administrator)."""
        with db.cursor() as cursor:
            row = cls._load(cursor, booking_id)
            cls._ensure_participant(row, current_user, lawyer_only=True)
            if row["status"] == "cancelled":
                raise ConflictError("Cancelled bookings cannot be completed")
            cursor.execute(
                "UPDATE bookings SET status = 'completed', updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (booking_id,),
            )
            updated = cls._load(cursor, booking_id)
        logger.info("Booking %s completed", booking_id)
        return cls._row_to_booking(updated)

    @classmethod
    async def reschedule_booking(
        cls,
        db: Database,
        booking_id: int,
        current_user: Dict[str, Any],
        data: BookingReschedule,
    ) -> BookingRead:
        """Move an active booking to another date and slot of the same lawyer."""
        new_date = data.new_date.isoformat()
        new_date_time = data.new_date_time or f"{new_date}T{data.new_time_slot}"
        with db.cursor() as cursor:
            row = cls._load(cursor, booking_id)
            cls._ensure_participant(row, current_user, lawyer_only=False)
            if row["status"] not in ("pending", "confirmed"):
                raise ConflictError(f"Cannot reschedule a {row['status']} booking")
            if cls._slot_taken(cursor, row["lawyer_id"], new_date, data.new_time_slot, booking_id):
                raise ConflictError("New time slot is already booked")
            try:
                cursor.execute(
                    "UPDATE bookings SET booking_date = ?, time_slot = ?, date_time = ?, "
                    "updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (new_date, data.new_time_slot, new_date_time, booking_id),
                )
            except sqlite3.IntegrityError:
                raise ConflictError("New time slot is already booked")
            updated = cls._load(cursor, booking_id)
        logger.info("Booking %s rescheduled to %s %s", booking_id, new_date, data.new_time_slot)
        return cls._row_to_booking(updated)

    @staticmethod
    def _load(cursor: sqlite3.Cursor, booking_id: int) -> sqlite3.Row:
        row = cursor.execute(f"{BOOKING_SELECT} WHERE b.id = ?", (booking_id,)).fetchone()
        if not row:
            raise NotFoundError("Booking not found")
        return row

    @staticmethod
    def _ensure_participant(row: sqlite3.Row, current_user: Dict[str, Any], lawyer_only: bool) -> None:
        """Raise unless the caller is the booking's lawyer, an admin or (if allowed) its client."""
        if _is_admin(current_user):
            return
        user_id = current_user.get("id")
        if row["lawyer_user_id"] == user_id:
            return
        if not lawyer_only and row["client_id"] == user_id:
            return
        raise PermissionDenied("Not authorized to access this booking")

    @staticmethod
    def _row_to_booking(row: sqlite3.Row) -> BookingRead:
        return BookingRead(
            id=row["id"],
            client_id=row["client_id"],
            lawyer_id=row["lawyer_id"],
            booking_date=row["booking_date"],
            time_slot=row["time_slot"],
            date_time=row["date_time"],
            case_type=row["case_type"],
            description=row["description"],
            urgency=row["urgency"],
            consultation_fee=row["consultation_fee"],
            status=row["status"],
            cancellation_reason=row["cancellation_reason"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            client_name=row["client_name"],
            client_email=row["client_email"],
            client_phone=row["client_phone"],
            lawyer_name=row["lawyer_name"],
            lawyer_email=row["lawyer_email"],
            lawyer_phone=row["lawyer_phone"],
            specialization=row["specialization"],
        )
