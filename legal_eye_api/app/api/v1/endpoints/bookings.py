"""
API endpoints for consultation bookings.

All routes require authentication.  Any user may book a lawyer; the
lawyer of a booking and administrators manage its status, while the
client may also cancel or reschedule it.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, status

from legal_eye_api.app.core.db import Database, get_db
from legal_eye_api.app.core.responses import success_response
from legal_eye_api.app.core.security import get_current_user
from legal_eye_api.app.schemas.booking import BookingCancel, BookingCreate, BookingReschedule, BookingStatusUpdate
from legal_eye_api.app.services.booking_service import BookingService

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED, summary="Book a consultation")
async def create_booking(
    data: BookingCreate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """Reserve a slot; fails with 400 if the slot already holds an active booking."""
    booking = await BookingService.create_booking(db, current_user, data)
    return success_response(booking, "Booking created successfully", status.HTTP_201_CREATED)


@router.get("/my-bookings", summary="Bookings of the current user")
async def my_bookings(
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    bookings = await BookingService.list_client_bookings(db, current_user["id"])
    return success_response(bookings, count=len(bookings))


@router.get("/lawyer/{lawyer_id}", summary="Bookings of a lawyer")
async def lawyer_bookings(
    lawyer_id: int,
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    bookings = await BookingService.list_lawyer_bookings(db, lawyer_id, current_user)
    return success_response(bookings, count=len(bookings))


@router.get("/{booking_id}", summary="Get a booking")
async def get_booking(
    booking_id: int,
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    return success_response(await BookingService.get_booking(db, booking_id, current_user))


@router.patch("/{booking_id}/status", summary="Set the status of a booking")
async def update_status(
    booking_id: int,
    data: BookingStatusUpdate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    booking = await BookingService.update_status(db, booking_id, current_user, data.status)
    return success_response(booking, "Booking status updated successfully")


@router.patch("/{booking_id}/cancel", summary="Cancel a booking")
async def cancel_booking(
    booking_id: int,
    data: Optional[BookingCancel] = None,
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    reason = data.reason if data else None
    booking = await BookingService.cancel_booking(db, booking_id, current_user, reason)
    return success_response(booking, "Booking cancelled successfully")


@router.patch("/{booking_id}/complete", summary="Mark a booking as completed")
async def complete_booking(
    booking_id: int,
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    booking = await BookingService.complete_booking(db, booking_id, current_user)
    return success_response(booking, "Booking marked as completed")


@router.patch("/{booking_id}/reschedule", summary="Move a booking to another slot")
async def reschedule_booking(
    booking_id: int,
    data: BookingReschedule,
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    booking = await BookingService.reschedule_booking(db, booking_id, current_user, data)
    return success_response(booking, "Booking rescheduled successfully")
