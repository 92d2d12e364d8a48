"""
Pydantic models for consultation bookings.

A booking reserves one time slot of a lawyer on a given date.  The
consultation fee is copied from the lawyer profile when the booking
is created so later fee changes do not alter existing bookings.
"""

import datetime as dt
from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

BookingStatus = Literal["pending", "confirmed", "completed", "cancelled"]
Urgency = Literal["low", "normal", "high", "urgent"]

MIN_DESCRIPTION_LENGTH = 20


def _time_slot_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Time slot is required")
    return v


TimeSlot = Annotated[str, AfterValidator(_time_slot_required)]


class BookingCreate(BaseModel):
    """Schema for creating a booking."""

    model_config = ConfigDict(populate_by_name=True)

    lawyer_id: int = Field(..., alias="lawyerId", examples=[5])
    date: dt.date = Field(..., examples=["2024-01-01"])
    time_slot: TimeSlot = Field(..., alias="timeSlot", examples=["10:00"])
    date_time: Optional[str] = Field(None, alias="dateTime")
    case_type: str = Field(..., alias="caseType", examples=["Property dispute"])
    description: str
    urgency: Urgency = "normal"

    @field_validator("case_type")
    @classmethod
    def case_type_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Case type is required")
        return v

    @field_validator("description")
    @classmethod
    def description_length(cls, v: str) -> str:
        v = v.strip()
        if len(v) < MIN_DESCRIPTION_LENGTH:
            raise ValueError(f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters")
        return v


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BookingCancel(BaseModel):
    reason: Optional[str] = None


class BookingReschedule(BaseModel):
    """New date and slot for an existing booking."""

    model_config = ConfigDict(populate_by_name=True)

    new_date: dt.date = Field(..., alias="newDate")
    new_time_slot: TimeSlot = Field(..., alias="newTimeSlot")
    new_date_time: Optional[str] = Field(None, alias="newDateTime")


class BookingRead(BaseModel):
    id: int
    client_id: int
    lawyer_id: int
    booking_date: str
    time_slot: str
    date_time: Optional[str] = None
    case_type: Optional[str] = None
    description: Optional[str] = None
    urgency: str
    consultation_fee: Optional[float] = None
    status: BookingStatus
    cancellation_reason: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    # Joined from the client user, the lawyer user and the lawyer profile.
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    lawyer_name: Optional[str] = None
    lawyer_email: Optional[str] = None
    lawyer_phone: Optional[str] = None
    specialization: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }
