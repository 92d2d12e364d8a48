"""
Pydantic schemas for lawyer profiles and availability.

A lawyer profile extends a user with role ``lawyer``.  ``rating``,
``total_reviews`` and ``total_bookings`` are derived fields maintained
by the booking and review services and cannot be set by clients.
"""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DAYS_OF_WEEK = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


class LawyerBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bar_council_number: Optional[str] = Field(None, alias="barCouncilNumber")
    experience: Optional[int] = Field(None, ge=0, description="Years of practice")
    education: Optional[str] = None
    about: Optional[str] = None
    consultation_fee: Optional[float] = Field(None, ge=0, alias="consultationFee")
    languages: Optional[str] = None
    location: Optional[str] = None
    practice_areas: Optional[List[str]] = Field(None, alias="practiceAreas")


class LawyerCreate(LawyerBase):
    """Schema for creating the caller's lawyer profile."""

    specialization: str = Field(..., examples=["Family Law"])
    consultation_fee: float = Field(0, ge=0, alias="consultationFee")

    @field_validator("specialization")
    @classmethod
    def specialization_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Specialization is required")
        return v


class LawyerUpdate(LawyerBase):
    """Partial update; only provided fields change."""

    specialization: Optional[str] = None

    @field_validator("specialization")
    @classmethod
    def specialization_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Specialization cannot be empty")
        return v.strip() if v is not None else None


class LawyerRead(BaseModel):
    id: int
    user_id: int
    name: str
    email: str
    phone: Optional[str] = None
    profile_image: Optional[str] = None
    specialization: str
    bar_council_number: Optional[str] = None
    experience: Optional[int] = None
    education: Optional[str] = None
    about: Optional[str] = None
    consultation_fee: float
    languages: Optional[str] = None
    location: Optional[str] = None
    practice_areas: Optional[List[str]] = None
    rating: float
    total_reviews: int
    total_bookings: int
    created_at: Optional[str] = None


class LawyerSearch(BaseModel):
    """Query parameters accepted by ``GET /lawyers/search``."""

    search: Optional[str] = None
    specialization: Optional[str] = None
    location: Optional[str] = None
    min_rating: Optional[float] = None
    max_fee: Optional[float] = None
    sort_by: Literal["rating", "fee-low", "fee-high", "experience"] = "rating"


class AvailabilityUpdate(BaseModel):
    """Weekly availability, e.g. ``{"monday": ["10:00", "11:00"]}``."""

    availability: Dict[str, List[str]]

    @field_validator("availability")
    @classmethod
    def known_days(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        cleaned: Dict[str, List[str]] = {}
        for day, slots in v.items():
            key = day.strip().lower()
            if key not in DAYS_OF_WEEK:
                raise ValueError(f"Unknown day of week: {day}")
            stripped = [slot.strip() for slot in slots]
            if any(not slot for slot in stripped):
                raise ValueError("Time slots cannot be empty")
            cleaned[key] = list(dict.fromkeys(stripped))
        return cleaned


class AvailabilitySlot(BaseModel):
    day_of_week: str
    time_slot: str


class AvailabilityRead(BaseModel):
    availability: Dict[str, List[str]]
    slots: List[AvailabilitySlot]


class LawyerStats(BaseModel):
    total_bookings: int = 0
    pending_bookings: int = 0
    confirmed_bookings: int = 0
    completed_bookings: int = 0
    cancelled_bookings: int = 0
    total_clients: int = 0
    average_rating: float = 0
    total_reviews: int = 0
    monthly_earnings: float = 0
