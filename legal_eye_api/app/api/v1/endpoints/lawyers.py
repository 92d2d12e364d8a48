"""
API endpoints for lawyer profiles.

Listing, search, profile, availability and statistics are public.
Creating a profile requires the ``lawyer`` (or ``admin``) role;
updating a profile or its availability is limited to its owner and
administrators.
"""

from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from legal_eye_api.app.core.db import Database, get_db
from legal_eye_api.app.core.responses import success_response
from legal_eye_api.app.core.security import require_roles
from legal_eye_api.app.schemas.lawyer import AvailabilityUpdate, LawyerCreate, LawyerSearch, LawyerUpdate
from legal_eye_api.app.services.lawyer_service import LawyerService

router = APIRouter()


@router.get("", summary="List lawyers")
async def list_lawyers(db: Database = Depends(get_db)):
    """Active lawyers, best rated first."""
    lawyers = await LawyerService.list_lawyers(db)
    return success_response(lawyers, count=len(lawyers))


@router.get("/search", summary="Search lawyers")
async def search_lawyers(
    search: Optional[str] = Query(None, description="Matches name or specialization"),
    specialization: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    min_rating: Optional[float] = Query(None, alias="minRating", ge=0, le=5),
    max_fee: Optional[float] = Query(None, alias="maxFee", ge=0),
    sort_by: Literal["rating", "fee-low", "fee-high", "experience"] = Query("rating", alias="sortBy"),
    db: Database = Depends(get_db),
):
    params = LawyerSearch(
        search=search,
        specialization=specialization,
        location=location,
        min_rating=min_rating,
        max_fee=max_fee,
        sort_by=sort_by,
    )
    lawyers = await LawyerService.search_lawyers(db, params)
    return success_response(lawyers, count=len(lawyers))


@router.get("/{lawyer_id}", summary="Get a lawyer profile")
async def get_lawyer(lawyer_id: int, db: Database = Depends(get_db)):
    return success_response(await LawyerService.get_lawyer(db, lawyer_id))


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create own lawyer profile")
async def create_lawyer(
    data: LawyerCreate,
    current_user: Dict[str, Any] = Depends(require_roles("lawyer", "admin")),
    db: Database = Depends(get_db),
):
    lawyer = await LawyerService.create_lawyer(db, current_user, data)
    return success_response(lawyer, "Lawyer profile created successfully", status.HTTP_201_CREATED)


@router.put("/{lawyer_id}", summary="Update a lawyer profile")
async def update_lawyer(
    lawyer_id: int,
    data: LawyerUpdate,
    current_user: Dict[str, Any] = Depends(require_roles("lawyer", "admin")),
    db: Database = Depends(get_db),
):
    lawyer = await LawyerService.update_lawyer(db, lawyer_id, current_user, data)
    return success_response(lawyer, "Lawyer profile updated successfully")


@router.get("/{lawyer_id}/availability", summary="Weekly availability of a lawyer")
async def get_availability(lawyer_id: int, db: Database = Depends(get_db)):
    return success_response(await LawyerService.get_availability(db, lawyer_id))


@router.post("/{lawyer_id}/availability", summary="Replace weekly availability")
async def set_availability(
    lawyer_id: int,
    data: AvailabilityUpdate,
    current_user: Dict[str, Any] = Depends(require_roles("lawyer", "admin")),
    db: Database = Depends(get_db),
):
    availability = await LawyerService.set_availability(db, lawyer_id, current_user, data)
    return success_response(availability, "Availability updated successfully")


@router.get("/{lawyer_id}/stats", summary="Booking and rating statistics of a lawyer")
async def get_stats(lawyer_id: int, db: Database = Depends(get_db)):
    return success_response(await LawyerService.get_stats(db, lawyer_id))
