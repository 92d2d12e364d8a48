"""
Top-level router of the API.

Aggregates the domain routers (auth, lawyers, bookings, reviews,
legal-info); ``main.create_app`` mounts the result under ``/api``.
"""

from fastapi import APIRouter

from .endpoints import auth, bookings, lawyers, legal_info, reviews

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(lawyers.router, prefix="/lawyers", tags=["lawyers"])
router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
router.include_router(reviews.router, prefix="/reviews", tags=["reviews"])
router.include_router(legal_info.router, prefix="/legal-info", tags=["legal-info"])
