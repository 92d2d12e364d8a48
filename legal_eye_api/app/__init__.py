"""
Application package initializer.

Each domain (auth, lawyers, bookings, reviews, legal-info) has a
schema module in ``schemas``, a service class in ``services`` and a
router in ``api/v1/endpoints``.  Shared infrastructure lives in
``core``.
"""

from .main import app  # noqa: F401
