"""
Endpoint subpackage.

Each module defines an APIRouter for one domain; the routers are
aggregated in ``router.py`` one level up.
"""
