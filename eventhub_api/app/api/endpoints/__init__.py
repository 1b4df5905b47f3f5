"""
Endpoint modules.

Each module defines an APIRouter for one domain (auth, events,
registrations, comments, payments).  The routers are aggregated in
``api/router.py``.
"""
