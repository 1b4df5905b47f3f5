"""
Top-level API router.

Aggregates the domain routers under a unified prefix.  When new
endpoints are added or new domains are introduced, update this file to
include their routers.
"""

from fastapi import APIRouter

from .endpoints import auth, comments, events, payments, registrations

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(events.router, prefix="/events", tags=["events"])
# These routers define their own "/events/{event_id}/..." paths.
router.include_router(registrations.router, tags=["registrations"])
router.include_router(comments.router, tags=["comments"])
router.include_router(payments.router, prefix="/payments", tags=["payments"])
