"""
API v1 Router - Main Entry Point
Aggregates all v1 endpoints of the reservation backend.
"""

from fastapi import APIRouter

from budget_hotel.api.v1.endpoints import (
    admin_bookings,
    admin_catalog,
    admin_inventory,
    admin_users,
    auth,
    bookings,
    catalog,
)

router = APIRouter(
    responses={
        400: {"description": "Bad Request"},
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Not Found"},
        409: {"description": "Conflict"},
        422: {"description": "Validation Error"},
        500: {"description": "Internal Server Error"},
    }
)

router.include_router(auth.router)
router.include_router(catalog.router)
router.include_router(bookings.router)
router.include_router(bookings.reviews_router)
router.include_router(admin_bookings.router)
router.include_router(admin_inventory.router)
router.include_router(admin_catalog.router)
router.include_router(admin_users.router)
