"""
API v1 router setup
Organized into: slots (read), availability (teacher/admin) and sessions
"""
from fastapi import APIRouter

from app.api.v1 import availability, sessions, slots

api_v1_router = APIRouter()

# ============================================================================
# SLOT QUERIES (JWT authentication required)
# ============================================================================
api_v1_router.include_router(slots.router, tags=["Slots"])

# ============================================================================
# AVAILABILITY (JWT authentication + teacher/admin role for writes)
# ============================================================================
api_v1_router.include_router(availability.router, tags=["Availability"])

# ============================================================================
# SESSIONS (JWT authentication required, scoped by role)
# ============================================================================
api_v1_router.include_router(sessions.router, tags=["Sessions"])


# ============================================================================
# ROOT ENDPOINT - API Info
# ============================================================================
@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """
    API information and available endpoints.
    """
    return {
        "version": "1.0",
        "authentication": "JWT Bearer token issued by the portal's auth provider",
        "roles": {
            "student": "Own sessions, slot lookup, cancellation with 24h notice",
            "teacher": "Own availability and sessions",
            "admin": "Everything, including bookings outside availability"
        }
    }
