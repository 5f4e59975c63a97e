"""API v1 routes."""

from fastapi import APIRouter

from app.api.v1 import admin, applications, jobs, matches, notifications

api_router = APIRouter()

# Include all route modules
api_router.include_router(applications.router, prefix="/applications", tags=["Applications"])
api_router.include_router(matches.router, prefix="/matches", tags=["Internships"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(jobs.router, prefix="/jobs", tags=["Jobs"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
