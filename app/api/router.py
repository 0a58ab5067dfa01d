"""
Main API router
"""
from fastapi import APIRouter

from app.api.v1 import (
    health,
    version,
    attendance,
    tardiness,
    disciplinary,
)

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(version.router, tags=["version"])
api_router.include_router(attendance.router, prefix="/attendance", tags=["attendance"])
api_router.include_router(tardiness.router, prefix="/tardiness", tags=["tardiness"])
api_router.include_router(disciplinary.router, prefix="/disciplinary", tags=["disciplinary"])
