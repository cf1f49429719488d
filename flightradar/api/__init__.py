"""API routers for the FlightRadar relay."""

from fastapi import APIRouter

from .aircraft import router as aircraft_router
from .health import router as health_router
from .realtime import router as realtime_router
from .reports import router as reports_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(reports_router)
api_router.include_router(aircraft_router)
api_router.include_router(realtime_router)

__all__ = ["api_router"]
