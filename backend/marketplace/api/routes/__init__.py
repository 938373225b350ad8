"""API Routes module"""
from fastapi import APIRouter

from .records import router as records_router
from .supplier import router as supplier_router
from .settings import router as settings_router

# Main API router
api_router = APIRouter()

# Include all route modules
api_router.include_router(records_router, tags=["Workflow"])
api_router.include_router(supplier_router, prefix="/supplier", tags=["Supplier"])
api_router.include_router(settings_router, prefix="/manager", tags=["Settings"])

__all__ = ["api_router"]
