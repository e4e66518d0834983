from fastapi import APIRouter

from solforge.api.v1.endpoints import forge
from solforge.core.config import settings

api_router = APIRouter()


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Simple health check endpoint"""
    return {"status": "healthy", "service": "solforge", "environment": settings.ENVIRONMENT}


api_router.include_router(forge.router)
