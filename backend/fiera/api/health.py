"""
Health Check Endpoints
"""

from fastapi import APIRouter

from fiera.core.config_store import get_config_store

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint for Docker/Kubernetes"""
    return {
        "status": "healthy",
        "service": "fiera-quote",
        "config": get_config_store().snapshot.to_dict(),
    }
