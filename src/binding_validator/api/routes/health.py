"""
Health check and index API routes
"""

from datetime import datetime
from fastapi import APIRouter, Depends

from binding_validator.api.dependencies import get_registry
from binding_validator.bindings.registry import ServiceRegistry
from binding_validator.config.settings import ENV

router = APIRouter()

APPLICATION_NAME = "Service Binding Validator"


@router.get("/")
async def index(registry: ServiceRegistry = Depends(get_registry)):
    """Application name and the configured services, without secrets"""
    return {
        "application": APPLICATION_NAME,
        "environment": ENV,
        "configured_services": registry.summary(),
        "endpoints": {
            "health": "/health",
            "services": "/api/services",
            "validate": "/api/{service}/validate?operation=<operation>",
        },
    }


@router.get("/health")
async def health_check(registry: ServiceRegistry = Depends(get_registry)):
    """
    Liveness check

    Reports healthy whenever the process is serving requests. Backend
    reachability is exercised by the validate endpoints, not here.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "configured_kinds": registry.kinds(),
    }
