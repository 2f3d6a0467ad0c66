"""
Service validation API routes
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query

from binding_validator.api.dependencies import (
    get_registry,
    get_validation_request,
    get_validation_services,
)
from binding_validator.bindings.registry import ServiceRegistry
from binding_validator.models.validation import ValidationRequest
from binding_validator.services.wiring import SERVICE_PATHS, resolve_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/services")
async def list_services(registry: ServiceRegistry = Depends(get_registry)):
    """Parsed service bindings per kind (passwords and URIs are never returned)"""
    summary = registry.summary()
    return {
        "services": summary,
        "kinds": registry.kinds(),
        "count": sum(len(records) for records in summary.values()),
    }


@router.api_route("/{service}/validate", methods=["GET", "POST"])
async def validate_service(
    service: str,
    operation: str = Query(..., min_length=1, description="Operation to run against the backend"),
    params: ValidationRequest = Depends(get_validation_request),
    services: Dict[Any, Any] = Depends(get_validation_services)
):
    """Run one validation operation against the first bound instance of a backend"""
    validation_service = resolve_service(services, service)
    if validation_service is None:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown service: {service}. Supported: {', '.join(sorted(SERVICE_PATHS))}"
        )

    logger.info(f"Validating {validation_service.SERVICE_NAME} with operation {operation}")
    result = await validation_service.validate(operation, params)
    if not result.success:
        logger.warning(f"{validation_service.SERVICE_NAME} {operation} failed: {result.message}")
    return result.to_response()
