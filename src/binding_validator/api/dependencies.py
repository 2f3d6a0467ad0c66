"""
Request-scoped dependencies shared by the API routes
"""

import json
from typing import Any, Dict

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from binding_validator.bindings.registry import ServiceRegistry
from binding_validator.models.validation import ValidationRequest


def get_registry(request: Request) -> ServiceRegistry:
    """Registry built by the application lifespan"""
    return request.app.state.registry


def get_validation_services(request: Request) -> Dict[Any, Any]:
    return request.app.state.services


async def get_validation_request(request: Request) -> ValidationRequest:
    """
    Operation parameters from the query string, overlaid with the JSON body on POST.

    Raises RequestValidationError (HTTP 422) for malformed bodies or invalid values.
    """
    params: Dict[str, Any] = dict(request.query_params)
    params.pop("operation", None)

    if request.method == "POST":
        raw_body = await request.body()
        if raw_body.strip():
            try:
                body = json.loads(raw_body)
            except json.JSONDecodeError as e:
                raise RequestValidationError(
                    [{"loc": ("body", e.pos), "msg": f"Invalid JSON body: {e.msg}", "type": "json_invalid"}]
                )
            if not isinstance(body, dict):
                raise RequestValidationError(
                    [{"loc": ("body",), "msg": "Request body must be a JSON object", "type": "dict_type"}]
                )
            params.update(body)

    try:
        return ValidationRequest.model_validate(params)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False, include_context=False))
