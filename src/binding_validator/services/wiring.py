"""
Construction of validation services from the service registry
"""

import logging
from typing import Dict, Optional, Type

from binding_validator.bindings.registry import ServiceRegistry
from binding_validator.models.enums import BackendKind
from binding_validator.services.base_service import BaseValidationService
from binding_validator.services.mysql_service import MysqlValidationService
from binding_validator.services.postgresql_service import PostgresqlValidationService
from binding_validator.services.rabbitmq_service import RabbitMQValidationService
from binding_validator.services.redis_service import RedisValidationService

logger = logging.getLogger(__name__)

SERVICE_CLASSES: Dict[BackendKind, Type[BaseValidationService]] = {
    BackendKind.MYSQL: MysqlValidationService,
    BackendKind.POSTGRESQL: PostgresqlValidationService,
    BackendKind.KEYVALUE: RedisValidationService,
    BackendKind.BROKER: RabbitMQValidationService,
}

# URL path segment -> backend kind
SERVICE_PATHS: Dict[str, BackendKind] = {
    "mysql": BackendKind.MYSQL,
    "postgresql": BackendKind.POSTGRESQL,
    "postgres": BackendKind.POSTGRESQL,
    "redis": BackendKind.KEYVALUE,
    "valkey": BackendKind.KEYVALUE,
    "rabbitmq": BackendKind.BROKER,
    "rabbit": BackendKind.BROKER,
}


def build_validation_services(registry: ServiceRegistry) -> Dict[BackendKind, BaseValidationService]:
    """Create a validation service for every kind that has bound credentials"""
    services: Dict[BackendKind, BaseValidationService] = {}
    for kind, service_class in SERVICE_CLASSES.items():
        credentials = registry.first(kind)
        if credentials is None:
            logger.info(f"No {service_class.SERVICE_NAME} service bound, validation disabled")
            continue

        bound = len(registry.get(kind))
        if bound > 1:
            logger.info(f"{bound} {service_class.SERVICE_NAME} services bound, using {credentials.service_name}")
        services[kind] = service_class(credentials)
    return services


def resolve_service(
    services: Dict[BackendKind, BaseValidationService],
    path_name: str
) -> Optional[BaseValidationService]:
    """
    Validation service for a URL path segment.

    Returns None for unknown names and an unconfigured service (which
    reports "not configured") for known kinds without bindings.
    """
    kind = SERVICE_PATHS.get(path_name.lower())
    if kind is None:
        return None
    return services.get(kind) or SERVICE_CLASSES[kind](None)
