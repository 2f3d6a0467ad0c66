"""
Enum definitions for the Service Binding Validator
"""

from enum import Enum

# Group key used by the platform for operator-supplied bindings
USER_PROVIDED = "user-provided"


class BackendKind(str, Enum):
    """
    Normalized category a service binding is classified into.

    Members compare equal to their string value, so registry lookups work
    with either ``BackendKind.KEYVALUE`` or ``"keyvalue"``.
    """
    MYSQL = "relational-mysql"
    POSTGRESQL = "relational-postgresql"
    KEYVALUE = "keyvalue"
    BROKER = "broker"
    UNCLASSIFIED = "unclassified"


class ValidationStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


# Synonym groups in the order they are checked during classification
KIND_SYNONYMS = (
    (BackendKind.MYSQL, ("mysql",)),
    (BackendKind.POSTGRESQL, ("postgresql", "postgres")),
    (BackendKind.KEYVALUE, ("valkey", "redis")),
    (BackendKind.BROKER, ("rabbitmq", "rabbit")),
)

DEFAULT_PORTS = {
    BackendKind.MYSQL: 3306,
    BackendKind.POSTGRESQL: 5432,
    BackendKind.KEYVALUE: 6379,
    BackendKind.BROKER: 5672,
}
