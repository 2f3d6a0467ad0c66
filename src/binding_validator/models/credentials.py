"""
Normalized service credential model
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ServiceCredentials:
    """
    Flattened credentials for one bound service instance.

    ``host`` is always stored sanitized (see ``bindings.hostname``).
    Records are immutable once extracted.
    """
    service_name: Optional[str] = None
    label: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    uri: Optional[str] = None
    jdbc_url: Optional[str] = None
    virtual_host: Optional[str] = None
    management_uri: Optional[str] = None
    tls_enabled: bool = False
    tls_port: Optional[int] = None
    service_gateway_enabled: bool = False
    service_gateway_access_port: Optional[int] = None
    user_provided: bool = False

    def summary(self) -> Dict[str, Any]:
        """Public view of the record, without secrets or connection strings"""
        return {
            "service_name": self.service_name,
            "label": self.label,
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "username": self.username,
            "virtual_host": self.virtual_host,
            "tls_enabled": self.tls_enabled,
            "tls_port": self.tls_port,
            "service_gateway_enabled": self.service_gateway_enabled,
            "service_gateway_access_port": self.service_gateway_access_port,
            "user_provided": self.user_provided,
            "has_uri": self.uri is not None,
            "has_jdbc_url": self.jdbc_url is not None,
        }
