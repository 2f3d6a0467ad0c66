"""
Credential extraction from raw service binding entries

Binding entries come from many sources (platform brokers, user-provided
services, older platform versions) and disagree on field names and nesting.
Everything here is best-effort: a missing or oddly typed field yields None,
never an exception.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from binding_validator.bindings.hostname import clean_hostname
from binding_validator.models.credentials import ServiceCredentials

logger = logging.getLogger(__name__)

TRUE_STRINGS = ("true", "yes", "1", "on")
FALSE_STRINGS = ("false", "no", "0", "off")


def unwrap_credentials(entry: Mapping[str, Any]) -> Dict[str, Any]:
    """Return the credentials document, descending one level when double-wrapped"""
    credentials = entry.get("credentials")
    if not isinstance(credentials, dict):
        return {}

    nested = credentials.get("credentials")
    if isinstance(nested, dict):
        return nested
    return credentials


def extract_string(node: Mapping[str, Any], *keys: str) -> Optional[str]:
    """First non-null value among ``keys``, as a string"""
    for key in keys:
        value = node.get(key)
        if value is None:
            continue
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (dict, list)):
            continue
        return str(value)
    return None


def extract_int(node: Mapping[str, Any], key: str) -> Optional[int]:
    value = node.get(key)
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.debug(f"Ignoring non-numeric {key}: {value!r}")
        return None


def extract_bool(node: Mapping[str, Any], key: str) -> Optional[bool]:
    """Boolean value of ``key``; None when absent or not boolean-like"""
    value = node.get(key)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    return None


def _extract_host(credentials: Mapping[str, Any]) -> Optional[str]:
    host = extract_string(credentials, "host", "hostname")
    if host is None:
        # Multi-host relational bindings list their nodes under "hosts"
        hosts = credentials.get("hosts")
        if isinstance(hosts, list) and hosts and hosts[0] is not None:
            host = str(hosts[0])
    return clean_hostname(host)


def _extract_port(credentials: Mapping[str, Any]) -> Optional[int]:
    port = extract_int(credentials, "port")
    if port is not None:
        return port

    # Broker bindings publish ports per protocol instead
    protocols = credentials.get("protocols")
    if isinstance(protocols, dict):
        for protocol in ("amqp+ssl", "amqp"):
            details = protocols.get(protocol)
            if isinstance(details, dict):
                port = extract_int(details, "port")
                if port is not None:
                    return port
    return None


def extract_credentials(entry: Mapping[str, Any], user_provided: bool = False) -> ServiceCredentials:
    """
    Build a normalized credential record from one binding entry.

    Args:
        entry: A single element of a VCAP_SERVICES group array
        user_provided: Whether the entry came from the "user-provided" group

    Returns:
        ServiceCredentials with every field that could be found
    """
    credentials = unwrap_credentials(entry)

    tls_port = extract_int(credentials, "tls_port")
    tls_flag = extract_bool(credentials, "tls")
    if tls_flag is None:
        # A TLS port is enough to know TLS is available
        tls_flag = tls_port is not None

    return ServiceCredentials(
        service_name=extract_string(entry, "name"),
        label=extract_string(entry, "label"),
        host=_extract_host(credentials),
        port=_extract_port(credentials),
        database=extract_string(credentials, "database", "db", "name"),
        username=extract_string(credentials, "username", "user"),
        password=extract_string(credentials, "password"),
        uri=extract_string(credentials, "uri"),
        jdbc_url=extract_string(credentials, "jdbcUrl", "jdbc_url"),
        virtual_host=extract_string(credentials, "vhost", "virtual_host"),
        management_uri=extract_string(credentials, "management_uri"),
        tls_enabled=tls_flag,
        tls_port=tls_port,
        service_gateway_enabled=bool(extract_bool(credentials, "service_gateway_enabled")),
        service_gateway_access_port=extract_int(credentials, "service_gateway_access_port"),
        user_provided=user_provided,
    )
