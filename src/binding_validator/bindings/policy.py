"""
Port and TLS selection for a bound service

User-provided bindings and platform-provisioned bindings expose different
signals, so each style has its own precedence. Connectors call
``resolve_endpoint`` for every connection attempt; the result is never
stored on the credential record.
"""

import logging
from typing import NamedTuple, Optional, Union

from binding_validator.models.credentials import ServiceCredentials
from binding_validator.models.enums import DEFAULT_PORTS, BackendKind

logger = logging.getLogger(__name__)


class Endpoint(NamedTuple):
    port: int
    use_tls: bool


def default_port(kind: Union[BackendKind, str]) -> int:
    try:
        return DEFAULT_PORTS[BackendKind(kind)]
    except (ValueError, KeyError):
        raise ValueError(f"No default port for backend kind: {kind}")


def _user_provided_endpoint(creds: ServiceCredentials) -> Optional[Endpoint]:
    if creds.service_gateway_access_port is not None:
        return Endpoint(creds.service_gateway_access_port, False)
    if creds.port is not None:
        return Endpoint(creds.port, False)
    if creds.tls_port is not None:
        return Endpoint(creds.tls_port, True)
    return None


def _platform_endpoint(creds: ServiceCredentials) -> Optional[Endpoint]:
    if creds.port is not None and not creds.tls_enabled:
        return Endpoint(creds.port, False)
    if creds.tls_port is not None:
        return Endpoint(creds.tls_port, True)
    if creds.port is not None and creds.tls_enabled:
        # TLS requested explicitly on the plain port
        return Endpoint(creds.port, True)
    return None


def resolve_endpoint(
    creds: ServiceCredentials,
    kind: Union[BackendKind, str],
    is_user_provided: Optional[bool] = None
) -> Endpoint:
    """
    Decide which port to connect on and whether TLS is required.

    Args:
        creds: Normalized credentials of the bound service
        kind: Backend kind, used for the default port
        is_user_provided: Binding style; defaults to ``creds.user_provided``

    Returns:
        Endpoint(port, use_tls)
    """
    if is_user_provided is None:
        is_user_provided = creds.user_provided

    if is_user_provided:
        endpoint = _user_provided_endpoint(creds)
    else:
        endpoint = _platform_endpoint(creds)

    if endpoint is None:
        endpoint = Endpoint(default_port(kind), False)
        logger.info(f"No port bound for {creds.service_name or kind}, using default {endpoint.port}")
    else:
        logger.debug(
            f"Resolved endpoint for {creds.service_name or kind}: port={endpoint.port} tls={endpoint.use_tls} "
            f"(user-provided: {is_user_provided})"
        )
    return endpoint
