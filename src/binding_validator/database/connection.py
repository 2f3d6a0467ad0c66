"""
Backend connection settings and request-scoped connections

Every validation request opens its own connection and closes it on the way
out; nothing is pooled or kept between requests.
"""

import asyncio
import logging
import ssl
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional, Union
from urllib.parse import parse_qs, unquote, urlsplit

import amqp
import asyncpg
import pymysql
import pymysql.cursors
import redis.asyncio as aioredis

from binding_validator.bindings.hostname import clean_hostname, resolve_hostname
from binding_validator.bindings.policy import resolve_endpoint
from binding_validator.config import settings
from binding_validator.models.credentials import ServiceCredentials
from binding_validator.models.enums import BackendKind

logger = logging.getLogger(__name__)

AMQPS_DEFAULT_PORT = 5671

# Query flags in database URLs that demand an encrypted connection
TLS_QUERY_FLAGS = {
    "sslmode": ("require", "verify-ca", "verify-full"),
    "ssl-mode": ("required", "verify_ca", "verify_identity"),
    "usessl": ("true",),
    "ssl": ("true",),
}


class ConnectionConfigError(ValueError):
    """Raised when bound credentials are not enough to open a connection"""


@dataclass(frozen=True)
class ConnectionSettings:
    """Everything needed to open one connection to a backend"""
    host: str
    port: int
    use_tls: bool = False
    username: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = None
    virtual_host: Optional[str] = None

    def describe(self) -> str:
        return f"{self.host}:{self.port} (tls={self.use_tls})"


def build_ssl_context(verify: Optional[bool] = None) -> ssl.SSLContext:
    """TLS context for backend connections, honouring TLS_VERIFY"""
    if verify is None:
        verify = settings.TLS_VERIFY
    context = ssl.create_default_context()
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def amqp_ssl_options(host: str, verify: Optional[bool] = None) -> Dict[str, Any]:
    """Socket wrapping options for py-amqp TLS connections"""
    if verify is None:
        verify = settings.TLS_VERIFY
    if not verify:
        # py-amqp enables hostname checks whenever server_hostname is set
        return {"cert_reqs": ssl.CERT_NONE}
    return {"cert_reqs": ssl.CERT_REQUIRED, "server_hostname": host}


def amqp_host(host: str, port: int) -> str:
    if ":" in host and not host.startswith("["):
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def _url_requests_tls(query: str) -> bool:
    for flag, values in parse_qs(query).items():
        accepted = TLS_QUERY_FLAGS.get(flag.lower())
        if accepted and any(value.lower() in accepted for value in values):
            return True
    return False


def relational_settings(creds: ServiceCredentials, kind: Union[BackendKind, str]) -> ConnectionSettings:
    """
    Connection settings for a MySQL or PostgreSQL binding.

    A JDBC URL (preferred) or URI supplies whatever parts it carries; the
    remaining parts come from the discrete credential fields and the
    port/TLS policy.
    """
    endpoint = resolve_endpoint(creds, kind)
    host, port, database = creds.host, endpoint.port, creds.database
    username, password = creds.username, creds.password
    use_tls = endpoint.use_tls

    url = creds.jdbc_url or creds.uri
    if url:
        if url.lower().startswith("jdbc:"):
            url = url[len("jdbc:"):]
        parsed = urlsplit(url)
        query = parse_qs(parsed.query)

        host = clean_hostname(parsed.hostname) or host
        try:
            port = parsed.port or port
        except ValueError:
            logger.warning(f"Ignoring invalid port in database URL for {creds.service_name}")
        database = unquote(parsed.path.lstrip("/")) or database
        username = unquote(parsed.username) if parsed.username else query.get("user", [username])[0]
        password = unquote(parsed.password) if parsed.password else query.get("password", [password])[0]
        use_tls = use_tls or _url_requests_tls(parsed.query)

    if not host:
        raise ConnectionConfigError(f"No usable host bound for {creds.service_name or kind}")

    return ConnectionSettings(
        host=host,
        port=port,
        use_tls=use_tls,
        username=username,
        password=password,
        database=database,
    )


async def keyvalue_settings(creds: ServiceCredentials) -> ConnectionSettings:
    """
    Connection settings for a Redis/Valkey binding.

    Plaintext connections go to the resolved address. TLS connections keep
    the hostname for certificate checks and SNI.
    """
    host = clean_hostname(creds.host)
    if not host:
        raise ConnectionConfigError(f"Redis hostname is empty for {creds.service_name}")

    endpoint = resolve_endpoint(creds, BackendKind.KEYVALUE)
    if endpoint.use_tls:
        connection_host = host
    else:
        connection_host = await resolve_hostname(host, timeout=settings.DNS_RESOLVE_TIMEOUT)

    return ConnectionSettings(
        host=connection_host,
        port=endpoint.port,
        use_tls=endpoint.use_tls,
        username=creds.username,
        password=creds.password or None,
    )


def _broker_settings_from_fields(creds: ServiceCredentials) -> ConnectionSettings:
    if not creds.host:
        raise ConnectionConfigError(f"No usable host bound for {creds.service_name or 'RabbitMQ'}")
    endpoint = resolve_endpoint(creds, BackendKind.BROKER)
    return ConnectionSettings(
        host=creds.host,
        port=endpoint.port,
        use_tls=endpoint.use_tls,
        username=creds.username,
        password=creds.password,
        virtual_host=creds.virtual_host or "/",
    )


def broker_settings(creds: ServiceCredentials) -> ConnectionSettings:
    """
    Connection settings for a RabbitMQ binding.

    The AMQP URI wins when it parses; otherwise the discrete fields are used.
    """
    if not creds.uri:
        return _broker_settings_from_fields(creds)

    try:
        parsed = urlsplit(creds.uri)
        use_tls = parsed.scheme in ("amqps", "https")
        host = clean_hostname(parsed.hostname)
        if not host:
            raise ConnectionConfigError("Host is missing from the AMQP URI")

        port = parsed.port
        if port is None:
            port = creds.port if creds.port is not None else (AMQPS_DEFAULT_PORT if use_tls else 5672)

        if parsed.username:
            username = unquote(parsed.username)
            password = unquote(parsed.password or "")
        else:
            username, password = creds.username, creds.password or ""

        if creds.virtual_host:
            virtual_host = creds.virtual_host
        elif len(parsed.path) > 1:
            virtual_host = unquote(parsed.path[1:])
        else:
            virtual_host = "/"
    except ValueError as e:
        logger.error(f"Error parsing RabbitMQ URI, falling back to individual properties: {e}")
        return _broker_settings_from_fields(creds)

    return ConnectionSettings(
        host=host,
        port=port,
        use_tls=use_tls,
        username=username,
        password=password,
        virtual_host=virtual_host,
    )


@asynccontextmanager
async def open_postgres(conn_settings: ConnectionSettings) -> AsyncIterator[asyncpg.Connection]:
    conn = await asyncpg.connect(
        host=conn_settings.host,
        port=conn_settings.port,
        user=conn_settings.username,
        password=conn_settings.password,
        database=conn_settings.database or None,
        ssl=build_ssl_context() if conn_settings.use_tls else None,
        timeout=settings.CONNECT_TIMEOUT,
        command_timeout=settings.COMMAND_TIMEOUT,
        statement_cache_size=0  # pgbouncer compatibility
    )
    try:
        yield conn
    finally:
        await conn.close()


@asynccontextmanager
async def open_mysql(conn_settings: ConnectionSettings) -> AsyncIterator[pymysql.connections.Connection]:
    # PyMySQL is blocking; connection setup and teardown run in a worker thread
    conn = await asyncio.to_thread(
        pymysql.connect,
        host=conn_settings.host,
        port=conn_settings.port,
        user=conn_settings.username,
        password=conn_settings.password or "",
        database=conn_settings.database or None,
        ssl=build_ssl_context() if conn_settings.use_tls else None,
        connect_timeout=settings.CONNECT_TIMEOUT,
        read_timeout=settings.COMMAND_TIMEOUT,
        write_timeout=settings.COMMAND_TIMEOUT,
        cursorclass=pymysql.cursors.DictCursor,
        autocommit=True
    )
    try:
        yield conn
    finally:
        if conn.open:
            await asyncio.to_thread(conn.close)


@asynccontextmanager
async def open_redis(conn_settings: ConnectionSettings) -> AsyncIterator[aioredis.Redis]:
    client_kwargs = {}
    if conn_settings.use_tls:
        client_kwargs["ssl"] = True
        if not settings.TLS_VERIFY:
            client_kwargs["ssl_cert_reqs"] = "none"
            client_kwargs["ssl_check_hostname"] = False

    client = aioredis.Redis(
        host=conn_settings.host,
        port=conn_settings.port,
        username=conn_settings.username,
        password=conn_settings.password,
        socket_timeout=settings.COMMAND_TIMEOUT,
        socket_connect_timeout=settings.CONNECT_TIMEOUT,
        socket_keepalive=True,
        decode_responses=True,
        **client_kwargs
    )
    try:
        yield client
    finally:
        await client.aclose()


@asynccontextmanager
async def open_rabbitmq(conn_settings: ConnectionSettings) -> AsyncIterator[amqp.Connection]:
    connection = amqp.Connection(
        host=amqp_host(conn_settings.host, conn_settings.port),
        userid=conn_settings.username or "guest",
        password=conn_settings.password or "",
        virtual_host=conn_settings.virtual_host or "/",
        ssl=amqp_ssl_options(conn_settings.host) if conn_settings.use_tls else False,
        connect_timeout=settings.CONNECT_TIMEOUT,
        read_timeout=settings.COMMAND_TIMEOUT,
        write_timeout=settings.COMMAND_TIMEOUT
    )
    # py-amqp is blocking; every call on the connection runs in a worker thread
    try:
        await asyncio.to_thread(connection.connect)
    except Exception:
        # Half-open after a failed handshake; drop the socket without a close frame
        connection.collect()
        raise
    try:
        yield connection
    finally:
        await asyncio.to_thread(connection.close)
