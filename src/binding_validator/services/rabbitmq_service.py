"""
RabbitMQ validation service
"""

import asyncio
import logging
import time
from typing import Any, AsyncContextManager, Dict, List, Optional
from urllib.parse import quote, unquote, urlsplit, urlunsplit

import amqp
import httpx
from amqp.exceptions import ChannelError

from binding_validator.config import settings
from binding_validator.database.connection import broker_settings, open_rabbitmq
from binding_validator.models.enums import BackendKind
from binding_validator.models.validation import ValidationRequest
from binding_validator.services.base_service import BaseValidationService, millis_suffix

logger = logging.getLogger(__name__)

DEFAULT_EXCHANGE = ""
DEFAULT_QUEUE = "validation_test_queue"
WELL_KNOWN_QUEUES = ("validation_test_queue", "amq.gen", "amq.default")
RECEIVE_POLL_INTERVAL = 0.25


def _close_channel(channel: amqp.Channel) -> None:
    # A channel error already closed it on the broker side
    if channel.is_open:
        channel.close()


def _decode_body(body: Any) -> str:
    if isinstance(body, (bytes, bytearray)):
        return body.decode("utf-8", errors="replace")
    return str(body)


class RabbitMQValidationService(BaseValidationService):
    """
    Publish/consume validation against the first bound RabbitMQ service.

    py-amqp is a blocking client, so each operation runs its AMQP calls in a
    worker thread. Queue listing uses the management HTTP API when bound.
    """

    SERVICE_NAME = "RabbitMQ"
    KIND = BackendKind.BROKER
    OPERATIONS = {
        "send": "perform_send",
        "publish": "perform_send",
        "receive": "perform_receive",
        "consume": "perform_receive",
        "queue": "perform_queue_info",
        "listqueues": "perform_list_queues",
    }

    def connect(self) -> AsyncContextManager[amqp.Connection]:
        conn_settings = broker_settings(self.credentials)
        logger.info(
            f"Connecting to RabbitMQ at {conn_settings.describe()} vhost={conn_settings.virtual_host}"
        )
        return open_rabbitmq(conn_settings)

    async def perform_send(self, connection: amqp.Connection, request: ValidationRequest) -> Dict[str, Any]:
        exchange_name = request.exchange if request.exchange is not None else DEFAULT_EXCHANGE
        routing_key = request.routing_key or DEFAULT_QUEUE
        body = request.message if request.message is not None else f"test_message_{millis_suffix()}"

        await asyncio.to_thread(self._publish, connection, exchange_name, routing_key, body)
        return {
            "exchange": exchange_name or "(default)",
            "routing_key": routing_key,
            "message": body,
            "sent": True,
        }

    def _publish(self, connection: amqp.Connection, exchange_name: str, routing_key: str, body: str) -> None:
        channel = connection.channel()
        try:
            if exchange_name:
                # Fails with NotFound instead of silently dropping the message
                channel.exchange_declare(exchange_name, "direct", passive=True)
            channel.basic_publish(
                amqp.Message(body, content_type="text/plain"),
                exchange=exchange_name,
                routing_key=routing_key
            )
        finally:
            _close_channel(channel)

    async def perform_receive(self, connection: amqp.Connection, request: ValidationRequest) -> Dict[str, Any]:
        queue_name = request.queue or DEFAULT_QUEUE
        body = await asyncio.to_thread(
            self._receive, connection, queue_name, settings.RABBITMQ_RECEIVE_TIMEOUT
        )
        if body is None:
            return {"queue": queue_name, "received": False, "message": "No message available in queue"}
        return {"queue": queue_name, "received": True, "message": body}

    def _receive(self, connection: amqp.Connection, queue_name: str, timeout: float) -> Optional[str]:
        deadline = time.monotonic() + timeout
        channel = connection.channel()
        try:
            while True:
                message = channel.basic_get(queue_name, no_ack=False)
                if message is not None:
                    channel.basic_ack(message.delivery_tag)
                    return _decode_body(message.body)
                if time.monotonic() >= deadline:
                    return None
                time.sleep(RECEIVE_POLL_INTERVAL)
        finally:
            _close_channel(channel)

    async def perform_queue_info(self, connection: amqp.Connection, request: ValidationRequest) -> Dict[str, Any]:
        queue_name = request.queue or DEFAULT_QUEUE
        declaration = await asyncio.to_thread(self._declare_queue, connection, queue_name)
        return {
            "queue": queue_name,
            "declared": True,
            "message_count": declaration.message_count,
            "consumer_count": declaration.consumer_count,
        }

    def _declare_queue(self, connection: amqp.Connection, queue_name: str):
        channel = connection.channel()
        try:
            return channel.queue_declare(queue_name, durable=True, exclusive=False, auto_delete=False)
        finally:
            _close_channel(channel)

    async def perform_list_queues(self, connection: amqp.Connection, request: ValidationRequest) -> Dict[str, Any]:
        if self.credentials.management_uri:
            try:
                queues = await self._list_queues_via_management()
                return {"queues": queues, "count": len(queues), "source": "management_api"}
            except httpx.HTTPError as e:
                logger.warning(f"Management API queue listing failed, probing known queues instead: {e}")

        queues = await asyncio.to_thread(self._probe_known_queues, connection)
        return {
            "queues": queues,
            "count": len(queues),
            "source": "passive_declare",
            "note": "Full queue listing requires the RabbitMQ Management API",
        }

    def _probe_known_queues(self, connection: amqp.Connection) -> List[Dict[str, Any]]:
        queues = []
        for queue_name in WELL_KNOWN_QUEUES:
            # A failed passive declare closes the channel, so probe each queue on its own
            channel = connection.channel()
            try:
                channel.queue_declare(queue_name, passive=True)
                queues.append({"name": queue_name, "exists": True})
            except ChannelError:
                logger.debug(f"Queue {queue_name} does not exist or is not accessible")
            finally:
                _close_channel(channel)
        return queues

    def _management_queues_url(self) -> str:
        parts = urlsplit(self.credentials.management_uri)
        vhost = broker_settings(self.credentials).virtual_host or "/"
        path = parts.path.rstrip("/")
        if not path.endswith("/api"):
            path = f"{path}/api"
        # Credentials embedded in the URI are passed as basic auth instead
        netloc = parts.hostname or ""
        if parts.port:
            netloc = f"{netloc}:{parts.port}"
        return urlunsplit((parts.scheme, netloc, f"{path}/queues/{quote(vhost, safe='')}", "", ""))

    def _management_auth(self) -> Optional[httpx.BasicAuth]:
        parts = urlsplit(self.credentials.management_uri)
        username = unquote(parts.username) if parts.username else self.credentials.username
        password = unquote(parts.password) if parts.password else (self.credentials.password or "")
        return httpx.BasicAuth(username, password) if username else None

    async def _list_queues_via_management(self) -> List[Dict[str, Any]]:
        async with httpx.AsyncClient(
            timeout=settings.COMMAND_TIMEOUT,
            verify=settings.TLS_VERIFY,
            auth=self._management_auth()
        ) as client:
            response = await client.get(self._management_queues_url())
            response.raise_for_status()
            payload = response.json()

        return [
            {
                "name": queue.get("name"),
                "exists": True,
                "messages": queue.get("messages"),
                "consumers": queue.get("consumers"),
                "durable": queue.get("durable"),
            }
            for queue in payload
            if isinstance(queue, dict)
        ]
