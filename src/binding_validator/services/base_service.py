"""
Base validation service: operation dispatch and uniform results for every backend
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncContextManager, Callable, Dict, Optional, Tuple

from binding_validator.models.credentials import ServiceCredentials
from binding_validator.models.enums import BackendKind, ValidationStatus
from binding_validator.models.validation import ValidationRequest

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of one validation operation against a backend"""
    service: str
    operation: str
    status: ValidationStatus = ValidationStatus.SUCCESS
    data: Dict[str, Any] = field(default_factory=dict)
    message: Optional[str] = None
    error_type: Optional[str] = None
    suggestion: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.utcnow().isoformat())

    @property
    def success(self) -> bool:
        return self.status == ValidationStatus.SUCCESS

    @classmethod
    def failure(
        cls,
        service: str,
        operation: str,
        message: str,
        error_type: Optional[str] = None,
        suggestion: Optional[str] = None
    ) -> "ValidationResult":
        return cls(
            service=service,
            operation=operation,
            status=ValidationStatus.ERROR,
            message=message,
            error_type=error_type,
            suggestion=suggestion
        )

    @classmethod
    def not_configured(cls, service: str, operation: str) -> "ValidationResult":
        return cls.failure(service, operation, f"{service} service not configured")

    def to_response(self) -> Dict[str, Any]:
        """Flatten into the JSON body returned by the validate endpoints"""
        response: Dict[str, Any] = dict(self.data)
        response.update({
            "timestamp": self.timestamp,
            "service": self.service,
            "operation": self.operation,
            "status": self.status.value,
        })
        if self.message is not None:
            response["message"] = self.message
        if self.error_type:
            response["error_type"] = self.error_type
        if self.suggestion:
            response["suggestion"] = self.suggestion
        return response


def millis_suffix() -> int:
    return int(time.time() * 1000)


class BaseValidationService:
    """
    Runs validation operations against one bound backend.

    Subclasses declare ``SERVICE_NAME``, ``KIND`` and ``OPERATIONS`` (operation
    alias -> handler method name), and implement ``connect()``. Each call to
    ``validate`` opens its own connection and closes it before returning.
    """

    SERVICE_NAME = "Backend"
    KIND: BackendKind = BackendKind.UNCLASSIFIED
    OPERATIONS: Dict[str, str] = {}

    def __init__(self, credentials: Optional[ServiceCredentials]):
        self.credentials = credentials
        if credentials is not None:
            logger.info(
                f"{self.SERVICE_NAME} validation service configured for {credentials.service_name or '(unnamed)'} "
                f"(user-provided: {credentials.user_provided})"
            )

    @property
    def is_configured(self) -> bool:
        return self.credentials is not None

    def connect(self) -> AsyncContextManager[Any]:
        """Async context manager yielding an open, request-scoped connection"""
        raise NotImplementedError

    async def prepare(self, conn: Any) -> None:
        """Hook run on every fresh connection before the operation"""

    def describe_error(self, error: Exception) -> Tuple[str, str, Optional[str]]:
        """Map an exception to (error_type, message, suggestion)"""
        return type(error).__name__, str(error), None

    def _resolve_handler(self, operation: str) -> Optional[Callable]:
        method_name = self.OPERATIONS.get(operation.lower())
        return getattr(self, method_name) if method_name else None

    async def validate(self, operation: str, request: Optional[ValidationRequest] = None) -> ValidationResult:
        """
        Run one operation and report its outcome

        Args:
            operation: Operation name (case-insensitive, aliases allowed)
            request: Operation parameters; defaults apply for missing fields

        Returns:
            ValidationResult, never raises for backend failures
        """
        if request is None:
            request = ValidationRequest()

        if not self.is_configured:
            return ValidationResult.not_configured(self.SERVICE_NAME, operation)

        handler = self._resolve_handler(operation)
        if handler is None:
            return ValidationResult.failure(
                self.SERVICE_NAME, operation, f"Unsupported operation: {operation}"
            )

        try:
            async with self.connect() as conn:
                await self.prepare(conn)
                data = await handler(conn, request)
        except Exception as e:
            logger.error(f"{self.SERVICE_NAME} validation error during {operation}: {e}", exc_info=True)
            error_type, message, suggestion = self.describe_error(e)
            return ValidationResult.failure(self.SERVICE_NAME, operation, message, error_type, suggestion)

        return ValidationResult(service=self.SERVICE_NAME, operation=operation, data=data)
