"""
Validation request Pydantic models
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ValidationRequest(BaseModel):
    """
    Parameters accepted by the validate endpoints.

    Every field is optional; each operation applies its own defaults
    (for example ``key`` falls back to ``"test"`` for reads).
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    key: Optional[str] = None
    value: Optional[str] = None
    ttl: Optional[int] = Field(default=None, ge=0)
    pattern: Optional[str] = None
    exchange: Optional[str] = None
    routing_key: Optional[str] = Field(default=None, alias="routingKey")
    message: Optional[str] = None
    queue: Optional[str] = None
