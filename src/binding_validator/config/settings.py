"""
Configuration settings for the Service Binding Validator
"""

import os
import logging
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file when present
load_dotenv()

logger = logging.getLogger(__name__)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid value for {name}: {raw!r}, using default {default}")
        return default


# Environment configuration
ENV = os.getenv("ENV", "PROD")
PORT = int(os.getenv("PORT", 8080))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Backend connection behaviour (seconds)
DNS_RESOLVE_TIMEOUT = _float_env("DNS_RESOLVE_TIMEOUT", 2.0)
CONNECT_TIMEOUT = _float_env("CONNECT_TIMEOUT", 10.0)
COMMAND_TIMEOUT = _float_env("COMMAND_TIMEOUT", 30.0)
RABBITMQ_RECEIVE_TIMEOUT = _float_env("RABBITMQ_RECEIVE_TIMEOUT", 5.0)

# Verify server certificates on TLS connections
TLS_VERIFY = os.getenv("TLS_VERIFY", "true").strip().lower() not in ("false", "0", "no", "off")

# CORS settings
ALLOWED_ORIGINS = [origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",") if origin.strip()]


def get_vcap_services() -> Optional[str]:
    """
    Raw VCAP_SERVICES manifest.

    Read on demand rather than at import so the registry always sees the
    environment of the running process.
    """
    return os.getenv("VCAP_SERVICES")


logger.info(f"Environment: {ENV}")
