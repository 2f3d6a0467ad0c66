"""
Service Binding Validator API Server
Parses platform service bindings and validates connectivity to MySQL, PostgreSQL, Redis/Valkey and RabbitMQ
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from binding_validator.api.routes import health, validation
from binding_validator.bindings.registry import ServiceRegistry
from binding_validator.config.settings import ALLOWED_ORIGINS, LOG_LEVEL
from binding_validator.services.wiring import build_validation_services
from binding_validator.utils.error_handling import setup_error_handling

# Configure logging
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Parse the binding manifest once and share it with every request"""
    registry = ServiceRegistry.from_environment()
    app.state.registry = registry
    app.state.services = build_validation_services(registry)
    logger.info(f"Service registry ready with kinds: {registry.kinds() or 'none'}")
    yield
    # Connections are request-scoped, nothing to release here
    app.state.services = {}


# FastAPI app initialization
app = FastAPI(
    title="Service Binding Validator",
    description="Validates connectivity and basic operations against platform-bound backing services",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=ALLOWED_ORIGINS != ["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Setup centralized error handling
setup_error_handling(app)

# Include API routes
app.include_router(health.router, tags=["Health"])
app.include_router(validation.router, prefix="/api", tags=["Validation"])

# FastAPI app instance is exported for use by uvicorn
# Server startup is handled by main.py at the project root
