"""
FastAPI application exposing the E-ARK archive validator to the test bed.
Bridges the test bed's validation and processing services to the backend
validator's upload and report calls.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from eark_validator import __version__
from eark_validator.api.routes import health, processing, validation
from eark_validator.core.logging import setup_logging
from eark_validator.core.error_handling import http_exception_handler, validation_exception_handler
from eark_validator.core.middleware import RequestIDMiddleware
from eark_validator.services.protocol_adapter import get_protocol_adapter

# Configure logging
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    adapter = get_protocol_adapter()
    await adapter.startup()
    logger.info("E-ARK validator started")
    try:
        yield
    finally:
        await adapter.shutdown()
        logger.info("E-ARK validator stopped")


app = FastAPI(
    title="E-ARK Validator",
    description="Test bed validation service for E-ARK information packages",
    version=__version__,
    lifespan=lifespan
)

# Middleware
app.add_middleware(RequestIDMiddleware)

# Add exception handlers
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

# Include routers
app.include_router(health.router)
app.include_router(validation.router)
app.include_router(processing.router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000, workers=1)
