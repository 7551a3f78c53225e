import uuid
from pathlib import Path

from fastapi import APIRouter
from eark_validator import __version__
from eark_validator.core.config import settings
from eark_validator.services.protocol_adapter import get_protocol_adapter

router = APIRouter(tags=["health"])


@router.get("/")
async def root():
    """Basic health check endpoint."""
    return {"message": "E-ARK Validator API", "status": "healthy"}


@router.get("/health")
async def health_check():
    """
    Comprehensive health check endpoint.

    Verifies:
    - Backend endpoint configuration
    - Temporary folder write permissions
    - Number of live sessions
    """
    health_status = {
        "status": "healthy",
        "service": settings.SERVICE_ID,
        "version": __version__,
        "backend_endpoint": settings.BACKEND_ENDPOINT,
        "force_https": settings.VALIDATOR_FORCE_HTTPS,
        "live_sessions": len(get_protocol_adapter().sessions),
    }

    try:
        tmp_folder = Path(settings.TMP_FOLDER)
        tmp_folder.mkdir(parents=True, exist_ok=True)
        test_file = tmp_folder / f".health_check_{uuid.uuid4().hex}"
        test_file.write_text("test")
        test_file.unlink()
        health_status["filesystem_writable"] = True
        health_status["temp_directory"] = str(tmp_folder)
    except Exception as e:
        health_status["filesystem_writable"] = False
        health_status["filesystem_error"] = str(e)
        health_status["status"] = "degraded"

    if not settings.BACKEND_ENDPOINT:
        health_status["status"] = "degraded"
        health_status["warning"] = "Backend endpoint not configured"

    return health_status
