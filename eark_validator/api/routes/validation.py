"""
Validation service endpoints.

The validate call either validates an inline archive in one go (direct mode)
or runs one backend step (upload or report) for a session opened through the
processing service.
"""
from fastapi import APIRouter, Depends
import logging

from eark_validator.core.security import verify_api_key
from eark_validator.core.error_handling import handle_service_errors
from eark_validator.models.api_models import (
    GetModuleDefinitionResponse,
    ValidateRequest,
    ValidationResponse,
)
from eark_validator.protocol import ServiceKind, resolve_validation_request
from eark_validator.services.protocol_adapter import get_protocol_adapter

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/validation", tags=["validation"])


@router.get(
    "/definition",
    response_model=GetModuleDefinitionResponse,
    dependencies=[Depends(verify_api_key)]
)
async def get_module_definition():
    """Describe the validation service's operations and their parameters."""
    adapter = get_protocol_adapter()
    return GetModuleDefinitionResponse(module=adapter.get_module_definition(ServiceKind.VALIDATION))


@router.post(
    "/validate",
    response_model=ValidationResponse,
    dependencies=[Depends(verify_api_key)]
)
@handle_service_errors("Failed to validate archive")
async def validate(request: ValidateRequest):
    """
    Validate an archive.

    Direct mode expects 'archive' (base64) and 'digest' inputs. Session mode
    expects a session (session_id or 'session' input) and an 'operation'
    input of 'upload' or 'report'.

    Args:
        request: Session token and named inputs

    Returns:
        JSON with the aggregated validation report
    """
    adapter = get_protocol_adapter()
    validation_request = resolve_validation_request(request.input, request.session_id)
    logger.info(f"Validate call in {validation_request.mode} mode")

    report = await adapter.validate(validation_request)
    return ValidationResponse(report=report)
