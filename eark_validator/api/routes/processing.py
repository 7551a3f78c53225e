"""
Processing service endpoints.

The test bed opens a transaction, submits the archive and digest through the
initialise operation and closes the transaction at the end of its test
session. Validation steps in between refer to the returned session token.
"""
from fastapi import APIRouter, Depends
import logging

from eark_validator.core.constants import OUTPUT_SESSION
from eark_validator.core.security import verify_api_key
from eark_validator.core.error_handling import handle_service_errors
from eark_validator.models.api_models import (
    BasicRequest,
    BeginTransactionResponse,
    EmptyResponse,
    GetModuleDefinitionResponse,
    ProcessRequest,
    ProcessResponse,
)
from eark_validator.models.report_models import AnyContent, ValueEmbedding
from eark_validator.protocol import ServiceKind, resolve_initialise_request
from eark_validator.services.protocol_adapter import get_protocol_adapter

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/processing", tags=["processing"])


@router.get(
    "/definition",
    response_model=GetModuleDefinitionResponse,
    dependencies=[Depends(verify_api_key)]
)
async def get_module_definition():
    """Describe the processing service's operations and their parameters."""
    adapter = get_protocol_adapter()
    return GetModuleDefinitionResponse(module=adapter.get_module_definition(ServiceKind.PROCESSING))


@router.post(
    "/begin-transaction",
    response_model=BeginTransactionResponse,
    dependencies=[Depends(verify_api_key)]
)
@handle_service_errors("Failed to begin transaction")
async def begin_transaction():
    """Open a session and return its token."""
    adapter = get_protocol_adapter()
    return BeginTransactionResponse(session_id=adapter.begin_transaction())


@router.post(
    "/process",
    response_model=ProcessResponse,
    dependencies=[Depends(verify_api_key)]
)
@handle_service_errors("Failed to process archive")
async def process(request: ProcessRequest):
    """
    Record the archive and digest for the session.

    Args:
        request: Session token, operation and the 'archive'/'digest' inputs

    Returns:
        JSON with the session token as output and an empty report
    """
    adapter = get_protocol_adapter()
    initialise_request = resolve_initialise_request(request.input, request.session_id, request.operation)
    session_id = await adapter.process(initialise_request)

    return ProcessResponse(
        output=[AnyContent(
            name=OUTPUT_SESSION,
            value=session_id,
            type="string",
            embedding_method=ValueEmbedding.STRING
        )],
        report=adapter.report_builder.build_empty()
    )


@router.post(
    "/end-transaction",
    response_model=EmptyResponse,
    dependencies=[Depends(verify_api_key)]
)
@handle_service_errors("Failed to end transaction")
async def end_transaction(request: BasicRequest):
    """Close the session and discard its archive. Unknown sessions are ignored."""
    adapter = get_protocol_adapter()
    await adapter.end_transaction(request.session_id)
    return EmptyResponse()
