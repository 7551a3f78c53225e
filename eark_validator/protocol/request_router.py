"""
Request routing logic for the validation protocol.

Turns the named inputs of a protocol call into one of the typed request
variants, rejecting missing, duplicate or unknown inputs before any backend
call is made.
"""
import logging
from typing import List, Optional

from eark_validator.core.constants import (
    INPUT_ARCHIVE,
    INPUT_DIGEST,
    INPUT_OPERATION,
    INPUT_SESSION,
    OPERATION_INITIALISE,
)
from eark_validator.core.error_handling import InvalidRequestError
from eark_validator.models.report_models import AnyContent, ValueEmbedding
from eark_validator.services.archive_store import ArchiveStore
from .request_types import (
    DirectValidationRequest,
    InitialiseRequest,
    SessionOperation,
    SessionValidationRequest,
    ValidationRequest,
)

logger = logging.getLogger(__name__)


def get_inputs(inputs: Optional[List[AnyContent]], name: str) -> List[AnyContent]:
    """
    Collect all provided inputs with the given name.

    Args:
        inputs: Named inputs of the call (may be None)
        name: Input name to look up

    Returns:
        Matching inputs, possibly empty
    """
    if not inputs:
        return []
    return [candidate for candidate in inputs if candidate.name == name]


def get_required_input(inputs: Optional[List[AnyContent]], name: str) -> AnyContent:
    """
    Return the single input with the given name.

    Raises:
        InvalidRequestError: If the input is missing or provided more than once
    """
    matches = get_inputs(inputs, name)
    if len(matches) != 1 or matches[0].value is None:
        raise InvalidRequestError(f"This service expects one input to be provided named '{name}'")
    return matches[0]


def resolve_validation_request(
    inputs: Optional[List[AnyContent]],
    session_id: Optional[str] = None
) -> ValidationRequest:
    """
    Determine the validation mode of a validate call.

    An archive input selects direct mode. Otherwise the call is session based
    and must name the session (via session_id or a 'session' input) and the
    backend step through an 'operation' input.

    Args:
        inputs: Named inputs of the call
        session_id: Session token carried by the request envelope, if any

    Returns:
        DirectValidationRequest or SessionValidationRequest

    Raises:
        InvalidRequestError: If the inputs match neither mode
    """
    if get_inputs(inputs, INPUT_ARCHIVE):
        archive = _read_archive(get_required_input(inputs, INPUT_ARCHIVE))
        digest = get_required_input(inputs, INPUT_DIGEST).value
        logger.info(f"Resolved direct validation request ({len(archive)} bytes)")
        return DirectValidationRequest(archive=archive, digest=digest)

    token = session_id
    if not token and get_inputs(inputs, INPUT_SESSION):
        token = get_required_input(inputs, INPUT_SESSION).value
    if not token:
        raise InvalidRequestError(
            f"Either an '{INPUT_ARCHIVE}' input or a session must be provided"
        )

    operation = _to_session_operation(get_required_input(inputs, INPUT_OPERATION).value)
    logger.info(f"Resolved session validation request: session={token}, operation={operation}")
    return SessionValidationRequest(session_id=token, operation=operation)


def resolve_initialise_request(
    inputs: Optional[List[AnyContent]],
    session_id: Optional[str],
    operation: Optional[str] = None
) -> InitialiseRequest:
    """
    Build the request of a process call.

    Raises:
        InvalidRequestError: If the session, operation or inputs are invalid
    """
    if not session_id:
        raise InvalidRequestError("No session ID was provided")
    if operation and operation != OPERATION_INITIALISE:
        raise InvalidRequestError(
            f"Unsupported processing operation '{operation}'. Expected '{OPERATION_INITIALISE}'"
        )
    digest = get_required_input(inputs, INPUT_DIGEST).value
    archive = _read_archive(get_required_input(inputs, INPUT_ARCHIVE))
    return InitialiseRequest(session_id=session_id, archive=archive, digest=digest)


def _read_archive(content: AnyContent) -> bytes:
    """Decode the archive input; it is always carried as base64."""
    if content.embedding_method == ValueEmbedding.URI:
        raise InvalidRequestError(
            f"Input '{INPUT_ARCHIVE}' must be provided inline as base64, not by reference"
        )
    return ArchiveStore.decode(content.value)


def _to_session_operation(value: str) -> SessionOperation:
    operation_map = {
        "upload": SessionOperation.UPLOAD,
        "report": SessionOperation.REPORT,
    }
    operation = operation_map.get(value.strip().lower())
    if operation is None:
        raise InvalidRequestError(
            f"Unknown operation '{value}'. Expected one of: {', '.join(operation_map)}"
        )
    return operation
