"""
Test bed protocol definitions.

This module provides the typed request variants, the routing of named inputs
onto them and the static module definitions.
"""
from .request_types import (
    DirectValidationRequest,
    InitialiseRequest,
    SessionOperation,
    SessionValidationRequest,
    ValidationMode,
    ValidationRequest
)
from .request_router import (
    get_inputs,
    get_required_input,
    resolve_initialise_request,
    resolve_validation_request
)
from .module_definitions import ServiceKind, get_module_definition

__all__ = [
    "DirectValidationRequest",
    "InitialiseRequest",
    "SessionOperation",
    "SessionValidationRequest",
    "ValidationMode",
    "ValidationRequest",
    "get_inputs",
    "get_required_input",
    "resolve_initialise_request",
    "resolve_validation_request",
    "ServiceKind",
    "get_module_definition",
]
