"""Models for the backend REST exchange, reports, protocol calls and sessions."""

from .backend_models import (
    Finding,
    UploadOutcome,
    ValidationOutcome
)
from .report_models import (
    AnyContent,
    ItemLevel,
    Report,
    ReportCounters,
    ReportItem,
    ValueEmbedding,
    Verdict
)
from .api_models import (
    BasicRequest,
    BeginTransactionResponse,
    EmptyResponse,
    GetModuleDefinitionResponse,
    ModuleDefinition,
    OperationDefinition,
    ParameterKind,
    ParameterUsage,
    ProcessRequest,
    ProcessResponse,
    TypedParameter,
    ValidateRequest,
    ValidationResponse
)
from .session_models import SessionState, ValidationSession

__all__ = [
    "Finding",
    "UploadOutcome",
    "ValidationOutcome",
    "AnyContent",
    "ItemLevel",
    "Report",
    "ReportCounters",
    "ReportItem",
    "ValueEmbedding",
    "Verdict",
    "BasicRequest",
    "BeginTransactionResponse",
    "EmptyResponse",
    "GetModuleDefinitionResponse",
    "ModuleDefinition",
    "OperationDefinition",
    "ParameterKind",
    "ParameterUsage",
    "ProcessRequest",
    "ProcessResponse",
    "TypedParameter",
    "ValidateRequest",
    "ValidationResponse",
    "SessionState",
    "ValidationSession"
]
