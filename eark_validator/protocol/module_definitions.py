"""
Static module definitions returned by getModuleDefinition.

The definitions are derived from configuration only and describe how the test
bed is expected to call each service.
"""
from enum import Enum

from eark_validator.core.config import settings
from eark_validator.core.constants import (
    INPUT_ARCHIVE,
    INPUT_DIGEST,
    INPUT_OPERATION,
    INPUT_SESSION,
    OPERATION_INITIALISE,
    OPERATION_REPORT,
    OPERATION_UPLOAD,
    OPERATION_VALIDATE,
    OUTPUT_REPORT,
    OUTPUT_SESSION,
)
from eark_validator.models.api_models import (
    ModuleDefinition,
    OperationDefinition,
    ParameterKind,
    ParameterUsage,
    TypedParameter,
)


class ServiceKind(Enum):
    """Services exposed to the test bed."""
    VALIDATION = "validation"
    PROCESSING = "processing"

    def __str__(self) -> str:
        return self.value


def _parameter(name: str, type_: str, kind: ParameterKind, description: str,
               use: ParameterUsage = ParameterUsage.REQUIRED) -> TypedParameter:
    return TypedParameter(name=name, type=type_, use=use, kind=kind, description=description)


def _archive_input() -> TypedParameter:
    return _parameter(INPUT_ARCHIVE, "binary", ParameterKind.BINARY, "The archive to validate.")


def _digest_input() -> TypedParameter:
    return _parameter(INPUT_DIGEST, "string", ParameterKind.SIMPLE, "The archive's SHA1 digest.")


def _session_step(name: str, description: str) -> OperationDefinition:
    return OperationDefinition(
        name=name,
        inputs=[
            _parameter(INPUT_OPERATION, "string", ParameterKind.SIMPLE,
                       f"The backend step to call ('{name}')."),
            _parameter(INPUT_SESSION, "string", ParameterKind.SIMPLE,
                       "The session ID returned by the processing service's initialise operation."),
        ],
        outputs=[_parameter(OUTPUT_REPORT, "object", ParameterKind.SIMPLE, description)],
    )


def get_module_definition(service: ServiceKind) -> ModuleDefinition:
    """
    Describe the operations of a service.

    Args:
        service: Which service to describe

    Returns:
        ModuleDefinition with the service's operations and parameters
    """
    if service == ServiceKind.PROCESSING:
        operations = [
            OperationDefinition(
                name=OPERATION_INITIALISE,
                inputs=[_archive_input(), _digest_input()],
                outputs=[
                    _parameter(OUTPUT_SESSION, "string", ParameterKind.SIMPLE,
                               "The session ID to use for subsequent calls to the validator.")
                ],
            )
        ]
    else:
        operations = [
            OperationDefinition(
                name=OPERATION_VALIDATE,
                inputs=[_archive_input(), _digest_input()],
                outputs=[_parameter(OUTPUT_REPORT, "object", ParameterKind.SIMPLE,
                                    "The aggregated validation report.")],
            ),
            _session_step(OPERATION_UPLOAD, "The report of the archive upload."),
            _session_step(OPERATION_REPORT, "The report of the archive's content validation."),
        ]

    return ModuleDefinition(
        id=settings.SERVICE_ID,
        version=settings.SERVICE_VERSION,
        operations=operations,
    )
