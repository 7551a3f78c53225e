"""
Pydantic models for the test bed protocol's request and response structures.
"""
from enum import Enum
from pydantic import BaseModel, Field
from typing import List, Optional

from eark_validator.models.report_models import AnyContent, Report


class ParameterUsage(str, Enum):
    """Whether a parameter must be provided."""
    REQUIRED = "R"
    OPTIONAL = "O"


class ParameterKind(str, Enum):
    """How a parameter value is expected to be supplied."""
    SIMPLE = "SIMPLE"  # inline value
    BINARY = "BINARY"  # base64-encoded content
    URI = "URI"  # reference to be looked up


class TypedParameter(BaseModel):
    """Declaration of one input or output parameter."""

    name: str = Field(..., description="Parameter name")
    type: str = Field(..., description="Data type, e.g. 'string' or 'binary'")
    use: ParameterUsage = Field(default=ParameterUsage.REQUIRED)
    kind: ParameterKind = Field(default=ParameterKind.SIMPLE)
    description: Optional[str] = None


class OperationDefinition(BaseModel):
    """Declared operation with its inputs and outputs."""

    name: str
    inputs: List[TypedParameter] = Field(default_factory=list)
    outputs: List[TypedParameter] = Field(default_factory=list)

    @property
    def input_names(self) -> List[str]:
        return [parameter.name for parameter in self.inputs]


class ModuleDefinition(BaseModel):
    """Description of a service module returned by getModuleDefinition."""

    id: str
    version: str
    operations: List[OperationDefinition] = Field(default_factory=list)

    def get_operation(self, name: str) -> Optional[OperationDefinition]:
        for operation in self.operations:
            if operation.name == name:
                return operation
        return None


class GetModuleDefinitionResponse(BaseModel):
    module: ModuleDefinition


class ValidateRequest(BaseModel):
    """Validate call: inline archive and digest, or a session token and operation."""

    session_id: Optional[str] = Field(None, description="Session token for session-based validation")
    input: List[AnyContent] = Field(default_factory=list, description="Named inputs")

    model_config = {
        "json_schema_extra": {
            "example": {
                "session_id": "6f1c9a52-3e5b-4c1e-9d0a-2b7f5e8c4d21",
                "input": [
                    {"name": "operation", "value": "upload", "type": "string", "embedding_method": "STRING"}
                ]
            }
        }
    }


class ValidationResponse(BaseModel):
    report: Report


class ProcessRequest(BaseModel):
    """Process call recording the archive and digest in a session."""

    session_id: Optional[str] = Field(None, description="Session token returned by begin-transaction")
    operation: Optional[str] = Field(None, description="Processing operation; defaults to 'initialise'")
    input: List[AnyContent] = Field(default_factory=list, description="Named inputs")


class ProcessResponse(BaseModel):
    output: List[AnyContent] = Field(default_factory=list)
    report: Report


class BeginTransactionResponse(BaseModel):
    session_id: str


class BasicRequest(BaseModel):
    session_id: Optional[str] = None


class EmptyResponse(BaseModel):
    pass
