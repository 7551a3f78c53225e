"""
Request type definitions for the validation protocol.

A validate call is either direct (archive and digest inline) or session based
(token plus operation selector). Both are represented as variants of one
tagged request type.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Union


class ValidationMode(Enum):
    """Supported interaction modes."""
    DIRECT = "direct"
    SESSION = "session"

    def __str__(self) -> str:
        return self.value


class SessionOperation(Enum):
    """Backend step selected by a session-based validate call."""
    UPLOAD = "upload"
    REPORT = "report"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DirectValidationRequest:
    """Single-call validation of an inline archive."""

    archive: bytes
    digest: str
    mode: ValidationMode = ValidationMode.DIRECT


@dataclass(frozen=True)
class SessionValidationRequest:
    """One backend step for an existing session."""

    session_id: str
    operation: SessionOperation
    mode: ValidationMode = ValidationMode.SESSION


ValidationRequest = Union[DirectValidationRequest, SessionValidationRequest]


@dataclass(frozen=True)
class InitialiseRequest:
    """Process call recording the archive and digest in a session."""

    session_id: str
    archive: bytes
    digest: str
