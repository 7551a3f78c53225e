"""
Session models for multi-call validation transactions.

This module provides the per-token session record kept by the session store.
"""
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Optional


class SessionState(Enum):
    """Derived state of a validation session; states only move forward."""
    OPEN = "open"
    INITIALISED = "initialised"
    UPLOADED = "uploaded"

    def __str__(self) -> str:
        return self.value


@dataclass
class ValidationSession:
    """Data recorded across the calls of one test session."""

    token: str
    """Opaque session identifier."""

    archive_location: Optional[Path] = None
    """Temporary file holding the submitted archive."""

    digest: Optional[str] = None
    """Digest declared for the archive."""

    report_url: Optional[str] = None
    """Backend report URL obtained from a successful upload."""

    @property
    def state(self) -> SessionState:
        if self.report_url is not None:
            return SessionState.UPLOADED
        if self.archive_location is not None:
            return SessionState.INITIALISED
        return SessionState.OPEN

    @property
    def is_initialised(self) -> bool:
        return self.state in (SessionState.INITIALISED, SessionState.UPLOADED)

    def snapshot(self) -> "ValidationSession":
        """Copy safe to hand out of the store."""
        return replace(self)
