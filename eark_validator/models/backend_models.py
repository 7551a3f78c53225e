"""
Pydantic models for the backend validator's REST responses.

Field names follow the Python convention; aliases carry the backend's wire
names. Unknown keys are ignored and every field is optional because the
backend only populates what applies to the archive.
"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Finding(BaseModel):
    """Single problem reported by the backend's profile checks."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    location: Optional[str] = Field(None, description="Where in the archive the problem was found")
    message: Optional[str] = Field(None, description="Human readable description")
    rule_id: Optional[str] = Field(None, description="Identifier of the violated rule")
    severity: Optional[str] = Field(None, description="Free-form severity; 'Warn' marks a warning")
    test: Optional[str] = Field(None, description="Identifier of the assertion exercised")


class UploadOutcome(BaseModel):
    """Result of the upload call.

    `message` is present on failure, `report_url` on success; both absent
    is an indeterminate outcome.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    message: Optional[str] = Field(None, description="Failure message")
    digest: Optional[str] = Field(None, alias="sha1", description="Digest echoed by the backend")
    report_url: Optional[str] = Field(None, alias="validation_url", description="URL of the validation report")

    @property
    def has_report_url(self) -> bool:
        """Check if the upload produced a usable report URL."""
        return bool(self.report_url and self.report_url.strip())


class ValidationOutcome(BaseModel):
    """Result of the report retrieval call."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    metadata_valid: Optional[bool] = None
    schema_valid: Optional[bool] = None
    schema_errors: List[str] = Field(default_factory=list)
    profile_errors: List[Finding] = Field(default_factory=list)
    profile_warnings: List[Finding] = Field(default_factory=list)

    @field_validator("schema_errors", "profile_errors", "profile_warnings", mode="before")
    @classmethod
    def null_to_empty(cls, v):
        """Treat an explicit null sequence as empty."""
        return [] if v is None else v

    @property
    def finding_count(self) -> int:
        """Total number of reported findings of any kind."""
        return len(self.schema_errors) + len(self.profile_errors) + len(self.profile_warnings)
