"""
Pydantic models for the structured validation report returned to the test bed.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class Verdict(str, Enum):
    """Overall result of a report."""
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    FAILURE = "FAILURE"


class ItemLevel(str, Enum):
    """Classification of a single report item."""
    ERROR = "ERROR"
    WARNING = "WARNING"


class ValueEmbedding(str, Enum):
    """How a context value is carried."""
    STRING = "STRING"
    BASE64 = "BASE64"
    URI = "URI"


class AnyContent(BaseModel):
    """Named value or named group of values (inputs, outputs, report context)."""

    name: Optional[str] = Field(None, description="Name of the value")
    value: Optional[str] = Field(None, description="The value itself")
    type: Optional[str] = Field(None, description="Data type, e.g. 'string', 'binary', 'map'")
    embedding_method: Optional[ValueEmbedding] = Field(None, description="How the value is embedded")
    item: List["AnyContent"] = Field(default_factory=list, description="Nested values")

    def get_item(self, name: str) -> Optional["AnyContent"]:
        """Return the first nested value with the given name."""
        for child in self.item:
            if child.name == name:
                return child
        return None


AnyContent.model_rebuild()


class ReportItem(BaseModel):
    """Single classified finding of a report."""

    level: ItemLevel = Field(..., description="ERROR or WARNING")
    description: str = Field(..., description="Message shown to the user")
    test: Optional[str] = Field(None, description="Assertion exercised")
    assertion_id: Optional[str] = Field(None, description="Rule identifier")
    location: Optional[str] = Field(None, description="Location of the problem")


class ReportCounters(BaseModel):
    """Counts of report items per level."""

    errors: int = 0
    warnings: int = 0
    informational: int = 0


class Report(BaseModel):
    """Validation report (verdict, items, counters and echoed context)."""

    result: Verdict = Field(default=Verdict.SUCCESS, description="Overall verdict")
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="When the report was produced")
    items: List[ReportItem] = Field(default_factory=list, description="Findings in report order")
    counters: ReportCounters = Field(default_factory=ReportCounters)
    context: AnyContent = Field(default_factory=AnyContent, description="Echoed inputs and outputs")

    @property
    def errors(self) -> List[ReportItem]:
        return [item for item in self.items if item.level == ItemLevel.ERROR]

    @property
    def warnings(self) -> List[ReportItem]:
        return [item for item in self.items if item.level == ItemLevel.WARNING]

    model_config = {
        "json_schema_extra": {
            "example": {
                "result": "FAILURE",
                "date": "2025-11-06T14:30:45Z",
                "items": [
                    {
                        "level": "ERROR",
                        "description": "[Profile][CSIP60] Metadata file missing",
                        "test": "CSIP60",
                        "assertion_id": "CSIP60",
                        "location": "METS.xml",
                    }
                ],
                "counters": {"errors": 1, "warnings": 0, "informational": 0},
                "context": {"item": []},
            }
        }
    }
