"""Pydantic schemas for document summaries.

Summaries are persisted by the caller as JSON in ``summary_cache`` columns using
camelCase keys; the aliases below keep that format readable in both directions.
"""

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

ProjectType = Literal["RFI", "RFP"]

# Field keys in the order they are rendered into prompts
EXTRACTED_FIELD_LABELS: dict[str, str] = {
    "scope": "Scope",
    "requirements": "Requirements",
    "timeline": "Timeline",
    "budget": "Budget",
    "deliverables": "Deliverables",
    "technical_specs": "Technical Specs",
    "evaluation_criteria": "Evaluation Criteria",
}


class ExtractedFields(BaseModel):
    """Structured facts pulled out of a document, all optional."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    scope: str | None = Field(None, description="Scope of work")
    requirements: str | None = Field(None, description="Technical and functional requirements")
    timeline: str | None = Field(None, description="Timeline or schedule")
    budget: str | None = Field(None, description="Budget or pricing information")
    deliverables: str | None = Field(None, description="Expected deliverables")
    technical_specs: str | None = Field(None, description="Technical specifications")
    evaluation_criteria: str | None = Field(None, description="Evaluation criteria")

    def present(self) -> list[tuple[str, str]]:
        """(key, value) pairs for fields that have a value, in display order."""
        return [(key, getattr(self, key)) for key in EXTRACTED_FIELD_LABELS if getattr(self, key)]


class DocumentSummary(BaseModel):
    """Bounded summary of one source for one target document type."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    original_length: int = Field(..., ge=0, description="Length of the input text in chars")
    summary_length: int = Field(..., ge=0, description="Length of full_summary in chars")
    key_points: tuple[str, ...] = Field(default=(), description="Ordered key points")
    extracted_fields: ExtractedFields = Field(
        default_factory=ExtractedFields,
        alias="extractedData",
        description="Structured fields extracted from the document",
    )
    full_summary: str = Field(..., description="Summary text used in prompts")

    def to_cache(self) -> str:
        """Serialize to the cache JSON format."""
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def from_cache(cls, raw: str | dict[str, Any] | None) -> "DocumentSummary | None":
        """
        Load a cached summary.

        Returns None for missing or unreadable cache values so callers treat them
        as a cache miss.
        """
        if raw is None or raw == "":
            return None
        try:
            data = json.loads(raw) if isinstance(raw, str) else raw
            if not isinstance(data, dict):
                return None
            return cls.model_validate(data)
        except (json.JSONDecodeError, ValidationError, TypeError):
            return None
