"""Pydantic schemas for draft generation.

Sources reach the pipeline as a tagged union keyed on ``kind``. Adapters in the
persistence layer build these from database rows; nothing here knows about row
shapes.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Iterable, Iterator, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from rfx_engine.core.schemas_summary import DocumentSummary, ProjectType

SourceKind = Literal["document", "web_source", "knowledge"]

# Citation label for the company profile record
COMPANY_PROFILE_SOURCE = "Company Settings"


# =======================
# Sources
# =======================


class SourceBase(BaseModel):
    content: str = Field(default="", description="Raw text content")
    cached_summary: DocumentSummary | None = Field(
        None, description="Previously computed summary, if any"
    )
    cached_summary_target: ProjectType | None = Field(
        None, description="Target type the cached summary was produced for (None = unknown)"
    )

    def reusable_summary(self, target_type: ProjectType) -> DocumentSummary | None:
        """Cached summary if it was produced for this target type (or the type is unknown)."""
        if self.cached_summary is None:
            return None
        if self.cached_summary_target not in (None, target_type):
            return None
        return self.cached_summary


class DocumentSource(SourceBase):
    """A file uploaded to the project."""

    kind: Literal["document"] = "document"
    filename: str = Field(..., min_length=1)

    @property
    def identifier(self) -> str:
        return self.filename

    @property
    def citation_label(self) -> str:
        return self.filename


class WebSource(SourceBase):
    """A scraped web page."""

    kind: Literal["web_source"] = "web_source"
    url: str = Field(..., min_length=1)
    title: str = Field(default="")

    @property
    def identifier(self) -> str:
        return self.url

    @property
    def citation_label(self) -> str:
        return f"{self.title or self.url} ({self.url})"


class KnowledgeBaseSource(SourceBase):
    """A file from the company knowledge base."""

    kind: Literal["knowledge"] = "knowledge"
    filename: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, description="e.g. won_proposals, sow, legal")

    @property
    def identifier(self) -> str:
        return self.filename

    @property
    def citation_label(self) -> str:
        return f"{self.filename} (Knowledge Base: {self.category})"


SourceDocument = Annotated[
    Union[DocumentSource, WebSource, KnowledgeBaseSource], Field(discriminator="kind")
]

_SOURCE_ADAPTER: TypeAdapter[SourceDocument] = TypeAdapter(SourceDocument)


# =======================
# Other context records
# =======================


class CompanyProfile(BaseModel):
    """The responding company's own profile."""

    company_name: str = Field(..., min_length=1)
    description: str | None = None
    services: str | None = None
    capabilities: str | None = None
    differentiators: str | None = None
    experience: str | None = None
    certifications: str | None = None
    team_size: str | None = None


class RfiQuestion(BaseModel):
    """A custom question the RFI must address."""

    question_text: str = Field(..., min_length=1)
    category: str | None = None
    required: bool = False


class ChatResponse(BaseModel):
    """An answer captured by the interview wizard."""

    question: str
    answer: str
    category: str | None = None


class GenerationContext(BaseModel):
    """Everything one generation request may draw on."""

    project_type: ProjectType
    project_name: str
    organization_name: str = "Your Organization"
    documents: list[DocumentSource] = Field(default_factory=list)
    web_sources: list[WebSource] = Field(default_factory=list)
    company_profile: CompanyProfile | None = None
    knowledge_base: list[KnowledgeBaseSource] = Field(default_factory=list)
    prior_questions: list[RfiQuestion] = Field(default_factory=list)
    chat_responses: list[ChatResponse] = Field(default_factory=list)
    target_length_pages: int | None = Field(None, gt=0)

    @classmethod
    def from_sources(
        cls,
        project_type: ProjectType,
        project_name: str,
        sources: Iterable[SourceDocument | dict[str, Any]],
        **fields: Any,
    ) -> "GenerationContext":
        """
        Build a context from a mixed stream of sources.

        Persistence adapters emit sources as ``SourceDocument`` models or as
        plain dicts tagged with ``kind``; each is routed to its typed list in
        input order.
        """
        documents: list[DocumentSource] = []
        web_sources: list[WebSource] = []
        knowledge_base: list[KnowledgeBaseSource] = []
        for raw in sources:
            source = _SOURCE_ADAPTER.validate_python(raw)
            if isinstance(source, DocumentSource):
                documents.append(source)
            elif isinstance(source, WebSource):
                web_sources.append(source)
            else:
                knowledge_base.append(source)
        return cls(
            project_type=project_type,
            project_name=project_name,
            documents=documents,
            web_sources=web_sources,
            knowledge_base=knowledge_base,
            **fields,
        )

    def knowledge_by_category(self) -> dict[str, list[KnowledgeBaseSource]]:
        """Knowledge base entries grouped by category, preserving input order."""
        grouped: dict[str, list[KnowledgeBaseSource]] = {}
        for entry in self.knowledge_base:
            grouped.setdefault(entry.category, []).append(entry)
        return grouped

    def requested_categories(self) -> list[str]:
        """Distinct question categories, in first-seen order."""
        seen: list[str] = []
        for question in self.prior_questions:
            category = question.category or "General"
            if category not in seen:
                seen.append(category)
        return seen


# =======================
# Registry and results
# =======================


class ValidSourceRegistry(BaseModel):
    """Closed set of citation labels one generation call may reference."""

    model_config = ConfigDict(frozen=True)

    labels: tuple[str, ...] = ()

    @classmethod
    def from_context(cls, context: GenerationContext) -> "ValidSourceRegistry":
        labels: list[str] = [doc.citation_label for doc in context.documents]
        labels.extend(source.citation_label for source in context.web_sources)
        for entries in context.knowledge_by_category().values():
            labels.extend(entry.citation_label for entry in entries)
        if context.company_profile is not None:
            labels.append(COMPANY_PROFILE_SOURCE)
        # dict.fromkeys keeps first-seen order
        return cls(labels=tuple(dict.fromkeys(labels)))

    def __contains__(self, label: object) -> bool:
        return label in self.labels

    def __iter__(self) -> Iterator[str]:  # type: ignore[override]
        return iter(self.labels)

    def __len__(self) -> int:
        return len(self.labels)


class SummaryCacheUpdate(BaseModel):
    """A freshly computed summary the caller should persist."""

    source_kind: SourceKind
    identifier: str
    target_type: ProjectType
    summary: DocumentSummary
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AssembledPrompt(BaseModel):
    """Prompt text plus the registry the validator will enforce."""

    prompt: str
    registry: ValidSourceRegistry
    fresh_summaries: list[SummaryCacheUpdate] = Field(default_factory=list)


class GeneratedDraft(BaseModel):
    """Final section map for one generation call."""

    project_type: ProjectType
    sections: dict[str, str] = Field(default_factory=dict)
    used_fallback: bool = False
    parse_failed: bool = False
    invalid_citations_removed: int = 0
    filled_sections: list[str] = Field(
        default_factory=list, description="Keys filled from fallback templates"
    )
    fresh_summaries: list[SummaryCacheUpdate] = Field(default_factory=list)


class SmartQuestion(BaseModel):
    """A suggested RFI question."""

    question: str
    category: str
    priority: int = Field(3, ge=1, le=5, description="1-5, 5 is highest")


class SmartQuestionSet(BaseModel):
    """Suggested questions plus summaries computed while building the prompt."""

    questions: list[SmartQuestion] = Field(default_factory=list)
    fresh_summaries: list[SummaryCacheUpdate] = Field(default_factory=list)
