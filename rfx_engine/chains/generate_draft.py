"""Draft generation: primary model call, section parsing, redaction handling,
citation validation and fallback synthesis.

The caller always gets a complete section map. When the model output is
unusable as a whole (call failed, blank, or every section redacted), the draft
is built from static templates and flagged with ``used_fallback``.
"""

import logging
import re

from rfx_engine.chains.build_generation_prompt import ContextAggregator, ProgressCallback, notify
from rfx_engine.chains.summarize_document import DocumentSummarizer
from rfx_engine.core.citations import validate_citations
from rfx_engine.core.config import Settings, get_settings
from rfx_engine.core.draft_sections import (
    FallbackFacts,
    render_fallback,
    sections_for,
    synthesize_fallback,
)
from rfx_engine.core.errors import RateLimitedError, RemoteCallFailedError
from rfx_engine.core.llm import CompletionClient, ModelTier, build_completion_client
from rfx_engine.core.logging import get_logger, log_with_context
from rfx_engine.core.schemas_generation import GeneratedDraft, GenerationContext, ValidSourceRegistry
from rfx_engine.core.schemas_summary import ProjectType
from rfx_engine.core.section_parser import is_labeled, parse_labeled_sections

logger = get_logger(__name__)

# Literal marker the model emits in place of content it declines to write
REDACTION_SENTINEL = "[REDACTED]"
_SENTINEL_PATTERN = re.compile(re.escape(REDACTION_SENTINEL))


def strip_redactions(text: str) -> str:
    """Remove sentinel markers; an all-sentinel body becomes an empty string."""
    return _SENTINEL_PATTERN.sub("", text).strip()


class GenerationEngine:
    """Runs the generation call and turns its output into a GeneratedDraft."""

    def __init__(
        self,
        client: CompletionClient,
        *,
        max_tokens: int = 4000,
        temperature: float = 0.1,
        tier: ModelTier = ModelTier.PRIMARY,
    ):
        self.client = client
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.tier = tier

    @classmethod
    def from_settings(
        cls, client: CompletionClient, settings: Settings | None = None
    ) -> "GenerationEngine":
        settings = settings or get_settings()
        return cls(
            client,
            max_tokens=settings.GENERATION_MAX_TOKENS,
            temperature=settings.GENERATION_TEMPERATURE,
        )

    def generate(
        self,
        prompt: str,
        registry: ValidSourceRegistry,
        project_type: ProjectType,
        facts: FallbackFacts | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> GeneratedDraft:
        """
        Generate and validate the section map for one assembled prompt.

        Args:
            prompt: Prompt built by ContextAggregator
            registry: Citation labels the output may reference
            project_type: Selects the expected section set
            facts: Structural facts for fallback templates
            on_progress: Optional milestone callback

        Returns:
            GeneratedDraft; never raises for model-side failures
        """
        facts = facts or FallbackFacts()

        notify(on_progress, "Sending to AI for generation...", 75)
        try:
            response = self.client.complete(
                prompt,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                tier=self.tier,
                label=f"generate:{project_type}",
            )
        except (RemoteCallFailedError, RateLimitedError) as e:
            logger.error(f"{project_type} generation call failed: {e}")
            return self._total_fallback(project_type, facts, reason="generation call failed")

        if not strip_redactions(response):
            return self._total_fallback(project_type, facts, reason="empty or fully redacted response")

        expected = {spec.label for spec in sections_for(project_type)}
        parse_failed = not is_labeled(response, expected)
        if parse_failed:
            logger.warning("Generation response has no section labels, treating it as one section")

        # ==========================================================================
        # 1. Per-section redaction and citation checks
        # ==========================================================================
        notify(on_progress, "Validating citations...", 90)
        usable: dict[str, str] = {}
        removed = 0
        for key, body in parse_labeled_sections(response, expected).items():
            body = strip_redactions(body)
            if not body:
                logger.debug(f"Section {key} is empty or redacted")
                continue
            check = validate_citations(body, registry)
            removed += check.removed
            if check.text:
                usable[key] = check.text

        if not usable:
            return self._total_fallback(
                project_type,
                facts,
                reason="every section empty or redacted",
                parse_failed=parse_failed,
                removed=removed,
            )

        # ==========================================================================
        # 2. Fill gaps in the expected section set
        # ==========================================================================
        sections: dict[str, str] = {}
        filled: list[str] = []
        for spec in sections_for(project_type):
            if spec.key in usable:
                sections[spec.key] = usable.pop(spec.key)
            else:
                sections[spec.key] = render_fallback(spec, facts)
                filled.append(spec.key)
        # Usable sections outside the expected set are kept after it
        sections.update(usable)

        if filled:
            logger.warning(f"Filled {len(filled)} section(s) from templates: {', '.join(filled)}")
        logger.info(
            f"Generated {project_type} draft: {len(sections)} sections, "
            f"{removed} invalid citation(s) removed"
        )
        return GeneratedDraft(
            project_type=project_type,
            sections=sections,
            parse_failed=parse_failed,
            invalid_citations_removed=removed,
            filled_sections=filled,
        )

    def _total_fallback(
        self,
        project_type: ProjectType,
        facts: FallbackFacts,
        *,
        reason: str,
        parse_failed: bool = False,
        removed: int = 0,
    ) -> GeneratedDraft:
        logger.warning(f"Using fallback synthesis for {project_type} draft: {reason}")
        sections = synthesize_fallback(project_type, facts)
        return GeneratedDraft(
            project_type=project_type,
            sections=sections,
            used_fallback=True,
            parse_failed=parse_failed,
            invalid_citations_removed=removed,
            filled_sections=list(sections),
        )


def generate_rfx_draft(
    context: GenerationContext,
    client: CompletionClient | None = None,
    summarizer: DocumentSummarizer | None = None,
    on_progress: ProgressCallback | None = None,
) -> GeneratedDraft:
    """
    Run the full pipeline for one RFI or RFP response.

    Args:
        context: Sources and facts for this request
        client: Completion client; built from settings when omitted
        summarizer: Summarizer; built from settings around ``client`` when omitted
        on_progress: Optional milestone callback (message, percent)

    Returns:
        GeneratedDraft, including summaries computed during this call that the
        caller should persist

    Raises:
        MissingCredentialsError: If no client is given and an API key is missing
    """
    settings = get_settings()
    client = client or build_completion_client(settings)
    summarizer = summarizer or DocumentSummarizer.from_settings(client, settings)

    log_with_context(
        logger,
        logging.INFO,
        f"Starting {context.project_type} generation",
        project_name=context.project_name,
        documents=len(context.documents),
        web_sources=len(context.web_sources),
    )

    assembled = ContextAggregator.from_settings(summarizer, settings).build_prompt(
        context, on_progress=on_progress
    )

    facts = FallbackFacts(
        company_name=context.company_profile.company_name if context.company_profile else None,
        organization_name=context.organization_name,
        categories=context.requested_categories(),
    )
    draft = GenerationEngine.from_settings(client, settings).generate(
        assembled.prompt,
        assembled.registry,
        context.project_type,
        facts=facts,
        on_progress=on_progress,
    )
    draft = draft.model_copy(update={"fresh_summaries": assembled.fresh_summaries})

    notify(on_progress, "Draft ready", 100)
    log_with_context(
        logger,
        logging.INFO,
        f"Finished {context.project_type} generation",
        project_name=context.project_name,
        used_fallback=draft.used_fallback,
        invalid_citations_removed=draft.invalid_citations_removed,
        fresh_summaries=len(draft.fresh_summaries),
    )
    return draft
