"""Context aggregation: turn a GenerationContext into one closed-world prompt.

Section order is fixed: document summaries, web sources, company profile,
knowledge base (by category), prior answers, then the instruction block. The
instruction block lists exactly the citation labels of the ValidSourceRegistry
returned alongside the prompt, so the model sees the same set the validator
enforces.

Summaries already cached on a source are reused as-is. Anything summarized here
is returned in ``AssembledPrompt.fresh_summaries``; persisting them is up to the
caller.
"""

from dataclasses import dataclass
from typing import Callable

from rfx_engine.chains.summarize_document import DocumentSummarizer
from rfx_engine.core.config import Settings, get_settings
from rfx_engine.core.draft_sections import render_instruction, sections_for
from rfx_engine.core.logging import get_logger
from rfx_engine.core.schemas_generation import (
    COMPANY_PROFILE_SOURCE,
    AssembledPrompt,
    CompanyProfile,
    GenerationContext,
    RfiQuestion,
    SourceBase,
    SummaryCacheUpdate,
    ValidSourceRegistry,
)
from rfx_engine.core.schemas_summary import DocumentSummary, ProjectType

logger = get_logger(__name__)

ProgressCallback = Callable[[str, int], None]


@dataclass(frozen=True)
class KnowledgeCategory:
    key: str
    heading: str
    max_items: int
    content_label: str = "Content"
    with_key_points: bool = False
    inline_small: bool = False


# Rendered in this order; categories not listed here only enter the registry
KNOWLEDGE_CATEGORIES: tuple[KnowledgeCategory, ...] = (
    KnowledgeCategory(
        "won_proposals", "WINNING PROPOSAL EXAMPLES", 3,
        content_label="Content Summary", with_key_points=True,
    ),
    KnowledgeCategory("sow", "STANDARD SCOPES OF WORK", 2),
    KnowledgeCategory("k12_erate", "K-12/E-RATE EXPERTISE", 2),
    KnowledgeCategory("engineering", "TECHNICAL EXPERTISE", 3, inline_small=True),
    KnowledgeCategory("project_plans", "PROJECT PLANNING", 2),
    KnowledgeCategory("legal", "LEGAL/CONTRACT TERMS", 1, content_label="Key Terms"),
)

_NOT_SPECIFIED = "Not specified"

ANTI_HALLUCINATION_RULES = """ANTI-HALLUCINATION RULES:
- DO NOT invent team sizes, years of experience, or other metrics not explicitly provided
- DO NOT create fictional case studies or client names
- DO NOT reference documents that don't exist in the valid sources list
- DO NOT make up statistics or numbers not found in the provided content
- If specific information is not available, use general statements instead of making up specifics"""


def notify(on_progress: ProgressCallback | None, message: str, percent: int) -> None:
    """Report a milestone. Callback errors are logged and otherwise ignored."""
    if on_progress is None:
        return
    try:
        on_progress(message, percent)
    except Exception as e:
        logger.warning(f"Progress callback failed at '{message}': {e}")


class ContextAggregator:
    """Builds the generation prompt and its source registry."""

    def __init__(
        self,
        summarizer: DocumentSummarizer,
        *,
        web_summary_threshold: int = 2000,
        kb_inline_threshold: int = 5000,
        default_target_length_pages: int = 10,
    ):
        self.summarizer = summarizer
        self.web_summary_threshold = web_summary_threshold
        self.kb_inline_threshold = kb_inline_threshold
        self.default_target_length_pages = default_target_length_pages

    @classmethod
    def from_settings(
        cls, summarizer: DocumentSummarizer, settings: Settings | None = None
    ) -> "ContextAggregator":
        settings = settings or get_settings()
        return cls(
            summarizer,
            web_summary_threshold=settings.WEB_SUMMARY_THRESHOLD,
            kb_inline_threshold=settings.KB_INLINE_THRESHOLD,
            default_target_length_pages=settings.DEFAULT_TARGET_LENGTH_PAGES,
        )

    def build_prompt(
        self, context: GenerationContext, on_progress: ProgressCallback | None = None
    ) -> AssembledPrompt:
        """
        Assemble the prompt for one generation call.

        Args:
            context: Everything the call may draw on
            on_progress: Optional milestone callback (message, percent)

        Returns:
            AssembledPrompt with the prompt text, the registry and any fresh summaries
        """
        notify(on_progress, "Building prompt...", 65)
        logger.info(
            f"Building {context.project_type} prompt for {context.project_name}: "
            f"{len(context.documents)} documents, {len(context.web_sources)} web sources, "
            f"{len(context.knowledge_base)} knowledge base files"
        )

        fresh: list[SummaryCacheUpdate] = []
        registry = ValidSourceRegistry.from_context(context)
        target = context.project_type

        parts: list[str] = [self._opening(context)]

        notify(on_progress, "Summarizing sources...", 68)

        # ==========================================================================
        # 1. Documents
        # ==========================================================================
        if context.documents:
            lines = ["DOCUMENT SUMMARIES:"]
            for doc in context.documents:
                summary = self._summary(doc, doc.filename, target, fresh)
                lines.append(f"\nDocument: {doc.filename}")
                lines.append(f"Summary: {summary.full_summary}")
                if summary.key_points:
                    lines.append(f"Key Points: {'; '.join(summary.key_points)}")
            parts.append("\n".join(lines))

        # ==========================================================================
        # 2. Web sources (short pages inline)
        # ==========================================================================
        if context.web_sources:
            lines = ["WEB SOURCES:"]
            for source in context.web_sources:
                lines.append(f"\nSource: {source.citation_label}")
                cached = source.reusable_summary(target)
                if cached is None and len(source.content) <= self.web_summary_threshold:
                    lines.append(f"Content: {source.content}")
                    continue
                summary = self._summary(source, source.title or source.url, target, fresh)
                lines.append(f"Summary: {summary.full_summary}")
                if summary.key_points:
                    lines.append(f"Key Points: {', '.join(summary.key_points)}")
            parts.append("\n".join(lines))

        # ==========================================================================
        # 3. Company profile
        # ==========================================================================
        if context.company_profile is not None:
            parts.append(_render_company(context.company_profile, context.project_type))

        # ==========================================================================
        # 4. Knowledge base
        # ==========================================================================
        knowledge = self._render_knowledge(context, fresh)
        if knowledge:
            parts.append(knowledge)

        # ==========================================================================
        # 5. Prior answers
        # ==========================================================================
        if context.chat_responses:
            parts.append(_render_chat_responses(context))
        if context.project_type == "RFI" and context.prior_questions:
            parts.append(_render_questions(context))

        parts.append(self._instructions(context, registry))

        prompt = "\n\n".join(parts)
        logger.info(
            f"Prompt built: {len(prompt)} chars, {len(registry)} valid sources, "
            f"{len(fresh)} fresh summaries"
        )
        return AssembledPrompt(prompt=prompt, registry=registry, fresh_summaries=fresh)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _summary(
        self,
        source: SourceBase,
        label: str,
        target: ProjectType,
        fresh: list[SummaryCacheUpdate],
    ) -> DocumentSummary:
        cached = source.reusable_summary(target)
        if cached is not None:
            logger.debug(f"Using cached summary for {label}")
            return cached

        summary = self.summarizer.summarize(source.content, label, target)
        fresh.append(
            SummaryCacheUpdate(
                source_kind=source.kind,
                identifier=source.identifier,
                target_type=target,
                summary=summary,
            )
        )
        return summary

    def _render_knowledge(
        self, context: GenerationContext, fresh: list[SummaryCacheUpdate]
    ) -> str:
        grouped = context.knowledge_by_category()
        blocks: list[str] = []

        for category in KNOWLEDGE_CATEGORIES:
            entries = [e for e in grouped.get(category.key, []) if e.content.strip()]
            if not entries:
                continue

            lines = [f"{category.heading}:"]
            for entry in entries[: category.max_items]:
                lines.append(f"\nFile: {entry.citation_label}")
                if category.inline_small and len(entry.content) < self.kb_inline_threshold:
                    lines.append(f"{category.content_label}: {entry.content}")
                    continue
                summary = self._summary(entry, entry.filename, context.project_type, fresh)
                lines.append(f"{category.content_label}: {summary.full_summary}")
                if category.with_key_points and summary.key_points:
                    lines.append(f"Key Points: {'; '.join(summary.key_points)}")
            blocks.append("\n".join(lines))

        if not blocks:
            return ""
        return "COMPANY KNOWLEDGE BASE:\n\n" + "\n\n".join(blocks)

    def _opening(self, context: GenerationContext) -> str:
        kind = "Information (RFI)" if context.project_type == "RFI" else "Proposal (RFP)"
        return (
            f"You are helping create a comprehensive response to a Request for {kind} "
            f"from {context.organization_name} regarding {context.project_name}.\n\n"
            f"Based on the following context, generate professional, detailed content "
            f"for each section of the response."
        )

    def _instructions(self, context: GenerationContext, registry: ValidSourceRegistry) -> str:
        project_type = context.project_type
        profile = context.company_profile
        company_name = profile.company_name if profile else None
        pages = context.target_length_pages or self.default_target_length_pages

        lines = [
            f"IMPORTANT: We are {company_name or 'the vendor'} RESPONDING TO an "
            f"{project_type} from {context.organization_name}.",
            f"We are NOT the buyer issuing the {project_type}; we are the vendor "
            f"preparing our response.",
            "",
            "CRITICAL COMPANY FACTS (USE THESE EXACTLY - DO NOT MAKE UP DIFFERENT NUMBERS):",
        ]
        if profile is not None:
            lines.extend(f"- {name}: {value}" for name, value in _company_facts(profile, project_type))
        else:
            lines.append("No company information provided")

        lines.append("")
        lines.append(f"Generate content for the following {project_type} RESPONSE sections:")
        lines.append("")
        for number, spec in enumerate(sections_for(project_type), start=1):
            lines.append(f"{number}. {spec.label}: {render_instruction(spec, company_name)}")
            lines.append("")

        lines.extend(
            [
                "Format your response as:",
                "SECTION_NAME: [content]",
                "SECTION_NAME: [content]",
                "etc.",
                "",
                f"TARGET LENGTH: approximately {pages} pages in total across all sections.",
                "",
                "CITATION REQUIREMENT:",
                "1. ONLY cite sources that actually exist in the provided context",
                "2. Valid sources you can cite from:",
            ]
        )
        if len(registry):
            lines.extend(f"   - {label}" for label in registry)
        else:
            lines.append("   (none)")
        lines.extend(
            [
                "3. Format citations as: [Source: exact name from the list above]",
                "4. DO NOT make up or invent source names",
                "5. DO NOT cite documents that are not in the list above",
                "6. If you cannot find a source for a claim, either don't make the claim "
                "or state it without a citation",
                f"7. When citing the company profile, use [Source: {COMPANY_PROFILE_SOURCE}]",
                "",
                ANTI_HALLUCINATION_RULES,
            ]
        )
        return "\n".join(lines)


def _company_facts(profile: CompanyProfile, project_type: ProjectType) -> list[tuple[str, str]]:
    facts = [
        ("Company Name", profile.company_name),
        ("Team Size", profile.team_size or _NOT_SPECIFIED),
        ("Years of Experience", profile.experience or _NOT_SPECIFIED),
        ("Description", profile.description or _NOT_SPECIFIED),
    ]
    if project_type == "RFP":
        facts.extend(
            [
                ("Services", profile.services or _NOT_SPECIFIED),
                ("Capabilities", profile.capabilities or _NOT_SPECIFIED),
                ("Differentiators", profile.differentiators or _NOT_SPECIFIED),
                ("Certifications", profile.certifications or _NOT_SPECIFIED),
            ]
        )
    return facts


def _render_company(profile: CompanyProfile, project_type: ProjectType) -> str:
    lines = ["OUR COMPANY INFO:", f"Company: {profile.company_name}"]
    if profile.description:
        lines.append(f"Description: {profile.description}")
    if profile.services:
        lines.append(f"\nServices Offered:\n{profile.services}")
    if profile.capabilities:
        lines.append(f"\nTechnical Capabilities:\n{profile.capabilities}")
    if project_type == "RFP":
        if profile.differentiators:
            lines.append(f"\nKey Differentiators:\n{profile.differentiators}")
        if profile.experience:
            lines.append(f"Experience: {profile.experience}")
        if profile.certifications:
            lines.append(f"\nCertifications & Partnerships:\n{profile.certifications}")
        if profile.team_size:
            lines.append(f"Team Size: {profile.team_size}")
    return "\n".join(lines)


def _render_chat_responses(context: GenerationContext) -> str:
    if context.project_type == "RFI":
        heading = "USER RESPONSES FROM WIZARD INTERVIEW:"
        closing = "IMPORTANT: Use these responses to make the response more targeted to their needs."
    else:
        heading = "STRATEGIC INSIGHTS FROM WIZARD INTERVIEW:"
        closing = "IMPORTANT: Use these strategic insights to strengthen our proposal."

    lines = [heading]
    for response in context.chat_responses:
        lines.append(f"\nQ: {response.question}")
        lines.append(f"A: {response.answer}")
    lines.append(f"\n{closing}")
    return "\n".join(lines)


def _render_questions(context: GenerationContext) -> str:
    grouped: dict[str, list[RfiQuestion]] = {}
    for question in context.prior_questions:
        grouped.setdefault(question.category or "General", []).append(question)

    lines = ["CUSTOM QUESTIONS TO INCLUDE:"]
    for category, questions in grouped.items():
        lines.append(f"\n{category}:")
        for question in questions:
            suffix = " (required)" if question.required else ""
            lines.append(f"- {question.question_text}{suffix}")
    return "\n".join(lines)
