"""LLM chain for suggesting RFI questions from a project's documents."""

import re
from collections.abc import Sequence

from rfx_engine.chains.summarize_document import DocumentSummarizer
from rfx_engine.core.errors import RateLimitedError, RemoteCallFailedError
from rfx_engine.core.llm import CompletionClient, ModelTier
from rfx_engine.core.logging import get_logger
from rfx_engine.core.schemas_generation import (
    DocumentSource,
    SmartQuestion,
    SmartQuestionSet,
    SummaryCacheUpdate,
)

logger = get_logger(__name__)

# Documents longer than this are summarized before going into the prompt
INLINE_DOCUMENT_CHARS = 1000
DEFAULT_PRIORITY = 3

_PRIORITY_PATTERN = re.compile(r"\d+")

INSTRUCTIONS = """Generate 15-20 intelligent questions that will help evaluate vendors for this project. Categories should include:
- Company Background & Experience
- Technical Capabilities
- Implementation Approach
- Support & Maintenance
- Pricing & Commercial Terms
- Security & Compliance
- References & Case Studies

Format each question as:
CATEGORY: [category name]
QUESTION: [question text]
PRIORITY: [1-5, where 5 is highest]

Make questions specific to the context and avoid generic questions."""


def _parse_priority(value: str) -> int:
    match = _PRIORITY_PATTERN.search(value)
    if not match:
        return DEFAULT_PRIORITY
    return min(5, max(1, int(match.group(0))))


def parse_questions(text: str) -> list[SmartQuestion]:
    """
    Parse CATEGORY / QUESTION / PRIORITY triples.

    A question is emitted when its PRIORITY line is reached and both category
    and question were seen; state then resets for the next triple.
    """
    questions: list[SmartQuestion] = []
    category = ""
    question = ""

    for line in text.split("\n"):
        line = line.strip()
        if line.startswith("CATEGORY:"):
            category = line[len("CATEGORY:"):].strip()
        elif line.startswith("QUESTION:"):
            question = line[len("QUESTION:"):].strip()
        elif line.startswith("PRIORITY:"):
            if category and question:
                questions.append(
                    SmartQuestion(
                        question=question,
                        category=category,
                        priority=_parse_priority(line[len("PRIORITY:"):]),
                    )
                )
            category = ""
            question = ""

    return questions


def generate_smart_questions(
    project_name: str,
    documents: Sequence[DocumentSource],
    client: CompletionClient,
    industry: str | None = None,
    summarizer: DocumentSummarizer | None = None,
) -> SmartQuestionSet:
    """
    Suggest questions for an RFI.

    Args:
        project_name: Project the RFI is about
        documents: Uploaded project documents
        client: Completion client (primary tier is used)
        industry: Optional industry hint
        summarizer: Summarizer for long documents; built from settings when omitted

    Returns:
        SmartQuestionSet with the parsed questions (empty if the model call
        fails) and any summaries computed here, for the caller to persist
    """
    summarizer = summarizer or DocumentSummarizer.from_settings(client)
    fresh: list[SummaryCacheUpdate] = []

    parts = [f"Generate smart, relevant questions for an RFI about {project_name}."]
    if industry:
        parts.append(f"Industry: {industry}")

    if documents:
        blocks: list[str] = []
        for doc in documents:
            if len(doc.content) <= INLINE_DOCUMENT_CHARS:
                blocks.append(f"Document: {doc.filename}\nContent: {doc.content}")
                continue
            summary = doc.reusable_summary("RFI")
            if summary is None:
                summary = summarizer.summarize(doc.content, doc.filename, "RFI")
                fresh.append(
                    SummaryCacheUpdate(
                        source_kind=doc.kind,
                        identifier=doc.identifier,
                        target_type="RFI",
                        summary=summary,
                    )
                )
            blocks.append(f"Document: {doc.filename}\nSummary: {summary.full_summary}")
        parts.append("Context from uploaded documents:\n" + "\n\n".join(blocks))

    parts.append(INSTRUCTIONS)
    prompt = "\n\n".join(parts)

    try:
        response = client.complete(
            prompt,
            max_tokens=2000,
            temperature=0.5,
            tier=ModelTier.PRIMARY,
            label="smart_questions",
        )
    except (RemoteCallFailedError, RateLimitedError) as e:
        logger.error(f"Smart question generation failed for {project_name}: {e}")
        return SmartQuestionSet(fresh_summaries=fresh)

    questions = parse_questions(response)
    logger.info(f"Generated {len(questions)} questions for {project_name}")
    return SmartQuestionSet(questions=questions, fresh_summaries=fresh)
