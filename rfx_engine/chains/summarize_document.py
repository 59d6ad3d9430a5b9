"""Bounded document summarization.

Three tiers by input size:
- small (<= max_summary_size): no model call, text passed through verbatim
- single chunk (<= max_chunk_size): one labeled-field summarization call
- multi chunk: per-chunk summaries, then one consolidation call

Remote failures never abort a document; each tier degrades to local extraction.
"""

from collections.abc import Sequence

from rfx_engine.core.chunking import split_into_chunks
from rfx_engine.core.config import Settings, get_settings
from rfx_engine.core.errors import RateLimitedError, RemoteCallFailedError
from rfx_engine.core.llm import CompletionClient, ModelTier
from rfx_engine.core.logging import get_logger
from rfx_engine.core.schemas_summary import EXTRACTED_FIELD_LABELS, DocumentSummary, ProjectType
from rfx_engine.core.summary_parsing import local_summary, parse_summary_response, truncate

logger = get_logger(__name__)

# Raw text kept for a chunk whose summary call failed
FAILED_CHUNK_CHARS = 300

# Fields rendered by summarize_many (the ones local extraction can also find)
_MULTI_DOCUMENT_FIELDS = ("scope", "requirements", "timeline", "budget", "deliverables")

_RESPONSE_FORMAT = """Format your response as:
SUMMARY: [concise summary]
SCOPE: [scope information or "Not specified"]
REQUIREMENTS: [requirements or "Not specified"]
TIMELINE: [timeline info or "Not specified"]
BUDGET: [budget info or "Not specified"]
DELIVERABLES: [deliverables or "Not specified"]
TECHNICAL_SPECS: [technical details or "Not specified"]
EVALUATION: [evaluation criteria or "Not specified"]
KEY_POINTS:
- [key point 1]
- [key point 2]
(continue as needed)"""

SINGLE_CHUNK_PROMPT = """You are analyzing the document "{label}" for an {target_type} project.

Provide:
1. A concise summary (at most 500 words) capturing the most important information
2. The following details, where the document states them:
   - Scope of work
   - Requirements (technical and functional)
   - Timeline / schedule
   - Budget / pricing
   - Deliverables
   - Technical specifications
   - Evaluation criteria

{response_format}

Document content:
{content}"""

CHUNK_PROMPT = """Summarize part {index} of {total} of the document "{label}" for an {target_type} project.
Focus on scope, requirements, timeline, budget and deliverables.

Content:
{content}

Concise summary (at most 300 words):"""

CONSOLIDATION_PROMPT = """Below are summaries of consecutive parts of the document "{label}" for an {target_type} project.
Consolidate them into one final summary and extract the details listed in the format.

{response_format}

Part summaries:
{content}"""


class DocumentSummarizer:
    """Reduces arbitrarily large text to a bounded DocumentSummary."""

    def __init__(
        self,
        client: CompletionClient,
        *,
        max_summary_size: int = 2000,
        max_chunk_size: int = 15000,
        summary_max_tokens: int = 2000,
        chunk_summary_max_tokens: int = 500,
        temperature: float = 0.3,
        tier: ModelTier = ModelTier.FAST,
    ):
        if max_summary_size < 1 or max_chunk_size < 1:
            raise ValueError("max_summary_size and max_chunk_size must be positive")
        self.client = client
        self.max_summary_size = max_summary_size
        self.max_chunk_size = max_chunk_size
        self.summary_max_tokens = summary_max_tokens
        self.chunk_summary_max_tokens = chunk_summary_max_tokens
        self.temperature = temperature
        self.tier = tier

    @classmethod
    def from_settings(
        cls, client: CompletionClient, settings: Settings | None = None
    ) -> "DocumentSummarizer":
        settings = settings or get_settings()
        return cls(
            client,
            max_summary_size=settings.MAX_SUMMARY_SIZE,
            max_chunk_size=settings.MAX_CHUNK_SIZE,
            summary_max_tokens=settings.SUMMARY_MAX_TOKENS,
            chunk_summary_max_tokens=settings.CHUNK_SUMMARY_MAX_TOKENS,
            temperature=settings.SUMMARY_TEMPERATURE,
        )

    def summarize(self, text: str, label: str, target_type: ProjectType) -> DocumentSummary:
        """
        Summarize one source for one target document type.

        Args:
            text: Raw source text
            label: Filename or title, used in prompts and logs
            target_type: "RFI" or "RFP"; the prompts are type-specific

        Returns:
            DocumentSummary whose full_summary is at most max_summary_size chars
            whenever the input is larger than that
        """
        size = len(text)
        logger.info(f"Summarizing {label} ({size} chars) for {target_type}")

        if size <= self.max_summary_size:
            logger.debug(f"{label} is small enough, skipping summarization")
            return local_summary(text)

        if size <= self.max_chunk_size:
            return self._summarize_single(text, label, target_type)

        return self._summarize_chunks(text, label, target_type)

    def summarize_many(
        self, documents: Sequence[tuple[str, str]], target_type: ProjectType
    ) -> str:
        """
        Summarize several documents into one prompt-ready text block.

        Args:
            documents: (label, text) pairs, rendered in input order
            target_type: "RFI" or "RFP"

        Returns:
            One ``=== Document: <label> ===`` block per document
        """
        logger.info(f"Summarizing {len(documents)} documents for {target_type}")
        blocks: list[str] = []
        for label, text in documents:
            summary = self.summarize(text, label, target_type)
            lines = [f"=== Document: {label} ===", f"Summary: {summary.full_summary}"]
            fields = summary.extracted_fields
            for key in _MULTI_DOCUMENT_FIELDS:
                value = getattr(fields, key)
                if value:
                    lines.append(f"{EXTRACTED_FIELD_LABELS[key]}: {value}")
            if summary.key_points:
                lines.append("Key Points:")
                lines.extend(f"- {point}" for point in summary.key_points)
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks)

    # -------------------------------------------------------------------------
    # Tiers
    # -------------------------------------------------------------------------

    def _complete(self, prompt: str, max_tokens: int, label: str) -> str | None:
        """One summarization call; None if it failed or came back blank."""
        try:
            response = self.client.complete(
                prompt,
                max_tokens=max_tokens,
                temperature=self.temperature,
                tier=self.tier,
                label=label,
            )
        except (RemoteCallFailedError, RateLimitedError) as e:
            logger.warning(f"{label} failed: {e}")
            return None
        if not response.strip():
            logger.warning(f"{label} returned an empty response")
            return None
        return response

    def _summarize_single(self, text: str, label: str, target_type: ProjectType) -> DocumentSummary:
        prompt = SINGLE_CHUNK_PROMPT.format(
            label=label,
            target_type=target_type,
            response_format=_RESPONSE_FORMAT,
            content=text,
        )
        response = self._complete(prompt, self.summary_max_tokens, f"summarize:{label}")
        if response is None:
            logger.warning(f"Summarization of {label} failed, using local extraction")
            return local_summary(text, max_chars=self.max_summary_size)

        summary = parse_summary_response(response, len(text), self.max_summary_size)
        logger.info(
            f"Summarized {label}: {summary.summary_length} chars, "
            f"{len(summary.key_points)} key points"
        )
        return summary

    def _summarize_chunks(self, text: str, label: str, target_type: ProjectType) -> DocumentSummary:
        chunks = split_into_chunks(text, self.max_chunk_size)
        logger.info(f"{label} requires multi-chunk summarization ({len(chunks)} chunks)")

        # ==========================================================================
        # 1. Map: summarize each chunk, degrading per chunk
        # ==========================================================================
        chunk_summaries: list[str] = []
        for index, chunk in enumerate(chunks, start=1):
            prompt = CHUNK_PROMPT.format(
                index=index,
                total=len(chunks),
                label=label,
                target_type=target_type,
                content=chunk,
            )
            response = self._complete(
                prompt, self.chunk_summary_max_tokens, f"summarize:{label}:chunk{index}"
            )
            if response is None:
                logger.warning(f"Chunk {index}/{len(chunks)} of {label} failed, keeping raw text")
                response = truncate(chunk, FAILED_CHUNK_CHARS)
            chunk_summaries.append(response)

        combined = "\n\n".join(chunk_summaries)

        # ==========================================================================
        # 2. Reduce: consolidate into the labeled-field format
        # ==========================================================================
        prompt = CONSOLIDATION_PROMPT.format(
            label=label,
            target_type=target_type,
            response_format=_RESPONSE_FORMAT,
            content=combined,
        )
        response = self._complete(prompt, self.summary_max_tokens, f"summarize:{label}:consolidate")
        if response is None:
            logger.warning(f"Consolidation of {label} failed, using chunk summaries")
            return local_summary(combined, original_length=len(text), max_chars=self.max_summary_size)

        return parse_summary_response(response, len(text), self.max_summary_size)
