"""Tests for the three-tier document summarizer (completion client faked)."""

import pytest

from rfx_engine.chains.summarize_document import DocumentSummarizer
from rfx_engine.core.config import Settings
from rfx_engine.core.errors import RemoteCallFailedError, RetriesExhaustedError
from rfx_engine.core.llm import ModelTier
from tests.fakes.fake_completion_client import FakeCompletionClient

LABELED_RESPONSE = """SUMMARY: Hosted VoIP for four schools.
SCOPE: Replace legacy PBX
REQUIREMENTS: E911
TIMELINE: Not specified
BUDGET: $200k
DELIVERABLES: Phones and training
TECHNICAL_SPECS: SIP trunks
EVALUATION: Cost and experience
KEY_POINTS:
- Hosted
- Four sites
"""


def _document(length: int, line_length: int = 99) -> str:
    """Text of exactly ``length`` chars made of newline-separated lines."""
    lines: list[str] = []
    remaining = length
    while remaining > 0:
        size = min(line_length, remaining)
        lines.append("x" * size)
        remaining -= size + 1
    text = "\n".join(lines)
    return text[:length] if len(text) >= length else text + "y" * (length - len(text))


def _always_fail(call):
    raise RetriesExhaustedError(call.label or "call", 3)


class TestSmallDocuments:
    def test_500_char_document_passes_through(self):
        """Small inputs cost no remote call and are returned verbatim."""
        client = FakeCompletionClient()
        document = "Scope: " + "a" * 493
        assert len(document) == 500

        summary = DocumentSummarizer(client).summarize(document, "small.txt", "RFP")

        assert client.calls == []
        assert summary.full_summary == document
        assert summary.original_length == summary.summary_length == 500

    def test_threshold_is_inclusive(self):
        client = FakeCompletionClient()
        summary = DocumentSummarizer(client, max_summary_size=100).summarize("z" * 100, "edge", "RFI")

        assert client.calls == []
        assert summary.full_summary == "z" * 100


class TestSingleChunk:
    def test_parses_labeled_response(self):
        """One fast-tier call; the labeled response is parsed."""
        client = FakeCompletionClient([LABELED_RESPONSE])

        summary = DocumentSummarizer(client).summarize(_document(5000), "rfp.pdf", "RFP")

        assert len(client.calls) == 1
        call = client.calls[0]
        assert call.tier == ModelTier.FAST
        assert call.max_tokens == 2000
        assert call.temperature == 0.3
        assert '"rfp.pdf"' in call.prompt
        assert "RFP project" in call.prompt

        assert summary.full_summary == "Hosted VoIP for four schools."
        assert summary.original_length == 5000
        assert summary.extracted_fields.budget == "$200k"
        assert summary.extracted_fields.timeline is None
        assert summary.key_points == ("Hosted", "Four sites")

    def test_failure_falls_back_to_truncated_text(self):
        """A terminal call failure degrades to local extraction within the cap."""
        client = FakeCompletionClient([RemoteCallFailedError("auth failed", status_code=401)])
        document = _document(5000)

        summary = DocumentSummarizer(client).summarize(document, "rfp.pdf", "RFI")

        assert summary.summary_length <= 2000
        assert summary.full_summary == document[:1997] + "..."
        assert summary.original_length == 5000

    def test_blank_response_treated_as_failure(self):
        client = FakeCompletionClient(["   \n"])

        summary = DocumentSummarizer(client).summarize(_document(3000), "doc", "RFP")

        assert summary.full_summary
        assert summary.summary_length <= 2000


class TestMultiChunk:
    def test_two_chunks_plus_consolidation(self):
        """20000 chars at a 15000 budget: 2 chunk calls, then 1 consolidation call."""
        client = FakeCompletionClient(["first half summary", "second half summary", LABELED_RESPONSE])
        document = _document(20000)
        assert len(document) == 20000

        summary = DocumentSummarizer(client, max_chunk_size=15000).summarize(document, "big.pdf", "RFP")

        assert client.labels() == [
            "summarize:big.pdf:chunk1",
            "summarize:big.pdf:chunk2",
            "summarize:big.pdf:consolidate",
        ]
        assert [call.max_tokens for call in client.calls] == [500, 500, 2000]
        assert "part 1 of 2" in client.calls[0].prompt
        consolidation_prompt = client.calls[2].prompt
        assert "first half summary\n\nsecond half summary" in consolidation_prompt
        assert summary.full_summary == "Hosted VoIP for four schools."
        assert summary.original_length == 20000

    def test_consolidation_failure_still_yields_summary(self):
        """If the consolidation call fails, the chunk summaries are used."""
        client = FakeCompletionClient(
            ["first half summary", "second half summary", RetriesExhaustedError("consolidate", 3)]
        )

        summary = DocumentSummarizer(client).summarize(_document(20000), "big.pdf", "RFP")

        assert len(client.calls) == 3
        assert summary.full_summary == "first half summary\n\nsecond half summary"
        assert summary.summary_length == len(summary.full_summary)
        assert summary.original_length == 20000

    def test_failed_chunk_uses_truncated_raw_text(self):
        """A failed chunk contributes its raw text, cut short, instead of aborting."""
        client = FakeCompletionClient(
            [RemoteCallFailedError("server error"), "second half summary", LABELED_RESPONSE]
        )

        DocumentSummarizer(client).summarize(_document(20000, line_length=14000), "big.pdf", "RFI")

        consolidation_prompt = client.calls[2].prompt
        assert "x" * 297 + "..." in consolidation_prompt
        assert "x" * 301 not in consolidation_prompt
        assert "second half summary" in consolidation_prompt

    def test_everything_failing_is_still_bounded(self):
        client = FakeCompletionClient(responder=_always_fail)

        summary = DocumentSummarizer(client).summarize(_document(90000), "huge.pdf", "RFP")

        assert summary.full_summary
        assert summary.summary_length <= 2000


@pytest.mark.parametrize("size", [2001, 9000, 15000, 15001, 45000, 120000])
@pytest.mark.parametrize(
    "responder",
    [lambda call: "SUMMARY: " + "y" * 10000, lambda call: "z" * 8000, _always_fail],
    ids=["long-labeled", "long-unlabeled", "failing"],
)
def test_summary_never_exceeds_cap_above_small_threshold(size, responder):
    """Above the small threshold the summary is bounded whatever the model does."""
    client = FakeCompletionClient(responder=responder)

    summary = DocumentSummarizer(client).summarize(_document(size), "doc", "RFP")

    assert summary.summary_length <= 2000
    assert len(summary.full_summary) == summary.summary_length
    assert summary.original_length == size


def test_from_settings():
    settings = Settings(MAX_SUMMARY_SIZE=1000, MAX_CHUNK_SIZE=4000, SUMMARY_TEMPERATURE=0.2, _env_file=None)

    summarizer = DocumentSummarizer.from_settings(FakeCompletionClient(), settings)

    assert summarizer.max_summary_size == 1000
    assert summarizer.max_chunk_size == 4000
    assert summarizer.temperature == 0.2


def test_summarize_many_renders_blocks_in_order():
    """Each document gets a header block with fields and key points."""
    client = FakeCompletionClient()
    documents = [
        ("a.txt", "Scope: phones\n- point a"),
        ("b.txt", "Nothing structured here"),
    ]

    result = DocumentSummarizer(client).summarize_many(documents, "RFI")

    assert client.calls == []
    assert result.index("=== Document: a.txt ===") < result.index("=== Document: b.txt ===")
    assert "Summary: Scope: phones\n- point a" in result
    assert "Scope: phones\n- point a" in result
    assert "Key Points:\n- point a" in result
    assert "Summary: Nothing structured here" in result
