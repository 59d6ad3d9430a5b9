"""Tests for RFI question suggestions."""

from rfx_engine.chains.generate_smart_questions import generate_smart_questions, parse_questions
from rfx_engine.chains.summarize_document import DocumentSummarizer
from rfx_engine.core.errors import RetriesExhaustedError
from rfx_engine.core.llm import ModelTier
from rfx_engine.core.schemas_generation import DocumentSource
from rfx_engine.core.schemas_summary import DocumentSummary
from tests.fakes.fake_completion_client import FakeCompletionClient

QUESTIONS_RESPONSE = """Here are your questions.

CATEGORY: Technical Capabilities
QUESTION: Do you support SIP trunking?
PRIORITY: 5

CATEGORY: Pricing & Commercial Terms
QUESTION: How is licensing priced?
PRIORITY: 2
"""


class TestParseQuestions:
    def test_parses_triples(self):
        questions = parse_questions(QUESTIONS_RESPONSE)

        assert [(q.category, q.question, q.priority) for q in questions] == [
            ("Technical Capabilities", "Do you support SIP trunking?", 5),
            ("Pricing & Commercial Terms", "How is licensing priced?", 2),
        ]

    def test_priority_defaults_and_clamps(self):
        text = "\n".join(
            [
                "CATEGORY: A", "QUESTION: one?", "PRIORITY: high",
                "CATEGORY: B", "QUESTION: two?", "PRIORITY: 9",
                "CATEGORY: C", "QUESTION: three?", "PRIORITY: 0",
                "CATEGORY: D", "QUESTION: four?", "PRIORITY:",
            ]
        )

        assert [q.priority for q in parse_questions(text)] == [3, 5, 1, 3]

    def test_incomplete_triples_skipped(self):
        text = "\n".join(
            [
                "CATEGORY: Orphan",
                "PRIORITY: 4",
                "QUESTION: no category?",
                "PRIORITY: 4",
                "  CATEGORY: Indented  ",
                "  QUESTION: still parsed?  ",
                "  PRIORITY: 4  ",
            ]
        )

        questions = parse_questions(text)

        assert [(q.category, q.question) for q in questions] == [("Indented", "still parsed?")]

    def test_no_questions(self):
        assert parse_questions("I cannot help with that.") == []


class TestGenerateSmartQuestions:
    def test_short_documents_inlined_long_ones_summarized(self):
        def responder(call):
            if call.tier == ModelTier.FAST:
                return "SUMMARY: Long spec summary."
            return QUESTIONS_RESPONSE

        client = FakeCompletionClient(responder=responder)
        documents = [
            DocumentSource(filename="note.txt", content="Short note"),
            DocumentSource(filename="spec.pdf", content="s" * 5000),
        ]

        result = generate_smart_questions(
            "Campus Phones", documents, client, industry="K-12",
            summarizer=DocumentSummarizer(client),
        )

        assert len(result.questions) == 2
        prompt_call = client.calls_for(ModelTier.PRIMARY)[0]
        assert prompt_call.label == "smart_questions"
        assert prompt_call.temperature == 0.5
        assert "Industry: K-12" in prompt_call.prompt
        assert "Document: note.txt\nContent: Short note" in prompt_call.prompt
        assert "Document: spec.pdf\nSummary: Long spec summary." in prompt_call.prompt
        assert len(client.calls_for(ModelTier.FAST)) == 1

        [update] = result.fresh_summaries
        assert update.identifier == "spec.pdf"
        assert update.target_type == "RFI"
        assert update.summary.full_summary == "Long spec summary."

    def test_cached_summary_reused(self):
        cached = DocumentSummary(
            original_length=5000, summary_length=14, full_summary="Cached summary"
        )
        client = FakeCompletionClient(responder=lambda call: QUESTIONS_RESPONSE)
        documents = [
            DocumentSource(
                filename="spec.pdf",
                content="s" * 5000,
                cached_summary=cached,
                cached_summary_target="RFI",
            )
        ]

        result = generate_smart_questions("Campus Phones", documents, client)

        assert client.calls_for(ModelTier.FAST) == []
        assert result.fresh_summaries == []
        assert "Summary: Cached summary" in client.calls[0].prompt

    def test_model_failure_returns_no_questions(self):
        """Summaries computed before the failure are still returned."""
        client = FakeCompletionClient(
            ["SUMMARY: Long spec summary.", RetriesExhaustedError("smart_questions", 3)]
        )
        documents = [DocumentSource(filename="spec.pdf", content="s" * 5000)]

        result = generate_smart_questions(
            "Campus Phones", documents, client, summarizer=DocumentSummarizer(client)
        )

        assert result.questions == []
        assert [u.identifier for u in result.fresh_summaries] == ["spec.pdf"]
