"""Tests for labeled-section parsing."""

from rfx_engine.core.section_parser import (
    UNLABELED_SECTION_KEY,
    is_labeled,
    match_label,
    parse_labeled_sections,
)


class TestParseLabeledSections:
    """Single-pass label scanner."""

    def test_basic_sections(self):
        """Bodies run until the next label and keys are lowercased."""
        text = "EXECUTIVE_SUMMARY: We are pleased.\nMore detail.\nSCOPE_OF_WORK: Install phones."

        assert parse_labeled_sections(text) == {
            "executive_summary": "We are pleased.\nMore detail.",
            "scope_of_work": "Install phones.",
        }

    def test_preamble_is_ignored(self):
        """Text before the first label is dropped."""
        text = "Here is your draft:\n\nINTRODUCTION: Hello"
        assert parse_labeled_sections(text) == {"introduction": "Hello"}

    def test_repeated_label_last_wins(self):
        """A label seen twice keeps the later body."""
        text = "INTRODUCTION: first\nNEXT_STEPS: call us\nINTRODUCTION: second"
        sections = parse_labeled_sections(text)

        assert sections["introduction"] == "second"
        assert sections["next_steps"] == "call us"
        assert list(sections) == ["next_steps", "introduction"]

    def test_label_only_line_gives_empty_body(self):
        """A label with nothing after it yields an empty section."""
        text = "INTRODUCTION:\nNEXT_STEPS: call us"
        assert parse_labeled_sections(text) == {"introduction": "", "next_steps": "call us"}

    def test_body_on_following_lines(self):
        """Content may start on the line after the label."""
        text = "PRICING_STRUCTURE:\n- Per user\n- Per site\n"
        assert parse_labeled_sections(text) == {"pricing_structure": "- Per user\n- Per site"}

    def test_missing_labels_fall_back_to_single_section(self):
        """Unlabeled output becomes one section."""
        text = "  The model ignored the format.\nSecond line.  "
        assert parse_labeled_sections(text) == {UNLABELED_SECTION_KEY: "The model ignored the format.\nSecond line."}

    def test_markdown_decorated_labels(self):
        """Headings, numbering and bold around an expected label are tolerated."""
        text = "## 1. **INTRODUCTION:** Hello\n**NEXT_STEPS**: Call\n2) EVALUATION_CRITERIA: Cost"
        expected = {"INTRODUCTION", "NEXT_STEPS", "EVALUATION_CRITERIA"}

        assert parse_labeled_sections(text, expected) == {
            "introduction": "Hello",
            "next_steps": "Call",
            "evaluation_criteria": "Cost",
        }

    def test_numbered_list_items_stay_in_body(self):
        """Numbered acronym lines inside a body do not open sections."""
        text = (
            "SCOPE_OF_WORK: We will deliver:\n"
            "1. SIP: trunk migration\n"
            "2. VOIP: hosted PBX\n"
            "PRICING_STRUCTURE: tbd"
        )

        sections = parse_labeled_sections(text, {"SCOPE_OF_WORK", "PRICING_STRUCTURE"})

        assert list(sections) == ["scope_of_work", "pricing_structure"]
        assert sections["scope_of_work"] == (
            "We will deliver:\n1. SIP: trunk migration\n2. VOIP: hosted PBX"
        )

    def test_numbered_label_needs_to_be_expected(self):
        text = "INTRODUCTION: Hello\n3. NEXT_STEPS: Call"

        assert parse_labeled_sections(text) == {"introduction": "Hello\n3. NEXT_STEPS: Call"}
        assert parse_labeled_sections(text, {"NEXT_STEPS"}) == {
            "introduction": "Hello",
            "next_steps": "Call",
        }

    def test_mixed_case_is_not_a_label(self):
        """Only UPPER_SNAKE labels open sections."""
        text = "INTRODUCTION: Note: this is body text.\nPlease note: still body."
        assert parse_labeled_sections(text) == {
            "introduction": "Note: this is body text.\nPlease note: still body."
        }


def test_match_label():
    assert match_label("TIMELINE_AND_MILESTONES: Phase 1") == ("TIMELINE_AND_MILESTONES", "Phase 1")
    assert match_label("A: single letter") is None
    assert match_label("Timeline: Phase 1") is None
    assert match_label("1. SIP: trunks") is None
    assert match_label("1. SIP: trunks", {"SIP"}) == ("SIP", "trunks")


def test_is_labeled():
    assert is_labeled("intro\nNEXT_STEPS: go")
    assert not is_labeled("no labels here")
