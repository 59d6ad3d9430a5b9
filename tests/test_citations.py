"""Tests for closed-world citation validation."""

import logging

import pytest

from rfx_engine.core.citations import CITATION_PATTERN, is_valid_citation, validate_citations

REGISTRY = (
    "spec.pdf",
    "Vendor page (https://vendor.test)",
    "win.docx (Knowledge Base: won_proposals)",
    "Company Settings",
)


def _remaining_labels(text: str) -> list[str]:
    return [match.group(1).strip() for match in CITATION_PATTERN.finditer(text)]


class TestIsValidCitation:
    """The three resolution rules."""

    def test_exact_match(self):
        assert is_valid_citation("spec.pdf", REGISTRY)
        assert is_valid_citation("Vendor page (https://vendor.test)", REGISTRY)
        assert is_valid_citation("  Company Settings ", REGISTRY)

    def test_filename_part_of_registry_entry(self):
        """Citing only the part before the parenthetical resolves."""
        assert is_valid_citation("win.docx", REGISTRY)
        assert is_valid_citation("Vendor page", REGISTRY)

    def test_knowledge_base_file_under_wrong_category_is_accepted(self):
        """Known leniency: only the filename is compared between two KB labels."""
        assert is_valid_citation("win.docx (Knowledge Base: legal)", REGISTRY)

    def test_unknown_knowledge_base_file(self):
        assert not is_valid_citation("other.docx (Knowledge Base: won_proposals)", REGISTRY)

    def test_invented_source(self):
        assert not is_valid_citation("invented.pdf", REGISTRY)
        assert not is_valid_citation("spec.pdf (page 4)", REGISTRY)

    def test_empty_registry(self):
        assert not is_valid_citation("spec.pdf", ())


class TestValidateCitations:
    """Removal, counting and whitespace cleanup."""

    def test_removes_only_the_invented_citation(self):
        result = validate_citations(
            "We did X [Source: spec.pdf] and Y [Source: invented.pdf]", ("spec.pdf",)
        )

        assert result.text == "We did X [Source: spec.pdf] and Y"
        assert result.removed == 1

    def test_valid_text_only_has_whitespace_collapsed(self):
        result = validate_citations("Line one [Source: spec.pdf]\n\nLine   two", REGISTRY)

        assert result.text == "Line one [Source: spec.pdf] Line two"
        assert result.removed == 0

    def test_label_with_whitespace_run_is_kept(self):
        """A copied label survives the whitespace collapse of the section text."""
        registry = ("Acme  | Home (https://acme.test)",)

        result = validate_citations("Claim [Source: Acme  | Home (https://acme.test)] end", registry)

        assert result.text == "Claim [Source: Acme | Home (https://acme.test)] end"
        assert result.removed == 0

    def test_base_name_with_whitespace_run(self):
        registry = ("Acme\t| Home (https://acme.test)", "big  plan.xlsx (Knowledge Base: sow)")

        assert is_valid_citation("Acme | Home", registry)
        assert is_valid_citation("big plan.xlsx (Knowledge Base: legal)", registry)
        assert not is_valid_citation("Acme Home", registry)

    def test_counts_every_removed_marker(self):
        text = "A [Source: a.pdf] B [Source: b.pdf] C [Source:spec.pdf] D [Source: a.pdf]"
        result = validate_citations(text, REGISTRY)

        assert result.text == "A B C [Source:spec.pdf] D"
        assert result.removed == 3

    def test_removal_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="rfx_engine.core.citations"):
            validate_citations("Claim [Source: ghost.pdf]", REGISTRY)

        assert "[Source: ghost.pdf]" in caplog.text

    def test_nested_markers_cannot_smuggle_a_citation(self):
        """Deleting an inner marker must not leave a new unresolvable one behind."""
        text = "Claim [Sou[Source: ghost.pdf]rce: invented.pdf] end"
        result = validate_citations(text, REGISTRY)

        assert _remaining_labels(result.text) == []
        assert result.removed == 2

    def test_marker_containing_a_marker(self):
        text = "Claim [Source: spec.pdf [Source: spec.pdf] tail"
        result = validate_citations(text, REGISTRY)

        assert all(is_valid_citation(label, REGISTRY) for label in _remaining_labels(result.text))

    @pytest.mark.parametrize(
        "text",
        [
            "[Source: ]",
            "[Source:\n spec.pdf]",
            "[Source: [Source: [Source: x]]]",
            "[[Source: spec.pdf]] [Source: win.docx (Knowledge Base: sow)] [Source: nope]",
            "[Source: Vendor page (https://vendor.test)] [Source: Vendor page (https://other.test)]",
        ],
    )
    def test_everything_left_resolves(self, text):
        """Whatever the input, every remaining marker resolves against the registry."""
        result = validate_citations(text, REGISTRY)

        for label in _remaining_labels(result.text):
            assert is_valid_citation(label, REGISTRY)
