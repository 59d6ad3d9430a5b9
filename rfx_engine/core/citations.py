"""Citation validation against the closed set of known sources.

Generated text cites sources as ``[Source: <label>]``. Every marker is checked
against the ``ValidSourceRegistry`` built from the same generation context; a
marker that cannot be resolved is deleted. Runs of whitespace are collapsed
afterwards.

A cited label resolves when:
1. it equals a registry entry, or
2. both it and a registry entry carry a ``(Knowledge Base: ...)`` suffix and
   their filename parts match, or
3. it equals the part of a registry entry before its first ``(``.

Rule 2 accepts a knowledge base file cited under the wrong category.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass

from rfx_engine.core.logging import get_logger

logger = get_logger(__name__)

CITATION_PATTERN = re.compile(r"\[Source:\s*([^\]]+)\]")
_KB_MARKER = "Knowledge Base:"
_WHITESPACE = re.compile(r"\s+")


@dataclass
class CitationCheck:
    """Cleaned text and how many markers were removed from it."""

    text: str
    removed: int = 0


def _normalize(label: str) -> str:
    return _WHITESPACE.sub(" ", label).strip()


def _base_name(label: str) -> str:
    return label.split("(")[0].strip()


def is_valid_citation(cited: str, registry: Iterable[str]) -> bool:
    """Whether a cited label resolves to a registry entry.

    Whitespace runs are compared as single spaces on both sides, since section
    text is collapsed before its markers are checked.
    """
    cited = _normalize(cited)
    cited_is_kb = _KB_MARKER in cited
    for entry in map(_normalize, registry):
        if entry == cited:
            return True
        if cited_is_kb and _KB_MARKER in entry:
            if _base_name(cited) == _base_name(entry):
                return True
            continue
        if cited == _base_name(entry):
            return True
    return False


def validate_citations(text: str, registry: Iterable[str]) -> CitationCheck:
    """
    Remove unresolvable citation markers from one section.

    Deleting a marker can join fragments into a new marker (nested or split
    markers in malformed output), so removal repeats until a pass removes
    nothing. The returned text therefore contains only resolvable markers.

    Args:
        text: Section body
        registry: Valid citation labels for this generation call

    Returns:
        CitationCheck with the cleaned text and the number of removed markers
    """
    labels = tuple(registry)
    removed = 0

    def _drop_invalid(match: re.Match[str]) -> str:
        nonlocal removed
        if is_valid_citation(match.group(1), labels):
            return match.group(0)
        removed += 1
        logger.warning(f"Invalid citation removed: {match.group(0)}")
        return ""

    cleaned = _WHITESPACE.sub(" ", text).strip()
    while True:
        before = removed
        cleaned = _WHITESPACE.sub(" ", CITATION_PATTERN.sub(_drop_invalid, cleaned)).strip()
        if removed == before:
            break

    if removed:
        logger.info(f"Removed {removed} invalid citation(s)")
    return CitationCheck(text=cleaned, removed=removed)
