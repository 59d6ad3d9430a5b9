"""Offline extraction and response parsing for document summaries.

Everything here is pure: no model calls. The local extractors are the whole
story for small documents and the fallback whenever a summarization call fails.
"""

import re

from rfx_engine.core.schemas_summary import DocumentSummary, ExtractedFields

MAX_KEY_POINTS = 10
MAX_FIELD_CHARS = 500
NOT_SPECIFIED = "not specified"

_BULLET_PATTERN = re.compile(r"^[-•*]\s+")
_NUMBERED_PATTERN = re.compile(r"^\d+\.\s+")

# Header-ish keyword, then everything up to the next competing header or the end.
_FIELD_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    (
        "scope",
        re.compile(
            r"(?:scope of work|project scope|scope)[\s:]*(.*?)"
            r"(?=\n(?:deliverables|requirements|timeline|budget)|\Z)",
            re.IGNORECASE | re.DOTALL,
        ),
    ),
    (
        "requirements",
        re.compile(
            r"(?:requirements|technical requirements|functional requirements)[\s:]*(.*?)"
            r"(?=\n(?:deliverables|scope|timeline|budget)|\Z)",
            re.IGNORECASE | re.DOTALL,
        ),
    ),
    (
        "timeline",
        re.compile(
            r"(?:timeline|schedule|project duration|deadlines?)[\s:]*(.*?)"
            r"(?=\n(?:deliverables|requirements|scope|budget)|\Z)",
            re.IGNORECASE | re.DOTALL,
        ),
    ),
    (
        "budget",
        re.compile(
            r"(?:budget|pricing|cost|financial)[\s:]*(.*?)"
            r"(?=\n(?:deliverables|requirements|scope|timeline)|\Z)",
            re.IGNORECASE | re.DOTALL,
        ),
    ),
    (
        "deliverables",
        re.compile(
            r"(?:deliverables|outputs|expected results)[\s:]*(.*?)"
            r"(?=\n(?:requirements|scope|timeline|budget)|\Z)",
            re.IGNORECASE | re.DOTALL,
        ),
    ),
]

# Labels in the model's summary response -> ExtractedFields keys
_RESPONSE_FIELD_LABELS: dict[str, str] = {
    "SCOPE": "scope",
    "REQUIREMENTS": "requirements",
    "TIMELINE": "timeline",
    "BUDGET": "budget",
    "DELIVERABLES": "deliverables",
    "TECHNICAL_SPECS": "technical_specs",
    "EVALUATION": "evaluation_criteria",
}
_RESPONSE_LABEL_PATTERN = re.compile(
    r"^\s*(SUMMARY|KEY_POINTS|" + "|".join(_RESPONSE_FIELD_LABELS) + r"):\s*(.*)$"
)


def truncate(text: str, limit: int, ellipsis: str = "...") -> str:
    """Cut text to at most ``limit`` chars, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    if limit <= len(ellipsis):
        return text[:limit]
    return text[: limit - len(ellipsis)] + ellipsis


def _list_item(line: str) -> str | None:
    """Text of a bullet or numbered list line, or None if the line is not a list item."""
    trimmed = line.strip()
    for pattern in (_BULLET_PATTERN, _NUMBERED_PATTERN):
        if pattern.match(trimmed):
            return pattern.sub("", trimmed, count=1).strip() or None
    return None


def extract_key_points(content: str, limit: int = MAX_KEY_POINTS) -> list[str]:
    """Bullet and numbered-list lines, markers stripped, first ``limit`` only."""
    points: list[str] = []
    for line in content.split("\n"):
        point = _list_item(line)
        if point:
            points.append(point)
        if len(points) >= limit:
            break
    return points


def quick_extract_fields(content: str) -> ExtractedFields:
    """Pull scope/requirements/timeline/budget/deliverables by header keyword."""
    data: dict[str, str] = {}
    for key, pattern in _FIELD_PATTERNS:
        match = pattern.search(content)
        if match and match.group(1).strip():
            data[key] = match.group(1).strip()[:MAX_FIELD_CHARS]
    return ExtractedFields(**data)


def local_summary(content: str, original_length: int | None = None, max_chars: int | None = None) -> DocumentSummary:
    """
    Build a summary without any model call.

    Args:
        content: Text to use as the summary body (and to extract from)
        original_length: Length of the source document; defaults to len(content)
        max_chars: Truncate the summary body to this many chars

    Returns:
        DocumentSummary with locally extracted key points and fields
    """
    full_summary = truncate(content, max_chars) if max_chars is not None else content
    return DocumentSummary(
        original_length=len(content) if original_length is None else original_length,
        summary_length=len(full_summary),
        key_points=extract_key_points(content),
        extracted_fields=quick_extract_fields(content),
        full_summary=full_summary,
    )


def parse_summary_response(response: str, original_length: int, max_summary_chars: int) -> DocumentSummary:
    """
    Parse a labeled summary response (SUMMARY:, SCOPE:, ..., KEY_POINTS:).

    Values may continue on following lines until the next label. Fields answered
    with "Not specified" are dropped. If no SUMMARY label is found, the start of
    the raw response is used as the summary.

    Args:
        response: Raw model output
        original_length: Length of the summarized document
        max_summary_chars: Cap for full_summary

    Returns:
        Parsed DocumentSummary
    """
    values: dict[str, list[str]] = {}
    key_points: list[str] = []
    current: str | None = None

    for line in response.split("\n"):
        match = _RESPONSE_LABEL_PATTERN.match(line)
        if match:
            current = match.group(1)
            if current != "KEY_POINTS":
                values[current] = [match.group(2)]
            continue

        if current == "KEY_POINTS":
            point = _list_item(line)
            if point:
                key_points.append(point)
        elif current is not None:
            values[current].append(line)

    fields: dict[str, str] = {}
    for label, key in _RESPONSE_FIELD_LABELS.items():
        value = "\n".join(values.get(label, [])).strip()
        if value and value.strip(" .").lower() != NOT_SPECIFIED:
            fields[key] = value

    summary = "\n".join(values.get("SUMMARY", [])).strip() or response.strip()
    summary = truncate(summary, max_summary_chars)

    return DocumentSummary(
        original_length=original_length,
        summary_length=len(summary),
        key_points=key_points,
        extracted_fields=ExtractedFields(**fields),
        full_summary=summary,
    )
