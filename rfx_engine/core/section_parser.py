"""Parser for labeled-section model output.

The generation prompt asks for ``SECTION_NAME: content`` blocks. Models drift
from that format in small ways (markdown headings, bold labels, numbering), so
the label pattern tolerates those decorations around an UPPER_SNAKE label.

A numbered line such as ``2. VOIP: hosted PBX`` is usually a list item inside a
section body, so a numbered label only opens a section when it is one of the
labels the caller expects.
"""

import re
from collections.abc import Collection

# Key used when the response contains no label at all
UNLABELED_SECTION_KEY = "unlabeled"

_LABEL_PATTERN = re.compile(
    r"^\s*(?:#+\s*)?(?:\*\*)?([A-Z][A-Z0-9_]+)(?:\*\*)?:(?:\*\*)?[ \t]*(.*)$"
)
_NUMBERED_LABEL_PATTERN = re.compile(
    r"^\s*(?:#+\s*)?\d+[.)]\s*(?:\*\*)?([A-Z][A-Z0-9_]+)(?:\*\*)?:(?:\*\*)?[ \t]*(.*)$"
)


def match_label(line: str, expected: Collection[str] = ()) -> tuple[str, str] | None:
    """Return (label, rest of line) if the line opens a section.

    ``expected`` holds the upper-case labels allowed behind a list number.
    """
    match = _LABEL_PATTERN.match(line)
    if match:
        return match.group(1), match.group(2)
    match = _NUMBERED_LABEL_PATTERN.match(line)
    if match and match.group(1) in expected:
        return match.group(1), match.group(2)
    return None


def is_labeled(text: str, expected: Collection[str] = ()) -> bool:
    """True if at least one line of text opens a labeled section."""
    return any(match_label(line, expected) for line in text.split("\n"))


def parse_labeled_sections(text: str, expected: Collection[str] = ()) -> dict[str, str]:
    """
    Split model output into sections keyed by lowercased label.

    Rules:
    - A line like ``EXECUTIVE_SUMMARY: ...`` starts a section; text after the
      colon is the first body line.
    - A numbered line like ``3. SCOPE_OF_WORK: ...`` starts a section only if
      its label is in ``expected``; otherwise it is body text.
    - Following lines accumulate until the next label line.
    - Text before the first label is ignored.
    - A repeated label replaces the earlier body (last wins).
    - A label with no body yields an empty string.
    - If no line is labeled, the whole stripped text is returned under
      ``UNLABELED_SECTION_KEY``.

    Args:
        text: Raw model output
        expected: Upper-case section labels the caller asked for

    Returns:
        Ordered mapping of section key to stripped body
    """
    sections: dict[str, str] = {}
    current: str | None = None
    body: list[str] = []

    for line in text.split("\n"):
        label = match_label(line, expected)
        if label:
            if current is not None:
                sections[current] = "\n".join(body).strip()
            current = label[0].lower()
            # Re-inserting moves a repeated key to its latest position
            sections.pop(current, None)
            body = [label[1]]
        elif current is not None:
            body.append(line)

    if current is None:
        return {UNLABELED_SECTION_KEY: text.strip()}

    sections[current] = "\n".join(body).strip()
    return sections
