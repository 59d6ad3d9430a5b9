"""Line-respecting text chunking for map-reduce summarization."""

from dataclasses import dataclass, field


@dataclass
class ChunkPlan:
    """Chunks plus the separators that were removed between them.

    ``separators`` has one more entry than ``chunks``: ``separators[0]`` precedes
    the first chunk, ``separators[i]`` sits between chunk ``i-1`` and chunk ``i``,
    and ``separators[-1]`` follows the last chunk. A separator is ``""`` inside a
    hard-split line, ``"\\n"`` at an ordinary line break, and several newlines
    where blank lines fell on a chunk boundary.
    """

    chunks: list[str] = field(default_factory=list)
    separators: list[str] = field(default_factory=lambda: [""])

    def join(self) -> str:
        """Reassemble the original text."""
        parts = [self.separators[0]]
        for chunk, sep in zip(self.chunks, self.separators[1:]):
            parts.append(chunk)
            parts.append(sep)
        return "".join(parts)


def split_into_chunks(text: str, max_chunk_chars: int) -> list[str]:
    """
    Split text into chunks of whole lines bounded by a character budget.

    Lines are accumulated greedily; a new chunk starts as soon as appending the
    next line (plus its newline) would exceed the budget. A line longer than the
    budget is hard-split into budget-sized pieces, so every chunk fits the budget.

    Args:
        text: Text to split
        max_chunk_chars: Maximum characters per chunk

    Returns:
        Ordered list of non-empty chunk strings

    Raises:
        ValueError: If max_chunk_chars < 1
    """
    return plan_chunks(text, max_chunk_chars).chunks


def plan_chunks(text: str, max_chunk_chars: int) -> ChunkPlan:
    """Split like ``split_into_chunks`` and keep what is needed to rebuild the text."""
    if max_chunk_chars < 1:
        raise ValueError(f"max_chunk_chars must be positive, got {max_chunk_chars}")

    plan = ChunkPlan()
    if not text:
        return plan

    # pieces: (content, joiner to the next piece)
    pieces: list[tuple[str, str]] = []
    current: str | None = None

    for line in text.split("\n"):
        if current is not None and len(current) + 1 + len(line) <= max_chunk_chars:
            current = f"{current}\n{line}"
            continue

        if current is not None:
            pieces.append((current, "\n"))

        while len(line) > max_chunk_chars:
            pieces.append((line[:max_chunk_chars], ""))
            line = line[max_chunk_chars:]
        current = line

    if current is not None:
        pieces.append((current, ""))

    # A blank line that lands alone on a boundary would be an empty chunk;
    # fold it into the surrounding separator instead.
    pending = ""
    for content, joiner in pieces:
        if not content:
            pending += joiner
            continue
        if plan.chunks:
            plan.separators.append(pending)
        else:
            plan.separators[0] = pending
        plan.chunks.append(content)
        pending = joiner
    if plan.chunks:
        plan.separators.append(pending)
    else:
        plan.separators[0] = pending

    return plan
