"""Split input text into API-sized chunks without breaking words.

Chunks are contiguous slices of the input: joining them in order gives back
the original text exactly, whitespace included. A token longer than the
limit has no word boundary to fall back to, so it is cut at the limit.
"""

from __future__ import annotations

import logging

from scienceio.config import MAX_CHARACTERS
from scienceio.errors import InvalidInputError
from scienceio.models import Chunk

logger = logging.getLogger(__name__)


def _last_whitespace(window: str) -> int:
    """Return the index of the last whitespace character in window, or -1."""
    for pos in range(len(window) - 1, -1, -1):
        if window[pos].isspace():
            return pos
    return -1


def _cuts_through_word(text: str, end: int) -> bool:
    """Check whether ending a chunk at end would split a word in two.

    Args:
        text: Full input text
        end: Exclusive end of the candidate window

    Returns:
        True if more text follows the window and neither the last character
        of the window nor the next character is whitespace
    """
    if end >= len(text):
        return False
    return not text[end - 1].isspace() and not text[end].isspace()


def segment(text: str, max_length: int = MAX_CHARACTERS) -> list[Chunk]:
    """Split text into chunks of at most max_length characters.

    Each step takes a window of up to max_length characters. If the window
    ends in the middle of a word it is trimmed back to its last whitespace
    character (inclusive). A window with no whitespace at all is emitted
    whole so that over-length tokens still make progress.

    Args:
        text: Text to split (must be non-empty)
        max_length: Maximum characters per chunk (default: MAX_CHARACTERS)

    Returns:
        Ordered list of chunks covering the whole text

    Raises:
        InvalidInputError: If text is empty or max_length is not a positive int
    """
    if not text:
        raise InvalidInputError()
    if isinstance(max_length, bool) or not isinstance(max_length, int) or max_length < 1:
        raise InvalidInputError(f"max_length must be a positive integer, got {max_length!r}")

    chunks: list[Chunk] = []
    cursor = 0

    while cursor < len(text):
        end = min(cursor + max_length, len(text))

        if _cuts_through_word(text, end):
            boundary = _last_whitespace(text[cursor:end])
            if boundary >= 0:
                end = cursor + boundary + 1
            else:
                logger.debug(
                    "No whitespace in window at offset %d, emitting %d chars unsplit",
                    cursor,
                    end - cursor,
                )

        chunks.append(Chunk(index=len(chunks), text=text[cursor:end], start=cursor))
        cursor = end

    logger.debug("Segmented %d chars into %d chunks", len(text), len(chunks))
    return chunks


def reconstruct(chunks: list[Chunk]) -> str:
    """Join chunks back into the text they were cut from."""
    return "".join(chunk.text for chunk in sorted(chunks, key=lambda c: c.index))
