"""Fixed-size sliding-window text chunking."""

from __future__ import annotations

from collections.abc import Iterator

from pydantic import BaseModel

MIN_CHUNK_LENGTH = 50


class Chunk(BaseModel):
    """A window of the source text and where it starts."""

    model_config = {"frozen": True}

    text: str
    source_offset: int

    @property
    def end_offset(self) -> int:
        return self.source_offset + len(self.text)


def iter_chunks(
    text: str,
    size: int = 1000,
    overlap: int = 100,
    *,
    min_length: int = MIN_CHUNK_LENGTH,
) -> Iterator[Chunk]:
    """Yield overlapping windows of *text* in document order.

    Parameters
    ----------
    text:
        Whitespace-normalised plain text.
    size:
        Window length in characters.
    overlap:
        Characters shared by consecutive windows.
    min_length:
        Windows of this length or shorter are dropped (usually only the
        trailing partial window).

    Raises
    ------
    ValueError
        Unless ``size > overlap >= 0``.
    """
    if not size > overlap >= 0:
        raise ValueError(f"Need size > overlap >= 0, got size={size}, overlap={overlap}")

    step = size - overlap
    start = 0
    while start < len(text):
        window = text[start : start + size]
        if len(window) > min_length:
            yield Chunk(text=window, source_offset=start)
        start += step


def split(
    text: str,
    size: int = 1000,
    overlap: int = 100,
    *,
    min_length: int = MIN_CHUNK_LENGTH,
) -> list[Chunk]:
    """Eager form of :func:`iter_chunks`."""
    return list(iter_chunks(text, size, overlap, min_length=min_length))
