"""Domain models for stored vectors and retrieval results."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

NO_CONTEXT_MESSAGE = "No directly relevant information was found in the knowledge base for this question."
PASSAGE_SEPARATOR = "\n\n---\n\n"


class DistanceMetric(str, Enum):
    """Distance function used by a store (smaller = more similar)."""

    COSINE = "cosine"
    L2 = "l2"
    INNER_PRODUCT = "inner_product"


class EmbeddedChunk(BaseModel):
    """Text paired with its embedding, ready for persistence."""

    model_config = {"frozen": True}

    text: str
    vector: list[float]


class Passage(BaseModel):
    """One nearest-neighbour hit."""

    model_config = {"frozen": True}

    text: str
    distance: float


class RetrievalResult(BaseModel):
    """Passages for one question, ordered by ascending distance."""

    passages: list[Passage] = []

    def __bool__(self) -> bool:
        return bool(self.passages)

    @property
    def texts(self) -> list[str]:
        return [p.text for p in self.passages]

    def as_context(self, empty: str = NO_CONTEXT_MESSAGE) -> str:
        """Join passage texts for the prompt, or return *empty* when there are none."""
        if not self.passages:
            return empty
        return PASSAGE_SEPARATOR.join(self.texts)
