"""Embedding client shared by the ingestion and query paths."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ragstream.config import Settings, settings
from ragstream.errors import DimensionMismatchError, EmbeddingError

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


def get_embedding_function(config: Settings = settings) -> Embeddings:
    """Return the configured LangChain embedding model.

    Provider packages are imported lazily so that only the selected one
    needs to be installed and loaded.
    """
    if config.embedding_provider == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings

        return HuggingFaceEmbeddings(model_name=config.embedding_model)

    if config.embedding_provider == "google":
        from langchain_google_genai import GoogleGenerativeAIEmbeddings

        return GoogleGenerativeAIEmbeddings(
            model=config.embedding_model,
            google_api_key=config.google_api_key or None,
        )

    from langchain_openai import OpenAIEmbeddings

    kwargs: dict = {"model": config.embedding_model, "dimensions": config.embedding_dim}
    if config.llm_base_url:
        kwargs["base_url"] = config.llm_base_url
    kwargs["api_key"] = config.openai_api_key or "EMPTY"
    return OpenAIEmbeddings(**kwargs)


class EmbeddingClient:
    """Turn text into a fixed-dimension vector via a remote model.

    Parameters
    ----------
    model:
        Any LangChain ``Embeddings`` implementation.
    dimension:
        Expected vector length.  ``None`` disables the check.

    No retry happens here; pacing and skip-on-failure belong to the caller.
    """

    def __init__(self, model: Embeddings, *, dimension: int | None = None) -> None:
        self._model = model
        self.dimension = dimension

    @classmethod
    def from_settings(cls, config: Settings = settings) -> EmbeddingClient:
        return cls(get_embedding_function(config), dimension=config.embedding_dim)

    def embed(self, text: str) -> list[float]:
        """Embed *text*.

        Raises
        ------
        EmbeddingError
            The remote call failed or the response was not a vector.
        DimensionMismatchError
            The vector length differs from :attr:`dimension`.
        """
        try:
            raw = self._model.embed_query(text)
        except Exception as exc:
            raise EmbeddingError(f"Embedding request failed: {exc}") from exc

        try:
            vector = [float(v) for v in raw]
        except (TypeError, ValueError) as exc:
            raise EmbeddingError(f"Malformed embedding response: {exc}") from exc
        if not vector:
            raise EmbeddingError("Embedding response was empty")

        if self.dimension is not None and len(vector) != self.dimension:
            raise DimensionMismatchError(self.dimension, len(vector))
        return vector
