"""LLM initialisation — single place to swap providers.

Supports two providers:

1. **OpenAI** (default) — set ``OPENAI_API_KEY``.  Setting ``LLM_BASE_URL``
   points the client at any OpenAI-compatible server (vLLM, Ollama, ...).
2. **Google Gemini** — set ``LLM_PROVIDER=google`` and ``GOOGLE_API_KEY``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ragstream.config import Settings, settings

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

logger = logging.getLogger(__name__)


def get_llm(config: Settings = settings) -> BaseChatModel:
    """Return the configured chat model."""
    if config.llm_provider == "google":
        from langchain_google_genai import ChatGoogleGenerativeAI

        logger.info("Using Gemini chat model %s", config.llm_model_name)
        return ChatGoogleGenerativeAI(
            model=config.llm_model_name,
            temperature=config.llm_temperature,
            google_api_key=config.google_api_key or None,
            timeout=config.request_timeout,
        )

    from langchain_openai import ChatOpenAI

    kwargs: dict = {
        "model": config.llm_model_name,
        "temperature": config.llm_temperature,
        "timeout": config.request_timeout,
    }
    if config.llm_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", config.llm_base_url)
        kwargs["base_url"] = config.llm_base_url
        # Self-hosted servers don't need a real key; the client requires a non-empty value.
        kwargs["api_key"] = config.openai_api_key or "EMPTY"
    else:
        kwargs["api_key"] = config.openai_api_key or None
    return ChatOpenAI(**kwargs)
