"""Chat orchestrator — answer one question inside a session.

A turn runs in two phases:

1. **Prepare** (eager): validate the question, embed it, fetch the
   nearest passages, look up the session and compose the message.  Any
   failure here is raised to the caller before a single byte is sent.
2. **Generate**: with the session lock held, send history + message to the
   chat model, then record the completed turn.  In streaming mode this
   phase is a generator that yields fragments followed by exactly one
   terminal event, so a mid-stream failure becomes a
   :class:`StreamError` instead of an exception.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from pydantic import BaseModel

from ragstream.chat.prompts import compose_message, message_text, to_messages
from ragstream.errors import (
    ChatError,
    ChatErrorKind,
    EmbeddingError,
    GenerationError,
    StorageError,
    ValidationError,
)
from ragstream.retrieval.models import NO_CONTEXT_MESSAGE, Passage
from ragstream.retrieval.retriever import DEFAULT_K, SemanticRetriever

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel
    from langchain_core.messages import BaseMessage

    from ragstream.chat.session import Session, SessionManager
    from ragstream.embeddings import EmbeddingClient
    from ragstream.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "default_session"


# ── Results & stream events ───────────────────────────────────────────


class ChatAnswer(BaseModel):
    """A complete, non-streamed answer."""

    session_id: str
    answer: str
    passages: list[Passage] = []

    def to_response(self) -> dict[str, str]:
        return {"sessionId": self.session_id, "answer": self.answer}


@dataclass(frozen=True)
class AnswerFragment:
    text: str


@dataclass(frozen=True)
class StreamDone:
    """Terminal event: generation finished and the turn was recorded."""

    answer: str


@dataclass(frozen=True)
class StreamError:
    """Terminal event: generation failed after streaming had begun."""

    message: str


StreamEvent = Union[AnswerFragment, StreamDone, StreamError]


@dataclass(frozen=True)
class _PreparedTurn:
    session: Session
    question: str
    message: str
    passages: list[Passage]


# ── Orchestrator ──────────────────────────────────────────────────────


class ChatOrchestrator:
    """EmbeddingClient + VectorStore + SessionManager + chat model.

    Parameters
    ----------
    embedder:
        Embeds the question.
    store:
        Vector store searched for context.
    sessions:
        Session registry; the orchestrator is the only writer of history.
    llm:
        LangChain chat model (``invoke`` / ``stream``).
    k:
        Number of passages retrieved per question.
    no_context_message:
        Context sent to the model when the store returns nothing.
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        store: VectorStoreBase,
        sessions: SessionManager,
        llm: BaseChatModel,
        *,
        k: int = DEFAULT_K,
        no_context_message: str = NO_CONTEXT_MESSAGE,
        default_session_id: str = DEFAULT_SESSION_ID,
    ) -> None:
        self._retriever = SemanticRetriever(embedder, store, k=k)
        self._sessions = sessions
        self._llm = llm
        self.no_context_message = no_context_message
        self.default_session_id = default_session_id

    # -- public API -----------------------------------------------------------

    def answer(self, session_id: str | None, question: str | None) -> ChatAnswer:
        """Answer *question* in one piece.

        Raises
        ------
        ValidationError
            *question* is empty.
        ChatError
            Embedding, retrieval or generation failed.
        """
        turn = self._prepare(session_id, question)
        with turn.session.lock:
            messages = to_messages(turn.session.snapshot(), turn.message)
            try:
                text = self._generate(messages)
            except GenerationError as exc:
                logger.exception("Generation failed for session %s", turn.session.id)
                raise ChatError(ChatErrorKind.GENERATION_FAILED, f"Generation failed: {exc}") from exc
            turn.session.record_turn(turn.question, text)

        return ChatAnswer(session_id=turn.session.id, answer=text, passages=turn.passages)

    def answer_stream(self, session_id: str | None, question: str | None) -> Iterator[StreamEvent]:
        """Prepare the turn now and return an iterator over its stream events.

        Errors raised here (validation, embedding, storage) happen before
        streaming starts.  The returned iterator never raises for
        generation failures; it ends with :class:`StreamDone` or
        :class:`StreamError`.
        """
        turn = self._prepare(session_id, question)
        return self._generate_stream(turn)

    # -- internals ------------------------------------------------------------

    def _prepare(self, session_id: str | None, question: str | None) -> _PreparedTurn:
        if not question or not question.strip():
            raise ValidationError("A question is required.")

        try:
            retrieval = self._retriever.retrieve(question)
        except EmbeddingError as exc:
            raise ChatError(ChatErrorKind.EMBEDDING_FAILED, f"Could not embed the question: {exc}") from exc
        except StorageError as exc:
            raise ChatError(ChatErrorKind.STORAGE_FAILED, f"Vector search failed: {exc}") from exc

        if not retrieval:
            logger.info("No passages found; answering without grounding")

        session = self._sessions.get_or_create(session_id or self.default_session_id)
        message = compose_message(retrieval.as_context(self.no_context_message), question)
        return _PreparedTurn(
            session=session,
            question=question,
            message=message,
            passages=retrieval.passages,
        )

    def _generate(self, messages: list[BaseMessage]) -> str:
        """Call the chat model once; any failure becomes :class:`GenerationError`."""
        try:
            return message_text(self._llm.invoke(messages))
        except Exception as exc:
            raise GenerationError(str(exc) or type(exc).__name__) from exc

    def _generate_fragments(self, messages: list[BaseMessage]) -> Iterator[str]:
        """Yield non-empty text fragments from the model's stream.

        A failure before or between fragments is raised as
        :class:`GenerationError`.
        """
        try:
            for chunk in self._llm.stream(messages):
                text = message_text(chunk)
                if text:
                    yield text
        except Exception as exc:
            raise GenerationError(str(exc) or type(exc).__name__) from exc

    def _generate_stream(self, turn: _PreparedTurn) -> Iterator[StreamEvent]:
        with turn.session.lock:
            messages = to_messages(turn.session.snapshot(), turn.message)
            parts: list[str] = []
            try:
                for text in self._generate_fragments(messages):
                    parts.append(text)
                    yield AnswerFragment(text)
            except GenerationError as exc:
                logger.exception("Streaming generation failed for session %s", turn.session.id)
                yield StreamError(str(exc))
                return

            answer = "".join(parts)
            turn.session.record_turn(turn.question, answer)

        yield StreamDone(answer)
