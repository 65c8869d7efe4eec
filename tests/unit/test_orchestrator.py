"""Unit tests for the chat orchestrator (whole and streamed answers)."""

from __future__ import annotations

import logging
import threading
from unittest.mock import MagicMock

import pytest
from fakes import DIMENSION, KeywordEmbeddings, failing_stream, make_llm

from ragstream.chat.orchestrator import (
    AnswerFragment,
    ChatOrchestrator,
    StreamDone,
    StreamError,
)
from ragstream.chat.prompts import CONTEXT_LABEL, QUESTION_LABEL
from ragstream.chat.session import DEFAULT_PREAMBLE, SessionManager, Turn
from ragstream.embeddings import EmbeddingClient
from ragstream.errors import ChatError, ChatErrorKind, GenerationError, StorageError, ValidationError
from ragstream.retrieval.memory_store import InMemoryVectorStore
from ragstream.retrieval.models import NO_CONTEXT_MESSAGE


class _BrokenStore(InMemoryVectorStore):
    def _nearest(self, vector, k):
        raise StorageError("connection refused")


@pytest.fixture()
def filled_store(store: InMemoryVectorStore) -> InMemoryVectorStore:
    store.insert("alpha facts", [1.0, 0.0, 0.0, 1.0])
    store.insert("beta facts", [0.0, 1.0, 0.0, 1.0])
    store.insert("gamma facts", [0.0, 0.0, 1.0, 1.0])
    return store


def _sent_message(llm: MagicMock, method: str = "invoke") -> str:
    messages = getattr(llm, method).call_args.args[0]
    return messages[-1].content


# ── Non-streaming ─────────────────────────────────────────────────────


class TestAnswer:
    def test_answer_records_turn(
        self, orchestrator: ChatOrchestrator, sessions: SessionManager, filled_store: InMemoryVectorStore
    ) -> None:
        result = orchestrator.answer("s1", "Tell me about beta")
        assert result.answer == "The answer is beta."
        assert result.to_response() == {"sessionId": "s1", "answer": "The answer is beta."}
        history = sessions.get_or_create("s1").history
        assert history[len(DEFAULT_PREAMBLE):] == [
            Turn("user", "Tell me about beta"),
            Turn("model", "The answer is beta."),
        ]

    def test_message_carries_context_and_question(
        self, orchestrator: ChatOrchestrator, llm: MagicMock, filled_store: InMemoryVectorStore
    ) -> None:
        orchestrator.answer("s1", "beta?")
        message = _sent_message(llm)
        assert message.startswith(f"{CONTEXT_LABEL}:\nbeta facts")
        assert message.endswith(f"{QUESTION_LABEL}:\nbeta?")

    def test_history_precedes_message(
        self, orchestrator: ChatOrchestrator, llm: MagicMock, filled_store: InMemoryVectorStore
    ) -> None:
        orchestrator.answer("s1", "first")
        orchestrator.answer("s1", "second")
        messages = llm.invoke.call_args.args[0]
        assert len(messages) == len(DEFAULT_PREAMBLE) + 2 + 1
        assert messages[len(DEFAULT_PREAMBLE)].content == "first"

    def test_empty_store_uses_no_context_sentinel(self, orchestrator: ChatOrchestrator, llm: MagicMock) -> None:
        orchestrator.answer("s1", "anything")
        assert NO_CONTEXT_MESSAGE in _sent_message(llm)

    def test_missing_session_id_uses_default(self, orchestrator: ChatOrchestrator, sessions: SessionManager) -> None:
        assert orchestrator.answer(None, "hello").session_id == "default_session"
        assert "default_session" in sessions

    @pytest.mark.parametrize("question", ["", "   ", None])
    def test_blank_question_rejected(
        self, orchestrator: ChatOrchestrator, embeddings: KeywordEmbeddings, question: str | None
    ) -> None:
        with pytest.raises(ValidationError):
            orchestrator.answer("s1", question)
        assert embeddings.calls == []

    def test_embedding_failure(self, sessions: SessionManager, store: InMemoryVectorStore, llm: MagicMock) -> None:
        embedder = EmbeddingClient(KeywordEmbeddings(fail_marker="?"), dimension=DIMENSION)
        orchestrator = ChatOrchestrator(embedder, store, sessions, llm)
        with pytest.raises(ChatError) as info:
            orchestrator.answer("s1", "why?")
        assert info.value.kind is ChatErrorKind.EMBEDDING_FAILED
        llm.invoke.assert_not_called()
        assert "s1" not in sessions

    def test_storage_failure(self, embedder: EmbeddingClient, sessions: SessionManager, llm: MagicMock) -> None:
        orchestrator = ChatOrchestrator(embedder, _BrokenStore(DIMENSION), sessions, llm)
        with pytest.raises(ChatError) as info:
            orchestrator.answer("s1", "beta")
        assert info.value.kind is ChatErrorKind.STORAGE_FAILED

    def test_generation_failure_leaves_history_untouched(
        self, orchestrator: ChatOrchestrator, llm: MagicMock, sessions: SessionManager
    ) -> None:
        llm.invoke.side_effect = TimeoutError("deadline exceeded")
        with pytest.raises(ChatError) as info:
            orchestrator.answer("s1", "beta")
        assert info.value.kind is ChatErrorKind.GENERATION_FAILED
        assert isinstance(info.value.__cause__, GenerationError)
        assert isinstance(info.value.__cause__.__cause__, TimeoutError)
        assert sessions.get_or_create("s1").history == list(DEFAULT_PREAMBLE)


# ── Streaming ─────────────────────────────────────────────────────────


class TestAnswerStream:
    def test_fragments_then_done(self, orchestrator: ChatOrchestrator, sessions: SessionManager) -> None:
        events = list(orchestrator.answer_stream("s1", "beta"))
        assert events == [
            AnswerFragment("The answer "),
            AnswerFragment("is "),
            AnswerFragment("beta."),
            StreamDone("The answer is beta."),
        ]
        assert sessions.get_or_create("s1").history[-1] == Turn("model", "The answer is beta.")

    def test_turn_recorded_only_after_stream_completes(
        self, orchestrator: ChatOrchestrator, sessions: SessionManager
    ) -> None:
        stream = orchestrator.answer_stream("s1", "beta")
        next(stream)
        assert len(sessions.get_or_create("s1").history) == len(DEFAULT_PREAMBLE)
        list(stream)
        assert len(sessions.get_or_create("s1").history) == len(DEFAULT_PREAMBLE) + 2

    def test_mid_stream_failure_ends_with_error(
        self, orchestrator: ChatOrchestrator, llm: MagicMock, sessions: SessionManager
    ) -> None:
        llm.stream.side_effect = failing_stream("The answer ", error=RuntimeError("connection reset"))
        events = list(orchestrator.answer_stream("s1", "beta"))
        assert events == [AnswerFragment("The answer "), StreamError("connection reset")]
        assert sessions.get_or_create("s1").history == list(DEFAULT_PREAMBLE)

    def test_stream_failure_is_reported_as_generation_error(
        self, orchestrator: ChatOrchestrator, llm: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        llm.stream.side_effect = failing_stream(error=ConnectionError())
        with caplog.at_level(logging.ERROR, logger="ragstream.chat.orchestrator"):
            events = list(orchestrator.answer_stream("s1", "beta"))
        assert events == [StreamError("ConnectionError")]
        record = caplog.records[-1]
        assert isinstance(record.exc_info[1], GenerationError)
        assert isinstance(record.exc_info[1].__cause__, ConnectionError)

    def test_exactly_one_terminal_event(self, orchestrator: ChatOrchestrator, llm: MagicMock) -> None:
        llm.stream.side_effect = failing_stream()
        events = list(orchestrator.answer_stream("s1", "beta"))
        terminals = [e for e in events if isinstance(e, (StreamDone, StreamError))]
        assert len(terminals) == 1
        assert events[-1] is terminals[0]

    def test_preparation_errors_raise_before_streaming(self, orchestrator: ChatOrchestrator, llm: MagicMock) -> None:
        with pytest.raises(ValidationError):
            orchestrator.answer_stream("s1", "")
        llm.stream.assert_not_called()

    def test_empty_fragments_are_skipped(self, sessions: SessionManager, embedder, store) -> None:
        llm = make_llm(fragments=["", "Hi", ""])
        events = list(ChatOrchestrator(embedder, store, sessions, llm).answer_stream("s1", "hello"))
        assert events == [AnswerFragment("Hi"), StreamDone("Hi")]


# ── Concurrency ───────────────────────────────────────────────────────


def test_same_session_turns_are_serialized(embedder: EmbeddingClient, store: InMemoryVectorStore) -> None:
    sessions = SessionManager()
    first_started = threading.Event()
    release_first = threading.Event()
    seen_history_lengths: list[int] = []
    lock = threading.Lock()

    def invoke(messages):
        with lock:
            seen_history_lengths.append(len(messages))
            first = len(seen_history_lengths) == 1
        if first:
            first_started.set()
            release_first.wait(timeout=5)
        return make_llm().invoke.return_value

    llm = MagicMock()
    llm.invoke.side_effect = invoke
    orchestrator = ChatOrchestrator(embedder, store, sessions, llm)

    t1 = threading.Thread(target=orchestrator.answer, args=("shared", "one"))
    t1.start()
    assert first_started.wait(timeout=5)
    t2 = threading.Thread(target=orchestrator.answer, args=("shared", "two"))
    t2.start()
    t2.join(timeout=0.2)
    assert t2.is_alive()
    release_first.set()
    t1.join(timeout=5)
    t2.join(timeout=5)

    base = len(DEFAULT_PREAMBLE) + 1
    assert seen_history_lengths == [base, base + 2]
    history = sessions.get_or_create("shared").history
    assert [t.text for t in history[len(DEFAULT_PREAMBLE):] if t.role == "user"] == ["one", "two"]


def test_different_sessions_do_not_block(embedder: EmbeddingClient, store: InMemoryVectorStore) -> None:
    sessions = SessionManager()
    started = threading.Event()
    release = threading.Event()

    def invoke(messages):
        if not started.is_set():
            started.set()
            release.wait(timeout=5)
        return make_llm().invoke.return_value

    llm = MagicMock()
    llm.invoke.side_effect = invoke
    orchestrator = ChatOrchestrator(embedder, store, sessions, llm)

    blocked = threading.Thread(target=orchestrator.answer, args=("a", "slow"))
    blocked.start()
    assert started.wait(timeout=5)
    try:
        result = orchestrator.answer("b", "fast")
        assert result.session_id == "b"
    finally:
        release.set()
        blocked.join(timeout=5)
