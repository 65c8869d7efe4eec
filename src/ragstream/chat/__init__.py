"""
Chat — session state and the retrieval-augmented answer loop.

Public API
----------
- :class:`ChatOrchestrator` — answer a question, whole or streamed.
- :class:`SessionManager` / :class:`Session` / :class:`Turn` — conversation state.
- :class:`AnswerFragment`, :class:`StreamDone`, :class:`StreamError` — stream events.
"""

from ragstream.chat.orchestrator import (
    AnswerFragment,
    ChatAnswer,
    ChatOrchestrator,
    StreamDone,
    StreamError,
    StreamEvent,
)
from ragstream.chat.session import DEFAULT_PREAMBLE, Session, SessionManager, Turn

__all__ = [
    "DEFAULT_PREAMBLE",
    "AnswerFragment",
    "ChatAnswer",
    "ChatOrchestrator",
    "Session",
    "SessionManager",
    "StreamDone",
    "StreamError",
    "StreamEvent",
    "Turn",
]
