"""Prompt construction for the chat turn.

Both builders are pure functions of their inputs: the conversation lives
in explicit :class:`~ragstream.chat.session.Turn` history, not inside a
model-side chat object.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from langchain_core.messages import AIMessage, HumanMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

    from ragstream.chat.session import Turn

CONTEXT_LABEL = "[RETRIEVED KNOWLEDGE]"
QUESTION_LABEL = "[USER QUESTION]"


def compose_message(context: str, question: str) -> str:
    """Combine retrieved context and the verbatim question into one message."""
    return f"{CONTEXT_LABEL}:\n{context}\n\n{QUESTION_LABEL}:\n{question}"


def to_messages(history: Iterable[Turn], message: str) -> list[BaseMessage]:
    """Build the chat-model request: prior turns followed by *message*."""
    messages: list[BaseMessage] = [
        HumanMessage(content=turn.text) if turn.role == "user" else AIMessage(content=turn.text)
        for turn in history
    ]
    messages.append(HumanMessage(content=message))
    return messages


def message_text(message: object) -> str:
    """Extract plain text from a LangChain message or message chunk.

    ``content`` may be a string or a list of content parts; non-text parts
    are ignored.
    """
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type", "text") == "text":
            parts.append(str(part.get("text", "")))
    return "".join(parts)
