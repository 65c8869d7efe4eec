"""Per-conversation state keyed by session id.

Locking is per key: a short-lived table lock guards the session map, and
each :class:`Session` carries its own lock that the orchestrator holds for
an entire turn.  Two questions on the same session are therefore answered
one after the other, while different sessions never wait on each other.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Literal

logger = logging.getLogger(__name__)

Role = Literal["user", "model"]


@dataclass(frozen=True)
class Turn:
    """One message in a conversation."""

    role: Role
    text: str


DEFAULT_PREAMBLE: tuple[Turn, ...] = (
    Turn(
        role="user",
        text=(
            "You are a professional assistant. Answer my questions using only the "
            "[RETRIEVED KNOWLEDGE] blocks I give you. If they do not contain the "
            "answer, say so."
        ),
    ),
    Turn(
        role="model",
        text="Understood. I will answer only from the information you provide.",
    ),
)


@dataclass
class Session:
    """A conversation and its ordered history.

    Attributes
    ----------
    id:
        Opaque session identifier.
    history:
        Preamble followed by every completed turn, in order.
    lock:
        Held for the duration of a turn to serialize same-session requests.
    last_used:
        Clock reading of the last access, used for idle expiry.
    """

    id: str
    history: list[Turn] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)
    last_used: float = 0.0

    def snapshot(self) -> tuple[Turn, ...]:
        return tuple(self.history)

    def record_turn(self, question: str, answer: str) -> None:
        """Append a completed question/answer pair."""
        self.history.extend((Turn("user", question), Turn("model", answer)))


class SessionManager:
    """Owns every live :class:`Session`.

    Parameters
    ----------
    preamble:
        Turns seeded into each new session.
    max_sessions:
        Evict the least recently used session beyond this many.  ``None``
        keeps every session until it is deleted.
    idle_ttl:
        Seconds of inactivity after which a session is dropped on the next
        access to the table.  ``None`` disables expiry.
    clock:
        Monotonic time source.
    """

    def __init__(
        self,
        *,
        preamble: Sequence[Turn] = DEFAULT_PREAMBLE,
        max_sessions: int | None = None,
        idle_ttl: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_sessions is not None and max_sessions < 1:
            raise ValueError("max_sessions must be >= 1")
        self._preamble = tuple(preamble)
        self._max_sessions = max_sessions
        self._idle_ttl = idle_ttl
        self._clock = clock
        self._sessions: OrderedDict[str, Session] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def get_or_create(self, session_id: str) -> Session:
        """Return the session for *session_id*, creating it on first use."""
        with self._lock:
            now = self._clock()
            self._expire_idle(now)
            session = self._sessions.get(session_id)
            if session is None:
                session = Session(id=session_id, history=list(self._preamble))
                self._sessions[session_id] = session
                logger.info("Created session %s", session_id)
                self._evict_overflow()
            else:
                self._sessions.move_to_end(session_id)
            session.last_used = now
            return session

    def delete(self, session_id: str) -> bool:
        """Forget *session_id*; return whether it existed."""
        with self._lock:
            existed = self._sessions.pop(session_id, None) is not None
        if existed:
            logger.info("Deleted session %s", session_id)
        return existed

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    # -- eviction (caller holds self._lock) -----------------------------------

    def _expire_idle(self, now: float) -> None:
        if self._idle_ttl is None:
            return
        expired = [sid for sid, s in self._sessions.items() if now - s.last_used > self._idle_ttl]
        for sid in expired:
            del self._sessions[sid]
            logger.info("Expired idle session %s", sid)

    def _evict_overflow(self) -> None:
        if self._max_sessions is None:
            return
        while len(self._sessions) > self._max_sessions:
            sid, _ = self._sessions.popitem(last=False)
            logger.info("Evicted least recently used session %s", sid)
