from __future__ import annotations

"""Bounded conversation memory.

Each session owns one :class:`ConversationMemory`; the :class:`SessionStore`
hands them out by key. Turns sharing a key still interleave when requests
for that key run concurrently, since the buffer has no per-request scope.
"""

from collections import OrderedDict, deque
from typing import Any, Deque, Dict, Iterable, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from neurogen.core.signals import tag_counts


DEFAULT_CAPACITY = 12
SIGNAL_HISTORY = 5
DEFAULT_SESSION = "default"

Role = Literal["user", "assistant", "system"]

_ROLE_ALIASES = {
    "user": "user",
    "human": "user",
    "assistant": "assistant",
    "ai": "assistant",
    "bot": "assistant",
    "system": "system",
}


class Turn(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

    @classmethod
    def from_raw(cls, item: Any) -> Optional["Turn"]:
        """Build a turn from a loose dict; ``None`` when there is no content."""
        if isinstance(item, Turn):
            return item
        if not isinstance(item, dict):
            return None
        content = item.get("content")
        if not isinstance(content, str) or not content:
            return None
        role = str(item.get("role") or "").lower()
        # Unknown roles default to user
        return cls(role=_ROLE_ALIASES.get(role, "user"), content=content)


def turns_from_raw(items: Optional[Iterable[Any]]) -> List[Turn]:
    turns: List[Turn] = []
    for item in items or []:
        turn = Turn.from_raw(item)
        if turn is not None:
            turns.append(turn)
    return turns


class ConversationMemory:
    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._turns: Deque[Turn] = deque(maxlen=capacity)
        self._signals: Deque[Tuple[int, Tuple[str, ...]]] = deque(maxlen=SIGNAL_HISTORY)

    def __len__(self) -> int:
        return len(self._turns)

    def append(self, turn: Turn) -> None:
        self._turns.append(turn)

    def extend(self, turns: Iterable[Turn]) -> None:
        for turn in turns:
            self.append(turn)

    def turns(self) -> Tuple[Turn, ...]:
        return tuple(self._turns)

    def last_user_turn(self) -> Optional[Turn]:
        for turn in reversed(self._turns):
            if turn.role == "user":
                return turn
        return None

    def clear(self) -> None:
        self._turns.clear()
        self._signals.clear()

    def record_signal(self, risk_level: int, tags: Iterable[str]) -> None:
        self._signals.append((risk_level, tuple(sorted(tags))))

    @property
    def last_risk_level(self) -> int:
        if not self._signals:
            return 0
        return self._signals[-1][0]

    def signal_counts(self) -> Dict[str, int]:
        return tag_counts(tags for _, tags in self._signals)

    @classmethod
    def from_turns(cls, turns: Iterable[Turn], capacity: int = DEFAULT_CAPACITY) -> "ConversationMemory":
        memory = cls(capacity)
        memory.extend(turns)
        return memory


class SessionStore:
    """Session key -> memory, least recently used sessions dropped first."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY, max_sessions: int = 1000) -> None:
        self.capacity = capacity
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, ConversationMemory]" = OrderedDict()

    def get(self, session_id: Optional[str] = None) -> ConversationMemory:
        key = session_id or DEFAULT_SESSION
        memory = self._sessions.get(key)
        if memory is None:
            memory = ConversationMemory(self.capacity)
            self._sessions[key] = memory
            while len(self._sessions) > self.max_sessions:
                self._sessions.popitem(last=False)
        else:
            self._sessions.move_to_end(key)
        return memory

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
