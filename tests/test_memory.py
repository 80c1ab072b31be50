import pytest
from pydantic import ValidationError

from neurogen.core.memory import ConversationMemory, SessionStore, Turn, turns_from_raw


def _turns(n):
    return [Turn(role="user" if i % 2 == 0 else "assistant", content=f"turn {i}") for i in range(n)]


@pytest.mark.parametrize("extra", [0, 1, 5, 25])
def test_append_keeps_most_recent_turns_in_order(extra):
    capacity = 10
    memory = ConversationMemory(capacity)
    turns = _turns(capacity + extra)
    for turn in turns:
        memory.append(turn)
    assert len(memory) == capacity
    assert memory.turns() == tuple(turns[-capacity:])


def test_below_capacity_keeps_everything():
    memory = ConversationMemory.from_turns(_turns(3), capacity=10)
    assert [t.content for t in memory.turns()] == ["turn 0", "turn 1", "turn 2"]


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        ConversationMemory(0)


def test_turn_is_immutable():
    turn = Turn(role="user", content="hi")
    with pytest.raises(ValidationError):
        turn.content = "changed"


def test_turns_from_raw_normalizes_roles_and_drops_empty():
    turns = turns_from_raw(
        [
            {"role": "Human", "content": "hello"},
            {"role": "bot", "content": "hi!"},
            {"role": "ai", "content": ""},
            {"role": "narrator", "content": "odd role"},
            {"content": "no role"},
            "not a dict",
            None,
        ]
    )
    assert [(t.role, t.content) for t in turns] == [
        ("user", "hello"),
        ("assistant", "hi!"),
        ("user", "odd role"),
        ("user", "no role"),
    ]
    assert turns_from_raw(None) == []


def test_last_user_turn():
    memory = ConversationMemory.from_turns(
        [Turn(role="user", content="first"), Turn(role="assistant", content="reply")]
    )
    assert memory.last_user_turn().content == "first"
    assert ConversationMemory().last_user_turn() is None


def test_signal_history_is_bounded():
    memory = ConversationMemory()
    for level in range(7):
        memory.record_signal(level, ["urgency"])
    assert memory.last_risk_level == 6
    assert memory.signal_counts() == {"urgency": 5}


def test_clear_resets_turns_and_signals():
    memory = ConversationMemory.from_turns(_turns(4))
    memory.record_signal(3, ["loss-chasing"])
    memory.clear()
    assert len(memory) == 0
    assert memory.last_risk_level == 0


def test_sessions_are_isolated_by_key():
    store = SessionStore(capacity=4)
    store.get("alice").append(Turn(role="user", content="alice here"))
    store.get("bob").append(Turn(role="user", content="bob here"))
    assert [t.content for t in store.get("alice").turns()] == ["alice here"]
    assert [t.content for t in store.get("bob").turns()] == ["bob here"]
    assert store.get("alice").capacity == 4


def test_missing_key_falls_back_to_shared_default_session():
    # Callers that send no key all share one buffer.
    store = SessionStore()
    store.get(None).append(Turn(role="user", content="from one client"))
    assert [t.content for t in store.get("").turns()] == ["from one client"]
    assert "default" in store


def test_least_recently_used_session_is_dropped():
    store = SessionStore(max_sessions=2)
    store.get("a")
    store.get("b")
    store.get("a")
    store.get("c")
    assert "a" in store
    assert "c" in store
    assert "b" not in store
    assert len(store) == 2
