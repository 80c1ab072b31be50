import pytest

from neurogen.core.memory import ConversationMemory, Turn
from neurogen.core.router import IntentRouter
from neurogen.core.signals import classify


@pytest.fixture
def router():
    return IntentRouter()


def plan_for(router, message, memory=None):
    return router.plan(message, classify(message), memory)


def test_default_route_is_chat(router):
    plan = plan_for(router, "tell me a joke")
    assert plan.route == "chat"
    assert plan.confidence == 0.0
    assert plan.reason == "default"
    assert plan.matched_keywords == frozenset()
    assert plan.needs_fixtures is False


def test_goalkeeper_question_stays_on_general_route(router):
    assert plan_for(router, "why do goalkeepers wear gloves").route == "chat"


def test_strong_football_intent(router):
    plan = plan_for(router, "Arsenal vs Chelsea odds tonight, give me correct score")
    assert plan.route == "football"
    assert plan.reason == "football_detected"
    assert plan.confidence == pytest.approx(0.8)
    assert plan.matched_keywords == {"vs", "odds", "score", "correct score"}
    assert plan.needs_fixtures is True


def test_single_keyword_downgrades_to_hybrid(router):
    plan = plan_for(router, "any odds on that?")
    assert plan.route == "hybrid"
    assert plan.reason == "mixed_intent"
    assert plan.confidence == pytest.approx(0.2)
    assert plan.matched_keywords == {"odds"}


def test_two_keywords_reach_the_threshold(router):
    plan = plan_for(router, "match odds please")
    assert plan.route == "football"
    assert plan.confidence == pytest.approx(0.4)


def test_confidence_is_clamped(router):
    plan = plan_for(router, "premier league fixtures odds bet prediction correct score")
    assert plan.confidence == 1.0
    assert plan.route == "football"


def test_short_followup_after_football_turn_is_hybrid(router):
    memory = ConversationMemory.from_turns(
        [
            Turn(role="user", content="Arsenal vs Chelsea odds?"),
            Turn(role="assistant", content="Arsenal look stronger."),
        ]
    )
    plan = plan_for(router, "and tomorrow?", memory)
    assert plan.route == "hybrid"
    assert plan.reason == "football_followup"
    assert plan.confidence == pytest.approx(0.2)


def test_long_message_is_not_a_followup(router):
    memory = ConversationMemory.from_turns([Turn(role="user", content="Arsenal vs Chelsea odds?")])
    message = "I would also like to hear about something completely different, like cooking pasta"
    assert plan_for(router, message, memory).route == "chat"


def test_followup_needs_a_football_user_turn(router):
    memory = ConversationMemory.from_turns([Turn(role="assistant", content="match odds are in")])
    assert plan_for(router, "and tomorrow?", memory).route == "chat"


def test_inflected_keywords_route_to_football(router):
    plan = plan_for(router, "betting predictions for the weekend")
    assert plan.route == "football"
    assert plan.matched_keywords == {"bet", "prediction"}
