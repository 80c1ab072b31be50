from __future__ import annotations

import logging
from typing import FrozenSet, Literal, Optional

from pydantic import BaseModel, ConfigDict

from neurogen.core.memory import ConversationMemory
from neurogen.core.signals import Signal, classify


logger = logging.getLogger(__name__)

Route = Literal["chat", "football", "hybrid"]

KEYWORDS_FOR_FULL_CONFIDENCE = 5
HYBRID_THRESHOLD = 0.4
FOLLOWUP_MAX_CHARS = 60
FOLLOWUP_CONFIDENCE = 0.2


class RoutePlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    route: Route = "chat"
    confidence: float = 0.0
    reason: str = "default"
    matched_keywords: FrozenSet[str] = frozenset()

    @property
    def needs_fixtures(self) -> bool:
        return self.route != "chat"


class IntentRouter:
    """Pick the engine variant for a message.

    Pure decision logic: fetching fixtures for a non-chat plan is left to
    the caller.
    """

    def plan(
        self,
        message: str,
        signal: Signal,
        memory: Optional[ConversationMemory] = None,
    ) -> RoutePlan:
        if signal.football_intent:
            matched = frozenset(signal.football_keywords)
            confidence = min(len(matched) / KEYWORDS_FOR_FULL_CONFIDENCE, 1.0)
            if confidence < HYBRID_THRESHOLD:
                plan = RoutePlan(
                    route="hybrid",
                    confidence=confidence,
                    reason="mixed_intent",
                    matched_keywords=matched,
                )
            else:
                plan = RoutePlan(
                    route="football",
                    confidence=confidence,
                    reason="football_detected",
                    matched_keywords=matched,
                )
        elif self._is_football_followup(message, memory):
            plan = RoutePlan(route="hybrid", confidence=FOLLOWUP_CONFIDENCE, reason="football_followup")
        else:
            plan = RoutePlan()

        logger.info(
            "Route decided: route=%s confidence=%.2f reason=%s keywords=%s",
            plan.route,
            plan.confidence,
            plan.reason,
            sorted(plan.matched_keywords),
        )
        return plan

    @staticmethod
    def _is_football_followup(message: str, memory: Optional[ConversationMemory]) -> bool:
        if memory is None or not isinstance(message, str):
            return False
        if len(message.strip()) > FOLLOWUP_MAX_CHARS:
            return False
        previous = memory.last_user_turn()
        if previous is None:
            return False
        return classify(previous.content).football_intent
