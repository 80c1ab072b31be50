from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Optional, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder
from langchain_google_genai import ChatGoogleGenerativeAI
from pydantic import BaseModel, ConfigDict

from config.settings import Settings, get_settings
from neurogen.core.memory import ConversationMemory, SessionStore, Turn, turns_from_raw
from neurogen.core.prompt import PromptComposer
from neurogen.core.router import IntentRouter, RoutePlan
from neurogen.core.signals import Signal, analyze_match_psychology, classify, confirm_escalation
from neurogen.errors import CompletionTimeout, InputError, UpstreamUnavailable
from neurogen.tools.fixtures import FixtureProvider, FixtureSummary, fixture_date_for


logger = logging.getLogger(__name__)

FALLBACK_REPLY = "I could not generate a response right now. Please try again shortly."
EMPTY_COMPLETION_REPLY = "I could not generate a response."


def to_lc_messages(turns: Iterable[Turn]) -> List[BaseMessage]:
    messages: List[BaseMessage] = []
    for turn in turns:
        if turn.role == "assistant":
            messages.append(AIMessage(content=turn.content))
        elif turn.role == "system":
            messages.append(SystemMessage(content=turn.content))
        else:
            messages.append(HumanMessage(content=turn.content))
    return messages


def _message_text(content: Any) -> str:
    # Some chat models return a list of content parts instead of a string.
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "".join(parts)
    return ""


def build_prompt_template() -> ChatPromptTemplate:
    return ChatPromptTemplate.from_messages(
        [
            ("system", "{system_prompt}"),
            MessagesPlaceholder("chat_history", optional=True),
            ("human", "{input}"),
        ]
    )


class CompletionClient:
    """Runs one chat completion: system prompt, prior turns, user message."""

    def __init__(self, llm: Optional[BaseChatModel]) -> None:
        self.llm = llm
        self.prompt = build_prompt_template()

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompletionClient":
        if not settings.google_api_key:
            logger.warning("GOOGLE_API_KEY not set; completions will use the fallback reply")
            return cls(llm=None)

        llm = ChatGoogleGenerativeAI(
            model=settings.gemini_model,
            google_api_key=settings.google_api_key,
            temperature=settings.temperature,
            top_p=settings.top_p,
        )
        return cls(llm=llm)

    async def complete(self, system_prompt: str, prior_turns: Sequence[Turn], user_message: str) -> str:
        if self.llm is None:
            raise UpstreamUnavailable(
                "GOOGLE_API_KEY not set. Please configure it in environment or .env",
                source="completion",
            )

        payload = {"system_prompt": system_prompt, "input": user_message}
        history = to_lc_messages(prior_turns)
        if history:
            payload["chat_history"] = history

        chain = self.prompt | self.llm
        try:
            result = await chain.ainvoke(payload)
        except Exception as exc:
            raise UpstreamUnavailable(f"Completion call failed: {exc}", source="completion") from exc

        text = _message_text(getattr(result, "content", "")).strip()
        return text or EMPTY_COMPLETION_REPLY


class ChatResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    reply: str
    plan: RoutePlan
    signal: Signal
    fallback: bool = False
    escalated: bool = False
    fixtures: Optional[FixtureSummary] = None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ChatAgent:
    """Request handler: signals, route, fixtures, prompt, completion, memory.

    Every collaborator is passed in, so each can be swapped in tests.
    """

    def __init__(
        self,
        completion: CompletionClient,
        fixtures: FixtureProvider,
        sessions: SessionStore,
        router: Optional[IntentRouter] = None,
        composer: Optional[PromptComposer] = None,
        completion_timeout: float = 12.0,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.completion = completion
        self.fixtures = fixtures
        self.sessions = sessions
        self.router = router or IntentRouter()
        self.composer = composer or PromptComposer()
        self.completion_timeout = completion_timeout
        self.clock = clock

    async def reply(
        self,
        message: Any,
        session_id: Optional[str] = None,
        history: Optional[Iterable[Any]] = None,
    ) -> ChatResult:
        if not isinstance(message, str) or not message.strip():
            raise InputError("Message must be a non-empty string")

        memory = self.sessions.get(session_id)
        if history is not None:
            # Frontend-managed history replaces the server copy for this turn
            context = ConversationMemory.from_turns(turns_from_raw(history), memory.capacity)
        else:
            context = memory

        signal = classify(message)
        escalated = confirm_escalation(memory.last_risk_level, signal.risk_level)
        memory.record_signal(signal.risk_level, signal.tags)
        if escalated or signal.override:
            logger.warning(
                "Risk pressure: risk=%s escalation=%s override=%s confirmed=%s",
                signal.risk_level,
                signal.escalation_score,
                signal.override,
                escalated,
            )

        plan = self.router.plan(message, signal, context)

        now = self.clock()
        psychology = analyze_match_psychology(message)
        fixtures: Optional[FixtureSummary] = None
        if plan.needs_fixtures:
            fixtures = await self.fixtures.summarize(fixture_date_for(message, now.date()))

        system_prompt = self.composer.compose(plan.route, now, signal, fixtures, psychology)
        prior_turns = context.turns()

        fallback = False
        try:
            reply_text = await self._complete(system_prompt, prior_turns, message)
        except UpstreamUnavailable as exc:
            logger.warning("Completion unavailable (%s): %s", type(exc).__name__, exc.message)
            reply_text = FALLBACK_REPLY
            fallback = True

        memory.append(Turn(role="user", content=message))
        memory.append(Turn(role="assistant", content=reply_text))
        logger.info(
            "Reply ready: route=%s fallback=%s reply_len=%s memory_turns=%s",
            plan.route,
            fallback,
            len(reply_text),
            len(memory),
        )
        return ChatResult(
            reply=reply_text,
            plan=plan,
            signal=signal,
            fallback=fallback,
            escalated=escalated,
            fixtures=fixtures,
        )

    async def _complete(self, system_prompt: str, prior_turns: Sequence[Turn], message: str) -> str:
        try:
            return await asyncio.wait_for(
                self.completion.complete(system_prompt, prior_turns, message),
                timeout=self.completion_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise CompletionTimeout(
                f"Completion exceeded {self.completion_timeout:.0f}s", source="completion"
            ) from exc


def build_agent(settings: Optional[Settings] = None) -> ChatAgent:
    settings = settings or get_settings()
    return ChatAgent(
        completion=CompletionClient.from_settings(settings),
        fixtures=FixtureProvider.from_settings(settings),
        sessions=SessionStore(capacity=settings.memory_capacity),
        completion_timeout=settings.completion_timeout,
    )
