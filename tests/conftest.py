import asyncio
from datetime import date, datetime, timezone

import pytest

from neurogen.agent import ChatAgent
from neurogen.core.memory import SessionStore
from neurogen.tools.fixtures import FixtureSummary


FIXED_NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


class FakeCompletion:
    def __init__(self, reply="Here is my answer.", delay=0.0, error=None):
        self.reply = reply
        self.delay = delay
        self.error = error
        self.calls = []

    async def complete(self, system_prompt, prior_turns, user_message):
        self.calls.append(
            {"system_prompt": system_prompt, "prior_turns": list(prior_turns), "user_message": user_message}
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeFixtures:
    def __init__(self, text="Matches on 2026-10-19:\n- Arsenal vs Chelsea (Premier League) 19:30 UTC", available=True):
        self.text = text
        self.available = available
        self.days = []

    async def summarize(self, day: date) -> FixtureSummary:
        self.days.append(day)
        return FixtureSummary(date=day.isoformat(), text=self.text, available=self.available)


@pytest.fixture
def completion():
    return FakeCompletion()


@pytest.fixture
def fixtures():
    return FakeFixtures()


@pytest.fixture
def make_agent():
    def _make(completion=None, fixtures=None, capacity=12, timeout=12.0):
        return ChatAgent(
            completion=completion or FakeCompletion(),
            fixtures=fixtures or FakeFixtures(),
            sessions=SessionStore(capacity=capacity),
            completion_timeout=timeout,
            clock=lambda: FIXED_NOW,
        )

    return _make
