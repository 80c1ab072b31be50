from __future__ import annotations

import enum
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from config.settings import Settings


logger = logging.getLogger(__name__)

MAX_LISTED_FIXTURES = 40

FIXTURES_UNCONFIGURED_TEXT = "Fixture data is not configured (FIXTURES_API_KEY missing)."
FIXTURES_UNAVAILABLE_TEXT = "Fixtures unavailable right now."
NO_FIXTURES_TEMPLATE = "There are no fixtures listed for {date}."


class FixtureStatus(enum.Enum):
    UNCONFIGURED = "unconfigured"
    UNAVAILABLE = "unavailable"


class Fixture(BaseModel):
    model_config = ConfigDict(frozen=True)

    home_team: str
    away_team: str
    league_name: str = ""
    kickoff: Optional[str] = None


class FixtureSummary(BaseModel):
    """Plain-text fixture block for one date.

    ``available`` is False when the provider is unconfigured or failed; the
    text then carries the matching fallback line.
    """

    model_config = ConfigDict(frozen=True)

    date: str
    text: str
    available: bool = False


FixtureResult = Union[List[Fixture], FixtureStatus]


def fixture_date_for(message: Any, today: date) -> date:
    if isinstance(message, str) and "tomorrow" in message.lower():
        return today + timedelta(days=1)
    return today


def _kickoff_time(raw: Any) -> Optional[str]:
    if not raw or not isinstance(raw, str):
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).strftime("%H:%M")
    except ValueError:
        return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _parse_fixtures(raw: Dict[str, Any]) -> List[Fixture]:
    fixtures: List[Fixture] = []
    rows = raw.get("response")
    if not isinstance(rows, list):
        return fixtures
    for item in rows:
        if not isinstance(item, dict):
            continue
        teams = _as_dict(item.get("teams"))
        league = _as_dict(item.get("league"))
        fixture = _as_dict(item.get("fixture"))
        try:
            fixtures.append(
                Fixture(
                    home_team=_as_dict(teams.get("home")).get("name"),
                    away_team=_as_dict(teams.get("away")).get("name"),
                    league_name=league.get("name") or "",
                    kickoff=_kickoff_time(fixture.get("date")),
                )
            )
        except ValidationError:
            logger.debug("Skipping malformed fixture row: %s", item)
    return fixtures


def format_fixtures(fixtures: List[Fixture], day: str) -> str:
    if not fixtures:
        return NO_FIXTURES_TEMPLATE.format(date=day)
    lines = [f"Matches on {day}:"]
    for fx in fixtures[:MAX_LISTED_FIXTURES]:
        line = f"- {fx.home_team} vs {fx.away_team}"
        if fx.league_name:
            line += f" ({fx.league_name})"
        if fx.kickoff:
            line += f" {fx.kickoff} UTC"
        lines.append(line)
    remaining = len(fixtures) - MAX_LISTED_FIXTURES
    if remaining > 0:
        lines.append(f"- ... and {remaining} more")
    return "\n".join(lines)


class FixtureProvider:
    """Today's / tomorrow's matches from an API-Football compatible endpoint.

    Never raises past its boundary: a missing key or any HTTP failure comes
    back as a :class:`FixtureStatus` sentinel.
    """

    def __init__(
        self,
        api_key: Optional[str],
        api_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "FixtureProvider":
        return cls(
            api_key=settings.fixtures_api_key,
            api_url=settings.fixtures_api_url,
            timeout=settings.fixtures_timeout,
        )

    async def fetch_fixtures(self, day: date) -> FixtureResult:
        if not self.api_key:
            logger.warning("Fixtures requested but FIXTURES_API_KEY is not set")
            return FixtureStatus.UNCONFIGURED

        params = {"date": day.isoformat()}
        headers = {"x-apisports-key": self.api_key}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.api_url, params=params, headers=headers)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Fixtures API call failed: %s", exc)
            return FixtureStatus.UNAVAILABLE

        if not isinstance(data, dict):
            return FixtureStatus.UNAVAILABLE
        fixtures = _parse_fixtures(data)
        logger.info("Fixtures fetched: date=%s count=%s", day.isoformat(), len(fixtures))
        return fixtures

    async def summarize(self, day: date) -> FixtureSummary:
        result = await self.fetch_fixtures(day)
        day_text = day.isoformat()
        if result is FixtureStatus.UNCONFIGURED:
            return FixtureSummary(date=day_text, text=FIXTURES_UNCONFIGURED_TEXT)
        if result is FixtureStatus.UNAVAILABLE:
            return FixtureSummary(date=day_text, text=FIXTURES_UNAVAILABLE_TEXT)
        return FixtureSummary(date=day_text, text=format_fixtures(result, day_text), available=True)
