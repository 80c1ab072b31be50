"""Heuristic text signals.

Everything here is a pure function of the message text: risk score, tone
moods, football intent, override and escalation flags. The rule tables are
ordered ``(pattern, tag, weight)`` rows so a new row is one line.
"""

from __future__ import annotations

import re
from typing import Any, FrozenSet, Iterable, List, Pattern, Tuple

from pydantic import BaseModel, ConfigDict


MAX_RISK_LEVEL = 5
MAX_ESCALATION_SCORE = 5
LONG_MESSAGE_CHARS = 120

HINT_HIGH_RISK = "high risk, reduce stake"
HINT_MODERATE_RISK = "moderate risk, be selective"
HINT_STABLE = "stable"


def _phrases(*phrases: str) -> Pattern[str]:
    # Anchored at word start only: "now" skips "know" but "loss" still hits "losses".
    body = "|".join(re.escape(p) for p in phrases)
    return re.compile(rf"(?<!\w)(?:{body})")


RISK_RULES: List[Tuple[Pattern[str], str, int]] = [
    (_phrases("all in", "must win", "sure win", "100%", "no error"), "overconfidence", 2),
    (_phrases("now", "today", "urgent", "fast", "quick"), "urgency", 1),
    (_phrases("lost", "loss", "recover", "chase", "revenge"), "loss-chasing", 3),
    (_phrases("angry", "mad", "tired", "frustrated"), "emotional", 2),
]

MOOD_RULES: List[Tuple[Pattern[str], str]] = [
    (_phrases("sad", "tired", "lonely", "depressed", "angry", "frustrated", "hurt"), "emotional"),
    (_phrases("sure", "ready", "confident", "certain", "focused"), "confident"),
    (_phrases("why", "how", "explain", "what is"), "curious"),
    (_phrases("stupid", "hate", "annoying", "trash", "nonsense"), "aggressive"),
]

FOOTBALL_KEYWORDS: Tuple[str, ...] = (
    "fixture",
    "fixtures",
    "match",
    "matches",
    "odds",
    "bet",
    "prediction",
    "score",
    "correct score",
    "vs",
    "kickoff",
    "premier league",
    "epl",
    "la liga",
    "serie a",
    "bundesliga",
    "ligue 1",
    "champions league",
)
_FOOTBALL_PATTERNS = [(kw, _phrases(kw)) for kw in FOOTBALL_KEYWORDS]

OVERRIDE_PHRASES: Tuple[str, ...] = (
    "override",
    "god mode",
    "no limit",
    "proceed anyway",
    "i accept the risk",
    "ignore your rules",
)
_OVERRIDE_PATTERN = _phrases(*OVERRIDE_PHRASES)
_CAPS_RUN = re.compile(r"[A-Z]{3,}")
_REPEATED_BANG = re.compile(r"!{2,}")

_MUST_WIN = _phrases("must win", "do or die", "final", "relegation", "qualification")
_HIGH_RISK = _phrases("correct score", "exact score", "high odds")
_SAFE_MODE = _phrases("safe", "low risk", "sure", "banker")


class Signal(BaseModel):
    model_config = ConfigDict(frozen=True)

    risk_level: int = 0
    tags: FrozenSet[str] = frozenset()
    discipline_hint: str = HINT_STABLE
    moods: FrozenSet[str] = frozenset()
    football_intent: bool = False
    football_keywords: Tuple[str, ...] = ()
    override: bool = False
    escalation_score: int = 0


class MatchPsychology(BaseModel):
    model_config = ConfigDict(frozen=True)

    must_win: bool = False
    high_risk: bool = False
    safe_mode: bool = False


def discipline_hint(risk_level: int) -> str:
    if risk_level >= 4:
        return HINT_HIGH_RISK
    if risk_level >= 2:
        return HINT_MODERATE_RISK
    return HINT_STABLE


def score_risk(lower: str) -> Tuple[int, List[str]]:
    """Sum the weight of every matching risk rule, then clamp."""
    total = 0
    tags: List[str] = []
    for pattern, tag, weight in RISK_RULES:
        if pattern.search(lower):
            total += weight
            tags.append(tag)
    return min(total, MAX_RISK_LEVEL), tags


def detect_moods(lower: str) -> List[str]:
    return [tag for pattern, tag in MOOD_RULES if pattern.search(lower)]


def match_football_keywords(lower: str) -> Tuple[str, ...]:
    return tuple(kw for kw, pattern in _FOOTBALL_PATTERNS if pattern.search(lower))


def detect_override(text: Any) -> bool:
    if not isinstance(text, str) or not text:
        return False
    return bool(_OVERRIDE_PATTERN.search(text.lower()))


def escalation_score(text: Any) -> int:
    if not isinstance(text, str) or not text:
        return 0
    score = 0
    if len(text) > LONG_MESSAGE_CHARS:
        score += 1
    if _CAPS_RUN.search(text):
        score += 1
    if _REPEATED_BANG.search(text):
        score += 1
    if detect_override(text):
        score += 2
    return min(score, MAX_ESCALATION_SCORE)


def confirm_escalation(previous_level: int = 0, current_level: int = 0) -> bool:
    # Only a repeated or rising severity counts as escalation.
    return current_level >= 2 and previous_level >= 2


def analyze_match_psychology(text: Any) -> MatchPsychology:
    if not isinstance(text, str) or not text:
        return MatchPsychology()
    lower = text.lower()
    return MatchPsychology(
        must_win=bool(_MUST_WIN.search(lower)),
        high_risk=bool(_HIGH_RISK.search(lower)),
        safe_mode=bool(_SAFE_MODE.search(lower)),
    )


def classify(text: Any) -> Signal:
    """Map raw message text to a :class:`Signal`.

    Never raises; ``None``, non-strings and empty text give the default
    signal (risk 0, hint "stable", no football intent, no override).
    """
    if not isinstance(text, str) or not text.strip():
        return Signal()

    lower = text.lower()
    risk_level, tags = score_risk(lower)
    keywords = match_football_keywords(lower)
    return Signal(
        risk_level=risk_level,
        tags=frozenset(tags),
        discipline_hint=discipline_hint(risk_level),
        moods=frozenset(detect_moods(lower)),
        football_intent=bool(keywords),
        football_keywords=keywords,
        override=detect_override(text),
        escalation_score=escalation_score(text),
    )


def tag_counts(tag_lists: Iterable[Iterable[str]]) -> dict:
    counts: dict = {}
    for tags in tag_lists:
        for tag in tags:
            counts[tag] = counts.get(tag, 0) + 1
    return counts
