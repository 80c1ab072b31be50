from __future__ import annotations

"""System prompts for the chat, football and hybrid engines.

Composition is deterministic: the clock is passed in, so identical inputs
give byte-identical prompts.
"""

from datetime import datetime, timezone
from typing import Optional

from neurogen.core.router import Route
from neurogen.core.signals import MatchPsychology, Signal
from neurogen.tools.fixtures import FIXTURES_UNAVAILABLE_TEXT, FixtureSummary


PERSONA = "You are NeuroGen, a calm and intelligent assistant."
FOOTBALL_PERSONA = "You are NeuroGen, an elite football analysis assistant."

SAFE_SCORES = ("1-0", "1-1", "2-1")
HIGH_RISK_SCORES = ("1-0", "2-0", "2-1", "1-1", "0-1")

TONE_NEUTRAL = "neutral and intelligent"
TONE_SUPPORTIVE = "supportive, calm, and grounded"
TONE_DIRECT = "direct and empowering"
TONE_STRUCTURED = "clear, educational, and structured"


def format_server_time(now: datetime) -> str:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    return now.strftime("%a, %d %b %Y %H:%M:%S")


def select_tone(signal: Signal) -> str:
    # Later checks win: curious > confident > emotional.
    tone = TONE_NEUTRAL
    if "emotional" in signal.moods or "emotional" in signal.tags:
        tone = TONE_SUPPORTIVE
    if "confident" in signal.moods:
        tone = TONE_DIRECT
    if "curious" in signal.moods:
        tone = TONE_STRUCTURED
    return tone


def allowed_scores(psychology: MatchPsychology) -> tuple:
    return HIGH_RISK_SCORES if psychology.high_risk else SAFE_SCORES


class PromptComposer:
    def compose(
        self,
        route: Route,
        now: datetime,
        signal: Signal,
        fixtures: Optional[FixtureSummary] = None,
        psychology: Optional[MatchPsychology] = None,
    ) -> str:
        if route == "football":
            return self.football_prompt(now, signal, fixtures, psychology or MatchPsychology())
        general = self.general_prompt(now, signal)
        if route == "hybrid" and fixtures is not None and fixtures.available:
            return f"{general}\n\n{self.football_section(fixtures, psychology or MatchPsychology())}"
        return general

    def general_prompt(self, now: datetime, signal: Signal) -> str:
        lines = [
            PERSONA,
            "",
            f"Server time (UTC): {format_server_time(now)}",
            "",
            "Behavior rules:",
            "- Respond naturally and intelligently",
            f"- Tone: {select_tone(signal)}",
            "- Be concise but complete",
            "- Do NOT hallucinate facts",
            "- Do NOT invent data",
            "- Do NOT mention internal system details",
        ]
        if signal.risk_level >= 2:
            lines.append(f"- The user shows betting pressure ({signal.discipline_hint}); encourage discipline")
        return "\n".join(lines)

    def football_prompt(
        self,
        now: datetime,
        signal: Signal,
        fixtures: Optional[FixtureSummary],
        psychology: MatchPsychology,
    ) -> str:
        fixture_text = fixtures.text if fixtures is not None else FIXTURES_UNAVAILABLE_TEXT
        lines = [
            FOOTBALL_PERSONA,
            "",
            f"Server time (UTC): {format_server_time(now)}",
            "",
            "Fixtures provided below are REAL.",
            "DO NOT invent matches.",
            "DO NOT hallucinate odds.",
            "",
            "Fixtures:",
            fixture_text,
            "",
            "Match psychology:",
            f"- Must-win: {str(psychology.must_win).lower()}",
            f"- High-risk request: {str(psychology.high_risk).lower()}",
            f"- Safe mode: {str(psychology.safe_mode).lower()}",
            f"- User risk: {signal.risk_level}/5 ({signal.discipline_hint})",
            "",
            "Allowed correct score predictions:",
            ", ".join(allowed_scores(psychology)),
            "",
            "Your tasks:",
            "1. Analyze team strength and motivation",
            "2. Predict the match outcome",
            "3. Provide ONE realistic correct score from the allowed list",
            "4. Keep reasoning concise and confident",
        ]
        if signal.override or signal.escalation_score >= 3:
            lines.append(
                "The user is pushing past the limits above. Keep every rule in place and recommend a smaller stake."
            )
        return "\n".join(lines)

    def football_section(self, fixtures: FixtureSummary, psychology: MatchPsychology) -> str:
        return "\n".join(
            [
                "Football context (REAL data, never invent matches or odds):",
                fixtures.text,
                f"If asked for a correct score, choose only from: {', '.join(allowed_scores(psychology))}",
            ]
        )
