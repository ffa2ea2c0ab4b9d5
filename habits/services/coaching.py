"""
Coaching chat: a system prompt built from the habit's progress, and a thin
streaming client for an OpenAI-compatible chat completions endpoint.
"""
import json
import logging
from typing import Iterator, Optional

import httpx
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from habits.errors import ErrorKind, HabitError
from habits.services.dates import format_date
from habits.services.statistics import calculate_achievement_rate, calculate_streak

logger = logging.getLogger(__name__)

MILESTONES = (7, 30, 50, 100)
RECENT_DAYS = 7
AT_RISK_MISSES = 3

_INTRO = (
    "You are an AI coach who helps people build habits. "
    "Encourage the user to keep going and give personalised advice."
)

_NO_HABIT = (
    _INTRO
    + "\n\nThe user has not registered a habit yet. "
    "Suggest registering one and starting the 100-day challenge."
)


def build_system_message(habit, records, *, today=None) -> str:
    if habit is None:
        return _NO_HABIT

    records = sorted(records, key=lambda r: r.date)
    streak = calculate_streak(records, today=today)
    rate = calculate_achievement_rate(records, habit.start_date, today=today)
    recent = " ".join("✓" if r.completed else "✗" for r in records[-RECENT_DAYS:])

    lines = [
        _INTRO,
        "",
        "## Current user",
        f"- **Habit**: {habit.name}",
        f"- **Start date**: {format_date(habit.start_date)}",
        f"- **Current streak**: {streak} consecutive days",
        f"- **Overall achievement rate**: {rate}%",
        f"- **Last {RECENT_DAYS} records**: {recent or '(no records)'}",
        "",
        "## Your role",
        "Offer advice, encouragement and help preventing a relapse, based on the user's progress.",
        "",
        "## Important",
    ]

    if streak in MILESTONES:
        lines.append(
            f"- **Milestone reached!** The user has kept it up for {streak} days. "
            "Celebrate warmly and build motivation for the next goal."
        )

    last = records[-AT_RISK_MISSES:]
    if len(last) == AT_RISK_MISSES and not any(r.completed for r in last):
        lines.append(
            f"- **Relapse risk**: {AT_RISK_MISSES} days in a row were missed. "
            "Be gentle and give concrete advice for restarting."
        )

    if rate >= 80:
        lines.append(f"- The achievement rate is a very high {rate}%. Help the user keep this pace.")
    if rate < 50 and len(records) >= RECENT_DAYS:
        lines.append(f"- The achievement rate is {rate}%. Keep a positive angle so the user doesn't give up.")

    lines += ["", "Reply in a friendly, upbeat tone."]
    return "\n".join(lines)


def clean_messages(messages) -> list[dict]:
    if not isinstance(messages, list) or not messages:
        raise HabitError(ErrorKind.VALIDATION, "messages must be a non-empty list.")
    cleaned = []
    for message in messages:
        if not isinstance(message, dict):
            raise HabitError(ErrorKind.VALIDATION, "Each message must be an object.")
        role = message.get("role")
        content = message.get("content")
        if role not in ("user", "assistant") or not isinstance(content, str):
            raise HabitError(ErrorKind.VALIDATION, "Each message needs a user/assistant role and text content.")
        cleaned.append({"role": role, "content": content})
    return cleaned


class CoachingClient:
    """Streams chat completions from OpenRouter (or any compatible API)."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        self.api_key = api_key or settings.OPENROUTER_API_KEY
        if not self.api_key:
            raise ImproperlyConfigured("OPENROUTER_API_KEY environment variable is not set")
        self.model = model or settings.OPENROUTER_MODEL
        self.endpoint = (base_url or settings.OPENROUTER_BASE_URL).rstrip("/") + "/chat/completions"
        self._client = client or httpx.Client(timeout=timeout)

    def stream_reply(self, messages: list[dict], system_message: str) -> Iterator[str]:
        """Yield text deltas as they arrive."""
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        body = {
            "model": self.model,
            "messages": [{"role": "system", "content": system_message}, *messages],
            "stream": True,
        }

        with self._client.stream("POST", self.endpoint, headers=headers, json=body) as response:
            response.raise_for_status()
            for line in response.iter_lines():
                if not line.startswith("data:"):
                    continue
                payload = line[len("data:"):].strip()
                if payload == "[DONE]":
                    break
                try:
                    chunk = json.loads(payload)
                except json.JSONDecodeError:
                    logger.warning("Skipping malformed stream chunk: %r", payload[:200])
                    continue
                choices = chunk.get("choices") or []
                if not choices:
                    continue
                delta = (choices[0].get("delta") or {}).get("content")
                if delta:
                    yield delta

    def close(self) -> None:
        self._client.close()
