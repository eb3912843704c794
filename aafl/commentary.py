"""
aafl/commentary.py - Match narrative generation

The score is decided before any commentator runs. A commentator only turns
a finished MatchResult into prose:

    TemplateCommentator  local, never fails
    ChatCommentator      OpenAI-compatible chat completions over httpx

ChatCommentator wraps every failure in ExternalGenerationFailure so the
resolver can drop back to a commentary-less result.
"""

import logging
import os
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx

from .errors import ExternalGenerationFailure
from .models import ResultType, Side

if TYPE_CHECKING:
    from .config import CommentaryConfig
    from .models import MatchResult, Team

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-3.5-turbo"


# ============================================================================
# Protocol
# ============================================================================


@runtime_checkable
class Commentator(Protocol):
    """Anything that can describe a decided match."""

    def narrate(self, team_a: "Team", team_b: "Team", result: "MatchResult") -> str:
        ...


# ============================================================================
# Implementations
# ============================================================================


class TemplateCommentator:
    """Fills a fixed narrative from the goal log."""

    def narrate(self, team_a: "Team", team_b: "Team", result: "MatchResult") -> str:
        lines = [f"⚽ {team_a.name} vs {team_b.name}", ""]

        play = "An intense match at the stadium! "
        for goal in result.goals:
            side_name = team_a.name if goal.side is Side.A else team_b.name
            play += f"{goal.scorer} scores for {side_name} in the {goal.minute}' minute! "
        lines.append(play.rstrip())
        lines.append("")

        final = f"Final Score: {team_a.name} {result.score_a} - {result.score_b} {team_b.name}"
        if result.result_type is ResultType.PENALTIES:
            final += " (Decided on penalties)"
        lines.append(final)
        lines.append("")

        winner = result.winner_team(team_a, team_b)
        lines.append(f"Winner: {winner.name if winner else 'Draw'}")
        return "\n".join(lines)


class ChatCommentator:
    """Asks a chat-completions endpoint to narrate a fixed result."""

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_API_URL,
        model: str = DEFAULT_MODEL,
        timeout: float = 20.0,
        client: httpx.Client | None = None,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)

    def narrate(self, team_a: "Team", team_b: "Team", result: "MatchResult") -> str:
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": build_prompt(team_a, team_b, result)}],
            "temperature": 0.8,
            "max_tokens": 800,
        }

        try:
            resp = self._client.post(
                self.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPError as e:
            raise ExternalGenerationFailure(f"Commentary request failed: {e}") from e
        except ValueError as e:
            raise ExternalGenerationFailure(f"Commentary response was not JSON: {e}") from e

        try:
            text = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ExternalGenerationFailure(f"Unexpected commentary response shape: {e}") from e

        if not isinstance(text, str) or not text.strip():
            raise ExternalGenerationFailure("Commentary response was empty")
        return text.strip()


# ============================================================================
# Helpers
# ============================================================================


def build_prompt(team_a: "Team", team_b: "Team", result: "MatchResult") -> str:
    """Prompt that pins the model to the already-decided outcome."""
    goal_lines = []
    for goal in result.goals:
        side_name = team_a.name if goal.side is Side.A else team_b.name
        goal_lines.append(f"- {goal.minute}': {goal.scorer} ({side_name})")
    goals_text = "\n".join(goal_lines) if goal_lines else "- No goals"

    winner = result.winner_team(team_a, team_b)
    decided = " after a penalty shootout" if result.result_type is ResultType.PENALTIES else ""

    return (
        f"You are a football commentator for an African Football League match between "
        f"{team_a.name} and {team_b.name}.\n\n"
        f"The match is already over. Final score: {team_a.name} {result.score_a} - "
        f"{result.score_b} {team_b.name}. Winner: {winner.name if winner else 'Draw'}{decided}.\n"
        f"Goals, in order:\n{goals_text}\n\n"
        "Write exciting, realistic commentary of the 90 minutes (300-400 words). "
        "Do not change the score, the scorers or the minutes. "
        "End with the final score and the winner."
    )


def build_commentator(config: "CommentaryConfig") -> Commentator | None:
    """Pick a commentator from config. None when commentary is switched off."""
    if not config.enabled:
        return None

    api_key = os.environ.get("OPENAI_API_KEY") or config.api_key
    if not api_key:
        logger.debug("No commentary API key, using template commentary")
        return TemplateCommentator()

    return ChatCommentator(
        api_key=api_key,
        api_url=config.api_url,
        model=config.model,
        timeout=config.timeout,
    )
