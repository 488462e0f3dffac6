"""content.prompts

Prompt builder for the daily event.

The model writes narrative and declares effects in a fixed JSON shape; all
bookkeeping (costs, consumption, status damage, game over) stays in the
engine.
"""

from __future__ import annotations

from typing import Sequence

from core.state import POPULATION_CAP, STATUS_DESCRIPTIONS, Survivor

from .providers.base import EventRequest


def describe_survivors(survivors: Sequence[Survivor]) -> str:
    lines = []
    for s in survivors:
        detail = f"- {s.name} (Health: {s.health}"
        if s.health <= 0:
            detail += ", deceased"
        if s.statuses:
            detail += f", Statuses: [{', '.join(s.statuses)}]"
        if s.companion is not None:
            detail += f", Companion: {s.companion.name} ({s.companion.type})"
        lines.append(detail + ")")
    return "\n".join(lines)


def build_event_prompt(request: EventRequest) -> str:
    """Build the day-event prompt. The model MUST answer with JSON only."""
    survivors = list(request.survivors)
    names = ", ".join(s.name for s in survivors) or "You"
    previous = request.previous_day_outcome.strip() or "First day. No previous event; open the story."
    room = len(survivors) < POPULATION_CAP
    statuses = ", ".join(STATUS_DESCRIPTIONS)
    tone = request.tone or "grim and grounded"

    new_rule = (
        "You MAY (rarely) add a new survivor with {\"target\": \"new\", \"name\": ..., \"health\": ..., \"statuses\": []}."
        if room
        else f"The party is full ({POPULATION_CAP}). Do NOT add new survivors."
    )

    return f"""
You generate daily events for a survival game.

Theme: {request.theme}
Tone: {tone}
Day: {int(request.day)}
Food: {int(request.food)}
Water: {int(request.water)}
Survivors ({len(survivors)}):
{describe_survivors(survivors)}
Previous outcome: {previous}

Task:
1) Write a 3-5 sentence event that follows from the previous outcome and fits the theme.
2) Offer 2-3 distinct choices with real trade-offs (risk vs reward, cost now vs later).
3) Companions are pets or helpers, never humans. Add one only to a survivor without one.
4) {new_rule}
5) Use only these statuses: {statuses}. Remove statuses that no longer make sense.
6) survivorChanges target: "player", "random", "all", or one of: {names}.

Answer with ONLY this JSON object:
{{
  "description": "string",
  "choices": [
    {{
      "id": "choice_1",
      "action": "short button label",
      "cost": {{"food": 0, "water": 0}},
      "outcome": "what happens if chosen",
      "effects": {{
        "food": 0,
        "water": 0,
        "survivorChanges": [
          {{"target": "player", "healthChange": -5, "addStatus": "Exhausted"}},
          {{"target": "random", "removeStatus": "all_negative"}},
          {{"target": "player", "addCompanion": {{"type": "dog", "name": "Stray Dog", "bonuses": {{"hunting_yield": 20}}}}}}
        ]
      }}
    }}
  ]
}}
""".strip()
