from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, List

import pytest
from google.genai import errors as genai_errors

from content.errors import ErrorType, EventFetchError
from content.prompts import build_event_prompt
from content.providers.base import EventRequest
from content.providers.gemini import MAX_RETRIES, MODEL_CANDIDATES, GeminiProvider, classify_error
from core.state import Companion, Survivor

GOOD = json.dumps({"description": "Ash falls.", "choices": [{"id": "a", "action": "Hide"}]})


@dataclass
class FakeResponse:
    text: str


@dataclass
class FakeModels:
    script: List[Any]
    calls: List[str] = field(default_factory=list)

    def generate_content(self, model, contents, config):
        self.calls.append(model)
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return FakeResponse(item)


@dataclass
class FakeClient:
    models: FakeModels


def _provider(*script):
    sleeps: List[float] = []
    client = FakeClient(FakeModels(list(script)))
    p = GeminiProvider(api_keys=["k1"], sleep=sleeps.append, _client=client)
    return p, client.models, sleeps


def _request():
    party = (
        Survivor(id="player", name="You", health=80, statuses=("Cold",)),
        Survivor(id="s2", name="Mara", health=50, companion=Companion(id="c", name="Rex", type="dog")),
    )
    return EventRequest(day=3, food=9, water=4, survivors=party, theme="Nuclear Winter", previous_day_outcome="You hid.")


def _not_found():
    return genai_errors.ClientError(404, {"error": {"code": 404, "message": "model not found", "status": "NOT_FOUND"}})


def test_success_returns_event():
    p, models, sleeps = _provider(GOOD)
    event = p.generate_event(_request())
    assert event.description == "Ash falls."
    assert event.choices[0].action == "Hide"
    assert sleeps == [] and models.calls == [MODEL_CANDIDATES[0]]


def test_retries_transient_errors_with_backoff():
    p, models, sleeps = _provider(ConnectionError("reset"), TimeoutError("slow"), GOOD)
    event = p.generate_event(_request())
    assert event.description == "Ash falls."
    assert len(sleeps) == 2 and sleeps[1] > sleeps[0]


def test_gives_up_after_max_retries():
    p, _, sleeps = _provider(*[ConnectionError("down")] * (MAX_RETRIES + 1))
    with pytest.raises(EventFetchError) as exc:
        p.generate_event(_request())
    assert exc.value.error_type is ErrorType.NETWORK
    assert len(sleeps) == MAX_RETRIES


def test_unparseable_output_is_not_retried():
    p, _, sleeps = _provider("I cannot help with that.")
    with pytest.raises(EventFetchError) as exc:
        p.generate_event(_request())
    assert exc.value.error_type is ErrorType.VALIDATION
    assert sleeps == []


def test_missing_model_falls_through_to_next_candidate():
    p, models, _ = _provider(_not_found(), GOOD)
    p.generate_event(_request())
    assert models.calls == list(MODEL_CANDIDATES[:2])
    assert p.model_in_use == MODEL_CANDIDATES[1]


def test_classify_error():
    assert classify_error(_not_found()) is ErrorType.VALIDATION
    assert classify_error(ConnectionError()) is ErrorType.NETWORK
    assert classify_error(ValueError()) is ErrorType.UNKNOWN


def test_no_key_means_not_ready():
    p = GeminiProvider.from_api_key_string("")
    assert not p.status().ok
    with pytest.raises(EventFetchError):
        p.generate_event(_request())


def test_prompt_describes_party():
    prompt = build_event_prompt(_request())
    assert "Day: 3" in prompt and "Food: 9" in prompt
    assert "Mara (Health: 50, Companion: Rex (dog))" in prompt
    assert "You hid." in prompt
    assert '"target": "new"' in prompt
