import json
from types import SimpleNamespace

import pytest

from mimic.errors import SceneAcquisitionError
from mimic.gemini_client import SceneGenerator, _extract_text_from_response


class FakeModel:
    """Stands in for genai.GenerativeModel; replies are consumed in order."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.prompts = []

    def generate_content(self, prompt):
        self.prompts.append(prompt)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(text=reply)


@pytest.fixture
def sleeps():
    return []


def _generator(replies, sleeps, max_retries=3):
    return SceneGenerator(client=FakeModel(replies), max_retries=max_retries, sleep=sleeps.append)


def test_two_stage_generation(water_cycle_data, sleeps):
    reply = "Here is your scene:\n```json\n" + json.dumps(water_cycle_data) + "\n```"
    gen = _generator(["Water goes up and comes down.", reply], sleeps)
    graph, explanation = gen.visualize("the water cycle")
    assert explanation == "Water goes up and comes down."
    assert [o.id for o in graph.objects] == ["ocean", "vapor"]
    assert graph.step_count == 2
    assert "the water cycle" in gen.client.prompts[0]
    assert "Water goes up and comes down." in gen.client.prompts[1]
    assert sleeps == []


def test_503_is_retried_with_backoff(water_cycle_data, sleeps):
    gen = _generator([
        RuntimeError("503 The model is overloaded"),
        "explanation", RuntimeError("503 again"),
        "explanation", json.dumps(water_cycle_data),
    ], sleeps)
    payload = gen.generate("the water cycle")
    assert payload["sceneGraph"] == water_cycle_data
    assert sleeps == [2, 4]


def test_503_gives_up_after_max_retries(sleeps):
    gen = _generator([RuntimeError("503 unavailable")] * 3, sleeps)
    with pytest.raises(SceneAcquisitionError, match="503"):
        gen.generate("gravity")
    assert sleeps == [2, 4]


def test_other_errors_are_not_retried(sleeps):
    gen = _generator([RuntimeError("400 API key not valid")], sleeps)
    with pytest.raises(SceneAcquisitionError, match="Failed to generate scene from AI"):
        gen.generate("gravity")
    assert sleeps == []


def test_reply_without_json(sleeps):
    gen = _generator(["explanation", "I cannot draw that."], sleeps)
    with pytest.raises(SceneAcquisitionError, match="did not return valid JSON"):
        gen.generate("gravity")


def test_reply_without_objects(sleeps):
    gen = _generator(["explanation", '{"sequence": []}'], sleeps)
    with pytest.raises(SceneAcquisitionError, match="sceneGraph"):
        gen.visualize("gravity")


def test_empty_concept(sleeps):
    gen = _generator([], sleeps)
    with pytest.raises(SceneAcquisitionError, match="Prompt is required"):
        gen.generate("   ")


def test_missing_api_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    with pytest.raises(SceneAcquisitionError, match="GEMINI_API_KEY"):
        SceneGenerator()


def test_text_from_candidates():
    class Blocked:
        @property
        def text(self):
            raise ValueError("no text accessor")

        candidates = [SimpleNamespace(content=SimpleNamespace(parts=[
            SimpleNamespace(text="first"), SimpleNamespace(text="second"),
        ]))]

    assert _extract_text_from_response(Blocked()) == "first\nsecond"
    assert _extract_text_from_response(None) == ""
