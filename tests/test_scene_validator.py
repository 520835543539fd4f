import pytest

from mimic.errors import SceneAcquisitionError
from mimic.scene_validator import extract_json_object, unwrap_payload, validate_scene


def test_extract_json_object_from_chatty_reply():
    text = 'Sure! Here it is:\n```json\n{"objects": [{"id": "a"}]}\n```\nEnjoy {:'
    assert extract_json_object(text).startswith('{"objects"')
    assert extract_json_object("no braces here") is None
    assert extract_json_object("} backwards {") is None
    assert extract_json_object("") is None


def test_validate_scene_text_and_dict():
    ok, scene, errors = validate_scene('prefix {"objects": [], "sequence": []} suffix')
    assert ok and scene == {"objects": [], "sequence": []} and errors == []

    ok, scene, errors = validate_scene({"objects": "nope"})
    assert not ok and scene is None
    assert errors[0].startswith("objects:")

    ok, _, errors = validate_scene({"relationships": []})
    assert not ok and errors[0].startswith("<root>:")

    ok, _, errors = validate_scene("{not json}")
    assert not ok and errors[0].startswith("Invalid JSON")

    ok, _, errors = validate_scene(42)
    assert not ok


def test_validate_scene_ignores_field_level_anomalies():
    ok, _, _ = validate_scene({"objects": [{"id": 3, "size": "big", "shape": "teapot"}]})
    assert ok


def test_unwrap_payload(water_cycle_data):
    scene, explanation = unwrap_payload({"explanation": "Water goes round.", "sceneGraph": water_cycle_data})
    assert scene is water_cycle_data
    assert explanation == "Water goes round."

    scene, explanation = unwrap_payload(water_cycle_data)
    assert scene is water_cycle_data and explanation == ""


@pytest.mark.parametrize("payload", [
    {"explanation": "no scene"},
    {"sceneGraph": None},
    {"sceneGraph": {"objects": [1, 2]}},
    ["not", "a", "dict"],
])
def test_unwrap_payload_rejects(payload):
    with pytest.raises(SceneAcquisitionError):
        unwrap_payload(payload)
