#!/usr/bin/env python3
"""
Scene graph payload checks using the JSON Schema at mimic/scene_schema.json.

Only the documented container shape is checked (an object with an `objects` array
and optional `relationships`/`sequence` arrays of objects). Field-level anomalies
are left to SceneGraph.from_dict, which degrades per entity.

Functions:
- load_schema() -> dict
- extract_json_object(text) -> str | None
- validate_scene(obj_or_text) -> (is_valid, scene_dict_or_none, errors)
- unwrap_payload(payload) -> (scene_dict, explanation)

Usage:
  from mimic.scene_validator import validate_scene
  ok, scene, errors = validate_scene(maybe_json_text)
"""
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft7Validator

from .errors import SceneAcquisitionError

_SCHEMA_PATH = Path(__file__).resolve().parent / "scene_schema.json"


def load_schema() -> dict:
    with _SCHEMA_PATH.open("r", encoding="utf-8") as f:
        return json.load(f)


_SCHEMA = load_schema()
_VALIDATOR = Draft7Validator(_SCHEMA)


def extract_json_object(text: str) -> Optional[str]:
    """Slice from the first '{' to the last '}'; None when there is no such span."""
    if not text:
        return None
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        return None
    return text[start:end + 1]


def validate_scene(obj_or_text: Any) -> Tuple[bool, Optional[dict], List[str]]:
    """
    Validate a scene graph object or JSON text.

    Returns:
      (is_valid, scene_dict_or_none, errors_list)
    """
    if isinstance(obj_or_text, str):
        block = extract_json_object(obj_or_text)
        if block is None:
            return False, None, ["No JSON object found"]
        try:
            scene = json.loads(block)
        except json.JSONDecodeError as e:
            return False, None, [f"Invalid JSON: {e}"]
    elif isinstance(obj_or_text, dict):
        scene = obj_or_text
    else:
        return False, None, [f"Unsupported input type: {type(obj_or_text).__name__}"]

    errors = []
    for e in sorted(_VALIDATOR.iter_errors(scene), key=lambda x: list(x.absolute_path)):
        path = ".".join(str(p) for p in e.absolute_path) or "<root>"
        errors.append(f"{path}: {e.message}")
    if errors:
        return False, None, errors
    return True, scene, []


def unwrap_payload(payload: Any) -> Tuple[Dict[str, Any], str]:
    """
    Accept `{explanation, sceneGraph}` or a bare scene graph and return
    (scene_dict, explanation). Raises SceneAcquisitionError when no usable
    scene graph is present.
    """
    if not isinstance(payload, dict):
        raise SceneAcquisitionError(f"Scene payload must be a JSON object, got {type(payload).__name__}")
    explanation = payload.get("explanation")
    explanation = explanation if isinstance(explanation, str) else ""
    scene = payload.get("sceneGraph", payload)
    ok, scene, errors = validate_scene(scene)
    if not ok:
        raise SceneAcquisitionError("Response missing a valid 'sceneGraph': " + "; ".join(errors))
    return scene, explanation
