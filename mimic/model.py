# mimic/model.py
"""
Scene graph data model.

A SceneGraph is built once from the AI's JSON payload and never mutated afterwards.
Construction is tolerant: per-entity anomalies (unknown shape, bad size, bad colour,
unusable sequence entry) degrade to defaults or are dropped with a warning. Only a
payload whose top-level structure is wrong raises SceneGraphError.
"""
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from PIL import ImageColor

from .errors import SceneGraphError

logger = logging.getLogger(__name__)

Vec3 = Tuple[float, float, float]
RGB = Tuple[float, float, float]

ORIGIN: Vec3 = (0.0, 0.0, 0.0)
UNIT_SCALE: Vec3 = (1.0, 1.0, 1.0)
DEFAULT_COLOR = "grey"


class Shape(str, Enum):
    BOX = "box"
    SPHERE = "sphere"
    CONE = "cone"
    CYLINDER = "cylinder"
    TORUS = "torus"
    PLANE = "plane"
    RING = "ring"
    OCTAHEDRON = "octahedron"
    ICOSAHEDRON = "icosahedron"


SHAPE_ALIASES = {
    "cube": Shape.BOX,
    "pyramid": Shape.CONE,
    "donut": Shape.TORUS,
}


class Action(str, Enum):
    MOVE = "move"
    ROTATE = "rotate"
    SCALE = "scale"
    CHANGE_COLOR = "changeColor"
    APPEAR = "appear"
    DISAPPEAR = "disappear"


# actions whose params must carry a payload to have any effect
PAYLOAD_KEYS = {
    Action.MOVE: "position",
    Action.ROTATE: "rotation",
    Action.SCALE: "scale",
    Action.CHANGE_COLOR: "color",
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def parse_vec3(value: Any) -> Optional[Vec3]:
    """Return a 3-tuple of floats, or None when value is not a list of at least 3 numbers."""
    if not isinstance(value, (list, tuple)) or len(value) < 3:
        return None
    head = value[:3]
    if not all(_is_number(v) for v in head):
        return None
    return (float(head[0]), float(head[1]), float(head[2]))


def parse_color(value: Any) -> Optional[RGB]:
    """Named CSS colour or hex string -> RGB floats in [0, 1]; None when unparseable."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        rgb = ImageColor.getrgb(value.strip())
    except ValueError:
        return None
    return (rgb[0] / 255.0, rgb[1] / 255.0, rgb[2] / 255.0)


def parse_shape(value: Any) -> Shape:
    name = value.strip().lower() if isinstance(value, str) else ""
    if name in SHAPE_ALIASES:
        return SHAPE_ALIASES[name]
    try:
        return Shape(name)
    except ValueError:
        return Shape.BOX


def effective_size(value: Any) -> Vec3:
    """
    Backfill a 1-3 component size to exactly three positive components.

    width defaults to 1, height and depth default to width:
      [2]    -> (2, 2, 2)
      [2, 4] -> (2, 4, 2)
    """
    if _is_number(value):
        value = [value]
    if not isinstance(value, (list, tuple)):
        value = []

    def component(i: int) -> Optional[float]:
        if i < len(value) and _is_number(value[i]) and value[i] > 0:
            return float(value[i])
        return None

    width = component(0) or 1.0
    height = component(1) or width
    depth = component(2) or width
    return (width, height, depth)


def _optional_number(value: Any) -> Optional[float]:
    return float(value) if _is_number(value) and value != 0 else None


@dataclass(frozen=True)
class SceneObject:
    id: str
    parent: Optional[str] = None
    shape: Shape = Shape.BOX
    size: Vec3 = UNIT_SCALE
    position: Vec3 = ORIGIN
    rotation: Vec3 = ORIGIN  # degrees, as declared
    color: RGB = (128 / 255.0, 128 / 255.0, 128 / 255.0)
    visible: bool = True
    label: Optional[str] = None
    show_label: bool = False
    emissive: bool = False
    orbit_radius: Optional[float] = None
    orbit_speed: Optional[float] = None
    rotation_speed: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], index: int = 0) -> "SceneObject":
        obj_id = data.get("id")
        if not isinstance(obj_id, str) or not obj_id:
            obj_id = f"object_{index}"
        parent = data.get("parent")
        if not isinstance(parent, str) or not parent or parent == obj_id:
            parent = None

        color = parse_color(data.get("color", DEFAULT_COLOR))
        if color is None:
            logger.warning("object %s: unrecognised color %r, using grey", obj_id, data.get("color"))
            color = parse_color(DEFAULT_COLOR)

        label = data.get("label")
        return cls(
            id=obj_id,
            parent=parent,
            shape=parse_shape(data.get("shape")),
            size=effective_size(data.get("size")),
            position=parse_vec3(data.get("position")) or ORIGIN,
            rotation=parse_vec3(data.get("rotation")) or ORIGIN,
            color=color,
            visible=data.get("visible") is not False,
            label=str(label) if label is not None else None,
            show_label=bool(data.get("showLabel")),
            emissive=bool(data.get("emissive")),
            orbit_radius=_optional_number(data.get("orbitRadius")),
            orbit_speed=_optional_number(data.get("orbitSpeed")),
            rotation_speed=_optional_number(data.get("rotationSpeed")),
        )


@dataclass(frozen=True)
class Relationship:
    from_id: str
    to_id: str
    kind: str = "line"
    label: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Relationship":
        kind = data.get("type", data.get("kind"))
        label = data.get("label")
        return cls(
            from_id=str(data.get("from", "")),
            to_id=str(data.get("to", "")),
            kind="arrow" if kind == "arrow" else "line",
            label=str(label) if label is not None else "",
        )


@dataclass(frozen=True)
class SequenceStep:
    """
    One timeline event. `value` is the typed payload for the action:
      move/rotate/scale -> Vec3 (rotation in degrees), changeColor -> RGB,
      appear/disappear -> None.
    A payload action whose params were missing or malformed carries value=None
    and resolves as a no-op.

    Entries that can never apply are kept so the timeline length and label
    positions match the payload: an invalid step number becomes 0 (never reached),
    an unknown action becomes None.
    """
    step: int
    target_id: str
    action: Optional[Action]
    value: Any = None
    label: str = ""

    @property
    def is_noop(self) -> bool:
        if self.action is None or self.step < 1:
            return True
        return self.action in PAYLOAD_KEYS and self.value is None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SequenceStep":
        step = data.get("step")
        if isinstance(step, float) and step.is_integer():
            step = int(step)
        if not isinstance(step, int) or isinstance(step, bool) or step < 1:
            logger.warning("sequence entry has invalid step %r; it will never apply", step)
            step = 0
        try:
            action: Optional[Action] = Action(data.get("action"))
        except ValueError:
            logger.warning("sequence entry has unknown action %r; it will never apply", data.get("action"))
            action = None

        params = data.get("params")
        value = None
        if action in PAYLOAD_KEYS and isinstance(params, Mapping):
            raw = params.get(PAYLOAD_KEYS[action])
            value = parse_color(raw) if action is Action.CHANGE_COLOR else parse_vec3(raw)
            if value is None:
                logger.debug("step %s %s: malformed params %r", step, action.value, params)

        label = data.get("label")
        return cls(
            step=step,
            target_id=str(data.get("targetId", "")),
            action=action,
            value=value,
            label=str(label) if label is not None else "",
        )


def _as_list(data: Mapping[str, Any], key: str) -> List[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise SceneGraphError(f"sceneGraph.{key} must be a list, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class SceneGraph:
    objects: Tuple[SceneObject, ...] = ()
    relationships: Tuple[Relationship, ...] = ()
    sequence: Tuple[SequenceStep, ...] = ()

    @property
    def has_sequence(self) -> bool:
        return len(self.sequence) > 0

    @property
    def step_count(self) -> int:
        return len(self.sequence)

    @classmethod
    def from_dict(cls, data: Any) -> "SceneGraph":
        if not isinstance(data, Mapping):
            raise SceneGraphError(f"scene graph must be a JSON object, got {type(data).__name__}")

        objects: List[SceneObject] = []
        seen: Dict[str, int] = {}
        for i, raw in enumerate(_as_list(data, "objects")):
            if not isinstance(raw, Mapping):
                logger.warning("skipping object #%d: not an object", i)
                continue
            obj = SceneObject.from_dict(raw, index=i)
            if obj.id in seen:
                logger.warning("duplicate object id %r at #%d, keeping #%d", obj.id, i, seen[obj.id])
                continue
            seen[obj.id] = i
            objects.append(obj)

        relationships = [
            Relationship.from_dict(raw)
            for raw in _as_list(data, "relationships")
            if isinstance(raw, Mapping)
        ]

        sequence = [
            SequenceStep.from_dict(raw if isinstance(raw, Mapping) else {})
            for raw in _as_list(data, "sequence")
        ]

        return cls(tuple(objects), tuple(relationships), tuple(sequence))
