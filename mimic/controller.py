# mimic/controller.py
"""
High-level orchestrator: holds the adopted scene graph and the current step, resolves
targets when the step changes, and produces one Frame of draw calls per tick.

    controller = SceneController()
    controller.adopt(SceneGraph.from_dict(payload["sceneGraph"]))
    controller.next_step()
    frame = controller.tick(1 / 60)

Adopting a new graph replaces the old one wholesale and resets the step to 0.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from .animator import RenderedTransform, TransformAnimator
from .config import DEFAULT_ORBIT_SPEED, SMOOTHING_RATE
from .geometry import (
    ShapeDescriptor,
    compose_matrix,
    describe_shape,
    quat_from_axis_angle,
    quat_multiply,
    transform_point,
)
from .hierarchy import HierarchyComposer
from .model import RGB, SceneGraph, Vec3
from .relationships import Connector, resolve_connectors, resolved_world_positions
from .resolver import ResolvedState, StepResolver

logger = logging.getLogger(__name__)

INITIAL_LABEL = "Initial Scene"
EMISSIVE_INTENSITY = 1.5
BLACK: RGB = (0.0, 0.0, 0.0)


@dataclass(frozen=True)
class StepInfo:
    current: int
    total: int
    label: str

    @property
    def caption(self) -> str:
        return f"Step {self.current}/{self.total} — {self.label}"


@dataclass(frozen=True)
class DrawCall:
    object_id: str
    shape: ShapeDescriptor
    position: Vec3
    orientation: Tuple[float, float, float, float]
    scale: Vec3
    matrix: np.ndarray
    color: RGB
    emissive: RGB = BLACK
    emissive_intensity: float = 0.0
    label: Optional[str] = None
    label_position: Optional[Vec3] = None


@dataclass(frozen=True)
class Frame:
    step: StepInfo
    draw_calls: List[DrawCall] = field(default_factory=list)
    connectors: List[Connector] = field(default_factory=list)
    elapsed: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": {"current": self.step.current, "total": self.step.total,
                     "label": self.step.label, "caption": self.step.caption},
            "elapsed": self.elapsed,
            "objects": [
                {
                    "id": d.object_id,
                    "shape": d.shape.shape.value,
                    "size": list(d.shape.size),
                    "geometry": dict(d.shape.params),
                    "position": list(d.position),
                    "orientation": list(d.orientation),
                    "scale": list(d.scale),
                    "color": list(d.color),
                    "emissive": list(d.emissive),
                    "emissiveIntensity": d.emissive_intensity,
                    "label": d.label,
                    "labelPosition": list(d.label_position) if d.label_position else None,
                }
                for d in self.draw_calls
            ],
            "connectors": [
                {"from": c.from_id, "to": c.to_id, "type": c.kind, "label": c.label,
                 "start": list(c.start), "end": list(c.end), "labelPosition": list(c.label_position)}
                for c in self.connectors
            ],
        }


def _vec(values) -> Vec3:
    return (float(values[0]), float(values[1]), float(values[2]))


class SceneController:
    def __init__(self, smoothing_rate: float = SMOOTHING_RATE, default_orbit_speed: float = DEFAULT_ORBIT_SPEED):
        self.animator = TransformAnimator(rate=smoothing_rate, default_orbit_speed=default_orbit_speed)
        self.graph = SceneGraph()
        self.composer = HierarchyComposer(())
        self.resolver = StepResolver(self.graph)
        self.current_step = 0
        self.targets: Dict[str, ResolvedState] = {}
        self._connectors: List[Connector] = []

    # graph lifecycle ---------------------------------------------------
    def adopt(self, graph: SceneGraph) -> None:
        self.graph = graph
        self.composer = HierarchyComposer(graph.objects)
        self.resolver = StepResolver(graph)
        self.current_step = 0
        self._resolve()
        self.animator.reset(self.targets)
        logger.info("adopted scene graph: %d objects, %d relationships, %d steps",
                    len(graph.objects), len(graph.relationships), graph.step_count)

    def _resolve(self) -> None:
        self.targets = self.resolver.resolve_all(self.current_step)
        positions = resolved_world_positions(self.composer, self.targets)
        self._connectors = resolve_connectors(self.graph.relationships, positions)

    # step navigation ---------------------------------------------------
    @property
    def step_count(self) -> int:
        return self.graph.step_count

    def set_step(self, n: int) -> int:
        n = max(0, min(int(n), self.step_count))
        if n != self.current_step:
            self.current_step = n
            self._resolve()
        return self.current_step

    def next_step(self) -> int:
        if self.current_step < self.step_count:
            return self.set_step(self.current_step + 1)
        return self.current_step

    def prev_step(self) -> int:
        if self.current_step > 1:
            return self.set_step(self.current_step - 1)
        return self.current_step

    def step_info(self) -> StepInfo:
        if self.current_step > 0:
            label = self.graph.sequence[self.current_step - 1].label
        else:
            label = INITIAL_LABEL
        return StepInfo(current=self.current_step, total=self.step_count, label=label)

    def connectors(self) -> List[Connector]:
        return list(self._connectors)

    # per frame ---------------------------------------------------------
    def tick(self, delta: Any) -> Frame:
        objects = self.composer.index
        rendered = self.animator.tick(objects, self.targets, delta, idle=not self.graph.has_sequence)
        return Frame(
            step=self.step_info(),
            draw_calls=self._draw_calls(rendered),
            connectors=self.connectors(),
            elapsed=self.animator.elapsed,
        )

    def _draw_calls(self, rendered: Dict[str, RenderedTransform]) -> List[DrawCall]:
        composer = self.composer
        local = {
            obj_id: compose_matrix(t.position, np.asarray(t.orientation), t.scale)
            for obj_id, t in rendered.items()
        }
        world = composer.world_matrices(local)
        visible = composer.effective_visibility({obj_id: t.visible for obj_id, t in rendered.items()})

        world_quat: Dict[str, np.ndarray] = {}
        world_scale: Dict[str, np.ndarray] = {}
        calls = []
        for obj_id in composer.order:
            t = rendered[obj_id]
            obj = composer.index[obj_id]
            parent = composer.parent_of(obj_id)
            q = np.asarray(t.orientation)
            s = np.asarray(t.scale, dtype=float)
            if parent is not None:
                q = quat_multiply(world_quat[parent], q)
                s = world_scale[parent] * s
            world_quat[obj_id] = q
            world_scale[obj_id] = s
            if not visible[obj_id]:
                continue

            group = world[obj_id]
            spin = quat_from_axis_angle((0.0, 1.0, 0.0), t.mesh_spin)
            mesh = group @ compose_matrix((0.0, 0.0, 0.0), spin, (1.0, 1.0, 1.0))
            shape = describe_shape(obj.shape, obj.size)
            label = obj.label if (obj.label and obj.show_label) else None
            calls.append(DrawCall(
                object_id=obj_id,
                shape=shape,
                position=_vec(group[:3, 3]),
                orientation=tuple(float(c) for c in quat_multiply(q, spin)),
                scale=_vec(s),
                matrix=mesh,
                color=t.color,
                emissive=t.color if obj.emissive else BLACK,
                emissive_intensity=EMISSIVE_INTENSITY if obj.emissive else 0.0,
                label=label,
                label_position=_vec(transform_point(group, shape.label_offset)) if label else None,
            ))
        return calls
