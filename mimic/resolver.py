# mimic/resolver.py
"""
Step resolution: the authoritative visual state of an object at a step index.

The state at step k is the object's declared state with every sequence action
numbered 1..k that targets it folded in, lowest step first. Entries sharing a step
number apply in their original array order, so a later entry overwrites the fields
an earlier one set. Step 0 (or anything below 1) is always the declared state.
"""
import math
from collections import defaultdict
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional

import numpy as np

from .geometry import quat_from_euler
from .model import RGB, UNIT_SCALE, Action, SceneGraph, SceneObject, SequenceStep, Vec3


@dataclass(frozen=True)
class ResolvedState:
    position: Vec3
    scale: Vec3
    rotation: Vec3  # radians
    color: RGB
    visible: bool

    @property
    def orientation(self) -> np.ndarray:
        return quat_from_euler(*self.rotation)


def to_radians(degrees: Vec3) -> Vec3:
    return (math.radians(degrees[0]), math.radians(degrees[1]), math.radians(degrees[2]))


def initial_state(obj: SceneObject) -> ResolvedState:
    return ResolvedState(
        position=obj.position,
        scale=UNIT_SCALE,
        rotation=to_radians(obj.rotation),
        color=obj.color,
        visible=obj.visible,
    )


def apply_action(state: ResolvedState, entry: SequenceStep) -> ResolvedState:
    """Fold one sequence entry into state. Malformed or unknown entries leave it unchanged."""
    if entry.is_noop:
        return state
    action = entry.action
    if action is Action.MOVE:
        return replace(state, position=entry.value)
    if action is Action.SCALE:
        return replace(state, scale=entry.value)
    if action is Action.ROTATE:
        return replace(state, rotation=to_radians(entry.value))
    if action is Action.CHANGE_COLOR:
        return replace(state, color=entry.value)
    if action is Action.APPEAR:
        return replace(state, visible=True)
    if action is Action.DISAPPEAR:
        return replace(state, visible=False)
    return state


def _step_limit(current_step: Any) -> int:
    if isinstance(current_step, bool):
        return 0
    try:
        return int(current_step)
    except (TypeError, ValueError, OverflowError):
        return 0


def _fold(state: ResolvedState, entries: Iterable[SequenceStep], limit: int) -> ResolvedState:
    # entries are already in (step, array position) order
    for entry in entries:
        if entry.step > limit:
            break
        if entry.step >= 1:
            state = apply_action(state, entry)
    return state


def _timeline_for(obj_id: str, sequence: Iterable[SequenceStep]) -> List[SequenceStep]:
    # sorted() is stable, so same-step entries keep their array order
    return sorted((e for e in sequence if e.target_id == obj_id), key=lambda e: e.step)


def resolve(obj: SceneObject, sequence: Iterable[SequenceStep], current_step: Any) -> ResolvedState:
    """Resolved state of obj after replaying every applicable action up to current_step."""
    state = initial_state(obj)
    limit = _step_limit(current_step)
    if limit < 1:
        return state
    return _fold(state, _timeline_for(obj.id, sequence), limit)


class StepResolver:
    """
    Resolver bound to one SceneGraph. The per-object timelines are indexed once when
    the graph is adopted; resolving a step is then a short fold per object.
    """

    def __init__(self, graph: SceneGraph):
        self.graph = graph
        self._objects: Dict[str, SceneObject] = {obj.id: obj for obj in graph.objects}
        timelines: Dict[str, List[SequenceStep]] = defaultdict(list)
        for entry in graph.sequence:
            timelines[entry.target_id].append(entry)
        self._timelines = {
            target: sorted(entries, key=lambda e: e.step) for target, entries in timelines.items()
        }

    def resolve(self, obj_id: str, current_step: Any) -> Optional[ResolvedState]:
        obj = self._objects.get(obj_id)
        if obj is None:
            return None
        state = initial_state(obj)
        limit = _step_limit(current_step)
        if limit < 1:
            return state
        return _fold(state, self._timelines.get(obj_id, ()), limit)

    def resolve_all(self, current_step: Any) -> Dict[str, ResolvedState]:
        return {obj_id: self.resolve(obj_id, current_step) for obj_id in self._objects}
