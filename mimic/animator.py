# mimic/animator.py
"""
Per-frame animation of rendered transforms.

With a sequence, every frame moves the rendered transform a fraction
alpha = min(1, dt * rate) of the way toward the resolved target: position, scale and
colour component-wise, orientation along the shortest arc (slerp). Visibility snaps.
The approach is asymptotic and cannot overshoot because alpha never exceeds 1.

Without a sequence the targets are ignored for motion and two optional idle motions
run instead: an orbit in the parent's XZ plane driven by elapsed time, and a spin of
the primary mesh about its Y axis driven by dt.
"""
import math
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np

from .config import DEFAULT_ORBIT_SPEED, SMOOTHING_RATE
from .geometry import quat_slerp
from .model import RGB, SceneObject, Vec3
from .resolver import ResolvedState

Quat = Tuple[float, float, float, float]


@dataclass(frozen=True)
class RenderedTransform:
    position: Vec3
    orientation: Quat
    scale: Vec3
    color: RGB
    visible: bool
    mesh_spin: float = 0.0  # radians about the primary mesh's local Y axis

    @classmethod
    def from_state(cls, state: ResolvedState) -> "RenderedTransform":
        return cls(
            position=state.position,
            orientation=tuple(float(c) for c in state.orientation),
            scale=state.scale,
            color=state.color,
            visible=state.visible,
        )


def sanitize_delta(delta: Any) -> float:
    """Frame time in seconds; anything missing, non-numeric, non-finite or negative is 0."""
    if isinstance(delta, bool):
        return 0.0
    try:
        value = float(delta)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value) or value < 0.0:
        return 0.0
    return value


def smoothing_factor(delta: Any, rate: float = SMOOTHING_RATE) -> float:
    return min(1.0, sanitize_delta(delta) * rate)


def _lerp3(a: Tuple[float, float, float], b: Tuple[float, float, float], t: float) -> Tuple[float, float, float]:
    out = np.asarray(a, dtype=float) + (np.asarray(b, dtype=float) - np.asarray(a, dtype=float)) * t
    return (float(out[0]), float(out[1]), float(out[2]))


def advance(current: RenderedTransform, target: ResolvedState, delta: Any,
            rate: float = SMOOTHING_RATE) -> RenderedTransform:
    """One frame of exponential approach from current toward target."""
    alpha = smoothing_factor(delta, rate)
    if alpha == 0.0:
        return replace(current, visible=target.visible)
    orientation = quat_slerp(np.asarray(current.orientation), target.orientation, alpha)
    return RenderedTransform(
        position=_lerp3(current.position, target.position, alpha),
        orientation=tuple(float(c) for c in orientation),
        scale=_lerp3(current.scale, target.scale, alpha),
        color=_lerp3(current.color, target.color, alpha),
        visible=target.visible,
        mesh_spin=current.mesh_spin,
    )


def orbit_position(obj: SceneObject, elapsed: float, y: float,
                   default_speed: float = DEFAULT_ORBIT_SPEED) -> Vec3:
    angle = elapsed * (obj.orbit_speed or default_speed)
    radius = obj.orbit_radius or 0.0
    return (math.sin(angle) * radius, y, math.cos(angle) * radius)


def idle_motion(current: RenderedTransform, obj: SceneObject, delta: Any, elapsed: Any,
                visible: Optional[bool] = None,
                default_orbit_speed: float = DEFAULT_ORBIT_SPEED) -> RenderedTransform:
    """Procedural motion for graphs without a sequence. Orbit and spin are independent."""
    dt = sanitize_delta(delta)
    position = current.position
    if obj.orbit_radius:
        position = orbit_position(obj, sanitize_delta(elapsed), current.position[1], default_orbit_speed)
    spin = current.mesh_spin
    if obj.rotation_speed:
        spin += dt * obj.rotation_speed
    return replace(
        current,
        position=position,
        mesh_spin=spin,
        visible=obj.visible if visible is None else visible,
    )


class TransformAnimator:
    """Owns the rendered transform of every object of the adopted graph."""

    def __init__(self, rate: float = SMOOTHING_RATE, default_orbit_speed: float = DEFAULT_ORBIT_SPEED):
        self.rate = rate
        self.default_orbit_speed = default_orbit_speed
        self.elapsed = 0.0
        self.rendered: Dict[str, RenderedTransform] = {}

    def reset(self, targets: Mapping[str, ResolvedState]) -> None:
        """Start every object exactly at its target, with the idle clock at zero."""
        self.elapsed = 0.0
        self.rendered = {obj_id: RenderedTransform.from_state(state) for obj_id, state in targets.items()}

    def tick(self, objects: Mapping[str, SceneObject], targets: Mapping[str, ResolvedState],
             delta: Any, idle: bool) -> Dict[str, RenderedTransform]:
        dt = sanitize_delta(delta)
        self.elapsed += dt
        for obj_id, target in targets.items():
            current = self.rendered.get(obj_id)
            if current is None:
                current = RenderedTransform.from_state(target)
            if idle:
                obj = objects[obj_id]
                current = idle_motion(current, obj, dt, self.elapsed, target.visible, self.default_orbit_speed)
            else:
                current = advance(current, target, dt, self.rate)
            self.rendered[obj_id] = current
        return dict(self.rendered)
