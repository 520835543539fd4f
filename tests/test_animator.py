import math

import numpy as np
import pytest

from mimic.animator import (
    RenderedTransform,
    TransformAnimator,
    advance,
    idle_motion,
    sanitize_delta,
    smoothing_factor,
)
from mimic.geometry import quat_angle
from mimic.model import SceneObject
from mimic.resolver import ResolvedState, initial_state

FRAME = 1 / 60


def _start_and_target(**target_fields):
    start = initial_state(SceneObject.from_dict({"id": "a", "color": "black"}))
    fields = dict(position=start.position, scale=start.scale, rotation=start.rotation,
                  color=start.color, visible=start.visible)
    fields.update(target_fields)
    return RenderedTransform.from_state(start), ResolvedState(**fields)


def _distance(a, b):
    return float(np.linalg.norm(np.asarray(a) - np.asarray(b)))


@pytest.mark.parametrize("delta", [None, "abc", float("nan"), float("inf"), -0.5, True, [1]])
def test_invalid_delta_is_zero(delta):
    assert sanitize_delta(delta) == 0.0
    current, target = _start_and_target(position=(0.0, 4.0, 0.0), visible=False)
    moved = advance(current, target, delta)
    assert moved.position == current.position
    assert moved.visible is False


def test_smoothing_factor_is_clamped():
    assert smoothing_factor(0.1) == pytest.approx(0.3)
    assert smoothing_factor(10.0) == 1.0
    assert smoothing_factor(0.0) == 0.0


def test_position_and_scale_converge_without_overshoot():
    current, target = _start_and_target(position=(0.0, 4.0, 0.0), scale=(2.0, 2.0, 2.0))
    distance = _distance(current.position, target.position)
    frames = 0
    while distance > 1e-3:
        current = advance(current, target, FRAME)
        new_distance = _distance(current.position, target.position)
        assert new_distance < distance
        assert current.position[1] <= 4.0
        assert all(c <= 2.0 for c in current.scale)
        distance = new_distance
        frames += 1
        assert frames <= 200


def test_large_delta_snaps_to_target():
    current, target = _start_and_target(position=(1.0, 2.0, 3.0), scale=(2.0, 2.0, 2.0))
    moved = advance(current, target, 5.0)
    assert moved.position == (1.0, 2.0, 3.0)
    assert moved.scale == (2.0, 2.0, 2.0)


def test_orientation_follows_shortest_arc():
    current, target = _start_and_target(rotation=(0.0, math.pi / 2, 0.0))
    angle = quat_angle(np.asarray(current.orientation), target.orientation)
    frames = 0
    while angle > 1e-3:
        current = advance(current, target, FRAME)
        new_angle = quat_angle(np.asarray(current.orientation), target.orientation)
        assert new_angle < angle
        angle = new_angle
        frames += 1
        assert frames <= 300
    assert np.linalg.norm(current.orientation) == pytest.approx(1.0)


def test_color_interpolates_and_visibility_snaps():
    current, target = _start_and_target(color=(1.0, 0.0, 0.0), visible=False)
    moved = advance(current, target, 0.1)
    assert moved.color == pytest.approx((0.3, 0.0, 0.0))
    assert moved.visible is False


def test_idle_orbit_keeps_radius_and_advances_angle():
    obj = SceneObject.from_dict({"id": "planet", "orbitRadius": 5, "orbitSpeed": 1})
    current = RenderedTransform.from_state(initial_state(obj))
    angles = []
    elapsed = 0.0
    for _ in range(10):
        elapsed += 0.1
        current = idle_motion(current, obj, 0.1, elapsed)
        x, _, z = current.position
        assert math.hypot(x, z) == pytest.approx(5.0)
        angles.append(math.atan2(x, z))
    assert all(b > a for a, b in zip(angles, angles[1:]))


def test_idle_orbit_default_speed():
    obj = SceneObject.from_dict({"id": "planet", "orbitRadius": 2})
    current = RenderedTransform.from_state(initial_state(obj))
    moved = idle_motion(current, obj, 0.0, 10.0)
    assert moved.position == pytest.approx((math.sin(1.0) * 2, 0.0, math.cos(1.0) * 2))


def test_idle_spin_accumulates_per_frame():
    obj = SceneObject.from_dict({"id": "sun", "rotationSpeed": 0.5, "position": [1, 2, 3]})
    current = RenderedTransform.from_state(initial_state(obj))
    for _ in range(4):
        current = idle_motion(current, obj, 0.5, 0.0)
    assert current.mesh_spin == pytest.approx(1.0)
    assert current.position == (1.0, 2.0, 3.0)


def test_animator_reset_and_tick():
    obj = SceneObject.from_dict({"id": "a"})
    start = initial_state(obj)
    animator = TransformAnimator()
    animator.reset({"a": start})
    target = ResolvedState(position=(3.0, 0.0, 0.0), scale=start.scale, rotation=start.rotation,
                           color=start.color, visible=True)
    rendered = animator.tick({"a": obj}, {"a": target}, 0.1, idle=False)
    assert rendered["a"].position == pytest.approx((0.9, 0.0, 0.0))
    assert animator.elapsed == pytest.approx(0.1)

    animator.reset({"a": start})
    assert animator.elapsed == 0.0
    assert animator.rendered["a"].position == (0.0, 0.0, 0.0)
