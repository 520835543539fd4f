# mimic/geometry.py
"""
Small 3D math helpers on numpy arrays plus the shape+size descriptor handed to renderers.

Quaternions are (x, y, z, w) with w the scalar part. Euler angles are radians
applied in X, Y, Z order.
"""
import math
from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

import numpy as np

from .model import Shape, Vec3

IDENTITY_QUAT = np.array([0.0, 0.0, 0.0, 1.0])


def quat_normalize(q: np.ndarray) -> np.ndarray:
    mag = float(np.linalg.norm(q))
    if mag < 1e-9:
        return IDENTITY_QUAT.copy()
    return q / mag


def quat_from_euler(rx: float, ry: float, rz: float) -> np.ndarray:
    c1, c2, c3 = math.cos(rx / 2), math.cos(ry / 2), math.cos(rz / 2)
    s1, s2, s3 = math.sin(rx / 2), math.sin(ry / 2), math.sin(rz / 2)
    return np.array([
        s1 * c2 * c3 + c1 * s2 * s3,
        c1 * s2 * c3 - s1 * c2 * s3,
        c1 * c2 * s3 + s1 * s2 * c3,
        c1 * c2 * c3 - s1 * s2 * s3,
    ])


def quat_from_axis_angle(axis: Sequence[float], angle_rad: float) -> np.ndarray:
    axis = np.asarray(axis, dtype=float)
    norm = float(np.linalg.norm(axis))
    if norm < 1e-9:
        return IDENTITY_QUAT.copy()
    s = math.sin(angle_rad / 2.0)
    x, y, z = axis / norm * s
    return np.array([x, y, z, math.cos(angle_rad / 2.0)])


def quat_multiply(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    x1, y1, z1, w1 = a
    x2, y2, z2, w2 = b
    return np.array([
        w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
        w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
        w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
        w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
    ])


def quat_angle(a: np.ndarray, b: np.ndarray) -> float:
    """Angle in radians of the rotation taking orientation a to orientation b."""
    dot = abs(float(np.dot(quat_normalize(a), quat_normalize(b))))
    return 2.0 * math.acos(min(1.0, dot))


def quat_slerp(a: np.ndarray, b: np.ndarray, t: float) -> np.ndarray:
    """Spherical interpolation along the shortest arc from a (t=0) to b (t=1)."""
    a = quat_normalize(a)
    b = quat_normalize(b)
    dot = float(np.dot(a, b))
    if dot < 0.0:
        b = -b
        dot = -dot
    if t <= 0.0:
        return a
    if t >= 1.0:
        return b
    if dot > 0.9995:
        return quat_normalize(a + t * (b - a))
    theta = math.acos(dot)
    sin_theta = math.sin(theta)
    s0 = math.sin((1.0 - t) * theta) / sin_theta
    s1 = math.sin(t * theta) / sin_theta
    return s0 * a + s1 * b


def rotation_matrix(q: np.ndarray) -> np.ndarray:
    x, y, z, w = quat_normalize(q)
    return np.array([
        [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
        [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
        [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)],
    ])


def compose_matrix(position: Sequence[float], orientation: np.ndarray, scale: Sequence[float]) -> np.ndarray:
    """Local transform T * R * S as a 4x4 matrix."""
    m = np.eye(4)
    m[:3, :3] = rotation_matrix(orientation) * np.asarray(scale, dtype=float)
    m[:3, 3] = np.asarray(position, dtype=float)
    return m


def transform_point(matrix: np.ndarray, point: Sequence[float]) -> np.ndarray:
    return (matrix @ np.append(np.asarray(point, dtype=float), 1.0))[:3]


@dataclass(frozen=True)
class ShapeDescriptor:
    shape: Shape
    size: Vec3
    params: Dict[str, float]

    @property
    def label_offset(self) -> Vec3:
        return (0.0, self.size[1] / 2.0 + 0.5, 0.0)


def describe_shape(shape: Shape, size: Vec3) -> ShapeDescriptor:
    w, h, d = size
    if shape is Shape.SPHERE:
        params = {"radius": (w + h + d) / 6.0}
    elif shape is Shape.CONE:
        params = {"radius": w / 2.0, "height": h}
    elif shape is Shape.CYLINDER:
        params = {"radius_top": w / 2.0, "radius_bottom": w / 2.0, "height": h}
    elif shape is Shape.TORUS:
        params = {"radius": w / 2.0, "tube": d / 2.0}
    elif shape is Shape.PLANE:
        params = {"width": w, "height": h}
    elif shape is Shape.RING:
        outer = w / 2.0
        params = {"inner_radius": outer * 0.7, "outer_radius": outer}
    elif shape in (Shape.OCTAHEDRON, Shape.ICOSAHEDRON):
        params = {"radius": w / 2.0}
    else:
        params = {"width": w, "height": h, "depth": d}
    return ShapeDescriptor(shape=shape, size=size, params=params)


def bounding_extent(descriptor: ShapeDescriptor) -> Tuple[float, float, float]:
    """Half-extents of the primitive in its local frame, used for silhouettes."""
    p = descriptor.params
    shape = descriptor.shape
    if shape in (Shape.SPHERE, Shape.OCTAHEDRON, Shape.ICOSAHEDRON):
        r = p["radius"]
        return (r, r, r)
    if shape is Shape.CONE:
        return (p["radius"], p["height"] / 2.0, p["radius"])
    if shape is Shape.CYLINDER:
        return (p["radius_top"], p["height"] / 2.0, p["radius_top"])
    if shape is Shape.TORUS:
        r = p["radius"] + p["tube"]
        return (r, r, p["tube"])
    if shape is Shape.RING:
        r = p["outer_radius"]
        return (r, r, 0.0)
    if shape is Shape.PLANE:
        return (p["width"] / 2.0, p["height"] / 2.0, 0.0)
    return (p["width"] / 2.0, p["height"] / 2.0, p["depth"] / 2.0)
