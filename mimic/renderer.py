# mimic/renderer.py
"""
Renderer adapter used by the CLI and the render jobs.
Turns Frames (draw calls + connectors) into images and videos:
 - pinhole camera projection of each primitive's bounding corners (numpy)
 - flat-shaded silhouettes, labels and relationship connectors (Pillow)
 - step-by-step walkthrough video of a scene graph (MoviePy)
Primitives are painted far to near; there is no per-pixel depth test.
"""
import logging
import math
import os
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
from moviepy import VideoClip
from PIL import Image, ImageDraw, ImageFont

from .config import DEFAULT_FPS, DEFAULT_SIZE, DEFAULT_STEP_SECONDS
from .controller import DrawCall, Frame, SceneController
from .geometry import bounding_extent, transform_point
from .model import SceneGraph, Shape
from .utils import ensure_directory

logger = logging.getLogger(__name__)

BACKGROUND = (235, 242, 250)
INK = (20, 20, 20)
ROUND_SHAPES = (Shape.SPHERE, Shape.ICOSAHEDRON, Shape.TORUS, Shape.RING)


@dataclass
class Camera:
    position: Tuple[float, float, float] = (0.0, 6.0, 16.0)
    target: Tuple[float, float, float] = (0.0, 1.0, 0.0)
    fov_degrees: float = 50.0
    near: float = 0.1

    def view_matrix(self) -> np.ndarray:
        eye = np.asarray(self.position, dtype=float)
        forward = np.asarray(self.target, dtype=float) - eye
        forward /= np.linalg.norm(forward)
        right = np.cross(forward, np.array([0.0, 1.0, 0.0]))
        if np.linalg.norm(right) < 1e-9:
            right = np.array([1.0, 0.0, 0.0])
        right /= np.linalg.norm(right)
        up = np.cross(right, forward)
        view = np.eye(4)
        view[0, :3], view[1, :3], view[2, :3] = right, up, -forward
        view[:3, 3] = -view[:3, :3] @ eye
        return view


class Projector:
    def __init__(self, camera: Camera, size: Tuple[int, int]):
        self.size = size
        self.near = camera.near
        self.view = camera.view_matrix()
        self.focal = (size[1] / 2.0) / math.tan(math.radians(camera.fov_degrees) / 2.0)

    def depth(self, point: Sequence[float]) -> float:
        """Distance in front of the camera (positive means visible)."""
        return -float((self.view @ np.append(np.asarray(point, dtype=float), 1.0))[2])

    def project(self, point: Sequence[float]) -> Optional[Tuple[float, float]]:
        cam = self.view @ np.append(np.asarray(point, dtype=float), 1.0)
        z = -cam[2]
        if z < self.near:
            return None
        w, h = self.size
        return (w / 2.0 + self.focal * cam[0] / z, h / 2.0 - self.focal * cam[1] / z)


def _convex_hull(points: List[Tuple[float, float]]) -> List[Tuple[float, float]]:
    pts = sorted(set(points))
    if len(pts) <= 2:
        return pts

    def cross(o, a, b):
        return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])

    lower: List[Tuple[float, float]] = []
    for p in pts:
        while len(lower) >= 2 and cross(lower[-2], lower[-1], p) <= 0:
            lower.pop()
        lower.append(p)
    upper: List[Tuple[float, float]] = []
    for p in reversed(pts):
        while len(upper) >= 2 and cross(upper[-2], upper[-1], p) <= 0:
            upper.pop()
        upper.append(p)
    return lower[:-1] + upper[:-1]


def _rgb255(color: Sequence[float]) -> Tuple[int, int, int]:
    return tuple(int(round(max(0.0, min(1.0, c)) * 255)) for c in color[:3])


def text_size(draw: ImageDraw.ImageDraw, text: str, font: ImageFont.ImageFont) -> Tuple[int, int]:
    bbox = draw.textbbox((0, 0), text, font=font)
    return (bbox[2] - bbox[0], bbox[3] - bbox[1])


def _draw_label(draw: ImageDraw.ImageDraw, text: str, pos: Tuple[float, float], color=INK, font=None):
    fnt = font or ImageFont.load_default()
    w_txt, h_txt = text_size(draw, text, fnt)
    x, y = int(pos[0]), int(pos[1])
    bg_box = [x - w_txt // 2 - 6, y - h_txt // 2 - 3, x + w_txt // 2 + 6, y + h_txt // 2 + 3]
    draw.rectangle(bg_box, fill=(255, 255, 255))
    draw.text((x - w_txt // 2, y - h_txt // 2), text, font=fnt, fill=color)


def silhouette(call: DrawCall, projector: Projector) -> List[Tuple[float, float]]:
    """Projected outline points of a primitive (hull of its bounding corners, cone apex-aware)."""
    ex, ey, ez = bounding_extent(call.shape)
    if call.shape.shape is Shape.CONE:
        local = [(0.0, ey, 0.0)] + [(sx * ex, -ey, sz * ez) for sx in (-1, 1) for sz in (-1, 1)]
    else:
        local = [(sx * ex, sy * ey, sz * ez) for sx in (-1, 1) for sy in (-1, 1) for sz in (-1, 1)]
    projected = [projector.project(transform_point(call.matrix, p)) for p in local]
    if any(p is None for p in projected):
        return []
    return _convex_hull(projected)


class FrameRenderer:
    def __init__(self, size=DEFAULT_SIZE, camera: Optional[Camera] = None):
        self.size = tuple(size)
        self.camera = camera or Camera()
        self.projector = Projector(self.camera, self.size)
        try:
            self.font = ImageFont.truetype("arial.ttf", 18)
            self.font_title = ImageFont.truetype("arial.ttf", 26)
        except OSError:
            self.font = ImageFont.load_default()
            self.font_title = ImageFont.load_default()

    def render_frame(self, frame: Frame, subtitle: str = "") -> Image.Image:
        img = Image.new("RGB", self.size, BACKGROUND)
        draw = ImageDraw.Draw(img)
        projector = self.projector

        calls = sorted(frame.draw_calls, key=lambda c: projector.depth(c.position), reverse=True)
        for call in calls:
            outline = silhouette(call, projector)
            if len(outline) < 3:
                continue
            fill = _rgb255(call.color)
            edge = _rgb255(call.emissive) if call.emissive_intensity > 0 else INK
            width = 3 if call.emissive_intensity > 0 else 1
            if call.shape.shape in ROUND_SHAPES:
                xs = [p[0] for p in outline]
                ys = [p[1] for p in outline]
                box = [min(xs), min(ys), max(xs), max(ys)]
                if call.shape.shape in (Shape.TORUS, Shape.RING):
                    draw.ellipse(box, outline=fill, width=max(3, int((box[2] - box[0]) * 0.08)))
                else:
                    draw.ellipse(box, fill=fill, outline=edge, width=width)
            else:
                draw.polygon(outline, fill=fill, outline=edge, width=width)

        for conn in frame.connectors:
            start = projector.project(conn.start)
            end = projector.project(conn.end)
            if start is None or end is None:
                continue
            draw.line([start, end], fill=INK, width=2)
            if conn.kind == "arrow":
                angle = math.atan2(end[1] - start[1], end[0] - start[0])
                head = [end] + [
                    (end[0] - 14 * math.cos(angle + s * 0.45), end[1] - 14 * math.sin(angle + s * 0.45))
                    for s in (-1, 1)
                ]
                draw.polygon(head, fill=INK)
            mid = projector.project(conn.label_position)
            if conn.label and mid is not None:
                _draw_label(draw, conn.label, mid, font=self.font)

        for call in calls:
            if call.label and call.label_position:
                pos = projector.project(call.label_position)
                if pos is not None:
                    _draw_label(draw, call.label, pos, font=self.font)

        draw.text((20, 10), frame.step.caption, fill=INK, font=self.font_title)
        if subtitle:
            draw.text((20, 44), subtitle.strip().splitlines()[0][:90], fill=(90, 90, 90), font=self.font)
        return img


class MoviePyRenderer:
    def __init__(self, fps=DEFAULT_FPS, size=DEFAULT_SIZE, step_seconds=DEFAULT_STEP_SECONDS,
                 camera: Optional[Camera] = None):
        self.fps = fps
        self.size = tuple(size)
        self.step_seconds = step_seconds
        self.frames = FrameRenderer(self.size, camera)

    def duration_for(self, graph: SceneGraph) -> float:
        # initial scene plus one hold per step; idle scenes get two holds
        holds = graph.step_count + 1 if graph.has_sequence else 2
        return holds * self.step_seconds

    def frame_source(self, graph: SceneGraph, explanation: str = ""):
        """make_frame(t) for MoviePy. Replays from the start if t ever moves backwards."""
        controller = SceneController()
        frames_per_step = max(1, int(round(self.fps * self.step_seconds)))
        dt = 1.0 / self.fps
        cursor = {"index": -1, "frame": None}

        def make_frame(t):
            index = max(0, int(round(t * self.fps)))
            if index < cursor["index"] or cursor["frame"] is None:
                controller.adopt(graph)
                cursor["index"] = -1
            while cursor["index"] < index:
                cursor["index"] += 1
                controller.set_step(cursor["index"] // frames_per_step)
                cursor["frame"] = controller.tick(dt)
            return np.array(self.frames.render_frame(cursor["frame"], explanation))

        return make_frame

    def render(self, graph: SceneGraph, output_filename: Optional[str] = None, explanation: str = "") -> str:
        if not output_filename:
            output_filename = os.path.join("outputs", "scene_render.mp4")
        ensure_directory(os.path.dirname(output_filename) or ".")
        duration = self.duration_for(graph)
        logger.info("rendering %.1fs walkthrough to %s", duration, output_filename)
        clip = VideoClip(self.frame_source(graph, explanation), duration=duration)
        clip.write_videofile(output_filename, fps=self.fps, codec="libx264", audio=False, logger=None)
        return output_filename
