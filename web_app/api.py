# web_app/api.py
"""
FastAPI host for the scene engine.

- POST /visualize: asks Gemini for a scene graph for a concept and adopts it.
- POST /scene: adopts a scene graph posted directly ({explanation, sceneGraph} or bare).
- GET  /state, POST /step, POST /step/next, POST /step/prev: step navigation.
- GET  /frame?dt=...: advances the animation one frame and returns the draw calls.
- POST /render: enqueues a walkthrough video of the current scene.
- GET  /status/{job_id}, GET /jobs: render job status.

Request handlers run on a thread pool; a lock serialises access to the controller.
"""
import threading
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel

from mimic.config import get_settings
from mimic.controller import SceneController
from mimic.errors import SceneAcquisitionError, SceneGraphError
from mimic.gemini_client import SceneGenerator
from mimic.job_manager import JobManager
from mimic.model import SceneGraph
from mimic.scene_validator import unwrap_payload
from mimic.utils import video_path_for

app = FastAPI(title="Mimic scene engine API")

settings = get_settings()
controller = SceneController(smoothing_rate=settings.smoothing_rate)
job_manager = JobManager(max_workers=2)
_lock = threading.Lock()
_state: Dict[str, Any] = {"explanation": "", "concept": ""}
_generator: Optional[SceneGenerator] = None


def get_generator() -> SceneGenerator:
    global _generator
    if _generator is None:
        try:
            _generator = SceneGenerator()
        except SceneAcquisitionError as e:
            raise HTTPException(status_code=503, detail=str(e))
    return _generator


class VisualizeRequest(BaseModel):
    concept: str


class StepRequest(BaseModel):
    step: int


class RenderRequest(BaseModel):
    output_filename: Optional[str] = None


def _state_response() -> Dict[str, Any]:
    info = controller.step_info()
    return {
        "concept": _state["concept"],
        "explanation": _state["explanation"],
        "step": {"current": info.current, "total": info.total, "label": info.label, "caption": info.caption},
        "objects": len(controller.graph.objects),
        "relationships": len(controller.graph.relationships),
    }


def _adopt(graph: SceneGraph, explanation: str, concept: str) -> None:
    controller.adopt(graph)
    _state["explanation"] = explanation
    _state["concept"] = concept


@app.post("/visualize")
def visualize(req: VisualizeRequest, generator: SceneGenerator = Depends(get_generator)):
    if not req.concept.strip():
        raise HTTPException(status_code=400, detail="Prompt is required")
    try:
        graph, explanation = generator.visualize(req.concept)
    except SceneAcquisitionError as e:
        # the current scene stays in place
        raise HTTPException(status_code=502, detail=f"Failed to generate scene from AI: {e}")
    with _lock:
        _adopt(graph, explanation, req.concept)
        return _state_response()


@app.post("/scene")
def adopt_scene(payload: Dict[str, Any]):
    try:
        scene, explanation = unwrap_payload(payload)
        graph = SceneGraph.from_dict(scene)
    except (SceneAcquisitionError, SceneGraphError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    with _lock:
        _adopt(graph, explanation, "")
        return _state_response()


@app.get("/state")
def state():
    with _lock:
        return _state_response()


@app.post("/step")
def set_step(req: StepRequest):
    with _lock:
        controller.set_step(req.step)
        return _state_response()


@app.post("/step/next")
def next_step():
    with _lock:
        controller.next_step()
        return _state_response()


@app.post("/step/prev")
def prev_step():
    with _lock:
        controller.prev_step()
        return _state_response()


@app.get("/frame")
def frame(dt: Optional[float] = None):
    with _lock:
        return controller.tick(dt).to_dict()


@app.post("/render")
def render(req: RenderRequest):
    with _lock:
        graph = controller.graph
        explanation = _state["explanation"]
        concept = _state["concept"] or "scene"
    if not graph.objects:
        raise HTTPException(status_code=409, detail="No scene to render")
    out = req.output_filename or video_path_for(concept, settings.output_dir)
    job_id = job_manager.submit_render(graph, out, explanation)
    return {"job_id": job_id, "status": "queued"}


@app.get("/status/{job_id}")
def job_status(job_id: str):
    meta = job_manager.get_status(job_id)
    if not meta:
        raise HTTPException(status_code=404, detail="Job not found")
    return meta


@app.get("/jobs")
def list_jobs():
    return job_manager.list_jobs()


@app.get("/")
def root():
    return {"status": "ok", "endpoints": [
        "/visualize (POST)", "/scene (POST)", "/state (GET)", "/step (POST)",
        "/step/next (POST)", "/step/prev (POST)", "/frame (GET)", "/render (POST)",
        "/status/{job_id} (GET)", "/jobs (GET)",
    ]}
