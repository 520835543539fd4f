# mimic/job_manager.py
"""
Background job manager for walkthrough video renders.
Uses ThreadPoolExecutor so a host application can keep serving while MoviePy encodes.
Job metadata is kept in memory only; scene graphs are never written to disk.
"""
import logging
import threading
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

from .model import SceneGraph
from .renderer import MoviePyRenderer

logger = logging.getLogger(__name__)


class JobManager:
    def __init__(self, max_workers: int = 2, renderer_factory: Callable[[], Any] = MoviePyRenderer):
        self.executor = ThreadPoolExecutor(max_workers=max_workers)
        self.renderer_factory = renderer_factory
        self.jobs: Dict[str, Dict[str, Any]] = {}
        self.futures: Dict[str, Future] = {}
        self._lock = threading.Lock()

    def submit_render(self, graph: SceneGraph, output_filename: str, explanation: str = "") -> str:
        job_id = uuid.uuid4().hex
        with self._lock:
            self.jobs[job_id] = {
                "id": job_id,
                "status": "queued",
                "created_at": time.time(),
                "started_at": None,
                "finished_at": None,
                "video_path": None,
                "steps": graph.step_count,
                "error": None,
            }
        self.futures[job_id] = self.executor.submit(self._run_job, job_id, graph, output_filename, explanation)
        return job_id

    def _update(self, job_id: str, **fields) -> None:
        with self._lock:
            self.jobs[job_id].update(fields)

    def _run_job(self, job_id: str, graph: SceneGraph, output_filename: str, explanation: str) -> None:
        self._update(job_id, status="running", started_at=time.time())
        try:
            renderer = self.renderer_factory()
            video_path = renderer.render(graph, output_filename=output_filename, explanation=explanation)
            self._update(job_id, status="finished", video_path=video_path)
        except Exception as e:
            logger.exception("render job %s failed", job_id)
            self._update(job_id, status="failed", error=str(e))
        finally:
            self._update(job_id, finished_at=time.time())

    def get_status(self, job_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            meta = self.jobs.get(job_id)
            return dict(meta) if meta else None

    def list_jobs(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(meta) for meta in self.jobs.values()]

    def wait(self, job_id: str, timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
        future = self.futures.get(job_id)
        if future is not None:
            future.result(timeout=timeout)
        return self.get_status(job_id)

    def shutdown(self) -> None:
        self.executor.shutdown(wait=True)
