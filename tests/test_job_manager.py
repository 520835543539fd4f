import pytest

from mimic.job_manager import JobManager


class FakeRenderer:
    calls = []

    def render(self, graph, output_filename=None, explanation=""):
        FakeRenderer.calls.append((graph, output_filename, explanation))
        return output_filename


class BrokenRenderer:
    def render(self, graph, output_filename=None, explanation=""):
        raise RuntimeError("ffmpeg not found")


@pytest.fixture
def manager():
    jm = JobManager(max_workers=1, renderer_factory=FakeRenderer)
    yield jm
    jm.shutdown()


def test_render_job_finishes(manager, water_cycle, tmp_path):
    out = str(tmp_path / "water.mp4")
    job_id = manager.submit_render(water_cycle, out, "explanation")
    meta = manager.wait(job_id, timeout=10)
    assert meta["status"] == "finished"
    assert meta["video_path"] == out
    assert meta["steps"] == 2
    assert meta["finished_at"] >= meta["started_at"]
    assert FakeRenderer.calls[-1] == (water_cycle, out, "explanation")
    assert [j["id"] for j in manager.list_jobs()] == [job_id]


def test_render_job_failure_is_recorded(water_cycle, tmp_path):
    jm = JobManager(max_workers=1, renderer_factory=BrokenRenderer)
    try:
        job_id = jm.submit_render(water_cycle, str(tmp_path / "x.mp4"))
        meta = jm.wait(job_id, timeout=10)
    finally:
        jm.shutdown()
    assert meta["status"] == "failed"
    assert "ffmpeg" in meta["error"]


def test_unknown_job(manager):
    assert manager.get_status("nope") is None
    assert manager.wait("nope") is None
