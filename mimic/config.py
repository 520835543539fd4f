# mimic/config.py
"""
Runtime settings, read from the environment (and a .env file when one exists).
"""
import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv, find_dotenv

env_path = find_dotenv()
if env_path:
    load_dotenv(env_path)
else:
    load_dotenv()

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_FPS = 24
DEFAULT_SIZE = (960, 540)
DEFAULT_STEP_SECONDS = 2.5
# frame-time multiplier for the exponential approach toward a resolved state
SMOOTHING_RATE = 3.0
DEFAULT_ORBIT_SPEED = 0.1


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_size(name: str, default: Tuple[int, int]) -> Tuple[int, int]:
    raw = (os.getenv(name) or "").lower().strip()
    if "x" not in raw:
        return default
    w, _, h = raw.partition("x")
    try:
        return (int(w), int(h))
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    gemini_api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    max_retries: int = 3
    smoothing_rate: float = SMOOTHING_RATE
    fps: int = DEFAULT_FPS
    frame_size: Tuple[int, int] = DEFAULT_SIZE
    step_seconds: float = DEFAULT_STEP_SECONDS
    output_dir: str = "outputs"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY"),
            model=os.getenv("MIMIC_MODEL") or DEFAULT_MODEL,
            max_retries=max(1, _env_int("MIMIC_MAX_RETRIES", 3)),
            smoothing_rate=_env_float("MIMIC_SMOOTHING_RATE", SMOOTHING_RATE),
            fps=max(1, _env_int("MIMIC_FPS", DEFAULT_FPS)),
            frame_size=_env_size("MIMIC_FRAME_SIZE", DEFAULT_SIZE),
            step_seconds=_env_float("MIMIC_STEP_SECONDS", DEFAULT_STEP_SECONDS),
            output_dir=os.getenv("MIMIC_OUTPUT_DIR") or "outputs",
        )


def get_settings() -> Settings:
    return Settings.from_env()
