# mimic/utils.py
import hashlib
import json
import os
import re
from typing import Any


def ensure_directory(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def clean_filename(text: str) -> str:
    cleaned = re.sub(r'[^a-zA-Z0-9_\-\.]', '_', text)
    return cleaned[:100]


def video_path_for(concept: str, output_dir: str = "outputs") -> str:
    h = hashlib.md5(concept.encode("utf-8")).hexdigest()[:8]
    slug = clean_filename(concept.strip().lower())[:40].strip("_") or "scene"
    return os.path.join(output_dir, f"{slug}_{h}.mp4")


def load_json_file(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
