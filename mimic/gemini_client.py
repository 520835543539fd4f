#!/usr/bin/env python3
"""
Gemini-backed scene acquisition: concept text -> {explanation, sceneGraph}.

Requirements:
    pip install google-generativeai python-dotenv

Behavior:
- Stage 1 asks for a short, simple Markdown explanation of the concept.
- Stage 2 asks for a single JSON scene graph built from that explanation.
- The JSON object is cut from the first '{' to the last '}' of the reply.
- A failing attempt is retried (2**attempt seconds later) only when the error
  mentions 503; anything else fails the request immediately.
"""
import json
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple

import google.generativeai as genai

from .config import get_settings
from .errors import SceneAcquisitionError, SceneGraphError
from .model import SceneGraph
from .scene_validator import extract_json_object, unwrap_payload

logger = logging.getLogger(__name__)


def stage1_prompt(concept: str) -> str:
    return f"""
You are an expert educator for a K-12 student with neurodivergent needs.
A user wants to understand: "{concept}".
Your task is to write a simple, clear, and concise explanation of this concept using Markdown.
Use short sentences, simple analogies, and bullet points or numbered lists if it helps.
This explanation will be shown to the user and will also be used to generate a 3D visualization.
"""


def stage2_prompt(explanation: str, concept: str) -> str:
    return f"""
You are an AI assistant for Mimic, a 3D visualization tool for neurodivergent users.
Based on the user's original request "{concept}" and the following simple explanation,
generate a structured JSON Scene Graph. Your ONLY output must be a single JSON object.

Explanation:
---
{explanation}
---

JSON OUTPUT STRUCTURE:
- A single JSON object with "objects", "relationships" and "sequence" arrays.

RULES FOR "objects":
1. Symbolize abstract concepts with simple geometric shapes.
2. Decompose physical objects into parts using the "parent" property.
3. Every object needs: id, shape (box, sphere, cone, cylinder, torus, plane, ring,
   octahedron, icosahedron), color, position, size, label and showLabel.
4. "size" MUST ALWAYS be an array of three numbers: [width, height, depth].
5. Limit scenes to essential components.

RULES FOR "relationships":
- For conceptual connections. Each needs "from", "to", "type" ("line" or "arrow") and "label".

RULES FOR "sequence":
- If the explanation describes a step-by-step process, produce a "sequence" array.
- Each step needs "step", "label", "targetId", "action" (move, rotate, scale,
  changeColor, appear, disappear) and "params" ("position", "rotation" in degrees,
  "scale" or "color").

EXAMPLE (the water cycle):
{{
  "objects": [
    {{ "id": "ocean", "shape": "plane", "color": "blue", "position": [0,0,0], "size": [10,10,0.1], "label": "Ocean", "showLabel": true, "visible": true }},
    {{ "id": "vapor", "shape": "sphere", "color": "lightblue", "position": [0,0.5,0], "size": [0.5,0.5,0.5], "label": "Vapor", "showLabel": true, "visible": false }}
  ],
  "sequence": [
    {{ "step": 1, "label": "Evaporation", "targetId": "vapor", "action": "appear", "params": {{}} }},
    {{ "step": 2, "label": "Vapor rises", "targetId": "vapor", "action": "move", "params": {{ "position": [0, 4, 0] }} }}
  ]
}}
"""


def _extract_text_from_response(resp: Any) -> str:
    """Text of a generate_content response, from .text or the first candidate's parts."""
    if resp is None:
        return ""
    try:
        text = resp.text
    except (AttributeError, ValueError):
        text = None
    if isinstance(text, str):
        return text.strip()
    candidates = getattr(resp, "candidates", None) or []
    if candidates:
        parts = getattr(getattr(candidates[0], "content", None), "parts", None) or []
        return "\n".join(p.text for p in parts if isinstance(getattr(p, "text", None), str)).strip()
    return ""


class SceneGenerator:
    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 max_retries: Optional[int] = None, client: Any = None,
                 sleep: Callable[[float], None] = time.sleep):
        settings = get_settings()
        self.model_name = model or settings.model
        self.max_retries = max_retries or settings.max_retries
        self._sleep = sleep
        if client is None:
            key = api_key or settings.gemini_api_key
            if not key:
                raise SceneAcquisitionError("GEMINI_API_KEY not found in environment variables. Put it in a .env file.")
            genai.configure(api_key=key)
            client = genai.GenerativeModel(self.model_name)
        self.client = client

    def _ask(self, prompt: str) -> str:
        return _extract_text_from_response(self.client.generate_content(prompt))

    def _attempt(self, concept: str, attempt: int) -> Dict[str, Any]:
        logger.info("attempt %d: stage 1, generating explanation", attempt)
        explanation = self._ask(stage1_prompt(concept))

        logger.info("attempt %d: stage 2, generating scene graph", attempt)
        reply = self._ask(stage2_prompt(explanation, concept))
        block = extract_json_object(reply)
        if block is None:
            raise SceneAcquisitionError("AI did not return valid JSON for the scene graph.")
        try:
            scene = json.loads(block)
        except json.JSONDecodeError as e:
            raise SceneAcquisitionError(f"AI returned malformed JSON for the scene graph: {e}") from e
        return {"explanation": explanation, "sceneGraph": scene}

    def generate(self, concept: str) -> Dict[str, Any]:
        """Raw payload {explanation, sceneGraph}; raises SceneAcquisitionError on failure."""
        if not concept or not concept.strip():
            raise SceneAcquisitionError("Prompt is required")
        for attempt in range(1, self.max_retries + 1):
            try:
                payload = self._attempt(concept.strip(), attempt)
                logger.info("attempt %d: scene graph received", attempt)
                return payload
            except Exception as e:
                logger.error("attempt %d failed: %s", attempt, e)
                if attempt < self.max_retries and "503" in str(e):
                    delay = 2 ** attempt
                    logger.info("retrying in %ss", delay)
                    self._sleep(delay)
                    continue
                if isinstance(e, SceneAcquisitionError):
                    raise
                raise SceneAcquisitionError(f"Failed to generate scene from AI: {e}") from e
        raise SceneAcquisitionError("Failed to generate scene from AI.")

    def visualize(self, concept: str) -> Tuple[SceneGraph, str]:
        """Generate and build a SceneGraph; returns (graph, explanation)."""
        scene, explanation = unwrap_payload(self.generate(concept))
        try:
            return SceneGraph.from_dict(scene), explanation
        except SceneGraphError as e:
            raise SceneAcquisitionError(str(e)) from e
