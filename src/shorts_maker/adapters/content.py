"""INarrativeService adapter: prompts the LLM for a beat plan and parses its JSON."""

import asyncio
import json
from typing import Any, Dict, Optional

from shorts_maker.adapters.llm_client import LLMClient
from shorts_maker.domain.errors import PermanentServiceError
from shorts_maker.domain.models import ShortRequest
from shorts_maker.logging_config import get_logger
from shorts_maker.ports.interfaces import INarrativeService

logger = get_logger(__name__)

WORDS_PER_SECOND = 2.5  # natural narration pace


def build_plan_prompt(request: ShortRequest, min_beats: int, max_beats: int) -> str:
    target_words = int(request.duration_seconds * WORDS_PER_SECOND)
    suggested = max(min_beats, min(max_beats, round(request.duration_seconds / 7)))
    lines = [
        "You are a viral YouTube Shorts writer.",
        f"Write a vertical short video plan about: {request.topic}",
        f"Target audience: {request.target_audience or 'a general audience'}",
        f"Tone: {request.tone or 'engaging and energetic'}",
        f"Total length: about {request.duration_seconds:g} seconds (~{target_words} spoken words).",
        f"Split it into {min_beats}-{max_beats} beats (around {suggested} works well).",
        "The first beat must hook the viewer in under 3 seconds.",
        "Each beat has a short on-screen hook (max 8 words), the narration to speak,",
        "a visual prompt describing one striking image (ABSOLUTELY NO TEXT, NO WORDS, NO LETTERS",
        "in the image) and its duration in seconds. Beat durations must add up to the total length.",
    ]
    if request.custom_title:
        lines.append(f"Use this title: {request.custom_title}")
    lines.append(
        """
Return ONLY valid JSON, no markdown formatting:
{
  "title": "Catchy title under 70 characters",
  "description": "2-3 sentence description",
  "tags": ["tag1", "tag2", "tag3"],
  "beats": [
    {
      "id": "beat-1",
      "hook": "On-screen hook",
      "narration": "What the narrator says",
      "visualPrompt": "Vivid description of the visual",
      "durationSeconds": 6
    }
  ]
}"""
    )
    return "\n".join(lines)


def extract_json(content: str) -> Dict[str, Any]:
    """Parse a JSON object out of an LLM response (code fences and chatter tolerated)."""
    content = content.strip()
    if "```json" in content:
        content = content.split("```json")[1].split("```")[0]
    elif "```" in content:
        content = content.split("```")[1].split("```")[0]
    content = content.strip()

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        start_idx = content.find("{")
        end_idx = content.rfind("}") + 1
        if start_idx < 0 or start_idx >= end_idx:
            raise PermanentServiceError(f"Plan response is not JSON: {e}", service="narrative") from e
        try:
            data = json.loads(content[start_idx:end_idx])
        except json.JSONDecodeError as e2:
            raise PermanentServiceError(
                f"Could not parse plan JSON even after extraction: {e2}", service="narrative"
            ) from e2

    if not isinstance(data, dict):
        raise PermanentServiceError("Plan response is not a JSON object", service="narrative")
    return data


class LLMNarrativeService(INarrativeService):
    """Wraps LLMClient. The blocking HTTP call runs in a worker thread."""

    def __init__(self, client: Optional[LLMClient] = None, temperature: float = 0.8):
        self._client = client or LLMClient()
        self._temperature = temperature

    async def generate_plan(
        self,
        request: ShortRequest,
        min_beats: int,
        max_beats: int,
    ) -> Dict[str, Any]:
        prompt = build_plan_prompt(request, min_beats, max_beats)
        response = await asyncio.to_thread(
            self._client.generate,
            prompt,
            {"temperature": self._temperature, "num_predict": 4096},
        )
        logger.info("📝 Plan drafted by %s", response.get("provider", "llm"))
        return extract_json(response.get("response", ""))
