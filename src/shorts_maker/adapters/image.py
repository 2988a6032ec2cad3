"""IVisualService adapter for the Imagine Art image generation API."""

import asyncio
import re
from typing import Optional

import requests

from shorts_maker import config
from shorts_maker.domain.errors import PermanentServiceError, TransientServiceError
from shorts_maker.domain.models import VisualAsset, VisualKind
from shorts_maker.logging_config import get_logger
from shorts_maker.ports.interfaces import IVisualService

logger = get_logger(__name__)

RETRYABLE_STATUS = {408, 429, 500, 502, 503, 504}

NO_TEXT_INSTRUCTION = (
    "ABSOLUTELY NO TEXT, NO WORDS, NO LETTERS, NO NUMBERS, NO SIGNS, NO BANNERS, "
    "NO CAPTIONS. Pure visual imagery only."
)

_REPLACEMENTS = {
    "–": "-",
    "—": "-",
    "…": "...",
    "“": '"',
    "”": '"',
    "‘": "'",
    "’": "'",
    "•": "*",
    "°": " degrees",
    "€": "EUR",
    "£": "GBP",
    "¥": "JPY",
    "®": "(R)",
    "©": "(C)",
    "™": "(TM)",
}


def sanitize_prompt(prompt: str) -> str:
    """Replace typographic Unicode with ASCII and collapse whitespace."""
    if not prompt:
        return ""
    for source, target in _REPLACEMENTS.items():
        prompt = prompt.replace(source, target)
    cleaned = prompt.encode("ascii", "ignore").decode("ascii")
    return re.sub(r"\s+", " ", cleaned).strip()


class ImagineArtVisualService(IVisualService):
    """Generates one vertical still per prompt. The blocking request runs in a worker thread."""

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: Optional[str] = None,
        style: Optional[str] = None,
        aspect_ratio: str = config.VIDEO_ASPECT_RATIO,
        session: Optional[requests.Session] = None,
        timeout: float = 60,
    ):
        self.token = config.IMAGINE_TOKEN if token is None else token
        self.api_url = api_url or config.IMAGINE_API_URL
        self.style = style or config.IMAGINE_STYLE
        self.aspect_ratio = aspect_ratio
        self.session = session or requests.Session()
        self.timeout = timeout

    def build_prompt(self, prompt: str) -> str:
        return f"{NO_TEXT_INSTRUCTION} {sanitize_prompt(prompt)}. Cinematic lighting, vivid colors, vertical composition."

    async def generate_visual(self, prompt: str) -> VisualAsset:
        return await asyncio.to_thread(self.generate_image, prompt)

    def generate_image(self, prompt: str) -> VisualAsset:
        if not (self.token or "").strip():
            raise PermanentServiceError("IMAGINE_TOKEN is not configured", service="visual")

        files = {
            "prompt": (None, self.build_prompt(prompt)),
            "style": (None, self.style),
            "aspect_ratio": (None, self.aspect_ratio),
        }
        headers = {"Authorization": f"Bearer {self.token}"}
        try:
            response = self.session.post(self.api_url, headers=headers, files=files, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise TransientServiceError("Image generation timed out", service="visual") from e
        except requests.exceptions.RequestException as e:
            raise TransientServiceError(f"Image request failed: {e}", service="visual") from e

        if response.status_code != 200:
            message = f"Image API returned status {response.status_code}: {response.text[:300]}"
            if response.status_code in RETRYABLE_STATUS:
                raise TransientServiceError(message, service="visual")
            raise PermanentServiceError(message, service="visual")

        content_type = response.headers.get("Content-Type", "image/png").split(";")[0].strip()
        if not content_type.startswith(("image/", "video/")):
            raise PermanentServiceError(
                f"Image API returned unexpected content type {content_type}", service="visual"
            )
        if not response.content:
            raise PermanentServiceError("Image API returned an empty body", service="visual")

        kind = VisualKind.CLIP if content_type.startswith("video/") else VisualKind.IMAGE
        logger.info("✅ Generated %s (%d bytes)", kind.value, len(response.content))
        return VisualAsset(data=response.content, kind=kind, mime_type=content_type)
