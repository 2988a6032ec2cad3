"""
Port interfaces (SOLID – Dependency Inversion).
Implement these in adapters; the application layer depends only on these abstractions.
Adapters report failures as TransientServiceError (retryable) or PermanentServiceError.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Sequence

from shorts_maker.domain.models import (
    AudioAsset,
    EncodedVideo,
    PublishMetadata,
    PublishResult,
    ShortRequest,
    VideoSegment,
    VisualAsset,
)


class INarrativeService(ABC):
    """Narrative generation: brief -> raw structured plan (title, description, tags, beats)."""

    @abstractmethod
    async def generate_plan(
        self,
        request: ShortRequest,
        min_beats: int,
        max_beats: int,
    ) -> Dict[str, Any]:
        """Return the plan as a mapping; validation happens in the application layer."""
        pass


class IVisualService(ABC):
    """Visual generation from a text prompt (still image or short clip)."""

    @abstractmethod
    async def generate_visual(self, prompt: str) -> VisualAsset:
        pass


class INarrationService(ABC):
    """Text-to-speech narration with a measured duration."""

    @abstractmethod
    async def synthesize(self, text: str) -> AudioAsset:
        pass


class IVideoEncoder(ABC):
    """Video assembly: ordered segments -> one container whose duration is the sum of segment durations."""

    @abstractmethod
    async def encode(self, segments: Sequence[VideoSegment]) -> EncodedVideo:
        pass


class IThumbnailRenderer(ABC):
    """Still-image composition for thumbnails."""

    @abstractmethod
    def render(self, title: str, background: VisualAsset) -> bytes:
        """Compose the title over a generated background; return PNG bytes."""
        pass

    @abstractmethod
    def placeholder(self, title: str) -> bytes:
        """Deterministic branded placeholder; must not depend on any external call."""
        pass


class IPublishingPlatform(ABC):
    """Publish a finished video (e.g. YouTube)."""

    @abstractmethod
    async def upload(
        self,
        video: bytes,
        thumbnail: bytes,
        metadata: PublishMetadata,
    ) -> PublishResult:
        pass
