"""Shared fixtures: in-memory fakes for every port, with controllable latency and failures."""

import asyncio
from typing import Dict, List, Optional, Sequence

import pytest

from shorts_maker.application.pipeline import PipelineOrchestrator
from shorts_maker.config import PipelineSettings
from shorts_maker.domain.errors import PermanentServiceError, TransientServiceError
from shorts_maker.domain.models import (
    AudioAsset,
    EncodedVideo,
    PublishMetadata,
    PublishResult,
    ShortRequest,
    VideoSegment,
    VisualAsset,
)
from shorts_maker.ports.interfaces import (
    INarrationService,
    INarrativeService,
    IPublishingPlatform,
    IThumbnailRenderer,
    IVideoEncoder,
    IVisualService,
)


def make_raw_plan(durations: Sequence[float], title: str = "Octopus Facts") -> dict:
    """Raw plan as a narrative service returns it; beat i uses 'visual i' and 'narration i'."""
    return {
        "title": title,
        "description": "Eight arms, three hearts.",
        "tags": ["octopus", "ocean", "facts"],
        "beats": [
            {
                "id": f"beat-{i}",
                "hook": f"Hook {i}",
                "narration": f"narration {i}",
                "visualPrompt": f"visual {i}",
                "durationSeconds": duration,
            }
            for i, duration in enumerate(durations, 1)
        ],
    }


class FakeNarrative(INarrativeService):
    def __init__(self, plan: Optional[dict] = None, errors: Sequence[Exception] = ()):
        self.plan = plan if plan is not None else make_raw_plan([15, 15, 10])
        self.errors = list(errors)
        self.calls = 0

    async def generate_plan(self, request, min_beats, max_beats):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.plan


class FakeVisuals(IVisualService):
    def __init__(
        self,
        delays: Optional[Dict[str, float]] = None,
        failing: Sequence[str] = (),
        transient_failures: Optional[Dict[str, int]] = None,
    ):
        self.delays = delays or {}
        self.failing = set(failing)
        self.transient_failures = dict(transient_failures or {})
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def generate_visual(self, prompt: str) -> VisualAsset:
        self.calls.append(prompt)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(prompt, 0))
            if prompt in self.failing:
                raise PermanentServiceError(f"policy rejection for {prompt}", service="visual")
            if self.transient_failures.get(prompt, 0) > 0:
                self.transient_failures[prompt] -= 1
                raise TransientServiceError("rate limited", service="visual")
            return VisualAsset(data=f"img:{prompt}".encode())
        finally:
            self.in_flight -= 1


class FakeNarration(INarrationService):
    def __init__(
        self,
        durations: Optional[Dict[str, float]] = None,
        delays: Optional[Dict[str, float]] = None,
        failing: Sequence[str] = (),
        default_duration: float = 4.0,
    ):
        self.durations = durations or {}
        self.delays = delays or {}
        self.failing = set(failing)
        self.default_duration = default_duration
        self.calls: List[str] = []

    async def synthesize(self, text: str) -> AudioAsset:
        self.calls.append(text)
        await asyncio.sleep(self.delays.get(text, 0))
        if text in self.failing:
            raise PermanentServiceError(f"cannot voice {text}", service="narration")
        return AudioAsset(data=f"mp3:{text}".encode(), duration_seconds=self.durations.get(text, self.default_duration))


class FakeEncoder(IVideoEncoder):
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.segments: List[VideoSegment] = []

    async def encode(self, segments: Sequence[VideoSegment]) -> EncodedVideo:
        if self.error:
            raise self.error
        self.segments = list(segments)
        data = b"mp4:" + b",".join(s.beat_id.encode() for s in segments)
        return EncodedVideo(data=data, duration=sum(s.duration for s in segments))


class FakeRenderer(IThumbnailRenderer):
    def __init__(self, fail: bool = False):
        self.fail = fail

    def render(self, title: str, background: VisualAsset) -> bytes:
        if self.fail:
            raise OSError("cannot compose thumbnail")
        return f"png:{title}".encode()

    def placeholder(self, title: str) -> bytes:
        return f"placeholder:{title}".encode()


class FakePlatform(IPublishingPlatform):
    def __init__(self, errors: Sequence[Exception] = (), video_id: str = "abc123"):
        self.errors = list(errors)
        self.video_id = video_id
        self.uploads: List[PublishMetadata] = []

    async def upload(self, video: bytes, thumbnail: bytes, metadata: PublishMetadata) -> PublishResult:
        if self.errors:
            raise self.errors.pop(0)
        self.uploads.append(metadata)
        return PublishResult(video_id=self.video_id, url=f"https://www.youtube.com/watch?v={self.video_id}")


@pytest.fixture
def settings() -> PipelineSettings:
    """Fast settings: no backoff, short timeouts."""
    return PipelineSettings(
        min_beats=3,
        max_beats=12,
        duration_tolerance=0.15,
        max_concurrent_beats=3,
        max_retries=2,
        publish_max_retries=2,
        retry_backoff_seconds=0,
        retry_backoff_max_seconds=0,
        call_timeout_seconds=2,
        deadline_seconds=5,
        max_failed_beat_fraction=0.3,
        small_plan_beats=3,
    )


@pytest.fixture
def fakes() -> dict:
    return {
        "narrative_service": FakeNarrative(),
        "visual_service": FakeVisuals(),
        "narration_service": FakeNarration(
            durations={"narration 1": 13.0, "narration 2": 16.0, "narration 3": 9.0}
        ),
        "video_encoder": FakeEncoder(),
        "thumbnail_renderer": FakeRenderer(),
        "publishing_platform": FakePlatform(),
    }


@pytest.fixture
def make_pipeline(fakes, settings):
    def _make(settings_override: Optional[PipelineSettings] = None, **overrides) -> PipelineOrchestrator:
        adapters = {**fakes, **overrides}
        return PipelineOrchestrator(**adapters, settings=settings_override or settings)

    return _make


@pytest.fixture
def request_40s() -> ShortRequest:
    return ShortRequest(topic="Why octopuses are weird", durationSeconds=40)
