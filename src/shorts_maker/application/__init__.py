"""Application layer – use cases and pipeline orchestration."""

from shorts_maker.application.assembler import BeatBuffer, VideoAssembler
from shorts_maker.application.beat_media import BeatMediaGenerator
from shorts_maker.application.pipeline import PipelineOrchestrator
from shorts_maker.application.plan_generator import PlanGenerator
from shorts_maker.application.publisher import Publisher, build_metadata
from shorts_maker.application.retry import RetryPolicy, call_with_retries, call_with_timeout
from shorts_maker.application.thumbnail import ThumbnailGenerator

__all__ = [
    "BeatBuffer",
    "BeatMediaGenerator",
    "PipelineOrchestrator",
    "PlanGenerator",
    "Publisher",
    "RetryPolicy",
    "ThumbnailGenerator",
    "VideoAssembler",
    "build_metadata",
    "call_with_retries",
    "call_with_timeout",
]
