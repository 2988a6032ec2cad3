"""Domain models, error taxonomy and the pipeline log."""

from shorts_maker.domain.errors import (
    AssemblyFailure,
    BeatGenerationFailure,
    PermanentServiceError,
    PipelineFailure,
    PlanningFailure,
    PublishFailure,
    ServiceError,
    ShortsMakerError,
    ThumbnailFailure,
    TimeoutFailure,
    TransientServiceError,
    UnexpectedPipelineError,
)
from shorts_maker.domain.log import PipelineLog
from shorts_maker.domain.models import (
    AssembledVideo,
    AudioAsset,
    BeatMedia,
    ContentPlan,
    EncodedVideo,
    PipelineLogEntry,
    PipelineResult,
    PipelineStage,
    PlanBeat,
    PublishMetadata,
    PublishResult,
    ShortRequest,
    Thumbnail,
    VideoSegment,
    VisualAsset,
    VisualKind,
)

__all__ = [
    "AssembledVideo",
    "AssemblyFailure",
    "AudioAsset",
    "BeatGenerationFailure",
    "BeatMedia",
    "ContentPlan",
    "EncodedVideo",
    "PermanentServiceError",
    "PipelineFailure",
    "PipelineLog",
    "PipelineLogEntry",
    "PipelineResult",
    "PipelineStage",
    "PlanBeat",
    "PlanningFailure",
    "PublishFailure",
    "PublishMetadata",
    "PublishResult",
    "ServiceError",
    "ShortRequest",
    "ShortsMakerError",
    "Thumbnail",
    "ThumbnailFailure",
    "TimeoutFailure",
    "TransientServiceError",
    "UnexpectedPipelineError",
    "VideoSegment",
    "VisualAsset",
    "VisualKind",
]
