"""Domain models – request/plan are pydantic (validated, JSON-shaped); media artifacts are plain dataclasses."""

import base64
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shorts_maker.config import MAX_DURATION_SECONDS, MIN_DURATION_SECONDS


def _dedupe(tags: Iterable[str]) -> List[str]:
    seen = set()
    ordered = []
    for tag in tags:
        tag = str(tag).strip()
        if tag and tag.lower() not in seen:
            seen.add(tag.lower())
            ordered.append(tag)
    return ordered


class PipelineStage(str, Enum):
    PLANNING = "planning"
    GENERATING = "generating"
    ASSEMBLING = "assembling"
    FINALIZING = "finalizing"
    PUBLISHING = "publishing"
    DONE = "done"
    FAILED = "failed"


class ShortRequest(BaseModel):
    """Validated user brief. Accepts the camelCase wire names as well as snake_case."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    topic: str = Field(min_length=1)
    tone: Optional[str] = None
    target_audience: Optional[str] = Field(default=None, alias="targetAudience")
    cta: Optional[str] = None
    duration_seconds: float = Field(
        alias="durationSeconds", ge=MIN_DURATION_SECONDS, le=MAX_DURATION_SECONDS
    )
    upload_to_youtube: bool = Field(default=False, alias="uploadToYoutube")
    custom_title: Optional[str] = Field(default=None, alias="customTitle")
    custom_description: Optional[str] = Field(default=None, alias="customDescription")
    custom_tags: Optional[List[str]] = Field(default=None, alias="customTags")

    @field_validator("topic")
    @classmethod
    def _topic_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("topic must not be empty")
        return value

    @field_validator("tone", "target_audience", "cta", "custom_title", "custom_description")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @field_validator("custom_tags")
    @classmethod
    def _clean_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return None
        return _dedupe(value) or None


class PlanBeat(BaseModel):
    """One narrative unit of the short."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(min_length=1)
    hook: str = ""
    narration: str = Field(min_length=1)
    visual_prompt: str = Field(alias="visualPrompt", min_length=1)
    duration_seconds: float = Field(alias="durationSeconds", gt=0)


class ContentPlan(BaseModel):
    """Narrative structure; beat order is the canonical render order."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    title: str
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    beats: List[PlanBeat]

    @field_validator("tags")
    @classmethod
    def _ordered_unique_tags(cls, value: List[str]) -> List[str]:
        return _dedupe(value)

    @field_validator("beats")
    @classmethod
    def _unique_beat_ids(cls, value: List[PlanBeat]) -> List[PlanBeat]:
        ids = [beat.id for beat in value]
        if len(ids) != len(set(ids)):
            raise ValueError("beat ids must be unique within a plan")
        return value

    @property
    def beat_ids(self) -> List[str]:
        return [beat.id for beat in self.beats]

    @property
    def planned_duration(self) -> float:
        return sum(beat.duration_seconds for beat in self.beats)

    def without_beats(self, beat_ids: Iterable[str]) -> "ContentPlan":
        dropped = set(beat_ids)
        return self.model_copy(update={"beats": [b for b in self.beats if b.id not in dropped]})


class VisualKind(str, Enum):
    IMAGE = "image"
    CLIP = "clip"


@dataclass(frozen=True)
class VisualAsset:
    data: bytes
    kind: VisualKind = VisualKind.IMAGE
    mime_type: str = "image/png"


@dataclass(frozen=True)
class AudioAsset:
    data: bytes
    duration_seconds: float  # measured from the decoded audio, not planned
    mime_type: str = "audio/mpeg"


@dataclass(frozen=True)
class BeatMedia:
    beat_id: str
    visual: VisualAsset
    narration: AudioAsset

    @property
    def audio_duration(self) -> float:
        return self.narration.duration_seconds


@dataclass(frozen=True)
class VideoSegment:
    """One beat as handed to the encoder; duration is the effective on-screen time."""

    beat_id: str
    visual: VisualAsset
    narration: AudioAsset
    duration: float
    caption: str = ""


@dataclass(frozen=True)
class EncodedVideo:
    data: bytes
    duration: float
    container: str = "mp4"
    codec: str = "h264/aac"


@dataclass(frozen=True)
class AssembledVideo:
    data: bytes
    total_duration: float
    beat_order: Tuple[str, ...]
    container: str = "mp4"
    codec: str = "h264/aac"


@dataclass(frozen=True)
class Thumbnail:
    data: bytes
    mime_type: str = "image/png"
    is_fallback: bool = False


@dataclass(frozen=True)
class PublishMetadata:
    title: str
    description: str
    tags: Tuple[str, ...]
    category_id: str = "22"
    privacy_status: str = "public"


@dataclass(frozen=True)
class PublishResult:
    video_id: Optional[str] = None
    url: Optional[str] = None

    @property
    def published(self) -> bool:
        return self.video_id is not None


@dataclass(frozen=True)
class PipelineLogEntry:
    step: str
    message: str
    timestamp: datetime

    def to_dict(self) -> Dict[str, str]:
        return {
            "step": self.step,
            "message": self.message,
            "timestamp": self.timestamp.isoformat().replace("+00:00", "Z"),
        }


@dataclass(frozen=True)
class PipelineResult:
    plan: ContentPlan
    video: AssembledVideo
    thumbnail: Thumbnail
    total_duration: float
    publish: PublishResult = field(default_factory=PublishResult)
    logs: Tuple[PipelineLogEntry, ...] = ()

    @property
    def youtube_url(self) -> Optional[str]:
        return self.publish.url

    @property
    def youtube_id(self) -> Optional[str]:
        return self.publish.video_id

    def to_response(self) -> Dict[str, Any]:
        """Success envelope, binary payloads base64-encoded."""
        return {
            "success": True,
            "plan": self.plan.model_dump(by_alias=True),
            "videoBase64": base64.b64encode(self.video.data).decode("ascii"),
            "thumbnailBase64": base64.b64encode(self.thumbnail.data).decode("ascii"),
            "totalDuration": self.total_duration,
            "youtubeUrl": self.youtube_url,
            "youtubeId": self.youtube_id,
            "logs": [entry.to_dict() for entry in self.logs],
        }
