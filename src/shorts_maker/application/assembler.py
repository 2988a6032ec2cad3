"""
Video assembly – single responsibility: put beat media back into plan order,
time every segment by its measured narration and hand the segments to the encoder.
"""

import math
from typing import Dict, Iterable, List

from shorts_maker import config
from shorts_maker.domain.errors import AssemblyFailure, ServiceError
from shorts_maker.domain.models import AssembledVideo, BeatMedia, ContentPlan, VideoSegment
from shorts_maker.logging_config import get_logger
from shorts_maker.ports.interfaces import IVideoEncoder

logger = get_logger(__name__)


class BeatBuffer:
    """Identifier-indexed collection of finished beats. An id is written at most once."""

    def __init__(self):
        self._media: Dict[str, BeatMedia] = {}

    def insert(self, media: BeatMedia) -> None:
        if media.beat_id in self._media:
            raise AssemblyFailure(f"Duplicate media for beat '{media.beat_id}'")
        self._media[media.beat_id] = media

    def __contains__(self, beat_id: str) -> bool:
        return beat_id in self._media

    def __len__(self) -> int:
        return len(self._media)

    def ordered(self, plan: ContentPlan) -> List[BeatMedia]:
        """Materialize plan order. Arrival order is never render order."""
        missing = [beat_id for beat_id in plan.beat_ids if beat_id not in self._media]
        if missing:
            raise AssemblyFailure(f"Missing media for beat(s): {', '.join(missing)}")
        unknown = sorted(set(self._media) - set(plan.beat_ids))
        if unknown:
            raise AssemblyFailure(f"Media for beat(s) not in plan: {', '.join(unknown)}")
        return [self._media[beat_id] for beat_id in plan.beat_ids]


class VideoAssembler:
    def __init__(self, encoder: IVideoEncoder):
        self._encoder = encoder

    async def assemble(self, plan: ContentPlan, beats: Iterable[BeatMedia]) -> AssembledVideo:
        buffer = beats if isinstance(beats, BeatBuffer) else _buffer_of(beats)
        ordered = buffer.ordered(plan)
        hooks = {beat.id: beat.hook for beat in plan.beats}

        # Narration length is authoritative; the planned duration is ignored here.
        segments = [
            VideoSegment(
                beat_id=media.beat_id,
                visual=media.visual,
                narration=media.narration,
                duration=media.audio_duration,
                caption=hooks.get(media.beat_id, ""),
            )
            for media in ordered
        ]
        total_duration = math.fsum(segment.duration for segment in segments)

        logger.info("🎞️  Encoding %d segments (%.2fs total)", len(segments), total_duration)
        try:
            encoded = await self._encoder.encode(segments)
        except ServiceError as e:
            raise AssemblyFailure(f"Encoding failed: {e.message}") from e

        if not encoded.data:
            raise AssemblyFailure("Encoder produced an empty video")
        if abs(encoded.duration - total_duration) > 1.0 / config.FPS:
            logger.warning(
                "⚠️  Encoded length %.3fs differs from narration total %.3fs",
                encoded.duration,
                total_duration,
            )

        return AssembledVideo(
            data=encoded.data,
            total_duration=total_duration,
            beat_order=tuple(segment.beat_id for segment in segments),
            container=encoded.container,
            codec=encoded.codec,
        )


def _buffer_of(beats: Iterable[BeatMedia]) -> BeatBuffer:
    buffer = BeatBuffer()
    for media in beats:
        buffer.insert(media)
    return buffer
