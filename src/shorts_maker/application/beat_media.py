"""Per-beat media generation: visual + narration, issued concurrently, each retried on transient errors."""

import asyncio

from shorts_maker.application.retry import RetryPolicy, call_with_retries
from shorts_maker.config import PipelineSettings
from shorts_maker.domain.errors import BeatGenerationFailure, ServiceError
from shorts_maker.domain.models import AudioAsset, BeatMedia, PlanBeat, VisualAsset
from shorts_maker.logging_config import get_logger
from shorts_maker.ports.interfaces import INarrationService, IVisualService

logger = get_logger(__name__)


class BeatMediaGenerator:
    def __init__(
        self,
        visuals: IVisualService,
        narration: INarrationService,
        settings: PipelineSettings,
    ):
        self._visuals = visuals
        self._narration = narration
        self._policy = RetryPolicy.from_settings(settings)

    async def generate_beat_media(self, beat: PlanBeat) -> BeatMedia:
        """
        Generate the visual and narration for one beat.
        If either sub-call fails for good the sibling is cancelled and a
        BeatGenerationFailure carrying the beat id is raised.
        """
        visual_task = asyncio.create_task(self._visual_for(beat))
        narration_task = asyncio.create_task(self._narration_for(beat))
        tasks = (visual_task, narration_task)
        try:
            visual, narration = await asyncio.gather(*tasks)
        except ServiceError as e:
            kind = "visual" if visual_task.done() and visual_task.exception() is e else "narration"
            raise BeatGenerationFailure(f"{kind} generation failed: {e.message}", beat.id) from e
        except Exception as e:
            raise BeatGenerationFailure(
                f"media generation failed: {type(e).__name__}: {e}", beat.id
            ) from e
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        if narration.duration_seconds <= 0:
            raise BeatGenerationFailure("narration audio has no measurable duration", beat.id)

        logger.debug(
            "🎬 Beat %s ready (planned %.1fs, narration %.2fs)",
            beat.id,
            beat.duration_seconds,
            narration.duration_seconds,
        )
        return BeatMedia(beat_id=beat.id, visual=visual, narration=narration)

    async def _visual_for(self, beat: PlanBeat) -> VisualAsset:
        return await call_with_retries(
            self._policy, self._visuals.generate_visual, beat.visual_prompt, service="visual"
        )

    async def _narration_for(self, beat: PlanBeat) -> AudioAsset:
        return await call_with_retries(
            self._policy, self._narration.synthesize, beat.narration, service="narration"
        )
