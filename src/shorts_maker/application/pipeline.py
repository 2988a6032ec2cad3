"""
Pipeline orchestration – plan → beat media → assembly ∥ thumbnail → optional publish.
Depends only on port interfaces (SOLID – Dependency Inversion).

One run either returns a fully populated PipelineResult or raises exactly one
fatal PipelineFailure with the accumulated log attached as ``failure.log``.
"""

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from shorts_maker.application.assembler import BeatBuffer, VideoAssembler
from shorts_maker.application.beat_media import BeatMediaGenerator
from shorts_maker.application.plan_generator import PlanGenerator
from shorts_maker.application.publisher import Publisher
from shorts_maker.application.thumbnail import ThumbnailGenerator
from shorts_maker.config import PipelineSettings
from shorts_maker.domain.errors import (
    BeatGenerationFailure,
    PipelineFailure,
    PublishFailure,
    ThumbnailFailure,
    TimeoutFailure,
    UnexpectedPipelineError,
)
from shorts_maker.domain.log import PipelineLog
from shorts_maker.domain.models import (
    AssembledVideo,
    ContentPlan,
    PipelineResult,
    PipelineStage,
    PublishResult,
    ShortRequest,
    Thumbnail,
)
from shorts_maker.logging_config import get_logger
from shorts_maker.ports.interfaces import (
    INarrationService,
    INarrativeService,
    IPublishingPlatform,
    IThumbnailRenderer,
    IVideoEncoder,
    IVisualService,
)

logger = get_logger(__name__)


@dataclass
class _Run:
    """State of one invocation. Never shared between runs."""

    log: PipelineLog = field(default_factory=PipelineLog)
    stage: PipelineStage = PipelineStage.PLANNING

    def enter(self, stage: PipelineStage) -> None:
        self.stage = stage


class PipelineOrchestrator:
    """
    Orchestrates the full short-video pipeline.
    All dependencies are injected (ports); no concrete implementations here.
    """

    def __init__(
        self,
        *,
        narrative_service: INarrativeService,
        visual_service: IVisualService,
        narration_service: INarrationService,
        video_encoder: IVideoEncoder,
        thumbnail_renderer: IThumbnailRenderer,
        publishing_platform: IPublishingPlatform,
        settings: Optional[PipelineSettings] = None,
    ):
        self._settings = settings or PipelineSettings()
        self._planner = PlanGenerator(narrative_service, self._settings)
        self._beat_media = BeatMediaGenerator(visual_service, narration_service, self._settings)
        self._assembler = VideoAssembler(video_encoder)
        self._thumbnails = ThumbnailGenerator(visual_service, thumbnail_renderer, self._settings)
        self._publisher = Publisher(publishing_platform, self._settings)

    @property
    def settings(self) -> PipelineSettings:
        return self._settings

    async def run(self, request: ShortRequest) -> PipelineResult:
        """Run the pipeline under the overall deadline."""
        run = _Run()
        task = asyncio.create_task(self._run_stages(request, run))
        try:
            done, _ = await asyncio.wait({task}, timeout=self._settings.deadline_seconds)
        except asyncio.CancelledError:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise

        if not done:
            stage = run.stage
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            failure = TimeoutFailure(
                f"Pipeline exceeded its {self._settings.deadline_seconds:g}s deadline "
                f"while {stage.value}",
                stage,
            )
            self._record_fatal(run, failure)
            raise failure

        try:
            return task.result()
        except PipelineFailure as failure:
            self._record_fatal(run, failure)
            raise
        except Exception as e:
            failure = UnexpectedPipelineError(f"{type(e).__name__}: {e}", run.stage)
            self._record_fatal(run, failure)
            raise failure from e

    def _record_fatal(self, run: _Run, failure: PipelineFailure) -> None:
        run.enter(PipelineStage.FAILED)
        run.log.append(
            PipelineStage.FAILED, f"❌ {failure.stage.value.capitalize()} failed: {failure.message}"
        )
        failure.with_log(run.log.entries())

    async def _run_stages(self, request: ShortRequest, run: _Run) -> PipelineResult:
        log = run.log

        run.enter(PipelineStage.PLANNING)
        log.append(
            PipelineStage.PLANNING,
            f"Planning a {request.duration_seconds:g}s short about '{request.topic}'",
        )
        plan = await self._planner.generate_plan(request)
        log.append(
            PipelineStage.PLANNING,
            f"Plan ready: '{plan.title}' with {len(plan.beats)} beats "
            f"({plan.planned_duration:.1f}s planned)",
        )

        run.enter(PipelineStage.GENERATING)
        log.append(
            PipelineStage.GENERATING,
            f"Generating media for {len(plan.beats)} beats "
            f"(up to {self._settings.max_concurrent_beats} at a time)",
        )
        buffer, failures = await self._generate_all(plan, log)
        plan = self._apply_drop_policy(plan, failures, log)

        run.enter(PipelineStage.ASSEMBLING)
        log.append(PipelineStage.ASSEMBLING, f"Assembling {len(plan.beats)} segments")
        thumbnail_task = asyncio.create_task(self._thumbnail_for(plan, log))
        try:
            video = await self._assembler.assemble(plan, buffer)
        except BaseException:
            thumbnail_task.cancel()
            await asyncio.gather(thumbnail_task, return_exceptions=True)
            raise
        log.append(
            PipelineStage.ASSEMBLING,
            f"Video assembled: {len(video.beat_order)} segments, {video.total_duration:.2f}s",
        )

        run.enter(PipelineStage.FINALIZING)
        thumbnail = await thumbnail_task

        publish = PublishResult()
        if request.upload_to_youtube:
            run.enter(PipelineStage.PUBLISHING)
            publish = await self._publish(video, thumbnail, plan, log)

        run.enter(PipelineStage.DONE)
        log.append(PipelineStage.DONE, f"✅ Short ready ({video.total_duration:.2f}s)")
        return PipelineResult(
            plan=plan,
            video=video,
            thumbnail=thumbnail,
            total_duration=video.total_duration,
            publish=publish,
            logs=log.entries(),
        )

    async def _generate_all(
        self, plan: ContentPlan, log: PipelineLog
    ) -> Tuple[BeatBuffer, List[BeatGenerationFailure]]:
        """Generate every beat with bounded concurrency; failures are returned, not raised."""
        semaphore = asyncio.Semaphore(self._settings.max_concurrent_beats)
        buffer = BeatBuffer()
        failures: List[BeatGenerationFailure] = []

        async def generate(beat) -> None:
            async with semaphore:
                try:
                    media = await self._beat_media.generate_beat_media(beat)
                except BeatGenerationFailure as failure:
                    failures.append(failure)
                    log.append(
                        PipelineStage.GENERATING,
                        f"⚠️  Beat {beat.id} failed: {failure.message}",
                    )
                    return
            buffer.insert(media)
            log.append(
                PipelineStage.GENERATING,
                f"Beat {beat.id} ready ({media.audio_duration:.2f}s narration)",
            )

        tasks = [asyncio.create_task(generate(beat)) for beat in plan.beats]
        try:
            await asyncio.gather(*tasks)
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        return buffer, failures

    def _apply_drop_policy(
        self,
        plan: ContentPlan,
        failures: List[BeatGenerationFailure],
        log: PipelineLog,
    ) -> ContentPlan:
        if not failures:
            log.append(PipelineStage.GENERATING, f"All {len(plan.beats)} beats generated")
            return plan

        failed = {failure.beat_id for failure in failures}
        failed_ids = [beat_id for beat_id in plan.beat_ids if beat_id in failed]
        total = len(plan.beats)
        count = len(failed_ids)
        too_many = (
            count >= total
            or total <= self._settings.small_plan_beats
            or count / total >= self._settings.max_failed_beat_fraction
        )
        if too_many:
            raise BeatGenerationFailure(
                f"{count} of {total} beats failed ({', '.join(failed_ids)}); "
                "not enough material for a complete short",
                fatal=True,
                failed_beats=failed_ids,
            )

        log.append(
            PipelineStage.GENERATING,
            f"Dropping {count} failed beat(s) ({', '.join(failed_ids)}); "
            f"continuing with {total - count} of {total}",
        )
        return plan.without_beats(failed_ids)

    async def _thumbnail_for(self, plan: ContentPlan, log: PipelineLog) -> Thumbnail:
        try:
            thumbnail = await self._thumbnails.generate_thumbnail(plan)
        except ThumbnailFailure as failure:
            log.append(
                PipelineStage.FINALIZING,
                f"⚠️  Thumbnail failed, using placeholder: {failure.message}",
            )
            return self._thumbnails.fallback(plan)
        log.append(PipelineStage.FINALIZING, "Thumbnail ready")
        return thumbnail

    async def _publish(
        self,
        video: AssembledVideo,
        thumbnail: Thumbnail,
        plan: ContentPlan,
        log: PipelineLog,
    ) -> PublishResult:
        log.append(PipelineStage.PUBLISHING, f"📤 Uploading '{plan.title}' to YouTube")
        try:
            result = await self._publisher.publish(video, thumbnail, plan)
        except PublishFailure as failure:
            log.append(
                PipelineStage.PUBLISHING,
                f"⚠️  Publish failed, video kept unpublished: {failure.message}",
            )
            return PublishResult()
        log.append(PipelineStage.PUBLISHING, f"🎉 Published: {result.url}")
        return result
