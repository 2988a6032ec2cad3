"""Tests for the end-to-end pipeline orchestration."""

from dataclasses import replace

import pytest

from shorts_maker.domain.errors import (
    AssemblyFailure,
    BeatGenerationFailure,
    PermanentServiceError,
    PlanningFailure,
    TimeoutFailure,
    UnexpectedPipelineError,
)
from shorts_maker.domain.models import PipelineStage, ShortRequest

from conftest import FakeEncoder, FakeNarration, FakeNarrative, FakePlatform, FakeRenderer, FakeVisuals, make_raw_plan


class TestHappyPath:
    @pytest.mark.asyncio
    async def test_total_duration_follows_measured_narration(self, make_pipeline, request_40s):
        """Planned [15, 15, 10] with narration [13, 16, 9] gives a 38s short."""
        result = await make_pipeline().run(request_40s)

        assert result.total_duration == pytest.approx(38.0)
        assert result.video.beat_order == ("beat-1", "beat-2", "beat-3")
        assert result.plan.beat_ids == ["beat-1", "beat-2", "beat-3"]
        assert result.youtube_url is None
        assert result.youtube_id is None
        assert not result.thumbnail.is_fallback
        assert "publishing" not in [entry.step for entry in result.logs]

    @pytest.mark.asyncio
    async def test_segments_carry_hooks_and_audio_durations(self, make_pipeline, fakes, request_40s):
        await make_pipeline().run(request_40s)

        segments = fakes["video_encoder"].segments
        assert [s.duration for s in segments] == [13.0, 16.0, 9.0]
        assert [s.caption for s in segments] == ["Hook 1", "Hook 2", "Hook 3"]

    @pytest.mark.asyncio
    async def test_log_covers_every_stage_with_monotonic_timestamps(self, make_pipeline, request_40s):
        result = await make_pipeline().run(request_40s)

        steps = [entry.step for entry in result.logs]
        for stage in ("planning", "generating", "assembling", "finalizing", "done"):
            assert stage in steps
        assert steps[-1] == "done"
        timestamps = [entry.timestamp for entry in result.logs]
        assert timestamps == sorted(timestamps)

    @pytest.mark.asyncio
    async def test_response_envelope(self, make_pipeline, request_40s):
        response = (await make_pipeline().run(request_40s)).to_response()

        assert response["success"] is True
        assert response["totalDuration"] == pytest.approx(38.0)
        assert response["plan"]["beats"][0]["visualPrompt"] == "visual 1"
        assert response["youtubeUrl"] is None
        assert response["logs"][0]["timestamp"].endswith("Z")


class TestOrdering:
    @pytest.mark.asyncio
    async def test_plan_order_survives_reversed_completion(self, make_pipeline, fakes, request_40s):
        """Test that the slowest-first beat still lands first in the video."""
        visuals = FakeVisuals(delays={"visual 1": 0.15, "visual 2": 0.05, "visual 3": 0})
        result = await make_pipeline(visual_service=visuals).run(request_40s)

        generated = [e.message for e in result.logs if e.step == "generating" and "ready" in e.message]
        assert generated[0].startswith("Beat beat-3")
        assert result.video.beat_order == ("beat-1", "beat-2", "beat-3")
        assert [s.beat_id for s in fakes["video_encoder"].segments] == ["beat-1", "beat-2", "beat-3"]

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, make_pipeline, settings):
        plan = make_raw_plan([4] * 10)
        visuals = FakeVisuals(delays={f"visual {i}": 0.02 for i in range(1, 11)})
        pipeline = make_pipeline(
            settings_override=replace(settings, max_concurrent_beats=2),
            narrative_service=FakeNarrative(plan),
            visual_service=visuals,
            narration_service=FakeNarration(),
        )

        await pipeline.run(ShortRequest(topic="Octopus", durationSeconds=40))

        assert visuals.max_in_flight <= 2


class TestBeatDropPolicy:
    @pytest.mark.asyncio
    async def test_drops_failed_beats_below_threshold(self, make_pipeline):
        plan = make_raw_plan([4] * 10)
        pipeline = make_pipeline(
            narrative_service=FakeNarrative(plan),
            visual_service=FakeVisuals(failing=["visual 4", "visual 7"]),
            narration_service=FakeNarration(),
        )

        result = await pipeline.run(ShortRequest(topic="Octopus", durationSeconds=40))

        assert len(result.video.beat_order) == 8
        assert "beat-4" not in result.video.beat_order
        assert "beat-7" not in result.plan.beat_ids
        assert result.total_duration == pytest.approx(32.0)
        messages = [e.message for e in result.logs]
        assert sum("failed" in m and m.startswith("⚠️") for m in messages) == 2
        assert any(m.startswith("Dropping 2 failed beat(s)") for m in messages)

    @pytest.mark.asyncio
    async def test_threshold_breach_is_fatal(self, make_pipeline):
        plan = make_raw_plan([4] * 10)
        pipeline = make_pipeline(
            narrative_service=FakeNarrative(plan),
            visual_service=FakeVisuals(failing=["visual 1", "visual 2", "visual 3"]),
            narration_service=FakeNarration(),
        )

        with pytest.raises(BeatGenerationFailure) as exc_info:
            await pipeline.run(ShortRequest(topic="Octopus", durationSeconds=40))

        failure = exc_info.value
        assert failure.fatal is True
        assert failure.failed_beats == ("beat-1", "beat-2", "beat-3")
        assert failure.log[-1].step == "failed"

    @pytest.mark.asyncio
    async def test_any_failure_in_small_plan_is_fatal(self, make_pipeline):
        pipeline = make_pipeline(narration_service=FakeNarration(failing=["narration 2"]))

        with pytest.raises(BeatGenerationFailure) as exc_info:
            await pipeline.run(ShortRequest(topic="Octopus", durationSeconds=40))

        assert exc_info.value.failed_beats == ("beat-2",)

    @pytest.mark.asyncio
    async def test_transient_errors_are_retried(self, make_pipeline, fakes, request_40s):
        visuals = FakeVisuals(transient_failures={"visual 2": 2})
        result = await make_pipeline(visual_service=visuals).run(request_40s)

        assert visuals.calls.count("visual 2") == 3
        assert result.video.beat_order == ("beat-1", "beat-2", "beat-3")

    @pytest.mark.asyncio
    async def test_unexpected_beat_error_is_dropped(self, make_pipeline):
        class MissingFfprobe(FakeNarration):
            async def synthesize(self, text):
                if text == "narration 5":
                    raise FileNotFoundError("ffprobe not found")
                return await super().synthesize(text)

        pipeline = make_pipeline(
            narrative_service=FakeNarrative(make_raw_plan([4] * 10)),
            narration_service=MissingFfprobe(),
        )

        result = await pipeline.run(ShortRequest(topic="Octopus", durationSeconds=40))

        assert len(result.video.beat_order) == 9
        assert "beat-5" not in result.video.beat_order
        assert any("FileNotFoundError" in e.message for e in result.logs)


class TestNonFatalStages:
    @pytest.mark.asyncio
    async def test_thumbnail_failure_uses_placeholder(self, make_pipeline, request_40s):
        result = await make_pipeline(thumbnail_renderer=FakeRenderer(fail=True)).run(request_40s)

        assert result.thumbnail.is_fallback is True
        assert result.thumbnail.data == b"placeholder:Octopus Facts"
        assert result.video.data
        assert any("Thumbnail failed" in e.message for e in result.logs)

    @pytest.mark.asyncio
    async def test_publish_failure_keeps_video(self, make_pipeline):
        platform = FakePlatform(errors=[PermanentServiceError("quota exceeded", service="youtube")])
        request = ShortRequest(topic="Octopus", durationSeconds=40, uploadToYoutube=True)

        result = await make_pipeline(publishing_platform=platform).run(request)

        assert result.video.data
        assert result.youtube_url is None
        publishing = [e for e in result.logs if e.step == "publishing"]
        assert any("Publish failed" in e.message for e in publishing)

    @pytest.mark.asyncio
    async def test_unexpected_publish_error_keeps_video(self, make_pipeline):
        platform = FakePlatform(errors=[EOFError("Ran out of input")])
        request = ShortRequest(topic="Octopus", durationSeconds=40, uploadToYoutube=True)

        result = await make_pipeline(publishing_platform=platform).run(request)

        assert result.video.data
        assert result.youtube_id is None
        assert any("EOFError" in e.message for e in result.logs if e.step == "publishing")

    @pytest.mark.asyncio
    async def test_unexpected_thumbnail_error_uses_placeholder(self, make_pipeline, request_40s):
        class ThumbnailCrash(FakeVisuals):
            async def generate_visual(self, prompt):
                if "thumbnail" in prompt:
                    raise RuntimeError("thumbnail service exploded")
                return await super().generate_visual(prompt)

        result = await make_pipeline(visual_service=ThumbnailCrash()).run(request_40s)

        assert result.video.data
        assert result.thumbnail.is_fallback is True
        assert any("RuntimeError" in e.message for e in result.logs)

    @pytest.mark.asyncio
    async def test_publish_success(self, make_pipeline, fakes):
        request = ShortRequest(topic="Octopus", durationSeconds=40, uploadToYoutube=True)

        result = await make_pipeline().run(request)

        assert result.youtube_id == "abc123"
        assert result.youtube_url == "https://www.youtube.com/watch?v=abc123"
        assert fakes["publishing_platform"].uploads[0].title == "Octopus Facts"


class TestFatalFailures:
    @pytest.mark.asyncio
    async def test_malformed_plan_is_not_retried(self, make_pipeline, request_40s):
        narrative = FakeNarrative(plan={"title": "No beats", "beats": []})

        with pytest.raises(PlanningFailure) as exc_info:
            await make_pipeline(narrative_service=narrative).run(request_40s)

        assert narrative.calls == 1
        assert exc_info.value.stage == PipelineStage.PLANNING
        assert [e.step for e in exc_info.value.log] == ["planning", "failed"]

    @pytest.mark.asyncio
    async def test_deadline_during_generation(self, make_pipeline, settings, request_40s):
        pipeline = make_pipeline(
            settings_override=replace(settings, deadline_seconds=0.2),
            visual_service=FakeVisuals(delays={"visual 1": 1.0}),
        )

        with pytest.raises(TimeoutFailure) as exc_info:
            await pipeline.run(request_40s)

        failure = exc_info.value
        assert failure.stage == PipelineStage.GENERATING
        assert failure.log[-1].step == "failed"
        assert sum(e.step == "failed" for e in failure.log) == 1

    @pytest.mark.asyncio
    async def test_unexpected_error_is_wrapped(self, make_pipeline, request_40s):
        pipeline = make_pipeline(video_encoder=FakeEncoder(error=RuntimeError("ffmpeg exploded")))

        with pytest.raises(UnexpectedPipelineError) as exc_info:
            await pipeline.run(request_40s)

        assert exc_info.value.stage == PipelineStage.ASSEMBLING
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_encoder_service_error_is_assembly_failure(self, make_pipeline, request_40s):
        pipeline = make_pipeline(video_encoder=FakeEncoder(error=PermanentServiceError("bad codec")))

        with pytest.raises(AssemblyFailure) as exc_info:
            await pipeline.run(request_40s)

        assert exc_info.value.stage == PipelineStage.ASSEMBLING
        assert "bad codec" in exc_info.value.message
