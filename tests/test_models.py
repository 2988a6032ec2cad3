"""Tests for request/plan models and the pipeline log."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from shorts_maker.domain.errors import BeatGenerationFailure, PlanningFailure, ThumbnailFailure
from shorts_maker.domain.log import PipelineLog
from shorts_maker.domain.models import ContentPlan, PipelineStage, ShortRequest

from conftest import make_raw_plan


class TestShortRequest:
    def test_accepts_camel_case_payload(self):
        request = ShortRequest.model_validate(
            {
                "topic": "  Black holes  ",
                "targetAudience": "teens",
                "durationSeconds": 45,
                "uploadToYoutube": True,
                "customTags": ["space", "Space", " ", "physics"],
            }
        )
        assert request.topic == "Black holes"
        assert request.target_audience == "teens"
        assert request.upload_to_youtube is True
        assert request.custom_tags == ["space", "physics"]

    @pytest.mark.parametrize("duration", [19, 121])
    def test_rejects_duration_out_of_range(self, duration):
        with pytest.raises(ValidationError):
            ShortRequest(topic="x", durationSeconds=duration)

    def test_rejects_blank_topic(self):
        with pytest.raises(ValidationError):
            ShortRequest(topic="   ", durationSeconds=30)

    def test_blank_optionals_become_none(self):
        request = ShortRequest(topic="x", durationSeconds=30, tone=" ", customTitle="")
        assert request.tone is None
        assert request.custom_title is None


class TestContentPlan:
    def test_duplicate_beat_ids_rejected(self):
        raw = make_raw_plan([10, 10, 10])
        raw["beats"][2]["id"] = "beat-1"
        with pytest.raises(ValidationError):
            ContentPlan.model_validate(raw)

    def test_non_positive_duration_rejected(self):
        raw = make_raw_plan([10, 0, 10])
        with pytest.raises(ValidationError):
            ContentPlan.model_validate(raw)

    def test_without_beats_keeps_order(self):
        plan = ContentPlan.model_validate(make_raw_plan([5, 5, 5, 5]))
        trimmed = plan.without_beats(["beat-2"])
        assert trimmed.beat_ids == ["beat-1", "beat-3", "beat-4"]
        assert plan.beat_ids == ["beat-1", "beat-2", "beat-3", "beat-4"]
        assert trimmed.planned_duration == 15

    def test_tags_deduplicated_in_order(self):
        raw = make_raw_plan([5, 5, 5])
        raw["tags"] = ["Ocean", "ocean", "facts"]
        assert ContentPlan.model_validate(raw).tags == ["Ocean", "facts"]


class TestFailureKinds:
    def test_fatal_classification(self):
        assert PlanningFailure("x").fatal is True
        assert ThumbnailFailure("x").fatal is False
        assert BeatGenerationFailure("x", "beat-1").fatal is False
        assert BeatGenerationFailure("x", fatal=True).fatal is True


class TestPipelineLog:
    def test_timestamps_never_go_backwards(self):
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        ticks = iter([base, base - timedelta(seconds=5), base + timedelta(seconds=1)])
        log = PipelineLog(clock=lambda: next(ticks))

        log.append(PipelineStage.PLANNING, "a")
        log.append(PipelineStage.PLANNING, "b")
        log.append("generating", "c")

        timestamps = [entry.timestamp for entry in log.entries()]
        assert timestamps == [base, base, base + timedelta(seconds=1)]
        assert log.steps() == ["planning", "planning", "generating"]

    def test_entries_is_a_snapshot(self):
        log = PipelineLog()
        log.append(PipelineStage.DONE, "first")
        snapshot = log.entries()
        log.append(PipelineStage.DONE, "second")
        assert len(snapshot) == 1
        assert len(log) == 2

    def test_entry_serializes_with_utc_suffix(self):
        log = PipelineLog(clock=lambda: datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))
        entry = log.append(PipelineStage.PLANNING, "hello")
        assert entry.to_dict() == {
            "step": "planning",
            "message": "hello",
            "timestamp": "2026-01-01T12:00:00Z",
        }
