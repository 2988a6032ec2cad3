"""Tests for the request entry point and CLI helpers."""

import base64

import pytest

from shorts_maker.api import create_short
from shorts_maker.cli import build_parser, payload_from_args, save_outputs, slugify

from conftest import FakeNarrative


class TestCreateShort:
    @pytest.mark.asyncio
    async def test_success_envelope(self, make_pipeline):
        result = await create_short({"topic": "Octopus", "durationSeconds": 40}, pipeline=make_pipeline())

        assert result["success"] is True
        assert base64.b64decode(result["videoBase64"]) == b"mp4:beat-1,beat-2,beat-3"
        assert base64.b64decode(result["thumbnailBase64"]) == b"png:Octopus Facts"
        assert result["totalDuration"] == pytest.approx(38.0)
        assert result["youtubeUrl"] is None
        assert result["youtubeId"] is None
        assert {"step", "message", "timestamp"} <= set(result["logs"][0])

    @pytest.mark.asyncio
    async def test_validation_error(self, make_pipeline):
        result = await create_short({"topic": "Octopus", "durationSeconds": 5}, pipeline=make_pipeline())

        assert result["success"] is False
        assert "durationSeconds" in result["error"]
        assert result["logs"] == []
        assert "videoBase64" not in result

    @pytest.mark.asyncio
    async def test_pipeline_failure_envelope(self, make_pipeline):
        pipeline = make_pipeline(narrative_service=FakeNarrative(plan={"beats": []}))

        result = await create_short({"topic": "Octopus", "durationSeconds": 40}, pipeline=pipeline)

        assert result["success"] is False
        assert result["error"] == "Plan has no beats"
        assert result["logs"][-1]["step"] == "failed"
        assert "videoBase64" not in result


class TestCli:
    def test_payload_from_args(self):
        args = build_parser().parse_args(
            ["--topic", "Octopus", "--duration", "30", "--tone", "playful", "--tags", "a, b,,c", "--upload"]
        )

        assert payload_from_args(args) == {
            "topic": "Octopus",
            "durationSeconds": 30.0,
            "uploadToYoutube": True,
            "tone": "playful",
            "customTags": ["a", "b", "c"],
        }

    def test_slugify(self):
        assert slugify("Why Octopuses Are *Weird*!") == "why_octopuses_are_weird"
        assert slugify("!!!") == "short"

    def test_save_outputs(self, tmp_path):
        result = {
            "plan": {"title": "Octopus Facts"},
            "videoBase64": base64.b64encode(b"mp4").decode(),
            "thumbnailBase64": base64.b64encode(b"png").decode(),
        }

        video_path, thumbnail_path = save_outputs(result, str(tmp_path))

        assert video_path.endswith(".mp4") and "octopus_facts_" in video_path
        with open(thumbnail_path, "rb") as f:
            assert f.read() == b"png"
