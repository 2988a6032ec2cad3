"""Thumbnail generation. Needs only the plan, so it can overlap assembly."""

import asyncio
from typing import Optional

from shorts_maker.application.retry import RetryPolicy, call_with_retries
from shorts_maker.config import PipelineSettings
from shorts_maker.domain.errors import ServiceError, ThumbnailFailure
from shorts_maker.domain.models import AssembledVideo, ContentPlan, Thumbnail
from shorts_maker.ports.interfaces import IThumbnailRenderer, IVisualService


def thumbnail_prompt(plan: ContentPlan) -> str:
    lead = plan.beats[0].visual_prompt if plan.beats else plan.title
    return (
        f"Eye-catching vertical YouTube Shorts thumbnail for '{plan.title}'. "
        f"{lead}. Bold composition, high contrast, strong focal subject, "
        "empty space in the lower third for a title."
    )


class ThumbnailGenerator:
    def __init__(
        self,
        visuals: IVisualService,
        renderer: IThumbnailRenderer,
        settings: PipelineSettings,
    ):
        self._visuals = visuals
        self._renderer = renderer
        self._policy = RetryPolicy.from_settings(settings)

    async def generate_thumbnail(
        self, plan: ContentPlan, video: Optional[AssembledVideo] = None
    ) -> Thumbnail:
        """
        Generate a background from the plan and draw the title over it.
        ``video`` is accepted for interface parity; frames of the assembled video are not used.
        Any failure surfaces as ThumbnailFailure.
        """
        try:
            background = await call_with_retries(
                self._policy, self._visuals.generate_visual, thumbnail_prompt(plan), service="thumbnail"
            )
        except ServiceError as e:
            raise ThumbnailFailure(f"Thumbnail background failed: {e.message}") from e
        except Exception as e:
            raise ThumbnailFailure(f"Thumbnail background failed: {type(e).__name__}: {e}") from e

        try:
            data = await asyncio.to_thread(self._renderer.render, plan.title, background)
        except Exception as e:
            raise ThumbnailFailure(f"Thumbnail rendering failed: {type(e).__name__}: {e}") from e
        if not data:
            raise ThumbnailFailure("Thumbnail renderer returned no data")
        return Thumbnail(data=data)

    def fallback(self, plan: ContentPlan) -> Thumbnail:
        """Deterministic branded placeholder used when generation fails."""
        return Thumbnail(data=self._renderer.placeholder(plan.title), is_fallback=True)
