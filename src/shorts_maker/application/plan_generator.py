"""
Plan generation – brief -> validated ContentPlan.
Malformed plans are fatal and never retried; only transient service errors are.
"""

from typing import Any, Dict, List, Mapping

from pydantic import ValidationError

from shorts_maker.application.retry import RetryPolicy, call_with_retries
from shorts_maker.config import PipelineSettings
from shorts_maker.domain.errors import PlanningFailure, ServiceError
from shorts_maker.domain.models import ContentPlan, ShortRequest
from shorts_maker.logging_config import get_logger
from shorts_maker.ports.interfaces import INarrativeService

logger = get_logger(__name__)


class PlanGenerator:
    def __init__(self, narrative: INarrativeService, settings: PipelineSettings):
        self._narrative = narrative
        self._settings = settings
        self._policy = RetryPolicy.from_settings(settings)

    async def generate_plan(self, request: ShortRequest) -> ContentPlan:
        try:
            raw = await call_with_retries(
                self._policy,
                self._narrative.generate_plan,
                request,
                self._settings.min_beats,
                self._settings.max_beats,
                service="narrative",
            )
        except ServiceError as e:
            raise PlanningFailure(f"Narrative service failed: {e.message}") from e

        plan = self._validate(raw, request)
        plan = self._fit_duration(plan, request.duration_seconds)
        return self._apply_overrides(plan, request)

    def _validate(self, raw: Any, request: ShortRequest) -> ContentPlan:
        if not isinstance(raw, Mapping):
            raise PlanningFailure(f"Plan must be an object, got {type(raw).__name__}")

        beats = raw.get("beats")
        if not isinstance(beats, list) or not beats:
            raise PlanningFailure("Plan has no beats")
        if len(beats) < self._settings.min_beats:
            raise PlanningFailure(
                f"Plan has {len(beats)} beats, need at least {self._settings.min_beats}"
            )
        if len(beats) > self._settings.max_beats:
            logger.warning(
                "⚠️  Plan has %d beats, keeping the first %d", len(beats), self._settings.max_beats
            )
            beats = beats[: self._settings.max_beats]

        normalized: List[Dict[str, Any]] = []
        for i, beat in enumerate(beats, 1):
            if not isinstance(beat, Mapping):
                raise PlanningFailure(f"Beat {i} is not an object")
            beat = dict(beat)
            if not str(beat.get("id") or "").strip():
                beat["id"] = f"beat-{i}"
            else:
                beat["id"] = str(beat["id"]).strip()
            normalized.append(beat)

        try:
            return ContentPlan.model_validate(
                {
                    "title": str(raw.get("title") or request.topic).strip(),
                    "description": str(raw.get("description") or "").strip(),
                    "tags": [str(t) for t in (raw.get("tags") or []) if t],
                    "beats": normalized,
                }
            )
        except ValidationError as e:
            raise PlanningFailure(f"Malformed plan: {_first_error(e)}") from e

    def _fit_duration(self, plan: ContentPlan, target: float) -> ContentPlan:
        """Rescale beat durations when their sum drifts outside the tolerance."""
        planned = plan.planned_duration
        if abs(planned - target) <= target * self._settings.duration_tolerance:
            return plan
        scale = target / planned
        logger.info("⏱️  Rescaling beat durations %.1fs -> %.1fs", planned, target)
        beats = [
            beat.model_copy(
                update={"duration_seconds": max(round(beat.duration_seconds * scale, 2), 0.01)}
            )
            for beat in plan.beats
        ]
        return plan.model_copy(update={"beats": beats})

    def _apply_overrides(self, plan: ContentPlan, request: ShortRequest) -> ContentPlan:
        update: Dict[str, Any] = {}
        if request.custom_title:
            update["title"] = request.custom_title
        if request.custom_description:
            update["description"] = request.custom_description
        if request.custom_tags:
            update["tags"] = list(request.custom_tags)
        return plan.model_copy(update=update) if update else plan


def _first_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg', 'invalid')}"
