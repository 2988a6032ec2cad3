"""
Request entry point: payload in, response envelope out.

    result = await create_short({"topic": "Black holes", "durationSeconds": 45})
    if result["success"]:
        video = base64.b64decode(result["videoBase64"])
"""

from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from shorts_maker.adapters import default_adapters
from shorts_maker.application.pipeline import PipelineOrchestrator
from shorts_maker.domain.errors import PipelineFailure
from shorts_maker.domain.models import ShortRequest
from shorts_maker.logging_config import get_logger

logger = get_logger(__name__)


def build_pipeline(**overrides) -> PipelineOrchestrator:
    settings = overrides.pop("settings", None)
    return PipelineOrchestrator(**default_adapters(**overrides), settings=settings)


def validation_message(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "request"
        parts.append(f"{location}: {item.get('msg', 'invalid')}")
    return "Invalid request: " + "; ".join(parts)


def failure_response(message: str, failure: Optional[PipelineFailure] = None) -> Dict[str, Any]:
    return {
        "success": False,
        "error": message,
        "logs": [entry.to_dict() for entry in failure.log] if failure else [],
    }


async def create_short(
    payload: Mapping[str, Any],
    pipeline: Optional[PipelineOrchestrator] = None,
) -> Dict[str, Any]:
    """Validate the brief, run the pipeline and return the success or failure envelope."""
    try:
        request = ShortRequest.model_validate(dict(payload))
    except ValidationError as e:
        logger.warning("❌ Rejected request: %s", e)
        return failure_response(validation_message(e))

    pipeline = pipeline or build_pipeline()
    try:
        result = await pipeline.run(request)
    except PipelineFailure as failure:
        logger.error("❌ Pipeline failed at %s: %s", failure.stage.value, failure.message)
        return failure_response(failure.message, failure)
    return result.to_response()
