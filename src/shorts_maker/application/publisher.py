"""Optional publish step. Failures here never withhold the video."""

from shorts_maker.application.retry import RetryPolicy, call_with_retries
from shorts_maker.config import PipelineSettings
from shorts_maker.domain.errors import PublishFailure, ServiceError
from shorts_maker.domain.models import (
    AssembledVideo,
    ContentPlan,
    PublishMetadata,
    PublishResult,
    Thumbnail,
)
from shorts_maker.ports.interfaces import IPublishingPlatform

MAX_TITLE_LENGTH = 100  # YouTube limit
MAX_DESCRIPTION_LENGTH = 5000


def build_metadata(plan: ContentPlan, settings: PipelineSettings) -> PublishMetadata:
    title = plan.title.strip()[:MAX_TITLE_LENGTH]
    description = plan.description.strip()
    hashtags = " ".join(f"#{tag.replace(' ', '')}" for tag in plan.tags[:5])
    if hashtags and "#shorts" not in description.lower():
        description = f"{description}\n\n{hashtags} #Shorts".strip()
    return PublishMetadata(
        title=title,
        description=description[:MAX_DESCRIPTION_LENGTH],
        tags=tuple(plan.tags),
        category_id=settings.category_id,
        privacy_status=settings.privacy_status,
    )


class Publisher:
    def __init__(self, platform: IPublishingPlatform, settings: PipelineSettings):
        self._platform = platform
        self._settings = settings
        self._policy = RetryPolicy.from_settings(settings, publish=True)

    async def publish(
        self, video: AssembledVideo, thumbnail: Thumbnail, plan: ContentPlan
    ) -> PublishResult:
        metadata = build_metadata(plan, self._settings)
        try:
            result = await call_with_retries(
                self._policy,
                self._platform.upload,
                video.data,
                thumbnail.data,
                metadata,
                service="publish",
            )
        except ServiceError as e:
            raise PublishFailure(f"Upload failed: {e.message}") from e
        except Exception as e:
            raise PublishFailure(f"Upload failed: {type(e).__name__}: {e}") from e
        if not result.published:
            raise PublishFailure("Platform returned no video id")
        return result
