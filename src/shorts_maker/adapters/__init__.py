"""
Adapters – concrete implementations of ports.
Swap any of them via default_adapters(**overrides), e.g. in tests or for another provider.
"""

from shorts_maker.adapters.content import LLMNarrativeService
from shorts_maker.adapters.image import ImagineArtVisualService
from shorts_maker.adapters.thumbnail import PillowThumbnailRenderer
from shorts_maker.adapters.tts import TTSNarrationService
from shorts_maker.adapters.upload import YouTubePublisher
from shorts_maker.adapters.video import MoviePyVideoEncoder


def default_adapters(**overrides):
    """
    Build default adapter instances (configured from shorts_maker.config).
    Overrides: narrative_service=..., visual_service=..., etc.
    Keys match PipelineOrchestrator's keyword arguments.
    """
    defaults = {
        "narrative_service": overrides.pop("narrative_service", None) or LLMNarrativeService(),
        "visual_service": overrides.pop("visual_service", None) or ImagineArtVisualService(),
        "narration_service": overrides.pop("narration_service", None) or TTSNarrationService(),
        "video_encoder": overrides.pop("video_encoder", None) or MoviePyVideoEncoder(),
        "thumbnail_renderer": overrides.pop("thumbnail_renderer", None) or PillowThumbnailRenderer(),
        "publishing_platform": overrides.pop("publishing_platform", None) or YouTubePublisher(),
    }
    if overrides:
        raise TypeError(f"Unknown adapter override(s): {', '.join(sorted(overrides))}")
    return defaults


__all__ = [
    "ImagineArtVisualService",
    "LLMNarrativeService",
    "MoviePyVideoEncoder",
    "PillowThumbnailRenderer",
    "TTSNarrationService",
    "YouTubePublisher",
    "default_adapters",
]
