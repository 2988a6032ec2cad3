"""Ports (interfaces) – depend on these, implement in adapters."""

from shorts_maker.ports.interfaces import (
    INarrationService,
    INarrativeService,
    IPublishingPlatform,
    IThumbnailRenderer,
    IVideoEncoder,
    IVisualService,
)

__all__ = [
    "INarrativeService",
    "IVisualService",
    "INarrationService",
    "IVideoEncoder",
    "IThumbnailRenderer",
    "IPublishingPlatform",
]
