"""Exception hierarchy.

Two families:

* ``ServiceError`` – raised by adapters. ``TransientServiceError`` may be
  retried (timeouts, rate limits, 5xx); ``PermanentServiceError`` never is.
* ``PipelineFailure`` – raised by pipeline stages. Each kind carries its own
  ``fatal`` classification: fatal kinds abort the run, the others are absorbed
  by the orchestrator with a fallback or omission.
"""

from typing import Optional, Sequence, Tuple

from shorts_maker.domain.models import PipelineLogEntry, PipelineStage


class ShortsMakerError(Exception):
    """Base exception for all shorts-maker errors."""


class ServiceError(ShortsMakerError):
    """An external capability call failed."""

    def __init__(self, message: str, service: str = ""):
        super().__init__(message)
        self.message = message
        self.service = service


class TransientServiceError(ServiceError):
    """Timeout, rate limit or other retryable failure."""


class PermanentServiceError(ServiceError):
    """Policy rejection, bad request or malformed response. Not retried."""


class PipelineFailure(ShortsMakerError):
    """A stage-level failure. ``log`` is attached when it leaves the orchestrator."""

    fatal = True
    stage = PipelineStage.FAILED

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.log: Tuple[PipelineLogEntry, ...] = ()

    def with_log(self, entries: Sequence[PipelineLogEntry]) -> "PipelineFailure":
        self.log = tuple(entries)
        return self


class PlanningFailure(PipelineFailure):
    stage = PipelineStage.PLANNING


class BeatGenerationFailure(PipelineFailure):
    """One beat could not be generated. Absorbed unless raised for a threshold breach."""

    fatal = False
    stage = PipelineStage.GENERATING

    def __init__(
        self,
        message: str,
        beat_id: Optional[str] = None,
        *,
        fatal: bool = False,
        failed_beats: Sequence[str] = (),
    ):
        super().__init__(message)
        self.beat_id = beat_id
        self.fatal = fatal
        self.failed_beats = tuple(failed_beats)


class AssemblyFailure(PipelineFailure):
    stage = PipelineStage.ASSEMBLING


class ThumbnailFailure(PipelineFailure):
    fatal = False
    stage = PipelineStage.FINALIZING


class PublishFailure(PipelineFailure):
    fatal = False
    stage = PipelineStage.PUBLISHING


class TimeoutFailure(PipelineFailure):
    """The run exceeded its overall deadline."""

    def __init__(self, message: str, stage: PipelineStage = PipelineStage.FAILED):
        super().__init__(message)
        self.stage = stage


class UnexpectedPipelineError(PipelineFailure):
    """Wraps a non-pipeline exception raised inside a stage; always fatal."""

    def __init__(self, message: str, stage: PipelineStage):
        super().__init__(message)
        self.stage = stage
