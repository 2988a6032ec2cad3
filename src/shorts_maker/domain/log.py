"""Append-only, timestamped pipeline log shared by every stage of one run."""

import threading
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple, Union

from shorts_maker.domain.models import PipelineLogEntry, PipelineStage
from shorts_maker.logging_config import get_logger

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PipelineLog:
    """
    Thread-safe append-only record. Entries are never mutated after append and
    timestamps never go backwards, even if the wall clock does.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or _utcnow
        self._lock = threading.Lock()
        self._entries: List[PipelineLogEntry] = []

    def append(self, step: Union[PipelineStage, str], message: str) -> PipelineLogEntry:
        step_name = step.value if isinstance(step, PipelineStage) else str(step)
        with self._lock:
            timestamp = self._clock()
            if self._entries and timestamp < self._entries[-1].timestamp:
                timestamp = self._entries[-1].timestamp
            entry = PipelineLogEntry(step=step_name, message=message, timestamp=timestamp)
            self._entries.append(entry)
        logger.info("[%s] %s", step_name, message)
        return entry

    def entries(self) -> Tuple[PipelineLogEntry, ...]:
        with self._lock:
            return tuple(self._entries)

    def steps(self) -> List[str]:
        return [entry.step for entry in self.entries()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
