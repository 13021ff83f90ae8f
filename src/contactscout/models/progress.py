"""
Progress events emitted during one acquisition run.

Callers pass an observer (any callable taking a ProgressEvent) into the
controller instead of reading console output. ProgressRecorder is the simplest
observer: it just keeps every event in order.
"""
from __future__ import annotations

from enum import Enum
from typing import Callable, Literal

from pydantic import BaseModel, ConfigDict


class AcquisitionPhase(str, Enum):
    IDLE                    = "idle"
    PRECONDITION_FAILED     = "precondition_failed"
    INTELLIGENCE_GATHERING  = "intelligence_gathering"
    PERSON_CENTRIC_SEARCH   = "person_centric_search"
    HIGH_CONFIDENCE_FOUND   = "high_confidence_found"
    ROLE_CENTRIC_SEARCH     = "role_centric_search"
    SCORING                 = "scoring"
    ITERATIVE_ENRICHMENT    = "iterative_enrichment"
    DONE                    = "done"


ProgressLevel = Literal["info", "success", "warning", "error"]


class ProgressEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    phase: AcquisitionPhase
    level: ProgressLevel = "info"
    message: str


ProgressCallback = Callable[[ProgressEvent], None]


class ProgressRecorder:
    """Observer that records events; handy for scripts and tests."""

    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def __call__(self, event: ProgressEvent) -> None:
        self.events.append(event)

    def messages(self, level: ProgressLevel | None = None) -> list[str]:
        return [e.message for e in self.events if level is None or e.level == level]

    def phases(self) -> list[AcquisitionPhase]:
        """Distinct phases in the order they were first entered."""
        seen: list[AcquisitionPhase] = []
        for e in self.events:
            if e.phase not in seen:
                seen.append(e.phase)
        return seen
