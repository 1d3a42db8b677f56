from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .pipeline import ConversionState

LOGGER = logging.getLogger(__name__)


class Phase(str, Enum):
    UNPACK = "unpack"
    MAP = "map"
    PACK = "pack"


class ConversionEvents:
    """Event channel between a running conversion and whoever displays it.

    The base class ignores everything; override only what you need.
    """

    def on_state(self, state: "ConversionState") -> None:
        pass

    def on_phase_start(self, phase: Phase) -> None:
        pass

    def on_progress(self, phase: Phase, percent: float) -> None:
        pass

    def on_phase_end(self, phase: Phase) -> None:
        pass


NullEvents = ConversionEvents

_PHASE_LABELS = {
    Phase.UNPACK: "Unzipping",
    Phase.MAP: "Mapping",
    Phase.PACK: "Zipping",
}


class LoggingEvents(ConversionEvents):
    """Render progress as log lines, one per ``step`` percent."""

    def __init__(self, label: str = "pack", step: float = 10.0) -> None:
        if step <= 0:
            raise ValueError(f"step must be positive, got {step!r}")
        self.label = label
        self.step = step
        self._next = 0.0

    def on_phase_start(self, phase: Phase) -> None:
        self._next = self.step
        LOGGER.info("%s %s... (0%%)", _PHASE_LABELS[phase], self.label)

    def on_progress(self, phase: Phase, percent: float) -> None:
        if percent >= self._next:
            LOGGER.info("%s %s: %.1f%%", _PHASE_LABELS[phase], self.label, percent)
            while self._next <= percent:
                self._next += self.step
        else:
            LOGGER.debug("%s %s: %.1f%%", _PHASE_LABELS[phase], self.label, percent)

    def on_phase_end(self, phase: Phase) -> None:
        LOGGER.debug("%s %s finished.", _PHASE_LABELS[phase], self.label)


class PhaseProgress:
    """Clamp and de-duplicate progress so each phase only ever moves forward."""

    def __init__(self, events: ConversionEvents, phase: Phase) -> None:
        self.events = events
        self.phase = phase
        self.last = 0.0

    def start(self) -> None:
        self.last = 0.0
        self.events.on_phase_start(self.phase)
        self.events.on_progress(self.phase, 0.0)

    def __call__(self, percent: float) -> None:
        percent = min(100.0, max(0.0, percent))
        if percent > self.last:
            self.last = percent
            self.events.on_progress(self.phase, percent)

    def finish(self) -> None:
        self(100.0)
        self.events.on_phase_end(self.phase)
