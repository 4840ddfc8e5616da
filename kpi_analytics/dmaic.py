"""
DMAIC project lifecycle: Define -> Measure -> Analyze -> Improve -> Control -> Closed.

Transitions are single forward steps only. The engine never advances a
project on its own: the workflow layer saves the current phase's frozen
analytics, then calls ProjectState.advance(). Corrections to earlier
phases are edits to their frozen data, not a rewind of the phase pointer.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

import pandas as pd

from .errors import ConfigurationError, PhaseTransitionError
from .timebuckets import parse_instant

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    DEFINE = "Define"
    MEASURE = "Measure"
    ANALYZE = "Analyze"
    IMPROVE = "Improve"
    CONTROL = "Control"
    CLOSED = "Closed"


PHASES: tuple[Phase, ...] = tuple(Phase)

# Earlier phases whose frozen snapshots a phase's analytics read
_SNAPSHOT_SOURCES: dict[Phase, tuple[Phase, ...]] = {
    Phase.DEFINE: (),
    Phase.MEASURE: (),
    Phase.ANALYZE: (Phase.MEASURE,),
    Phase.IMPROVE: (Phase.MEASURE, Phase.ANALYZE),
    Phase.CONTROL: (Phase.MEASURE, Phase.ANALYZE, Phase.IMPROVE),
    Phase.CLOSED: (Phase.MEASURE, Phase.ANALYZE, Phase.IMPROVE, Phase.CONTROL),
}


def as_phase(value: Any) -> Phase:
    """Accept a Phase or its name in any case ("measure", "Measure")."""
    if isinstance(value, Phase):
        return value
    text = str(value).strip().lower()
    for phase in PHASES:
        if phase.value.lower() == text:
            return phase
    raise ConfigurationError(f"Unknown DMAIC phase: {value!r}")


def next_phase(phase: Any) -> Phase:
    """The only phase reachable from ``phase``.

    Raises
    ------
    PhaseTransitionError
        From Closed, which is terminal.
    """
    current = as_phase(phase)
    if current is Phase.CLOSED:
        raise PhaseTransitionError("Project is closed; no further transitions")
    return PHASES[PHASES.index(current) + 1]


def validate_transition(current: Any, target: Any) -> Phase:
    """Check that ``target`` is exactly one step after ``current``."""
    expected = next_phase(current)
    requested = as_phase(target)
    if requested is not expected:
        raise PhaseTransitionError(
            f"Cannot move from {as_phase(current).value} to {requested.value}; "
            f"next phase is {expected.value}"
        )
    return requested


def phases_through(phase: Any) -> list[Phase]:
    """Define up to and including ``phase`` (the cards a project shows)."""
    current = as_phase(phase)
    return list(PHASES[: PHASES.index(current) + 1])


def snapshot_sources(phase: Any) -> tuple[Phase, ...]:
    """Earlier phases whose frozen (not live) analytics ``phase`` reads."""
    return _SNAPSHOT_SOURCES[as_phase(phase)]


@dataclass(frozen=True)
class ProjectState:
    """Current phase plus the append-only phase-entry history."""

    phase: Phase = Phase.DEFINE
    history: tuple[tuple[Phase, pd.Timestamp], ...] = ()

    @classmethod
    def start(cls, at: Any = None) -> "ProjectState":
        entered = pd.Timestamp.now(tz="UTC") if at is None else parse_instant(at)
        return cls(Phase.DEFINE, ((Phase.DEFINE, entered),))

    @property
    def is_closed(self) -> bool:
        return self.phase is Phase.CLOSED

    def entered_at(self, phase: Any) -> pd.Timestamp | None:
        wanted = as_phase(phase)
        for recorded, at in self.history:
            if recorded is wanted:
                return at
        return None

    def completed_phases(self) -> list[Phase]:
        """Phases already left behind; the current phase is not included."""
        return list(PHASES[: PHASES.index(self.phase)])

    def advance(self, at: Any = None, target: Any = None) -> "ProjectState":
        """Return a new state one phase further on.

        The caller must already have persisted this phase's frozen
        analytics. ``target``, when given, must be the next phase.
        """
        following = next_phase(self.phase)
        if target is not None:
            validate_transition(self.phase, target)

        entered = pd.Timestamp.now(tz="UTC") if at is None else parse_instant(at)
        if self.history and entered < self.history[-1][1]:
            raise PhaseTransitionError(
                f"Phase entry {entered.isoformat()} precedes the previous entry"
            )

        logger.info("Project phase %s -> %s", self.phase.value, following.value)
        return ProjectState(following, self.history + ((following, entered),))

    def to_dict(self) -> dict:
        return {
            "phase": self.phase.value,
            "closed": self.is_closed,
            "completed": [phase.value for phase in self.completed_phases()],
            "history": [
                {"phase": phase.value, "entered_at": at.isoformat()}
                for phase, at in self.history
            ],
        }
