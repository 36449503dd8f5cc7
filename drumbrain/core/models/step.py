"""
Step and run models — the unit of work and the record of a run.

A Step is built once when the step list is assembled and never
changes afterwards. RunState only lives as long as the process.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable


StepAction = Callable[[], str | None]


@dataclass(frozen=True)
class Step:
    """One convergent system change.

    ``action`` raises a ``ProvisioningError`` subclass when the step
    cannot reach its desired state, and may return a short message
    describing what it did ("already present", "3 units masked").
    """

    index: int
    description: str
    action: StepAction = field(repr=False, compare=False)


@dataclass
class RunState:
    """Progress of the current run."""

    total_steps: int
    current_step_index: int = 0

    @property
    def percent(self) -> int:
        if self.total_steps <= 0:
            return 100
        return self.current_step_index * 100 // self.total_steps

    def advance(self) -> int:
        self.current_step_index += 1
        return self.current_step_index


def format_progress(state: RunState, description: str) -> str:
    """Render the progress line for the step ``state`` points at.

    >>> format_progress(RunState(total_steps=9, current_step_index=3), "Writing limits")
    '[3/9] Writing limits (33% complete)'
    """
    return (
        f"[{state.current_step_index}/{state.total_steps}] {description} "
        f"({state.percent}% complete)"
    )


@dataclass
class StepOutcome:
    """What one step reported back."""

    index: int
    description: str
    message: str = ""
    duration_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "step": self.index,
            "description": self.description,
            "message": self.message,
            "duration_ms": self.duration_ms,
        }


@dataclass
class RunReport:
    """Result of a full, successful run."""

    user: str = ""
    outcomes: list[StepOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    def to_dict(self) -> dict:
        return {
            "status": "ok",
            "user": self.user,
            "steps_completed": self.total,
            "steps": [o.to_dict() for o in self.outcomes],
        }
