"""Linear step sequencer for the report wizard.

    Setup(1) → Content(2) → Images(3) → Review(4) → Generate(5)

Forward moves go one step at a time and only after the active step
validates; backward moves are always allowed.  The sequencer owns no
draft data, so navigating never resets anything.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from reportstudio.services.validation import StepValidation


class WizardStep(int, enum.Enum):
    SETUP = 1
    CONTENT = 2
    IMAGES = 3
    REVIEW = 4
    GENERATE = 5


FIRST_STEP = WizardStep.SETUP
LAST_STEP = WizardStep.GENERATE


@dataclass
class Transition:
    moved: bool
    from_step: int
    to_step: int
    errors: dict[str, str] = field(default_factory=dict)


class StepSequencer:
    def __init__(self, current: int = FIRST_STEP):
        self._current = WizardStep(current)

    @property
    def current(self) -> WizardStep:
        return self._current

    @property
    def is_first(self) -> bool:
        return self._current == FIRST_STEP

    @property
    def is_last(self) -> bool:
        return self._current == LAST_STEP

    def _move(self, to: WizardStep) -> Transition:
        from_step = self._current
        self._current = to
        return Transition(moved=to != from_step, from_step=from_step, to_step=to)

    def _stay(self, errors: dict[str, str] | None = None) -> Transition:
        return Transition(
            moved=False, from_step=self._current, to_step=self._current, errors=errors or {}
        )

    def advance(self, validation: StepValidation) -> Transition:
        """Move to the next step if `validation` (of the current step) passed."""
        if not validation.valid:
            return self._stay(validation.errors)
        if self.is_last:
            return self._stay()
        return self._move(WizardStep(self._current + 1))

    def retreat(self) -> Transition:
        if self.is_first:
            return self._stay()
        return self._move(WizardStep(self._current - 1))

    def go_to(self, step: int) -> Transition:
        """Jump back to `step`.  Forward jumps are refused."""
        target = WizardStep(step)
        if target > self._current:
            return self._stay({
                "step": f"Complete step {self._current.value} before moving to step {target.value}",
            })
        return self._move(target)
