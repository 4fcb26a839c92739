"""Step sequencer: forward only when valid, backward always."""

import pytest

from reportstudio.services.sequencer import StepSequencer, WizardStep
from reportstudio.services.validation import StepValidation

VALID = StepValidation(valid=True)


@pytest.mark.unit
class TestStepSequencer:
    def test_starts_on_setup(self):
        seq = StepSequencer()
        assert seq.current == WizardStep.SETUP
        assert seq.is_first

    def test_invalid_step_blocks_advance(self):
        seq = StepSequencer()
        transition = seq.advance(StepValidation.from_errors({"title": "Report title is required"}))
        assert not transition.moved
        assert transition.errors == {"title": "Report title is required"}
        assert seq.current == WizardStep.SETUP

    def test_advance_moves_one_step(self):
        seq = StepSequencer()
        transition = seq.advance(VALID)
        assert transition.moved
        assert (transition.from_step, transition.to_step) == (1, 2)

    def test_advance_stops_at_generate(self):
        seq = StepSequencer(WizardStep.GENERATE)
        assert seq.is_last
        transition = seq.advance(VALID)
        assert not transition.moved
        assert transition.errors == {}

    def test_retreat(self):
        seq = StepSequencer(3)
        assert seq.retreat().to_step == 2
        assert seq.current == WizardStep.CONTENT

    def test_retreat_from_first_is_noop(self):
        transition = StepSequencer().retreat()
        assert not transition.moved
        assert transition.to_step == 1

    def test_go_to_earlier_step(self):
        seq = StepSequencer(4)
        transition = seq.go_to(1)
        assert transition.moved
        assert seq.current == WizardStep.SETUP

    def test_go_to_refuses_forward_jump(self):
        seq = StepSequencer(2)
        transition = seq.go_to(4)
        assert not transition.moved
        assert "step" in transition.errors
        assert seq.current == WizardStep.CONTENT

    def test_go_to_current_step_does_not_move(self):
        assert not StepSequencer(3).go_to(3).moved
