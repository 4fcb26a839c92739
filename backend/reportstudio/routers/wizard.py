"""Report wizard: 5-step draft flow with autosave, resume and generation.

Endpoints:
  POST  /api/wizard/                                → open (or resume) a session
  GET   /api/wizard/{session_id}                    → session state
  PATCH /api/wizard/{session_id}                    → merge partial draft data
  PATCH /api/wizard/{session_id}/sections/{id}      → edit one section
  GET   /api/wizard/{session_id}/validation/{step}  → validate a step
  POST  /api/wizard/{session_id}/next               → advance (if valid)
  POST  /api/wizard/{session_id}/previous           → go back one step
  POST  /api/wizard/{session_id}/goto/{step}        → jump back to a step
  POST  /api/wizard/{session_id}/save               → manual save (Ctrl+S)
  POST  /api/wizard/{session_id}/close              → exit (save/discard/cancel)
  POST  /api/wizard/{session_id}/generate           → start generation (step 5)
  GET   /api/wizard/{session_id}/generation         → generation progress

Design:
  - Sessions live in the WizardRegistry; the draft row is created on the
    first save (manual or autosave) and updated in place afterwards.
  - Refused navigation is a 200 with `moved: false` plus field errors.
  - Save failures are a 200 with `save.status == "failed"`; the draft
    stays in memory and the autosave loop retries.
"""

from fastapi import APIRouter, Depends, Path, status

from reportstudio.auth.deps import get_current_org
from reportstudio.deps import get_registry
from reportstudio.schemas.report import DraftUpdate, SectionUpdate
from reportstudio.schemas.wizard import (
    ChecklistItemOut,
    CloseOut,
    CloseRequest,
    GenerationOut,
    SaveOut,
    SaveStateOut,
    TransitionOut,
    ValidationOut,
    WizardStart,
    WizardState,
    step_indicator,
)
from reportstudio.services.registry import WizardRegistry
from reportstudio.services.sequencer import Transition, WizardStep
from reportstudio.services.wizard import ReportWizard

router = APIRouter()


# ── Helpers ──────────────────────────────────────────────────

def _make_state(wizard: ReportWizard) -> WizardState:
    """Build a WizardState response from the session."""
    return WizardState(
        session_id=wizard.session_id,
        current_step=wizard.current_step,
        steps=step_indicator(wizard.current_step),
        draft=wizard.draft,
        cover_image_id=wizard.draft.cover_image_id,
        checklist=[ChecklistItemOut.model_validate(i) for i in wizard.checklist()],
        save=SaveStateOut.model_validate(wizard.save_state),
    )


def _make_transition(wizard: ReportWizard, transition: Transition) -> TransitionOut:
    return TransitionOut(
        moved=transition.moved,
        from_step=transition.from_step,
        to_step=transition.to_step,
        errors=transition.errors,
        state=_make_state(wizard),
    )


def _get_session(
    session_id: str,
    org_id: str = Depends(get_current_org),
    registry: WizardRegistry = Depends(get_registry),
) -> ReportWizard:
    return registry.get(session_id, org_id)


# ── Session lifecycle ────────────────────────────────────────

@router.post("/", response_model=WizardState, status_code=status.HTTP_201_CREATED)
async def open_wizard(
    body: WizardStart,
    org_id: str = Depends(get_current_org),
    registry: WizardRegistry = Depends(get_registry),
):
    """Open a wizard for a new draft, or resume `draft_id`."""
    if body.draft_id:
        wizard = await registry.resume(org_id, body.draft_id)
    else:
        wizard = registry.open(org_id, body.report_type)
    return _make_state(wizard)


@router.get("/{session_id}", response_model=WizardState)
async def get_wizard(wizard: ReportWizard = Depends(_get_session)):
    return _make_state(wizard)


@router.post("/{session_id}/close", response_model=CloseOut)
async def close_wizard(
    body: CloseRequest,
    wizard: ReportWizard = Depends(_get_session),
    registry: WizardRegistry = Depends(get_registry),
):
    """Exit the wizard.  With unsaved edits and no choice, asks to confirm."""
    outcome = await wizard.close(body.choice)
    if outcome.closed:
        registry.discard(wizard.session_id)
    return CloseOut(
        closed=outcome.closed,
        confirmation_required=outcome.confirmation_required,
        saved=outcome.saved,
        save=SaveStateOut.model_validate(wizard.save_state),
    )


# ── Edits ────────────────────────────────────────────────────

@router.patch("/{session_id}", response_model=WizardState)
async def update_draft(
    body: DraftUpdate,
    wizard: ReportWizard = Depends(_get_session),
):
    """Merge the fields present in the body into the draft."""
    wizard.update(body)
    return _make_state(wizard)


@router.patch("/{session_id}/sections/{section_id}", response_model=WizardState)
async def update_section(
    section_id: str,
    body: SectionUpdate,
    wizard: ReportWizard = Depends(_get_session),
):
    wizard.update_section(section_id, body)
    return _make_state(wizard)


# ── Validation & navigation ──────────────────────────────────

@router.get("/{session_id}/validation/{step}", response_model=ValidationOut)
async def validate_wizard_step(
    step: int = Path(ge=WizardStep.SETUP.value, le=WizardStep.GENERATE.value),
    wizard: ReportWizard = Depends(_get_session),
):
    result = wizard.validate(step)
    return ValidationOut(step=step, valid=result.valid, errors=result.errors)


@router.post("/{session_id}/next", response_model=TransitionOut)
async def next_step(wizard: ReportWizard = Depends(_get_session)):
    return _make_transition(wizard, wizard.next())


@router.post("/{session_id}/previous", response_model=TransitionOut)
async def previous_step(wizard: ReportWizard = Depends(_get_session)):
    return _make_transition(wizard, wizard.previous())


@router.post("/{session_id}/goto/{step}", response_model=TransitionOut)
async def go_to_step(
    step: int = Path(ge=WizardStep.SETUP.value, le=WizardStep.GENERATE.value),
    wizard: ReportWizard = Depends(_get_session),
):
    return _make_transition(wizard, wizard.go_to(step))


# ── Saving ───────────────────────────────────────────────────

@router.post("/{session_id}/save", response_model=SaveOut)
async def save_draft(wizard: ReportWizard = Depends(_get_session)):
    """Persist now.  A repeat save with no edits in between writes nothing."""
    saved = await wizard.save()
    return SaveOut(saved=saved, save=SaveStateOut.model_validate(wizard.save_state))


# ── Generation ───────────────────────────────────────────────

@router.post("/{session_id}/generate", response_model=GenerationOut)
async def start_generation(wizard: ReportWizard = Depends(_get_session)):
    snapshot = await wizard.start_generation()
    return GenerationOut.model_validate(snapshot)


@router.get("/{session_id}/generation", response_model=GenerationOut)
async def generation_progress(wizard: ReportWizard = Depends(_get_session)):
    snapshot = await wizard.generation_status()
    return GenerationOut.model_validate(snapshot)
