"""Pydantic schemas for the 5-step report wizard API.

Navigation responses always carry the full session state so the client
can re-render after any intent.  Refused navigation is a normal 200
response with `moved: false` and the per-field error map.
"""

import enum
from datetime import datetime

from pydantic import BaseModel

from reportstudio.schemas.report import Draft, ReportType


class ExitChoice(str, enum.Enum):
    SAVE = "save"
    DISCARD = "discard"
    CANCEL = "cancel"


class SaveStatus(str, enum.Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    FAILED = "failed"


# ── Requests ────────────────────────────────────────────────

class WizardStart(BaseModel):
    """Start a new draft, or resume a persisted one by id."""
    report_type: ReportType = ReportType.ANNUAL
    draft_id: str | None = None


class CloseRequest(BaseModel):
    choice: ExitChoice | None = None


# ── Progress indicator ──────────────────────────────────────

STEP_NAMES = ("Setup", "Content", "Images", "Review", "Generate")


class StepIndicator(BaseModel):
    number: int
    label: str
    status: str  # "completed" | "current" | "upcoming"


def step_indicator(current_step: int) -> list[StepIndicator]:
    """Completion status of every step, for the progress bar."""
    steps = []
    for number, label in enumerate(STEP_NAMES, start=1):
        if number < current_step:
            status = "completed"
        elif number == current_step:
            status = "current"
        else:
            status = "upcoming"
        steps.append(StepIndicator(number=number, label=label, status=status))
    return steps


# ── Responses ───────────────────────────────────────────────

class SaveStateOut(BaseModel):
    status: SaveStatus
    dirty: bool
    draft_id: str | None
    last_saved_at: datetime | None
    last_error: str | None
    label: str

    model_config = {"from_attributes": True}


class ChecklistItemOut(BaseModel):
    id: str
    label: str
    checked: bool
    derived: bool

    model_config = {"from_attributes": True}


class WizardState(BaseModel):
    session_id: str
    current_step: int
    steps: list[StepIndicator]
    draft: Draft
    cover_image_id: str | None
    checklist: list[ChecklistItemOut]
    save: SaveStateOut


class ValidationOut(BaseModel):
    step: int
    valid: bool
    errors: dict[str, str]


class TransitionOut(BaseModel):
    moved: bool
    from_step: int
    to_step: int
    errors: dict[str, str]
    state: WizardState


class SaveOut(BaseModel):
    saved: bool
    save: SaveStateOut


class CloseOut(BaseModel):
    closed: bool
    confirmation_required: bool
    saved: bool | None
    save: SaveStateOut


class GenerationOut(BaseModel):
    started: bool
    progress: float
    phase: str
    phase_index: int
    complete: bool
    remaining_seconds: float

    model_config = {"from_attributes": True}
