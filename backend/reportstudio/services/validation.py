"""Per-step validation for the report wizard.

Each check is a pure function of the draft and returns a StepValidation
describing which fields block forward navigation.  Nothing here raises
for bad user input: errors are data so the client can render them next
to the offending field.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from reportstudio.config import settings
from reportstudio.schemas.report import (
    TEMPLATE_IDS,
    Draft,
    PeriodType,
    ReportType,
    is_valid_financial_year,
)


@dataclass
class StepValidation:
    valid: bool
    errors: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_errors(cls, errors: dict[str, str]) -> "StepValidation":
        return cls(valid=not errors, errors=errors)


@dataclass
class ChecklistItem:
    id: str
    label: str
    checked: bool
    # Derived items follow the draft; the rest are toggled by the user
    derived: bool = False


# Review checklist: (id, label, derived)
CHECKLIST = (
    ("sections", "All required sections completed", True),
    ("images", "Images assigned to sections", True),
    ("budget", "Budget figures in INR format (Lakhs/Crores)", False),
    ("dates", "Dates in DD/MM/YYYY format", False),
    ("spell", "Spell check passed", False),
    ("grammar", "Grammar check passed", False),
)


def _min_sections(min_sections: int | None) -> int:
    return settings.min_content_sections if min_sections is None else min_sections


# ── Step 1: Setup ───────────────────────────────────────────

def validate_setup(draft: Draft, *, title_max_length: int | None = None) -> StepValidation:
    max_len = settings.title_max_length if title_max_length is None else title_max_length
    errors: dict[str, str] = {}

    if not draft.title.strip():
        errors["title"] = "Report title is required"
    elif len(draft.title) > max_len:
        errors["title"] = f"Report title must be at most {max_len} characters"

    if draft.period_type == PeriodType.DATE_RANGE:
        if not draft.start_date:
            errors["start_date"] = "Start date is required"
        if not draft.end_date:
            errors["end_date"] = "End date is required"
        if draft.start_date and draft.end_date and draft.start_date > draft.end_date:
            errors["end_date"] = "End date must be after start date"
    else:
        if not draft.financial_year:
            errors["financial_year"] = "Financial year is required"
        elif not is_valid_financial_year(draft.financial_year):
            errors["financial_year"] = "Financial year must look like FY 2024-25"

    if draft.report_type == ReportType.FUNDER and not draft.funder_id:
        errors["funder_id"] = "Funder selection is required for funder reports"
    if draft.report_type == ReportType.PROJECT and not draft.project_id:
        errors["project_id"] = "Project selection is required for project reports"

    if not draft.template_id:
        errors["template_id"] = "Please select a report template"
    elif draft.template_id not in TEMPLATE_IDS:
        errors["template_id"] = f"Unknown report template: {draft.template_id}"

    return StepValidation.from_errors(errors)


# ── Step 2: Content ─────────────────────────────────────────

def validate_content(draft: Draft, *, min_sections: int | None = None) -> StepValidation:
    required = _min_sections(min_sections)
    started = draft.started_section_count()
    if started >= required:
        return StepValidation(valid=True)
    return StepValidation.from_errors({
        "sections": (
            f"Add content to at least {required} sections "
            f"({started} of {len(draft.sections)} started)"
        ),
    })


# ── Step 4: Review ──────────────────────────────────────────

def review_checklist(draft: Draft, *, min_sections: int | None = None) -> list[ChecklistItem]:
    """Checklist items in display order with their current state."""
    derived = {
        "sections": validate_content(draft, min_sections=min_sections).valid,
        "images": bool(draft.selected_images),
    }
    items = []
    for item_id, label, is_derived in CHECKLIST:
        if is_derived:
            checked = derived[item_id]
        else:
            checked = draft.checklist.get(item_id, True)
        items.append(ChecklistItem(id=item_id, label=label, checked=checked, derived=is_derived))
    return items


def validate_review(draft: Draft, *, min_sections: int | None = None) -> StepValidation:
    errors = {
        f"checklist.{item.id}": f"Not ready: {item.label}"
        for item in review_checklist(draft, min_sections=min_sections)
        if not item.checked
    }
    return StepValidation.from_errors(errors)


def validate_step(step: int, draft: Draft, *, min_sections: int | None = None) -> StepValidation:
    """Validate the slice of `draft` owned by wizard step `step` (1-5)."""
    if step == 1:
        return validate_setup(draft)
    if step == 2:
        return validate_content(draft, min_sections=min_sections)
    if step == 4:
        return validate_review(draft, min_sections=min_sections)
    if step in (3, 5):
        # Image selection is optional; Generate has no inputs
        return StepValidation(valid=True)
    raise ValueError(f"No such wizard step: {step}")
