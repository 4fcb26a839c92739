"""Report wizard session: one in-progress draft and the intents applied to it.

The client sends intents (edit fields, Next, Previous, Save, Close,
Generate).  This controller applies them to the draft, runs step
validation, drives the sequencer, and marks the autosave controller
dirty on every effective change.

Design:
  - `update()` is the single merge path; section edits go through it too.
  - Validation results are data; only programming errors raise
    (changing report_type, generating before step 5, unknown section).
  - Closing drops the session but never aborts a write already in flight.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass

from reportstudio.config import settings
from reportstudio.middleware.exceptions import (
    ImmutableFieldError,
    ResourceNotFoundError,
    StepNotReachedError,
)
from reportstudio.schemas.report import (
    Draft,
    DraftUpdate,
    ReportStatus,
    ReportType,
    SectionUpdate,
)
from reportstudio.schemas.wizard import ExitChoice
from reportstudio.services.autosave import AutosaveController, SaveState
from reportstudio.services.generation import GenerationJob, GenerationSimulator, GenerationSnapshot
from reportstudio.services.sequencer import StepSequencer, Transition, WizardStep
from reportstudio.services.store import DataStore
from reportstudio.services.validation import ChecklistItem, StepValidation, review_checklist, validate_step

logger = logging.getLogger(__name__)


@dataclass
class CloseOutcome:
    closed: bool
    confirmation_required: bool = False
    saved: bool | None = None


class ReportWizard:
    def __init__(
        self,
        store: DataStore,
        org_id: str,
        *,
        report_type: ReportType = ReportType.ANNUAL,
        draft: Draft | None = None,
        draft_id: str | None = None,
        session_id: str | None = None,
        min_sections: int | None = None,
        simulator: GenerationSimulator | None = None,
    ):
        self.session_id = session_id or str(uuid.uuid4())
        self.org_id = org_id
        self.draft = draft or Draft(report_type=report_type)
        self.min_sections = min_sections
        self.sequencer = StepSequencer(self.draft.current_step)
        self.autosave = AutosaveController(store, self.to_record, draft_id=draft_id)
        self.closed = False
        self._simulator = simulator or GenerationSimulator(
            time_scale=settings.generation_time_scale
        )
        self.generation: GenerationJob | None = None
        self._generation_task: asyncio.Task | None = None

    @classmethod
    def resume(cls, store: DataStore, record: dict, **kwargs) -> "ReportWizard":
        """Rebuild a session from a persisted `reports` row."""
        draft = Draft.model_validate({
            **(record.get("data") or {}),
            "report_type": record["report_type"],
            "status": record["status"],
            "current_step": record["current_step"],
        })
        return cls(store, record["org_id"], draft=draft, draft_id=record["id"], **kwargs)

    @property
    def current_step(self) -> int:
        return int(self.sequencer.current)

    @property
    def save_state(self) -> SaveState:
        return self.autosave.state

    def to_record(self) -> dict:
        """The full `reports` record for the draft as it is now."""
        return {
            "org_id": self.org_id,
            "title": self.draft.title,
            "report_type": self.draft.report_type.value,
            "status": self.draft.status.value,
            "data": self.draft.model_dump(mode="json"),
            "current_step": self.draft.current_step,
        }

    # ── Edits ───────────────────────────────────────────────

    def update(self, partial: DraftUpdate | dict) -> Draft:
        """Shallow-merge the keys set on `partial` into the draft."""
        if isinstance(partial, dict):
            partial = DraftUpdate.model_validate(partial)
        changes = partial.model_dump(exclude_unset=True)

        if "report_type" in changes:
            if changes.pop("report_type") != self.draft.report_type:
                raise ImmutableFieldError("report_type")
        if not changes:
            return self.draft

        # Validate the merged draft before swapping it in
        self.draft = Draft.model_validate({**self.draft.model_dump(), **changes})
        self._reset_generation()
        self.autosave.mark_dirty()
        return self.draft

    def update_section(self, section_id: str, body: SectionUpdate) -> Draft:
        """Edit one section.  New content clears a `complete` mark unless re-set."""
        sections = list(self.draft.sections)
        for i, section in enumerate(sections):
            if section.id == section_id:
                break
        else:
            raise ResourceNotFoundError("Section", section_id)

        marked = section.marked_complete
        if body.content is not None and body.content != section.content:
            marked = False
        if body.complete is not None:
            marked = body.complete

        sections[i] = section.model_copy(update={
            "content": section.content if body.content is None else body.content,
            "title": section.title if body.title is None else body.title,
            "marked_complete": marked,
        })
        return self.update(DraftUpdate(sections=sections))

    # ── Validation & navigation ─────────────────────────────

    def validate(self, step: int | None = None) -> StepValidation:
        return validate_step(
            self.current_step if step is None else step,
            self.draft,
            min_sections=self.min_sections,
        )

    def checklist(self) -> list[ChecklistItem]:
        return review_checklist(self.draft, min_sections=self.min_sections)

    def next(self) -> Transition:
        transition = self.sequencer.advance(self.validate())
        if transition.moved:
            self._sync_step()
        return transition

    def previous(self) -> Transition:
        transition = self.sequencer.retreat()
        if transition.moved:
            self._sync_step()
        return transition

    def go_to(self, step: int) -> Transition:
        transition = self.sequencer.go_to(step)
        if transition.moved:
            self._sync_step()
        return transition

    def _sync_step(self) -> None:
        status = self.draft.status
        if status != ReportStatus.COMPLETE:
            in_review = self.sequencer.current >= WizardStep.REVIEW
            status = ReportStatus.IN_REVIEW if in_review else ReportStatus.DRAFT
        self.draft = self.draft.model_copy(update={
            "current_step": self.current_step,
            "status": status,
        })
        self.autosave.mark_dirty()

    # ── Saving & exit ───────────────────────────────────────

    async def save(self) -> bool:
        return await self.autosave.save()

    async def close(self, choice: ExitChoice | None = None) -> CloseOutcome:
        """Exit the wizard.  Unsaved edits need an explicit choice."""
        if not self.autosave.dirty:
            self.closed = True
            return CloseOutcome(closed=True)
        if choice is None:
            return CloseOutcome(closed=False, confirmation_required=True)
        if choice == ExitChoice.CANCEL:
            return CloseOutcome(closed=False)
        if choice == ExitChoice.SAVE:
            if not await self.autosave.save():
                # Stay open so the edits are kept and the next tick retries
                logger.warning("Save failed, keeping wizard %s open", self.session_id)
                return CloseOutcome(closed=False, saved=False)
            self.closed = True
            return CloseOutcome(closed=True, saved=True)
        self.closed = True
        return CloseOutcome(closed=True, saved=False)

    # ── Generation ──────────────────────────────────────────

    async def start_generation(self, *, tick_seconds: float | None = None) -> GenerationSnapshot:
        if self.sequencer.current != WizardStep.GENERATE:
            raise StepNotReachedError(WizardStep.GENERATE.value, self.current_step)
        if self.generation is None:
            self.generation = GenerationJob(self._simulator, on_complete=self._on_generated)
            self.generation.start()
            tick = settings.generation_tick_seconds if tick_seconds is None else tick_seconds
            self._generation_task = asyncio.create_task(self.generation.run(tick))
            logger.info("Generating report for draft %s", self.autosave.draft_id or "(unsaved)")
        return await self.generation.poll()

    async def generation_status(self) -> GenerationSnapshot:
        if self.generation is None:
            return self._simulator.snapshot(0.0, started=False)
        return await self.generation.poll()

    def _reset_generation(self) -> None:
        """An edit invalidates a generated (or generating) report."""
        if self.generation is None and self.draft.status != ReportStatus.COMPLETE:
            return
        task = self._generation_task
        if task and not task.done():
            task.cancel()
        self.generation = None
        self._generation_task = None
        in_review = self.sequencer.current >= WizardStep.REVIEW
        self.draft = self.draft.model_copy(update={
            "status": ReportStatus.IN_REVIEW if in_review else ReportStatus.DRAFT,
        })

    async def _on_generated(self) -> None:
        self.draft = self.draft.model_copy(update={"status": ReportStatus.COMPLETE})
        self.autosave.mark_dirty()
        await self.autosave.save()

    async def shutdown(self) -> None:
        """Stop a generation run still in progress (process shutdown only)."""
        task = self._generation_task
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
