"""In-process registry of open wizard sessions.

A session lives from "open wizard" to "close wizard".  Resuming a draft
that already has an open session returns that session, so one draft is
never edited (and saved) by two controllers at once.

Abandoned sessions are evicted by the autosave pass once they have been
idle for `session_idle_minutes` and have nothing left to save.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from reportstudio.config import settings
from reportstudio.middleware.exceptions import ResourceNotFoundError, StoreUnavailableError
from reportstudio.schemas.report import ReportType
from reportstudio.services.generation import GenerationSimulator
from reportstudio.services.store import REPORTS_TABLE, DataStore
from reportstudio.services.wizard import ReportWizard

logger = logging.getLogger(__name__)


class WizardRegistry:
    def __init__(
        self,
        store: DataStore,
        *,
        min_sections: int | None = None,
        generation_time_scale: float | None = None,
        idle_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self._min_sections = min_sections
        self._time_scale = (
            settings.generation_time_scale if generation_time_scale is None else generation_time_scale
        )
        self._idle_seconds = (
            settings.session_idle_minutes * 60 if idle_seconds is None else idle_seconds
        )
        self._clock = clock
        self._sessions: dict[str, ReportWizard] = {}
        self._last_active: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def _wizard_kwargs(self) -> dict:
        return {
            "min_sections": self._min_sections,
            "simulator": GenerationSimulator(time_scale=self._time_scale),
        }

    def _register(self, wizard: ReportWizard) -> ReportWizard:
        self._sessions[wizard.session_id] = wizard
        self._last_active[wizard.session_id] = self._clock()
        return wizard

    def open(self, org_id: str, report_type: ReportType = ReportType.ANNUAL) -> ReportWizard:
        wizard = ReportWizard(self.store, org_id, report_type=report_type, **self._wizard_kwargs())
        logger.info("Opened %s report wizard %s for org %s", report_type.value, wizard.session_id, org_id)
        return self._register(wizard)

    async def resume(self, org_id: str, draft_id: str) -> ReportWizard:
        for wizard in self._sessions.values():
            if wizard.org_id == org_id and wizard.autosave.draft_id == draft_id:
                self._last_active[wizard.session_id] = self._clock()
                return wizard

        result = await self.store.query(REPORTS_TABLE, {"id": draft_id, "org_id": org_id}, limit=1)
        if not result.ok:
            raise StoreUnavailableError()
        if not result.data:
            raise ResourceNotFoundError("Report", draft_id)

        wizard = ReportWizard.resume(self.store, result.data[0], **self._wizard_kwargs())
        logger.info("Resumed draft %s in wizard %s", draft_id, wizard.session_id)
        return self._register(wizard)

    def get(self, session_id: str, org_id: str) -> ReportWizard:
        wizard = self._sessions.get(session_id)
        # Other orgs' sessions look the same as missing ones
        if wizard is None or wizard.org_id != org_id:
            raise ResourceNotFoundError("Wizard session", session_id)
        self._last_active[session_id] = self._clock()
        return wizard

    def discard(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        self._last_active.pop(session_id, None)

    def _is_abandoned(self, wizard: ReportWizard) -> bool:
        idle = self._clock() - self._last_active.get(wizard.session_id, self._clock())
        if idle < self._idle_seconds or wizard.autosave.in_flight:
            return False
        # Untitled edits can never be written, so they do not hold the session
        return not wizard.autosave.dirty or not wizard.draft.title.strip()

    async def autosave_all(self) -> int:
        """Fire the autosave tick for every open session.  Returns writes made."""
        saved = 0
        for wizard in list(self._sessions.values()):
            try:
                if await wizard.autosave.tick():
                    saved += 1
            except Exception:
                logger.exception("Autosave failed for wizard %s", wizard.session_id)
                continue
            if self._is_abandoned(wizard):
                await wizard.shutdown()
                self.discard(wizard.session_id)
                logger.info(
                    "Evicted idle wizard %s (draft %s)",
                    wizard.session_id,
                    wizard.autosave.draft_id or "unsaved",
                )
        return saved

    async def shutdown(self) -> None:
        for wizard in list(self._sessions.values()):
            await wizard.shutdown()
