"""Autosave controller: keeps a wizard draft persisted without user action.

Two entry points share one persist routine:

  tick()  → fired by the scheduler every `autosave_interval_seconds`;
            writes only when dirty, titled, and not already writing.
  save()  → manual save (Ctrl+S, "Save Draft", save-and-exit);
            writes now, and is a no-op when nothing changed since the
            last successful write.

The persist routine creates the `reports` row on the first write and
updates it by id afterwards.  An asyncio.Lock serializes writes for the
draft, so overlapping first saves can never issue two creates.

Failures leave the draft dirty (the next tick retries) and are logged;
they are never raised to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from reportstudio.schemas.wizard import SaveStatus
from reportstudio.services.store import REPORTS_TABLE, DataStore

logger = logging.getLogger(__name__)


@dataclass
class SaveState:
    status: SaveStatus
    dirty: bool
    draft_id: str | None
    last_saved_at: datetime | None
    last_error: str | None

    @property
    def label(self) -> str:
        """Short status line for the wizard header."""
        if self.status == SaveStatus.SAVING:
            return "Saving…"
        if self.status == SaveStatus.FAILED:
            return "Save failed, retrying"
        if self.last_saved_at:
            return f"Last saved at {self.last_saved_at:%H:%M}"
        return "Not saved yet"


class AutosaveController:
    """Dirty tracking and serialized persistence for one draft.

    `snapshot` returns the full `reports` record for the draft as it is
    right now; it is read under the lock so every write carries the
    latest state as one unit.
    """

    def __init__(
        self,
        store: DataStore,
        snapshot: Callable[[], dict],
        *,
        draft_id: str | None = None,
    ):
        self._store = store
        self._snapshot = snapshot
        self._draft_id = draft_id
        self._lock = asyncio.Lock()
        self._dirty = False
        self._revision = 0
        self._status = SaveStatus.SAVED if draft_id else SaveStatus.IDLE
        self._last_saved_at: datetime | None = None
        self._last_error: str | None = None

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def draft_id(self) -> str | None:
        return self._draft_id

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()

    @property
    def state(self) -> SaveState:
        return SaveState(
            status=self._status,
            dirty=self._dirty,
            draft_id=self._draft_id,
            last_saved_at=self._last_saved_at,
            last_error=self._last_error,
        )

    def mark_dirty(self) -> None:
        self._revision += 1
        self._dirty = True

    async def tick(self) -> bool:
        """Timer entry point.  Returns True if a write succeeded."""
        if not self._dirty:
            return False
        if self._lock.locked():
            # A write is already running; whatever it missed stays dirty
            return False
        if not self._snapshot().get("title", "").strip():
            # Never create anonymous rows
            return False
        return await self._persist()

    async def save(self) -> bool:
        """Manual save.  Returns True if the draft is persisted afterwards."""
        return await self._persist()

    async def _persist(self) -> bool:
        async with self._lock:
            if not self._dirty and self._draft_id is not None:
                return True

            record = self._snapshot()
            if not record.get("title", "").strip():
                return False

            revision = self._revision
            self._status = SaveStatus.SAVING
            try:
                if self._draft_id is None:
                    result = await self._store.create(REPORTS_TABLE, record)
                    if result.ok:
                        self._draft_id = result.data["id"]
                else:
                    result = await self._store.update(REPORTS_TABLE, self._draft_id, record)
            except Exception:
                self._status = SaveStatus.FAILED
                raise

            if not result.ok:
                self._status = SaveStatus.FAILED
                self._last_error = result.error
                logger.warning(
                    "Saving draft %s failed, will retry: %s",
                    self._draft_id or "(new)",
                    result.error,
                )
                return False

            self._status = SaveStatus.SAVED
            self._last_error = None
            self._last_saved_at = datetime.now(timezone.utc)
            # Edits made while the write was in flight still need a write
            if self._revision == revision:
                self._dirty = False
            logger.debug("Saved draft %s (revision %d)", self._draft_id, revision)
            return True
