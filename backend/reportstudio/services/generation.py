"""Report generation simulator for the wizard's final step.

No document is rendered here.  A generation job models a long-running
render as a progress value 0-100 with named phases, purely so the client
can show feedback.  Progress advances steadily over the summed phase
durations; phase i becomes active once progress reaches i / n * 100.

A job fires its completion callback exactly once, the first time
progress is observed at 100, whether that observation comes from the
background `run()` loop or from a client polling `poll()`.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Phase:
    label: str
    duration: float  # nominal seconds


DEFAULT_PHASES = (
    Phase("Formatting content...", 2.0),
    Phase("Applying brand guidelines...", 2.0),
    Phase("Inserting images...", 1.5),
    Phase("Generating PDF...", 2.0),
    Phase("Finalizing report...", 1.5),
)


@dataclass
class GenerationSnapshot:
    started: bool
    progress: float
    phase: str
    phase_index: int
    complete: bool
    remaining_seconds: float


class GenerationSimulator:
    """Pure mapping from elapsed time to progress and phase."""

    def __init__(self, phases: tuple[Phase, ...] = DEFAULT_PHASES, *, time_scale: float = 1.0):
        if not phases:
            raise ValueError("At least one generation phase is required")
        self.phases = tuple(phases)
        self.total_duration = sum(p.duration for p in self.phases) * time_scale

    def progress_at(self, elapsed: float) -> float:
        if self.total_duration <= 0:
            return 100.0
        return min(100.0, max(0.0, elapsed) / self.total_duration * 100)

    def phase_index(self, progress: float) -> int:
        n = len(self.phases)
        return min(int(progress / 100 * n), n - 1)

    def snapshot(self, progress: float, *, started: bool = True) -> GenerationSnapshot:
        idx = self.phase_index(progress)
        return GenerationSnapshot(
            started=started,
            # Rounded down: 100 is shown only once the job is complete
            progress=math.floor(progress * 10) / 10,
            phase=self.phases[idx].label,
            phase_index=idx,
            complete=progress >= 100,
            remaining_seconds=round((100 - progress) / 100 * self.total_duration, 1),
        )


class GenerationJob:
    """One run of the simulator for one wizard session."""

    def __init__(
        self,
        simulator: GenerationSimulator,
        *,
        on_complete: Callable[[], Awaitable[None]] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._simulator = simulator
        self._on_complete = on_complete
        self._clock = clock
        self._started_at: float | None = None
        self._progress = 0.0
        self._completed = False

    @property
    def complete(self) -> bool:
        return self._completed

    def start(self) -> None:
        if self._started_at is None:
            self._started_at = self._clock()

    async def poll(self) -> GenerationSnapshot:
        """Advance to the current time and return where the job is."""
        if self._started_at is None:
            return self._simulator.snapshot(0.0, started=False)

        elapsed = self._clock() - self._started_at
        # Never move backwards, even if the clock does
        self._progress = max(self._progress, self._simulator.progress_at(elapsed))

        if self._progress >= 100 and not self._completed:
            self._completed = True
            logger.info("Report generation finished after %.1fs", elapsed)
            if self._on_complete is not None:
                await self._on_complete()

        return self._simulator.snapshot(self._progress)

    async def run(self, tick_seconds: float = 0.1) -> None:
        """Poll until complete so completion fires without a client watching."""
        self.start()
        while True:
            snapshot = await self.poll()
            if snapshot.complete:
                return
            await asyncio.sleep(tick_seconds)
