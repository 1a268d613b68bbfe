"""
Background suggestion scheduler.

Runs the automation engine once shortly after startup and then on a fixed
interval. Runs are not synchronized with concurrent note edits; a run that
sees a stale snapshot only produces suggestions that are re-evaluated on the
next run.
"""

import asyncio
import contextlib
from datetime import datetime

from nexmind.config import AutomationConfig
from nexmind.models.suggestion import AISuggestion
from nexmind.services.note_service import NoteService
from nexmind.utils.logger import get_logger

logger = get_logger(__name__)


class SuggestionScheduler:
    """Periodic automation runs as an asyncio task."""

    def __init__(self, service: NoteService, config: AutomationConfig | None = None):
        self.service = service
        self.config = config or AutomationConfig()
        self._worker_task: asyncio.Task | None = None
        self.last_run: datetime | None = None

    @property
    def running(self) -> bool:
        return self._worker_task is not None and not self._worker_task.done()

    def start(self) -> None:
        """Start the background worker (no-op if already running)."""
        if not self.running:
            self._worker_task = asyncio.create_task(self._worker())
            logger.bind(
                initial_delay=self.config.initial_delay_seconds,
                interval=self.config.interval_seconds,
            ).info("Suggestion scheduler started")

    async def stop(self) -> None:
        """Cancel the worker and wait for it to finish."""
        if self._worker_task is None:
            return
        if not self._worker_task.done():
            self._worker_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker_task
        self._worker_task = None

    async def run_once(self, now: datetime | None = None) -> list[AISuggestion]:
        """Generate suggestions and drop old resolved ones."""
        added = await self.service.run_automation(now)
        await self.service.suggestions.clear_old(self.config.suggestion_max_age_days, now)
        self.last_run = now or datetime.now()
        return added

    async def _worker(self) -> None:
        try:
            await asyncio.sleep(self.config.initial_delay_seconds)
        except asyncio.CancelledError:
            logger.info("Suggestion scheduler stopped")
            raise

        while True:
            try:
                added = await self.run_once()
                logger.info(f"Scheduled automation run complete: {len(added)} new suggestions")
            except asyncio.CancelledError:
                logger.info("Suggestion scheduler stopped")
                raise
            except Exception as e:
                logger.error(f"Error in suggestion scheduler: {e}")

            try:
                await asyncio.sleep(self.config.interval_seconds)
            except asyncio.CancelledError:
                logger.info("Suggestion scheduler stopped")
                raise
