"""
Suggestion persistence.

Suggestions live as one array under ``nexmind_ai_suggestions``. New
suggestions are appended unless a pending suggestion with the same
(type, title) already exists. Only pending suggestions can be accepted or
rejected; resolved suggestions are dropped once they are old enough.
"""

from datetime import datetime, timedelta

from pydantic import ValidationError as PydanticValidationError

from nexmind.core.storage.base import KeyValueStore
from nexmind.models.suggestion import AISuggestion, SuggestionStatus
from nexmind.utils.exceptions import NotFoundError, StoreError, ValidationError
from nexmind.utils.logger import get_logger

logger = get_logger(__name__)

SUGGESTIONS_KEY = "nexmind_ai_suggestions"


class SuggestionRepository:
    """Snapshot-backed suggestion list."""

    def __init__(self, store: KeyValueStore, key: str = SUGGESTIONS_KEY):
        self.store = store
        self.key = key

    async def get_all(self) -> list[AISuggestion]:
        try:
            raw = await self.store.get(self.key)
        except StoreError as e:
            logger.error(f"Failed to load suggestions, starting empty: {e.message}")
            return []

        if not isinstance(raw, list):
            return []

        suggestions = []
        for record in raw:
            try:
                suggestions.append(AISuggestion.model_validate(record))
            except PydanticValidationError as e:
                logger.warning(f"Skipping invalid suggestion record: {e}")
        return suggestions

    async def put_all(self, suggestions: list[AISuggestion]) -> None:
        await self.store.set(self.key, [s.model_dump(mode="json") for s in suggestions])

    async def get(self, suggestion_id: str) -> AISuggestion | None:
        for suggestion in await self.get_all():
            if suggestion.id == suggestion_id:
                return suggestion
        return None

    async def pending(self) -> list[AISuggestion]:
        return [s for s in await self.get_all() if s.is_pending()]

    async def add_many(self, new_suggestions: list[AISuggestion]) -> list[AISuggestion]:
        """
        Append suggestions, skipping any whose (type, title) is already pending.

        Returns:
            The suggestions actually added
        """
        existing = await self.get_all()
        seen = {s.dedupe_key for s in existing if s.is_pending()}

        added = []
        for suggestion in new_suggestions:
            if suggestion.dedupe_key in seen:
                continue
            seen.add(suggestion.dedupe_key)
            added.append(suggestion)

        if added:
            await self.put_all(existing + added)
            logger.info(f"Stored {len(added)} new suggestions")
        return added

    async def _resolve(self, suggestion_id: str, status: SuggestionStatus) -> AISuggestion:
        suggestions = await self.get_all()
        for suggestion in suggestions:
            if suggestion.id != suggestion_id:
                continue
            if not suggestion.is_pending():
                raise ValidationError(
                    f"Suggestion {suggestion_id} is already {suggestion.status.value}",
                    context={"suggestion_id": suggestion_id, "status": suggestion.status.value},
                )
            suggestion.status = status
            await self.put_all(suggestions)
            return suggestion

        raise NotFoundError(
            f"Suggestion not found: {suggestion_id}", context={"suggestion_id": suggestion_id}
        )

    async def accept(self, suggestion_id: str) -> AISuggestion:
        """
        Mark a pending suggestion accepted.

        Raises:
            NotFoundError: Unknown ID
            ValidationError: Suggestion is not pending
        """
        return await self._resolve(suggestion_id, SuggestionStatus.ACCEPTED)

    async def reject(self, suggestion_id: str) -> AISuggestion:
        """
        Mark a pending suggestion rejected.

        Raises:
            NotFoundError: Unknown ID
            ValidationError: Suggestion is not pending
        """
        return await self._resolve(suggestion_id, SuggestionStatus.REJECTED)

    async def clear_old(self, max_age_days: int = 30, now: datetime | None = None) -> int:
        """
        Drop accepted/rejected suggestions older than ``max_age_days``.

        Pending suggestions are never removed.

        Returns:
            Number of removed suggestions
        """
        cutoff = (now or datetime.now()) - timedelta(days=max_age_days)
        suggestions = await self.get_all()
        kept = [s for s in suggestions if s.is_pending() or s.created_at >= cutoff]

        removed = len(suggestions) - len(kept)
        if removed:
            await self.put_all(kept)
            logger.info(f"Cleared {removed} resolved suggestions older than {max_age_days} days")
        return removed
