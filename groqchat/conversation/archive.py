from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from pydantic import ValidationError as PydanticValidationError

from ..errors import StorageError
from ..storage import ARCHIVE_KEY, KeyValueStore
from .models import ChatRecord, Turn

logger = logging.getLogger(__name__)

MAX_RECORDS = 20
TITLE_LENGTH = 50


def make_title(message: str) -> str:
    title = message[:TITLE_LENGTH]
    if len(message) > TITLE_LENGTH:
        title += "..."
    return title


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_relative(created_at: str, now: Optional[datetime] = None) -> str:
    """Short age label for the history list ("Just now", "5m ago", ...)."""
    try:
        created = datetime.fromisoformat(created_at)
    except (TypeError, ValueError):
        return ""
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    now = now or _utcnow()
    seconds = (now - created).total_seconds()
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)
    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    return created.date().isoformat()


class ChatArchive:
    """Most-recent-first collection of archived chats, capped at MAX_RECORDS."""

    def __init__(
        self,
        storage: KeyValueStore,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.storage = storage
        self._clock = clock
        self._records: list[ChatRecord] = []

    def load_persisted(self) -> list[ChatRecord]:
        try:
            data = self.storage.read_json(ARCHIVE_KEY)
        except StorageError as e:
            logger.warning("Ignoring saved chat history: %s", e)
            data = None
        records: list[ChatRecord] = []
        if isinstance(data, list):
            try:
                records = [ChatRecord.model_validate(item) for item in data]
            except PydanticValidationError as e:
                logger.warning("Ignoring saved chat history: %d invalid record(s)", e.error_count())
                records = []
        elif data is not None:
            logger.warning("Ignoring saved chat history: expected a list, got %s", type(data).__name__)
        self._records = records[:MAX_RECORDS]
        return self.list()

    def _next_id(self, now: datetime) -> int:
        record_id = int(now.timestamp() * 1000)
        if self._records and self._records[0].id >= record_id:
            record_id = self._records[0].id + 1
        return record_id

    def record_session(self, first_user_message: str, turns: Iterable[Turn]) -> ChatRecord:
        now = self._clock()
        record = ChatRecord(
            id=self._next_id(now),
            title=make_title(first_user_message),
            created_at=now.isoformat(),
            turns=list(turns),
        )
        # Persist first; a failed write leaves the in-memory archive unchanged
        records = [record, *self._records][:MAX_RECORDS]
        self._save(records)
        self._records = records
        logger.info("Archived chat %d (%d turns)", record.id, len(record.turns))
        return record

    def list(self) -> list[ChatRecord]:
        return list(self._records)

    def get(self, record_id: int) -> Optional[ChatRecord]:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def clear(self) -> None:
        self._save([])
        self._records = []
        logger.info("Chat history cleared")

    def _save(self, records: list[ChatRecord]) -> None:
        self.storage.write_json(ARCHIVE_KEY, [r.model_dump() for r in records])

    def __len__(self) -> int:
        return len(self._records)
