"""Send-turn state machine and the command interface the HTTP layer calls.

All mutable chat state lives in one ``AppState`` owned by the orchestrator.
The only suspension point is the completion request; ``status`` is flipped
to SENDING before it, which keeps one request in flight per session.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from ..config import CredentialStore, Settings, SettingsStore
from ..conversation.archive import ChatArchive
from ..conversation.export import export_transcript
from ..conversation.models import ChatRecord, Turn
from ..conversation.session import ConversationSession
from ..errors import (
    ApiError,
    MissingCredentialError,
    RecordNotFoundError,
    SendInProgressError,
    StorageError,
    ValidationError,
)
from ..llm.client import CompletionClient
from ..storage import KeyValueStore

logger = logging.getLogger(__name__)


class ChatStatus(str, Enum):
    IDLE = "idle"
    SENDING = "sending"


@dataclass
class AppState:
    settings: Settings
    credential: Optional[str] = None
    session: ConversationSession = field(default_factory=ConversationSession)
    status: ChatStatus = ChatStatus.IDLE


class ChatOrchestrator:
    def __init__(
        self,
        settings_store: SettingsStore,
        credential_store: CredentialStore,
        archive: ChatArchive,
        client: CompletionClient,
    ) -> None:
        self.settings_store = settings_store
        self.credential_store = credential_store
        self.archive = archive
        self.client = client
        self.state = AppState(
            settings=settings_store.load(),
            credential=credential_store.load(),
        )
        archive.load_persisted()

    @classmethod
    def open(cls, data_dir: Path, client: Optional[CompletionClient] = None) -> "ChatOrchestrator":
        storage = KeyValueStore(data_dir)
        return cls(
            SettingsStore(storage),
            CredentialStore(storage),
            ChatArchive(storage),
            client or CompletionClient(),
        )

    @property
    def status(self) -> ChatStatus:
        return self.state.status

    @property
    def is_sending(self) -> bool:
        return self.state.status is ChatStatus.SENDING

    @property
    def session(self) -> ConversationSession:
        return self.state.session

    def _ensure_idle(self) -> None:
        if self.is_sending:
            raise SendInProgressError()

    # ---- Send flow ----

    async def submit(self, text: str) -> Turn:
        """Send *text* as the next user turn and return the assistant's reply.

        On an ``ApiError`` the user turn stays in the session, nothing is
        archived, and the error propagates.
        A failed history write is logged and the reply is still returned.
        """
        self._ensure_idle()
        message = (text or "").strip()
        if not message:
            raise ValidationError("Please enter a message")
        if not self.state.credential:
            raise MissingCredentialError()

        state = self.state
        state.status = ChatStatus.SENDING
        try:
            state.session.append_user(message)
            try:
                reply = await self.client.complete(state.session, state.settings, state.credential)
            except ApiError as e:
                logger.warning("Send failed: %s", e)
                raise
            turn = state.session.append_assistant(reply)
            first = state.session.first_user_message() or message
            try:
                self.archive.record_session(first, state.session.snapshot())
            except StorageError as e:
                # The reply stays in the session; only the history entry is lost
                logger.error("Failed to archive chat: %s", e)
            return turn
        finally:
            state.status = ChatStatus.IDLE

    # ---- Session commands ----

    def start_new(self) -> None:
        self._ensure_idle()
        self.state.session.reset()
        logger.info("New chat started")

    def load_record(self, record_id: int) -> list[Turn]:
        """Replace the active session with an archived chat; returns every turn to replay."""
        self._ensure_idle()
        record = self.archive.get(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        self.state.session.replace(record.turns)
        logger.info("Loaded chat %d (%d turns)", record.id, len(record.turns))
        return self.state.session.snapshot()

    def export_active(self) -> str:
        if self.state.session.is_empty:
            raise ValidationError("No chat to export")
        return export_transcript(self.state.session)

    # ---- Archive ----

    def list_records(self) -> list[ChatRecord]:
        return self.archive.list()

    def clear_archive(self) -> None:
        self.archive.clear()

    # ---- Settings & credential ----

    def update_settings(self, settings: Settings) -> Settings:
        self.settings_store.save(settings)
        self.state.settings = settings
        return settings

    def save_credential(self, value: str) -> str:
        key = self.credential_store.save(value)
        self.state.credential = key
        return key
