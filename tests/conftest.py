from unittest.mock import AsyncMock

import pytest

from groqchat.chat.orchestrator import ChatOrchestrator
from groqchat.config import CredentialStore, SettingsStore
from groqchat.conversation.archive import ChatArchive
from groqchat.llm.client import CompletionClient
from groqchat.storage import KeyValueStore

TEST_KEY = "gsk_test_0123456789abcdef"


def make_client(reply: str = "Hello! How can I help?") -> AsyncMock:
    client = AsyncMock(spec=CompletionClient)
    client.complete.return_value = reply
    return client


@pytest.fixture
def storage(tmp_path):
    return KeyValueStore(tmp_path / "data")


@pytest.fixture
def make_orchestrator(storage):
    def _make(client=None, credential=TEST_KEY):
        if credential:
            CredentialStore(storage).save(credential)
        return ChatOrchestrator(
            SettingsStore(storage),
            CredentialStore(storage),
            ChatArchive(storage),
            client or make_client(),
        )

    return _make
