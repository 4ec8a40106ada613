import logging
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import StorageError, ValidationError
from .storage import CREDENTIAL_KEY, SETTINGS_KEY, KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.groq.com/openai/v1/chat/completions"
DEFAULT_MODEL = "llama-3.3-70b-versatile"

AVAILABLE_MODELS: list[str] = [
    "llama-3.3-70b-versatile",
    "llama-3.1-8b-instant",
    "mixtral-8x7b-32768",
    "gemma2-9b-it",
]

_data_dir = Path(os.environ.get("GROQCHAT_DATA_DIR", Path.home() / ".groqchat"))
API_URL = os.environ.get("GROQCHAT_API_URL", DEFAULT_API_URL)
REQUEST_TIMEOUT = float(os.environ.get("GROQCHAT_TIMEOUT", "60"))


def get_data_dir() -> Path:
    return _data_dir


class Settings(BaseModel):
    """User-tunable chat settings.

    Serialized with camelCase keys (``maxTokens``, ``darkMode``...);
    snake_case keys are accepted on input as well.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    model: str = DEFAULT_MODEL
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1024, ge=1)
    dark_mode: bool = True
    sound_effects: bool = True


def merge_over_defaults(data: dict[str, Any]) -> Settings:
    """Overlay persisted fields on the defaults, one field at a time.

    A field that fails validation falls back to its default without
    discarding the other fields.
    """
    merged: dict[str, Any] = {}
    for name in Settings.model_fields:
        for key in (to_camel(name), name):
            if key in data:
                candidate = data[key]
                break
        else:
            continue
        try:
            Settings.model_validate({name: candidate})
        except PydanticValidationError:
            logger.warning("Ignoring invalid saved setting %r", name)
            continue
        merged[name] = candidate
    return Settings.model_validate(merged)


class SettingsStore:
    def __init__(self, storage: KeyValueStore) -> None:
        self.storage = storage

    def load(self) -> Settings:
        try:
            data = self.storage.read_json(SETTINGS_KEY)
        except StorageError as e:
            logger.warning("Ignoring saved settings: %s", e)
            return Settings()
        if data is None:
            return Settings()
        if not isinstance(data, dict):
            logger.warning("Ignoring saved settings: expected an object, got %s", type(data).__name__)
            return Settings()
        return merge_over_defaults(data)

    def save(self, settings: Settings) -> None:
        self.storage.write_json(SETTINGS_KEY, settings.model_dump(by_alias=True))


class CredentialStore:
    def __init__(self, storage: KeyValueStore) -> None:
        self.storage = storage

    def load(self) -> Optional[str]:
        try:
            raw = self.storage.get_item(CREDENTIAL_KEY)
        except StorageError as e:
            logger.warning("Ignoring saved API key: %s", e)
            return None
        if raw is None:
            return None
        return raw.strip() or None

    def save(self, credential: str) -> str:
        key = (credential or "").strip()
        if not key:
            raise ValidationError("Please enter an API key")
        self.storage.set_item(CREDENTIAL_KEY, key, private=True)
        logger.info("API key saved")
        return key


def mask_credential(credential: Optional[str]) -> str:
    if not credential:
        return ""
    if len(credential) <= 8:
        return "****"
    return f"{credential[:4]}****{credential[-4:]}"
