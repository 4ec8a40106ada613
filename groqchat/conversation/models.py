from datetime import datetime, timezone
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

Role = Literal["user", "assistant"]


class Turn(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class ChatRecord(BaseModel):
    """An archived snapshot of a conversation.

    Older archives written with ``timestamp``/``messages`` keys load too.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        validation_alias=AliasChoices("created_at", "timestamp"),
    )
    turns: list[Turn] = Field(
        default_factory=list,
        validation_alias=AliasChoices("turns", "messages"),
    )
