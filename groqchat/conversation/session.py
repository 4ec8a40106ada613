from typing import Iterable, Iterator, Optional

from .models import Turn


class ConversationSession:
    """The active, append-only list of turns sent to the model."""

    def __init__(self, turns: Optional[Iterable[Turn]] = None) -> None:
        self._turns: list[Turn] = list(turns or [])

    def append_user(self, text: str) -> Turn:
        turn = Turn(role="user", content=text)
        self._turns.append(turn)
        return turn

    def append_assistant(self, text: str) -> Turn:
        turn = Turn(role="assistant", content=text)
        self._turns.append(turn)
        return turn

    def reset(self) -> None:
        self._turns = []

    def replace(self, turns: Iterable[Turn]) -> None:
        self._turns = list(turns)

    def snapshot(self) -> list[Turn]:
        # Turns are frozen, so a fresh list fully decouples the copy
        return list(self._turns)

    def first_user_message(self) -> Optional[str]:
        for turn in self._turns:
            if turn.role == "user":
                return turn.content
        return None

    def to_messages(self) -> list[dict]:
        return [{"role": t.role, "content": t.content} for t in self._turns]

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    @property
    def is_empty(self) -> bool:
        return not self._turns

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(list(self._turns))
