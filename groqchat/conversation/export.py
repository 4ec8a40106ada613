from typing import Iterable

from .models import Turn

_LABELS = {"user": "You", "assistant": "AI"}


def export_transcript(turns: Iterable[Turn]) -> str:
    """Render turns as labeled plain-text blocks, each followed by a blank line."""
    return "".join(f"{_LABELS[t.role]}: {t.content}\n\n" for t in turns)


def export_filename(timestamp_ms: int) -> str:
    return f"groqchat-chat-{timestamp_ms}.txt"
