from fastapi import APIRouter, Depends

from ..chat.orchestrator import ChatOrchestrator
from ..conversation.archive import format_relative
from ..conversation.models import ChatRecord
from ..errors import ChatError
from .deps import get_orchestrator, http_error
from .routes_chat import session_payload

router = APIRouter(prefix="/api/history", tags=["history"])


def _summary(record: ChatRecord) -> dict:
    return {
        "id": record.id,
        "title": record.title,
        "created_at": record.created_at,
        "when": format_relative(record.created_at),
        "turn_count": len(record.turns),
    }


@router.get("")
async def list_history(chat: ChatOrchestrator = Depends(get_orchestrator)):
    return {"conversations": [_summary(r) for r in chat.list_records()]}


@router.post("/{record_id}/load")
async def load_history_item(record_id: int, chat: ChatOrchestrator = Depends(get_orchestrator)):
    try:
        chat.load_record(record_id)
    except ChatError as e:
        raise http_error(e) from e
    return session_payload(chat)


@router.delete("")
async def clear_history(chat: ChatOrchestrator = Depends(get_orchestrator)):
    try:
        chat.clear_archive()
    except ChatError as e:
        raise http_error(e) from e
    return {"status": "cleared"}
