import time

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from ..chat.markup import format_message
from ..chat.orchestrator import ChatOrchestrator
from ..conversation.export import export_filename
from ..conversation.models import Turn
from ..errors import ChatError
from .deps import get_orchestrator, http_error

router = APIRouter(prefix="/api/chat", tags=["chat"])


class SendRequest(BaseModel):
    message: str


def turn_payload(turn: Turn) -> dict:
    return {"role": turn.role, "content": turn.content, "html": format_message(turn.content)}


def session_payload(chat: ChatOrchestrator) -> dict:
    return {
        "status": chat.status.value,
        "turns": [turn_payload(t) for t in chat.session],
    }


@router.post("/send")
async def send_message(req: SendRequest, chat: ChatOrchestrator = Depends(get_orchestrator)):
    try:
        reply = await chat.submit(req.message)
    except ChatError as e:
        raise http_error(e) from e
    return {"reply": turn_payload(reply), **session_payload(chat)}


@router.get("/session")
async def get_session(chat: ChatOrchestrator = Depends(get_orchestrator)):
    return session_payload(chat)


@router.post("/new")
async def new_chat(chat: ChatOrchestrator = Depends(get_orchestrator)):
    try:
        chat.start_new()
    except ChatError as e:
        raise http_error(e) from e
    return session_payload(chat)


@router.get("/export")
async def export_chat(chat: ChatOrchestrator = Depends(get_orchestrator)):
    try:
        text = chat.export_active()
    except ChatError as e:
        raise http_error(e) from e
    filename = export_filename(int(time.time() * 1000))
    return PlainTextResponse(
        text,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
