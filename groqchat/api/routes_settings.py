from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..chat.orchestrator import ChatOrchestrator
from ..config import AVAILABLE_MODELS, Settings, mask_credential
from ..errors import ChatError
from .deps import get_orchestrator, http_error

router = APIRouter(prefix="/api", tags=["settings"])


@router.get("/settings")
async def get_settings(chat: ChatOrchestrator = Depends(get_orchestrator)):
    return chat.state.settings.model_dump(by_alias=True)


@router.put("/settings")
async def update_settings(settings: Settings, chat: ChatOrchestrator = Depends(get_orchestrator)):
    try:
        updated = chat.update_settings(settings)
    except ChatError as e:
        raise http_error(e) from e
    return updated.model_dump(by_alias=True)


@router.get("/settings/models")
async def list_models(chat: ChatOrchestrator = Depends(get_orchestrator)):
    return {"models": AVAILABLE_MODELS, "current": chat.state.settings.model}


class CredentialRequest(BaseModel):
    api_key: str


def _credential_status(chat: ChatOrchestrator) -> dict:
    credential = chat.state.credential
    return {"configured": bool(credential), "masked": mask_credential(credential)}


@router.get("/credential")
async def get_credential(chat: ChatOrchestrator = Depends(get_orchestrator)):
    return _credential_status(chat)


@router.put("/credential")
async def save_credential(req: CredentialRequest, chat: ChatOrchestrator = Depends(get_orchestrator)):
    try:
        chat.save_credential(req.api_key)
    except ChatError as e:
        raise http_error(e) from e
    return _credential_status(chat)
