from fastapi import HTTPException, Request

from ..chat.orchestrator import ChatOrchestrator
from ..errors import (
    ChatError,
    MalformedResponseError,
    MissingCredentialError,
    RecordNotFoundError,
    RemoteApiError,
    SendInProgressError,
    ValidationError,
)


def get_orchestrator(request: Request) -> ChatOrchestrator:
    return request.app.state.orchestrator


def http_error(e: ChatError) -> HTTPException:
    """Map a chat error onto the HTTP status the front end expects."""
    if isinstance(e, SendInProgressError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, RecordNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, MissingCredentialError):
        return HTTPException(status_code=401, detail=str(e))
    if isinstance(e, (RemoteApiError, MalformedResponseError)):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))
