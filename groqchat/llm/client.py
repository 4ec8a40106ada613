import json
import logging
import time
from typing import Optional

import httpx

from ..config import API_URL, REQUEST_TIMEOUT, Settings
from ..conversation.session import ConversationSession
from ..errors import MalformedResponseError, MissingCredentialError, RemoteApiError

logger = logging.getLogger(__name__)


def _error_message(resp: httpx.Response) -> Optional[str]:
    """Pull ``error.message`` out of an error body, if there is one."""
    try:
        data = resp.json()
    except (json.JSONDecodeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    error = data.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
    return None


def _reply_content(resp: httpx.Response) -> str:
    try:
        data = resp.json()
        content = data["choices"][0]["message"]["content"]
    except (json.JSONDecodeError, ValueError, KeyError, IndexError, TypeError) as e:
        raise MalformedResponseError() from e
    if not isinstance(content, str):
        raise MalformedResponseError()
    return content


class CompletionClient:
    """OpenAI-compatible chat completion client (Groq by default).

    One POST per call, no streaming and no retries.
    """

    def __init__(
        self,
        api_url: str = API_URL,
        timeout: float = REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_url = api_url
        self.timeout = timeout
        self._transport = transport

    def build_payload(self, session: ConversationSession, settings: Settings) -> dict:
        return {
            "model": settings.model,
            "messages": session.to_messages(),
            "temperature": settings.temperature,
            "max_tokens": settings.max_tokens,
            "stream": False,
        }

    async def complete(
        self,
        session: ConversationSession,
        settings: Settings,
        credential: Optional[str],
    ) -> str:
        if not credential or not credential.strip():
            raise MissingCredentialError()

        payload = self.build_payload(session, settings)
        headers = {
            "Authorization": f"Bearer {credential.strip()}",
            "Content-Type": "application/json",
        }

        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            logger.error("Completion request timed out after %.0fs", self.timeout)
            raise RemoteApiError("Request timed out") from e
        except httpx.HTTPError as e:
            logger.error("Completion request failed: %s", type(e).__name__)
            raise RemoteApiError(f"Could not reach the API: {type(e).__name__}") from e

        elapsed = time.monotonic() - start
        logger.info(
            "Completion %s model=%s turns=%d status=%d (%.2fs)",
            "ok" if resp.is_success else "failed",
            settings.model,
            len(session),
            resp.status_code,
            elapsed,
        )

        if not resp.is_success:
            message = _error_message(resp) or "API request failed"
            raise RemoteApiError(message, status_code=resp.status_code)

        return _reply_content(resp)
