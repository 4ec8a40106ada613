"""Error kinds raised by the chat core.

Validation errors are always local and never reach the network. API errors
describe what happened to the one outbound completion request. Storage
errors are absorbed by the stores that read persisted data.
"""


class ChatError(Exception):
    """Base class for every error the chat core raises on purpose."""


class ValidationError(ChatError):
    """User input was rejected before any state change."""


class SendInProgressError(ValidationError):
    """A reply is still pending for the active session."""

    def __init__(self, message: str = "A message is already being sent") -> None:
        super().__init__(message)


class RecordNotFoundError(ChatError):
    def __init__(self, record_id: int) -> None:
        super().__init__(f"Chat {record_id} not found")
        self.record_id = record_id


class ApiError(ChatError):
    """The completion request could not produce an assistant reply."""


class MissingCredentialError(ApiError):
    def __init__(self, message: str = "Please enter your API key first") -> None:
        super().__init__(message)


class RemoteApiError(ApiError):
    """Non-success outcome from the completion endpoint."""

    def __init__(self, message: str = "API request failed", status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class MalformedResponseError(ApiError):
    """Success status, but the body has no usable first choice."""

    def __init__(self, message: str = "Unexpected response from the API") -> None:
        super().__init__(message)


class StorageError(ChatError):
    """Persisted data could not be read or decoded."""
