"""Typed errors surfaced by provider resolution and request dispatch."""

from typing import Any


class CoreThinkError(Exception):
    """Base class for all errors raised by this package."""

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for display without a traceback."""
        return {"name": type(self).__name__, "message": str(self)}


class ConfigurationError(CoreThinkError):
    """Raised when configuration loading or validation fails."""


class ProviderInitError(CoreThinkError):
    """A transport client could not be constructed for a provider.

    The upstream cause is chained (``raise ... from``) but never copied into
    the message, so raw response bodies do not leak to the user.
    """

    def __init__(self, provider_id: str) -> None:
        self.provider_id = provider_id
        super().__init__(f"Failed to initialize provider '{provider_id}'")

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "provider_id": self.provider_id}


class ModelNotFoundError(CoreThinkError):
    """The requested provider or model is not part of the resolved set."""

    def __init__(
        self,
        provider_id: str,
        model_id: str,
        suggestions: list[str] | None = None,
    ) -> None:
        self.provider_id = provider_id
        self.model_id = model_id
        self.suggestions = list(suggestions or [])
        message = f"Model not found: {provider_id}/{model_id}"
        if self.suggestions:
            message += f". Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "provider_id": self.provider_id,
            "model_id": self.model_id,
            "suggestions": self.suggestions,
        }


class TransientNetworkError(CoreThinkError):
    """Connection or timeout failure raised by this package during dispatch.

    Errors raised by httpx itself are not wrapped and propagate unchanged.
    """


class RequestTimeoutError(TransientNetworkError, TimeoutError):
    """The per-request deadline expired before the upstream call finished."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Request timed out after {timeout:g}s")


class RequestCancelledError(CoreThinkError):
    """The caller's cancel event fired while the request was in flight."""

    def __init__(self) -> None:
        super().__init__("Request cancelled by caller")


class CredentialsError(CoreThinkError):
    """Base exception for credential store errors."""


class CredentialsInvalidError(CredentialsError):
    """Stored credentials could not be parsed."""


class CredentialsStorageError(CredentialsError):
    """The credential file could not be read or written."""


__all__ = [
    "ConfigurationError",
    "CoreThinkError",
    "CredentialsError",
    "CredentialsInvalidError",
    "CredentialsStorageError",
    "ModelNotFoundError",
    "ProviderInitError",
    "RequestCancelledError",
    "RequestTimeoutError",
    "TransientNetworkError",
]
