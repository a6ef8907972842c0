"""CoreThink transport: provider resolution, payload sanitizing and event-stream rewriting."""

from ._version import __version__
from .config.settings import Settings
from .core.errors import (
    CoreThinkError,
    ModelNotFoundError,
    ProviderInitError,
    RequestCancelledError,
    RequestTimeoutError,
    TransientNetworkError,
)
from .models.provider import ModelDescriptor, ProviderInfo
from .providers.state import ProviderState, parse_model
from .services.dispatcher import RequestDispatcher, UpstreamResponse


__all__ = [
    "CoreThinkError",
    "ModelDescriptor",
    "ModelNotFoundError",
    "ProviderInfo",
    "ProviderInitError",
    "ProviderState",
    "RequestCancelledError",
    "RequestDispatcher",
    "RequestTimeoutError",
    "Settings",
    "TransientNetworkError",
    "UpstreamResponse",
    "__version__",
    "parse_model",
]
