"""Transport construction, caching and cancellation."""

from .cancellation import CancelScope
from .client import HTTPClientFactory
from .pool import TransportCache, fingerprint
from .transport import ProviderTransport, build_transport


__all__ = [
    "CancelScope",
    "HTTPClientFactory",
    "ProviderTransport",
    "TransportCache",
    "build_transport",
    "fingerprint",
]
