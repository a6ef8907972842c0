"""Provider resolution: built-in catalog and the lazily-built provider state."""

from .catalog import CORETHINK_API_URL, CORETHINK_ENV_KEY, CORETHINK_PROVIDER_ID
from .state import ProviderState, parse_model, suggest


__all__ = [
    "CORETHINK_API_URL",
    "CORETHINK_ENV_KEY",
    "CORETHINK_PROVIDER_ID",
    "ProviderState",
    "parse_model",
    "suggest",
]
