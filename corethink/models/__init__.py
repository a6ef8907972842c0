"""Provider and model records."""

from .provider import (
    InterleavedField,
    ModelApi,
    ModelCapabilities,
    ModelCost,
    ModelDescriptor,
    ModelLimit,
    Modalities,
    Modality,
    ProviderInfo,
    TokenCost,
)


__all__ = [
    "InterleavedField",
    "ModelApi",
    "ModelCapabilities",
    "ModelCost",
    "ModelDescriptor",
    "ModelLimit",
    "Modalities",
    "Modality",
    "ProviderInfo",
    "TokenCost",
]
