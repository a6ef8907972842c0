"""Credential models and persistence."""

from .models import ApiCredential, Credential, WellKnownCredential
from .storage import CredentialStore, JsonCredentialStore


__all__ = [
    "ApiCredential",
    "Credential",
    "CredentialStore",
    "JsonCredentialStore",
    "WellKnownCredential",
]
