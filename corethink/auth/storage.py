"""Credential persistence.

The credential file is a single JSON object keyed by provider id::

    {"corethink": {"type": "api", "key": "sk_..."}}
"""

import asyncio
import contextlib
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import SecretStr, ValidationError

from corethink.auth.models import ApiCredential, WellKnownCredential, credential_adapter
from corethink.core.errors import CredentialsInvalidError, CredentialsStorageError
from corethink.core.logging import get_logger


logger = get_logger(__name__)

StoredCredential = ApiCredential | WellKnownCredential


class CredentialStore(ABC):
    """Abstract interface for credential storage keyed by provider id."""

    @abstractmethod
    async def get(self, provider_id: str) -> StoredCredential | None:
        """Return the credential stored for ``provider_id``, if any."""

    @abstractmethod
    async def all(self) -> dict[str, StoredCredential]:
        """Return every stored credential."""

    @abstractmethod
    async def set(self, provider_id: str, credential: StoredCredential) -> None:
        """Store ``credential`` for ``provider_id``, replacing any previous one."""

    @abstractmethod
    async def remove(self, provider_id: str) -> bool:
        """Remove the credential for ``provider_id``.

        Returns:
            True if a credential was removed, False if none was stored
        """

    @abstractmethod
    def get_location(self) -> str:
        """Human-readable description of where credentials are stored."""


class JsonCredentialStore(CredentialStore):
    """JSON file credential storage with atomic writes.

    File I/O runs in worker threads so the event loop is never blocked.
    """

    def __init__(self, file_path: Path):
        """Initialize JSON storage.

        Args:
            file_path: Path to the JSON credential file
        """
        self.file_path = file_path

    def get_location(self) -> str:
        return str(self.file_path)

    async def get(self, provider_id: str) -> StoredCredential | None:
        return (await self.all()).get(provider_id)

    async def all(self) -> dict[str, StoredCredential]:
        data = await self._read_json()
        credentials: dict[str, StoredCredential] = {}
        for provider_id, raw in data.items():
            try:
                credentials[provider_id] = credential_adapter.validate_python(raw)
            except ValidationError as e:
                # One bad entry must not hide the others.
                logger.warning(
                    "credential_entry_invalid",
                    provider_id=provider_id,
                    path=str(self.file_path),
                    error_count=e.error_count(),
                )
        return credentials

    async def set(self, provider_id: str, credential: StoredCredential) -> None:
        data = await self._read_json()
        data[provider_id] = _unmask_secrets(credential.model_dump())
        await self._write_json(data)
        logger.debug("credential_saved", provider_id=provider_id, type=credential.type)

    async def remove(self, provider_id: str) -> bool:
        data = await self._read_json()
        if provider_id not in data:
            return False
        del data[provider_id]
        await self._write_json(data)
        logger.debug("credential_removed", provider_id=provider_id)
        return True

    async def _read_json(self) -> dict[str, Any]:
        """Read the credential file.

        Returns:
            Parsed JSON object, or an empty dict if the file doesn't exist

        Raises:
            CredentialsInvalidError: If the file is not a JSON object
            CredentialsStorageError: If the file cannot be read
        """

        def read_file() -> Any:
            with self.file_path.open("r", encoding="utf-8") as f:
                return json.load(f)

        try:
            data = await asyncio.to_thread(read_file)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as e:
            logger.error(
                "json_decode_error",
                path=str(self.file_path),
                line=e.lineno,
            )
            raise CredentialsInvalidError(
                f"Invalid JSON in {self.file_path}: {e}"
            ) from e
        except OSError as e:
            logger.error("file_read_error", path=str(self.file_path), error=str(e))
            raise CredentialsStorageError(f"Error reading {self.file_path}: {e}") from e

        if not isinstance(data, dict):
            raise CredentialsInvalidError(
                f"Expected a JSON object in {self.file_path}, got {type(data).__name__}"
            )
        return data

    async def _write_json(self, data: dict[str, Any]) -> None:
        """Write the credential file atomically with owner-only permissions.

        Raises:
            CredentialsStorageError: If the file cannot be written
        """
        temp_path = self.file_path.with_suffix(".tmp")

        def write_file() -> None:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            with temp_path.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            temp_path.chmod(0o600)
            temp_path.replace(self.file_path)

        try:
            await asyncio.to_thread(write_file)
        except OSError as e:
            logger.error("file_write_error", path=str(self.file_path), error=str(e))
            raise CredentialsStorageError(f"Error writing {self.file_path}: {e}") from e
        finally:
            if temp_path.exists():
                with contextlib.suppress(OSError):
                    temp_path.unlink()


def _unmask_secrets(data: Any) -> Any:
    """Recursively replace SecretStr values with their plain values."""
    if isinstance(data, dict):
        return {k: _unmask_secrets(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_unmask_secrets(item) for item in data]
    if isinstance(data, SecretStr):
        return data.get_secret_value()
    return data
