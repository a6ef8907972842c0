"""Process-level provider state with an explicit lifecycle.

``ProviderState`` is created by the owner of a session, resolved lazily on
first access, and invalidated only by ``dispose()``. It is passed to the
code that needs it rather than read from module globals.
"""

import asyncio
import os
from collections.abc import Mapping
from typing import Any

from corethink.auth.models import ApiCredential
from corethink.auth.storage import CredentialStore, JsonCredentialStore
from corethink.config.settings import Settings
from corethink.core.errors import ModelNotFoundError
from corethink.core.logging import get_logger
from corethink.http.client import ClientFactory
from corethink.http.pool import TransportCache, fingerprint
from corethink.http.transport import ProviderTransport, build_transport
from corethink.models.provider import ModelDescriptor, ProviderInfo
from corethink.utils.merge import deep_merge

from .catalog import CORETHINK_ENV_KEY, CORETHINK_PROVIDER_ID, corethink_provider


logger = get_logger(__name__)


def parse_model(model: str) -> tuple[str, str]:
    """Split ``"provider/model"``; the model id may itself contain slashes."""
    provider_id, _, model_id = model.partition("/")
    return provider_id, model_id


def suggest(known_ids: list[str], query: str | None = None) -> list[str]:
    """Model ids to offer when a lookup fails.

    No query returns every known id. Otherwise ids containing the query are
    returned, falling back to every known id when none match.
    """
    if not query:
        return list(known_ids)
    matches = [model_id for model_id in known_ids if query in model_id]
    return matches or list(known_ids)


class ProviderState:
    """Resolved providers plus the transport cache built from them.

    Credential precedence is fixed: the environment variable wins over the
    persisted credential store, which wins over static configuration.
    """

    def __init__(
        self,
        settings: Settings,
        credentials: CredentialStore | None = None,
        *,
        env: Mapping[str, str] | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.settings = settings
        self.credentials = credentials or JsonCredentialStore(settings.auth_file)
        self._env = env if env is not None else os.environ
        self._client_factory = client_factory
        self._providers: dict[str, ProviderInfo] | None = None
        self._load_lock = asyncio.Lock()
        self.transports: TransportCache[ProviderTransport] = TransportCache()

    async def providers(self) -> dict[str, ProviderInfo]:
        """Resolved providers, computed on first call."""
        if self._providers is not None:
            return self._providers
        async with self._load_lock:
            if self._providers is None:
                self._providers = await self._load()
        return self._providers

    async def _load(self) -> dict[str, ProviderInfo]:
        logger.info("provider_state_init")
        providers: dict[str, ProviderInfo] = {}

        api_key = self._env.get(CORETHINK_ENV_KEY) or None
        source = "env"

        if not api_key:
            stored = await self.credentials.get(CORETHINK_PROVIDER_ID)
            if isinstance(stored, ApiCredential):
                api_key = stored.key.get_secret_value()
                source = "api"
                logger.info("credential_from_store", provider_id=CORETHINK_PROVIDER_ID)

        provider = corethink_provider(api_key)
        if api_key:
            provider.source = source  # type: ignore[assignment]

        overrides = self.settings.provider_options(CORETHINK_PROVIDER_ID)
        if overrides:
            provider.options = deep_merge(provider.options, overrides)
            # A configured key only fills in when nothing stronger exists.
            config_key = provider.options.pop("api_key", None)
            if config_key and not api_key:
                provider.key = str(config_key)
                provider.source = "config"

        if provider.key:
            providers[provider.id] = provider
            logger.info("provider_found", provider_id=provider.id, source=provider.source)
        else:
            logger.warning(
                "provider_credential_missing",
                provider_id=CORETHINK_PROVIDER_ID,
                env=CORETHINK_ENV_KEY,
            )

        return providers

    async def list_providers(self) -> dict[str, ProviderInfo]:
        return dict(await self.providers())

    async def get_provider(self, provider_id: str) -> ProviderInfo | None:
        return (await self.providers()).get(provider_id)

    async def resolve_model(self, provider_id: str, model_id: str) -> ModelDescriptor:
        """Look up a model.

        Raises:
            ModelNotFoundError: The provider or model is not resolved; carries
                suggested model ids
        """
        providers = await self.providers()
        provider = providers.get(provider_id)
        if provider is None:
            known = [m.qualified_id for p in providers.values() for m in p.models.values()]
            raise ModelNotFoundError(provider_id, model_id, suggest(known, model_id))

        model = provider.models.get(model_id)
        if model is None:
            raise ModelNotFoundError(
                provider_id, model_id, suggest(list(provider.models), model_id)
            )
        return model

    async def transport_options(self, model: ModelDescriptor) -> dict[str, Any]:
        """Effective transport options for ``model``.

        Provider options are copied, usage reporting is requested, the base
        URL and API key fall back to the model endpoint and the provider
        key, and model headers are layered over configured headers.
        """
        provider = await self.get_provider(model.provider_id)
        if provider is None:
            raise ModelNotFoundError(model.provider_id, model.id, suggest([], model.id))

        options: dict[str, Any] = dict(provider.options)
        options["include_usage"] = True
        if not options.get("base_url"):
            options["base_url"] = model.api.url
        if options.get("api_key") is None and provider.key:
            options["api_key"] = provider.key
        if model.headers:
            options["headers"] = {**(options.get("headers") or {}), **model.headers}
        return options

    async def get_transport(self, model: ModelDescriptor) -> ProviderTransport:
        """Transport for ``model``, shared with every identical configuration.

        Raises:
            ProviderInitError: The transport could not be built
        """
        options = await self.transport_options(model)
        key = fingerprint(model.api.library, options)
        return await self.transports.resolve(
            key,
            lambda: build_transport(
                model.provider_id,
                model.api.library,
                options,
                self.settings.http,
                self._client_factory,
            ),
            provider_id=model.provider_id,
        )

    async def closest(self, provider_id: str, query: list[str]) -> tuple[str, str] | None:
        """First model of ``provider_id`` whose id contains a query term."""
        provider = await self.get_provider(provider_id)
        if provider is None:
            return None
        for item in query:
            for model_id in provider.models:
                if item in model_id:
                    return provider_id, model_id
        return None

    async def default_model(self) -> tuple[str, str]:
        """Configured default model, else the built-in CoreThink model.

        Raises:
            ModelNotFoundError: No model is configured and CoreThink has no key
        """
        if self.settings.model:
            return parse_model(self.settings.model)

        if await self.get_provider(CORETHINK_PROVIDER_ID) is None:
            raise ModelNotFoundError(CORETHINK_PROVIDER_ID, "corethink")
        return CORETHINK_PROVIDER_ID, "corethink"

    async def small_model(self, provider_id: str) -> ModelDescriptor | None:
        if self.settings.small_model:
            return await self.resolve_model(*parse_model(self.settings.small_model))

        provider = await self.get_provider(provider_id)
        if provider is not None:
            return provider.models.get("corethink")
        return None

    async def dispose(self) -> None:
        """Close cached transports and forget resolved providers."""
        await self.transports.dispose()
        async with self._load_lock:
            self._providers = None
        logger.info("provider_state_disposed")
