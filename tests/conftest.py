"""Shared fixtures.

Upstream HTTP is never contacted: transports are built with an
``httpx.MockTransport`` injected through ``ProviderState(client_factory=...)``.
"""

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from corethink.config.settings import Settings
from corethink.core.logging import setup_logging
from corethink.providers.state import ProviderState
from tests.helpers import Handler, MemoryCredentialStore, MockClientFactory


def pytest_configure(config: pytest.Config) -> None:
    setup_logging(json_logs=False, log_level_name="DEBUG")


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Keep the developer's environment and config files out of every test."""
    for name in (
        "CORETHINK_API_KEY",
        "CORETHINK_CONFIG",
        "CORETHINK_MODEL",
        "CORETHINK_SMALL_MODEL",
        "CORETHINK_DATA_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.chdir(tmp_path)
    yield tmp_path


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(data_dir=tmp_path / "data" / "corethink")


@pytest.fixture
def store() -> MemoryCredentialStore:
    return MemoryCredentialStore()


@pytest.fixture
def make_state(
    settings: Settings,
    store: MemoryCredentialStore,
) -> Callable[..., ProviderState]:
    """Build a ProviderState over the in-memory store.

    The environment defaults to one holding a CoreThink key.
    """

    def factory(
        handler: Handler | MockClientFactory | None = None,
        *,
        env: dict[str, str] | None = None,
        settings_override: Settings | None = None,
    ) -> ProviderState:
        client_factory = handler
        if handler is not None and not isinstance(handler, MockClientFactory):
            client_factory = MockClientFactory(handler)
        return ProviderState(
            settings_override or settings,
            store,
            env={"CORETHINK_API_KEY": "sk_env"} if env is None else env,
            client_factory=client_factory,
        )

    return factory
