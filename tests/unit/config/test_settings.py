"""Tests for layered configuration loading."""

from pathlib import Path

import pytest

from corethink.config.settings import Settings, find_toml_config_file
from corethink.core.errors import ConfigurationError


CONFIG = """
model = "corethink/corethink"
output_token_max = 16000

[http]
read_timeout = 120

[logging]
level = "debug"

[provider.corethink.options]
timeout = 60

[provider.corethink.options.headers]
x-team = "core"
"""


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "settings.toml"
    path.write_text(CONFIG)
    return path


@pytest.mark.unit
class TestSettingsDefaults:
    def test_defaults(self, tmp_path: Path) -> None:
        settings = Settings()

        assert settings.model is None
        assert settings.output_token_max == 32_000
        assert settings.http.read_timeout == 300
        assert settings.logging.level == "WARNING"
        assert settings.data_dir == tmp_path / "data" / "corethink"
        assert settings.auth_file == tmp_path / "data" / "corethink" / "auth.json"
        assert settings.provider_options("corethink") == {}

    def test_invalid_log_level(self) -> None:
        with pytest.raises(ValueError, match="Invalid log level"):
            Settings(logging={"level": "loud"})


@pytest.mark.unit
class TestFromConfig:
    def test_toml_file(self, config_file: Path) -> None:
        settings = Settings.from_config(config_file)

        assert settings.model == "corethink/corethink"
        assert settings.output_token_max == 16000
        assert settings.http.read_timeout == 120
        assert settings.http.connect_timeout == 10
        assert settings.logging.level == "DEBUG"
        assert settings.provider_options("corethink") == {
            "timeout": 60,
            "headers": {"x-team": "core"},
        }

    def test_environment_wins_over_file(
        self, config_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CORETHINK_MODEL", "corethink/from-env")
        monkeypatch.setenv("CORETHINK_HTTP__CONNECT_TIMEOUT", "3")

        settings = Settings.from_config(config_file)

        assert settings.model == "corethink/from-env"
        assert settings.http.connect_timeout == 3
        assert settings.http.read_timeout == 120

    def test_overrides_win_over_environment(
        self, config_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CORETHINK_MODEL", "corethink/from-env")

        settings = Settings.from_config(config_file, model="corethink/from-kwargs")

        assert settings.model == "corethink/from-kwargs"

    def test_discovered_from_environment_variable(
        self, config_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CORETHINK_CONFIG", str(config_file))
        assert Settings.from_config().output_token_max == 16000

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        assert Settings.from_config(tmp_path / "absent.toml").output_token_max == 32_000

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.toml"
        path.write_text("model = [unclosed\n")

        with pytest.raises(ConfigurationError, match="Invalid TOML syntax"):
            Settings.from_config(path)

    def test_unsupported_format(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="Unsupported config file format"):
            Settings.from_config(tmp_path / "config.yaml")

    def test_invalid_value(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.toml"
        path.write_text("output_token_max = 0\n")

        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            Settings.from_config(path)


@pytest.mark.unit
class TestFindConfigFile:
    def test_nothing_found(self) -> None:
        assert find_toml_config_file() is None

    def test_current_directory(self, tmp_path: Path) -> None:
        local = tmp_path / "corethink.toml"
        local.write_text("")
        assert find_toml_config_file() == local

    def test_xdg_config_home(self, tmp_path: Path) -> None:
        path = tmp_path / "config" / "corethink" / "config.toml"
        path.parent.mkdir(parents=True)
        path.write_text("")
        assert find_toml_config_file() == path

    def test_explicit_path_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "corethink.toml").write_text("")
        monkeypatch.setenv("CORETHINK_CONFIG", "/etc/custom.toml")
        assert find_toml_config_file() == Path("/etc/custom.toml")
