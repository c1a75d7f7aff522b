"""Tests for the configuration loader and the configured site registry."""

from pathlib import Path

import pytest

from jira_bridge import config
from jira_bridge.config_loader import ConfigLoader

pytestmark = pytest.mark.unit

CONFIG_YAML = """
defaults:
  backend: soap
  timeout: 10

sites:
  - name: issues
    url: https://issues.example.com/
    backend: rest
  - name: legacy
    url: https://legacy.example.com/
    use_http_auth: true

credentials:
  - host: legacy.example.com
    username: ci
    password: secret

logging:
  level: DEBUG
"""


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML)
    return path


@pytest.fixture(autouse=True)
def _work_in_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep .env files of the checkout out of the loader."""
    monkeypatch.chdir(tmp_path)


class TestConfigLoader:
    """Tests for ConfigLoader."""

    def test_loads_yaml(self, config_file: Path) -> None:
        loader = ConfigLoader(config_file)

        assert [site["name"] for site in loader.get_config()["sites"]] == ["issues", "legacy"]
        assert loader.get_logging_config() == {"level": "DEBUG"}
        assert loader.get_value("defaults", "timeout") == 10
        assert loader.get_value("defaults", "missing", "fallback") == "fallback"

    def test_defaults_are_applied_to_sites(self, config_file: Path) -> None:
        issues, legacy = ConfigLoader(config_file).get_site_configs()

        assert issues["backend"] == "rest"
        assert legacy["backend"] == "soap"
        assert legacy["timeout"] == 10
        assert legacy["verify_ssl"] is True
        assert legacy["use_http_auth"] is True

    def test_missing_default_file_gives_empty_configuration(self) -> None:
        loader = ConfigLoader()

        assert loader.get_site_configs() == []
        assert loader.get_credential_configs() == []

    def test_missing_explicit_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            ConfigLoader(tmp_path / "nope.yaml")

    def test_missing_file_named_by_environment_raises(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JB_CONFIG_FILE", str(tmp_path / "nope.yaml"))

        with pytest.raises(FileNotFoundError):
            ConfigLoader()

    def test_environment_overrides(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JB_LOG_LEVEL", "warning")
        monkeypatch.setenv("JB_DEFAULT_BACKEND", "REST")
        monkeypatch.setenv("JB_SSL_VERIFY", "false")

        loader = ConfigLoader(config_file)

        assert loader.get_logging_config()["level"] == "WARNING"
        assert loader.get_value("defaults", "backend") == "rest"
        assert loader.get_value("defaults", "verify_ssl") is False

    def test_unknown_values_are_ignored(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JB_LOG_LEVEL", "loud")
        monkeypatch.setenv("JB_DEFAULT_BACKEND", "xmlrpc")

        loader = ConfigLoader(config_file)

        assert loader.get_logging_config()["level"] == "DEBUG"
        assert loader.get_value("defaults", "backend") == "soap"

    def test_site_from_environment(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JB_SITE_URL", "https://env.example.com/")
        monkeypatch.setenv("JB_SITE_BACKEND", "soap")
        monkeypatch.setenv("JB_SITE_USE_HTTP_AUTH", "true")
        monkeypatch.setenv("JB_SITE_USERNAME", "bot")
        monkeypatch.setenv("JB_SITE_PASSWORD", "hunter2")

        loader = ConfigLoader(config_file)

        first = loader.get_site_configs()[0]
        assert first["name"] == "default"
        assert first["url"] == "https://env.example.com/"
        assert first["backend"] == "soap"
        assert first["use_http_auth"] is True
        assert loader.get_credential_configs()[0] == {
            "host": "env.example.com",
            "username": "bot",
            "password": "hunter2",
        }

    def test_dotenv_file_is_read(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        Path(".env.local").write_text("JB_DEFAULT_BACKEND=rest\n")
        # registered so monkeypatch removes the value dotenv writes
        monkeypatch.setenv("JB_DEFAULT_BACKEND", "soap")

        loader = ConfigLoader(config_file)

        assert loader.get_value("defaults", "backend") == "rest"


class TestConfiguredSites:
    """Tests for the lazily built site registry."""

    def test_sites_share_credentials(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JB_CONFIG_FILE", str(config_file))
        config.reset_config()

        sites = config.get_sites()

        assert [site.name for site in sites] == ["issues", "legacy"]
        assert config.get_sites() is sites
        legacy = config.get_site("legacy")
        assert legacy.backend == "soap"
        assert legacy.credential_store.lookup(legacy.url).username == "ci"
        assert config.get_site("missing") is None

    def test_broken_yaml_raises_configuration_error(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        broken = tmp_path / "broken.yaml"
        broken.write_text("sites: [\n")
        monkeypatch.setenv("JB_CONFIG_FILE", str(broken))
        config.reset_config()

        with pytest.raises(config.ConfigurationError):
            config.get_config_loader()
