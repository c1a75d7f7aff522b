"""Configuration module for the JIRA session bridge.

Handles loading and accessing configuration settings.
"""

import logging
import os
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

import yaml
from dotenv import load_dotenv

from jira_bridge.type_definitions import (
    BACKENDS,
    LOG_LEVELS,
    Config,
    CredentialConfig,
    DefaultsConfig,
    LoggingConfig,
    SectionName,
    SiteConfig,
)

DEFAULT_CONFIG_FILE = Path("config/config.yaml")

config_logger = logging.getLogger("jira_bridge.config_loader")


def is_test_environment() -> bool:
    """Detect if code is running in a test environment.

    Returns:
        bool: True if running in a test environment, False otherwise

    """
    if "PYTEST_CURRENT_TEST" in os.environ:
        return True

    return os.environ.get("JB_TEST_MODE", "").lower() in ("true", "1", "yes")


class ConfigLoader:
    """Loads and provides access to configuration settings from YAML files and environment variables."""

    def __init__(self, config_file_path: Path | None = None) -> None:
        """Initialize the configuration loader.

        Args:
            config_file_path: Path to the YAML configuration file. When omitted,
                ``JB_CONFIG_FILE`` or ``config/config.yaml`` is used and a
                missing file yields an empty configuration.

        """
        self._load_environment_configuration()

        explicit = config_file_path is not None or "JB_CONFIG_FILE" in os.environ
        if config_file_path is None:
            config_file_path = Path(os.environ.get("JB_CONFIG_FILE", DEFAULT_CONFIG_FILE))

        raw = self._load_yaml_config(config_file_path, required=explicit)
        self.config: Config = self._normalize(raw)

        self._apply_environment_overrides()

    def _load_environment_configuration(self) -> None:
        """Load environment variables from .env files based on execution context.

        Later files override values from earlier files:
        .env, .env.local, and under tests .env.test and .env.test.local.
        """
        load_dotenv(".env")
        config_logger.debug("Loaded base environment from .env")

        if Path(".env.local").exists():
            load_dotenv(".env.local", override=True)
            config_logger.debug("Loaded local overrides from .env.local")

        if is_test_environment():
            config_logger.debug("Running in test environment")
            if Path(".env.test").exists():
                load_dotenv(".env.test", override=True)
                config_logger.debug("Loaded test environment from .env.test")
            if Path(".env.test.local").exists():
                load_dotenv(".env.test.local", override=True)
                config_logger.debug("Loaded local test overrides from .env.test.local")

    def _load_yaml_config(self, config_file_path: Path, *, required: bool) -> dict[str, Any]:
        """Load configuration from YAML file.

        Raises:
            FileNotFoundError: If an explicitly requested file does not exist

        """
        try:
            with config_file_path.open("r") as config_file:
                return yaml.safe_load(config_file) or {}
        except FileNotFoundError:
            if required:
                config_logger.exception("Config file not found: %s", config_file_path)
                raise
            config_logger.debug("No config file at %s, using empty configuration", config_file_path)
            return {}

    def _normalize(self, raw: dict[str, Any]) -> Config:
        """Fill in missing sections so callers can index them directly."""
        sites: list[SiteConfig] = list(raw.get("sites") or [])
        credentials: list[CredentialConfig] = list(raw.get("credentials") or [])
        logging_section: LoggingConfig = dict(raw.get("logging") or {})  # type: ignore[assignment]
        defaults: DefaultsConfig = dict(raw.get("defaults") or {})  # type: ignore[assignment]
        return {
            "sites": sites,
            "credentials": credentials,
            "logging": logging_section,
            "defaults": defaults,
        }

    def _apply_environment_overrides(self) -> None:
        """Override configuration settings with ``JB_*`` environment variables."""
        default_site: dict[str, Any] = {}
        default_credentials: dict[str, str] = {}

        for env_var, env_value in os.environ.items():
            if not env_var.startswith("JB_"):
                continue

            match env_var.split("_"):
                case ["JB", "LOG", "LEVEL"]:
                    log_level = env_value.upper()
                    if log_level in LOG_LEVELS:
                        self.config["logging"]["level"] = log_level  # type: ignore[typeddict-item]
                        config_logger.debug("Applied log level: %s", log_level)
                    else:
                        config_logger.warning("Ignoring unknown log level: %s", env_value)

                case ["JB", "LOG", "FILE"]:
                    self.config["logging"]["file"] = env_value or None

                case ["JB", "DEFAULT", "BACKEND"]:
                    backend = env_value.lower()
                    if backend in BACKENDS:
                        self.config["defaults"]["backend"] = backend  # type: ignore[typeddict-item]
                        config_logger.debug("Applied default backend: %s", backend)
                    else:
                        config_logger.warning("Ignoring unknown backend: %s", env_value)

                case ["JB", "SSL", "VERIFY"]:
                    ssl_verify = env_value.lower() not in ("false", "0", "no", "n", "f")
                    self.config["defaults"]["verify_ssl"] = ssl_verify
                    config_logger.debug("Applied SSL verify: %s", ssl_verify)

                case ["JB", "SITE", *rest] if rest:
                    key = "_".join(rest).lower()
                    if key in ("username", "password"):
                        default_credentials[key] = env_value
                    else:
                        default_site[key] = self._convert_value(env_value)

        if default_site.get("url"):
            self._add_default_site(default_site, default_credentials)

    def _add_default_site(self, site: dict[str, Any], credentials: dict[str, str]) -> None:
        """Register the site described by ``JB_SITE_*`` variables."""
        site.setdefault("name", "default")
        self.config["sites"] = [
            existing for existing in self.config["sites"] if existing.get("name") != site["name"]
        ]
        self.config["sites"].insert(0, site)  # type: ignore[arg-type]
        config_logger.debug("Applied site from environment: %s", site["url"])

        if credentials.get("username"):
            host = urlsplit(str(site["url"])).hostname or ""
            self.config["credentials"].insert(
                0,
                {
                    "host": host,
                    "username": credentials["username"],
                    "password": credentials.get("password", ""),
                },
            )
            config_logger.debug("Applied credentials from environment for host %s", host)

    def _convert_value(self, value: str) -> str | int | bool:
        """Convert string value to appropriate type."""
        if value.isdigit():
            return int(value)

        match value.lower():
            case "true" | "yes" | "y":
                return True
            case "false" | "no" | "n":
                return False
            case _:
                return value

    def get_config(self) -> Config:
        """Get the complete configuration dictionary."""
        return self.config

    def get_site_configs(self) -> list[SiteConfig]:
        """Get site configurations with defaults applied.

        Returns:
            list: One mapping per configured site

        """
        defaults = self.config["defaults"]
        resolved: list[SiteConfig] = []
        for site in self.config["sites"]:
            merged: dict[str, Any] = {
                "backend": defaults.get("backend", "rest"),
                "verify_ssl": defaults.get("verify_ssl", True),
                "timeout": defaults.get("timeout", 30),
            }
            merged.update({k: v for k, v in site.items() if v is not None})
            resolved.append(merged)  # type: ignore[arg-type]
        return resolved

    def get_credential_configs(self) -> list[CredentialConfig]:
        """Get host-bound credential entries."""
        return self.config["credentials"]

    def get_logging_config(self) -> LoggingConfig:
        """Get logging configuration."""
        return self.config["logging"]

    def get_value(self, section: SectionName, key: str, default: Any = None) -> Any:
        """Get a specific configuration value from a mapping section."""
        value = self.config[section]
        if isinstance(value, dict):
            return value.get(key, default)
        return default
