"""Configuration module for the JIRA session bridge.
Provides the shared logger and a lazily initialized configuration interface.
"""

import os
import threading
from typing import TYPE_CHECKING

import yaml

from jira_bridge.config_loader import ConfigLoader
from jira_bridge.display import configure_logging
from jira_bridge.type_definitions import LogLevel

if TYPE_CHECKING:
    from jira_bridge.credentials import ConfigCredentialStore
    from jira_bridge.site import JiraSite

# Logging is configured from the environment only, so importing the package
# never touches the configuration file.
LOG_LEVEL: LogLevel = os.environ.get("JB_LOG_LEVEL", "INFO").upper()  # type: ignore[assignment]
logger = configure_logging(LOG_LEVEL, os.environ.get("JB_LOG_FILE") or None)


_config_loader: ConfigLoader | None = None
_sites: "list[JiraSite] | None" = None
_credential_store: "ConfigCredentialStore | None" = None
_lock = threading.RLock()


class ConfigurationError(Exception):
    """Raised when the configuration cannot be loaded or is inconsistent."""


def get_config_loader() -> ConfigLoader:
    """Get or initialize the global configuration loader.

    Thread-safe implementation using double-checked locking.

    Raises:
        ConfigurationError: If the configuration cannot be loaded

    """
    global _config_loader
    if _config_loader is None:
        with _lock:
            if _config_loader is None:
                try:
                    loader = ConfigLoader()
                except (OSError, ValueError, yaml.YAMLError) as e:
                    logger.exception("Failed to load configuration: %s", e)
                    msg = f"Cannot load configuration: {e}"
                    raise ConfigurationError(msg) from e

                logging_config = loader.get_logging_config()
                if logging_config.get("level") or logging_config.get("file"):
                    configure_logging(
                        logging_config.get("level", LOG_LEVEL),
                        logging_config.get("file"),
                    )
                _config_loader = loader
                logger.debug("Configuration loaded with %d site(s)", len(loader.get_site_configs()))
    return _config_loader


def get_credential_store() -> "ConfigCredentialStore":
    """Get the credential store built from the ``credentials`` section."""
    global _credential_store
    if _credential_store is None:
        with _lock:
            if _credential_store is None:
                from jira_bridge.credentials import ConfigCredentialStore  # noqa: PLC0415

                _credential_store = ConfigCredentialStore.from_config(
                    get_config_loader().get_credential_configs(),
                )
    return _credential_store


def get_sites() -> "list[JiraSite]":
    """Get the configured sites in configuration order.

    Sites are built once and shared, so their cached sessions are reused.
    """
    global _sites
    if _sites is None:
        with _lock:
            if _sites is None:
                from jira_bridge.site import JiraSite  # noqa: PLC0415

                store = get_credential_store()
                _sites = [
                    JiraSite.from_config(site_config, store)
                    for site_config in get_config_loader().get_site_configs()
                ]
    return _sites


def get_site(name: str) -> "JiraSite | None":
    """Get a configured site by name."""
    for site in get_sites():
        if site.name == name:
            return site
    return None


def reset_config() -> None:
    """Reset cached configuration, credentials and sites.

    Intended for tests and for reloading after the configuration file changed.
    """
    global _config_loader, _sites, _credential_store
    with _lock:
        if _sites:
            for site in _sites:
                site.invalidate_session()
        _config_loader = None
        _sites = None
        _credential_store = None
        logger.debug("Reset configuration cache")
