"""Shared pytest fixtures and configuration for all tests."""

import os
from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import MagicMock

import pytest
from _pytest.config import Config

from jira_bridge.clients.rest_session import JiraRestSession
from jira_bridge.clients.soap_session import JiraSoapSession
from jira_bridge.config import reset_config
from jira_bridge.site import JiraSite

SITE_URL = "https://jira.example.com/"


def pytest_configure(config: Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark a test as a unit test")
    config.addinivalue_line(
        "markers",
        "integration: mark a test as an integration test against a live JIRA",
    )
    config.addinivalue_line("markers", "slow: mark a test as slow-running")


def _env_flag(name: str, default: bool = False) -> bool:
    """Read boolean environment flag (true/false)."""
    val = os.environ.get(name, "true" if default else "false").strip().lower()
    return val in {"1", "true", "yes", "on"}


def pytest_collection_modifyitems(config: Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless JB_RUN_INTEGRATION=true."""
    if _env_flag("JB_RUN_INTEGRATION", False):
        return

    skip_integration = pytest.mark.skip(
        reason="Integration tests disabled by default. Set JB_RUN_INTEGRATION=true to enable.",
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep JB_* variables of the developer's shell out of the tests."""
    for name in list(os.environ):
        if name.startswith("JB_") and name != "JB_RUN_INTEGRATION":
            monkeypatch.delenv(name, raising=False)
    yield
    reset_config()


@pytest.fixture
def make_site() -> Callable[..., JiraSite]:
    """Build a JiraSite with test defaults; keyword arguments override them."""

    def _make(**overrides: Any) -> JiraSite:
        options: dict[str, Any] = {"url": SITE_URL, "name": "test"}
        options.update(overrides)
        return JiraSite(**options)

    return _make


@pytest.fixture
def site(make_site: Callable[..., JiraSite]) -> JiraSite:
    return make_site()


@pytest.fixture
def soap_service() -> MagicMock:
    """A stand-in for the zeep service proxy; replies are plain dicts."""
    service = MagicMock()
    service.login.return_value = "token-1"
    service.getServerInfo.return_value = {
        "version": "4.4.5",
        "baseUrl": SITE_URL,
        "buildNumber": 663,
        "serverTitle": "Test JIRA",
    }
    service.getProjectsNoSchemes.return_value = []
    service.getStatuses.return_value = []
    return service


@pytest.fixture
def soap_session(site: JiraSite, soap_service: MagicMock) -> JiraSoapSession:
    return JiraSoapSession(site, site.url, soap_service, "token-1")


@pytest.fixture
def jira_client() -> MagicMock:
    """A stand-in for ``jira.JIRA``."""
    client = MagicMock()
    client.server_info.return_value = {
        "version": "9.12.0",
        "baseUrl": SITE_URL,
        "buildNumber": 9120000,
        "serverTitle": "Test JIRA",
    }
    return client


@pytest.fixture
def rest_session(site: JiraSite, jira_client: MagicMock) -> Generator[JiraRestSession, None, None]:
    session = JiraRestSession(site, site.url, jira_client)
    yield session
    session.close()
