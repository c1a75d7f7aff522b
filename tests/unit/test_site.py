"""Tests for JiraSite."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch

import pytest

from jira_bridge.credentials import ConfigCredentialStore, Credentials
from jira_bridge.site import JiraSite

pytestmark = pytest.mark.unit


class TestConfiguration:
    """Tests for building sites."""

    def test_url_gets_trailing_slash(self) -> None:
        assert JiraSite("https://jira.example.com").url == "https://jira.example.com/"
        assert JiraSite("https://jira.example.com/").url == "https://jira.example.com/"

    def test_name_defaults_to_host(self) -> None:
        assert JiraSite("https://jira.example.com/jira").name == "jira.example.com"

    def test_from_config(self) -> None:
        store = ConfigCredentialStore()
        site = JiraSite.from_config(
            {
                "url": "https://legacy.example.com",
                "name": "legacy",
                "backend": "soap",
                "use_http_auth": True,
                "issue_pattern": "[A-Z]+-[0-9]+",
                "timeout": 5,
            },
            store,
        )

        assert site.name == "legacy"
        assert site.backend == "soap"
        assert site.use_http_auth
        assert site.timeout == 5
        assert site.verify_ssl
        assert site.credential_store is store
        assert site.matches_issue_key("ABC-12")
        assert not site.matches_issue_key("abc-12")


class TestIssueKeys:
    """Tests for the issue key pattern."""

    @pytest.mark.parametrize("key", ["MNG-1235", "JENKINS-1", "a_b-10", "mng-7"])
    def test_valid_keys(self, key: str) -> None:
        assert JiraSite("https://jira.example.com/").exists_issue(key)

    @pytest.mark.parametrize("key", ["not-an-id", "MNG-0", "MNG-", "-12", "1MNG-2", "MNG-12 and more", ""])
    def test_invalid_keys(self, key: str) -> None:
        assert not JiraSite("https://jira.example.com/").exists_issue(key)


class TestSessionCache:
    """Tests for the cached session."""

    @pytest.fixture
    def store(self) -> MagicMock:
        store = MagicMock()
        store.lookup.return_value = Credentials(username="ci", password="secret")
        return store

    def test_session_is_created_once(self, make_site, store) -> None:
        site = make_site(credential_store=store)
        session = MagicMock()
        with patch("jira_bridge.clients.session_manager.create_session", return_value=session) as mock_create:
            assert site.get_session() is session
            assert site.get_session() is session

        mock_create.assert_called_once_with(site, site.url, store.lookup.return_value)
        store.lookup.assert_called_once_with(site.url)

    def test_failed_creation_is_not_cached(self, make_site, store) -> None:
        site = make_site(credential_store=store)
        session = MagicMock()
        with patch(
            "jira_bridge.clients.session_manager.create_session",
            side_effect=[None, session],
        ) as mock_create:
            assert site.get_session() is None
            assert site.get_session() is session

        assert mock_create.call_count == 2

    def test_invalidate_closes_and_recreates(self, make_site, store) -> None:
        site = make_site(credential_store=store)
        first, second = MagicMock(), MagicMock()
        with patch(
            "jira_bridge.clients.session_manager.create_session",
            side_effect=[first, second],
        ):
            assert site.get_session() is first
            site.invalidate_session()
            assert site.get_session() is second

        first.close.assert_called_once()

    def test_without_store_connects_anonymously(self, site) -> None:
        with patch("jira_bridge.clients.session_manager.create_session") as mock_create:
            site.get_session()

        mock_create.assert_called_once_with(site, site.url, None)

    def test_concurrent_first_use_creates_one_session(self, make_site, store) -> None:
        site = make_site(credential_store=store)
        session = MagicMock()
        threads = 8
        barrier = threading.Barrier(threads)

        def slow_create(*args):
            time.sleep(0.05)
            return session

        def first_use():
            barrier.wait()
            return site.get_session()

        with patch(
            "jira_bridge.clients.session_manager.create_session",
            side_effect=slow_create,
        ) as mock_create:
            with ThreadPoolExecutor(max_workers=threads) as pool:
                sessions = list(pool.map(lambda _: first_use(), range(threads)))

        assert all(s is session for s in sessions)
        mock_create.assert_called_once()
