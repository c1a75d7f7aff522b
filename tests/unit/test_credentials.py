"""Tests for credential lookup."""

import pytest

from jira_bridge.credentials import ConfigCredentialStore, Credentials

pytestmark = pytest.mark.unit


@pytest.fixture
def store() -> ConfigCredentialStore:
    return ConfigCredentialStore.from_config(
        [
            {"host": "jira.example.com", "username": "ci", "password": "secret"},
            {"host": "Legacy.Example.com", "username": "first", "password": "one"},
            {"host": "legacy.example.com", "username": "second", "password": "two"},
        ],
    )


def test_lookup_by_host(store) -> None:
    credentials = store.lookup("https://jira.example.com/browse/MNG-1")

    assert credentials == Credentials(username="ci", password="secret")
    assert credentials.secret() == "secret"


def test_host_match_ignores_case_and_port(store) -> None:
    assert store.lookup("HTTPS://JIRA.EXAMPLE.COM:8443/").username == "ci"


def test_first_of_several_matches_wins(store, caplog) -> None:
    credentials = store.lookup("https://legacy.example.com/")

    assert credentials.username == "first"
    assert "first, second" in caplog.text


def test_no_match(store, caplog) -> None:
    assert store.lookup("https://other.example.com/") is None
    assert "Found no credentials" in caplog.text


def test_password_is_not_shown() -> None:
    credentials = Credentials(username="ci", password="secret")

    assert "secret" not in repr(credentials)
    assert "secret" not in str(credentials)
