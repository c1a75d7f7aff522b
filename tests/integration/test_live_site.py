"""Checks against a real JIRA instance.

Run with JB_RUN_INTEGRATION=true and JB_IT_URL pointing at the instance;
JB_IT_USERNAME, JB_IT_PASSWORD, JB_IT_BACKEND and JB_IT_USER are optional.
The variables are read at import, before the test environment is cleaned.
"""

import os

import pytest

from jira_bridge.clients.session_manager import create_session
from jira_bridge.credentials import Credentials
from jira_bridge.site import JiraSite

pytestmark = pytest.mark.integration

LIVE_URL = os.environ.get("JB_IT_URL", "")
LIVE_BACKEND = os.environ.get("JB_IT_BACKEND", "rest")
LIVE_USERNAME = os.environ.get("JB_IT_USERNAME")
LIVE_PASSWORD = os.environ.get("JB_IT_PASSWORD", "")
LIVE_USER = os.environ.get("JB_IT_USER", LIVE_USERNAME)


@pytest.fixture(scope="module")
def live_session():
    if not LIVE_URL:
        pytest.skip("JB_IT_URL is not set")
    credentials = None
    if LIVE_USERNAME:
        credentials = Credentials(username=LIVE_USERNAME, password=LIVE_PASSWORD)
    session = create_session(JiraSite(LIVE_URL, backend=LIVE_BACKEND), credentials=credentials)
    assert session is not None, f"could not connect to {LIVE_URL}"
    yield session
    session.close()


def test_server_info(live_session) -> None:
    assert live_session.get_server_info().version


def test_email_lookup(live_session) -> None:
    if not LIVE_USER:
        pytest.skip("JB_IT_USER is not set")
    email = live_session.get_email_for_username(LIVE_USER)
    assert email is None or "@" in email or " " in email
