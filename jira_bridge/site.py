"""A configured JIRA instance and its cached session."""

import re
import threading
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from jira_bridge.config import logger
from jira_bridge.type_definitions import BackendType, SiteConfig

if TYPE_CHECKING:
    from jira_bridge.clients.session import JiraInteractionSession
    from jira_bridge.credentials import CredentialStore

DEFAULT_ISSUE_PATTERN = r"[a-zA-Z][a-zA-Z0-9_]+-[1-9][0-9]*"


class JiraSite:
    """One JIRA instance: URL, backend choice and issue key pattern.

    The site owns at most one live session. ``get_session`` builds it on
    first use and ``invalidate_session`` drops it, e.g. after JIRA expired
    the login token.
    """

    def __init__(
        self,
        url: str,
        name: str | None = None,
        backend: BackendType = "rest",
        use_http_auth: bool = False,
        issue_pattern: str | None = None,
        lenient_anonymous_probe: bool = False,
        verify_ssl: bool = True,
        timeout: int = 30,
        credential_store: "CredentialStore | None" = None,
    ) -> None:
        self.url = url if url.endswith("/") else f"{url}/"
        self.name = name or urlsplit(self.url).hostname or self.url
        self.backend = backend
        self.use_http_auth = use_http_auth
        self.issue_pattern = re.compile(issue_pattern or DEFAULT_ISSUE_PATTERN)
        self.lenient_anonymous_probe = lenient_anonymous_probe
        self.verify_ssl = verify_ssl
        self.timeout = timeout
        self.credential_store = credential_store

        self._session: JiraInteractionSession | None = None
        self._session_lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        config: SiteConfig,
        credential_store: "CredentialStore | None" = None,
    ) -> "JiraSite":
        return cls(
            url=config["url"],
            name=config.get("name"),
            backend=config.get("backend", "rest"),
            use_http_auth=bool(config.get("use_http_auth", False)),
            issue_pattern=config.get("issue_pattern"),
            lenient_anonymous_probe=bool(config.get("lenient_anonymous_probe", False)),
            verify_ssl=bool(config.get("verify_ssl", True)),
            timeout=int(config.get("timeout", 30)),
            credential_store=credential_store,
        )

    def __repr__(self) -> str:
        return f"JiraSite(name={self.name!r}, url={self.url!r}, backend={self.backend!r})"

    def matches_issue_key(self, issue_id: str) -> bool:
        """Return whether ``issue_id`` as a whole matches the issue key pattern."""
        return self.issue_pattern.fullmatch(issue_id or "") is not None

    def exists_issue(self, issue_id: str) -> bool:
        """Return whether ``issue_id`` can be an issue of this site.

        Only the key pattern is checked; JIRA is not contacted.
        """
        return self.matches_issue_key(issue_id)

    def get_session(self) -> "JiraInteractionSession | None":
        """Return the cached session, creating it on first use.

        A failed creation is not cached, so the next call tries again.
        """
        with self._session_lock:
            if self._session is None:
                from jira_bridge.clients.session_manager import create_session  # noqa: PLC0415

                credentials = None
                if self.credential_store is not None:
                    credentials = self.credential_store.lookup(self.url)
                self._session = create_session(self, self.url, credentials)
                if self._session is None:
                    logger.warning("Could not create a session for JIRA site %s", self.name)
            return self._session

    def invalidate_session(self) -> None:
        """Drop the cached session so that the next ``get_session`` logs in again."""
        with self._session_lock:
            session, self._session = self._session, None
        if session is not None:
            logger.debug("Invalidated session for JIRA site %s", self.name)
            session.close()
