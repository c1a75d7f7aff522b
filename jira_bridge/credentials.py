"""Credential lookup for JIRA sites.

Credentials are bound to a host name. The session factory only needs the
``CredentialStore.lookup`` protocol; ``ConfigCredentialStore`` is the
implementation backed by the ``credentials`` configuration section.
"""

from collections.abc import Iterable
from typing import Protocol
from urllib.parse import urlsplit

from pydantic import BaseModel, SecretStr

from jira_bridge.config import logger
from jira_bridge.type_definitions import CredentialConfig


class Credentials(BaseModel):
    """A username/password pair."""

    username: str
    password: SecretStr

    def secret(self) -> str:
        """Return the plain password for handing to a transport."""
        return self.password.get_secret_value()


class HostCredentials(Credentials):
    """Credentials restricted to one host name."""

    host: str


class CredentialStore(Protocol):
    """Anything able to supply credentials for a JIRA URL."""

    def lookup(self, url: str) -> Credentials | None: ...


class ConfigCredentialStore:
    """Credential store holding host-bound entries from configuration."""

    def __init__(self, entries: Iterable[HostCredentials] = ()) -> None:
        self.entries: list[HostCredentials] = list(entries)

    @classmethod
    def from_config(cls, configs: Iterable[CredentialConfig]) -> "ConfigCredentialStore":
        return cls(
            HostCredentials(
                host=str(entry["host"]).lower(),
                username=str(entry["username"]),
                password=SecretStr(str(entry.get("password", ""))),
            )
            for entry in configs
        )

    def lookup(self, url: str) -> Credentials | None:
        """Find the credentials whose host matches the host of ``url``.

        When several entries match, the first one wins and the ambiguity is
        logged with every matching username.
        """
        host = (urlsplit(url).hostname or "").lower()
        matches = [entry for entry in self.entries if entry.host == host]

        if not matches:
            logger.warning("Found no credentials matching JIRA url %s", url)
            return None

        if len(matches) > 1:
            logger.warning(
                "Found %d credentials matching JIRA url %s, using the first one. Found usernames are: %s",
                len(matches),
                url,
                ", ".join(entry.username for entry in matches),
            )

        chosen = matches[0]
        return Credentials(username=chosen.username, password=chosen.password)
