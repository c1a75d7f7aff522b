"""Look up the email address of a JIRA user across all configured sites."""

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

from jira_bridge.config import logger

if TYPE_CHECKING:
    from jira_bridge.site import JiraSite

PRE = r'[( \[<_{"=]+'
POST = r'[) \]>_}"=]+'
AT_PATTERN = re.compile(f"{PRE}[aA][tT]{POST}")
DOT_PATTERN = re.compile(f"{PRE}[dD][oO0][tT]{POST}")


def unmask_email(text: str) -> str:
    """Undo common address masking such as ``john [dot] doe (at) example dot com``."""
    return DOT_PATTERN.sub(".", AT_PATTERN.sub("@", text))


class JiraMailAddressResolver:
    """Asks each site in turn for a user's email address.

    Failing sites are skipped, so one unreachable JIRA never hides the
    answer of another.
    """

    def __init__(self, sites: Iterable["JiraSite"]) -> None:
        self.sites = list(sites)

    def find_mail_address_for(self, user_id: str) -> str | None:
        for site in self.sites:
            try:
                session = site.get_session()
                if session is None:
                    logger.warning("Unable to create session with %s", site.name)
                    continue
                email = session.get_email_for_username(user_id)
            except Exception as e:  # noqa: BLE001
                logger.warning("Unable to look up %s on %s: %s", user_id, site.name, e)
                continue

            if email is not None:
                return unmask_email(email)

        logger.debug("No JIRA site knows an email address for %s", user_id)
        return None


def resolve_email(user_id: str, sites: Iterable["JiraSite"] | None = None) -> str | None:
    """Return the unmasked email of ``user_id``, using the configured sites by default."""
    if sites is None:
        from jira_bridge.config import get_sites  # noqa: PLC0415

        sites = get_sites()
    return JiraMailAddressResolver(sites).find_mail_address_for(user_id)
