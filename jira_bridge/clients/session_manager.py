"""Session factory: builds a probed session for a site or nothing at all.

Callers get either a working session or ``None``; connection problems are
logged here instead of being raised.
"""

from typing import TYPE_CHECKING
from urllib.parse import urlsplit

import requests

from jira_bridge.clients.exceptions import (
    ApiError,
    AuthenticationError,
    ClientConnectionError,
    InvalidUrlError,
)
from jira_bridge.clients.rest_session import JiraRestSession
from jira_bridge.clients.session import JiraInteractionSession
from jira_bridge.clients.soap_session import JiraSoapSession
from jira_bridge.config import logger

if TYPE_CHECKING:
    from jira_bridge.credentials import Credentials
    from jira_bridge.site import JiraSite

_URL_ERRORS = (
    requests.exceptions.InvalidURL,
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
)


def validate_url(url: str) -> str:
    """Return ``url`` if it is an absolute http(s) URL.

    Raises:
        InvalidUrlError: If the scheme or the host is missing

    """
    parts = urlsplit(url or "")
    if parts.scheme not in ("http", "https") or not parts.hostname:
        msg = f"The specified JIRA URL is not valid: {url!r}"
        raise InvalidUrlError(msg)
    return url


def create_session(
    site: "JiraSite",
    url: str | None = None,
    credentials: "Credentials | None" = None,
) -> JiraInteractionSession | None:
    """Create a session for ``site``.

    Args:
        site: Site whose configuration selects the backend
        url: URL to connect to, defaults to the site URL
        credentials: Credentials to authenticate with, ``None`` for anonymous

    Returns:
        A session that answered the connectivity probe, or ``None``

    """
    url = url or site.url
    try:
        validate_url(url)
        session = _connect(site, url, credentials)
        if session is None:
            return None
        _probe(site, session, anonymous=credentials is None)
    except InvalidUrlError as e:
        logger.error("%s", e)
        return None
    except AuthenticationError as e:
        logger.error("Authentication with JIRA at %s failed: %s", url, e)
        return None
    except ClientConnectionError as e:
        logger.error("Failed to connect to JIRA at %s: %s", url, e)
        return None
    except ApiError as e:
        logger.error("JIRA at %s did not answer the connectivity check: %s", url, e)
        return None
    except _URL_ERRORS as e:
        logger.error("The specified JIRA URL is not valid: %s (%s)", url, e)
        return None
    return session


def _connect(
    site: "JiraSite",
    url: str,
    credentials: "Credentials | None",
) -> JiraInteractionSession | None:
    match site.backend:
        case "rest":
            return JiraRestSession.connect(site, url, credentials)
        case "soap":
            if credentials is None:
                logger.error(
                    "No credentials for JIRA at %s; the SOAP backend does not support anonymous access",
                    url,
                )
                return None
            return JiraSoapSession.connect(site, url, credentials)
        case _:
            msg = f"Unknown JIRA backend {site.backend!r} for {url}"
            raise ValueError(msg)


def _probe(site: "JiraSite", session: JiraInteractionSession, *, anonymous: bool) -> None:
    try:
        info = session.get_server_info()
    except AuthenticationError as e:
        if anonymous and site.lenient_anonymous_probe:
            logger.warning(
                "Anonymous connectivity check against %s was rejected (%s), using the session anyway",
                session.url,
                e,
            )
            return
        session.close()
        raise
    except Exception:
        session.close()
        raise

    logger.success(
        "Connected to JIRA %s at %s using the %s backend",
        info.version or "(unknown version)",
        session.url,
        session.backend,
    )
