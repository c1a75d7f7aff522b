"""Pre-flight check that a URL points at a JIRA instance with SOAP enabled."""

from urllib.parse import urljoin

import requests
from pydantic import BaseModel

from jira_bridge.clients.soap_session import WSDL_PATH
from jira_bridge.config import logger


class UrlCheckResult(BaseModel):
    """Outcome of a URL check, with a message suitable for an end user."""

    ok: bool
    message: str


def check_soap_url(url: str, timeout: int = 10) -> UrlCheckResult:
    """Check that ``url`` serves JIRA and that its SOAP service description is reachable."""
    if not url:
        return UrlCheckResult(ok=False, message="JIRA URL is mandatory")

    base = url if url.endswith("/") else f"{url}/"
    try:
        page = requests.get(base, timeout=timeout)
        if "Atlassian JIRA" not in page.text:
            return UrlCheckResult(ok=False, message="This is not a JIRA URL")

        wsdl = requests.get(urljoin(base, WSDL_PATH), timeout=timeout)
        if "wsdl:definitions" not in wsdl.text:
            return UrlCheckResult(
                ok=False,
                message="Could not find the JIRA SOAP service description. Is remote API access enabled?",
            )
    except requests.exceptions.RequestException as e:
        logger.warning("Unable to connect to %s: %s", url, e)
        return UrlCheckResult(ok=False, message=f"Unable to connect to {url}")

    return UrlCheckResult(ok=True, message="Success")
