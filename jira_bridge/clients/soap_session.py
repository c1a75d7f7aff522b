"""JIRA session over the legacy SOAP API (``rpc/soap/jirasoapservice-v2``).

The server associates every call with the user through a token obtained at
login. JIRA drops the token after an idle period, so the caller must renew
the session (through the site) rather than keep one around indefinitely.
"""

import threading
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, ClassVar
from urllib.parse import urljoin

import requests
from requests.auth import HTTPBasicAuth
from zeep import Client
from zeep.exceptions import Fault, TransportError
from zeep.helpers import serialize_object
from zeep.transports import Transport

from jira_bridge.clients.exceptions import (
    ApiError,
    AuthenticationError,
    ClientConnectionError,
    FixVersionUpdateError,
    RemoteValidationError,
)
from jira_bridge.clients.session import (
    MAX_SEARCH_RESULTS,
    UNBOUNDED_SEARCH_RESULTS,
    JiraInteractionSession,
    fix_version_jql,
)
from jira_bridge.clients.status_cache import StatusCache
from jira_bridge.config import logger
from jira_bridge.models import (
    Component,
    FieldValue,
    Group,
    Issue,
    IssueType,
    ProjectRole,
    ServerInfo,
    Status,
    Version,
)

if TYPE_CHECKING:
    from jira_bridge.credentials import Credentials
    from jira_bridge.site import JiraSite

SOAP_SERVICE_PATH = "rpc/soap/jirasoapservice-v2"
WSDL_PATH = f"{SOAP_SERVICE_PATH}?wsdl"

# JIRA issue type id used for issues created by the CI server
DEFAULT_ISSUE_TYPE = "1"

HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_SERVER_ERROR_MIN = 500


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    return list(value)


def _plain(remote: Any) -> dict[str, Any]:
    """Turn a zeep object (or a plain mapping) into a dict."""
    data = serialize_object(remote, dict)
    return data if isinstance(data, dict) else {}


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def to_version(remote: Any) -> Version:
    data = _plain(remote)
    return Version(
        id=str(data["id"]),
        name=str(data["name"]),
        released=bool(data.get("released")),
        archived=bool(data.get("archived")),
        release_date=data.get("releaseDate"),
    )


def to_component(remote: Any) -> Component:
    data = _plain(remote)
    return Component(id=str(data["id"]), name=_optional_str(data.get("name")))


def to_issue(remote: Any) -> Issue:
    data = _plain(remote)
    return Issue(
        key=str(data["key"]),
        id=_optional_str(data.get("id")),
        project=_optional_str(data.get("project")),
        summary=data.get("summary"),
        description=data.get("description"),
        assignee=data.get("assignee"),
        type=_optional_str(data.get("type")),
        status=_optional_str(data.get("status")),
        fix_versions=[to_version(v) for v in _as_list(data.get("fixVersions"))],
        components=[to_component(c) for c in _as_list(data.get("components"))],
    )


def _fault_names(fault: Fault) -> str:
    """Collect the texts in which JIRA names the remote exception class."""
    parts = [str(fault.message or ""), str(fault.code or "")]
    if fault.detail is not None:
        parts.extend(str(getattr(child, "tag", "")) for child in fault.detail)
    return " ".join(parts)


def translate_error(operation: str, error: Exception) -> Exception:
    """Map a zeep/requests failure onto the client error taxonomy."""
    if isinstance(error, Fault):
        names = _fault_names(error)
        if "RemoteAuthenticationException" in names:
            return AuthenticationError(f"{operation}: {error.message}")
        if "RemoteValidationException" in names:
            return RemoteValidationError(f"{operation}: {error.message}")
        return ApiError(f"{operation}: {error.message}")
    if isinstance(error, TransportError):
        status = error.status_code or 0
        if status in (HTTP_UNAUTHORIZED, HTTP_FORBIDDEN):
            return AuthenticationError(f"{operation}: HTTP {status}")
        if status >= HTTP_SERVER_ERROR_MIN:
            return ClientConnectionError(f"{operation}: HTTP {status}")
        return ApiError(f"{operation}: HTTP {status}: {error.message}")
    return ClientConnectionError(f"{operation}: {error}")


class JiraSoapSession(JiraInteractionSession):
    """Connection to JIRA through its SOAP service.

    ``token`` is ``None`` when the site authenticates with HTTP basic auth.
    """

    backend: ClassVar[str] = "soap"

    def __init__(self, site: "JiraSite", url: str, service: Any, token: str | None) -> None:
        super().__init__(site, url)
        self.service = service
        self.token = token
        self._project_keys: set[str] | None = None
        self._project_keys_lock = threading.Lock()
        self.status_cache = StatusCache(self._fetch_statuses)

    @classmethod
    def connect(
        cls,
        site: "JiraSite",
        url: str,
        credentials: "Credentials",
    ) -> "JiraSoapSession":
        """Open the SOAP service and authenticate.

        With ``site.use_http_auth`` the credentials travel as HTTP basic auth
        and no login call is made.

        Raises:
            AuthenticationError: If JIRA rejects the credentials
            ClientConnectionError: If the service cannot be reached

        """
        http = requests.Session()
        http.verify = site.verify_ssl
        if site.use_http_auth:
            http.auth = HTTPBasicAuth(credentials.username, credentials.secret())

        wsdl = urljoin(url, WSDL_PATH)
        logger.debug("Loading JIRA SOAP service description from %s", wsdl)
        try:
            client = Client(
                wsdl=wsdl,
                transport=Transport(session=http, timeout=site.timeout, operation_timeout=site.timeout),
            )
        except (TransportError, requests.exceptions.RequestException) as e:
            raise translate_error("load WSDL", e) from e

        session = cls(site, url, client.service, None)
        if not site.use_http_auth:
            session.token = session._invoke_without_token("login", credentials.username, credentials.secret())
        return session

    def _invoke_without_token(self, operation: str, *args: Any) -> Any:
        try:
            return getattr(self.service, operation)(*args)
        except (Fault, TransportError, requests.exceptions.RequestException) as e:
            raise translate_error(operation, e) from e

    def _invoke(self, operation: str, *args: Any) -> Any:
        """Call a SOAP operation with the session token prepended."""
        return self._invoke_without_token(operation, self.token, *args)

    def get_server_info(self) -> ServerInfo:
        data = _plain(self._invoke("getServerInfo"))
        return ServerInfo(
            version=_optional_str(data.get("version")),
            base_url=_optional_str(data.get("baseUrl")),
            build_number=_optional_str(data.get("buildNumber")),
            server_title=_optional_str(data.get("serverTitle")),
        )

    def get_project_keys(self) -> set[str]:
        with self._project_keys_lock:
            if self._project_keys is None:
                logger.debug("Fetching remote project key list from %s", self.url)
                projects = _as_list(self._invoke("getProjectsNoSchemes"))
                self._project_keys = {str(_plain(p)["key"]).upper() for p in projects}
                logger.debug("Project list=%s", sorted(self._project_keys))
            return set(self._project_keys)

    def add_comment(
        self,
        issue_id: str,
        comment: str,
        group_visibility: str | None = None,
        role_visibility: str | None = None,
    ) -> None:
        remote_comment: dict[str, Any] = {"body": comment}

        try:
            if role_visibility and self.get_role(role_visibility) is not None:
                remote_comment["roleLevel"] = role_visibility
        except RemoteValidationError as e:
            logger.warning("Cannot restrict comment on %s to role %s: %s", issue_id, role_visibility, e)

        try:
            if group_visibility and self.get_group(group_visibility) is not None:
                remote_comment["groupLevel"] = group_visibility
        except RemoteValidationError as e:
            logger.warning("Cannot restrict comment on %s to group %s: %s", issue_id, group_visibility, e)

        self._invoke("addComment", issue_id, remote_comment)

    def get_issue(self, issue_id: str) -> Issue | None:
        if not self.exists_issue(issue_id):
            return None
        return self.get_issue_by_key(issue_id)

    def get_issues_from_jql_search(self, jql: str) -> list[Issue]:
        return self._search(jql, MAX_SEARCH_RESULTS)

    def _search(self, jql: str, limit: int) -> list[Issue]:
        logger.debug("Searching issues with JQL: %s", jql)
        return [to_issue(i) for i in _as_list(self._invoke("getIssuesFromJqlSearch", jql, limit))]

    def get_group(self, group_id: str) -> Group | None:
        logger.debug("Fetching groupInfo from %s", group_id)
        try:
            remote = self._invoke("getGroup", group_id)
        except RemoteValidationError as e:
            # JIRA reports an unknown group as a validation fault
            logger.debug("Group %s not found: %s", group_id, e)
            return None
        if remote is None:
            return None
        return Group(name=str(_plain(remote).get("name") or group_id))

    def get_role(self, role_name: str) -> ProjectRole | None:
        # the SOAP API cannot tell which roles the user holds in a project,
        # so this only checks that a role of that name exists
        logger.debug("Fetching roleInfo from %s", role_name)
        for remote in _as_list(self._invoke("getProjectRoles")):
            data = _plain(remote)
            if data.get("name") == role_name:
                return ProjectRole(
                    id=_optional_str(data.get("id")),
                    name=role_name,
                    description=data.get("description"),
                )
        logger.info("Did not find role named %s.", role_name)
        return None

    def get_versions(self, project_key: str) -> list[Version]:
        logger.debug("Fetching versions from project: %s", project_key)
        return [to_version(v) for v in _as_list(self._invoke("getVersions", project_key))]

    def get_issues_with_fix_version(
        self,
        project_key: str,
        version: str,
        jql_filter: str = "",
    ) -> list[Issue]:
        logger.debug("Fetching issues from project %s with fixVersion %s", project_key, version)
        return self._search(fix_version_jql(project_key, version, jql_filter), UNBOUNDED_SEARCH_RESULTS)

    def get_issue_types(self) -> list[IssueType]:
        logger.debug("Fetching issue types")
        types = []
        for remote in _as_list(self._invoke("getIssueTypes")):
            data = _plain(remote)
            types.append(
                IssueType(
                    id=str(data["id"]),
                    name=str(data["name"]),
                    description=data.get("description"),
                    subtask=bool(data.get("subTask")),
                ),
            )
        return types

    def exists_issue(self, issue_id: str) -> bool:
        return self.site.exists_issue(issue_id)

    def release_version(self, project_key: str, version: Version) -> None:
        logger.debug("Releasing version: %s", version.name)
        remote_version = {
            "id": version.id,
            "name": version.name,
            "archived": version.archived,
            "released": True,
            "releaseDate": datetime.now(tz=UTC),
        }
        self._invoke("releaseVersion", project_key, remote_version)

    def migrate_issues_to_fix_version(self, project_key: str, version: str, jql: str) -> list[str]:
        new_version = self.get_version_by_name(project_key, version)
        if new_version is None:
            logger.debug("Version %s not found in project %s, nothing to migrate", version, project_key)
            return []

        return self._update_fix_versions(jql, lambda issue: [new_version.id], "Migrating")

    def replace_fix_version(
        self,
        project_key: str,
        from_version: str,
        to_version: str,
        jql: str,
    ) -> list[str]:
        new_version = self.get_version_by_name(project_key, to_version)
        if new_version is None:
            logger.debug("Version %s not found in project %s, nothing to replace", to_version, project_key)
            return []

        def replaced(issue: Issue) -> list[str]:
            ids = [new_version.id]
            for current in issue.fix_versions:
                if current.name != from_version and current.id not in ids:
                    ids.append(current.id)
            return ids

        return self._update_fix_versions(jql, replaced, "Replacing version in")

    def _update_fix_versions(
        self,
        jql: str,
        new_ids: Callable[[Issue], list[str]],
        verb: str,
    ) -> list[str]:
        """Send one fix-version update per issue matching ``jql``, stopping at the first failure."""
        issues = self._search(jql, UNBOUNDED_SEARCH_RESULTS)
        logger.debug("Found issues: %d", len(issues))

        updated: list[str] = []
        for issue in issues:
            logger.debug("%s issue: %s", verb, issue.key)
            value = {"id": "fixVersions", "values": new_ids(issue)}
            try:
                self._invoke("updateIssue", issue.key, [value])
            except (ApiError, AuthenticationError, ClientConnectionError) as e:
                logger.error("Fix version update failed on %s after %d issue(s): %s", issue.key, len(updated), e)
                raise FixVersionUpdateError(issue.key, updated) from e
            updated.append(issue.key)
        return updated

    def progress_workflow_action(
        self,
        issue_key: str,
        action_id: str,
        fields: list[FieldValue] | None = None,
    ) -> str | None:
        logger.debug("Progressing issue %s with workflow action: %s", issue_key, action_id)
        remote_fields = [field.model_dump() for field in fields or []]
        issue = to_issue(self._invoke("progressWorkflowAction", issue_key, action_id, remote_fields))
        if issue.status is None:
            return None
        return self.get_status_by_id(issue.status)

    def get_action_id_for_issue(self, issue_key: str, workflow_action: str) -> str | None:
        for remote in _as_list(self._invoke("getAvailableActions", issue_key)):
            data = _plain(remote)
            name = data.get("name")
            if name is not None and name.lower() == workflow_action.lower():
                return _optional_str(data.get("id"))
        return None

    def get_status_by_id(self, status_id: str) -> str | None:
        return self.status_cache.get(status_id)

    def _fetch_statuses(self) -> list[Status]:
        statuses = []
        for remote in _as_list(self._invoke("getStatuses")):
            data = _plain(remote)
            statuses.append(Status(id=str(data["id"]), name=str(data["name"])))
        return statuses

    def create_issue(
        self,
        project_key: str,
        description: str,
        assignee: str | None,
        components: list[Component],
        summary: str,
    ) -> Issue:
        remote_issue = {
            "project": project_key.upper(),
            "description": description,
            "summary": summary,
            "assignee": assignee,
            "type": DEFAULT_ISSUE_TYPE,
            "components": [component.model_dump() for component in components],
        }
        return to_issue(self._invoke("createIssue", remote_issue))

    def add_comment_without_constraints(self, issue_id: str, comment: str) -> None:
        self._invoke("addComment", issue_id, {"body": comment})

    def get_issue_by_key(self, issue_id: str) -> Issue | None:
        remote = self._invoke("getIssue", issue_id)
        return None if remote is None else to_issue(remote)

    def get_components(self, project_key: str) -> list[Component]:
        return [to_component(c) for c in _as_list(self._invoke("getComponents", project_key))]

    def add_version(self, version: str, project_key: str) -> Version:
        return to_version(self._invoke("addVersion", project_key, {"name": version}))

    def get_email_for_username(self, username: str) -> str | None:
        remote = self._invoke("getUser", username)
        if remote is None:
            return None
        return _plain(remote).get("email") or None
