"""JIRA session over the REST API.

Only the operations a CI server needed first are implemented: email lookup
and asynchronous issue and project reads. The remaining capabilities raise
``NotSupportedError`` without touching the network.
"""

import threading
from collections.abc import Callable
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

import requests
from jira import JIRA
from jira.exceptions import JIRAError

from jira_bridge.clients.exceptions import (
    ApiError,
    AuthenticationError,
    ClientConnectionError,
    OperationCancelledError,
)
from jira_bridge.clients.session import JiraInteractionSession
from jira_bridge.config import logger
from jira_bridge.models import (
    Component,
    FieldValue,
    Group,
    Issue,
    IssueType,
    Project,
    ProjectRole,
    ServerInfo,
    Version,
)

if TYPE_CHECKING:
    from jira_bridge.credentials import Credentials
    from jira_bridge.site import JiraSite

T = TypeVar("T")

HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_SERVER_ERROR_MIN = 500

DEFAULT_MAX_WORKERS = 4


def translate_error(operation: str, error: Exception) -> Exception:
    """Map a jira/requests failure onto the client error taxonomy."""
    if isinstance(error, JIRAError):
        status = error.status_code or 0
        if status in (HTTP_UNAUTHORIZED, HTTP_FORBIDDEN):
            return AuthenticationError(f"{operation}: HTTP {status}")
        if status >= HTTP_SERVER_ERROR_MIN or status == 0:
            return ClientConnectionError(f"{operation}: {error.text or error}")
        return ApiError(f"{operation}: HTTP {status}: {error.text}")
    return ClientConnectionError(f"{operation}: {error}")


def to_issue(raw: dict[str, Any]) -> Issue:
    fields = raw.get("fields") or {}
    assignee = fields.get("assignee") or {}
    return Issue(
        key=str(raw["key"]),
        id=raw.get("id"),
        project=(fields.get("project") or {}).get("key"),
        summary=fields.get("summary"),
        description=fields.get("description"),
        assignee=assignee.get("name") or assignee.get("accountId"),
        type=(fields.get("issuetype") or {}).get("id"),
        status=(fields.get("status") or {}).get("id"),
        fix_versions=[
            Version(
                id=str(v["id"]),
                name=str(v["name"]),
                released=bool(v.get("released")),
                archived=bool(v.get("archived")),
            )
            for v in fields.get("fixVersions") or []
        ],
        components=[
            Component(id=str(c["id"]), name=c.get("name")) for c in fields.get("components") or []
        ],
    )


def to_project(raw: dict[str, Any]) -> Project:
    return Project(id=raw.get("id"), key=str(raw["key"]), name=raw.get("name"))


class JiraRestSession(JiraInteractionSession):
    """Connection to JIRA through a ``jira.JIRA`` client.

    Authentication travels with every request (HTTP basic) or is absent.
    The client is synchronous; asynchronous operations run on a small
    per-session thread pool and hand back ``concurrent.futures.Future``s.
    """

    backend: ClassVar[str] = "rest"

    def __init__(
        self,
        site: "JiraSite",
        url: str,
        client: JIRA,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        super().__init__(site, url)
        self.client = client
        self.max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None
        self._executor_lock = threading.Lock()

    @classmethod
    def connect(
        cls,
        site: "JiraSite",
        url: str,
        credentials: "Credentials | None",
    ) -> "JiraRestSession":
        """Build a client for ``url``, anonymous when ``credentials`` is ``None``.

        No request is sent; the caller probes the connection.
        """
        options = {"verify": site.verify_ssl}
        if credentials is None:
            logger.info("No credentials specified, trying to connect to JIRA instance at %s anonymously.", url)
            client = JIRA(server=url, options=options, get_server_info=False, timeout=site.timeout)
        else:
            logger.info(
                "Trying to connect to JIRA instance at %s using specified credentials (%s).",
                url,
                credentials.username,
            )
            client = JIRA(
                server=url,
                options=options,
                basic_auth=(credentials.username, credentials.secret()),
                get_server_info=False,
                timeout=site.timeout,
            )
        return cls(site, url, client)

    def _call(self, operation: str, fn: Callable[..., T], *args: Any) -> T:
        try:
            return fn(*args)
        except (JIRAError, requests.exceptions.RequestException) as e:
            raise translate_error(operation, e) from e

    def _submit(self, operation: str, fn: Callable[..., T], *args: Any) -> "Future[T]":
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers,
                    thread_name_prefix="jira-rest",
                )
            return self._executor.submit(self._call, operation, fn, *args)

    def close(self) -> None:
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=False, cancel_futures=True)
                self._executor = None
        self.client.close()

    def get_server_info(self) -> ServerInfo:
        info = self._call("server_info", self.client.server_info)
        return ServerInfo(
            version=info.get("version"),
            base_url=info.get("baseUrl"),
            build_number=str(info["buildNumber"]) if info.get("buildNumber") is not None else None,
            server_title=info.get("serverTitle"),
        )

    def get_email_for_username(self, username: str) -> str | None:
        future = self._submit("get_email_for_username", self._fetch_user_email, username)
        try:
            return future.result()
        except CancelledError as e:
            msg = f"Email lookup for {username} was cancelled"
            raise OperationCancelledError(msg) from e

    def _fetch_user_email(self, username: str) -> str | None:
        try:
            user = self.client.user(username)
        except JIRAError as e:
            if e.status_code == HTTP_NOT_FOUND:
                logger.debug("JIRA user not found: %s", username)
                return None
            raise
        return (user.raw or {}).get("emailAddress") or None

    def get_issue_async(self, issue_id: str) -> "Future[Issue]":
        return self._submit("get_issue_async", lambda: to_issue(self.client.issue(issue_id).raw))

    def get_project_keys_async(self) -> "Future[list[Project]]":
        return self._submit(
            "get_project_keys_async",
            lambda: [to_project(project.raw) for project in self.client.projects()],
        )

    def exists_issue(self, issue_id: str) -> bool:
        return self.site.exists_issue(issue_id)

    def get_project_keys(self) -> set[str]:
        raise self._not_supported("get_project_keys")

    def add_comment(
        self,
        issue_id: str,
        comment: str,
        group_visibility: str | None = None,
        role_visibility: str | None = None,
    ) -> None:
        raise self._not_supported("add_comment")

    def get_issue(self, issue_id: str) -> Issue | None:
        raise self._not_supported("get_issue")

    def get_issues_from_jql_search(self, jql: str) -> list[Issue]:
        raise self._not_supported("get_issues_from_jql_search")

    def get_group(self, group_id: str) -> Group | None:
        raise self._not_supported("get_group")

    def get_role(self, role_name: str) -> ProjectRole | None:
        raise self._not_supported("get_role")

    def get_versions(self, project_key: str) -> list[Version]:
        raise self._not_supported("get_versions")

    def get_version_by_name(self, project_key: str, name: str) -> Version | None:
        raise self._not_supported("get_version_by_name")

    def get_issues_with_fix_version(
        self,
        project_key: str,
        version: str,
        jql_filter: str = "",
    ) -> list[Issue]:
        raise self._not_supported("get_issues_with_fix_version")

    def get_issue_types(self) -> list[IssueType]:
        raise self._not_supported("get_issue_types")

    def release_version(self, project_key: str, version: Version) -> None:
        raise self._not_supported("release_version")

    def migrate_issues_to_fix_version(self, project_key: str, version: str, jql: str) -> list[str]:
        raise self._not_supported("migrate_issues_to_fix_version")

    def replace_fix_version(
        self,
        project_key: str,
        from_version: str,
        to_version: str,
        jql: str,
    ) -> list[str]:
        raise self._not_supported("replace_fix_version")

    def progress_workflow_action(
        self,
        issue_key: str,
        action_id: str,
        fields: list[FieldValue] | None = None,
    ) -> str | None:
        raise self._not_supported("progress_workflow_action")

    def get_action_id_for_issue(self, issue_key: str, workflow_action: str) -> str | None:
        raise self._not_supported("get_action_id_for_issue")

    def get_status_by_id(self, status_id: str) -> str | None:
        raise self._not_supported("get_status_by_id")

    def create_issue(
        self,
        project_key: str,
        description: str,
        assignee: str | None,
        components: list[Component],
        summary: str,
    ) -> Issue:
        raise self._not_supported("create_issue")

    def add_comment_without_constraints(self, issue_id: str, comment: str) -> None:
        raise self._not_supported("add_comment_without_constraints")

    def get_issue_by_key(self, issue_id: str) -> Issue | None:
        raise self._not_supported("get_issue_by_key")

    def get_components(self, project_key: str) -> list[Component]:
        raise self._not_supported("get_components")

    def add_version(self, version: str, project_key: str) -> Version:
        raise self._not_supported("add_version")
