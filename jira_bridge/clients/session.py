"""Capability interface shared by the SOAP and REST session backends.

A session is bound to one site and one credential set for its whole life.
JIRA expires idle sessions on the server side, so long-running callers should
ask the site for a fresh session instead of re-authenticating one in place.

Operations a backend does not implement raise ``NotSupportedError`` so that
callers can tell a capability gap from a transient failure.
"""

from abc import ABC, abstractmethod
from concurrent.futures import Future
from typing import TYPE_CHECKING, ClassVar

from jira_bridge.clients.exceptions import NotSupportedError
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
    from jira_bridge.site import JiraSite

# General JQL searches are capped; fix-version searches are not.
MAX_SEARCH_RESULTS = 50
UNBOUNDED_SEARCH_RESULTS = 2**31 - 1


def fix_version_jql(project_key: str, version: str, jql_filter: str = "") -> str:
    """Build the JQL selecting issues of a project carrying a fix version.

    ``jql_filter`` is appended verbatim, so it must never come from untrusted input.
    """
    jql = f'project = "{project_key}" AND fixVersion = "{version}"'
    if jql_filter:
        jql = f"{jql} AND {jql_filter}"
    return jql


class JiraInteractionSession(ABC):
    """Everything a CI server needs to do with a JIRA site."""

    backend: ClassVar[str]

    def __init__(self, site: "JiraSite", url: str) -> None:
        self.site = site
        self.url = url

    def _not_supported(self, operation: str) -> NotSupportedError:
        return NotSupportedError(operation, self.backend)

    @abstractmethod
    def get_server_info(self) -> ServerInfo:
        """Query server metadata; used as the connectivity probe."""

    @abstractmethod
    def get_email_for_username(self, username: str) -> str | None:
        """Return the email address registered for ``username``, or ``None``."""

    @abstractmethod
    def get_project_keys(self) -> set[str]:
        """Return the keys of all projects (like MNG, JENKINS), upper case."""

    @abstractmethod
    def add_comment(
        self,
        issue_id: str,
        comment: str,
        group_visibility: str | None = None,
        role_visibility: str | None = None,
    ) -> None:
        """Add a comment, restricted to the group and/or role when they exist.

        An empty or unknown visibility value leaves the comment unrestricted.
        """

    @abstractmethod
    def get_issue(self, issue_id: str) -> Issue | None:
        """Return the issue ``issue_id`` (like "MNG-1235").

        Ids not matching the site's issue key pattern return ``None`` without
        contacting the server.
        """

    @abstractmethod
    def get_issues_from_jql_search(self, jql: str) -> list[Issue]:
        """Return at most ``MAX_SEARCH_RESULTS`` issues matching ``jql``."""

    @abstractmethod
    def get_group(self, group_id: str) -> Group | None:
        """Return the group (like "Software Development") or ``None``."""

    @abstractmethod
    def get_role(self, role_name: str) -> ProjectRole | None:
        """Return the project role named ``role_name`` or ``None``."""

    @abstractmethod
    def get_versions(self, project_key: str) -> list[Version]:
        """Return all versions of a project."""

    def get_version_by_name(self, project_key: str, name: str) -> Version | None:
        """Return the version of ``project_key`` whose name is exactly ``name``."""
        for version in self.get_versions(project_key) or []:
            if version.name == name:
                return version
        return None

    @abstractmethod
    def get_issues_with_fix_version(
        self,
        project_key: str,
        version: str,
        jql_filter: str = "",
    ) -> list[Issue]:
        """Return every issue of ``project_key`` with fix version ``version``.

        ``jql_filter`` is and-ed to the query verbatim.
        """

    @abstractmethod
    def get_issue_types(self) -> list[IssueType]:
        """Return all issue types."""

    @abstractmethod
    def exists_issue(self, issue_id: str) -> bool:
        """Return whether ``issue_id`` can be an issue key of this site."""

    @abstractmethod
    def release_version(self, project_key: str, version: Version) -> None:
        """Mark ``version`` of ``project_key`` as released."""

    @abstractmethod
    def migrate_issues_to_fix_version(self, project_key: str, version: str, jql: str) -> list[str]:
        """Replace the fix versions of all issues matching ``jql`` with ``version``.

        Returns:
            Keys of the updated issues; empty when the version does not exist.

        Raises:
            FixVersionUpdateError: On the first issue that cannot be updated

        """

    @abstractmethod
    def replace_fix_version(
        self,
        project_key: str,
        from_version: str,
        to_version: str,
        jql: str,
    ) -> list[str]:
        """Replace ``from_version`` by ``to_version`` in all issues matching ``jql``.

        Returns:
            Keys of the updated issues; empty when ``to_version`` does not exist.

        Raises:
            FixVersionUpdateError: On the first issue that cannot be updated

        """

    @abstractmethod
    def progress_workflow_action(
        self,
        issue_key: str,
        action_id: str,
        fields: list[FieldValue] | None = None,
    ) -> str | None:
        """Perform a workflow action on an issue and return its new status name."""

    @abstractmethod
    def get_action_id_for_issue(self, issue_key: str, workflow_action: str) -> str | None:
        """Return the id of the action named ``workflow_action`` (case-insensitive)."""

    @abstractmethod
    def get_status_by_id(self, status_id: str) -> str | None:
        """Return the name of a status."""

    @abstractmethod
    def create_issue(
        self,
        project_key: str,
        description: str,
        assignee: str | None,
        components: list[Component],
        summary: str,
    ) -> Issue:
        """Create an issue and return it as stored by JIRA."""

    @abstractmethod
    def add_comment_without_constraints(self, issue_id: str, comment: str) -> None:
        """Add a comment visible to everyone who can see the issue."""

    @abstractmethod
    def get_issue_by_key(self, issue_id: str) -> Issue | None:
        """Return the issue ``issue_id`` without checking the key pattern first."""

    @abstractmethod
    def get_components(self, project_key: str) -> list[Component]:
        """Return all components of a project."""

    @abstractmethod
    def add_version(self, version: str, project_key: str) -> Version:
        """Create the version named ``version`` in ``project_key``."""

    def get_issue_async(self, issue_id: str) -> "Future[Issue]":
        """Start fetching an issue; resolve the returned future to wait for it."""
        raise self._not_supported("get_issue_async")

    def get_project_keys_async(self) -> "Future[list[Project]]":
        """Start listing projects; resolve the returned future to wait for it."""
        raise self._not_supported("get_project_keys_async")

    def close(self) -> None:
        """Release resources held by the session."""
