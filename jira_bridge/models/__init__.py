"""Models package for data structures used in the application."""

from jira_bridge.models.entities import (
    Component,
    FieldValue,
    Group,
    Issue,
    IssueType,
    Project,
    ProjectRole,
    ServerInfo,
    Status,
    Version,
)

__all__ = [
    "Component",
    "FieldValue",
    "Group",
    "Issue",
    "IssueType",
    "Project",
    "ProjectRole",
    "ServerInfo",
    "Status",
    "Version",
]
