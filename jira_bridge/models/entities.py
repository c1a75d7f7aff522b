"""Entity models exchanged through the session capability interface."""

from datetime import datetime

from pydantic import BaseModel, Field


class Version(BaseModel):
    """A project version usable as a fix version."""

    id: str
    name: str
    released: bool = False
    archived: bool = False
    release_date: datetime | None = None


class Component(BaseModel):
    """A project component."""

    id: str
    name: str | None = None


class Status(BaseModel):
    """A workflow status."""

    id: str
    name: str


class Issue(BaseModel):
    """An issue as returned by either backend.

    ``status`` holds the status id; use the session's ``get_status_by_id``
    to obtain the name.
    """

    key: str
    id: str | None = None
    project: str | None = None
    summary: str | None = None
    description: str | None = None
    assignee: str | None = None
    type: str | None = None
    status: str | None = None
    fix_versions: list[Version] = Field(default_factory=list)
    components: list[Component] = Field(default_factory=list)


class Group(BaseModel):
    """A user group, used to restrict comment visibility."""

    name: str


class ProjectRole(BaseModel):
    """A project role, used to restrict comment visibility."""

    id: str | None = None
    name: str
    description: str | None = None


class IssueType(BaseModel):
    """An issue type."""

    id: str
    name: str
    description: str | None = None
    subtask: bool = False


class Project(BaseModel):
    """A project as listed by the REST backend."""

    id: str | None = None
    key: str
    name: str | None = None


class FieldValue(BaseModel):
    """A field assignment sent along with an update or workflow transition."""

    id: str
    values: list[str] = Field(default_factory=list)


class ServerInfo(BaseModel):
    """Server metadata returned by the connectivity probe."""

    version: str | None = None
    base_url: str | None = None
    build_number: str | None = None
    server_title: str | None = None
