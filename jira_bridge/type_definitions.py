"""Type definitions for the JIRA session bridge.

This module contains the configuration shapes and literal aliases shared by
the configuration loader, the site registry and the session factory.
"""

from typing import Literal, NotRequired, TypedDict

type BackendType = Literal["soap", "rest"]

type LogLevel = Literal[
    "DEBUG",
    "INFO",
    "NOTICE",
    "WARNING",
    "ERROR",
    "CRITICAL",
    "SUCCESS",
]

type SectionName = Literal["sites", "credentials", "logging", "defaults"]

BACKENDS: tuple[str, ...] = ("soap", "rest")

LOG_LEVELS: tuple[str, ...] = (
    "DEBUG",
    "INFO",
    "NOTICE",
    "WARNING",
    "ERROR",
    "CRITICAL",
    "SUCCESS",
)


class SiteConfig(TypedDict):
    """Configuration for one JIRA instance."""

    url: str
    name: NotRequired[str]
    backend: NotRequired[BackendType]
    use_http_auth: NotRequired[bool]
    issue_pattern: NotRequired[str | None]
    lenient_anonymous_probe: NotRequired[bool]
    verify_ssl: NotRequired[bool]
    timeout: NotRequired[int]


class CredentialConfig(TypedDict):
    """Username/password pair bound to a host name."""

    host: str
    username: str
    password: str


class LoggingConfig(TypedDict, total=False):
    """Logging configuration."""

    level: LogLevel
    file: str | None


class DefaultsConfig(TypedDict, total=False):
    """Values applied to sites that do not set them."""

    backend: BackendType
    verify_ssl: bool
    timeout: int


class Config(TypedDict):
    """Complete configuration."""

    sites: list[SiteConfig]
    credentials: list[CredentialConfig]
    logging: LoggingConfig
    defaults: DefaultsConfig
