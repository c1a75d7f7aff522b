"""JIRA session backends and the factory choosing between them.

Backends are exposed lazily so that importing the package does not pull in
zeep or jira until a session is actually needed.
"""

__all__ = ["JiraInteractionSession", "JiraRestSession", "JiraSoapSession", "create_session"]


def __getattr__(name: str) -> object:  # pragma: no cover - simple lazy import shim
    if name == "JiraInteractionSession":
        from .session import JiraInteractionSession as _JiraInteractionSession  # noqa: PLC0415

        return _JiraInteractionSession
    if name == "JiraRestSession":
        from .rest_session import JiraRestSession as _JiraRestSession  # noqa: PLC0415

        return _JiraRestSession
    if name == "JiraSoapSession":
        from .soap_session import JiraSoapSession as _JiraSoapSession  # noqa: PLC0415

        return _JiraSoapSession
    if name == "create_session":
        from .session_manager import create_session as _create_session  # noqa: PLC0415

        return _create_session
    raise AttributeError(name)
