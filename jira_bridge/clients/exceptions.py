"""Common exceptions for all session backends."""


class ClientError(Exception):
    """Base exception for all client errors."""


class ClientConnectionError(ClientError):
    """Error when connection to a JIRA server fails (DNS, TCP, TLS, HTTP 5xx)."""


class AuthenticationError(ClientError):
    """Error when credentials are rejected or required but absent."""


class InvalidUrlError(ClientError):
    """Error when a site URL cannot be used to reach a JIRA server."""


class ApiError(ClientError):
    """General error reported by the remote JIRA service."""


class RemoteValidationError(ApiError):
    """Error when JIRA rejects a request as invalid (unknown group, bad field...)."""


class OperationCancelledError(ClientError):
    """Error when a pending backend call was cancelled before it completed."""


class NotSupportedError(ClientError):
    """Error when an operation is invoked on a backend that does not implement it."""

    def __init__(self, operation: str, backend: str) -> None:
        """Initialize with the name of the operation and the backend that lacks it."""
        super().__init__(f"{operation} is not supported by the {backend} backend")
        self.operation = operation
        self.backend = backend


class FixVersionUpdateError(ApiError):
    """Error when updating the fix versions of one issue in a bulk run fails.

    Issues updated before the failure keep their new fix versions.
    """

    def __init__(self, issue_key: str, updated_keys: list[str]) -> None:
        """Initialize with the failing issue and the issues already updated."""
        super().__init__(
            f"Failed to update fix versions of {issue_key} "
            f"after updating {len(updated_keys)} issue(s)",
        )
        self.issue_key = issue_key
        self.updated_keys = updated_keys
