"""Per-session memo of workflow status names."""

import threading
from collections.abc import Callable, Iterable

from jira_bridge.config import logger
from jira_bridge.models import Status


class StatusCache:
    """Maps status ids to names, fetching the full status table lazily.

    A lookup miss drops the table and fetches it once more, in case an
    administrator added a status since the table was loaded. A miss after
    that refetch returns ``None``.
    """

    def __init__(self, fetch_statuses: Callable[[], Iterable[Status]]) -> None:
        self._fetch_statuses = fetch_statuses
        self._statuses: dict[str, str] | None = None
        self._lock = threading.Lock()

    def get(self, status_id: str) -> str | None:
        """Return the name of ``status_id`` or ``None`` if JIRA does not know it."""
        with self._lock:
            name = self._known_statuses().get(status_id)
            if name is None:
                logger.warning(
                    "JIRA status could not be found: %s. Checking JIRA for new status types.",
                    status_id,
                )
                self._statuses = None
                name = self._known_statuses().get(status_id)
            return name

    def invalidate(self) -> None:
        """Forget the loaded status table."""
        with self._lock:
            self._statuses = None

    def _known_statuses(self) -> dict[str, str]:
        # caller holds self._lock
        if self._statuses is None:
            self._statuses = {status.id: status.name for status in self._fetch_statuses()}
            logger.debug("Loaded %d JIRA statuses", len(self._statuses))
        return self._statuses
