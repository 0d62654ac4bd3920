"""Admin contract for the schedule store.

The reconciler only needs to upsert and delete rows by task name. The
SQLAlchemy implementation lives in persistence.repositories; tests substitute
mocks of this class.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from site_scheduler.domain.models import Schedule


@dataclass(frozen=True)
class UpsertTaskParams:
    """
    Desired state of one schedule row.

    Attributes:
        task_name: Unique task name (row key)
        interval_seconds: Seconds between runs, must be positive
        payload: JSON-serializable payload handed to the executor
    """

    task_name: str
    interval_seconds: int
    payload: Optional[Dict[str, Any]] = None


class ScheduleAdminGateway(ABC):
    """Upsert/delete access to schedule rows keyed by task name."""

    @abstractmethod
    def upsert_by_task_name(self, params: UpsertTaskParams) -> None:
        """Create the row for params.task_name or replace its interval and payload.

        Idempotent: repeated calls with the same params leave exactly one row.

        Raises:
            ValueError: If task_name is empty or interval_seconds is not positive
            PersistenceError: On storage failure
        """

    @abstractmethod
    def delete_by_task_name(self, task_name: str) -> bool:
        """Delete the row for task_name.

        Returns:
            True if a row was deleted, False if none existed

        Raises:
            ValueError: If task_name is empty
            PersistenceError: On storage failure
        """

    @abstractmethod
    def get_by_task_name(self, task_name: str) -> Optional[Schedule]:
        """Return the row for task_name, or None."""

    @abstractmethod
    def list_all(self) -> List[Schedule]:
        """Return all rows ordered by task name."""
