"""Exceptions raised by schedule reconciliation."""

from site_scheduler.persistence.exceptions import PersistenceError


class InvalidIntervalError(ValueError):
    """Raised when an enabled site has a non-positive run interval."""

    def __init__(self, site_id: str, run_every_minutes: int):
        self.site_id = site_id
        self.run_every_minutes = run_every_minutes
        super().__init__(
            f"run_every_minutes must be > 0 for enabled site {site_id}, got {run_every_minutes}"
        )


class ScheduleReconcileError(PersistenceError):
    """Raised when the schedule store rejects an upsert or delete for a site.

    The underlying storage error is available as __cause__.
    """

    def __init__(self, site_id: str, cause: Exception):
        self.site_id = site_id
        super().__init__(f"schedule operation failed for site {site_id}: {cause}")
