"""Site -> schedule reconciliation.

The desired schedule is computed from the full post-mutation site snapshot,
never from which fields a request touched:

    enabled  -> upsert(task_name_for_site(id), run_every_minutes * 60)
    disabled -> delete(task_name_for_site(id))
    deleted  -> delete(task_name_for_site(id))

Deleting a missing row is a no-op, so disabled sites without a schedule see
no change. The reconciler runs inside the caller's unit of work; it does not
commit, retry or roll back.
"""

from typing import Any, Dict, Optional

from site_scheduler.domain.models import Site
from site_scheduler.logging import get_logger
from site_scheduler.logging.context import log_context
from site_scheduler.persistence.exceptions import PersistenceError

from .exceptions import InvalidIntervalError, ScheduleReconcileError
from .gateway import ScheduleAdminGateway, UpsertTaskParams
from .interval import minutes_to_interval_seconds
from .naming import task_name_for_site

logger = get_logger(__name__, component="reconciler")


def schedule_payload(site: Site) -> Dict[str, Any]:
    """Build the executor payload for a site's schedule row."""
    return {"site_id": site.id, "source_id": site.source_id}


def desired_schedule(site: Site) -> Optional[UpsertTaskParams]:
    """Compute the schedule row a site should have.

    Args:
        site: Post-mutation site snapshot

    Returns:
        UpsertTaskParams for an enabled site, None for a disabled one

    Raises:
        InvalidIntervalError: If the site is enabled with run_every_minutes <= 0
    """
    if not site.enabled:
        return None

    if site.run_every_minutes <= 0:
        raise InvalidIntervalError(site.id, site.run_every_minutes)

    return UpsertTaskParams(
        task_name=task_name_for_site(site.id),
        interval_seconds=minutes_to_interval_seconds(site.run_every_minutes),
        payload=schedule_payload(site),
    )


class SiteReconciler:
    """Drives a ScheduleAdminGateway to match site state."""

    def __init__(self, gateway: ScheduleAdminGateway):
        self.gateway = gateway

    def reconcile(self, site: Site) -> Optional[UpsertTaskParams]:
        """Bring the schedule row for a created or updated site in line with it.

        Returns:
            The params that were upserted, or None if the row was removed

        Raises:
            InvalidIntervalError: Before any gateway call, for invalid intervals
            ScheduleReconcileError: If the gateway fails
        """
        desired = desired_schedule(site)
        task_name = task_name_for_site(site.id)

        with log_context(site_id=site.id, task_name=task_name):
            if desired is None:
                self._delete(site.id, task_name)
                return None

            try:
                self.gateway.upsert_by_task_name(desired)
            except PersistenceError as e:
                self._log_failure(site.id, "upsert", e)
                raise ScheduleReconcileError(site.id, e) from e

            logger.info(
                "Schedule upserted",
                extra={
                    "event": "schedule.upserted",
                    "interval_seconds": desired.interval_seconds,
                },
            )
            return desired

    def remove(self, site_id: str) -> bool:
        """Delete the schedule row of a deleted site.

        Returns:
            True if a row was removed

        Raises:
            ScheduleReconcileError: If the gateway fails
        """
        task_name = task_name_for_site(site_id)
        with log_context(site_id=site_id, task_name=task_name):
            return self._delete(site_id, task_name)

    def _delete(self, site_id: str, task_name: str) -> bool:
        try:
            removed = self.gateway.delete_by_task_name(task_name)
        except PersistenceError as e:
            self._log_failure(site_id, "delete", e)
            raise ScheduleReconcileError(site_id, e) from e

        logger.info(
            "Schedule removed" if removed else "No schedule to remove",
            extra={"event": "schedule.deleted", "removed": removed},
        )
        return removed

    def _log_failure(self, site_id: str, operation: str, error: Exception) -> None:
        logger.error(
            f"Schedule {operation} failed for site {site_id}: {error}",
            extra={
                "event": "schedule.reconcile_failed",
                "operation": operation,
                "error_type": type(error).__name__,
            },
        )
