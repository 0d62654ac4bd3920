"""Site service: site CRUD with schedule reconciliation.

Each mutation runs the site write and the schedule write inside a single
get_session() block. A failure in either rolls back both, so an enabled site
is never committed without its schedule and a disabled or deleted site never
keeps one.
"""

from contextlib import AbstractContextManager
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from site_scheduler.domain.models import (
    CreateSiteRequest,
    Schedule,
    Site,
    SitesListOptions,
    UpdateSiteRequest,
)
from site_scheduler.logging import get_logger
from site_scheduler.logging.context import log_context
from site_scheduler.persistence.database import get_session
from site_scheduler.persistence.exceptions import SiteNotFoundError
from site_scheduler.persistence.repositories import ScheduledJobsAdminRepository, SiteRepository
from site_scheduler.scheduling.gateway import ScheduleAdminGateway
from site_scheduler.scheduling.reconciler import SiteReconciler
from site_scheduler.utils.timestamps import utc_now

logger = get_logger(__name__, component="site_service")

SessionScope = Callable[[], AbstractContextManager[Session]]
GatewayFactory = Callable[[Session], ScheduleAdminGateway]


class SiteService:
    """Orchestrates site mutations and keeps scheduled_jobs in step.

    Attributes:
        session_scope: Context manager factory yielding one transactional session
        gateway_factory: Builds the schedule gateway bound to that session
        clock: Source of the current UTC time
    """

    def __init__(
        self,
        session_scope: SessionScope = get_session,
        gateway_factory: Optional[GatewayFactory] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.session_scope = session_scope
        self.clock = clock
        self.gateway_factory = gateway_factory or (
            lambda session: ScheduledJobsAdminRepository(session, clock=self.clock)
        )

    def create(self, request: CreateSiteRequest) -> Site:
        """Create a site and, if enabled, its schedule.

        Raises:
            DataIntegrityError: Duplicate name or unknown source
            ScheduleReconcileError: If the schedule write fails (site rolled back)
            PersistenceError: On other storage failures
        """
        with log_context(operation="site.create"):
            with self.session_scope() as session:
                site = SiteRepository(session, clock=self.clock).create(request)
                self._reconciler(session).reconcile(site)

            logger.info(
                f"Site created: {site.name}",
                extra={
                    "event": "site.created",
                    "site_id": site.id,
                    "enabled": site.enabled,
                    "run_every_minutes": site.run_every_minutes,
                },
            )
            return site

    def update(self, site_id: str, request: UpdateSiteRequest) -> Site:
        """Apply a partial update and reconcile the schedule from the result.

        Raises:
            SiteNotFoundError: If the site does not exist
            DataIntegrityError: Duplicate name or unknown source
            ScheduleReconcileError: If the schedule write fails (update rolled back)
            PersistenceError: On other storage failures
        """
        with log_context(operation="site.update", site_id=site_id):
            with self.session_scope() as session:
                site = SiteRepository(session, clock=self.clock).update(site_id, request)
                self._reconciler(session).reconcile(site)

            logger.info(
                "Site updated",
                extra={
                    "event": "site.updated",
                    "fields": sorted(request.changes()),
                    "enabled": site.enabled,
                    "run_every_minutes": site.run_every_minutes,
                },
            )
            return site

    def delete(self, site_id: str) -> bool:
        """Delete a site and its schedule.

        The schedule delete is issued even when the site does not exist, so a
        stray row for that id cannot survive.

        Returns:
            True if the site existed and was deleted

        Raises:
            ScheduleReconcileError: If the schedule delete fails (site rolled back)
            PersistenceError: On other storage failures
        """
        with log_context(operation="site.delete", site_id=site_id):
            with self.session_scope() as session:
                deleted = SiteRepository(session, clock=self.clock).delete(site_id)
                self._reconciler(session).remove(site_id)

            logger.info(
                "Site deleted" if deleted else "Site not found for delete",
                extra={"event": "site.deleted", "deleted": deleted},
            )
            return deleted

    def get_by_id(self, site_id: str) -> Site:
        """Return a site.

        Raises:
            SiteNotFoundError: If the site does not exist
        """
        with self.session_scope() as session:
            site = SiteRepository(session, clock=self.clock).get_by_id(site_id)
        if site is None:
            raise SiteNotFoundError(site_id)
        return site

    def list(self, options: Optional[SitesListOptions] = None) -> List[Site]:
        """Return a page of sites."""
        with self.session_scope() as session:
            return SiteRepository(session, clock=self.clock).list(options)

    def list_schedules(self) -> List[Schedule]:
        """Return every row in the schedule store."""
        with self.session_scope() as session:
            return self.gateway_factory(session).list_all()

    def _reconciler(self, session: Session) -> SiteReconciler:
        return SiteReconciler(self.gateway_factory(session))
