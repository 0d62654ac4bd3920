"""Data access layer (repositories) for sites and scheduled jobs.

Repositories operate on the session they are given and only flush; the
caller's get_session() block owns commit and rollback. They return domain
models rather than ORM models.
"""

import logging
import uuid
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from site_scheduler.domain.models import (
    CreateSiteRequest,
    Schedule,
    Site,
    SitesListOptions,
    UpdateSiteRequest,
)
from site_scheduler.scheduling.gateway import ScheduleAdminGateway, UpsertTaskParams
from site_scheduler.utils.timestamps import utc_now

from .exceptions import DataIntegrityError, PersistenceError, SiteNotFoundError
from .schema import ScheduledJobModel, SiteModel

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class SiteRepository:
    """Repository for site CRUD operations."""

    def __init__(self, session: Session, clock: Clock = utc_now):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session for database operations
            clock: Source of the current UTC time (overridable in tests)
        """
        self.session = session
        self.clock = clock

    def create(self, request: CreateSiteRequest) -> Site:
        """Insert a new site.

        last_enabled is set to the creation time when the site starts enabled.

        Args:
            request: Validated creation request

        Returns:
            Persisted Site domain model

        Raises:
            DataIntegrityError: Duplicate name, unknown source_id or unknown
                http_alert_sink_id
            PersistenceError: If database error occurs
        """
        now = self.clock()
        site_model = SiteModel(
            id=str(uuid.uuid4()),
            name=request.name,
            enabled=request.enabled,
            run_every_minutes=request.run_every_minutes,
            source_id=request.source_id,
            alert_mode=request.alert_mode,
            scope=request.scope,
            http_alert_sink_id=request.http_alert_sink_id,
            last_enabled=now if request.enabled else None,
            created_at=now,
            updated_at=now,
        )

        try:
            self.session.add(site_model)
            self.session.flush()
            return site_model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error creating site {request.name!r}: {e}", exc_info=True)
            raise DataIntegrityError(
                f"Failed to create site due to constraint violation "
                f"(duplicate name, unknown source or unknown alert sink): {e}"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating site {request.name!r}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create site: {e}") from e

    def get_by_id(self, site_id: str) -> Optional[Site]:
        """Retrieve a site by id, or None if it does not exist.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            site_model = self.session.get(SiteModel, site_id)
            return site_model.to_domain() if site_model else None

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving site {site_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve site: {e}") from e

    def get_by_name(self, name: str) -> Optional[Site]:
        """Retrieve a site by exact name, or None if it does not exist.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = select(SiteModel).where(SiteModel.name == name.strip())
            site_model = self.session.execute(stmt).scalar_one_or_none()
            return site_model.to_domain() if site_model else None

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving site by name {name!r}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve site: {e}") from e

    def update(self, site_id: str, request: UpdateSiteRequest) -> Site:
        """Apply a partial update and return the full post-update site.

        The site row is selected FOR UPDATE so concurrent mutations of the
        same site are serialized until the enclosing transaction ends. SQLite
        has no row locks; there the transaction already holds the database
        write lock (see database._configure_sqlite).
        Setting enabled=True refreshes last_enabled.

        Args:
            site_id: Site identifier
            request: Validated partial update

        Returns:
            Updated Site domain model

        Raises:
            SiteNotFoundError: If the site does not exist
            DataIntegrityError: Duplicate name, unknown source_id or unknown
                http_alert_sink_id
            PersistenceError: If database error occurs
        """
        try:
            stmt = select(SiteModel).where(SiteModel.id == site_id).with_for_update()
            site_model = self.session.execute(stmt).scalar_one_or_none()
            if site_model is None:
                raise SiteNotFoundError(site_id)

            now = self.clock()
            for field, value in request.changes().items():
                setattr(site_model, field, value)
            if request.enabled:
                site_model.last_enabled = now
            site_model.updated_at = now

            self.session.flush()
            return site_model.to_domain()

        except SiteNotFoundError:
            raise
        except IntegrityError as e:
            logger.error(f"Integrity error updating site {site_id}: {e}", exc_info=True)
            raise DataIntegrityError(
                f"Failed to update site due to constraint violation: {e}"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error updating site {site_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update site: {e}") from e

    def delete(self, site_id: str) -> bool:
        """Delete a site.

        Returns:
            True if a site was deleted, False if it did not exist

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            result = self.session.execute(delete(SiteModel).where(SiteModel.id == site_id))
            self.session.flush()
            return result.rowcount > 0

        except SQLAlchemyError as e:
            logger.error(f"Error deleting site {site_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete site: {e}") from e

    def list(self, options: Optional[SitesListOptions] = None) -> List[Site]:
        """List sites with optional filters, sorting and paging.

        Args:
            options: Listing options (defaults: newest first, 50 per page)

        Returns:
            List of Site domain models

        Raises:
            PersistenceError: If database error occurs
        """
        options = options or SitesListOptions()

        try:
            stmt = select(SiteModel)
            if options.q:
                stmt = stmt.where(SiteModel.name.icontains(options.q, autoescape=True))
            if options.enabled is not None:
                stmt = stmt.where(SiteModel.enabled == options.enabled)
            if options.scope:
                stmt = stmt.where(SiteModel.scope == options.scope)

            sort_column = getattr(SiteModel, options.sort)
            if options.dir == "asc":
                stmt = stmt.order_by(sort_column.asc(), SiteModel.id.asc())
            else:
                stmt = stmt.order_by(sort_column.desc(), SiteModel.id.desc())

            stmt = stmt.limit(options.limit).offset(options.offset)
            site_models = self.session.execute(stmt).scalars().all()

            return [site_model.to_domain() for site_model in site_models]

        except SQLAlchemyError as e:
            logger.error(f"Error listing sites: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list sites: {e}") from e


class ScheduledJobsAdminRepository(ScheduleAdminGateway):
    """Admin operations on scheduled_jobs keyed by task name.

    The executor that polls scheduled_jobs and maintains last_queued_at is a
    separate component; this repository only creates, updates and deletes rows.
    """

    def __init__(self, session: Session, clock: Clock = utc_now):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session for database operations
            clock: Source of the current UTC time (overridable in tests)
        """
        self.session = session
        self.clock = clock

    def upsert_by_task_name(self, params: UpsertTaskParams) -> None:
        """Create or update the scheduled job for params.task_name.

        Updates payload and scheduled_interval; preserves last_queued_at and
        created_at on existing rows.

        Raises:
            ValueError: If task_name is empty or interval_seconds <= 0
            DataIntegrityError: If a constraint is violated
            PersistenceError: If database error occurs
        """
        if not params.task_name:
            raise ValueError("task_name is required")
        if params.interval_seconds <= 0:
            raise ValueError("interval must be positive")

        now = self.clock()

        try:
            stmt = (
                select(ScheduledJobModel)
                .where(ScheduledJobModel.task_name == params.task_name)
                .with_for_update()
            )
            existing = self.session.execute(stmt).scalar_one_or_none()

            if existing:
                existing.scheduled_interval = params.interval_seconds
                existing.payload = params.payload
                existing.updated_at = now
            else:
                self.session.add(
                    ScheduledJobModel(
                        task_name=params.task_name,
                        payload=params.payload,
                        scheduled_interval=params.interval_seconds,
                        created_at=now,
                        updated_at=now,
                    )
                )

            self.session.flush()

        except IntegrityError as e:
            logger.error(
                f"Integrity error upserting scheduled job {params.task_name}: {e}", exc_info=True
            )
            raise DataIntegrityError(
                f"Failed to upsert scheduled job due to constraint violation: {e}"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error upserting scheduled job {params.task_name}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to upsert scheduled job: {e}") from e

    def delete_by_task_name(self, task_name: str) -> bool:
        """Delete the scheduled job for task_name.

        Returns:
            True if a row was deleted, False if none existed

        Raises:
            ValueError: If task_name is empty
            PersistenceError: If database error occurs
        """
        if not task_name:
            raise ValueError("task_name is required")

        try:
            result = self.session.execute(
                delete(ScheduledJobModel).where(ScheduledJobModel.task_name == task_name)
            )
            self.session.flush()
            return result.rowcount > 0

        except SQLAlchemyError as e:
            logger.error(f"Error deleting scheduled job {task_name}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete scheduled job: {e}") from e

    def get_by_task_name(self, task_name: str) -> Optional[Schedule]:
        """Retrieve a scheduled job by task name, or None.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = select(ScheduledJobModel).where(ScheduledJobModel.task_name == task_name)
            job_model = self.session.execute(stmt).scalar_one_or_none()
            return job_model.to_domain() if job_model else None

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving scheduled job {task_name}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve scheduled job: {e}") from e

    def list_all(self) -> List[Schedule]:
        """Retrieve all scheduled jobs ordered by task name.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = select(ScheduledJobModel).order_by(ScheduledJobModel.task_name)
            job_models = self.session.execute(stmt).scalars().all()
            return [job_model.to_domain() for job_model in job_models]

        except SQLAlchemyError as e:
            logger.error(f"Error listing scheduled jobs: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list scheduled jobs: {e}") from e
