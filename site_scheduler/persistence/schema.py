"""Database schema definition and ORM models.

Defines the sites, sources, http_alert_sinks and scheduled_jobs tables and
their conversion to domain models. scheduled_jobs rows are keyed by task_name
and carry no foreign key to sites; the link is the task name derived from the
site id.
"""

import logging
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from site_scheduler.domain.models import Schedule, Site

logger = logging.getLogger(__name__)

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class SourceModel(Base):
    """ORM model for sources table.

    Sources are managed by another subsystem; the table exists so sites can
    reference them with a foreign key.
    """

    __tablename__ = "sources"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False)
    value = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False)


class HttpAlertSinkModel(Base):
    """ORM model for http_alert_sinks table.

    Alert delivery lives in another subsystem; sites reference sinks by id.
    """

    __tablename__ = "http_alert_sinks"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(512), nullable=False, unique=True)
    uri = Column(String(1024), nullable=False)
    method = Column(String(10), nullable=False, default="POST")
    created_at = Column(DateTime(timezone=True), nullable=False)


class SiteModel(Base):
    """ORM model for sites table."""

    __tablename__ = "sites"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False, unique=True)
    enabled = Column(Boolean, nullable=False, default=True)
    run_every_minutes = Column(Integer, nullable=False)
    source_id = Column(String(36), ForeignKey("sources.id"), nullable=False)
    alert_mode = Column(String(16), nullable=False, default="active", server_default="active")
    scope = Column(Text, nullable=True)
    http_alert_sink_id = Column(
        String(36), ForeignKey("http_alert_sinks.id", ondelete="RESTRICT"), nullable=True
    )

    last_enabled = Column(DateTime(timezone=True), nullable=True)
    last_run = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint("run_every_minutes > 0", name="ck_sites_run_every_minutes_positive"),
        CheckConstraint("alert_mode IN ('active', 'muted')", name="ck_sites_alert_mode"),
        Index("idx_sites_enabled", "enabled"),
        Index("idx_sites_created_at", "created_at"),
        Index("idx_sites_scope", "scope"),
        Index("idx_sites_http_alert_sink_id", "http_alert_sink_id"),
    )

    def to_domain(self) -> Site:
        """Convert ORM model to domain model."""
        return Site(
            id=self.id,
            name=self.name,
            enabled=self.enabled,
            run_every_minutes=self.run_every_minutes,
            source_id=self.source_id,
            alert_mode=self.alert_mode,
            scope=self.scope,
            http_alert_sink_id=self.http_alert_sink_id,
            last_enabled=self.last_enabled,
            last_run=self.last_run,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class ScheduledJobModel(Base):
    """ORM model for scheduled_jobs table.

    One row per task name. last_queued_at belongs to the executor and is
    never touched by admin upserts.
    """

    __tablename__ = "scheduled_jobs"

    id = Column(String(36), primary_key=True, default=_new_id)
    task_name = Column(Text, nullable=False, unique=True)
    payload = Column(JSON, nullable=True)
    scheduled_interval = Column(Integer, nullable=False)  # seconds
    last_queued_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint("scheduled_interval > 0", name="ck_scheduled_jobs_interval_positive"),
    )

    def to_domain(self) -> Schedule:
        """Convert ORM model to domain model."""
        return Schedule(
            task_name=self.task_name,
            interval_seconds=self.scheduled_interval,
            payload=self.payload,
            last_queued_at=self.last_queued_at,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)

        from sqlalchemy import inspect

        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")

    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
