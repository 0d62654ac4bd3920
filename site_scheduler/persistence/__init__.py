"""Persistence layer (SQLAlchemy).

Public API:
    # Database initialization and session management
    - init_database(database_url: str, echo: bool = False) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Repository classes
    - SiteRepository: CRUD operations for sites
    - ScheduledJobsAdminRepository: upsert/delete of scheduled jobs by task name

    # Exceptions
    - PersistenceError: Base exception for all persistence errors
    - DatabaseConnectionError: Database connection/initialization failures
    - RecordNotFoundError / SiteNotFoundError: Required record not found
    - DataIntegrityError: Constraint violations

Example usage:
    >>> from site_scheduler.persistence import init_database, get_session, SiteRepository
    >>> init_database("sqlite:///./data/site_scheduler.db")
    >>> with get_session() as session:
    ...     site = SiteRepository(session).get_by_name("storefront")
"""

from .database import close_database, get_engine, get_session, init_database

from .repositories import ScheduledJobsAdminRepository, SiteRepository

from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
    SiteNotFoundError,
)

__all__ = [
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    "SiteRepository",
    "ScheduledJobsAdminRepository",
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "SiteNotFoundError",
    "DataIntegrityError",
]
