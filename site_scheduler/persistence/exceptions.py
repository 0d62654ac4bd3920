"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError, which is the
"storage error" kind surfaced to callers of the site service.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Raised when database connection or initialization fails.

    Examples:
    - Invalid database URL
    - Database file not accessible
    - get_session() called before init_database()
    """

    pass


class RecordNotFoundError(PersistenceError):
    """Raised when a required database record is not found.

    Optional lookups return None instead of raising this.
    """

    pass


class SiteNotFoundError(RecordNotFoundError):
    """Raised when an operation addresses a site id that does not exist."""

    def __init__(self, site_id: str):
        self.site_id = site_id
        super().__init__(f"Site {site_id} not found")


class DataIntegrityError(PersistenceError):
    """Raised when a database constraint is violated.

    Examples:
    - Duplicate site name
    - Site referencing a source that does not exist
    - Duplicate schedule task name
    """

    pass
