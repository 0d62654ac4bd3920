"""Database connection and session management.

One get_session() block is one unit of work: the site write and the schedule
write issued inside it commit together or roll back together.

SQLite ignores SELECT ... FOR UPDATE, so SQLite transactions open with
BEGIN IMMEDIATE and hold the database write lock from their first statement.
Concurrent units of work on the same file run one after another.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from site_scheduler.logging import get_logger

from .exceptions import DatabaseConnectionError, DataIntegrityError, PersistenceError

_engine: Engine | None = None
_session_factory: sessionmaker | None = None

logger = get_logger(__name__, component="database")


def init_database(database_url: str, echo: bool = False) -> None:
    """Initialize the engine and session factory, creating tables if missing.

    Call once at startup. Calling again replaces the previous engine.

    Args:
        database_url: SQLAlchemy URL (e.g. "sqlite:///./data/site_scheduler.db")
        echo: Log emitted SQL

    Raises:
        DatabaseConnectionError: If initialization fails
    """
    global _engine, _session_factory

    if not database_url or not isinstance(database_url, str):
        raise DatabaseConnectionError("Database URL must be a non-empty string")

    try:
        url = make_url(database_url)
    except ArgumentError as e:
        raise DatabaseConnectionError(f"Invalid database URL: {e}") from e

    logger.info(
        "Initializing database",
        extra={
            "event": "database.initializing",
            "database_url": url.render_as_string(hide_password=True),
        },
    )

    close_database()

    try:
        is_sqlite = url.get_backend_name() == "sqlite"
        if is_sqlite and url.database and url.database != ":memory:":
            db_file = Path(url.database)
            if not db_file.parent.exists():
                logger.info(f"Creating database directory: {db_file.parent}")
                db_file.parent.mkdir(parents=True, exist_ok=True)

        engine = create_engine(
            url,
            echo=echo,
            pool_pre_ping=True,
            connect_args={"check_same_thread": False, "timeout": 30} if is_sqlite else {},
        )

        if is_sqlite:
            _configure_sqlite(engine)

        _validate_connection(engine)

        from .schema import create_schema

        create_schema(engine)

        _engine = engine
        _session_factory = sessionmaker(
            bind=engine,
            autoflush=True,
            expire_on_commit=False,
        )

        logger.info(
            "Database initialized successfully",
            extra={"event": "database.initialized"},
        )

    except DatabaseConnectionError:
        raise
    except Exception as e:
        error_msg = f"Failed to initialize database: {e}"
        logger.error(error_msg, exc_info=True)
        raise DatabaseConnectionError(error_msg) from e


def _configure_sqlite(engine: Engine) -> None:
    """Enable foreign keys and take the write lock when a transaction begins.

    pysqlite defers BEGIN until the first write, so a read-modify-write could
    read a row another transaction is about to change. Its own transaction
    handling is switched off and SQLAlchemy's begin event emits BEGIN IMMEDIATE.
    """

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def _validate_connection(engine: Engine) -> None:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        logger.debug("Database connection validated successfully")
    except Exception as e:
        raise DatabaseConnectionError(f"Failed to validate database connection: {e}") from e


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Provide a session that commits on success and rolls back on exception.

    Yields:
        Session: SQLAlchemy session bound to the initialized engine

    SQLAlchemy errors raised inside the block or at commit are re-raised as
    DataIntegrityError (constraint violations) or PersistenceError. Other
    exceptions propagate unchanged after the rollback.

    Raises:
        DatabaseConnectionError: If the database is not initialized
        DataIntegrityError: If a constraint is violated
        PersistenceError: On other database errors

    Example:
        >>> with get_session() as session:
        ...     site = SiteRepository(session).get_by_id(site_id)
    """
    if _session_factory is None:
        raise DatabaseConnectionError(
            "Database not initialized. Call init_database() before using get_session()"
        )

    session = _session_factory()
    try:
        yield session
        session.commit()
        logger.debug(
            "Database session committed",
            extra={"event": "database.session.committed"},
        )
    except IntegrityError as e:
        _rollback(session, e)
        raise DataIntegrityError(f"Transaction failed due to constraint violation: {e}") from e
    except SQLAlchemyError as e:
        _rollback(session, e)
        raise PersistenceError(f"Transaction failed: {e}") from e
    except Exception as e:
        _rollback(session, e)
        raise
    finally:
        session.close()


def _rollback(session: Session, error: Exception) -> None:
    session.rollback()
    logger.warning(
        f"Database session rolled back due to exception: {error}",
        extra={
            "event": "database.session.rolled_back",
            "error_type": type(error).__name__,
        },
    )


def get_engine() -> Engine:
    """Return the initialized engine.

    Raises:
        DatabaseConnectionError: If the database is not initialized
    """
    if _engine is None:
        raise DatabaseConnectionError(
            "Database not initialized. Call init_database() before using get_engine()"
        )
    return _engine


def close_database() -> None:
    """Dispose of the engine. Safe to call when not initialized."""
    global _engine, _session_factory

    if _engine is not None:
        logger.info("Closing database connections")
        _engine.dispose()
    _engine = None
    _session_factory = None
