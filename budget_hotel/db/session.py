"""
Database engine and session management.

Provides SQLAlchemy session management, the request-scoped session
dependency and the session-wide soft-delete filter.
"""

import time
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, with_loader_criteria

from budget_hotel.config.settings import settings
from budget_hotel.core.logging import get_logger
from budget_hotel.models.base import SoftDeleteModel

logger = get_logger(__name__)

INCLUDE_DELETED = "include_deleted"


def use_immediate_transactions(engine: Engine) -> None:
    """
    Make every SQLite transaction take the database write lock up front.

    SQLite has no ``SELECT ... FOR UPDATE``; ``BEGIN IMMEDIATE`` gives the
    same serialisation for check-then-insert sequences such as the room
    overlap check. pysqlite's own implicit BEGIN is switched off so the
    transaction boundaries are the ones SQLAlchemy emits.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, **kwargs) -> Engine:
    """Create an engine with pool settings appropriate for the backend"""
    options = {"echo": settings.DB_ECHO, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False, "timeout": settings.SQLITE_BUSY_TIMEOUT}
    else:
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_POOL_OVERFLOW,
            pool_recycle=3600,
        )
    options.update(kwargs)
    engine = create_engine(url, **options)
    if url.startswith("sqlite"):
        use_immediate_transactions(engine)
    return engine


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine
)


@event.listens_for(Session, "do_orm_execute")
def _exclude_soft_deleted(execute_state):
    """Hide soft-deleted rows from top-level ORM selects"""
    if (
        execute_state.is_select
        and not execute_state.is_column_load
        and not execute_state.is_relationship_load
        and not execute_state.execution_options.get(INCLUDE_DELETED, False)
    ):
        execute_state.statement = execute_state.statement.options(
            with_loader_criteria(
                SoftDeleteModel,
                lambda cls: cls.is_deleted.is_(False),
                include_aliases=True,
            )
        )


@event.listens_for(Engine, "before_cursor_execute")
def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    conn.info.setdefault('query_start_time', []).append(time.perf_counter())


@event.listens_for(Engine, "after_cursor_execute")
def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Log slow queries"""
    total_time = time.perf_counter() - conn.info['query_start_time'].pop()
    if total_time > settings.SLOW_QUERY_SECONDS:
        logger.warning(f"Slow query detected ({total_time:.4f}s): {statement[:100]}...")


def get_db() -> Generator[Session, None, None]:
    """Request-scoped database session"""
    session = SessionLocal()
    try:
        yield session
    except Exception as e:
        logger.error(f"Database session error: {str(e)}")
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Context manager for sessions used outside a request"""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception as e:
        logger.error(f"Database context error: {str(e)}")
        session.rollback()
        raise
    finally:
        session.close()
