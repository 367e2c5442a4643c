from sqlalchemy import create_engine, event, text
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
from sqlalchemy.engine import Engine
import time
import logging

from mathtutor.config import DATABASE_URL, SLOW_QUERY_THRESHOLD_MS

logger = logging.getLogger(__name__)

# Set up query logger
query_logger = logging.getLogger("sqlalchemy.query_timing")

is_sqlite = DATABASE_URL.startswith("sqlite")

if is_sqlite:
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        pool_pre_ping=True,
    )
else:
    # PostgreSQL with production-ready pool settings
    engine = create_engine(
        DATABASE_URL,
        pool_pre_ping=True,      # Detect stale connections
        pool_recycle=1800,       # Recycle connections after 30 minutes
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
    )


@event.listens_for(Engine, "connect")
def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite only enforces ON DELETE CASCADE with this pragma."""
    if "sqlite" in type(dbapi_connection).__module__:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@event.listens_for(Engine, "before_cursor_execute")
def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Record query start time."""
    conn.info.setdefault("query_start_time", []).append(time.perf_counter())


@event.listens_for(Engine, "after_cursor_execute")
def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Log slow queries."""
    start_times = conn.info.get("query_start_time", [])
    if start_times:
        total_time_ms = (time.perf_counter() - start_times.pop()) * 1000

        if total_time_ms > SLOW_QUERY_THRESHOLD_MS:
            truncated_statement = statement[:500] + "..." if len(statement) > 500 else statement
            query_logger.warning(
                f"SLOW QUERY ({total_time_ms:.2f}ms): {truncated_statement}"
            )


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency for FastAPI routes"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create tables that do not exist yet."""
    # Import models so they are registered on Base.metadata
    from mathtutor.models import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def check_database_connection(db_engine: Engine = None) -> bool:
    """Run a trivial query against the database."""
    try:
        with (db_engine or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
