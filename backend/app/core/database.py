"""
Conexión a base de datos PostgreSQL

Este módulo centraliza TODAS las formas de acceso a la base de datos:
- SQLAlchemy (declaración del esquema y creación de tablas)
- psycopg2 directo (para queries SQL raw de los repositorios)

Author: TM3
Updated: 2025-10-17
"""
import time
import logging
from contextlib import contextmanager

import psycopg2
from psycopg2.extras import RealDictCursor, Json
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base

from .config import settings

logger = logging.getLogger(__name__)

CONNECTION_TIMEOUT = settings.DB_CONNECT_TIMEOUT


# ============================================================================
# SQLAlchemy Configuration (schema declaration)
# ============================================================================

# SQLAlchemy Engine (connects lazily, only used by init_db)
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    pool_size=5,
    max_overflow=10,
)

# Base para modelos
Base = declarative_base()


def init_db():
    """
    Create every table declared under app.models.

    Safe to run repeatedly: existing tables are left untouched.
    """
    import app.models  # noqa: F401  (registers tables on Base.metadata)

    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ensured (%d tables)", len(Base.metadata.tables))


# ============================================================================
# psycopg2 Direct Connections (for raw SQL queries)
# ============================================================================

def get_db_connection():
    """
    Get a direct psycopg2 database connection (returns tuples)

    Returns:
        psycopg2 connection object

    Raises:
        Exception if DATABASE_URL is not configured
    """
    database_url = settings.DATABASE_URL
    if not database_url:
        raise Exception("DATABASE_URL not configured")

    return psycopg2.connect(database_url, connect_timeout=CONNECTION_TIMEOUT)


def get_db_connection_dict():
    """
    Get a database connection with RealDictCursor (returns dictionaries)

    Use this for:
    - API responses (easier to serialize to JSON)
    - Code that expects dict results

    Example:
        conn = get_db_connection_dict()
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM orders")
        results = cursor.fetchall()  # Returns list of dicts
        cursor.close()
        conn.close()
    """
    database_url = settings.DATABASE_URL
    if not database_url:
        raise Exception("DATABASE_URL not configured")

    return psycopg2.connect(
        database_url,
        cursor_factory=RealDictCursor,
        connect_timeout=CONNECTION_TIMEOUT,
    )


@contextmanager
def transaction():
    """
    Yield a RealDictCursor inside a single transaction.

    Commits when the block finishes, rolls back and re-raises on any error,
    and always closes cursor and connection.

    Example:
        with transaction() as cursor:
            cursor.execute("UPDATE vouchers SET usage_count = usage_count + 1 WHERE id = %s", (1,))
    """
    conn = get_db_connection_dict()
    cursor = conn.cursor()
    try:
        yield cursor
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        cursor.close()
        conn.close()


def build_set_clause(fields: dict, allowed, json_fields=()):
    """
    Build "col = %s, ..." for an UPDATE from a dict of changed fields.

    Only whitelisted column names are used; values go through parameters.
    JSON columns are wrapped with psycopg2's Json adapter.

    Returns:
        Tuple of (set_clause, values)
    """
    update_fields = []
    values = []
    for column, value in fields.items():
        if column not in allowed:
            continue
        update_fields.append(f"{column} = %s")
        values.append(Json(value) if column in json_fields and value is not None else value)
    return ", ".join(update_fields), values


# ============================================================================
# Database Connection with Retry Logic (SSL Failure Recovery)
# ============================================================================

def _connect_with_retry(max_retries, retry_delay, **connect_kwargs):
    database_url = settings.DATABASE_URL
    if not database_url:
        raise Exception("DATABASE_URL not configured")

    last_error = None

    for attempt in range(1, max_retries + 1):
        try:
            logger.debug(f"Database connection attempt {attempt}/{max_retries}")
            conn = psycopg2.connect(
                database_url, connect_timeout=CONNECTION_TIMEOUT, **connect_kwargs
            )

            # Test connection with a simple query
            cursor = conn.cursor()
            cursor.execute("SELECT 1")
            cursor.close()

            logger.debug(f"Database connection successful on attempt {attempt}")
            return conn

        except psycopg2.OperationalError as e:
            last_error = e
            error_msg = str(e)

            if "SSL connection has been closed unexpectedly" in error_msg:
                logger.warning(f"SSL connection error on attempt {attempt}/{max_retries}: {error_msg}")
            else:
                logger.warning(f"Connection error on attempt {attempt}/{max_retries}: {error_msg}")

            if attempt < max_retries:
                # Exponential backoff
                delay = retry_delay * (2 ** (attempt - 1))
                logger.info(f"Retrying in {delay:.2f} seconds...")
                time.sleep(delay)
            else:
                logger.error(f"All {max_retries} connection attempts failed")
                raise last_error

    raise last_error if last_error else Exception("Connection failed after all retries")


def get_db_connection_with_retry(max_retries=3, retry_delay=1.0):
    """
    Get a psycopg2 connection with automatic retry on SSL/connection failures

    - Retries failed connections up to max_retries times
    - Exponential backoff between retries
    - Logs connection attempts for debugging

    Raises:
        psycopg2.OperationalError: If all retry attempts fail
    """
    return _connect_with_retry(max_retries, retry_delay)


def get_db_connection_dict_with_retry(max_retries=3, retry_delay=1.0):
    """Same as get_db_connection_with_retry but returns dicts instead of tuples."""
    return _connect_with_retry(max_retries, retry_delay, cursor_factory=RealDictCursor)
