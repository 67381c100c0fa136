"""
PostgreSQL database access

This module centralizes every way the backend talks to the database:
- psycopg2 direct connections (repositories, raw SQL)
- SQLAlchemy engine (schema creation from storefront.models)

The engine is built lazily so importing this module never needs a
configured DATABASE_URL.
"""
import time
import logging

import psycopg2
from psycopg2.extras import RealDictCursor
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings

logger = logging.getLogger(__name__)

# Seconds psycopg2 waits for the server before giving up
CONNECTION_TIMEOUT = 10


# ============================================================================
# SQLAlchemy Configuration (schema declaration only)
# ============================================================================

Base = declarative_base()

_engine = None


def get_engine():
    """
    Build (once) and return the SQLAlchemy engine

    Raises:
        Exception if DATABASE_URL is not configured
    """
    global _engine
    if _engine is None:
        if not settings.DATABASE_URL:
            raise Exception("DATABASE_URL not configured")
        _engine = create_engine(
            settings.DATABASE_URL,
            pool_pre_ping=True,
            pool_size=10,
            max_overflow=20,
        )
    return _engine


def get_session_factory():
    """Session factory bound to the lazily created engine"""
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


# ============================================================================
# psycopg2 Direct Connections (for raw SQL queries)
# ============================================================================

def _database_url() -> str:
    database_url = settings.DATABASE_URL
    if not database_url:
        raise Exception("DATABASE_URL not configured")
    return database_url


def get_db_connection():
    """
    Get a direct psycopg2 database connection (returns tuples)

    Raises:
        Exception if DATABASE_URL is not configured
    """
    return psycopg2.connect(_database_url(), connect_timeout=CONNECTION_TIMEOUT)


def get_db_connection_dict():
    """
    Get a database connection with RealDictCursor (returns dictionaries)

    Use this for repositories and API responses.

    Example:
        conn = get_db_connection_dict()
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM products")
        results = cursor.fetchall()  # Returns list of dicts
        cursor.close()
        conn.close()
    """
    return psycopg2.connect(
        _database_url(),
        cursor_factory=RealDictCursor,
        connect_timeout=CONNECTION_TIMEOUT
    )


# ============================================================================
# Database Connection with Retry Logic
# ============================================================================

def _connect_with_retry(max_retries: int, retry_delay: float, **connect_kwargs):
    database_url = _database_url()
    last_error = None

    for attempt in range(1, max_retries + 1):
        try:
            logger.debug(f"Database connection attempt {attempt}/{max_retries}")
            conn = psycopg2.connect(
                database_url,
                connect_timeout=CONNECTION_TIMEOUT,
                **connect_kwargs
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
    Get a psycopg2 connection with automatic retry on connection failures

    Retries failed connections up to max_retries times with exponential
    backoff between attempts.

    Args:
        max_retries: Maximum number of connection attempts (default: 3)
        retry_delay: Initial delay between retries in seconds (default: 1.0)

    Raises:
        psycopg2.OperationalError: If all retry attempts fail
    """
    return _connect_with_retry(max_retries, retry_delay)


def get_db_connection_dict_with_retry(max_retries=3, retry_delay=1.0):
    """
    Same as get_db_connection_with_retry but rows come back as dicts.
    """
    return _connect_with_retry(max_retries, retry_delay, cursor_factory=RealDictCursor)
