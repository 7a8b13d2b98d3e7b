# devtrack/core/database.py
"""
Centralized database utilities with proper error handling and connection pooling.
Every store module opens its connections through get_db_connection().
"""

import os
import sqlite3
import logging
import threading
from typing import Optional, List, Dict
from contextlib import contextmanager
from pathlib import Path

from devtrack.core.errors import AppError, ConflictError, DatabaseError

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path(__file__).resolve().parents[1] / "data" / "devtrack.sqlite"

# Path configured by create_app(); falls back to the environment.
_db_path: Optional[str] = None


def configure(db_path: str) -> None:
    """Point every store at the given SQLite file."""
    global _db_path
    _db_path = str(db_path)
    logger.info(f"Database configured at {_db_path}")


def db_path() -> str:
    """Return the active SQLite database path."""
    if _db_path:
        return _db_path
    return os.environ.get("DEVTRACK_DATABASE", str(DEFAULT_DB_PATH))


def _casefold(value):
    return value.casefold() if isinstance(value, str) else value


class ConnectionPool:
    """Simple connection pool for SQLite databases."""

    def __init__(self, db_path: str, max_connections: int = 5):
        self.db_path = Path(db_path)
        self.max_connections = max_connections
        self._pool: List[sqlite3.Connection] = []
        self._lock = threading.Lock()

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def get_connection(self) -> sqlite3.Connection:
        """Get a connection from the pool or create a new one."""
        with self._lock:
            if self._pool:
                return self._pool.pop()

            try:
                con = sqlite3.connect(
                    str(self.db_path),
                    check_same_thread=False,
                    timeout=30.0  # wait up to 30s on a locked database
                )
                con.row_factory = sqlite3.Row
                # SQLite LOWER() only folds ASCII; search uses this instead.
                con.create_function("py_casefold", 1, _casefold, deterministic=True)
                con.execute("PRAGMA foreign_keys = ON")
                con.execute("PRAGMA journal_mode = WAL")
                return con
            except sqlite3.Error as e:
                logger.error(f"Failed to create database connection to {self.db_path}: {e}")
                raise DatabaseError(f"Database connection failed: {e}")

    def return_connection(self, con: sqlite3.Connection):
        """Return a connection to the pool."""
        with self._lock:
            if len(self._pool) < self.max_connections:
                self._pool.append(con)
            else:
                con.close()

    def close_all(self):
        """Close all connections in the pool."""
        with self._lock:
            for con in self._pool:
                con.close()
            self._pool.clear()


_pools: Dict[str, ConnectionPool] = {}
_pool_lock = threading.Lock()


def get_pool(path: str) -> ConnectionPool:
    """Get or create a connection pool for a database."""
    with _pool_lock:
        if path not in _pools:
            _pools[path] = ConnectionPool(path)
        return _pools[path]


@contextmanager
def get_db_connection(path: Optional[str] = None, commit: bool = False):
    """
    Context manager for database connections with automatic cleanup.

    Usage:
        with get_db_connection(commit=True) as con:
            con.execute("INSERT INTO divisi (nama) VALUES (?)", ("IT",))

    Args:
        path: Path to the SQLite database (default: the configured one)
        commit: Whether to commit on successful exit (default: False)
    """
    path = path or db_path()
    pool = get_pool(path)
    con = pool.get_connection()

    try:
        yield con
        if commit:
            con.commit()
    except AppError:
        con.rollback()
        raise
    except sqlite3.IntegrityError as e:
        con.rollback()
        logger.warning(f"Integrity error in {path}: {e}")
        raise ConflictError(f"Data integrity violation: {e}")
    except sqlite3.OperationalError as e:
        con.rollback()
        logger.error(f"Operational error in {path}: {e}")
        raise DatabaseError(f"Database operation failed: {e}")
    except Exception as e:
        con.rollback()
        logger.error(f"Unexpected error in {path}: {e}", exc_info=True)
        raise DatabaseError(f"Database error: {e}")
    finally:
        pool.return_connection(con)


def safe_execute_script(script: str, path: Optional[str] = None):
    """
    Execute a SQL script with error handling (for schema setup).

    Args:
        script: SQL script to execute
        path: Path to database (default: the configured one)
    """
    with get_db_connection(path, commit=True) as con:
        con.executescript(script)
    logger.debug(f"Executed schema script on {path or db_path()}")


def cleanup_all_pools():
    """Close all connection pools. Call this on app shutdown."""
    with _pool_lock:
        for pool in _pools.values():
            pool.close_all()
        _pools.clear()
        logger.info("All database connection pools closed")
