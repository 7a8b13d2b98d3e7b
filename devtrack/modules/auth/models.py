# devtrack/modules/auth/models.py
"""
User authentication models backed by the shared devtrack database.
"""

from __future__ import annotations
import os
import logging
import sqlite3
from typing import Optional, Dict, Any
from werkzeug.security import generate_password_hash, check_password_hash

from devtrack.core.database import get_db_connection, safe_execute_script
from devtrack.core.validation import sanitize_string, validate_password

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("devtrack.security")

# ---- Schema Setup ----

def ensure_user_schema() -> None:
    """Create user and audit tables if they don't exist"""
    safe_execute_script("""
        CREATE TABLE IF NOT EXISTS users (
            id            INTEGER PRIMARY KEY AUTOINCREMENT,
            username      TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            is_admin      INTEGER NOT NULL DEFAULT 0,
            created_utc   TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
        );

        CREATE INDEX IF NOT EXISTS ix_users_username ON users(username);

        CREATE TABLE IF NOT EXISTS audit (
            id        INTEGER PRIMARY KEY AUTOINCREMENT,
            ts_utc    TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now')),
            username  TEXT,
            action    TEXT NOT NULL,
            source    TEXT,
            details   TEXT
        );
    """)

def ensure_first_admin(username: Optional[str] = None, password: Optional[str] = None) -> None:
    """Create initial admin user if no admin exists"""
    with get_db_connection() as con:
        count = con.execute("SELECT COUNT(*) AS c FROM users WHERE is_admin=1").fetchone()["c"]

    if count:
        return

    username = username or os.environ.get("ADMIN_USERNAME", "admin")
    password = password or os.environ.get("ADMIN_PASSWORD", "changeme")

    create_user(username, password, is_admin=True)
    logger.info(f"Created initial admin user '{username}'")

    if password == "changeme":
        logger.warning("Initial admin uses the default password! Change it immediately!")

# ---- User CRUD Operations ----

def create_user(username: str, plain_password: str, *, is_admin: bool = False) -> int:
    """
    Create a new user.

    Args:
        username: Username
        plain_password: Plain text password (will be hashed)
        is_admin: Admin flag

    Returns:
        User ID
    """
    username = sanitize_string(username, max_length=50)
    validate_password(plain_password, min_length=6)

    with get_db_connection(commit=True) as con:
        cur = con.execute(
            "INSERT INTO users(username, password_hash, is_admin) VALUES (?,?,?)",
            (username, generate_password_hash(plain_password), int(is_admin))
        )
        return cur.lastrowid

def get_user_by_id(user_id: int) -> Optional[sqlite3.Row]:
    """Get user by ID"""
    with get_db_connection() as con:
        return con.execute("SELECT * FROM users WHERE id=?", (user_id,)).fetchone()

def get_user_by_username(username: str) -> Optional[sqlite3.Row]:
    """Get user by username"""
    with get_db_connection() as con:
        return con.execute("SELECT * FROM users WHERE username=?", (username,)).fetchone()

def verify_password(row: Optional[sqlite3.Row], plain: str) -> bool:
    """Verify password against stored hash."""
    if not row:
        return False
    return check_password_hash(row["password_hash"], plain)

def record_audit(user: Optional[Dict[str, Any]], action: str, source: str, details: str = "") -> None:
    """
    Record an audit log entry.

    Args:
        user: User dictionary (can be None)
        action: Action performed
        source: Source module
        details: Additional details
    """
    username = user.get('username') if user else 'system'
    audit_logger.info(f"AUDIT: {action} by {username} | {source} | {details}")
    with get_db_connection(commit=True) as con:
        con.execute(
            "INSERT INTO audit (username, action, source, details) VALUES (?, ?, ?, ?)",
            (username, action, source, details)
        )
