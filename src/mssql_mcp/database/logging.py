"""Structured logging for database operations."""

import hashlib
import json
import logging
import re
import time
from typing import Optional

from ..constants import QUERY_PREVIEW_LENGTH

# Configure logger for database operations
db_logger = logging.getLogger("mssql_mcp.database")

_SECRET_PATTERN = re.compile(r"(?i)(\b(?:password|pwd)\s*=)[^;]*")


def sanitize_connection_string(connection_string: str) -> str:
    """Mask password values in a semicolon-separated connection string.

    Args:
        connection_string: Raw connection string

    Returns:
        Connection string with Password/Pwd values replaced by ***
    """
    return _SECRET_PATTERN.sub(r"\1***", connection_string)


def hash_query(query: str) -> str:
    """Generate hash of query for logging (first 16 hex characters of SHA256)."""
    return hashlib.sha256(query.encode()).hexdigest()[:16]


def preview_query(query: str) -> str:
    return query[:QUERY_PREVIEW_LENGTH] + ("..." if len(query) > QUERY_PREVIEW_LENGTH else "")


def log_connection(connection_string: str, success: bool, error: Optional[str] = None, duration: float = 0.0) -> None:
    """Log a session handshake.

    Args:
        connection_string: Resolved connection string (will be sanitized)
        success: Whether login succeeded
        error: Error message if failed
        duration: Handshake time in seconds
    """
    log_data = {
        "event": "database_connection",
        "connection": sanitize_connection_string(connection_string),
        "success": success,
        "duration_seconds": round(duration, 3),
    }

    if error:
        log_data["error"] = error

    if success:
        db_logger.info(json.dumps(log_data))
    else:
        db_logger.error(json.dumps(log_data))


def log_query_execution(
    query: str,
    server: str,
    success: bool,
    row_count: int = 0,
    duration: float = 0.0,
    error: Optional[str] = None,
    blocked: bool = False,
) -> None:
    """Log query execution with metadata.

    Blocked queries (rejected by the read-only check) are logged at WARNING
    level so they stand out in audit logs.

    Args:
        query: SQL text (hashed and previewed)
        server: Target server name
        success: Whether the query completed
        row_count: Number of rows returned
        duration: Execution time in seconds
        error: Error message if failed
        blocked: Whether the query was rejected before execution
    """
    log_data = {
        "event": "query_execution",
        "query_hash": hash_query(query),
        "query_preview": preview_query(query),
        "server": server,
        "success": success,
        "blocked": blocked,
        "row_count": row_count,
        "duration_seconds": round(duration, 3),
        "timestamp": time.time(),
    }

    if error:
        log_data["error"] = error

    if blocked:
        db_logger.warning(json.dumps(log_data))
    elif success:
        db_logger.info(json.dumps(log_data))
    else:
        db_logger.error(json.dumps(log_data))


def log_cache_operation(connection_string: str, operation: str, cached_sessions: int) -> None:
    """Log connection cache operations (hit, store, evict, close_all)."""
    log_data = {
        "event": "connection_cache",
        "connection": sanitize_connection_string(connection_string),
        "operation": operation,
        "cached_sessions": cached_sessions,
    }

    db_logger.debug(json.dumps(log_data))


class QueryTimer:
    """Context manager for timing handshakes and queries."""

    def __init__(self):
        self.start_time: float = 0.0
        self.duration: float = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.perf_counter() - self.start_time
