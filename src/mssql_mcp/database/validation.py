"""Query validation and helpers for read-only access.

The read-only check is advisory keyword matching. It also fires on
keywords inside string literals and comments, and it is not a security
boundary: use a read-only database login for that.
"""

import re
from typing import Optional

from ..constants import DEFAULT_ROW_LIMIT

# Keywords rejected anywhere in the query (whole words only)
BLOCKED_KEYWORDS = [
    "insert",
    "update",
    "delete",
    "drop",
    "create",
    "alter",
    "truncate",
    "exec",
    "execute",
    "merge",
    "grant",
    "revoke",
]

# Compiled patterns for performance
COMPILED_PATTERNS = [(re.compile(rf"\b{keyword}\b", re.IGNORECASE), keyword) for keyword in BLOCKED_KEYWORDS]
COMPILED_PATTERNS += [
    (re.compile(r"\bsp_\w*", re.IGNORECASE), "sp_"),
    (re.compile(r"\bxp_\w*", re.IGNORECASE), "xp_"),
]

_SELECT_PREFIX = re.compile(r"^\s*select\b", re.IGNORECASE)
_HAS_TOP = re.compile(r"^\s*select\s+(?:(?:distinct|all)\s+)?top\b", re.IGNORECASE)
_SELECT_HEAD = re.compile(r"^\s*select\s+(?:(distinct|all)\s+)?", re.IGNORECASE)
_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_\s]")


def validate_query(query: str) -> tuple[bool, Optional[str]]:
    """Check that a query looks read-only.

    Args:
        query: SQL query to validate

    Returns:
        Tuple of (is_valid, error_message)
        - (True, None) if query is a SELECT without blocked keywords
        - (False, error_message) otherwise
    """
    if not query or not query.strip():
        return False, "Query cannot be empty"

    if not _SELECT_PREFIX.match(query):
        return False, "Only SELECT queries are allowed for security reasons"

    for pattern, keyword in COMPILED_PATTERNS:
        if pattern.search(query):
            return False, f"Query contains blocked keyword: {keyword}"

    return True, None


def add_top_limit(query: str, limit: int = DEFAULT_ROW_LIMIT) -> str:
    """Add a TOP clause unless the query already has one.

    Args:
        query: SELECT query
        limit: Maximum number of rows to return

    Returns:
        The trimmed query with ``TOP <limit>`` after SELECT (and after
        DISTINCT/ALL when present)
    """
    trimmed = query.strip()
    if _HAS_TOP.match(trimmed):
        return trimmed

    def _insert_top(match: re.Match) -> str:
        quantifier = f"{match.group(1).upper()} " if match.group(1) else ""
        return f"SELECT {quantifier}TOP {limit} "

    return _SELECT_HEAD.sub(_insert_top, trimmed, count=1)


def sanitize_name(name: str) -> str:
    """Strip everything but letters, digits, underscores and spaces from an identifier."""
    return _UNSAFE_NAME_CHARS.sub("", name).strip()


def build_table_reference(table_name: str, schema: str = "dbo") -> str:
    return f"[{sanitize_name(schema)}].[{sanitize_name(table_name)}]"
