"""Write-operation classifier for the read-only enforcement gate.

Classifies raw SQL text by surface-level statement intent. This is not a
parser: it only looks at statement-initial keywords (plus the COPY and WITH
special cases) after comments and whitespace have been normalized away.
Ambiguous input is treated as a write.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from enum import Enum

from libs.common.logging import log_with_context

logger = logging.getLogger(__name__)

READ_ONLY_VIOLATION_MESSAGE = (
    "Database is opened in read-only mode. Write operations are not allowed."
)

_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT_RE = re.compile(r"--.*?(\n|$)")
_WHITESPACE_RE = re.compile(r"\s+")
_WITH_WRITE_RE = re.compile(r"WITH\s+.*?\s+(INSERT|UPDATE|DELETE|CREATE|DROP|ALTER)")


class StatementIntent(str, Enum):
    """Classification of a SQL batch."""

    READ_ONLY = "read_only"
    WRITE_LIKE = "write_like"


def _always_write(statement: str) -> bool:
    del statement
    return True


def _copy_is_write(statement: str) -> bool:
    """COPY ... FROM imports into the database; COPY ... TO exports out of it."""
    from_pos = statement.find("FROM")
    to_pos = statement.find("TO")
    if from_pos == -1:
        return False
    if to_pos == -1:
        return True
    return from_pos < to_pos


def _with_is_write(statement: str) -> bool:
    return _WITH_WRITE_RE.search(statement) is not None


# Order matters only for readability; every prefix is tested.
WRITE_RULES: tuple[tuple[str, Callable[[str], bool]], ...] = (
    ("INSERT", _always_write),
    ("UPDATE", _always_write),
    ("DELETE", _always_write),
    ("CREATE", _always_write),
    ("DROP", _always_write),
    ("ALTER", _always_write),
    ("TRUNCATE", _always_write),
    ("REPLACE", _always_write),
    ("MERGE", _always_write),
    ("UPSERT", _always_write),
    # Transaction control
    ("BEGIN", _always_write),
    ("START TRANSACTION", _always_write),
    ("COMMIT", _always_write),
    ("ROLLBACK", _always_write),
    # Privileges
    ("GRANT", _always_write),
    ("REVOKE", _always_write),
    # DuckDB specific
    ("COPY", _copy_is_write),
    ("EXPORT", _always_write),
    ("IMPORT", _always_write),
    ("ATTACH", _always_write),
    ("DETACH", _always_write),
    ("WITH", _with_is_write),
)


def normalize_sql(sql: str) -> str:
    """Strip comments and collapse whitespace.

    Block comments become a space and line comments a newline so that token
    boundaries survive, e.g. ``SELECT/**/1`` stays two tokens.
    """
    cleaned = _BLOCK_COMMENT_RE.sub(" ", sql)
    cleaned = _LINE_COMMENT_RE.sub("\n", cleaned)
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def split_statements(sql: str) -> list[str]:
    """Normalize ``sql`` and split it into non-empty statements."""
    return [part.strip() for part in normalize_sql(sql).split(";") if part.strip()]


def is_statement_write(statement: str) -> bool:
    """Return True if a single normalized statement looks like a mutation."""
    upper = statement.upper().strip()
    for keyword, is_write in WRITE_RULES:
        if upper.startswith(keyword) and is_write(upper):
            return True
    return False


def classify(sql: str) -> StatementIntent:
    """Classify a SQL batch; any write-like sub-statement makes it WRITE_LIKE."""
    try:
        statements = split_statements(sql)
        if any(is_statement_write(statement) for statement in statements):
            return StatementIntent.WRITE_LIKE
        return StatementIntent.READ_ONLY
    except Exception:
        # Fail closed: anything we cannot classify is treated as a write.
        logger.warning("statement_classification_failed", exc_info=True)
        return StatementIntent.WRITE_LIKE


def is_write_operation(sql: str) -> bool:
    return classify(sql) is StatementIntent.WRITE_LIKE


def validate_readonly_operation(sql: str, is_readonly: bool) -> str | None:
    """Return a rejection message if ``sql`` may not run on a read-only database."""
    if not is_readonly:
        return None
    if is_write_operation(sql):
        log_with_context(
            logger,
            "WARNING",
            "Write operation blocked on read-only database",
            sql_length=len(sql),
        )
        return READ_ONLY_VIOLATION_MESSAGE
    return None


__all__ = [
    "READ_ONLY_VIOLATION_MESSAGE",
    "StatementIntent",
    "WRITE_RULES",
    "classify",
    "is_statement_write",
    "is_write_operation",
    "normalize_sql",
    "split_statements",
    "validate_readonly_operation",
]
