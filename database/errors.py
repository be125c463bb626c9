"""
Classification of database errors caused by an un-migrated schema.

Reads that touch optional tables use this to tell "table not created yet"
apart from real failures and fall back to an empty result.
"""

from sqlalchemy.exc import SQLAlchemyError

# SQLSTATE for undefined_table
UNDEFINED_TABLE_SQLSTATE = "42P01"

MISSING_RELATION_MARKERS = (
    "does not exist",
    "relation",
    "no such table",
)


def _sqlstate(exc: BaseException) -> str | None:
    """Pull a SQLSTATE code off a driver error, whichever driver raised it."""
    for source in (getattr(exc, "orig", None), exc):
        if source is None:
            continue
        # SQLAlchemy's own `code` is a docs link id, not a SQLSTATE
        attrs = ("sqlstate", "pgcode")
        if not isinstance(source, SQLAlchemyError):
            attrs += ("code",)
        for attr in attrs:
            value = getattr(source, attr, None)
            if isinstance(value, str) and value:
                return value
    return None


def is_missing_relation_error(exc: BaseException) -> bool:
    """
    Return True when the error looks like a table that has not been migrated.

    Args:
        exc: Error raised while executing a statement

    Returns:
        True if the message or SQLSTATE points at a missing relation
    """
    if _sqlstate(exc) == UNDEFINED_TABLE_SQLSTATE:
        return True

    # The driver message only; the wrapped error also carries the SQL text
    orig = getattr(exc, "orig", None)
    message = str(orig if orig is not None else exc).lower()
    return any(marker in message for marker in MISSING_RELATION_MARKERS)
