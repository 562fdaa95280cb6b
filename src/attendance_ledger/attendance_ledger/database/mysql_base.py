from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, List

import mysql.connector

from ..core.exceptions import StoreUnavailable
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield ``(conn, cursor)`` inside one transaction.

    Commits when the block exits cleanly, rolls back otherwise. Driver
    errors surface as ``StoreUnavailable`` so callers can retry.
    """

    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        logger.error("store connect failed: %s", e)
        raise StoreUnavailable("Attendance store is unavailable") from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as e:
        _rollback_quietly(conn)
        logger.error("store operation failed, rolled back: %s", e)
        raise StoreUnavailable("Attendance store operation failed") from e
    except Exception:
        _rollback_quietly(conn)
        raise
    finally:
        conn.close()


def _rollback_quietly(conn) -> None:
    # The original error is the one the caller needs to see.
    try:
        conn.rollback()
    except mysql.connector.Error as e:
        logger.warning("rollback failed: %s", e)


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def in_clause(values) -> str:
    """Placeholder list for ``IN (...)``; callers guarantee ``values`` is non-empty."""
    return ", ".join(["%s"] * len(values))
