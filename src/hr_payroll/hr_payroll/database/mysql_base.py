from __future__ import annotations

import json
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional

import mysql.connector

from ..core.exceptions import ConflictError, DuplicateCodeError
from .connection import DatabaseConnection

ER_DUP_ENTRY = 1062
ER_ROW_IS_REFERENCED = 1451


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_json_column(value: Optional[dict]) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


@contextmanager
def translate_integrity_errors(*, code_index: Optional[str] = None, conflict_message: str = "Record already exists"):
    """Turn MySQL duplicate-key errors into domain conflicts.

    A collision on ``code_index`` (a generated-code unique key) becomes
    DuplicateCodeError so the caller can retry with a fresh code.
    """
    try:
        yield
    except mysql.connector.IntegrityError as exc:
        if getattr(exc, "errno", None) not in (ER_DUP_ENTRY, ER_ROW_IS_REFERENCED):
            raise
        if code_index and code_index in str(exc):
            raise DuplicateCodeError(str(exc)) from exc
        raise ConflictError(conflict_message) from exc


class MySQLRepository:
    """Base for MySQL repositories.

    Unbound instances open a connection per call; ``bind(cur)`` returns a copy
    that runs every statement on an existing transaction's cursor.
    """

    def __init__(self, conn_factory: DatabaseConnection, *, cur=None):
        self._conn_factory = conn_factory
        self._cur = cur

    def bind(self, cur):
        return type(self)(self._conn_factory, cur=cur)

    @contextmanager
    def _cursor(self) -> Iterator[Any]:
        if self._cur is not None:
            yield self._cur
            return
        with db_cursor(self._conn_factory) as (_, cur):
            yield cur
