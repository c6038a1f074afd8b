from __future__ import annotations

from typing import Callable, TypeVar

from .connection import DatabaseConnection
from .mysql_base import db_cursor
from .unit_of_work import Store

T = TypeVar("T")


class MySQLUnitOfWork:
    def __init__(self, conn_factory: DatabaseConnection, store: Store):
        self._conn_factory = conn_factory
        self.store = store

    def _bind(self, cur) -> Store:
        return Store(
            periods=self.store.periods.bind(cur),
            employees=self.store.employees.bind(cur),
            attendance=self.store.attendance.bind(cur),
            overtime=self.store.overtime.bind(cur),
            reimbursements=self.store.reimbursements.bind(cur),
            payslips=self.store.payslips.bind(cur),
        )

    def run(self, work: Callable[[Store], T]) -> T:
        with db_cursor(self._conn_factory) as (conn, cur):
            conn.start_transaction(isolation_level="SERIALIZABLE")
            return work(self._bind(cur))
