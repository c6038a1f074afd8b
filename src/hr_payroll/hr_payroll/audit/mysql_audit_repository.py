from __future__ import annotations

from ..database.mysql_base import MySQLRepository, to_json_column
from .model import AuditEntry
from .repository import AuditRepository


class MySQLAuditRepository(MySQLRepository, AuditRepository):
    def insert(self, entry: AuditEntry) -> int:
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO audit_logs(
                    table_name, record_id, action, old_values, new_values,
                    user_id, ip_address, request_id
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry.table_name,
                    entry.record_id,
                    entry.action.value,
                    to_json_column(entry.old_values),
                    to_json_column(entry.new_values),
                    entry.user_id,
                    entry.ip_address,
                    entry.request_id,
                ),
            )
            return int(cur.lastrowid)
