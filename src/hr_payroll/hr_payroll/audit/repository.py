from __future__ import annotations

from typing import Any, Optional, Protocol

from ..core.enums import AuditAction
from .model import AuditEntry


class AuditRepository(Protocol):
    def insert(self, entry: AuditEntry) -> int:
        raise NotImplementedError


class AuditSink(Protocol):
    """What feature services call; implementations must never raise."""

    def log_audit(
        self,
        table_name: str,
        record_id: Any,
        action: AuditAction,
        old_values: Optional[dict] = None,
        new_values: Optional[dict] = None,
        user_id: Optional[int] = None,
        ip_address: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> None:
        raise NotImplementedError
