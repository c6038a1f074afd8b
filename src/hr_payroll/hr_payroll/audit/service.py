from __future__ import annotations

import logging
from typing import Any, Optional

from ..common.serialization import as_json
from ..core.enums import AuditAction
from .model import AuditEntry
from .repository import AuditRepository

logger = logging.getLogger(__name__)


class AuditService:
    """Best-effort audit trail: a failed write is logged, never raised."""

    def __init__(self, audit_logs: AuditRepository):
        self._audit_logs = audit_logs

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
        entry = AuditEntry(
            table_name=table_name,
            record_id=str(record_id),
            action=AuditAction(action),
            old_values=as_json(old_values) if old_values else None,
            new_values=as_json(new_values) if new_values else None,
            user_id=user_id,
            ip_address=ip_address or None,
            request_id=request_id or None,
        )
        try:
            self._audit_logs.insert(entry)
        except Exception:
            logger.exception("Failed to write audit log for %s/%s (%s)", table_name, record_id, entry.action.value)
