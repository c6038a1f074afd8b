from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..core.enums import AuditAction


@dataclass(frozen=True)
class AuditEntry:
    table_name: str
    record_id: str
    action: AuditAction
    old_values: Optional[dict[str, Any]] = None
    new_values: Optional[dict[str, Any]] = None
    user_id: Optional[int] = None
    ip_address: Optional[str] = None
    request_id: Optional[str] = None
