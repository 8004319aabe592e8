"""
Audit log writer for moderation events.

Every intake, status change and sanction leaves one row in audit_logs.
Writes happen after the primary change has been stored, so a failed audit
insert is logged rather than raised: failing the request at that point
would invite a retry of work that already happened.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from supabase import Client

from app.core.database import get_supabase
from app.models.triage import Priority

logger = logging.getLogger(__name__)

_PRIORITY_SEVERITY = {
    Priority.CRITICAL: "high",
    Priority.HIGH: "high",
    Priority.MEDIUM: "medium",
    Priority.LOW: "low",
}


def severity_for_priority(priority: Priority) -> str:
    """Audit severity for a report of the given priority."""
    return _PRIORITY_SEVERITY.get(priority, "low")


class AuditLogService:
    """Append-only audit trail in the audit_logs table."""

    def __init__(self, supabase: Optional[Client] = None) -> None:
        self._supabase = supabase

    @property
    def supabase(self) -> Client:
        if self._supabase is None:
            self._supabase = get_supabase()
        return self._supabase

    def record(
        self,
        action: str,
        actor_id: str,
        target_id: str,
        details: Optional[dict[str, Any]] = None,
        severity: str = "low",
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        """Insert one audit entry (e.g. action="REPORT_CREATED")."""
        row = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "action": action,
            "event_category": "moderation",
            "severity": severity,
            "user_id": actor_id,
            "target_id": target_id,
            "details": details or {},
            "ip_address": ip_address or "unknown",
            "user_agent": user_agent or "unknown",
        }
        try:
            self.supabase.table("audit_logs").insert(row).execute()
        except Exception:
            logger.error(
                "Audit log write failed: action=%s actor=%s target=%s",
                action,
                actor_id,
                target_id,
                exc_info=True,
            )
