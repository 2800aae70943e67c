"""Abstract interface for sale audit storage."""

from abc import ABC, abstractmethod
from datetime import datetime

from boxstock.core.entities.audit import ApprovalStatus, AuditRecord, AuditType


class IAuditStore(ABC):
    """Interface for audit record persistence."""

    @abstractmethod
    async def create_audit(self, audit: AuditRecord) -> AuditRecord:
        """Insert a pending audit record."""
        pass

    @abstractmethod
    async def get_audit(self, audit_id: str) -> AuditRecord | None:
        """Get audit record by ID."""
        pass

    @abstractmethod
    async def decide(
        self,
        audit_id: str,
        status: ApprovalStatus,
        approved_by: str,
        approval_reason: str,
        decided_at: datetime,
    ) -> bool:
        """Move a pending record to approved/rejected.

        Returns False when the record was no longer pending.
        """
        pass

    @abstractmethod
    async def list_audits(
        self,
        sale_id: str | None = None,
        audit_type: AuditType | None = None,
        approval_status: ApprovalStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[AuditRecord]:
        """List audit records, newest first."""
        pass

    @abstractmethod
    async def count_audits(
        self,
        sale_id: str | None = None,
        audit_type: AuditType | None = None,
        approval_status: ApprovalStatus | None = None,
    ) -> int:
        """Count audit records matching the same filters as list_audits."""
        pass
