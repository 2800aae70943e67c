"""SQLite implementation of sale audit storage."""

import json
from datetime import datetime

import aiosqlite

from boxstock.config import get_logger
from boxstock.core.entities.audit import ApprovalStatus, AuditRecord, AuditType
from boxstock.core.interfaces.audit_store import IAuditStore
from boxstock.infrastructure.storage.sqlite.base import (
    SQLiteStore,
    decimal_text,
    to_datetime,
    to_decimal,
    to_optional_datetime,
    where_clause,
)

logger = get_logger(__name__)


class SQLiteAuditStore(SQLiteStore, IAuditStore):
    """SQLite implementation of audit record storage."""

    async def create_audit(self, audit: AuditRecord) -> AuditRecord:
        """Insert a pending audit record."""
        async with self._writer() as conn:
            await conn.execute(
                """
                INSERT INTO sales_audit (
                    audit_id, sale_id, audit_type, boxes_change, kg_change, reason,
                    old_values, new_values, approval_status, performed_by,
                    approved_by, approval_timestamp, approval_reason,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    audit.audit_id,
                    audit.sale_id,
                    audit.audit_type.value,
                    audit.boxes_change,
                    decimal_text(audit.kg_change),
                    audit.reason,
                    json.dumps(audit.old_values),
                    json.dumps(audit.new_values) if audit.new_values is not None else None,
                    audit.approval_status.value,
                    audit.performed_by,
                    audit.approved_by,
                    audit.approval_timestamp.isoformat() if audit.approval_timestamp else None,
                    audit.approval_reason,
                    audit.created_at.isoformat(),
                    audit.updated_at.isoformat(),
                ),
            )
            logger.info(
                "audit_record_created",
                audit_id=audit.audit_id,
                sale_id=audit.sale_id,
                audit_type=audit.audit_type.value,
            )
            return audit

    async def get_audit(self, audit_id: str) -> AuditRecord | None:
        """Get audit record by ID."""
        async with self._reader() as conn:
            cursor = await conn.execute(
                "SELECT * FROM sales_audit WHERE audit_id = ?", (audit_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_audit(row)

    async def decide(
        self,
        audit_id: str,
        status: ApprovalStatus,
        approved_by: str,
        approval_reason: str,
        decided_at: datetime,
    ) -> bool:
        """Conditionally move a pending record to its terminal state."""
        if status == ApprovalStatus.PENDING:
            raise ValueError("decision must be approved or rejected")
        async with self._writer() as conn:
            cursor = await conn.execute(
                """
                UPDATE sales_audit SET
                    approval_status = ?,
                    approved_by = ?,
                    approval_reason = ?,
                    approval_timestamp = ?,
                    updated_at = ?
                WHERE audit_id = ? AND approval_status = 'pending'
                """,
                (
                    status.value,
                    approved_by,
                    approval_reason,
                    decided_at.isoformat(),
                    decided_at.isoformat(),
                    audit_id,
                ),
            )
            decided = cursor.rowcount == 1
            logger.info(
                "audit_record_decided" if decided else "audit_record_decision_lost",
                audit_id=audit_id,
                status=status.value,
            )
            return decided

    async def list_audits(
        self,
        sale_id: str | None = None,
        audit_type: AuditType | None = None,
        approval_status: ApprovalStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[AuditRecord]:
        """List audit records, newest first."""
        where, params = where_clause(
            {"sale_id": sale_id, "audit_type": audit_type, "approval_status": approval_status}
        )
        async with self._reader() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM sales_audit
                {where}
                ORDER BY created_at DESC, audit_id DESC
                LIMIT ? OFFSET ?
                """,
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_audit(row) for row in rows]

    async def count_audits(
        self,
        sale_id: str | None = None,
        audit_type: AuditType | None = None,
        approval_status: ApprovalStatus | None = None,
    ) -> int:
        where, params = where_clause(
            {"sale_id": sale_id, "audit_type": audit_type, "approval_status": approval_status}
        )
        async with self._reader() as conn:
            cursor = await conn.execute(f"SELECT COUNT(*) FROM sales_audit {where}", params)
            row = await cursor.fetchone()
            return row[0] if row else 0

    @staticmethod
    def _row_to_audit(row: aiosqlite.Row) -> AuditRecord:
        """Convert a database row to an AuditRecord entity."""
        return AuditRecord(
            audit_id=row["audit_id"],
            sale_id=row["sale_id"],
            audit_type=AuditType(row["audit_type"]),
            boxes_change=row["boxes_change"],
            kg_change=to_decimal(row["kg_change"], "kg_change"),
            reason=row["reason"],
            old_values=json.loads(row["old_values"]),
            new_values=json.loads(row["new_values"]) if row["new_values"] else None,
            approval_status=ApprovalStatus(row["approval_status"]),
            performed_by=row["performed_by"],
            approved_by=row["approved_by"],
            approval_timestamp=to_optional_datetime(row["approval_timestamp"]),
            approval_reason=row["approval_reason"],
            created_at=to_datetime(row["created_at"]),
            updated_at=to_datetime(row["updated_at"]),
        )
