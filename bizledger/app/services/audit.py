"""
Audit logging service for tracking bookkeeping events.

Entries are written inside the caller's unit of work, so an operation
that rolls back leaves no audit record behind.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from bizledger.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    CUSTOMER_CREATED = "CUSTOMER_CREATED"

    # Receivables
    INVOICE_ISSUED = "INVOICE_ISSUED"
    ORDER_CREATED = "ORDER_CREATED"
    ORDER_DELIVERED = "ORDER_DELIVERED"

    # Payments
    PAYMENT_RECORDED = "PAYMENT_RECORDED"
    PAYMENT_REFUNDED = "PAYMENT_REFUNDED"

    # Manual journal maintenance
    LEDGER_ENTRY_ADDED = "LEDGER_ENTRY_ADDED"
    LEDGER_ENTRY_AMENDED = "LEDGER_ENTRY_AMENDED"
    LEDGER_ENTRY_VOIDED = "LEDGER_ENTRY_VOIDED"


async def log_event(
    db: AsyncSession,
    action: str,
    entity_type: str,
    entity_id: Optional[int] = None,
    actor: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None
) -> AuditLog:
    """
    Log a bookkeeping event to the audit log.

    Args:
        db: Database session (flushed, not committed)
        action: Action being performed (use AuditAction constants)
        entity_type: Table-level name of the record ("payment", "invoice", ...)
        entity_id: ID of the record
        actor: Free-form actor label from the client layer
        metadata: Additional context as JSON (amounts as strings)
        ip_address: IP address of the request

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        actor=actor,
        meta_data=metadata,
        ip_address=ip_address
    )

    db.add(audit_log)
    await db.flush()

    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering, newest first.
    """
    query = select(AuditLog)

    if entity_type:
        query = query.where(AuditLog.entity_type == entity_type)
    if entity_id is not None:
        query = query.where(AuditLog.entity_id == entity_id)
    if action:
        query = query.where(AuditLog.action == action)

    query = query.order_by(desc(AuditLog.timestamp), desc(AuditLog.id)).limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())
