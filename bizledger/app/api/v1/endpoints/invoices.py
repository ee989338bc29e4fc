"""
Invoice API Endpoints.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from bizledger.app.db.session import get_db, unit_of_work
from bizledger.app.core.exceptions import ResourceNotFoundError
from bizledger.app.domain.receivables.invoice_service import InvoiceService
from bizledger.app.models.invoice import Invoice
from bizledger.app.schemas.receivables import InvoiceCreate, InvoiceResponse
from bizledger.app.services.audit import log_event, AuditAction
from bizledger.app.services.cache import CacheService

router = APIRouter(prefix="/invoices", tags=["Invoices"])


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def issue_invoice(
    invoice_data: InvoiceCreate,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Issue an invoice.

    The invoice total (amount + tax) is debited to the customer's ledger.
    If the invoice is for an order that already posted a delivery
    receivable, that posting is voided and replaced.
    """
    async with unit_of_work(db):
        invoice = await InvoiceService.issue_invoice(
            db,
            customer_id=invoice_data.customer_id,
            amount=invoice_data.amount,
            tax=invoice_data.tax,
            order_id=invoice_data.order_id,
            invoice_number=invoice_data.invoice_number,
            issue_date=invoice_data.issue_date,
            due_date=invoice_data.due_date,
        )
        await log_event(
            db=db,
            action=AuditAction.INVOICE_ISSUED,
            entity_type="invoice",
            entity_id=invoice.id,
            metadata={
                "invoice_number": invoice.invoice_number,
                "customer_id": invoice.customer_id,
                "total": str(invoice.total),
            },
            ip_address=request.client.host if request.client else None,
        )

    await CacheService.invalidate_reports()

    return InvoiceResponse.model_validate(invoice)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(invoice_id: int, db: AsyncSession = Depends(get_db)):
    invoice = await db.get(Invoice, invoice_id)
    if invoice is None:
        raise ResourceNotFoundError("Invoice", invoice_id)
    return InvoiceResponse.model_validate(invoice)
