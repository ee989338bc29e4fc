"""
Order API Endpoints.

Orders matter to the ledger only at delivery: a delivered order without
an invoice posts its total as a receivable.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from bizledger.app.db.session import get_db, unit_of_work
from bizledger.app.core.exceptions import ResourceNotFoundError
from bizledger.app.domain.receivables.order_service import OrderService
from bizledger.app.models.order import Order
from bizledger.app.schemas.receivables import OrderCreate, OrderResponse, OrderDeliveredResponse
from bizledger.app.services.audit import log_event, AuditAction
from bizledger.app.services.cache import CacheService

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    async with unit_of_work(db):
        order = await OrderService.create_order(
            db,
            customer_id=order_data.customer_id,
            subtotal=order_data.subtotal,
            total_tax=order_data.total_tax,
            total_amount=order_data.total_amount,
            order_number=order_data.order_number,
            notes=order_data.notes,
            order_date=order_data.order_date,
        )
        await log_event(
            db=db,
            action=AuditAction.ORDER_CREATED,
            entity_type="order",
            entity_id=order.id,
            metadata={"order_number": order.order_number, "total_amount": str(order.total_amount)},
            ip_address=request.client.host if request.client else None,
        )

    return OrderResponse.model_validate(order)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: int, db: AsyncSession = Depends(get_db)):
    order = await db.get(Order, order_id)
    if order is None:
        raise ResourceNotFoundError("Order", order_id)
    return OrderResponse.model_validate(order)


@router.post("/{order_id}/deliver", response_model=OrderDeliveredResponse)
async def mark_order_delivered(
    order_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Mark an order delivered.

    Posts the order total as a debit unless an invoice already covers it.
    Returns 409 if the order is already delivered or cancelled.
    """
    async with unit_of_work(db):
        order, entry = await OrderService.mark_order_delivered(db, order_id)
        await log_event(
            db=db,
            action=AuditAction.ORDER_DELIVERED,
            entity_type="order",
            entity_id=order.id,
            metadata={
                "order_number": order.order_number,
                "ledger_transaction_id": entry.id if entry is not None else None,
            },
            ip_address=request.client.host if request.client else None,
        )

    if entry is not None:
        await CacheService.invalidate_reports()

    return OrderDeliveredResponse(
        order=OrderResponse.model_validate(order),
        ledger_transaction_id=entry.id if entry is not None else None,
    )
