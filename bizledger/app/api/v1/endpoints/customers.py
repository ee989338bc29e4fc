"""
Customer API Endpoints.

Creating a customer opens its ledger in the same transaction.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from bizledger.app.db.session import get_db, unit_of_work
from bizledger.app.core.exceptions import ResourceNotFoundError
from bizledger.app.domain.ledger.posting_rules import get_customer_ledger
from bizledger.app.domain.receivables.customer_service import CustomerService
from bizledger.app.models.customer import Customer
from bizledger.app.schemas.ledger import LedgerResponse
from bizledger.app.schemas.receivables import CustomerCreate, CustomerResponse, CustomerCreatedResponse
from bizledger.app.services.audit import log_event, AuditAction
from bizledger.app.services.cache import CacheService

router = APIRouter(prefix="/customers", tags=["Customers"])


@router.post("", response_model=CustomerCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer_data: CustomerCreate,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Create a customer together with its zero-balance ledger.
    """
    async with unit_of_work(db):
        customer, ledger = await CustomerService.create_customer(
            db,
            name=customer_data.name,
            email=customer_data.email,
            phone=customer_data.phone,
            company_name=customer_data.company_name,
        )
        await log_event(
            db=db,
            action=AuditAction.CUSTOMER_CREATED,
            entity_type="customer",
            entity_id=customer.id,
            metadata={"name": customer.name, "ledger_id": ledger.id},
            ip_address=request.client.host if request.client else None,
        )

    await CacheService.invalidate_reports()

    return CustomerCreatedResponse(
        customer=CustomerResponse.model_validate(customer),
        ledger_id=ledger.id,
    )


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(customer_id: int, db: AsyncSession = Depends(get_db)):
    customer = await db.get(Customer, customer_id)
    if customer is None:
        raise ResourceNotFoundError("Customer", customer_id)
    return CustomerResponse.model_validate(customer)


@router.get("/{customer_id}/ledger", response_model=LedgerResponse)
async def get_customer_ledger_account(customer_id: int, db: AsyncSession = Depends(get_db)):
    """Return the customer's ledger account with its current balance."""
    ledger = await get_customer_ledger(db, customer_id)
    if ledger is None:
        raise ResourceNotFoundError("Ledger for customer", customer_id)
    return LedgerResponse.model_validate(ledger)
