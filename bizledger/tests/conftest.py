"""
Centralized Test Configuration.
"""

import pytest
from decimal import Decimal
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from bizledger.app.main import app
from bizledger.app.db.session import get_db, unit_of_work, Base
import bizledger.app.core.redis_client as redis_client_module
from bizledger.app.domain.receivables.customer_service import CustomerService
from bizledger.app.domain.receivables.invoice_service import InvoiceService
from bizledger.app.domain.receivables.order_service import OrderService
from bizledger.app.models.ledger import Ledger
from bizledger.app.models.invoice import Invoice

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine.sync_engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def incr(self, key):
        value = int(self.store.get(key, 0)) + 1
        self.store[key] = str(value)
        return value

    async def delete(self, key):
        if self._closed:
            return 0
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


# Redis Fixture (Session Scope)
@pytest.fixture(scope="session")
def redis_client_session():
    return MockRedis()


@pytest.fixture(scope="session", autouse=True)
def apply_overrides(redis_client_session):
    """Apply overrides once for the session."""

    # Patch the global redis client used by the report cache
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = redis_client_session

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield

    # Restore and clear
    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client


@pytest.fixture(autouse=True)
async def setup_database(redis_client_session):
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await redis_client_session.flushdb()

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


class Seed:
    """Committed fixture data built through the domain services."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def customer(self, name: str = "Acme Traders"):
        async with unit_of_work(self.db):
            customer, ledger = await CustomerService.create_customer(self.db, name=name)
        return customer, ledger

    async def invoice(self, customer_id: int, amount: str, tax: str = "0", order_id: int = None) -> Invoice:
        async with unit_of_work(self.db):
            invoice = await InvoiceService.issue_invoice(
                self.db,
                customer_id=customer_id,
                amount=Decimal(amount),
                tax=Decimal(tax),
                order_id=order_id,
            )
        return invoice

    async def order(self, customer_id: int, subtotal: str, total_tax: str = "0"):
        async with unit_of_work(self.db):
            order = await OrderService.create_order(
                self.db,
                customer_id=customer_id,
                subtotal=Decimal(subtotal),
                total_tax=Decimal(total_tax),
            )
        return order

    async def balance(self, ledger_id: int) -> Decimal:
        ledger = await self.db.get(Ledger, ledger_id, populate_existing=True)
        return ledger.current_balance

    async def refresh_invoice(self, invoice_id: int) -> Invoice:
        return await self.db.get(Invoice, invoice_id, populate_existing=True)


@pytest.fixture
def seed(db_session):
    return Seed(db_session)
