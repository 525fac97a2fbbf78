"""
Fixtures for integration tests.

Provides:
- Test client for FastAPI app
- Mock restriction client (users service)
- Fake clock that tests can move forward
- In-memory database with a seeded catalog product
"""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from installment_gateway.main import app
from installment_gateway.core.dependencies import get_clock, get_restriction_client
from installment_gateway.domain.entities import Notification, OrderRestriction
from installment_gateway.domain.exceptions import RestrictionServiceException
from installment_gateway.domain.interfaces import NotificationDispatcher, RestrictionClient
from installment_gateway.infrastructure.database import (
    Base,
    CartItemModel,
    ProductModel,
    get_db_session,
)


# =============================================================================
# Test Data
# =============================================================================

SELLER_ID = "seller_kinshop"
CUSTOMER_ID = "customer_good"
OTHER_CUSTOMER_ID = "customer_other"

# Checkout happens inside the product's installment window
CHECKOUT_TIME = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
WINDOW_START = datetime(2026, 1, 1, tzinfo=timezone.utc)
WINDOW_END = datetime(2026, 3, 2, tzinfo=timezone.utc)

PRICE_CENTS = 5_000_000
FIRST_PAYMENT_CENTS = 500_000
TRANCHE_CENTS = 2_250_000


class FakeClock:
    """Callable clock whose time only moves when a test says so."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, now: datetime) -> datetime:
        self.now = now
        return self.now


# =============================================================================
# Mock Clients
# =============================================================================

class MockRestrictionClient(RestrictionClient):
    """Restriction lookup answering from an in-memory set of banned customers."""

    def __init__(self, restricted_customers: Optional[set] = None, fail_mode: bool = False):
        self.restricted_customers = restricted_customers or set()
        self.fail_mode = fail_mode
        self.call_count = 0

    async def get_order_restriction(self, customer_id: str) -> OrderRestriction:
        self.call_count += 1

        if self.fail_mode:
            raise RestrictionServiceException(
                message="Users service unavailable",
                status_code=500,
            )

        if customer_id in self.restricted_customers:
            return OrderRestriction(restricted=True, reason="Chargeback dispute")

        return OrderRestriction()


class MockNotificationDispatcher(NotificationDispatcher):
    """Dispatcher that records deliveries and can be told to fail."""

    def __init__(self, fail_mode: bool = False):
        self.fail_mode = fail_mode
        self.delivered = []

    async def dispatch(self, notification: Notification) -> bool:
        if self.fail_mode:
            return False
        self.delivered.append(notification.to_payload())
        return True


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory SQLite async engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Let SQLAlchemy own BEGIN so SAVEPOINTs behave as on Postgres
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session shared by every request of a test."""
    async_session = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session


async def seed_product(session: AsyncSession, **overrides) -> str:
    """Insert an approved product offering 60-day installments; returns its id."""
    values = dict(
        id=str(uuid4()),
        seller_id=SELLER_ID,
        title="Samsung Galaxy A15",
        price_cents=PRICE_CENTS,
        status="approved",
        shop_name="Kin Shop",
        slug="samsung-galaxy-a15",
        images=["https://cdn.example.com/a15.jpg"],
        installment_enabled=True,
        installment_min_amount_cents=FIRST_PAYMENT_CENTS,
        installment_duration_days=60,
        installment_start_date=WINDOW_START,
        installment_end_date=WINDOW_END,
        installment_late_penalty_rate=5.0,
        installment_max_missed_payments=3,
        installment_require_guarantor=False,
    )
    values.update(overrides)

    session.add(ProductModel(**values))
    await session.flush()
    return values["id"]


async def seed_cart_item(session: AsyncSession, user_id: str, product_id: str) -> None:
    session.add(CartItemModel(user_id=user_id, product_id=product_id, quantity=1))
    await session.flush()


@pytest_asyncio.fixture
async def product_id(test_session: AsyncSession) -> str:
    return await seed_product(test_session)


# =============================================================================
# Mock Client Fixtures
# =============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(CHECKOUT_TIME)


@pytest.fixture
def mock_restriction_client() -> MockRestrictionClient:
    return MockRestrictionClient(restricted_customers={"customer_banned"})


@pytest.fixture
def failing_restriction_client() -> MockRestrictionClient:
    return MockRestrictionClient(fail_mode=True)


@pytest.fixture
def mock_dispatcher() -> MockNotificationDispatcher:
    return MockNotificationDispatcher()


# =============================================================================
# App Client Fixtures
# =============================================================================

def _install_overrides(
    session: AsyncSession,
    restriction_client: RestrictionClient,
    clock: FakeClock,
) -> None:
    async def override_get_db_session():
        yield session

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_restriction_client] = lambda: restriction_client
    app.dependency_overrides[get_clock] = lambda: clock


@pytest_asyncio.fixture
async def client(
    test_session: AsyncSession,
    mock_restriction_client: MockRestrictionClient,
    clock: FakeClock,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client with mocked dependencies.

    This client:
    - Uses an in-memory SQLite database
    - Mocks the users service restriction lookup
    - Reads time from the ``clock`` fixture
    """
    _install_overrides(test_session, mock_restriction_client, clock)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client_with_failing_users_service(
    test_session: AsyncSession,
    failing_restriction_client: MockRestrictionClient,
    clock: FakeClock,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client where the restriction lookup always fails."""
    _install_overrides(test_session, failing_restriction_client, clock)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# =============================================================================
# Helper Fixtures
# =============================================================================

def as_user(user_id: str) -> dict:
    return {"X-User-ID": user_id}


@pytest.fixture
def checkout_request(product_id: str) -> dict:
    """Checkout body: 5,000 down on a 50,000 product."""
    return {
        "product_id": product_id,
        "quantity": 1,
        "first_payment_cents": FIRST_PAYMENT_CENTS,
        "payer_name": "Jean Malonga",
        "transaction_code": "06 123 456 78",
    }


def proof_body(amount_cents: int = TRANCHE_CENTS) -> dict:
    return {
        "payer_name": "Jean Malonga",
        "transaction_code": "0698765432",
        "amount_cents": amount_cents,
    }


async def open_plan(client: AsyncClient, checkout_request: dict) -> dict:
    """Check out as the customer and return the order body."""
    response = await client.post(
        "/v1/installments/checkout",
        json=checkout_request,
        headers=as_user(CUSTOMER_ID),
    )
    assert response.status_code == 201, response.text
    return response.json()


async def open_active_plan(client: AsyncClient, checkout_request: dict) -> dict:
    """Check out, confirm the sale and validate the down payment."""
    order = await open_plan(client, checkout_request)
    order_id = order["order_id"]

    response = await client.post(
        f"/v1/installments/seller/orders/{order_id}/confirm-sale",
        json={"approve": True},
        headers=as_user(SELLER_ID),
    )
    assert response.status_code == 200, response.text

    response = await client.post(
        f"/v1/installments/seller/orders/{order_id}/tranches/0/validate",
        json={"approve": True},
        headers=as_user(SELLER_ID),
    )
    assert response.status_code == 200, response.text
    return response.json()
