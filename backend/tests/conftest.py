"""
Pytest fixtures and configuration for the storefront backend tests

Every test gets its own in-memory SQLite database seeded with a small
catalog, a recording dispatcher and a scripted payment gateway.
"""
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from passlib.hash import pbkdf2_sha256

from storefront.connectors.payment_gateway import (
    CheckoutSessionRequest,
    GatewayError,
    GatewaySession,
    PaymentGateway,
)
from storefront.core.auth import hash_api_key
from storefront.core.config import Settings
from storefront.core.database import build_engine, build_session_factory, create_schema, session_scope
from storefront.domain.notification import NotificationEvent, NotificationType
from storefront.domain.order import CheckoutRequest
from storefront.domain.payment import PaymentConfirmation
from storefront.main import create_app
from storefront.models import Category, Product
from storefront.services.booking_service import BookingScheduler
from storefront.services.checkout_service import CheckoutOrchestrator
from storefront.services.inventory_service import InventoryService
from storefront.services.order_query_service import OrderQueryService
from storefront.services.order_state_machine import OrderStateMachine
from storefront.services.payment_reconciler import PaymentReconciler

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "correct horse battery staple"
ADMIN_API_KEY = "test-admin-api-key"
WEBHOOK_SECRET = "whsec_test_secret"


class FakeDispatcher:
    """Records enqueued events instead of delivering them"""

    running = True

    def __init__(self):
        self.events: List[NotificationEvent] = []

    def enqueue(self, event: NotificationEvent) -> bool:
        self.events.append(event)
        return True

    def of_type(self, event_type: NotificationType) -> List[NotificationEvent]:
        return [event for event in self.events if event.type == event_type]

    async def start(self) -> None:
        return None

    async def stop(self) -> None:
        return None


class FakeGateway(PaymentGateway):
    """Scripted gateway: sessions start unpaid until mark_paid() is called"""

    def __init__(self):
        self.sessions: Dict[str, PaymentConfirmation] = {}
        self.requests: List[CheckoutSessionRequest] = []
        self.fail_create = False
        self.fail_retrieve = False

    async def create_checkout_session(self, request: CheckoutSessionRequest) -> GatewaySession:
        if self.fail_create:
            raise GatewayError("gateway down")
        self.requests.append(request)
        session_id = f"cs_test_{len(self.requests)}"
        self.sessions[session_id] = PaymentConfirmation(
            session_id=session_id,
            order_id=request.order_id,
            paid=False,
            amount=sum(item.unit_amount * item.quantity for item in request.line_items),
            currency=request.currency.upper(),
            customer_email=request.customer_email,
        )
        return GatewaySession(session_id=session_id, url=f"https://pay.example.com/{session_id}")

    async def retrieve_session(self, session_id: str) -> PaymentConfirmation:
        if self.fail_retrieve or session_id not in self.sessions:
            raise GatewayError(f"unknown session {session_id}")
        return self.sessions[session_id]

    def mark_paid(self, session_id: str, **overrides) -> None:
        self.sessions[session_id] = self.sessions[session_id].model_copy(update={"paid": True, **overrides})


@pytest.fixture
def settings():
    """Settings isolated from the environment and any .env file"""
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        CURRENCY="MAD",
        SITE_URL="https://shop.example.com",
        AUTH_SECRET="test-auth-secret",
        ADMIN_EMAIL=ADMIN_EMAIL,
        ADMIN_PASSWORD_HASH=pbkdf2_sha256.hash(ADMIN_PASSWORD),
        ADMIN_API_KEY_HASHES=hash_api_key(ADMIN_API_KEY),
        PAYMENT_WEBHOOK_SECRET=WEBHOOK_SECRET,
        NOTIFICATION_RETRY_DELAY_SECONDS=0,
    )


def seed_catalog(session_factory) -> None:
    """P1: 5 in stock at 10000, P2: 2 in stock at 25000, P3: unpublished"""
    with session_scope(session_factory) as session:
        session.add(Category(id="C1", name="Living Room", slug="living-room"))
        session.flush()
        session.add_all([
            Product(id="P1", name="Oak Dining Table", slug="oak-dining-table", price=10000, stock=5, category_id="C1"),
            Product(id="P2", name="Linen Sofa", slug="linen-sofa", price=25000, stock=2, category_id="C1"),
            Product(
                id="P3", name="Prototype Chair", slug="prototype-chair",
                price=5000, stock=10, category_id="C1", is_published=False,
            ),
        ])


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    factory = build_session_factory(engine)
    seed_catalog(factory)
    return factory


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def checkout_service(session_factory, dispatcher, settings):
    return CheckoutOrchestrator(session_factory, dispatcher, settings)


@pytest.fixture
def state_machine(session_factory, dispatcher):
    return OrderStateMachine(session_factory, dispatcher)


@pytest.fixture
def reconciler(session_factory, gateway, state_machine, dispatcher, settings):
    return PaymentReconciler(session_factory, gateway, state_machine, dispatcher, settings)


@pytest.fixture
def booking_scheduler(session_factory, dispatcher, settings):
    return BookingScheduler(session_factory, dispatcher, settings)


@pytest.fixture
def inventory(session_factory):
    return InventoryService(session_factory)


@pytest.fixture
def order_queries(session_factory):
    return OrderQueryService(session_factory)


def checkout_payload(items: Optional[list] = None, **overrides) -> dict:
    """Valid checkout body; override any field"""
    payload = {
        "customer_name": "Amina Benali",
        "customer_email": "amina@example.com",
        "customer_phone": "+212 600-123456",
        "address_line1": "12 Rue des Orangers",
        "city": "Casablanca",
        "postal_code": "20250",
        "country": "Morocco",
        "payment_method": "CASH_ON_DELIVERY",
        "items": items if items is not None else [{"product_id": "P1", "quantity": 1}],
    }
    payload.update(overrides)
    return payload


def make_checkout_request(items: Optional[list] = None, **overrides) -> CheckoutRequest:
    return CheckoutRequest(**checkout_payload(items, **overrides))


def product_stock(session_factory, product_id: str) -> int:
    with session_scope(session_factory) as session:
        return session.get(Product, product_id).stock


@pytest.fixture
def app(settings, engine, session_factory, gateway, dispatcher):
    return create_app(settings=settings, engine=engine, gateway=gateway, dispatcher=dispatcher)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers():
    return {"X-API-Key": ADMIN_API_KEY}


@pytest.fixture
def make_request():
    return make_checkout_request


@pytest.fixture
def make_payload():
    return checkout_payload


@pytest.fixture
def stock_of(session_factory):
    def _stock(product_id: str) -> int:
        return product_stock(session_factory, product_id)
    return _stock


@pytest.fixture
def file_session_factory(tmp_path):
    """Seeded file-backed SQLite database; lets threads use real separate connections"""
    engine = build_engine(f"sqlite:///{tmp_path / 'storefront.db'}")
    create_schema(engine)
    factory = build_session_factory(engine)
    seed_catalog(factory)
    yield factory
    engine.dispose()
