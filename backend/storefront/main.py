"""
Storefront Backend API
Order lifecycle and inventory consistency for the furniture storefront
"""
import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine

# Load environment variables
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from storefront.api import (  # noqa: E402
    admin_auth,
    admin_bookings,
    admin_catalog,
    admin_contacts,
    admin_orders,
    bookings,
    checkout,
    contact,
    orders,
    payments,
    products,
)
from storefront.connectors.notification_connector import HttpNotificationConnector, LoggingNotifier, Notifier  # noqa: E402
from storefront.connectors.payment_gateway import PaymentGateway, UnconfiguredGateway  # noqa: E402
from storefront.connectors.stripe_connector import StripeConnector  # noqa: E402
from storefront.core.auth import Authenticator, build_authenticator  # noqa: E402
from storefront.core.config import Settings  # noqa: E402
from storefront.core.database import build_engine, build_session_factory, check_database, create_schema  # noqa: E402
from storefront.core.errors import register_error_handlers  # noqa: E402
from storefront.core.rate_limit import RateLimiter  # noqa: E402
from storefront.services.booking_service import BookingScheduler  # noqa: E402
from storefront.services.checkout_service import CheckoutOrchestrator  # noqa: E402
from storefront.services.contact_service import ContactInbox  # noqa: E402
from storefront.services.inventory_service import InventoryService  # noqa: E402
from storefront.services.notification_dispatcher import NotificationDispatcher  # noqa: E402
from storefront.services.order_query_service import OrderQueryService  # noqa: E402
from storefront.services.order_state_machine import OrderStateMachine  # noqa: E402
from storefront.services.payment_reconciler import PaymentReconciler  # noqa: E402

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def build_gateway(settings: Settings) -> PaymentGateway:
    if not settings.PAYMENT_GATEWAY_SECRET_KEY:
        logger.warning("PAYMENT_GATEWAY_SECRET_KEY not set: card payments are disabled")
        return UnconfiguredGateway()
    return StripeConnector(settings.PAYMENT_GATEWAY_SECRET_KEY, settings.PAYMENT_GATEWAY_API_BASE)


def build_notifier(settings: Settings) -> Notifier:
    if not settings.NOTIFICATION_SERVICE_URL:
        logger.warning("NOTIFICATION_SERVICE_URL not set: notifications are only logged")
        return LoggingNotifier()
    return HttpNotificationConnector(settings.NOTIFICATION_SERVICE_URL, settings.NOTIFICATION_SERVICE_API_KEY)


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    gateway: Optional[PaymentGateway] = None,
    notifier: Optional[Notifier] = None,
    dispatcher=None,
    rate_limiter: Optional[RateLimiter] = None,
    authenticator: Optional[Authenticator] = None,
) -> FastAPI:
    """
    Build the FastAPI application

    Every collaborator can be injected; anything not given is built from
    settings. Tests pass an in-memory engine and fake gateway/dispatcher.
    """
    settings = settings or Settings()

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    engine = engine or build_engine(settings.DATABASE_URL, echo=settings.API_DEBUG)
    session_factory = build_session_factory(engine)

    gateway = gateway or build_gateway(settings)
    if dispatcher is None:
        dispatcher = NotificationDispatcher(
            notifier or build_notifier(settings),
            max_attempts=settings.NOTIFICATION_MAX_ATTEMPTS,
            retry_delay=settings.NOTIFICATION_RETRY_DELAY_SECONDS,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        create_schema(engine)
        await dispatcher.start()
        logger.info(f"{settings.API_TITLE} {settings.API_VERSION} started")
        try:
            yield
        finally:
            await dispatcher.stop()
            await gateway.close()

    # Crear aplicación FastAPI
    app = FastAPI(
        title=settings.API_TITLE,
        version=settings.API_VERSION,
        description=settings.API_DESCRIPTION,
        lifespan=lifespan,
    )

    state_machine = OrderStateMachine(session_factory, dispatcher)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.dispatcher = dispatcher
    app.state.rate_limiter = rate_limiter or RateLimiter(settings.get_rate_limits())
    app.state.authenticator = authenticator or build_authenticator(settings)
    app.state.state_machine = state_machine
    app.state.checkout_service = CheckoutOrchestrator(session_factory, dispatcher, settings)
    app.state.payment_reconciler = PaymentReconciler(session_factory, gateway, state_machine, dispatcher, settings)
    app.state.booking_scheduler = BookingScheduler(session_factory, dispatcher, settings)
    app.state.contact_inbox = ContactInbox(session_factory, dispatcher)
    app.state.inventory_service = InventoryService(session_factory)
    app.state.order_queries = OrderQueryService(session_factory)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Public storefront
    app.include_router(checkout.router, prefix=API_PREFIX, tags=["Checkout"])
    app.include_router(payments.router, prefix=API_PREFIX, tags=["Payments"])
    app.include_router(orders.router, prefix=API_PREFIX, tags=["Orders"])
    app.include_router(products.router, prefix=API_PREFIX, tags=["Products"])
    app.include_router(bookings.router, prefix=API_PREFIX, tags=["Bookings"])
    app.include_router(contact.router, prefix=API_PREFIX, tags=["Contact"])

    # Admin
    app.include_router(admin_auth.router, prefix=f"{API_PREFIX}/admin", tags=["Admin Auth"])
    app.include_router(admin_orders.router, prefix=f"{API_PREFIX}/admin", tags=["Admin Orders"])
    app.include_router(admin_bookings.router, prefix=f"{API_PREFIX}/admin", tags=["Admin Bookings"])
    app.include_router(admin_catalog.router, prefix=f"{API_PREFIX}/admin", tags=["Admin Catalog"])
    app.include_router(admin_contacts.router, prefix=f"{API_PREFIX}/admin", tags=["Admin Contacts"])

    @app.get("/")
    async def root():
        """Endpoint raíz - Verificación de estado de la API"""
        return {
            "message": settings.API_TITLE,
            "status": "online",
            "version": settings.API_VERSION,
        }

    @app.get("/health")
    def health():
        """Health check endpoint para monitoreo - tests database connectivity"""
        start_time = time.time()
        db_error = check_database(engine)
        latency_ms = round((time.time() - start_time) * 1000, 2)
        return {
            "status": "healthy" if db_error is None else "degraded",
            "service": "storefront-api",
            "version": settings.API_VERSION,
            "database": {
                "status": "connected" if db_error is None else "disconnected",
                "latency_ms": latency_ms,
            },
            "notifications": {
                "running": getattr(dispatcher, "running", False),
            },
        }

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    _settings = app.state.settings
    uvicorn.run("storefront.main:app", host=_settings.API_HOST, port=_settings.API_PORT, reload=_settings.API_DEBUG)
