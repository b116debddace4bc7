"""
FastAPI dependencies resolving the services wired in create_app()
"""
from fastapi import Request

from storefront.core.config import Settings
from storefront.services.booking_service import BookingScheduler
from storefront.services.checkout_service import CheckoutOrchestrator
from storefront.services.contact_service import ContactInbox
from storefront.services.inventory_service import InventoryService
from storefront.services.order_query_service import OrderQueryService
from storefront.services.order_state_machine import OrderStateMachine
from storefront.services.payment_reconciler import PaymentReconciler


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_checkout_service(request: Request) -> CheckoutOrchestrator:
    return request.app.state.checkout_service


def get_state_machine(request: Request) -> OrderStateMachine:
    return request.app.state.state_machine


def get_payment_reconciler(request: Request) -> PaymentReconciler:
    return request.app.state.payment_reconciler


def get_booking_scheduler(request: Request) -> BookingScheduler:
    return request.app.state.booking_scheduler


def get_contact_inbox(request: Request) -> ContactInbox:
    return request.app.state.contact_inbox


def get_inventory_service(request: Request) -> InventoryService:
    return request.app.state.inventory_service


def get_order_queries(request: Request) -> OrderQueryService:
    return request.app.state.order_queries
