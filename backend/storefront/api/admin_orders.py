"""
Admin Orders API Endpoints
Order listing, status changes, notes, manual payments and purge
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from storefront.core.auth import AdminPrincipal, require_admin
from storefront.core.dependencies import get_order_queries, get_payment_reconciler, get_state_machine
from storefront.domain.order import ManualPaymentRequest, NotesUpdateRequest, StatusUpdateRequest
from storefront.services.order_query_service import OrderQueryService
from storefront.services.order_state_machine import OrderStateMachine
from storefront.services.payment_reconciler import PaymentReconciler

router = APIRouter(dependencies=[Depends(require_admin)])


def _actor(admin: AdminPrincipal) -> str:
    return admin.email or admin.id


@router.get("/orders")
def list_orders(
    status: Optional[str] = Query(None, description="Filter by order status"),
    payment_method: Optional[str] = Query(None, description="Filter by payment method"),
    payment_status: Optional[str] = Query(None, description="Filter by payment status"),
    search: Optional[str] = Query(None, max_length=100, description="Search by order id, customer name, email, phone or city"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    queries: OrderQueryService = Depends(get_order_queries),
):
    """
    Get all orders with optional filters
    """
    orders, total = queries.list(
        status=status.upper() if status else None,
        payment_method=payment_method.upper() if payment_method else None,
        payment_status=payment_status.lower() if payment_status else None,
        search=search,
        limit=limit,
        offset=offset,
    )
    return {
        "status": "success",
        "total": total,
        "limit": limit,
        "offset": offset,
        "count": len(orders),
        "data": [order.to_dict() for order in orders],
    }


@router.get("/orders/{order_id}")
def get_order(
    order_id: str,
    queries: OrderQueryService = Depends(get_order_queries),
    state_machine: OrderStateMachine = Depends(get_state_machine),
):
    order = queries.get(order_id)
    history = state_machine.history(order_id)
    data = order.to_dict()
    data["history"] = [change.model_dump(mode="json") for change in history]
    return {"status": "success", "data": data}


@router.patch("/orders/{order_id}/status")
def update_order_status(
    order_id: str,
    body: StatusUpdateRequest,
    admin: AdminPrincipal = Depends(require_admin),
    state_machine: OrderStateMachine = Depends(get_state_machine),
):
    order = state_machine.transition(order_id, body.status, actor=_actor(admin), note=body.note)
    return {"status": "success", "data": order.to_dict()}


@router.patch("/orders/{order_id}/notes")
def update_order_notes(
    order_id: str,
    body: NotesUpdateRequest,
    admin: AdminPrincipal = Depends(require_admin),
    state_machine: OrderStateMachine = Depends(get_state_machine),
):
    order = state_machine.update_notes(order_id, body.internal_notes, actor=_actor(admin))
    return {"status": "success", "data": order.to_dict()}


@router.post("/orders/{order_id}/payment")
def record_payment(
    order_id: str,
    body: ManualPaymentRequest,
    admin: AdminPrincipal = Depends(require_admin),
    reconciler: PaymentReconciler = Depends(get_payment_reconciler),
):
    """Mark a cash-on-delivery / bank-transfer / quote order as paid"""
    order = reconciler.record_manual_payment(order_id, actor=_actor(admin), note=body.note)
    return {"status": "success", "data": order.to_dict()}


@router.delete("/orders/{order_id}")
def purge_order(
    order_id: str,
    admin: AdminPrincipal = Depends(require_admin),
    state_machine: OrderStateMachine = Depends(get_state_machine),
):
    state_machine.purge(order_id, actor=_actor(admin))
    return {"status": "success", "data": {"order_id": order_id, "deleted": True}}
