"""Order book endpoints."""

from fastapi import APIRouter, status

from seatswap.api.dependencies import EngineDep, ParticipantDep
from seatswap.api.models import (
    ActiveOrderResponse,
    APIResponse,
    CancelAllResponse,
    OrderCreate,
    OrderResponse,
    active_order_to_response,
    order_to_response,
)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=APIResponse[list[ActiveOrderResponse]])
def list_orders(engine: EngineDep) -> APIResponse[list[ActiveOrderResponse]]:
    """List active orders with seat metadata, in submission order."""
    orders = engine.list_active_orders()
    return APIResponse(data=[active_order_to_response(o) for o in orders])


@router.post(
    "",
    response_model=APIResponse[OrderResponse],
    status_code=status.HTTP_201_CREATED,
)
def submit_order(
    order: OrderCreate, engine: EngineDep, participant: ParticipantDep
) -> APIResponse[OrderResponse]:
    """Submit an exchange request for a seat the caller holds."""
    created = engine.submit_order(
        seat_id=order.seat_id,
        requested_course=order.requested_course,
        submitter=participant,
    )
    return APIResponse(data=order_to_response(created))


@router.get("/{order_id}", response_model=APIResponse[OrderResponse])
def get_order(order_id: int, engine: EngineDep) -> APIResponse[OrderResponse]:
    """Get an active order by ID."""
    return APIResponse(data=order_to_response(engine.order_book.get_order(order_id)))


@router.delete("/{order_id}", response_model=APIResponse[OrderResponse])
def cancel_order(
    order_id: int, engine: EngineDep, participant: ParticipantDep
) -> APIResponse[OrderResponse]:
    """Cancel an order (submitter or admin)."""
    cancelled = engine.cancel_order(order_id, requester=participant)
    return APIResponse(data=order_to_response(cancelled))


@router.delete("", response_model=APIResponse[CancelAllResponse])
def cancel_all_orders(
    engine: EngineDep, participant: ParticipantDep
) -> APIResponse[CancelAllResponse]:
    """Cancel every active order (admin only)."""
    cancelled = engine.cancel_all_orders(requester=participant)
    return APIResponse(
        data=CancelAllResponse(cancelled=len(cancelled), order_ids=[o.id for o in cancelled])
    )
