"""Pydantic models for REST API."""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    data: T | None = None
    error: str | None = None


# Seat models


class SeatCreate(BaseModel):
    """Request model for minting a seat."""

    holder: str = Field(..., min_length=1, max_length=255)
    course_id: str = Field(..., min_length=1, max_length=100)
    time_slot: str = Field(..., min_length=1, max_length=100)
    section: str = Field(default="", max_length=50)
    url: str = Field(default="", max_length=500)


class SeatResponse(BaseModel):
    """Response model for a seat."""

    model_config = ConfigDict(from_attributes=True)

    seat_id: int
    holder: str
    course_id: str
    section: str
    time_slot: str
    url: str


def seat_to_response(seat: Any) -> SeatResponse:
    """Convert a SeatInfo to SeatResponse."""
    return SeatResponse.model_validate(seat)


# Order models


class OrderCreate(BaseModel):
    """Request model for submitting an order."""

    seat_id: int = Field(..., ge=1)
    requested_course: str = Field(..., min_length=1, max_length=100)


class OrderResponse(BaseModel):
    """Response model for an order row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    seat_id: int
    requested_course: str
    submitter: str
    created_at: datetime


def order_to_response(order: Any) -> OrderResponse:
    """Convert an Order model to OrderResponse."""
    return OrderResponse.model_validate(order)


class ActiveOrderResponse(BaseModel):
    """Response model for an active order with its seat metadata."""

    model_config = ConfigDict(from_attributes=True)

    order_id: int
    seat_id: int
    requested_course: str
    submitter: str
    offered_course: str
    time_slot: str
    section: str


def active_order_to_response(order: Any) -> ActiveOrderResponse:
    """Convert an ActiveOrder snapshot to ActiveOrderResponse."""
    return ActiveOrderResponse.model_validate(order)


class CancelAllResponse(BaseModel):
    """Response model for a bulk cancellation."""

    cancelled: int
    order_ids: list[int]


# Matching models


class TransferResponse(BaseModel):
    """Response model for one seat movement."""

    seat_id: int
    from_holder: str
    to_holder: str


class CycleResponse(BaseModel):
    """Response model for an executed cycle."""

    order_ids: list[int]
    transfers: list[TransferResponse]


class CycleFailureResponse(BaseModel):
    """Response model for a cycle aborted by a ledger inconsistency."""

    order_ids: list[int]
    seat_id: int
    reason: str


class PassResultResponse(BaseModel):
    """Response model for a matching pass."""

    kind: str
    examined: int
    matched: bool
    cycles: list[CycleResponse]
    rejected: int
    failures: list[CycleFailureResponse]


def pass_result_to_response(result: Any) -> PassResultResponse:
    """Convert a PassResult to PassResultResponse."""
    return PassResultResponse(
        kind=str(result.kind),
        examined=result.examined,
        matched=result.matched,
        cycles=[
            CycleResponse(
                order_ids=list(cycle.order_ids),
                transfers=[TransferResponse(**t._asdict()) for t in cycle.transfers],
            )
            for cycle in result.cycles
        ],
        rejected=result.rejected,
        failures=[
            CycleFailureResponse(
                order_ids=list(failure.order_ids),
                seat_id=failure.seat_id,
                reason=failure.reason,
            )
            for failure in result.failures
        ],
    )


# History models


class HistoryResponse(BaseModel):
    """Response model for an order history entry."""

    model_config = ConfigDict(from_attributes=True)

    order_id: int
    seat_id: int
    requested_course: str
    submitter: str
    final_state: str
    created_at: datetime
    closed_at: datetime


def history_to_response(history: Any) -> HistoryResponse:
    """Convert an OrderHistory model to HistoryResponse."""
    return HistoryResponse.model_validate(history)
