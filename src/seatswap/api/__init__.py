"""REST API for SeatSwap."""

from seatswap.api.app import app, create_app
from seatswap.api.models import (
    APIResponse,
    OrderCreate,
    OrderResponse,
    SeatCreate,
    SeatResponse,
)

__all__ = [
    "APIResponse",
    "OrderCreate",
    "OrderResponse",
    "SeatCreate",
    "SeatResponse",
    "app",
    "create_app",
]
