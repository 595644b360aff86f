"""Order Book - Active exchange requests and their history."""

from seatswap.order_book.book import OrderBook
from seatswap.order_book.exceptions import (
    DuplicateOrderError,
    NotAuthorizedError,
    NotHolderError,
    OrderBookError,
    OrderNotFoundError,
)
from seatswap.order_book.models import (
    ActiveOrder,
    Order,
    OrderHistory,
    OrderState,
)

__all__ = [
    "ActiveOrder",
    "DuplicateOrderError",
    "NotAuthorizedError",
    "NotHolderError",
    "Order",
    "OrderBook",
    "OrderBookError",
    "OrderHistory",
    "OrderNotFoundError",
    "OrderState",
]
